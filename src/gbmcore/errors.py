"""
Exceptions raised by the binning, sampling and objective modules.

Every error is terminal for the call that raised it. Nothing in this
package retries or masks them: they signal bad data or bad configuration
that has to be fixed by the caller.
"""

from __future__ import annotations

from typing import Optional, Sequence

from .utils import items_to_strings


class GBMCoreError(Exception):
    """Base class for all gbmcore errors."""
    pass


class NoVarianceError(GBMCoreError, ValueError):
    """
    Raised when a column cannot be binned into at least one usable split.

    A column is rejected when its deduplicated cut table (sentinel included)
    has fewer than 3 entries, e.g. a constant or all-missing column.

    Parameters
    ----------
    column : int or None
        Index of the offending column.
    """

    def __init__(self, column: Optional[int] = None):
        self.column = column
        if column is None:
            message = "Feature has no variance, it cannot be binned."
        else:
            message = f"Feature {column} has no variance, it cannot be binned."
        super().__init__(message)


class ParseStringError(GBMCoreError, ValueError):
    """
    Raised when a configuration string does not name a known option.

    Parameters
    ----------
    value : str
        The string that failed to parse.
    type_name : str
        Name of the enumeration it was parsed into.
    accepted : sequence of str
        Values the enumeration accepts.
    """

    def __init__(self, value: str, type_name: str, accepted: Sequence[str]):
        self.value = value
        self.type_name = type_name
        self.accepted = list(accepted)
        super().__init__(
            f"Unable to parse '{value}' as {type_name}, "
            f"accepted values are: {items_to_strings(self.accepted)}."
        )


class DegenerateSamplingError(GBMCoreError, ZeroDivisionError):
    """
    Raised when a GOSS quantity would divide by zero.

    This happens when no rows are left to sample from after keeping the top
    rows, or when the scale factor is requested with ``other_rate == 0``.
    A non-finite factor would corrupt every gradient it touches.

    Parameters
    ----------
    n_rows, top_n : int or None
        Eligible row count and number of top rows kept, when known.
    message : str or None
        Overrides the default empty-pool message.
    """

    def __init__(
        self,
        n_rows: Optional[int] = None,
        top_n: Optional[int] = None,
        message: Optional[str] = None,
    ):
        self.n_rows = n_rows
        self.top_n = top_n
        if message is None:
            message = (
                f"GOSS keeps the top {top_n} of {n_rows} rows, leaving no rows "
                "to sample from. Lower top_rate or provide more rows."
            )
        super().__init__(message)


__all__ = [
    "GBMCoreError",
    "NoVarianceError",
    "ParseStringError",
    "DegenerateSamplingError",
]
