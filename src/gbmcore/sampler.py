"""
Row samplers used to subset the data before fitting each tree.

A sampler receives the rows still eligible for the next tree together with
the current gradient and hessian buffers and returns the rows chosen for
training and the rows excluded. GOSS also rescales, in place, the
gradients and hessians of the small-gradient rows it keeps.

Randomness comes from an injected :class:`numpy.random.Generator`, so a
fixed seed and a fixed input order give reproducible samples.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import Tuple, Union

import numpy as np

from .errors import DegenerateSamplingError, ParseStringError
from .utils import ArrayLike, log_message


# =============================================================================
# Sample Method
# =============================================================================

class SampleMethod(Enum):
    """Sampling strategies available to the booster."""
    NONE = "none"
    RANDOM = "random"
    GOSS = "goss"

    @classmethod
    def from_str(cls, s: str) -> "SampleMethod":
        """
        Parse a sample method name.

        Raises
        ------
        ParseStringError
            If ``s`` is not one of ``"random"``, ``"goss"`` or ``"none"``.
        """
        for member in cls:
            if s == member.value:
                return member
        raise ParseStringError(s, cls.__name__, ["random", "goss", "none"])


# =============================================================================
# Base Sampler
# =============================================================================

class Sampler(ABC):
    """
    Abstract base class for row samplers.

    Parameters
    ----------
    verbose : int, default=0
        Verbosity level.
    """

    def __init__(self, verbose: int = 0):
        self.verbose = verbose

    @abstractmethod
    def sample(
        self,
        rng: np.random.Generator,
        index: ArrayLike,
        grad: np.ndarray,
        hess: np.ndarray,
    ) -> Tuple[np.ndarray, np.ndarray]:
        """
        Sample the eligible rows.

        Parameters
        ----------
        rng : np.random.Generator
            Source of uniform draws.
        index : array-like of int
            Row ids eligible for the next tree.
        grad : np.ndarray of shape (n_rows,)
            Gradient of every row, indexed by row id. May be rescaled in place.
        hess : np.ndarray of shape (n_rows,)
            Hessian of every row, indexed by row id. May be rescaled in place.

        Returns
        -------
        chosen : np.ndarray of int
            Rows used to fit the next tree.
        excluded : np.ndarray of int
            Rows left out.
        """

    def _log_sample(self, chosen: np.ndarray, excluded: np.ndarray) -> None:
        log_message(
            f"{type(self).__name__} chose {len(chosen)} rows, "
            f"excluded {len(excluded)}",
            verbose=self.verbose,
        )


def _as_index(index: ArrayLike) -> np.ndarray:
    index = np.asarray(index, dtype=np.intp)
    if index.ndim != 1:
        raise ValueError(f"index must be 1D, got shape {index.shape}")
    return index


# =============================================================================
# Samplers
# =============================================================================

class NoSampler(Sampler):
    """Uses every eligible row, leaves gradients untouched."""

    def sample(self, rng, index, grad, hess):
        chosen = _as_index(index).copy()
        excluded = np.array([], dtype=np.intp)
        self._log_sample(chosen, excluded)
        return chosen, excluded

    def __repr__(self) -> str:
        return "NoSampler()"


class RandomSampler(Sampler):
    """
    Independently keeps each eligible row with probability ``subsample``.

    The number of chosen rows is binomial, not fixed.

    Parameters
    ----------
    subsample : float
        Probability of keeping a row, in (0, 1].
    verbose : int, default=0
        Verbosity level.
    """

    def __init__(self, subsample: float, verbose: int = 0):
        super().__init__(verbose=verbose)
        if not 0 < subsample <= 1:
            raise ValueError(f"subsample must be in (0, 1], got {subsample}")
        self.subsample = subsample

    def sample(self, rng, index, grad, hess):
        index = _as_index(index)
        keep = rng.random(len(index)) < self.subsample
        chosen, excluded = index[keep], index[~keep]
        self._log_sample(chosen, excluded)
        return chosen, excluded

    def __repr__(self) -> str:
        return f"RandomSampler(subsample={self.subsample})"


class GossSampler(Sampler):
    """
    Gradient-based One-Side Sampling.

    GOSS keeps all rows with large gradients (top rows) and randomly samples
    the remaining rows (small gradients). Kept small-gradient rows have
    their gradient and hessian multiplied by ``(1 - top_rate) / other_rate``
    so their total stays an unbiased estimate of the rows dropped.

    Parameters
    ----------
    top_rate : float, default=0.2
        Fraction of rows with the largest ``|gradient|`` always kept.
    other_rate : float, default=0.1
        Expected fraction of all rows sampled from the remainder.
    verbose : int, default=0
        Verbosity level.

    References
    ----------
    Ke, G., et al. "LightGBM: A Highly Efficient Gradient Boosting
    Decision Tree." NeurIPS 2017.
    """

    def __init__(self, top_rate: float = 0.2, other_rate: float = 0.1, verbose: int = 0):
        super().__init__(verbose=verbose)
        if not 0 <= top_rate <= 1:
            raise ValueError(f"top_rate must be in [0, 1], got {top_rate}")
        if not 0 <= other_rate <= 1:
            raise ValueError(f"other_rate must be in [0, 1], got {other_rate}")

        self.top_rate = top_rate
        self.other_rate = other_rate

    @property
    def scale_factor(self) -> float:
        """Weight amplification of sampled small-gradient rows."""
        if self.other_rate == 0:
            raise DegenerateSamplingError(
                message="GOSS scale factor is undefined when other_rate is 0."
            )
        return (1 - self.top_rate) / self.other_rate

    def sample(self, rng, index, grad, hess):
        index = _as_index(index)
        n_rows = len(index)
        top_n = int(self.top_rate * n_rows)
        rand_n = int(self.other_rate * n_rows)

        pool = n_rows - top_n
        if pool == 0:
            raise DegenerateSamplingError(n_rows, top_n)

        # Sort by absolute gradient (descending)
        order = np.argsort(-np.abs(grad[index]), kind="stable")
        ranked = index[order]

        top_rows = ranked[:top_n]
        rest_rows = ranked[top_n:]

        keep = rng.random(pool) < rand_n / pool
        random_rows = rest_rows[keep]

        if len(random_rows) > 0:
            fact = self.scale_factor
            grad[random_rows] *= fact
            hess[random_rows] *= fact

        chosen = np.concatenate([top_rows, random_rows])
        excluded = np.array([], dtype=np.intp)
        self._log_sample(chosen, excluded)
        return chosen, excluded

    def __repr__(self) -> str:
        return f"GossSampler(top_rate={self.top_rate}, other_rate={self.other_rate})"


# =============================================================================
# Sampler Factory
# =============================================================================

def get_sampler(
    method: Union[SampleMethod, str, None],
    *,
    subsample: float = 1.0,
    top_rate: float = 0.2,
    other_rate: float = 0.1,
    verbose: int = 0,
) -> Sampler:
    """
    Build the sampler for a sample method.

    Parameters
    ----------
    method : SampleMethod, str or None
        Sampling strategy. ``None`` uses every row.
    subsample : float, default=1.0
        Keep probability of the random sampler.
    top_rate, other_rate : float
        GOSS parameters.
    verbose : int, default=0
        Verbosity level.

    Returns
    -------
    sampler : Sampler
    """
    if method is None:
        method = SampleMethod.NONE
    elif not isinstance(method, SampleMethod):
        method = SampleMethod.from_str(method)

    if method is SampleMethod.RANDOM:
        return RandomSampler(subsample, verbose=verbose)
    if method is SampleMethod.GOSS:
        return GossSampler(top_rate, other_rate, verbose=verbose)
    return NoSampler(verbose=verbose)


__all__ = [
    "SampleMethod",
    "Sampler",
    "NoSampler",
    "RandomSampler",
    "GossSampler",
    "get_sampler",
]
