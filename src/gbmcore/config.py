"""
Configuration for the preprocessing and sampling core.

The booster builds one :class:`CoreParams`, validates it, and resolves the
objective functions and the sampler from it once before training starts.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional, Tuple, Union

import numpy as np

from .binning import MAX_BIN, BinnedData, bin_matrix
from .data import Matrix
from .objective import ObjFn, ObjectiveType, gradient_hessian_callables, loss_callable
from .sampler import SampleMethod, Sampler, get_sampler
from .utils import ArrayLike


@dataclass
class CoreParams:
    """
    Dataclass containing all core hyperparameters.

    Parameters
    ----------
    objective_type : str
        Objective name, see :meth:`ObjectiveType.from_str`.
    sample_method : str or None
        ``"random"``, ``"goss"``, ``"none"`` or None (use every row).
    subsample : float
        Keep probability of the random sampler, in (0, 1].
    top_rate : float
        GOSS fraction of large-gradient rows always kept, in [0, 1].
    other_rate : float
        GOSS expected fraction of rows sampled from the rest, in [0, 1].
    nbins : int
        Number of percentile bins per feature, in [1, 65535].
    seed : int
        Seed of the random generator used by the sampler.
    verbose : int
        Verbosity level (0=silent, 1=progress, 2=debug).
    """
    objective_type: str = "LogLoss"
    sample_method: Optional[str] = None
    subsample: float = 1.0
    top_rate: float = 0.2
    other_rate: float = 0.1
    nbins: int = 256
    seed: int = 0
    verbose: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert parameters to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, params: Dict[str, Any]) -> "CoreParams":
        """Create CoreParams from dictionary, ignoring unknown keys."""
        valid_keys = {f.name for f in cls.__dataclass_fields__.values()}
        filtered = {k: v for k, v in params.items() if k in valid_keys}
        return cls(**filtered)

    @property
    def objective(self) -> ObjectiveType:
        return ObjectiveType.from_str(self.objective_type)

    @property
    def method(self) -> SampleMethod:
        if self.sample_method is None:
            return SampleMethod.NONE
        return SampleMethod.from_str(self.sample_method)

    def validate(self) -> None:
        """
        Validate all parameters.

        Raises
        ------
        ParseStringError
            If the objective or sample method name is unknown.
        ValueError
            If any numeric parameter is out of range.
        """
        ObjectiveType.from_str(self.objective_type)
        if self.sample_method is not None:
            SampleMethod.from_str(self.sample_method)
        if not 0 < self.subsample <= 1:
            raise ValueError(f"subsample must be in (0, 1], got {self.subsample}")
        if not 0 <= self.top_rate <= 1:
            raise ValueError(f"top_rate must be in [0, 1], got {self.top_rate}")
        if not 0 <= self.other_rate <= 1:
            raise ValueError(f"other_rate must be in [0, 1], got {self.other_rate}")
        if not 1 <= self.nbins <= MAX_BIN:
            raise ValueError(f"nbins must be in [1, {MAX_BIN}], got {self.nbins}")
        if self.verbose < 0:
            raise ValueError(f"verbose must be non-negative, got {self.verbose}")

    def make_rng(self) -> np.random.Generator:
        """Random generator seeded with ``seed``."""
        return np.random.default_rng(self.seed)

    def objective_callables(self) -> Tuple[ObjFn, ObjFn]:
        """Gradient and hessian functions of the configured objective."""
        return gradient_hessian_callables(self.objective)

    def loss_callable(self) -> ObjFn:
        """Loss function of the configured objective."""
        return loss_callable(self.objective)

    def build_sampler(self) -> Sampler:
        """Sampler of the configured sample method."""
        return get_sampler(
            self.method,
            subsample=self.subsample,
            top_rate=self.top_rate,
            other_rate=self.other_rate,
            verbose=self.verbose,
        )

    def bin(
        self,
        data: Union[Matrix, ArrayLike],
        sample_weight: Optional[ArrayLike] = None,
    ) -> BinnedData:
        """Bin ``data`` with the configured number of bins."""
        return bin_matrix(data, sample_weight, self.nbins, verbose=self.verbose)


__all__ = ["CoreParams"]
