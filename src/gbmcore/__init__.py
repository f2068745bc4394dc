"""
gbm-core - Preprocessing and row selection core of a histogram GBM.

This package provides the stages a gradient-boosted tree trainer runs
before growing trees:

- Quantile binning of a numeric matrix into uint16 bin indices,
  with bin 0 reserved for missing values
- Weighted percentile computation for the bin boundaries
- Row sampling (uniform subsampling and GOSS)
- Log-loss and squared-loss objectives (loss, gradient, hessian)

Example usage:
    >>> import numpy as np
    >>> from gbmcore import CoreParams
    >>>
    >>> X = np.random.randn(1000, 5)
    >>> y = (X[:, 0] > 0).astype(float)
    >>> params = CoreParams(objective_type="LogLoss", sample_method="goss", nbins=64)
    >>> params.validate()
    >>> binned = params.bin(X)
    >>>
    >>> grad_fn, hess_fn = params.objective_callables()
    >>> yhat = np.zeros(len(y))
    >>> grad, hess = grad_fn(y, yhat, None), hess_fn(y, yhat, None)
    >>> chosen, excluded = params.build_sampler().sample(
    ...     params.make_rng(), np.arange(len(y)), grad, hess
    ... )
"""

__version__ = "0.1.0"

# Binning
from .binning import (
    MAX_BIN,
    MAX_FRACTIONS,
    BinnedData,
    Quantizer,
    bin_matrix,
    bin_matrix_from_cuts,
)

# Configuration
from .config import CoreParams

# Data containers and validation
from .data import Matrix, check_array, check_sample_weight

# Errors
from .errors import (
    DegenerateSamplingError,
    GBMCoreError,
    NoVarianceError,
    ParseStringError,
)

# Objectives
from .objective import (
    LogLoss,
    ObjectiveFunction,
    ObjectiveType,
    SquaredLoss,
    get_objective,
    gradient_hessian_callables,
    loss_callable,
)

# Samplers
from .sampler import (
    GossSampler,
    NoSampler,
    RandomSampler,
    SampleMethod,
    Sampler,
    get_sampler,
)

# Utility functions
from .utils import (
    first_greater_than,
    log_message,
    map_bin,
    map_bins,
    percentiles,
    percentiles_nunique,
)

# Public API
__all__ = [
    # Version
    "__version__",
    # Binning
    "MAX_BIN",
    "MAX_FRACTIONS",
    "BinnedData",
    "Quantizer",
    "bin_matrix",
    "bin_matrix_from_cuts",
    # Configuration
    "CoreParams",
    # Data
    "Matrix",
    "check_array",
    "check_sample_weight",
    # Errors
    "GBMCoreError",
    "NoVarianceError",
    "ParseStringError",
    "DegenerateSamplingError",
    # Objectives
    "ObjectiveType",
    "ObjectiveFunction",
    "LogLoss",
    "SquaredLoss",
    "get_objective",
    "gradient_hessian_callables",
    "loss_callable",
    # Samplers
    "SampleMethod",
    "Sampler",
    "NoSampler",
    "RandomSampler",
    "GossSampler",
    "get_sampler",
    # Utilities
    "percentiles_nunique",
    "percentiles",
    "first_greater_than",
    "map_bin",
    "map_bins",
    "log_message",
]
