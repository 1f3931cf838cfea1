"""bayescompare conjugate-model statistics.

Public API:
- gamma_poisson_ppd: Gamma-Poisson comparison of two count-valued groups
- normal_gamma_conjugate_family: Normal-Gamma inference for one to three groups
- GammaPoisson / NormalGamma: immutable conjugate posteriors with ``update()``
- credible_interval, hdi_from_samples, ordering_probabilities: sample summaries
- is_valid_vector and the Invalid* errors: shared input validation
"""

from bayescompare.stats.gamma_poisson import GammaPoisson, GammaPoissonResult, gamma_poisson_ppd
from bayescompare.stats.normal_gamma import (
    NormalGamma,
    OneGroupResult,
    ThreeGroupResult,
    TwoGroupResult,
    normal_gamma_conjugate_family,
)
from bayescompare.stats.summaries import credible_interval, hdi_from_samples, ordering_probabilities
from bayescompare.stats.validation import (
    BayesCompareError,
    InvalidConfidenceInterval,
    InvalidDataVector,
    InvalidSampleSize,
    InvalidScalarParameter,
    is_valid_vector,
)

__all__ = [
    "gamma_poisson_ppd",
    "GammaPoisson",
    "GammaPoissonResult",
    "normal_gamma_conjugate_family",
    "NormalGamma",
    "OneGroupResult",
    "TwoGroupResult",
    "ThreeGroupResult",
    "credible_interval",
    "hdi_from_samples",
    "ordering_probabilities",
    "is_valid_vector",
    "BayesCompareError",
    "InvalidSampleSize",
    "InvalidScalarParameter",
    "InvalidDataVector",
    "InvalidConfidenceInterval",
]
