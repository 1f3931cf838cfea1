"""Gamma-Poisson conjugate model for comparing two count-valued groups.

Each group's counts are Poisson(theta) with a Gamma(a, b) prior on theta
(shape a, rate b).  After observing n counts summing to s the posterior is
Gamma(a + s, b + n) and the posterior predictive of a new count is
Negative-Binomial(size = a + s, p = (b + n) / (b + n + 1)).

Like the rest of the stats package the model is immutable: ``update()``
returns a *new* ``GammaPoisson``.
"""

from __future__ import annotations

import logging
from typing import Any, Literal, Optional

import numpy as np
from pydantic import BaseModel
from scipy import stats as sp_stats

from bayescompare.core.config import settings
from bayescompare.stats.summaries import (
    SeedLike,
    difference_quantiles,
    frequency_table,
    hdi_from_samples,
    make_rng,
)
from bayescompare.stats.validation import (
    validate_confidence_interval,
    validate_counts,
    validate_sample_size,
    validate_scalar,
    validate_scalars,
)

logger = logging.getLogger(__name__)

McmcSource = Literal["prior", "posterior"]


class GammaPoisson:
    """Immutable Gamma distribution over a Poisson rate.

    Parameters
    ----------
    shape : float
        Gamma shape (a).  Acts as a pseudo-count of events.
    rate : float
        Gamma rate (b).  Acts as a pseudo-count of observations.
    """

    __slots__ = ("shape", "rate")

    def __init__(self, shape: float, rate: float) -> None:
        self.shape = float(shape)
        self.rate = float(rate)

    # ------------------------------------------------------------------
    # Posterior update (returns new instance -- immutable)
    # ------------------------------------------------------------------

    def update(self, counts: np.ndarray) -> GammaPoisson:
        """Return a **new** GammaPoisson after observing ``counts``."""
        counts = np.asarray(counts, dtype=float)
        return GammaPoisson(
            shape=self.shape + float(np.sum(counts)),
            rate=self.rate + counts.size,
        )

    # ------------------------------------------------------------------
    # Summaries
    # ------------------------------------------------------------------

    def posterior_mean(self) -> float:
        """E[theta] = shape / rate."""
        return self.shape / self.rate

    def posterior_variance(self) -> float:
        """Var[theta] = shape / rate^2."""
        return self.shape / (self.rate * self.rate)

    def predictive_probability(self) -> float:
        """Success probability of the Negative-Binomial predictive: rate / (rate + 1)."""
        return self.rate / (self.rate + 1.0)

    # ------------------------------------------------------------------
    # Sampling
    # ------------------------------------------------------------------

    def sample(self, n: int, rng: np.random.Generator) -> np.ndarray:
        """Draw *n* rates from Gamma(shape, rate)."""
        return rng.gamma(self.shape, 1.0 / self.rate, size=n)

    def sample_predictive(self, n: int, rng: np.random.Generator) -> np.ndarray:
        """Draw *n* new counts directly from the Negative-Binomial predictive.

        numpy counts failures before ``shape`` successes, the same
        parameterization as R's ``rnbinom(size, prob)``.
        """
        return rng.negative_binomial(self.shape, self.predictive_probability(), size=n)

    def sample_two_stage(self, n: int, rng: np.random.Generator) -> np.ndarray:
        """Draw a rate, then a Poisson count at that rate, *n* times."""
        theta = self.sample(n, rng)
        return rng.poisson(theta)

    def __repr__(self) -> str:
        return f"GammaPoisson(shape={self.shape:.3f}, rate={self.rate:.3f})"


# ======================================================================
# Result schemas
# ======================================================================


class PoissonFit(BaseModel):
    """Fixed-rate Poisson pmf next to a group's empirical frequencies."""

    mean: float
    support: list[int]
    pmf: list[float]
    empirical: list[float]


class ZeroOneCheck(BaseModel):
    """Posterior predictive check on the number of zeros and ones.

    ``zeros[i]`` and ``ones[i]`` come from one simulated data set of
    ``replications`` counts at the i-th posterior rate draw.
    """

    model_config = {"arbitrary_types_allowed": True}

    replications: int
    zeros: np.ndarray
    ones: np.ndarray
    observed_zeros: int
    observed_ones: int

    @property
    def observed_point(self) -> tuple[int, int]:
        return (self.observed_zeros, self.observed_ones)


class GammaPoissonResult(BaseModel):
    """Everything ``gamma_poisson_ppd`` computes for one call."""

    model_config = {"arbitrary_types_allowed": True}

    sample_size: int
    using_mcmc: bool
    mcmc_source: Optional[str] = None
    posterior_1: GammaPoisson
    posterior_2: GammaPoisson
    theta1: np.ndarray
    theta2: np.ndarray
    y_tilde1: np.ndarray
    y_tilde2: np.ndarray
    y_tilde1_table: dict[int, int]
    y_tilde2_table: dict[int, int]
    zero_one_check: ZeroOneCheck
    poisson_fit_1: Optional[PoissonFit] = None
    poisson_fit_2: Optional[PoissonFit] = None
    confidence_interval: Optional[tuple[float, float]] = None
    theta2_minus_theta1_quantile: Optional[tuple[float, float]] = None
    y_tilde2_minus_y_tilde1_quantile: Optional[tuple[float, float]] = None

    def difference_hdi(self, credible_mass: float = 0.95) -> tuple[float, float]:
        """HDI of (theta2 - theta1) over the paired posterior draws."""
        return hdi_from_samples(self.theta2 - self.theta1, credible_mass)

    def to_dict(self) -> dict[str, Any]:
        """Quantile summary under the historical key names.

        Empty when no confidence interval was requested.
        """
        if self.confidence_interval is None:
            return {}
        return {
            "theta2_minus_theta1_quantile": self.theta2_minus_theta1_quantile,
            "y_tidle2_minus_ytilde1_quantile": self.y_tilde2_minus_y_tilde1_quantile,
        }


# ======================================================================
# Helpers
# ======================================================================


def poisson_fit(counts: np.ndarray, mean: float) -> PoissonFit:
    """Poisson(mean) pmf on 0..max(counts) next to the counts' relative frequencies."""
    counts = np.asarray(counts, dtype=np.int64)
    support = np.arange(0, int(counts.max()) + 1)
    empirical = np.bincount(counts, minlength=support.size) / counts.size
    return PoissonFit(
        mean=float(mean),
        support=support.tolist(),
        pmf=sp_stats.poisson.pmf(support, mean).tolist(),
        empirical=empirical.tolist(),
    )


def zero_one_counts(
    rates: np.ndarray,
    replications: int,
    rng: np.random.Generator,
    chunk_size: Optional[int] = None,
) -> tuple[np.ndarray, np.ndarray]:
    """Simulate a Poisson data set per rate and count its zeros and ones.

    For each ``rates[i]`` draw ``replications`` counts from Poisson(rates[i]).
    Rows are generated ``chunk_size`` rates at a time to bound memory.

    Returns
    -------
    tuple[np.ndarray, np.ndarray]
        (zeros, ones), each with one entry per rate.
    """
    if chunk_size is None:
        chunk_size = settings.PPC_CHUNK_SIZE
    chunk_size = max(int(chunk_size), 1)

    rates = np.asarray(rates, dtype=float)
    zeros = np.empty(rates.shape[0], dtype=np.int64)
    ones = np.empty(rates.shape[0], dtype=np.int64)
    for start in range(0, rates.shape[0], chunk_size):
        block = rates[start:start + chunk_size]
        sims = rng.poisson(block[:, None], size=(block.shape[0], replications))
        zeros[start:start + chunk_size] = np.sum(sims == 0, axis=1)
        ones[start:start + chunk_size] = np.sum(sims == 1, axis=1)
    return zeros, ones


# ======================================================================
# Entry point
# ======================================================================


def gamma_poisson_ppd(
    sample_size: int,
    gamma_a1: float,
    gamma_b1: float,
    y1,
    gamma_a2: float,
    gamma_b2: float,
    y2,
    confidence_interval=None,
    using_mcmc: bool = False,
    poisson_fitting_mean: Optional[float] = None,
    *,
    mcmc_source: McmcSource = "prior",
    replications: Optional[int] = None,
    seed: SeedLike = None,
) -> GammaPoissonResult:
    """Posterior and posterior predictive comparison of two Poisson groups.

    Parameters
    ----------
    sample_size : int
        Number of draws for every sample collection.
    gamma_a1, gamma_b1 : float
        Gamma prior shape and rate for group 1's rate.
    y1 : array-like
        Observed non-negative integer counts for group 1 (a bare count is
        treated as length 1).
    gamma_a2, gamma_b2 : float
        Gamma prior shape and rate for group 2's rate.
    y2 : array-like
        Observed counts for group 2.
    confidence_interval : (float, float) | None
        Probability levels for the difference quantiles.
    using_mcmc : bool
        If False, draw predictive counts from the Negative-Binomial.  If True,
        draw a rate then a Poisson count for every draw.
    poisson_fitting_mean : float | None
        Fixed rate whose pmf is compared with each group's frequencies.
    mcmc_source : {"prior", "posterior"}
        Where the two-stage path draws its rates from.  ``"prior"`` keeps
        the historical behaviour of sampling the Gamma prior, so the draws
        ignore the data; ``"posterior"`` gives the true posterior predictive.
    replications : int | None
        Size of each simulated data set in the zero/one check.  Defaults to
        ``settings.PPC_REPLICATIONS`` (218).
    seed : int | np.random.Generator | None
        Seed or generator for all draws.

    Returns
    -------
    GammaPoissonResult
        Always returned; the quantile fields are None unless
        ``confidence_interval`` is given.

    Notes
    -----
    Gamma shapes and rates must be positive.  They are not checked here,
    and numpy raises ``ValueError`` from the sampler if they aren't.
    """
    sample_size = validate_sample_size(sample_size)
    params = validate_scalars(
        gamma_a1=gamma_a1, gamma_b1=gamma_b1, gamma_a2=gamma_a2, gamma_b2=gamma_b2
    )
    y1 = validate_counts("y1", y1)
    y2 = validate_counts("y2", y2)
    levels = None
    if confidence_interval is not None:
        levels = validate_confidence_interval(confidence_interval)
    fitting_mean = None
    if poisson_fitting_mean is not None:
        fitting_mean = validate_scalar("poisson_fitting_mean", poisson_fitting_mean)
    if mcmc_source not in ("prior", "posterior"):
        raise ValueError(f"mcmc_source must be 'prior' or 'posterior', got {mcmc_source!r}")
    if replications is None:
        replications = settings.PPC_REPLICATIONS
    replications = validate_sample_size(replications, "replications")

    rng = make_rng(seed)

    prior_1 = GammaPoisson(params["gamma_a1"], params["gamma_b1"])
    prior_2 = GammaPoisson(params["gamma_a2"], params["gamma_b2"])
    posterior_1 = prior_1.update(y1)
    posterior_2 = prior_2.update(y2)
    logger.debug("Gamma posteriors: group1=%r group2=%r", posterior_1, posterior_2)

    # ----------------------------------------------------------
    # Posterior predictive draws
    # ----------------------------------------------------------
    if using_mcmc:
        source_1, source_2 = (
            (prior_1, prior_2) if mcmc_source == "prior" else (posterior_1, posterior_2)
        )
        y_tilde1 = source_1.sample_two_stage(sample_size, rng)
        y_tilde2 = source_2.sample_two_stage(sample_size, rng)
    else:
        y_tilde1 = posterior_1.sample_predictive(sample_size, rng)
        y_tilde2 = posterior_2.sample_predictive(sample_size, rng)

    # Posterior rates, always closed form
    theta1 = posterior_1.sample(sample_size, rng)
    theta2 = posterior_2.sample(sample_size, rng)

    fit_1 = fit_2 = None
    if fitting_mean is not None:
        fit_1 = poisson_fit(y1, fitting_mean)
        fit_2 = poisson_fit(y2, fitting_mean)

    # ----------------------------------------------------------
    # Zero/one posterior predictive check on group 2
    # ----------------------------------------------------------
    zeros, ones = zero_one_counts(theta2, replications, rng)
    check = ZeroOneCheck(
        replications=replications,
        zeros=zeros,
        ones=ones,
        observed_zeros=int(np.sum(y2 == 0)),
        observed_ones=int(np.sum(y2 == 1)),
    )

    theta_q = y_tilde_q = None
    if levels is not None:
        theta_q = difference_quantiles(theta1, theta2, levels)
        y_tilde_q = difference_quantiles(y_tilde1, y_tilde2, levels)
        logger.debug("Difference quantiles at %s: theta=%s y_tilde=%s", levels, theta_q, y_tilde_q)

    return GammaPoissonResult(
        sample_size=sample_size,
        using_mcmc=bool(using_mcmc),
        mcmc_source=mcmc_source if using_mcmc else None,
        posterior_1=posterior_1,
        posterior_2=posterior_2,
        theta1=theta1,
        theta2=theta2,
        y_tilde1=y_tilde1,
        y_tilde2=y_tilde2,
        y_tilde1_table=frequency_table(y_tilde1),
        y_tilde2_table=frequency_table(y_tilde2),
        zero_one_check=check,
        poisson_fit_1=fit_1,
        poisson_fit_2=fit_2,
        confidence_interval=levels,
        theta2_minus_theta1_quantile=theta_q,
        y_tilde2_minus_y_tilde1_quantile=y_tilde_q,
    )
