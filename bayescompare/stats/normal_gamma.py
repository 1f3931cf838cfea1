"""Normal model with a Normal-Gamma conjugate prior, for up to three groups.

The prior is theta | sigma^2 ~ N(mu_0, sigma^2 / kappa_0) and
1 / sigma^2 ~ Gamma(nu_0 / 2, nu_0 * sigma_0^2 / 2).  Every group gets the
same prior and is updated on its own data.  Draws are paired by index
across groups, so the ordering probabilities compare replicate r of
group 1 with replicate r of groups 2 and 3.
"""

from __future__ import annotations

import logging
from typing import Any, ClassVar, Literal, Optional, Union

import numpy as np
from pydantic import BaseModel

from bayescompare.core.config import settings
from bayescompare.stats.summaries import (
    SeedLike,
    credible_interval,
    difference_quantiles,
    hdi_from_samples,
    make_rng,
    ordering_key,
    ordering_probabilities,
    probability_unique_max,
)
from bayescompare.stats.validation import (
    InvalidDataVector,
    validate_confidence_interval,
    validate_data,
    validate_sample_size,
    validate_scalars,
)

logger = logging.getLogger(__name__)

Quantity = Literal["theta", "sigma", "y_tilde"]


class NormalGamma:
    """Immutable Normal-Gamma distribution over (theta, sigma^2).

    Parameters
    ----------
    mu : float
        Location of theta.
    kappa : float
        Pseudo-count behind ``mu``.
    nu : float
        Degrees of freedom behind ``sigma_sq``.
    sigma_sq : float
        Scale of the variance.
    """

    __slots__ = ("mu", "kappa", "nu", "sigma_sq")

    def __init__(self, mu: float, kappa: float, nu: float, sigma_sq: float) -> None:
        self.mu = float(mu)
        self.kappa = float(kappa)
        self.nu = float(nu)
        self.sigma_sq = float(sigma_sq)

    def update(self, y: np.ndarray) -> NormalGamma:
        """Return a **new** NormalGamma after observing ``y``.

        kappa_n    = kappa_0 + n
        mu_n       = (kappa_0 * mu_0 + n * ybar) / kappa_n
        nu_n       = nu_0 + n
        sigma_n^2  = (nu_0 * sigma_0^2 + (n - 1) * s^2
                      + (kappa_0 * n / kappa_n) * (ybar - mu_0)^2) / nu_n

        With a single observation the (n - 1) * s^2 term is zero.
        """
        y = np.asarray(y, dtype=float)
        n = y.size
        y_bar = float(np.mean(y))
        # ddof=1 is undefined for n == 1; the term it feeds is zero anyway
        ss_within = float(np.var(y, ddof=1)) * (n - 1) if n > 1 else 0.0

        kappa_n = self.kappa + n
        mu_n = (self.kappa * self.mu + n * y_bar) / kappa_n
        nu_n = self.nu + n
        sigma_n_sq = (
            self.nu * self.sigma_sq
            + ss_within
            + (self.kappa * n / kappa_n) * (y_bar - self.mu) ** 2
        ) / nu_n
        return NormalGamma(mu=mu_n, kappa=kappa_n, nu=nu_n, sigma_sq=sigma_n_sq)

    def sample_variance(self, n: int, rng: np.random.Generator) -> np.ndarray:
        """Draw sigma^2 by inverting Gamma(nu / 2, rate = nu * sigma_sq / 2) precisions."""
        precision = rng.gamma(self.nu / 2.0, 2.0 / (self.nu * self.sigma_sq), size=n)
        return 1.0 / precision

    def sample_mean(self, sigma_sq: np.ndarray, rng: np.random.Generator) -> np.ndarray:
        """Draw theta ~ N(mu, sigma^2 / kappa), one per variance draw."""
        return rng.normal(self.mu, np.sqrt(sigma_sq / self.kappa))

    @staticmethod
    def sample_predictive(
        theta: np.ndarray, sigma_sq: np.ndarray, rng: np.random.Generator
    ) -> np.ndarray:
        """Draw y_tilde ~ N(theta, sigma^2), paired with the given draws."""
        return rng.normal(theta, np.sqrt(sigma_sq))

    def __repr__(self) -> str:
        return (
            f"NormalGamma(mu={self.mu:.4f}, kappa={self.kappa:.3f}, "
            f"nu={self.nu:.3f}, sigma_sq={self.sigma_sq:.4f})"
        )


# ======================================================================
# Result schemas
# ======================================================================


class GroupInference(BaseModel):
    """Posterior summaries and draws for one group."""

    model_config = {"arbitrary_types_allowed": True}

    group: int
    posterior: NormalGamma
    theta: np.ndarray
    sigma: np.ndarray
    y_tilde: np.ndarray
    theta_bar: float
    confidence_interval_theta: tuple[float, ...]
    sigma_bar: float
    confidence_interval_sigma: tuple[float, ...]

    def to_dict(self) -> dict[str, Any]:
        k = self.group
        return {
            f"theta_bar.{k}": self.theta_bar,
            f"confidence_interval_theta.{k}": self.confidence_interval_theta,
            f"sigma_bar.{k}": self.sigma_bar,
            f"confidence_interval_sigma_bar.{k}": self.confidence_interval_sigma,
            f"y_tilde.{k}": self.y_tilde,
        }


class OrderingProbabilities(BaseModel):
    """P(each strict ordering of groups 1-3) and P(group 1 is the unique max)."""

    orderings: dict[str, float]
    group_1_biggest: float

    def probability(self, *order: int) -> float:
        """Probability of ``order``, e.g. ``probability(2, 1, 3)`` for 2 < 1 < 3."""
        return self.orderings[ordering_key(order)]

    @property
    def total(self) -> float:
        return float(sum(self.orderings.values()))


class _GroupsResult(BaseModel):
    model_config = {"arbitrary_types_allowed": True}

    n_groups: ClassVar[int]

    sample_size: int
    confidence_interval: tuple[float, float]

    @property
    def groups(self) -> list[GroupInference]:
        return [getattr(self, f"inference_{k}") for k in range(1, self.n_groups + 1)]

    def group(self, k: int) -> GroupInference:
        """Inference for group ``k`` (1-based)."""
        if not 1 <= k <= self.n_groups:
            raise IndexError(f"group must be in 1..{self.n_groups}, got {k}")
        return self.groups[k - 1]

    def _paired(self, i: int, j: int, quantity: Quantity) -> tuple[np.ndarray, np.ndarray]:
        if quantity not in ("theta", "sigma", "y_tilde"):
            raise ValueError(f"unknown quantity {quantity!r}")
        return getattr(self.group(i), quantity), getattr(self.group(j), quantity)

    def difference_quantiles(
        self,
        i: int,
        j: int,
        quantity: Quantity = "theta",
        levels: Optional[tuple[float, float]] = None,
    ) -> tuple[float, ...]:
        """Quantiles of group j minus group i over paired replicates.

        Parameters
        ----------
        i, j : int
            1-based group indices.
        quantity : {"theta", "sigma", "y_tilde"}
            Which draws to difference.
        levels : (float, float) | None
            Probability levels; defaults to the call's confidence interval.
        """
        levels = self.confidence_interval if levels is None else validate_confidence_interval(levels)
        draws_i, draws_j = self._paired(i, j, quantity)
        return difference_quantiles(draws_i, draws_j, levels)

    def difference_hdi(
        self,
        i: int,
        j: int,
        quantity: Quantity = "theta",
        credible_mass: float = 0.95,
    ) -> tuple[float, float]:
        """HDI of group j minus group i over paired replicates."""
        draws_i, draws_j = self._paired(i, j, quantity)
        return hdi_from_samples(draws_j - draws_i, credible_mass)


class OneGroupResult(_GroupsResult):
    n_groups: ClassVar[int] = 1

    inference_1: GroupInference

    def to_dict(self) -> dict[str, Any]:
        return self.inference_1.to_dict()


class TwoGroupResult(_GroupsResult):
    n_groups: ClassVar[int] = 2

    inference_1: GroupInference
    inference_2: GroupInference

    def to_dict(self) -> dict[str, Any]:
        return {f"inference.{g.group}": g.to_dict() for g in self.groups}


class ThreeGroupResult(_GroupsResult):
    n_groups: ClassVar[int] = 3

    inference_1: GroupInference
    inference_2: GroupInference
    inference_3: GroupInference
    theta_ordering: OrderingProbabilities
    y_tilde_ordering: OrderingProbabilities

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {f"inference.{g.group}": g.to_dict() for g in self.groups}
        for prefix, ordering in (
            ("theta", self.theta_ordering),
            ("y_tilde", self.y_tilde_ordering),
        ):
            for key, p in ordering.orderings.items():
                out[f"{prefix}_smaller.{key.replace('<', '.')}"] = p
        out["theta_biggest.1"] = self.theta_ordering.group_1_biggest
        out["y_tilde_biggest.1"] = self.y_tilde_ordering.group_1_biggest
        return out


NormalGammaResult = Union[OneGroupResult, TwoGroupResult, ThreeGroupResult]


# ======================================================================
# Helpers
# ======================================================================


def infer_group(
    group: int,
    prior: NormalGamma,
    y: np.ndarray,
    sample_size: int,
    levels: tuple[float, float],
    rng: np.random.Generator,
) -> GroupInference:
    """Update ``prior`` on ``y`` and summarize ``sample_size`` paired draws."""
    posterior = prior.update(y)
    logger.debug("Group %d posterior: %r", group, posterior)

    sigma_sq = posterior.sample_variance(sample_size, rng)
    theta = posterior.sample_mean(sigma_sq, rng)
    sigma = np.sqrt(sigma_sq)
    y_tilde = posterior.sample_predictive(theta, sigma_sq, rng)

    return GroupInference(
        group=group,
        posterior=posterior,
        theta=theta,
        sigma=sigma,
        y_tilde=y_tilde,
        theta_bar=float(np.mean(theta)),
        confidence_interval_theta=credible_interval(theta, levels),
        sigma_bar=float(np.mean(sigma)),
        confidence_interval_sigma=credible_interval(sigma, levels),
    )


def compare_orderings(samples_by_group: list[np.ndarray]) -> OrderingProbabilities:
    return OrderingProbabilities(
        orderings=ordering_probabilities(samples_by_group),
        group_1_biggest=probability_unique_max(samples_by_group, group=0),
    )


# ======================================================================
# Entry point
# ======================================================================


def normal_gamma_conjugate_family(
    sample_size: int,
    mu_0: float,
    sigma_0_square: float,
    kappa_0: float,
    nu_0: float,
    y_1,
    y_2=None,
    y_3=None,
    confidence_interval=None,
    *,
    seed: SeedLike = None,
) -> NormalGammaResult:
    """Posterior inference for one to three Normal groups under a shared prior.

    Parameters
    ----------
    sample_size : int
        Number of paired replicates drawn per group.
    mu_0 : float
        Prior mean of theta.
    sigma_0_square : float
        Prior guess of the variance.
    kappa_0 : float
        Prior pseudo-count for ``mu_0``.
    nu_0 : float
        Prior degrees of freedom for ``sigma_0_square``.
    y_1, y_2, y_3 : array-like
        Group data.  ``y_2`` and ``y_3`` are optional, but ``y_3`` needs ``y_2``.
    confidence_interval : (float, float) | None
        Quantile levels; defaults to ``settings.DEFAULT_CONFIDENCE_INTERVAL``
        (0.025, 0.975).
    seed : int | np.random.Generator | None
        Seed or generator for all draws.

    Returns
    -------
    OneGroupResult | TwoGroupResult | ThreeGroupResult
        Shape follows the number of groups supplied.

    Notes
    -----
    ``sigma_0_square``, ``kappa_0`` and ``nu_0`` must be positive; that is
    the caller's responsibility and is not checked.
    """
    sample_size = validate_sample_size(sample_size)
    params = validate_scalars(
        mu_0=mu_0, sigma_0_square=sigma_0_square, kappa_0=kappa_0, nu_0=nu_0
    )
    data = [validate_data("y_1", y_1)]
    if y_2 is not None:
        data.append(validate_data("y_2", y_2))
    if y_3 is not None:
        if y_2 is None:
            raise InvalidDataVector("data must be a vector: y_3 given without y_2")
        data.append(validate_data("y_3", y_3))
    if confidence_interval is None:
        confidence_interval = settings.DEFAULT_CONFIDENCE_INTERVAL
    levels = validate_confidence_interval(confidence_interval)

    rng = make_rng(seed)
    prior = NormalGamma(
        mu=params["mu_0"],
        kappa=params["kappa_0"],
        nu=params["nu_0"],
        sigma_sq=params["sigma_0_square"],
    )

    inferences = [
        infer_group(k, prior, y, sample_size, levels, rng)
        for k, y in enumerate(data, start=1)
    ]
    common = {"sample_size": sample_size, "confidence_interval": levels}
    logger.debug("Normal-Gamma inference for %d group(s), sample_size=%d", len(inferences), sample_size)

    if len(inferences) == 1:
        return OneGroupResult(inference_1=inferences[0], **common)
    if len(inferences) == 2:
        return TwoGroupResult(inference_1=inferences[0], inference_2=inferences[1], **common)

    return ThreeGroupResult(
        inference_1=inferences[0],
        inference_2=inferences[1],
        inference_3=inferences[2],
        theta_ordering=compare_orderings([g.theta for g in inferences]),
        y_tilde_ordering=compare_orderings([g.y_tilde for g in inferences]),
        **common,
    )
