"""Reductions from Monte Carlo draws to reported summaries.

Everything here is deterministic given the draws: quantile credible
intervals, the highest density interval, frequency tables, and
probabilities of orderings across paired groups.
"""

from __future__ import annotations

from itertools import permutations
from typing import Sequence, Union

import numpy as np

from bayescompare.core.config import settings

SeedLike = Union[int, np.random.Generator, None]


def make_rng(seed: SeedLike = None) -> np.random.Generator:
    """Return a Generator for *seed*, falling back to ``settings.RANDOM_SEED``.

    A Generator passed in is returned unchanged, so one generator can be
    threaded through several calls.
    """
    if seed is None:
        seed = settings.RANDOM_SEED
    return np.random.default_rng(seed)


def credible_interval(samples: np.ndarray, levels: Sequence[float]) -> tuple[float, ...]:
    """Empirical quantiles of *samples* at each probability in *levels*.

    Uses linear interpolation between order statistics (R's type 7).

    Parameters
    ----------
    samples : np.ndarray
        1-D array of Monte Carlo samples.
    levels : Sequence[float]
        Probabilities in [0, 1].

    Returns
    -------
    tuple[float, ...]
        One quantile per level, in the order given.
    """
    q = np.quantile(np.asarray(samples, dtype=float), levels, method="linear")
    return tuple(float(v) for v in np.atleast_1d(q))


def difference_quantiles(
    samples_a: np.ndarray,
    samples_b: np.ndarray,
    levels: Sequence[float],
) -> tuple[float, ...]:
    """Quantiles of the paired difference ``samples_b - samples_a``."""
    a = np.asarray(samples_a)
    b = np.asarray(samples_b)
    if a.shape != b.shape:
        raise ValueError(
            f"paired samples must have equal shape, got {a.shape} and {b.shape}"
        )
    return credible_interval(b - a, levels)


def hdi_from_samples(samples: np.ndarray, credible_mass: float = 0.95) -> tuple[float, float]:
    """Shortest interval holding ``credible_mass`` of the draws.

    Used for differences of paired draws, where a skewed posterior makes the
    equal-tailed quantile interval wider than it needs to be.  The draws are
    sorted and the narrowest window of ``ceil(credible_mass * n)`` consecutive
    values wins.

    Raises
    ------
    ValueError
        If ``credible_mass`` is outside (0, 1].
    """
    if not 0 < credible_mass <= 1:
        raise ValueError(f"credible_mass must be in (0, 1], got {credible_mass!r}")
    ordered = np.sort(np.asarray(samples, dtype=float))
    n = ordered.size
    window = int(np.ceil(credible_mass * n))
    if window >= n:
        return (float(ordered[0]), float(ordered[-1]))

    spans = ordered[window - 1:] - ordered[: n - window + 1]
    start = int(np.argmin(spans))
    return (float(ordered[start]), float(ordered[start + window - 1]))


def frequency_table(values: np.ndarray) -> dict[int, int]:
    """Count occurrences of each distinct integer value, sorted by value."""
    uniq, counts = np.unique(np.asarray(values).astype(np.int64), return_counts=True)
    return {int(v): int(c) for v, c in zip(uniq, counts)}


# ======================================================================
# Orderings across paired groups
# ======================================================================

def ordering_key(order: Sequence[int]) -> str:
    """Label for an ordering of 1-based group indices, e.g. ``"2<3<1"``."""
    return "<".join(str(i) for i in order)


def stack_paired(samples_by_group: Sequence[np.ndarray]) -> np.ndarray:
    """Stack per-group draws into a (n_samples, n_groups) matrix.

    Row *r* holds replicate *r* of every group, so comparisons along a row
    keep the pairing between groups.
    """
    arrays = [np.asarray(s, dtype=float) for s in samples_by_group]
    lengths = {a.shape for a in arrays}
    if len(lengths) != 1:
        raise ValueError(f"paired samples must have equal shape, got {sorted(lengths)}")
    return np.column_stack(arrays)


def ordering_probabilities(
    samples_by_group: Sequence[np.ndarray],
) -> dict[str, float]:
    """Fraction of replicates in each strict ordering of the groups.

    For three groups this yields six keys (``"1<2<3"``, ``"1<3<2"``, ...).
    Replicates with ties fall in no ordering, so the values sum to one
    only up to the probability of a tie.

    Parameters
    ----------
    samples_by_group : Sequence[np.ndarray]
        One array of draws per group, paired by index.

    Returns
    -------
    dict[str, float]
        Ordering label -> probability.
    """
    matrix = stack_paired(samples_by_group)
    n_groups = matrix.shape[1]
    result: dict[str, float] = {}
    for order in permutations(range(n_groups)):
        mask = np.ones(matrix.shape[0], dtype=bool)
        for lower, upper in zip(order[:-1], order[1:]):
            mask &= matrix[:, lower] < matrix[:, upper]
        result[ordering_key([i + 1 for i in order])] = float(np.mean(mask))
    return result


def probability_unique_max(
    samples_by_group: Sequence[np.ndarray],
    group: int = 0,
) -> float:
    """Fraction of replicates where ``group`` (0-based) strictly beats all others."""
    matrix = stack_paired(samples_by_group)
    others = np.delete(matrix, group, axis=1)
    return float(np.mean(np.all(matrix[:, [group]] > others, axis=1)))
