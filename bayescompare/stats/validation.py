"""Fail-fast argument checks shared by both conjugate models.

Every public entry point runs these before touching the random generator,
so a bad call never produces partial results.  The error classes subclass
``ValueError`` so callers catching the generic error keep working.
"""

from __future__ import annotations

import logging
import numbers
from typing import Any, Optional

import numpy as np

logger = logging.getLogger(__name__)


class BayesCompareError(ValueError):
    """Base class for invalid-input errors raised by bayescompare."""


class InvalidSampleSize(BayesCompareError):
    pass


class InvalidScalarParameter(BayesCompareError):
    pass


class InvalidDataVector(BayesCompareError):
    pass


class InvalidConfidenceInterval(BayesCompareError):
    pass


# ======================================================================
# Predicates
# ======================================================================

def _as_numeric_array(x: Any) -> Optional[np.ndarray]:
    """Coerce *x* to a 1-D float array, or return None if it isn't numeric."""
    if x is None or isinstance(x, (str, bytes, bool, np.bool_)):
        return None
    try:
        arr = np.asarray(x)
    except (TypeError, ValueError):
        # ragged nested sequences
        return None
    if arr.dtype == np.bool_ or not np.issubdtype(arr.dtype, np.number):
        return None
    if arr.ndim == 0:
        arr = arr.reshape(1)
    if arr.ndim != 1:
        return None
    return arr.astype(float)


def is_valid_vector(x: Any, expected_length: Optional[int] = None) -> bool:
    """Return True if *x* is a non-empty numeric vector.

    A bare number counts as a vector of length 1.  When ``expected_length``
    is given the vector must have exactly that many elements.

    Parameters
    ----------
    x : Any
        Candidate value.
    expected_length : int | None
        Required length, or None for "any length >= 1".

    Returns
    -------
    bool
    """
    arr = _as_numeric_array(x)
    if arr is None or arr.size == 0:
        return False
    if expected_length is not None and arr.size != expected_length:
        return False
    return True


# ======================================================================
# Validators (raise on failure, return the normalized value)
# ======================================================================

def validate_sample_size(sample_size: Any, name: str = "sample_size") -> int:
    """Return ``sample_size`` as an int, or raise ``InvalidSampleSize``.

    Whole floats such as ``2.0`` are accepted; booleans are not.
    """
    ok = (
        isinstance(sample_size, numbers.Real)
        and not isinstance(sample_size, (bool, np.bool_))
        and np.isfinite(sample_size)
        and float(sample_size) % 1 == 0
        and sample_size > 0
    )
    if not ok:
        logger.debug("Rejected %s=%r", name, sample_size)
        raise InvalidSampleSize(
            f"invalid sample size: {name} must be a positive integer, got {sample_size!r}"
        )
    return int(sample_size)


def validate_scalar(name: str, value: Any) -> float:
    """Return ``value`` as a finite float, or raise ``InvalidScalarParameter``."""
    if not is_valid_vector(value, 1):
        logger.debug("Rejected scalar parameter %s=%r", name, value)
        raise InvalidScalarParameter(
            f"scalar parameter expected for {name}, got {value!r}"
        )
    scalar = float(_as_numeric_array(value)[0])
    if not np.isfinite(scalar):
        logger.debug("Rejected non-finite scalar parameter %s=%r", name, value)
        raise InvalidScalarParameter(
            f"scalar parameter expected for {name}, got non-finite {value!r}"
        )
    return scalar


def validate_data(name: str, values: Any) -> np.ndarray:
    """Return ``values`` as a 1-D finite float array, or raise ``InvalidDataVector``."""
    if not is_valid_vector(values):
        logger.debug("Rejected data vector %s=%r", name, values)
        raise InvalidDataVector(f"data must be a vector: {name} is {values!r}")
    arr = _as_numeric_array(values)
    if not np.all(np.isfinite(arr)):
        logger.debug("Rejected non-finite data vector %s=%r", name, values)
        raise InvalidDataVector(f"data must be a vector of finite values: {name} is {values!r}")
    return arr


def validate_counts(name: str, values: Any) -> np.ndarray:
    """Like ``validate_data``, but every value must be a non-negative whole number.

    Returns the counts as an int64 array.
    """
    arr = validate_data(name, values)
    if np.any(arr < 0) or np.any(arr % 1 != 0):
        logger.debug("Rejected count vector %s=%r", name, values)
        raise InvalidDataVector(
            f"data must be a vector of non-negative integer counts: {name} is {values!r}"
        )
    return arr.astype(np.int64)


def validate_confidence_interval(confidence_interval: Any) -> tuple[float, float]:
    """Return ``(lo, hi)``, or raise ``InvalidConfidenceInterval``.

    Requires ``0 <= lo < hi <= 1``.
    """
    if not is_valid_vector(confidence_interval, 2):
        logger.debug("Rejected confidence_interval=%r", confidence_interval)
        raise InvalidConfidenceInterval(
            f"invalid confidence interval: expected a pair of probabilities, "
            f"got {confidence_interval!r}"
        )
    lo, hi = (float(v) for v in _as_numeric_array(confidence_interval))
    if not (0.0 <= lo < hi <= 1.0):
        logger.debug("Rejected confidence_interval=%r", confidence_interval)
        raise InvalidConfidenceInterval(
            f"invalid confidence interval: need 0 <= lo < hi <= 1, got ({lo}, {hi})"
        )
    return (lo, hi)


def validate_scalars(**params: Any) -> dict[str, float]:
    """Validate several named scalars at once, in keyword order."""
    return {name: validate_scalar(name, value) for name, value in params.items()}

