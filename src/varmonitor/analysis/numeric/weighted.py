"""Weighted summary statistics over one numeric column.

Rows whose value is missing are excluded from quantiles, mean, variance and
zero-rate; the missing-rate is the only statistic that looks at them.

Weights are optional. When given they are normalized to sum to the number of
non-missing observations, so that unit weights reproduce the unweighted
statistics:

- quantile: position 1 + (n - 1) * p on the cumulative weight scale, linear
  interpolation between the bracketing order statistics (type 7 when all
  weights are equal)
- mean: sum(w * x) / sum(w)
- variance: unbiased reliability-weight estimate
  sum(w * (x - mean)^2) / (n - sum(w^2) / n)

Weights must be non-negative and non-missing; this is not checked.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any

import numpy as np
import pandas as pd

from varmonitor.analysis.numeric.models import QUANTILES, BucketStats
from varmonitor.core.exceptions import InvalidInputError
from varmonitor.core.logging import get_logger

logger = get_logger(__name__)

ArrayLike = pd.Series | np.ndarray | Sequence[float]


def to_float_array(values: Any) -> np.ndarray:
    """Convert a column (numpy or pandas nullable) to float64 with NaN for missing."""
    return pd.Series(values, copy=False).to_numpy(dtype="float64", na_value=np.nan)


def _observed(
    values: ArrayLike, weights: ArrayLike | None
) -> tuple[np.ndarray, np.ndarray]:
    """Drop rows with a missing value and return (values, weights normalized to n)."""
    x = to_float_array(values)
    w = np.ones_like(x) if weights is None else to_float_array(weights)
    if w.shape != x.shape:
        raise InvalidInputError(
            f"values and weights differ in length ({x.size} vs {w.size})"
        )

    keep = ~np.isnan(x)
    x = x[keep]
    w = w[keep]
    if x.size == 0:
        return x, w

    total = w.sum()
    if total <= 0:
        raise InvalidInputError("weights of non-missing values sum to zero")
    return x, w * (x.size / total)


def weighted_quantile(
    values: ArrayLike,
    weights: ArrayLike | None = None,
    probs: Sequence[float] = (0.01, 0.25, 0.5, 0.75, 0.99),
) -> np.ndarray:
    """Compute quantiles in the order requested.

    Args:
        values: Numeric column, may contain missing values
        weights: Optional non-negative weights, same length as values
        probs: Probabilities in [0, 1]

    Returns:
        Array of quantiles, one per probability

    Raises:
        InvalidInputError: If no non-missing values remain
    """
    p = np.asarray(probs, dtype="float64")
    if np.any((p < 0) | (p > 1)):
        raise ValueError(f"Quantile probabilities must lie in [0, 1], got {list(probs)}")

    x, w = _observed(values, weights)
    if x.size == 0:
        raise InvalidInputError("quantile undefined: no non-missing values")

    order = np.argsort(x, kind="mergesort")
    x = x[order]
    cumulative = np.cumsum(w[order])
    n = x.size

    position = 1.0 + (n - 1) * p
    low = np.maximum(np.floor(position), 1.0)
    high = np.minimum(low + 1.0, n)
    frac = position - np.floor(position)

    # Tolerance absorbs rounding in the normalized cumulative weights
    tol = 1e-10 * n

    def order_statistic(target: np.ndarray) -> np.ndarray:
        idx = np.searchsorted(cumulative, target - tol, side="left")
        return x[np.clip(idx, 0, n - 1)]

    lower = order_statistic(low)
    upper = order_statistic(high)
    return lower + frac * (upper - lower)


def weighted_mean(values: ArrayLike, weights: ArrayLike | None = None) -> float:
    """Weighted mean of non-missing values.

    Raises:
        InvalidInputError: If no non-missing values remain
    """
    x, w = _observed(values, weights)
    if x.size == 0:
        raise InvalidInputError("mean undefined: no non-missing values")
    return float(np.sum(w * x) / np.sum(w))


def weighted_variance(values: ArrayLike, weights: ArrayLike | None = None) -> float:
    """Unbiased weighted variance of non-missing values.

    Returns NaN for a single observation.

    Raises:
        InvalidInputError: If no non-missing values remain
    """
    x, w = _observed(values, weights)
    n = x.size
    if n == 0:
        raise InvalidInputError("variance undefined: no non-missing values")
    if n == 1:
        return float("nan")

    mean = np.sum(w * x) / n
    denominator = n - np.sum(w**2) / n
    if denominator <= 0:
        return float("nan")
    return float(np.sum(w * (x - mean) ** 2) / denominator)


def weighted_sd(values: ArrayLike, weights: ArrayLike | None = None) -> float:
    """Square root of :func:`weighted_variance`."""
    return float(np.sqrt(weighted_variance(values, weights)))


def zero_rate(values: ArrayLike, weights: ArrayLike | None = None) -> float:
    """(Weighted) share of non-missing values exactly equal to zero.

    NaN when there are no non-missing values.
    """
    x, w = _observed(values, weights)
    if x.size == 0:
        return float("nan")
    return float(np.sum(w * (x == 0)) / np.sum(w))


def missing_rate(values: ArrayLike, weights: ArrayLike | None = None) -> float:
    """(Weighted) share of all rows whose value is missing.

    NaN for an empty column.
    """
    x = to_float_array(values)
    if x.size == 0:
        return float("nan")
    missing = np.isnan(x)
    if weights is None:
        return float(missing.mean())

    w = to_float_array(weights)
    total = w.sum()
    if total <= 0:
        return float("nan")
    return float(np.sum(w * missing) / total)


def _or_nan(fn: Callable[..., Any], *args: Any, size: int | None = None) -> Any:
    try:
        return fn(*args)
    except InvalidInputError as e:
        logger.debug("statistic_undefined", statistic=fn.__name__, reason=str(e))
        return np.full(size, np.nan) if size is not None else float("nan")


def compute_stats(values: ArrayLike, weights: ArrayLike | None = None) -> BucketStats:
    """Compute the nine summary statistics for one column.

    Undefined statistics come back as NaN so that a degenerate bucket does not
    abort the caller. A bucket without rows has nothing observed, so its
    missing rate is 1.
    """
    x = to_float_array(values)
    w = None if weights is None else to_float_array(weights)

    probs = [prob for _, prob in QUANTILES]
    quantiles = _or_nan(weighted_quantile, x, w, probs, size=len(probs))

    return BucketStats(
        **{name: float(q) for (name, _), q in zip(QUANTILES, quantiles, strict=True)},
        mean=_or_nan(weighted_mean, x, w),
        sd=_or_nan(weighted_sd, x, w),
        zerorate=_or_nan(zero_rate, x, w),
        missingrate=missing_rate(x, w) if x.size else 1.0,
        row_count=int(x.size),
        missing_count=int(np.isnan(x).sum()),
    )
