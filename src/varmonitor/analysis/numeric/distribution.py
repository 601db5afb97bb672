"""Distribution view policy: bounded sampling and the log-scale decision.

The boxplot of a variable by coarse time bucket is drawn from a uniform
sample of at most ``sample_size`` rows. Time-series statistics never use this
sample; they are always computed on the full table.

A log10 scale is used for the boxplot only when all of these hold:
- a skew threshold is configured (negative or malformed values become 3)
- every non-missing value is strictly positive
- there are more than 50 distinct non-missing values
- the sample skewness exceeds the threshold
- applying the scale does not fail; a failure falls back to the linear scale
"""

from __future__ import annotations

import math
import numbers
from collections.abc import Callable
from typing import Any

import numpy as np
import pandas as pd
from scipy import stats

from varmonitor.analysis.numeric.aggregator import bucket_masks
from varmonitor.analysis.numeric.models import DistributionView, TransformDecision
from varmonitor.analysis.numeric.table import NumericTableView
from varmonitor.analysis.numeric.weighted import to_float_array, weighted_quantile
from varmonitor.core.config import get_settings
from varmonitor.core.exceptions import ConfigurationInvalidError, TransformFailedError
from varmonitor.core.logging import get_logger, record_rows_sampled
from varmonitor.core.models.base import TransformReason

logger = get_logger(__name__)

# Tukey fence multiplier for boxplot whiskers
WHISKER_IQR_MULTIPLIER = 1.5

BOXPLOT_COLUMNS = ("n", "lower_whisker", "q1", "median", "q3", "upper_whisker", "outliers")

LogAttempt = Callable[[np.ndarray], Any]
Seed = int | np.random.Generator | None


def normalize_skew_threshold(threshold: Any, default: float | None = None) -> float | None:
    """Normalize a user-supplied skew threshold.

    ``None`` disables the log transform and is returned unchanged. Negative,
    non-finite, boolean or non-numeric thresholds are replaced by the default
    (3 unless configured otherwise) and a warning is logged.
    """
    if threshold is None:
        return None
    if default is None:
        default = get_settings().default_skew_threshold

    error: ConfigurationInvalidError | None = None
    if isinstance(threshold, bool) or not isinstance(threshold, numbers.Real):
        error = ConfigurationInvalidError(f"skew threshold must be numeric, got {threshold!r}")
    elif not math.isfinite(float(threshold)) or float(threshold) < 0:
        error = ConfigurationInvalidError(
            f"skew threshold must be a non-negative number, got {threshold!r}"
        )

    if error is not None:
        logger.warning(
            "skew_threshold_replaced",
            threshold=repr(threshold),
            replacement=default,
            error=str(error),
        )
        return float(default)
    return float(threshold)


def log10_attempt(values: np.ndarray) -> np.ndarray:
    """Default transform attempt: log10 of the values, which must all be finite."""
    with np.errstate(all="raise"):
        try:
            logged = np.log10(values)
        except FloatingPointError as e:
            raise TransformFailedError(f"log10 failed: {e}") from e
    if not np.all(np.isfinite(logged)):
        raise TransformFailedError("log10 produced non-finite values")
    return logged


def decide_transform(
    values: Any,
    threshold: Any,
    attempt: LogAttempt | None = None,
    min_distinct: int | None = None,
) -> TransformDecision:
    """Decide whether the distribution view should use a log10 scale.

    Args:
        values: The variable's column (full or sampled); missing values are ignored
        threshold: Skew threshold; None disables the transform
        attempt: Callable applying the scale to the non-missing values; any
            exception it raises produces a FAILED_FALLBACK decision
        min_distinct: Distinct-value count at or below which the transform is skipped

    Returns:
        TransformDecision; never raises for numeric reasons
    """
    threshold = normalize_skew_threshold(threshold)
    if threshold is None:
        return TransformDecision(apply_log=False, reason=TransformReason.DISABLED)
    if min_distinct is None:
        min_distinct = get_settings().min_distinct_for_log

    x = to_float_array(values)
    observed = x[~np.isnan(x)]

    # With no observations the minimum is undefined; the cardinality rule skips
    min_value = float(observed.min()) if observed.size else None
    if min_value is not None and min_value <= 0:
        logger.info("log_transform_skipped", reason="non_positive", min_value=min_value)
        return TransformDecision(
            apply_log=False,
            reason=TransformReason.SKIPPED_NON_POSITIVE,
            threshold=threshold,
            min_value=min_value,
        )

    distinct_count = int(np.unique(observed).size)
    if distinct_count <= min_distinct:
        return TransformDecision(
            apply_log=False,
            reason=TransformReason.SKIPPED_LOW_CARDINALITY,
            threshold=threshold,
            min_value=min_value,
            distinct_count=distinct_count,
        )

    skewness = float(stats.skew(observed, bias=True))
    if not skewness > threshold:
        return TransformDecision(
            apply_log=False,
            reason=TransformReason.SKIPPED_BELOW_THRESHOLD,
            threshold=threshold,
            min_value=min_value,
            distinct_count=distinct_count,
            skewness=skewness,
        )

    try:
        (attempt or log10_attempt)(observed)
    except Exception as e:
        logger.warning("log_transform_failed", error=str(e), skewness=skewness)
        return TransformDecision(
            apply_log=False,
            reason=TransformReason.FAILED_FALLBACK,
            threshold=threshold,
            min_value=min_value,
            distinct_count=distinct_count,
            skewness=skewness,
            error=str(e),
        )

    return TransformDecision(
        apply_log=True,
        reason=TransformReason.APPLIED,
        threshold=threshold,
        min_value=min_value,
        distinct_count=distinct_count,
        skewness=skewness,
    )


def sample_rows(frame: pd.DataFrame, bound: int | None, seed: Seed = None) -> pd.DataFrame:
    """Draw min(len(frame), bound) rows uniformly without replacement.

    ``None`` returns the frame itself. The input frame is never modified.

    Raises:
        ValueError: If bound is not a positive integer
    """
    if bound is None:
        return frame
    if isinstance(bound, bool) or not isinstance(bound, numbers.Integral) or bound < 1:
        raise ValueError(f"Sample bound must be a positive integer, got {bound!r}")

    n = min(len(frame), int(bound))
    return frame.sample(n=n, replace=False, random_state=seed)


def boxplot_stats(
    view: NumericTableView,
    bucket_column: str,
    apply_log: bool = False,
) -> pd.DataFrame:
    """Five-number boxplot summary per bucket, with Tukey whiskers.

    Quantiles honour the view's weight column. With ``apply_log`` the
    statistics are on the log10 scale.
    """
    values = to_float_array(view.values())
    weights = view.weights()
    weight_array = None if weights is None else to_float_array(weights)
    observed = ~np.isnan(values)

    rows = []
    for label, bucket_mask in bucket_masks(view.bucket(bucket_column)):
        mask = bucket_mask & observed
        x = values[mask]
        w = None if weight_array is None else weight_array[mask]
        row: dict[str, Any] = {bucket_column: label, "n": int(x.size)}
        if x.size == 0:
            row.update(dict.fromkeys(BOXPLOT_COLUMNS[1:-1], np.nan), outliers=0)
            rows.append(row)
            continue

        if apply_log:
            x = np.log10(x)
        q1, median, q3 = weighted_quantile(x, w, [0.25, 0.5, 0.75])
        spread = WHISKER_IQR_MULTIPLIER * (q3 - q1)
        inside = (x >= q1 - spread) & (x <= q3 + spread)
        row.update(
            lower_whisker=float(x[inside].min()),
            q1=float(q1),
            median=float(median),
            q3=float(q3),
            upper_whisker=float(x[inside].max()),
            outliers=int((~inside).sum()),
        )
        rows.append(row)

    return pd.DataFrame(rows, columns=[bucket_column, *BOXPLOT_COLUMNS])


def build_distribution_view(
    view: NumericTableView,
    bucket_column: str,
    skew_threshold: Any = None,
    sample_size: int | None = None,
    seed: Seed = None,
    attempt: LogAttempt | None = None,
) -> DistributionView:
    """Sample the table, decide on the log scale and summarize boxplots.

    Args:
        view: Validated table view (full table)
        bucket_column: Coarse bucket column for the boxplots
        skew_threshold: Skew threshold; None disables the log scale
        sample_size: Row bound for the sample; None uses every row
        seed: Seed or generator for the sample
        attempt: Callable that applies the log scale (e.g. the renderer's)

    Returns:
        DistributionView built from the sample only
    """
    sample = sample_rows(view.select(), sample_size, seed)
    sampled_view = view.with_frame(sample)
    record_rows_sampled(len(sample))

    decision = decide_transform(sampled_view.values(), skew_threshold, attempt)
    boxplot = boxplot_stats(sampled_view, bucket_column, apply_log=decision.apply_log)

    logger.debug(
        "distribution_view_built",
        variable=view.variable,
        bucket_column=bucket_column,
        sample_size=len(sample),
        total_rows=view.row_count,
        reason=decision.reason.value,
    )
    return DistributionView(
        bucket_column=bucket_column,
        total_rows=view.row_count,
        sample_size=len(sample),
        decision=decision,
        boxplot=boxplot,
    )
