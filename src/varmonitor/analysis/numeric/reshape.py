"""Reshape bucket statistics into the long and wide summary layouts.

Long layout (for line plots along the bucket axis):

    <bucket> | statistic | value | provenance
    2024-01  | p99       | 812.0 | per-bucket
    ...
    2024-01  | p99_g     | 790.5 | global

Every global reference row (p99_g, p50_g, p1_g, cl1, cl2) is repeated once per
bucket so a line series over the bucket axis draws it as a flat reference line.

Wide layout (for reporting): one row per statistic, columns
``variable``, ``global`` and then one column per bucket.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import pandas as pd

from varmonitor.analysis.numeric.aggregator import BucketEntry
from varmonitor.analysis.numeric.models import (
    GLOBAL_COLUMN,
    GLOBAL_REFERENCE_STATISTICS,
    LONG_STATISTICS,
    PROVENANCE_COLUMN,
    STATISTIC_COLUMN,
    VALUE_COLUMN,
    VARIABLE_COLUMN,
    WIDE_STATISTICS,
    BucketStats,
)
from varmonitor.core.exceptions import InvalidInputError
from varmonitor.core.models.base import Provenance


def long_columns(bucket_column: str) -> list[str]:
    """Column names of the long layout for a given bucket column."""
    return [bucket_column, STATISTIC_COLUMN, VALUE_COLUMN, PROVENANCE_COLUMN]


def global_reference_values(global_stats: BucketStats) -> list[float]:
    """Values of p99_g, p50_g, p1_g, cl1 and cl2, in that order."""
    upper, lower = global_stats.control_limits()
    return [global_stats.p99, global_stats.p50, global_stats.p1, upper, lower]


def to_long(
    bucket_column: str,
    entries: Sequence[BucketEntry],
    global_stats: BucketStats,
) -> pd.DataFrame:
    """Build the long summary table.

    Args:
        bucket_column: Name used for the bucket column of the output
        entries: Per-bucket statistics in temporal order
        global_stats: Statistics over the whole table

    Returns:
        DataFrame with columns [bucket_column, statistic, value, provenance];
        zero rows when there are no buckets
    """
    columns = long_columns(bucket_column)
    if len(set(columns)) != len(columns):
        raise InvalidInputError(
            f"Bucket column name '{bucket_column}' clashes with summary columns"
        )

    buckets: list[Any] = []
    statistics: list[str] = []
    values: list[float] = []
    provenance: list[str] = []

    for statistic in LONG_STATISTICS:
        for entry in entries:
            buckets.append(entry.bucket)
            statistics.append(statistic)
            values.append(entry.stats.get(statistic))
            provenance.append(Provenance.PER_BUCKET.value)

    reference = zip(GLOBAL_REFERENCE_STATISTICS, global_reference_values(global_stats), strict=True)
    for statistic, value in reference:
        for entry in entries:
            buckets.append(entry.bucket)
            statistics.append(statistic)
            values.append(value)
            provenance.append(Provenance.GLOBAL.value)

    return pd.DataFrame(
        {
            bucket_column: pd.Series(buckets, dtype=object),
            STATISTIC_COLUMN: pd.Series(statistics, dtype=object),
            VALUE_COLUMN: pd.Series(values, dtype="float64"),
            PROVENANCE_COLUMN: pd.Series(provenance, dtype=object),
        },
        columns=columns,
    )


def to_wide(
    variable: str,
    entries: Sequence[BucketEntry],
    global_stats: BucketStats,
) -> pd.DataFrame:
    """Build the wide summary table.

    Args:
        variable: Name of the summarized variable
        entries: Per-bucket statistics in temporal order
        global_stats: Statistics over the whole table

    Returns:
        DataFrame indexed by statistic (p99, p75, p50, p25, p1, mean, sd,
        zerorate, missingrate) with columns [variable, global, bucket...]
    """
    data: dict[Any, list[Any]] = {
        VARIABLE_COLUMN: [variable] * len(WIDE_STATISTICS),
        GLOBAL_COLUMN: [global_stats.get(statistic) for statistic in WIDE_STATISTICS],
    }
    for entry in entries:
        if entry.bucket in data:
            raise InvalidInputError(f"Bucket label {entry.bucket!r} clashes with summary columns")
        data[entry.bucket] = [entry.stats.get(statistic) for statistic in WIDE_STATISTICS]

    wide = pd.DataFrame(data, index=pd.Index(WIDE_STATISTICS, name=STATISTIC_COLUMN))
    wide.columns = pd.Index(list(data.keys()), dtype=object)
    return wide
