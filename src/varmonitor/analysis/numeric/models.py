"""Numeric Summary Models.

Data structures produced by the numeric variable summary:
- BucketStats: the nine summary statistics for one time bucket (or the whole table)
- TransformDecision: outcome of the log-scale policy for the distribution view
- DistributionView: sample size, decision and boxplot statistics
- NumericVariableSummary: result bundle handed to the rendering collaborator
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import pandas as pd
from pydantic import BaseModel, ConfigDict

from varmonitor.core.models.base import TransformReason

if TYPE_CHECKING:
    from varmonitor.analysis.numeric.views import ChartSpec

# Quantile names and probabilities, in ascending order
QUANTILES: tuple[tuple[str, float], ...] = (
    ("p1", 0.01),
    ("p25", 0.25),
    ("p50", 0.50),
    ("p75", 0.75),
    ("p99", 0.99),
)

# Per-bucket statistics kept in the long layout
LONG_STATISTICS: tuple[str, ...] = ("p99", "p50", "p1", "mean", "zerorate", "missingrate")

# Global reference rows appended to the long layout
GLOBAL_REFERENCE_STATISTICS: tuple[str, ...] = ("p99_g", "p50_g", "p1_g", "cl1", "cl2")

# Row order of the wide layout
WIDE_STATISTICS: tuple[str, ...] = (
    "p99",
    "p75",
    "p50",
    "p25",
    "p1",
    "mean",
    "sd",
    "zerorate",
    "missingrate",
)

STATISTIC_COLUMN = "statistic"
VALUE_COLUMN = "value"
PROVENANCE_COLUMN = "provenance"
VARIABLE_COLUMN = "variable"
GLOBAL_COLUMN = "global"


class BucketStats(BaseModel):
    """Summary statistics of one variable within one bucket.

    Undefined statistics (no non-missing values, or a single value for sd)
    are NaN rather than absent.
    """

    model_config = ConfigDict(frozen=True)

    p1: float
    p25: float
    p50: float
    p75: float
    p99: float
    mean: float
    sd: float
    zerorate: float
    missingrate: float

    row_count: int
    missing_count: int

    @property
    def observed_count(self) -> int:
        """Rows with a non-missing value."""
        return self.row_count - self.missing_count

    def get(self, statistic: str) -> float:
        """Look up a statistic by its summary-table name."""
        if statistic not in WIDE_STATISTICS:
            raise KeyError(statistic)
        return float(getattr(self, statistic))

    def control_limits(self) -> tuple[float, float]:
        """Mean plus and minus one standard deviation."""
        return self.mean + self.sd, self.mean - self.sd


class TransformDecision(BaseModel):
    """Whether the distribution view uses a log10 scale, and why."""

    model_config = ConfigDict(frozen=True)

    apply_log: bool
    reason: TransformReason
    threshold: float | None = None
    min_value: float | None = None
    distinct_count: int | None = None
    skewness: float | None = None
    error: str | None = None


@dataclass(frozen=True)
class DistributionView:
    """Boxplot basis for the coarse-bucket distribution plot."""

    bucket_column: str
    total_rows: int
    sample_size: int
    decision: TransformDecision
    boxplot: pd.DataFrame

    @property
    def sampled(self) -> bool:
        return self.sample_size < self.total_rows


@dataclass(frozen=True)
class NumericVariableSummary:
    """Everything the rendering collaborator needs for one numeric variable."""

    variable: str
    bucket_column: str
    coarse_bucket_column: str
    weight_column: str | None
    long: pd.DataFrame
    wide: pd.DataFrame
    global_stats: BucketStats
    distribution: DistributionView
    charts: list[ChartSpec] = field(default_factory=list)

    @property
    def decision(self) -> TransformDecision:
        return self.distribution.decision

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-friendly dictionary (tables as records)."""
        return {
            "variable": self.variable,
            "bucket_column": self.bucket_column,
            "coarse_bucket_column": self.coarse_bucket_column,
            "weight_column": self.weight_column,
            "global_stats": self.global_stats.model_dump(),
            "decision": self.decision.model_dump(mode="json"),
            "sample_size": self.distribution.sample_size,
            "long": self.long.to_dict(orient="records"),
            "wide": self.wide.reset_index().to_dict(orient="records"),
        }
