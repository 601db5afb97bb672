"""Numeric variable summary module.

Computes time-bucketed summary statistics of a numeric variable for drift
monitoring:
- Quantiles (p1, p25, p50, p75, p99), mean and sd, optionally weighted
- Zero and missing rates
- Long and wide summary tables with global reference values
- Boxplot basis on a bounded sample, with a log-scale decision

Main Entry Point:
    summarize_numeric_variable(variable, frame, weight_column, bucket_column,
                               coarse_bucket_column) -> NumericVariableSummary

Example:
    from varmonitor.analysis.numeric import summarize_numeric_variable

    summary = summarize_numeric_variable(
        "balance", frame, None, "months", "years", skew_threshold=3, seed=42
    )
    print(summary.wide)
"""

from varmonitor.analysis.numeric.aggregator import (
    BucketEntry,
    aggregate_by_bucket,
    aggregate_global,
)
from varmonitor.analysis.numeric.distribution import (
    boxplot_stats,
    build_distribution_view,
    decide_transform,
    normalize_skew_threshold,
    sample_rows,
)
from varmonitor.analysis.numeric.models import (
    BucketStats,
    DistributionView,
    NumericVariableSummary,
    TransformDecision,
)
from varmonitor.analysis.numeric.processor import (
    summarize_numeric_variable,
    summarize_numeric_variables,
)
from varmonitor.analysis.numeric.reshape import to_long, to_wide
from varmonitor.analysis.numeric.table import NumericTableView
from varmonitor.analysis.numeric.views import (
    ChartSpec,
    Palette,
    PlotAesthetics,
    Renderer,
    build_chart_specs,
)
from varmonitor.analysis.numeric.weighted import (
    compute_stats,
    missing_rate,
    weighted_mean,
    weighted_quantile,
    weighted_sd,
    weighted_variance,
    zero_rate,
)

__all__ = [
    # Main entry points
    "summarize_numeric_variable",
    "summarize_numeric_variables",
    # Result models
    "NumericVariableSummary",
    "BucketStats",
    "DistributionView",
    "TransformDecision",
    # Table boundary
    "NumericTableView",
    # Statistics
    "compute_stats",
    "weighted_quantile",
    "weighted_mean",
    "weighted_variance",
    "weighted_sd",
    "zero_rate",
    "missing_rate",
    # Aggregation and reshaping
    "BucketEntry",
    "aggregate_by_bucket",
    "aggregate_global",
    "to_long",
    "to_wide",
    # Distribution view
    "normalize_skew_threshold",
    "decide_transform",
    "sample_rows",
    "boxplot_stats",
    "build_distribution_view",
    # Rendering handoff
    "ChartSpec",
    "Palette",
    "PlotAesthetics",
    "Renderer",
    "build_chart_specs",
]
