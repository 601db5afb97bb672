"""varmonitor - time-bucketed summary statistics for monitoring numeric variables."""

from varmonitor.analysis.numeric import (
    NumericVariableSummary,
    TransformDecision,
    summarize_numeric_variable,
    summarize_numeric_variables,
)

__version__ = "0.1.0"

__all__ = [
    "NumericVariableSummary",
    "TransformDecision",
    "summarize_numeric_variable",
    "summarize_numeric_variables",
]
