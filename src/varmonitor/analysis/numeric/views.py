"""Plot-ready views of a numeric variable summary.

The rendering collaborator draws four panels: a boxplot by coarse bucket and
three line charts by fine bucket (quantiles, mean with one-sigma control
limits, zero and missing rates). This module prepares their data and a typed
description of the aesthetics; it does not draw anything.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol

import numpy as np
import pandas as pd

from varmonitor.analysis.numeric.models import STATISTIC_COLUMN, VALUE_COLUMN

if TYPE_CHECKING:
    from varmonitor.analysis.numeric.models import NumericVariableSummary

# Colour-blind-safe palette (Okabe-Ito)
COLORBLIND_PALETTE: tuple[str, ...] = (
    "#000000",
    "#E69F00",
    "#56B4E9",
    "#009E73",
    "#F0E442",
    "#0072B2",
    "#D55E00",
    "#CC79A7",
)

QUANTILE_STATISTICS = ("p99", "p50", "p1")
MEAN_STATISTICS = ("mean", "cl1", "cl2")
RATE_STATISTICS = ("zerorate", "missingrate")


@dataclass(frozen=True)
class Palette:
    """Colours handed to the renderer."""

    series: tuple[str, ...] = COLORBLIND_PALETTE
    rug: str = "#F8766D"
    rug_alpha: float = 0.4


@dataclass(frozen=True)
class PlotAesthetics:
    """Which data columns drive each visual channel."""

    x: str
    y: str
    color: str | None = None
    linetype: str | None = None
    group: str | None = None


@dataclass(frozen=True)
class ChartSpec:
    """One panel: its data, aesthetics and scale."""

    name: str
    data: pd.DataFrame
    aesthetics: PlotAesthetics
    palette: Palette = field(default_factory=Palette)
    log_scale: bool = False
    y_label: str | None = None


class Renderer(Protocol):
    """Rendering collaborator interface."""

    def apply_log_scale(self, values: np.ndarray) -> Any:
        """Raise if the log scale cannot be used for these values."""
        ...

    def render(self, summary: NumericVariableSummary) -> Any:
        ...


def bucket_group_label(bucket_column: str) -> str:
    """Legend label for per-bucket series, e.g. 'months' -> 'by month'."""
    return f"by {bucket_column.removesuffix('s')}"


def quantile_series(long: pd.DataFrame, bucket_column: str) -> pd.DataFrame:
    """p99/p50/p1 per bucket and their global references, one series each.

    Adds ``quantile`` (p99_g collapsed to p99, ...), ``group`` (per-bucket
    label or 'global') and ``series`` (both combined) columns.
    """
    names = [*QUANTILE_STATISTICS, *(f"{name}_g" for name in QUANTILE_STATISTICS)]
    data = long.loc[long[STATISTIC_COLUMN].isin(names)].copy()
    is_global = data[STATISTIC_COLUMN].str.endswith("_g")
    data["quantile"] = data[STATISTIC_COLUMN].str.removesuffix("_g")
    data["group"] = np.where(is_global, "global", bucket_group_label(bucket_column))
    data["series"] = data["quantile"] + " " + data["group"]
    return data.reset_index(drop=True)


def mean_series(long: pd.DataFrame) -> pd.DataFrame:
    """Mean per bucket with the cl1/cl2 control limits, tagged by ``band``."""
    data = long.loc[long[STATISTIC_COLUMN].isin(MEAN_STATISTICS)].copy()
    data["band"] = np.where(data[STATISTIC_COLUMN] == "mean", "mean", "1SD CL")
    return data.reset_index(drop=True)


def rate_series(long: pd.DataFrame) -> pd.DataFrame:
    """Zero and missing rates per bucket."""
    data = long.loc[long[STATISTIC_COLUMN].isin(RATE_STATISTICS)].copy()
    return data.reset_index(drop=True)


def build_chart_specs(
    summary: NumericVariableSummary,
    palette: Palette | None = None,
) -> list[ChartSpec]:
    """Describe the four panels of the numeric variable report."""
    palette = palette or Palette()
    bucket = summary.bucket_column
    coarse = summary.coarse_bucket_column
    log_scale = summary.decision.apply_log

    return [
        ChartSpec(
            name="distribution",
            data=summary.distribution.boxplot,
            aesthetics=PlotAesthetics(x=coarse, y="median", group=coarse),
            palette=palette,
            log_scale=log_scale,
            y_label=f"{summary.variable} (log10)" if log_scale else summary.variable,
        ),
        ChartSpec(
            name="quantiles",
            data=quantile_series(summary.long, bucket),
            aesthetics=PlotAesthetics(
                x=bucket, y=VALUE_COLUMN, color="quantile", linetype="group", group="series"
            ),
            palette=palette,
        ),
        ChartSpec(
            name="mean",
            data=mean_series(summary.long),
            aesthetics=PlotAesthetics(
                x=bucket, y=VALUE_COLUMN, linetype="band", group=STATISTIC_COLUMN
            ),
            palette=palette,
        ),
        ChartSpec(
            name="rates",
            data=rate_series(summary.long),
            aesthetics=PlotAesthetics(
                x=bucket, y=VALUE_COLUMN, color=STATISTIC_COLUMN, group=STATISTIC_COLUMN
            ),
            palette=palette,
        ),
    ]
