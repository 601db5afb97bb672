"""Numeric variable summary processor.

Orchestrates one summary run for a numeric variable:
1. Validate the variable, weight and bucket columns (types checked up front)
2. Aggregate per fine bucket and globally on the full table
3. Reshape into the long and wide summary tables
4. Build the distribution view on a bounded sample by coarse bucket
5. Describe the charts and hand everything to the renderer, if one is given

Several variables can be summarized in parallel; each task reads the shared
frame and writes only its own result.
"""

from __future__ import annotations

import time
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from typing import Any

import pandas as pd

from varmonitor.analysis.numeric.aggregator import aggregate_by_bucket, aggregate_global
from varmonitor.analysis.numeric.distribution import build_distribution_view
from varmonitor.analysis.numeric.models import NumericVariableSummary
from varmonitor.analysis.numeric.reshape import to_long, to_wide
from varmonitor.analysis.numeric.table import NumericTableView
from varmonitor.analysis.numeric.views import Palette, Renderer, build_chart_specs
from varmonitor.core.config import get_settings
from varmonitor.core.exceptions import VarMonitorError
from varmonitor.core.logging import (
    end_summary_metrics,
    get_logger,
    log_context,
    record_operation_timing,
    record_rows_processed,
    start_summary_metrics,
)
from varmonitor.core.models.base import Result

logger = get_logger(__name__)

# Marks arguments that fall back to Settings when not passed
_FROM_SETTINGS: Any = object()


def summarize_numeric_variable(
    variable: str,
    frame: pd.DataFrame,
    weight_column: str | None,
    bucket_column: str,
    coarse_bucket_column: str,
    skew_threshold: Any = None,
    sample_size: int | None = _FROM_SETTINGS,
    seed: Any = _FROM_SETTINGS,
    renderer: Renderer | None = None,
    palette: Palette | None = None,
) -> NumericVariableSummary:
    """Summarize a numeric variable over time buckets.

    Args:
        variable: Column to summarize
        frame: Input table; never modified
        weight_column: Optional non-negative weight column
        bucket_column: Fine time bucket column for the time-series statistics
        coarse_bucket_column: Coarser time bucket column for the boxplots
        skew_threshold: Log-scale threshold for the boxplots; None disables it,
            negative or malformed values are treated as 3
        sample_size: Row bound for the boxplot sample (None = all rows);
            defaults to Settings.sample_size
        seed: Seed or numpy Generator for the sample; defaults to Settings.sample_seed
        renderer: Optional rendering collaborator. Its ``apply_log_scale`` is
            the log transform attempt and ``render`` receives the summary.
        palette: Colours for the chart specs

    Returns:
        NumericVariableSummary with long and wide tables, distribution view and charts

    Raises:
        UnsupportedTypeError: If the variable or weight column cannot be summarized
        InvalidInputError: If a named column is absent
    """
    settings = get_settings()
    if sample_size is _FROM_SETTINGS:
        sample_size = settings.sample_size
    if seed is _FROM_SETTINGS:
        seed = settings.sample_seed

    with log_context(variable=variable, bucket_column=bucket_column):
        # Fails fast, before any statistic is computed
        view = NumericTableView.from_frame(
            frame,
            variable,
            weight_column=weight_column,
            bucket_columns=(bucket_column, coarse_bucket_column),
        )

        metrics = start_summary_metrics(variable)
        try:
            record_rows_processed(view.row_count)

            start = time.perf_counter()
            entries = aggregate_by_bucket(view, bucket_column)
            global_stats = aggregate_global(view)
            record_operation_timing("aggregate", time.perf_counter() - start)

            start = time.perf_counter()
            long = to_long(bucket_column, entries, global_stats)
            wide = to_wide(variable, entries, global_stats)
            record_operation_timing("reshape", time.perf_counter() - start)

            start = time.perf_counter()
            distribution = build_distribution_view(
                view,
                coarse_bucket_column,
                skew_threshold=skew_threshold,
                sample_size=sample_size,
                seed=seed,
                attempt=renderer.apply_log_scale if renderer is not None else None,
            )
            record_operation_timing("distribution", time.perf_counter() - start)

            summary = NumericVariableSummary(
                variable=variable,
                bucket_column=bucket_column,
                coarse_bucket_column=coarse_bucket_column,
                weight_column=weight_column,
                long=long,
                wide=wide,
                global_stats=global_stats,
                distribution=distribution,
            )
            summary = replace(summary, charts=build_chart_specs(summary, palette))
        finally:
            end_summary_metrics()

        logger.info(
            "numeric_summary_completed",
            buckets=len(entries),
            transform=distribution.decision.reason.value,
            **metrics.to_dict(),
        )

        if renderer is not None:
            renderer.render(summary)

    return summary


def summarize_numeric_variables(
    variables: Sequence[str],
    frame: pd.DataFrame,
    weight_column: str | None,
    bucket_column: str,
    coarse_bucket_column: str,
    skew_threshold: Any = None,
    sample_size: int | None = _FROM_SETTINGS,
    seed: int | None = _FROM_SETTINGS,
    max_workers: int | None = None,
) -> dict[str, Result[NumericVariableSummary]]:
    """Summarize several numeric variables in parallel.

    A failure for one variable (for example an unsupported column type) is
    reported in that variable's Result and does not affect the others.

    Args:
        variables: Columns to summarize
        frame: Input table, shared read-only by all tasks
        weight_column: Optional weight column
        bucket_column: Fine time bucket column
        coarse_bucket_column: Coarse time bucket column
        skew_threshold: Log-scale threshold for the boxplots
        sample_size: Row bound for the boxplot samples
        seed: Integer seed, reused for every variable
        max_workers: Thread pool size; defaults to Settings.max_workers

    Returns:
        Mapping of variable name to Result, in the order given
    """
    if max_workers is None:
        max_workers = get_settings().max_workers
    unique_variables = list(dict.fromkeys(variables))

    results: dict[str, Result[NumericVariableSummary]] = {}
    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        futures = [
            pool.submit(
                summarize_numeric_variable,
                variable,
                frame,
                weight_column,
                bucket_column,
                coarse_bucket_column,
                skew_threshold,
                sample_size,
                seed,
            )
            for variable in unique_variables
        ]

        for variable, future in zip(unique_variables, futures, strict=True):
            try:
                results[variable] = Result.ok(future.result())
            except VarMonitorError as e:
                logger.warning("numeric_summary_failed", variable=variable, error=str(e))
                results[variable] = Result.fail(str(e))

    return results
