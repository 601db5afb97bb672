"""Tests for the distribution view policy."""

import math

import numpy as np
import pandas as pd
import pytest

from varmonitor.analysis.numeric.distribution import (
    boxplot_stats,
    build_distribution_view,
    decide_transform,
    log10_attempt,
    normalize_skew_threshold,
    sample_rows,
)
from varmonitor.analysis.numeric.table import NumericTableView
from varmonitor.core.exceptions import TransformFailedError
from varmonitor.core.logging import end_summary_metrics, start_summary_metrics
from varmonitor.core.models.base import TransformReason


class TestNormalizeSkewThreshold:
    """Tests for normalize_skew_threshold."""

    def test_none_disables(self):
        """Test None is passed through."""
        assert normalize_skew_threshold(None) is None

    @pytest.mark.parametrize("threshold", [-5, float("nan"), float("inf"), "abc", True, [3]])
    def test_malformed_replaced(self, threshold):
        """Test negative and malformed thresholds fall back to the default."""
        assert normalize_skew_threshold(threshold, default=3.0) == 3.0

    def test_negative_uses_configured_default(self):
        """Test the replacement defaults to 3."""
        assert normalize_skew_threshold(-5) == 3.0

    @pytest.mark.parametrize("threshold", [0, 2.5, np.float64(4.0), np.int64(7)])
    def test_valid_kept(self, threshold):
        """Test valid thresholds come back as floats."""
        result = normalize_skew_threshold(threshold, default=3.0)

        assert result == float(threshold)
        assert isinstance(result, float)


class TestDecideTransform:
    """Tests for decide_transform."""

    def test_disabled(self, skewed_values):
        """Test no threshold means no transform."""
        decision = decide_transform(skewed_values, None)

        assert decision.apply_log is False
        assert decision.reason == TransformReason.DISABLED

    def test_applied_for_skewed_positive_values(self, skewed_values):
        """Test strongly skewed positive data is log-scaled."""
        decision = decide_transform(skewed_values, 3)

        assert decision.apply_log is True
        assert decision.reason == TransformReason.APPLIED
        assert decision.skewness > 3
        assert decision.distinct_count == 1000
        assert decision.min_value > 0

    def test_negative_threshold_treated_as_three(self, skewed_values):
        """Test a negative threshold behaves like 3."""
        decision = decide_transform(skewed_values, -5)

        assert decision.threshold == 3.0
        assert decision.reason == TransformReason.APPLIED

    @pytest.mark.parametrize("bad_value", [0.0, -2.0])
    def test_non_positive_skips(self, skewed_values, bad_value):
        """Test any value at or below zero prevents the transform."""
        values = skewed_values.copy()
        values[10] = bad_value

        decision = decide_transform(values, 0)

        assert decision.apply_log is False
        assert decision.reason == TransformReason.SKIPPED_NON_POSITIVE
        assert decision.min_value == bad_value

    def test_fifty_distinct_values_skip(self):
        """Test exactly 50 distinct values count as low cardinality."""
        values = np.tile(np.arange(1.0, 51.0), 20)

        decision = decide_transform(values, 0)

        assert decision.reason == TransformReason.SKIPPED_LOW_CARDINALITY
        assert decision.distinct_count == 50

    def test_fifty_one_distinct_values_continue(self):
        """Test 51 distinct values move on to the skewness check."""
        decision = decide_transform(np.arange(1.0, 52.0), 3)

        assert decision.reason == TransformReason.SKIPPED_BELOW_THRESHOLD
        assert decision.distinct_count == 51
        assert decision.skewness == pytest.approx(0.0, abs=1e-9)

    def test_min_distinct_override(self):
        """Test the cardinality bound can be lowered."""
        values = np.tile(np.arange(1.0, 51.0), 20)

        decision = decide_transform(values, 3, min_distinct=10)

        assert decision.reason == TransformReason.SKIPPED_BELOW_THRESHOLD

    def test_missing_values_ignored(self, skewed_values):
        """Test NaN values do not block the transform."""
        values = np.concatenate([skewed_values, [np.nan] * 50])

        decision = decide_transform(values, 3)

        assert decision.reason == TransformReason.APPLIED

    def test_all_missing(self):
        """Test a column without observations is low cardinality."""
        decision = decide_transform([np.nan, np.nan], 3)

        assert decision.reason == TransformReason.SKIPPED_LOW_CARDINALITY
        assert decision.min_value is None
        assert decision.distinct_count == 0

    def test_failed_attempt_falls_back(self, skewed_values):
        """Test a failing transform attempt yields the linear scale."""

        def failing_attempt(values: np.ndarray) -> None:
            raise RuntimeError("renderer cannot log-scale")

        decision = decide_transform(skewed_values, 3, attempt=failing_attempt)

        assert decision.apply_log is False
        assert decision.reason == TransformReason.FAILED_FALLBACK
        assert "renderer cannot log-scale" in decision.error

    def test_attempt_receives_observed_values(self, skewed_values):
        """Test the attempt sees only non-missing values."""
        seen: list[np.ndarray] = []
        values = np.concatenate([skewed_values, [np.nan]])

        decide_transform(values, 3, attempt=seen.append)

        assert len(seen) == 1
        assert seen[0].size == skewed_values.size


class TestLog10Attempt:
    """Tests for the default transform attempt."""

    def test_positive(self):
        """Test positive values are transformed."""
        np.testing.assert_allclose(log10_attempt(np.array([1.0, 10.0, 100.0])), [0, 1, 2])

    @pytest.mark.parametrize("values", [[0.0, 1.0], [-1.0, 1.0]])
    def test_invalid(self, values):
        """Test zero and negative values raise."""
        with pytest.raises(TransformFailedError):
            log10_attempt(np.array(values))


class TestSampleRows:
    """Tests for sample_rows."""

    @pytest.fixture
    def frame(self) -> pd.DataFrame:
        """10,000 rows."""
        return pd.DataFrame({"x": np.arange(10_000, dtype=float)})

    def test_bounded(self, frame: pd.DataFrame):
        """Test a bound below the row count draws exactly that many rows."""
        sample = sample_rows(frame, 100, seed=7)

        assert len(sample) == 100
        assert sample.index.is_unique

    def test_deterministic_with_seed(self, frame: pd.DataFrame):
        """Test the same seed draws the same rows."""
        first = sample_rows(frame, 100, seed=7)
        second = sample_rows(frame, 100, seed=7)

        pd.testing.assert_frame_equal(first, second)

    def test_generator_seed(self, frame: pd.DataFrame):
        """Test a numpy Generator is accepted as the source of randomness."""
        sample = sample_rows(frame, 50, seed=np.random.default_rng(1))

        assert len(sample) == 50

    def test_input_unchanged(self, frame: pd.DataFrame):
        """Test sampling leaves the input frame alone."""
        before = frame.copy()

        sample_rows(frame, 100, seed=7)

        pd.testing.assert_frame_equal(frame, before)

    def test_bound_above_row_count(self, frame: pd.DataFrame):
        """Test a generous bound keeps every row."""
        sample = sample_rows(frame, 50_000, seed=1)

        assert len(sample) == len(frame)
        assert set(sample.index) == set(frame.index)

    def test_no_bound(self, frame: pd.DataFrame):
        """Test None returns the full frame."""
        assert sample_rows(frame, None) is frame

    @pytest.mark.parametrize("bound", [0, -1, 2.5, True, "100"])
    def test_invalid_bound(self, frame: pd.DataFrame, bound):
        """Test the bound must be a positive integer."""
        with pytest.raises(ValueError, match="positive integer"):
            sample_rows(frame, bound)


class TestBoxplotStats:
    """Tests for boxplot_stats."""

    def test_tukey_whiskers(self):
        """Test quartiles, whiskers and outliers per bucket."""
        frame = pd.DataFrame(
            {
                "x": [*range(1, 10), 100.0, np.nan, np.nan],
                "year": [2023] * 10 + [2024] * 2,
            }
        )
        view = NumericTableView.from_frame(frame, "x", bucket_columns=("year",))

        box = boxplot_stats(view, "year").set_index("year")

        assert box.loc[2023, "n"] == 10
        assert box.loc[2023, "q1"] == pytest.approx(3.25)
        assert box.loc[2023, "median"] == pytest.approx(5.5)
        assert box.loc[2023, "q3"] == pytest.approx(7.75)
        assert box.loc[2023, "lower_whisker"] == pytest.approx(1.0)
        assert box.loc[2023, "upper_whisker"] == pytest.approx(9.0)
        assert box.loc[2023, "outliers"] == 1

        assert box.loc[2024, "n"] == 0
        assert math.isnan(box.loc[2024, "median"])

    def test_log_scale(self):
        """Test statistics are on the log10 scale when requested."""
        frame = pd.DataFrame({"x": [10.0, 100.0, 1000.0], "year": [2024] * 3})
        view = NumericTableView.from_frame(frame, "x", bucket_columns=("year",))

        box = boxplot_stats(view, "year", apply_log=True)

        assert box["median"].iloc[0] == pytest.approx(2.0)
        assert box["lower_whisker"].iloc[0] == pytest.approx(1.0)
        assert box["upper_whisker"].iloc[0] == pytest.approx(3.0)

    def test_columns(self):
        """Test the boxplot table layout."""
        frame = pd.DataFrame({"x": [1.0], "year": [2024]})
        view = NumericTableView.from_frame(frame, "x", bucket_columns=("year",))

        box = boxplot_stats(view, "year")

        assert list(box.columns) == [
            "year",
            "n",
            "lower_whisker",
            "q1",
            "median",
            "q3",
            "upper_whisker",
            "outliers",
        ]


class TestBuildDistributionView:
    """Tests for build_distribution_view."""

    def test_bounded_sample(self, large_frame: pd.DataFrame):
        """Test the boxplot is built from at most sample_size rows."""
        view = NumericTableView.from_frame(
            large_frame, "amount", bucket_columns=("months", "quarters")
        )

        result = build_distribution_view(
            view, "quarters", skew_threshold=3, sample_size=100, seed=3
        )

        assert result.sample_size == 100
        assert result.total_rows == 10_000
        assert result.sampled is True
        assert result.boxplot["n"].sum() <= 100

    def test_full_table(self, large_frame: pd.DataFrame):
        """Test no bound uses every row; zeros prevent the log scale."""
        view = NumericTableView.from_frame(large_frame, "amount", bucket_columns=("quarters",))

        result = build_distribution_view(view, "quarters", skew_threshold=3, sample_size=None)

        assert result.sample_size == 10_000
        assert result.sampled is False
        assert result.decision.reason == TransformReason.SKIPPED_NON_POSITIVE
        assert result.boxplot["quarters"].tolist() == sorted(large_frame["quarters"].unique())

    def test_records_sampled_rows(self, large_frame: pd.DataFrame):
        """Test the sample size is added to the active metrics."""
        view = NumericTableView.from_frame(large_frame, "amount", bucket_columns=("quarters",))

        metrics = start_summary_metrics("amount")
        try:
            build_distribution_view(view, "quarters", sample_size=250, seed=1)
        finally:
            end_summary_metrics()

        assert metrics.rows_sampled == 250
