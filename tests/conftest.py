"""Shared pytest fixtures for all tests."""

import numpy as np
import pandas as pd
import pytest


def _skewed_positive_values(n: int = 1000) -> np.ndarray:
    grid = np.arange(1, n + 1) / n
    return 1000.0 * grid**50


@pytest.fixture
def skewed_values() -> np.ndarray:
    """1000 strictly positive, all distinct values with skewness around 6.5."""
    return _skewed_positive_values()


@pytest.fixture
def rng() -> np.random.Generator:
    """Seeded generator for reproducible test data."""
    return np.random.default_rng(20240131)


@pytest.fixture
def bank_frame(rng: np.random.Generator) -> pd.DataFrame:
    """1000 rows over 12 months of 2023 and 2024, with a skewed positive balance."""
    n = 1000
    months = pd.period_range("2023-07", periods=12, freq="M")
    month = months[np.arange(n) % 12]

    return pd.DataFrame(
        {
            "balance": rng.permutation(_skewed_positive_values(n)),
            "age": rng.integers(18, 90, size=n),
            "weight": rng.uniform(0.5, 2.0, size=n),
            "months": pd.Series(month),
            "years": pd.Series(month).dt.year,
        }
    )


@pytest.fixture
def large_frame(rng: np.random.Generator) -> pd.DataFrame:
    """10,000 rows over 24 months with some missing and zero values."""
    n = 10_000
    months = pd.period_range("2022-01", periods=24, freq="M")
    month = months[rng.integers(0, 24, size=n)]
    amount = rng.gamma(2.0, 50.0, size=n)
    amount[rng.random(n) < 0.05] = 0.0
    amount[rng.random(n) < 0.1] = np.nan

    return pd.DataFrame(
        {
            "amount": amount,
            "months": pd.Series(month),
            "quarters": pd.Series(month).dt.qyear.astype(str)
            + "Q"
            + pd.Series(month).dt.quarter.astype(str),
        }
    )
