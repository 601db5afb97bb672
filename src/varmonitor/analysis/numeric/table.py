"""Validated, read-only view over the input table.

All column lookups and dtype checks happen once, when the view is built, so
the aggregation code never has to handle a missing or mistyped column.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
import pandas as pd

from varmonitor.core.exceptions import InvalidInputError, UnsupportedTypeError

# Largest integer magnitude float64 represents exactly
MAX_EXACT_FLOAT_INT = 2**53


def check_numeric_column(name: str, series: pd.Series) -> None:
    """Reject column types the float64 statistics cannot handle faithfully.

    Raises:
        UnsupportedTypeError: For non-numeric, boolean and complex columns, and
            for 64-bit integer columns holding values beyond 2**53.
    """
    dtype = series.dtype
    if pd.api.types.is_bool_dtype(dtype):
        raise UnsupportedTypeError(name, str(dtype), "boolean columns are not numeric measures")
    if not pd.api.types.is_numeric_dtype(dtype):
        raise UnsupportedTypeError(name, str(dtype), "column is not numeric")
    if pd.api.types.is_complex_dtype(dtype):
        raise UnsupportedTypeError(name, str(dtype), "complex values have no ordering")

    # Covers numpy int64/uint64 and the nullable Int64/UInt64 extension types
    itemsize = np.dtype(getattr(dtype, "numpy_dtype", dtype)).itemsize
    if pd.api.types.is_integer_dtype(dtype) and itemsize >= 8:
        observed = series.dropna()
        if observed.empty:
            return
        if pd.api.types.is_unsigned_integer_dtype(dtype):
            too_large = int(observed.max()) > MAX_EXACT_FLOAT_INT
        else:
            magnitude = max(abs(int(observed.min())), abs(int(observed.max())))
            too_large = magnitude > MAX_EXACT_FLOAT_INT
        if too_large:
            raise UnsupportedTypeError(
                name,
                str(dtype),
                "64-bit integer values exceed float precision; cast to float explicitly",
            )


@dataclass(frozen=True)
class NumericTableView:
    """Typed accessors for the variable, weight and bucket columns of a frame."""

    frame: pd.DataFrame
    variable: str
    weight_column: str | None = None
    bucket_columns: tuple[str, ...] = ()

    @classmethod
    def from_frame(
        cls,
        frame: pd.DataFrame,
        variable: str,
        weight_column: str | None = None,
        bucket_columns: tuple[str, ...] | list[str] = (),
    ) -> NumericTableView:
        """Validate column presence and types, then build the view.

        Raises:
            InvalidInputError: If a named column is absent
            UnsupportedTypeError: If the variable or weight column has an unsupported type
        """
        required = [variable, *bucket_columns]
        if weight_column is not None:
            required.append(weight_column)
        missing = [col for col in dict.fromkeys(required) if col not in frame.columns]
        if missing:
            raise InvalidInputError(f"Columns not found in table: {missing}")

        check_numeric_column(variable, frame[variable])
        if weight_column is not None:
            check_numeric_column(weight_column, frame[weight_column])

        return cls(
            frame=frame,
            variable=variable,
            weight_column=weight_column,
            bucket_columns=tuple(dict.fromkeys(bucket_columns)),
        )

    @property
    def row_count(self) -> int:
        return len(self.frame)

    def values(self) -> pd.Series:
        return self.frame[self.variable]

    def weights(self) -> pd.Series | None:
        if self.weight_column is None:
            return None
        return self.frame[self.weight_column]

    def bucket(self, column: str) -> pd.Series:
        if column not in self.bucket_columns:
            raise InvalidInputError(f"'{column}' is not a bucket column of this view")
        return self.frame[column]

    def with_frame(self, frame: pd.DataFrame) -> NumericTableView:
        """Same columns over a different row set (e.g. a sample); not re-validated."""
        return NumericTableView(
            frame=frame,
            variable=self.variable,
            weight_column=self.weight_column,
            bucket_columns=self.bucket_columns,
        )

    def select(self) -> pd.DataFrame:
        """Only the columns this view needs, as a new frame."""
        columns = [self.variable, *self.bucket_columns]
        if self.weight_column is not None and self.weight_column not in columns:
            columns.append(self.weight_column)
        return self.frame.loc[:, list(dict.fromkeys(columns))]
