"""Per-bucket and global aggregation of one numeric variable.

Buckets come out in the natural order of the key: category order for
categorical keys, ascending value order otherwise. Categories that have no
rows are kept, and rows whose key is missing form a final bucket labelled
``None``. No bucket is dropped, even when all its values are missing.
"""

from __future__ import annotations

from typing import Any, NamedTuple

import numpy as np
import pandas as pd

from varmonitor.analysis.numeric.models import BucketStats
from varmonitor.analysis.numeric.table import NumericTableView
from varmonitor.analysis.numeric.weighted import compute_stats, to_float_array
from varmonitor.core.logging import get_logger, record_buckets_processed

logger = get_logger(__name__)


class BucketEntry(NamedTuple):
    """Statistics for one bucket value."""

    bucket: Any
    stats: BucketStats


def bucket_codes(keys: pd.Series) -> tuple[np.ndarray, list[Any]]:
    """Map bucket keys to integer codes over an ordered domain.

    Returns:
        (codes, domain) where codes[i] indexes domain, or is -1 for a missing key
    """
    if isinstance(keys.dtype, pd.CategoricalDtype):
        return keys.cat.codes.to_numpy(), list(keys.cat.categories)

    codes, uniques = pd.factorize(keys, sort=True, use_na_sentinel=True)
    return codes, list(uniques)


def bucket_masks(keys: pd.Series) -> list[tuple[Any, np.ndarray]]:
    """Row masks per bucket label, in temporal order, missing-key bucket last."""
    codes, domain = bucket_codes(keys)
    masks = [(label, codes == code) for code, label in enumerate(domain)]
    missing = codes == -1
    if missing.any():
        masks.append((None, missing))
    return masks


def aggregate_by_bucket(view: NumericTableView, bucket_column: str) -> list[BucketEntry]:
    """Compute the nine statistics for every bucket of ``bucket_column``.

    Args:
        view: Validated table view
        bucket_column: Name of a ready-made time bucket column

    Returns:
        One entry per bucket, in temporal order
    """
    values = to_float_array(view.values())
    weights = view.weights()
    weight_array = None if weights is None else to_float_array(weights)

    entries: list[BucketEntry] = []
    for label, mask in bucket_masks(view.bucket(bucket_column)):
        stats = compute_stats(
            values[mask],
            None if weight_array is None else weight_array[mask],
        )
        entries.append(BucketEntry(label, stats))

    record_buckets_processed(len(entries))
    logger.debug(
        "buckets_aggregated",
        variable=view.variable,
        bucket_column=bucket_column,
        buckets=len(entries),
        empty_buckets=sum(1 for entry in entries if entry.stats.observed_count == 0),
    )
    return entries


def aggregate_global(view: NumericTableView) -> BucketStats:
    """Compute the nine statistics over the whole table, without grouping."""
    return compute_stats(view.values(), view.weights())
