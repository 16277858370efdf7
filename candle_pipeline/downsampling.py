"""
Display downsampling for OHLCV series.

Two strategies:
- Stride: keep every n-th record. Fast, approximate count.
- LTTB (Largest Triangle Three Buckets): keeps the record in each bucket that
  spans the largest triangle with its neighbours, which preserves visible
  peaks and troughs. Exact count.

The adaptive entry point uses stride for moderate inputs and switches to LTTB
above LTTB_THRESHOLD records.
"""

import logging
from typing import List, Sequence

import numpy as np

from candle_pipeline.config import DEFAULT_MAX_POINTS, LTTB_THRESHOLD
from candle_pipeline.models import OHLCV

logger = logging.getLogger(__name__)

DOWNSAMPLE_METHODS = ('auto', 'lttb', 'stride')


def _validate_max_points(max_points: int) -> None:
    if max_points < 2:
        raise ValueError(f"max_points must be at least 2, got {max_points}")


def _triangle_areas(
    x1: float, y1: float,
    xs: np.ndarray, ys: np.ndarray,
    x3: float, y3: float
) -> np.ndarray:
    """Shoelace triangle areas for a fixed first and third vertex."""
    return np.abs(x1 * (ys - y3) + xs * (y3 - y1) + x3 * (y1 - ys)) / 2


def downsample_stride(records: Sequence[OHLCV], max_points: int) -> Sequence[OHLCV]:
    """
    Keep every n-th record, always ending on the last one.

    The result holds roughly ``max_points`` records and may exceed it by a
    few; use downsample_lttb when an exact count matters.

    Args:
        records: Records sorted ascending by timestamp
        max_points: Target number of points (>= 2)

    Returns:
        Sampled records, or the input itself if it already fits
    """
    _validate_max_points(max_points)

    if len(records) <= max_points:
        return records

    step = max(1, len(records) // max_points)
    sampled = list(records[::step])

    if sampled[-1] is not records[-1]:
        sampled.append(records[-1])

    return sampled


def downsample_lttb(records: Sequence[OHLCV], max_points: int) -> Sequence[OHLCV]:
    """
    Downsample with Largest Triangle Three Buckets.

    The first and last records are always kept. The interior records are
    split into ``max_points - 2`` contiguous buckets, and from each bucket the
    record forming the largest triangle with the previously selected record
    and the first record of the next bucket is kept. X is the timestamp, Y
    the mean of open, high, low and close.

    Args:
        records: Records sorted ascending by timestamp
        max_points: Exact number of points to return (>= 2)

    Returns:
        Exactly ``max_points`` records, or the input itself if it already fits
    """
    _validate_max_points(max_points)

    n = len(records)
    if n <= max_points:
        return records

    if max_points == 2:
        return [records[0], records[-1]]

    xs = np.array([r.timestamp for r in records], dtype=np.float64)
    ys = np.array([r.typical_price for r in records], dtype=np.float64)

    n_buckets = max_points - 2

    # Bucket i spans [bounds[i], bounds[i + 1]) with bounds[i] equal to
    # floor(i * (n - 2) / n_buckets) + 1. Integer division keeps the edges
    # exact; bounds[-1] == n - 1 is the last record, which serves as the
    # "next" point of the final bucket.
    bounds = [(i * (n - 2)) // n_buckets + 1 for i in range(n_buckets + 1)]

    sampled: List[OHLCV] = [records[0]]
    prev_index = 0

    for i in range(n_buckets):
        start, end = bounds[i], bounds[i + 1]
        next_index = end

        areas = _triangle_areas(
            xs[prev_index], ys[prev_index],
            xs[start:end], ys[start:end],
            xs[next_index], ys[next_index],
        )
        # argmax returns the first maximum, so ties keep the earliest record
        prev_index = start + int(np.argmax(areas))
        sampled.append(records[prev_index])

    sampled.append(records[-1])
    return sampled


def downsample(
    records: Sequence[OHLCV],
    max_points: int = DEFAULT_MAX_POINTS,
    method: str = 'auto'
) -> Sequence[OHLCV]:
    """
    Reduce a series to a display budget of points.

    Args:
        records: Records sorted ascending by timestamp
        max_points: Point budget (>= 2, default: 2000)
        method: Strategy to use:
            - 'auto': LTTB above LTTB_THRESHOLD records, stride otherwise
            - 'lttb': always LTTB (exact count)
            - 'stride': always stride (approximate count)

    Returns:
        Downsampled records, or the input itself if it already fits

    Raises:
        ValueError: If max_points < 2 or method is unknown

    Example:
        >>> points = downsample(hourly_records, 2000)
        >>> exact = downsample(hourly_records, 500, method='lttb')
    """
    if method not in DOWNSAMPLE_METHODS:
        raise ValueError(
            f"Invalid method: '{method}'. Valid options: {list(DOWNSAMPLE_METHODS)}"
        )
    _validate_max_points(max_points)

    if len(records) <= max_points:
        return records

    if method == 'lttb' or (method == 'auto' and len(records) > LTTB_THRESHOLD):
        sampled = downsample_lttb(records, max_points)
        strategy = 'lttb'
    else:
        sampled = downsample_stride(records, max_points)
        strategy = 'stride'

    logger.debug(
        f"Downsampled {len(records):,} records to {len(sampled):,} ({strategy})"
    )
    return sampled


# Name used by chart callers
downsample_adaptive = downsample
