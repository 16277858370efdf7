"""
OHLCV timeframe aggregation.

Regroups a chronologically sorted record sequence into fixed-width time
buckets and reduces each bucket to one record using standard OHLC
composition: first open, highest high, lowest low, last close, summed volume.
"""

import logging
from typing import List, Sequence

import polars as pl

from candle_pipeline.models import OHLCV, frame_to_records, records_to_frame
from candle_pipeline.timeframes import TimeframeLike, resolve_timeframe_ms

logger = logging.getLogger(__name__)


def _calculate_time_bucket(time_col: str, width_ms: int) -> pl.Expr:
    """
    Calculate the bucket start for each row.

    Floor division assigns each timestamp to the bucket that contains it;
    the result is the bucket's start timestamp.
    """
    return (pl.col(time_col) // width_ms) * width_ms


def aggregate_frame(df: pl.DataFrame, width_ms: int) -> pl.DataFrame:
    """
    Aggregate an OHLCV DataFrame into buckets of ``width_ms`` milliseconds.

    Args:
        df: DataFrame with timestamp, open, high, low, close, volume columns,
            sorted ascending by timestamp
        width_ms: Bucket width in milliseconds (must be positive)

    Returns:
        One row per non-empty bucket, sorted by timestamp. The timestamp is
        the bucket start and volume is always defined (absent volume counts
        as 0).

    Raises:
        ValueError: If width_ms is not positive
    """
    if width_ms <= 0:
        raise ValueError(f"Bucket width must be positive, got {width_ms} ms")

    bucketed = df.with_columns(
        _calculate_time_bucket('timestamp', width_ms).alias('bucket')
    )

    # first()/last() follow row order inside each group, so the input must
    # already be time-sorted for open/close to be correct
    aggregated = (
        bucketed.group_by('bucket', maintain_order=True)
        .agg([
            pl.col('open').first().alias('open'),
            pl.col('high').max().alias('high'),
            pl.col('low').min().alias('low'),
            pl.col('close').last().alias('close'),
            pl.col('volume').fill_null(0.0).sum().alias('volume'),
        ])
        .sort('bucket')
        .rename({'bucket': 'timestamp'})
    )

    return aggregated.select(['timestamp', 'open', 'high', 'low', 'close', 'volume'])


def aggregate(records: Sequence[OHLCV], timeframe: TimeframeLike) -> Sequence[OHLCV]:
    """
    Aggregate OHLCV records to a coarser timeframe.

    Args:
        records: Records sorted ascending by timestamp
        timeframe: Target timeframe. Can be:
            - Timeframe member or label: '1m', '5m', '15m', '1h', '1D'
            - 'auto': no aggregation, input returned as-is
            - duration string: '30s', '4h', '2d', '1w'
            - int: width in milliseconds

    Returns:
        Aggregated records, one per non-empty bucket. For 'auto' or empty
        input the input sequence itself is returned.

    Raises:
        ValueError: If the timeframe is unknown or has a non-positive width

    Example:
        >>> hourly = aggregate(records, '1h')
        >>> four_hourly = aggregate(records, '4h')
    """
    width_ms = resolve_timeframe_ms(timeframe)

    if width_ms is None or len(records) == 0:
        return records

    aggregated: List[OHLCV] = frame_to_records(
        aggregate_frame(records_to_frame(records), width_ms)
    )

    logger.debug(
        f"Aggregated {len(records):,} records into {len(aggregated):,} "
        f"buckets of {width_ms} ms"
    )
    return aggregated
