"""
End-to-end preparation of a parsed series for charting.

Chains the stages the chart view runs on every data or settings change:
resolve the timeframe, aggregate, then downsample to the display budget.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Sequence

from candle_pipeline.aggregator import aggregate
from candle_pipeline.config import DEFAULT_MAX_POINTS, VOLUME_DOWN_COLOR, VOLUME_UP_COLOR
from candle_pipeline.downsampling import downsample
from candle_pipeline.models import OHLCV
from candle_pipeline.timeframes import Timeframe, TimeframeLike, infer_timeframe

logger = logging.getLogger(__name__)


@dataclass
class ChartSeries:
    """
    Display-ready series with the bookkeeping of how it was produced.

    Attributes:
        records: Aggregated and downsampled records
        timeframe: Timeframe actually applied (inferred when 'auto' was asked)
        source_count: Number of input records
        aggregated_count: Number of records after aggregation
    """
    records: Sequence[OHLCV]
    timeframe: TimeframeLike
    source_count: int
    aggregated_count: int


def prepare_chart_series(
    records: Sequence[OHLCV],
    timeframe: TimeframeLike = Timeframe.AUTO,
    max_points: int = DEFAULT_MAX_POINTS,
    method: str = 'auto'
) -> ChartSeries:
    """
    Aggregate and downsample records for display.

    When ``timeframe`` is 'auto' the timeframe closest to the data's mean
    sampling interval is inferred and applied.

    Args:
        records: Parsed records sorted ascending by timestamp
        timeframe: Requested timeframe ('auto', a label, a duration, or ms)
        max_points: Display point budget (default: 2000)
        method: Downsampling strategy, see downsample()

    Returns:
        ChartSeries with the final records and the applied timeframe

    Raises:
        ValueError: If the timeframe or downsampling parameters are invalid
    """
    if timeframe == Timeframe.AUTO:
        timeframe = infer_timeframe(records)
        logger.info(f"Auto timeframe resolved to {timeframe.value}")

    aggregated = aggregate(records, timeframe)
    sampled = downsample(aggregated, max_points, method=method)

    logger.info(
        f"Prepared chart series: {len(records):,} -> {len(aggregated):,} "
        f"aggregated -> {len(sampled):,} displayed"
    )

    return ChartSeries(
        records=sampled,
        timeframe=timeframe,
        source_count=len(records),
        aggregated_count=len(aggregated),
    )


def to_chart_payload(records: Sequence[OHLCV]) -> Dict[str, List[Dict]]:
    """
    Convert records into candlestick and volume series for a chart widget.

    Chart times are epoch seconds. Only records carrying a volume produce a
    volume bar, colored by candle direction.

    Args:
        records: Display-ready records

    Returns:
        Dict with 'candlestick' and 'volume' lists
    """
    candlestick = [
        {
            'time': r.timestamp / 1000,
            'open': r.open,
            'high': r.high,
            'low': r.low,
            'close': r.close,
        }
        for r in records
    ]

    volume = [
        {
            'time': r.timestamp / 1000,
            'value': r.volume,
            'color': VOLUME_UP_COLOR if r.close >= r.open else VOLUME_DOWN_COLOR,
        }
        for r in records
        if r.volume is not None
    ]

    return {'candlestick': candlestick, 'volume': volume}
