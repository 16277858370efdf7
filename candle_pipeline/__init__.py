"""
OHLCV chart data pipeline.

Parses uploaded CSV price files, normalizes Unix and ISO 8601 timestamps,
aggregates series into coarser timeframes, and downsamples them to a display
budget while keeping visible extrema.

Usage:
    >>> from candle_pipeline import parse, aggregate, infer_timeframe, downsample
    >>>
    >>> result = parse(csv_text)
    >>> if result.failed:
    ...     print("\\n".join(result.errors))
    >>>
    >>> timeframe = infer_timeframe(result.records)   # or '1h', '4h', ...
    >>> hourly = aggregate(result.records, timeframe)
    >>> points = downsample(hourly, 2000)
"""

# Core pipeline
from candle_pipeline.csv_parser import parse, parse_csv, parse_file
from candle_pipeline.aggregator import aggregate, aggregate_frame
from candle_pipeline.downsampling import (
    downsample,
    downsample_adaptive,
    downsample_lttb,
    downsample_stride,
)

# Timeframes
from candle_pipeline.timeframes import (
    Timeframe,
    calculate_auto_timeframe,
    infer_timeframe,
    resolve_timeframe_ms,
)

# Records
from candle_pipeline.models import OHLCV, ParseResult, frame_to_records, records_to_frame

# Timestamp utilities
from candle_pipeline.timestamp_utils import (
    TimestampFormat,
    detect_column_format,
    detect_timestamp_format,
    parse_timestamp,
)

# Validation and end-to-end helpers
from candle_pipeline.validators import SeriesReport, check_series, find_ohlc_violations
from candle_pipeline.pipeline import ChartSeries, prepare_chart_series, to_chart_payload

__version__ = "1.0.0"

__all__ = [
    # Core pipeline
    "parse",
    "parse_csv",
    "parse_file",
    "aggregate",
    "aggregate_frame",
    "downsample",
    "downsample_adaptive",
    "downsample_lttb",
    "downsample_stride",

    # Timeframes
    "Timeframe",
    "calculate_auto_timeframe",
    "infer_timeframe",
    "resolve_timeframe_ms",

    # Records
    "OHLCV",
    "ParseResult",
    "frame_to_records",
    "records_to_frame",

    # Timestamp utilities
    "TimestampFormat",
    "detect_column_format",
    "detect_timestamp_format",
    "parse_timestamp",

    # Validation and end-to-end helpers
    "SeriesReport",
    "check_series",
    "find_ohlc_violations",
    "ChartSeries",
    "prepare_chart_series",
    "to_chart_payload",
]
