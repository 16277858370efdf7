"""
Command-line entry point.

Usage:
    candle-pipeline prices.csv --timeframe 1h --max-points 2000
    python -m candle_pipeline prices.csv --output chart.json
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from candle_pipeline.config import DEFAULT_MAX_POINTS
from candle_pipeline.csv_parser import parse_file
from candle_pipeline.pipeline import prepare_chart_series, to_chart_payload
from candle_pipeline.validators import check_series

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='candle-pipeline',
        description='Parse, aggregate and downsample an OHLCV CSV file for charting',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Infer the timeframe and print a summary
  candle-pipeline prices.csv

  # Aggregate to 4-hour candles and write the chart payload
  candle-pipeline prices.csv --timeframe 4h --output chart.json
        """
    )

    parser.add_argument('file', type=Path,
                        help='CSV file with a header row')
    parser.add_argument('--timeframe', type=str, default='auto',
                        help="Target timeframe: auto, 1m, 5m, 15m, 1h, 1D or a duration like 4h (default: auto)")
    parser.add_argument('--max-points', type=int, default=DEFAULT_MAX_POINTS,
                        help=f'Display point budget (default: {DEFAULT_MAX_POINTS})')
    parser.add_argument('--method', choices=['auto', 'lttb', 'stride'], default='auto',
                        help='Downsampling strategy (default: auto)')
    parser.add_argument('--strict-ohlc', action='store_true',
                        help='Drop rows whose low/high do not bound open and close')
    parser.add_argument('--output', type=Path, default=None,
                        help='Write the chart payload as JSON to this path')
    parser.add_argument('--verbose', action='store_true',
                        help='Enable debug logging')

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Run the pipeline on one file. Returns the process exit code."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s'
    )

    logger.info(f"Parsing {args.file}")
    try:
        result = parse_file(args.file, validate_ohlc=args.strict_ohlc)
    except (OSError, UnicodeDecodeError) as e:
        logger.error(f"Could not read {args.file}: {e}")
        return 1

    for error in result.errors:
        logger.error(error)

    if not result.records:
        logger.error("No valid data found in CSV file")
        return 1

    print(check_series(result.records))

    try:
        series = prepare_chart_series(
            result.records,
            timeframe=args.timeframe,
            max_points=args.max_points,
            method=args.method,
        )
    except ValueError as e:
        logger.error(str(e))
        return 2

    timeframe = getattr(series.timeframe, 'value', series.timeframe)
    print(f"Timeframe:  {timeframe}")
    print(f"Parsed:     {series.source_count:,} records")
    print(f"Aggregated: {series.aggregated_count:,} records")
    print(f"Displayed:  {len(series.records):,} records")

    if args.output is not None:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(json.dumps(to_chart_payload(series.records)))
        logger.info(f"✓ Chart payload written to {args.output}")

    return 0


if __name__ == '__main__':
    sys.exit(main())
