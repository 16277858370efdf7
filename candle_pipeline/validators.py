"""
Consistency checks for OHLCV series.

The pipeline passes inconsistent OHLC rows through unchanged. These helpers
make that policy visible: they report what a series contains without
modifying it.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence

import polars as pl

from candle_pipeline.models import OHLCV, records_to_frame


@dataclass
class SeriesReport:
    """
    Summary of a record sequence's structural health.

    Attributes:
        rows: Number of records
        is_sorted: True if timestamps never decrease
        duplicate_timestamps: Records sharing a timestamp with an earlier one
        ohlc_violations: Records where low/high do not bound open and close
        missing_volume: Records without a volume value
        first_timestamp: Earliest timestamp (ms), None for an empty series
        last_timestamp: Latest timestamp (ms), None for an empty series
    """
    rows: int
    is_sorted: bool
    duplicate_timestamps: int
    ohlc_violations: int
    missing_volume: int
    first_timestamp: Optional[int] = None
    last_timestamp: Optional[int] = None

    @property
    def clean(self) -> bool:
        return self.is_sorted and self.duplicate_timestamps == 0 and self.ohlc_violations == 0

    def __str__(self) -> str:
        """Format the report as human-readable text."""
        lines = [
            "=" * 60,
            "OHLCV SERIES REPORT",
            "=" * 60,
            f"Rows:                 {self.rows:,}",
            f"Sorted:               {'yes' if self.is_sorted else 'NO'}",
            f"Duplicate timestamps: {self.duplicate_timestamps:,}",
            f"OHLC violations:      {self.ohlc_violations:,}",
            f"Missing volume:       {self.missing_volume:,}",
        ]

        if self.first_timestamp is not None:
            lines.append(f"Range (ms):           {self.first_timestamp} .. {self.last_timestamp}")

        lines.append("=" * 60)
        lines.append(f"Overall: {'✓ CLEAN' if self.clean else '✗ ISSUES FOUND'}")
        lines.append("=" * 60)

        return "\n".join(lines)


def _violation_expr() -> pl.Expr:
    return (
        (pl.col('low') > pl.min_horizontal('open', 'close'))
        | (pl.col('high') < pl.max_horizontal('open', 'close'))
    )


def find_ohlc_violations(records: Sequence[OHLCV]) -> List[int]:
    """
    Return the indexes of records whose low/high do not bound open and close.

    Args:
        records: Records to inspect

    Returns:
        Sorted list of offending indexes
    """
    df = records_to_frame(records).with_row_index('index')
    return df.filter(_violation_expr())['index'].to_list()


def check_series(records: Sequence[OHLCV]) -> SeriesReport:
    """
    Inspect a record sequence for ordering, duplicates, and OHLC consistency.

    Args:
        records: Records to inspect

    Returns:
        SeriesReport describing the sequence
    """
    df = records_to_frame(records)

    if len(df) == 0:
        return SeriesReport(
            rows=0,
            is_sorted=True,
            duplicate_timestamps=0,
            ohlc_violations=0,
            missing_volume=0,
        )

    timestamps = df['timestamp']

    return SeriesReport(
        rows=len(df),
        is_sorted=bool((timestamps.diff().drop_nulls() >= 0).all()),
        duplicate_timestamps=len(df) - timestamps.n_unique(),
        ohlc_violations=int(df.select(_violation_expr().sum()).item()),
        missing_volume=df['volume'].null_count(),
        first_timestamp=timestamps.min(),
        last_timestamp=timestamps.max(),
    )
