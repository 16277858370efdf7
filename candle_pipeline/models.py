"""
Domain records shared by every pipeline stage.

Records are immutable. Each stage builds a fresh list and never mutates the
records it received.
"""

from dataclasses import dataclass, field
from typing import Iterable, List, Optional

import polars as pl


OHLCV_SCHEMA = {
    'timestamp': pl.Int64,
    'open': pl.Float64,
    'high': pl.Float64,
    'low': pl.Float64,
    'close': pl.Float64,
    'volume': pl.Float64,
}


@dataclass(frozen=True)
class OHLCV:
    """
    One time-anchored price and volume observation.

    Attributes:
        timestamp: Milliseconds since the Unix epoch
        open: Opening price
        high: Highest price
        low: Lowest price
        close: Closing price
        volume: Traded volume, None when the source carries no volume
    """
    timestamp: int
    open: float
    high: float
    low: float
    close: float
    volume: Optional[float] = None

    @property
    def typical_price(self) -> float:
        """Mean of open, high, low and close."""
        return (self.open + self.high + self.low + self.close) / 4


@dataclass
class ParseResult:
    """
    Outcome of parsing one CSV document.

    Errors are returned as data. A non-empty ``errors`` list together with
    zero ``records`` means the whole file failed; errors next to records
    describe rows that were skipped.
    """
    records: List[OHLCV] = field(default_factory=list)
    headers: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors and len(self.records) > 0

    @property
    def failed(self) -> bool:
        return bool(self.errors) and len(self.records) == 0

    def to_frame(self) -> pl.DataFrame:
        return records_to_frame(self.records)


def records_to_frame(records: Iterable[OHLCV]) -> pl.DataFrame:
    """
    Build a polars DataFrame view of a record sequence.

    The schema is fixed so that an all-None volume column is still Float64.
    """
    records = list(records)
    return pl.DataFrame(
        {
            'timestamp': [r.timestamp for r in records],
            'open': [r.open for r in records],
            'high': [r.high for r in records],
            'low': [r.low for r in records],
            'close': [r.close for r in records],
            'volume': [r.volume for r in records],
        },
        schema=OHLCV_SCHEMA,
    )


def frame_to_records(df: pl.DataFrame) -> List[OHLCV]:
    """Convert an OHLCV DataFrame back into immutable records."""
    return [
        OHLCV(
            timestamp=int(row['timestamp']),
            open=row['open'],
            high=row['high'],
            low=row['low'],
            close=row['close'],
            volume=row.get('volume'),
        )
        for row in df.iter_rows(named=True)
    ]
