"""Shared fixtures for the candle pipeline tests."""

import sys
from pathlib import Path

import numpy as np
import pytest

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from candle_pipeline.models import OHLCV


def create_synthetic_records(
    n_records: int = 1000,
    interval_ms: int = 60_000,
    base_price: float = 100.0,
    price_volatility: float = 1.0,
    start_time_ms: int = 1_704_067_200_000,
    with_volume: bool = True
) -> list:
    """
    Create a random-walk OHLCV series for testing.

    Args:
        n_records: Number of records to generate
        interval_ms: Spacing between records in milliseconds
        base_price: Starting price level
        price_volatility: Standard deviation of close-to-close moves
        start_time_ms: Timestamp of the first record
        with_volume: If False, every record has volume None

    Returns:
        List of OHLCV records sorted by timestamp
    """
    rng = np.random.default_rng(42)  # For reproducibility

    closes = base_price + np.cumsum(rng.normal(0, price_volatility, n_records))
    opens = np.concatenate([[base_price], closes[:-1]])
    spreads = rng.uniform(0.1, 1.0, n_records)
    highs = np.maximum(opens, closes) + spreads
    lows = np.minimum(opens, closes) - spreads
    volumes = rng.exponential(1000.0, n_records)

    return [
        OHLCV(
            timestamp=start_time_ms + i * interval_ms,
            open=float(opens[i]),
            high=float(highs[i]),
            low=float(lows[i]),
            close=float(closes[i]),
            volume=float(volumes[i]) if with_volume else None,
        )
        for i in range(n_records)
    ]


@pytest.fixture
def half_hour_records():
    """Three records 30 minutes apart, spanning two clock hours."""
    return [
        OHLCV(timestamp=1704103800000, open=100, high=105, low=95, close=102, volume=1000),
        OHLCV(timestamp=1704105600000, open=102, high=108, low=100, close=106, volume=1200),
        OHLCV(timestamp=1704107400000, open=106, high=110, low=103, close=108, volume=800),
    ]


@pytest.fixture
def minute_records():
    return create_synthetic_records(n_records=5000)


@pytest.fixture
def large_records():
    return create_synthetic_records(n_records=20_000)
