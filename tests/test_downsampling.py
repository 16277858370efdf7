"""
Test Suite for Downsampling

This module verifies:
1. Identity when the series already fits the budget
2. Stride sampling (approximate count, last point kept)
3. LTTB (exact count, endpoints kept, extrema preserved)
4. Adaptive strategy selection
5. Parameter validation

Run tests with: pytest tests/test_downsampling.py -v
"""

import pytest

from conftest import create_synthetic_records

from candle_pipeline.config import LTTB_THRESHOLD
from candle_pipeline.downsampling import (
    downsample,
    downsample_adaptive,
    downsample_lttb,
    downsample_stride,
)
from candle_pipeline.models import OHLCV


def _flat_series_with_spike(n: int, spike_index: int) -> list:
    records = []
    for i in range(n):
        price = 200.0 if i == spike_index else 100.0
        records.append(OHLCV(timestamp=i * 60_000, open=price, high=price, low=price, close=price))
    return records


def test_identity_when_within_budget(minute_records):
    """A series no longer than max_points is returned as-is."""
    assert downsample(minute_records, len(minute_records)) is minute_records
    assert downsample(minute_records, len(minute_records) + 1) is minute_records
    assert downsample_lttb(minute_records, 10_000) is minute_records
    assert downsample_stride(minute_records, 10_000) is minute_records


def test_stride_sampling(minute_records):
    """
    Test stride sampling on 5000 records with a 1000 point budget.

    Verifies:
    - Every 5th record is kept starting at index 0
    - The final record is appended, overshooting the budget by one
    """
    result = downsample_stride(minute_records, 1000)

    print(f"Input: {len(minute_records)} records, output: {len(result)} records")

    assert len(result) == 1001
    assert result[0] is minute_records[0]
    assert result[1] is minute_records[5]
    assert result[-2] is minute_records[4995]
    assert result[-1] is minute_records[-1]


def test_stride_does_not_duplicate_last_record():
    """When the stride lands on the last record it is not appended twice."""
    records = create_synthetic_records(n_records=9)

    result = downsample_stride(records, 4)  # step 2 -> indexes 0, 2, 4, 6, 8

    assert result == [records[i] for i in (0, 2, 4, 6, 8)]


def test_lttb_exact_count_and_endpoints(large_records):
    """
    Test LTTB on 20000 records with a 2000 point budget.

    Verifies:
    - Output has exactly max_points records
    - First and last records are the input's
    - Output stays sorted and only contains input records
    """
    result = downsample(large_records, 2000)

    print(f"Input: {len(large_records)} records, output: {len(result)} records")

    assert len(result) == 2000
    assert result[0] is large_records[0]
    assert result[-1] is large_records[-1]

    timestamps = [r.timestamp for r in result]
    assert timestamps == sorted(set(timestamps))

    input_ids = {id(r) for r in large_records}
    assert all(id(r) in input_ids for r in result)


def test_lttb_exact_count_for_uneven_buckets():
    """Bucket sizes that do not divide evenly still give an exact count."""
    records = create_synthetic_records(n_records=1003)

    for max_points in (3, 7, 100, 333, 1002):
        result = downsample_lttb(records, max_points)
        assert len(result) == max_points, max_points
        assert result[0] is records[0]
        assert result[-1] is records[-1]


def test_lttb_keeps_spike():
    """
    Test that LTTB preserves a visually significant extreme.

    On a flat series the only record with non-zero triangle area is the
    spike, so it must be selected from its bucket.
    """
    records = _flat_series_with_spike(30, spike_index=14)

    result = downsample_lttb(records, 5)

    assert len(result) == 5
    assert records[14] in result
    assert any(r.high == 200.0 for r in result)


def test_lttb_two_points():
    records = create_synthetic_records(n_records=50)

    assert downsample_lttb(records, 2) == [records[0], records[-1]]


def test_adaptive_strategy_selection():
    """
    Test that 'auto' switches strategy on input size.

    Verifies:
    - At or below the threshold, stride is used (approximate count)
    - Above the threshold, LTTB is used (exact count)
    """
    moderate = create_synthetic_records(n_records=LTTB_THRESHOLD)
    large = create_synthetic_records(n_records=LTTB_THRESHOLD + 1)

    assert downsample_adaptive(moderate, 3000) == downsample_stride(moderate, 3000)
    assert downsample_adaptive(large, 3000) == downsample_lttb(large, 3000)
    assert len(downsample_adaptive(large, 3000)) == 3000


def test_forced_methods(minute_records):
    assert downsample(minute_records, 1000, method='lttb') == downsample_lttb(minute_records, 1000)
    assert downsample(minute_records, 1000, method='stride') == downsample_stride(minute_records, 1000)


def test_invalid_parameters(minute_records):
    """max_points below 2 and unknown methods are rejected."""
    for bad in (1, 0, -5):
        with pytest.raises(ValueError):
            downsample(minute_records, bad)
        with pytest.raises(ValueError):
            downsample_lttb(minute_records, bad)
        with pytest.raises(ValueError):
            downsample_stride(minute_records, bad)

    with pytest.raises(ValueError):
        downsample(minute_records, 100, method='average')
