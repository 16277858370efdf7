"""
Timeframe labels and their millisecond widths.

Label-to-width resolution is a pure lookup kept apart from the aggregator,
which only ever sees a resolved width.
"""

import logging
import re
from enum import Enum
from typing import Optional, Sequence, Union

import numpy as np

from candle_pipeline.config import DURATION_UNITS_MS, TIMEFRAME_INTERVALS_MS
from candle_pipeline.models import OHLCV

logger = logging.getLogger(__name__)

DURATION_PATTERN = re.compile(r'^(\d+)([smhdw])$', re.IGNORECASE)


class Timeframe(str, Enum):
    """Named bucket widths offered to chart users, plus the 'auto' sentinel."""
    M1 = '1m'
    M5 = '5m'
    M15 = '15m'
    H1 = '1h'
    D1 = '1D'
    AUTO = 'auto'

    @property
    def milliseconds(self) -> Optional[int]:
        """Width in milliseconds, None for AUTO."""
        return TIMEFRAME_INTERVALS_MS.get(self.value)


TimeframeLike = Union[Timeframe, str, int]


def resolve_timeframe_ms(timeframe: TimeframeLike) -> Optional[int]:
    """
    Resolve a timeframe label or width to milliseconds.

    Args:
        timeframe: One of:
            - Timeframe member, e.g. Timeframe.H1
            - str: named label ('1m', '5m', '15m', '1h', '1D', 'auto') or a
              duration such as '30s', '4h', '2d', '1w'
            - int: width in milliseconds

    Returns:
        Width in milliseconds, or None for 'auto'

    Raises:
        ValueError: If the label is unknown or the width is not positive

    Example:
        >>> resolve_timeframe_ms('1h')
        3600000
        >>> resolve_timeframe_ms('4h')
        14400000
    """
    if isinstance(timeframe, Timeframe):
        return timeframe.milliseconds

    if isinstance(timeframe, bool):
        raise ValueError(f"Invalid timeframe: {timeframe!r}")

    if isinstance(timeframe, int):
        width_ms = timeframe
    elif isinstance(timeframe, str):
        label = timeframe.strip()
        if label == Timeframe.AUTO.value:
            return None
        if label in TIMEFRAME_INTERVALS_MS:
            return TIMEFRAME_INTERVALS_MS[label]

        match = DURATION_PATTERN.match(label)
        if not match:
            raise ValueError(
                f"Unknown timeframe: '{timeframe}'. "
                f"Valid options: {[tf.value for tf in Timeframe]} "
                "or a duration like '30s', '4h', '2d', '1w'"
            )
        width_ms = int(match.group(1)) * DURATION_UNITS_MS[match.group(2).lower()]
    else:
        raise ValueError(
            f"Invalid timeframe type: {type(timeframe)}. "
            "Expected Timeframe, str, or int"
        )

    if width_ms <= 0:
        raise ValueError(f"Timeframe width must be positive, got {width_ms} ms")

    return width_ms


def infer_timeframe(records: Sequence[OHLCV]) -> Timeframe:
    """
    Pick the named timeframe closest to the series' mean sampling interval.

    With fewer than two records there is no interval to measure and the
    smallest timeframe is returned. Ties go to the earlier (smaller)
    timeframe.

    Args:
        records: Records sorted ascending by timestamp

    Returns:
        The closest named Timeframe (never AUTO)
    """
    if len(records) < 2:
        return Timeframe.M1

    timestamps = np.array([r.timestamp for r in records], dtype=np.int64)
    avg_interval = float(np.diff(timestamps).mean())

    closest = Timeframe.M1
    min_diff = float('inf')
    for timeframe in Timeframe:
        if timeframe is Timeframe.AUTO:
            continue
        diff = abs(timeframe.milliseconds - avg_interval)
        if diff < min_diff:
            min_diff = diff
            closest = timeframe

    logger.debug(f"Mean interval {avg_interval:.0f} ms -> timeframe {closest.value}")
    return closest


# Name used by chart callers
calculate_auto_timeframe = infer_timeframe
