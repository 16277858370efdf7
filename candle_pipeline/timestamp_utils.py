"""
Timestamp format detection and normalization utilities.

Handles the timestamp encodings found in uploaded price files:
- Unix timestamps in seconds (10 digits)
- Unix timestamps in milliseconds (13 digits)
- ISO 8601 date/times with a 'T' or space separator

Every format is normalized to an integer count of milliseconds since the
Unix epoch. Naive ISO values are interpreted as UTC.
"""

import math
import re
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Iterable, Optional

from dateutil.parser import isoparse

from candle_pipeline.config import FORMAT_SAMPLE_SIZE, UNIX_SECONDS_THRESHOLD


UNIX_PATTERN = re.compile(r'^[0-9]{10,13}$')
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# Exclusive upper bound of an Int64 millisecond column
INT64_LIMIT = float(2 ** 63)


class TimestampFormat(Enum):
    """Enumeration of supported timestamp formats."""
    ISO = "iso"
    UNIX = "unix"


def _parse_iso(value: str) -> Optional[int]:
    try:
        parsed = isoparse(value)
    except (ValueError, OverflowError):
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)

    return (parsed - EPOCH) // timedelta(milliseconds=1)


def detect_timestamp_format(value: str) -> Optional[TimestampFormat]:
    """
    Classify a single timestamp token by structural inspection.

    Args:
        value: Raw timestamp token from the CSV

    Returns:
        Detected format, or None if the token matches neither format

    Example:
        >>> detect_timestamp_format("1704103800")
        <TimestampFormat.UNIX: 'unix'>
        >>> detect_timestamp_format("2024-01-01T09:30:00Z")
        <TimestampFormat.ISO: 'iso'>
    """
    value = value.strip()

    if UNIX_PATTERN.match(value):
        return TimestampFormat.UNIX

    # A bare date like '2024-01-01' parses but carries no time component
    if ('T' in value or ' ' in value) and _parse_iso(value) is not None:
        return TimestampFormat.ISO

    return None


def detect_column_format(
    values: Iterable[Optional[str]],
    sample_size: int = FORMAT_SAMPLE_SIZE
) -> Optional[TimestampFormat]:
    """
    Detect the timestamp format of a column from its first non-null values.

    Args:
        values: Column values in file order
        sample_size: Number of non-null values to inspect (default: 5)

    Returns:
        First determinable format among the sampled values, or None
    """
    inspected = 0
    for value in values:
        if value is None or value.strip() == '':
            continue

        fmt = detect_timestamp_format(value)
        if fmt is not None:
            return fmt

        inspected += 1
        if inspected >= sample_size:
            break

    return None


def parse_timestamp(value: Optional[str], fmt: TimestampFormat) -> float:
    """
    Convert a timestamp token to epoch milliseconds using a known format.

    Never raises: a token that does not fit the format yields NaN, which the
    parser's row validation reports.

    Args:
        value: Raw timestamp token
        fmt: Format detected for the file

    Returns:
        Epoch milliseconds as a float (NaN if unparseable)
    """
    if value is None:
        return math.nan

    value = value.strip()

    if fmt == TimestampFormat.UNIX:
        # ASCII digits only; int() would also take '1_000' and other scripts
        if not (value.isascii() and value.isdigit()) or len(value) > 19:
            return math.nan
        number = int(value)
        # 10-digit values are seconds
        millis = float(number * 1000 if number < UNIX_SECONDS_THRESHOLD else number)
        return millis if millis < INT64_LIMIT else math.nan

    parsed = _parse_iso(value)
    return math.nan if parsed is None else float(parsed)
