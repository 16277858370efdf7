"""
Configuration constants and default settings for the candle pipeline.
"""

from typing import Dict, List

# Column aliases, matched against lower-cased, trimmed CSV headers.
# First alias present in the header wins.
COLUMN_ALIASES: Dict[str, List[str]] = {
    'timestamp': ['timestamp', 'time', 'date', 'datetime'],
    'open': ['open', 'o'],
    'high': ['high', 'h'],
    'low': ['low', 'l'],
    'close': ['close', 'c'],
    'volume': ['volume', 'vol', 'v'],
}

REQUIRED_COLUMNS = ['timestamp', 'open', 'high', 'low', 'close']
OPTIONAL_COLUMNS = ['volume']

# Named timeframe widths in milliseconds (enumeration order matters for
# auto-timeframe tie breaking)
TIMEFRAME_INTERVALS_MS: Dict[str, int] = {
    '1m': 60_000,
    '5m': 300_000,
    '15m': 900_000,
    '1h': 3_600_000,
    '1D': 86_400_000,
}

# Duration units accepted in free-form labels such as '4h' or '2d'
DURATION_UNITS_MS: Dict[str, int] = {
    's': 1_000,
    'm': 60_000,
    'h': 3_600_000,
    'd': 86_400_000,
    'w': 604_800_000,
}

# Timestamp format detection
FORMAT_SAMPLE_SIZE = 5              # Non-null values inspected per file
UNIX_SECONDS_THRESHOLD = 1e10       # Unix values below this are seconds

# Downsampling
LTTB_THRESHOLD = 10_000             # Above this many points, use LTTB
DEFAULT_MAX_POINTS = 2_000          # Display budget used by the chart

# Chart payload colors for volume bars
VOLUME_UP_COLOR = '#26a69a'
VOLUME_DOWN_COLOR = '#ef5350'
