"""
CSV parsing for uploaded OHLCV price files.

Turns delimited text with a header row into a sorted list of OHLCV records.
Problems are collected into an error list instead of raised:

- File-level problems (no header, missing required columns, unknown
  timestamp format) stop parsing and return no records.
- Row-level problems (non-numeric prices, bad timestamps) drop the row and
  parsing continues.
"""

import csv
import io
import json
import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union

import polars as pl

from candle_pipeline.config import COLUMN_ALIASES, REQUIRED_COLUMNS
from candle_pipeline.models import OHLCV_SCHEMA, ParseResult, frame_to_records
from candle_pipeline.timestamp_utils import detect_column_format, parse_timestamp

logger = logging.getLogger(__name__)

PRICE_COLUMNS = ['open', 'high', 'low', 'close']


def _normalize_header(header: str) -> str:
    return header.strip().lower()


def _tokenize(text: str, errors: List[str]) -> Tuple[List[str], List[List[str]]]:
    """
    Split CSV text into a header row and data rows.

    Blank lines are skipped. Ragged rows are reported in ``errors`` and
    kept: short rows are padded with empty fields, long rows truncated.
    A line the tokenizer cannot read is reported and dropped, and reading
    continues with the next line.

    Returns:
        Tuple of (header fields, data rows)
    """
    if text.startswith('\ufeff'):
        text = text[1:]

    reader = csv.reader(io.StringIO(text))
    header: Optional[List[str]] = None
    rows: List[List[str]] = []

    while True:
        try:
            fields = next(reader)
        except StopIteration:
            break
        except csv.Error as e:
            errors.append(f"CSV parse error at line {reader.line_num}: {e}")
            continue

        if not fields:
            continue

        # The first non-empty line is the header, even if every name is blank
        if header is None:
            header = fields
            continue

        if all(field == '' for field in fields):
            continue

        row_number = len(rows) + 1
        if len(fields) < len(header):
            errors.append(
                f"Too few fields: expected {len(header)} fields but parsed "
                f"{len(fields)} (row {row_number})"
            )
            fields = fields + [''] * (len(header) - len(fields))
        elif len(fields) > len(header):
            errors.append(
                f"Too many fields: expected {len(header)} fields but parsed "
                f"{len(fields)} (row {row_number})"
            )
            fields = fields[:len(header)]

        rows.append(fields)

    return header or [], rows


def _resolve_columns(headers: Sequence[str]) -> Dict[str, Optional[int]]:
    """
    Map each logical column to the index of its first matching header.

    Aliases are tried in order, so 'timestamp' beats 'time' when both exist.
    """
    normalized = [_normalize_header(h) for h in headers]
    resolved: Dict[str, Optional[int]] = {}

    for column, aliases in COLUMN_ALIASES.items():
        resolved[column] = None
        for alias in aliases:
            if alias in normalized:
                resolved[column] = normalized.index(alias)
                break

    return resolved


def _row_as_json(headers: Sequence[str], fields: Sequence[str]) -> str:
    return json.dumps(dict(zip(headers, fields)))


def _to_float(column: str) -> pl.Expr:
    return pl.col(column).str.strip_chars().cast(pl.Float64, strict=False)


def parse(text: str, validate_ohlc: bool = False) -> ParseResult:
    """
    Parse CSV text into OHLCV records.

    Columns are matched case-insensitively against alias lists (e.g. 'time'
    or 'date' for the timestamp, 'vol' or 'v' for volume), in any order.
    Volume is optional. Timestamps may be ISO 8601 or Unix seconds /
    milliseconds; the format is detected once from the first 5 values.

    Args:
        text: Raw CSV text including the header row
        validate_ohlc: If True, also drop rows whose low/high do not bound
            open and close. By default such rows pass through unchanged.

    Returns:
        ParseResult with records sorted ascending by timestamp, the header
        fields as written, and all collected error messages

    Example:
        >>> result = parse("timestamp,open,high,low,close\\n"
        ...                "2024-01-01T09:30:00Z,100,105,95,102")
        >>> result.records[0].timestamp
        1704101400000
    """
    errors: List[str] = []
    headers, rows = _tokenize(text, errors)

    if not any(h.strip() for h in headers):
        errors.append('No headers found in CSV')
        logger.warning("CSV rejected: no headers found")
        return ParseResult(records=[], headers=[], errors=errors)

    columns = _resolve_columns(headers)

    missing = [name for name in REQUIRED_COLUMNS if columns[name] is None]
    if missing:
        errors.append(f"Missing required columns: {', '.join(missing)}")
        logger.warning(f"CSV rejected: missing required columns {missing}")
        return ParseResult(records=[], headers=headers, errors=errors)

    ts_index = columns['timestamp']
    timestamp_format = detect_column_format(row[ts_index] for row in rows)
    if timestamp_format is None:
        errors.append('Could not detect timestamp format. Expected ISO 8601 or Unix timestamp')
        logger.warning("CSV rejected: undetermined timestamp format")
        return ParseResult(records=[], headers=headers, errors=errors)

    vol_index = columns['volume']
    raw = pl.DataFrame(
        {
            'row': list(range(len(rows))),
            'timestamp': [parse_timestamp(row[ts_index], timestamp_format) for row in rows],
            **{name: [row[columns[name]] for row in rows] for name in PRICE_COLUMNS},
            'volume': [row[vol_index] if vol_index is not None else None for row in rows],
        },
        schema={
            'row': pl.Int64,
            'timestamp': pl.Float64,
            **{name: pl.String for name in PRICE_COLUMNS},
            'volume': pl.String,
        },
    )

    typed = raw.with_columns(
        [_to_float(name) for name in PRICE_COLUMNS] + [_to_float('volume')]
    ).with_columns(
        # Non-finite volume is treated as absent, not as a row error
        pl.when(pl.col('volume').is_finite())
        .then(pl.col('volume'))
        .otherwise(None)
        .alias('volume'),
        pl.all_horizontal(
            [pl.col(name).is_finite().fill_null(False) for name in ['timestamp'] + PRICE_COLUMNS]
        ).alias('valid'),
    )

    for row_index in typed.filter(~pl.col('valid'))['row']:
        errors.append(f"Invalid data in row: {_row_as_json(headers, rows[row_index])}")

    valid = typed.filter(pl.col('valid'))

    if validate_ohlc:
        violated = (
            (pl.col('low') > pl.min_horizontal('open', 'close'))
            | (pl.col('high') < pl.max_horizontal('open', 'close'))
        )
        for row_index in valid.filter(violated)['row']:
            errors.append(
                f"OHLC bounds violated in row: {_row_as_json(headers, rows[row_index])}"
            )
        valid = valid.filter(~violated)

    parsed = (
        valid
        .with_columns(pl.col('timestamp').cast(pl.Int64))
        .select(list(OHLCV_SCHEMA))
        .sort('timestamp', maintain_order=True)
    )
    records = frame_to_records(parsed)

    logger.debug(
        f"Parsed {len(records):,} of {len(rows):,} rows "
        f"({timestamp_format.value} timestamps, {len(errors)} errors)"
    )
    return ParseResult(records=records, headers=headers, errors=errors)


def parse_file(path: Union[str, Path], validate_ohlc: bool = False) -> ParseResult:
    """
    Read a CSV file from disk and parse it.

    Args:
        path: Path to a UTF-8 CSV file (a leading BOM is tolerated)
        validate_ohlc: Passed through to parse()

    Returns:
        ParseResult for the file contents
    """
    path = Path(path)
    text = path.read_text(encoding='utf-8-sig')
    return parse(text, validate_ohlc=validate_ohlc)


# Name used by upload callers
parse_csv = parse
