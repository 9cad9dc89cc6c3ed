"""CSV/XLSX reader with encoding detection and cell normalization."""

import csv
import io
import logging
import re
from pathlib import Path

from openpyxl import load_workbook

from standings import CLUBS

log = logging.getLogger(__name__)

# Matches any sequence of whitespace (including Unicode whitespace like U+2006)
_WHITESPACE_RE = re.compile(r'\s+')
# Leading number the way spreadsheet tools read it: '72', '+2', '-1.5', '3rd'
_FLOAT_RE = re.compile(r'[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?')
_INT_RE = re.compile(r'[+-]?\d+')

XLSX_SUFFIXES = ('.xlsx', '.xlsm')
MAPPING_COLUMNS = ('trackman_id', 'display_name', 'club')


def detect_encoding(path: Path) -> str:
    """Detect file encoding by checking for BOM bytes.

    Args:
        path: Path to the CSV file.

    Returns:
        Encoding string suitable for open().
    """
    with open(path, 'rb') as f:
        bom = f.read(2)
    if bom == b'\xff\xfe':
        return 'utf-16-le'
    return 'utf-8-sig'


def normalize_whitespace(value: str) -> str:
    """Collapse runs of whitespace into one space and strip the ends."""
    return _WHITESPACE_RE.sub(' ', value).strip()


def cell_text(value) -> str:
    """Render a raw cell (CSV string or workbook value) as trimmed text."""
    if value is None:
        return ''
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return normalize_whitespace(str(value))


def parse_float(value) -> float | None:
    """Parse the leading number of a cell, or None if there is none.

    Numbers already typed by the workbook pass through unchanged, NaN
    included, so callers can decide how to substitute it.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if value is None:
        return None
    match = _FLOAT_RE.match(str(value).strip())
    return float(match.group()) if match else None


def parse_int(value) -> int | None:
    """Parse the leading integer of a cell, or None if there is none."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value == value else None
    if value is None:
        return None
    match = _INT_RE.match(str(value).strip())
    return int(match.group()) if match else None


def is_blank_row(values: list[str]) -> bool:
    """True when every cell of a row is empty."""
    return all(not v for v in values)


def is_number(value: str) -> bool:
    """True when the whole cell is a number ('-3', '72.5'), not just its start."""
    return _FLOAT_RE.fullmatch(value.strip()) is not None


def looks_like_header(values: list[str], next_values: list[str] | None = None) -> bool:
    """Guess whether the first CSV line is a header row.

    A header line holds no numeric cell and leaves no column empty that
    the following line fills; otherwise it is taken as data.

    Args:
        values: Cells of the first line.
        next_values: Cells of the second line, if any.
    """
    cells = [v for v in values if v]
    if not cells or any(is_number(v) for v in cells):
        return False
    if next_values is not None:
        for i, v in enumerate(values):
            if not v and i < len(next_values) and next_values[i]:
                return False
    return True


def read_csv_text(text: str) -> tuple[list[str], list[list[str]]]:
    """Split comma-delimited text into a header list and data rows.

    The header row is optional: when the first line already looks like
    data, the header list is empty and every line is a row.

    Args:
        text: CSV content.

    Returns:
        Tuple of (headers, rows); blank lines are dropped.
    """
    text = text.lstrip('\ufeff')
    rows = [
        [cell_text(v) for v in row]
        for row in csv.reader(io.StringIO(text))
    ]
    rows = [r for r in rows if not is_blank_row(r)]
    if not rows:
        return [], []
    if looks_like_header(rows[0], rows[1] if len(rows) > 1 else None):
        return rows[0], rows[1:]
    log.debug("No header row detected, treating every line as data")
    return [], rows


def read_csv(path: str | Path) -> tuple[list[str], list[list[str]]]:
    """Read a CSV results export from disk.

    Raises:
        FileNotFoundError: If the file does not exist.
    """
    path = Path(path)
    encoding = detect_encoding(path)
    with open(path, 'r', encoding=encoding, newline='') as f:
        content = f.read()
    headers, rows = read_csv_text(content)
    log.info("%d rows read from %s", len(rows), path)
    return headers, rows


def read_xlsx(path: str | Path) -> tuple[list[str], list[list[str]]]:
    """Read the first sheet of a workbook; its first row is the header.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the first sheet is empty.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(path)

    workbook = load_workbook(path, read_only=True, data_only=True)
    try:
        sheet = workbook.worksheets[0]
        rows = [
            [cell_text(v) for v in row]
            for row in sheet.iter_rows(values_only=True)
        ]
    finally:
        workbook.close()

    if not rows:
        raise ValueError(f"Workbook {path} has an empty first sheet.")

    headers = rows[0]
    data = [r for r in rows[1:] if not is_blank_row(r)]
    log.info("%d rows read from %s", len(data), path)
    return headers, data


def read_table(path: str | Path) -> tuple[list[str], list[list[str]]]:
    """Read a results export, dispatching on the file suffix.

    Raises:
        ValueError: For unsupported file types.
    """
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix == '.csv':
        return read_csv(path)
    if suffix in XLSX_SUFFIXES:
        return read_xlsx(path)
    raise ValueError(f"Unsupported file type {suffix!r}: use .csv or .xlsx")


def read_player_mappings(path: str | Path) -> tuple[list[dict], list[str]]:
    """Read a player mapping CSV (trackman_id, display_name, club).

    Invalid rows are reported and left out; valid rows are returned.

    Args:
        path: Path to the mapping CSV file.

    Returns:
        Tuple of (valid mapping dicts, error messages).

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If required columns are missing.
    """
    path = Path(path)
    encoding = detect_encoding(path)

    with open(path, 'r', encoding=encoding, newline='') as f:
        content = f.read().lstrip('\ufeff')

    reader = csv.DictReader(io.StringIO(content))
    if reader.fieldnames is None:
        raise ValueError(f"File {path} is empty or has no header row.")
    actual_cols = {normalize_whitespace(c) for c in reader.fieldnames}
    missing = [c for c in MAPPING_COLUMNS if c not in actual_cols]
    if missing:
        raise ValueError(f"Missing columns in {path}: {', '.join(missing)}")

    mappings: list[dict] = []
    errors: list[str] = []
    for row_num, row in enumerate(reader, start=2):
        cleaned = {normalize_whitespace(k): normalize_whitespace(v or '')
                   for k, v in row.items() if k is not None}
        row_errors = []
        for col in MAPPING_COLUMNS:
            if not cleaned.get(col):
                row_errors.append(f"Row {row_num}: {col} is required")
        club = cleaned.get('club', '')
        if club and club not in CLUBS:
            row_errors.append(
                f"Row {row_num}: club must be one of {', '.join(CLUBS)}, got {club!r}"
            )
        if row_errors:
            errors.extend(row_errors)
            continue
        mappings.append({col: cleaned[col] for col in MAPPING_COLUMNS})

    if errors:
        log.warning("%d problem(s) in player mappings %s", len(errors), path)
    log.info("%d player mappings read from %s", len(mappings), path)
    return mappings, errors
