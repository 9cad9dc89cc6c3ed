"""Row normalization: raw spreadsheet rows to canonical RawEntry records."""

import logging
import re

from standings import POINTS, STABLEFORD, STROKE_PLAY, RawEntry
from standings.headers import NAME, POSITION, SCORE, classify_headers, normalize_header
from standings.reader import is_blank_row, parse_float, parse_int

log = logging.getLogger(__name__)

_ROLE_PREFIX_RE = re.compile(r'^(player|participant|golfer|member)\b\s*', re.IGNORECASE)
_SCORE_SUFFIX_RE = re.compile(r'\s*\b(score|points|total|league)$', re.IGNORECASE)
_DIGITS_RE = re.compile(r'^\d+$')

# Golf shorthand for a round level with par
_EVEN_PAR = ('E', 'EVEN')
# Score cells marking a player who did not finish; such rows are dropped
WITHDRAWN_MARKERS = ('N/A', 'NA')

MAX_NAME_LENGTH = 50

# Structured exports (Major / Tour Event) use fixed column names
TOKEN_COLUMNS = ('player name', 'name', 'player')
HANDICAP_COLUMNS = ('course handicap', 'handicap', 'hcp')
POSITION_COLUMNS = ('position', 'pos')
GROSS_POINTS_COLUMNS = ('gross points',)
NET_POINTS_COLUMNS = ('net points',)
SCORE_COLUMNS = {
    STROKE_PLAY: ('score', 'net', 'net score', 'to par'),
    STABLEFORD: ('total', 'points', 'stableford', 'score'),
    POINTS: ('points', 'total', 'score'),
}


def parse_score(value) -> float | None:
    """Parse a score cell; ``E``/``Even`` count as level par."""
    if isinstance(value, str) and value.strip().upper() in _EVEN_PAR:
        return 0.0
    return parse_float(value)


def clean_player_name(name: str) -> str:
    """Strip role-word prefixes and score-word suffixes from a name cell."""
    name = _ROLE_PREFIX_RE.sub('', name.strip())
    name = _SCORE_SUFFIX_RE.sub('', name)
    return name.strip()


def _looks_like_name(value: str) -> bool:
    return (
        bool(value)
        and parse_float(value) is None
        and 1 < len(value) < MAX_NAME_LENGTH
        and not _DIGITS_RE.match(value.strip())
    )


def _tags_at(tags: list[frozenset[str]], index: int) -> frozenset[str]:
    return tags[index] if index < len(tags) else frozenset()


def normalize_row(
    tags: list[frozenset[str]],
    values: list[str],
    ordinal: int,
) -> RawEntry | None:
    """Normalize one free-form row.

    The first column tagged ``name`` that holds a value gives the player
    token; the last parseable ``score`` and ``position`` cells win. When
    no column is tagged ``name`` the first plausible text cell is used.
    Rows without any score column fall back to the first numeric cell
    past the end of the header row for the score and the next one for
    the position, which covers header-less and single-header exports.
    Named columns that carry no tag (handicap, club) are never read.

    Args:
        tags: Header tags from classify_headers(), one per column.
        values: The row's cell texts.
        ordinal: 1-based row number among data rows.

    Returns:
        RawEntry, or None for a fully blank row.
    """
    if is_blank_row(values):
        return None

    name = ''
    score = None
    position = None
    score_tagged = False
    position_tagged = False

    for i, value in enumerate(values):
        column_tags = _tags_at(tags, i)
        if NAME in column_tags and value and not name:
            name = value
        if SCORE in column_tags:
            score_tagged = True
            parsed = parse_score(value)
            if parsed is not None:
                score = parsed
        if POSITION in column_tags:
            position_tagged = True
            parsed_position = parse_int(value)
            if parsed_position is not None:
                position = parsed_position

    if not name:
        name = next((v for v in values if _looks_like_name(v)), '')

    if not score_tagged:
        untagged = [
            v for i, v in enumerate(values)
            if v and i >= len(tags) and parse_float(v) is not None
        ]
        if untagged:
            score = parse_score(untagged[0])
            if not position_tagged and len(untagged) > 1:
                position = parse_int(untagged[1])

    name = clean_player_name(name) if name else ''
    if not name:
        name = f'Player {ordinal}'

    return RawEntry(
        player_token=name,
        raw_score=score if score is not None else 0.0,
        raw_position=position if position is not None else ordinal,
        raw_handicap=0.0,
        score_parsed=score is not None,
        row_number=ordinal,
    )


def normalize_rows(headers: list[str], rows: list[list[str]]) -> list[RawEntry]:
    """Classify headers once and normalize every non-blank row."""
    tags = classify_headers([normalize_header(h) for h in headers])
    entries: list[RawEntry] = []
    for ordinal, values in enumerate(rows, start=1):
        entry = normalize_row(tags, values, ordinal)
        if entry is not None:
            entries.append(entry)
    log.info("%d entries normalized from %d rows", len(entries), len(rows))
    return entries


def _first_value(record: dict[str, str], keys: tuple[str, ...]) -> str:
    for key in keys:
        value = record.get(key, '')
        if value:
            return value
    return ''


def read_structured_rows(
    headers: list[str],
    rows: list[list[str]],
    fmt: str = STROKE_PLAY,
) -> list[RawEntry]:
    """Read an export with the fixed columns of Major and Tour Event uploads.

    Handicap comes from an explicit column here (``Course Handicap``,
    ``Handicap`` or ``HCP``); direct points from ``Gross Points`` and
    ``Net Points``. Rows whose score cell reads N/A are withdrawals and
    are skipped.

    Args:
        headers: Header row of the export.
        rows: Data rows.
        fmt: Tournament format, selecting which columns hold the score.

    Returns:
        List of RawEntry, one per kept row.
    """
    keys = [normalize_header(h) for h in headers]
    score_columns = SCORE_COLUMNS.get(fmt, SCORE_COLUMNS[STROKE_PLAY])
    entries: list[RawEntry] = []

    for ordinal, values in enumerate(rows, start=1):
        if is_blank_row(values):
            continue
        # First non-empty cell wins for duplicated headers
        record: dict[str, str] = {}
        for key, value in zip(keys, values):
            if key and value and key not in record:
                record[key] = value

        token = _first_value(record, TOKEN_COLUMNS) or f'Player {ordinal}'
        score_text = _first_value(record, score_columns)
        if score_text.upper() in WITHDRAWN_MARKERS:
            log.warning("Row %d (%s) skipped: score is %s", ordinal, token, score_text)
            continue

        score = parse_score(score_text)
        handicap = parse_float(_first_value(record, HANDICAP_COLUMNS))
        position = parse_int(_first_value(record, POSITION_COLUMNS))

        entries.append(RawEntry(
            player_token=token,
            raw_score=score if score is not None else 0.0,
            raw_position=position if position is not None else ordinal,
            raw_handicap=handicap if handicap is not None else 0.0,
            gross_points=parse_float(_first_value(record, GROSS_POINTS_COLUMNS)),
            net_points=parse_float(_first_value(record, NET_POINTS_COLUMNS)),
            score_parsed=score is not None,
            row_number=ordinal,
        ))

    log.info("%d entries read from %d structured rows", len(entries), len(rows))
    return entries
