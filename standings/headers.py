"""Header classification for free-form result exports."""

from standings.reader import normalize_whitespace

NAME = 'name'
SCORE = 'score'
POSITION = 'position'

NAME_PATTERNS: tuple[str, ...] = (
    'name', 'player name', 'player', 'display name', 'full name',
    'first name', 'last name', 'participant', 'golfer', 'member',
)
SCORE_PATTERNS: tuple[str, ...] = (
    'score', 'total', 'points', 'final score', 'net', 'gross', 'result',
    'league score', 'weekly score', 'round score',
)
POSITION_PATTERNS: tuple[str, ...] = (
    'position', 'place', 'rank', 'pos', 'placement', 'finish',
    'league position', 'weekly rank',
)

_PATTERN_TABLE: tuple[tuple[str, tuple[str, ...]], ...] = (
    (NAME, NAME_PATTERNS),
    (SCORE, SCORE_PATTERNS),
    (POSITION, POSITION_PATTERNS),
)


def normalize_header(value) -> str:
    """Lower-case and whitespace-normalize a raw header cell."""
    if value is None:
        return ''
    return normalize_whitespace(str(value)).lower()


def classify_header(header: str) -> frozenset[str]:
    """Return the semantic tags a single header carries.

    Matching is plain substring containment, so one header may carry more
    than one tag (``'player score'`` is both a name and a score column).

    Args:
        header: Header text; normalized again here, so raw cells are fine.

    Returns:
        Frozen set drawn from ``{'name', 'score', 'position'}``.
    """
    text = normalize_header(header)
    if not text:
        return frozenset()
    return frozenset(
        tag for tag, patterns in _PATTERN_TABLE
        if any(pattern in text for pattern in patterns)
    )


def classify_headers(headers: list[str]) -> list[frozenset[str]]:
    """Classify every header, keeping the left-to-right column order."""
    return [classify_header(h) for h in headers]


def find_column(tags: list[frozenset[str]], tag: str) -> int | None:
    """Index of the first column carrying ``tag``, or None."""
    for index, column_tags in enumerate(tags):
        if tag in column_tags:
            return index
    return None


def columns_with(tags: list[frozenset[str]], tag: str) -> list[int]:
    """Indices of all columns carrying ``tag``, left to right."""
    return [i for i, column_tags in enumerate(tags) if tag in column_tags]
