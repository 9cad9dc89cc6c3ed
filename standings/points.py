"""Points curves and position assignment with tie handling."""

import logging
from collections.abc import Callable, Iterator, Mapping
from types import MappingProxyType

from standings import POINTS, STABLEFORD, ScoredEntry

log = logging.getLogger(__name__)

TIE_TOLERANCE = 0.001

# Points by 1-based finishing position; index 0 is position 1
POINTS_TABLES: Mapping[str, tuple[float, ...]] = MappingProxyType({
    'Major': (
        750, 400, 350, 325, 300, 275, 250, 225, 200, 175,
        150, 130, 120, 110, 90, 80, 70, 65, 60, 55,
        50, 48, 46, 44, 42, 40, 38, 36, 34, 32.5,
        31, 29.5, 28, 26.5, 25, 24, 23, 22, 21, 20.25,
        19.5, 18.75, 18, 17.25, 16.5, 15.75, 15, 14.25, 13.5, 13,
        12.5, 12, 11.5, 11, 10.5, 10, 9.5, 9, 8.5, 8,
        7.75, 7.5, 7.25, 7,
    ),
    'Tour Event': (
        500, 300, 190, 135, 110, 100, 90, 85, 80, 75,
        70, 65, 60, 55, 53, 51, 49, 47, 45, 43,
        41, 39, 37, 35.5, 34, 32.5, 31, 29.5, 28, 26.5,
        25, 23.5, 22, 21, 20, 19, 18, 17, 16, 15,
        14, 13, 12, 11, 10.5, 10, 9.5, 9, 8.5, 8,
        7.5, 7, 6.5, 6, 5.8, 5.6, 5.4, 5.2, 5, 4.8,
        4.6, 4.4, 4.2, 4, 3.8,
    ),
    'League': (
        93.75, 50, 43.75, 40.625, 37.5, 34.375, 28.125, 25, 21.875, 18.75,
        16.25, 15, 13.75, 11.25, 10, 8.75, 8.125, 7.5, 6.875, 6,
    ),
    'SUPR': (
        93.75, 50, 43.75, 40.625, 37.5, 34.375, 28.125, 25, 21.875, 18.75,
        16.25, 15, 13.75, 11.25, 10, 8.75, 8.125, 7.5, 6.875, 6,
    ),
})

# Tiers that award nothing past the end of their table
_NO_FALLBACK_TIERS = ('League',)


def points_for_position(
    position: int,
    tier: str,
    tables: Mapping[str, tuple[float, ...]] = POINTS_TABLES,
) -> float:
    """Points awarded for a finishing position in a tournament tier.

    Positions past the end of the table earn ``max(30 - position, 5)``,
    except in League events, which pay nothing there.

    Raises:
        ValueError: For an unknown tier or a position below 1.
    """
    if tier not in tables:
        raise ValueError(f"No points table for tier {tier!r}")
    if position < 1:
        raise ValueError(f"Position must be 1 or higher, got {position}")

    table = tables[tier]
    if position <= len(table):
        return float(table[position - 1])
    if tier in _NO_FALLBACK_TIERS:
        return 0.0
    return float(max(30 - position, 5))


def _sort_value(kind: str, fmt: str) -> Callable[[ScoredEntry], float]:
    field = f'{kind}_points' if fmt == POINTS else f'{kind}_score'
    return lambda entry: getattr(entry, field) or 0.0


def sort_entries(entries: list[ScoredEntry], fmt: str, kind: str) -> list[ScoredEntry]:
    """Order entries best first for one board.

    Points and Stableford rank higher values first; stroke play ranks
    lower scores first. The sort is stable.
    """
    key = _sort_value(kind, fmt)
    descending = fmt in (POINTS, STABLEFORD)
    return sorted(entries, key=key, reverse=descending)


def tie_groups(
    sorted_entries: list[ScoredEntry],
    key: Callable[[ScoredEntry], float],
) -> Iterator[list[ScoredEntry]]:
    """Yield runs of entries within TIE_TOLERANCE of the run's first entry."""
    i = 0
    while i < len(sorted_entries):
        leader = key(sorted_entries[i])
        size = 1
        while (i + size < len(sorted_entries)
               and abs(key(sorted_entries[i + size]) - leader) < TIE_TOLERANCE):
            size += 1
        yield sorted_entries[i:i + size]
        i += size


def assign_positions(
    entries: list[ScoredEntry],
    tier: str,
    fmt: str,
    kind: str,
    tables: Mapping[str, tuple[float, ...]] = POINTS_TABLES,
) -> list[ScoredEntry]:
    """Assign positions, tie counts and points for the gross or net board.

    Tied players share the first position of their group and split the
    combined points of the positions they occupy. Entries carrying
    direct points keep them; only their position and tie count change.

    Args:
        entries: Scored entries of one tournament; updated in place.
        tier: Tournament tier selecting the points curve.
        fmt: Tournament format selecting the sort order.
        kind: ``'gross'`` or ``'net'``.
        tables: Points curves by tier.

    Returns:
        The entries in finishing order.
    """
    if kind not in ('gross', 'net'):
        raise ValueError(f"kind must be 'gross' or 'net', got {kind!r}")

    ordered = sort_entries(entries, fmt, kind)
    key = _sort_value(kind, fmt)
    position = 1

    for group in tie_groups(ordered, key):
        size = len(group)
        shared = sum(
            points_for_position(p, tier, tables)
            for p in range(position, position + size)
        ) / size
        for entry in group:
            setattr(entry, f'{kind}_position', position)
            setattr(entry, f'{kind}_tied_players', size)
            if not entry.direct_points:
                setattr(entry, f'{kind}_points', shared)
        if size > 1:
            log.debug("%s tie of %d at position %d", kind, size, position)
        position += size

    return ordered


def assign_all(
    entries: list[ScoredEntry],
    tier: str,
    fmt: str,
    tables: Mapping[str, tuple[float, ...]] = POINTS_TABLES,
) -> list[ScoredEntry]:
    """Run the gross pass and then the independent net pass."""
    assign_positions(entries, tier, fmt, 'gross', tables)
    assign_positions(entries, tier, fmt, 'net', tables)
    log.info("Positions assigned for %d entries (%s, %s)", len(entries), tier, fmt)
    return entries
