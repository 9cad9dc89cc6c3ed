"""Score interpretation: raw entries to gross/net scores."""

import logging
import math

from standings import DEFAULT_PAR, POINTS, STABLEFORD, STROKE_PLAY, RawEntry, ScoredEntry
from standings.errors import InvalidScore

log = logging.getLogger(__name__)


def _is_nan(value: float) -> bool:
    return isinstance(value, float) and math.isnan(value)


def _direct_points(entry: RawEntry) -> tuple[float, float]:
    """Points supplied by the row; one side fills in for a missing other."""
    gross = entry.gross_points
    net = entry.net_points
    if gross is None and net is None and entry.score_parsed:
        gross = net = entry.raw_score
    if gross is None:
        gross = net
    if net is None:
        net = gross
    gross = 0.0 if gross is None or _is_nan(gross) else gross
    net = 0.0 if net is None or _is_nan(net) else net
    return gross, net


def interpret_entry(
    entry: RawEntry,
    fmt: str,
    par: int = DEFAULT_PAR,
    handicap: float | None = None,
) -> ScoredEntry:
    """Convert one raw entry into gross and net scores.

    Stableford points are already net, so gross removes the handicap.
    Stroke play scores are strokes relative to par: net is par plus the
    score and gross adds the handicap back. Points-format rows carry
    their points directly and skip score validation.

    Args:
        entry: Normalized row.
        fmt: Tournament format.
        par: Course par.
        handicap: Course handicap; defaults to the row's own handicap.

    Returns:
        ScoredEntry with scores (and, for Points format, points) set.

    Raises:
        InvalidScore: If a scored format row carries no parseable score.
    """
    if handicap is None:
        handicap = entry.raw_handicap

    substituted = False
    if _is_nan(handicap):
        log.warning("Handicap of %s is not a number, using 0", entry.player_token)
        handicap = 0.0
        substituted = True

    if fmt == POINTS:
        gross_points, net_points = _direct_points(entry)
        raw = entry.raw_score if entry.score_parsed and not _is_nan(entry.raw_score) else 0.0
        return ScoredEntry(
            player_token=entry.player_token,
            gross_score=raw,
            net_score=raw,
            handicap=handicap,
            gross_points=gross_points,
            net_points=net_points,
            gross_position=entry.raw_position or entry.row_number,
            net_position=entry.raw_position or entry.row_number,
            direct_points=True,
            substituted=substituted,
            row_number=entry.row_number,
        )

    if not entry.score_parsed:
        raise InvalidScore(entry.player_token, entry.row_number)

    if fmt == STABLEFORD:
        net = entry.raw_score
        gross = net - handicap
    elif fmt == STROKE_PLAY:
        net = par + entry.raw_score
        gross = net + handicap
    else:
        raise ValueError(f"Unknown tournament format: {fmt!r}")

    if _is_nan(net) or _is_nan(gross):
        log.warning(
            "Score of %s (row %d) is not a number, using par %d",
            entry.player_token, entry.row_number, par,
        )
        net = float(par) if _is_nan(net) else net
        gross = float(par) if _is_nan(gross) else gross
        substituted = True

    return ScoredEntry(
        player_token=entry.player_token,
        gross_score=gross,
        net_score=net,
        handicap=handicap,
        gross_position=entry.raw_position or entry.row_number,
        net_position=entry.raw_position or entry.row_number,
        substituted=substituted,
        row_number=entry.row_number,
    )


def interpret_entries(
    entries: list[RawEntry],
    fmt: str,
    par: int = DEFAULT_PAR,
) -> list[ScoredEntry]:
    """Interpret every entry, failing on the first row without a score."""
    scored = [interpret_entry(e, fmt, par) for e in entries]
    flagged = sum(1 for s in scored if s.substituted)
    if flagged:
        log.warning("%d entries had malformed numbers and were substituted", flagged)
    return scored
