"""Season standings: best-of aggregation over each player's results."""

import logging
from collections import defaultdict
from typing import Iterable, Optional

from standings import BOARDS, CLUBS, Player, PlayerStats, Result
from standings.points import POINTS_TABLES

log = logging.getLogger(__name__)

# Only a player's best events count towards the season total
COUNTING_EVENTS = 8
PLAYOFF_SPOTS = 4
# Stands in for a missing position
NO_FINISH = 999


def _check_board(board: str) -> None:
    if board not in BOARDS:
        raise ValueError(f"Board must be 'gross' or 'net', got {board!r}")


def _mean(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def compute_player_stats(
    player: Player,
    results: list[Result],
    board: str = 'net',
    counting: int = COUNTING_EVENTS,
) -> Optional[PlayerStats]:
    """Aggregate one player's results for the gross or net board.

    The results are ranked by the board's points and the best
    ``counting`` make up the total and both score averages. The best
    finish looks at every event, counted or not.

    Args:
        player: The player the results belong to.
        results: All of the player's results across the season.
        board: ``'gross'`` or ``'net'``.
        counting: Number of events that count.

    Returns:
        PlayerStats, or None when the player has no results.
    """
    _check_board(board)
    if not results:
        return None

    def points_of(r: Result) -> float:
        return getattr(r, f'{board}_points') or 0.0

    best = sorted(results, key=points_of, reverse=True)[:counting]

    return PlayerStats(
        player=player,
        total_points=sum(points_of(r) for r in best),
        counting_events=len(best),
        total_events=len(results),
        avg_gross=_mean([r.gross_score for r in best]),
        avg_net=_mean([r.net_score for r in best]),
        best_finish=min(getattr(r, f'{board}_position') or NO_FINISH for r in results),
        events=list(results),
    )


def compute_leaderboard(
    all_results: Iterable[Result],
    players: Iterable[Player],
    club: Optional[str] = None,
    board: str = 'net',
) -> list[PlayerStats]:
    """Build the season leaderboard.

    Players outside ``club`` are dropped before aggregation and players
    without results are left out. Rows are ordered by total points, then
    by the lower average score of the selected board.

    Args:
        all_results: Every stored result of the season.
        players: Known players.
        club: Optional club filter.
        board: ``'gross'`` or ``'net'``.

    Returns:
        Ordered list of PlayerStats.
    """
    _check_board(board)
    if club is not None and club not in CLUBS:
        raise ValueError(f"Club must be one of {', '.join(CLUBS)}, got {club!r}")

    by_id = {p.id: p for p in players}
    grouped: dict[str, list[Result]] = defaultdict(list)
    for r in all_results:
        if r.player_id not in by_id:
            log.warning("Result %s skipped: unknown player %s", r.id, r.player_id)
            continue
        grouped[r.player_id].append(r)

    rows: list[PlayerStats] = []
    for player_id, results in grouped.items():
        player = by_id[player_id]
        if club is not None and player.club != club:
            continue
        stats = compute_player_stats(player, results, board)
        if stats is not None:
            rows.append(stats)

    avg_field = f'avg_{board}'
    rows.sort(key=lambda s: (-s.total_points, getattr(s, avg_field)))
    return rows


class LeaderboardCache:
    """Leaderboards per (club, board), rebuilt from the store after writes."""

    def __init__(self, store):
        self.store = store
        self._boards: dict[tuple[Optional[str], str], list[PlayerStats]] = {}

    def get(self, club: Optional[str] = None, board: str = 'net') -> list[PlayerStats]:
        key = (club, board)
        if key not in self._boards:
            self._boards[key] = compute_leaderboard(
                self.store.all_results(), self.store.list_players(), club, board,
            )
        return self._boards[key]

    def invalidate(self) -> None:
        self._boards.clear()


def remaining_points(
    upcoming_tiers: Iterable[str],
    tables=POINTS_TABLES,
) -> float:
    """Most points still available: a win in every upcoming event."""
    return float(sum(tables[tier][0] for tier in upcoming_tiers))


def is_playoff_qualified(
    stats: PlayerStats,
    leaderboard: list[PlayerStats],
    remaining: float,
    spots: int = PLAYOFF_SPOTS,
) -> bool:
    """Whether a player has clinched a playoff spot within their club.

    A player in the club's top ``spots`` is through once their lead over
    the first player outside those spots exceeds the points still
    available, or when the club has no player outside the spots.
    """
    club_rows = [s for s in leaderboard if s.player.club == stats.player.club]
    ids = [s.player.id for s in club_rows]
    if stats.player.id not in ids:
        return False
    rank = ids.index(stats.player.id) + 1
    if rank > spots:
        return False
    if len(club_rows) <= spots:
        return True
    chaser = club_rows[spots]
    return stats.total_points - chaser.total_points > remaining
