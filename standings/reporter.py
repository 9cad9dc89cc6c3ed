"""Report generation for season standings (CSV, HTML, summary)."""

import csv
import logging
from pathlib import Path

from jinja2 import Environment, FileSystemLoader

from standings import Player, PlayerStats, Result, Tournament

log = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parent / 'templates'

CSV_COLUMNS = [
    'Rank',
    'Player',
    'Trackman_ID',
    'Club',
    'Total_Points',
    'Counting_Events',
    'Total_Events',
    'Avg_Gross',
    'Avg_Net',
    'Best_Finish',
]


def _stats_to_row(rank: int, stats: PlayerStats) -> dict:
    """Convert PlayerStats to a flat dict for CSV/HTML output."""
    p = stats.player
    return {
        'Rank': str(rank),
        'Player': p.display_name,
        'Trackman_ID': p.external_token,
        'Club': p.club,
        'Total_Points': f'{stats.total_points:.2f}',
        'Counting_Events': str(stats.counting_events),
        'Total_Events': str(stats.total_events),
        'Avg_Gross': f'{stats.avg_gross:.1f}',
        'Avg_Net': f'{stats.avg_net:.1f}',
        'Best_Finish': str(stats.best_finish),
    }


def write_csv_report(leaderboard: list[PlayerStats], output_path: Path) -> None:
    """Write a leaderboard as a CSV report (UTF-8 with BOM for Excel).

    Args:
        leaderboard: Ordered standings.
        output_path: Path for the output CSV file.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, 'w', newline='', encoding='utf-8-sig') as f:
        writer = csv.DictWriter(f, fieldnames=CSV_COLUMNS, extrasaction='ignore')
        writer.writeheader()
        for rank, stats in enumerate(leaderboard, start=1):
            writer.writerow(_stats_to_row(rank, stats))

    log.info("CSV report written: %s (%d rows)", output_path, len(leaderboard))


def _compute_stats(leaderboard: list[PlayerStats]) -> dict:
    """Compute summary figures for a leaderboard."""
    clubs: dict[str, int] = {}
    for s in leaderboard:
        clubs[s.player.club] = clubs.get(s.player.club, 0) + 1
    return {
        'players': len(leaderboard),
        'clubs': clubs,
        'leader': leaderboard[0].player.display_name if leaderboard else '',
        'leader_points': leaderboard[0].total_points if leaderboard else 0.0,
        'events_played': sum(s.total_events for s in leaderboard),
    }


def write_html_report(
    leaderboard: list[PlayerStats],
    output_path: Path,
    title: str = '',
    board: str = 'net',
) -> None:
    """Write a leaderboard as an HTML report using Jinja2.

    Args:
        leaderboard: Ordered standings.
        output_path: Path for the output HTML file.
        title: Report title.
        board: ``'gross'`` or ``'net'``, shown in the heading.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    env = Environment(
        loader=FileSystemLoader(str(TEMPLATE_DIR)),
        autoescape=True,
    )
    template = env.get_template('leaderboard.html')

    rows = [_stats_to_row(rank, s) for rank, s in enumerate(leaderboard, start=1)]
    html = template.render(
        title=title,
        board=board,
        rows=rows,
        stats=_compute_stats(leaderboard),
        columns=CSV_COLUMNS,
    )

    output_path.write_text(html, encoding='utf-8')
    log.info("HTML report written: %s", output_path)


def print_summary(leaderboard: list[PlayerStats], title: str = '', board: str = 'net') -> None:
    """Print the standings table to stdout."""
    stats = _compute_stats(leaderboard)

    print(f"\n=== Season standings ({board}): {title} ===")
    print(f"{'Pos':>4}  {'Player':<24} {'Club':<7} {'Points':>9} {'Ev':>3} {'Avg':>6} {'Best':>5}")
    for rank, s in enumerate(leaderboard, start=1):
        avg = s.avg_gross if board == 'gross' else s.avg_net
        print(
            f"{rank:>4}  {s.player.display_name:<24} {s.player.club:<7} "
            f"{s.total_points:>9.2f} {s.counting_events:>3} {avg:>6.1f} {s.best_finish:>5}"
        )
    print("---")
    print(f"Players ranked:            {stats['players']:>5}")
    print(f"Results counted:           {stats['events_played']:>5}")
    print()


def print_tournament_results(
    tournament: Tournament,
    results: list[Result],
    players: dict[str, Player],
) -> None:
    """Print one tournament's gross and net placings to stdout."""
    print(f"\n=== {tournament.name} ({tournament.tier}, {tournament.fmt}, {tournament.date}) ===")
    print(f"{'Net':>4} {'Gross':>5}  {'Player':<24} {'Net':>6} {'Gross':>6} {'HCP':>5} "
          f"{'Net Pts':>8} {'Gross Pts':>9}")
    for r in sorted(results, key=lambda r: (r.net_position, r.gross_position)):
        player = players.get(r.player_id)
        name = player.display_name if player else r.player_id
        net_pos = f"T{r.net_position}" if r.net_tied_players > 1 else str(r.net_position)
        gross_pos = f"T{r.gross_position}" if r.gross_tied_players > 1 else str(r.gross_position)
        print(
            f"{net_pos:>4} {gross_pos:>5}  {name:<24} {r.net_score:>6g} {r.gross_score:>6g} "
            f"{r.handicap:>5g} {r.net_points:>8.2f} {r.gross_points:>9.2f}"
        )
    print()
