"""golf-season-standings – CLI for tournament uploads and season standings."""

import argparse
import logging
from pathlib import Path

from standings import BOARDS, CLUBS, DEFAULT_CLUB, DEFAULT_PAR, FORMATS, TIERS, TournamentConfig
from standings.errors import UploadError
from standings.players import DEFAULT_NAME_THRESHOLD
from standings.reader import read_player_mappings
from standings.reporter import (
    print_summary,
    print_tournament_results,
    write_csv_report,
    write_html_report,
)
from standings.season import LeaderboardCache
from standings.store import JsonFileStore
from standings.upload import (
    NeedsPlayerConfirmation,
    process_upload_file,
    recalculate_all,
    recalculate_tournament,
)

DEFAULT_STORE = Path('season.json')


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        description='Tournament result uploads and best-of season standings.',
        prog='leaderboard.py',
    )
    parser.add_argument(
        '--store', type=Path, default=DEFAULT_STORE,
        help=f'Path to the JSON season store (default: {DEFAULT_STORE})',
    )
    parser.add_argument(
        '--verbose', action='store_true',
        help='Log debug output',
    )
    sub = parser.add_subparsers(dest='command', required=True)

    upload = sub.add_parser('upload', help='Upload a tournament results export')
    upload.add_argument('file', type=Path, help='CSV or XLSX export')
    upload.add_argument('--name', required=True, help='Tournament name')
    upload.add_argument('--date', required=True, help='Tournament date (YYYY-MM-DD)')
    upload.add_argument('--tier', choices=TIERS, default='Tour Event', help='Tournament tier')
    upload.add_argument('--format', dest='fmt', choices=FORMATS, default='Stroke Play',
                        help='Scoring format')
    upload.add_argument('--par', type=int, default=DEFAULT_PAR,
                        help=f'Course par (default: {DEFAULT_PAR})')
    upload.add_argument('--accept-new-players', action='store_true',
                        help='Create unknown players with their export token as name')
    upload.add_argument('--default-club', choices=CLUBS, default=DEFAULT_CLUB,
                        help=f'Club for new players (default: {DEFAULT_CLUB})')
    upload.add_argument('--name-threshold', type=float, default=DEFAULT_NAME_THRESHOLD,
                        help=f'Fuzzy name-match threshold (default: {DEFAULT_NAME_THRESHOLD})')
    upload.add_argument('--summary', action='store_true',
                        help='Print the tournament placings')

    standings = sub.add_parser('standings', help='Season leaderboard')
    standings.add_argument('--board', choices=BOARDS, default='net', help='Gross or net board')
    standings.add_argument('--club', choices=CLUBS, help='Only players of this club')
    standings.add_argument('--output', type=Path, help='Path for a CSV report')
    standings.add_argument('--html', type=Path, help='Path for an HTML report')

    players = sub.add_parser('players', help='Import player mappings CSV')
    players.add_argument('file', type=Path, help='CSV with trackman_id, display_name, club')

    recalc = sub.add_parser('recalculate', help='Recalculate stored placings and points')
    recalc.add_argument('--tournament', help='Tournament id (default: all)')

    return parser


def run_upload(args, parser: argparse.ArgumentParser, store: JsonFileStore) -> None:
    """Upload one export, confirming new players when allowed."""
    config = TournamentConfig(
        name=args.name, date=args.date, tier=args.tier, fmt=args.fmt, par=args.par,
    )
    outcome = process_upload_file(
        args.file, config, store,
        threshold=args.name_threshold, default_club=args.default_club,
    )

    if isinstance(outcome, NeedsPlayerConfirmation):
        if not args.accept_new_players:
            outcome.abandon()
            listing = '\n'.join(f"  {p.token} -> {p.suggested_name} ({p.club})"
                                for p in outcome.pending)
            parser.exit(2, f"New players found, rerun with --accept-new-players "
                           f"or import mappings first:\n{listing}\n")
        outcome = outcome.resume()

    logging.info("Tournament %s stored with %d results", outcome.tournament.name,
                 len(outcome.results))
    if args.summary:
        players = {p.id: p for p in store.list_players()}
        print_tournament_results(outcome.tournament, outcome.results, players)


def run_standings(args, store: JsonFileStore) -> None:
    """Compute and report the season leaderboard."""
    cache = LeaderboardCache(store)
    leaderboard = cache.get(args.club, args.board)
    title = args.club or 'All clubs'

    if args.output:
        write_csv_report(leaderboard, args.output)
    if args.html:
        write_html_report(leaderboard, args.html, title, args.board)
    print_summary(leaderboard, title, args.board)


def run_players(args, store: JsonFileStore) -> None:
    """Import player mappings, reporting invalid rows."""
    mappings, errors = read_player_mappings(args.file)
    for error in errors:
        logging.warning(error)
    if not mappings:
        logging.warning("No valid player mappings in %s", args.file)
        return
    store.upsert_players(mappings)
    logging.info("%d players imported", len(mappings))


def run_recalculate(args, store: JsonFileStore) -> None:
    """Recalculate one tournament or all of them."""
    if args.tournament:
        recalculate_tournament(store, args.tournament)
        return
    for outcome in recalculate_all(store):
        if not outcome['success']:
            logging.warning("%s: %s", outcome['name'], outcome['error'])


def main() -> None:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(levelname)s: %(message)s',
    )

    store = JsonFileStore(args.store)

    try:
        if args.command == 'upload':
            run_upload(args, parser, store)
        elif args.command == 'standings':
            run_standings(args, store)
        elif args.command == 'players':
            run_players(args, store)
        elif args.command == 'recalculate':
            run_recalculate(args, store)
    except (UploadError, ValueError) as exc:
        parser.exit(1, f"Error: {exc}\n")


if __name__ == '__main__':
    main()
