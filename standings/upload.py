"""Tournament upload processing: validate, confirm new players, commit."""

import enum
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional, Union

from standings import (
    CLUBS,
    DEFAULT_CLUB,
    FLEXIBLE_TIERS,
    POINTS,
    Player,
    RawEntry,
    Result,
    ScoredEntry,
    Tournament,
    TournamentConfig,
)
from standings.errors import DuplicatePlayer, EmptyInput, PersistenceFailure
from standings.headers import normalize_header
from standings.normalizer import (
    GROSS_POINTS_COLUMNS,
    NET_POINTS_COLUMNS,
    TOKEN_COLUMNS,
    normalize_rows,
    read_structured_rows,
)
from standings.players import DEFAULT_NAME_THRESHOLD, PendingPlayer, resolve_tokens
from standings.points import assign_all
from standings.reader import read_table
from standings.scoring import interpret_entries
from standings.season import LeaderboardCache
from standings.store import PersistenceStore

log = logging.getLogger(__name__)


class UploadState(enum.Enum):
    PENDING = 'pending'
    TOURNAMENT_COMMITTED = 'tournament_committed'
    RESULTS_COMMITTED = 'results_committed'
    ROLLED_BACK = 'rolled_back'


_TRANSITIONS = {
    UploadState.PENDING: (UploadState.TOURNAMENT_COMMITTED,),
    UploadState.TOURNAMENT_COMMITTED: (UploadState.RESULTS_COMMITTED, UploadState.ROLLED_BACK),
    UploadState.RESULTS_COMMITTED: (),
    UploadState.ROLLED_BACK: (),
}


class UploadSaga:
    """Commit a tournament and its results, deleting the tournament on failure.

    The store offers no transaction across the two writes, so a failed
    results write is compensated by removing the tournament row.
    """

    def __init__(self, store: PersistenceStore):
        self.store = store
        self.state = UploadState.PENDING
        self.tournament: Optional[Tournament] = None
        self.results: list[Result] = []
        self.error: Optional[Exception] = None
        self.compensation_error: Optional[Exception] = None

    def _advance(self, new_state: UploadState) -> None:
        if new_state not in _TRANSITIONS[self.state]:
            raise RuntimeError(f"Invalid upload transition {self.state.value} -> {new_state.value}")
        log.debug("Upload state %s -> %s", self.state.value, new_state.value)
        self.state = new_state

    def commit_tournament(self, config: TournamentConfig) -> None:
        self.tournament = self.store.create_tournament(config)
        self._advance(UploadState.TOURNAMENT_COMMITTED)

    def commit_results(self, results: list[Result]) -> None:
        self.results = self.store.create_results(results)
        self._advance(UploadState.RESULTS_COMMITTED)

    def compensate(self) -> bool:
        """Delete the committed tournament; False if the delete failed too."""
        log.error(
            "Results for %s could not be stored (%s), removing the tournament",
            self.tournament.name, self.error,
        )
        try:
            self.store.delete_tournament(self.tournament.id)
        except Exception as exc:
            log.error("Tournament %s could not be removed: %s", self.tournament.name, exc)
            self.compensation_error = exc
            return False
        self._advance(UploadState.ROLLED_BACK)
        return True

    def run(
        self,
        config: TournamentConfig,
        build_results: Callable[[Tournament], list[Result]],
    ) -> list[Result]:
        """Drive the saga to RESULTS_COMMITTED or ROLLED_BACK.

        The results write error is always the one raised. When the
        compensating delete fails as well, the state stays
        TOURNAMENT_COMMITTED and the delete error is chained as the cause.

        Raises:
            Exception: The results write error, re-raised after rollback.
        """
        while self.state not in (UploadState.RESULTS_COMMITTED, UploadState.ROLLED_BACK):
            if self.state is UploadState.PENDING:
                self.commit_tournament(config)
            elif self.state is UploadState.TOURNAMENT_COMMITTED:
                try:
                    self.commit_results(build_results(self.tournament))
                except Exception as exc:
                    self.error = exc
                    if not self.compensate():
                        raise self.error from self.compensation_error

        if self.state is UploadState.ROLLED_BACK:
            raise self.error
        return self.results


@dataclass
class UploadOutcome:
    """A committed upload."""

    tournament: Tournament
    results: list[Result]
    state: UploadState = UploadState.RESULTS_COMMITTED


@dataclass
class NeedsPlayerConfirmation:
    """Upload suspended until every new player token has been confirmed.

    Call resume() with the confirmed players (name and club may be
    edited) to continue, or abandon() to drop the upload.
    """

    pending: list[PendingPlayer]
    _continuation: Callable[[], 'UploadResult'] = field(repr=False)
    _store: PersistenceStore = field(repr=False)
    abandoned: bool = False
    resumed: bool = False

    @property
    def tokens(self) -> list[str]:
        return [p.token for p in self.pending]

    def resume(self, resolutions: Optional[list[PendingPlayer]] = None) -> 'UploadResult':
        """Create the confirmed players and continue the upload.

        Args:
            resolutions: Confirmed players; defaults to the suggestions.

        Raises:
            ValueError: If a pending token is left unmapped, a club is
                unknown, or the upload was abandoned or already resumed.
        """
        if self.abandoned:
            raise ValueError("Upload was abandoned")
        if self.resumed:
            raise ValueError("Upload was already resumed")
        if resolutions is None:
            resolutions = self.pending

        by_token = {r.token: r for r in resolutions}
        missing = [t for t in self.tokens if t not in by_token]
        if missing:
            raise ValueError(f"Unmapped player tokens: {', '.join(missing)}")
        bad_clubs = [t for t in self.tokens if by_token[t].club not in CLUBS]
        if bad_clubs:
            raise ValueError(
                f"Club must be one of {', '.join(CLUBS)} for: {', '.join(bad_clubs)}"
            )

        for token in self.tokens:
            r = by_token[token]
            if self._store.find_player_by_token(token) is None:
                self._store.create_player(token, r.suggested_name.strip() or token, r.club)
        self.resumed = True
        return self._continuation()

    def abandon(self) -> None:
        self.abandoned = True
        log.info("Upload abandoned with %d unconfirmed player(s)", len(self.pending))


UploadResult = Union[UploadOutcome, NeedsPlayerConfirmation]


def parse_upload(
    headers: list[str],
    rows: list[list[str]],
    config: TournamentConfig,
) -> list[RawEntry]:
    """Normalize export rows for the tournament's tier.

    Exports with a known player column are read by their fixed column
    names, except League and SUPR exports, which go through header
    classification unless they carry direct gross/net points columns.
    Exports without a known player column are always classified.

    Raises:
        EmptyInput: If no data row survives.
    """
    keys = {normalize_header(h) for h in headers}
    has_token = bool(keys & set(TOKEN_COLUMNS))
    has_direct_points = bool(keys & set(GROSS_POINTS_COLUMNS + NET_POINTS_COLUMNS))
    if has_token and (config.tier not in FLEXIBLE_TIERS or has_direct_points):
        entries = read_structured_rows(headers, rows, config.fmt)
    else:
        entries = normalize_rows(headers, rows)
    if not entries:
        raise EmptyInput(f"No data rows in upload for {config.name!r}")
    return entries


def _check_duplicates(scored: list[ScoredEntry], resolved: dict[str, Player]) -> None:
    tokens_by_player: dict[str, list[str]] = {}
    for s in scored:
        tokens_by_player.setdefault(resolved[s.player_token].id, []).append(s.player_token)
    for player_id, tokens in tokens_by_player.items():
        if len(tokens) > 1:
            raise DuplicatePlayer(player_id, tokens)


def _to_results(
    tournament: Tournament,
    scored: list[ScoredEntry],
    resolved: dict[str, Player],
) -> list[Result]:
    return [
        Result(
            tournament_id=tournament.id,
            player_id=resolved[s.player_token].id,
            gross_score=s.gross_score,
            net_score=s.net_score,
            handicap=s.handicap,
            gross_position=s.gross_position,
            net_position=s.net_position,
            gross_points=s.gross_points,
            net_points=s.net_points,
            gross_tied_players=s.gross_tied_players,
            net_tied_players=s.net_tied_players,
        )
        for s in scored
    ]


def process_upload(
    headers: list[str],
    rows: list[list[str]],
    config: TournamentConfig,
    store: PersistenceStore,
    cache: Optional[LeaderboardCache] = None,
    threshold: float = DEFAULT_NAME_THRESHOLD,
    default_club: str = DEFAULT_CLUB,
) -> UploadResult:
    """Process one tournament upload end to end.

    Every row is validated before anything is written. New player
    tokens suspend the upload with NeedsPlayerConfirmation; once all are
    confirmed the tournament and its results are committed.

    Args:
        headers: Header row of the export (may be empty).
        rows: Data rows as cell texts.
        config: Tournament name, date, tier, format and par.
        store: Persistence store.
        cache: Leaderboard cache to invalidate after the commit.
        threshold: Fuzzy name-match threshold for player lookup.
        default_club: Club suggested for new players.

    Returns:
        UploadOutcome, or NeedsPlayerConfirmation for new players.

    Raises:
        EmptyInput: If the upload has no data rows.
        InvalidScore: If a scored format row has no parseable score.
        DuplicatePlayer: If two rows belong to the same player.
        PersistenceFailure: If the store rejects a write (after rollback).
    """
    entries = parse_upload(headers, rows, config)
    scored = interpret_entries(entries, config.fmt, config.par)

    def finish() -> UploadResult:
        resolved, pending = resolve_tokens(
            store, [s.player_token for s in scored], threshold, default_club,
        )
        if pending:
            log.info("Upload of %s waits for %d new player(s)", config.name, len(pending))
            return NeedsPlayerConfirmation(pending=pending, _continuation=finish, _store=store)

        _check_duplicates(scored, resolved)
        assign_all(scored, config.tier, config.fmt)

        saga = UploadSaga(store)
        results = saga.run(config, lambda t: _to_results(t, scored, resolved))
        if cache is not None:
            cache.invalidate()
        log.info("Tournament %s uploaded with %d results", config.name, len(results))
        return UploadOutcome(tournament=saga.tournament, results=results, state=saga.state)

    return finish()


def process_upload_file(
    path: str | Path,
    config: TournamentConfig,
    store: PersistenceStore,
    cache: Optional[LeaderboardCache] = None,
    threshold: float = DEFAULT_NAME_THRESHOLD,
    default_club: str = DEFAULT_CLUB,
) -> UploadResult:
    """Read a CSV or XLSX export and process it as an upload."""
    headers, rows = read_table(path)
    if not rows:
        raise EmptyInput(f"No data rows in {path}")
    return process_upload(headers, rows, config, store, cache, threshold, default_club)


def recalculate_tournament(
    store: PersistenceStore,
    tournament_id: str,
    cache: Optional[LeaderboardCache] = None,
) -> int:
    """Re-run both placing passes over a stored tournament's results.

    Returns:
        Number of results updated.

    Raises:
        ValueError: If the tournament does not exist or has no results.
    """
    tournament = store.get_tournament(tournament_id)
    if tournament is None:
        raise ValueError(f"Tournament {tournament_id!r} not found")
    results = store.get_results_by_tournament(tournament_id)
    if not results:
        raise ValueError(f"No results found for tournament {tournament.name!r}")

    direct = tournament.fmt == POINTS
    entries = [
        ScoredEntry(
            player_token=r.id,
            gross_score=r.gross_score,
            net_score=r.net_score,
            handicap=r.handicap,
            gross_points=r.gross_points,
            net_points=r.net_points,
            direct_points=direct,
        )
        for r in results
    ]
    assign_all(entries, tournament.tier, tournament.fmt)

    for e in entries:
        store.update_result(
            e.player_token,
            gross_position=e.gross_position,
            net_position=e.net_position,
            gross_points=e.gross_points,
            net_points=e.net_points,
            gross_tied_players=e.gross_tied_players,
            net_tied_players=e.net_tied_players,
        )
    if cache is not None:
        cache.invalidate()
    log.info("Tournament %s recalculated: %d results", tournament.name, len(entries))
    return len(entries)


def recalculate_all(
    store: PersistenceStore,
    cache: Optional[LeaderboardCache] = None,
) -> list[dict]:
    """Recalculate every tournament, collecting per-tournament outcomes."""
    outcomes = []
    for t in store.list_tournaments():
        try:
            updated = recalculate_tournament(store, t.id, cache)
        except (ValueError, PersistenceFailure) as exc:
            log.warning("Recalculation of %s failed: %s", t.name, exc)
            outcomes.append({'tournament_id': t.id, 'name': t.name, 'success': False, 'error': str(exc)})
        else:
            outcomes.append({'tournament_id': t.id, 'name': t.name, 'success': True, 'updated': updated})
    return outcomes
