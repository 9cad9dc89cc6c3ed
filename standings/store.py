"""Persistence store contract and the in-memory / JSON file implementations."""

import json
import logging
import uuid
from dataclasses import asdict, replace
from pathlib import Path
from typing import Optional, Protocol

from standings import CLUBS, Player, Result, Tournament, TournamentConfig
from standings.errors import PersistenceFailure

log = logging.getLogger(__name__)


class PersistenceStore(Protocol):
    """Calls the upload pipeline and the season views make on storage.

    Each call is atomic on its own (one row or one batch); nothing here
    spans several calls.
    """

    def find_player_by_token(self, token: str) -> Optional[Player]: ...
    def find_player_by_display_name(self, name: str) -> Optional[Player]: ...
    def search_players_by_name(self, substring: str) -> list[Player]: ...
    def create_player(self, token: str, name: str, club: str) -> Player: ...
    def update_player(self, player_id: str, name: Optional[str] = None,
                      club: Optional[str] = None) -> Player: ...
    def delete_player(self, player_id: str) -> None: ...
    def upsert_players(self, mappings: list[dict]) -> list[Player]: ...
    def list_players(self) -> list[Player]: ...

    def create_tournament(self, config: TournamentConfig) -> Tournament: ...
    def get_tournament(self, tournament_id: str) -> Optional[Tournament]: ...
    def list_tournaments(self) -> list[Tournament]: ...
    def delete_tournament(self, tournament_id: str) -> None: ...

    def create_results(self, results: list[Result]) -> list[Result]: ...
    def get_results_by_tournament(self, tournament_id: str) -> list[Result]: ...
    def get_results_by_player(self, player_id: str) -> list[Result]: ...
    def all_results(self) -> list[Result]: ...
    def update_result(self, result_id: str, **changes) -> Result: ...
    def delete_results_by_tournament(self, tournament_id: str) -> None: ...


def _new_id() -> str:
    return str(uuid.uuid4())


def _check_club(club: str) -> None:
    if club not in CLUBS:
        raise ValueError(f"Club must be one of {', '.join(CLUBS)}, got {club!r}")


class InMemoryStore:
    """Dict-backed store enforcing the same constraints as the database.

    Player tokens are unique, results are unique per (tournament, player),
    and deleting a tournament or a player removes its results.
    """

    def __init__(self):
        self.players: dict[str, Player] = {}
        self.tournaments: dict[str, Tournament] = {}
        self.results: dict[str, Result] = {}

    # Players

    def find_player_by_token(self, token: str) -> Optional[Player]:
        for p in self.players.values():
            if p.external_token == token:
                return replace(p)
        return None

    def find_player_by_display_name(self, name: str) -> Optional[Player]:
        wanted = name.strip().casefold()
        for p in self.players.values():
            if p.display_name.casefold() == wanted:
                return replace(p)
        return None

    def search_players_by_name(self, substring: str) -> list[Player]:
        wanted = substring.strip().casefold()
        if not wanted:
            return []
        found = [p for p in self.players.values() if wanted in p.display_name.casefold()]
        return [replace(p) for p in sorted(found, key=lambda p: p.display_name)]

    def create_player(self, token: str, name: str, club: str) -> Player:
        _check_club(club)
        if not token.strip():
            raise ValueError("Player token must not be empty")
        if self.find_player_by_token(token) is not None:
            raise PersistenceFailure(f"Player token {token!r} already exists")
        player = Player(id=_new_id(), external_token=token, display_name=name, club=club)
        self.players[player.id] = player
        log.info("Player created: %s (%s, %s)", name, token, club)
        return replace(player)

    def update_player(self, player_id: str, name: Optional[str] = None,
                      club: Optional[str] = None) -> Player:
        player = self._player(player_id)
        if club is not None:
            _check_club(club)
            player.club = club
        if name is not None:
            player.display_name = name
        return replace(player)

    def delete_player(self, player_id: str) -> None:
        self._player(player_id)
        del self.players[player_id]
        self.results = {
            rid: r for rid, r in self.results.items() if r.player_id != player_id
        }

    def upsert_players(self, mappings: list[dict]) -> list[Player]:
        """Insert or update players keyed by trackman_id."""
        for m in mappings:
            _check_club(m['club'])
        players = []
        for m in mappings:
            existing = self.find_player_by_token(m['trackman_id'])
            if existing is None:
                players.append(self.create_player(m['trackman_id'], m['display_name'], m['club']))
            else:
                players.append(self.update_player(existing.id, m['display_name'], m['club']))
        return players

    def list_players(self) -> list[Player]:
        return [replace(p) for p in sorted(self.players.values(), key=lambda p: p.display_name)]

    def _player(self, player_id: str) -> Player:
        try:
            return self.players[player_id]
        except KeyError:
            raise PersistenceFailure(f"No player with id {player_id!r}") from None

    # Tournaments

    def create_tournament(self, config: TournamentConfig) -> Tournament:
        tournament = Tournament(
            id=_new_id(), name=config.name, date=config.date,
            tier=config.tier, fmt=config.fmt, par=config.par,
        )
        self.tournaments[tournament.id] = tournament
        return replace(tournament)

    def get_tournament(self, tournament_id: str) -> Optional[Tournament]:
        t = self.tournaments.get(tournament_id)
        return replace(t) if t else None

    def list_tournaments(self) -> list[Tournament]:
        ordered = sorted(self.tournaments.values(), key=lambda t: t.date, reverse=True)
        return [replace(t) for t in ordered]

    def delete_tournament(self, tournament_id: str) -> None:
        if self.tournaments.pop(tournament_id, None) is None:
            raise PersistenceFailure(f"No tournament with id {tournament_id!r}")
        self.delete_results_by_tournament(tournament_id)

    # Results

    def create_results(self, results: list[Result]) -> list[Result]:
        taken = {(r.tournament_id, r.player_id) for r in self.results.values()}
        for r in results:
            if r.tournament_id not in self.tournaments:
                raise PersistenceFailure(f"No tournament with id {r.tournament_id!r}")
            if r.player_id not in self.players:
                raise PersistenceFailure(f"No player with id {r.player_id!r}")
            key = (r.tournament_id, r.player_id)
            if key in taken:
                raise PersistenceFailure(
                    f"Duplicate result for player {r.player_id!r} in tournament {r.tournament_id!r}"
                )
            taken.add(key)

        created = [replace(r, id=_new_id()) for r in results]
        for r in created:
            self.results[r.id] = r
        return [replace(r) for r in created]

    def get_results_by_tournament(self, tournament_id: str) -> list[Result]:
        found = [r for r in self.results.values() if r.tournament_id == tournament_id]
        return [replace(r) for r in sorted(found, key=lambda r: r.net_position)]

    def get_results_by_player(self, player_id: str) -> list[Result]:
        found = [r for r in self.results.values() if r.player_id == player_id]
        dated = sorted(
            found,
            key=lambda r: self.tournaments[r.tournament_id].date,
            reverse=True,
        )
        return [replace(r) for r in dated]

    def all_results(self) -> list[Result]:
        return [replace(r) for r in self.results.values()]

    def update_result(self, result_id: str, **changes) -> Result:
        try:
            current = self.results[result_id]
        except KeyError:
            raise PersistenceFailure(f"No result with id {result_id!r}") from None
        updated = replace(current, **changes)
        self.results[result_id] = updated
        return replace(updated)

    def delete_results_by_tournament(self, tournament_id: str) -> None:
        self.results = {
            rid: r for rid, r in self.results.items() if r.tournament_id != tournament_id
        }


class JsonFileStore(InMemoryStore):
    """InMemoryStore saved to a JSON file after every write."""

    def __init__(self, path: str | Path):
        super().__init__()
        self.path = Path(path)
        if self.path.exists():
            self._load()

    def _load(self) -> None:
        data = json.loads(self.path.read_text(encoding='utf-8'))
        self.players = {p['id']: Player(**p) for p in data.get('players', [])}
        self.tournaments = {t['id']: Tournament(**t) for t in data.get('tournaments', [])}
        self.results = {r['id']: Result(**r) for r in data.get('results', [])}
        log.info(
            "Store loaded from %s: %d players, %d tournaments, %d results",
            self.path, len(self.players), len(self.tournaments), len(self.results),
        )

    def save(self) -> None:
        data = {
            'players': [asdict(p) for p in self.players.values()],
            'tournaments': [asdict(t) for t in self.tournaments.values()],
            'results': [asdict(r) for r in self.results.values()],
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + '.tmp')
        tmp.write_text(json.dumps(data, indent=2), encoding='utf-8')
        tmp.replace(self.path)

    def create_player(self, token: str, name: str, club: str) -> Player:
        player = super().create_player(token, name, club)
        self.save()
        return player

    def update_player(self, player_id: str, name: Optional[str] = None,
                      club: Optional[str] = None) -> Player:
        player = super().update_player(player_id, name, club)
        self.save()
        return player

    def delete_player(self, player_id: str) -> None:
        super().delete_player(player_id)
        self.save()

    def create_tournament(self, config: TournamentConfig) -> Tournament:
        tournament = super().create_tournament(config)
        self.save()
        return tournament

    def delete_tournament(self, tournament_id: str) -> None:
        super().delete_tournament(tournament_id)
        self.save()

    def create_results(self, results: list[Result]) -> list[Result]:
        created = super().create_results(results)
        self.save()
        return created

    def update_result(self, result_id: str, **changes) -> Result:
        result = super().update_result(result_id, **changes)
        self.save()
        return result

    def delete_results_by_tournament(self, tournament_id: str) -> None:
        super().delete_results_by_tournament(tournament_id)
        self.save()
