"""Tests for standings.store module."""

import pytest

from standings import Result, TournamentConfig
from standings.errors import PersistenceFailure
from standings.store import InMemoryStore, JsonFileStore


def _result(tournament_id, player_id, net_position=1) -> Result:
    return Result(
        tournament_id=tournament_id, player_id=player_id, gross_score=75.0,
        net_score=71.0, handicap=4.0, gross_position=net_position,
        net_position=net_position, gross_points=100.0, net_points=100.0,
    )


def _config(name='Spring Open', date='2025-04-12') -> TournamentConfig:
    return TournamentConfig(name=name, date=date, tier='Tour Event', fmt='Stroke Play')


class TestPlayers:
    """Player rows and their constraints."""

    def test_duplicate_token(self, store):
        with pytest.raises(PersistenceFailure):
            store.create_player('Camillo77', 'Someone Else', 'Sylvan')

    def test_invalid_club(self, store):
        with pytest.raises(ValueError, match='Club'):
            store.create_player('new', 'New Player', 'Downtown')

    def test_search_by_name(self, store):
        found = store.search_players_by_name('br')
        assert [p.display_name for p in found] == ['Beau Briggs', 'Chase Brannon']

    def test_returned_copies(self, store):
        player = store.find_player_by_token('Camillo77')
        player.display_name = 'Changed'
        assert store.find_player_by_token('Camillo77').display_name == 'Camillo Colombo'

    def test_update_player(self, store):
        player = store.find_player_by_token('Camillo77')
        store.update_player(player.id, club='Sylvan')
        assert store.find_player_by_token('Camillo77').club == 'Sylvan'

    def test_upsert_players(self, store):
        store.upsert_players([
            {'trackman_id': 'Camillo77', 'display_name': 'Camillo C.', 'club': '8th'},
            {'trackman_id': 'nima_g', 'display_name': 'Nima Ghavami', 'club': 'Sylvan'},
        ])
        assert store.find_player_by_token('Camillo77').display_name == 'Camillo C.'
        assert store.find_player_by_token('nima_g') is not None
        assert len(store.list_players()) == 5

    def test_delete_player_cascades(self, store):
        t = store.create_tournament(_config())
        player = store.find_player_by_token('Beau Briggs')
        store.create_results([_result(t.id, player.id)])
        store.delete_player(player.id)
        assert store.get_results_by_tournament(t.id) == []


class TestTournamentsAndResults:
    """Tournament rows, result batches and cascades."""

    def test_results_unique_per_player(self, store):
        t = store.create_tournament(_config())
        pid = store.find_player_by_token('Andrew Walker').id
        with pytest.raises(PersistenceFailure, match='Duplicate'):
            store.create_results([_result(t.id, pid), _result(t.id, pid, 2)])
        assert store.all_results() == []

    def test_results_need_tournament(self, store):
        pid = store.find_player_by_token('Andrew Walker').id
        with pytest.raises(PersistenceFailure):
            store.create_results([_result('missing', pid)])

    def test_results_get_ids(self, store):
        t = store.create_tournament(_config())
        pid = store.find_player_by_token('Andrew Walker').id
        created = store.create_results([_result(t.id, pid)])
        assert created[0].id is not None

    def test_results_by_tournament_ordered(self, store):
        t = store.create_tournament(_config())
        a = store.find_player_by_token('Andrew Walker').id
        b = store.find_player_by_token('Beau Briggs').id
        store.create_results([_result(t.id, a, 2), _result(t.id, b, 1)])
        assert [r.player_id for r in store.get_results_by_tournament(t.id)] == [b, a]

    def test_results_by_player_newest_first(self, store):
        early = store.create_tournament(_config('Early', '2025-03-01'))
        late = store.create_tournament(_config('Late', '2025-06-01'))
        pid = store.find_player_by_token('Andrew Walker').id
        store.create_results([_result(early.id, pid)])
        store.create_results([_result(late.id, pid)])
        assert [r.tournament_id for r in store.get_results_by_player(pid)] == [late.id, early.id]

    def test_list_tournaments_newest_first(self, store):
        store.create_tournament(_config('Early', '2025-03-01'))
        store.create_tournament(_config('Late', '2025-06-01'))
        assert [t.name for t in store.list_tournaments()] == ['Late', 'Early']

    def test_delete_tournament_cascades(self, store):
        t = store.create_tournament(_config())
        pid = store.find_player_by_token('Andrew Walker').id
        store.create_results([_result(t.id, pid)])
        store.delete_tournament(t.id)
        assert store.get_tournament(t.id) is None
        assert store.all_results() == []

    def test_delete_missing_tournament(self, store):
        with pytest.raises(PersistenceFailure):
            store.delete_tournament('missing')

    def test_update_result(self, store):
        t = store.create_tournament(_config())
        pid = store.find_player_by_token('Andrew Walker').id
        created = store.create_results([_result(t.id, pid)])
        store.update_result(created[0].id, net_points=42.0)
        assert store.get_results_by_tournament(t.id)[0].net_points == 42.0


class TestJsonFileStore:
    """The JSON file store survives a reload."""

    def test_round_trip(self, tmp_path):
        path = tmp_path / 'season.json'
        store = JsonFileStore(path)
        player = store.create_player('Camillo77', 'Camillo Colombo', '8th')
        t = store.create_tournament(_config())
        store.create_results([_result(t.id, player.id)])

        reloaded = JsonFileStore(path)
        assert reloaded.find_player_by_token('Camillo77') == player
        assert reloaded.get_tournament(t.id) == t
        assert len(reloaded.get_results_by_tournament(t.id)) == 1

    def test_new_file(self, tmp_path):
        store = JsonFileStore(tmp_path / 'missing.json')
        assert store.list_players() == []
        assert not (tmp_path / 'missing.json').exists()

    def test_in_memory_store_empty(self):
        assert InMemoryStore().list_tournaments() == []
