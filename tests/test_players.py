"""Tests for standings.players module."""

from standings.players import (
    PendingPlayer,
    find_fuzzy_match,
    name_similarity,
    normalize_for_tolerant_comparison,
    resolve_player,
    resolve_tokens,
)


class TestNormalizeForTolerantComparison:
    """Tests for accent/punctuation-insensitive normalization."""

    def test_accents_removed(self):
        assert normalize_for_tolerant_comparison('José') == 'JOSE'

    def test_punctuation_removed(self):
        assert normalize_for_tolerant_comparison("O'Brien-Smith") == 'OBRIENSMITH'

    def test_underscore_removed(self):
        assert normalize_for_tolerant_comparison('nima_g') == 'NIMAG'


class TestResolvePlayer:
    """Staged lookup: token, display name, fuzzy."""

    def test_exact_token(self, store):
        player = resolve_player(store, 'Camillo77')
        assert player.display_name == 'Camillo Colombo'

    def test_display_name_case_insensitive(self, store):
        player = resolve_player(store, 'camillo colombo')
        assert player.external_token == 'Camillo77'

    def test_fuzzy_match(self, store):
        store.create_player('jod', "John O'Donnell", 'Sylvan')
        player = resolve_player(store, 'John ODonnell')
        assert player is not None
        assert player.external_token == 'jod'

    def test_unknown(self, store):
        assert resolve_player(store, 'Mark Dorris') is None

    def test_fuzzy_below_threshold(self, store):
        assert find_fuzzy_match(store, 'Andrew Wallace', threshold=0.99) is None

    def test_similarity_uses_best_name(self, store):
        player = store.find_player_by_token('Camillo77')
        assert name_similarity('Camillo77', player) == 1.0


class TestResolveTokens:
    """Batch resolution with pending players."""

    def test_resolved_and_pending(self, store):
        resolved, pending = resolve_tokens(store, ['Andrew Walker', 'Nima', 'Beau Briggs'])
        assert set(resolved) == {'Andrew Walker', 'Beau Briggs'}
        assert pending == [PendingPlayer(token='Nima', suggested_name='Nima', club='Sylvan')]

    def test_default_club(self, store):
        _, pending = resolve_tokens(store, ['Nima'], default_club='8th')
        assert pending[0].club == '8th'

    def test_duplicate_tokens_once(self, store):
        _, pending = resolve_tokens(store, ['Nima', 'Nima'])
        assert len(pending) == 1

    def test_order_independent(self, store):
        tokens = ['Andrew Walker', 'Nima', 'Camillo77']
        first, _ = resolve_tokens(store, tokens)
        second, _ = resolve_tokens(store, list(reversed(tokens)))
        assert {t: p.id for t, p in first.items()} == {t: p.id for t, p in second.items()}
