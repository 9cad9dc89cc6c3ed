"""Tests for standings.points module."""

import pytest

from standings import POINTS, STABLEFORD, STROKE_PLAY, ScoredEntry
from standings.points import (
    POINTS_TABLES,
    assign_all,
    assign_positions,
    points_for_position,
    sort_entries,
)


def _scored(token='Tom', net=72.0, gross=None, **kwargs) -> ScoredEntry:
    """Create a ScoredEntry with defaults for easy test construction."""
    defaults = dict(
        player_token=token, net_score=net,
        gross_score=net if gross is None else gross, handicap=0.0,
    )
    defaults.update(kwargs)
    return ScoredEntry(**defaults)


class TestPointsForPosition:
    """Points curve lookups."""

    def test_table_values(self):
        assert points_for_position(1, 'Tour Event') == 500
        assert points_for_position(2, 'Tour Event') == 300
        assert points_for_position(1, 'Major') == 750
        assert points_for_position(1, 'SUPR') == 93.75

    def test_table_lengths(self):
        assert len(POINTS_TABLES['Major']) == 64
        assert len(POINTS_TABLES['Tour Event']) == 65
        assert len(POINTS_TABLES['League']) == 20
        assert len(POINTS_TABLES['SUPR']) == 20

    def test_fallback_past_table(self):
        assert points_for_position(65, 'Major') == 5
        assert points_for_position(21, 'SUPR') == 9

    def test_league_pays_nothing_past_table(self):
        assert points_for_position(21, 'League') == 0

    def test_unknown_tier(self):
        with pytest.raises(ValueError, match='tier'):
            points_for_position(1, 'Club Night')

    def test_position_below_one(self):
        with pytest.raises(ValueError):
            points_for_position(0, 'Major')

    def test_tables_read_only(self):
        with pytest.raises(TypeError):
            POINTS_TABLES['Major'] = ()


class TestSortEntries:
    """Sort direction per format."""

    def test_stroke_play_ascending(self):
        entries = [_scored('A', 74), _scored('B', 70)]
        assert [e.player_token for e in sort_entries(entries, STROKE_PLAY, 'net')] == ['B', 'A']

    def test_stableford_descending(self):
        entries = [_scored('A', 30), _scored('B', 38)]
        assert [e.player_token for e in sort_entries(entries, STABLEFORD, 'net')] == ['B', 'A']

    def test_stable_for_equal_scores(self):
        entries = [_scored('A', 70), _scored('B', 70), _scored('C', 70)]
        ordered = sort_entries(entries, STROKE_PLAY, 'net')
        assert [e.player_token for e in ordered] == ['A', 'B', 'C']


class TestAssignPositions:
    """Positions, tie counts and split points."""

    def test_two_way_tie_for_first(self):
        entries = [_scored('A', 70), _scored('B', 70), _scored('C', 72)]
        assign_positions(entries, 'Tour Event', STROKE_PLAY, 'net')
        a, b, c = entries
        assert a.net_points == 400.0
        assert b.net_points == 400.0
        assert a.net_position == b.net_position == 1
        assert a.net_tied_players == b.net_tied_players == 2
        assert c.net_position == 3
        assert c.net_points == 190.0
        assert c.net_tied_players == 1

    def test_tie_conserves_points(self):
        entries = [_scored('A', 68), _scored('B', 70), _scored('C', 70), _scored('D', 70)]
        assign_positions(entries, 'Major', STROKE_PLAY, 'net')
        tied = [e for e in entries if e.net_position == 2]
        assert len(tied) == 3
        assert sum(e.net_points for e in tied) == pytest.approx(400 + 350 + 325)

    def test_tolerance(self):
        entries = [_scored('A', 70.0), _scored('B', 70.0005), _scored('C', 70.002)]
        assign_positions(entries, 'Tour Event', STROKE_PLAY, 'net')
        assert entries[0].net_position == entries[1].net_position == 1
        assert entries[2].net_position == 3

    def test_positions_dense_after_ties(self):
        entries = [_scored(t, s) for t, s in [('A', 70), ('B', 70), ('C', 71), ('D', 71), ('E', 75)]]
        ordered = assign_positions(entries, 'Tour Event', STROKE_PLAY, 'net')
        assert [e.net_position for e in ordered] == [1, 1, 3, 3, 5]

    def test_stableford_highest_wins(self):
        entries = [_scored('A', 32), _scored('B', 40)]
        assign_positions(entries, 'League', STABLEFORD, 'net')
        assert entries[1].net_position == 1
        assert entries[1].net_points == 93.75

    def test_direct_points_preserved(self):
        entries = [
            _scored('A', 0, gross_points=93.75, net_points=93.75, direct_points=True),
            _scored('B', 0, gross_points=50.0, net_points=50.0, direct_points=True),
            _scored('C', 0, gross_points=93.75, net_points=93.75, direct_points=True),
        ]
        assign_positions(entries, 'League', POINTS, 'gross')
        assert [e.gross_points for e in entries] == [93.75, 50.0, 93.75]
        assert entries[0].gross_position == entries[2].gross_position == 1
        assert entries[0].gross_tied_players == 2
        assert entries[1].gross_position == 3

    def test_invalid_kind(self):
        with pytest.raises(ValueError):
            assign_positions([_scored()], 'Major', STROKE_PLAY, 'total')


class TestAssignAll:
    """Gross and net boards are independent."""

    def test_boards_independent(self):
        a = _scored('A', net=68, gross=75)
        b = _scored('B', net=70, gross=73)
        assign_all([a, b], 'Tour Event', STROKE_PLAY)
        assert (a.net_position, a.gross_position) == (1, 2)
        assert (b.net_position, b.gross_position) == (2, 1)
        assert a.net_points == 500
        assert a.gross_points == 300

    def test_tie_counts_per_board(self):
        a = _scored('A', net=70, gross=75)
        b = _scored('B', net=70, gross=73)
        assign_all([a, b], 'Tour Event', STROKE_PLAY)
        assert a.net_tied_players == 2
        assert a.gross_tied_players == 1
