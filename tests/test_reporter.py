"""Tests for standings.reporter module."""

import csv

from standings import Player, PlayerStats
from standings.reporter import (
    CSV_COLUMNS,
    print_summary,
    write_csv_report,
    write_html_report,
)


def _stats(name='Camillo Colombo', points=450.0, club='8th') -> PlayerStats:
    player = Player(id=name.lower(), external_token=name.split()[0], display_name=name, club=club)
    return PlayerStats(
        player=player, total_points=points, counting_events=3, total_events=4,
        avg_gross=74.333, avg_net=70.0, best_finish=1,
    )


class TestCsvReport:
    """The CSV report opens cleanly in Excel."""

    def test_rows(self, tmp_path):
        path = tmp_path / 'out' / 'standings.csv'
        write_csv_report([_stats(), _stats('Beau Briggs', 300.0, 'Sylvan')], path)

        with open(path, encoding='utf-8-sig', newline='') as f:
            rows = list(csv.DictReader(f))
        assert list(rows[0].keys()) == CSV_COLUMNS
        assert rows[0]['Rank'] == '1'
        assert rows[0]['Total_Points'] == '450.00'
        assert rows[0]['Avg_Gross'] == '74.3'
        assert rows[1]['Player'] == 'Beau Briggs'

    def test_bom_written(self, tmp_path):
        path = tmp_path / 'standings.csv'
        write_csv_report([], path)
        assert path.read_bytes().startswith(b'\xef\xbb\xbf')


class TestHtmlReport:
    """The HTML report renders the leaderboard."""

    def test_contains_players(self, tmp_path):
        path = tmp_path / 'standings.html'
        write_html_report([_stats()], path, title='All clubs', board='gross')
        html = path.read_text(encoding='utf-8')
        assert 'Camillo Colombo' in html
        assert 'Season standings (gross)' in html
        assert 'Leader: Camillo Colombo' in html

    def test_names_escaped(self, tmp_path):
        path = tmp_path / 'standings.html'
        write_html_report([_stats('Tom <b>Bold</b>')], path)
        html = path.read_text(encoding='utf-8')
        assert '<b>Bold</b>' not in html
        assert '&lt;b&gt;' in html


class TestPrintSummary:
    """Console summary."""

    def test_output(self, capsys):
        print_summary([_stats()], 'All clubs')
        out = capsys.readouterr().out
        assert 'Camillo Colombo' in out
        assert 'Players ranked:' in out
