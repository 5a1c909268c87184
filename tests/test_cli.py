"""
End-to-end tests for the CLI against files in a temp directory.
"""

import pytest
from datetime import date, timedelta

from cli import main


SUMMARY_CSV = """Symbol,Name,Sector,Close,Volume,CVI,SecState,Thermostat,VWRS,VWRS_1wk
AAPL,Apple Inc,Technology,189.50,52000000,210,3,1,1.25,0.75
XOM,Exxon Mobil,Energy,104.10,15000000,180,2,4,0.50,1.10
BAD,Missing Score,Energy,10.00,100,90,1,2,,0.20
"""


def write_series(path, close, days=100, cvi=20):
    start = date(2025, 1, 1)
    lines = ['Date,Close,Volume,CVI']
    for i in range(days):
        lines.append(f"{(start + timedelta(days=i)).isoformat()},{close + i * 0.1:.2f},1000,{cvi}")
    path.write_text('\n'.join(lines) + '\n')


@pytest.fixture
def workspace(tmp_path, monkeypatch):
    series_dir = tmp_path / 'series'
    series_dir.mkdir()
    write_series(series_dir / 'AAA_data.csv', 100.0, cvi=20)
    write_series(series_dir / 'BBB_data.csv', 50.0, cvi=30)
    (tmp_path / 'summary.csv').write_text(SUMMARY_CSV)

    monkeypatch.setenv('SERIES_DATA_DIR', str(series_dir))
    monkeypatch.setenv('HOLDINGS_STORE_PATH', str(tmp_path / 'portfolio.json'))
    monkeypatch.setenv('LOG_LEVEL', 'WARNING')
    return tmp_path


class TestRankCommand:
    """Tests for cli.py rank."""

    def test_rank_output(self, workspace, capsys):
        exit_code = main(['rank', str(workspace / 'summary.csv')])

        out = capsys.readouterr().out
        lines = out.splitlines()
        assert exit_code == 0
        assert 'AAPL' in lines[1] and '+1' in lines[1] and 'bullish' in lines[1]
        assert 'XOM' in lines[2] and '-1' in lines[2] and 'bearish' in lines[2]
        assert 'BAD' not in out
        assert '2 securities' in out

    def test_rank_category_filter(self, workspace, capsys):
        exit_code = main(['rank', str(workspace / 'summary.csv'), '--category', 'Energy'])

        out = capsys.readouterr().out
        assert exit_code == 0
        assert 'XOM' in out
        assert 'AAPL' not in out
        assert '1 securities' in out

    def test_rank_missing_file(self, workspace, capsys):
        exit_code = main(['rank', str(workspace / 'missing.csv')])

        assert exit_code == 1
        assert 'ERROR: Data file not found' in capsys.readouterr().out


class TestChartCommand:
    """Tests for cli.py chart."""

    def test_chart_rows(self, workspace, capsys):
        exit_code = main(['chart', 'AAA', '--days', '3'])

        lines = capsys.readouterr().out.splitlines()
        assert exit_code == 0
        assert len(lines) == 4
        assert lines[-1].startswith('2025-04-10')
        # 100 days is short of the 200-day average
        assert lines[-1].split()[-1] == '-'

    def test_chart_unknown_symbol(self, workspace, capsys):
        assert main(['chart', 'NOPE']) == 1
        assert 'ERROR' in capsys.readouterr().out

    def test_chart_malformed_date(self, workspace, capsys):
        """A history row with an unreadable date fails cleanly."""
        (workspace / 'series' / 'BADD_data.csv').write_text(
            'Date,Close,Volume,CVI\n2025-06-27,10,1,1\nnot-a-date,10,1,1\n'
        )

        assert main(['chart', 'BADD']) == 1
        assert 'ERROR: Invalid date' in capsys.readouterr().out


class TestHoldingsAndPortfolio:
    """Tests for holdings editing and portfolio aggregation."""

    def test_portfolio_flow(self, workspace, capsys):
        assert main(['holdings', 'add', 'AAA']) == 0
        assert main(['holdings', 'add', 'BBB']) == 0
        assert main(['holdings', 'set', 'AAA', '60']) == 0
        assert main(['holdings', 'set', 'BBB', '40']) == 0
        out = capsys.readouterr().out
        assert 'Total Allocation: 100.00%' in out

        export_path = workspace / 'portfolio_data.csv'
        exit_code = main(['portfolio', '--export', str(export_path)])

        out = capsys.readouterr().out
        assert exit_code == 0
        assert 'Weighted Average CVI:       24.0' in out
        assert 'History:                    100 days' in out
        assert export_path.exists()
        assert export_path.read_text().startswith('Day,Portfolio Value')

    def test_portfolio_unavailable(self, workspace, capsys):
        main(['holdings', 'add', 'AAA'])
        main(['holdings', 'set', 'AAA', '50'])
        capsys.readouterr()

        exit_code = main(['portfolio'])

        out = capsys.readouterr().out
        assert exit_code == 1
        assert 'Portfolio metrics unavailable' in out

    def test_portfolio_fetch_failure(self, workspace, capsys):
        main(['holdings', 'add', 'MISSING'])
        main(['holdings', 'set', 'MISSING', '100'])
        capsys.readouterr()

        exit_code = main(['portfolio'])

        out = capsys.readouterr().out
        assert exit_code == 1
        assert 'Portfolio calculation failed' in out
        assert 'MISSING' in out

    def test_portfolio_summary_cvi_reported_on_failure(self, workspace, capsys):
        """Summary CVIs give a weighted average even without histories."""
        main(['holdings', 'add', 'AAPL'])
        main(['holdings', 'add', 'XOM'])
        main(['holdings', 'set', 'AAPL', '50'])
        main(['holdings', 'set', 'XOM', '50'])
        capsys.readouterr()

        exit_code = main(['portfolio', '--summary', str(workspace / 'summary.csv')])

        out = capsys.readouterr().out
        assert exit_code == 1
        assert 'Weighted Average CVI:       195.0' in out
        assert 'Portfolio calculation failed' in out

    def test_holdings_remove(self, workspace, capsys):
        main(['holdings', 'add', 'AAA'])
        main(['holdings', 'remove', 'AAA'])

        out = capsys.readouterr().out.splitlines()
        assert out[-1] == 'Total Allocation: 0.00%'

    def test_holdings_requires_symbol(self, workspace, capsys):
        assert main(['holdings', 'add']) == 1
        assert 'requires a symbol' in capsys.readouterr().out

    def test_invalid_allocation(self, workspace, capsys):
        main(['holdings', 'add', 'AAA'])

        assert main(['holdings', 'set', 'AAA', '150']) == 1
        assert 'allocation must be between 0 and 100' in capsys.readouterr().out
