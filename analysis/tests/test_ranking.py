"""
Tests for the ranking engine - current vs prior-week rank.
"""

import pytest
import numpy as np

from analysis.models import SecurityRecord
from analysis.ranking import rank_securities


def make_record(symbol, score, prior_score, **kwargs):
    return SecurityRecord(symbol=symbol, score=score, prior_score=prior_score, **kwargs)


class TestRankSecurities:
    """Tests for rank_securities."""

    def test_rank_basic(self):
        """Ranks, prior ranks and rank change for a small list."""
        records = [
            make_record('AAA', 3.0, 1.0),
            make_record('BBB', 2.0, 3.0),
            make_record('CCC', 1.0, 2.0),
        ]

        ranked = rank_securities(records)

        assert [r.symbol for r in ranked] == ['AAA', 'BBB', 'CCC']
        assert [r.rank for r in ranked] == [1, 2, 3]
        assert [r.prior_rank for r in ranked] == [3, 1, 2]
        assert [r.rank_change for r in ranked] == [2, -1, -1]

    def test_rank_keeps_record_fields(self):
        """The original record rides along unchanged."""
        record = make_record('XYZ', 1.0, 1.0, name='Xyz Corp', category='Tech', cvi=42.0)

        ranked = rank_securities([record])

        assert ranked[0].record is record
        assert ranked[0].rank == 1
        assert ranked[0].rank_change == 0

    def test_rank_ties_preserve_input_order(self):
        """Equal scores keep input order in both orderings."""
        records = [
            make_record('D', 5.0, 5.0),
            make_record('E', 5.0, 5.0),
            make_record('F', 9.0, 1.0),
        ]

        ranked = rank_securities(records)

        assert [r.symbol for r in ranked] == ['F', 'D', 'E']
        by_symbol = {r.symbol: r for r in ranked}
        assert by_symbol['D'].prior_rank == 1
        assert by_symbol['E'].prior_rank == 2
        assert by_symbol['F'].prior_rank == 3

    def test_rank_change_zero_when_order_unchanged(self):
        """Same relative order in both scores means no rank change."""
        records = [make_record(f'S{i}', float(10 - i), float(100 - 3 * i)) for i in range(10)]

        ranked = rank_securities(records)

        assert all(r.rank_change == 0 for r in ranked)

    @pytest.mark.parametrize('bad_value', [None, float('nan'), float('inf'), 'n/a', True])
    def test_rank_excludes_invalid_scores(self, bad_value):
        """Records with missing or non-numeric scores are dropped entirely."""
        records = [
            make_record('GOOD1', 2.0, 2.0),
            make_record('BAD1', bad_value, 1.0),
            make_record('BAD2', 1.0, bad_value),
            make_record('GOOD2', 1.0, 3.0),
        ]

        ranked = rank_securities(records)

        assert [r.symbol for r in ranked] == ['GOOD1', 'GOOD2']
        assert [r.rank for r in ranked] == [1, 2]
        assert [r.prior_rank for r in ranked] == [2, 1]

    def test_rank_integer_scores(self):
        """Integer scores are numeric too."""
        ranked = rank_securities([make_record('A', 1, 2), make_record('B', 2, 1)])

        assert [r.symbol for r in ranked] == ['B', 'A']

    def test_rank_empty(self):
        """Empty input gives empty output."""
        assert rank_securities([]) == []

    def test_rank_is_permutation_with_stable_ties(self):
        """Ranks are 1..M and equal scores keep input order."""
        rng = np.random.RandomState(5)
        scores = rng.randint(0, 8, 200)
        priors = rng.randint(0, 8, 200)
        records = [
            make_record(f'SYM{i}', float(s), float(p))
            for i, (s, p) in enumerate(zip(scores, priors))
        ]

        ranked = rank_securities(records)

        assert sorted(r.rank for r in ranked) == list(range(1, 201))
        assert sorted(r.prior_rank for r in ranked) == list(range(1, 201))

        position = {r.symbol: i for i, r in enumerate(records)}
        for earlier, later in zip(ranked, ranked[1:]):
            assert earlier.record.score >= later.record.score
            if earlier.record.score == later.record.score:
                assert position[earlier.symbol] < position[later.symbol]

        for r in ranked:
            assert r.rank_change == r.prior_rank - r.rank
