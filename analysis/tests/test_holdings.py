"""
Tests for holdings editing and the 100% allocation rule.
"""

import pytest

from analysis.calculations.series_math import InvalidArgumentError
from analysis.holdings import (
    check_allocation_range,
    add_holding,
    remove_holding,
    update_allocation,
    parse_allocation,
    total_allocation,
    is_allocation_valid,
    weighted_holdings
)
from analysis.models import PortfolioHolding


class TestHoldingsEditing:
    """Tests for add/remove/update."""

    def test_add_holding_starts_at_zero(self):
        holdings = add_holding([], 'AAPL')

        assert holdings == [PortfolioHolding('AAPL', 0.0)]

    def test_add_holding_no_duplicates(self):
        holdings = [PortfolioHolding('AAPL', 50.0)]

        assert add_holding(holdings, 'AAPL') == holdings

    def test_add_holding_does_not_mutate(self):
        holdings = [PortfolioHolding('AAPL', 50.0)]

        add_holding(holdings, 'MSFT')

        assert holdings == [PortfolioHolding('AAPL', 50.0)]

    def test_add_holding_blank_symbol(self):
        with pytest.raises(InvalidArgumentError, match="symbol must be non-empty"):
            add_holding([], '  ')

    def test_remove_holding(self):
        holdings = [PortfolioHolding('AAPL', 50.0), PortfolioHolding('MSFT', 50.0)]

        assert remove_holding(holdings, 'AAPL') == [PortfolioHolding('MSFT', 50.0)]

    def test_update_allocation(self):
        holdings = [PortfolioHolding('AAPL', 0.0), PortfolioHolding('MSFT', 0.0)]

        updated = update_allocation(holdings, 'MSFT', '40')

        assert updated == [PortfolioHolding('AAPL', 0.0), PortfolioHolding('MSFT', 40.0)]


class TestParseAllocation:
    """Tests for user-entered allocation coercion."""

    @pytest.mark.parametrize('value,expected', [
        (60, 60.0),
        (12.5, 12.5),
        ('33.3', 33.3),
        (' 7 ', 7.0),
        ('', 0.0),
        ('abc', 0.0),
        (None, 0.0),
    ])
    def test_parse_allocation(self, value, expected):
        assert parse_allocation(value) == pytest.approx(expected)

    @pytest.mark.parametrize('value', [-1, 100.5, '250', float('inf')])
    def test_parse_allocation_out_of_range(self, value):
        with pytest.raises(InvalidArgumentError, match="allocation must be between 0 and 100"):
            parse_allocation(value)


class TestAllocationRule:
    """Tests for the 100% allocation rule."""

    def test_total_allocation_ignores_none(self):
        holdings = [PortfolioHolding('A', 60.0), PortfolioHolding('B', None), PortfolioHolding('C', 40.0)]

        assert total_allocation(holdings) == pytest.approx(100.0)

    def test_valid_at_exactly_100(self):
        holdings = [PortfolioHolding('A', 60.0), PortfolioHolding('B', 40.0)]

        assert is_allocation_valid(holdings)

    def test_valid_within_tolerance(self):
        holdings = [PortfolioHolding('A', 33.333), PortfolioHolding('B', 33.333), PortfolioHolding('C', 33.333)]

        assert is_allocation_valid(holdings)

    def test_invalid_at_99_5(self):
        holdings = [PortfolioHolding('A', 60.0), PortfolioHolding('B', 39.5)]

        assert not is_allocation_valid(holdings)

    def test_invalid_when_empty(self):
        assert not is_allocation_valid([])

    def test_weighted_holdings_skip_zero_and_none(self):
        holdings = [PortfolioHolding('A', 100.0), PortfolioHolding('B', 0.0), PortfolioHolding('C', None)]

        assert weighted_holdings(holdings) == [PortfolioHolding('A', 100.0)]

    def test_allocation_range_accepts_valid(self):
        check_allocation_range([PortfolioHolding('A', 0.0), PortfolioHolding('B', 100.0), PortfolioHolding('C', None)])

    @pytest.mark.parametrize('allocation', [-50.0, 150.0, float('nan'), float('inf')])
    def test_allocation_range_rejects(self, allocation):
        holdings = [PortfolioHolding('A', allocation), PortfolioHolding('B', 50.0)]

        with pytest.raises(InvalidArgumentError, match="allocation for A must be between 0 and 100"):
            check_allocation_range(holdings)
