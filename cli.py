#!/usr/bin/env python3
"""
Main CLI for the Security Risk Dashboard engine.
Usage: python cli.py {rank,chart,holdings,portfolio} ...
"""

import sys
import argparse
import logging
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from analysis.chart_series import build_chart_series
from analysis.holdings import add_holding, remove_holding, total_allocation, update_allocation
from analysis.ranking import rank_securities
from analysis.screening import filter_records, thermostat_label
from analysis.calculations.series_math import InvalidArgumentError
from ingestion.providers.csv_source import CsvSeriesSource, CsvSourceError, load_security_records
from pipeline.config import PortfolioJobConfig
from pipeline.portfolio_job import JobState, PortfolioJob
from reports.portfolio_export import write_portfolio_csv
from storage.holdings_store import HoldingsStoreError, JsonHoldingsStore


def main(argv=None):
    """Main CLI entry point."""
    config = PortfolioJobConfig.from_env()
    logging.basicConfig(
        level=config.log_level,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )

    parser = argparse.ArgumentParser(
        description='Rank securities and analyze portfolio volatility',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python cli.py rank data/stock_summary.csv --top 20
  python cli.py rank data/etf_summary.csv --category-field Category
  python cli.py chart AAPL
  python cli.py holdings add AAPL
  python cli.py holdings set AAPL 60
  python cli.py portfolio --export portfolio_data.csv
  python cli.py portfolio --summary data/stock_summary.csv
        """
    )
    subparsers = parser.add_subparsers(dest='command', required=True)

    rank_parser = subparsers.add_parser('rank', help='Rank securities by momentum score')
    rank_parser.add_argument('summary_csv', type=Path, help='Summary CSV path')
    rank_parser.add_argument('--category-field', default='Sector',
                             help='Category column (Sector or Category, default: Sector)')
    rank_parser.add_argument('--search', default='', help='Symbol/name filter')
    rank_parser.add_argument('--category', default='all', help='Category filter (default: all)')
    rank_parser.add_argument('--top', type=int, default=25, help='Rows to show (default: 25)')

    chart_parser = subparsers.add_parser('chart', help='Show close with SMA50/SMA200')
    chart_parser.add_argument('symbol', help='Security symbol')
    chart_parser.add_argument('--days', type=int, default=10, help='Rows to show (default: 10)')

    holdings_parser = subparsers.add_parser('holdings', help='Edit the holdings list')
    holdings_parser.add_argument('action', choices=['show', 'add', 'remove', 'set'])
    holdings_parser.add_argument('symbol', nargs='?')
    holdings_parser.add_argument('allocation', nargs='?')

    portfolio_parser = subparsers.add_parser('portfolio', help='Aggregate portfolio metrics')
    portfolio_parser.add_argument('--export', type=Path, help='Write portfolio CSV to this path')
    portfolio_parser.add_argument('--summary', type=Path,
                                  help='Summary CSV supplying each holding\'s latest CVI')
    portfolio_parser.add_argument('--category-field', default='Sector',
                                  help='Category column of the summary CSV (default: Sector)')

    args = parser.parse_args(argv)

    try:
        if args.command == 'rank':
            return show_rankings(args)
        if args.command == 'chart':
            return show_chart(args, config)
        if args.command == 'holdings':
            return edit_holdings(args, config)
        return run_portfolio(args, config)
    except (CsvSourceError, HoldingsStoreError, InvalidArgumentError) as e:
        print(f"ERROR: {e}")
        return 1


def show_rankings(args) -> int:
    """Print the ranked, filtered summary table."""
    records = load_security_records(args.summary_csv, category_field=args.category_field)
    ranked = filter_records(rank_securities(records), args.search, args.category)

    print(f"{'Rank':>4}  {'Chg':>4}  {'Symbol':<8} {'Close':>10} {'CVI':>6}  Thermo")
    for row in ranked[:args.top]:
        record = row.record
        change = f"{row.rank_change:+d}" if row.rank_change else "0"
        print(
            f"{row.rank:>4}  {change:>4}  {record.symbol:<8} "
            f"{record.close_price:>10.2f} {record.cvi:>6.0f}  {thermostat_label(record.thermostat)}"
        )

    print()
    print(f"{len(ranked)} securities")
    return 0


def show_chart(args, config: PortfolioJobConfig) -> int:
    """Print the trailing chart rows for one symbol."""
    points = CsvSeriesSource(config.data_dir)(args.symbol)
    rows = build_chart_series(points)

    print(f"{'Date':<12} {'Close':>10} {'SMA50':>10} {'SMA200':>10}")
    for row in rows[-args.days:]:
        sma50 = f"{row['sma50']:.2f}" if row['sma50'] is not None else '-'
        sma200 = f"{row['sma200']:.2f}" if row['sma200'] is not None else '-'
        print(f"{row['date'].isoformat():<12} {row['close']:>10.2f} {sma50:>10} {sma200:>10}")

    return 0


def edit_holdings(args, config: PortfolioJobConfig) -> int:
    """Show or edit the persisted holdings list."""
    store = JsonHoldingsStore(config.holdings_path)
    holdings = store.load()

    if args.action != 'show':
        if not args.symbol:
            print(f"ERROR: holdings {args.action} requires a symbol")
            return 1

        if args.action == 'add':
            holdings = add_holding(holdings, args.symbol)
        elif args.action == 'remove':
            holdings = remove_holding(holdings, args.symbol)
        else:
            holdings = update_allocation(holdings, args.symbol, args.allocation)

        store.save(holdings)

    for holding in holdings:
        allocation = holding.allocation_percent or 0.0
        print(f"{holding.symbol:<8} {allocation:>7.2f}%")

    print(f"Total Allocation: {total_allocation(holdings):.2f}%")
    return 0


def run_portfolio(args, config: PortfolioJobConfig) -> int:
    """Aggregate the stored holdings and print portfolio metrics."""
    holdings = JsonHoldingsStore(config.holdings_path).load()

    latest_cvi = None
    if args.summary:
        records = load_security_records(args.summary, category_field=args.category_field)
        latest_cvi = {record.symbol: record.cvi for record in records}

    job = PortfolioJob(CsvSeriesSource(config.data_dir), config=config, latest_cvi=latest_cvi)
    result = job.run(holdings)

    if result.unavailable:
        print(f"Total Allocation: {total_allocation(holdings):.2f}% (must equal 100%)")
        print("Portfolio metrics unavailable")
        return 1

    if result.weighted_average_cvi is not None:
        print(f"Weighted Average CVI:       {result.weighted_average_cvi:.1f}")

    if result.state != JobState.READY:
        print(f"ERROR: Portfolio calculation failed: {result.error}")
        return 1

    metrics = result.metrics
    print(f"Portfolio CVI:              {metrics.portfolio_cvi:.1f}")
    print(f"Benefit of Diversification: {metrics.diversification_benefit_percent:.1f}%")
    print(f"History:                    {metrics.history_days} days")

    if args.export:
        write_result = write_portfolio_csv(metrics, args.export)
        if write_result['status'] != 'completed':
            print(f"ERROR: Export failed: {write_result['error']}")
            return 1
        print(f"Exported: {write_result['output_path']}")

    return 0


if __name__ == '__main__':
    sys.exit(main())
