"""Command-line interface for F1 Analytics Dashboard."""

import argparse
import sys
from typing import List, Optional

from f1_dashboard.analyzer import METRICS
from f1_dashboard.config import DashboardConfig
from f1_dashboard.engine import DashboardEngine, TABS
from f1_dashboard.models import DashboardError


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Args:
        argv: Argument list (defaults to sys.argv[1:])

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        prog='f1-dashboard',
        description='Explore historical Formula 1 data from the CSV dataset',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  f1-dashboard                                # Overview of the latest season
  f1-dashboard --season 2021                  # Overview of 2021
  f1-dashboard --tab drivers --metric podiums # All-time podium leaderboard
  f1-dashboard --tab drivers --era 1980-1989  # Drivers who raced in the 1980s
  f1-dashboard --tab compare --compare 1 30   # Compare two drivers by id
  f1-dashboard --base-url https://example.org/f1  # Load CSVs over HTTP
        """
    )

    # Data source (mutually exclusive)
    source_group = parser.add_mutually_exclusive_group()
    source_group.add_argument(
        '--data-dir',
        default='data',
        metavar='DIR',
        help='Directory containing the CSV tables (default: data)'
    )
    source_group.add_argument(
        '--base-url',
        metavar='URL',
        help='Base URL serving the CSV tables'
    )

    # View options
    parser.add_argument(
        '--tab',
        choices=TABS,
        default='overview',
        help='Dashboard tab to render (default: overview)'
    )
    parser.add_argument(
        '--season',
        type=int,
        metavar='YEAR',
        help='Season to show (default: latest season in the data)'
    )
    parser.add_argument(
        '--metric',
        choices=METRICS,
        default='wins',
        help='Leaderboard metric for the drivers tab (default: wins)'
    )
    parser.add_argument(
        '--top',
        type=int,
        default=15,
        metavar='N',
        help='Number of leaderboard rows to show (default: 15)'
    )
    parser.add_argument(
        '--search',
        default='',
        metavar='NAME',
        help='Filter the drivers tab by name'
    )
    parser.add_argument(
        '--era',
        default='all',
        metavar='START-END',
        help='Filter the drivers tab to drivers who raced in a year range'
    )
    parser.add_argument(
        '--compare',
        type=int,
        nargs=2,
        metavar='DRIVER_ID',
        help='Two driver ids for the compare tab'
    )
    parser.add_argument(
        '--carry-forward',
        action='store_true',
        help='Repeat the last known points for rounds without standings'
    )

    # Output options
    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Show load progress'
    )

    args = parser.parse_args(argv)

    # Validate arguments
    if args.top < 1:
        parser.error("--top must be at least 1")

    if args.tab == 'compare' and not args.compare:
        parser.error("--tab compare requires --compare DRIVER_ID DRIVER_ID")

    return args


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for CLI.

    Returns:
        Exit code (0 for success, 1 for error)
    """
    engine = None

    try:
        args = parse_arguments(argv)

        config = DashboardConfig(data_dir=args.data_dir, base_url=args.base_url)
        engine = DashboardEngine(config=config, verbose=args.verbose)
        engine.load()

        output = engine.render_tab(
            args.tab,
            season=args.season,
            metric=args.metric,
            top=args.top,
            search=args.search,
            era=args.era,
            compare=tuple(args.compare) if args.compare else None,
            carry_forward=args.carry_forward
        )
        print(output)

        return 0

    except DashboardError as e:
        if engine:
            print("\n" + engine.format_error(e), file=sys.stderr)
        else:
            print(f"\nERROR: {e.message}", file=sys.stderr)
        return 1

    except KeyboardInterrupt:
        print("\n\nCancelled by user.", file=sys.stderr)
        return 130  # Standard exit code for SIGINT


if __name__ == '__main__':
    sys.exit(main())
