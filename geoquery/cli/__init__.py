"""
GeoQuery CLI Entry Points

Provides command-line interface for:
- datasets: List the datasets of a provider definition
- loading-info: Resolve a catalog dataset into load instructions
"""

import argparse
import logging
import sys


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point"""
    parser = argparse.ArgumentParser(
        prog="geoquery",
        description="GeoQuery - Geospatial query engine",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  geoquery datasets provider.json
  geoquery loading-info provider.json UTM32N:B01 \\
      --bbox 600000,3350000,650000,3400000 --time 2021-01-02T10:02:26Z

Environment:
  GEOQUERY_STAC_API_URL, GEOQUERY_STAC_PAGE_LIMIT and the other GEOQUERY_*
  variables override the built-in settings.
        """,
    )

    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Datasets command
    datasets_parser = subparsers.add_parser("datasets", help="List provider datasets")
    datasets_parser.add_argument("provider", help="Provider definition (JSON file)")

    # Loading info command
    loading_parser = subparsers.add_parser(
        "loading-info", help="Resolve a dataset into load instructions"
    )
    loading_parser.add_argument("provider", help="Provider definition (JSON file)")
    loading_parser.add_argument("dataset", help="Dataset name, e.g. UTM32N:B01")
    loading_parser.add_argument(
        "--bbox", required=True, help="minx,miny,maxx,maxy in the dataset's CRS"
    )
    loading_parser.add_argument(
        "--time", required=True, help="Instant or start/end interval (RFC 3339)"
    )
    loading_parser.add_argument(
        "--resolution", type=float, default=10.0, help="Pixel size in CRS units (default: 10)"
    )

    args = parser.parse_args(argv)

    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=level, format="%(message)s" if not args.verbose else "%(levelname)s: %(message)s"
    )

    if args.command == "datasets":
        from geoquery.cli.datasets import run_datasets

        return run_datasets(args)
    elif args.command == "loading-info":
        from geoquery.cli.loading_info import run_loading_info

        return run_loading_info(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
