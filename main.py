# main.py

"""Entry point for the grocery_compare command line."""

import argparse
import asyncio
import logging
import sys

from src.config.logging_config import setup_logging
from src.config.settings import Settings

logger = logging.getLogger("grocery_compare.main")


def _add_output_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-f",
        "--format",
        choices=["json", "table"],
        default="json",
        dest="output_format",
        help="Output format (default: json).",
    )


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI."""
    valid_ids = ", ".join(s["id"] for s in Settings.AVAILABLE_SOURCES)

    parser = argparse.ArgumentParser(
        prog="grocery_compare",
        description="Costa Rica supermarket price comparison.",
        epilog=f"Available stores: {valid_ids}",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    search = sub.add_parser("search", help="Ranked product search.")
    search.add_argument("query", help="Search text.")
    search.add_argument(
        "-s",
        "--store",
        default=None,
        help="Single store ID (default: all).",
    )
    search.add_argument("--page", type=int, default=1)
    search.add_argument(
        "--page-size",
        type=int,
        default=Settings.DEFAULT_PAGE_SIZE,
        dest="page_size",
    )
    _add_output_flag(search)

    compare = sub.add_parser(
        "compare", help="Compare one product across every store."
    )
    compare.add_argument("name", help="Product name.")
    compare.add_argument("-b", "--barcode", default=None)
    compare.add_argument(
        "--from-store",
        default=None,
        dest="original_store",
        help="Store the product name was taken from.",
    )
    compare.add_argument(
        "--save",
        action="store_true",
        default=False,
        help="Also write the result to results/.",
    )
    _add_output_flag(compare)

    lookup = sub.add_parser("lookup", help="Find a product by barcode.")
    lookup.add_argument("code", help="EAN / barcode.")
    lookup.add_argument("-s", "--store", default=None)
    _add_output_flag(lookup)

    dump = sub.add_parser(
        "dump-automercado", help="Dump the whole Automercado catalog."
    )
    dump.add_argument("-o", "--output", default=None)
    dump.add_argument(
        "--hits-per-page",
        type=int,
        default=Settings.AUTOMERCADO_MAX_HITS_PER_PAGE,
        dest="hits_per_page",
    )
    dump.add_argument(
        "--max-pages", type=int, default=None, dest="max_pages"
    )

    sub.add_parser("health", help="Check connectivity to every store.")
    return parser


def _dispatch(args: argparse.Namespace) -> int:
    from src.cli import runner

    if args.command == "search":
        return asyncio.run(
            runner.cli_search(
                args.query,
                args.store,
                args.page,
                args.page_size,
                args.output_format,
            )
        )
    if args.command == "compare":
        return asyncio.run(
            runner.cli_compare(
                args.name,
                args.barcode,
                args.original_store,
                args.output_format,
                args.save,
            )
        )
    if args.command == "lookup":
        return asyncio.run(
            runner.cli_lookup(args.code, args.store, args.output_format)
        )
    if args.command == "dump-automercado":
        return runner.run_dump_automercado(
            args.output, args.hits_per_page, args.max_pages
        )
    return asyncio.run(runner.run_health_check())


def main() -> None:
    """Parse arguments and run the chosen subcommand."""
    log_file = setup_logging()
    logger.info("grocery_compare starting, log file: %s", log_file)

    args = _build_parser().parse_args()
    try:
        exit_code = _dispatch(args)
    except Exception:
        logger.critical("Fatal error in '%s'", args.command, exc_info=True)
        raise
    finally:
        logger.info("grocery_compare shutting down")
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
