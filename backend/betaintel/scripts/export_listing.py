"""Export a filtered listing to CSV through the HTTP API.

Usage:
    python -m betaintel.scripts.export_listing RESOURCE [options]

Options:
    --api-url URL        API base URL (default: settings.api_base_url)
    --token TOKEN        Bearer token for protected resources
    --param KEY=VALUE    Listing query parameter, repeatable (e.g. --param from=2024-03-01)
    --out PATH           Output file (default: {resource}_export_{dd-mm-YYYY}.csv)
    --page-size N        Rows per page when falling back to paginated export
    --yes                Accept a partial export without prompting
"""

import argparse
import asyncio
import sys
from pathlib import Path

from betaintel.config import get_settings
from betaintel.listing.client import HTTPListingClient, StaticTokenSession
from betaintel.listing.export import BulkExportOrchestrator, export_filename
from betaintel.listing.resources import RESOURCES
from betaintel.logging_config import configure_logging


def parse_params(pairs: list[str]) -> dict[str, str]:
    """Turn ``KEY=VALUE`` strings into a query dict; later keys win."""
    params: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise argparse.ArgumentTypeError(f"Expected KEY=VALUE, got {pair!r}")
        params[key.strip()] = value
    return params


def prompt_partial(received: int, expected: int) -> bool:
    if not sys.stdin.isatty():
        print(f"Only {received} of {expected} rows were fetched; rerun with --yes to accept.", file=sys.stderr)
        return False
    answer = input(f"Only {received} of {expected} rows were fetched. Export anyway? [y/N] ")
    return answer.strip().lower() in ("y", "yes", "s", "sim")


def print_progress(value: int) -> None:
    print(f"\rExporting... {value:3d}%", end="", file=sys.stderr, flush=True)


async def run_export(args: argparse.Namespace) -> int:
    settings = get_settings()
    client = HTTPListingClient(
        args.api_url or settings.api_base_url,
        session=StaticTokenSession(args.token),
    )
    orchestrator = BulkExportOrchestrator(
        client,
        args.resource,
        page_size=args.page_size or settings.export_page_size,
        request_delay=settings.export_request_delay,
        timezone_name=settings.display_timezone,
        confirm_partial=(lambda received, expected: True) if args.yes else prompt_partial,
        on_progress=print_progress,
    )

    result = await orchestrator.export_all(parse_params(args.param))
    print(file=sys.stderr)

    if not result.ok:
        print(f"Export {result.state.value}: {result.error}", file=sys.stderr)
        return 1

    out = args.out or Path(export_filename(args.resource, settings.display_timezone))
    out.write_text(result.csv, encoding="utf-8")
    suffix = " (partial)" if result.partial else ""
    print(f"Wrote {result.row_count} of {result.expected_total} rows to {out}{suffix}")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Export a filtered listing to CSV")
    parser.add_argument("resource", choices=sorted(RESOURCES), help="Resource to export")
    parser.add_argument("--api-url", default=None, help="API base URL")
    parser.add_argument("--token", default=None, help="Bearer token")
    parser.add_argument(
        "--param",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Listing query parameter (repeatable)",
    )
    parser.add_argument("--out", type=Path, default=None, help="Output CSV path")
    parser.add_argument("--page-size", type=int, default=None, help="Rows per page")
    parser.add_argument("--yes", action="store_true", help="Accept partial exports")

    args = parser.parse_args(argv)
    try:
        parse_params(args.param)
    except argparse.ArgumentTypeError as e:
        parser.error(str(e))

    configure_logging()
    return asyncio.run(run_export(args))


if __name__ == "__main__":
    sys.exit(main())
