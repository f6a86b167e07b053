"""
Entry point for the rural_data component.
"""

import argparse
import asyncio
import json
import logging
import sys

from .application.domain import record_to_dict
from .application.exceptions import RuralDataError
from .infrastructure.cache_models import SummaryFile
from .infrastructure.containers import Container

logger = logging.getLogger(__name__)


def setup_logging(level: str):
    """Applies basic logging configuration."""
    logging.basicConfig(level=level)


async def _refresh(container: Container, args: argparse.Namespace):
    summary = await container.rural_data_service().refresh()
    print(SummaryFile.from_domain(summary).model_dump_json(by_alias=True, indent=2))
    if not all(result.success for result in summary.results.values()):
        sys.exit(2)


async def _read(container: Container, args: argparse.Namespace):
    result = await container.rural_data_service().get_records(args.source)
    payload = {
        "source": result.source_key,
        "provenance": result.provenance.value,
        "count": result.count,
        "lastUpdated": (
            result.last_updated.isoformat() if result.last_updated else None
        ),
        "data": [record_to_dict(r) for r in result.records[: args.limit]],
    }
    print(json.dumps(payload, indent=2))


async def _status(container: Container, args: argparse.Namespace):
    summary = await container.rural_data_service().get_status()
    if summary is None:
        print("No data update has run yet.")
        return
    print(SummaryFile.from_domain(summary).model_dump_json(by_alias=True, indent=2))


async def _schedule(container: Container, args: argparse.Namespace):
    scheduler = container.scheduler()
    if not scheduler.start():
        return
    try:
        await asyncio.Event().wait()
    finally:
        scheduler.shutdown()


_COMMANDS = {
    "refresh": _refresh,
    "read": _read,
    "status": _status,
    "schedule": _schedule,
}


async def run_application(args: argparse.Namespace):
    """Wires and runs the application using the DI container."""

    container = Container()
    setup_logging(level=container.config().logging.level)

    try:
        await _COMMANDS[args.command](container, args)
    except RuralDataError as e:
        logger.error(f"An application error occurred: {e}")
        sys.exit(1)
    finally:
        await container.http_client().aclose()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Rural Health Data Refresher")
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser(
        "refresh", help="Download, parse and cache every data source now."
    )

    read = commands.add_parser(
        "read", help="Print the current records of one data source."
    )
    read.add_argument("source", help="A data source key, e.g. cahFacilities")
    read.add_argument(
        "--limit",
        type=int,
        default=10,
        help="Maximum number of records to print (default: 10).",
    )

    commands.add_parser("status", help="Print the last update summary.")

    commands.add_parser(
        "schedule", help="Run the recurring update timer until interrupted."
    )
    return parser


def main():
    cli_args = build_parser().parse_args()

    try:
        asyncio.run(run_application(cli_args))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
