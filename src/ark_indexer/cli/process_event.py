"""CLI command for processing a single Transfer event.

Usage:
    python -m ark_indexer.cli.process_event [OPTIONS] [EVENT_FILE]

Examples:
    # Process an event saved from a node response
    python -m ark_indexer.cli.process_event event.json --contract-type ERC721

    # Read the event from stdin
    cat event.json | python -m ark_indexer.cli.process_event --contract-type ERC721

    # Verbose logging
    python -m ark_indexer.cli.process_event event.json --contract-type ERC721 -v
"""

import asyncio
import json
import sys
from argparse import ArgumentParser, Namespace

import structlog

from ark_indexer.app import build_transfer_processor, close_transfer_processor
from ark_indexer.core.config import Settings, configure_logging
from ark_indexer.core.database import setup_db_session
from ark_indexer.models.collection import ContractType
from ark_indexer.services.exceptions import BlockFetchError, EventDecodeError
from ark_indexer.uow import create_uow_factory

logger = structlog.get_logger()


def parse_args(argv: list[str] | None = None) -> Namespace:
    """Parse command-line arguments."""
    parser = ArgumentParser(description="Process one Starknet Transfer event")

    parser.add_argument(
        "event_file",
        nargs="?",
        help="Path to the event JSON (reads stdin if omitted)",
    )

    parser.add_argument(
        "--contract-type",
        required=True,
        choices=[t.value for t in ContractType],
        help="Token standard of the emitting contract",
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging (DEBUG level)",
    )

    return parser.parse_args(argv)


def read_event(event_file: str | None) -> str:
    if event_file is None:
        return sys.stdin.read()
    with open(event_file, encoding="utf-8") as f:
        return f.read()


async def async_main(argv: list[str] | None = None) -> int:
    """Main CLI entry point (async).

    Returns:
        Exit code: 0 (success), 1 (error), 2 (processed, some writes need a retry)
    """
    args = parse_args(argv)

    settings = Settings()  # type: ignore[call-arg]
    if args.verbose:
        settings.log_level = "DEBUG"
    configure_logging(settings)

    try:
        raw_event = read_event(args.event_file)
    except OSError as e:
        logger.error("process_event.read_failed", path=args.event_file, error=str(e))
        return 1

    session_factory = setup_db_session(settings.database_url, settings.db_pool_size)
    processor = build_transfer_processor(settings, create_uow_factory(session_factory))

    try:
        result = await processor.process(raw_event, ContractType(args.contract_type))
    except (EventDecodeError, BlockFetchError) as e:
        logger.error("process_event.failed", error=str(e), error_type=type(e).__name__)
        return 1
    except KeyboardInterrupt:
        logger.warning("process_event.interrupted")
        return 2
    finally:
        await close_transfer_processor(processor)

    print(json.dumps(result.to_dict(), indent=2))

    if result.needs_retry:
        logger.warning("process_event.partial", message="Some writes failed; re-run to retry")
        return 2
    return 0


def main() -> int:
    """Synchronous wrapper for async main."""
    return asyncio.run(async_main())


if __name__ == "__main__":
    sys.exit(main())
