"""CLI command for listing the Transfer events of a block.

Usage:
    python -m ark_indexer.cli.extract_block BLOCK_NUMBER

Prints one JSON object per Transfer event, ready to be classified and fed
to ``process_event``.
"""

import asyncio
import json
import sys
from argparse import ArgumentParser, Namespace
from typing import Any

import structlog

from ark_indexer.core.config import Settings, configure_logging
from ark_indexer.services.exceptions import RpcError
from ark_indexer.services.indexing.event_extraction import extract_block_transfers
from ark_indexer.services.starknet.rpc import StarknetRpcClient

logger = structlog.get_logger()


class PrintingClassifier:
    """Writes Transfer events to stdout as JSON lines."""

    async def classify(self, transfer_events: list[dict[str, Any]]) -> None:
        for event in transfer_events:
            print(json.dumps(event))


def parse_args(argv: list[str] | None = None) -> Namespace:
    """Parse command-line arguments."""
    parser = ArgumentParser(description="List the Transfer events of a Starknet block")
    parser.add_argument("block_number", type=int, help="Block to read")
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging (DEBUG level)",
    )
    return parser.parse_args(argv)


async def async_main(argv: list[str] | None = None) -> int:
    """Main CLI entry point (async).

    Returns:
        Exit code: 0 (success), 1 (error)
    """
    args = parse_args(argv)

    settings = Settings()  # type: ignore[call-arg]
    if args.verbose:
        settings.log_level = "DEBUG"
    configure_logging(settings)

    async with StarknetRpcClient(
        settings.starknet_rpc_url, timeout=settings.rpc_timeout_seconds
    ) as rpc:
        try:
            events = await extract_block_transfers(rpc, args.block_number, PrintingClassifier())
        except RpcError as e:
            logger.error("extract_block.failed", block_number=args.block_number, error=str(e))
            return 1

    logger.info("extract_block.complete", block_number=args.block_number, count=len(events))
    return 0


def main() -> int:
    """Synchronous wrapper for async main."""
    return asyncio.run(async_main())


if __name__ == "__main__":
    sys.exit(main())
