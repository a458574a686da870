"""CLI entry point for ark_indexer.cli module.

Enables execution via: python -m ark_indexer.cli
"""

from ark_indexer.cli.process_event import main

if __name__ == "__main__":
    raise SystemExit(main())
