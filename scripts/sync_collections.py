"""Command-line interface for syncing smart collections.

Loads the catalog, re-evaluates smart collection rules and optionally writes
the result to a catalog snapshot the API loads on startup.

Example:
    Sync every smart collection:
        $ python scripts/sync_collections.py --catalog-dir data

    Sync one collection and save a snapshot:
        $ python scripts/sync_collections.py --collection-id 2 --save-snapshot
"""

import argparse
import logging
import sys
from pathlib import Path

# Add project root to Python path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from src.api.dependencies import load_engine
from src.api.exceptions import CatalogRecException
from src.catalog.store import save_snapshot
from src.config import DEFAULT_CATALOG_DIR, Settings


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the script.

    Args:
        verbose: If True, set log level to DEBUG. Otherwise, use INFO.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def parse_arguments() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Sync smart collection membership from collection rules.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/sync_collections.py
  python scripts/sync_collections.py --collection-id 3
  python scripts/sync_collections.py --catalog-dir data/prod --save-snapshot
        """,
    )

    parser.add_argument(
        "--catalog-dir",
        type=str,
        default=DEFAULT_CATALOG_DIR,
        help=f"Directory holding the catalog CSVs or snapshot (default: {DEFAULT_CATALOG_DIR})",
    )
    parser.add_argument(
        "--collection-id",
        type=int,
        default=None,
        help="Sync only this collection (default: every smart collection)",
    )
    parser.add_argument(
        "--save-snapshot",
        action="store_true",
        help="Write the synced catalog to the snapshot file in the catalog directory",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging (DEBUG level)",
    )

    return parser.parse_args()


def main() -> int:
    args = parse_arguments()
    setup_logging(args.verbose)
    logger = logging.getLogger(__name__)

    settings = Settings(catalog_dir=args.catalog_dir)

    try:
        engine = load_engine(settings)
        if args.collection_id is not None:
            count = engine.sync_smart_collection(args.collection_id)
            print(f"Synced collection {args.collection_id}: {count} products")
        else:
            total = engine.sync_all()
            print(f"Synced all smart collections: {total} products")
    except CatalogRecException as e:
        logger.error(f"Sync failed: {e.message}")
        return 1

    if args.save_snapshot:
        save_snapshot(engine.store, settings.snapshot_path)
        print(f"Snapshot saved to {settings.snapshot_path}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
