"""CLI script for related and suggested products.

Useful for checking recommendations against a catalog without running the
API. Prints results to the console.
"""

import argparse
import logging
import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from src.api.dependencies import load_engine
from src.api.exceptions import CatalogRecException
from src.config import DEFAULT_CATALOG_DIR, Settings
from src.recommender.service import SuggestionStrategy

# Setup logging
logging.basicConfig(
    level=logging.WARNING,
    format="%(levelname)s: %(message)s"
)
logger = logging.getLogger(__name__)


def main() -> None:
    """Main CLI function."""
    parser = argparse.ArgumentParser(
        description="Show related or suggested products from a catalog",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/related_cli.py related 42
  python scripts/related_cli.py related 42 --limit 5 --explain
  python scripts/related_cli.py suggested --strategy trending
        """
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    related = subparsers.add_parser("related", help="Products related to a product")
    related.add_argument("product_id", type=int, help="Source product ID")
    related.add_argument(
        "--explain",
        action="store_true",
        help="Show relevance score and match reasons"
    )

    suggested = subparsers.add_parser("suggested", help="Suggested products")
    suggested.add_argument(
        "--strategy",
        type=str,
        choices=[s.value for s in SuggestionStrategy],
        default=SuggestionStrategy.MIXED.value,
        help="Suggestion strategy (default: mixed)"
    )

    for sub in (related, suggested):
        sub.add_argument(
            "--limit",
            type=int,
            default=12,
            help="Number of products to return (default: 12)"
        )
        sub.add_argument(
            "--catalog-dir",
            type=str,
            default=DEFAULT_CATALOG_DIR,
            help=f"Directory with catalog files (default: {DEFAULT_CATALOG_DIR})"
        )
        sub.add_argument(
            "--verbose",
            "-v",
            action="store_true",
            help="Enable verbose logging"
        )

    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.INFO)

    try:
        engine = load_engine(Settings(catalog_dir=args.catalog_dir))
    except CatalogRecException as e:
        print(f"Error: {e.message}", file=sys.stderr)
        sys.exit(1)

    scores = {}
    if args.command == "related":
        products, scores = engine.get_related_products(
            args.product_id, limit=args.limit, return_scores=True
        )
        print(f"\nRelated products for product {args.product_id}:")
    else:
        products = engine.get_suggested_products(limit=args.limit, strategy=args.strategy)
        print(f"\nSuggested products (strategy: {args.strategy}):")

    if not products:
        print("  (none)")

    for rank, product in enumerate(products, start=1):
        line = f"  {rank:>2}. [{product.id}] {product.title} - {product.price:.2f}"
        if args.command == "related" and args.explain:
            score = scores[product.id]
            reasons = ", ".join(score["match_reasons"])
            line += f"  (score {score['relevance_score']}: {reasons})"
        print(line)

    print()


if __name__ == "__main__":
    main()
