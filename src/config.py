"""Configuration for the CatalogRec service.

Module-level defaults, overridable through ``CATALOGREC_*`` environment
variables.
"""

import os
from dataclasses import dataclass
from pathlib import Path

# Catalog file names inside the catalog directory
PRODUCTS_FILENAME = "products.csv"
COLLECTIONS_FILENAME = "collections.csv"
MEMBERSHIPS_FILENAME = "product_collections.csv"
SNAPSHOT_FILENAME = "catalog_snapshot.joblib"

DEFAULT_CATALOG_DIR = "data"
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_RELATED_LIMIT = 12
DEFAULT_SUGGESTION_LIMIT = 12
MAX_LIMIT = 100


@dataclass
class Settings:
    """Runtime settings for the API and scripts."""

    catalog_dir: str = DEFAULT_CATALOG_DIR
    log_level: str = DEFAULT_LOG_LEVEL
    default_related_limit: int = DEFAULT_RELATED_LIMIT
    default_suggestion_limit: int = DEFAULT_SUGGESTION_LIMIT
    max_limit: int = MAX_LIMIT

    @property
    def snapshot_path(self) -> Path:
        return Path(self.catalog_dir) / SNAPSHOT_FILENAME

    @property
    def products_csv(self) -> Path:
        return Path(self.catalog_dir) / PRODUCTS_FILENAME

    @property
    def collections_csv(self) -> Path:
        return Path(self.catalog_dir) / COLLECTIONS_FILENAME

    @property
    def memberships_csv(self) -> Path:
        return Path(self.catalog_dir) / MEMBERSHIPS_FILENAME


def load_settings() -> Settings:
    """Build settings from the environment.

    Returns:
        Settings with environment overrides applied.
    """
    return Settings(
        catalog_dir=os.environ.get("CATALOGREC_CATALOG_DIR", DEFAULT_CATALOG_DIR),
        log_level=os.environ.get("CATALOGREC_LOG_LEVEL", DEFAULT_LOG_LEVEL),
        default_related_limit=int(
            os.environ.get("CATALOGREC_RELATED_LIMIT", DEFAULT_RELATED_LIMIT)
        ),
        default_suggestion_limit=int(
            os.environ.get("CATALOGREC_SUGGESTION_LIMIT", DEFAULT_SUGGESTION_LIMIT)
        ),
        max_limit=int(os.environ.get("CATALOGREC_MAX_LIMIT", MAX_LIMIT)),
    )
