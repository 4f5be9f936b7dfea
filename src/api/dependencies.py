"""Engine loading for the API.

The catalog is loaded once, from a joblib snapshot when one exists or from
the catalog CSV files otherwise, and the engine is cached for later requests.
"""

import logging
import threading
from datetime import datetime, timezone
from typing import Dict, Optional

from src.api.exceptions import CatalogNotFoundError
from src.catalog.store import load_catalog_csv, load_snapshot
from src.config import Settings, load_settings
from src.engine import CatalogEngine

# Configure module logger
logger = logging.getLogger(__name__)

# Cache for the loaded engine
_engine_cache: Optional[CatalogEngine] = None
_engine_loaded_at: Optional[str] = None
_cache_lock = threading.Lock()


def get_settings() -> Settings:
    return load_settings()


def load_engine(settings: Settings) -> CatalogEngine:
    """Build an engine from the snapshot, or the CSVs, in the catalog directory."""
    if settings.snapshot_path.exists():
        logger.info(f"Loading catalog snapshot from {settings.snapshot_path}")
        return CatalogEngine(load_snapshot(settings.snapshot_path))

    if not settings.products_csv.exists():
        logger.error(f"Catalog not found in {settings.catalog_dir}")
        raise CatalogNotFoundError(settings.catalog_dir)

    logger.info(f"Loading catalog CSVs from {settings.catalog_dir}")
    store = load_catalog_csv(
        settings.products_csv,
        collections_csv=settings.collections_csv if settings.collections_csv.exists() else None,
        memberships_csv=settings.memberships_csv if settings.memberships_csv.exists() else None,
    )
    return CatalogEngine(store)


def get_engine() -> CatalogEngine:
    """FastAPI dependency returning the cached engine, loading it if needed.

    Raises:
        CatalogNotFoundError: If no snapshot or products CSV can be found.
    """
    global _engine_cache, _engine_loaded_at

    if _engine_cache is not None:
        return _engine_cache

    with _cache_lock:
        if _engine_cache is None:
            _engine_cache = load_engine(get_settings())
            _engine_loaded_at = datetime.now(timezone.utc).isoformat()
            logger.info("Catalog engine loaded successfully")
    return _engine_cache


def set_engine(engine: Optional[CatalogEngine]) -> None:
    """Replace (or with None, clear) the cached engine."""
    global _engine_cache, _engine_loaded_at

    with _cache_lock:
        _engine_cache = engine
        _engine_loaded_at = datetime.now(timezone.utc).isoformat() if engine else None


def engine_status() -> Dict:
    """Load state of the cached engine, without loading it."""
    engine = _engine_cache
    return {
        "catalog_loaded": engine is not None,
        "timestamp_last_loaded": _engine_loaded_at,
        "num_products": engine.store.product_count if engine is not None else 0,
        "num_collections": engine.store.collection_count if engine is not None else 0,
    }
