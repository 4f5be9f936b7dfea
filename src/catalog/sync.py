"""Smart collection syncer.

Re-evaluates a smart collection's rule against the catalog and replaces the
collection's membership with the result.
"""

import logging
import threading
import time
from typing import Dict, List

from src.api.exceptions import CollectionNotFoundError, StoreError, SyncFailedError
from src.catalog.models import Collection
from src.catalog.rules import compile_rule, evaluate, parse_rule
from src.catalog.store import ProductStore

# Configure module logger
logger = logging.getLogger(__name__)


class CollectionSyncer:
    """Keeps smart collection membership in line with its rule.

    Syncs of the same collection are serialized by a per-collection lock;
    syncs of different collections do not wait on each other.
    """

    def __init__(self, store: ProductStore):
        self.store = store
        self._locks: Dict[int, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, collection_id: int) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault(collection_id, threading.Lock())

    def sync(self, collection: Collection) -> int:
        """Sync one smart collection.

        Args:
            collection: The collection to sync.

        Returns:
            Number of members written. 0 when the collection is manual or its
            rule is missing or unparsable; nothing is written in that case.

        Raises:
            SyncFailedError: If the store fails during the scan or the write.
                The previous membership is left in place.
        """
        if not collection.is_smart:
            logger.debug(f"Skipping manual collection {collection.id}")
            return 0

        rule = parse_rule(collection.rule)
        if rule is None:
            logger.warning(
                "Smart collection has no usable rule, skipping sync",
                extra={"collection_id": collection.id},
            )
            return 0

        predicate = compile_rule(rule)
        start_time = time.time()

        with self._lock_for(collection.id):
            try:
                product_ids = evaluate(predicate, self.store)
                self.store.replace_collection_membership(collection.id, product_ids)
            except StoreError as e:
                logger.error(
                    "Smart collection sync failed",
                    extra={
                        "collection_id": collection.id,
                        "error": str(e),
                        "error_type": type(e).__name__,
                    },
                )
                raise SyncFailedError([collection.id], e) from e

        logger.info(
            "Synced smart collection",
            extra={
                "collection_id": collection.id,
                "num_members": len(product_ids),
                "sync_time_ms": round((time.time() - start_time) * 1000, 2),
            },
        )
        return len(product_ids)

    def sync_by_id(self, collection_id: int) -> int:
        """Look up a collection and sync it.

        Raises:
            CollectionNotFoundError: If the collection does not exist.
            SyncFailedError: If the store fails during the sync.
        """
        collection = self.store.get_collection(collection_id)
        if collection is None:
            raise CollectionNotFoundError(collection_id)
        return self.sync(collection)

    def sync_all(self) -> int:
        """Sync every smart collection.

        Every collection is attempted even when an earlier one fails.

        Returns:
            Total number of members written across all collections.

        Raises:
            SyncFailedError: After all collections were attempted, naming every
                collection that failed.
        """
        collections = self.store.list_collections(smart_only=True)
        logger.info(f"Syncing {len(collections)} smart collections")

        total = 0
        failed: List[int] = []
        last_error = None

        for collection in collections:
            try:
                total += self.sync(collection)
            except SyncFailedError as e:
                failed.append(collection.id)
                last_error = e

        if failed:
            logger.error(
                "Some smart collections failed to sync",
                extra={"failed_collection_ids": failed, "members_written": total},
            )
            raise SyncFailedError(failed, last_error)

        logger.info(f"Smart collection sync completed: {total} members written")
        return total
