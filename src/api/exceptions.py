"""Custom exceptions for CatalogRec.

Defines specific exception types for better error handling and reporting.
"""

from typing import Any, Dict, List, Optional


class CatalogRecException(Exception):
    """Base exception for CatalogRec errors."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
    ):
        """Initialize exception.

        Args:
            message: Human-readable error message
            status_code: HTTP status code for API responses
            details: Additional error details for debugging
        """
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details or {}


class CatalogNotFoundError(CatalogRecException):
    """Raised when no catalog files can be found."""

    def __init__(self, catalog_dir: str, details: Optional[Dict[str, Any]] = None):
        message = (
            f"Catalog not found in '{catalog_dir}'. "
            "Generate or import a catalog first."
        )
        super().__init__(
            message=message,
            status_code=503,
            details=details or {"catalog_dir": catalog_dir},
        )


class StoreError(CatalogRecException):
    """Raised when the product store fails to read or write."""

    def __init__(self, operation: str, error: Exception):
        message = f"Product store failed during '{operation}': {str(error)}"
        super().__init__(
            message=message,
            status_code=503,
            details={
                "operation": operation,
                "error": str(error),
                "error_type": type(error).__name__,
            },
        )


class CollectionNotFoundError(CatalogRecException):
    """Raised when a collection does not exist."""

    def __init__(self, collection_id: int):
        super().__init__(
            message=f"Collection {collection_id} not found",
            status_code=404,
            details={"collection_id": collection_id},
        )


class SyncFailedError(CatalogRecException):
    """Raised when one or more smart collections could not be synced.

    The membership of every failed collection is left as it was before the
    sync started.
    """

    def __init__(self, collection_ids: List[int], error: Exception):
        ids = ", ".join(str(cid) for cid in collection_ids)
        message = f"Failed to sync collection(s) {ids}: {str(error)}"
        super().__init__(
            message=message,
            status_code=500,
            details={
                "collection_ids": list(collection_ids),
                "error": str(error),
                "error_type": type(error).__name__,
            },
        )
        self.collection_ids = list(collection_ids)
