"""Product store adapter.

``ProductStore`` is the interface the engine talks to. ``DataFrameProductStore``
is the bundled implementation: products live in a pandas DataFrame and
collection memberships in a read-only mapping that is swapped as a whole on
every write, so readers always see either the old or the new membership.
"""

import logging
import operator
import threading
from functools import reduce
from pathlib import Path
from types import MappingProxyType
from typing import (
    Any,
    Dict,
    Iterable,
    List,
    Mapping,
    Optional,
    Protocol,
    Sequence,
    Tuple,
    Union,
)

import joblib
import numpy as np
import pandas as pd

from src.api.exceptions import StoreError
from src.catalog.models import Collection, Product, format_tags, parse_tags
from src.catalog.predicates import (
    AllOf,
    AnyOf,
    FieldContains,
    FieldEquals,
    FieldGreaterThanField,
    FieldRange,
    MatchAll,
    MatchNone,
    Not,
    Predicate,
    ProductQuery,
    SharesCollectionWith,
    SortKey,
)

# Configure module logger
logger = logging.getLogger(__name__)

PRODUCT_COLUMNS = [
    "id",
    "title",
    "handle",
    "tags",
    "vendor",
    "product_type",
    "price",
    "compare_at_price",
    "in_stock",
    "rating",
    "review_count",
    "created_at",
    "bestseller_score",
]
NUMERIC_COLUMNS = ["price", "compare_at_price", "rating", "review_count", "bestseller_score"]
TEXT_COLUMNS = ["title", "handle", "vendor", "product_type"]
REQUIRED_PRODUCT_COLUMNS = {"id", "price"}
REQUIRED_COLLECTION_COLUMNS = {"id", "is_smart"}
REQUIRED_MEMBERSHIP_COLUMNS = {"collection_id", "product_id", "position"}

Memberships = Mapping[int, Tuple[int, ...]]


class ProductStore(Protocol):
    """Operations the engine needs from the persistence layer."""

    @property
    def product_count(self) -> int: ...

    @property
    def collection_count(self) -> int: ...

    def get_product(self, product_id: int) -> Optional[Product]: ...

    def query_products(self, query: ProductQuery) -> List[Product]: ...

    def get_collection(self, collection_id: int) -> Optional[Collection]: ...

    def list_collections(self, smart_only: bool = False) -> List[Collection]: ...

    def collection_product_ids(self, collection_id: int) -> List[int]: ...

    def collection_products(
        self, collection_id: int, offset: int = 0, limit: Optional[int] = None
    ) -> List[Product]: ...

    def replace_collection_membership(
        self, collection_id: int, product_ids: Sequence[int]
    ) -> None: ...

    def reorder_collection_membership(
        self, collection_id: int, product_ids: Sequence[int]
    ) -> None: ...

    def distinct_values(self, field: str) -> List[Any]: ...


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, (str, bytes, list, tuple, dict, frozenset, set)):
        return False
    return bool(pd.isna(value))


def _to_bool(value: Any, default: bool = True) -> bool:
    if _is_missing(value):
        return default
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "y")
    return bool(value)


def normalize_products_frame(frame: pd.DataFrame) -> pd.DataFrame:
    """Coerce a raw products table into the column layout the store queries.

    Args:
        frame: Raw products, e.g. straight from ``pd.read_csv``.

    Returns:
        A new DataFrame with every column of ``PRODUCT_COLUMNS``, numeric
        columns as floats (missing values as NaN), tags as strings, the
        stock flag as bool and rows sorted by product ID.

    Raises:
        ValueError: If required columns are missing or product IDs repeat.
    """
    missing = REQUIRED_PRODUCT_COLUMNS - set(frame.columns)
    if missing:
        raise ValueError(f"Products data missing required columns: {missing}")

    frame = frame.copy()
    for column in PRODUCT_COLUMNS:
        if column not in frame.columns:
            frame[column] = None
    frame = frame[PRODUCT_COLUMNS].copy()

    frame["id"] = frame["id"].astype(int)
    if frame["id"].duplicated().any():
        raise ValueError("Products data contains duplicate product IDs")

    for column in NUMERIC_COLUMNS:
        frame[column] = pd.to_numeric(frame[column], errors="coerce").astype(float)
    for column in TEXT_COLUMNS:
        frame[column] = frame[column].astype(object).where(frame[column].notna(), None)

    frame["tags"] = frame["tags"].map(
        lambda value: "" if _is_missing(value) else (
            value if isinstance(value, str) else format_tags(parse_tags(value))
        )
    ).astype(object)
    frame["in_stock"] = frame["in_stock"].map(_to_bool).astype(bool)
    frame["created_at"] = pd.to_datetime(frame["created_at"], errors="coerce")

    return frame.sort_values("id", kind="mergesort").reset_index(drop=True)


def _product_row(item: Union[Product, Mapping[str, Any]]) -> Dict[str, Any]:
    if isinstance(item, Product):
        row = item.model_dump()
        row["tags"] = format_tags(item.tags)
        return row
    return dict(item)


def _row_to_product(row: Mapping[str, Any]) -> Product:
    data = {
        column: (None if _is_missing(row.get(column)) else row.get(column))
        for column in PRODUCT_COLUMNS
    }
    data["id"] = int(data["id"])
    data["in_stock"] = bool(data["in_stock"])
    if data["review_count"] is not None:
        data["review_count"] = int(data["review_count"])
    if data["created_at"] is not None:
        data["created_at"] = pd.Timestamp(data["created_at"]).to_pydatetime()
    if data["price"] is None:
        data["price"] = 0.0
    if data["title"] is None:
        data["title"] = ""
    return Product(**data)


def _collection_from_row(row: Mapping[str, Any]) -> Collection:
    return Collection(**{key: value for key, value in row.items() if not _is_missing(value)})


class DataFrameProductStore:
    """In-process product store backed by a pandas DataFrame.

    Reads are lock-free: each query works on the frame and membership
    mapping referenced at the moment it starts. Membership writes are
    serialized by a store-wide lock and published by swapping the mapping.
    """

    def __init__(
        self,
        products: Optional[pd.DataFrame] = None,
        collections: Optional[Iterable[Union[Collection, Mapping[str, Any]]]] = None,
        memberships: Optional[Mapping[int, Sequence[int]]] = None,
    ):
        if products is None:
            products = pd.DataFrame(columns=PRODUCT_COLUMNS)
        self._products = normalize_products_frame(products)

        self._collections: Dict[int, Collection] = {}
        for item in collections or []:
            collection = item if isinstance(item, Collection) else _collection_from_row(item)
            self._collections[collection.id] = collection

        self._memberships: Memberships = MappingProxyType(
            {
                int(collection_id): tuple(int(pid) for pid in product_ids)
                for collection_id, product_ids in (memberships or {}).items()
            }
        )
        self._write_lock = threading.Lock()

        logger.info(
            "Initialized product store",
            extra={
                "num_products": len(self._products),
                "num_collections": len(self._collections),
            },
        )

    @classmethod
    def from_products(
        cls,
        products: Iterable[Union[Product, Mapping[str, Any]]],
        collections: Optional[Iterable[Union[Collection, Mapping[str, Any]]]] = None,
        memberships: Optional[Mapping[int, Sequence[int]]] = None,
    ) -> "DataFrameProductStore":
        """Build a store from product models or plain row mappings."""
        rows = [_product_row(item) for item in products]
        frame = pd.DataFrame(rows) if rows else pd.DataFrame(columns=PRODUCT_COLUMNS)
        return cls(frame, collections=collections, memberships=memberships)

    @property
    def product_count(self) -> int:
        return len(self._products)

    @property
    def collection_count(self) -> int:
        return len(self._collections)

    @property
    def products_frame(self) -> pd.DataFrame:
        return self._products

    @property
    def memberships(self) -> Dict[int, List[int]]:
        return {cid: list(pids) for cid, pids in self._memberships.items()}

    # ----- reads -----

    def get_product(self, product_id: int) -> Optional[Product]:
        products = self._products
        rows = products[products["id"] == product_id]
        if rows.empty:
            return None
        return _row_to_product(rows.to_dict("records")[0])

    def query_products(self, query: ProductQuery) -> List[Product]:
        products = self._products
        memberships = self._memberships

        try:
            mask = self._mask(query.predicate, products, memberships)
            matched = self._order(products[mask], query.order_by)
            if query.limit is not None:
                matched = matched.head(max(query.limit, 0))
            return [_row_to_product(row) for row in matched.to_dict("records")]
        except (KeyError, TypeError, ValueError) as e:
            logger.error(
                "Product query failed",
                extra={"predicate": repr(query.predicate), "error": str(e)},
            )
            raise StoreError("query_products", e) from e

    def get_collection(self, collection_id: int) -> Optional[Collection]:
        return self._collections.get(collection_id)

    def list_collections(self, smart_only: bool = False) -> List[Collection]:
        collections = sorted(self._collections.values(), key=lambda c: c.id)
        if smart_only:
            return [c for c in collections if c.is_smart]
        return collections

    def collection_product_ids(self, collection_id: int) -> List[int]:
        return list(self._memberships.get(collection_id, ()))

    def collection_products(
        self, collection_id: int, offset: int = 0, limit: Optional[int] = None
    ) -> List[Product]:
        """Members of a collection by position, then product ID descending."""
        products = self._products
        member_ids = self._memberships.get(collection_id, ())
        positions = {pid: position for position, pid in enumerate(member_ids)}

        members = products[products["id"].isin(list(positions))]
        members = members.assign(_position=members["id"].map(positions))
        members = members.sort_values(
            ["_position", "id"], ascending=[True, False], kind="mergesort"
        ).drop(columns="_position")

        end = None if limit is None else offset + limit
        return [_row_to_product(row) for row in members.iloc[offset:end].to_dict("records")]

    def distinct_values(self, field: str) -> List[Any]:
        values = self._products[field].dropna().unique().tolist()
        return sorted(values)

    # ----- writes -----

    def replace_collection_membership(
        self, collection_id: int, product_ids: Sequence[int]
    ) -> None:
        """Replace a collection's members; position is the index in ``product_ids``."""
        with self._write_lock:
            staged = dict(self._memberships)
            staged[collection_id] = tuple(int(pid) for pid in product_ids)
            self._publish("replace_collection_membership", staged)

        logger.debug(
            "Replaced collection membership",
            extra={"collection_id": collection_id, "num_members": len(product_ids)},
        )

    def reorder_collection_membership(
        self, collection_id: int, product_ids: Sequence[int]
    ) -> None:
        """Move the given members to the front in the given order.

        IDs that are not members are ignored; members not listed keep their
        relative order after the listed ones.
        """
        with self._write_lock:
            current = self._memberships.get(collection_id, ())
            current_set = set(current)
            ordered: List[int] = []
            for pid in product_ids:
                if pid in current_set and pid not in ordered:
                    ordered.append(pid)
            ordered.extend(pid for pid in current if pid not in ordered)

            staged = dict(self._memberships)
            staged[collection_id] = tuple(ordered)
            self._publish("reorder_collection_membership", staged)

    def _publish(self, operation: str, staged: Dict[int, Tuple[int, ...]]) -> None:
        try:
            self._commit(MappingProxyType(staged))
        except StoreError:
            raise
        except Exception as e:
            logger.error(
                "Membership write failed, previous membership kept",
                extra={"operation": operation, "error": str(e)},
            )
            raise StoreError(operation, e) from e

    def _commit(self, memberships: Memberships) -> None:
        self._memberships = memberships

    # ----- predicate translation -----

    def _mask(
        self, predicate: Predicate, products: pd.DataFrame, memberships: Memberships
    ) -> pd.Series:
        if isinstance(predicate, MatchAll):
            return pd.Series(True, index=products.index, dtype=bool)

        if isinstance(predicate, MatchNone):
            return pd.Series(False, index=products.index, dtype=bool)

        if isinstance(predicate, FieldEquals):
            return (products[predicate.field] == predicate.value).fillna(False).astype(bool)

        if isinstance(predicate, FieldContains):
            column = products[predicate.field].fillna("").astype(str)
            return column.str.contains(predicate.value, case=False, regex=False).astype(bool)

        if isinstance(predicate, FieldRange):
            column = products[predicate.field]
            mask = column.notna()
            if predicate.minimum is not None:
                mask &= column >= predicate.minimum
            if predicate.maximum is not None:
                mask &= column <= predicate.maximum
            return mask.astype(bool)

        if isinstance(predicate, FieldGreaterThanField):
            column = products[predicate.field]
            return (column.notna() & (column > products[predicate.other])).astype(bool)

        if isinstance(predicate, SharesCollectionWith):
            related = set()
            for member_ids in memberships.values():
                if predicate.product_id in member_ids:
                    related.update(member_ids)
            return products["id"].isin(list(related))

        if isinstance(predicate, Not):
            return ~self._mask(predicate.child, products, memberships)

        if isinstance(predicate, AllOf):
            masks = [self._mask(child, products, memberships) for child in predicate.children]
            return reduce(operator.and_, masks, pd.Series(True, index=products.index, dtype=bool))

        if isinstance(predicate, AnyOf):
            masks = [self._mask(child, products, memberships) for child in predicate.children]
            return reduce(operator.or_, masks, pd.Series(False, index=products.index, dtype=bool))

        raise TypeError(f"Unsupported predicate: {predicate!r}")

    @staticmethod
    def _order(frame: pd.DataFrame, order_by: Sequence[SortKey]) -> pd.DataFrame:
        # Stable passes from the least significant key; ID is the final tie-break.
        ordered = frame.sort_values("id", kind="mergesort")
        for key in reversed(order_by):
            values = ordered[key.field]
            if key.distance_to is not None:
                values = np.abs(values - key.distance_to)
            ordered = (
                ordered.assign(_sort_value=values)
                .sort_values(
                    "_sort_value",
                    ascending=not key.descending,
                    kind="mergesort",
                    na_position="last",
                )
                .drop(columns="_sort_value")
            )
        return ordered


def _read_csv(path: Union[str, Path], required: set, label: str) -> pd.DataFrame:
    csv_file = Path(path)
    if not csv_file.exists():
        raise FileNotFoundError(f"{label} CSV not found: {path}")

    logger.info(f"Loading {label} from {path}")
    frame = pd.read_csv(csv_file)

    if not required.issubset(frame.columns):
        missing = required - set(frame.columns)
        raise ValueError(f"{label} CSV missing required columns: {missing}")

    return frame


def load_catalog_csv(
    products_csv: Union[str, Path],
    collections_csv: Optional[Union[str, Path]] = None,
    memberships_csv: Optional[Union[str, Path]] = None,
) -> DataFrameProductStore:
    """Load a catalog from CSV files into a ``DataFrameProductStore``.

    Args:
        products_csv: Products file; needs at least ``id`` and ``price``.
            Tags are a comma-delimited string column.
        collections_csv: Optional collections file with ``id``, ``is_smart``
            and optionally ``title``, ``handle`` and ``rules`` (JSON text).
        memberships_csv: Optional ``collection_id, product_id, position`` file.

    Returns:
        A populated store.

    Raises:
        FileNotFoundError: If a given file does not exist.
        ValueError: If a file is missing required columns or has no products.

    Example:
        >>> store = load_catalog_csv(
        ...     "data/products.csv",
        ...     collections_csv="data/collections.csv",
        ...     memberships_csv="data/product_collections.csv",
        ... )
        >>> print(f"Loaded {store.product_count} products")
    """
    products = _read_csv(products_csv, REQUIRED_PRODUCT_COLUMNS, "products")
    if products.empty:
        raise ValueError("Cannot load a catalog with no products")

    collections: List[Mapping[str, Any]] = []
    if collections_csv is not None:
        frame = _read_csv(collections_csv, REQUIRED_COLLECTION_COLUMNS, "collections")
        collections = frame.to_dict("records")

    memberships: Dict[int, List[int]] = {}
    if memberships_csv is not None:
        frame = _read_csv(memberships_csv, REQUIRED_MEMBERSHIP_COLUMNS, "memberships")
        frame = frame.sort_values(["collection_id", "position"], kind="mergesort")
        for collection_id, group in frame.groupby("collection_id", sort=True):
            memberships[int(collection_id)] = [int(pid) for pid in group["product_id"]]

    store = DataFrameProductStore(products, collections=collections, memberships=memberships)
    logger.info(
        "Catalog loaded",
        extra={
            "num_products": store.product_count,
            "num_collections": store.collection_count,
        },
    )
    return store


def save_snapshot(store: DataFrameProductStore, path: Union[str, Path]) -> None:
    """Persist a store's products, collections and memberships with joblib."""
    snapshot_path = Path(path)
    snapshot_path.parent.mkdir(parents=True, exist_ok=True)

    snapshot = {
        "products": store.products_frame,
        "collections": [c.model_dump() for c in store.list_collections()],
        "memberships": store.memberships,
    }
    joblib.dump(snapshot, snapshot_path)
    logger.info(f"Saved catalog snapshot to {snapshot_path}")


def load_snapshot(path: Union[str, Path]) -> DataFrameProductStore:
    """Restore a store saved by ``save_snapshot``.

    Raises:
        FileNotFoundError: If the snapshot file does not exist.
    """
    snapshot_path = Path(path)
    if not snapshot_path.exists():
        raise FileNotFoundError(f"Catalog snapshot not found: {snapshot_path}")

    snapshot = joblib.load(snapshot_path)
    logger.info(f"Loaded catalog snapshot from {snapshot_path}")
    return DataFrameProductStore(
        snapshot["products"],
        collections=snapshot["collections"],
        memberships=snapshot["memberships"],
    )
