"""Predicate description consumed by product store adapters.

A predicate is a small immutable tree. Stores translate it to their own
query language; the rule compiler and the recall functions only build it.
"""

from dataclasses import dataclass, field
from typing import Any, Optional, Tuple


class Predicate:
    """Base class for predicate nodes."""


@dataclass(frozen=True)
class MatchAll(Predicate):
    pass


@dataclass(frozen=True)
class MatchNone(Predicate):
    pass


@dataclass(frozen=True)
class FieldEquals(Predicate):
    field: str
    value: Any


@dataclass(frozen=True)
class FieldContains(Predicate):
    """Case-insensitive substring match on the stored string value."""

    field: str
    value: str


@dataclass(frozen=True)
class FieldRange(Predicate):
    """Inclusive range; a missing bound is unbounded on that side."""

    field: str
    minimum: Optional[float] = None
    maximum: Optional[float] = None


@dataclass(frozen=True)
class FieldGreaterThanField(Predicate):
    """``field`` is present and strictly greater than ``other``."""

    field: str
    other: str


@dataclass(frozen=True)
class SharesCollectionWith(Predicate):
    product_id: int


@dataclass(frozen=True)
class Not(Predicate):
    child: Predicate


@dataclass(frozen=True)
class AllOf(Predicate):
    children: Tuple[Predicate, ...]


@dataclass(frozen=True)
class AnyOf(Predicate):
    children: Tuple[Predicate, ...]


def all_of(*predicates: Predicate) -> Predicate:
    """Combine predicates with AND, flattening nested AllOf nodes."""
    children = []
    for predicate in predicates:
        if isinstance(predicate, AllOf):
            children.extend(predicate.children)
        else:
            children.append(predicate)
    if len(children) == 1:
        return children[0]
    return AllOf(tuple(children))


def any_of(*predicates: Predicate) -> Predicate:
    """Combine predicates with OR."""
    if len(predicates) == 1:
        return predicates[0]
    return AnyOf(tuple(predicates))


@dataclass(frozen=True)
class SortKey:
    """One ordering key.

    With ``distance_to`` set, rows are ordered by ``abs(field - distance_to)``.
    Missing values always sort last.
    """

    field: str
    descending: bool = False
    distance_to: Optional[float] = None


@dataclass(frozen=True)
class ProductQuery:
    """Predicate plus ordering and an optional row limit.

    Rows tied on every key are returned in ascending product ID order.
    """

    predicate: Predicate
    order_by: Tuple[SortKey, ...] = field(default_factory=tuple)
    limit: Optional[int] = None


IN_STOCK = FieldEquals("in_stock", True)
OUT_OF_STOCK = FieldEquals("in_stock", False)
