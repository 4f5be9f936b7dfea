"""Product, collection and rule models.

Tags are persisted as a comma-delimited string but handled as a frozenset
once a row is loaded into a ``Product``.
"""

from datetime import datetime
from typing import Any, FrozenSet, List, Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

TAG_DELIMITER = ","

RULE_TYPES = (
    "all",
    "tag_contains",
    "has_compare_price",
    "price_range",
    "product_type",
    "vendor",
    "in_stock",
    "out_of_stock",
)


def parse_tags(raw: Union[str, None, List[str], FrozenSet[str]]) -> FrozenSet[str]:
    """Split a delimited tag string into a set of trimmed, non-empty tags."""
    if raw is None:
        return frozenset()
    if isinstance(raw, str):
        parts = raw.split(TAG_DELIMITER)
    else:
        parts = list(raw)
    return frozenset(tag.strip() for tag in parts if tag and tag.strip())


def format_tags(tags: FrozenSet[str]) -> str:
    """Join a tag set into its stored form (sorted, comma separated)."""
    return ", ".join(sorted(tags))


class Product(BaseModel):
    """A catalog product as read from the product store."""

    model_config = ConfigDict(frozen=True)

    id: int
    title: str = ""
    handle: Optional[str] = None
    tags: FrozenSet[str] = frozenset()
    vendor: Optional[str] = None
    product_type: Optional[str] = None
    price: float = Field(default=0.0, ge=0)
    compare_at_price: Optional[float] = None
    in_stock: bool = True
    rating: Optional[float] = Field(default=None, ge=0, le=5)
    review_count: Optional[int] = Field(default=None, ge=0)
    created_at: Optional[datetime] = None
    bestseller_score: Optional[float] = None

    @field_validator("tags", mode="before")
    @classmethod
    def _split_tags(cls, value):
        return parse_tags(value)


class RuleLeaf(BaseModel):
    """A single smart collection condition."""

    type: str
    value: Optional[str] = None
    min_price: Optional[float] = Field(
        default=None, validation_alias=AliasChoices("min_price", "minPrice")
    )
    max_price: Optional[float] = Field(
        default=None, validation_alias=AliasChoices("max_price", "maxPrice")
    )

    @field_validator("value", mode="before")
    @classmethod
    def _stringify_value(cls, value):
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value


class RuleComposite(BaseModel):
    """Conditions combined with AND or OR logic.

    Conditions are kept as given and validated one at a time when the rule is
    compiled, so an invalid condition only drops itself. Conditions may
    themselves be composites.
    """

    type: Literal["multiple"] = "multiple"
    logic: str = "AND"
    conditions: List[Any] = Field(default_factory=list)


RuleNode = Union[RuleComposite, RuleLeaf]


class Collection(BaseModel):
    """A product collection.

    ``rule`` holds the raw stored rule (JSON text or a mapping) and is only
    meaningful when ``is_smart`` is set.
    """

    id: int
    title: str = ""
    handle: Optional[str] = None
    is_smart: bool = False
    rule: Optional[Union[str, dict]] = Field(
        default=None, validation_alias=AliasChoices("rule", "rules")
    )
