"""Smart collection rule compiler.

Turns a rule tree into a predicate the product store can execute, and
evaluates it into an ordered list of product IDs.
"""

import json
import logging
from typing import Any, List, Mapping, Optional, Union

from pydantic import ValidationError

from src.catalog.models import RuleComposite, RuleLeaf, RuleNode
from src.catalog.predicates import (
    IN_STOCK,
    OUT_OF_STOCK,
    FieldContains,
    FieldEquals,
    FieldGreaterThanField,
    FieldRange,
    MatchAll,
    MatchNone,
    Predicate,
    ProductQuery,
    SortKey,
    all_of,
    any_of,
)
from src.catalog.store import ProductStore

# Configure module logger
logger = logging.getLogger(__name__)

COMPOSITE_TYPE = "multiple"

# Evaluation order of rule matches
EVALUATION_ORDER = (SortKey("id"),)


def parse_rule(raw: Union[RuleNode, Mapping[str, Any], str, None]) -> Optional[RuleNode]:
    """Parse a stored rule into a rule tree.

    Only the node itself is validated; a composite's conditions are parsed
    when it is compiled.

    Args:
        raw: A rule node, a mapping, or JSON text as stored on a collection.

    Returns:
        The parsed rule, or None when the input is empty, not valid JSON or
        not a rule shape. Failures are logged, never raised.
    """
    if raw is None or raw == "":
        return None
    if isinstance(raw, (RuleLeaf, RuleComposite)):
        return raw

    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning(f"Ignoring unparsable rule JSON: {e}")
            return None

    if not isinstance(raw, Mapping) or "type" not in raw:
        logger.warning("Ignoring rule without a type", extra={"rule": repr(raw)})
        return None

    model = RuleComposite if raw["type"] == COMPOSITE_TYPE else RuleLeaf
    try:
        return model.model_validate(dict(raw))
    except ValidationError as e:
        logger.warning(
            "Ignoring invalid rule",
            extra={"rule": repr(raw), "error_count": e.error_count()},
        )
        return None


def _compile_leaf(rule: RuleLeaf) -> Optional[Predicate]:
    if rule.type == "all":
        return MatchAll()

    if rule.type == "tag_contains":
        return FieldContains("tags", rule.value) if rule.value else None

    if rule.type == "has_compare_price":
        return FieldGreaterThanField("compare_at_price", "price")

    if rule.type == "price_range":
        if rule.min_price is None and rule.max_price is None:
            return None
        return FieldRange("price", minimum=rule.min_price, maximum=rule.max_price)

    if rule.type == "product_type":
        return FieldEquals("product_type", rule.value) if rule.value else None

    if rule.type == "vendor":
        return FieldEquals("vendor", rule.value) if rule.value else None

    if rule.type == "in_stock":
        return IN_STOCK

    if rule.type == "out_of_stock":
        return OUT_OF_STOCK

    return None


def _compile_node(rule: RuleNode) -> Optional[Predicate]:
    """Compile one node; None means the node has no usable predicate."""
    if isinstance(rule, RuleLeaf):
        predicate = _compile_leaf(rule)
        if predicate is None:
            logger.warning(
                "Rule condition has no usable predicate",
                extra={"rule_type": rule.type},
            )
        return predicate

    children = []
    for condition in rule.conditions:
        # parse_rule logs conditions it rejects
        node = parse_rule(condition)
        child = _compile_node(node) if node is not None else None
        if child is not None:
            children.append(child)

    if not children:
        return None

    if rule.logic.strip().upper() == "OR":
        return any_of(*children)
    return all_of(*children)


def compile_rule(rule: Union[RuleNode, Mapping[str, Any], str, None]) -> Predicate:
    """Compile a rule into a predicate.

    Unparsable rules, unknown leaf types and leaves missing their required
    fields compile to ``MatchNone``; inside a composite such conditions are
    dropped and the remaining ones combined.

    Args:
        rule: A rule node, mapping or JSON text.

    Returns:
        The predicate describing the rule's matches.

    Example:
        >>> compile_rule({"type": "vendor", "value": "Acme"})
        FieldEquals(field='vendor', value='Acme')
    """
    node = parse_rule(rule)
    if node is None:
        return MatchNone()

    predicate = _compile_node(node)
    if predicate is None:
        return MatchNone()
    return predicate


def evaluate(predicate: Predicate, store: ProductStore) -> List[int]:
    """Product IDs matching ``predicate``, in ascending ID order."""
    if isinstance(predicate, MatchNone):
        return []
    products = store.query_products(ProductQuery(predicate, order_by=EVALUATION_ORDER))
    return [product.id for product in products]
