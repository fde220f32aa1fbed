"""
Business rules for calculating storefront prices from supplier prices.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Optional

from ..store.models import ConditionalRule, MarginRules, RuleField, RuleOperator


CENTS = Decimal("0.01")
HUNDRED = Decimal("100")


def _normalize(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip().lower()


def product_category(product: dict) -> Optional[str]:
    """Supplier category label of a catalog product."""
    return product.get("supplier_category")


def product_supplier(product: dict) -> Optional[str]:
    """Supplier name; the catalog sends either an object or a bare string."""
    supplier = product.get("supplier")
    if isinstance(supplier, dict):
        return supplier.get("name")
    return supplier


FIELD_EXTRACTORS = {
    RuleField.CATEGORY.value: product_category,
    RuleField.SUPPLIER.value: product_supplier,
}


def rule_matches(product: dict, rule: ConditionalRule) -> bool:
    """
    Check a single conditional rule against a product.

    Comparison is case-insensitive. Empty product values or empty rule
    values never match, whatever the operator.
    """
    extractor = FIELD_EXTRACTORS.get(rule.field)
    if extractor is None:
        return False

    actual = _normalize(extractor(product))
    expected = _normalize(rule.value)
    if not actual or not expected:
        return False

    if rule.operator == RuleOperator.IS.value:
        return actual == expected
    if rule.operator == RuleOperator.IS_NOT.value:
        return actual != expected
    if rule.operator == RuleOperator.CONTAINS.value:
        return expected in actual
    if rule.operator == RuleOperator.DOES_NOT_CONTAIN.value:
        return expected not in actual
    return False


def applicable_margin(product: dict, rules: MarginRules) -> Decimal:
    """
    Pick the margin percentage for a product.

    Rules:
    1. Conditional rules are scanned in configured order
    2. The first matching rule's margin wins
    3. Otherwise the default margin applies

    Args:
        product: Catalog product record
        rules: Margin rule set

    Returns:
        Margin percentage (e.g. Decimal("30"))
    """
    for rule in rules.conditional_rules:
        if rule_matches(product, rule):
            return rule.margin
    return rules.default_margin


def to_decimal(value: Any) -> Decimal:
    """Parse a supplier price. Missing or garbage values count as zero."""
    if value is None or isinstance(value, bool):
        return Decimal("0")
    try:
        parsed = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return Decimal("0")
    return parsed if parsed.is_finite() else Decimal("0")


def apply_margin(base_price: Any, margin: Any) -> Decimal:
    """
    Calculate base_price * (1 + margin / 100).

    Args:
        base_price: Supplier price (number or numeric string)
        margin: Margin percentage

    Returns:
        Unrounded storefront price
    """
    return to_decimal(base_price) * (1 + to_decimal(margin) / HUNDRED)


def format_price(value: Any) -> str:
    """
    Format a price to the storefront convention: string, 2 decimal places.

    Args:
        value: Price as Decimal, number or string

    Returns:
        Formatted price, e.g. "13.00"
    """
    return str(to_decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP))


def calculate_price(base_price: Any, margin: Any) -> str:
    """Margin-adjusted price, formatted for the storefront."""
    return format_price(apply_margin(base_price, margin))
