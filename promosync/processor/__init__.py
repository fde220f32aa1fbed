"""
Processor package for sync operations.
"""

from .rules import (
    applicable_margin,
    apply_margin,
    calculate_price,
    format_price,
    rule_matches,
)
from .transform import transform_product, TransformedProduct
from .sync import sync_item, ItemResult
from .runner import JobRunner, make_promodata_client, make_woo_client

__all__ = [
    "applicable_margin",
    "apply_margin",
    "calculate_price",
    "format_price",
    "rule_matches",
    "transform_product",
    "TransformedProduct",
    "sync_item",
    "ItemResult",
    "JobRunner",
    "make_promodata_client",
    "make_woo_client",
]
