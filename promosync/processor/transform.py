"""
Map a Promodata catalog product onto WooCommerce product payloads.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..store.models import MarginRules
from .rules import applicable_margin, calculate_price, product_category


PRODUCT_TYPE_SIMPLE = "simple"
PRODUCT_TYPE_VARIABLE = "variable"


@dataclass
class TransformedProduct:
    """WooCommerce payloads built from one catalog product."""
    product: Dict[str, Any]
    variations: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def is_variable(self) -> bool:
        return self.product.get("type") == PRODUCT_TYPE_VARIABLE


def base_price(record: dict) -> Any:
    """First price break of the first price group, or 0."""
    try:
        price_groups = record.get("price_groups") or []
        price_breaks = price_groups[0]["base_price"]["price_breaks"]
        return price_breaks[0]["price"]
    except (IndexError, KeyError, TypeError):
        return 0


def normalize_image(image: Any) -> Optional[Dict[str, str]]:
    """Accept a raw URL or an object holding one."""
    if isinstance(image, str):
        return {"src": image} if image else None
    if isinstance(image, dict):
        src = image.get("src") or image.get("url")
        if src:
            return {"src": src}
    return None


def variant_attributes(variant: dict) -> List[tuple]:
    """(name, value) pairs of a variant, in the order the catalog sends them."""
    attributes = variant.get("attributes") or []
    if isinstance(attributes, dict):
        return [(str(k), str(v)) for k, v in attributes.items()]
    return [
        (str(a["name"]), str(a.get("value", "")))
        for a in attributes
        if isinstance(a, dict) and a.get("name")
    ]


def build_attributes(variants: List[dict]) -> List[Dict[str, Any]]:
    """
    Collect attribute descriptors across all variants.

    Names and option values keep first-seen order and each option
    appears exactly once.
    """
    options: Dict[str, List[str]] = {}
    for variant in variants:
        for name, value in variant_attributes(variant):
            values = options.setdefault(name, [])
            if value not in values:
                values.append(value)

    return [
        {
            "name": name,
            "position": position,
            "visible": True,
            "variation": True,
            "options": values,
        }
        for position, (name, values) in enumerate(options.items())
    ]


def _common_fields(product: dict) -> Dict[str, Any]:
    payload = {
        "name": product.get("name") or "",
        "sku": product.get("code") or "",
        "description": product.get("html_description") or product.get("description") or "",
        "short_description": product.get("short_description") or "",
        "images": [
            image for image in map(normalize_image, product.get("images") or []) if image
        ],
    }
    category = product_category(product)
    if category:
        payload["categories"] = [{"name": category}]
    return payload


def transform_product(product: dict, rules: MarginRules) -> TransformedProduct:
    """
    Build the WooCommerce product (and variations) for a catalog product.

    Products with more than one variant become variable products with
    one variation per variant. Anything else is a simple product priced
    from the product-level price groups.

    Args:
        product: Catalog product record
        rules: Margin rules captured for the job

    Returns:
        TransformedProduct with the product payload and variation payloads
    """
    payload = _common_fields(product)
    variants = product.get("variants") or []

    if len(variants) <= 1:
        payload["type"] = PRODUCT_TYPE_SIMPLE
        margin = applicable_margin(product, rules)
        payload["regular_price"] = calculate_price(base_price(product), margin)
        return TransformedProduct(product=payload)

    payload["type"] = PRODUCT_TYPE_VARIABLE
    payload["attributes"] = build_attributes(variants)

    variations = []
    for index, variant in enumerate(variants, start=1):
        # Classification comes from the parent product, not the variant
        margin = applicable_margin(product, rules)
        variations.append({
            "sku": variant.get("code") or f"{payload['sku']}-{index}",
            "regular_price": calculate_price(base_price(variant), margin),
            "attributes": [
                {"name": name, "option": value}
                for name, value in variant_attributes(variant)
            ],
        })

    return TransformedProduct(product=payload, variations=variations)
