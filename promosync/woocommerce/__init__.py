"""
WooCommerce REST API module.
"""

from promosync.woocommerce.client import WooCommerceClient

__all__ = [
    "WooCommerceClient",
]
