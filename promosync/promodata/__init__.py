"""
Promodata catalog API module.
"""

from promosync.promodata.client import PromodataClient

__all__ = [
    "PromodataClient",
]
