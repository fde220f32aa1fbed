"""
Sync processor for a single product code.
"""

import logging
from dataclasses import dataclass

from ..errors import SyncServiceError
from ..promodata import PromodataClient
from ..store import LogEntry, LogStatus, MarginRules
from ..woocommerce import WooCommerceClient
from .transform import transform_product

logger = logging.getLogger(__name__)


@dataclass
class ItemResult:
    """Outcome of syncing one product code."""
    entry: LogEntry

    @property
    def success(self) -> bool:
        return self.entry.status == LogStatus.SUCCESS

    @classmethod
    def ok(cls, code: str, message: str) -> "ItemResult":
        return cls(LogEntry(item_id=code, status=LogStatus.SUCCESS, message=message))

    @classmethod
    def failed(cls, code: str, message: str) -> "ItemResult":
        return cls(LogEntry(item_id=code, status=LogStatus.FAILED, message=message))


async def sync_item(
    code: str,
    rules: MarginRules,
    promodata: PromodataClient,
    woo: WooCommerceClient,
) -> ItemResult:
    """
    Fetch, transform and push one catalog product.

    Never raises: every failure becomes a failed ItemResult so the
    caller can carry on with the next code.
    """
    try:
        product = await promodata.fetch_product(code)
    except SyncServiceError as e:
        logger.warning(f"Fetch failed for {code}: {e.message}")
        return ItemResult.failed(code, f"Fetch failed: {e.message}")
    except Exception as e:
        logger.exception(f"Unexpected error fetching {code}")
        return ItemResult.failed(code, f"Unexpected error: {e}")

    try:
        transformed = transform_product(product, rules)
        created = await woo.create_product(transformed.product)

        if not transformed.is_variable:
            return ItemResult.ok(code, f"Created simple product #{created['id']}")

        await woo.batch_create_variations(created["id"], transformed.variations)
        return ItemResult.ok(
            code,
            f"Created variable product #{created['id']} "
            f"with {len(transformed.variations)} variations",
        )

    except SyncServiceError as e:
        logger.warning(f"Push failed for {code}: {e.message}")
        return ItemResult.failed(code, f"WooCommerce push failed: {e.message}")
    except Exception as e:
        logger.exception(f"Unexpected error pushing {code}")
        return ItemResult.failed(code, f"Unexpected error: {e}")
