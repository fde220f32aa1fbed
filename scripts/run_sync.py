#!/usr/bin/env python3
"""
Run one Promodata -> WooCommerce sync job from a JSON file, without the web server.
Usage: python scripts/run_sync.py job.json

The file uses the same shape as POST /api/woo/start-sync:
    {"kind": "products", "productCodes": [...], "apiConfig": {...},
     "wooConfig": {...}, "settings": {"rules": {...}}}
"""

import asyncio
import json
import logging
import sys
import os

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from promosync.config import settings
from promosync.errors import ValidationError
from promosync.processor import JobRunner
from promosync.routes.sync import StartSyncRequest, rules_snapshot
from promosync.store import Credentials, JobStatus, MemoryStore

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger(__name__)


async def main(path: str) -> int:
    with open(path, encoding="utf-8") as f:
        request = StartSyncRequest.model_validate(json.load(f))

    if request.api_config is None or request.woo_config is None or not request.product_codes:
        raise ValidationError("Job file needs apiConfig, wooConfig and a non-empty productCodes")

    store = MemoryStore()
    runner = JobRunner(store, settings.model_copy(update={"job_start_delay": 0}))

    job = store.create_job(
        kind=request.kind or "cli",
        product_codes=request.product_codes,
        credentials=Credentials(api_config=request.api_config, woo_config=request.woo_config),
        rules=rules_snapshot(request.settings, store),
    )
    logger.info(f"Starting job {job.id} for {job.total} products...")

    job = await runner.dispatch(job.id)

    for entry in job.logs:
        log = logger.info if entry.status == "success" else logger.error
        log(f"  {entry.item_id}: {entry.status.value} - {entry.message}")

    logger.info(f"Job {job.id} {job.status.value}: {job.done}/{job.total} processed")
    return 1 if job.status == JobStatus.FAILED else 0


if __name__ == "__main__":
    if len(sys.argv) != 2:
        print(__doc__)
        sys.exit(2)
    sys.exit(asyncio.run(main(sys.argv[1])))
