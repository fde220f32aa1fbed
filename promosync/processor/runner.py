"""
Runner for executing sync jobs in the background.
"""

import asyncio
import logging
from typing import Callable, Optional, Set

from ..config import Settings, settings as default_settings
from ..promodata import PromodataClient
from ..store import ApiConfig, Job, LogStatus, MemoryStore, WooConfig
from ..woocommerce import WooCommerceClient
from .sync import sync_item

logger = logging.getLogger(__name__)


PromodataFactory = Callable[[ApiConfig], PromodataClient]
WooFactory = Callable[[WooConfig], WooCommerceClient]


def make_promodata_client(config: ApiConfig) -> PromodataClient:
    return PromodataClient(token=config.token or "", base_url=config.base_url)


def make_woo_client(config: WooConfig) -> WooCommerceClient:
    return WooCommerceClient(url=config.url or "", key=config.key or "", secret=config.secret or "")


class JobRunner:
    """
    Dispatches queued jobs onto the event loop.

    Each job processes its codes strictly in order, one at a time.
    Separate jobs may interleave, but every job only touches its own
    record in the store.
    """

    def __init__(
        self,
        store: MemoryStore,
        config: Optional[Settings] = None,
        promodata_factory: PromodataFactory = make_promodata_client,
        woo_factory: WooFactory = make_woo_client,
    ):
        self.store = store
        self.config = config or default_settings
        self.promodata_factory = promodata_factory
        self.woo_factory = woo_factory
        self._tasks: Set[asyncio.Task] = set()

    def submit(self, job: Job) -> asyncio.Task:
        """Schedule a queued job. Returns immediately."""
        task = asyncio.create_task(self.dispatch(job.id), name=f"sync-{job.id}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    @property
    def active_tasks(self) -> int:
        return len(self._tasks)

    async def dispatch(self, job_id: str) -> Job:
        """Wait out the start delay, then run the job to completion."""
        if self.config.job_start_delay > 0:
            await asyncio.sleep(self.config.job_start_delay)
        self.store.start_job(job_id)
        return await self.run_job(job_id)

    async def run_job(self, job_id: str) -> Job:
        """
        Process every product code of a running job.

        Item failures are logged and the loop moves on. Only a failure
        outside the per-item step (e.g. building the clients) ends the
        job early, and it still ends through finish_job.
        """
        job = self.store.get_job(job_id)
        logger.info(f"Job {job.id} running: {job.total} products")

        try:
            async with self.promodata_factory(job.credentials.api_config) as promodata, \
                    self.woo_factory(job.credentials.woo_config) as woo:
                for index, code in enumerate(job.product_codes):
                    result = await sync_item(code, job.rules, promodata, woo)
                    self.store.record_item(job.id, result.entry)

                    if index < job.total - 1 and self.config.item_delay > 0:
                        await asyncio.sleep(self.config.item_delay)

        except Exception as e:
            logger.exception(f"Job {job.id} aborted")
            job = self.store.finish_job(job.id, error=f"Sync aborted: {e}")
        else:
            job = self.store.finish_job(job.id)

        failed = sum(1 for entry in job.logs if entry.status == LogStatus.FAILED)
        logger.info(
            f"Job {job.id} finished with status: {job.status.value} "
            f"({job.done - failed} succeeded, {failed} failed)"
        )
        return job

