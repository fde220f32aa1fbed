"""
Tests for the per-item sync step, the job runner and the job store.
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from promosync.config import Settings
from promosync.errors import InternalError, NotFoundError, UpstreamError
from promosync.processor import JobRunner, sync_item
from promosync.store import (
    ApiConfig, Credentials, JobStatus, LogEntry, LogStatus, MarginRules, MemoryStore, WooConfig,
    FAILED_ITEMS_MESSAGE
)


CREDENTIALS = Credentials(
    api_config=ApiConfig(token="tok"),
    woo_config=WooConfig(url="https://shop.test", key="ck", secret="cs"),
)

FAST = Settings(job_start_delay=0, item_delay=0)


def catalog_product(code, variants=0):
    product = {
        "code": code,
        "name": f"Product {code}",
        "supplier_category": "Pens",
        "price_groups": [{"base_price": {"price_breaks": [{"price": 10}]}}],
    }
    if variants:
        product["variants"] = [
            {"code": f"{code}-{i}", "attributes": [{"name": "Colour", "value": f"C{i}"}]}
            for i in range(variants)
        ]
    return product


class FakeClient:
    """Stands in for both upstream clients."""

    def __init__(self, products=None, failing_codes=(), push_error=None):
        self.products = products or {}
        self.failing_codes = set(failing_codes)
        self.push_error = push_error
        self.created = []
        self.batches = []
        self.observed = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return None

    async def fetch_product(self, code):
        if code in self.failing_codes:
            raise UpstreamError("Promodata API returned status 500", upstream_status=500)
        if code not in self.products:
            raise NotFoundError(f"Product {code} not found in Promodata")
        return self.products[code]

    async def create_product(self, payload):
        if self.push_error:
            raise self.push_error
        self.created.append(payload)
        return {"id": 100 + len(self.created)}

    async def batch_create_variations(self, product_id, variations):
        self.batches.append((product_id, variations))
        return {"create": [{"id": i} for i, _ in enumerate(variations)]}


def make_runner(store, client, config=FAST):
    return JobRunner(
        store,
        config,
        promodata_factory=lambda cfg: client,
        woo_factory=lambda cfg: client,
    )


def create_job(store, codes, rules=None):
    return store.create_job("products", codes, CREDENTIALS, rules or MarginRules(defaultMargin=30))


class TestSyncItem:

    @pytest.mark.asyncio
    async def test_simple_product_success(self):
        client = FakeClient({"A": catalog_product("A")})

        result = await sync_item("A", MarginRules(defaultMargin=30), client, client)

        assert result.success
        assert result.entry.item_id == "A"
        assert result.entry.message == "Created simple product #101"
        assert client.created[0]["regular_price"] == "13.00"
        assert client.batches == []

    @pytest.mark.asyncio
    async def test_variable_product_creates_variations_under_parent(self):
        client = FakeClient({"V": catalog_product("V", variants=3)})

        result = await sync_item("V", MarginRules(), client, client)

        assert result.success
        assert result.entry.message == "Created variable product #101 with 3 variations"
        product_id, variations = client.batches[0]
        assert product_id == 101
        assert len(variations) == 3

    @pytest.mark.asyncio
    async def test_fetch_failure_is_failed_result(self):
        client = FakeClient(failing_codes={"B"})

        result = await sync_item("B", MarginRules(), client, client)

        assert not result.success
        assert result.entry.status == LogStatus.FAILED
        assert "status 500" in result.entry.message
        assert client.created == []

    @pytest.mark.asyncio
    async def test_not_found_is_failed_result(self):
        client = FakeClient()

        result = await sync_item("ZZZ", MarginRules(), client, client)

        assert not result.success
        assert "ZZZ not found" in result.entry.message

    @pytest.mark.asyncio
    async def test_push_failure_is_failed_result(self):
        client = FakeClient(
            {"A": catalog_product("A")},
            push_error=UpstreamError("Invalid or duplicated SKU.", upstream_status=400),
        )

        result = await sync_item("A", MarginRules(), client, client)

        assert not result.success
        assert "duplicated SKU" in result.entry.message

    @pytest.mark.asyncio
    async def test_unexpected_error_does_not_raise(self):
        client = FakeClient({"A": catalog_product("A")})
        client.create_product = AsyncMock(side_effect=KeyError("id"))

        result = await sync_item("A", MarginRules(), client, client)

        assert not result.success
        assert result.entry.message.startswith("Unexpected error")


class TestJobRunner:

    @pytest.mark.asyncio
    async def test_partial_failure_end_to_end(self):
        """Three codes, the second lookup fails: job ends failed with 2 successes."""
        store = MemoryStore()
        client = FakeClient(
            {"C1": catalog_product("C1"), "C3": catalog_product("C3", variants=2)},
            failing_codes={"C2"},
        )
        job = create_job(store, ["C1", "C2", "C3"])

        await make_runner(store, client).dispatch(job.id)

        job = store.get_job(job.id)
        assert job.done == 3
        assert job.status == JobStatus.FAILED
        assert job.error == FAILED_ITEMS_MESSAGE
        assert [e.status for e in job.logs] == [LogStatus.SUCCESS, LogStatus.FAILED, LogStatus.SUCCESS]
        failed = [e for e in job.logs if e.status == LogStatus.FAILED]
        assert len(failed) == 1
        assert failed[0].item_id == "C2"
        assert job.ended is not None

    @pytest.mark.asyncio
    async def test_all_success_completes(self):
        store = MemoryStore()
        client = FakeClient({"A": catalog_product("A"), "B": catalog_product("B")})
        job = create_job(store, ["A", "B"])

        await make_runner(store, client).dispatch(job.id)

        job = store.get_job(job.id)
        assert job.status == JobStatus.COMPLETED
        assert job.error is None
        assert [e.item_id for e in job.logs] == ["A", "B"]

    @pytest.mark.asyncio
    async def test_error_is_sticky_after_later_success(self):
        store = MemoryStore()
        client = FakeClient({"B": catalog_product("B")}, failing_codes={"A"})
        job = create_job(store, ["A", "B"])

        await make_runner(store, client).dispatch(job.id)

        job = store.get_job(job.id)
        assert job.logs[-1].status == LogStatus.SUCCESS
        assert job.error == FAILED_ITEMS_MESSAGE
        assert job.status == JobStatus.FAILED

    @pytest.mark.asyncio
    async def test_logs_track_done_while_running(self):
        store = MemoryStore()
        observations = []

        class ObservingClient(FakeClient):
            async def fetch_product(self, code):
                current = store.get_job(job.id)
                observations.append((current.done, len(current.logs), current.total))
                return await super().fetch_product(code)

        codes = ["A", "B", "C", "D"]
        client = ObservingClient({c: catalog_product(c) for c in codes})
        job = create_job(store, codes)

        await make_runner(store, client).dispatch(job.id)

        assert observations == [(0, 0, 4), (1, 1, 4), (2, 2, 4), (3, 3, 4)]
        job = store.get_job(job.id)
        assert job.done == len(job.logs) == job.total

    @pytest.mark.asyncio
    async def test_uses_rules_captured_at_submission(self):
        store = MemoryStore()
        client = FakeClient({"A": catalog_product("A")})
        job = create_job(store, ["A"], rules=MarginRules(defaultMargin=50))
        store.update_settings({"rules": {"defaultMargin": 5, "conditionalRules": []}})

        await make_runner(store, client).dispatch(job.id)

        assert client.created[0]["regular_price"] == "15.00"

    @pytest.mark.asyncio
    async def test_submit_goes_queued_then_running_then_terminal(self):
        store = MemoryStore()
        client = FakeClient({"A": catalog_product("A")})
        job = create_job(store, ["A"])
        runner = make_runner(store, client, Settings(job_start_delay=0.05, item_delay=0))

        task = runner.submit(job)
        assert store.get_job(job.id).status == JobStatus.QUEUED
        assert runner.active_tasks == 1

        await task

        assert store.get_job(job.id).status == JobStatus.COMPLETED
        assert runner.active_tasks == 0

    @pytest.mark.asyncio
    async def test_item_delay_between_items(self, monkeypatch):
        store = MemoryStore()
        client = FakeClient({c: catalog_product(c) for c in "ABC"})
        job = create_job(store, list("ABC"))
        sleeps = []

        async def fake_sleep(seconds):
            sleeps.append(seconds)

        monkeypatch.setattr(asyncio, "sleep", fake_sleep)
        await make_runner(store, client, Settings(job_start_delay=2, item_delay=1)).dispatch(job.id)

        assert sleeps == [2, 1, 1]

    @pytest.mark.asyncio
    async def test_client_setup_failure_still_finishes_job(self):
        store = MemoryStore()
        job = create_job(store, ["A"])

        def broken_factory(cfg):
            raise RuntimeError("bad config")

        runner = JobRunner(store, FAST, promodata_factory=broken_factory, woo_factory=broken_factory)
        await runner.dispatch(job.id)

        job = store.get_job(job.id)
        assert job.status == JobStatus.FAILED
        assert "bad config" in job.error
        assert job.done == len(job.logs) == 0


class TestMemoryStore:

    def test_job_ids_are_sequential(self):
        store = MemoryStore()

        ids = [create_job(store, ["A"]).id for _ in range(3)]

        assert ids == ["JOB-00001", "JOB-00002", "JOB-00003"]

    def test_unknown_job_raises_not_found(self):
        with pytest.raises(NotFoundError):
            MemoryStore().get_job("JOB-99999")

    def test_cannot_record_before_running(self):
        store = MemoryStore()
        job = create_job(store, ["A"])

        with pytest.raises(InternalError):
            store.record_item(job.id, LogEntry(item_id="A", status=LogStatus.SUCCESS, message="ok"))

    def test_done_never_exceeds_total(self):
        store = MemoryStore()
        job = create_job(store, ["A"])
        store.start_job(job.id)
        entry = LogEntry(item_id="A", status=LogStatus.SUCCESS, message="ok")
        store.record_item(job.id, entry)

        with pytest.raises(InternalError):
            store.record_item(job.id, entry)
        assert store.get_job(job.id).done == 1

    def test_terminal_status_only_once(self):
        store = MemoryStore()
        job = create_job(store, ["A"])
        store.start_job(job.id)
        store.finish_job(job.id)

        with pytest.raises(InternalError):
            store.finish_job(job.id)
        with pytest.raises(InternalError):
            store.start_job(job.id)

    def test_product_codes_are_copied(self):
        store = MemoryStore()
        codes = ["A", "B"]
        job = create_job(store, codes)
        codes.append("C")

        assert job.product_codes == ["A", "B"]
        assert job.total == 2

    def test_settings_shallow_merge(self):
        store = MemoryStore()

        merged = store.update_settings({"notifications": {"email": "ops@example.com"}})

        assert merged["notifications"] == {"email": "ops@example.com"}
        assert merged["rules"]["defaultMargin"] == 30

    def test_current_rules_parsed_from_settings(self):
        store = MemoryStore()
        store.update_settings({"rules": {
            "defaultMargin": 25,
            "conditionalRules": [{"field": "supplier", "operator": "is", "value": "Acme", "margin": 40}],
        }})

        rules = store.current_rules()

        assert rules.default_margin == 25
        assert rules.conditional_rules[0].margin == 40

    def test_ignore_list_is_ordered_and_idempotent(self):
        store = MemoryStore()

        store.ignored_suppliers.add(["S2", "S1", "S2"])
        assert store.ignored_suppliers.items() == ["S2", "S1"]

        store.ignored_suppliers.remove(["S2", "missing"])
        assert store.ignored_suppliers.items() == ["S1"]
