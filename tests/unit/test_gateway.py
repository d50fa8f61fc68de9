"""Tests for provider fan-out and deadlines."""

import asyncio
import time

import pytest

from neuroshop.errors import ProviderError
from neuroshop.providers.gateway import Deadline, call_provider, fan_out
from neuroshop.state.models import ProviderStatus, RawOffer

from tests.factories import make_raw_offer


class TestCallProvider:
    """Tests for a single guarded provider call."""

    @pytest.mark.asyncio
    async def test_success_returns_offers(self, provider_factory):
        provider = provider_factory("amazon", offers=[make_raw_offer("TV", 100)])

        offers, outcome = await call_provider(provider, "tv")

        assert [o.title for o in offers] == ["TV"]
        assert outcome.status == ProviderStatus.SUCCESS
        assert outcome.offer_count == 1
        provider.fetch_offers.assert_awaited_once_with("tv")

    @pytest.mark.asyncio
    async def test_exception_becomes_failure(self, provider_factory):
        provider = provider_factory("flipkart", error=ProviderError("flipkart", "HTTP 503"))

        offers, outcome = await call_provider(provider, "tv")

        assert offers == []
        assert outcome.status == ProviderStatus.FAILURE
        assert "HTTP 503" in outcome.error

    @pytest.mark.asyncio
    async def test_slow_provider_times_out(self, provider_factory):
        provider = provider_factory("jiomart", delay=1.0, timeout_seconds=0.05)

        offers, outcome = await call_provider(provider, "rice")

        assert offers == []
        assert outcome.status == ProviderStatus.TIMEOUT

    @pytest.mark.asyncio
    async def test_explicit_timeout_overrides_provider_budget(self, provider_factory):
        provider = provider_factory("jiomart", delay=1.0, timeout_seconds=10)

        _, outcome = await call_provider(provider, "rice", timeout=0.05)

        assert outcome.status == ProviderStatus.TIMEOUT

    @pytest.mark.asyncio
    async def test_dict_offers_are_coerced(self, provider_factory):
        provider = provider_factory(
            "amazon",
            offers=[
                {"source": "Amazon", "title": "Kettle", "price": 999, "url": "https://a/k"},
                {"source": "Amazon", "title": "Bad", "price": "not a number"},
            ],
        )

        offers, outcome = await call_provider(provider, "kettle")

        assert len(offers) == 1
        assert isinstance(offers[0], RawOffer)
        assert offers[0].price == 999
        assert outcome.offer_count == 1


class TestFanOut:
    """Tests for concurrent fan-out."""

    @pytest.mark.asyncio
    async def test_empty_provider_list(self):
        result = await fan_out([], "anything", global_timeout=1)
        assert result.offers == []
        assert result.outcomes == []

    @pytest.mark.asyncio
    async def test_offers_keep_submission_order(self, provider_factory):
        """The slowest provider's offers still come first if it was submitted first."""
        slow = provider_factory("amazon", offers=[make_raw_offer("A", 1)], delay=0.1)
        fast = provider_factory("flipkart", offers=[make_raw_offer("B", 2, source="Flipkart")])

        result = await fan_out([slow, fast], "x", global_timeout=2)

        assert [o.title for o in result.offers] == ["A", "B"]
        assert result.queried == ["amazon", "flipkart"]
        assert result.succeeded == ["amazon", "flipkart"]

    @pytest.mark.asyncio
    async def test_failures_do_not_affect_other_providers(self, provider_factory):
        ok = provider_factory("amazon", offers=[make_raw_offer("A", 1)])
        broken = provider_factory("flipkart", error=RuntimeError("blocked"))

        result = await fan_out([broken, ok], "x", global_timeout=2)

        assert [o.title for o in result.offers] == ["A"]
        assert [o.status for o in result.outcomes] == [
            ProviderStatus.FAILURE,
            ProviderStatus.SUCCESS,
        ]
        assert result.succeeded == ["amazon"]

    @pytest.mark.asyncio
    async def test_hung_provider_is_bounded_by_global_timeout(self, provider_factory):
        """A provider that never answers cannot hold the fan-out past the deadline."""
        ok = provider_factory("amazon", offers=[make_raw_offer("A", 1)])
        hung = provider_factory("jiomart", hang=True, timeout_seconds=60)

        start = time.perf_counter()
        result = await fan_out([ok, hung], "x", global_timeout=0.2)
        elapsed = time.perf_counter() - start

        assert elapsed < 1.0
        assert [o.title for o in result.offers] == ["A"]
        assert result.outcomes[1].status == ProviderStatus.TIMEOUT
        assert "global deadline" in result.outcomes[1].error

    @pytest.mark.asyncio
    async def test_abandoned_task_is_cancelled(self, provider_factory):
        hung = provider_factory("jiomart", hang=True, timeout_seconds=60)

        await fan_out([hung], "x", global_timeout=0.05)
        await asyncio.sleep(0.05)

        pending = [
            t for t in asyncio.all_tasks()
            if t.get_name() == "provider:jiomart" and not t.done()
        ]
        assert pending == []

    @pytest.mark.asyncio
    async def test_cancelled_fan_out_cancels_provider_tasks(self, provider_factory):
        hung = provider_factory("bigbasket", hang=True, timeout_seconds=60)

        task = asyncio.create_task(fan_out([hung], "x", global_timeout=5))
        await asyncio.sleep(0.05)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        await asyncio.sleep(0.05)

        pending = [
            t for t in asyncio.all_tasks()
            if t.get_name() == "provider:bigbasket" and not t.done()
        ]
        assert pending == []

    @pytest.mark.asyncio
    async def test_zero_global_timeout_returns_no_offers(self, provider_factory):
        slow = provider_factory("amazon", offers=[make_raw_offer("A", 1)], delay=0.5)

        result = await fan_out([slow], "x", global_timeout=0)

        assert result.offers == []
        assert result.outcomes[0].status == ProviderStatus.TIMEOUT


class TestDeadline:
    """Tests for the Deadline helper."""

    def test_cap_never_exceeds_remaining(self):
        deadline = Deadline(0.5)
        assert deadline.cap(10) <= 0.5
        assert deadline.cap(0.1) == 0.1

    @pytest.mark.asyncio
    async def test_expires(self):
        deadline = Deadline(0.01)
        await asyncio.sleep(0.03)
        assert deadline.expired
        assert deadline.remaining() == 0.0
        assert deadline.cap(5) == 0.0
