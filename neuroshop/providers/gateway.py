"""Concurrent fan-out to offer providers with per-call and global deadlines."""

import asyncio
import time
from typing import Any, Optional, Sequence

import structlog
from pydantic import BaseModel, Field, ValidationError

from neuroshop.logging import log_provider_outcome
from neuroshop.state.models import ProviderOutcome, ProviderStatus, RawOffer

from .base_provider import BaseProvider

logger = structlog.get_logger()


class Deadline:
    """A fixed point in time that stages of a request must finish by.

    Each stage asks for ``cap(stage_budget)`` so that no stage can run past
    the overall deadline, whatever its own budget is.
    """

    def __init__(self, seconds: float):
        self.budget = seconds
        self._expires_at = time.monotonic() + seconds

    def remaining(self) -> float:
        """Seconds left, never negative."""
        return max(0.0, self._expires_at - time.monotonic())

    def cap(self, seconds: float) -> float:
        """The smaller of a stage budget and the time left."""
        return min(seconds, self.remaining())

    @property
    def expired(self) -> bool:
        return self.remaining() <= 0


class GatewayResult(BaseModel):
    """Offers from all providers, in submission order, plus diagnostics."""

    offers: list[RawOffer] = Field(default_factory=list)
    outcomes: list[ProviderOutcome] = Field(default_factory=list)

    @property
    def queried(self) -> list[str]:
        return [o.provider for o in self.outcomes]

    @property
    def succeeded(self) -> list[str]:
        return [o.provider for o in self.outcomes if o.status == ProviderStatus.SUCCESS]


def _coerce_offers(provider: str, items: Any) -> list[RawOffer]:
    """Accept RawOffer instances or dicts; drop anything unparseable."""
    offers = []
    for item in items or []:
        if isinstance(item, RawOffer):
            offers.append(item)
            continue
        try:
            offers.append(RawOffer.model_validate(item))
        except ValidationError as e:
            logger.debug("Dropped unparseable offer", provider=provider, error=str(e))
    return offers


async def call_provider(
    provider: BaseProvider,
    search_term: str,
    timeout: Optional[float] = None,
) -> tuple[list[RawOffer], ProviderOutcome]:
    """Call one provider under its time budget.

    Timeouts and exceptions are converted to an empty offer list; the
    outcome records what happened. Cancellation is not caught, so a
    cancelled fan-out also cancels the in-flight provider request.

    Args:
        provider: Provider to call
        search_term: Normalized search term
        timeout: Budget in seconds (defaults to the provider's own)

    Returns:
        Tuple of (offers, outcome)
    """
    budget = provider.timeout_seconds if timeout is None else timeout
    start = time.perf_counter()
    error = None

    try:
        result = await asyncio.wait_for(provider.fetch_offers(search_term), timeout=budget)
        offers = _coerce_offers(provider.name, result)
        status = ProviderStatus.SUCCESS
    except asyncio.TimeoutError:
        offers = []
        status = ProviderStatus.TIMEOUT
        error = f"timed out after {budget:.1f}s"
    except Exception as e:
        offers = []
        status = ProviderStatus.FAILURE
        error = str(e) or e.__class__.__name__

    outcome = ProviderOutcome(
        provider=provider.name,
        status=status,
        offer_count=len(offers),
        duration_ms=(time.perf_counter() - start) * 1000,
        error=error,
    )
    log_provider_outcome(
        provider=outcome.provider,
        status=outcome.status.value,
        offer_count=outcome.offer_count,
        duration_ms=outcome.duration_ms,
        error=outcome.error,
    )
    return offers, outcome


async def fan_out(
    providers: Sequence[BaseProvider],
    search_term: str,
    global_timeout: float,
    per_provider_timeout: Optional[float] = None,
) -> GatewayResult:
    """Query all providers concurrently.

    Every provider runs under its own timeout; the whole fan-out is bounded
    by ``global_timeout``. Providers still running at the global deadline
    are cancelled and contribute nothing. Offers are concatenated in the
    order the providers were given, regardless of completion order.

    Args:
        providers: Providers to query, in submission order
        search_term: Normalized search term
        global_timeout: Deadline for the whole fan-out, in seconds
        per_provider_timeout: Override for every provider's own budget

    Returns:
        GatewayResult with merged offers and one outcome per provider
    """
    if not providers:
        return GatewayResult()

    start = time.perf_counter()
    tasks = [
        asyncio.create_task(
            call_provider(provider, search_term, per_provider_timeout),
            name=f"provider:{provider.name}",
        )
        for provider in providers
    ]

    try:
        done, pending = await asyncio.wait(tasks, timeout=max(global_timeout, 0))
    finally:
        # Also runs when the caller cancels the fan-out itself
        for task in tasks:
            if not task.done():
                task.cancel()

    result = GatewayResult()
    for provider, task in zip(providers, tasks):
        if task in done:
            offers, outcome = task.result()
        else:
            offers = []
            outcome = ProviderOutcome(
                provider=provider.name,
                status=ProviderStatus.TIMEOUT,
                duration_ms=(time.perf_counter() - start) * 1000,
                error=f"abandoned at global deadline ({global_timeout:.1f}s)",
            )
            log_provider_outcome(
                provider=outcome.provider,
                status=outcome.status.value,
                offer_count=0,
                duration_ms=outcome.duration_ms,
                error=outcome.error,
            )
        result.offers.extend(offers)
        result.outcomes.append(outcome)

    logger.info(
        "Provider fan-out complete",
        term=search_term,
        queried=len(providers),
        succeeded=len(result.succeeded),
        abandoned=len(pending),
        offers=len(result.offers),
    )
    return result
