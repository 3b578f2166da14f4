"""
External book discovery with ordered fallback.

Tiers are tried in order; the first tier that returns candidates wins.
A tier that fails or finds nothing hands over to the next one. The last
tier (placeholders) always answers, so ``discover`` only returns an empty
list for an empty query.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence

import httpx

from .config import ChatConfig, DiscoveryConfig
from .providers.base import ChatProvider, DiscoveryTier
from .providers.discovery import AIRankedDiscovery, PlaceholderDiscovery, StructuredBookSearch
from .providers.llm import ChatCompletions
from .types import ExternalCandidate, Failure, FailureKind

logger = logging.getLogger(__name__)


@dataclass
class DiscoveryResult:
    """
    What a discovery run produced and how.

    Attributes:
        candidates: Candidates from the tier that answered (empty only for an empty query)
        tier: Name of the answering tier, or None if no tier was asked
        failures: Failure per tier that was tried and did not answer
    """
    candidates: list[ExternalCandidate] = field(default_factory=list)
    tier: Optional[str] = None
    failures: dict[str, Failure] = field(default_factory=dict)

    @property
    def degraded(self) -> bool:
        """True if any tier before the answering one failed."""
        return bool(self.failures)


class MultiTierSearchAggregator:
    """
    Finds books outside the catalog.

    Default chain: AI-ranked discovery, structured book search, placeholders.
    The tiers share one HTTP client; each builds its own per-request
    credentials. Providers the aggregator creates itself are closed by
    ``aclose``; tiers and chat providers passed in belong to the caller.
    """

    def __init__(
        self,
        tiers: Optional[Sequence[DiscoveryTier]] = None,
        *,
        config: Optional[DiscoveryConfig] = None,
        chat: Optional[ChatProvider] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self._owned = []
        if tiers is None:
            config = config or DiscoveryConfig()
            if chat is None:
                chat = ChatCompletions(ChatConfig(), client=client)
                self._owned.append(chat)
            structured = StructuredBookSearch(config, client=client)
            self._owned.append(structured)
            tiers = [AIRankedDiscovery(chat, config), structured, PlaceholderDiscovery()]
        if not tiers:
            raise ValueError("At least one discovery tier is required")
        self.tiers = list(tiers)

    async def discover(self, query: str) -> list[ExternalCandidate]:
        """Candidates for ``query`` from the first tier that has any."""
        return (await self.discover_outcome(query)).candidates

    async def discover_outcome(self, query: str) -> DiscoveryResult:
        """Run the fallback chain, recording which tier answered and why others did not."""
        result = DiscoveryResult()
        if query is None or not query.strip():
            result.failures["query"] = Failure(FailureKind.DEGRADED_INPUT, "empty query")
            return result
        query = query.strip()

        for tier in self.tiers:
            outcome = await tier.search(query)
            if outcome.ok and outcome.value:
                result.candidates = list(outcome.value)
                result.tier = tier.name
                if result.failures:
                    logger.info(
                        "Discovery for %r answered by %s after: %s",
                        query, tier.name,
                        ", ".join(f"{name} ({f})" for name, f in result.failures.items()),
                    )
                return result
            failure = outcome.failure or Failure(FailureKind.PARSE, "no candidates")
            result.failures[tier.name] = failure
            logger.debug("Discovery tier %s gave nothing for %r: %s", tier.name, query, failure)

        logger.warning("All discovery tiers failed for %r", query)
        return result

    async def aclose(self) -> None:
        """Close the providers this aggregator created."""
        owned, self._owned = self._owned, []
        for provider in owned:
            await provider.aclose()
