from dataclasses import dataclass, field
from enum import Enum
from loguru import logger

from online.backend.core.errors import ProviderError, SchemaMismatchError
from online.backend.engine.models import ProviderRequest
from online.backend.engine.request_builder import RequestBuilder, SEED_LOOKUP_SIZE

"""
Engine - Expansion Fallback.

Runs a keyword universe expansion. When the primary request comes back
empty, seed keywords are looked up from the phrase or ASIN similarity
endpoints and the expansion is retried exactly once with those seeds.
"""


class FallbackState(str, Enum):
    PRIMARY = "primary"
    RETRIED = "retried"


@dataclass
class ExpansionResult:
    records: list[dict] = field(default_factory=list)
    state: FallbackState = FallbackState.PRIMARY
    seeds: list[str] = field(default_factory=list)


def overview_records(response) -> list[dict]:
    """Extracts the `overview` array from a keyword-flat-landscape response."""
    if not isinstance(response, dict):
        return []
    overview = response.get("overview") or []
    if not isinstance(overview, list):
        raise SchemaMismatchError(f"Expected 'overview' to be a list, got {type(overview).__name__}")
    for i, record in enumerate(overview):
        if not isinstance(record, dict):
            raise SchemaMismatchError(f"Overview record {i} is not an object: {record!r}")
    return overview


class ExpansionFallback:
    """
    Primary -> (empty) -> Retried, both states terminal.

    Only a failure of the primary call is raised. A failed or empty seed
    lookup, and a failed retry, end with an empty result.
    """

    def __init__(self, client, builder: RequestBuilder | None = None):
        self.client = client
        self.builder = builder or RequestBuilder()

    async def run(self, request: ProviderRequest) -> ExpansionResult:
        response = await self.client.post(request)
        records = overview_records(response)
        if records:
            logger.info(f"Universe expansion returned {len(records)} keywords")
            return ExpansionResult(records=records, state=FallbackState.PRIMARY)

        logger.warning("No results from initial expansion request, attempting fallback...")
        seeds = await self._derive_seeds(request.payload)
        if not seeds:
            logger.warning("Fallback lookup produced no seed keywords; returning empty result")
            return ExpansionResult(state=FallbackState.PRIMARY)

        logger.info(f"Retrying expansion with {len(seeds)} fallback seeds: {seeds}")
        try:
            response = await self.client.post(request.with_keywords(seeds))
        except ProviderError as e:
            logger.error(f"Fallback expansion request failed: {e}")
            return ExpansionResult(state=FallbackState.RETRIED, seeds=seeds)

        records = overview_records(response)
        logger.info(f"Fallback expansion returned {len(records)} keywords")
        return ExpansionResult(records=records, state=FallbackState.RETRIED, seeds=seeds)

    async def _derive_seeds(self, payload: dict) -> list[str]:
        lookup = self.builder.build_seed_lookup(payload.get("keywords") or [], payload.get("asins") or [])
        if lookup is None:
            return []

        try:
            response = await self.client.post(lookup)
        except ProviderError as e:
            logger.warning(f"Fallback seed lookup {lookup.endpoint} failed: {e}")
            return []

        if not isinstance(response, list):
            return []

        seeds = []
        for item in response[:SEED_LOOKUP_SIZE]:
            if not isinstance(item, dict):
                continue
            seed = item.get("search_term") or item.get("keyword")
            if seed:
                seeds.append(seed)
        return seeds
