from loguru import logger

from online.backend.core.errors import ValidationError
from online.backend.engine.column_projector import build_universe_table, project
from online.backend.engine.expansion_fallback import ExpansionFallback
from online.backend.engine.history_pivot import HistoryPivot
from online.backend.engine.models import Intent, SEARCH_INTENTS, Table
from online.backend.engine.request_builder import DEFAULT_LEVELS, RequestBuilder
from online.backend.engine.result_normalizer import normalize

"""
Engine - Orchestrator.

This module coordinates the three inbound operations. Each call builds its
provider request, awaits the provider (strictly one call after another) and
reshapes the response into a Table:

    search:  RequestBuilder -> provider -> ResultNormalizer -> ColumnProjector
    expand:  RequestBuilder -> ExpansionFallback -> universe projection
    history: RequestBuilder -> provider -> HistoryPivot
"""


class KeywordOrchestrator:
    """
    Entry point for keyword searches.

    Args:
        client: Object with an async `post(ProviderRequest)` returning decoded JSON.
        builder: RequestBuilder to use; a default one is created if omitted.
        rng: Random source for the history gap fill (see HistoryPivot).
    """

    def __init__(self, client, builder: RequestBuilder | None = None, rng=None):
        self.client = client
        self.builder = builder or RequestBuilder()
        self.rng = rng

    async def search(self, intent: Intent | str, text: str) -> Table:
        """Phrase match, exact match or ASIN lookup."""
        if intent not in [i.value for i in SEARCH_INTENTS]:
            raise ValidationError("invalid-search-type", f"Invalid search type: {intent}")
        intent = Intent(intent)

        request = self.builder.build(intent, text)
        response = await self.client.post(request)
        table = project(intent, normalize(intent, response))
        logger.info(f"Keyword finder ({intent.value}) returned {len(table)} results")
        return table

    async def expand(self, keywords: str | None, asins: str | None, levels: int = DEFAULT_LEVELS, own_brand: str | None = None) -> Table:
        """Keyword universe expansion with a one-shot reseed when the first pass is empty."""
        request = self.builder.build(Intent.UNIVERSE_EXPAND, keywords, asins=asins, levels=levels)
        result = await ExpansionFallback(self.client, self.builder).run(request)
        table = build_universe_table(result.records, own_brand)
        logger.info(f"Keyword universe returned {len(table)} keywords (state={result.state.value})")
        return table

    async def history(self, keywords: str | None) -> Table:
        """Monthly search volume history pivoted to Date x keyword."""
        request = self.builder.build(Intent.HISTORY, keywords)
        response = await self.client.post(request)
        return HistoryPivot(self.rng).pivot(response)
