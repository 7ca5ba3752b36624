import re
from datetime import datetime, timezone
from functools import lru_cache
from typing import List, Optional

from fastapi import APIRouter, Depends, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from online.backend.core.config import get_settings
from online.backend.engine.models import Intent
from online.backend.engine.orchestrator import KeywordOrchestrator
from online.backend.engine.request_builder import DEFAULT_LEVELS
from online.backend.interaction.csv_export import export_filename, table_to_csv
from online.backend.interaction.provider_client import ProviderClient
from online.backend.interaction.token_provider import TokenProvider

router = APIRouter()

# --- Pydantic Models ---
class FinderRequest(BaseModel):
    input: str = ""
    search_type: str = Intent.PHRASE_MATCH.value

class UniverseRequest(BaseModel):
    keywords: str = ""
    asins: str = ""
    levels: int = DEFAULT_LEVELS
    own_brand: Optional[str] = None

class HistoryRequest(BaseModel):
    keywords: str = ""

class ExportRequest(BaseModel):
    table: List[list]
    mode: str = "finder"

# --- Dependencies ---
@lru_cache()
def get_token_provider() -> TokenProvider:
    """Process-wide token cache; the only state shared across requests."""
    settings = get_settings()
    return TokenProvider(
        client_id=settings.BC_CLIENT_ID,
        client_secret=settings.BC_CLIENT_SECRET,
        base_url=settings.BC_API_BASE_URL,
        ttl_seconds=settings.TOKEN_TTL_SECONDS,
        cache_file=settings.TOKEN_CACHE_FILE,
        timeout=settings.REQUEST_TIMEOUT_SECONDS,
    )

def get_orchestrator(tokens: TokenProvider = Depends(get_token_provider)) -> KeywordOrchestrator:
    settings = get_settings()
    client = ProviderClient(
        settings.BC_API_BASE_URL,
        tokens.get_headers,
        timeout=settings.REQUEST_TIMEOUT_SECONDS,
    )
    return KeywordOrchestrator(client)

# --- Endpoints ---
@router.post("/keyword-finder")
async def keyword_finder(body: FinderRequest, orchestrator: KeywordOrchestrator = Depends(get_orchestrator)):
    """
    AI phrase match, exact match or ASIN lookup, returned as a header-first table.
    """
    table = await orchestrator.search(body.search_type, body.input)
    return table.to_rows()

@router.post("/keyword-universe")
async def keyword_universe(body: UniverseRequest, orchestrator: KeywordOrchestrator = Depends(get_orchestrator)):
    table = await orchestrator.expand(body.keywords, body.asins, body.levels, body.own_brand)
    return table.to_rows()

@router.post("/keyword-history")
async def keyword_history(body: HistoryRequest, orchestrator: KeywordOrchestrator = Depends(get_orchestrator)):
    table = await orchestrator.history(body.keywords)
    return table.to_rows()

@router.post("/export/csv")
async def export_csv(body: ExportRequest):
    """
    Renders any table returned by the endpoints above as a downloadable CSV.
    """
    mode = re.sub(r"[^a-z0-9-]", "", body.mode.lower()) or "export"
    return Response(
        content=table_to_csv(body.table),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{export_filename(mode)}"'},
    )

@router.get("/debug")
async def debug():
    """
    Reports whether provider credentials are configured, never their values.
    """
    settings = get_settings()
    diagnostics = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "app_name": settings.APP_NAME,
        "provider_base_url": settings.BC_API_BASE_URL,
        "has_client_id": bool(settings.BC_CLIENT_ID),
        "has_client_secret": bool(settings.BC_CLIENT_SECRET),
        "token_cache_file": bool(settings.TOKEN_CACHE_FILE),
    }
    return JSONResponse(
        content=diagnostics,
        headers={"Cache-Control": "no-store, no-cache, must-revalidate"},
    )
