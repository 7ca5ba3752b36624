import asyncio
import os
import sys
from loguru import logger
from dotenv import load_dotenv

# Load environment variables (for BC_CLIENT_ID / BC_CLIENT_SECRET)
load_dotenv()

async def run_integration_test():
    """
    Live integration run of the three keyword operations against BlueCitrus.

    Ensure:
    1. BC_CLIENT_ID and BC_CLIENT_SECRET are set in the environment or .env file.
    2. The machine can reach https://api.bluecitrus.co.
    """
    from online.backend.core.config import get_settings
    from online.backend.core.errors import KeywordExplorerError
    from online.backend.engine.models import Intent
    from online.backend.engine.orchestrator import KeywordOrchestrator
    from online.backend.interaction.provider_client import ProviderClient
    from online.backend.interaction.token_provider import TokenProvider

    settings = get_settings()
    if not settings.has_credentials():
        print("ERROR: BC_CLIENT_ID / BC_CLIENT_SECRET are not set.")
        return

    # 1. Initialize Components
    tokens = TokenProvider(
        settings.BC_CLIENT_ID,
        settings.BC_CLIENT_SECRET,
        settings.BC_API_BASE_URL,
        ttl_seconds=settings.TOKEN_TTL_SECONDS,
        cache_file=settings.TOKEN_CACHE_FILE,
    )
    client = ProviderClient(settings.BC_API_BASE_URL, tokens.get_headers, timeout=settings.REQUEST_TIMEOUT_SECONDS)
    orchestrator = KeywordOrchestrator(client)

    # 2. Simulate a user session: find, expand, then chart history
    steps = [
        ("AI phrase match", orchestrator.search(Intent.PHRASE_MATCH, "wireless headphones")),
        ("Exact match", orchestrator.search(Intent.EXACT_MATCH, "wireless headphones")),
        ("Keyword universe", orchestrator.expand("wireless headphones", "", levels=2)),
        ("Volume history", orchestrator.history("wireless headphones\nbluetooth headphones")),
    ]

    print("\n--- Starting Live Integration Run ---\n")

    for name, call in steps:
        try:
            table = await call
        except KeywordExplorerError as e:
            print(f"{name}: FAILED ({type(e).__name__}) {e.message}")
            continue

        rows = table.to_rows()
        print(f"{name}: {len(table)} rows")
        print(f"  Header: {rows[0]}")
        for row in rows[1:4]:
            print(f"  {row}")
        print("-" * 30)

if __name__ == "__main__":
    # Ensure current directory is in path to import online module correctly
    sys.path.append(os.getcwd())
    logger.remove()
    logger.add(sys.stderr, level="WARNING")

    asyncio.run(run_integration_test())
