import httpx
from loguru import logger

from online.backend.core.errors import ProviderError
from online.backend.engine.models import ProviderRequest

"""
Interaction Layer - BlueCitrus Provider Client.

Sends engine-built requests to the BlueCitrus API as JSON POSTs and returns
the decoded JSON body. Every non-success status and transport failure is
raised as ProviderError.
"""


class ProviderClient:
    def __init__(self, base_url: str, headers_provider, timeout: float = 30.0, transport: httpx.AsyncBaseTransport | None = None):
        """
        Args:
            base_url: Provider root, e.g. https://api.bluecitrus.co
            headers_provider: Async callable returning the auth headers for a call.
            timeout: Per-request timeout in seconds.
            transport: Optional httpx transport (used to stub the provider in tests).
        """
        self.base_url = base_url.rstrip("/")
        self.headers_provider = headers_provider
        self.timeout = timeout
        self.transport = transport

    async def post(self, request: ProviderRequest):
        headers = await self.headers_provider()
        url = f"{self.base_url}{request.endpoint}"
        logger.debug(f"POST {url} payload={request.payload}")

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                resp = await client.post(url, headers=headers, json=request.payload)
        except httpx.HTTPError as e:
            logger.error(f"BlueCitrus transport failure on {request.endpoint}: {e}")
            raise ProviderError(f"BlueCitrus API request to {request.endpoint} failed: {e}") from e

        if not resp.is_success:
            logger.error(f"BlueCitrus API error: {resp.status_code} {resp.text}")
            raise ProviderError(
                f"BlueCitrus API request failed: {resp.status_code} - {resp.text}",
                status=resp.status_code,
                body=resp.text,
            )

        try:
            return resp.json()
        except ValueError as e:
            raise ProviderError(f"BlueCitrus API returned invalid JSON from {request.endpoint}") from e
