import asyncio
import base64
import json
import os
import time
import httpx
from loguru import logger

from online.backend.core.errors import ConfigurationError, ProviderError

"""
Interaction Layer - BlueCitrus Token Provider.

Obtains a client-credentials access token from BlueCitrus and caches it for
TOKEN_TTL_SECONDS, in memory and optionally in a JSON file so the token
survives restarts. The keyword engine never sees this state; it only
receives `get_headers` as the capability for authenticating its calls.
"""


class TokenProvider:
    def __init__(
        self,
        client_id: str,
        client_secret: str,
        base_url: str,
        ttl_seconds: int = 3600,
        cache_file: str | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
        clock=time.time,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.base_url = base_url.rstrip("/")
        self.ttl_seconds = ttl_seconds
        self.cache_file = cache_file or None
        self.timeout = timeout
        self.transport = transport
        self.clock = clock
        self._token: str | None = None
        self._timestamp: float = 0.0
        self._lock = asyncio.Lock()

    def _is_fresh(self, timestamp: float) -> bool:
        return (self.clock() - timestamp) < self.ttl_seconds

    def _read_cache_file(self) -> tuple[str, float] | None:
        if not self.cache_file or not os.path.exists(self.cache_file):
            return None
        try:
            with open(self.cache_file, "r", encoding="utf-8") as f:
                data = json.load(f)
            token, timestamp = data.get("token"), data.get("timestamp")
            if token and timestamp and self._is_fresh(float(timestamp)):
                return token, float(timestamp)
        except (OSError, ValueError, TypeError, AttributeError) as e:
            logger.warning(f"Ignoring unreadable token cache {self.cache_file}: {e}")
        return None

    def _write_cache_file(self):
        if not self.cache_file:
            return
        try:
            with open(self.cache_file, "w", encoding="utf-8") as f:
                json.dump({"token": self._token, "timestamp": self._timestamp}, f, indent=2)
        except OSError as e:
            logger.warning(f"Could not write token cache {self.cache_file}: {e}")

    async def get_token(self) -> str:
        if not self.client_id or not self.client_secret:
            raise ConfigurationError("API credentials not configured")

        async with self._lock:
            if self._token and self._is_fresh(self._timestamp):
                logger.debug("Using cached token")
                return self._token

            cached = self._read_cache_file()
            if cached:
                logger.debug("Using token from cache file")
                self._token, self._timestamp = cached
                return self._token

            self._token = await self._fetch_token()
            self._timestamp = self.clock()
            self._write_cache_file()
            logger.info("Token cached successfully")
            return self._token

    async def _fetch_token(self) -> str:
        logger.info("Fetching new access token from BlueCitrus API...")
        credentials = base64.b64encode(f"{self.client_id}:{self.client_secret}".encode()).decode()
        headers = {"Authorization": f"Basic {credentials}", "Content-Type": "application/json"}

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                resp = await client.post(
                    f"{self.base_url}/token",
                    headers=headers,
                    json={"grant_type": "client_credentials"},
                )
        except httpx.HTTPError as e:
            raise ProviderError(f"Token request failed: {e}") from e

        logger.debug(f"Token response status: {resp.status_code}")
        if not resp.is_success:
            raise ProviderError(
                f"Token request failed with status {resp.status_code}: {resp.text}",
                status=resp.status_code,
                body=resp.text,
            )

        try:
            token = resp.json().get("access_token")
        except (ValueError, AttributeError) as e:
            raise ProviderError(f"Token response was not a JSON object: {resp.text}") from e

        if not token:
            raise ProviderError("No access token in response")
        return token

    async def get_headers(self) -> dict:
        token = await self.get_token()
        return {
            "accept": "application/json",
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }
