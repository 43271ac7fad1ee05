"""
Async client for the image-generation endpoint.

The client never raises for service failures: every outcome is reported as a
`GenerationResult`, so the caller can return the session to idle in one place.
"""

import asyncio
import logging
import time
from typing import Any, Dict, Optional

import aiohttp

from dalle_cli.exceptions import ConfigurationError
from dalle_cli.models.config import SessionConfig
from dalle_cli.models.session import GenerationResult, ImageDescriptor

log = logging.getLogger(__name__)


class ImageAPIClient:
    """
    Async client for the OpenAI-compatible `images/generations` API.

    Features:
    - One lazily created connection pool per client
    - Bearer authentication from the configured API key
    - Errors folded into the returned result instead of raised
    """

    ENDPOINT = "images/generations"

    def __init__(self, config: SessionConfig):
        """
        Initializes the API client.

        Args:
            config: The validated session configuration.

        Raises:
            ConfigurationError: If no API key is configured.
        """
        if not config.api_key:
            raise ConfigurationError(
                "No API key configured. Run 'dalle-cli init <API_KEY>' or set "
                "OPENAI_API_KEY."
            )
        self.config = config
        self._session: Optional[aiohttp.ClientSession] = None

    async def _initialize_session(self) -> None:
        """Ensures an active aiohttp session is available."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers={
                    "Authorization": f"Bearer {self.config.api_key}",
                    "Content-Type": "application/json",
                },
                timeout=aiohttp.ClientTimeout(
                    total=self.config.request_timeout, sock_connect=15
                ),
            )

    async def close(self) -> None:
        """Gracefully closes the aiohttp session."""
        if self._session and not self._session.closed:
            await self._session.close()

    def _build_payload(
        self, prompt: str, n: int, size: str, user: str
    ) -> Dict[str, Any]:
        payload = {
            "model": self.config.model,
            "prompt": prompt,
            "n": n,
            "size": size,
            "response_format": "url",
        }
        if user:
            payload["user"] = user
        return payload

    @staticmethod
    def _error_message(body: Any, status: int) -> str:
        if isinstance(body, dict):
            error = body.get("error")
            if isinstance(error, dict) and error.get("message"):
                return str(error["message"])
            if isinstance(error, str) and error:
                return error
        return f"Image service returned HTTP {status}."

    async def generate_images(
        self, prompt: str, n: int, size: str, user: str = ""
    ) -> GenerationResult:
        """
        Requests `n` images for `prompt` and returns their URLs in service order.
        """
        await self._initialize_session()
        url = f"{self.config.base_url}/{self.ENDPOINT}"
        start_time = time.monotonic()

        try:
            async with self._session.post(
                url, json=self._build_payload(prompt, n, size, user)
            ) as r:
                duration_ms = (time.monotonic() - start_time) * 1000
                try:
                    body = await r.json(content_type=None)
                except ValueError:
                    body = None

                log.debug(
                    f"Generation request returned {r.status} in {duration_ms:.0f} ms"
                )

                if r.status >= 400 or (isinstance(body, dict) and "error" in body):
                    return GenerationResult(error=self._error_message(body, r.status))

                data = body.get("data", []) if isinstance(body, dict) else []
                images = [
                    ImageDescriptor(url=item["url"])
                    for item in data
                    if isinstance(item, dict) and item.get("url")
                ]
                if not images:
                    return GenerationResult(error="Image service returned no images.")
                return GenerationResult(images=images)

        except asyncio.TimeoutError:
            return GenerationResult(
                error=f"Request timed out after {self.config.request_timeout}s."
            )
        except aiohttp.ClientError as e:
            log.debug(f"Generation request to {url} failed: {e}")
            return GenerationResult(error=f"Network error: {e}")
