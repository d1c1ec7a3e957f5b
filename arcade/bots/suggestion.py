"""
Clients for the external move-suggestion (text generation) service.

The service is unreliable by assumption: every failure mode (no configuration, timeout, HTTP error,
malformed body) surfaces as a SuggestionError, which the decision client turns into its fallback.
"""

import asyncio
import logging
from typing import Any, Optional, Protocol

import aiohttp

from arcade.core.config import Settings
from arcade.core.exceptions import SuggestionError

logger = logging.getLogger(__name__)

MAX_OUTPUT_TOKENS = 10


class SuggestionClient(Protocol):
    async def suggest(self, prompt: str, temperature: float = 0.7) -> str:
        """Short text answer to `prompt`. Raises SuggestionError."""
        ...


class NullSuggestionClient:
    """No service configured: every request fails, so bots always use their fallback."""

    async def suggest(self, prompt: str, temperature: float = 0.7) -> str:
        raise SuggestionError("No suggestion service configured.")


class GeminiSuggestionClient:
    """generateContent-style endpoint: POST {"contents": [{"parts": [{"text": prompt}]}]}"""

    def __init__(
        self,
        endpoint: str,
        api_key: str = "",
        timeout_seconds: float = 8.0,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self.endpoint = endpoint
        self.api_key = api_key
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self._session = session

    async def suggest(self, prompt: str, temperature: float = 0.7) -> str:
        payload = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": temperature,
                "maxOutputTokens": MAX_OUTPUT_TOKENS,
            },
        }
        params = {"key": self.api_key} if self.api_key else None
        try:
            if self._session is not None:
                data = await self._post(self._session, payload, params)
            else:
                async with aiohttp.ClientSession() as session:
                    data = await self._post(session, payload, params)
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise SuggestionError(f"Suggestion request failed: {exc}") from exc
        return self._extract_text(data)

    async def _post(
        self,
        session: aiohttp.ClientSession,
        payload: dict[str, Any],
        params: Optional[dict[str, str]],
    ) -> Any:
        async with session.post(
            self.endpoint, json=payload, params=params, timeout=self.timeout
        ) as response:
            if response.status >= 400:
                text = await response.text()
                raise SuggestionError(
                    f"Suggestion service answered {response.status}: {text[:256]}"
                )
            try:
                return await response.json(content_type=None)
            except ValueError as exc:
                raise SuggestionError("Suggestion service sent a non-JSON body.") from exc

    @staticmethod
    def _extract_text(data: Any) -> str:
        """candidates[0].content.parts[0].text"""
        try:
            text = data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError) as exc:
            raise SuggestionError("Suggestion response has no text candidate.") from exc
        if not isinstance(text, str) or not text.strip():
            raise SuggestionError("Suggestion response text is empty.")
        return text


def suggestion_client_from_settings(settings: Settings) -> SuggestionClient:
    if not settings.suggestion_endpoint:
        logger.info("No suggestion endpoint configured, bots use their fallback policy")
        return NullSuggestionClient()
    return GeminiSuggestionClient(
        settings.suggestion_endpoint,
        api_key=settings.suggestion_api_key,
        timeout_seconds=settings.suggestion_timeout_seconds,
    )
