"""Gemini API client for curriculum generation."""

import logging
from typing import Any, Dict, Optional

import httpx

from pathgen.config import get_settings
from pathgen.errors import GenerationError

logger = logging.getLogger(__name__)


class GeminiClient:
    """Client for the Gemini ``generateContent`` REST endpoint."""

    def __init__(self, api_key: Optional[str] = None, *, model: Optional[str] = None):
        self.settings = get_settings()
        self.api_key = api_key or self.settings.gemini_api_key
        self.model = model or self.settings.gemini_model
        self.base_url = self.settings.gemini_base_url.rstrip("/")
        self.timeout = httpx.Timeout(self.settings.gemini_timeout)

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/models/{self.model}:generateContent"

    async def generate_json(self, prompt: str) -> str:
        """Send ``prompt`` asking for a JSON reply; return the raw reply text."""
        if not self.api_key:
            raise GenerationError(
                "Gemini API key is not configured",
                status_code=503,
                code="GENERATION_UNAVAILABLE",
            )

        payload: Dict[str, Any] = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "responseMimeType": "application/json",
                "temperature": self.settings.gemini_temperature,
            },
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    self.endpoint,
                    json=payload,
                    headers=self._get_headers(),
                )
                response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.error(
                "Gemini returned HTTP %s: %s",
                exc.response.status_code,
                exc.response.text[:500],
            )
            raise GenerationError(
                f"Gemini API error (HTTP {exc.response.status_code})"
            ) from exc
        except httpx.RequestError as exc:
            logger.error("Gemini request failed: %s", exc)
            raise GenerationError(f"Could not reach Gemini API: {exc}") from exc

        return self._extract_text(response)

    def _extract_text(self, response: httpx.Response) -> str:
        try:
            data = response.json()
            parts = data["candidates"][0]["content"]["parts"]
            return "".join(part.get("text", "") for part in parts)
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            logger.error("Unexpected Gemini response: %s", response.text[:500])
            raise GenerationError("Unexpected response envelope from Gemini") from exc

    def _get_headers(self) -> Dict[str, str]:
        """Get headers for API calls."""
        return {
            "x-goog-api-key": self.api_key or "",
            "Content-Type": "application/json",
        }
