"""
Gemini `generateContent` client used for taste analysis.

The curator asks for a JSON reply (`responseMimeType=application/json`) and
returns the first candidate's text untouched; validation of its shape happens
in the domain layer.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any

import aiohttp

from application.ports.taste_generation_port import TasteGenerationPort
from domain.curation import ConfigurationError, SchemaError, TransportError
from infrastructure.config.settings import (
    GEMINI_API_KEY,
    GEMINI_BASE_URL,
    GEMINI_MODEL,
    GEMINI_TEMPERATURE,
    GEMINI_TIMEOUT_S,
)
from infrastructure.utils import format_kv

logger = logging.getLogger(__name__)


def build_request_body(prompt: str, *, json_mode: bool, temperature: float | None = None) -> dict[str, Any]:
    body: dict[str, Any] = {"contents": [{"role": "user", "parts": [{"text": prompt}]}]}
    generation_config: dict[str, Any] = {}
    if json_mode:
        generation_config["responseMimeType"] = "application/json"
    if temperature is not None:
        generation_config["temperature"] = float(temperature)
    if generation_config:
        body["generationConfig"] = generation_config
    return body


def extract_candidate_text(payload: Any) -> str:
    """Return `candidates[0].content.parts[0].text` or raise SchemaError."""
    try:
        text = payload["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError) as exc:
        raise SchemaError("Gemini reply has no candidate text") from exc
    if not isinstance(text, str) or not text.strip():
        raise SchemaError("Gemini reply candidate text is empty")
    return text


class GeminiClient(TasteGenerationPort):
    def __init__(
        self,
        *,
        base_url: str | None = None,
        api_key: str | None = None,
        model: str | None = None,
        timeout_s: float | None = None,
        temperature: float | None = GEMINI_TEMPERATURE,
    ) -> None:
        self._base_url = (base_url or GEMINI_BASE_URL or "").rstrip("/")
        self._api_key = (api_key if api_key is not None else GEMINI_API_KEY or "").strip()
        self._model = (model or GEMINI_MODEL or "").strip()
        self._timeout_s = float(timeout_s or GEMINI_TIMEOUT_S or 30.0)
        self._temperature = temperature
        self._session: aiohttp.ClientSession | None = None
        self._lock = asyncio.Lock()

    @property
    def configured(self) -> bool:
        return bool(self._base_url and self._api_key and self._model)

    @property
    def endpoint(self) -> str:
        return f"{self._base_url}/models/{self._model}:generateContent"

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is not None and not self._session.closed:
            return self._session
        async with self._lock:
            if self._session is not None and not self._session.closed:
                return self._session
            self._session = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self._timeout_s))
            return self._session

    async def generate(self, prompt: str, *, json_mode: bool = True) -> str:
        if not self.configured:
            raise ConfigurationError(
                "GEMINI_API_KEY is not set",
                user_message="AI curator is not configured.",
            )
        session = await self._get_session()
        body = build_request_body(prompt, json_mode=json_mode, temperature=self._temperature)
        started = time.monotonic()
        try:
            async with session.post(self.endpoint, params={"key": self._api_key}, json=body) as resp:
                if resp.status >= 400:
                    error_text = await resp.text()
                    raise TransportError(f"Gemini request failed ({resp.status}): {error_text[:200]}")
                payload = await resp.json(content_type=None)
        except asyncio.TimeoutError as exc:
            raise TransportError(f"Gemini request timed out after {self._timeout_s}s") from exc
        except aiohttp.ClientError as exc:
            raise TransportError(f"Gemini request failed: {exc}") from exc
        except ValueError as exc:
            raise SchemaError(f"Gemini returned invalid JSON: {exc}") from exc

        text = extract_candidate_text(payload)
        logger.info(
            "Gemini %s",
            format_kv(
                event="generate",
                model=self._model,
                json_mode=json_mode,
                reply_chars=len(text),
                elapsed_s=round(time.monotonic() - started, 3),
            ),
        )
        return text

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None
