# -*- coding: utf-8 -*-
"""llm_client.py

Cliente de generación de texto (API compatible con OpenAI chat completions).

- Una sola llamada por informe: temperature=0 y response_format=json_object.
- Opcional: si no hay OPENAI_API_KEY (o INSIGHTS_LLM_ENABLED=false),
  get_llm_client() devuelve None y el análisis usa solo la heurística.
- Sin reintentos: el timeout lo define el propio cliente httpx.

ENV
- OPENAI_API_KEY
- OPENAI_BASE_URL (default: https://api.openai.com/v1)
- INSIGHTS_LLM_MODEL (default: gpt-4o-mini)
- INSIGHTS_LLM_ENABLED (default: true)
- INSIGHTS_LLM_TIMEOUT_SECONDS (default: 30)
"""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Any, Dict, Optional

import httpx

logger = logging.getLogger("llm_client")


def _env_bool(name: str, default: bool = False) -> bool:
    v = os.getenv(name)
    if v is None:
        return bool(default)
    s = str(v).strip().lower()
    if s in ("1", "true", "yes", "y", "on"):
        return True
    if s in ("0", "false", "no", "n", "off"):
        return False
    return bool(default)


def _env_float(name: str, default: float) -> float:
    v = os.getenv(name)
    if v is None or str(v).strip() == "":
        return float(default)
    try:
        return float(str(v).strip())
    except ValueError:
        return float(default)


OPENAI_API_KEY = (os.getenv("OPENAI_API_KEY") or "").strip()
OPENAI_BASE_URL = (os.getenv("OPENAI_BASE_URL") or "https://api.openai.com/v1").rstrip("/")
LLM_MODEL = (os.getenv("INSIGHTS_LLM_MODEL") or "gpt-4o-mini").strip()
LLM_ENABLED = _env_bool("INSIGHTS_LLM_ENABLED", True)
LLM_TIMEOUT_SECONDS = max(1.0, _env_float("INSIGHTS_LLM_TIMEOUT_SECONDS", 30.0))


class ChatCompletionClient:
    """Llamada chat completions con salida JSON."""

    def __init__(
        self,
        *,
        api_key: str,
        model: str = LLM_MODEL,
        base_url: str = OPENAI_BASE_URL,
        timeout: float = LLM_TIMEOUT_SECONDS,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._http_client = http_client

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    async def complete(self, system_prompt: str, user_prompt: str) -> str:
        """Devuelve el `content` del primer choice (string JSON).

        Raises:
            httpx.HTTPError: fallo de transporte o status != 2xx.
            ValueError: respuesta sin la forma esperada.
        """
        payload: Dict[str, Any] = {
            "model": self.model,
            "temperature": 0,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "response_format": {"type": "json_object"},
        }
        client = self._http_client or await get_llm_http_client()
        response = await client.post(
            f"{self.base_url}/chat/completions",
            headers=self._headers(),
            json=payload,
            timeout=self.timeout,
        )
        response.raise_for_status()
        result = response.json()
        try:
            content = result["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise ValueError("chat completion response has no message content") from exc
        return content or "{}"


# --- HTTP client singleton ---
_http_client: Optional[httpx.AsyncClient] = None
_http_client_lock = asyncio.Lock()


async def get_llm_http_client() -> httpx.AsyncClient:
    global _http_client
    if _http_client is not None:
        return _http_client
    async with _http_client_lock:
        if _http_client is None:
            _http_client = httpx.AsyncClient(timeout=httpx.Timeout(LLM_TIMEOUT_SECONDS))
        return _http_client


async def aclose_llm_http_client() -> None:
    global _http_client
    if _http_client is None:
        return
    try:
        await _http_client.aclose()
    finally:
        _http_client = None


def get_llm_client() -> Optional[ChatCompletionClient]:
    """Cliente configurado, o None si el modelo no está disponible."""
    if not LLM_ENABLED or not OPENAI_API_KEY:
        return None
    return ChatCompletionClient(api_key=OPENAI_API_KEY)
