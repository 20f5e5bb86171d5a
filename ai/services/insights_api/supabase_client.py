# -*- coding: utf-8 -*-
"""supabase_client.py

Shared Supabase HTTP client
---------------------------

What this module provides
  - A single, lazily-initialized ``httpx.AsyncClient`` (connection pooled)
  - Small helpers for Supabase PostgREST and Auth admin calls using service_role
  - Per-request header/timeout overrides (e.g. /auth/v1/user with the user's token)

Notes
  - Auth verification caching lives in ``supabase_auth``.
  - The client is kept open for the process lifetime; ``aclose_async_client``
    is wired to app shutdown.
"""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Any, Dict, Optional

import httpx

logger = logging.getLogger("supabase_client")


# --- Env / config ---
SUPABASE_URL = os.getenv("SUPABASE_URL", "").rstrip("/")
SUPABASE_SERVICE_ROLE_KEY = os.getenv("SUPABASE_SERVICE_ROLE_KEY", "")
# Prefer anon key for /auth/v1/user; fall back to service role.
SUPABASE_ANON_KEY = (os.getenv("SUPABASE_ANON_KEY") or "").strip() or SUPABASE_SERVICE_ROLE_KEY


def ensure_supabase_config() -> None:
    if not SUPABASE_URL or not SUPABASE_SERVICE_ROLE_KEY:
        raise RuntimeError(
            "Supabase configuration missing: SUPABASE_URL or SUPABASE_SERVICE_ROLE_KEY"
        )


# --- Client singleton ---
_client: Optional[httpx.AsyncClient] = None
_client_lock = asyncio.Lock()


def _build_limits() -> httpx.Limits:
    max_conn = int(os.getenv("SUPABASE_HTTP_MAX_CONNECTIONS", "100") or "100")
    max_keepalive = int(
        os.getenv("SUPABASE_HTTP_MAX_KEEPALIVE_CONNECTIONS", "20") or "20"
    )
    return httpx.Limits(
        max_connections=max(1, max_conn),
        max_keepalive_connections=max(1, max_keepalive),
    )


def _build_timeout() -> httpx.Timeout:
    # Default per-request timeout. Individual calls can override.
    t = float(os.getenv("SUPABASE_HTTP_TIMEOUT_SECONDS", "8.0") or "8.0")
    if t <= 0:
        t = 8.0
    return httpx.Timeout(t)


async def get_async_client() -> httpx.AsyncClient:
    """Return a shared AsyncClient (connection pooled)."""

    global _client
    if _client is not None:
        return _client

    async with _client_lock:
        if _client is None:
            _client = httpx.AsyncClient(
                timeout=_build_timeout(),
                limits=_build_limits(),
            )
        return _client


async def aclose_async_client() -> None:
    """Close the shared AsyncClient."""

    global _client
    if _client is None:
        return
    try:
        await _client.aclose()
    finally:
        _client = None


# --- Headers helpers ---


def sb_service_role_headers() -> Dict[str, str]:
    """Headers for Supabase service_role requests (JSON)."""
    ensure_supabase_config()
    return {
        "apikey": SUPABASE_SERVICE_ROLE_KEY,
        "Authorization": f"Bearer {SUPABASE_SERVICE_ROLE_KEY}",
        "Content-Type": "application/json",
    }


def sb_auth_headers(access_token: str) -> Dict[str, str]:
    """Headers for Supabase Auth endpoints that need the user's access token."""
    ensure_supabase_config()
    tok = str(access_token or "").strip()
    return {
        "Authorization": f"Bearer {tok}",
        "apikey": SUPABASE_ANON_KEY,
    }


# --- Core request helpers ---


async def sb_request(
    method: str,
    path: str,
    *,
    params: Any = None,
    json: Any = None,
    prefer: Optional[str] = None,
) -> httpx.Response:
    """Send a service_role request to Supabase (base URL + path).

    - ``path`` should start with ``/`` (e.g. ``/rest/v1/entries``)
    - ``params`` may be a dict or a list of tuples (repeated filters on one column)
    """

    ensure_supabase_config()
    p = str(path or "").strip()
    if not p.startswith("/"):
        p = "/" + p
    url = f"{SUPABASE_URL}{p}"

    h = sb_service_role_headers()
    if prefer:
        h["Prefer"] = prefer

    client = await get_async_client()
    return await client.request(
        method=str(method or "GET").upper(),
        url=url,
        headers=h,
        params=params,
        json=json,
    )


async def sb_get(path: str, *, params: Any = None) -> httpx.Response:
    return await sb_request("GET", path, params=params)


async def sb_post(path: str, *, json: Any, prefer: Optional[str] = None) -> httpx.Response:
    return await sb_request("POST", path, json=json, prefer=prefer)


async def sb_delete(path: str, *, params: Any = None) -> httpx.Response:
    return await sb_request("DELETE", path, params=params)
