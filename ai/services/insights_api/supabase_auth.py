# -*- coding: utf-8 -*-
"""supabase_auth.py

Verificación del access token de Supabase Auth (una vez por request).

Flujo
- Authorization: Bearer <access_token>
- GET /auth/v1/user con el token del usuario -> {id, email}
- Sin token -> 401 "No token"; token inválido/expirado -> 401 "Invalid token"

Caché
- key = sha256(access_token) (el token no se guarda en memoria)
- TTL distinto para aciertos y rechazos; LRU con tamaño máximo
- Solo dentro del proceso (no se comparte entre workers)

ENV
- AUTH_CACHE_TTL_SECONDS (default: 60)
- AUTH_NEGATIVE_TTL_SECONDS (default: 10)
- AUTH_CACHE_MAX_SIZE (default: 2048)
- AUTH_TIMEOUT_SECONDS (default: 5.0)
"""

from __future__ import annotations

import hashlib
import logging
import os
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Optional, Tuple

from fastapi import HTTPException

from supabase_client import SUPABASE_URL, get_async_client, sb_auth_headers

logger = logging.getLogger("supabase_auth")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(str(raw).strip())
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(str(raw).strip())
    except ValueError:
        return default


_CACHE_TTL = max(0, _env_int("AUTH_CACHE_TTL_SECONDS", 60))
_NEG_TTL = max(0, _env_int("AUTH_NEGATIVE_TTL_SECONDS", 10))
_MAX_SIZE = max(64, _env_int("AUTH_CACHE_MAX_SIZE", 2048))
_TIMEOUT = max(0.5, _env_float("AUTH_TIMEOUT_SECONDS", 5.0))


@dataclass(frozen=True)
class AuthUser:
    id: str
    email: Optional[str] = None


# LRU cache: key -> (user_or_none, expires_at)
_LOCK = threading.Lock()
_CACHE: "OrderedDict[str, Tuple[Optional[AuthUser], float]]" = OrderedDict()

# Distinguishes a miss from a cached rejection (None)
_MISS = object()


def _digest_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def _cache_get(key: str, now_ts: float):
    with _LOCK:
        ent = _CACHE.get(key)
        if ent is None:
            return _MISS
        user, expires_at = ent
        if expires_at <= now_ts:
            del _CACHE[key]
            return _MISS
        _CACHE.move_to_end(key)
        return user


def _cache_set(key: str, user: Optional[AuthUser], expires_at: float) -> None:
    with _LOCK:
        _CACHE[key] = (user, expires_at)
        _CACHE.move_to_end(key)
        while len(_CACHE) > _MAX_SIZE:
            _CACHE.popitem(last=False)


def clear_auth_cache() -> None:
    with _LOCK:
        _CACHE.clear()


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Extrae el token de una cabecera 'Bearer <token>'."""
    if not authorization:
        return None
    parts = authorization.split()
    if len(parts) == 2 and parts[0].lower() == "bearer" and parts[1]:
        return parts[1]
    return None


async def _verify_with_supabase(access_token: str) -> Optional[AuthUser]:
    client = await get_async_client()
    resp = await client.get(
        f"{SUPABASE_URL}/auth/v1/user",
        headers=sb_auth_headers(access_token),
        timeout=_TIMEOUT,
    )

    if resp.status_code != 200:
        logger.warning("Supabase /auth/v1/user rejected token: status=%s", resp.status_code)
        return None

    try:
        data = resp.json()
    except ValueError:
        logger.error("Supabase /auth/v1/user returned non-JSON body")
        return None

    uid = data.get("id") if isinstance(data, dict) else None
    if not uid:
        logger.error("Supabase /auth/v1/user returned no id field")
        return None
    return AuthUser(id=str(uid), email=data.get("email"))


async def resolve_user_from_token(access_token: str) -> Optional[AuthUser]:
    """Resolve the user behind a Supabase access token (verified + cached)."""
    tok = str(access_token or "").strip()
    if not tok:
        return None

    now_ts = time.time()
    key = _digest_token(tok)

    cached = _cache_get(key, now_ts)
    if cached is not _MISS:
        return cached

    user = await _verify_with_supabase(tok)

    ttl = _CACHE_TTL if user else _NEG_TTL
    _cache_set(key, user, now_ts + float(ttl))
    return user


async def require_user(authorization: Optional[str]) -> AuthUser:
    """Resolve the caller or raise 401 before any other work happens."""
    access_token = extract_bearer_token(authorization)
    if not access_token:
        raise HTTPException(status_code=401, detail="No token")
    try:
        user = await resolve_user_from_token(access_token)
    except Exception as exc:
        logger.error("Failed to verify access token: %s", type(exc).__name__)
        raise HTTPException(status_code=401, detail="Invalid token")
    if user is None:
        raise HTTPException(status_code=401, detail="Invalid token")
    return user
