# -*- coding: utf-8 -*-
"""entries_store.py

Acceso a la tabla de registros (Supabase PostgREST, service_role).

- Siempre se filtra por user_id=eq.<usuario autenticado>.
- Cualquier respuesta >= 300 se convierte en StorageQueryError; quien llama
  decide el código HTTP (no hay reintentos).

ENV
- ENTRIES_TABLE (default: entries)
- CONSENTS_TABLE (default: consents)
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, List, Tuple

import httpx

from analysis_engine import Entry
from supabase_client import sb_delete, sb_get, sb_post

logger = logging.getLogger("entries_store")

ENTRIES_TABLE = (os.getenv("ENTRIES_TABLE", "entries") or "entries").strip() or "entries"
CONSENTS_TABLE = (os.getenv("CONSENTS_TABLE", "consents") or "consents").strip() or "consents"


class StorageQueryError(RuntimeError):
    """Supabase devolvió un error (o no respondió) para una consulta."""


def _raise_for_status(resp: httpx.Response, what: str) -> None:
    if resp.status_code >= 300:
        logger.error(
            "Supabase %s failed: status=%s body=%s",
            what,
            resp.status_code,
            resp.text[:800],
        )
        raise StorageQueryError(f"{what} failed with status {resp.status_code}")


async def list_entry_rows(user_id: str, from_ts: int, to_ts: int) -> List[Dict[str, Any]]:
    """Filas crudas del usuario en [from_ts, to_ts], más recientes primero."""
    params: List[Tuple[str, str]] = [
        ("select", "*"),
        ("user_id", f"eq.{user_id}"),
        ("event_ts", f"gte.{int(from_ts)}"),
        ("event_ts", f"lte.{int(to_ts)}"),
        ("order", "event_ts.desc"),
    ]
    try:
        resp = await sb_get(f"/rest/v1/{ENTRIES_TABLE}", params=params)
    except httpx.HTTPError as exc:
        raise StorageQueryError(f"entries query transport error: {type(exc).__name__}") from exc
    _raise_for_status(resp, "entries query")

    try:
        rows = resp.json()
    except ValueError as exc:
        raise StorageQueryError("entries query returned non-JSON body") from exc
    return rows if isinstance(rows, list) else []


async def fetch_entries(user_id: str, from_ts: int, to_ts: int) -> List[Entry]:
    rows = await list_entry_rows(user_id, from_ts, to_ts)
    return [Entry.from_row(r) for r in rows if isinstance(r, dict)]


async def insert_entry(user_id: str, values: Dict[str, Any]) -> Dict[str, Any]:
    payload = dict(values)
    payload["user_id"] = user_id
    try:
        resp = await sb_post(
            f"/rest/v1/{ENTRIES_TABLE}",
            json=payload,
            prefer="return=representation",
        )
    except httpx.HTTPError as exc:
        raise StorageQueryError(f"entries insert transport error: {type(exc).__name__}") from exc
    _raise_for_status(resp, "entries insert")

    try:
        data = resp.json()
    except ValueError:
        logger.warning("Supabase insert response is not JSON; returning submitted values")
        return payload
    if isinstance(data, list) and data:
        return data[0]
    if isinstance(data, dict):
        return data
    return payload


async def delete_user_rows(table: str, user_id: str) -> None:
    try:
        resp = await sb_delete(f"/rest/v1/{table}", params={"user_id": f"eq.{user_id}"})
    except httpx.HTTPError as exc:
        raise StorageQueryError(f"{table} delete transport error: {type(exc).__name__}") from exc
    _raise_for_status(resp, f"{table} delete")


async def delete_auth_user(user_id: str) -> None:
    """Borra la cuenta de Supabase Auth (requiere service_role)."""
    try:
        resp = await sb_delete(f"/auth/v1/admin/users/{user_id}")
    except httpx.HTTPError as exc:
        raise StorageQueryError(f"auth user delete transport error: {type(exc).__name__}") from exc
    _raise_for_status(resp, "auth user delete")
