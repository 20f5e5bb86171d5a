# -*- coding: utf-8 -*-
"""
Entries API
-----------
- GET  /entries?from=<ms>&to=<ms> : registros del usuario (más recientes primero)
- POST /entries                   : guarda un registro

Validación (POST):
- eventTs: entero >= 0 (epoch ms)
- emotions: al menos una; intensity 1..10; body opcional
- whatHappened / thoughts / reaction: opcionales (se guardan como null)
- lifeAreas: lista de strings (default [])
"""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Header, HTTPException, Query
from pydantic import BaseModel, Field

from entries_store import StorageQueryError, insert_entry, list_entry_rows
from supabase_auth import require_user

logger = logging.getLogger("entries_api")


class EmotionIn(BaseModel):
    name: str = Field(..., description="Nombre de la emoción (p. ej. 'Alegre')")
    intensity: float = Field(..., ge=1, le=10, description="Intensidad 1..10")
    body: Optional[str] = Field(default=None, description="Zona del cuerpo (opcional)")


class EntryBody(BaseModel):
    eventTs: int = Field(..., ge=0, description="Momento del registro (epoch ms)")
    emotions: List[EmotionIn] = Field(..., min_length=1)
    whatHappened: Optional[str] = None
    thoughts: Optional[str] = None
    reaction: Optional[str] = None
    lifeAreas: List[str] = Field(default_factory=list)


def entry_row_values(body: EntryBody) -> Dict[str, Any]:
    return {
        "event_ts": body.eventTs,
        "emotions": [e.model_dump(exclude_none=True) for e in body.emotions],
        "what_happened": body.whatHappened,
        "thoughts": body.thoughts,
        "reaction": body.reaction,
        "life_areas": list(body.lifeAreas or []),
    }


def register_entries_routes(app: FastAPI) -> None:
    """Registra GET/POST /entries."""

    @app.get("/entries")
    async def entries_list(
        from_: Optional[int] = Query(default=None, alias="from"),
        to: Optional[int] = Query(default=None),
        authorization: Optional[str] = Header(default=None, alias="Authorization"),
    ) -> List[Dict[str, Any]]:
        user = await require_user(authorization)
        start = from_ if from_ is not None else 0
        end = to if to is not None else int(time.time() * 1000)
        try:
            return await list_entry_rows(user.id, start, end)
        except StorageQueryError:
            raise HTTPException(status_code=502, detail="Failed to load entries")

    @app.post("/entries", status_code=201)
    async def entries_create(
        body: EntryBody,
        authorization: Optional[str] = Header(default=None, alias="Authorization"),
    ) -> Dict[str, Any]:
        user = await require_user(authorization)
        try:
            return await insert_entry(user.id, entry_row_values(body))
        except StorageQueryError:
            raise HTTPException(status_code=502, detail="Failed to save entry")
