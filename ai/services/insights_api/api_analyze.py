# -*- coding: utf-8 -*-
"""
Insights API
------------
- POST /analyze

Rol:
- Verifica el access token de Supabase (401 antes de cualquier cálculo).
- Lee los registros del usuario en el rango (por defecto, últimos 30 días).
- Si la BD no devuelve registros y el cliente envía `records`, analiza esos
  registros locales.
- Devuelve {"insights": {...}}: resumen, disparadores, patrones horarios,
  creencias limitantes enlazadas y recomendaciones.

Notas de diseño:
- Creencias: modelo de texto (si está configurado) con fallback completo a la
  heurística; un fallo del modelo nunca llega al cliente.
- Si la lectura de Supabase falla se responde 502 sin informe parcial.
- Cualquier otro error se registra en el log y se responde 500 genérico.
- No se registra texto del usuario en los logs.
"""

from __future__ import annotations

import logging
import os
import time
from datetime import timedelta, timezone
from typing import Any, List, Optional, Union

from fastapi import Body, FastAPI, Header, HTTPException
from pydantic import BaseModel, Field

from analysis_engine import Emotion, Entry, TimeRange, build_belief_extractor, build_insight_report
from analysis_engine.beliefs import strategy_name
from analysis_engine.models import coerce_epoch_ms
from entries_store import StorageQueryError, fetch_entries
from llm_client import get_llm_client
from observability import elapsed_ms, log_alert, log_event, monotonic_ms, new_run_id
from supabase_auth import require_user

logger = logging.getLogger("analyze_api")


def _env_int(name: str, default: int) -> int:
    v = os.getenv(name)
    if v is None or str(v).strip() == "":
        return int(default)
    try:
        return int(float(str(v).strip()))
    except ValueError:
        return int(default)


DEFAULT_RANGE_DAYS = max(1, _env_int("INSIGHTS_DEFAULT_RANGE_DAYS", 30))
# Hora local usada para los histogramas (minutos respecto a UTC)
TZ_OFFSET_MINUTES = _env_int("INSIGHTS_TZ_OFFSET_MINUTES", 0)
LOCAL_TZ = timezone(timedelta(minutes=TZ_OFFSET_MINUTES))

FAILURE_DETAIL = "No se pudo analizar los datos"
STORAGE_FAILURE_DETAIL = "No se pudieron leer los registros"


# ---------- Pydantic models ----------


class AnalyzeRange(BaseModel):
    from_: Optional[float] = Field(default=None, alias="from", description="Inicio (epoch ms)")
    to: Optional[float] = Field(default=None, description="Fin (epoch ms)")


class InlineRecord(BaseModel):
    """Registro local enviado por la app cuando aún no está en la BD."""

    id: Optional[Union[str, int]] = None
    ts: Optional[Any] = None
    eventTs: Optional[Any] = None
    date: Optional[str] = None
    emotions: Optional[List[Any]] = None
    whatHappened: Optional[str] = None
    thoughts: Optional[str] = None
    reaction: Optional[str] = None
    lifeAreas: Optional[List[Any]] = None


class AnalyzeRequest(BaseModel):
    range: Optional[AnalyzeRange] = Field(default=None, description="Rango [from, to] en epoch ms")
    records: Optional[List[InlineRecord]] = Field(
        default=None,
        description="Registros locales; solo se usan si la BD no devuelve ninguno.",
    )


class TriggerOut(BaseModel):
    trigger: str
    frecuencia: int


class PatternOut(BaseModel):
    descripcion: str
    evidencia: str


class BeliefContextOut(BaseModel):
    quePaso: Optional[str] = None
    pensamientos: Optional[str] = None
    reaccion: Optional[str] = None


class LimitingBeliefOut(BaseModel):
    creencia: str
    origen: str
    emociones: List[str] = []
    patrones: BeliefContextOut
    areas: List[str] = []


class InsightsOut(BaseModel):
    resumen_general: str
    top_disparadores: List[TriggerOut] = []
    patrones: List[PatternOut] = []
    creencias_limitantes: List[LimitingBeliefOut] = []
    automatismos: List[Any] = []
    recomendaciones: List[str] = []


class AnalyzeResponse(BaseModel):
    insights: InsightsOut


# ---------- Helpers ----------


def _now_ms() -> int:
    return int(time.time() * 1000)


def resolve_time_range(rng: Optional[AnalyzeRange], now_ms: int) -> TimeRange:
    default = TimeRange.trailing_days(now_ms, DEFAULT_RANGE_DAYS)
    if rng is None:
        return default
    start = int(rng.from_) if rng.from_ is not None else default.start_ms
    end = int(rng.to) if rng.to is not None else default.end_ms
    return TimeRange(start_ms=start, end_ms=end)


def entries_from_records(records: List[InlineRecord], now_ms: int) -> List[Entry]:
    """Convierte registros locales en Entry; los de timestamp ilegible se descartan."""
    out: List[Entry] = []
    for i, r in enumerate(records):
        if r.ts is not None:
            raw_ts = r.ts
        elif r.eventTs is not None:
            raw_ts = r.eventTs
        elif r.date:
            raw_ts = r.date
        else:
            raw_ts = now_ms
        ts = coerce_epoch_ms(raw_ts, LOCAL_TZ)
        if ts is None:
            continue
        rid = r.id if r.id is not None else (r.ts if r.ts is not None else i)
        out.append(Entry(
            id=str(rid),
            event_ts=ts,
            emotions=tuple(Emotion.from_raw(e) for e in (r.emotions or ())),
            what_happened=r.whatHappened or "",
            thoughts=r.thoughts or "",
            reaction=r.reaction or "",
            life_areas=tuple(str(a) for a in (r.lifeAreas or ()) if a is not None),
        ))
    dropped = len(records) - len(out)
    if dropped:
        logger.info("Dropped %d inline record(s) with unparseable timestamps", dropped)
    return out


async def _run_analysis(user_id: str, req: AnalyzeRequest, run_id: str, started: float) -> AnalyzeResponse:
    now_ms = _now_ms()
    time_range = resolve_time_range(req.range, now_ms)

    # 1) BD
    try:
        entries = await fetch_entries(user_id, time_range.start_ms, time_range.end_ms)
    except StorageQueryError as exc:
        log_alert(logger, "ANALYZE_STORAGE_FAILED", run_id=run_id, error=str(exc))
        raise HTTPException(status_code=502, detail=STORAGE_FAILURE_DETAIL)

    # 2) Registros locales
    source = "store"
    if not entries and req.records:
        entries = entries_from_records(req.records, now_ms)
        source = "inline"

    # 3) Informe
    extractor = build_belief_extractor(get_llm_client())
    report = await build_insight_report(entries, extractor, tz=LOCAL_TZ)

    log_event(
        logger,
        "analyze_complete",
        run_id=run_id,
        source=source,
        entries=len(entries),
        beliefs=len(report.creencias_limitantes),
        belief_strategy=strategy_name(extractor),
        elapsed_ms=elapsed_ms(started),
    )
    return AnalyzeResponse(insights=report.to_dict())


# ---------- Route registration ----------


def register_analyze_routes(app: FastAPI) -> None:
    """Registra POST /analyze en la instancia FastAPI dada."""

    @app.post("/analyze", response_model=AnalyzeResponse)
    async def analyze(
        payload: Optional[AnalyzeRequest] = Body(default=None),
        authorization: Optional[str] = Header(default=None, alias="Authorization"),
    ) -> AnalyzeResponse:
        user = await require_user(authorization)

        run_id = new_run_id("analyze")
        started = monotonic_ms()
        try:
            return await _run_analysis(user.id, payload or AnalyzeRequest(), run_id, started)
        except HTTPException:
            raise
        except Exception:
            logger.exception("Analyze failed: run_id=%s", run_id)
            raise HTTPException(status_code=500, detail=FAILURE_DETAIL)
