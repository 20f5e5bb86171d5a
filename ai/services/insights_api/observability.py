# -*- coding: utf-8 -*-
"""observability.py

Logs estructurados del servicio de insights
-------------------------------------------

Objetivo
- Poder seguir cada /analyze (cuántos registros, qué estrategia de creencias,
  cuánto tardó) sin exponer texto del usuario ni tokens.
- Los fallos de dependencias externas (Supabase, modelo de texto) dejan una
  línea de alerta fácil de filtrar.

Variables de entorno
- OBS_LOG_JSON=true/false (default true)
- OBS_ALERT_MARKERS_ENABLED=true/false (default true)
- OBS_ALERT_PREFIX (default "ALERT::")
- OBS_ALERT_KV_MAX_LEN (default 200)
"""

from __future__ import annotations

import json
import logging
import os
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional


OBS_LOG_JSON = (os.getenv("OBS_LOG_JSON", "true").strip().lower() != "false")
OBS_ALERT_MARKERS_ENABLED = (os.getenv("OBS_ALERT_MARKERS_ENABLED", "true").strip().lower() != "false")
OBS_ALERT_PREFIX = (os.getenv("OBS_ALERT_PREFIX", "ALERT::") or "ALERT::").strip() or "ALERT::"
try:
    OBS_ALERT_KV_MAX_LEN = int(os.getenv("OBS_ALERT_KV_MAX_LEN", "200") or "200")
except ValueError:
    OBS_ALERT_KV_MAX_LEN = 200


def _iso_now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _safe_default(o: Any) -> str:
    try:
        return str(o)
    except Exception:
        return repr(o)


def _safe_json_dumps(obj: Dict[str, Any]) -> str:
    return json.dumps(obj, ensure_ascii=False, separators=(",", ":"), default=_safe_default)


def log_event(logger: logging.Logger, event: str, *, level: str = "info", **fields: Any) -> None:
    """Write a structured event log.

    - level: info|warning|error|debug
    - event: stable identifier (e.g., analyze_complete)
    """
    payload: Dict[str, Any] = {
        "ts": _iso_now(),
        "event": event,
        **fields,
    }

    msg = _safe_json_dumps(payload) if OBS_LOG_JSON else f"{event} {payload}"
    fn = getattr(logger, level, logger.info)
    fn(msg)


def _compact_kv(fields: Dict[str, Any]) -> str:
    parts = []
    for k, v in (fields or {}).items():
        if v is None:
            continue
        s = _safe_default(v).replace("\n", " ").replace("\r", " ").strip()
        if OBS_ALERT_KV_MAX_LEN > 0 and len(s) > OBS_ALERT_KV_MAX_LEN:
            s = s[: max(0, OBS_ALERT_KV_MAX_LEN - 3)] + "..."
        parts.append(f"{k}={s}")
    return " ".join(parts)


def log_alert(
    logger: logging.Logger,
    alert_key: str,
    *,
    level: str = "warning",
    message: Optional[str] = None,
    event: str = "alert",
    **fields: Any,
) -> None:
    """Emit an alert-friendly log.

    - JSON: event="alert", alert_key=...
    - Plain marker line: 'ALERT::KEY k=v ...' (optional)
    """
    safe_fields: Dict[str, Any] = dict(fields or {})
    safe_fields["alert_key"] = alert_key
    if message:
        safe_fields["message"] = message

    log_event(logger, event, level=level, **safe_fields)

    if OBS_ALERT_MARKERS_ENABLED:
        kv = _compact_kv({k: v for k, v in safe_fields.items() if k not in ("message", "alert_key")})
        line = f"{OBS_ALERT_PREFIX}{alert_key}"
        if kv:
            line = f"{line} {kv}"
        getattr(logger, level, logger.warning)(line)


# ----------------------------
# Run context helpers
# ----------------------------

def new_run_id(prefix: str = "run") -> str:
    """Short run id for correlation."""
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


def monotonic_ms() -> float:
    return time.monotonic() * 1000.0


def elapsed_ms(start_ms: float) -> int:
    return int(max(0.0, monotonic_ms() - float(start_ms)))
