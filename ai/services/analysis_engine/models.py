from __future__ import annotations
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone, tzinfo
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple
import math

ORIGINS = ("what_happened", "thoughts", "reaction")

# Orden de precedencia para identificar un registro (id primario, id secundario, timestamp)
RECORD_KEY_FIELDS = ("id", "entry_id", "event_ts")


def coerce_epoch_ms(value: Any, tz: tzinfo = timezone.utc) -> Optional[int]:
    """Normaliza un timestamp (ms epoch numérico, string numérico o ISO-8601) a int.

    Una fecha sola ("2024-01-07") se toma en UTC; una fecha-hora sin offset se
    interpreta en `tz`. Devuelve None si no se puede interpretar.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            return None
        return int(value)
    s = str(value).strip()
    if not s:
        return None
    try:
        return int(float(s))
    except (ValueError, OverflowError):
        pass
    try:
        if s.endswith("Z"):
            s = s[:-1] + "+00:00"
        dt = datetime.fromisoformat(s)
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc if len(s) == 10 else tz)
        return int(dt.timestamp() * 1000)
    except (ValueError, OverflowError, OSError):
        return None


def _clean_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


@dataclass(frozen=True)
class Emotion:
    name: str
    intensity: float = 0.0  # 1..10
    body: Optional[str] = None

    @classmethod
    def from_raw(cls, raw: Any) -> "Emotion":
        if isinstance(raw, Mapping):
            try:
                intensity = float(raw.get("intensity") or 0)
            except (TypeError, ValueError):
                intensity = 0.0
            body = raw.get("body")
            return cls(
                name=str(raw.get("name") or ""),
                intensity=intensity,
                body=str(body) if body is not None else None,
            )
        return cls(name=str(raw or ""))


@dataclass(frozen=True)
class Entry:
    id: Optional[str]
    event_ts: Optional[int]  # epoch ms
    emotions: Tuple[Emotion, ...] = ()
    what_happened: Optional[str] = None
    thoughts: Optional[str] = None
    reaction: Optional[str] = None
    life_areas: Tuple[str, ...] = ()
    entry_id: Optional[str] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Entry":
        """Construye un Entry desde una fila de la tabla `entries`."""
        raw_id = row.get("id")
        raw_entry_id = row.get("entry_id")
        return cls(
            id=str(raw_id) if raw_id is not None else None,
            entry_id=str(raw_entry_id) if raw_entry_id is not None else None,
            event_ts=coerce_epoch_ms(row.get("event_ts")),
            emotions=tuple(Emotion.from_raw(e) for e in (row.get("emotions") or [])),
            what_happened=_clean_text(row.get("what_happened")),
            thoughts=_clean_text(row.get("thoughts")),
            reaction=_clean_text(row.get("reaction")),
            life_areas=tuple(str(a) for a in (row.get("life_areas") or [])),
        )

    def text_fields(self) -> List[Tuple[str, str]]:
        return [
            ("what_happened", self.what_happened or ""),
            ("thoughts", self.thoughts or ""),
            ("reaction", self.reaction or ""),
        ]


def record_key(entry: Entry, fields: Sequence[str] = RECORD_KEY_FIELDS) -> Optional[str]:
    """Primera clave presente según `fields`, como string."""
    for name in fields:
        value = getattr(entry, name, None)
        if value is None:
            continue
        return str(value)
    return None


@dataclass(frozen=True)
class TimeRange:
    start_ms: int
    end_ms: int

    @classmethod
    def trailing_days(cls, now_ms: int, days: int = 30) -> "TimeRange":
        return cls(start_ms=now_ms - days * 24 * 3600 * 1000, end_ms=now_ms)


@dataclass(frozen=True)
class CandidateBelief:
    record_id: str
    creencia: str
    origen: str


@dataclass
class LinkedBelief:
    creencia: str
    origen: str
    emociones: List[str]
    que_paso: Optional[str]
    pensamientos: Optional[str]
    reaccion: Optional[str]
    areas: List[str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "creencia": self.creencia,
            "origen": self.origen,
            "emociones": list(self.emociones),
            "patrones": {
                "quePaso": self.que_paso,
                "pensamientos": self.pensamientos,
                "reaccion": self.reaccion,
            },
            "areas": list(self.areas),
        }


@dataclass
class EmotionStat:
    name: str
    avg: float
    n: int


@dataclass
class InsightReport:
    resumen_general: str
    top_disparadores: List[Dict[str, Any]] = field(default_factory=list)
    patrones: List[Dict[str, str]] = field(default_factory=list)
    creencias_limitantes: List[LinkedBelief] = field(default_factory=list)
    automatismos: List[Any] = field(default_factory=list)
    recomendaciones: List[str] = field(default_factory=list)

    def to_dict(self):
        d = asdict(self)
        d["creencias_limitantes"] = [b.to_dict() for b in self.creencias_limitantes]
        return d
