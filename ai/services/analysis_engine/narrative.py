from __future__ import annotations
from typing import Dict, List, Sequence, Tuple
import math
from .models import EmotionStat
from .aggregate import top_buckets
from .taxonomy import WEEKDAY_LABELS

NO_DATA_TEXT = "Aún no hay registros para este rango."

INTENSE_AVG_THRESHOLD = 7.0
INTENSE_MIN_COUNT = 2
MAX_INTENSE = 3
MAX_AREAS = 2


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def _join_areas(areas: Sequence[Tuple[str, int]], k: int = MAX_AREAS) -> str:
    return " y ".join(a for a, _ in areas[:k])


def build_resumen(total: int, pleasant_pct: float,
                  top_areas_pos: Sequence[Tuple[str, int]],
                  top_areas_neg: Sequence[Tuple[str, int]]) -> str:
    if total == 0:
        return NO_DATA_TEXT
    partes = [
        f"Has registrado {total} entradas en el periodo.",
        f"Aproximadamente un {_round_half_up(pleasant_pct)}% incluyen emociones agradables.",
    ]
    if top_areas_pos:
        partes.append(f"Tienden a ser agradables cuando aparece: {_join_areas(top_areas_pos)}.")
    if top_areas_neg:
        partes.append(f"Aparecen emociones desafiantes cuando surge: {_join_areas(top_areas_neg)}.")
    return " ".join(partes)


def _evidence(top: Sequence[Tuple[int, int]]) -> str:
    return " / ".join(f"{v} registro(s)" for _, v in top)


def build_patrones(by_hour: Sequence[int], by_dow: Sequence[int]) -> List[Dict[str, str]]:
    """Franja horaria y días con más registros (0-2 patrones)."""
    patrones: List[Dict[str, str]] = []
    top_hours = top_buckets(by_hour, 2)
    top_dows = top_buckets(by_dow, 2)
    if top_hours:
        patrones.append({
            "descripcion": "Franja horaria más registrada: " + " y ".join(f"{h}:00" for h, _ in top_hours),
            "evidencia": _evidence(top_hours),
        })
    if top_dows:
        patrones.append({
            "descripcion": "Días con más registros: " + " y ".join(WEEKDAY_LABELS[d] for d, _ in top_dows),
            "evidencia": _evidence(top_dows),
        })
    return patrones


def build_recomendaciones(emotion_stats: Sequence[EmotionStat],
                          pos_areas: Sequence[Tuple[str, int]],
                          neg_areas: Sequence[Tuple[str, int]]) -> List[str]:
    # Sin señal no hay recomendación
    recs: List[str] = []
    intensas = [e for e in emotion_stats if e.avg >= INTENSE_AVG_THRESHOLD and e.n >= INTENSE_MIN_COUNT][:MAX_INTENSE]
    if intensas:
        recs.append(
            "Observa las emociones más intensas: "
            + ", ".join(f"{e.name} (avg {e.avg:.1f})" for e in intensas) + "."
        )
    if pos_areas:
        recs.append(f"Potencia lo que te sienta bien: {_join_areas(pos_areas)}.")
    if neg_areas:
        recs.append(f"Planifica apoyos para contextos desafiantes: {_join_areas(neg_areas)}.")
    return recs
