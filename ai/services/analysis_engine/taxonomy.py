"""Taxonomías fijas del motor de análisis.

Se cargan una sola vez al importar el módulo y no se modifican en tiempo de
ejecución (frozenset / tuplas de patrones compilados).
"""

from __future__ import annotations

import re
from typing import Pattern, Tuple

# Familia "alegría": cualquier otra emoción (incluidas las desconocidas) es no agradable
POSITIVE_EMOTIONS = frozenset([
    "Alegre", "Tranquila", "Feliz", "Segura", "Cariñosa", "Apasionada", "Inspirada", "Motivada",
    "Poderosa", "Agradecida", "Aliviada", "Liberada", "Emocionada", "Ilusionada", "Confiada",
    "Aceptada", "Respetada", "Importante", "Satisfecha", "Esperanzada", "Realizada", "Optimista",
    "Valiente", "Orgullosa", "Eufórica", "Sensible", "Curiosa", "Juguetona", "Deseada", "Provocativa",
])

# Lenguaje absolutista / autolimitante
BELIEF_PATTERNS: Tuple[Pattern[str], ...] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"\b(no soy|no puedo|no valgo|no sirvo|no merezco|no me sale)\b",
        r"\b(siempre|nunca|nadie|todos)\b",
        r"\b(no me entienden|me van a rechazar|siempre me critican)\b",
        r"\b(el mundo|la vida|todo es|siempre es|nunca es|la gente es)\b",
    )
)

# 0 = domingo
WEEKDAY_LABELS = ("Dom", "Lun", "Mar", "Mié", "Jue", "Vie", "Sáb")


def is_pleasant(name: str) -> bool:
    return name in POSITIVE_EMOTIONS
