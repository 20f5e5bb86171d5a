from __future__ import annotations
from typing import Optional, Sequence
from datetime import timezone, tzinfo
from .models import Entry, InsightReport
from .aggregate import (
    area_counts,
    emotion_intensity_stats,
    pleasant_pct,
    split_areas_by_valence,
    time_buckets,
)
from .narrative import build_patrones, build_recomendaciones, build_resumen
from .beliefs import BeliefExtractor, HeuristicBeliefExtractor
from .linker import dedupe_linked_beliefs, link_beliefs

TOP_TRIGGERS = 3


async def build_insight_report(entries: Sequence[Entry],
                               extractor: Optional[BeliefExtractor] = None,
                               tz: tzinfo = timezone.utc) -> InsightReport:
    """Informe de un usuario para un rango: cuantitativo + creencias enlazadas."""
    entries = list(entries)
    total = len(entries)

    pos_areas, neg_areas = split_areas_by_valence(entries)
    stats = emotion_intensity_stats(entries)
    by_hour, by_dow = time_buckets((r.event_ts for r in entries), tz)

    extractor = extractor or HeuristicBeliefExtractor()
    candidates = await extractor.extract(entries)
    creencias = dedupe_linked_beliefs(link_beliefs(candidates, entries))

    return InsightReport(
        resumen_general=build_resumen(total, pleasant_pct(entries), pos_areas, neg_areas),
        top_disparadores=[
            {"trigger": area, "frecuencia": n} for area, n in area_counts(entries)[:TOP_TRIGGERS]
        ],
        patrones=build_patrones(by_hour, by_dow),
        creencias_limitantes=creencias,
        automatismos=[],
        recomendaciones=build_recomendaciones(stats, pos_areas, neg_areas),
    )
