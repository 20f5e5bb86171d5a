from __future__ import annotations
from typing import Dict, Hashable, Iterable, List, Optional, Sequence, Tuple
from datetime import datetime, timezone, tzinfo
import collections
from .models import Entry, EmotionStat
from .taxonomy import is_pleasant


def count_labels(labels: Iterable[Hashable]) -> List[Tuple[Hashable, int]]:
    # Counter keeps first-seen order and sorted() is stable, so ties stay in that order
    counts = collections.Counter(labels)
    return sorted(counts.items(), key=lambda kv: kv[1], reverse=True)


def has_pleasant(entry: Entry) -> bool:
    return any(is_pleasant(e.name) for e in entry.emotions)


def has_unpleasant(entry: Entry) -> bool:
    return any(not is_pleasant(e.name) for e in entry.emotions)


def pleasant_count(entries: Sequence[Entry]) -> int:
    return sum(1 for r in entries if has_pleasant(r))


def pleasant_pct(entries: Sequence[Entry]) -> float:
    return pleasant_count(entries) / max(1, len(entries)) * 100.0


def area_counts(entries: Sequence[Entry]) -> List[Tuple[str, int]]:
    return count_labels(a for r in entries for a in r.life_areas)


def split_areas_by_valence(entries: Sequence[Entry]) -> Tuple[List[Tuple[str, int]], List[Tuple[str, int]]]:
    """Áreas de registros con alguna emoción agradable vs. alguna no agradable.

    Un registro con emociones mixtas aporta a ambas listas.
    """
    pos = count_labels(a for r in entries if has_pleasant(r) for a in r.life_areas)
    neg = count_labels(a for r in entries if has_unpleasant(r) for a in r.life_areas)
    return pos, neg


def emotion_intensity_stats(entries: Sequence[Entry]) -> List[EmotionStat]:
    agg: Dict[str, List[float]] = {}
    for r in entries:
        for e in r.emotions:
            cur = agg.setdefault(e.name, [0.0, 0])
            cur[0] += e.intensity
            cur[1] += 1
    stats = [EmotionStat(name=name, avg=(s / n if n else 0.0), n=int(n)) for name, (s, n) in agg.items()]
    stats.sort(key=lambda st: st.avg, reverse=True)
    return stats


def _local_dt(ts_ms: Optional[int], tz: tzinfo) -> Optional[datetime]:
    if ts_ms is None:
        return None
    try:
        return datetime.fromtimestamp(ts_ms / 1000.0, tz=tz)
    except (OverflowError, OSError, ValueError):
        return None


def time_buckets(timestamps: Iterable[Optional[int]], tz: tzinfo = timezone.utc) -> Tuple[List[int], List[int]]:
    """Histogramas por hora (24) y día de la semana (7, 0=domingo).

    Los timestamps inválidos se omiten.
    """
    by_hour = [0] * 24
    by_dow = [0] * 7
    for ts in timestamps:
        d = _local_dt(ts, tz)
        if d is None:
            continue
        by_hour[d.hour] += 1
        by_dow[(d.weekday() + 1) % 7] += 1
    return by_hour, by_dow


def top_buckets(buckets: Sequence[int], n: int = 2) -> List[Tuple[int, int]]:
    ranked = [(i, v) for i, v in enumerate(buckets) if v > 0]
    ranked.sort(key=lambda kv: kv[1], reverse=True)
    return ranked[:n]
