from __future__ import annotations
from typing import Callable, Dict, Hashable, Iterable, List, Optional, Sequence, Tuple, TypeVar
from .models import CandidateBelief, Entry, LinkedBelief, record_key

T = TypeVar("T")

DEDUP_PREFIX_LEN = 60


def dedupe_by(items: Iterable[T], key_fn: Callable[[T], Hashable]) -> List[T]:
    seen = set()
    out: List[T] = []
    for item in items:
        k = key_fn(item)
        if k in seen:
            continue
        seen.add(k)
        out.append(item)
    return out


def build_entry_index(entries: Iterable[Entry]) -> Dict[str, Entry]:
    # first match wins
    by_id: Dict[str, Entry] = {}
    for r in entries:
        key = record_key(r)
        if key is None:
            continue
        by_id.setdefault(key, r)
    return by_id


def _trim_or_none(text: Optional[str]) -> Optional[str]:
    t = (text or "").strip()
    return t or None


def link_belief(candidate: CandidateBelief, rec: Entry) -> Optional[LinkedBelief]:
    creencia = str(candidate.creencia or "").strip()
    if not creencia:
        return None
    return LinkedBelief(
        creencia=creencia,
        origen=candidate.origen,
        emociones=[e.name for e in rec.emotions if e.name],
        que_paso=_trim_or_none(rec.what_happened),
        pensamientos=_trim_or_none(rec.thoughts),
        reaccion=_trim_or_none(rec.reaction),
        areas=list(rec.life_areas),
    )


def link_beliefs(candidates: Sequence[CandidateBelief], entries: Sequence[Entry]) -> List[LinkedBelief]:
    """Enlaza cada creencia con su registro de origen.

    Las creencias cuyo id no aparece entre los registros se descartan sin error.
    """
    by_id = build_entry_index(entries)
    linked: List[LinkedBelief] = []
    for c in candidates:
        rec = by_id.get(str(c.record_id))
        if rec is None:
            continue
        lb = link_belief(c, rec)
        if lb is not None:
            linked.append(lb)
    return linked


def belief_dedup_key(b: LinkedBelief, n: int = DEDUP_PREFIX_LEN) -> Tuple[str, str, str, str]:
    return (
        b.creencia,
        (b.que_paso or "")[:n],
        (b.pensamientos or "")[:n],
        (b.reaccion or "")[:n],
    )


def dedupe_linked_beliefs(beliefs: Iterable[LinkedBelief]) -> List[LinkedBelief]:
    return dedupe_by(beliefs, belief_dedup_key)
