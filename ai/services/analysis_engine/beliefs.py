# -*- coding: utf-8 -*-
"""
beliefs.py

Detección de creencias limitantes por registro.

Estrategias (mismo contrato: registros -> List[CandidateBelief]):
- HeuristicBeliefExtractor: patrones regex sobre frases; determinista y siempre disponible.
- ModelBeliefExtractor: una sola llamada batch a un modelo de texto (temperature 0, JSON).
- FallbackBeliefExtractor: intenta la estrategia principal y, ante cualquier fallo,
  repite el lote completo con la heurística (nunca mezcla resultados).

El cliente de texto se inyecta: cualquier objeto con
    async def complete(system_prompt: str, user_prompt: str) -> str
"""

from __future__ import annotations

import abc
import json
import logging
import re
from typing import Any, Dict, Iterable, List, Optional, Sequence

from .models import ORIGINS, CandidateBelief, Entry, record_key
from .taxonomy import BELIEF_PATTERNS

logger = logging.getLogger("analysis_engine.beliefs")

MAX_SPANS_PER_FIELD = 10
MODEL_FIELD_CHAR_LIMIT = 800

_SENTENCE_SPLIT = re.compile(r"(?<=[.!?])\s+|\n+")


class ExtractionError(RuntimeError):
    """La estrategia basada en modelo no pudo producir candidatos."""


def extract_sentences(text: Optional[str]) -> List[str]:
    return [s.strip() for s in _SENTENCE_SPLIT.split(text or "") if s and s.strip()]


def is_belief_like(sentence: str) -> bool:
    return any(rx.search(sentence) for rx in BELIEF_PATTERNS)


class BeliefExtractor(abc.ABC):
    name = "base"

    @abc.abstractmethod
    async def extract(self, entries: Sequence[Entry]) -> List[CandidateBelief]:
        raise NotImplementedError


# ---------- Heurística ----------


class HeuristicBeliefExtractor(BeliefExtractor):
    name = "heuristic"

    def extract_for_record(self, entry: Entry) -> List[CandidateBelief]:
        rid = record_key(entry)
        if rid is None:
            return []
        out: List[CandidateBelief] = []
        seen = set()
        for origen, texto in entry.text_fields():
            for frase in extract_sentences(texto)[:MAX_SPANS_PER_FIELD]:
                if not is_belief_like(frase):
                    continue
                key = (frase, origen)
                if key in seen:
                    continue
                seen.add(key)
                out.append(CandidateBelief(record_id=rid, creencia=frase, origen=origen))
        return out

    def extract_all(self, entries: Iterable[Entry]) -> List[CandidateBelief]:
        found: List[CandidateBelief] = []
        for r in entries:
            found.extend(self.extract_for_record(r))
        return found

    async def extract(self, entries: Sequence[Entry]) -> List[CandidateBelief]:
        return self.extract_all(entries)


# ---------- Modelo (batch) ----------

SYSTEM_PROMPT = """Eres un analista que detecta creencias limitantes en textos personales en español.
Señala SOLO frases que aparezcan literalmente (o casi literalmente) en los textos del usuario.
Para cada registro (id) revisa what_happened, thoughts y reaction y extrae las posibles creencias limitantes.
No inventes ni parafrasees."""

USER_PROMPT_TEMPLATE = """Devuelve un objeto JSON con la forma {{"results": [...]}}, donde cada elemento es:
{{ "id": "<id del registro>", "creencia": "<frase literal>", "origen": "what_happened|thoughts|reaction" }}

Textos por registro:
{payload}"""


def build_batch_payload(entries: Sequence[Entry], limit: int = MODEL_FIELD_CHAR_LIMIT) -> List[Dict[str, str]]:
    payload = []
    for i, r in enumerate(entries):
        rid = record_key(r)
        payload.append({
            "id": rid if rid is not None else str(i),
            "what_happened": (r.what_happened or "")[:limit],
            "thoughts": (r.thoughts or "")[:limit],
            "reaction": (r.reaction or "")[:limit],
        })
    return payload


def parse_model_response(content: str) -> List[CandidateBelief]:
    """Acepta tanto `[...]` como `{"results": [...]}`; descarta elementos incompletos
    o con un `origen` que no sea uno de los tres campos de texto.

    Raises:
        ExtractionError: si el contenido no es JSON o no contiene una lista.
    """
    try:
        parsed = json.loads(content or "{}")
    except (TypeError, ValueError) as exc:
        raise ExtractionError(f"unparseable model response: {exc}") from exc

    if isinstance(parsed, dict):
        items = parsed.get("results", [])
    else:
        items = parsed
    if not isinstance(items, list):
        raise ExtractionError("model response does not contain a result list")

    out: List[CandidateBelief] = []
    for x in items:
        if not isinstance(x, dict):
            continue
        rid, creencia, origen = x.get("id"), x.get("creencia"), x.get("origen")
        if not (rid and creencia and origen):
            continue
        if origen not in ORIGINS:
            continue
        out.append(CandidateBelief(record_id=str(rid), creencia=str(creencia), origen=str(origen)))
    return out


class ModelBeliefExtractor(BeliefExtractor):
    name = "model"

    def __init__(self, client: Any) -> None:
        self.client = client

    async def extract(self, entries: Sequence[Entry]) -> List[CandidateBelief]:
        if not entries:
            return []
        payload = build_batch_payload(entries)
        user_prompt = USER_PROMPT_TEMPLATE.format(payload=json.dumps(payload, ensure_ascii=False, indent=2))
        try:
            content = await self.client.complete(SYSTEM_PROMPT, user_prompt)
        except Exception as exc:
            raise ExtractionError(f"text generation call failed: {type(exc).__name__}") from exc
        return parse_model_response(content)


# ---------- Composición con fallback ----------


class FallbackBeliefExtractor(BeliefExtractor):
    name = "fallback"

    def __init__(self, primary: BeliefExtractor, fallback: Optional[HeuristicBeliefExtractor] = None) -> None:
        self.primary = primary
        self.fallback = fallback or HeuristicBeliefExtractor()
        self.strategy_used: Optional[str] = None

    async def extract(self, entries: Sequence[Entry]) -> List[CandidateBelief]:
        try:
            found = await self.primary.extract(entries)
            self.strategy_used = self.primary.name
            return found
        except Exception as exc:
            logger.warning(
                "Belief detection via %s failed, falling back to heuristic: %s",
                self.primary.name,
                exc,
            )
        self.strategy_used = self.fallback.name
        return await self.fallback.extract(entries)


def build_belief_extractor(client: Any = None) -> BeliefExtractor:
    """Modelo + fallback si hay cliente configurado; heurística en otro caso."""
    if client is None:
        return HeuristicBeliefExtractor()
    return FallbackBeliefExtractor(ModelBeliefExtractor(client), HeuristicBeliefExtractor())


def strategy_name(extractor: BeliefExtractor) -> str:
    used = getattr(extractor, "strategy_used", None)
    return used or extractor.name
