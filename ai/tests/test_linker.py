from analysis_engine.linker import (
    build_entry_index,
    dedupe_by,
    dedupe_linked_beliefs,
    link_beliefs,
)
from analysis_engine.models import CandidateBelief, Entry, LinkedBelief, record_key


def test_record_key_precedence():
    assert record_key(Entry(id="5", entry_id="e-5", event_ts=1000)) == "5"
    assert record_key(Entry(id=None, entry_id="e-5", event_ts=1000)) == "e-5"
    assert record_key(Entry(id=None, entry_id=None, event_ts=1000)) == "1000"
    assert record_key(Entry(id=None, entry_id=None, event_ts=None)) is None


def test_entry_index_first_match_wins(make_entry):
    first = make_entry(id="1", thoughts="primero")
    second = make_entry(id="1", thoughts="segundo")
    assert build_entry_index([first, second])["1"] is first


def test_link_known_id_carries_entry_context(make_entry):
    entry = make_entry(
        id="5",
        emotions=[("Triste", 6), ("Ansiosa", 7)],
        what_happened="  Discutí con mi hermano.  ",
        thoughts="Nadie me entiende.",
        reaction="",
        life_areas=["Familia"],
    )
    linked = link_beliefs([CandidateBelief("5", " Nadie me entiende. ", "thoughts")], [entry])
    assert len(linked) == 1
    b = linked[0]
    assert b.creencia == "Nadie me entiende."
    assert b.emociones == ["Triste", "Ansiosa"]
    assert b.areas == ["Familia"]
    assert b.to_dict()["patrones"] == {
        "quePaso": "Discutí con mi hermano.",
        "pensamientos": "Nadie me entiende.",
        "reaccion": None,
    }


def test_link_unknown_id_is_dropped(make_entry):
    entry = make_entry(id="5", thoughts="Nunca lo logro.")
    assert link_beliefs([CandidateBelief("99", "Nunca lo logro.", "thoughts")], [entry]) == []


def test_link_resolves_by_timestamp_when_ids_missing(make_entry):
    entry = make_entry(id=None, event_ts=1700000000000, thoughts="Nunca lo logro.")
    linked = link_beliefs([CandidateBelief("1700000000000", "Nunca lo logro.", "thoughts")], [entry])
    assert len(linked) == 1


def test_link_drops_blank_phrases(make_entry):
    entry = make_entry(id="1")
    assert link_beliefs([CandidateBelief("1", "   ", "thoughts")], [entry]) == []


def _belief(creencia, que_paso=None, pensamientos=None, reaccion=None):
    return LinkedBelief(creencia, "thoughts", [], que_paso, pensamientos, reaccion, [])


def test_dedupe_uses_phrase_and_context_prefix():
    long_a = "a" * 60 + " final distinto uno"
    long_b = "a" * 60 + " final distinto dos"
    beliefs = [
        _belief("Nunca", pensamientos=long_a),
        _belief("Nunca", pensamientos=long_b),  # mismo prefijo de 60: duplicado
        _belief("Nunca", pensamientos="otro contexto"),
        _belief("Siempre", pensamientos=long_a),
    ]
    out = dedupe_linked_beliefs(beliefs)
    assert out == [beliefs[0], beliefs[2], beliefs[3]]


def test_dedupe_is_idempotent():
    beliefs = [_belief("Nunca", "x"), _belief("Nunca", "x"), _belief("Nadie", "y")]
    once = dedupe_linked_beliefs(beliefs)
    assert dedupe_linked_beliefs(once) == once


def test_dedupe_by_keeps_first_and_order():
    assert dedupe_by([3, 1, 3, 2, 1], lambda x: x) == [3, 1, 2]
