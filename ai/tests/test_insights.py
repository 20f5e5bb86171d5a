import asyncio

from analysis_engine import build_belief_extractor, build_insight_report
from analysis_engine.narrative import NO_DATA_TEXT


class FailingClient:
    async def complete(self, system_prompt, user_prompt):
        raise TimeoutError("model timed out")


def test_report_scenario(scenario_entries):
    report = asyncio.run(build_insight_report(scenario_entries))
    d = report.to_dict()
    assert "3 entradas" in d["resumen_general"]
    assert "33%" in d["resumen_general"]
    assert d["top_disparadores"] == [
        {"trigger": "Ocio", "frecuencia": 1},
        {"trigger": "Trabajo", "frecuencia": 1},
    ]
    assert [p["descripcion"] for p in d["patrones"]] == [
        "Franja horaria más registrada: 8:00 y 21:00",
        "Días con más registros: Dom y Lun",
    ]
    assert d["automatismos"] == []
    assert d["creencias_limitantes"] == []
    assert d["recomendaciones"] == [
        "Potencia lo que te sienta bien: Ocio.",
        "Planifica apoyos para contextos desafiantes: Trabajo.",
    ]


def test_report_empty_range():
    d = asyncio.run(build_insight_report([])).to_dict()
    assert d == {
        "resumen_general": NO_DATA_TEXT,
        "top_disparadores": [],
        "patrones": [],
        "creencias_limitantes": [],
        "automatismos": [],
        "recomendaciones": [],
    }


def test_report_links_and_dedups_beliefs(make_entry):
    entries = [
        make_entry(id="1", emotions=[("Triste", 8)], thoughts="Nunca voy a mejorar en esto.",
                   life_areas=["Trabajo"]),
        # mismo texto en otro registro: misma ocurrencia
        make_entry(id="2", emotions=[("Triste", 8)], thoughts="Nunca voy a mejorar en esto.",
                   life_areas=["Trabajo"]),
    ]
    d = asyncio.run(build_insight_report(entries)).to_dict()
    assert d["creencias_limitantes"] == [{
        "creencia": "Nunca voy a mejorar en esto.",
        "origen": "thoughts",
        "emociones": ["Triste"],
        "patrones": {"quePaso": None, "pensamientos": "Nunca voy a mejorar en esto.", "reaccion": None},
        "areas": ["Trabajo"],
    }]
    assert d["recomendaciones"][0] == "Observa las emociones más intensas: Triste (avg 8.0)."


def test_report_survives_model_failure(make_entry):
    entries = [make_entry(id="1", reaction="No me entienden.")]
    extractor = build_belief_extractor(FailingClient())
    d = asyncio.run(build_insight_report(entries, extractor)).to_dict()
    assert [b["creencia"] for b in d["creencias_limitantes"]] == ["No me entienden."]
    assert extractor.strategy_used == "heuristic"


def test_report_does_not_mutate_entries(scenario_entries):
    snapshot = list(scenario_entries)
    asyncio.run(build_insight_report(scenario_entries))
    assert scenario_entries == snapshot
