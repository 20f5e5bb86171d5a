import pytest

from analysis_engine import Emotion, Entry

# 2024-01-07 (domingo) 08:30 UTC y 2024-01-08 (lunes) 21:00 UTC
SUN_0830_MS = 1704616200000
MON_2100_MS = 1704747600000


def _make_entry(id="1", event_ts=SUN_0830_MS, emotions=(), what_happened=None,
                thoughts=None, reaction=None, life_areas=(), entry_id=None):
    return Entry(
        id=id,
        entry_id=entry_id,
        event_ts=event_ts,
        emotions=tuple(Emotion(name=n, intensity=i) for n, i in emotions),
        what_happened=what_happened,
        thoughts=thoughts,
        reaction=reaction,
        life_areas=tuple(life_areas),
    )


@pytest.fixture
def make_entry():
    return _make_entry


@pytest.fixture
def scenario_entries():
    return [
        _make_entry(id="1", event_ts=SUN_0830_MS, emotions=[("Alegre", 8)], life_areas=["Ocio"]),
        _make_entry(id="2", event_ts=MON_2100_MS, emotions=[("Triste", 6)], life_areas=["Trabajo"]),
        _make_entry(id="3", event_ts=SUN_0830_MS, emotions=[("Cansada", 4)]),
    ]
