from datetime import timedelta, timezone

from analysis_engine.aggregate import (
    area_counts,
    count_labels,
    emotion_intensity_stats,
    pleasant_count,
    split_areas_by_valence,
    time_buckets,
    top_buckets,
)

from conftest import MON_2100_MS, SUN_0830_MS


def test_count_labels_sorted_desc_with_stable_ties():
    labels = ["Trabajo", "Familia", "Ocio", "Familia", "Ocio", "Salud"]
    counts = count_labels(labels)
    assert counts == [("Familia", 2), ("Ocio", 2), ("Trabajo", 1), ("Salud", 1)]
    assert sum(n for _, n in counts) == len(labels)


def test_count_labels_empty():
    assert count_labels([]) == []


def test_scenario_counts(scenario_entries):
    assert len(scenario_entries) == 3
    assert pleasant_count(scenario_entries) == 1
    pos, neg = split_areas_by_valence(scenario_entries)
    assert pos == [("Ocio", 1)]
    assert neg == [("Trabajo", 1)]
    assert area_counts(scenario_entries) == [("Ocio", 1), ("Trabajo", 1)]


def test_mixed_entry_contributes_to_both_sides(make_entry):
    entries = [make_entry(emotions=[("Feliz", 7), ("Ansiosa", 5)], life_areas=["Pareja"])]
    pos, neg = split_areas_by_valence(entries)
    assert pos == [("Pareja", 1)]
    assert neg == [("Pareja", 1)]


def test_unknown_emotion_is_not_pleasant(make_entry):
    entries = [make_entry(emotions=[("Nostálgica", 5)], life_areas=["Familia"])]
    assert pleasant_count(entries) == 0
    assert split_areas_by_valence(entries) == ([], [("Familia", 1)])


def test_emotion_stats_single_occurrence_equals_intensity(make_entry):
    stats = emotion_intensity_stats([make_entry(emotions=[("Triste", 6)])])
    assert len(stats) == 1
    assert stats[0].name == "Triste"
    assert stats[0].avg == 6
    assert stats[0].n == 1


def test_emotion_stats_sorted_by_mean(make_entry):
    entries = [
        make_entry(id="1", emotions=[("Triste", 4), ("Enojada", 9)]),
        make_entry(id="2", emotions=[("Triste", 6), ("Enojada", 7)]),
    ]
    stats = emotion_intensity_stats(entries)
    assert [(s.name, s.avg, s.n) for s in stats] == [("Enojada", 8.0, 2), ("Triste", 5.0, 2)]


def test_time_buckets_hour_and_weekday():
    by_hour, by_dow = time_buckets([SUN_0830_MS, SUN_0830_MS, MON_2100_MS])
    assert len(by_hour) == 24 and len(by_dow) == 7
    assert by_hour[8] == 2
    assert by_hour[21] == 1
    assert by_dow[0] == 2  # domingo
    assert by_dow[1] == 1  # lunes


def test_time_buckets_uses_given_timezone():
    minus_three = timezone(timedelta(hours=-3))
    by_hour, by_dow = time_buckets([SUN_0830_MS], minus_three)
    assert by_hour[5] == 1
    assert by_dow[0] == 1


def test_time_buckets_skip_invalid_timestamps():
    by_hour, by_dow = time_buckets([None, 10 ** 20, SUN_0830_MS])
    assert sum(by_hour) == 1
    assert sum(by_dow) == 1


def test_top_buckets_excludes_zero_and_limits():
    assert top_buckets([0, 3, 0, 5, 3]) == [(3, 5), (1, 3)]
    assert top_buckets([0] * 24) == []
