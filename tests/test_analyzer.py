from __future__ import annotations

import pytest

from f1_dashboard.analyzer import AggregationEngine, METRICS, entity_color, parse_era
from f1_dashboard.data_loader import F1DataLoader
from f1_dashboard.models import (
    Circuit, Race, RaceResult, DriverStanding, Driver, InvalidParameter
)
from f1_dashboard.store import DashboardContext, RecordStore


def _result(result_id, race_id, driver_id, position, points, grid=5, constructor_id=1):
    return RaceResult(
        result_id=result_id, race_id=race_id, driver_id=driver_id,
        constructor_id=constructor_id, grid=grid, position=position,
        position_order=position or 20, points=points, laps=50
    )


def _engine(**tables) -> AggregationEngine:
    return AggregationEngine(DashboardContext(RecordStore(**tables)))


def test_seasons_available_descending(engine) -> None:
    assert engine.seasons_available() == [2023, 2022, 1995]


def test_races_for_season_sorted_by_round(engine) -> None:
    races = engine.races_for_season(2023)

    assert [r.round for r in races] == [1, 2]
    assert [r.race_id for r in races] == [1, 2]
    assert engine.races_for_season(2030) == []


def test_races_for_season_rejects_non_integer_year(engine) -> None:
    with pytest.raises(InvalidParameter):
        engine.races_for_season("2023")


def test_driver_standings_use_last_race_of_season(engine) -> None:
    standings = engine.driver_standings(2023)

    assert [(s.entity_id, s.position, s.points) for s in standings] == [(20, 1, 44.0), (10, 2, 43.0)]
    assert standings[0].name == "Lewis Hamilton"
    assert standings[0].points == max(s.points for s in standings)
    assert all(s.race_id == 2 for s in standings)


def test_constructor_standings(engine) -> None:
    standings = engine.constructor_standings(2023)

    assert [s.name for s in standings] == ["Mercedes", "Red Bull", "Aston Martin"]
    assert engine.constructor_standings(1995) == []
    assert engine.driver_standings(2031) == []


def test_progression_drops_drivers_ending_on_zero(engine) -> None:
    progression = engine.championship_progression(2023, "driver")

    assert [p.entity_id for p in progression] == [20, 10]
    assert [(pt.round, pt.race_name, pt.points) for pt in progression[0].points] == [
        (1, "Italian Grand Prix", 18.0),
        (2, "British Grand Prix", 44.0),
    ]
    assert progression[0].color == entity_color(20)


def test_progression_carry_forward_keeps_last_known_points(engine) -> None:
    progression = engine.championship_progression(2023, "driver", carry_forward=True)

    alonso = next(p for p in progression if p.entity_id == 30)
    assert [pt.points for pt in alonso.points] == [5.0, 5.0]
    assert [p.entity_id for p in progression] == [20, 10, 30]


def test_constructor_progression_fills_missing_rounds_with_zero(engine) -> None:
    progression = engine.championship_progression(2023, "constructors")

    aston = next(p for p in progression if p.name == "Aston Martin")
    assert [pt.points for pt in aston.points] == [0.0, 15.0]
    assert progression[0].name == "Mercedes"


def test_progression_is_capped_at_ten() -> None:
    races = [Race(race_id=1, year=2023, round=1, circuit_id=1, name="Only")]
    standings = [
        DriverStanding(standings_id=i, race_id=1, driver_id=i, points=float(i), position=13 - i, wins=0)
        for i in range(1, 13)
    ]
    progression = _engine(races=races, driver_standings=standings).championship_progression(2023)

    assert len(progression) == 10
    assert progression[0].entity_id == 12
    assert progression[0].name == "Unknown"


def test_progression_rejects_unknown_entity_kind(engine) -> None:
    with pytest.raises(InvalidParameter) as excinfo:
        engine.championship_progression(2023, "team")

    assert excinfo.value.error_type == "InvalidParameter"


def test_all_time_stats_matches_metric_definitions(engine, context) -> None:
    results = context.store.results
    for metric in METRICS:
        for row in engine.all_time_stats(metric):
            mine = [r for r in results if r.driver_id == row.driver_id]
            assert row.races == len(mine)
            assert row.wins == sum(1 for r in mine if r.position == 1)
            assert row.podiums == sum(1 for r in mine if r.position is not None and r.position <= 3)
            assert row.poles == sum(1 for r in mine if r.grid == 1)
            assert row.points == pytest.approx(sum(r.points for r in mine))
            assert row.podiums >= row.wins


def test_all_time_stats_sorting_and_limit(engine) -> None:
    by_wins = engine.all_time_stats("wins")
    by_points = engine.all_time_stats("points", limit=2)

    assert [(r.driver_id, r.wins) for r in by_wins] == [(10, 2), (20, 1), (30, 1)]
    assert [(r.name, r.points) for r in by_points] == [("Max Verstappen", 68.0), ("Lewis Hamilton", 62.0)]


def test_all_time_stats_example_season() -> None:
    races = [
        Race(race_id=1, year=2023, round=1, circuit_id=1, name="A"),
        Race(race_id=2, year=2023, round=2, circuit_id=1, name="B"),
    ]
    results = [_result(1, 1, 10, 1, 25.0), _result(2, 2, 10, 2, 18.0)]

    rows = _engine(races=races, results=results).all_time_stats("wins")

    assert len(rows) == 1
    row = rows[0]
    assert (row.driver_id, row.wins, row.podiums, row.points, row.races) == (10, 1, 2, 43.0, 2)


def test_all_time_stats_rejects_unknown_metric(engine) -> None:
    with pytest.raises(InvalidParameter):
        engine.all_time_stats("fastest_laps")
    with pytest.raises(InvalidParameter):
        engine.all_time_stats("wins", limit=0)


def test_race_winners_with_unknown_fallback(engine) -> None:
    winners = engine.race_winners(2023)

    assert [(w.round, w.driver_name, w.constructor_name) for w in winners] == [
        (1, "Max Verstappen", "Red Bull"),
        (2, "Lewis Hamilton", "Mercedes"),
    ]
    vintage = engine.race_winners(1995)
    assert vintage[0].driver_name == "Fernando Alonso"
    assert vintage[0].constructor_name == "Unknown"


def test_race_without_winner_reports_unknown() -> None:
    races = [Race(race_id=1, year=2023, round=1, circuit_id=1, name="Washout")]
    results = [_result(1, 1, 10, None, 0.0)]

    winner = _engine(races=races, results=results).race_winners(2023)[0]

    assert (winner.driver_name, winner.constructor_name, winner.driver_id) == ("Unknown", "Unknown", None)


def test_constructor_dominance_by_decade(engine) -> None:
    decades = {d.decade: d.wins for d in engine.constructor_dominance()}

    assert list(decades) == ["1950s", "1960s", "1970s", "1980s", "1990s", "2000s", "2010s", "2020s"]
    assert decades["1990s"] == {"Other": 1}
    assert decades["2020s"] == {"Red Bull": 2, "Mercedes": 1}
    assert decades["1950s"] == {}


def test_circuit_stats_excludes_circuits_without_races(engine) -> None:
    stats = {c.circuit.circuit_id: c for c in engine.circuit_stats()}

    assert set(stats) == {1, 2}
    monza = stats[1]
    assert (monza.total_races, monza.unique_winners) == (2, 1)
    assert (monza.most_wins.name, monza.most_wins.wins) == ("Max Verstappen", 2)


def test_circuit_most_wins_tie_goes_to_first_winner_seen() -> None:
    circuits = [Circuit(circuit_id=1, name="Spa", location="Stavelot", country="Belgium", lat=50.4, lng=5.9)]
    races = [
        Race(race_id=1, year=2001, round=1, circuit_id=1, name="Belgian Grand Prix"),
        Race(race_id=2, year=2002, round=1, circuit_id=1, name="Belgian Grand Prix"),
    ]
    results = [_result(1, 1, 30, 1, 10.0), _result(2, 2, 20, 1, 10.0)]

    spa = _engine(circuits=circuits, races=races, results=results).circuit_stats()[0]

    assert spa.unique_winners == 2
    assert (spa.most_wins.driver_id, spa.most_wins.wins) == (30, 1)


def test_standings_row_without_position_cannot_take_the_title() -> None:
    loader = F1DataLoader()
    driver_rows = [
        {"driverStandingsId": "1", "raceId": "50", "driverId": "5", "points": "12", "position": "\\N", "wins": "0"},
        {"driverStandingsId": "2", "raceId": "50", "driverId": "7", "points": "30", "position": "1", "wins": "2"},
    ]
    constructor_rows = [
        {"constructorStandingsId": "1", "raceId": "50", "constructorId": "1", "points": "9", "position": "", "wins": "0"},
        {"constructorStandingsId": "2", "raceId": "50", "constructorId": "2", "points": "40", "position": "1", "wins": "2"},
    ]
    races = [Race(race_id=50, year=1997, round=17, circuit_id=1, name="European Grand Prix")]

    engine = _engine(
        races=races,
        driver_standings=loader.normalize("driver_standings", driver_rows),
        constructor_standings=loader.normalize("constructor_standings", constructor_rows)
    )

    assert [(s.entity_id, s.position) for s in engine.driver_standings(1997)] == [(7, 1)]
    assert [(s.entity_id, s.position) for s in engine.constructor_standings(1997)] == [(2, 1)]
    assert engine.driver_championships(5) == []
    assert engine.driver_championships(7) == [1997]


def test_top_circuits_by_winners(engine) -> None:
    top = engine.top_circuits_by_winners()

    assert [c.circuit.circuit_id for c in top] == [2, 1]
    assert len(engine.top_circuits_by_winners(limit=1)) == 1


def test_driver_career_stats(engine) -> None:
    stats = engine.driver_career_stats(30)

    assert (stats.races, stats.wins, stats.podiums, stats.poles) == (3, 1, 2, 1)
    assert stats.points == 25.0
    assert stats.avg_finish == 2.0
    assert stats.championships == [1995]
    assert stats.nationality == "Spanish"
    assert engine.driver_career_stats(10).avg_finish == 1.3


def test_career_without_classified_finish_reports_no_data() -> None:
    drivers = [Driver(driver_id=7, forename="Luckless", surname="Driver", nationality="Nowhere")]
    results = [_result(1, 1, 7, None, 0.0)]

    stats = _engine(drivers=drivers, results=results).driver_career_stats(7)

    assert stats.avg_finish is None
    assert stats.races == 1
    assert stats.championships == []


def test_unknown_driver_career_is_empty(engine) -> None:
    stats = engine.driver_career_stats(999)

    assert stats.name == "Unknown"
    assert (stats.races, stats.wins, stats.avg_finish) == (0, 0, None)


def test_compare_drivers(engine) -> None:
    first, second = engine.compare_drivers(10, 20)

    assert first.championships == [2022]
    assert second.championships == [2023]


def test_global_stats(engine) -> None:
    stats = engine.global_stats()

    assert (stats.total_races, stats.total_drivers, stats.total_constructors, stats.total_circuits) == (4, 3, 4, 2)


def test_results_for_race_in_classification_order(engine) -> None:
    assert [r.result_id for r in engine.results_for_race(4)] == [9, 10]


def test_season_overview(engine) -> None:
    overview = engine.season_overview(2023)

    assert (overview.races, overview.drivers) == (2, 3)


def test_search_drivers_by_name_and_era(engine) -> None:
    assert [r.name for r in engine.search_drivers("HAM")] == ["Lewis Hamilton"]
    assert [r.driver_id for r in engine.search_drivers(era="1990-1999")] == [20, 30]
    assert [r.driver_id for r in engine.search_drivers("alonso", era="1990-1999")] == [30]
    assert engine.search_drivers("verstappen", era="1990-1999") == []
    assert len(engine.search_drivers(era="all")) == 3
    assert engine.search_drivers("nobody") == []


def test_parse_era_rejects_garbage() -> None:
    assert parse_era("2000-2009") == (2000, 2009)
    with pytest.raises(InvalidParameter):
        parse_era("nineties")
    with pytest.raises(InvalidParameter):
        parse_era("2009-2000")


def test_results_matrix(engine) -> None:
    matrix = engine.results_matrix(2023)

    assert [d.driver_id for d in matrix.drivers] == [20, 10, 30]
    assert [d.points for d in matrix.drivers] == [44.0, 43.0, 15.0]
    assert len(matrix.cells) == 6
    dnf = next(c for c in matrix.cells if c.driver_id == 30 and c.round == 1)
    assert dnf.position is None


def test_pit_stop_summary_filters_display_band(engine) -> None:
    summary = engine.pit_stop_summary(2023)

    assert summary.total_stops == 4
    assert summary.displayed_stops == 2
    assert summary.mean_seconds == pytest.approx(23.75)
    assert summary.median_seconds == pytest.approx(23.75)
    assert summary.fastest.driver_id == 10
    assert summary.fastest_driver == "Max Verstappen"


def test_empty_pit_stop_table_yields_empty_sequence(context) -> None:
    engine = AggregationEngine(DashboardContext(RecordStore(races=context.store.races)))

    assert engine.season_pit_stops(2023) == []
    summary = engine.pit_stop_summary(2023)
    assert summary.total_stops == 0
    assert summary.mean_seconds is None


def test_empty_store_degrades_gracefully() -> None:
    engine = _engine()

    assert engine.seasons_available() == []
    assert engine.driver_standings(2023) == []
    assert engine.championship_progression(2023) == []
    assert engine.all_time_stats("points") == []
    assert engine.race_winners(2023) == []
    assert engine.circuit_stats() == []
    assert all(d.wins == {} for d in engine.constructor_dominance())
    assert engine.global_stats().total_races == 0


def test_queries_are_idempotent(engine) -> None:
    assert engine.all_time_stats("points") == engine.all_time_stats("points")
    assert engine.championship_progression(2023) == engine.championship_progression(2023)
    assert engine.circuit_stats() == engine.circuit_stats()
    assert engine.driver_career_stats(20) == engine.driver_career_stats(20)
    assert engine.constructor_dominance() == engine.constructor_dominance()
