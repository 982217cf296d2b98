from __future__ import annotations

from f1_dashboard.formatter import ResultFormatter, NO_DATA
from f1_dashboard.models import CareerStats, StandingEntry


def test_empty_results_render_no_data() -> None:
    formatter = ResultFormatter()

    assert NO_DATA in formatter.format_standings("DRIVER STANDINGS 2050", [])
    assert NO_DATA in formatter.format_progression("DRIVERS' CHAMPIONSHIP 2050", [])
    assert NO_DATA in formatter.format_winners(2050, [])
    assert NO_DATA in formatter.format_circuits([])


def test_standings_show_fractional_points() -> None:
    entry = StandingEntry(entity_id=1, name="Half Points", position=1, points=4.5, wins=0, race_id=1)

    output = ResultFormatter().format_standings("STANDINGS", [entry])

    assert "4.5 pts" in output


def test_career_without_finishes_shows_not_available() -> None:
    stats = CareerStats(
        driver_id=1, name="Luckless Driver", nationality="Nowhere", races=2, wins=0,
        podiums=0, poles=0, points=0.0, avg_finish=None, championships=[]
    )

    output = ResultFormatter().format_career(stats)

    assert "Avg finish: N/A" in output
    assert "Championships: -" in output
