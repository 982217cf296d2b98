"""Text formatter for F1 Analytics Dashboard."""

from typing import List, Optional, Tuple

from f1_dashboard.models import (
    StandingEntry, ProgressionSeries, DriverStatLine, RaceWinner,
    DecadeDominance, CircuitSummary, CareerStats, GlobalStats, SeasonOverview,
    ResultsMatrix, PitStopSummary
)


NO_DATA = "No data available"
WIDTH = 65


def _fmt_points(points: float) -> str:
    return f"{points:g}" if points == int(points) else f"{points:.1f}"


class ResultFormatter:
    """Formats aggregation results for console display."""

    def _section(self, title: str) -> List[str]:
        return [title, "─" * WIDTH]

    def _empty(self, title: str, message: str = NO_DATA) -> str:
        return "\n".join(self._section(title) + [f"  {message}"])

    def format_global_stats(self, stats: GlobalStats, season: Optional[SeasonOverview] = None) -> str:
        """Format headline numbers, with the selected season's quick stats."""
        output = self._section("F1 HISTORY AT A GLANCE")
        output.append(f"Races:        {stats.total_races}")
        output.append(f"Drivers:      {stats.total_drivers}")
        output.append(f"Constructors: {stats.total_constructors}")
        output.append(f"Circuits:     {stats.total_circuits}")
        if season:
            output.append("")
            output.append(f"Season {season.year}: {season.races} races, {season.drivers} drivers")
        return "\n".join(output)

    def format_standings(self, title: str, standings: List[StandingEntry]) -> str:
        """
        Format a standings table.

        Args:
            title: Section heading
            standings: Standings rows in position order

        Returns:
            Formatted string ready for display
        """
        if not standings:
            return self._empty(title)

        output = self._section(title)
        for entry in standings:
            name = entry.name[:28].ljust(28)
            output.append(
                f"{entry.position:>3}. {name} {_fmt_points(entry.points):>7} pts  {entry.wins:>2} wins"
            )
        return "\n".join(output)

    def format_winners(self, year: int, winners: List[RaceWinner]) -> str:
        title = f"RACE WINNERS {year}"
        if not winners:
            return self._empty(title)

        output = self._section(title)
        for winner in winners:
            output.append(
                f"R{winner.round:<3} {winner.race_name[:26].ljust(26)} "
                f"{winner.driver_name} ({winner.constructor_name})"
            )
        return "\n".join(output)

    def format_progression(self, title: str, progression: List[ProgressionSeries]) -> str:
        """Format championship progression as one line of cumulative points per entity."""
        if not progression:
            return self._empty(title)

        output = self._section(title)
        rounds = " ".join(f"{p.round:>5}" for p in progression[0].points)
        output.append(f"{'':<24} {rounds}")
        for series in progression:
            values = " ".join(f"{_fmt_points(p.points):>5}" for p in series.points)
            output.append(f"{series.name[:24].ljust(24)} {values}")
        return "\n".join(output)

    def format_leaderboard(self, metric: str, rows: List[DriverStatLine], top: int = 15) -> str:
        """
        Format an all-time leaderboard.

        Args:
            metric: Metric the rows are sorted by
            rows: Leaderboard rows
            top: Number of rows to display

        Returns:
            Formatted ASCII table string
        """
        title = f"ALL-TIME {metric.upper()}"
        if not rows:
            return self._empty(title, "No drivers found")

        lines = []
        lines.append("┌──────┬─────────────────────────┬──────┬─────────┬───────┬──────────┬───────┐")
        lines.append("│ Rank │ Driver                  │ Wins │ Podiums │ Poles │   Points │ Races │")
        lines.append("├──────┼─────────────────────────┼──────┼─────────┼───────┼──────────┼───────┤")

        for i, row in enumerate(rows[:top], 1):
            name = row.name[:23].ljust(23)
            lines.append(
                f"│ {i:>4} │ {name} │ {row.wins:>4} │ {row.podiums:>7} │ {row.poles:>5} │ "
                f"{_fmt_points(row.points):>8} │ {row.races:>5} │"
            )

        lines.append("└──────┴─────────────────────────┴──────┴─────────┴───────┴──────────┴───────┘")
        return "\n".join(self._section(title) + lines)

    def format_dominance(self, decades: List[DecadeDominance], top: int = 3) -> str:
        """Format each decade's most successful constructors."""
        if not any(d.wins for d in decades):
            return self._empty("CONSTRUCTOR DOMINANCE BY DECADE")

        output = self._section("CONSTRUCTOR DOMINANCE BY DECADE")
        for decade in decades:
            leaders = sorted(decade.wins.items(), key=lambda item: item[1], reverse=True)[:top]
            text = ", ".join(f"{name} {wins}" for name, wins in leaders) or "-"
            output.append(f"{decade.decade}: {text}")
        return "\n".join(output)

    def format_circuits(self, circuits: List[CircuitSummary], top: int = 10) -> str:
        """Format the most-raced circuits with their most successful driver."""
        if not circuits:
            return self._empty("CIRCUITS")

        output = self._section("CIRCUITS")
        ranked = sorted(circuits, key=lambda c: c.total_races, reverse=True)[:top]
        for summary in ranked:
            best = summary.most_wins
            best_text = f"{best.name} ({best.wins})" if best else "-"
            output.append(
                f"{summary.circuit.name[:30].ljust(30)} {summary.total_races:>3} races  "
                f"{summary.unique_winners:>3} winners  top: {best_text}"
            )
        return "\n".join(output)

    def format_career(self, stats: CareerStats) -> str:
        avg = f"{stats.avg_finish:.1f}" if stats.avg_finish is not None else "N/A"
        titles = ", ".join(str(y) for y in stats.championships) or "-"
        output = self._section(f"{stats.name} ({stats.nationality})")
        output.append(f"Races: {stats.races}  Wins: {stats.wins}  Podiums: {stats.podiums}  Poles: {stats.poles}")
        output.append(f"Points: {round(stats.points)}  Avg finish: {avg}")
        output.append(f"Championships: {titles}")
        return "\n".join(output)

    def format_comparison(self, pair: Tuple[CareerStats, CareerStats]) -> str:
        """Format two careers side by side, metric by metric."""
        first, second = pair
        output = ["═" * WIDTH, f"{first.name} vs {second.name}", "═" * WIDTH]
        metrics = [
            ("Races", first.races, second.races),
            ("Wins", first.wins, second.wins),
            ("Podiums", first.podiums, second.podiums),
            ("Poles", first.poles, second.poles),
            ("Points", round(first.points), round(second.points)),
            ("Titles", len(first.championships), len(second.championships)),
        ]
        for label, left, right in metrics:
            output.append(f"{str(left):>20}  {label:^10}  {str(right):<20}")
        output.append("")
        output.append(self.format_career(first))
        output.append("")
        output.append(self.format_career(second))
        return "\n".join(output)

    def format_matrix(self, matrix: ResultsMatrix) -> str:
        """Format the season heatmap as a position grid ('-' = not classified)."""
        title = f"RESULTS MATRIX {matrix.year}"
        if not matrix.races or not matrix.drivers:
            return self._empty(title, f"No race data available for {matrix.year}")

        cells = {(c.driver_id, c.round): c for c in matrix.cells}
        output = self._section(title)
        output.append(f"{'':<20} " + " ".join(f"{race.round:>3}" for race in matrix.races))
        for driver in matrix.drivers:
            row = []
            for race in matrix.races:
                cell = cells.get((driver.driver_id, race.round))
                if cell is None:
                    row.append("   ")
                elif cell.position is None:
                    row.append("  -")
                else:
                    row.append(f"{cell.position:>3}")
            output.append(f"{driver.name[:20].ljust(20)} " + " ".join(row))
        return "\n".join(output)

    def format_pit_stops(self, summary: PitStopSummary, low: float, high: float) -> str:
        title = f"PIT STOPS {summary.year}"
        if summary.total_stops == 0:
            return self._empty(title, "No pit stop data available")
        if not summary.valid_stops:
            return self._empty(title, "No valid pit stop data in displayable range")

        output = self._section(title)
        output.append(f"Mean: {summary.mean_seconds:.3f}s  Median: {summary.median_seconds:.3f}s")
        fastest = summary.fastest
        output.append(f"Fastest: {fastest.seconds:.3f}s (lap {fastest.lap}, {summary.fastest_driver})")
        if summary.displayed_stops < summary.total_stops:
            output.append(
                f"Showing {summary.displayed_stops} of {summary.total_stops} stops "
                f"({low:g}s-{high:g}s range)"
            )
        return "\n".join(output)
