"""
Aggregation engine module.

Answers the dashboard's queries by joining the normalized tables in memory:
season views, standings, championship progression, all-time leaderboards,
constructor dominance, circuit history and driver careers.

Every query is recomputed from the record store on each call and never
mutates it, so the engine is safe to share between callers.
"""

import logging
from collections import Counter
from typing import Dict, List, Optional, Tuple
import numpy as np

from f1_dashboard.config import DashboardConfig, ENTITY_COLORS
from f1_dashboard.models import (
    Race, RaceResult, PitStop, StandingEntry, ProgressionPoint,
    ProgressionSeries, DriverStatLine, RaceWinner, DecadeDominance,
    CircuitWinner, CircuitSummary, CareerStats, GlobalStats, SeasonOverview,
    MatrixDriver, MatrixCell, ResultsMatrix, PitStopSummary, InvalidParameter,
    UNKNOWN
)
from f1_dashboard.store import DashboardContext


logger = logging.getLogger(__name__)


METRICS = ("wins", "podiums", "poles", "points", "races")

ENTITY_KINDS = {
    "driver": "driver",
    "drivers": "driver",
    "constructor": "constructor",
    "constructors": "constructor",
}


def _check_year(year) -> int:
    if isinstance(year, bool) or not isinstance(year, int):
        raise InvalidParameter(f"Season must be an integer year, got {year!r}")
    return year


def _check_id(value, label: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidParameter(f"{label} must be an integer id, got {value!r}")
    return value


def _check_limit(limit: Optional[int]) -> Optional[int]:
    if limit is None:
        return None
    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
        raise InvalidParameter(f"Limit must be a positive integer, got {limit!r}")
    return limit


def _check_metric(metric: str) -> str:
    if metric not in METRICS:
        raise InvalidParameter(
            f"Unknown metric: {metric!r}",
            suggestions=[f"Use one of: {', '.join(METRICS)}"]
        )
    return metric


def parse_era(era: Optional[str]) -> Optional[Tuple[int, int]]:
    """
    Parse an era filter such as ``"1990-1999"``.

    Args:
        era: Era string, ``"all"`` or None

    Returns:
        (start, end) year tuple, or None when no era filter applies

    Raises:
        InvalidParameter: If the era is malformed
    """
    if era is None or era == "all":
        return None
    try:
        start_text, end_text = era.split("-")
        start, end = int(start_text), int(end_text)
    except (AttributeError, ValueError):
        raise InvalidParameter(
            f"Invalid era: {era!r}",
            suggestions=["Use START-END, e.g. 1990-1999, or 'all'"]
        )
    if start > end:
        raise InvalidParameter(f"Era starts after it ends: {era!r}")
    return start, end


def entity_color(entity_id: int) -> str:
    """Stable display colour for a driver or constructor id."""
    return ENTITY_COLORS[entity_id % len(ENTITY_COLORS)]


class AggregationEngine:
    """
    Query layer over a loaded dashboard context.

    All list-returning queries are deterministic for identical input tables;
    ties keep the order in which records appear in the source tables.
    """

    def __init__(self, context: DashboardContext, config: Optional[DashboardConfig] = None):
        """
        Initialize the aggregation engine.

        Args:
            context: Loaded record store and lookup maps
            config: Dashboard configuration (defaults are used if None)
        """
        self.context = context
        self.config = config if config else DashboardConfig()

    @property
    def store(self):
        return self.context.store

    @property
    def indices(self):
        return self.context.indices

    # Season scoping

    def seasons_available(self) -> List[int]:
        """Distinct years with at least one race, most recent first."""
        return sorted({race.year for race in self.store.races}, reverse=True)

    def races_for_season(self, year: int) -> List[Race]:
        """
        Get the races of a season in chronological order.

        Args:
            year: Season year

        Returns:
            Races sorted ascending by round (empty if the season is unknown)
        """
        _check_year(year)
        return sorted(
            (race for race in self.store.races if race.year == year),
            key=lambda race: race.round
        )

    def results_for_race(self, race_id: int) -> List[RaceResult]:
        """Results of a race in classification order."""
        _check_id(race_id, "Race id")
        return sorted(
            (r for r in self.store.results if r.race_id == race_id),
            key=lambda r: r.position_order
        )

    def season_overview(self, year: int) -> SeasonOverview:
        """Race count and number of distinct drivers who entered a season."""
        races = self.races_for_season(year)
        race_ids = {race.race_id for race in races}
        drivers = {r.driver_id for r in self.store.results if r.race_id in race_ids}
        return SeasonOverview(year=year, races=len(races), drivers=len(drivers))

    # Standings

    def driver_standings(self, year: int) -> List[StandingEntry]:
        """
        Get final driver standings for a season.

        The final standings are the snapshot attached to the last race of the
        season by round.

        Args:
            year: Season year

        Returns:
            StandingEntry rows sorted by position (empty if no races)
        """
        races = self.races_for_season(year)
        if not races:
            return []

        last_race_id = races[-1].race_id
        rows = sorted(
            (s for s in self.store.driver_standings if s.race_id == last_race_id),
            key=lambda s: s.position
        )
        return [
            StandingEntry(
                entity_id=s.driver_id,
                name=self.indices.driver_name(s.driver_id),
                position=s.position,
                points=s.points,
                wins=s.wins,
                race_id=s.race_id
            )
            for s in rows
        ]

    def constructor_standings(self, year: int) -> List[StandingEntry]:
        """
        Get final constructor standings for a season.

        Args:
            year: Season year

        Returns:
            StandingEntry rows sorted by position (empty if no races)
        """
        races = self.races_for_season(year)
        if not races:
            return []

        last_race_id = races[-1].race_id
        rows = sorted(
            (s for s in self.store.constructor_standings if s.race_id == last_race_id),
            key=lambda s: s.position
        )
        return [
            StandingEntry(
                entity_id=s.constructor_id,
                name=self.indices.constructor_name(s.constructor_id),
                position=s.position,
                points=s.points,
                wins=s.wins,
                race_id=s.race_id
            )
            for s in rows
        ]

    def championship_progression(
        self,
        year: int,
        entity_kind: str = "driver",
        carry_forward: bool = False,
        limit: Optional[int] = None
    ) -> List[ProgressionSeries]:
        """
        Build championship points progression across a season.

        Every entity with a standings row in the season gets one point per
        race of the season. A round without a standings row for the entity
        counts as 0 points, or repeats the previous round's points when
        ``carry_forward`` is set.

        Args:
            year: Season year
            entity_kind: "driver" or "constructor"
            carry_forward: Repeat the last known points for missing rounds
            limit: Maximum number of series (default: config.progression_limit)

        Returns:
            Series ranked by final points, entities finishing on 0 points removed

        Raises:
            InvalidParameter: If the entity kind or limit is not recognized
        """
        kind = ENTITY_KINDS.get(entity_kind)
        if kind is None:
            raise InvalidParameter(
                f"Unknown entity kind: {entity_kind!r}",
                suggestions=["Use 'driver' or 'constructor'"]
            )
        limit = _check_limit(limit) or self.config.progression_limit

        races = self.races_for_season(year)
        race_ids = {race.race_id for race in races}

        if kind == "driver":
            standings = [(s.race_id, s.driver_id, s.points) for s in self.store.driver_standings]
            name_of = self.indices.driver_name
        else:
            standings = [(s.race_id, s.constructor_id, s.points) for s in self.store.constructor_standings]
            name_of = self.indices.constructor_name

        points_by_key: Dict[Tuple[int, int], float] = {}
        entities: Dict[int, None] = {}
        for race_id, entity_id, points in standings:
            if race_id not in race_ids:
                continue
            points_by_key.setdefault((race_id, entity_id), points)
            entities.setdefault(entity_id, None)

        progression = []
        for entity_id in entities:
            series = []
            previous = 0.0
            for race in races:
                points = points_by_key.get((race.race_id, entity_id))
                if points is None:
                    points = previous if carry_forward else 0.0
                previous = points
                series.append(ProgressionPoint(round=race.round, race_name=race.name, points=points))
            progression.append(ProgressionSeries(
                entity_id=entity_id,
                name=name_of(entity_id),
                color=entity_color(entity_id),
                points=series
            ))

        ranked = sorted(
            (p for p in progression if p.points and p.final_points > 0),
            key=lambda p: p.final_points,
            reverse=True
        )
        logger.debug(f"{kind} progression {year}: {len(ranked)} of {len(progression)} entities scored")
        return ranked[:limit]

    # All-time leaderboards

    def all_time_stats(self, metric: str = "wins", limit: Optional[int] = None) -> List[DriverStatLine]:
        """
        Get all-time driver totals sorted by a metric.

        Args:
            metric: One of wins, podiums, poles, points, races
            limit: Optional maximum number of rows

        Returns:
            One row per driver with any result, highest metric first

        Raises:
            InvalidParameter: If the metric or limit is not recognized
        """
        _check_metric(metric)
        limit = _check_limit(limit)

        stats: Dict[int, DriverStatLine] = {}
        for result in self.store.results:
            line = stats.get(result.driver_id)
            if line is None:
                line = DriverStatLine(
                    driver_id=result.driver_id,
                    name=self.indices.driver_name(result.driver_id)
                )
                stats[result.driver_id] = line

            line.races += 1
            line.points += result.points
            if result.position == 1:
                line.wins += 1
            if result.position is not None and result.position <= 3:
                line.podiums += 1
            if result.grid == 1:
                line.poles += 1

        ranked = sorted(stats.values(), key=lambda line: line.metric(metric), reverse=True)
        return ranked[:limit] if limit else ranked

    def search_drivers(
        self,
        term: str = "",
        era: Optional[str] = None,
        metric: str = "wins"
    ) -> List[DriverStatLine]:
        """
        Filter the all-time leaderboard by name and era.

        Args:
            term: Case-insensitive substring of the driver's name
            era: "START-END" year range the driver must have raced in, or "all"
            metric: Metric to sort by

        Returns:
            Matching rows sorted by the metric (empty if nothing matches)
        """
        era_range = parse_era(era)
        rows = self.all_time_stats(metric)

        if term:
            needle = term.lower()
            rows = [row for row in rows if needle in row.name.lower()]

        if era_range:
            start, end = era_range
            in_era = set()
            for result in self.store.results:
                race = self.indices.races.get(result.race_id)
                if race and start <= race.year <= end:
                    in_era.add(result.driver_id)
            rows = [row for row in rows if row.driver_id in in_era]

        return rows

    # Season summaries

    def race_winners(self, year: int) -> List[RaceWinner]:
        """
        Get the winner of every race of a season.

        Args:
            year: Season year

        Returns:
            One RaceWinner per race in round order ("Unknown" when unresolved)
        """
        races = self.races_for_season(year)
        race_ids = {race.race_id for race in races}

        winners: Dict[int, RaceResult] = {}
        for result in self.store.results:
            if result.position == 1 and result.race_id in race_ids:
                winners.setdefault(result.race_id, result)

        rows = []
        for race in races:
            winner = winners.get(race.race_id)
            rows.append(RaceWinner(
                race_name=race.name,
                round=race.round,
                driver_name=self.indices.driver_name(winner.driver_id) if winner else UNKNOWN,
                constructor_name=self.indices.constructor_name(winner.constructor_id) if winner else UNKNOWN,
                driver_id=winner.driver_id if winner else None
            ))
        return rows

    def results_matrix(self, year: int, limit: Optional[int] = None) -> ResultsMatrix:
        """
        Build the finishing-position heatmap of a season.

        Args:
            year: Season year
            limit: Number of drivers to include (default: config.matrix_limit)

        Returns:
            ResultsMatrix with the top drivers by season points and their cells
        """
        limit = _check_limit(limit) or self.config.matrix_limit
        races = self.races_for_season(year)
        rounds = {race.race_id: race.round for race in races}
        season_results = [r for r in self.store.results if r.race_id in rounds]

        totals: Dict[int, float] = {}
        for result in season_results:
            totals[result.driver_id] = totals.get(result.driver_id, 0.0) + result.points

        drivers = sorted(
            (MatrixDriver(driver_id=driver_id, name=self.indices.driver_name(driver_id), points=points)
             for driver_id, points in totals.items()),
            key=lambda d: d.points,
            reverse=True
        )[:limit]
        shown = {d.driver_id for d in drivers}

        cells = [
            MatrixCell(
                driver_id=r.driver_id,
                round=rounds[r.race_id],
                position=r.position,
                points=r.points
            )
            for r in season_results if r.driver_id in shown
        ]
        return ResultsMatrix(year=year, races=races, drivers=drivers, cells=cells)

    def season_pit_stops(self, year: int) -> List[PitStop]:
        """Pit stops made during a season's races."""
        race_ids = {race.race_id for race in self.races_for_season(year)}
        return [p for p in self.store.pit_stops if p.race_id in race_ids]

    def pit_stop_summary(self, year: int) -> PitStopSummary:
        """
        Summarize a season's pit stop durations within the displayable band.

        Stops with a non-positive lap or duration, or a duration outside the
        configured band, are counted in the total but not displayed.

        Args:
            year: Season year

        Returns:
            PitStopSummary (duration statistics are None when nothing is valid)
        """
        stops = self.season_pit_stops(year)
        low, high = self.config.pit_stop_min_seconds, self.config.pit_stop_max_seconds
        valid = [
            p for p in stops
            if p.milliseconds > 0 and p.lap > 0 and low <= p.seconds <= high
        ]

        if not valid:
            return PitStopSummary(
                year=year, total_stops=len(stops), valid_stops=[],
                mean_seconds=None, median_seconds=None, fastest=None
            )

        seconds = np.array([p.seconds for p in valid])
        fastest = valid[int(np.argmin(seconds))]
        return PitStopSummary(
            year=year,
            total_stops=len(stops),
            valid_stops=valid,
            mean_seconds=round(float(np.mean(seconds)), 3),
            median_seconds=round(float(np.median(seconds)), 3),
            fastest=fastest,
            fastest_driver=self.indices.driver_name(fastest.driver_id)
        )

    # Eras and circuits

    def constructor_dominance(self) -> List[DecadeDominance]:
        """
        Count race wins per constructor in each decade bucket.

        Only constructors with at least one win in a decade appear in that
        decade's ``wins``; consumers treat missing names as zero.

        Returns:
            One DecadeDominance per configured decade, oldest first
        """
        buckets = [DecadeDominance(decade=label) for label, _, _ in self.config.decades]

        for result in self.store.results:
            if result.position != 1:
                continue
            race = self.indices.races.get(result.race_id)
            if race is None:
                continue
            constructor = self.indices.constructors.get(result.constructor_id)
            name = constructor.name if constructor else "Other"
            for bucket, (_, start, end) in zip(buckets, self.config.decades):
                if start <= race.year <= end:
                    bucket.wins[name] = bucket.wins.get(name, 0) + 1

        return buckets

    def circuit_stats(self) -> List[CircuitSummary]:
        """
        Summarize the race history of every circuit that hosted a race.

        The most successful driver at a circuit is the one with the most
        wins there; on a tie the driver whose win was seen first wins.

        Returns:
            CircuitSummary per circuit with at least one race, in table order
        """
        race_counts = Counter(race.circuit_id for race in self.store.races)

        winners_by_circuit: Dict[int, List[int]] = {}
        for result in self.store.results:
            if result.position != 1:
                continue
            race = self.indices.races.get(result.race_id)
            if race is not None:
                winners_by_circuit.setdefault(race.circuit_id, []).append(result.driver_id)

        summaries = []
        for circuit in self.store.circuits:
            total = race_counts.get(circuit.circuit_id, 0)
            if total == 0:
                continue
            winners = winners_by_circuit.get(circuit.circuit_id, [])
            summaries.append(CircuitSummary(
                circuit=circuit,
                total_races=total,
                unique_winners=len(set(winners)),
                most_wins=self._most_wins(winners)
            ))
        return summaries

    def _most_wins(self, winner_ids: List[int]) -> Optional[CircuitWinner]:
        counts: Dict[int, int] = {}
        for driver_id in winner_ids:
            counts[driver_id] = counts.get(driver_id, 0) + 1

        best_id, best_wins = None, 0
        for driver_id, wins in counts.items():
            if wins > best_wins:
                best_id, best_wins = driver_id, wins

        if best_id is None:
            logger.debug("Circuit has races but no recorded winner")
            return None
        return CircuitWinner(driver_id=best_id, name=self.indices.driver_name(best_id), wins=best_wins)

    def top_circuits_by_winners(self, limit: Optional[int] = None) -> List[CircuitSummary]:
        """Circuits with a known top winner, most distinct winners first."""
        limit = _check_limit(limit) or self.config.circuit_winners_limit
        circuits = [c for c in self.circuit_stats() if c.most_wins]
        circuits.sort(key=lambda c: c.unique_winners, reverse=True)
        return circuits[:limit]

    # Drivers

    def driver_career_stats(self, driver_id: int) -> CareerStats:
        """
        Aggregate a driver's full race history.

        Args:
            driver_id: Driver id

        Returns:
            CareerStats (avg_finish is None without classified finishes)
        """
        _check_id(driver_id, "Driver id")
        driver = self.indices.drivers.get(driver_id)
        results = [r for r in self.store.results if r.driver_id == driver_id]

        positions = [r.position for r in results if r.position is not None]
        avg_finish = round(float(np.mean(positions)), 1) if positions else None

        return CareerStats(
            driver_id=driver_id,
            name=driver.full_name if driver else UNKNOWN,
            nationality=driver.nationality if driver else UNKNOWN,
            races=len(results),
            wins=sum(1 for r in results if r.position == 1),
            podiums=sum(1 for r in results if r.position is not None and r.position <= 3),
            poles=sum(1 for r in results if r.grid == 1),
            points=sum(r.points for r in results),
            avg_finish=avg_finish,
            championships=self.driver_championships(driver_id)
        )

    def driver_championships(self, driver_id: int) -> List[int]:
        """Seasons, most recent first, in which the driver was champion."""
        titles = []
        for year in self.seasons_available():
            standings = self.driver_standings(year)
            if standings and standings[0].entity_id == driver_id:
                titles.append(year)
        return titles

    def compare_drivers(self, first_id: int, second_id: int) -> Tuple[CareerStats, CareerStats]:
        """Career stats of two drivers side by side."""
        return self.driver_career_stats(first_id), self.driver_career_stats(second_id)

    def global_stats(self) -> GlobalStats:
        """Headline counts across the whole dataset."""
        return GlobalStats(
            total_races=len(self.store.races),
            total_drivers=len({r.driver_id for r in self.store.results}),
            total_constructors=len({r.constructor_id for r in self.store.results}),
            total_circuits=len({race.circuit_id for race in self.store.races})
        )
