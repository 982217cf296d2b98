"""
Dashboard engine orchestrator module.

Coordinates the load phase and the dashboard tabs: loads every table,
builds the context, and renders aggregation results through the formatter.
"""

import logging
import sys
from typing import List, Optional, Tuple

from f1_dashboard.analyzer import AggregationEngine, parse_era
from f1_dashboard.config import DashboardConfig
from f1_dashboard.data_loader import F1DataLoader
from f1_dashboard.formatter import ResultFormatter
from f1_dashboard.models import DashboardError, InvalidParameter, LoadEvent
from f1_dashboard.store import DashboardContext


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


TABS = ("overview", "drivers", "teams", "circuits", "analysis", "compare")


class DashboardEngine:
    """
    Orchestrates the F1 analytics dashboard.

    Loads the dataset once, then renders any tab for any season on demand.
    """

    def __init__(self, config: Optional[DashboardConfig] = None, verbose: bool = False):
        """
        Initialize the dashboard engine.

        Args:
            config: Dashboard configuration (defaults are used if None)
            verbose: Whether to echo load progress to stderr (default: False)
        """
        self.config = config if config else DashboardConfig()
        self.verbose = verbose
        self.loader = F1DataLoader(self.config)
        self.formatter = ResultFormatter()
        self.context: Optional[DashboardContext] = None
        self.analyzer: Optional[AggregationEngine] = None

        source = self.config.base_url or self.config.data_dir
        logger.info(f"Dashboard engine initialized (source: {source})")

    def _show_progress(self, message: str) -> None:
        if self.verbose:
            print(f"[*] {message}", file=sys.stderr)
        logger.info(message)

    def _on_load_event(self, event: LoadEvent) -> None:
        if event.ok:
            self._show_progress(f"Loaded {event.table}: {event.records} records")
        else:
            self._show_progress(f"Could not load {event.table}, continuing without it")

    def load(self) -> DashboardContext:
        """
        Run the load phase: tables, normalization, lookup maps.

        Returns:
            The loaded dashboard context

        Raises:
            DashboardError: If no table could be loaded at all
        """
        self._show_progress("Loading race data...")
        context = self.loader.load_all(status_callback=self._on_load_event)

        counts = ", ".join(f"{table}={n}" for table, n in context.store.counts().items())
        logger.info(f"Record counts: {counts}")

        failed = [e.table for e in self.loader.events if not e.ok]
        if failed:
            logger.warning(f"Tables unavailable: {', '.join(sorted(failed))}")

        if context.store.is_empty():
            raise DashboardError(
                error_type="NoData",
                message="No F1 data could be loaded from the configured source",
                suggestions=[
                    "Check that --data-dir points at the folder holding races.csv, results.csv, ...",
                    "Verify --base-url is reachable",
                    "Run with --verbose to see which tables failed"
                ],
                recoverable=True
            )

        self.context = context
        self.analyzer = AggregationEngine(context, self.config)
        self._show_progress("Ready!")
        return context

    def _require_loaded(self) -> AggregationEngine:
        if self.analyzer is None:
            self.load()
        return self.analyzer

    def default_season(self) -> Optional[int]:
        """Most recent season in the dataset, or None when there are no races."""
        seasons = self._require_loaded().seasons_available()
        return seasons[0] if seasons else None

    def render_tab(
        self,
        tab: str,
        season: Optional[int] = None,
        metric: str = "wins",
        top: int = 15,
        search: str = "",
        era: Optional[str] = None,
        compare: Optional[Tuple[int, int]] = None,
        carry_forward: bool = False
    ) -> str:
        """
        Render one dashboard tab as text.

        Args:
            tab: One of overview, drivers, teams, circuits, analysis, compare
            season: Season year (latest season if None)
            metric: Leaderboard metric for the drivers tab
            top: Number of leaderboard rows to show
            search: Driver name filter for the drivers tab
            era: Era filter ("START-END") for the drivers tab
            compare: Pair of driver ids for the compare tab
            carry_forward: Forward-fill missing rounds in progression charts

        Returns:
            Formatted string ready for display

        Raises:
            InvalidParameter: If the tab or its arguments are not recognized
        """
        analyzer = self._require_loaded()
        if season is None:
            season = self.default_season()

        if tab == "overview":
            return self._render_overview(analyzer, season, carry_forward)
        if tab == "drivers":
            return self._render_drivers(analyzer, metric, top, search, era)
        if tab == "teams":
            return self._render_teams(analyzer, season, carry_forward)
        if tab == "circuits":
            return self._render_circuits(analyzer)
        if tab == "analysis":
            return self._render_analysis(analyzer, season)
        if tab == "compare":
            if not compare:
                raise InvalidParameter(
                    "The compare tab needs two driver ids",
                    suggestions=["Pass --compare DRIVER_ID DRIVER_ID"]
                )
            return self.formatter.format_comparison(analyzer.compare_drivers(*compare))

        raise InvalidParameter(f"Unknown tab: {tab!r}", suggestions=[f"Use one of: {', '.join(TABS)}"])

    def _render_overview(self, analyzer: AggregationEngine, season: Optional[int], carry_forward: bool) -> str:
        sections: List[str] = []
        overview = analyzer.season_overview(season) if season is not None else None
        sections.append(self.formatter.format_global_stats(analyzer.global_stats(), overview))
        if season is None:
            return "\n\n".join(sections)

        sections.append(self.formatter.format_winners(season, analyzer.race_winners(season)))
        sections.append(self.formatter.format_standings(
            f"DRIVER STANDINGS {season}", analyzer.driver_standings(season)
        ))
        sections.append(self.formatter.format_progression(
            f"DRIVERS' CHAMPIONSHIP {season}",
            analyzer.championship_progression(season, "driver", carry_forward=carry_forward)
        ))
        return "\n\n".join(sections)

    def _render_drivers(
        self,
        analyzer: AggregationEngine,
        metric: str,
        top: int,
        search: str,
        era: Optional[str]
    ) -> str:
        if search or parse_era(era):
            rows = analyzer.search_drivers(term=search, era=era, metric=metric)
        else:
            rows = analyzer.all_time_stats(metric)
        return self.formatter.format_leaderboard(metric, rows, top=top)

    def _render_teams(self, analyzer: AggregationEngine, season: Optional[int], carry_forward: bool) -> str:
        sections = [self.formatter.format_dominance(analyzer.constructor_dominance())]
        if season is not None:
            sections.append(self.formatter.format_standings(
                f"CONSTRUCTOR STANDINGS {season}", analyzer.constructor_standings(season)
            ))
            sections.append(self.formatter.format_progression(
                f"CONSTRUCTORS' CHAMPIONSHIP {season}",
                analyzer.championship_progression(season, "constructor", carry_forward=carry_forward)
            ))
        return "\n\n".join(sections)

    def _render_circuits(self, analyzer: AggregationEngine) -> str:
        sections = [self.formatter.format_circuits(analyzer.circuit_stats())]
        top = analyzer.top_circuits_by_winners()
        if top:
            lines = ["MOST DIVERSE WINNERS", "─" * 65]
            for summary in top:
                lines.append(
                    f"{summary.circuit.name}: {summary.unique_winners} winners, "
                    f"most by {summary.most_wins.name} ({summary.most_wins.wins})"
                )
            sections.append("\n".join(lines))
        return "\n\n".join(sections)

    def _render_analysis(self, analyzer: AggregationEngine, season: Optional[int]) -> str:
        if season is None:
            return self.formatter.format_matrix(analyzer.results_matrix(0))
        return "\n\n".join([
            self.formatter.format_matrix(analyzer.results_matrix(season)),
            self.formatter.format_pit_stops(
                analyzer.pit_stop_summary(season),
                self.config.pit_stop_min_seconds,
                self.config.pit_stop_max_seconds
            ),
        ])

    def format_error(self, error: DashboardError) -> str:
        """
        Format a dashboard error for display.

        Args:
            error: DashboardError to format

        Returns:
            Formatted error message string
        """
        lines = []
        lines.append("═" * 65)
        lines.append(f"ERROR: {error.error_type}")
        lines.append("═" * 65)
        lines.append(f"\n{error.message}\n")

        if error.suggestions:
            lines.append("Suggestions:")
            for suggestion in error.suggestions:
                lines.append(f"  • {suggestion}")

        lines.append("\n" + "═" * 65)

        return "\n".join(lines)
