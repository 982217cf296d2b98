"""Data models for F1 Analytics Dashboard."""

from dataclasses import dataclass, field
from typing import Optional, Dict, List


UNKNOWN = "Unknown"


@dataclass(frozen=True)
class Circuit:
    """Represents an F1 circuit."""
    circuit_id: int
    name: str
    location: str
    country: str
    lat: float
    lng: float


@dataclass(frozen=True)
class Driver:
    """Represents an F1 driver."""
    driver_id: int
    forename: str
    surname: str
    nationality: str
    code: str = ""  # e.g., "VER", "HAM"

    @property
    def full_name(self) -> str:
        return f"{self.forename} {self.surname}"


@dataclass(frozen=True)
class Constructor:
    """Represents an F1 constructor/team."""
    constructor_id: int
    name: str
    nationality: str = ""


@dataclass(frozen=True)
class Race:
    """Represents an F1 race."""
    race_id: int
    year: int
    round: int
    circuit_id: int
    name: str


@dataclass(frozen=True)
class RaceResult:
    """Represents a race result for a driver."""
    result_id: int
    race_id: int
    driver_id: int
    constructor_id: int
    grid: int
    position: Optional[int]  # None = not classified
    position_order: int
    points: float
    laps: int
    status_id: int = 0


@dataclass(frozen=True)
class QualifyingResult:
    """Represents a qualifying result for a driver."""
    qualify_id: int
    race_id: int
    driver_id: int
    constructor_id: int
    position: int


@dataclass(frozen=True)
class DriverStanding:
    """Driver championship standing as of a race."""
    standings_id: int
    race_id: int
    driver_id: int
    points: float
    position: int
    wins: int


@dataclass(frozen=True)
class ConstructorStanding:
    """Constructor championship standing as of a race."""
    standings_id: int
    race_id: int
    constructor_id: int
    points: float
    position: int
    wins: int


@dataclass(frozen=True)
class PitStop:
    """Represents a single pit stop."""
    race_id: int
    driver_id: int
    stop: int
    lap: int
    milliseconds: int

    @property
    def seconds(self) -> float:
        return self.milliseconds / 1000


@dataclass(frozen=True)
class Status:
    """Represents a finishing status label."""
    status_id: int
    status: str


# Query outputs

@dataclass
class StandingEntry:
    """A standings row joined with the entity's display name."""
    entity_id: int
    name: str
    position: int
    points: float
    wins: int
    race_id: int


@dataclass
class ProgressionPoint:
    """Championship points of an entity after one round."""
    round: int
    race_name: str
    points: float


@dataclass
class ProgressionSeries:
    """Points progression of a driver or constructor across a season."""
    entity_id: int
    name: str
    color: str
    points: List[ProgressionPoint]

    @property
    def final_points(self) -> float:
        return self.points[-1].points if self.points else 0.0


@dataclass
class DriverStatLine:
    """All-time totals for a driver."""
    driver_id: int
    name: str
    wins: int = 0
    podiums: int = 0
    poles: int = 0
    points: float = 0.0
    races: int = 0

    def metric(self, name: str) -> float:
        return getattr(self, name)


@dataclass
class RaceWinner:
    """Winner of a single race."""
    race_name: str
    round: int
    driver_name: str
    constructor_name: str
    driver_id: Optional[int]


@dataclass
class DecadeDominance:
    """Race wins per constructor name within a decade bucket."""
    decade: str
    wins: Dict[str, int] = field(default_factory=dict)


@dataclass
class CircuitWinner:
    """Driver with the most wins at a circuit."""
    driver_id: int
    name: str
    wins: int


@dataclass
class CircuitSummary:
    """Aggregate history of a circuit."""
    circuit: Circuit
    total_races: int
    unique_winners: int
    most_wins: Optional[CircuitWinner]


@dataclass
class CareerStats:
    """Career totals for a driver."""
    driver_id: int
    name: str
    nationality: str
    races: int
    wins: int
    podiums: int
    poles: int
    points: float
    avg_finish: Optional[float]  # None = no classified finishes
    championships: List[int]


@dataclass
class GlobalStats:
    """Headline numbers for the whole dataset."""
    total_races: int
    total_drivers: int
    total_constructors: int
    total_circuits: int


@dataclass
class SeasonOverview:
    """Headline numbers for a single season."""
    year: int
    races: int
    drivers: int


@dataclass
class MatrixDriver:
    """Row header of the season results matrix."""
    driver_id: int
    name: str
    points: float


@dataclass
class MatrixCell:
    """A single driver/round cell of the season results matrix."""
    driver_id: int
    round: int
    position: Optional[int]
    points: float


@dataclass
class ResultsMatrix:
    """Season heatmap of finishing positions."""
    year: int
    races: List[Race]
    drivers: List[MatrixDriver]
    cells: List[MatrixCell]


@dataclass
class PitStopSummary:
    """Pit stop durations of a season within the displayable band."""
    year: int
    total_stops: int
    valid_stops: List[PitStop]
    mean_seconds: Optional[float]
    median_seconds: Optional[float]
    fastest: Optional[PitStop]
    fastest_driver: str = UNKNOWN

    @property
    def displayed_stops(self) -> int:
        return len(self.valid_stops)


@dataclass
class LoadEvent:
    """Status report of a single table load."""
    table: str
    ok: bool
    records: int
    message: str


@dataclass
class DashboardError(Exception):
    """Represents an error raised by the dashboard."""
    error_type: str
    message: str
    suggestions: List[str]
    recoverable: bool

    def __str__(self) -> str:
        """Return string representation of the error."""
        return self.message


class InvalidParameter(DashboardError):
    """Raised when a query is called with an unrecognized argument."""

    def __init__(self, message: str, suggestions: Optional[List[str]] = None):
        super().__init__(
            error_type="InvalidParameter",
            message=message,
            suggestions=suggestions or [],
            recoverable=False
        )
