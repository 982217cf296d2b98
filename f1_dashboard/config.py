"""Configuration for F1 Analytics Dashboard."""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple


# Table name -> CSV file name, in load order (results last)
TABLE_FILES: Dict[str, str] = {
    "races": "races.csv",
    "drivers": "drivers.csv",
    "constructors": "constructors.csv",
    "circuits": "circuits.csv",
    "status": "status.csv",
    "driver_standings": "driver_standings.csv",
    "constructor_standings": "constructor_standings.csv",
    "qualifying": "qualifying.csv",
    "pit_stops": "pit_stops.csv",
    "results": "results.csv",
}

# (label, first year, last year) - the 2020s bucket stops at 2024
DECADES: List[Tuple[str, int, int]] = [
    ("1950s", 1950, 1959),
    ("1960s", 1960, 1969),
    ("1970s", 1970, 1979),
    ("1980s", 1980, 1989),
    ("1990s", 1990, 1999),
    ("2000s", 2000, 2009),
    ("2010s", 2010, 2019),
    ("2020s", 2020, 2024),
]

ENTITY_COLORS: List[str] = [
    "#E10600", "#00D2BE", "#0600EF", "#FF8700", "#006F62",
    "#005AFF", "#900000", "#2B4562", "#B6BABD", "#F596C8",
    "#9B0000", "#0072C6", "#F58020", "#52E252", "#FFF500",
]


@dataclass
class DashboardConfig:
    """
    Runtime settings for loading and querying the dataset.

    Either ``data_dir`` or ``base_url`` names the source of the CSV tables;
    ``base_url`` wins when both are set.
    """
    data_dir: str = "data"
    base_url: Optional[str] = None
    table_files: Dict[str, str] = field(default_factory=lambda: dict(TABLE_FILES))
    request_timeout: int = 10  # seconds
    max_retries: int = 3
    max_workers: int = 4
    pit_stop_min_seconds: float = 18.0
    pit_stop_max_seconds: float = 40.0
    progression_limit: int = 10
    matrix_limit: int = 20
    circuit_winners_limit: int = 8
    decades: List[Tuple[str, int, int]] = field(default_factory=lambda: list(DECADES))
