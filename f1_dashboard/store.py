"""
Record store and lookup indices.

The record store owns the normalized tables; the indices map surrogate ids
to the same record objects for constant-time joins.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from f1_dashboard.models import (
    UNKNOWN, Race, Driver, Constructor, Circuit, RaceResult, QualifyingResult,
    DriverStanding, ConstructorStanding, PitStop, Status
)


logger = logging.getLogger(__name__)


@dataclass
class RecordStore:
    """Normalized tables as loaded from the data source."""
    races: List[Race] = field(default_factory=list)
    drivers: List[Driver] = field(default_factory=list)
    constructors: List[Constructor] = field(default_factory=list)
    circuits: List[Circuit] = field(default_factory=list)
    results: List[RaceResult] = field(default_factory=list)
    driver_standings: List[DriverStanding] = field(default_factory=list)
    constructor_standings: List[ConstructorStanding] = field(default_factory=list)
    qualifying: List[QualifyingResult] = field(default_factory=list)
    pit_stops: List[PitStop] = field(default_factory=list)
    status: List[Status] = field(default_factory=list)

    def is_empty(self) -> bool:
        """True when no table holds any record."""
        return not any(getattr(self, name) for name in self.__dataclass_fields__)

    def counts(self) -> Dict[str, int]:
        return {name: len(getattr(self, name)) for name in self.__dataclass_fields__}


@dataclass
class Indices:
    """Id -> record lookup maps."""
    drivers: Dict[int, Driver]
    constructors: Dict[int, Constructor]
    races: Dict[int, Race]
    circuits: Dict[int, Circuit]

    def driver_name(self, driver_id: Optional[int]) -> str:
        driver = self.drivers.get(driver_id)
        return driver.full_name if driver else UNKNOWN

    def constructor_name(self, constructor_id: Optional[int]) -> str:
        constructor = self.constructors.get(constructor_id)
        return constructor.name if constructor else UNKNOWN


def build_indices(store: RecordStore) -> Indices:
    """
    Build lookup maps over a fully loaded record store.

    Args:
        store: Record store with all tables loaded and normalized

    Returns:
        Indices referencing the store's records
    """
    indices = Indices(
        drivers={d.driver_id: d for d in store.drivers},
        constructors={c.constructor_id: c for c in store.constructors},
        races={r.race_id: r for r in store.races},
        circuits={c.circuit_id: c for c in store.circuits}
    )
    logger.info(
        f"Lookup maps created: {len(indices.drivers)} drivers, "
        f"{len(indices.constructors)} constructors, {len(indices.races)} races, "
        f"{len(indices.circuits)} circuits"
    )
    return indices


class DashboardContext:
    """
    Loaded dataset handed to the query and presentation layers.

    The indices are always built from the store passed in, so they can never
    be stale relative to it.
    """

    def __init__(self, store: RecordStore):
        self._store = store
        self._indices = build_indices(store)

    @property
    def store(self) -> RecordStore:
        return self._store

    @property
    def indices(self) -> Indices:
        return self._indices
