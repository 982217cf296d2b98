"""
F1 data loader module.

Reads the historical F1 CSV tables from a local directory or over HTTP,
normalizes them into typed records and builds the dashboard context.

Each table is an independent unit of work: a table that cannot be fetched
or parsed degrades to an empty table instead of failing the whole load.
"""

import io
import math
import time
import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple
import pandas as pd
import requests

from f1_dashboard.config import DashboardConfig
from f1_dashboard.models import (
    Race, Circuit, Driver, Constructor, RaceResult, QualifyingResult,
    DriverStanding, ConstructorStanding, PitStop, Status, LoadEvent
)
from f1_dashboard.store import RecordStore, DashboardContext


# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


NULL_SENTINEL = "\\N"

StatusCallback = Callable[[LoadEvent], None]


class SourceUnavailable(Exception):
    """A table could not be read from its source."""


def _to_int(value: Optional[str]) -> int:
    """Parse a required integer field."""
    if value is None:
        raise ValueError("missing integer value")
    value = value.strip()
    try:
        return int(value)
    except ValueError:
        pass
    try:
        return int(float(value))
    except OverflowError as e:
        raise ValueError(f"integer out of range: {value}") from e


def _to_optional_int(value: Optional[str]) -> Optional[int]:
    """Parse a nullable integer; the sentinel and any placeholder map to None."""
    if value is None or value.strip() in ("", NULL_SENTINEL):
        return None
    try:
        return _to_int(value)
    except ValueError:
        return None


def _to_int_or(value: Optional[str], default: int = 0) -> int:
    parsed = _to_optional_int(value)
    return default if parsed is None else parsed


def _to_float_or(value: Optional[str], default: float = 0.0) -> float:
    if value is None or value.strip() in ("", NULL_SENTINEL):
        return default
    try:
        parsed = float(value)
    except ValueError:
        return default
    return parsed if math.isfinite(parsed) else default


def _text(row: Dict[str, Any], key: str) -> str:
    value = row.get(key)
    if value is None or value == NULL_SENTINEL:
        return ""
    return value


def _require(row: Dict[str, Any], fields: List[str], table: str) -> None:
    for f in fields:
        if row.get(f) is None:
            raise ValueError(f"{table} row missing required field: {f}")


class F1DataLoader:
    """
    Loads the F1 CSV tables and normalizes them into a record store.

    Tables are fetched concurrently; normalization and index building start
    only after every fetch has settled.
    """

    def __init__(self, config: Optional[DashboardConfig] = None):
        """
        Initialize F1 data loader.

        Args:
            config: Dashboard configuration (defaults are used if None)
        """
        self.config = config if config else DashboardConfig()
        self.events: List[LoadEvent] = []

    def _make_request(self, url: str) -> str:
        """
        Make HTTP request with retry logic and error handling.

        Args:
            url: Absolute URL of a CSV file

        Returns:
            Response body as text

        Raises:
            requests.RequestException: If request fails after retries
        """
        retry_count = 0
        last_exception = None

        while retry_count < self.config.max_retries:
            try:
                response = requests.get(url, timeout=self.config.request_timeout)
                response.raise_for_status()
                return response.content.decode("utf-8-sig")

            except requests.Timeout as e:
                last_exception = e
                retry_count += 1
                logger.warning(f"Request timeout (attempt {retry_count}/{self.config.max_retries}): {url}")
                if retry_count < self.config.max_retries:
                    # Exponential backoff
                    time.sleep(2 ** retry_count)

            except requests.HTTPError as e:
                # Don't retry on client errors (4xx)
                if e.response is not None and 400 <= e.response.status_code < 500:
                    logger.error(f"Client error {e.response.status_code}: {url}")
                    raise
                last_exception = e
                retry_count += 1
                logger.warning(f"Server error (attempt {retry_count}/{self.config.max_retries}): {url} - {e}")
                if retry_count < self.config.max_retries:
                    time.sleep(2 ** retry_count)

            except requests.RequestException as e:
                last_exception = e
                retry_count += 1
                logger.warning(f"Request failed (attempt {retry_count}/{self.config.max_retries}): {url} - {e}")
                if retry_count < self.config.max_retries:
                    time.sleep(2 ** retry_count)

        # All retries failed
        logger.error(f"Request failed after {self.config.max_retries} attempts: {url}")
        raise last_exception

    def _read_source(self, table: str) -> str:
        """
        Read the raw CSV text of a table.

        Raises:
            SourceUnavailable: If the table is unknown, missing or unreadable
        """
        file_name = self.config.table_files.get(table)
        if file_name is None:
            raise SourceUnavailable(f"No source configured for table '{table}'")

        if self.config.base_url:
            url = f"{self.config.base_url.rstrip('/')}/{file_name}"
            try:
                return self._make_request(url)
            except (requests.RequestException, UnicodeDecodeError) as e:
                raise SourceUnavailable(f"Could not fetch {url}: {e}") from e

        path = Path(self.config.data_dir) / file_name
        try:
            return path.read_text(encoding="utf-8-sig")
        except (OSError, UnicodeDecodeError) as e:
            raise SourceUnavailable(f"Could not read {path}: {e}") from e

    def load_table(self, table: str) -> List[Dict[str, str]]:
        """
        Load a single table as raw field -> string rows.

        Args:
            table: Table name (a key of ``config.table_files``)

        Returns:
            List of raw rows (empty list if the source is unavailable)
        """
        rows, _ = self._load_unit(table)
        return rows

    def _load_unit(self, table: str) -> Tuple[List[Dict[str, str]], LoadEvent]:
        try:
            text = self._read_source(table)
            frame = pd.read_csv(io.StringIO(text), dtype=str, keep_default_na=False)
            rows = frame.to_dict("records")
        except (SourceUnavailable, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
            logger.warning(f"Could not load {table}: {e}")
            return [], LoadEvent(table=table, ok=False, records=0, message=str(e))

        logger.info(f"Loaded {table}: {len(rows)} records")
        return rows, LoadEvent(table=table, ok=True, records=len(rows), message=f"Loaded {table}")

    def load_all(self, status_callback: Optional[StatusCallback] = None) -> DashboardContext:
        """
        Load every configured table and build the dashboard context.

        Args:
            status_callback: Called with a LoadEvent as each table settles

        Returns:
            DashboardContext with normalized tables and lookup maps
        """
        self.events = []
        raw: Dict[str, List[Dict[str, str]]] = {}
        tables = list(self.config.table_files)

        with ThreadPoolExecutor(max_workers=max(1, self.config.max_workers)) as pool:
            futures = {pool.submit(self._load_unit, table): table for table in tables}
            for future in as_completed(futures):
                rows, event = future.result()
                raw[futures[future]] = rows
                self.events.append(event)
                if status_callback:
                    status_callback(event)

        store = RecordStore()
        for table in tables:
            if table in self._PARSERS:
                setattr(store, table, self.normalize(table, raw.get(table, [])))

        logger.info("Data processing complete")
        return DashboardContext(store)

    def normalize(self, table: str, rows: List[Dict[str, str]]) -> List[Any]:
        """
        Convert raw rows of a table into typed records.

        Rows whose identity fields cannot be parsed are skipped.

        Args:
            table: Table name
            rows: Raw rows from ``load_table``

        Returns:
            List of typed records in source order
        """
        parser = self._PARSERS.get(table)
        if parser is None:
            raise ValueError(f"Unknown table: {table}")

        records = []
        skipped = 0
        for row in rows:
            try:
                records.append(parser(self, row))
            except (KeyError, ValueError, TypeError) as e:
                skipped += 1
                logger.debug(f"Skipping {table} row: {e}")
        if skipped:
            logger.warning(f"Skipped {skipped} malformed {table} rows")
        return records

    # Helper methods for parsing CSV rows

    def _parse_race(self, row: Dict[str, str]) -> Race:
        _require(row, ["raceId", "year", "round", "circuitId"], "races")
        return Race(
            race_id=_to_int(row["raceId"]),
            year=_to_int(row["year"]),
            round=_to_int(row["round"]),
            circuit_id=_to_int(row["circuitId"]),
            name=_text(row, "name")
        )

    def _parse_driver(self, row: Dict[str, str]) -> Driver:
        _require(row, ["driverId"], "drivers")
        return Driver(
            driver_id=_to_int(row["driverId"]),
            forename=_text(row, "forename"),
            surname=_text(row, "surname"),
            nationality=_text(row, "nationality"),
            code=_text(row, "code")
        )

    def _parse_constructor(self, row: Dict[str, str]) -> Constructor:
        _require(row, ["constructorId"], "constructors")
        return Constructor(
            constructor_id=_to_int(row["constructorId"]),
            name=_text(row, "name"),
            nationality=_text(row, "nationality")
        )

    def _parse_circuit(self, row: Dict[str, str]) -> Circuit:
        _require(row, ["circuitId"], "circuits")
        return Circuit(
            circuit_id=_to_int(row["circuitId"]),
            name=_text(row, "name"),
            location=_text(row, "location"),
            country=_text(row, "country"),
            lat=_to_float_or(row.get("lat")),
            lng=_to_float_or(row.get("lng"))
        )

    def _parse_race_result(self, row: Dict[str, str]) -> RaceResult:
        _require(row, ["resultId", "raceId", "driverId"], "results")
        return RaceResult(
            result_id=_to_int(row["resultId"]),
            race_id=_to_int(row["raceId"]),
            driver_id=_to_int(row["driverId"]),
            constructor_id=_to_int_or(row.get("constructorId")),
            grid=_to_int_or(row.get("grid")),
            position=_to_optional_int(row.get("position")),
            position_order=_to_int_or(row.get("positionOrder")),
            points=_to_float_or(row.get("points")),
            laps=_to_int_or(row.get("laps")),
            status_id=_to_int_or(row.get("statusId"))
        )

    def _parse_driver_standing(self, row: Dict[str, str]) -> DriverStanding:
        _require(row, ["raceId", "driverId", "position"], "driver_standings")
        return DriverStanding(
            standings_id=_to_int_or(row.get("driverStandingsId")),
            race_id=_to_int(row["raceId"]),
            driver_id=_to_int(row["driverId"]),
            points=_to_float_or(row.get("points")),
            position=_to_int(row["position"]),
            wins=_to_int_or(row.get("wins"))
        )

    def _parse_constructor_standing(self, row: Dict[str, str]) -> ConstructorStanding:
        _require(row, ["raceId", "constructorId", "position"], "constructor_standings")
        return ConstructorStanding(
            standings_id=_to_int_or(row.get("constructorStandingsId")),
            race_id=_to_int(row["raceId"]),
            constructor_id=_to_int(row["constructorId"]),
            points=_to_float_or(row.get("points")),
            position=_to_int(row["position"]),
            wins=_to_int_or(row.get("wins"))
        )

    def _parse_qualifying_result(self, row: Dict[str, str]) -> QualifyingResult:
        _require(row, ["qualifyId", "raceId", "driverId"], "qualifying")
        return QualifyingResult(
            qualify_id=_to_int(row["qualifyId"]),
            race_id=_to_int(row["raceId"]),
            driver_id=_to_int(row["driverId"]),
            constructor_id=_to_int_or(row.get("constructorId")),
            position=_to_int_or(row.get("position"))
        )

    def _parse_pit_stop(self, row: Dict[str, str]) -> PitStop:
        _require(row, ["raceId", "driverId"], "pit_stops")
        return PitStop(
            race_id=_to_int(row["raceId"]),
            driver_id=_to_int(row["driverId"]),
            stop=_to_int_or(row.get("stop")),
            lap=_to_int_or(row.get("lap")),
            milliseconds=_to_int_or(row.get("milliseconds"))
        )

    def _parse_status(self, row: Dict[str, str]) -> Status:
        _require(row, ["statusId"], "status")
        return Status(status_id=_to_int(row["statusId"]), status=_text(row, "status"))

    _PARSERS = {
        "races": _parse_race,
        "drivers": _parse_driver,
        "constructors": _parse_constructor,
        "circuits": _parse_circuit,
        "results": _parse_race_result,
        "driver_standings": _parse_driver_standing,
        "constructor_standings": _parse_constructor_standing,
        "qualifying": _parse_qualifying_result,
        "pit_stops": _parse_pit_stop,
        "status": _parse_status,
    }
