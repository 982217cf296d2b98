from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from f1_dashboard.analyzer import AggregationEngine
from f1_dashboard.config import DashboardConfig
from f1_dashboard.data_loader import F1DataLoader


# A tiny slice of history: two 2023 races (listed out of round order),
# one 2022 race and one 1995 race whose winner drove for an unknown team.
SAMPLE_TABLES = {
    "circuits.csv": """\
        circuitId,circuitRef,name,location,country,lat,lng,alt,url
        1,monza,"Autodromo Nazionale di Monza",Monza,Italy,45.6156,9.28111,162,http://x
        2,silverstone,"Silverstone Circuit",Silverstone,UK,52.0786,-1.01694,153,http://x
        3,nowhere,"Never Raced Ring",Nowhere,Atlantis,0,0,0,http://x
        """,
    "drivers.csv": """\
        driverId,driverRef,number,code,forename,surname,dob,nationality,url
        10,max_verstappen,33,VER,Max,Verstappen,1997-09-30,Dutch,http://x
        20,hamilton,44,HAM,Lewis,Hamilton,1985-01-07,British,http://x
        30,alonso,14,ALO,Fernando,Alonso,1981-07-29,Spanish,http://x
        """,
    "constructors.csv": """\
        constructorId,constructorRef,name,nationality,url
        1,red_bull,Red Bull,Austrian,http://x
        2,mercedes,Mercedes,German,http://x
        3,aston_martin,Aston Martin,British,http://x
        """,
    "races.csv": """\
        raceId,year,round,circuitId,name,date,time,url
        2,2023,2,2,British Grand Prix,2023-07-09,14:00:00,http://x
        1,2023,1,1,Italian Grand Prix,2023-03-05,15:00:00,http://x
        3,2022,1,1,Italian Grand Prix,2022-09-11,13:00:00,http://x
        4,1995,1,2,British Grand Prix,1995-07-16,\\N,http://x
        """,
    "results.csv": """\
        resultId,raceId,driverId,constructorId,number,grid,position,positionText,positionOrder,points,laps,time,milliseconds,statusId
        1,1,10,1,33,1,1,1,1,25,53,1:30:00,5400000,1
        2,1,20,2,44,2,2,2,2,18,53,\\N,\\N,1
        3,1,30,3,14,3,\\N,R,3,0,20,\\N,\\N,5
        4,2,20,2,44,1,1,1,1,26,52,1:25:00,5100000,1
        5,2,10,1,33,2,2,2,2,18,52,\\N,\\N,1
        6,2,30,3,14,3,3,3,3,15,52,\\N,\\N,1
        7,3,10,1,1,1,1,1,1,25,51,1:20:00,4800000,1
        8,3,20,2,44,2,2,2,2,18,51,\\N,\\N,1
        10,4,20,2,6,2,\\N,R,2,0,10,\\N,\\N,5
        9,4,30,99,14,1,1,1,1,10,60,1:40:00,6000000,1
        """,
    "driver_standings.csv": """\
        driverStandingsId,raceId,driverId,points,position,positionText,wins
        1,1,10,25,1,1,1
        2,1,20,18,2,2,0
        3,1,30,5,3,3,0
        4,2,10,43,2,2,1
        5,2,20,44,1,1,1
        6,3,10,25,1,1,1
        7,3,20,18,2,2,0
        8,4,30,10,1,1,1
        """,
    "constructor_standings.csv": """\
        constructorStandingsId,raceId,constructorId,points,position,positionText,wins
        1,1,1,25,1,1,1
        2,1,2,18,2,2,0
        3,2,2,44,1,1,1
        4,2,1,43,2,2,1
        5,2,3,15,3,3,0
        """,
    "qualifying.csv": """\
        qualifyId,raceId,driverId,constructorId,number,position,q1,q2,q3
        1,1,10,1,33,1,1:20.000,1:19.500,1:19.000
        2,1,20,2,44,2,1:20.100,1:19.600,1:19.100
        """,
    "pit_stops.csv": """\
        raceId,driverId,stop,lap,time,duration,milliseconds
        1,10,1,20,14:30:00,22.000,22000
        1,20,1,21,14:31:00,25.500,25500
        2,10,1,15,14:20:00,0,0
        2,30,1,18,14:25:00,45.000,45000
        3,10,1,10,13:20:00,23.000,23000
        """,
    "status.csv": """\
        statusId,status
        1,Finished
        5,Engine
        """,
}


def write_tables(directory: Path, tables: dict) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    for file_name, text in tables.items():
        (directory / file_name).write_text(textwrap.dedent(text), encoding="utf-8")
    return directory


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    return write_tables(tmp_path / "data", SAMPLE_TABLES)


@pytest.fixture
def config(data_dir: Path) -> DashboardConfig:
    return DashboardConfig(data_dir=str(data_dir))


@pytest.fixture
def context(config: DashboardConfig):
    return F1DataLoader(config).load_all()


@pytest.fixture
def engine(context, config: DashboardConfig) -> AggregationEngine:
    return AggregationEngine(context, config)
