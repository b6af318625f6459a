"""
Pytest configuration file with fixtures and shared test setup.
Raw frames mimic what load_raw_delays() returns: normalized headers,
every column as pandas "string".
"""

from pathlib import Path

import pandas as pd
import pytest

RAW_HEADER = [
    "Date",
    "Route",
    "Time",
    "Day",
    "Location",
    "Incident",
    "Min Delay",
    "Min Gap",
    "Direction",
    "Vehicle",
]


def make_raw(rows: list[dict]) -> pd.DataFrame:
    """Build a loaded-style raw frame, filling unused columns."""
    defaults = {
        "date": "2022-01-03",
        "route": "36",
        "time": "07:30",
        "day": "Monday",
        "location": "FINCH STATION",
        "incident": "Mechanical",
        "min_delay": "10",
        "min_gap": "20",
        "direction": "E",
        "vehicle": "8531",
    }
    records = [{**defaults, **row} for row in rows]
    return pd.DataFrame(records, columns=list(defaults), dtype="string")


def write_raw_csv(path: Path, rows: list[list[str]], header: list[str] = RAW_HEADER) -> Path:
    lines = [",".join(header)] + [",".join(r) for r in rows]
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


@pytest.fixture
def scenario_raw() -> pd.DataFrame:
    """One out-of-range delay plus two valid ones."""
    return make_raw(
        [
            {"min_delay": "130", "day": "Tuesday", "incident": "Mechanical"},
            {
                "date": "2022-07-15",
                "min_delay": "10",
                "day": "Friday",
                "incident": "Mechanical",
            },
            {
                "date": "2022-08-21",
                "min_delay": "45",
                "day": "Sunday",
                "incident": "Diversion",
            },
        ]
    )


@pytest.fixture
def week_raw() -> pd.DataFrame:
    """A small but varied week of delays across several incident types."""
    return make_raw(
        [
            {"date": "2022-01-03", "time": "06:15", "day": "Monday", "incident": "Mechanical", "min_delay": "12"},
            {"date": "2022-01-04", "time": "07:30", "day": "Tuesday", "incident": "Operations - Operator", "min_delay": "20"},
            {"date": "2022-02-05", "time": "07:30", "day": "Saturday", "incident": "Collision - TTC", "min_delay": "35"},
            {"date": "2022-02-06", "time": "18:05", "day": "Sunday", "incident": "Diversion", "min_delay": "118"},
            {"date": "2022-03-07", "time": "06:15", "day": "Monday", "incident": "Mechanical", "min_delay": "8"},
            {"date": "2022-03-09", "time": "12:00", "day": "Wednesday", "incident": "Mechanical", "min_delay": "200"},
            {"date": "2022-12-30", "time": "23:59", "day": "Friday", "incident": "Security", "min_delay": "5"},
            {"date": "2022-12-31", "time": "00:10", "day": "Saturday", "incident": "Operations - Operator", "min_delay": "0"},
        ]
    )
