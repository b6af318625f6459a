"""
delay_ingestion.py

Read a raw TTC bus delay file and standardize its headers.

Key features:
- Supports the yearly .csv exports and the older .xlsx workbooks.
- Normalizes header spelling ("Min Delay", " Incident ", "Report Date")
  to snake_case so later stages can reference columns uniformly.
- Maps the pre-2020 column names (Report Date, Delay, Gap, Incident Type)
  onto the current ones.
- Checks that the columns the report needs are present.

OUTPUTS
-------
load_raw_delays(path) -> DataFrame, all columns as pandas "string":
    date       ("yyyy-mm-dd")
    route
    time       ("hh:mm" or "hh:mm:ss")
    day        (week-day name)
    location
    incident   (reason category, e.g. "Mechanical")
    min_delay  (minutes, still text at this point)
    min_gap
    direction
    vehicle
"""

from __future__ import annotations

import logging
from pathlib import Path

import pandas as pd

from ttc_delay_report.errors import SchemaError

logger = logging.getLogger(__name__)

# Columns the cleaner and aggregator cannot do without.
REQUIRED_COLUMNS = ["date", "time", "day", "incident", "min_delay"]

# canonical name -> older spellings seen in TTC exports (already normalized)
COLUMN_ALIASES: dict[str, list[str]] = {
    "date": ["report_date", "incident_date", "delay_date"],
    "route": ["route_number", "line", "route_name"],
    "time": ["report_time", "incident_time"],
    "incident": ["incident_type", "incident_type_description"],
    "min_delay": ["delay", "delay_min", "delay_minutes"],
    "min_gap": ["gap", "gap_min", "gap_minutes"],
    "direction": ["bound", "dir"],
}

EXCEL_SUFFIXES = {".xlsx", ".xls", ".xlsm"}


# ---------------------------------------------------------------------
# Helpers: header normalization, picking columns, file readers
# ---------------------------------------------------------------------


def normalize_headers(df: pd.DataFrame) -> pd.DataFrame:
    """
    Convert column names to snake_case, lowercase, no punctuation.
    """
    df = df.copy()
    df.columns = (
        df.columns.astype(str)
        .str.strip()
        .str.lower()
        .str.replace("[^a-z0-9_]+", "_", regex=True)
        .str.strip("_")
    )
    return df


def _pick_exact(df: pd.DataFrame, candidates: list[str]) -> str | None:
    """
    Return the first column in df.columns that exactly matches any candidate.
    """
    for c in candidates:
        if c in df.columns:
            return c
    return None


def _apply_aliases(df: pd.DataFrame) -> pd.DataFrame:
    """
    Rename legacy column names to the canonical ones, but only where the
    canonical column is not already present.
    """
    renames = {}
    for canonical, candidates in COLUMN_ALIASES.items():
        if canonical in df.columns:
            continue
        found = _pick_exact(df, candidates)
        if found is not None and found not in renames:
            renames[found] = canonical
    if renames:
        logger.debug("Renaming legacy columns: %s", renames)
        df = df.rename(columns=renames)
    return df


def _read_delay_csv(path: Path) -> pd.DataFrame:
    """
    CSV reader: keep all columns as string (so nothing gets silently cast).
    """
    return pd.read_csv(
        path,
        dtype="string",
        encoding="utf-8-sig",
        low_memory=False,
    )


def _read_delay_excel(path: Path) -> pd.DataFrame:
    """
    Excel reader: keep all columns as string.
    Requires openpyxl in your environment.
    """
    return pd.read_excel(
        path,
        dtype="string",
        engine="openpyxl",
    )


def _strip_excel_time(series: pd.Series) -> pd.Series:
    # Excel date cells come back as "2022-01-01 00:00:00"
    return series.astype("string").str.strip().str.split(" ", n=1).str[0]


def check_required_columns(df: pd.DataFrame, where: str = "delay data") -> None:
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise SchemaError(missing, where=where)


# ---------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------


def load_raw_delays(path: Path | str) -> pd.DataFrame:
    """
    Load one raw delay file into a DataFrame with normalized headers.

    Raises
    ------
    FileNotFoundError / OSError
        The file does not exist or cannot be read.
    SchemaError
        One of REQUIRED_COLUMNS is absent after normalization.
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"raw delay file not found: {path}")

    if path.suffix.lower() in EXCEL_SUFFIXES:
        raw = _read_delay_excel(path)
    else:
        raw = _read_delay_csv(path)

    df = _apply_aliases(normalize_headers(raw))
    check_required_columns(df, where=str(path))

    if path.suffix.lower() in EXCEL_SUFFIXES:
        df["date"] = _strip_excel_time(df["date"])

    logger.info("Loaded %d delay rows from %s", len(df), path)
    return df
