"""
persistence.py

Write the cleaned delay table to a CSV snapshot and read it back.
"""

from __future__ import annotations

import logging
from pathlib import Path

import pandas as pd

from ttc_delay_report.delay_cleaning import CLEAN_COLUMNS, order_weekdays
from ttc_delay_report.errors import SchemaError

logger = logging.getLogger(__name__)


def write_clean_snapshot(df: pd.DataFrame, path: Path | str) -> Path:
    """
    Serialize the cleaned table to CSV (UTF-8, header, no index), columns
    date,time,day,incident,min_delay in that order. Overwrites `path`.
    """
    missing = [c for c in CLEAN_COLUMNS if c not in df.columns]
    if missing:
        raise SchemaError(missing, where="cleaned delay table")

    out_file = Path(path).resolve()
    out_file.parent.mkdir(parents=True, exist_ok=True)
    df[CLEAN_COLUMNS].to_csv(out_file, index=False, encoding="utf-8")

    logger.info("Wrote %d cleaned rows to %s", len(df), out_file)
    return out_file


def read_clean_snapshot(path: Path | str) -> pd.DataFrame:
    """
    Load a snapshot written by write_clean_snapshot() with the cleaned
    table's dtypes restored (string columns, ordered `day`, numeric
    `min_delay`).

    Raises CategoryError if a `day` value is not one of the 7 week-day
    names, e.g. after the file was edited by hand.
    """
    df = pd.read_csv(
        path,
        dtype={
            "date": "string",
            "time": "string",
            "day": "string",
            "incident": "string",
        },
        encoding="utf-8",
    )
    missing = [c for c in CLEAN_COLUMNS if c not in df.columns]
    if missing:
        raise SchemaError(missing, where=str(path))

    # unknown week-day names raise CategoryError, same as when cleaning
    df = order_weekdays(df[CLEAN_COLUMNS])
    if df.empty:
        df["min_delay"] = df["min_delay"].astype("int64")
    return df
