"""
delay_cleaning.py

Turn loaded delay rows into the cleaned table every analysis works from.

Steps, in order:
1. keep only date, time, day, incident, min_delay
2. validate `day` against the 7 week-day names and make it an ordered
   categorical (Monday first, not alphabetical)
3. drop rows whose delay is not a number in [0, max_delay] minutes

Out-of-range delays are treated as data-entry errors and dropped, not
clamped. Nothing is imputed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

import numpy as np
import pandas as pd

from ttc_delay_report.delay_ingestion import check_required_columns
from ttc_delay_report.errors import CategoryError

logger = logging.getLogger(__name__)

CLEAN_COLUMNS = ["date", "time", "day", "incident", "min_delay"]

MAX_DELAY_MINUTES = 120


class Weekday(Enum):
    MONDAY = "Monday"
    TUESDAY = "Tuesday"
    WEDNESDAY = "Wednesday"
    THURSDAY = "Thursday"
    FRIDAY = "Friday"
    SATURDAY = "Saturday"
    SUNDAY = "Sunday"

    @classmethod
    def parse(cls, value: object) -> "Weekday":
        """Return the member for an exact week-day name, else CategoryError."""
        try:
            return cls(str(value).strip())
        except ValueError:
            raise CategoryError(f"not a week-day name: {value!r}") from None


WEEKDAY_ORDER = [d.value for d in Weekday]
WEEKDAY_DTYPE = pd.CategoricalDtype(categories=WEEKDAY_ORDER, ordered=True)


@dataclass(frozen=True)
class CleaningSummary:
    rows_in: int
    rows_out: int
    dropped_over_max: int
    dropped_negative: int
    dropped_non_numeric: int

    @property
    def rows_dropped(self) -> int:
        return self.rows_in - self.rows_out


def project_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Keep the five analysis columns, in canonical order."""
    check_required_columns(df)
    out = df[CLEAN_COLUMNS].copy()
    for col in ["date", "time", "incident"]:
        out[col] = out[col].astype("string")
    return out


def order_weekdays(df: pd.DataFrame) -> pd.DataFrame:
    """
    Convert `day` to WEEKDAY_DTYPE.

    Every value must be one of the 7 week-day names (surrounding
    whitespace ignored, case-sensitive). Unknown or missing names raise
    CategoryError instead of silently becoming NaN.
    """
    out = df.copy()
    days = out["day"].astype("string").str.strip()

    unknown: list[str] = []
    for value in days.dropna().unique():
        try:
            Weekday.parse(value)
        except CategoryError:
            unknown.append(str(value))
    n_missing = int(days.isna().sum())

    if unknown or n_missing:
        parts = []
        if unknown:
            parts.append(f"unknown week-day names {sorted(unknown)}")
        if n_missing:
            parts.append(f"{n_missing} missing week-day value(s)")
        raise CategoryError("; ".join(parts))

    out["day"] = days.astype(object).astype(WEEKDAY_DTYPE)
    return out


def _minutes_as_float(series: pd.Series) -> pd.Series:
    minutes = pd.to_numeric(series, errors="coerce")
    return pd.Series(
        minutes.to_numpy(dtype="float64", na_value=np.nan),
        index=series.index,
    )


def filter_delay_range(
    df: pd.DataFrame, max_delay: float = MAX_DELAY_MINUTES
) -> tuple[pd.DataFrame, CleaningSummary]:
    """
    Keep rows with 0 <= min_delay <= max_delay.

    Returns the filtered frame and a summary of what was dropped.
    Whole-minute delays are stored as int64.
    """
    minutes = _minutes_as_float(df["min_delay"])

    non_numeric = minutes.isna()
    negative = minutes < 0
    over_max = minutes > max_delay
    keep = ~(non_numeric | negative | over_max)

    out = df.loc[keep].copy()
    kept = minutes[keep]
    if (kept % 1 == 0).all():
        out["min_delay"] = kept.astype("int64")
    else:
        out["min_delay"] = kept
    out = out.reset_index(drop=True)

    summary = CleaningSummary(
        rows_in=len(df),
        rows_out=len(out),
        dropped_over_max=int(over_max.sum()),
        dropped_negative=int(negative.sum()),
        dropped_non_numeric=int(non_numeric.sum()),
    )
    return out, summary


def clean_delays_with_summary(
    df: pd.DataFrame, max_delay: float = MAX_DELAY_MINUTES
) -> tuple[pd.DataFrame, CleaningSummary]:
    """Project, order week-days and range-filter; also report drop counts."""
    projected = project_columns(df)
    ordered = order_weekdays(projected)
    cleaned, summary = filter_delay_range(ordered, max_delay=max_delay)

    logger.info("Cleaned delays: %d of %d rows kept", summary.rows_out, summary.rows_in)
    if summary.rows_dropped:
        logger.warning(
            "Dropped %d rows: %d over %s min, %d negative, %d non-numeric",
            summary.rows_dropped,
            summary.dropped_over_max,
            max_delay,
            summary.dropped_negative,
            summary.dropped_non_numeric,
        )
    return cleaned, summary


def clean_delays(df: pd.DataFrame, max_delay: float = MAX_DELAY_MINUTES) -> pd.DataFrame:
    cleaned, _ = clean_delays_with_summary(df, max_delay=max_delay)
    return cleaned
