"""
delay_features.py

Aggregate cleaned delay rows into the tables behind each report chart.

Every function is a pure transform of the cleaned table: inputs are never
modified, each call returns a new frame (or a scalar).
"""

from __future__ import annotations

import numpy as np
import pandas as pd

from ttc_delay_report.delay_cleaning import WEEKDAY_DTYPE, WEEKDAY_ORDER
from ttc_delay_report.errors import FormatError

COUNT_COL = "n_incidents"
MINUTES_COL = "total_delay_minutes"


# ---------------------------------------------------------------------
# Date parts
# ---------------------------------------------------------------------


def split_date(value) -> tuple[str, str, str]:
    """
    Split "yyyy-mm-dd" on the literal "-" into (year, month, day_num).
    No date parsing happens; anything other than exactly 3 parts is a
    FormatError.
    """
    if value is None or pd.isna(value):
        raise FormatError("missing date value")
    parts = str(value).split("-")
    if len(parts) != 3:
        raise FormatError(f"date {value!r} does not split into year-month-day")
    year, month, day_num = parts
    return year, month, day_num


def add_date_parts(delays: pd.DataFrame) -> pd.DataFrame:
    """
    Return a copy with `month` ("mm") and `day_num` ("dd") split off `date`.
    The year is constant across the dataset and is dropped.

    Every value goes through split_date(), so the first malformed date
    raises its FormatError.
    """
    d = delays.copy()
    if d.empty:
        d["month"] = pd.Series(dtype="string")
        d["day_num"] = pd.Series(dtype="string")
        return d

    parts = pd.DataFrame(
        [split_date(value) for value in d["date"].tolist()],
        columns=["year", "month", "day_num"],
        index=d.index,
    )
    d["month"] = parts["month"].astype("string")
    d["day_num"] = parts["day_num"].astype("string")
    return d


def _with_month(delays: pd.DataFrame) -> pd.DataFrame:
    if "month" in delays.columns:
        return delays
    return add_date_parts(delays)


# ---------------------------------------------------------------------
# Scalars
# ---------------------------------------------------------------------


def total_delays(delays: pd.DataFrame) -> int:
    return int(len(delays))


def total_delay_minutes(delays: pd.DataFrame):
    """Sum of min_delay; 0 for an empty table."""
    if delays.empty:
        return 0
    total = pd.to_numeric(delays["min_delay"], errors="coerce").sum()
    return total.item() if hasattr(total, "item") else total


# ---------------------------------------------------------------------
# One-key group-bys
# ---------------------------------------------------------------------


def _count_by(delays: pd.DataFrame, key: str, sort: bool) -> pd.DataFrame:
    return (
        delays.groupby(key, sort=sort, dropna=False)
        .size()
        .reset_index(name=COUNT_COL)
    )


def _sum_by(delays: pd.DataFrame, key: str, sort: bool) -> pd.DataFrame:
    return (
        delays.groupby(key, sort=sort, dropna=False)["min_delay"]
        .sum()
        .reset_index(name=MINUTES_COL)
    )


def frequency_by_incident(delays: pd.DataFrame) -> pd.DataFrame:
    """
    Number of delays per incident type, in order of first appearance.

    Returns:
      - incident
      - n_incidents
    """
    return _count_by(delays, "incident", sort=False)


def severity_by_incident(delays: pd.DataFrame) -> pd.DataFrame:
    """Total minutes of delay per incident type, first-appearance order."""
    return _sum_by(delays, "incident", sort=False)


def frequency_by_month(delays: pd.DataFrame) -> pd.DataFrame:
    """Number of delays per month key "01".."12", ascending."""
    return _count_by(_with_month(delays), "month", sort=True)


def severity_by_month(delays: pd.DataFrame) -> pd.DataFrame:
    return _sum_by(_with_month(delays), "month", sort=True)


def frequency_by_time(delays: pd.DataFrame) -> pd.DataFrame:
    """
    Number of delays per reported time string. Each distinct "hh:mm" is its
    own bucket; nothing is binned into hours.
    """
    return _count_by(delays, "time", sort=True)


def frequency_by_day(delays: pd.DataFrame) -> pd.DataFrame:
    """
    Day-of-week profile, always 7 rows Monday..Sunday (zero-filled).

    Returns:
      - day          (ordered categorical)
      - n_incidents
    """
    counts = (
        delays["day"].astype(object).value_counts().reindex(WEEKDAY_ORDER, fill_value=0)
    )
    return pd.DataFrame(
        {
            "day": pd.Categorical(WEEKDAY_ORDER, dtype=WEEKDAY_DTYPE),
            COUNT_COL: counts.to_numpy(dtype="int64"),
        }
    )


# ---------------------------------------------------------------------
# Incident x day facets
# ---------------------------------------------------------------------


def _incident_day_grid(
    delays: pd.DataFrame, incidents: list[str], out_col: str
) -> pd.DataFrame:
    """
    Full incident x weekday grid for the incidents in `incidents`
    (in that order), zero where a combination never occurs.
    """
    incidents = list(incidents)
    grid = pd.MultiIndex.from_product([incidents, WEEKDAY_ORDER], names=["incident", "day"])

    subset = delays[delays["incident"].isin(incidents)]
    if subset.empty:
        values = pd.Series(0, index=grid, dtype="int64")
    else:
        keys = [
            subset["incident"].astype(object).rename("incident"),
            subset["day"].astype(object).rename("day"),
        ]
        if out_col == COUNT_COL:
            grouped = subset.groupby(keys).size()
        else:
            grouped = subset["min_delay"].groupby(keys).sum()
        values = grouped.reindex(grid, fill_value=0)

    out = values.reset_index(name=out_col)
    out["day"] = out["day"].astype(WEEKDAY_DTYPE)
    return out


def frequency_by_incident_day(delays: pd.DataFrame, incidents: list[str]) -> pd.DataFrame:
    """
    Number of delays per (incident, day) for the allow-listed incidents.

    Returns:
      - incident     (allow-list order)
      - day          (Monday..Sunday within each incident)
      - n_incidents
    """
    return _incident_day_grid(delays, incidents, COUNT_COL)


def severity_by_incident_day(delays: pd.DataFrame, incidents: list[str]) -> pd.DataFrame:
    """Total minutes of delay per (incident, day) for the allow-listed incidents."""
    return _incident_day_grid(delays, incidents, MINUTES_COL)


# ---------------------------------------------------------------------
# Headline numbers
# ---------------------------------------------------------------------


def build_overall_kpis(delays: pd.DataFrame) -> dict:
    """
    High-level metrics printed with the report.

    KPIs:
      total_incidents
      total_delay_minutes
      avg_delay_minutes
      total_delay_hours
      top_incident
    """
    if delays.empty:
        return {
            "total_incidents": 0,
            "total_delay_minutes": 0,
            "avg_delay_minutes": 0.0,
            "total_delay_hours": 0.0,
            "top_incident": None,
        }

    minutes = pd.to_numeric(delays["min_delay"], errors="coerce")
    total_minutes = total_delay_minutes(delays)

    # most frequent incident type
    incidents = delays["incident"].dropna()
    top_incident = incidents.value_counts().idxmax() if incidents.size > 0 else None

    return {
        "total_incidents": total_delays(delays),
        "total_delay_minutes": total_minutes,
        "avg_delay_minutes": round(float(np.nanmean(minutes)), 2),
        "total_delay_hours": round(float(np.nansum(minutes)) / 60.0, 1),
        "top_incident": top_incident,
    }
