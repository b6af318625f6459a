import pandas as pd
import pytest

from conftest import make_raw
from ttc_delay_report.delay_cleaning import WEEKDAY_ORDER, clean_delays
from ttc_delay_report.delay_features import (
    add_date_parts,
    build_overall_kpis,
    frequency_by_day,
    frequency_by_incident,
    frequency_by_incident_day,
    frequency_by_month,
    frequency_by_time,
    severity_by_incident,
    severity_by_incident_day,
    severity_by_month,
    split_date,
    total_delay_minutes,
    total_delays,
)
from ttc_delay_report.errors import FormatError


@pytest.fixture
def clean(week_raw) -> pd.DataFrame:
    return clean_delays(week_raw)


def test_split_date() -> None:
    assert split_date("2022-07-15") == ("2022", "07", "15")


@pytest.mark.parametrize("bad", ["2022/07/15", "2022-07", "2022-07-15-01", "", None])
def test_split_date_rejects_malformed(bad) -> None:
    with pytest.raises(FormatError):
        split_date(bad)


def test_add_date_parts_adds_month_and_day_num(clean) -> None:
    dated = add_date_parts(clean)

    assert dated["month"].tolist()[:2] == ["01", "01"]
    assert dated["day_num"].tolist()[:2] == ["03", "04"]
    assert "year" not in dated.columns
    # new frame, input untouched
    assert "month" not in clean.columns


def test_add_date_parts_fails_on_bad_date(clean) -> None:
    broken = clean.copy()
    broken.loc[2, "date"] = "2022/02/05"
    with pytest.raises(FormatError) as exc_info:
        add_date_parts(broken)
    assert "2022/02/05" in str(exc_info.value)


def test_scenario_totals(scenario_raw) -> None:
    clean = clean_delays(scenario_raw)
    assert total_delays(clean) == 2
    assert total_delay_minutes(clean) == 55
    freq = frequency_by_incident(clean).set_index("incident")["n_incidents"]
    assert freq["Mechanical"] == 1


def test_frequency_by_incident_keeps_first_appearance_order(clean) -> None:
    freq = frequency_by_incident(clean)
    assert freq["incident"].tolist() == [
        "Mechanical",
        "Operations - Operator",
        "Collision - TTC",
        "Diversion",
        "Security",
    ]
    assert freq["n_incidents"].tolist() == [2, 2, 1, 1, 1]


def test_incident_sums_add_up_to_grand_total(clean) -> None:
    sev = severity_by_incident(clean)
    assert sev["total_delay_minutes"].sum() == total_delay_minutes(clean)
    assert sev.set_index("incident").loc["Diversion", "total_delay_minutes"] == 118


def test_month_groups_are_two_digit_and_ascending(clean) -> None:
    freq = frequency_by_month(clean)
    assert freq["month"].tolist() == ["01", "02", "03", "12"]
    assert freq["n_incidents"].tolist() == [2, 2, 1, 2]

    sev = severity_by_month(add_date_parts(clean))
    assert sev["total_delay_minutes"].tolist() == [32, 153, 8, 5]


def test_frequency_by_day_is_calendar_ordered_and_zero_filled(clean) -> None:
    prof = frequency_by_day(clean)

    assert prof["day"].astype(str).tolist() == WEEKDAY_ORDER
    assert prof["n_incidents"].tolist() == [2, 1, 0, 0, 1, 2, 1]


def test_frequency_by_time_uses_raw_time_strings(clean) -> None:
    freq = frequency_by_time(clean)
    assert freq["time"].tolist() == ["00:10", "06:15", "07:30", "18:05", "23:59"]
    assert freq["n_incidents"].tolist() == [1, 2, 2, 1, 1]


def test_incident_day_facets_use_allow_list_order(clean) -> None:
    incidents = ["Collision - TTC", "Mechanical", "Operations - Operator"]
    grid = frequency_by_incident_day(clean, incidents)

    assert list(grid.columns) == ["incident", "day", "n_incidents"]
    assert len(grid) == 3 * 7
    assert grid["incident"].drop_duplicates().tolist() == incidents
    mech = grid[grid["incident"] == "Mechanical"]
    assert mech["day"].astype(str).tolist() == WEEKDAY_ORDER
    assert mech["n_incidents"].tolist() == [2, 0, 0, 0, 0, 0, 0]
    assert grid["n_incidents"].sum() == 5


def test_severity_facets_sum_minutes(clean) -> None:
    incidents = ["Diversion", "Mechanical", "Operations - Operator"]
    grid = severity_by_incident_day(clean, incidents)

    ops = grid[grid["incident"] == "Operations - Operator"]
    by_day = dict(zip(ops["day"].astype(str), ops["total_delay_minutes"]))
    assert by_day["Tuesday"] == 20
    assert by_day["Saturday"] == 0
    assert grid["total_delay_minutes"].sum() == 118 + 20 + 20 + 0


def test_facets_for_absent_incident_are_zero(clean) -> None:
    grid = frequency_by_incident_day(clean, ["Emergency Services"])
    assert len(grid) == 7
    assert (grid["n_incidents"] == 0).all()


def test_aggregates_on_empty_table() -> None:
    clean = clean_delays(make_raw([]))

    assert total_delays(clean) == 0
    assert total_delay_minutes(clean) == 0
    assert frequency_by_incident(clean).empty
    assert severity_by_incident(clean).empty
    assert frequency_by_month(clean).empty
    assert severity_by_month(clean).empty
    assert frequency_by_time(clean).empty
    assert frequency_by_day(clean)["n_incidents"].sum() == 0
    assert frequency_by_incident_day(clean, ["Mechanical"])["n_incidents"].sum() == 0
    assert severity_by_incident_day(clean, ["Mechanical"])["total_delay_minutes"].sum() == 0


def test_overall_kpis(clean) -> None:
    kpis = build_overall_kpis(clean)
    assert kpis["total_incidents"] == 7
    assert kpis["total_delay_minutes"] == 198
    assert kpis["top_incident"] in {"Mechanical", "Operations - Operator"}
    assert kpis["total_delay_hours"] == round(198 / 60, 1)


def test_overall_kpis_empty() -> None:
    kpis = build_overall_kpis(clean_delays(make_raw([])))
    assert kpis["total_incidents"] == 0
    assert kpis["top_incident"] is None


@pytest.mark.parametrize("bad", ["2022-07", "2022-07-15-01", "", "2022/07/15"])
def test_add_date_parts_rejects_what_split_date_rejects(clean, bad) -> None:
    with pytest.raises(FormatError) as split_err:
        split_date(bad)

    broken = clean.copy()
    broken.loc[0, "date"] = bad
    with pytest.raises(FormatError) as frame_err:
        add_date_parts(broken)
    assert str(frame_err.value) == str(split_err.value)


def test_add_date_parts_missing_date(clean) -> None:
    broken = clean.copy()
    broken.loc[1, "date"] = pd.NA
    with pytest.raises(FormatError, match="missing date"):
        add_date_parts(broken)
