"""
run_report.py

End-to-end batch build of the bus delay report:
1. Load the raw delay file and normalize headers (ingestion).
2. Clean: project columns, order week-days, drop out-of-range delays.
3. Aggregate one table per analytical question and render one bar
   chart per table.
4. Write the charts in report order next to a manifest.json holding
   their captions, then persist the cleaned table as a CSV snapshot.

Recommended:
    python -m ttc_delay_report.run_report [--config report.json]

Artifacts:
- Cleaned CSV snapshot (config.clean_path)
- NN_<chart>.html (or .png/.svg) and manifest.json in config.output_dir
- Console output (headline numbers, rows dropped while cleaning)
"""

from __future__ import annotations

import argparse
import json
import logging
import shutil
import sys
import tempfile
from dataclasses import dataclass
from pathlib import Path

import pandas as pd
import plotly.graph_objects as go
from pydantic import ValidationError

from ttc_delay_report.charts import (
    bar_chart,
    faceted_bar_chart,
    save_chart,
    scalar_bar_chart,
)
from ttc_delay_report.config import ReportConfig, load_config
from ttc_delay_report.delay_cleaning import clean_delays_with_summary
from ttc_delay_report.delay_features import (
    COUNT_COL,
    MINUTES_COL,
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
    total_delay_minutes,
    total_delays,
)
from ttc_delay_report.delay_ingestion import load_raw_delays
from ttc_delay_report.errors import DelayDataError
from ttc_delay_report.logging_helper import setup_logging
from ttc_delay_report.persistence import write_clean_snapshot

logger = logging.getLogger(__name__)

MANIFEST_NAME = "manifest.json"

LABELS = {
    "incident": "Incident",
    "day": "Day of week",
    "month": "Month",
    "time": "Time of day",
    COUNT_COL: "Number of delays",
    MINUTES_COL: "Minutes of delay",
}


@dataclass(frozen=True)
class ReportChart:
    key: str
    caption: str
    figure: go.Figure


def build_report_charts(clean: pd.DataFrame, config: ReportConfig) -> list[ReportChart]:
    """
    Aggregate the cleaned table and build every report chart, in the
    order they appear in the report.
    """
    dated = add_date_parts(clean)
    freq_facets = config.frequency_facet_incidents
    sev_facets = config.severity_facet_incidents

    return [
        ReportChart(
            "total_delays",
            "Total number of bus delays",
            scalar_bar_chart(
                total_delays(clean), "All delays", "Total delays", LABELS[COUNT_COL]
            ),
        ),
        ReportChart(
            "total_delay_minutes",
            "Total minutes of bus delay",
            scalar_bar_chart(
                total_delay_minutes(clean),
                "All delays",
                "Total delay minutes",
                LABELS[MINUTES_COL],
            ),
        ),
        ReportChart(
            "frequency_by_incident",
            "Number of delays by incident type",
            bar_chart(
                frequency_by_incident(clean),
                "incident",
                COUNT_COL,
                "Delays by incident",
                LABELS,
            ),
        ),
        ReportChart(
            "severity_by_incident",
            "Minutes of delay by incident type",
            bar_chart(
                severity_by_incident(clean),
                "incident",
                MINUTES_COL,
                "Delay minutes by incident",
                LABELS,
            ),
        ),
        ReportChart(
            "frequency_by_month",
            "Number of delays by month",
            bar_chart(
                frequency_by_month(dated), "month", COUNT_COL, "Delays by month", LABELS
            ),
        ),
        ReportChart(
            "frequency_by_day",
            "Number of delays by day of the week",
            bar_chart(frequency_by_day(clean), "day", COUNT_COL, "Delays by day", LABELS),
        ),
        ReportChart(
            "frequency_by_time",
            "Number of delays by reported time of day",
            bar_chart(
                frequency_by_time(clean), "time", COUNT_COL, "Delays by time of day", LABELS
            ),
        ),
        ReportChart(
            "severity_by_month",
            "Minutes of delay by month",
            bar_chart(
                severity_by_month(dated),
                "month",
                MINUTES_COL,
                "Delay minutes by month",
                LABELS,
            ),
        ),
        ReportChart(
            "frequency_by_incident_day",
            "Number of delays by day of the week for: " + ", ".join(freq_facets),
            faceted_bar_chart(
                frequency_by_incident_day(clean, freq_facets),
                "incident",
                "day",
                COUNT_COL,
                "Delays by day, most frequent incidents",
                LABELS,
            ),
        ),
        ReportChart(
            "severity_by_incident_day",
            "Minutes of delay by day of the week for: " + ", ".join(sev_facets),
            faceted_bar_chart(
                severity_by_incident_day(clean, sev_facets),
                "incident",
                "day",
                MINUTES_COL,
                "Delay minutes by day, most severe incidents",
                LABELS,
            ),
        ),
    ]


def write_report(charts: list[ReportChart], out_dir: Path | str, fmt: str = "html") -> Path:
    """
    Save each chart as NN_<key>.<fmt> and a manifest.json listing order,
    key, caption and file name. Returns the manifest path.

    Files are written to a staging directory beside `out_dir` and only
    moved into place once every chart has been saved, so a failed export
    leaves `out_dir` as it was.
    """
    out_dir = Path(out_dir).resolve()
    out_dir.parent.mkdir(parents=True, exist_ok=True)
    staging = Path(tempfile.mkdtemp(prefix=f".{out_dir.name}-", dir=out_dir.parent))

    try:
        entries = []
        for order, chart in enumerate(charts, start=1):
            file_name = f"{order:02d}_{chart.key}.{fmt}"
            save_chart(chart.figure, staging / file_name)
            entries.append(
                {"order": order, "key": chart.key, "caption": chart.caption, "file": file_name}
            )

        with open(staging / MANIFEST_NAME, "w", encoding="utf-8") as f:
            json.dump({"charts": entries}, f, indent=2)

        out_dir.mkdir(exist_ok=True)
        # manifest last, so it never lists a chart that is not there yet
        for entry in entries:
            (staging / entry["file"]).replace(out_dir / entry["file"])
        (staging / MANIFEST_NAME).replace(out_dir / MANIFEST_NAME)
    finally:
        shutil.rmtree(staging, ignore_errors=True)

    logger.info("Wrote %d charts to %s", len(entries), out_dir)
    return out_dir / MANIFEST_NAME


def run(config: ReportConfig) -> dict:
    """
    Build the whole report once. Any failure propagates and aborts the run.
    Nothing is written until every aggregate and figure has been built, so
    a bad date or week-day leaves no partial output behind. Charts are
    written before the snapshot, so a failed chart export (ChartExportError)
    leaves neither charts nor snapshot.
    """
    # 1. Load
    raw = load_raw_delays(config.raw_path)

    # 2. Clean
    clean, summary = clean_delays_with_summary(raw, max_delay=config.max_delay_minutes)

    # 3. Aggregate and render (in memory)
    charts = build_report_charts(clean, config)

    # 4. Write charts, then the snapshot
    manifest = write_report(charts, config.output_dir, config.chart_format)
    clean_file = write_clean_snapshot(clean, config.clean_path)

    kpis = build_overall_kpis(clean)

    print("=== Cleaning ===")
    print(f"rows read:     {summary.rows_in}")
    print(f"rows kept:     {summary.rows_out}")
    print(f"over {config.max_delay_minutes:g} min: {summary.dropped_over_max}")
    print(f"negative:      {summary.dropped_negative}")
    print(f"non-numeric:   {summary.dropped_non_numeric}")

    print("\n=== Headline numbers ===")
    for name, value in kpis.items():
        print(f"{name}: {value}")

    print(f"\n[OK] Cleaned snapshot written to: {clean_file}")
    print(f"[OK] {len(charts)} charts listed in: {manifest}")

    return {
        "summary": summary,
        "kpis": kpis,
        "clean_path": clean_file,
        "manifest_path": manifest,
        "charts": charts,
    }


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Build the TTC bus delay report charts.")
    parser.add_argument("--config", type=Path, help="JSON file with ReportConfig fields")
    parser.add_argument("--raw", type=Path, help="raw delay CSV/XLSX to read")
    parser.add_argument("--clean", type=Path, help="where to write the cleaned CSV")
    parser.add_argument("--out", type=Path, help="directory for charts and manifest")
    parser.add_argument("--format", choices=["html", "png", "svg"], help="chart file format")
    parser.add_argument("--max-delay", type=float, help="largest delay (minutes) kept")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.INFO)

    overrides = {
        "raw_path": args.raw,
        "clean_path": args.clean,
        "output_dir": args.out,
        "chart_format": args.format,
        "max_delay_minutes": args.max_delay,
    }
    try:
        base = load_config(args.config)
        config = ReportConfig.model_validate(
            {**base.model_dump(), **{k: v for k, v in overrides.items() if v is not None}}
        )
        run(config)
    except ValidationError as exc:
        logger.error("Invalid report configuration:\n%s", exc)
        return 1
    except (DelayDataError, OSError) as exc:
        logger.error("Report build failed: %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
