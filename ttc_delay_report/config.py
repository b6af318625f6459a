"""
config.py

Report build settings.

Paths default to the fixed locations of the report project (data/ next to
the package, output/ for rendered charts). The incident allow-lists for
the faceted charts come from an earlier exploratory run: the three most
frequent incident types and the three with the most total delay minutes.
They live here, not in the chart code, so the dependency on that earlier
run stays visible.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

ROOT_DIR = Path(__file__).resolve().parents[1]

DATA_DIR = ROOT_DIR / "data"
if not DATA_DIR.exists():
    # Fallback if repository uses capitalized folder name
    alt = ROOT_DIR / "Data"
    if alt.exists():
        DATA_DIR = alt

RAW_DELAYS_CSV = "ttc-bus-delay-data-2022.csv"
CLEAN_DELAYS_CSV = "ttc-bus-delay-data-2022-clean.csv"

OUTPUT_DIR = ROOT_DIR / "output" / "charts"

MAX_DELAY_MINUTES = 120

# Top 3 incident types by number of delays
FREQUENCY_FACET_INCIDENTS = ["Collision - TTC", "Mechanical", "Operations - Operator"]
# Top 3 incident types by total minutes of delay
SEVERITY_FACET_INCIDENTS = ["Diversion", "Mechanical", "Operations - Operator"]


class ReportConfig(BaseModel):
    raw_path: Path = DATA_DIR / RAW_DELAYS_CSV
    clean_path: Path = DATA_DIR / CLEAN_DELAYS_CSV
    output_dir: Path = OUTPUT_DIR
    max_delay_minutes: float = Field(default=MAX_DELAY_MINUTES, ge=0)
    frequency_facet_incidents: List[str] = Field(
        default_factory=lambda: list(FREQUENCY_FACET_INCIDENTS)
    )
    severity_facet_incidents: List[str] = Field(
        default_factory=lambda: list(SEVERITY_FACET_INCIDENTS)
    )
    chart_format: Literal["html", "png", "svg"] = "html"

    @field_validator("frequency_facet_incidents", "severity_facet_incidents")
    @classmethod
    def _check_allow_list(cls, value: List[str]) -> List[str]:
        cleaned = [v.strip() for v in value]
        if not cleaned or any(not v for v in cleaned):
            raise ValueError("incident allow-list must hold at least one non-blank name")
        if len(set(cleaned)) != len(cleaned):
            raise ValueError(f"incident allow-list has duplicates: {cleaned}")
        return cleaned


def load_config(path: Optional[Path | str] = None) -> ReportConfig:
    """
    Read a ReportConfig from a JSON file. With no path, return the defaults.

    Relative paths inside the file are left as-is, i.e. resolved against
    the caller's working directory.
    """
    if path is None:
        return ReportConfig()
    text = Path(path).read_text(encoding="utf-8")
    return ReportConfig.model_validate_json(text)
