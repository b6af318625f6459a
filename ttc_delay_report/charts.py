"""
charts.py

Static bar charts for the delay report, built with Plotly.

Each function takes one aggregate (scalar, one-key table or
incident x day table) and returns a plotly Figure. Nothing here touches
the data beyond reading it: the category axis always follows the row
order of the aggregate it is given, never the bar heights.

Figures are written to disk separately with save_chart().
"""

from __future__ import annotations

from pathlib import Path

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from ttc_delay_report.errors import ChartExportError

IMAGE_SUFFIXES = {".png", ".svg", ".pdf", ".jpg", ".jpeg", ".webp"}


def _empty_figure(title: str) -> go.Figure:
    fig = go.Figure()
    fig.update_layout(title=title)
    return fig


def _as_labels(values: pd.Series) -> list[str]:
    return [str(v) for v in values.astype(object)]


def _ordered_unique(values: list[str]) -> list[str]:
    return list(dict.fromkeys(values))


def scalar_bar_chart(value, label: str, title: str, value_label: str = "Value") -> go.Figure:
    """A single bar showing one headline number (e.g. total delays)."""
    df = pd.DataFrame({"measure": [label], "value": [value]})
    fig = px.bar(
        df,
        x="measure",
        y="value",
        title=title,
        labels={"measure": "", "value": value_label},
        text="value",
    )
    fig.update_xaxes(type="category")
    return fig


def bar_chart(
    agg: pd.DataFrame,
    x: str,
    y: str,
    title: str,
    labels: dict[str, str] | None = None,
) -> go.Figure:
    """
    One bar per row of `agg`, in row order.

    The x axis is always categorical so keys like "01" (month) or "07:30"
    (time) are not turned into numbers or timestamps.
    """
    if agg.empty:
        return _empty_figure(title)

    plot_df = agg[[x, y]].copy()
    plot_df[x] = _as_labels(plot_df[x])
    order = _ordered_unique(plot_df[x].tolist())

    fig = px.bar(
        plot_df,
        x=x,
        y=y,
        title=title,
        labels=labels or {},
        category_orders={x: order},
    )
    fig.update_xaxes(type="category", categoryorder="array", categoryarray=order)
    return fig


def faceted_bar_chart(
    agg: pd.DataFrame,
    facet: str,
    x: str,
    y: str,
    title: str,
    labels: dict[str, str] | None = None,
) -> go.Figure:
    """
    One sub-chart per value of `facet`, side by side.

    Facets share the chart type and x categories but each gets its own
    y scale.
    """
    if agg.empty:
        return _empty_figure(title)

    plot_df = agg[[facet, x, y]].copy()
    plot_df[facet] = _as_labels(plot_df[facet])
    plot_df[x] = _as_labels(plot_df[x])
    facets = _ordered_unique(plot_df[facet].tolist())
    order = _ordered_unique(plot_df[x].tolist())

    fig = px.bar(
        plot_df,
        x=x,
        y=y,
        facet_col=facet,
        title=title,
        labels=labels or {},
        category_orders={facet: facets, x: order},
    )
    fig.update_yaxes(matches=None, showticklabels=True)
    fig.update_xaxes(type="category", categoryorder="array", categoryarray=order)
    # "incident=Mechanical" -> "Mechanical"
    fig.for_each_annotation(lambda a: a.update(text=a.text.split("=", 1)[-1]))
    return fig


def save_chart(fig: go.Figure, out_path: Path | str) -> Path:
    """
    Write a figure to disk.

    - .html: standalone file with plotly.js embedded, opens offline.
    - .png / .svg / .pdf / ...: static image via kaleido.

    Returns the absolute path of the written file. A failed image export
    (kaleido or Chrome missing, renderer crash) raises ChartExportError.
    """
    out_file = Path(out_path).resolve()
    suffix = out_file.suffix.lower()
    if suffix != ".html" and suffix not in IMAGE_SUFFIXES:
        raise ValueError(f"unsupported chart format: {out_file.suffix!r}")

    out_file.parent.mkdir(parents=True, exist_ok=True)
    if suffix == ".html":
        fig.write_html(str(out_file), include_plotlyjs=True, full_html=True)
    else:
        try:
            fig.write_image(str(out_file))
        except Exception as exc:
            raise ChartExportError(f"could not export {out_file.name}: {exc}") from exc
    return out_file
