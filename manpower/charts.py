from __future__ import annotations

from typing import Any, Dict, List, Sequence

import altair as alt
import pandas as pd

alt.data_transformers.disable_max_rows()

UNIT_COLORS: List[str] = [
    "#3b82f6",
    "#10b981",
    "#f59e0b",
    "#ef4444",
    "#8b5cf6",
    "#06b6d4",
    "#f97316",
    "#ec4899",
    "#14b8a6",
]
GENDER_COLORS: List[str] = ["#3b82f6", "#ec4899", "#6b7280"]


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def series_frame(series: Sequence[Dict[str, Any]]) -> pd.DataFrame:
    return pd.DataFrame(list(series), columns=["label", "value"])


def department_bar_chart(series: Sequence[Dict[str, Any]], *, title: str = "Manpower by Plant/Unit") -> alt.Chart:
    df = series_frame(series)
    labels = df["label"].tolist()
    return (
        alt.Chart(df, title=title)
        .mark_bar()
        .encode(
            x=alt.X("label:N", title=None, sort=labels, axis=alt.Axis(labelAngle=0)),
            y=alt.Y("value:Q", title="Total Manpower", axis=alt.Axis(format="~s", gridDash=[4, 4])),
            color=alt.Color(
                "label:N",
                legend=None,
                sort=labels,
                scale=alt.Scale(domain=labels, range=UNIT_COLORS[: max(len(labels), 1)]),
            ),
            tooltip=[alt.Tooltip("label:N", title="Plant/Unit"), alt.Tooltip("value:Q", title="Manpower", format=",")],
        )
        .properties(height=320)
    )


def gender_donut_chart(series: Sequence[Dict[str, Any]], *, title: str = "Gender Distribution") -> alt.Chart:
    df = series_frame(series)
    total = float(df["value"].sum()) if not df.empty else 0.0
    df["share"] = df["value"] / total if total else 0.0
    labels = df["label"].tolist()
    return (
        alt.Chart(df, title=title)
        .mark_arc(innerRadius=70)
        .encode(
            theta=alt.Theta("value:Q", stack=True),
            color=alt.Color(
                "label:N",
                sort=labels,
                scale=alt.Scale(domain=labels, range=GENDER_COLORS[: max(len(labels), 1)]),
                legend=alt.Legend(title=None, orient="right"),
            ),
            tooltip=[
                alt.Tooltip("label:N", title="Gender"),
                alt.Tooltip("value:Q", title="Count", format=","),
                alt.Tooltip("share:Q", title="Share", format=".1%"),
            ],
        )
        .properties(height=320)
    )


def build_charts(department: Sequence[Dict[str, Any]], gender: Sequence[Dict[str, Any]]) -> Dict[str, Any]:
    return {
        "department": to_vega_spec(department_bar_chart(department)),
        "gender": to_vega_spec(gender_donut_chart(gender)),
    }
