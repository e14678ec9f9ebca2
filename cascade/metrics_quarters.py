from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

import altair as alt
import pandas as pd

from cascade.charts import to_vega_spec
from cascade.data import is_filled, quarter_values, weight_label
from cascade.rows import QUARTER_KEYS, GoalRow

HEATMAP_ROWS = 12
QUARTER_LABELS = ("Q1", "Q2", "Q3", "Q4")


def compute_quarter_series(rows: Sequence[GoalRow]) -> Optional[Dict[str, Any]]:
    """Quarter values of the first row that has any numeric quarter, scaled to their max."""
    for row in rows:
        values = quarter_values(row)
        present = [v for v in values if v is not None]
        if not present:
            continue
        peak = max(present)
        points: List[Dict[str, Any]] = []
        for label, value in zip(QUARTER_LABELS, values):
            scaled = None
            if value is not None:
                scaled = (value / peak * 100.0) if peak > 0 else 0.0
            points.append({"quarter": label, "value": value, "scaled": scaled})
        return {"row_id": row.id, "label": weight_label(row), "points": points}
    return None


def compute_quarter_heatmap(rows: Sequence[GoalRow], limit: int = HEATMAP_ROWS) -> List[Dict[str, Any]]:
    return [
        {
            "row_id": row.id,
            "label": weight_label(row),
            "filled": [is_filled(row.get(q)) for q in QUARTER_KEYS],
        }
        for row in list(rows)[:limit]
    ]


def compute_quarters(rows: Sequence[GoalRow]) -> Dict[str, Any]:
    series = compute_quarter_series(rows)
    heatmap = compute_quarter_heatmap(rows)

    charts: Dict[str, Any] = {}
    if series is not None:
        df = pd.DataFrame([p for p in series["points"] if p["value"] is not None])
        charts["quarter_series"] = to_vega_spec(
            alt.Chart(df)
            .mark_bar()
            .encode(
                x=alt.X("quarter:O", title=None, sort=list(QUARTER_LABELS)),
                y=alt.Y("value:Q", title=series["label"]),
                tooltip=[alt.Tooltip("quarter:O", title="Квартал"), alt.Tooltip("value:Q", title="Значение")],
            )
            .properties(height=220)
        )
    if heatmap:
        long_df = pd.DataFrame(
            [
                {"row": i + 1, "label": cell["label"], "quarter": q, "filled": "заполнено" if filled else "пусто"}
                for i, cell in enumerate(heatmap)
                for q, filled in zip(QUARTER_LABELS, cell["filled"])
            ]
        )
        charts["quarter_heatmap"] = to_vega_spec(
            alt.Chart(long_df)
            .mark_rect(stroke="white")
            .encode(
                x=alt.X("quarter:O", title=None, sort=list(QUARTER_LABELS)),
                y=alt.Y("row:O", title="Строка"),
                color=alt.Color(
                    "filled:N",
                    scale=alt.Scale(domain=["заполнено", "пусто"], range=["#2563eb", "#e5e7eb"]),
                    title=None,
                ),
                tooltip=["label:N", "quarter:O", "filled:N"],
            )
        )
    return {"series": series, "heatmap": heatmap, "charts": charts}
