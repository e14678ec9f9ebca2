from __future__ import annotations

import math
from typing import Any, Dict, List, Optional, Sequence, Tuple

import altair as alt
import pandas as pd

from cascade.charts import PALETTE, palette_color, to_vega_spec
from cascade.data import parse_weight_pct, weight_label
from cascade.rows import GoalRow

DONUT_RADIUS = 40.0


def weight_entries(rows: Sequence[GoalRow]) -> List[Tuple[str, float]]:
    """(label, pct) for every row whose yearly weight is a valid positive percentage."""
    out: List[Tuple[str, float]] = []
    for row in rows:
        pct = parse_weight_pct(row.weight_year)
        if pct is None or pct <= 0:
            continue
        out.append((weight_label(row), pct))
    return out


def bar_series(entries: Sequence[Tuple[str, float]]) -> List[Dict[str, Any]]:
    if not entries:
        return []
    peak = max(pct for _, pct in entries)
    return [
        {"label": label, "pct": pct, "bar_pct": (pct / peak * 100.0) if peak else 0.0}
        for label, pct in entries
    ]


def donut_segments(entries: Sequence[Tuple[str, float]], total_arc: Optional[float] = None) -> List[Dict[str, Any]]:
    """Arc length per entry proportional to its share; offsets are cumulative in row order."""
    total = sum(pct for _, pct in entries)
    if not entries or total <= 0:
        return []
    total_arc = 2 * math.pi * DONUT_RADIUS if total_arc is None else total_arc
    segments = []
    offset = 0.0
    for i, (label, pct) in enumerate(entries):
        length = pct / total * total_arc
        segments.append(
            {
                "label": label,
                "pct": pct,
                "share": pct / total,
                "color": palette_color(i),
                "length": length,
                "offset": offset,
            }
        )
        offset += length
    return segments


def compute_weight_distribution(rows: Sequence[GoalRow], *, total_arc: Optional[float] = None) -> Dict[str, Any]:
    entries = weight_entries(rows)
    total_arc = 2 * math.pi * DONUT_RADIUS if total_arc is None else total_arc
    segments = donut_segments(entries, total_arc)

    charts: Dict[str, Any] = {}
    if entries:
        df = pd.DataFrame(
            [{"order": i, "label": label, "pct": pct} for i, (label, pct) in enumerate(entries)]
        )
        colors = [palette_color(i) for i in range(len(df))]
        bar = (
            alt.Chart(df)
            .mark_bar()
            .encode(
                x=alt.X("pct:Q", title="Вес, %"),
                y=alt.Y("label:N", title=None, sort=alt.EncodingSortField(field="order", order="ascending")),
                tooltip=[alt.Tooltip("label:N", title="Показатель"), alt.Tooltip("pct:Q", title="Вес, %")],
            )
        )
        donut = (
            alt.Chart(df)
            .mark_arc(innerRadius=50)
            .encode(
                theta=alt.Theta("pct:Q", stack=True),
                order=alt.Order("order:Q"),
                color=alt.Color(
                    "order:N",
                    scale=alt.Scale(domain=list(df["order"]), range=colors),
                    legend=None,
                ),
                tooltip=[alt.Tooltip("label:N", title="Показатель"), alt.Tooltip("pct:Q", title="Вес, %")],
            )
        )
        charts = {"weights_bar": to_vega_spec(bar), "weights_donut": to_vega_spec(donut)}

    return {
        "entries": [{"label": label, "pct": pct} for label, pct in entries],
        "total": sum(pct for _, pct in entries),
        "bars": bar_series(entries),
        "segments": segments,
        "total_arc": total_arc,
        "palette": list(PALETTE),
        "charts": charts,
    }
