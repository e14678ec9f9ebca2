from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

import altair as alt
import pandas as pd

from cascade.charts import to_vega_spec
from cascade.data import clean_text, is_filled, parse_weight_pct
from cascade.rows import FIELD_KEYS, GoalRow
from cascade.schema import TableConfig


def compute_summary(rows: Sequence[GoalRow]) -> Dict[str, int]:
    owners = {clean_text(r.last_name) for r in rows if is_filled(r.last_name)}
    return {
        "total_rows": len(rows),
        "owners": len(owners),
        "with_year": sum(1 for r in rows if is_filled(r.year)),
        "with_weight": sum(1 for r in rows if parse_weight_pct(r.weight_year) is not None),
    }


def compute_completeness(
    rows: Sequence[GoalRow],
    keys: Optional[Sequence[str]] = None,
    labels: Optional[Dict[str, str]] = None,
) -> List[Dict[str, Any]]:
    """Fill rate per tracked field: percent of rows with a non-blank value."""
    if not rows:
        return []
    keys = list(keys or FIELD_KEYS)
    labels = labels or {}
    out = []
    for key in keys:
        filled = sum(1 for r in rows if is_filled(r.get(key)))
        out.append(
            {
                "key": key,
                "label": labels.get(key, key),
                "filled": filled,
                "pct": filled / len(rows) * 100.0,
            }
        )
    return out


def compute_overview(rows: Sequence[GoalRow], config: TableConfig) -> Dict[str, Any]:
    labels = {c.key: c.label for c in config.columns}
    completeness = compute_completeness(rows, config.keys, labels)

    charts: Dict[str, Any] = {}
    if completeness:
        df = pd.DataFrame(completeness)
        bar = (
            alt.Chart(df)
            .mark_bar(cornerRadiusEnd=3)
            .encode(
                x=alt.X("pct:Q", title="Заполнено, %", scale=alt.Scale(domain=[0, 100])),
                y=alt.Y("label:N", title=None, sort=list(df["label"])),
                tooltip=[alt.Tooltip("label:N", title="Поле"), alt.Tooltip("pct:Q", title="%", format=".0f"), "filled:Q"],
            )
            .properties(height=28 * len(df))
        )
        charts["completeness"] = to_vega_spec(bar)

    return {
        "table": config.name,
        "summary": compute_summary(rows),
        "completeness": completeness,
        "charts": charts,
    }
