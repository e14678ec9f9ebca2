from __future__ import annotations

from typing import Any, Dict, List, Sequence

import altair as alt
import pandas as pd

from cascade.charts import to_vega_spec
from cascade.data import rows_to_frame
from cascade.rows import GoalRow

TOP_OWNERS = 10
TOP_GOALS = 8


def _top(df: pd.DataFrame, col: str, n: int, *, with_weight: bool) -> pd.DataFrame:
    base = df[df[col] != ""]
    if base.empty:
        return pd.DataFrame()
    grouped = base.groupby(col, sort=False).agg(
        count=("id", "size"),
        weight=("weight_pct", "sum"),
        first=("order", "min"),
    )
    grouped = grouped.reset_index().sort_values(["count", "first"], ascending=[False, True], kind="stable")
    if not with_weight:
        grouped = grouped.drop(columns=["weight"])
    return grouped.drop(columns=["first"]).head(n).reset_index(drop=True)


def top_owners(rows: Sequence[GoalRow], n: int = TOP_OWNERS) -> List[Dict[str, Any]]:
    top = _top(rows_to_frame(rows), "owner", n, with_weight=False)
    if top.empty:
        return []
    return [{"owner": r["owner"], "count": int(r["count"])} for r in top.to_dict(orient="records")]


def top_goals(rows: Sequence[GoalRow], n: int = TOP_GOALS) -> List[Dict[str, Any]]:
    """Goals by occurrence, with the sum of their valid yearly weights."""
    top = _top(rows_to_frame(rows), "goal_text", n, with_weight=True)
    if top.empty:
        return []
    return [
        {"goal": r["goal_text"], "count": int(r["count"]), "weight": float(r["weight"] or 0.0)}
        for r in top.to_dict(orient="records")
    ]


def compute_groups(rows: Sequence[GoalRow]) -> Dict[str, Any]:
    owners = top_owners(rows)
    goals = top_goals(rows)

    charts: Dict[str, Any] = {}
    if owners:
        df = pd.DataFrame(owners)
        charts["top_owners"] = to_vega_spec(
            alt.Chart(df)
            .mark_bar()
            .encode(
                x=alt.X("count:Q", title="Записей", axis=alt.Axis(tickMinStep=1)),
                y=alt.Y("owner:N", title=None, sort=list(df["owner"])),
                tooltip=[alt.Tooltip("owner:N", title="ФИО"), alt.Tooltip("count:Q", title="Записей")],
            )
        )
    if goals:
        df = pd.DataFrame(goals)
        charts["top_goals"] = to_vega_spec(
            alt.Chart(df)
            .mark_bar()
            .encode(
                x=alt.X("count:Q", title="Записей", axis=alt.Axis(tickMinStep=1)),
                y=alt.Y("goal:N", title=None, sort=list(df["goal"])),
                tooltip=[
                    alt.Tooltip("goal:N", title="Цель"),
                    alt.Tooltip("count:Q", title="Записей"),
                    alt.Tooltip("weight:Q", title="Сумма весов, %"),
                ],
            )
        )
    return {"top_owners": owners, "top_goals": goals, "charts": charts}
