from __future__ import annotations

import math
import re
from typing import List, Optional, Sequence

import pandas as pd

from cascade.rows import FIELD_KEYS, QUARTER_KEYS, GoalRow

PLACEHOLDER_LABEL = "—"

_WS_RE = re.compile(r"\s+")
_NUMBER_RE = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)$")


def parse_number(value: object) -> Optional[float]:
    """Parse a free-text cell: "24,1" -> 24.1, "20%" -> 20.0, "NPS 48" -> None."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        out = float(value)
        return out if math.isfinite(out) else None
    if not isinstance(value, str):
        return None
    s = _WS_RE.sub("", value).replace(",", ".")
    if s.endswith("%"):
        s = s[:-1]
    if not _NUMBER_RE.match(s):
        return None
    return float(s)


def parse_weight_pct(value: object) -> Optional[float]:
    """A weight counts only as a number in [0, 100]; marker tokens like "М" are excluded."""
    num = parse_number(value)
    if num is None or num < 0 or num > 100:
        return None
    return num


def is_filled(value: object) -> bool:
    return isinstance(value, str) and bool(value.strip())


def clean_text(value: object) -> str:
    return value.strip() if isinstance(value, str) else ""


def weight_label(row: GoalRow) -> str:
    return clean_text(row.metric_goals) or clean_text(row.goal) or PLACEHOLDER_LABEL


def quarter_values(row: GoalRow) -> List[Optional[float]]:
    return [parse_number(row.get(q)) for q in QUARTER_KEYS]


def rows_to_frame(rows: Sequence[GoalRow]) -> pd.DataFrame:
    """Row snapshot as a DataFrame (camelCase columns plus parsed helpers)."""
    columns = ["id", *FIELD_KEYS]
    if not rows:
        return pd.DataFrame(columns=[*columns, "owner", "goal_text", "weight_pct", "order"])
    df = pd.DataFrame([r.to_dict() for r in rows], columns=columns)
    df["owner"] = df["lastName"].map(clean_text)
    df["goal_text"] = df["goal"].map(clean_text)
    df["weight_pct"] = pd.to_numeric(df["weightYear"].map(parse_weight_pct), errors="coerce")
    df["order"] = range(len(df))
    return df
