from __future__ import annotations

from typing import Any, Dict, List

import altair as alt

alt.data_transformers.disable_max_rows()

# Cyclic palette for weight segments.
PALETTE: List[str] = [
    "#1e3a8a",
    "#2563eb",
    "#0ea5e9",
    "#14b8a6",
    "#22c55e",
    "#eab308",
    "#f97316",
    "#ef4444",
    "#a855f7",
    "#64748b",
]


def palette_color(index: int) -> str:
    return PALETTE[index % len(PALETTE)]


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()
