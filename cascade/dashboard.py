from __future__ import annotations

from typing import Any, Dict, Sequence

from cascade.metrics_groups import compute_groups
from cascade.metrics_overview import compute_overview
from cascade.metrics_quarters import compute_quarters
from cascade.metrics_weights import compute_weight_distribution
from cascade.rows import GoalRow
from cascade.schema import TableConfig

EMPTY_MESSAGE = "Нет данных для отображения."


def compute_dashboard(rows: Sequence[GoalRow], config: TableConfig) -> Dict[str, Any]:
    """Every dashboard block for one table snapshot; an empty snapshot yields empty blocks."""
    rows = list(rows)
    overview = compute_overview(rows, config)
    return {
        "table": config.name,
        "title": config.title,
        "empty": not rows,
        "empty_message": EMPTY_MESSAGE if not rows else None,
        "summary": overview["summary"],
        "completeness": overview["completeness"],
        "weights": compute_weight_distribution(rows),
        "groups": compute_groups(rows),
        "quarters": compute_quarters(rows),
        "charts": overview["charts"],
    }
