from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Literal, Mapping, Optional

from cascade.schema import TableConfig

SortDirection = Literal["asc", "desc"]


@dataclass(frozen=True)
class ViewFilters:
    text: Dict[str, str] = field(default_factory=dict)
    sort_key: Optional[str] = None
    sort_direction: SortDirection = "asc"
    page: int = 1


# Query parameter name -> row field.
FILTER_PARAMS = {"last_name": "lastName", "goal": "goal"}


def _as_page(value: object) -> int:
    try:
        page = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 1
    return max(1, page)


def normalize_view_filters(raw: Mapping[str, object], config: TableConfig) -> ViewFilters:
    """Coerce loosely typed input (query params, widget state) into `ViewFilters`."""
    text: Dict[str, str] = {}
    raw_text = raw.get("text") if isinstance(raw.get("text"), Mapping) else {}
    for key in config.filter_keys:
        value = raw_text.get(key)  # type: ignore[union-attr]
        if value is None:
            param = next((p for p, k in FILTER_PARAMS.items() if k == key), None)
            value = raw.get(param) if param else None
        if isinstance(value, str) and value.strip():
            text[key] = value

    sort_key = raw.get("sort_key")
    if not isinstance(sort_key, str) or sort_key not in config.keys:
        sort_key = None

    direction = str(raw.get("sort_direction") or "asc").lower()
    if direction not in ("asc", "desc"):
        direction = "asc"

    return ViewFilters(
        text=text,
        sort_key=sort_key,
        sort_direction=direction,  # type: ignore[arg-type]
        page=_as_page(raw.get("page", 1)),
    )
