from __future__ import annotations

import random
import string
import time
from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, Iterable, List, Mapping, Tuple

# Persisted (camelCase) key -> dataclass attribute.
FIELD_ATTRS: Dict[str, str] = {
    "lastName": "last_name",
    "goal": "goal",
    "metricGoals": "metric_goals",
    "weightQ": "weight_q",
    "weightYear": "weight_year",
    "q1": "q1",
    "q2": "q2",
    "q3": "q3",
    "q4": "q4",
    "year": "year",
}
FIELD_KEYS: Tuple[str, ...] = tuple(FIELD_ATTRS)
QUARTER_KEYS: Tuple[str, ...] = ("q1", "q2", "q3", "q4")

_ID_ALPHABET = string.digits + string.ascii_lowercase


def generate_id() -> str:
    suffix = "".join(random.choices(_ID_ALPHABET, k=9))
    return f"{int(time.time() * 1000)}-{suffix}"


@dataclass(frozen=True)
class GoalRow:
    id: str = field(default_factory=generate_id)
    last_name: str = ""
    goal: str = ""
    metric_goals: str = ""
    weight_q: str = ""
    weight_year: str = ""
    q1: str = ""
    q2: str = ""
    q3: str = ""
    q4: str = ""
    year: str = ""

    def get(self, key: str) -> str:
        """Value by persisted key (`lastName`) or attribute name (`last_name`)."""
        if key == "id":
            return self.id
        attr = FIELD_ATTRS.get(key, key)
        if attr not in _ATTR_NAMES:
            raise KeyError(key)
        return getattr(self, attr)

    def with_field(self, key: str, value: str) -> "GoalRow":
        if key == "id":
            raise KeyError("id is immutable")
        attr = FIELD_ATTRS.get(key, key)
        if attr not in _ATTR_NAMES:
            raise KeyError(key)
        return replace(self, **{attr: value if isinstance(value, str) else ""})

    def to_dict(self) -> Dict[str, str]:
        out = {"id": self.id}
        for key, attr in FIELD_ATTRS.items():
            out[key] = getattr(self, attr)
        return out

    def cells(self, keys: Iterable[str]) -> List[str]:
        return [self.get(k) for k in keys]

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "GoalRow":
        return normalize_row(data)


_ATTR_NAMES = {f.name for f in fields(GoalRow)}


@dataclass
class GoalsState:
    rows: List[GoalRow] = field(default_factory=list)

    def to_dict(self) -> Dict[str, List[Dict[str, str]]]:
        return {"rows": [r.to_dict() for r in self.rows]}


def blank_row() -> GoalRow:
    return GoalRow(id=generate_id())


def normalize_row(candidate: Any) -> GoalRow:
    """Coerce an arbitrary object into a well-formed row.

    Accepts a `GoalRow` or a mapping keyed by persisted (camelCase) or
    attribute (snake_case) names. Non-string values become "" and a missing
    or blank id is replaced with a fresh one.
    """
    if isinstance(candidate, GoalRow):
        candidate = candidate.to_dict()
    if not isinstance(candidate, Mapping):
        candidate = {}

    values: Dict[str, str] = {}
    for key, attr in FIELD_ATTRS.items():
        raw = candidate.get(key, candidate.get(attr))
        values[attr] = raw if isinstance(raw, str) else ""

    row_id = candidate.get("id")
    if not isinstance(row_id, str) or not row_id.strip():
        row_id = generate_id()
    return GoalRow(id=row_id, **values)


def normalize_state(rows: Iterable[Any]) -> GoalsState:
    """Normalize a row sequence and re-key duplicate ids."""
    seen = set()
    out: List[GoalRow] = []
    for candidate in rows:
        if not isinstance(candidate, (Mapping, GoalRow)):
            continue
        row = normalize_row(candidate)
        if row.id in seen:
            row = replace(row, id=generate_id())
        seen.add(row.id)
        out.append(row)
    return GoalsState(rows=out)
