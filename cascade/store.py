from __future__ import annotations

import json
import logging
from typing import Any, List, Optional, Tuple

from cascade.rows import GoalRow, GoalsState, blank_row, normalize_row, normalize_state
from cascade.schema import TableConfig
from cascade.storage import StorageBackend

logger = logging.getLogger(__name__)

LEGACY_KEYS = ("chairman", "directors")


def decode_state(raw: Optional[str]) -> GoalsState:
    """Parse a persisted blob; anything unusable yields an empty state."""
    if not raw:
        return GoalsState()
    try:
        data: Any = json.loads(raw)
    except ValueError:
        logger.warning("Discarding corrupt persisted state")
        return GoalsState()
    if not isinstance(data, dict):
        logger.warning("Discarding persisted state of type %s", type(data).__name__)
        return GoalsState()

    rows = data.get("rows")
    if isinstance(rows, list):
        return normalize_state(rows)

    if any(k in data for k in LEGACY_KEYS):
        merged: List[Any] = []
        for k in LEGACY_KEYS:
            part = data.get(k)
            if isinstance(part, list):
                merged.extend(part)
        return normalize_state(merged)

    return GoalsState()


def encode_state(state: GoalsState) -> str:
    return json.dumps(state.to_dict(), ensure_ascii=False)


class RowStore:
    """Owner of one persisted table. Every mutation is saved immediately."""

    def __init__(self, config: TableConfig, backend: StorageBackend):
        self.config = config
        self.backend = backend
        self.state = GoalsState()

    @classmethod
    def open(cls, config: TableConfig, backend: StorageBackend, *, seed: bool = True) -> "RowStore":
        store = cls(config, backend)
        store.state = store.load()
        if seed and not store.state.rows:
            store.seed()
        return store

    def load(self) -> GoalsState:
        try:
            raw = self.backend.get(self.config.storage_key)
        except (OSError, UnicodeDecodeError):
            logger.warning("Could not read %s; starting empty", self.config.storage_key, exc_info=True)
            return GoalsState()
        return decode_state(raw)

    def save(self, state: Optional[GoalsState] = None) -> None:
        state = self.state if state is None else state
        try:
            self.backend.set(self.config.storage_key, encode_state(state))
        except OSError:
            logger.exception("Could not persist %s", self.config.storage_key)

    def seed(self) -> None:
        self.state = normalize_state(dict(r) for r in self.config.demo_rows)
        logger.info("Seeded %s with %d demo rows", self.config.name, len(self.state.rows))
        self.save()

    @property
    def rows(self) -> Tuple[GoalRow, ...]:
        return tuple(self.state.rows)

    def get_row(self, row_id: str) -> Optional[GoalRow]:
        for row in self.state.rows:
            if row.id == row_id:
                return row
        return None

    def add_row(self) -> GoalRow:
        row = blank_row()
        while self.get_row(row.id) is not None:
            row = blank_row()
        self.state = GoalsState(rows=[*self.state.rows, row])
        self.save()
        return row

    def replace_row(self, row: GoalRow) -> bool:
        row = normalize_row(row)
        if self.get_row(row.id) is None:
            logger.warning("replace_row: no row with id %s in %s", row.id, self.config.name)
            return False
        self.state = GoalsState(rows=[row if r.id == row.id else r for r in self.state.rows])
        self.save()
        return True

    def delete_row(self, row_id: str) -> bool:
        kept = [r for r in self.state.rows if r.id != row_id]
        if len(kept) == len(self.state.rows):
            return False
        self.state = GoalsState(rows=kept)
        self.save()
        return True
