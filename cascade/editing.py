from __future__ import annotations

import logging
from typing import Optional

from cascade.errors import EditConflictError, NotEditingError
from cascade.rows import GoalRow
from cascade.store import RowStore

logger = logging.getLogger(__name__)


class EditingSession:
    """Single-row draft state machine: Idle <-> Editing(row_id, draft).

    The draft lives outside the store until `commit()`; only one row can be
    in Editing at a time.
    """

    def __init__(self, store: RowStore):
        self.store = store
        self.row_id: Optional[str] = None
        self.draft: Optional[GoalRow] = None

    @property
    def is_editing(self) -> bool:
        return self.row_id is not None

    def is_editing_row(self, row_id: str) -> bool:
        return self.row_id == row_id

    def start_edit(self, row: GoalRow) -> None:
        if self.row_id == row.id:
            return
        if self.is_editing:
            raise EditConflictError(f"Row {self.row_id} is already being edited")
        self.row_id = row.id
        self.draft = row

    def update_field(self, key: str, value: str) -> GoalRow:
        if self.draft is None:
            raise NotEditingError("No row is being edited")
        self.draft = self.draft.with_field(key, value)
        return self.draft

    def commit(self) -> GoalRow:
        if self.draft is None:
            raise NotEditingError("No row is being edited")
        draft = self.draft
        if not self.store.replace_row(draft):
            logger.warning("Committed draft for %s, but the row no longer exists", draft.id)
        self._reset()
        return draft

    def cancel(self) -> None:
        self._reset()

    def discard_if(self, row_id: str) -> bool:
        """Drop the draft when its row is deleted; the delete wins."""
        if self.row_id != row_id:
            return False
        self._reset()
        return True

    def _reset(self) -> None:
        self.row_id = None
        self.draft = None
