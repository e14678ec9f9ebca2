from __future__ import annotations

import logging
from typing import Any, Optional, Tuple

from cascade.editing import EditingSession
from cascade.errors import EditInProgressError
from cascade.export import ExportFile, export_rows
from cascade.rows import GoalRow
from cascade.schema import TableConfig
from cascade.storage import StorageBackend
from cascade.store import RowStore
from cascade.view import ViewResult, ViewState, total_pages

logger = logging.getLogger(__name__)


class GoalsTable:
    """Page-level owner of one table: store, view controls and edit session.

    View controls (filters, sort, paging, export) are locked while a row is
    being edited.
    """

    def __init__(self, store: RowStore):
        self.store = store
        self.config: TableConfig = store.config
        self.view = ViewState(page_size=self.config.page_size)
        self.session = EditingSession(store)
        self.pending_delete_id: Optional[str] = None

    @classmethod
    def open(cls, config: TableConfig, backend: StorageBackend) -> "GoalsTable":
        return cls(RowStore.open(config, backend))

    def _ensure_idle(self) -> None:
        if self.session.is_editing:
            raise EditInProgressError("Finish or cancel the current edit first")

    def derive(self) -> ViewResult:
        return self.view.derive(self.store.rows)

    def set_filter(self, key: str, value: str) -> None:
        if self.view.text.get(key, "") == (value or ""):
            return
        self._ensure_idle()
        self.view.set_filter(key, value)

    def toggle_sort(self, key: str) -> None:
        self._ensure_idle()
        self.config.column(key)
        self.view.toggle_sort(key)

    def clear_sort(self) -> None:
        self._ensure_idle()
        self.view.clear_sort()

    def set_page(self, page: int) -> None:
        self._ensure_idle()
        self.view.set_page(page)

    def create_row(self) -> GoalRow:
        self._ensure_idle()
        row = self.store.add_row()
        self.session.start_edit(row)
        count = self.derive().filtered_count
        self.view.set_page(total_pages(count, self.config.page_size))
        return row

    def start_edit(self, row_id: str) -> GoalRow:
        row = self.store.get_row(row_id)
        if row is None:
            raise KeyError(row_id)
        self.session.start_edit(row)
        return row

    def update_field(self, key: str, value: str) -> GoalRow:
        return self.session.update_field(key, value)

    def commit(self) -> GoalRow:
        return self.session.commit()

    def cancel(self) -> None:
        self.session.cancel()

    def request_delete(self, row_id: str) -> None:
        self.pending_delete_id = row_id

    def cancel_delete(self) -> None:
        self.pending_delete_id = None

    def confirm_delete(self) -> bool:
        row_id, self.pending_delete_id = self.pending_delete_id, None
        if row_id is None:
            return False
        return self.delete_row(row_id)

    def delete_row(self, row_id: str) -> bool:
        if self.session.discard_if(row_id):
            logger.info("Discarded in-flight edit of deleted row %s", row_id)
        return self.store.delete_row(row_id)

    def view_token(self) -> Tuple[Any, ...]:
        """Changes whenever the rows or the filter/sort controls change; keys cached exports."""
        return (self.store.rows, tuple(sorted(self.view.text.items())), self.view.sort_key, self.view.sort_direction)

    def export(self, fmt: str, filename_prefix: Optional[str] = None) -> ExportFile:
        self._ensure_idle()
        rows = self.derive().rows
        return export_rows(rows, fmt, filename_prefix or self.config.export_prefix)
