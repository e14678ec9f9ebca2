from __future__ import annotations


class CascadeError(Exception):
    """Base class for workspace errors."""


class UnknownTableError(CascadeError, KeyError):
    def __init__(self, name: str):
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"Unknown table: {self.name!r}"


class EditConflictError(CascadeError):
    """Another row is already being edited."""


class NotEditingError(CascadeError):
    """The operation needs an active edit."""


class EditInProgressError(CascadeError):
    """View controls are locked until the active edit is saved or cancelled."""


class ExportError(CascadeError):
    def __init__(self, fmt: str, message: str = ""):
        super().__init__(message or f"Export to {fmt.upper()} failed")
        self.fmt = fmt
