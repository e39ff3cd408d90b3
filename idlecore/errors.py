from __future__ import annotations


class IdleCoreError(Exception):
    """Base class for errors raised by idlecore."""


class InvalidNumberError(IdleCoreError, ValueError):
    """A value could not be parsed as a finite decimal number."""


class SaveFormatError(IdleCoreError):
    """A save snapshot is structurally invalid or from an unknown version."""


class StorageError(IdleCoreError):
    """A storage backend failed to read, write or remove a key."""

    def __init__(self, operation: str, key: str, message: str = "") -> None:
        self.operation = operation
        self.key = key
        detail = f": {message}" if message else ""
        super().__init__(f"Storage {operation} failed for {key!r}{detail}")
