"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class DmlOperation(StrEnum):
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"
    UNDELETE = "undelete"


class TriggerPhase(StrEnum):
    """Dispatch point at which the host hands a batch of changed records over."""

    BEFORE_INSERT = "before_insert"
    AFTER_INSERT = "after_insert"
    BEFORE_UPDATE = "before_update"
    AFTER_UPDATE = "after_update"
    BEFORE_DELETE = "before_delete"
    AFTER_DELETE = "after_delete"
    AFTER_UNDELETE = "after_undelete"

    @classmethod
    def before(cls, operation: DmlOperation) -> TriggerPhase:
        return cls(f"before_{operation.value}")

    @classmethod
    def after(cls, operation: DmlOperation) -> TriggerPhase:
        return cls(f"after_{operation.value}")
