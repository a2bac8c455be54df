from __future__ import annotations

from enum import StrEnum


class Outcome(StrEnum):
    PENDING = "pending"
    DUE = "due"
    NO_DUE = "no_due"
    ERROR = "error"


class Checkpoint(StrEnum):
    BEFORE = "before"
    AFTER = "after"
    ERROR = "error"


class Scope(StrEnum):
    DOCUMENT = "document"
    FRAME = "frame"
    SHADOW = "shadow"
