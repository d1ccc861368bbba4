"""Activity-log record model."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

LogKind = Literal["modify", "add", "rollback", "warning", "error"]


class LogRecord(BaseModel):
    """One immutable, append-only activity-log entry."""

    timestamp: datetime
    actor: str
    target: str
    kind: LogKind
    summary: str
    details: list[str] = Field(default_factory=list)

    model_config = {"frozen": True}
