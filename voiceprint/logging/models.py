"""Logging data models: LogLevel, LogComponent, LogEntry."""

import json
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


class LogLevel(Enum):
    """Log levels with numeric values for severity comparison.

    Values match the standard ``logging`` module so a level name from
    configuration maps onto both.
    """

    DEBUG = 10
    INFO = 20
    WARNING = 30
    ERROR = 40
    CRITICAL = 50

    @property
    def name_str(self) -> str:
        """Get lowercase name for display/serialization."""
        return self.name.lower()

    @classmethod
    def from_name(cls, name: str) -> "LogLevel":
        """Parse a case-insensitive level name such as ``"info"``.

        Raises:
            ValueError: If *name* is not a known level.
        """
        try:
            return cls[name.strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown log level: {name!r}") from None


class LogComponent(Enum):
    """All voice profile components that can produce logs."""

    EXTRACTOR = "extractor"
    FINGERPRINT = "fingerprint"
    SIMILARITY = "similarity"
    CACHE = "cache"
    DATABASE = "database"
    SERVICE = "service"
    CONFIG = "config"


@dataclass
class LogEntry:
    """Structured log entry.

    A single event with optional user context, error details and timing.
    Serializes to a JSON line, a dict, or a one-line readable string.
    """

    timestamp: datetime
    level: LogLevel
    component: LogComponent
    message: str

    # Context
    user_id: Optional[str] = None

    data: Dict[str, Any] = field(default_factory=dict)

    # Error details
    error_type: Optional[str] = None
    error_traceback: Optional[str] = None

    # Performance
    duration_ms: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "level": self.level.value,
            "level_name": self.level.name_str,
            "component": self.component.value,
            "message": self.message,
            "user_id": self.user_id,
            "data": self.data,
            "error_type": self.error_type,
            "error_traceback": self.error_traceback,
            "duration_ms": self.duration_ms,
        }

    def to_json(self) -> str:
        """Serialize to a JSON line for file logging."""
        return json.dumps(self.to_dict(), ensure_ascii=False, default=str)

    def to_readable(self) -> str:
        """Human-readable format for console output."""
        time_str = self.timestamp.strftime("%H:%M:%S")
        msg = (
            f"[{self.level.name}] [{time_str}] "
            f"[{self.component.value}] {self.message}"
        )
        if self.user_id:
            msg += f" user={self.user_id}"
        if self.duration_ms is not None:
            msg += f" ({self.duration_ms}ms)"
        return msg
