"""Structured JSON event log for the voice profile core.

Provides the ``VoiceLogger`` class that writes structured log entries to
local JSON-lines files (via ``aiofiles``) and keeps a lightweight
in-memory ring buffer for fast ``get_recent()`` queries.

Global helpers:
    - ``init_logger()``  -- create and register a singleton ``VoiceLogger``
    - ``get_logger()``   -- retrieve the singleton (raises if not initialised)
"""

import logging
import traceback
from collections import deque
from pathlib import Path
from typing import Any, Callable, Deque, Dict, List, Optional

import aiofiles

from voiceprint.logging.models import LogComponent, LogEntry, LogLevel
from voiceprint.utils import utc_now

logger = logging.getLogger(__name__)

DEFAULT_MAX_RECENT = 1000


class VoiceLogger:
    """Central structured logger.

    Parameters:
        log_dir: Directory for log files (created if missing).
        min_level: Entries below this level are dropped.
        max_recent: Capacity of the in-memory ring buffer.
    """

    def __init__(
        self,
        log_dir: str = "logs",
        min_level: LogLevel = LogLevel.INFO,
        max_recent: int = DEFAULT_MAX_RECENT,
    ) -> None:
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.min_level = min_level

        # Log file paths
        self._main_log = self.log_dir / "voiceprint.log"
        self._error_log = self.log_dir / "errors.log"
        self._debug_log = self.log_dir / "debug.log"

        self._recent_logs: Deque[LogEntry] = deque(maxlen=max_recent)
        self._handlers: List[Callable[[LogEntry], None]] = []

    def add_handler(self, handler: Callable[[LogEntry], None]) -> None:
        """Register a custom synchronous log handler."""
        self._handlers.append(handler)

    # ------------------------------------------------------------------
    # Core log method
    # ------------------------------------------------------------------

    async def log(
        self,
        level: LogLevel,
        component: LogComponent,
        message: str,
        user_id: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
        error: Optional[BaseException] = None,
        duration_ms: Optional[int] = None,
    ) -> Optional[LogEntry]:
        """Log a structured message.

        Returns:
            The written entry, or ``None`` when *level* is below
            ``min_level``.
        """
        if level.value < self.min_level.value:
            return None

        entry = LogEntry(
            timestamp=utc_now(),
            level=level,
            component=component,
            message=message,
            user_id=user_id,
            data=data or {},
            duration_ms=duration_ms,
        )

        if error is not None:
            entry.error_type = type(error).__name__
            entry.error_traceback = "".join(
                traceback.format_exception(type(error), error, error.__traceback__)
            )

        self._recent_logs.append(entry)

        await self._write_to_file(entry)

        for handler in self._handlers:
            try:
                handler(entry)
            except Exception:
                logger.exception("Log handler %r failed", handler)

        return entry

    # ------------------------------------------------------------------
    # Convenience methods
    # ------------------------------------------------------------------

    async def debug(self, component: LogComponent, message: str, **kwargs: Any) -> None:
        await self.log(LogLevel.DEBUG, component, message, **kwargs)

    async def info(self, component: LogComponent, message: str, **kwargs: Any) -> None:
        await self.log(LogLevel.INFO, component, message, **kwargs)

    async def warning(self, component: LogComponent, message: str, **kwargs: Any) -> None:
        await self.log(LogLevel.WARNING, component, message, **kwargs)

    async def error(self, component: LogComponent, message: str, **kwargs: Any) -> None:
        await self.log(LogLevel.ERROR, component, message, **kwargs)

    async def critical(self, component: LogComponent, message: str, **kwargs: Any) -> None:
        await self.log(LogLevel.CRITICAL, component, message, **kwargs)

    # ------------------------------------------------------------------
    # Query methods
    # ------------------------------------------------------------------

    def get_recent(
        self,
        limit: int = 20,
        level: Optional[LogLevel] = None,
        component: Optional[LogComponent] = None,
        user_id: Optional[str] = None,
    ) -> List[LogEntry]:
        """Return recent logs from the in-memory ring buffer.

        Filters are applied in-memory (fast, no I/O).
        """
        logs = list(self._recent_logs)

        if level is not None:
            logs = [entry for entry in logs if entry.level == level]
        if component is not None:
            logs = [entry for entry in logs if entry.component == component]
        if user_id is not None:
            logs = [entry for entry in logs if entry.user_id == user_id]

        return logs[-limit:]

    # ------------------------------------------------------------------
    # Private output methods
    # ------------------------------------------------------------------

    async def _write_to_file(self, entry: LogEntry) -> None:
        """Write log entry to JSON log files using async I/O.

        - ``voiceprint.log`` -- all entries
        - ``errors.log``     -- ERROR and CRITICAL only
        - ``debug.log``      -- DEBUG only
        """
        json_line = entry.to_json() + "\n"

        async with aiofiles.open(self._main_log, "a", encoding="utf-8") as f:
            await f.write(json_line)

        if entry.level.value >= LogLevel.ERROR.value:
            async with aiofiles.open(self._error_log, "a", encoding="utf-8") as f:
                await f.write(json_line)

        if entry.level == LogLevel.DEBUG:
            async with aiofiles.open(self._debug_log, "a", encoding="utf-8") as f:
                await f.write(json_line)


# ======================================================================
# GLOBAL LOGGER SINGLETON
# ======================================================================

_logger: Optional[VoiceLogger] = None


def init_logger(
    log_dir: str = "logs",
    min_level: LogLevel = LogLevel.INFO,
    max_recent: int = DEFAULT_MAX_RECENT,
) -> VoiceLogger:
    """Initialise and register the global ``VoiceLogger`` singleton.

    Returns the newly created logger instance.
    """
    global _logger
    _logger = VoiceLogger(log_dir=log_dir, min_level=min_level, max_recent=max_recent)
    return _logger


def get_logger() -> VoiceLogger:
    """Retrieve the global ``VoiceLogger`` singleton.

    Raises:
        RuntimeError: If ``init_logger()`` has not been called yet.
    """
    if _logger is None:
        raise RuntimeError("Logger not initialized. Call init_logger() first.")
    return _logger


def reset_logger() -> None:
    """Forget the global logger.  Used by tests."""
    global _logger
    _logger = None
