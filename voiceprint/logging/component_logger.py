"""Per-component logger wrapper and timed-operation context manager.

``ComponentLogger`` binds a ``LogComponent`` to a ``VoiceLogger`` so that
each subsystem can log without repeating its component.  When no logger
is passed, the global one from ``init_logger()`` is used.

``TimedOperation`` is an async context manager returned by
``ComponentLogger.timed()`` that logs the start, elapsed duration, and
success/failure of a block of code.
"""

import time
from typing import Any, Optional

from voiceprint.logging.models import LogComponent
from voiceprint.logging.voice_logger import VoiceLogger, get_logger


class ComponentLogger:
    """Wrapper that binds a fixed ``LogComponent`` to a logger::

        log = ComponentLogger(LogComponent.CACHE, voice_logger)
        await log.info("Profile updated", user_id="u1", data={"samples": 4})
    """

    def __init__(
        self, component: LogComponent, logger: Optional[VoiceLogger] = None
    ) -> None:
        self.component = component
        self._logger = logger

    @property
    def logger(self) -> VoiceLogger:
        return self._logger if self._logger is not None else get_logger()

    async def debug(self, message: str, **kwargs: Any) -> None:
        await self.logger.debug(self.component, message, **kwargs)

    async def info(self, message: str, **kwargs: Any) -> None:
        await self.logger.info(self.component, message, **kwargs)

    async def warning(self, message: str, **kwargs: Any) -> None:
        await self.logger.warning(self.component, message, **kwargs)

    async def error(
        self, message: str, error: Optional[BaseException] = None, **kwargs: Any
    ) -> None:
        await self.logger.error(self.component, message, error=error, **kwargs)

    async def critical(
        self, message: str, error: Optional[BaseException] = None, **kwargs: Any
    ) -> None:
        await self.logger.critical(self.component, message, error=error, **kwargs)

    def timed(self, message: str, **kwargs: Any) -> "TimedOperation":
        """Return an async context manager that logs start/end with duration.

        Usage::

            async with self.log.timed("Creating fingerprint", user_id=user_id):
                traits = await self._run(...)
        """
        return TimedOperation(self, message, **kwargs)


class TimedOperation:
    """Async context manager that measures and logs operation duration.

    On entry, logs a DEBUG message (``"Starting: <message>"``).
    On successful exit, logs an INFO message with ``duration_ms``.
    On exception, logs an ERROR message with ``duration_ms`` and the error,
    then lets the exception propagate.
    """

    def __init__(self, logger: ComponentLogger, message: str, **kwargs: Any) -> None:
        self.logger = logger
        self.message = message
        self.kwargs = kwargs
        self.start_time: Optional[float] = None
        self.duration_ms: Optional[int] = None

    async def __aenter__(self) -> "TimedOperation":
        self.start_time = time.monotonic()
        await self.logger.debug(f"Starting: {self.message}", **self.kwargs)
        return self

    async def __aexit__(
        self,
        exc_type: Optional[type],
        exc_val: Optional[BaseException],
        exc_tb: Any,
    ) -> None:
        assert self.start_time is not None
        self.duration_ms = int((time.monotonic() - self.start_time) * 1000)

        if exc_type is not None:
            await self.logger.error(
                f"Failed: {self.message}",
                error=exc_val,
                duration_ms=self.duration_ms,
                **self.kwargs,
            )
        else:
            await self.logger.info(
                f"Completed: {self.message}",
                duration_ms=self.duration_ms,
                **self.kwargs,
            )
