"""Structured logging for the voice profile core."""
from voiceprint.logging.models import LogLevel, LogComponent, LogEntry
from voiceprint.logging.voice_logger import (
    VoiceLogger,
    init_logger,
    get_logger,
    reset_logger,
)
from voiceprint.logging.component_logger import ComponentLogger, TimedOperation

__all__ = [
    "LogLevel", "LogComponent", "LogEntry",
    "VoiceLogger", "init_logger", "get_logger", "reset_logger",
    "ComponentLogger", "TimedOperation",
]
