"""Boundary for system/security events emitted by the fraud engine.

The host application owns the real sink (audit tables, paging, SIEM).
LoggingEventSink is the fallback that writes events to a logger.
"""

import logging
from typing import Protocol

from ledgerguard.models import SecurityEvent, SystemEvent


class EventSink(Protocol):
    def log_system_event(self, event: SystemEvent) -> None: ...

    def log_security_event(self, event: SecurityEvent) -> None: ...


class LoggingEventSink:
    """Forward events to a named logger as structured records."""

    def __init__(self, logger_name: str = "ledgerguard.events") -> None:
        self.logger = logging.getLogger(logger_name)

    def log_system_event(self, event: SystemEvent) -> None:
        level = logging.ERROR if event.type == "ERROR" else logging.INFO
        self.logger.log(
            level,
            event.message,
            extra={"event_type": event.type, "details": event.details},
        )

    def log_security_event(self, event: SecurityEvent) -> None:
        self.logger.warning(
            event.message,
            extra={
                "event_type": event.type,
                "user_id": event.user_id,
                "details": event.details,
            },
        )
