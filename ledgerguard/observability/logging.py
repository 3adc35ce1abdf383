"""JSON log output for hosts embedding the library.

Library modules only log through `logging.getLogger(__name__)` with
`extra=` fields; installing a handler is left to the host, which can call
setup_logging once at startup.
"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional, TextIO

from pythonjsonlogger.json import JsonFormatter

SERVICE_NAME = "ledgerguard"
JSON_FIELDS = "%(timestamp)s %(level)s %(name)s %(message)s"
TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


class LedgerJsonFormatter(JsonFormatter):
    """Adds the record's UTC time, level and owning service to every line."""

    def __init__(self, *args: Any, service: str = SERVICE_NAME, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.service = service

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = self.service


def setup_logging(
    level: str = "INFO",
    json_format: bool = True,
    stream: Optional[TextIO] = None,
    service: str = SERVICE_NAME,
) -> None:
    """Replace the root logger's handlers with a single stream handler"""
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.handlers.clear()

    handler = logging.StreamHandler(stream or sys.stdout)
    if json_format:
        formatter: logging.Formatter = LedgerJsonFormatter(JSON_FIELDS, service=service)
    else:
        formatter = logging.Formatter(fmt=TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    handler.setFormatter(formatter)
    root.addHandler(handler)
