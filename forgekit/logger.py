"""
Structured logging for forgekit.
Emits JSON lines on stderr so command output on stdout stays untouched.
"""

import json
import sys
import logging
from datetime import datetime, timezone

logger = logging.getLogger("forgekit")
logger.setLevel(logging.INFO)
handler = logging.StreamHandler(sys.stderr)
logger.addHandler(handler)


class JsonFormatter(logging.Formatter):
    """JSON formatter that carries every extra field of the record."""

    STANDARD_ATTRS = {
        'name', 'msg', 'args', 'created', 'filename', 'funcName', 'levelname',
        'levelno', 'lineno', 'module', 'msecs', 'message', 'pathname', 'process',
        'processName', 'relativeCreated', 'thread', 'threadName', 'exc_info',
        'exc_text', 'stack_info', 'asctime', 'taskName'
    }

    def format(self, record):
        log_record = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "message": record.getMessage(),
            "module": record.module,
        }

        for key, value in record.__dict__.items():
            if key not in self.STANDARD_ATTRS and not key.startswith('_'):
                try:
                    json.dumps(value)
                    log_record[key] = value
                except (TypeError, ValueError):
                    log_record[key] = str(value)

        return json.dumps(log_record)


handler.setFormatter(JsonFormatter())


def get_logger(component: str = "forgekit"):
    return ComponentLogger(component)


class ComponentLogger:
    def __init__(self, component):
        self.component = component
        self.logger = logging.getLogger("forgekit")

    def _extra(self, provider, fields):
        extra = {"component": self.component}
        if provider: extra["provider"] = provider
        extra.update(fields)
        return extra

    def debug(self, msg, provider=None, **kwargs):
        self.logger.debug(msg, extra=self._extra(provider, kwargs))

    def info(self, msg, provider=None, **kwargs):
        self.logger.info(msg, extra=self._extra(provider, kwargs))

    def warning(self, msg, provider=None, **kwargs):
        self.logger.warning(msg, extra=self._extra(provider, kwargs))

    def error(self, msg, provider=None, **kwargs):
        self.logger.error(msg, extra=self._extra(provider, kwargs))
