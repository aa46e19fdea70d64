import logging
import sys
from contextvars import ContextVar
from typing import Optional, Union

from pythonjsonlogger import jsonlogger

# trace id contextvar
TRACE_ID_CTX: ContextVar[Optional[str]] = ContextVar("trace_id", default=None)

# libraries that are chatty at INFO
_QUIET_LOGGERS = ("sqlalchemy.engine", "twilio.http_client", "passlib")


class TraceIdFilter(logging.Filter):
    def filter(self, record):
        record.trace_id = TRACE_ID_CTX.get(None)
        return True


def setup_logging(level: Union[int, str] = logging.INFO):
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    root = logging.getLogger()
    handler = logging.StreamHandler(sys.stdout)
    fmt = jsonlogger.JsonFormatter("%(asctime)s %(levelname)s %(name)s %(message)s %(trace_id)s")
    handler.setFormatter(fmt)
    handler.addFilter(TraceIdFilter())
    root.setLevel(level)
    root.handlers = [handler]
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
