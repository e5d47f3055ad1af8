"""
Logging setup: one stream handler, request id carried through a ContextVar.
"""

import logging
import sys
import uuid
from contextvars import ContextVar

request_id_var: ContextVar[str] = ContextVar("request_id", default="")

LOG_FORMAT = "%(asctime)s %(levelname)-7s [%(request_id)s] %(name)s: %(message)s"


def get_request_id() -> str:
    return request_id_var.get() or ""


def set_request_id(request_id: str) -> None:
    request_id_var.set(request_id)


def generate_request_id() -> str:
    return str(uuid.uuid4())[:8]


class RequestIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = get_request_id() or "-"
        return True


def setup_logging(level: str = "INFO") -> None:
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Idempotent: uvicorn reload and the test client both import main more than once
    for handler in root.handlers:
        if getattr(handler, "_intima", False):
            return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(RequestIdFilter())
    handler._intima = True
    root.addHandler(handler)

    for noisy in ("httpx", "httpcore", "passlib"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
