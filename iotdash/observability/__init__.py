"""Observability utilities: logging setup and request correlation.

Configures standard logging with a filter that stamps every record with the
current HTTP correlation id, and integrates `structlog` when it is installed.
The `structlog` dependency is optional.
"""

from __future__ import annotations

import importlib
import logging

from ..utils.correlation import get_request_id

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(req_id)s] - %(message)s"


class RequestIdFilter(logging.Filter):  # pylint: disable=too-few-public-methods
    """Attach ``req_id`` to records that do not carry one in ``extra``."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not getattr(record, "req_id", None):
            record.req_id = get_request_id() or "-"
        return True


def setup_logging(level: str = "INFO") -> None:
    """Configure application logging.

    Parameters
    ----------
    level: str
        Logging level name (e.g., "DEBUG", "INFO"). Defaults to "INFO".

    Behavior
    --------
    - Initializes Python's logging with the requested level and adds the
      correlation-id filter to the root handlers.
    - Keeps uvicorn access logs at WARNING unless DEBUG was requested, since
      the render endpoints are polled on every tick.
    - If `structlog` is installed, configures it with a filtering bound logger.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=numeric_level,
        format=LOG_FORMAT,
        datefmt="%Y-%m-%dT%H:%M:%S",
    )
    root = logging.getLogger()
    root.setLevel(numeric_level)
    for handler in root.handlers:
        if not any(isinstance(f, RequestIdFilter) for f in handler.filters):
            handler.addFilter(RequestIdFilter())

    if numeric_level > logging.DEBUG:
        logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    try:  # optional structlog
        structlog = importlib.import_module("structlog")
        structlog.configure(
            wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        )
    except ModuleNotFoundError:  # pragma: no cover
        pass
