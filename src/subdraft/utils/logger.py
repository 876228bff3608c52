import logging
from contextvars import ContextVar
from pathlib import Path
from typing import Optional

_TRACE_ID: ContextVar[str] = ContextVar("subdraft_trace_id", default="")

_FMT = "[%(levelname)s] %(message)s"
_FILE_FMT = "%(asctime)s [%(levelname)s] %(name)s trace=%(trace_id)s %(message)s"


class _TraceIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.trace_id = _TRACE_ID.get() or "-"
        return True


def get_logger(name: str = "subdraft") -> logging.Logger:
    logger = logging.getLogger(name)
    if logger.handlers or "." in name:
        # child loggers propagate to the configured "subdraft" root
        return logger
    logger.setLevel(logging.INFO)
    handler = logging.StreamHandler()
    handler.addFilter(_TraceIdFilter())
    handler.setFormatter(logging.Formatter(_FMT))
    logger.addHandler(handler)
    return logger


def configure_logging(
    *,
    logger_name: str = "subdraft",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
    log_path: Optional[str] = None,
) -> logging.Logger:
    """
    Process-level logging baseline.

    - console handler on stderr at console_level
    - optional file handler at file_level (parent dir created)
    - safe to call twice: existing handlers are replaced
    """
    logger = logging.getLogger(logger_name)
    for h in list(logger.handlers):
        logger.removeHandler(h)
        h.close()

    logger.setLevel(min(console_level, file_level) if log_path else console_level)
    logger.propagate = False

    console = logging.StreamHandler()
    console.setLevel(console_level)
    console.addFilter(_TraceIdFilter())
    console.setFormatter(logging.Formatter(_FMT))
    logger.addHandler(console)

    if log_path:
        p = Path(log_path).expanduser()
        p.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(p, encoding="utf-8")
        fh.setLevel(file_level)
        fh.addFilter(_TraceIdFilter())
        fh.setFormatter(logging.Formatter(_FILE_FMT))
        logger.addHandler(fh)

    return logger


def set_trace_id(trace_id: str) -> None:
    _TRACE_ID.set(trace_id or "")


def clear_trace_id() -> None:
    _TRACE_ID.set("")


def get_trace_id() -> str:
    return _TRACE_ID.get()
