from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from subdraft.core.errors import (
    EmptyInput,
    InvalidFormat,
    InvalidOperation,
    NoSegmentsExtracted,
    NothingToPublish,
    SaveInProgress,
    TranscriptError,
    TranscriptNotFound,
)


@dataclass
class SubdraftApiError(Exception):
    """
    Typed API error carrying a stable machine-readable code.
    """

    code: str
    message: str
    status_code: int = 400
    details: Optional[Dict[str, Any]] = None


# Most specific first: NothingToPublish and SaveInProgress are InvalidOperation.
_STATUS_BY_ERROR = (
    (TranscriptNotFound, 404),
    (NothingToPublish, 409),
    (SaveInProgress, 409),
    (EmptyInput, 400),
    (InvalidFormat, 400),
    (NoSegmentsExtracted, 400),
    (InvalidOperation, 400),
)


def from_domain_error(exc: TranscriptError) -> SubdraftApiError:
    status = 400
    for cls, code in _STATUS_BY_ERROR:
        if isinstance(exc, cls):
            status = code
            break
    return SubdraftApiError(code=exc.code, message=exc.message, status_code=status, details=exc.details or None)
