from __future__ import annotations

from typing import Any, Dict, Optional


class TranscriptError(Exception):
    """
    Base class for domain errors.

    `code` is a stable machine-readable identifier; the API layer maps it to an
    HTTP status without inspecting messages.
    """

    code: str = "transcript_error"

    def __init__(self, message: str, *, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class InvalidFormat(TranscriptError):
    code = "invalid_format"


class EmptyInput(TranscriptError):
    code = "empty_input"


class NoSegmentsExtracted(TranscriptError):
    code = "no_segments_extracted"


class InvalidOperation(TranscriptError):
    code = "invalid_operation"


class NothingToPublish(InvalidOperation):
    code = "nothing_to_publish"


class SaveInProgress(InvalidOperation):
    code = "save_in_progress"


class TranscriptNotFound(TranscriptError):
    code = "not_found"
