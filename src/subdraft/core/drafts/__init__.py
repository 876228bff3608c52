from .service import DraftPublishStore, ImportResult, RevisionState, srt_filename
from .store import (
    InMemoryTranscriptStore,
    JsonFileTranscriptStore,
    RedisTranscriptStore,
    TranscriptStore,
    open_store,
)

__all__ = [
    "DraftPublishStore",
    "ImportResult",
    "InMemoryTranscriptStore",
    "JsonFileTranscriptStore",
    "RedisTranscriptStore",
    "RevisionState",
    "TranscriptStore",
    "open_store",
    "srt_filename",
]
