from __future__ import annotations

import json
import os
import re
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from subdraft.core.errors import InvalidOperation, TranscriptNotFound
from subdraft.core_types import SegmentRecord, TranscriptRecord, utc_now

_TRANSCRIPT_ID_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]{0,127}$")


def check_transcript_id(transcript_id: str) -> str:
    if not _TRANSCRIPT_ID_RE.match(transcript_id or ""):
        raise InvalidOperation(f"Invalid transcript id: {transcript_id!r}", details={"transcript_id": transcript_id})
    return transcript_id


def _records(content: List[Any]) -> List[SegmentRecord]:
    return [c if isinstance(c, SegmentRecord) else SegmentRecord.model_validate(c) for c in content]


class TranscriptStore(ABC):
    """
    Persistence boundary: one row per transcript id holding published content
    and an optional draft slot. Each write replaces one slot atomically.
    """

    @abstractmethod
    def get(self, transcript_id: str) -> Optional[TranscriptRecord]: ...

    @abstractmethod
    def create(self, record: TranscriptRecord) -> TranscriptRecord: ...

    @abstractmethod
    def set_content(self, transcript_id: str, content: List[Any]) -> TranscriptRecord: ...

    @abstractmethod
    def set_draft_content(self, transcript_id: str, draft: Optional[List[Any]]) -> TranscriptRecord: ...

    def ping(self) -> None:
        """Raise when the backend cannot serve requests."""

    def require(self, transcript_id: str) -> TranscriptRecord:
        rec = self.get(transcript_id)
        if rec is None:
            raise TranscriptNotFound(f"Transcript not found: {transcript_id}", details={"transcript_id": transcript_id})
        return rec


# -------------------------
# In-memory
# -------------------------


class InMemoryTranscriptStore(TranscriptStore):
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._rows: Dict[str, TranscriptRecord] = {}

    def get(self, transcript_id: str) -> Optional[TranscriptRecord]:
        with self._lock:
            rec = self._rows.get(transcript_id)
            return rec.model_copy(deep=True) if rec is not None else None

    def create(self, record: TranscriptRecord) -> TranscriptRecord:
        check_transcript_id(record.id)
        with self._lock:
            self._rows[record.id] = record.model_copy(deep=True)
        return record

    def _update(self, transcript_id: str, **fields: Any) -> TranscriptRecord:
        with self._lock:
            rec = self._rows.get(transcript_id)
            if rec is None:
                raise TranscriptNotFound(f"Transcript not found: {transcript_id}", details={"transcript_id": transcript_id})
            updated = rec.model_copy(update={**fields, "updated_at": utc_now()}, deep=True)
            self._rows[transcript_id] = updated
            return updated.model_copy(deep=True)

    def set_content(self, transcript_id: str, content: List[Any]) -> TranscriptRecord:
        return self._update(transcript_id, content=_records(content))

    def set_draft_content(self, transcript_id: str, draft: Optional[List[Any]]) -> TranscriptRecord:
        return self._update(transcript_id, draft_content=None if draft is None else _records(draft))


# -------------------------
# JSON files
# -------------------------


@dataclass(frozen=True)
class TranscriptLayout:
    """
    On-disk layout:
      <root>/
        <transcript_id>/
          transcript.json
    """

    record_filename: str = "transcript.json"

    def transcript_dir(self, root: str | Path, transcript_id: str) -> Path:
        return Path(root) / check_transcript_id(transcript_id)

    def record_path(self, root: str | Path, transcript_id: str) -> Path:
        return self.transcript_dir(root, transcript_id) / self.record_filename


DEFAULT_LAYOUT = TranscriptLayout()


def _atomic_write_json(path: Path, payload: Dict[str, Any]) -> None:
    """
    Atomic write: write temp file then replace.
    Readers never see a half-written transcript.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    data = json.dumps(payload, ensure_ascii=False, indent=2, sort_keys=True)
    with open(tmp, "w", encoding="utf-8") as f:
        f.write(data)
        f.flush()
        os.fsync(f.fileno())
    os.replace(tmp, path)


class JsonFileTranscriptStore(TranscriptStore):
    def __init__(self, root: str | Path, layout: TranscriptLayout = DEFAULT_LAYOUT) -> None:
        self.root = Path(os.path.normpath(str(root)))
        self.layout = layout
        self._lock = threading.Lock()

    def record_path(self, transcript_id: str) -> Path:
        return self.layout.record_path(self.root, transcript_id)

    def ping(self) -> None:
        self.root.mkdir(parents=True, exist_ok=True)
        if not os.access(self.root, os.W_OK):
            raise RuntimeError(f"data root is not writable: {self.root}")

    def _read(self, transcript_id: str) -> Optional[TranscriptRecord]:
        path = self.record_path(transcript_id)
        if not path.exists():
            return None
        with open(path, "r", encoding="utf-8") as f:
            return TranscriptRecord.model_validate(json.load(f))

    def _write(self, record: TranscriptRecord) -> None:
        _atomic_write_json(self.record_path(record.id), record.model_dump(mode="json"))

    def get(self, transcript_id: str) -> Optional[TranscriptRecord]:
        return self._read(transcript_id)

    def create(self, record: TranscriptRecord) -> TranscriptRecord:
        with self._lock:
            self._write(record)
        return record

    def _update(self, transcript_id: str, **fields: Any) -> TranscriptRecord:
        with self._lock:
            rec = self._read(transcript_id)
            if rec is None:
                raise TranscriptNotFound(f"Transcript not found: {transcript_id}", details={"transcript_id": transcript_id})
            updated = rec.model_copy(update={**fields, "updated_at": utc_now()})
            self._write(updated)
            return updated

    def set_content(self, transcript_id: str, content: List[Any]) -> TranscriptRecord:
        return self._update(transcript_id, content=_records(content))

    def set_draft_content(self, transcript_id: str, draft: Optional[List[Any]]) -> TranscriptRecord:
        return self._update(transcript_id, draft_content=None if draft is None else _records(draft))


# -------------------------
# Redis
# -------------------------


def get_redis_connection(redis_url: str) -> Any:
    """
    Create a Redis connection from a URL and fail fast when it is unreachable.
    """
    if not redis_url or not redis_url.strip():
        raise ValueError("redis_url is empty")

    import redis

    conn = redis.from_url(redis_url, decode_responses=True)
    try:
        conn.ping()
    except Exception as e:
        raise RuntimeError(f"Redis ping failed for url={redis_url!r}: {e}") from e
    return conn


def _s(v: Any) -> Optional[str]:
    if v is None:
        return None
    if isinstance(v, bytes):
        return v.decode("utf-8")
    return str(v)


class RedisTranscriptStore(TranscriptStore):
    """
    One hash per transcript:
      <prefix><id> -> {meta, content, draft_content, updated_at}
    Every slot write is a single HSET.
    """

    def __init__(self, conn: Any, prefix: str = "subdraft:transcript:") -> None:
        self.conn = conn
        self.prefix = prefix

    def key(self, transcript_id: str) -> str:
        return f"{self.prefix}{check_transcript_id(transcript_id)}"

    def ping(self) -> None:
        self.conn.ping()

    def get(self, transcript_id: str) -> Optional[TranscriptRecord]:
        raw = self.conn.hgetall(self.key(transcript_id))
        if not raw:
            return None
        fields = {_s(k): _s(v) for k, v in raw.items()}
        data: Dict[str, Any] = json.loads(fields.get("meta") or "{}")
        data["content"] = json.loads(fields.get("content") or "[]")
        draft = fields.get("draft_content")
        data["draft_content"] = json.loads(draft) if draft else None
        if fields.get("updated_at"):
            data["updated_at"] = fields["updated_at"]
        return TranscriptRecord.model_validate(data)

    def create(self, record: TranscriptRecord) -> TranscriptRecord:
        dumped = record.model_dump(mode="json")
        content = dumped.pop("content")
        draft = dumped.pop("draft_content")
        updated_at = dumped.pop("updated_at")
        self.conn.hset(
            self.key(record.id),
            mapping={
                "meta": json.dumps(dumped, ensure_ascii=False),
                "content": json.dumps(content, ensure_ascii=False),
                "draft_content": json.dumps(draft, ensure_ascii=False) if draft is not None else "",
                "updated_at": updated_at,
            },
        )
        return record

    def _hset_slot(self, transcript_id: str, slot: str, value: str) -> TranscriptRecord:
        key = self.key(transcript_id)
        if not self.conn.exists(key):
            raise TranscriptNotFound(f"Transcript not found: {transcript_id}", details={"transcript_id": transcript_id})
        self.conn.hset(key, mapping={slot: value, "updated_at": utc_now().isoformat()})
        return self.require(transcript_id)

    def set_content(self, transcript_id: str, content: List[Any]) -> TranscriptRecord:
        payload = [r.model_dump(mode="json") for r in _records(content)]
        return self._hset_slot(transcript_id, "content", json.dumps(payload, ensure_ascii=False))

    def set_draft_content(self, transcript_id: str, draft: Optional[List[Any]]) -> TranscriptRecord:
        if draft is None:
            return self._hset_slot(transcript_id, "draft_content", "")
        payload = [r.model_dump(mode="json") for r in _records(draft)]
        return self._hset_slot(transcript_id, "draft_content", json.dumps(payload, ensure_ascii=False))


def open_store(kind: str, *, data_root: str = "", redis_url: str = "", redis_prefix: str = "subdraft:transcript:") -> TranscriptStore:
    k = (kind or "memory").strip().lower()
    if k == "memory":
        return InMemoryTranscriptStore()
    if k == "file":
        return JsonFileTranscriptStore(Path(data_root) / "transcripts")
    if k == "redis":
        return RedisTranscriptStore(get_redis_connection(redis_url), prefix=redis_prefix)
    raise ValueError("store must be one of: memory, file, redis")
