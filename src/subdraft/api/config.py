from __future__ import annotations

import os
from dataclasses import dataclass, field

from subdraft.core.subtitle.srt_codec import EncodePolicy


def _env_float(name: str, default: str) -> float:
    return float(os.getenv(name, default))


@dataclass(frozen=True)
class ApiConfig:
    """
    Runtime config (env-driven).

    SUBDRAFT_STORE selects the persistence backend:
      - memory: process-local, lost on restart (tests, demos)
      - file:   <data_root>/transcripts/<id>/transcript.json
      - redis:  one hash per transcript under redis_prefix
    """

    store: str = field(default_factory=lambda: os.getenv("SUBDRAFT_STORE", "file"))
    data_root: str = field(default_factory=lambda: os.getenv("SUBDRAFT_DATA_ROOT", "./data"))

    redis_url: str = field(default_factory=lambda: os.getenv("SUBDRAFT_REDIS_URL", "redis://localhost:6379/0"))
    redis_prefix: str = field(default_factory=lambda: os.getenv("SUBDRAFT_REDIS_PREFIX", "subdraft:transcript:"))

    # End-time inference for SRT output (editor: 4s last cue, standalone files: 10s).
    last_duration_sec: float = field(default_factory=lambda: _env_float("SUBDRAFT_LAST_DURATION_SEC", "4"))
    fallback_duration_sec: float = field(default_factory=lambda: _env_float("SUBDRAFT_FALLBACK_DURATION_SEC", "3"))

    autosave_interval_sec: float = field(default_factory=lambda: _env_float("SUBDRAFT_AUTOSAVE_INTERVAL_SEC", "60"))

    log_level: str = field(default_factory=lambda: os.getenv("SUBDRAFT_LOG_LEVEL", "INFO"))
    log_path: str = field(default_factory=lambda: os.getenv("SUBDRAFT_LOG_PATH", ""))

    api_host: str = field(default_factory=lambda: os.getenv("SUBDRAFT_API_HOST", "0.0.0.0"))
    api_port: int = field(default_factory=lambda: int(os.getenv("SUBDRAFT_API_PORT", "8000")))

    def __post_init__(self) -> None:
        if self.last_duration_sec <= 0 or self.fallback_duration_sec <= 0:
            raise ValueError("SRT cue durations must be > 0")
        if self.autosave_interval_sec <= 0:
            raise ValueError("SUBDRAFT_AUTOSAVE_INTERVAL_SEC must be > 0")

    @property
    def encode_policy(self) -> EncodePolicy:
        return EncodePolicy(
            fallback_duration_s=self.fallback_duration_sec,
            last_duration_s=self.last_duration_sec,
        )


def load_config() -> ApiConfig:
    return ApiConfig()
