from __future__ import annotations

import threading
from typing import Optional

from subdraft.core.drafts.service import DraftPublishStore
from subdraft.core.errors import SaveInProgress
from subdraft.core_types import TranscriptRecord
from subdraft.utils.logger import get_logger

from .session import SegmentEditingSession

logger = get_logger("subdraft.autosave")

DEFAULT_AUTOSAVE_INTERVAL_S = 60.0


class SessionController:
    """
    Save / publish entry points for one editing session.

    Manual saves, autosave ticks and publishes share one non-blocking lock, so
    a session never has two writes in flight. A second request while one is
    pending raises SaveInProgress.
    """

    def __init__(
        self,
        session: SegmentEditingSession,
        drafts: DraftPublishStore,
        transcript_id: str,
        *,
        video_id: Optional[str] = None,
        language: Optional[str] = None,
    ) -> None:
        self.session = session
        self.drafts = drafts
        self.transcript_id = transcript_id
        self.video_id = video_id
        self.language = language
        self.autosave: Optional["AutosaveTask"] = None
        self._lock = threading.Lock()

    @property
    def pending(self) -> bool:
        return self.session.save_state.pending_save

    def _acquire(self, action: str) -> None:
        if not self._lock.acquire(blocking=False):
            raise SaveInProgress(f"Cannot {action}: a save is already in progress", details={"transcript_id": self.transcript_id})
        self.session.save_state.pending_save = True

    def _release(self) -> None:
        self.session.save_state.pending_save = False
        self._lock.release()

    def _save_locked(self) -> TranscriptRecord:
        snapshot = self.session.current_segments()
        rec = self.drafts.save_draft(
            self.transcript_id,
            snapshot,
            video_id=self.video_id,
            language=self.language,
        )
        # Only a successful write clears the dirty flag.
        self.session.mark_saved(snapshot)
        return rec

    def save_draft(self) -> TranscriptRecord:
        self._acquire("save draft")
        try:
            return self._save_locked()
        finally:
            self._release()

    def publish(self, *, save_first: bool = True) -> TranscriptRecord:
        """
        Publish the stored draft. With save_first, unsaved session edits are
        written to the draft slot before publishing.
        """
        self._acquire("publish")
        try:
            if save_first and self.session.is_dirty:
                self._save_locked()
            return self.drafts.publish(self.transcript_id)
        finally:
            self._release()

    def autosave_tick(self) -> bool:
        """
        One autosave attempt. Returns True when a draft was written.

        Skipped when the session is closed, clean, or a save/publish is
        pending. Failures are logged and leave the session dirty.
        """
        if self.session.closed or not self.session.is_dirty or self.pending:
            return False
        try:
            self.save_draft()
        except SaveInProgress:
            return False
        except Exception as e:
            logger.warning("AUTOSAVE_FAILED id=%s err=%s", self.transcript_id, e)
            return False
        logger.info("AUTOSAVED id=%s", self.transcript_id)
        return True

    def start_autosave(self, interval_s: float = DEFAULT_AUTOSAVE_INTERVAL_S) -> "AutosaveTask":
        task = AutosaveTask(self, interval_s=interval_s)
        self.session.bind_autosave(task)
        self.autosave = task
        task.start()
        return task


class AutosaveTask:
    """
    Periodic autosave bound to one session's lifetime.

    Runs on a daemon thread; cancel() (called by session.close()) stops it.
    """

    def __init__(self, controller: SessionController, *, interval_s: float = DEFAULT_AUTOSAVE_INTERVAL_S) -> None:
        if interval_s <= 0:
            raise ValueError("interval_s must be > 0")
        self.controller = controller
        self.interval_s = interval_s
        self.ticks = 0
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive() and not self._stop.is_set()

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(
            target=self._run,
            name=f"subdraft-autosave-{self.controller.transcript_id}",
            daemon=True,
        )
        self._thread.start()

    def _run(self) -> None:
        while not self._stop.wait(self.interval_s):
            self.ticks += 1
            self.controller.autosave_tick()

    def cancel(self) -> None:
        self._stop.set()
        t = self._thread
        if t is not None and t is not threading.current_thread():
            t.join(timeout=max(1.0, self.interval_s))
