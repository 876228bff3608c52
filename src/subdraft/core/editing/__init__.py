from .autosave import AutosaveTask, SessionController
from .session import Player, SegmentEditingSession, SessionSaveState

__all__ = ["AutosaveTask", "Player", "SegmentEditingSession", "SessionController", "SessionSaveState"]
