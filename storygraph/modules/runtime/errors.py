from __future__ import annotations

RT000_NO_START = "RT000_NO_START"
RT001_MISSING_NODE = "RT001_MISSING_NODE"
RT001_INCLUDE_DEPTH = "RT001_INCLUDE_DEPTH"
RT004_INVALID_CHOICE = "RT004_INVALID_CHOICE"
RT005_COMMENT_DEADEND = "RT005_COMMENT_DEADEND"
RT010_STEP_LIMIT = "RT010_STEP_LIMIT"
RT020_INVALID_SAVE = "RT020_INVALID_SAVE"
RT021_STORY_MISMATCH = "RT021_STORY_MISMATCH"
RT022_MISSING_NODE = "RT022_MISSING_NODE"


class SaveDataError(ValueError):
    """Raised when a save payload cannot be decoded into save data."""
