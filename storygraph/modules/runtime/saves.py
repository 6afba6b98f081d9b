from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from storygraph.modules.runtime.errors import (
    RT020_INVALID_SAVE,
    RT021_STORY_MISMATCH,
    RT022_MISSING_NODE,
    SaveDataError,
)
from storygraph.modules.runtime.schemas import (
    SAVE_FORMAT_VERSION,
    RuntimeFailure,
    RuntimeLimits,
    RuntimeSaveData,
    RuntimeSnapshot,
    SaveMetadata,
)
from storygraph.modules.runtime.state import RuntimeOptions, RuntimeState, resolve_limits
from storygraph.modules.story.model import Story
from storygraph.utils.time import isoformat_utc

logger = logging.getLogger(__name__)

_REQUIRED_SAVE_KEYS = ("version", "savedAt", "snapshot")


@dataclass(slots=True)
class LoadResult:
    state: RuntimeState | None = None
    error: RuntimeFailure | None = None


def snapshot(state: RuntimeState) -> RuntimeSnapshot:
    return RuntimeSnapshot(
        current_node_id=state.current_node_id,
        stack=[frame.model_copy() for frame in state.stack],
        variables=dict(state.variables),
        visited=dict(state.visited),
        include_depth=state.include_depth,
        limits=RuntimeLimits(**state.limits.model_dump()),
    )


def hydrate(story: Story, snap: RuntimeSnapshot, options: RuntimeOptions | None = None) -> RuntimeState:
    """Rebuild play state from a snapshot; limits stored in the snapshot win over ``options``."""
    return RuntimeState(
        story=story,
        story_id=options.story_id if options is not None else None,
        current_node_id=snap.current_node_id,
        stack=[frame.model_copy() for frame in snap.stack],
        variables=dict(snap.variables),
        visited=dict(snap.visited),
        include_depth=snap.include_depth,
        limits=resolve_limits(options, snap.limits.model_dump(exclude_unset=True)),
    )


def save_game(state: RuntimeState, save_name: str | None = None, play_time_ms: int | None = None) -> RuntimeSaveData:
    return RuntimeSaveData(
        version=SAVE_FORMAT_VERSION,
        story_id=state.story_id,
        saved_at=isoformat_utc(),
        save_name=save_name,
        snapshot=snapshot(state),
        metadata=SaveMetadata(
            story_title=state.story.meta.title,
            current_node_id=state.current_node_id,
            play_time_ms=play_time_ms,
        ),
    )


def _load_failure(code: str, message: str) -> LoadResult:
    logger.info("save rejected code=%s message=%s", code, message)
    return LoadResult(error=RuntimeFailure(code=code, message=message))


def load_game(
    story: Story,
    save_data: RuntimeSaveData | dict[str, Any],
    options: RuntimeOptions | None = None,
) -> LoadResult:
    """
    Check a save against ``story`` and hydrate it.

    Checks run in order (format version, story id, current node, return
    targets on the stack) and the first failure is returned without building
    any state.
    """
    if not isinstance(save_data, RuntimeSaveData):
        try:
            save_data = deserialize_save_data(save_data)
        except SaveDataError as exc:
            return _load_failure(RT020_INVALID_SAVE, str(exc))

    if save_data.version != SAVE_FORMAT_VERSION:
        return _load_failure(RT020_INVALID_SAVE, f"Unsupported save format version: {save_data.version}")

    expected_story_id = options.story_id if options is not None else None
    if save_data.story_id and expected_story_id and save_data.story_id != expected_story_id:
        return _load_failure(
            RT021_STORY_MISMATCH,
            f'Save is for story "{save_data.story_id}" but trying to load into "{expected_story_id}"',
        )

    current = save_data.snapshot.current_node_id
    if current and not story.has_node(current):
        return _load_failure(
            RT022_MISSING_NODE,
            f'Saved node "{current}" not found in story (story may have been modified)',
        )

    for frame in save_data.snapshot.stack:
        if frame.return_to and not story.has_node(frame.return_to):
            return _load_failure(RT022_MISSING_NODE, f'Return node "{frame.return_to}" not found in story')

    return LoadResult(state=hydrate(story, save_data.snapshot, options))


def serialize_save_data(save_data: RuntimeSaveData) -> str:
    return save_data.model_dump_json(by_alias=True, exclude_none=True)


def deserialize_save_data(raw: str | bytes | dict[str, Any]) -> RuntimeSaveData:
    if isinstance(raw, (str, bytes)):
        try:
            data = json.loads(raw)
        except ValueError as exc:
            raise SaveDataError("Invalid save data: malformed JSON") from exc
    else:
        data = raw
    if not isinstance(data, dict):
        raise SaveDataError("Invalid save data: not an object")
    missing = [key for key in _REQUIRED_SAVE_KEYS if data.get(key) in (None, "")]
    if missing:
        raise SaveDataError(f"Invalid save data: missing required fields ({', '.join(missing)})")
    try:
        return RuntimeSaveData.model_validate(data)
    except ValidationError as exc:
        raise SaveDataError(f"Invalid save data: {exc.error_count()} invalid field(s)") from exc
