from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from storygraph.config import settings
from storygraph.modules.story.types import VariableValue

SAVE_FORMAT_VERSION = "1.0"

EventSeverity = Literal["info", "warning", "error"]


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_payload(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class RuntimeChoice(_WireModel):
    id: str
    text: str
    target: str


class RuntimeEvent(_WireModel):
    code: str
    message: str
    severity: EventSeverity = "info"
    node_id: str | None = None
    data: dict[str, Any] | None = None


class RuntimeFailure(_WireModel):
    code: str
    message: str
    node_id: str | None = None
    data: dict[str, Any] | None = None


class RuntimeFrame(_WireModel):
    node_id: str
    text: str
    choices: list[RuntimeChoice] = Field(default_factory=list)
    ending: bool = False
    variables: dict[str, VariableValue] = Field(default_factory=dict)
    events: list[RuntimeEvent] = Field(default_factory=list)


class RuntimeLimits(_WireModel):
    max_auto_steps: int = Field(default_factory=lambda: settings.runtime_max_auto_steps, ge=1)
    max_include_depth: int = Field(default_factory=lambda: settings.runtime_max_include_depth, ge=0)
    max_repeats: int = Field(default_factory=lambda: settings.runtime_max_repeats, ge=1)


class StackFrame(_WireModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    return_to: str | None = None
    include_id: str


class RuntimeSnapshot(_WireModel):
    current_node_id: str | None = None
    stack: list[StackFrame] = Field(default_factory=list)
    variables: dict[str, VariableValue] = Field(default_factory=dict)
    visited: dict[str, int] = Field(default_factory=dict)
    include_depth: int = Field(default=0, ge=0)
    limits: RuntimeLimits = Field(default_factory=RuntimeLimits)


class SaveMetadata(_WireModel):
    story_title: str | None = None
    current_node_id: str | None = None
    play_time_ms: int | None = Field(default=None, ge=0)


class RuntimeSaveData(_WireModel):
    version: str = SAVE_FORMAT_VERSION
    story_id: str | None = None
    saved_at: str
    save_name: str | None = None
    snapshot: RuntimeSnapshot
    metadata: SaveMetadata | None = None
