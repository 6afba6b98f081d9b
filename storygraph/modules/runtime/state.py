from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from storygraph.modules.runtime.schemas import RuntimeEvent, RuntimeLimits, StackFrame
from storygraph.modules.story.model import Story
from storygraph.modules.story.types import VariableValue


@dataclass(frozen=True, slots=True)
class RuntimeOptions:
    story_id: str | None = None
    max_auto_steps: int | None = None
    max_include_depth: int | None = None
    max_repeats: int | None = None

    def limit_overrides(self) -> dict[str, int]:
        overrides = {
            "max_auto_steps": self.max_auto_steps,
            "max_include_depth": self.max_include_depth,
            "max_repeats": self.max_repeats,
        }
        return {key: value for key, value in overrides.items() if value is not None}


@dataclass(slots=True)
class RuntimeState:
    """
    Mutable play state for one session.

    Owned by a single caller; ``start``/``choose`` mutate it in place and it is
    not safe to share between threads.
    """

    story: Story
    story_id: str | None = None
    current_node_id: str | None = None
    stack: list[StackFrame] = field(default_factory=list)
    variables: dict[str, VariableValue] = field(default_factory=dict)
    visited: dict[str, int] = field(default_factory=dict)
    include_depth: int = 0
    limits: RuntimeLimits = field(default_factory=RuntimeLimits)
    events: list[RuntimeEvent] = field(default_factory=list)


def resolve_limits(options: RuntimeOptions | None, override: dict[str, Any] | None = None) -> RuntimeLimits:
    """Defaults from settings, then ``options``, then ``override`` (later wins)."""
    merged: dict[str, Any] = {}
    if options is not None:
        merged.update(options.limit_overrides())
    if override:
        merged.update(override)
    return RuntimeLimits.model_validate(merged)


def create_runtime(story: Story, options: RuntimeOptions | None = None) -> RuntimeState:
    return RuntimeState(
        story=story,
        story_id=options.story_id if options is not None else None,
        variables=dict(story.variables),
        limits=resolve_limits(options),
    )
