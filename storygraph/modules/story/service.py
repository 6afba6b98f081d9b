from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel

from storygraph.modules.story.edges import Edge
from storygraph.modules.story.model import Story
from storygraph.modules.story.nodes import StoryNode
from storygraph.modules.story.types import NodeId, StoryMeta, VariableName, VariableValue
from storygraph.utils.time import isoformat_utc

logger = logging.getLogger(__name__)


class SetNodeChange(BaseModel):
    model_config = ConfigDict(extra="forbid")

    type: Literal["set-node"] = "set-node"
    node: StoryNode


class RemoveNodeChange(BaseModel):
    model_config = ConfigDict(extra="forbid")

    type: Literal["remove-node"] = "remove-node"
    id: NodeId


class StoryMetaPatch(StoryMeta):
    """Partial metadata; only the fields sent are merged. ``title`` may be omitted but never cleared."""

    title: str = Field(default=None, min_length=1, max_length=256)  # type: ignore[assignment]


class UpdateMetaChange(BaseModel):
    model_config = ConfigDict(extra="forbid")

    type: Literal["update-meta"] = "update-meta"
    meta: StoryMetaPatch = Field(default_factory=StoryMetaPatch)


class SetVariablesChange(BaseModel):
    model_config = ConfigDict(extra="forbid")

    type: Literal["set-variables"] = "set-variables"
    variables: dict[VariableName, VariableValue] = Field(default_factory=dict)


Change = Annotated[
    SetNodeChange | RemoveNodeChange | UpdateMetaChange | SetVariablesChange,
    Field(discriminator="type"),
]

_change_adapter: TypeAdapter[Change] = TypeAdapter(Change)


class StorySnapshot(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    version: str
    meta: StoryMeta
    variables: dict[str, VariableValue]
    nodes: list[StoryNode]
    edges: list[Edge]
    updated_at: str

    def to_payload(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class StoryService:
    """Applies editor change sets to one story and hands back detached snapshots."""

    def __init__(self, story: Story) -> None:
        self._story = story

    @property
    def story(self) -> Story:
        return self._story

    def snapshot(self) -> StorySnapshot:
        story = self._story
        return StorySnapshot(
            version=story.version,
            meta=story.meta.model_copy(deep=True),
            variables=dict(story.variables),
            nodes=[node.model_copy(deep=True) for node in story.all_nodes()],
            edges=[edge.model_copy(deep=True) for edge in story.edges()],
            updated_at=isoformat_utc(),
        )

    def apply_changes(self, changes: Iterable[Change | dict[str, Any]]) -> StorySnapshot:
        """
        Apply ``changes`` in order and return the resulting snapshot.

        Raw dicts are validated first, so a malformed batch raises
        ``pydantic.ValidationError`` before anything is applied.
        """
        parsed = [
            change if isinstance(change, BaseModel) else _change_adapter.validate_python(change)
            for change in changes
        ]
        for change in parsed:
            self._apply(change)
        logger.debug("applied %d story changes title=%s", len(parsed), self._story.meta.title)
        return self.snapshot()

    def _apply(self, change: Change) -> None:
        story = self._story
        if isinstance(change, SetNodeChange):
            story.set_node(change.node)
        elif isinstance(change, RemoveNodeChange):
            story.remove_node(change.id)
        elif isinstance(change, UpdateMetaChange):
            updates = change.meta.model_dump(exclude_unset=True)
            updates["modified"] = updates.get("modified") or isoformat_utc()
            story.meta = story.meta.model_copy(update=updates)
        elif isinstance(change, SetVariablesChange):
            story.variables = dict(change.variables)
