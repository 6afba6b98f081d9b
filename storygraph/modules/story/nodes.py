"""Typed story nodes.

A story is a graph of six node variants joined through a ``type`` discriminator.
Nodes are frozen once built; a Story replaces whole nodes instead of editing them.
The core is lenient about authoring mistakes the validator reports (empty
content, a choice node without options, a variable node without ``next``).
"""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from storygraph.modules.story.types import NodeId, Position, VariableName, VariableValue


class Choice(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    text: str = Field(min_length=1, max_length=512)
    target: NodeId
    condition: str | None = Field(default=None, max_length=256)
    tracked: bool | None = None


class _NodeBase(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    id: NodeId
    position: Position | None = None
    notes: str | None = Field(default=None, max_length=2048)
    tags: list[str] | None = Field(default=None, max_length=10)


class PassageNode(_NodeBase):
    type: Literal["passage"] = "passage"
    content: str = Field(default="", max_length=65536)
    choices: list[Choice] | None = Field(default=None, max_length=20)
    start: bool | None = None
    ending: bool | None = None


class ChoiceNode(_NodeBase):
    type: Literal["choice"] = "choice"
    prompt: str | None = Field(default=None, max_length=1024)
    choices: list[Choice] = Field(default_factory=list, max_length=20)


class ConditionNode(_NodeBase):
    type: Literal["condition"] = "condition"
    expression: str = Field(max_length=256)
    if_true: NodeId = Field(alias="ifTrue")
    if_false: NodeId = Field(alias="ifFalse")


class VariableNode(_NodeBase):
    type: Literal["variable"] = "variable"
    set: dict[VariableName, VariableValue] | None = None
    increment: dict[VariableName, int | float] | None = None
    decrement: dict[VariableName, int | float] | None = None
    next: NodeId | None = None


class IncludeNode(_NodeBase):
    type: Literal["include"] = "include"
    path: str = Field(min_length=1, max_length=256)
    entry: NodeId | None = None
    return_to: NodeId | None = Field(default=None, alias="return")


class CommentNode(_NodeBase):
    type: Literal["comment"] = "comment"
    content: str = Field(default="", max_length=8192)


StoryNode = Annotated[
    PassageNode | ChoiceNode | ConditionNode | VariableNode | IncludeNode | CommentNode,
    Field(discriminator="type"),
]

_story_node_adapter: TypeAdapter[StoryNode] = TypeAdapter(StoryNode)


def parse_node(payload: dict) -> StoryNode:
    return _story_node_adapter.validate_python(payload)
