from __future__ import annotations

from collections.abc import Iterable
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from storygraph.modules.story.nodes import (
    Choice,
    ChoiceNode,
    ConditionNode,
    IncludeNode,
    PassageNode,
    StoryNode,
    VariableNode,
)

EdgeType = Literal["choice", "condition", "next", "return"]
EdgeBranch = Literal["true", "false"]


class Edge(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    source: str
    target: str
    type: EdgeType
    label: str | None = Field(default=None, max_length=512)
    branch: EdgeBranch | None = None
    condition: str | None = None


def _choice_edge(source_id: str, choice: Choice) -> Edge:
    return Edge(
        source=source_id,
        target=choice.target,
        type="choice",
        label=choice.text,
        condition=choice.condition,
    )


def edges_for_node(node: StoryNode) -> list[Edge]:
    if isinstance(node, (PassageNode, ChoiceNode)):
        return [_choice_edge(node.id, choice) for choice in node.choices or []]
    if isinstance(node, ConditionNode):
        return [
            Edge(source=node.id, target=node.if_true, type="condition", branch="true"),
            Edge(source=node.id, target=node.if_false, type="condition", branch="false"),
        ]
    if isinstance(node, VariableNode):
        if node.next is None:
            return []
        return [Edge(source=node.id, target=node.next, type="next")]
    if isinstance(node, IncludeNode):
        if node.return_to is None:
            return []
        return [Edge(source=node.id, target=node.return_to, type="return")]
    # comment nodes have no outgoing edges
    return []


def edge_sort_key(edge: Edge) -> tuple[str, str, str, str, str]:
    return (edge.source, edge.target, edge.type, edge.label or "", edge.branch or "")


def extract_edges(nodes: Iterable[StoryNode]) -> list[Edge]:
    """All edges of the given nodes in canonical order."""
    edges: list[Edge] = []
    for node in nodes:
        edges.extend(edges_for_node(node))
    edges.sort(key=edge_sort_key)
    return edges


def node_targets(node: StoryNode) -> list[str]:
    return [edge.target for edge in edges_for_node(node)]
