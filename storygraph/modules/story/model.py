from __future__ import annotations

from typing import TypeVar

from pydantic import BaseModel, ConfigDict, Field

from storygraph.modules.story.edges import Edge, extract_edges
from storygraph.modules.story.nodes import ChoiceNode, PassageNode, StoryNode
from storygraph.modules.story.types import (
    CURRENT_FORMAT_VERSION,
    FormatVersion,
    NodeId,
    StoryMeta,
    VariableName,
    VariableValue,
)
from storygraph.utils.time import isoformat_utc

NodeT = TypeVar("NodeT", bound=BaseModel)


class StoryDocument(BaseModel):
    """Serializable form of a story: metadata, initial variables and nodes keyed by id."""

    model_config = ConfigDict(extra="forbid")

    version: FormatVersion = CURRENT_FORMAT_VERSION
    meta: StoryMeta
    variables: dict[VariableName, VariableValue] | None = None
    nodes: dict[NodeId, StoryNode] = Field(default_factory=dict)

    def to_payload(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Story:
    """
    In-memory story graph.

    Nodes keep insertion order. Edges are derived from the nodes and memoized;
    every mutation through ``set_node``/``remove_node`` drops the memo. Targets
    that point at missing nodes are kept as-is and left to the validator.
    """

    def __init__(self, document: StoryDocument) -> None:
        self.version: str = document.version
        self.meta: StoryMeta = document.meta.model_copy()
        self.variables: dict[str, VariableValue] = dict(document.variables or {})
        self._nodes: dict[str, StoryNode] = {}
        for node_id, node in document.nodes.items():
            if node.id != node_id:
                node = node.model_copy(update={"id": node_id})
            self._nodes[node_id] = node
        self._edges: list[Edge] | None = None
        self._outgoing: dict[str, list[Edge]] | None = None
        self._incoming: dict[str, list[Edge]] | None = None

    @classmethod
    def create(cls, title: str, author: str | None = None) -> Story:
        now = isoformat_utc()
        meta = StoryMeta(title=title, author=author, created=now, modified=now)
        return cls(StoryDocument(meta=meta))

    @classmethod
    def from_document(cls, document: StoryDocument | dict) -> Story:
        if not isinstance(document, StoryDocument):
            document = StoryDocument.model_validate(document)
        return cls(document)

    def to_document(self) -> StoryDocument:
        variables = {key: self.variables[key] for key in sorted(self.variables)}
        nodes = {node_id: self._nodes[node_id] for node_id in sorted(self._nodes)}
        meta = self.meta.model_copy(update={"modified": self.meta.modified or self.meta.created})
        return StoryDocument(
            version=self.version,
            meta=meta,
            variables=variables or None,
            nodes=nodes,
        )

    # nodes

    def get_node(self, node_id: str) -> StoryNode | None:
        return self._nodes.get(node_id)

    def has_node(self, node_id: str) -> bool:
        return node_id in self._nodes

    def all_nodes(self) -> list[StoryNode]:
        return list(self._nodes.values())

    def all_node_ids(self) -> list[str]:
        return list(self._nodes.keys())

    @property
    def node_count(self) -> int:
        return len(self._nodes)

    def nodes_by_type(self, node_cls: type[NodeT]) -> list[NodeT]:
        return [node for node in self._nodes.values() if isinstance(node, node_cls)]

    def start_node(self) -> PassageNode | None:
        for passage in self.nodes_by_type(PassageNode):
            if passage.start is True:
                return passage
        return None

    def ending_nodes(self) -> list[PassageNode]:
        return [
            passage
            for passage in self.nodes_by_type(PassageNode)
            if passage.ending is True or not passage.choices
        ]

    def set_node(self, node: StoryNode) -> None:
        self._nodes[node.id] = node
        self._invalidate()

    def remove_node(self, node_id: str) -> bool:
        if node_id not in self._nodes:
            return False
        del self._nodes[node_id]
        self._invalidate()
        return True

    # edges

    def edges(self) -> list[Edge]:
        self._ensure_edges()
        return list(self._edges or [])

    def outgoing_edges(self, node_id: str) -> list[Edge]:
        self._ensure_edges()
        return list((self._outgoing or {}).get(node_id, []))

    def incoming_edges(self, node_id: str) -> list[Edge]:
        self._ensure_edges()
        return list((self._incoming or {}).get(node_id, []))

    def _invalidate(self) -> None:
        self._edges = None
        self._outgoing = None
        self._incoming = None

    def _ensure_edges(self) -> None:
        if self._edges is not None and self._outgoing is not None and self._incoming is not None:
            return
        edges = extract_edges(self._nodes.values())
        outgoing: dict[str, list[Edge]] = {}
        incoming: dict[str, list[Edge]] = {}
        for edge in edges:
            outgoing.setdefault(edge.source, []).append(edge)
            incoming.setdefault(edge.target, []).append(edge)
        self._edges = edges
        self._outgoing = outgoing
        self._incoming = incoming

    # statistics

    def word_count(self) -> int:
        return sum(len(passage.content.split()) for passage in self.nodes_by_type(PassageNode))

    def character_count(self) -> int:
        return sum(len(passage.content) for passage in self.nodes_by_type(PassageNode))

    def choice_count(self) -> int:
        count = 0
        for node in self._nodes.values():
            if isinstance(node, (PassageNode, ChoiceNode)):
                count += len(node.choices or [])
        return count
