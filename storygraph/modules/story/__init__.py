from storygraph.modules.story.edges import Edge, extract_edges
from storygraph.modules.story.model import Story, StoryDocument
from storygraph.modules.story.nodes import (
    Choice,
    ChoiceNode,
    CommentNode,
    ConditionNode,
    IncludeNode,
    PassageNode,
    StoryNode,
    VariableNode,
    parse_node,
)
from storygraph.modules.story.service import StoryService, StorySnapshot
from storygraph.modules.story.types import Position, StoryMeta

__all__ = [
    "Choice",
    "ChoiceNode",
    "CommentNode",
    "ConditionNode",
    "Edge",
    "IncludeNode",
    "PassageNode",
    "Position",
    "Story",
    "StoryDocument",
    "StoryMeta",
    "StoryNode",
    "StoryService",
    "StorySnapshot",
    "VariableNode",
    "extract_edges",
    "parse_node",
]
