"""
Twee export.

Passages, links, the start passage and endings carry over. Everything Twine
cannot express without macros (conditions, variable updates, includes) is
flattened to a ``Continue`` link and reported as a warning; comments are
dropped. Passage names are node ids, which are unique and lower-case, so
they cannot collide under Twine's case-insensitive lookup.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from storygraph.modules.export.types import ExportFile, ExportResult, ExportTier, ExportWarning
from storygraph.modules.story.model import Story
from storygraph.modules.story.nodes import (
    Choice,
    ChoiceNode,
    CommentNode,
    ConditionNode,
    IncludeNode,
    PassageNode,
    StoryNode,
    VariableNode,
)

logger = logging.getLogger(__name__)

TWEE_FILE_NAME = "story.twee"
DEFAULT_TITLE = "StoryGraph Export"

_LINK_SPECIALS_RE = re.compile(r"([\[\]|])")


@dataclass(slots=True)
class _Passage:
    name: str
    text: str


def _escape_link_text(text: str, node_id: str, warnings: list[ExportWarning]) -> str:
    escaped = _LINK_SPECIALS_RE.sub(r"\\\1", text)
    if escaped != text:
        warnings.append(
            ExportWarning(
                code="TWN002",
                message=f"Link text escaped for Twine compatibility in node '{node_id}'",
                node_id=node_id,
            )
        )
    return escaped


def _links(node_id: str, choices: list[Choice], warnings: list[ExportWarning]) -> list[str]:
    return [f"[[{_escape_link_text(choice.text, node_id, warnings)}|{choice.target}]]" for choice in choices]


def _continue_target(node: StoryNode) -> str | None:
    if isinstance(node, ConditionNode):
        return node.if_true
    if isinstance(node, VariableNode):
        return node.next
    if isinstance(node, IncludeNode):
        return node.return_to
    return None


def _flattened(node: StoryNode) -> _Passage:
    return _Passage(name=node.id, text=f"[[Continue|{_continue_target(node) or 'start'}]]")


def _passage_for(node: StoryNode, warnings: list[ExportWarning]) -> _Passage | None:
    if isinstance(node, PassageNode):
        parts = [node.content, *_links(node.id, node.choices or [], warnings)]
        return _Passage(name=node.id, text="\n\n".join(parts))
    if isinstance(node, ChoiceNode):
        parts = [node.prompt] if node.prompt else []
        parts.extend(_links(node.id, node.choices, warnings))
        return _Passage(name=node.id, text="\n\n".join(parts))
    if isinstance(node, ConditionNode):
        warnings.append(
            ExportWarning(
                code="EXP004",
                message=f"Condition '{node.id}' flattened to a note; logic not preserved",
                node_id=node.id,
            )
        )
        return _flattened(node)
    if isinstance(node, VariableNode):
        warnings.append(
            ExportWarning(code="EXP005", message=f"Variable node '{node.id}' ignored in Twine export", node_id=node.id)
        )
        return _flattened(node)
    if isinstance(node, IncludeNode):
        warnings.append(
            ExportWarning(
                code="EXP003",
                message=f"Include '{node.id}' flattened; target path not preserved",
                node_id=node.id,
                details={"path": node.path},
            )
        )
        return _flattened(node)
    if isinstance(node, CommentNode):
        warnings.append(ExportWarning(code="EXP001", message=f"Comment '{node.id}' dropped", node_id=node.id))
    return None


def _render(title: str, passages: list[_Passage]) -> str:
    body = "\n\n".join(f":: {passage.name}\n{passage.text}" for passage in passages)
    return f":: StoryTitle\n{title}\n\n{body}\n"


def export_twine(story: Story, story_title: str | None = None, tier: ExportTier = 0) -> ExportResult:
    warnings: list[ExportWarning] = []

    if story.start_node() is None:
        warnings.append(
            ExportWarning(code="TWN001", message="No start passage found; Twine export has no explicit entrypoint")
        )

    passages: list[_Passage] = []
    for node in sorted(story.all_nodes(), key=lambda item: item.id):
        passage = _passage_for(node, warnings)
        if passage is not None:
            passages.append(passage)
    passages.sort(key=lambda item: item.name)

    title = story_title or story.meta.title or DEFAULT_TITLE
    contents = _render(title, passages)

    if tier > 0 and not warnings:
        warnings.append(
            ExportWarning(
                code="EXP999",
                message="Tier > 0 requested but no warnings emitted; ensure feature coverage is correct",
            )
        )

    logger.debug("twine export passages=%d warnings=%d", len(passages), len(warnings))
    return ExportResult(files=[ExportFile(name=TWEE_FILE_NAME, contents=contents)], warnings=warnings)
