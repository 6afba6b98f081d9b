from __future__ import annotations

import logging
import time
from typing import Any

from storygraph.config import settings
from storygraph.modules.story.edges import node_targets
from storygraph.modules.story.model import Story
from storygraph.modules.story.nodes import (
    ChoiceNode,
    CommentNode,
    ConditionNode,
    IncludeNode,
    PassageNode,
    VariableNode,
)
from storygraph.modules.validation.graph import classify_cycles, reachable_from
from storygraph.modules.validation.heuristics import is_valid_condition, looks_effectful
from storygraph.modules.validation.schemas import (
    Issue,
    IssueCategory,
    IssueCounts,
    Severity,
    ValidationResult,
    issue_sort_key,
)

logger = logging.getLogger(__name__)


class Validator:
    """
    Structural checks over one story.

    Every check runs on every call and only appends issues; nothing here raises
    or mutates the story. The final list is sorted so two runs over the same
    story produce the same output.
    """

    def __init__(self, story: Story, *, short_content_chars: int | None = None) -> None:
        self.story = story
        self.short_content_chars = (
            settings.validator_short_content_chars if short_content_chars is None else short_content_chars
        )
        self._issues: list[Issue] = []

    def validate(self) -> ValidationResult:
        started = time.perf_counter()
        self._issues = []

        self._check_start_node()
        self._check_references()
        self._check_reachability()
        self._check_dead_ends()
        self._check_content()
        self._check_cycles()
        self._check_choice_conditions()
        self._check_state_changes()

        issues = sorted(self._issues, key=issue_sort_key)
        counts = IssueCounts(
            error=sum(1 for issue in issues if issue.severity == "error"),
            warning=sum(1 for issue in issues if issue.severity == "warning"),
            info=sum(1 for issue in issues if issue.severity == "info"),
        )
        duration_ms = (time.perf_counter() - started) * 1000.0
        logger.debug(
            "validated story title=%s nodes=%d errors=%d warnings=%d infos=%d duration_ms=%.2f",
            self.story.meta.title,
            self.story.node_count,
            counts.error,
            counts.warning,
            counts.info,
            duration_ms,
        )
        return ValidationResult(valid=counts.error == 0, issues=issues, counts=counts, duration_ms=duration_ms)

    def _add(
        self,
        *,
        code: str,
        severity: Severity,
        category: IssueCategory,
        message: str,
        node_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self._issues.append(
            Issue(code=code, severity=severity, category=category, message=message, node_id=node_id, details=details)
        )

    def _check_start_node(self) -> None:
        start_ids = [passage.id for passage in self.story.nodes_by_type(PassageNode) if passage.start is True]
        if not start_ids:
            self._add(
                code="NO_START_NODE",
                severity="error",
                category="structure",
                message="No start node defined. Add start: true to a passage.",
            )
        elif len(start_ids) > 1:
            self._add(
                code="MULTIPLE_START_NODES",
                severity="error",
                category="structure",
                message=f"Multiple start nodes found: {', '.join(start_ids)}",
                details={"nodeIds": start_ids},
            )

    def _check_references(self) -> None:
        for node in self.story.all_nodes():
            for target in node_targets(node):
                if self.story.has_node(target):
                    continue
                self._add(
                    code="BROKEN_REFERENCE",
                    severity="error",
                    category="reference",
                    message=f"Node '{node.id}' references non-existent node '{target}'",
                    node_id=node.id,
                    details={"target": target},
                )

    def _check_reachability(self) -> None:
        start = self.story.start_node()
        if start is None:
            return
        reachable = reachable_from(self.story, start.id)
        for node in self.story.all_nodes():
            if isinstance(node, CommentNode) or node.id in reachable:
                continue
            self._add(
                code="UNREACHABLE_NODE",
                severity="warning",
                category="structure",
                message=f"Node '{node.id}' cannot be reached from the start",
                node_id=node.id,
            )

    def _check_dead_ends(self) -> None:
        for passage in self.story.nodes_by_type(PassageNode):
            if not passage.choices and passage.ending is not True:
                self._add(
                    code="UNMARKED_DEAD_END",
                    severity="warning",
                    category="structure",
                    message=f"Passage '{passage.id}' has no choices and is not marked as ending",
                    node_id=passage.id,
                )
        for choice_node in self.story.nodes_by_type(ChoiceNode):
            if not choice_node.choices:
                self._add(
                    code="CHOICE_WITHOUT_OPTIONS",
                    severity="error",
                    category="structure",
                    message=f"Choice node '{choice_node.id}' has no options",
                    node_id=choice_node.id,
                )
        for include in self.story.nodes_by_type(IncludeNode):
            if not include.return_to:
                self._add(
                    code="INCLUDE_NO_RETURN",
                    severity="warning",
                    category="structure",
                    message=f"Include node '{include.id}' has no return target and may dead-end",
                    node_id=include.id,
                )

    def _check_content(self) -> None:
        for passage in self.story.nodes_by_type(PassageNode):
            trimmed = passage.content.strip()
            if not trimmed:
                self._add(
                    code="EMPTY_CONTENT",
                    severity="warning",
                    category="content",
                    message=f"Passage '{passage.id}' has empty content",
                    node_id=passage.id,
                )
            elif len(trimmed) < self.short_content_chars:
                self._add(
                    code="SHORT_CONTENT",
                    severity="info",
                    category="content",
                    message=f"Passage '{passage.id}' has very short content ({len(trimmed)} chars)",
                    node_id=passage.id,
                )

    def _check_cycles(self) -> None:
        for report in classify_cycles(self.story):
            rendered = " -> ".join(report.path)
            if report.has_exit:
                self._add(
                    code="CYCLE_DETECTED",
                    severity="info",
                    category="structure",
                    message=f"Cycle detected with exit edges: {rendered}",
                    details={"cycle": report.path},
                )
            else:
                self._add(
                    code="NON_TERMINATING_CYCLE",
                    severity="warning",
                    category="structure",
                    message=f"Cycle has no exit and may never terminate: {rendered}",
                    details={"cycle": report.path},
                )

    def _check_choice_conditions(self) -> None:
        for node in self.story.all_nodes():
            if not isinstance(node, (PassageNode, ChoiceNode)):
                continue
            for choice in node.choices or []:
                if not choice.condition or is_valid_condition(choice.condition):
                    continue
                self._add(
                    code="INVALID_CONDITION",
                    severity="warning",
                    category="reference",
                    message=f"Choice condition in '{node.id}' may be invalid: {choice.condition}",
                    node_id=node.id,
                    details={"condition": choice.condition, "choiceText": choice.text},
                )

    def _check_state_changes(self) -> None:
        for variable in self.story.nodes_by_type(VariableNode):
            if not (variable.set or variable.increment or variable.decrement):
                self._add(
                    code="NO_STATE_CHANGE",
                    severity="warning",
                    category="best-practice",
                    message=f"Variable node '{variable.id}' performs no state changes",
                    node_id=variable.id,
                )
            if not variable.next:
                self._add(
                    code="VARIABLE_NO_NEXT",
                    severity="warning",
                    category="structure",
                    message=f"Variable node '{variable.id}' has no next target",
                    node_id=variable.id,
                )
        for condition in self.story.nodes_by_type(ConditionNode):
            if looks_effectful(condition.expression):
                self._add(
                    code="EFFECTFUL_CONDITION",
                    severity="warning",
                    category="best-practice",
                    message=f"Condition '{condition.id}' appears to have side effects: {condition.expression}",
                    node_id=condition.id,
                    details={"expression": condition.expression},
                )


def validate_story(story: Story) -> ValidationResult:
    return Validator(story).validate()
