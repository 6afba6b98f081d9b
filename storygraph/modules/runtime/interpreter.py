"""
Story interpreter.

``start`` and ``choose`` move the cursor and then run the advance loop, which
walks through non-interactive nodes (conditions, variable updates, includes,
comments) until it reaches a passage or choice node to show, or fails. Each call
may take at most ``max_auto_steps`` non-yielding transitions before the node it
yields (one extra loop pass is allowed for that final node), and each node may
be visited at most ``max_repeats`` times across the whole session.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, assert_never

from storygraph.modules.expression import evaluate_expression
from storygraph.modules.runtime.errors import (
    RT000_NO_START,
    RT001_INCLUDE_DEPTH,
    RT001_MISSING_NODE,
    RT004_INVALID_CHOICE,
    RT005_COMMENT_DEADEND,
    RT010_STEP_LIMIT,
)
from storygraph.modules.runtime.gating import visible_choices
from storygraph.modules.runtime.schemas import RuntimeEvent, RuntimeFailure, RuntimeFrame, StackFrame
from storygraph.modules.runtime.state import RuntimeState
from storygraph.modules.story.nodes import (
    ChoiceNode,
    CommentNode,
    ConditionNode,
    IncludeNode,
    PassageNode,
    VariableNode,
)

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class RuntimeResult:
    frame: RuntimeFrame | None = None
    error: RuntimeFailure | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def start(state: RuntimeState, entry_id: str | None = None) -> RuntimeResult:
    if entry_id is None:
        start_node = state.story.start_node()
        entry_id = start_node.id if start_node is not None else None
    if entry_id is None:
        state.events = []
        return _fail(RT000_NO_START, "No start node found")
    state.current_node_id = entry_id
    return _advance(state)


def choose(state: RuntimeState, target_id: str) -> RuntimeResult:
    if not state.story.has_node(target_id):
        state.events = []
        return _fail(RT004_INVALID_CHOICE, f"Target node {target_id} not found", data={"target": target_id})
    state.current_node_id = target_id
    return _advance(state)


def _fail(code: str, message: str, node_id: str | None = None, data: dict[str, Any] | None = None) -> RuntimeResult:
    logger.info("runtime failure code=%s node=%s message=%s", code, node_id, message)
    return RuntimeResult(error=RuntimeFailure(code=code, message=message, node_id=node_id, data=data))


def _event(state: RuntimeState, code: str, message: str, node_id: str, data: dict[str, Any] | None = None) -> None:
    state.events.append(RuntimeEvent(code=code, message=message, node_id=node_id, data=data))


def _frame(state: RuntimeState, *, node_id: str, text: str, choices: list, ending: bool) -> RuntimeResult:
    frame = RuntimeFrame(
        node_id=node_id,
        text=text,
        choices=choices,
        ending=ending,
        variables=dict(state.variables),
        events=list(state.events),
    )
    logger.debug("runtime frame node=%s choices=%d ending=%s", node_id, len(choices), ending)
    return RuntimeResult(frame=frame)


def _numeric(value: Any) -> int | float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    return value


def _apply_variables(state: RuntimeState, node: VariableNode) -> list[str]:
    touched: list[str] = []
    for key, value in (node.set or {}).items():
        state.variables[key] = value
        touched.append(key)
    for key, delta in (node.increment or {}).items():
        state.variables[key] = _numeric(state.variables.get(key)) + delta
        touched.append(key)
    for key, delta in (node.decrement or {}).items():
        state.variables[key] = _numeric(state.variables.get(key)) - delta
        touched.append(key)
    return list(dict.fromkeys(touched))


def _advance(state: RuntimeState) -> RuntimeResult:
    state.events = []
    limits = state.limits

    for _ in range(limits.max_auto_steps + 1):
        node_id = state.current_node_id
        node = state.story.get_node(node_id) if node_id is not None else None
        if node is None:
            return _fail(RT001_MISSING_NODE, "Node not found", node_id=node_id)

        visits = state.visited.get(node.id, 0) + 1
        state.visited[node.id] = visits
        if visits > limits.max_repeats:
            return _fail(RT010_STEP_LIMIT, "Exceeded repeat limit", node_id=node.id, data={"visits": visits})

        if isinstance(node, PassageNode):
            choices = visible_choices(state, node.id, node.choices)
            ending = not choices or node.ending is True
            if ending and state.stack:
                returned = state.stack.pop()
                state.include_depth = max(0, state.include_depth - 1)
                if returned.return_to is not None:
                    _event(
                        state,
                        "ev_include_return",
                        "include completed",
                        returned.include_id,
                        data={"returnTo": returned.return_to},
                    )
                    state.current_node_id = returned.return_to
                    continue
                _event(state, "ev_include_return", "include completed", returned.include_id)
                return _frame(state, node_id=returned.include_id, text="", choices=[], ending=True)
            return _frame(state, node_id=node.id, text=node.content, choices=choices, ending=ending)

        elif isinstance(node, ChoiceNode):
            choices = visible_choices(state, node.id, node.choices)
            return _frame(state, node_id=node.id, text=node.prompt or "", choices=choices, ending=not choices)

        elif isinstance(node, ConditionNode):
            branch = evaluate_expression(node.expression, state.variables)
            _event(
                state,
                "ev_condition",
                f"condition {node.expression} -> {'true' if branch else 'false'}",
                node.id,
                data={"expression": node.expression, "result": branch},
            )
            state.current_node_id = node.if_true if branch else node.if_false

        elif isinstance(node, VariableNode):
            touched = _apply_variables(state, node)
            _event(state, "ev_variables", "variables updated", node.id, data={"variables": touched})
            if node.next is None:
                return _fail(RT001_MISSING_NODE, "Variable node has no next target", node_id=node.id)
            state.current_node_id = node.next

        elif isinstance(node, IncludeNode):
            if state.include_depth >= limits.max_include_depth:
                return _fail(
                    RT001_INCLUDE_DEPTH,
                    "Include depth exceeded",
                    node_id=node.id,
                    data={"depth": state.include_depth},
                )
            entry = node.entry
            if entry is None:
                start_node = state.story.start_node()
                entry = start_node.id if start_node is not None else None
            if entry is None:
                return _fail(RT000_NO_START, "Include missing entry", node_id=node.id)
            state.stack.append(StackFrame(return_to=node.return_to, include_id=node.id))
            state.include_depth += 1
            _event(
                state,
                "ev_include_enter",
                f"include {node.path}",
                node.id,
                data={"entry": entry, "depth": state.include_depth},
            )
            state.current_node_id = entry

        elif isinstance(node, CommentNode):
            _event(state, "ev_comment", "comment skipped", node.id)
            outgoing = state.story.outgoing_edges(node.id)
            if not outgoing:
                return _fail(RT005_COMMENT_DEADEND, "Comment has no outgoing edge", node_id=node.id)
            state.current_node_id = outgoing[0].target

        else:
            assert_never(node)

    return _fail(
        RT010_STEP_LIMIT,
        "Exceeded auto-step limit",
        node_id=state.current_node_id,
        data={"maxAutoSteps": limits.max_auto_steps},
    )
