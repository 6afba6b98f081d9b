from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field

from storygraph.modules.story.edges import node_targets
from storygraph.modules.story.model import Story


def _targets(story: Story, node_id: str) -> list[str]:
    node = story.get_node(node_id)
    return node_targets(node) if node is not None else []


def reachable_from(story: Story, start_id: str) -> set[str]:
    """Ids reachable from ``start_id``, including dangling targets that were referenced."""
    visited: set[str] = set()
    queue: deque[str] = deque([start_id])
    while queue:
        current = queue.popleft()
        if current in visited:
            continue
        visited.add(current)
        for target in _targets(story, current):
            if target not in visited:
                queue.append(target)
    return visited


@dataclass(slots=True)
class _DfsFrame:
    node_id: str
    targets: list[str]
    index: int = 0


@dataclass(slots=True)
class CycleReport:
    path: list[str] = field(default_factory=list)
    has_exit: bool = False


def find_cycles(story: Story) -> list[list[str]]:
    """
    Depth-first search with an explicit stack; each back edge yields one cycle.

    A cycle is reported as the stack slice from the revisited node to the top,
    closed by repeating the revisited id: ``["a", "b", "a"]``.
    """
    cycles: list[list[str]] = []
    visited: set[str] = set()
    on_stack: set[str] = set()

    for root_id in story.all_node_ids():
        if root_id in visited:
            continue
        stack = [_DfsFrame(root_id, _targets(story, root_id))]
        while stack:
            frame = stack[-1]
            visited.add(frame.node_id)
            on_stack.add(frame.node_id)

            if frame.index >= len(frame.targets):
                on_stack.discard(frame.node_id)
                stack.pop()
                continue

            target_id = frame.targets[frame.index]
            frame.index += 1

            if target_id not in visited:
                stack.append(_DfsFrame(target_id, _targets(story, target_id)))
                continue

            if target_id in on_stack:
                start = next((i for i, item in enumerate(stack) if item.node_id == target_id), None)
                if start is not None:
                    cycles.append([item.node_id for item in stack[start:]] + [target_id])
    return cycles


def cycle_has_exit(story: Story, cycle: list[str]) -> bool:
    members = set(cycle)
    for node_id in members:
        for edge in story.outgoing_edges(node_id):
            if edge.target not in members:
                return True
    return False


def classify_cycles(story: Story) -> list[CycleReport]:
    return [CycleReport(path=cycle, has_exit=cycle_has_exit(story, cycle)) for cycle in find_cycles(story)]
