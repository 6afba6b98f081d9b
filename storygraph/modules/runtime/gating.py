from __future__ import annotations

from dataclasses import dataclass

from storygraph.modules.expression import evaluate_expression
from storygraph.modules.runtime.schemas import RuntimeChoice, RuntimeEvent
from storygraph.modules.runtime.state import RuntimeState
from storygraph.modules.story.nodes import Choice


@dataclass(frozen=True, slots=True)
class ChoiceGate:
    visible: bool
    evaluated: bool


def gate_choice(state: RuntimeState, choice: Choice, node_id: str) -> ChoiceGate:
    if not choice.condition:
        return ChoiceGate(visible=True, evaluated=False)
    visible = evaluate_expression(choice.condition, state.variables)
    state.events.append(
        RuntimeEvent(
            code="ev_choice_condition",
            message=f"choice condition {choice.condition} -> {'true' if visible else 'false'}",
            node_id=node_id,
            data={"condition": choice.condition, "target": choice.target, "visible": visible},
        )
    )
    return ChoiceGate(visible=visible, evaluated=True)


def visible_choices(state: RuntimeState, node_id: str, choices: list[Choice] | None) -> list[RuntimeChoice]:
    """Frame choices for the options whose guard passes; ids keep the declared index."""
    out: list[RuntimeChoice] = []
    for index, choice in enumerate(choices or []):
        if not gate_choice(state, choice, node_id).visible:
            continue
        out.append(RuntimeChoice(id=f"{index}:{choice.target}", text=choice.text, target=choice.target))
    return out
