from __future__ import annotations

from storygraph.config import settings
from storygraph.modules.runtime import RuntimeOptions, choose, create_runtime, start
from storygraph.modules.runtime.errors import RT000_NO_START, RT001_INCLUDE_DEPTH, RT010_STEP_LIMIT
from tests.support.story_fixtures import make_story, passage, self_loop_story


def test_repeat_limit_stops_a_self_loop() -> None:
    state = create_runtime(self_loop_story(), RuntimeOptions(max_repeats=3))
    assert start(state).ok
    assert choose(state, "start").ok
    assert choose(state, "start").ok

    fourth = choose(state, "start")
    assert fourth.frame is None
    assert fourth.error.code == RT010_STEP_LIMIT
    assert fourth.error.node_id == "start"
    assert fourth.error.message == "Exceeded repeat limit"


def test_auto_step_limit_bounds_a_single_call() -> None:
    story = make_story({"spin": {"type": "condition", "expression": "true", "ifTrue": "spin", "ifFalse": "spin"}})
    state = create_runtime(story, RuntimeOptions(max_auto_steps=5))
    result = start(state, "spin")
    assert result.error.code == RT010_STEP_LIMIT
    assert result.error.message == "Exceeded auto-step limit"
    assert result.error.data == {"maxAutoSteps": 5}
    assert state.visited["spin"] == 6


def _condition_chain(length: int):
    nodes = {
        f"c{index}": {"type": "condition", "expression": "true", "ifTrue": f"c{index + 1}", "ifFalse": "end"}
        for index in range(length)
    }
    nodes[f"c{length}"] = passage(ending=True)
    nodes["end"] = passage(ending=True)
    return make_story(nodes)


def test_auto_step_limit_counts_only_non_yielding_transitions() -> None:
    at_limit = start(create_runtime(_condition_chain(3), RuntimeOptions(max_auto_steps=3)), "c0")
    assert at_limit.ok
    assert at_limit.frame.node_id == "c3"
    assert len(at_limit.frame.events) == 3

    over_limit = start(create_runtime(_condition_chain(4), RuntimeOptions(max_auto_steps=3)), "c0")
    assert over_limit.error.code == RT010_STEP_LIMIT
    assert over_limit.error.data == {"maxAutoSteps": 3}


def test_include_depth_limit() -> None:
    story = make_story({"inc": {"type": "include", "path": "self.story", "entry": "inc"}})
    state = create_runtime(story, RuntimeOptions(max_include_depth=2))
    result = start(state, "inc")
    assert result.error.code == RT001_INCLUDE_DEPTH
    assert result.error.node_id == "inc"
    assert state.include_depth == 2
    assert len(state.stack) == 2

    blocked = create_runtime(story, RuntimeOptions(max_include_depth=0))
    assert start(blocked, "inc").error.code == RT001_INCLUDE_DEPTH


def test_include_without_entry_needs_a_start_node() -> None:
    story = make_story(
        {
            "inc": {"type": "include", "path": "chapter.story", "return": "end"},
            "end": passage(ending=True),
        }
    )
    state = create_runtime(story)
    result = start(state, "inc")
    assert result.error.code == RT000_NO_START
    assert state.stack == []


def test_default_limits_come_from_settings() -> None:
    default_state = create_runtime(self_loop_story())
    assert default_state.limits.max_auto_steps == 500
    assert default_state.limits.max_include_depth == 8
    assert default_state.limits.max_repeats == 200

    settings.runtime_max_repeats = 2
    settings.runtime_max_auto_steps = 50
    state = create_runtime(self_loop_story(), RuntimeOptions(max_auto_steps=10))
    assert state.limits.max_repeats == 2
    assert state.limits.max_auto_steps == 10

    start(state)
    choose(state, "start")
    assert choose(state, "start").error.code == RT010_STEP_LIMIT
