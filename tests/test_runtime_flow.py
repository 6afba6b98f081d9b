from __future__ import annotations

from storygraph.modules.runtime import RuntimeOptions, choose, create_runtime, start
from storygraph.modules.runtime.errors import (
    RT000_NO_START,
    RT001_MISSING_NODE,
    RT004_INVALID_CHOICE,
    RT005_COMMENT_DEADEND,
)
from tests.support.story_fixtures import branching_story, include_story, link, make_story, passage


def _event_codes(result) -> list[str]:
    return [event.code for event in result.frame.events]


def test_branching_story_start_then_choose() -> None:
    state = create_runtime(branching_story())
    first = start(state)
    assert first.ok
    assert first.frame.node_id == "start"
    assert [(choice.id, choice.target) for choice in first.frame.choices] == [("0:a", "a"), ("1:b", "b")]
    assert first.frame.ending is False

    second = choose(state, "a")
    assert second.frame.node_id == "a"
    assert second.frame.ending is True
    assert second.frame.choices == []
    assert state.visited == {"start": 1, "a": 1}


def test_choice_guard_filters_and_keeps_declared_index() -> None:
    story = make_story(
        {
            "start": passage(
                choices=[link("a", "Sneak", condition="flag === false"), link("b", "Fight")],
                start=True,
            ),
            "a": passage(ending=True),
            "b": passage(ending=True),
        },
        variables={"flag": True},
    )
    result = start(create_runtime(story))
    assert [choice.id for choice in result.frame.choices] == ["1:b"]
    [event] = result.frame.events
    assert event.code == "ev_choice_condition"
    assert event.message == "choice condition flag === false -> false"
    assert event.node_id == "start"


def test_variable_node_applies_set_then_increment() -> None:
    story = make_story(
        {
            "start": passage(choices=[link("bump")], start=True),
            "bump": {"type": "variable", "set": {"score": 1}, "increment": {"score": 2}, "next": "end"},
            "end": passage(ending=True),
        },
        variables={"score": 0},
    )
    state = create_runtime(story)
    start(state)
    result = choose(state, "bump")
    assert result.frame.node_id == "end"
    assert result.frame.variables == {"score": 3}
    assert state.variables["score"] == 3
    assert _event_codes(result) == ["ev_variables"]


def test_increment_and_decrement_treat_non_numbers_as_zero() -> None:
    story = make_story(
        {
            "start": passage(choices=[link("bump")], start=True),
            "bump": {
                "type": "variable",
                "increment": {"fresh": 2, "label": 1},
                "decrement": {"flag": 1},
                "next": "end",
            },
            "end": passage(ending=True),
        },
        variables={"label": "hero", "flag": True},
    )
    state = create_runtime(story)
    start(state)
    frame = choose(state, "bump").frame
    assert frame.variables == {"label": 1, "flag": -1, "fresh": 2}


def test_condition_node_routes_and_records_event() -> None:
    story = make_story(
        {
            "gate": {"type": "condition", "expression": "score >= 3", "ifTrue": "win", "ifFalse": "lose"},
            "win": passage("You prevail against the odds.", ending=True),
            "lose": passage("You fall short this time.", ending=True),
        },
        variables={"score": 5},
    )
    result = start(create_runtime(story), "gate")
    assert result.frame.node_id == "win"
    [event] = result.frame.events
    assert event.code == "ev_condition"
    assert event.message == "condition score >= 3 -> true"
    assert event.data == {"expression": "score >= 3", "result": True}


def test_include_with_return_continues_at_return_target() -> None:
    state = create_runtime(include_story(with_return=True))
    start(state)
    result = choose(state, "inc")
    assert result.frame.node_id == "after"
    assert result.frame.ending is True
    assert _event_codes(result) == ["ev_include_enter", "ev_include_return"]
    assert state.stack == []
    assert state.include_depth == 0
    assert state.visited["side"] == 1


def test_include_without_return_ends_at_include_node() -> None:
    state = create_runtime(include_story(with_return=False))
    start(state)
    result = choose(state, "inc")
    assert result.frame.node_id == "inc"
    assert result.frame.text == ""
    assert result.frame.ending is True
    assert result.frame.choices == []
    assert _event_codes(result)[-1] == "ev_include_return"
    assert state.include_depth == 0


def test_choice_node_frame_uses_prompt() -> None:
    story = make_story(
        {
            "menu": {
                "type": "choice",
                "prompt": "Which door?",
                "choices": [link("left", "Left", condition="lamp"), link("right", "Right")],
            },
            "left": passage(ending=True),
            "right": passage(ending=True),
        }
    )
    result = start(create_runtime(story), "menu")
    assert result.frame.text == "Which door?"
    assert [choice.id for choice in result.frame.choices] == ["1:right"]
    assert result.frame.ending is False

    all_hidden = make_story(
        {
            "menu": {"type": "choice", "choices": [link("left", "Left", condition="lamp")]},
            "left": passage(ending=True),
        }
    )
    hidden = start(create_runtime(all_hidden), "menu")
    assert hidden.frame.text == ""
    assert hidden.frame.ending is True


def test_comment_node_without_edges_is_a_dead_end() -> None:
    story = make_story({"note": {"type": "comment", "content": "Just a note."}})
    result = start(create_runtime(story), "note")
    assert result.frame is None
    assert result.error.code == RT005_COMMENT_DEADEND
    assert result.error.node_id == "note"


def test_error_codes_for_missing_targets() -> None:
    no_start = make_story({"a": passage(ending=True)})
    assert start(create_runtime(no_start)).error.code == RT000_NO_START

    state = create_runtime(branching_story())
    start(state)
    invalid = choose(state, "ghost")
    assert invalid.error.code == RT004_INVALID_CHOICE
    assert state.current_node_id == "start"

    dangling = make_story(
        {
            "start": passage(choices=[link("bump")], start=True),
            "bump": {"type": "variable", "set": {"x": 1}, "next": "ghost"},
        }
    )
    state = create_runtime(dangling)
    start(state)
    missing = choose(state, "bump")
    assert missing.error.code == RT001_MISSING_NODE
    assert missing.error.node_id == "ghost"

    no_next = make_story({"bump": {"type": "variable", "set": {"x": 1}}})
    failure = start(create_runtime(no_next), "bump").error
    assert failure.code == RT001_MISSING_NODE
    assert failure.node_id == "bump"


def test_events_reset_between_calls() -> None:
    story = make_story(
        {
            "start": passage(choices=[link("gate")], start=True),
            "gate": {"type": "condition", "expression": "true", "ifTrue": "start", "ifFalse": "start"},
        }
    )
    state = create_runtime(story)
    assert start(state).frame.events == []
    looped = choose(state, "gate")
    assert _event_codes(looped) == ["ev_condition"]
    assert start(state).frame.events == []


def test_runtime_options_and_payload() -> None:
    state = create_runtime(branching_story(), RuntimeOptions(story_id="demo"))
    assert state.story_id == "demo"
    payload = start(state).frame.to_payload()
    assert payload["nodeId"] == "start"
    assert payload["choices"][0] == {"id": "0:a", "text": "Go to a", "target": "a"}
