from __future__ import annotations

from storygraph.config import settings
from storygraph.modules.validation import ValidationResult, Validator, validate_story
from storygraph.modules.validation.heuristics import is_valid_condition, looks_effectful
from storygraph.modules.validation.schemas import SEVERITY_RANK
from tests.support.story_fixtures import branching_story, link, make_story, passage, self_loop_story


def _issues(result: ValidationResult, code: str) -> list:
    return [issue for issue in result.issues if issue.code == code]


def test_clean_story_has_no_issues() -> None:
    result = validate_story(branching_story())
    assert result.valid is True
    assert result.issues == []
    assert (result.counts.error, result.counts.warning, result.counts.info) == (0, 0, 0)
    assert result.duration_ms >= 0


def test_start_node_checks() -> None:
    no_start = validate_story(make_story({"a": passage(ending=True), "b": passage(ending=True)}))
    assert no_start.valid is False
    assert len(_issues(no_start, "NO_START_NODE")) == 1
    assert _issues(no_start, "UNREACHABLE_NODE") == []

    two_starts = validate_story(
        make_story({"a": passage(start=True, ending=True), "b": passage(start=True, ending=True)})
    )
    [issue] = _issues(two_starts, "MULTIPLE_START_NODES")
    assert issue.severity == "error"
    assert issue.details == {"nodeIds": ["a", "b"]}


def test_broken_reference_is_reported_on_source() -> None:
    result = validate_story(make_story({"start": passage(choices=[link("nowhere")], start=True)}))
    [issue] = _issues(result, "BROKEN_REFERENCE")
    assert issue.node_id == "start"
    assert issue.category == "reference"
    assert issue.details == {"target": "nowhere"}
    assert result.valid is False


def test_unreachable_nodes_skip_comments() -> None:
    story = make_story(
        {
            "start": passage(choices=[link("end")], start=True),
            "end": passage(ending=True),
            "orphan": passage(ending=True),
            "note": {"type": "comment", "content": "Draft notes for chapter two."},
        }
    )
    result = validate_story(story)
    assert [issue.node_id for issue in _issues(result, "UNREACHABLE_NODE")] == ["orphan"]
    assert result.valid is True


def test_dead_end_checks() -> None:
    story = make_story(
        {
            "start": passage(choices=[link("stuck"), link("menu"), link("inc")], start=True),
            "stuck": passage(),
            "menu": {"type": "choice", "prompt": "Pick one", "choices": []},
            "inc": {"type": "include", "path": "other.story", "entry": "start"},
        }
    )
    result = validate_story(story)
    assert [issue.node_id for issue in _issues(result, "UNMARKED_DEAD_END")] == ["stuck"]
    [choice_issue] = _issues(result, "CHOICE_WITHOUT_OPTIONS")
    assert choice_issue.severity == "error"
    assert [issue.node_id for issue in _issues(result, "INCLUDE_NO_RETURN")] == ["inc"]


def test_content_quality_checks_and_threshold_setting() -> None:
    story = make_story(
        {
            "start": passage("   ", choices=[link("tiny")], start=True),
            "tiny": passage("Short.", ending=True),
        }
    )
    result = validate_story(story)
    assert [issue.node_id for issue in _issues(result, "EMPTY_CONTENT")] == ["start"]
    [short] = _issues(result, "SHORT_CONTENT")
    assert short.severity == "info"
    assert short.message == "Passage 'tiny' has very short content (6 chars)"

    settings.validator_short_content_chars = 3
    assert _issues(validate_story(story), "SHORT_CONTENT") == []
    assert _issues(Validator(story, short_content_chars=50).validate(), "SHORT_CONTENT") != []


def test_cycle_with_exit_is_informational() -> None:
    story = make_story(
        {
            "start": passage(choices=[link("loop_a")], start=True),
            "loop_a": passage(choices=[link("loop_b"), link("done")]),
            "loop_b": passage(choices=[link("loop_a")]),
            "done": passage(ending=True),
        }
    )
    result = validate_story(story)
    [issue] = _issues(result, "CYCLE_DETECTED")
    assert issue.severity == "info"
    assert issue.details == {"cycle": ["loop_a", "loop_b", "loop_a"]}
    assert _issues(result, "NON_TERMINATING_CYCLE") == []


def test_cycle_without_exit_is_a_warning() -> None:
    story = make_story(
        {
            "start": passage(choices=[link("a")], start=True),
            "a": passage(choices=[link("b")]),
            "b": passage(choices=[link("a")]),
        }
    )
    [issue] = _issues(validate_story(story), "NON_TERMINATING_CYCLE")
    assert issue.severity == "warning"
    assert issue.details == {"cycle": ["a", "b", "a"]}

    [self_loop] = _issues(validate_story(self_loop_story()), "NON_TERMINATING_CYCLE")
    assert self_loop.details == {"cycle": ["start", "start"]}


def test_condition_heuristic_is_independent_of_grammar() -> None:
    story = make_story(
        {
            "start": passage(
                choices=[
                    link("a", "Strict", condition="flag === false"),
                    link("b", "Simple", condition="gold > 0"),
                ],
                start=True,
            ),
            "a": passage(ending=True),
            "b": passage(ending=True),
        }
    )
    [issue] = _issues(validate_story(story), "INVALID_CONDITION")
    assert issue.details == {"condition": "flag === false", "choiceText": "Strict"}

    assert is_valid_condition("gold > 0 && name == 'ann'") is True
    assert is_valid_condition("has_key") is True
    assert is_valid_condition("(has_key)") is False
    assert is_valid_condition("((a)") is False
    assert is_valid_condition("   ") is False


def test_state_hygiene_checks() -> None:
    story = make_story(
        {
            "start": passage(choices=[link("noop"), link("gate")], start=True),
            "noop": {"type": "variable"},
            "gate": {"type": "condition", "expression": "count = 1", "ifTrue": "end", "ifFalse": "end"},
            "end": passage(ending=True),
        }
    )
    result = validate_story(story)
    assert [issue.node_id for issue in _issues(result, "NO_STATE_CHANGE")] == ["noop"]
    assert [issue.node_id for issue in _issues(result, "VARIABLE_NO_NEXT")] == ["noop"]
    [effectful] = _issues(result, "EFFECTFUL_CONDITION")
    assert effectful.details == {"expression": "count = 1"}

    assert looks_effectful("x++") is True
    assert looks_effectful("roll(6) > 3") is True
    assert looks_effectful("a == b && c != d") is False
    assert looks_effectful("a >= 1") is False


def test_issue_order_is_stable_across_runs() -> None:
    story = make_story(
        {
            "start": passage("Hi", choices=[link("missing"), link("loop")], start=True),
            "loop": passage(choices=[link("loop")]),
            "orphan": passage(""),
            "noop": {"type": "variable"},
        }
    )
    validator = Validator(story)
    first = validator.validate()
    second = validator.validate()
    assert [issue.model_dump() for issue in first.issues] == [issue.model_dump() for issue in second.issues]

    keys = [
        (SEVERITY_RANK[issue.severity], issue.code, issue.node_id or "", issue.message)
        for issue in first.issues
    ]
    assert keys == sorted(keys)
    assert first.issues[0].severity == "error"
    assert first.issues[-1].severity == "info"
    assert first.counts.error + first.counts.warning + first.counts.info == len(first.issues)


def test_result_payload_is_camel_case() -> None:
    payload = validate_story(make_story({"start": passage(choices=[link("nowhere")], start=True)})).to_payload()
    assert set(payload) == {"valid", "issues", "counts", "durationMs"}
    assert payload["issues"][0]["nodeId"] == "start"
