"""Tests for the validation <-> journey mapper."""
from __future__ import annotations

import pytest

from observepoint_console.mapper import (
    PLACEHOLDER_URL,
    VALIDATION_LABEL,
    build_actions,
    filter_validation_journeys,
    from_journey,
    from_journey_run,
    is_validation_journey,
    to_journey,
)
from observepoint_console.models import (
    ValidationStep,
    WebJourney,
    WebJourneyResult,
    WebJourneyRun,
    WebValidation,
)


def _step(index, step_type="dom_element", enabled=True, **config):
    return ValidationStep(
        id=f"step-{index}",
        name=f"Step {index}",
        type=step_type,
        sequence=index,
        enabled=enabled,
        config=config or {"selector": f"#el-{index}"},
    )


def test_to_journey_adds_validation_label_once():
    validation = WebValidation(name="Home", description="desc", labels=["team-a", VALIDATION_LABEL])

    journey = to_journey(validation)

    assert journey.name == "Home"
    assert journey.description == "desc"
    assert journey.status == "active"
    assert journey.labels == ["team-a", VALIDATION_LABEL]


def test_to_journey_does_not_carry_url_or_steps():
    validation = WebValidation(name="Home", url="https://www.example.com", validations=[_step(1)])

    payload = to_journey(validation).to_dict()

    assert "url" not in payload
    assert "validations" not in payload
    assert payload["labels"] == [VALIDATION_LABEL]


@pytest.mark.parametrize("count", [0, 1, 3])
def test_build_actions_url_plus_one_action_per_enabled_step(count):
    steps = [_step(i) for i in range(1, count + 1)]
    validation = WebValidation(name="v", url="https://www.example.com", validations=steps)

    plan = build_actions(validation)

    assert len(plan.actions) == count + 1
    assert plan.actions[0].action == "navto"
    assert plan.actions[0].sequence == 0
    assert plan.actions[0].url == "https://www.example.com"
    assert all(a.action == "execute" for a in plan.actions[1:])
    assert [a.sequence for a in plan.actions] == list(range(count + 1))


def test_build_actions_without_url_or_steps_yields_default_navigation():
    plan = build_actions(WebValidation(name="empty"))

    assert len(plan.actions) == 1
    assert plan.actions[0].action == "navto"
    assert plan.actions[0].url == PLACEHOLDER_URL
    assert plan.actions[0].sequence == 0


def test_build_actions_skips_disabled_steps():
    steps = [_step(1), _step(2, enabled=False), _step(3)]
    plan = build_actions(WebValidation(name="v", url="https://x.test", validations=steps))

    assert [a.label for a in plan.actions[1:]] == ["Step 1", "Step 3"]


def test_build_actions_orders_steps_by_sequence():
    steps = [_step(3), _step(1), _step(2)]
    plan = build_actions(WebValidation(name="v", validations=steps))

    assert [a.label for a in plan.actions] == ["Step 1", "Step 2", "Step 3"]
    assert [a.sequence for a in plan.actions] == [0, 1, 2]


def test_unknown_step_type_is_reported_not_dropped_silently():
    steps = [_step(1), _step(2, step_type="screenshot_diff")]
    plan = build_actions(WebValidation(name="v", url="https://x.test", validations=steps))

    assert len(plan.actions) == 2
    assert not plan.is_complete
    assert len(plan.unsupported) == 1
    assert plan.unsupported[0].step.id == "step-2"
    assert "screenshot_diff" in plan.unsupported[0].reason


def test_only_unsupported_steps_still_yields_placeholder_navigation():
    plan = build_actions(WebValidation(name="v", validations=[_step(1, step_type="bogus")]))

    assert [a.url for a in plan.actions] == [PLACEHOLDER_URL]
    assert len(plan.unsupported) == 1


def test_page_view_script_references_variable_and_expected_name():
    step = _step(1, step_type="page_view", pageNameVariable="eVar100", expectedPageName="home")
    plan = build_actions(WebValidation(name="v", validations=[step]))

    script = plan.actions[0].js
    assert "eVar100" in script
    assert '"home"' in script


def test_from_journey_copies_identity_and_loses_url_and_steps():
    journey = WebJourney(
        id="7", name="Home Validation", description="d", status="inactive",
        created="2024-01-01", updated="2024-01-02", last_run="2024-01-03",
        labels=[VALIDATION_LABEL, "team-a"],
    )

    validation = from_journey(journey)

    assert validation.id == "7"
    assert validation.name == "Home Validation"
    assert validation.status == "inactive"
    assert validation.last_run == "2024-01-03"
    assert validation.url == ""
    assert validation.validations == []
    assert validation.labels == ["team-a"]


def _run(status="completed", pages=3, error=None):
    return WebJourneyRun(
        id="run-1",
        journey_id="7",
        status=status,
        results=[WebJourneyResult(id=str(i), page_url=f"https://x.test/{i}") for i in range(pages)],
        error=error,
    )


@pytest.mark.parametrize("pages", [0, 1, 4])
def test_from_journey_run_preserves_cardinality(pages):
    run = from_journey_run(_run(pages=pages))

    assert len(run.results) == pages
    assert [r.id for r in run.results] == [f"val-{i}" for i in range(pages)]
    assert run.summary["total"] == pages


def test_from_journey_run_marks_results_unknown_not_passed():
    run = from_journey_run(_run())

    assert {r.status for r in run.results} == {"unknown"}
    assert run.summary == {"passed": 0, "failed": 0, "skipped": 0, "unknown": 3, "total": 3}
    assert run.results[1].page_url == "https://x.test/1"
    assert run.validation_id == "7"


def test_failed_run_fails_every_result_and_counts_agree():
    run = from_journey_run(_run(status="failed", pages=2, error="Timed out"), validation_id="v-1")

    assert run.status == "failed"
    assert run.validation_id == "v-1"
    assert all(r.status == "failed" and r.message == "Timed out" for r in run.results)
    summary = run.summary
    assert summary["failed"] == 2
    assert sum(summary[s] for s in ("passed", "failed", "skipped", "unknown")) == summary["total"]


def test_reserved_label_classifies_journey():
    assert is_validation_journey(WebJourney(name="Checkout", labels=[VALIDATION_LABEL]), legacy_match=False)


def test_legacy_name_matching():
    audit = WebJourney(name="Nightly Audit Run")
    checkout = WebJourney(name="Checkout Flow")
    validation = WebJourney(name="Home Validation")
    legacy_label = WebJourney(name="Test", labels=["web-audit"])

    assert is_validation_journey(audit)
    assert is_validation_journey(validation)
    assert is_validation_journey(legacy_label)
    assert not is_validation_journey(checkout)


def test_legacy_matching_can_be_disabled():
    assert not is_validation_journey(WebJourney(name="Nightly Audit Run"), legacy_match=False)


def test_filter_validation_journeys():
    journeys = [
        WebJourney(id="1", name="Nightly Audit Run"),
        WebJourney(id="2", name="Checkout Flow"),
        WebJourney(id="3", name="Plain", labels=[VALIDATION_LABEL]),
    ]

    assert [j.id for j in filter_validation_journeys(journeys)] == ["1", "3"]
    assert [j.id for j in filter_validation_journeys(journeys, legacy_match=False)] == ["3"]
