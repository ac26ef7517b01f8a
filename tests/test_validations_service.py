"""Tests for WebValidationService against the mock ObservePoint API."""
from __future__ import annotations

from dataclasses import replace

import pytest

from observepoint_console.mapper import VALIDATION_LABEL
from observepoint_console.models import ValidationStep, ValidationTemplate, WebValidation
from observepoint_console.storage import TEMPLATES_STORAGE_KEY
from observepoint_console.validations import ValidationNotFoundError, WebValidationService


@pytest.fixture
def service(op_client, storage):
    return WebValidationService(op_client, storage)


def _validation(steps=2, **fields):
    return WebValidation(
        name=fields.pop("name", "Home Page Validation"),
        url=fields.pop("url", "https://www.example.com"),
        validations=[
            ValidationStep(id=f"s{i}", name=f"Check {i}", type="dom_element", sequence=i,
                           config={"selector": f"#el-{i}"})
            for i in range(1, steps + 1)
        ],
        **fields,
    )


# ============================================================================
# Create / update
# ============================================================================

def test_create_posts_journey_then_actions_in_order(service, mock_api):
    result = service.create_validation(_validation(steps=2))

    journey_id = result.validation.id
    assert mock_api.calls() == [
        ("POST", "/web-journeys"),
        ("POST", f"/web-journeys/{journey_id}/actions"),
        ("POST", f"/web-journeys/{journey_id}/actions"),
        ("POST", f"/web-journeys/{journey_id}/actions"),
    ]
    actions = mock_api.actions[journey_id]
    assert [a["action"] for a in actions] == ["navto", "execute", "execute"]
    assert [a["sequence"] for a in actions] == [0, 1, 2]
    assert actions[0]["url"] == "https://www.example.com"
    assert mock_api.journeys[journey_id]["labels"] == [VALIDATION_LABEL]
    assert result.action_count == 3


def test_create_returns_submitted_url_and_steps(service):
    result = service.create_validation(_validation(steps=1, frequency="weekly"))

    assert result.validation.url == "https://www.example.com"
    assert result.validation.frequency == "weekly"
    assert [s.id for s in result.validation.validations] == ["s1"]
    assert result.unsupported == []


def test_create_reports_unsupported_steps(service, mock_api):
    validation = _validation(steps=1)
    validation.validations.append(ValidationStep(id="x", name="Diff", type="visual_diff", sequence=2))

    result = service.create_validation(validation)

    assert result.action_count == 2
    assert [u.step.id for u in result.unsupported] == ["x"]
    assert result.to_dict()["unsupported"][0]["type"] == "visual_diff"


def test_create_stops_on_first_failure(service, mock_api):
    mock_api.fail_next = (500, {"message": "journey quota exceeded"})

    with pytest.raises(Exception, match="journey quota exceeded"):
        service.create_validation(_validation())

    assert mock_api.calls() == [("POST", "/web-journeys")]
    assert mock_api.journeys == {}


def test_update_replaces_all_actions(service, mock_api):
    created = service.create_validation(_validation(steps=2)).validation
    mock_api.requests.clear()

    updated = _validation(steps=1, name="Renamed Validation", url="https://www.example.com/new")
    result = service.update_validation(created.id, updated)

    methods = [method for method, _ in mock_api.calls()]
    assert methods == ["GET", "PUT", "GET", "DELETE", "DELETE", "DELETE", "POST", "POST"]
    actions = mock_api.actions[created.id]
    assert [a["action"] for a in actions] == ["navto", "execute"]
    assert actions[0]["url"] == "https://www.example.com/new"
    assert result.validation.name == "Renamed Validation"


# ============================================================================
# Listing
# ============================================================================

def test_list_returns_only_validation_journeys(service, mock_api):
    mock_api.add_journey("Nightly Audit Run")
    mock_api.add_journey("Checkout Flow")
    mock_api.add_journey("Landing", labels=[VALIDATION_LABEL, "team-a"])

    validations = service.list_validations()

    assert sorted(v.name for v in validations) == ["Landing", "Nightly Audit Run"]
    landing = next(v for v in validations if v.name == "Landing")
    assert landing.labels == ["team-a"]
    assert landing.url == ""
    assert landing.validations == []


def test_list_without_legacy_matching(op_client, storage, mock_api):
    op_client.config = replace(op_client.config, legacy_validation_match=False)
    mock_api.add_journey("Nightly Audit Run")
    mock_api.add_journey("Landing", labels=[VALIDATION_LABEL])

    validations = WebValidationService(op_client, storage).list_validations()

    assert [v.name for v in validations] == ["Landing"]


def test_get_validation_rejects_ordinary_journey(service, mock_api):
    journey = mock_api.add_journey("Checkout Flow")

    with pytest.raises(ValidationNotFoundError) as exc_info:
        service.get_validation(journey["id"])

    assert exc_info.value.status_code == 404


@pytest.fixture
def checkout_flow(mock_api):
    """An ordinary journey with one click action."""
    journey = mock_api.add_journey("Checkout Flow", labels=["shop"])
    mock_api.actions[journey["id"]].append(
        {"actionId": 1, "action": "click", "sequence": 0, "selector": "#buy", "rules": []}
    )
    return journey


def _assert_untouched(mock_api, journey):
    assert journey["id"] in mock_api.journeys
    assert mock_api.journeys[journey["id"]]["labels"] == ["shop"]
    assert [a["action"] for a in mock_api.actions[journey["id"]]] == ["click"]
    assert mock_api.runs[journey["id"]] == []
    assert {method for method, _ in mock_api.calls()} == {"GET"}


def test_update_refuses_ordinary_journey(service, mock_api, checkout_flow):
    with pytest.raises(ValidationNotFoundError) as exc_info:
        service.update_validation(checkout_flow["id"], WebValidation(name="Checkout Flow"))

    assert exc_info.value.status_code == 404
    _assert_untouched(mock_api, checkout_flow)


def test_delete_refuses_ordinary_journey(service, mock_api, checkout_flow):
    with pytest.raises(ValidationNotFoundError):
        service.delete_validation(checkout_flow["id"])

    _assert_untouched(mock_api, checkout_flow)


def test_run_refuses_ordinary_journey(service, mock_api, checkout_flow):
    with pytest.raises(ValidationNotFoundError):
        service.run_validation(checkout_flow["id"])

    _assert_untouched(mock_api, checkout_flow)


def test_delete_validation_removes_journey(service, mock_api):
    journey = mock_api.add_journey("Home Validation")

    service.delete_validation(journey["id"])

    assert journey["id"] not in mock_api.journeys


# ============================================================================
# Runs
# ============================================================================

def test_run_validation_starts_journey_run(service, mock_api):
    journey = mock_api.add_journey("Home Validation")

    run = service.run_validation(journey["id"])

    assert run.status == "running"
    assert run.validation_id == journey["id"]
    assert ("POST", f"/web-journeys/{journey['id']}/run") in mock_api.calls()


def test_validation_runs_have_one_result_per_page(service, mock_api):
    journey = mock_api.add_journey("Home Validation")
    mock_api.add_run(journey["id"], results=[
        {"id": "p1", "pageUrl": "https://www.example.com/"},
        {"id": "p2", "pageUrl": "https://www.example.com/about"},
    ])
    mock_api.add_run(journey["id"], status="failed", error="Navigation timeout",
                     results=[{"id": "p3", "pageUrl": "https://www.example.com/"}])

    completed, failed = service.get_validation_runs(journey["id"])

    assert [r.status for r in completed.results] == ["unknown", "unknown"]
    assert failed.summary["failed"] == 1
    assert failed.results[0].message == "Navigation timeout"


def test_wait_for_validation_run_returns_finished_run(service, mock_api):
    journey = mock_api.add_journey("Home Validation")
    run = mock_api.add_run(journey["id"], status="completed")

    result = service.wait_for_validation_run(journey["id"], run["id"], timeout=1)

    assert result.status == "completed"
    assert result.id == run["id"]


# ============================================================================
# Templates
# ============================================================================

def test_templates_are_seeded_on_first_read(service, storage, mock_api):
    templates = service.get_validation_templates()

    assert {t.id for t in templates} == {"page_tracking", "cta_click_tracking", "element_presence"}
    assert len(storage.get_json(TEMPLATES_STORAGE_KEY)) == 3
    # local only, no API traffic
    assert mock_api.requests == []


def test_save_template_replaces_same_id(service):
    service.save_validation_template(ValidationTemplate(id="custom", name="First"))
    service.save_validation_template(ValidationTemplate(id="custom", name="Second"))

    templates = service.get_validation_templates()

    assert [t.name for t in templates if t.id == "custom"] == ["Second"]
    assert service.get_validation_template("custom").name == "Second"


def test_delete_template(service):
    assert service.delete_validation_template("element_presence") is True
    assert service.get_validation_template("element_presence") is None
    assert service.delete_validation_template("element_presence") is False


def test_corrupt_template_store_is_reseeded(service, storage):
    storage.set_item(TEMPLATES_STORAGE_KEY, "{not json")

    templates = service.get_validation_templates()

    assert len(templates) == 3
