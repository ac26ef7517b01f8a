"""
Validation <-> Journey mapping.

A web validation is stored on the vendor side as an ordinary web journey:
- the journey carries the validation's name/description/status and the
  reserved `web-validation` label,
- the target URL becomes a leading navigation action,
- every enabled step becomes one `execute` action running a generated script.

The mapping is lossy in the reverse direction: a bare journey does not tell
us the URL or the steps it was built from, so from_journey() returns an empty
URL and step list.
"""
import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from .models import (
    ValidationResult,
    ValidationRun,
    ValidationStep,
    WebJourney,
    WebJourneyAction,
    WebJourneyRun,
    WebValidation,
    resequence_actions,
)
from .scripts import UnsupportedStepTypeError, generate_script

logger = logging.getLogger(__name__)

VALIDATION_LABEL = 'web-validation'

# Markers of journeys created before VALIDATION_LABEL was applied
LEGACY_VALIDATION_LABELS = frozenset({'web-audit'})
LEGACY_NAME_MARKERS = ('Validation', 'Audit')

PLACEHOLDER_URL = 'https://example.com'
NAVIGATE_LABEL = 'Navigate to Page'
RESULT_NAME = 'Page Validation'


@dataclass
class UnsupportedStep:
    """A step that produced no action, and why."""

    step: ValidationStep
    reason: str


@dataclass
class ActionPlan:
    """Ordered actions for a validation plus the steps that were skipped."""

    actions: List[WebJourneyAction] = field(default_factory=list)
    unsupported: List[UnsupportedStep] = field(default_factory=list)

    @property
    def is_complete(self) -> bool:
        return not self.unsupported


def to_journey(validation: WebValidation) -> WebJourney:
    """Build the journey payload for a validation (URL and steps excluded)."""
    labels = list(validation.labels)
    if VALIDATION_LABEL not in labels:
        labels.append(VALIDATION_LABEL)

    return WebJourney(
        name=validation.name,
        description=validation.description,
        status=validation.status or 'active',
        labels=labels,
    )


def _navigate_action(url: str) -> WebJourneyAction:
    return WebJourneyAction(action='navto', label=NAVIGATE_LABEL, url=url)


def build_actions(validation: WebValidation) -> ActionPlan:
    """Synthesize the journey actions for a validation.

    Order: navigation to the target URL (if any), then one execute action per
    enabled step in sequence order. An empty result is replaced by a single
    navigation to PLACEHOLDER_URL so the API never receives an empty journey.
    Steps of unknown type are reported in ActionPlan.unsupported.
    """
    plan = ActionPlan()

    if validation.url:
        plan.actions.append(_navigate_action(validation.url))

    steps = sorted((s for s in validation.validations if s.enabled), key=lambda s: s.sequence)
    for step in steps:
        try:
            script = generate_script(step)
        except UnsupportedStepTypeError as e:
            logger.warning(f"Skipping step {step.id} ({step.name}) of validation {validation.name!r}: {e}")
            plan.unsupported.append(UnsupportedStep(step=step, reason=str(e)))
            continue
        plan.actions.append(WebJourneyAction(action='execute', label=step.name, js=script))

    if not plan.actions:
        plan.actions.append(_navigate_action(PLACEHOLDER_URL))

    resequence_actions(plan.actions)
    return plan


def from_journey(journey: WebJourney) -> WebValidation:
    """Project a journey onto a validation view.

    URL and steps are not recoverable from a journey and come back empty.
    """
    return WebValidation(
        id=journey.id,
        name=journey.name,
        description=journey.description,
        url='',
        frequency='manual',
        status=journey.status,
        validations=[],
        labels=[label for label in journey.labels if label != VALIDATION_LABEL],
        created=journey.created,
        updated=journey.updated,
        last_run=journey.last_run,
    )


def from_journey_run(run: WebJourneyRun, validation_id: Optional[str] = None) -> ValidationRun:
    """Derive a validation run from a journey run.

    One ValidationResult per reported page result, in order, with the
    positional id `val-<index>`. The vendor run does not expose the outcome
    of the generated scripts, so a result is `unknown` unless the run as a
    whole failed, in which case every result is `failed`.
    """
    failed = run.status == 'failed'
    results = []
    for index, page in enumerate(run.results):
        results.append(ValidationResult(
            id=f'val-{index}',
            name=RESULT_NAME,
            status='failed' if failed else 'unknown',
            message=run.error if failed and run.error else page.page_url,
            page_url=page.page_url,
            screenshot=page.screenshots[0] if page.screenshots else None,
        ))

    return ValidationRun(
        id=run.id,
        validation_id=validation_id or run.journey_id,
        status=run.status,
        start_time=run.start_time,
        end_time=run.end_time,
        duration=run.duration,
        results=results,
        error=run.error,
    )


def is_validation_journey(journey: WebJourney, legacy_match: bool = True) -> bool:
    """Decide whether a journey backs a validation.

    The reserved label is authoritative. With legacy_match, journeys created
    before the label existed are recognized by the old web-audit label or a
    name containing "Validation"/"Audit".
    """
    labels = set(journey.labels)
    if VALIDATION_LABEL in labels:
        return True
    if not legacy_match:
        return False
    if labels & LEGACY_VALIDATION_LABELS:
        return True
    return any(marker in journey.name for marker in LEGACY_NAME_MARKERS)


def filter_validation_journeys(journeys: Iterable[WebJourney], legacy_match: bool = True) -> List[WebJourney]:
    return [j for j in journeys if is_validation_journey(j, legacy_match=legacy_match)]
