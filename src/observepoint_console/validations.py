"""
Web validation service.

Composes the API client, the validation <-> journey mapper and the local
template store into the operations the console exposes for validations.
Calls are issued one at a time; a failure stops the operation and
propagates to the caller without retry.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .client import ObservePointAPIError, ObservePointClient
from .mapper import (
    UnsupportedStep,
    build_actions,
    filter_validation_journeys,
    from_journey,
    from_journey_run,
    is_validation_journey,
    to_journey,
)
from .models import ValidationRun, ValidationTemplate, WebJourney, WebValidation
from .storage import TEMPLATES_STORAGE_KEY, LocalStorage
from .validation_templates import get_default_templates

logger = logging.getLogger(__name__)


class ValidationNotFoundError(ObservePointAPIError):
    """The journey does not exist or does not back a validation."""

    def __init__(self, validation_id: str):
        super().__init__(f"Validation {validation_id} not found", status_code=404)
        self.validation_id = validation_id


@dataclass
class SaveResult:
    """Outcome of creating or updating a validation."""

    validation: WebValidation
    action_count: int = 0
    unsupported: List[UnsupportedStep] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'validation': self.validation.to_dict(),
            'actionCount': self.action_count,
            'unsupported': [
                {'stepId': u.step.id, 'name': u.step.name, 'type': u.step.type, 'reason': u.reason}
                for u in self.unsupported
            ],
        }


class WebValidationService:
    """Validation operations on top of the journey API."""

    def __init__(self, client: ObservePointClient, storage: Optional[LocalStorage] = None):
        self.client = client
        self.storage = storage if storage is not None else client.storage

    @property
    def legacy_match(self) -> bool:
        return self.client.config.legacy_validation_match

    # ------------------------------------------------------------------
    # Validations
    # ------------------------------------------------------------------

    def list_validations(self) -> List[WebValidation]:
        journeys = self.client.get_web_journeys()
        matching = filter_validation_journeys(journeys, legacy_match=self.legacy_match)
        logger.debug(f"{len(matching)} of {len(journeys)} journeys are validations")
        return [from_journey(j) for j in matching]

    def _validation_journey(self, validation_id: str) -> WebJourney:
        """Fetch the backing journey; ordinary journeys are not validations."""
        journey = self.client.get_web_journey(validation_id)
        if not is_validation_journey(journey, legacy_match=self.legacy_match):
            raise ValidationNotFoundError(validation_id)
        return journey

    def get_validation(self, validation_id: str) -> WebValidation:
        return from_journey(self._validation_journey(validation_id))

    def _add_actions(self, journey_id: str, validation: WebValidation) -> SaveResult:
        plan = build_actions(validation)
        for action in plan.actions:
            self.client.add_journey_action(journey_id, action)
        if plan.unsupported:
            skipped = ', '.join(u.step.type for u in plan.unsupported)
            logger.warning(f"Validation {journey_id}: {len(plan.unsupported)} step(s) without action ({skipped})")
        return SaveResult(validation=validation, action_count=len(plan.actions), unsupported=plan.unsupported)

    def _view(self, journey, submitted: WebValidation) -> WebValidation:
        # The journey does not echo URL/steps; keep what was submitted.
        view = from_journey(journey)
        view.url = submitted.url
        view.frequency = submitted.frequency
        view.validations = submitted.validations
        view.template_id = submitted.template_id
        return view

    def create_validation(self, validation: WebValidation) -> SaveResult:
        """Create the backing journey, then add its actions in order."""
        journey = self.client.create_web_journey(to_journey(validation))
        result = self._add_actions(journey.id, validation)
        result.validation = self._view(journey, validation)
        logger.info(f"Created validation {journey.id} with {result.action_count} action(s)")
        return result

    def update_validation(self, validation_id: str, validation: WebValidation) -> SaveResult:
        """Update the journey and replace all of its actions."""
        self._validation_journey(validation_id)
        journey = self.client.update_web_journey(validation_id, to_journey(validation))
        for action in self.client.get_journey_actions(validation_id):
            if action.action_id is not None:
                self.client.delete_journey_action(validation_id, str(action.action_id))
        result = self._add_actions(validation_id, validation)
        result.validation = self._view(journey, validation)
        logger.info(f"Updated validation {validation_id} with {result.action_count} action(s)")
        return result

    def delete_validation(self, validation_id: str):
        self._validation_journey(validation_id)
        self.client.delete_web_journey(validation_id)

    # ------------------------------------------------------------------
    # Runs
    # ------------------------------------------------------------------

    def run_validation(self, validation_id: str) -> ValidationRun:
        self._validation_journey(validation_id)
        return from_journey_run(self.client.run_web_journey(validation_id), validation_id)

    def get_validation_runs(self, validation_id: str) -> List[ValidationRun]:
        runs = self.client.get_journey_runs(validation_id)
        return [from_journey_run(run, validation_id) for run in runs]

    def get_validation_run(self, validation_id: str, run_id: str) -> ValidationRun:
        return from_journey_run(self.client.get_journey_run(validation_id, run_id), validation_id)

    def wait_for_validation_run(self, validation_id: str, run_id: str,
                                timeout: Optional[float] = None) -> ValidationRun:
        run = self.client.wait_for_run(validation_id, run_id, timeout=timeout)
        return from_journey_run(run, validation_id)

    # ------------------------------------------------------------------
    # Templates (local storage only)
    # ------------------------------------------------------------------

    def get_validation_templates(self) -> List[ValidationTemplate]:
        """Stored templates; the built-in set is seeded on first use."""
        data = self.storage.get_json(TEMPLATES_STORAGE_KEY)
        if data is None:
            templates = get_default_templates()
            self._store_templates(templates)
            logger.info(f"Seeded {len(templates)} built-in validation templates")
            return templates
        return [ValidationTemplate.from_dict(item) for item in data]

    def get_validation_template(self, template_id: str) -> Optional[ValidationTemplate]:
        for template in self.get_validation_templates():
            if template.id == template_id:
                return template
        return None

    def save_validation_template(self, template: ValidationTemplate) -> ValidationTemplate:
        templates = [t for t in self.get_validation_templates() if t.id != template.id]
        templates.append(template)
        self._store_templates(templates)
        return template

    def delete_validation_template(self, template_id: str) -> bool:
        templates = self.get_validation_templates()
        remaining = [t for t in templates if t.id != template_id]
        if len(remaining) == len(templates):
            return False
        self._store_templates(remaining)
        return True

    def _store_templates(self, templates: List[ValidationTemplate]):
        self.storage.set_json(TEMPLATES_STORAGE_KEY, [t.to_dict() for t in templates])
