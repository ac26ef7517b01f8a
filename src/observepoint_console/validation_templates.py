"""Validation templates and template-variable substitution."""
from __future__ import annotations

import copy
import re
import time
from typing import Any, Dict, List, Mapping, Optional

from .models import (
    STEP_TYPES,
    VALIDATION_FREQUENCIES,
    VARIABLE_TYPES,
    TemplateVariable,
    ValidationStep,
    ValidationTemplate,
    WebValidation,
)

PLACEHOLDER_PATTERN = re.compile(r'\{\{([^{}]+)\}\}')

URL_VARIABLE = 'url'


class TemplateValidationError(ValueError):
    """Form or template input failed validation.

    `errors` maps each offending field (or variable key) to a message.
    """

    def __init__(self, errors: Dict[str, str]):
        self.errors = dict(errors)
        fields = ', '.join(sorted(self.errors))
        super().__init__(f"Invalid fields: {fields}")


# ============================================================================
# Substitution
# ============================================================================

def substitute_text(text: str, values: Mapping[str, Any]) -> str:
    """Replace {{key}} placeholders in one pass.

    Substituted values are not scanned again; placeholders without a value
    are left as they are.
    """
    def replace(match: re.Match) -> str:
        key = match.group(1)
        value = values.get(key)
        if value is None:
            return match.group(0)
        return str(value)

    return PLACEHOLDER_PATTERN.sub(replace, text)


def _substitute_value(value: Any, values: Mapping[str, Any]) -> Any:
    if isinstance(value, str):
        return substitute_text(value, values) if '{{' in value else value
    if isinstance(value, dict):
        return {k: _substitute_value(v, values) for k, v in value.items()}
    if isinstance(value, list):
        return [_substitute_value(v, values) for v in value]
    return value


def substitute_variables(config: Mapping[str, Any], values: Mapping[str, Any]) -> Dict[str, Any]:
    """Return a copy of a step config with placeholders expanded in strings."""
    return {key: _substitute_value(value, values) for key, value in config.items()}


# ============================================================================
# Variable validation
# ============================================================================

def initial_variable_values(template: ValidationTemplate) -> Dict[str, str]:
    """Form defaults for a template's variables."""
    return {v.key: v.default_value or '' for v in template.variables}


def _is_empty(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def validate_required_variables(template: ValidationTemplate, values: Mapping[str, Any]) -> Dict[str, str]:
    """Collect an error for every required variable without a value."""
    errors: Dict[str, str] = {}
    for variable in template.variables:
        if variable.required and _is_empty(values.get(variable.key)):
            errors[variable.key] = f"{variable.label} is required"
    return errors


def apply_template(template: ValidationTemplate, values: Mapping[str, Any],
                   steps: Optional[List[ValidationStep]] = None) -> List[ValidationStep]:
    """Expand template variables into a list of steps.

    Uses the template's own steps unless `steps` is given. Required variables
    are checked before anything is substituted.

    Raises:
        TemplateValidationError: If any required variable is missing
    """
    errors = validate_required_variables(template, values)
    if errors:
        raise TemplateValidationError(errors)

    source = steps if steps is not None else template_steps(template)
    return [
        ValidationStep(
            id=step.id,
            name=step.name,
            type=step.type,
            sequence=step.sequence,
            enabled=step.enabled,
            config=substitute_variables(step.config, values),
        )
        for step in source
    ]


def resolve_target_url(template: Optional[ValidationTemplate], values: Mapping[str, Any], url: str) -> str:
    """The `url` variable when the template declares one, else the URL field."""
    if template is not None and template.get_variable(URL_VARIABLE) is not None:
        return str(values.get(URL_VARIABLE) or '').strip()
    return (url or '').strip()


def template_steps(template: ValidationTemplate) -> List[ValidationStep]:
    """Fresh copies of a template's steps with form-local ids."""
    steps = []
    for index, step in enumerate(template.validations):
        copied = copy.deepcopy(step)
        copied.id = f'validation-{index}'
        steps.append(copied)
    return steps


def parse_steps(raw: Any, field_name: str = 'validations') -> List[ValidationStep]:
    """Build steps from submitted JSON.

    Raises:
        TemplateValidationError: If the list or any step in it is malformed
    """
    if not isinstance(raw, list):
        raise TemplateValidationError({field_name: 'Must be a list of steps'})
    steps = []
    for index, item in enumerate(raw):
        if isinstance(item, ValidationStep):
            steps.append(item)
            continue
        if not isinstance(item, dict) or not isinstance(item.get('config') or {}, dict):
            raise TemplateValidationError({f'{field_name}[{index}]': 'Must be an object with an object config'})
        try:
            steps.append(ValidationStep.from_dict(item))
        except (TypeError, ValueError):
            raise TemplateValidationError({f'{field_name}[{index}]': 'Sequence must be a number'})
    return steps


def validate_template(template: ValidationTemplate) -> Dict[str, str]:
    """Field errors for a template about to be stored."""
    errors: Dict[str, str] = {}
    if not template.id:
        errors['id'] = 'Template id is required'
    if not template.name.strip():
        errors['name'] = 'Name is required'
    for variable in template.variables:
        if variable.type not in VARIABLE_TYPES:
            errors[f'variables.{variable.key}'] = (
                f"Type must be one of: {', '.join(sorted(VARIABLE_TYPES))}"
            )
    for step in template.validations:
        if step.type not in STEP_TYPES:
            errors[f'validations.{step.id}'] = f"Unknown step type: {step.type}"
    return errors


def parse_template(payload: Mapping[str, Any]) -> ValidationTemplate:
    """Build and check a template from a submitted JSON object.

    Raises:
        TemplateValidationError: With one entry per failing field
    """
    variables = payload.get('variables') or []
    if not isinstance(variables, list) or not all(isinstance(v, dict) and v.get('key') for v in variables):
        raise TemplateValidationError({'variables': 'Must be a list of objects with a key'})
    steps = parse_steps(payload.get('validations') or [])

    try:
        parsed_variables = [TemplateVariable.from_dict(v) for v in variables]
    except (TypeError, ValueError):
        raise TemplateValidationError({'variables': 'Options must be a list of {value, label} objects'})

    template = ValidationTemplate(
        id=str(payload.get('id') or ''),
        name=str(payload.get('name') or ''),
        description=str(payload.get('description') or ''),
        validations=steps,
        variables=parsed_variables,
    )
    errors = validate_template(template)
    if errors:
        raise TemplateValidationError(errors)
    return template


def build_validation_from_form(form: Mapping[str, Any], template: Optional[ValidationTemplate] = None,
                               values: Optional[Mapping[str, Any]] = None) -> WebValidation:
    """Turn a submitted validation form into a WebValidation.

    Checks, all reported together:
    - name is required
    - url is required unless a template is used
    - frequency must be known
    - every required template variable must have a value

    Raises:
        TemplateValidationError: With one entry per failing field
    """
    if values is not None and not isinstance(values, Mapping):
        raise TemplateValidationError({'variables': 'Must be an object of variable values'})
    supplied = dict(values or {})
    merged = {**initial_variable_values(template), **supplied} if template else supplied

    errors: Dict[str, str] = {}
    name = form.get('name') or ''
    name = name.strip() if isinstance(name, str) else ''
    if not name:
        errors['name'] = 'Name is required'

    raw_url = form.get('url') or ''
    url = resolve_target_url(template, merged, raw_url if isinstance(raw_url, str) else '')
    if not url and template is None:
        errors['url'] = 'URL is required'

    frequency = form.get('frequency') or 'manual'
    if frequency not in VALIDATION_FREQUENCIES:
        errors['frequency'] = f"Frequency must be one of: {', '.join(VALIDATION_FREQUENCIES)}"

    labels = form.get('labels') or []
    if not isinstance(labels, list):
        errors['labels'] = 'Must be a list of strings'

    if template is not None:
        errors.update(validate_required_variables(template, merged))

    if errors:
        raise TemplateValidationError(errors)

    if form.get('validations') is not None:
        steps = parse_steps(form['validations'])
    elif template is not None:
        steps = template_steps(template)
    else:
        steps = []

    if template is not None:
        steps = apply_template(template, merged, steps)

    return WebValidation(
        name=name,
        description=form.get('description') or '',
        url=url,
        frequency=frequency,
        validations=steps,
        labels=[str(label) for label in labels],
        template_id=template.id if template is not None else None,
    )


# ============================================================================
# Step list editing
# ============================================================================

def _resequence(steps: List[ValidationStep]) -> List[ValidationStep]:
    for index, step in enumerate(steps):
        step.sequence = index + 1
    return steps


def add_step(steps: List[ValidationStep], step_type: str = 'dom_element',
             name: str = 'New Validation') -> List[ValidationStep]:
    if step_type not in STEP_TYPES:
        raise TemplateValidationError({'type': f"Unknown step type: {step_type}"})
    new_step = ValidationStep(
        id=f'validation-{time.time_ns()}',
        name=name,
        type=step_type,
        sequence=len(steps) + 1,
        enabled=True,
        config={},
    )
    return steps + [new_step]


def remove_step(steps: List[ValidationStep], step_id: str) -> List[ValidationStep]:
    return _resequence([s for s in steps if s.id != step_id])


def move_step(steps: List[ValidationStep], step_id: str, direction: str) -> List[ValidationStep]:
    """Swap a step with its neighbour; out-of-range moves are ignored."""
    moved = list(steps)
    index = next((i for i, s in enumerate(moved) if s.id == step_id), None)
    if index is None:
        return moved
    target = index - 1 if direction == 'up' else index + 1
    if 0 <= target < len(moved):
        moved[index], moved[target] = moved[target], moved[index]
        _resequence(moved)
    return moved


# ============================================================================
# Built-in templates
# ============================================================================

DEFAULT_TEMPLATES = [
    ValidationTemplate(
        id="page_tracking",
        name="Page Tracking",
        description="Verify the page-name analytics variable on a landing page",
        validations=[
            ValidationStep(
                id="page-name",
                name="Validate Page Name",
                type="page_view",
                sequence=1,
                config={
                    "pageNameVariable": "{{pageNameVariable}}",
                    "expectedPageName": "{{pageName}}",
                },
            ),
        ],
        variables=[
            TemplateVariable(key="url", label="Page URL", type="url", required=True,
                             placeholder="https://www.example.com/page"),
            TemplateVariable(key="pageName", label="Expected Page Name", required=True,
                             placeholder="site|section page-name"),
            TemplateVariable(key="pageNameVariable", label="Page Name Variable",
                             default_value="eVar100",
                             help_text="Analytics variable that carries the page name"),
        ],
    ),

    ValidationTemplate(
        id="cta_click_tracking",
        name="CTA Click Tracking",
        description="Click a call-to-action and verify the click is tracked",
        validations=[
            ValidationStep(
                id="page-name",
                name="Validate Page Name",
                type="page_view",
                sequence=1,
                config={
                    "pageNameVariable": "eVar100",
                    "expectedPageName": "{{pageName}}",
                },
            ),
            ValidationStep(
                id="cta-click",
                name="Validate CTA Click",
                type="click_tracking",
                sequence=2,
                config={
                    "selector": "{{ctaSelector}}",
                    "clickVariable": "{{clickVariable}}",
                },
            ),
        ],
        variables=[
            TemplateVariable(key="url", label="Page URL", type="url", required=True),
            TemplateVariable(key="pageName", label="Expected Page Name", required=True),
            TemplateVariable(key="ctaSelector", label="CTA Selector", required=True,
                             placeholder='[data-link-info="cta"]'),
            TemplateVariable(key="clickVariable", label="Click Variable", default_value="eVar70",
                             type="select", options=[
                                 {"value": "eVar70", "label": "eVar70"},
                                 {"value": "prop70", "label": "prop70"},
                             ]),
        ],
    ),

    ValidationTemplate(
        id="element_presence",
        name="Element Presence",
        description="Check that an element exists on the page",
        validations=[
            ValidationStep(
                id="element",
                name="Element Present",
                type="dom_element",
                sequence=1,
                config={"selector": "{{selector}}"},
            ),
        ],
        variables=[
            TemplateVariable(key="url", label="Page URL", type="url", required=True),
            TemplateVariable(key="selector", label="CSS Selector", required=True),
        ],
    ),
]


def get_default_templates() -> List[ValidationTemplate]:
    """Deep copies of the built-in templates."""
    return copy.deepcopy(DEFAULT_TEMPLATES)
