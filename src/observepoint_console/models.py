"""
Data models for the ObservePoint console.

Two families of objects live here:
- Vendor resources (WebJourney, WebJourneyAction, WebJourneyRun, Rule) as
  returned by the ObservePoint REST API. Wire names are camelCase.
- Console-side validation objects (WebValidation, ValidationStep,
  ValidationTemplate, ValidationRun). These never exist on the vendor side;
  they are projected onto journeys by the mapper.

Every model converts with to_dict()/from_dict(). to_dict() omits fields that
are None so the result can be sent as a partial update payload.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

# Vendor enumerations
JOURNEY_STATUSES = frozenset({'active', 'inactive', 'running'})
ACTION_TYPES = frozenset({'navto', 'execute', 'click', 'input', 'wait', 'scroll'})
RUN_TERMINAL_STATUSES = frozenset({'completed', 'failed'})
RULE_TYPES = frozenset({'tag_present', 'tag_not_present', 'variable_value', 'request_present', 'custom'})
RULE_OPERATORS = frozenset({'equals', 'contains', 'regex', 'not_equals'})

# Console enumerations
VALIDATION_FREQUENCIES = ('manual', 'daily', 'weekly', 'monthly')
STEP_TYPES = ('page_view', 'click_tracking', 'dom_element', 'network_request', 'custom_js')
RESULT_STATUSES = ('passed', 'failed', 'skipped', 'unknown')
VARIABLE_TYPES = frozenset({'text', 'number', 'url', 'select'})


def _compact(data: Dict[str, Any]) -> Dict[str, Any]:
    """Drop keys whose value is None."""
    return {key: value for key, value in data.items() if value is not None}


# ============================================================================
# Vendor resources
# ============================================================================

@dataclass
class WebJourney:
    """Automated browser script resource on the vendor side."""

    id: Optional[str] = None
    name: str = ''
    description: Optional[str] = None
    status: str = 'active'
    created: Optional[str] = None
    updated: Optional[str] = None
    last_run: Optional[str] = None
    account_id: Optional[str] = None
    folder_id: Optional[str] = None
    labels: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'status': self.status,
            'created': self.created,
            'updated': self.updated,
            'lastRun': self.last_run,
            'accountId': self.account_id,
            'folderId': self.folder_id,
            'labels': list(self.labels),
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WebJourney":
        return cls(
            id=_str_or_none(data.get('id')),
            name=data.get('name') or '',
            description=data.get('description'),
            status=data.get('status') or 'active',
            created=data.get('created'),
            updated=data.get('updated'),
            last_run=data.get('lastRun'),
            account_id=_str_or_none(data.get('accountId')),
            folder_id=_str_or_none(data.get('folderId')),
            labels=list(data.get('labels') or []),
        )


@dataclass
class WebJourneyAction:
    """One ordered step of a journey."""

    action: str
    sequence: int = 0
    label: str = ''
    action_id: Optional[int] = None
    url: Optional[str] = None
    js: Optional[str] = None
    selector: Optional[str] = None
    value: Optional[str] = None
    wait_duration: Optional[int] = None
    prevent_navigation: Optional[bool] = None
    rules: List[int] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            'actionId': self.action_id,
            'label': self.label,
            'sequence': self.sequence,
            'action': self.action,
            'url': self.url,
            'js': self.js,
            'selector': self.selector,
            'value': self.value,
            'waitDuration': self.wait_duration,
            'preventNavigation': self.prevent_navigation,
            'rules': list(self.rules),
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WebJourneyAction":
        return cls(
            action=data.get('action') or 'navto',
            sequence=int(data.get('sequence') or 0),
            label=data.get('label') or '',
            action_id=data.get('actionId'),
            url=data.get('url'),
            js=data.get('js'),
            selector=data.get('selector'),
            value=data.get('value'),
            wait_duration=data.get('waitDuration'),
            prevent_navigation=data.get('preventNavigation'),
            rules=list(data.get('rules') or []),
        )


def resequence_actions(actions: List[WebJourneyAction]) -> List[WebJourneyAction]:
    """Renumber actions 0..n-1 in list order, keeping the ordering dense."""
    for index, action in enumerate(actions):
        action.sequence = index
    return actions


@dataclass
class NetworkRequest:
    url: str
    method: str = 'GET'
    status: int = 0
    type: str = ''
    size: int = 0
    timing: float = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'url': self.url,
            'method': self.method,
            'status': self.status,
            'type': self.type,
            'size': self.size,
            'timing': self.timing,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NetworkRequest":
        return cls(
            url=data.get('url') or '',
            method=data.get('method') or 'GET',
            status=data.get('status') or 0,
            type=data.get('type') or '',
            size=data.get('size') or 0,
            timing=data.get('timing') or 0,
        )


@dataclass
class ConsoleMessage:
    level: str
    message: str
    timestamp: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact({'level': self.level, 'message': self.message, 'timestamp': self.timestamp})

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConsoleMessage":
        return cls(
            level=data.get('level') or 'log',
            message=data.get('message') or '',
            timestamp=data.get('timestamp'),
        )


@dataclass
class Tag:
    name: str
    type: str = ''
    fired: bool = False
    parameters: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {'name': self.name, 'type': self.type, 'fired': self.fired, 'parameters': dict(self.parameters)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Tag":
        return cls(
            name=data.get('name') or '',
            type=data.get('type') or '',
            fired=bool(data.get('fired')),
            parameters=dict(data.get('parameters') or {}),
        )


@dataclass
class WebJourneyResult:
    """Per-page result reported by a journey run."""

    id: Optional[str] = None
    run_id: Optional[str] = None
    page_url: str = ''
    timestamp: Optional[str] = None
    screenshots: List[str] = field(default_factory=list)
    network_requests: List[NetworkRequest] = field(default_factory=list)
    console_messages: List[ConsoleMessage] = field(default_factory=list)
    tags_fired: List[Tag] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            'id': self.id,
            'runId': self.run_id,
            'pageUrl': self.page_url,
            'timestamp': self.timestamp,
            'screenshots': list(self.screenshots),
            'networkRequests': [r.to_dict() for r in self.network_requests],
            'consoleMessages': [m.to_dict() for m in self.console_messages],
            'tagsFired': [t.to_dict() for t in self.tags_fired],
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WebJourneyResult":
        return cls(
            id=_str_or_none(data.get('id')),
            run_id=_str_or_none(data.get('runId')),
            page_url=data.get('pageUrl') or '',
            timestamp=data.get('timestamp'),
            screenshots=list(data.get('screenshots') or []),
            network_requests=[NetworkRequest.from_dict(r) for r in data.get('networkRequests') or []],
            console_messages=[ConsoleMessage.from_dict(m) for m in data.get('consoleMessages') or []],
            tags_fired=[Tag.from_dict(t) for t in data.get('tagsFired') or []],
        )


@dataclass
class WebJourneyRun:
    """Immutable execution record of a journey."""

    id: str
    journey_id: Optional[str] = None
    status: str = 'running'
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    duration: Optional[int] = None
    results: List[WebJourneyResult] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def is_finished(self) -> bool:
        return self.status in RUN_TERMINAL_STATUSES

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            'id': self.id,
            'journeyId': self.journey_id,
            'status': self.status,
            'startTime': self.start_time,
            'endTime': self.end_time,
            'duration': self.duration,
            'results': [r.to_dict() for r in self.results],
            'error': self.error,
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WebJourneyRun":
        return cls(
            id=_str_or_none(data.get('id')) or '',
            journey_id=_str_or_none(data.get('journeyId')),
            status=data.get('status') or 'running',
            start_time=data.get('startTime'),
            end_time=data.get('endTime'),
            duration=data.get('duration'),
            results=[WebJourneyResult.from_dict(r) for r in data.get('results') or []],
            error=data.get('error'),
        )


@dataclass
class RuleCondition:
    tag_name: Optional[str] = None
    variable_name: Optional[str] = None
    expected_value: Optional[str] = None
    operator: Optional[str] = None
    custom_script: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            'tagName': self.tag_name,
            'variableName': self.variable_name,
            'expectedValue': self.expected_value,
            'operator': self.operator,
            'customScript': self.custom_script,
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RuleCondition":
        return cls(
            tag_name=data.get('tagName'),
            variable_name=data.get('variableName'),
            expected_value=data.get('expectedValue'),
            operator=data.get('operator'),
            custom_script=data.get('customScript'),
        )


@dataclass
class Rule:
    """Vendor rule evaluated against journey results."""

    name: str
    type: str = 'tag_present'
    id: Optional[str] = None
    description: Optional[str] = None
    condition: RuleCondition = field(default_factory=RuleCondition)
    journey_ids: List[str] = field(default_factory=list)
    enabled: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'type': self.type,
            'condition': self.condition.to_dict(),
            'journeyIds': list(self.journey_ids),
            'enabled': self.enabled,
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Rule":
        return cls(
            id=_str_or_none(data.get('id')),
            name=data.get('name') or '',
            description=data.get('description'),
            type=data.get('type') or 'tag_present',
            condition=RuleCondition.from_dict(data.get('condition') or {}),
            journey_ids=[str(j) for j in data.get('journeyIds') or []],
            enabled=bool(data.get('enabled', True)),
        )


def describe_rule(rule: Rule) -> str:
    """One-line human summary of a rule, as shown in the rules list."""
    condition = rule.condition
    if rule.type == 'tag_present':
        return f'Tag "{condition.tag_name}" must be present'
    if rule.type == 'tag_not_present':
        return f'Tag "{condition.tag_name}" must not be present'
    if rule.type == 'variable_value':
        operator = condition.operator or 'equals'
        return f'Variable "{condition.variable_name}" {operator} "{condition.expected_value}"'
    if rule.type == 'request_present':
        return 'Network request must be present'
    if rule.type == 'custom':
        return 'Custom script validation'
    return rule.description or rule.type


# ============================================================================
# Console-side validation objects
# ============================================================================

@dataclass
class ValidationStep:
    """One declarative check inside a web validation."""

    id: str
    name: str
    type: str
    sequence: int = 1
    enabled: bool = True
    config: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'type': self.type,
            'sequence': self.sequence,
            'enabled': self.enabled,
            'config': dict(self.config),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ValidationStep":
        return cls(
            id=str(data.get('id') or ''),
            name=data.get('name') or '',
            type=data.get('type') or '',
            sequence=int(data.get('sequence') or 0),
            enabled=bool(data.get('enabled', True)),
            config=dict(data.get('config') or {}),
        )


@dataclass
class WebValidation:
    """Client-side projection of a journey with a target URL and steps."""

    name: str
    url: str = ''
    id: Optional[str] = None
    description: Optional[str] = None
    frequency: str = 'manual'
    status: str = 'active'
    validations: List[ValidationStep] = field(default_factory=list)
    labels: List[str] = field(default_factory=list)
    template_id: Optional[str] = None
    created: Optional[str] = None
    updated: Optional[str] = None
    last_run: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'url': self.url,
            'frequency': self.frequency,
            'status': self.status,
            'validations': [step.to_dict() for step in self.validations],
            'labels': list(self.labels),
            'templateId': self.template_id,
            'created': self.created,
            'updated': self.updated,
            'lastRun': self.last_run,
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WebValidation":
        return cls(
            id=_str_or_none(data.get('id')),
            name=data.get('name') or '',
            description=data.get('description'),
            url=data.get('url') or '',
            frequency=data.get('frequency') or 'manual',
            status=data.get('status') or 'active',
            validations=[ValidationStep.from_dict(s) for s in data.get('validations') or []],
            labels=list(data.get('labels') or []),
            template_id=_str_or_none(data.get('templateId')),
            created=data.get('created'),
            updated=data.get('updated'),
            last_run=data.get('lastRun'),
        )


@dataclass
class TemplateVariable:
    """Named input declared by a validation template."""

    key: str
    label: str
    type: str = 'text'
    required: bool = False
    default_value: Optional[str] = None
    options: List[Dict[str, str]] = field(default_factory=list)
    placeholder: Optional[str] = None
    help_text: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            'key': self.key,
            'label': self.label,
            'type': self.type,
            'required': self.required,
            'defaultValue': self.default_value,
            'options': [dict(o) for o in self.options] if self.options else None,
            'placeholder': self.placeholder,
            'helpText': self.help_text,
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TemplateVariable":
        return cls(
            key=data['key'],
            label=data.get('label') or data['key'],
            type=data.get('type') or 'text',
            required=bool(data.get('required', False)),
            default_value=data.get('defaultValue'),
            options=[dict(o) for o in data.get('options') or []],
            placeholder=data.get('placeholder'),
            help_text=data.get('helpText'),
        )


@dataclass
class ValidationTemplate:
    """Reusable, parameterized set of validation steps."""

    id: str
    name: str
    description: str = ''
    validations: List[ValidationStep] = field(default_factory=list)
    variables: List[TemplateVariable] = field(default_factory=list)

    def get_variable(self, key: str) -> Optional[TemplateVariable]:
        for variable in self.variables:
            if variable.key == key:
                return variable
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'validations': [step.to_dict() for step in self.validations],
            'variables': [v.to_dict() for v in self.variables],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ValidationTemplate":
        return cls(
            id=str(data['id']),
            name=data.get('name') or '',
            description=data.get('description') or '',
            validations=[ValidationStep.from_dict(s) for s in data.get('validations') or []],
            variables=[TemplateVariable.from_dict(v) for v in data.get('variables') or []],
        )


@dataclass
class ValidationResult:
    id: str
    name: str
    status: str = 'unknown'
    message: Optional[str] = None
    expected: Optional[Any] = None
    actual: Optional[Any] = None
    page_url: Optional[str] = None
    screenshot: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            'id': self.id,
            'name': self.name,
            'status': self.status,
            'message': self.message,
            'expected': self.expected,
            'actual': self.actual,
            'pageUrl': self.page_url,
            'screenshot': self.screenshot,
        })


@dataclass
class ValidationRun:
    """Execution record of a validation, derived from a journey run."""

    id: str
    validation_id: Optional[str]
    status: str
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    duration: Optional[int] = None
    results: List[ValidationResult] = field(default_factory=list)
    error: Optional[str] = None

    def count(self, status: str) -> int:
        return sum(1 for result in self.results if result.status == status)

    @property
    def summary(self) -> Dict[str, int]:
        counts = {status: self.count(status) for status in RESULT_STATUSES}
        counts['total'] = len(self.results)
        return counts

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            'id': self.id,
            'validationId': self.validation_id,
            'status': self.status,
            'startTime': self.start_time,
            'endTime': self.end_time,
            'duration': self.duration,
            'results': [r.to_dict() for r in self.results],
            'summary': self.summary,
            'error': self.error,
        })


def _str_or_none(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)
