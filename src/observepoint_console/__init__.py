"""ObservePoint console: web journey, rule and web validation management."""

from .client import InvalidApiKeyError, ObservePointAPIError, ObservePointClient
from .config import ClientConfig, get_client_config
from .mapper import (
    VALIDATION_LABEL,
    ActionPlan,
    UnsupportedStep,
    build_actions,
    filter_validation_journeys,
    from_journey,
    from_journey_run,
    is_validation_journey,
    to_journey,
)
from .validation_templates import TemplateValidationError, substitute_variables
from .validations import WebValidationService

__version__ = "1.0.0"

__all__ = [
    'ActionPlan',
    'ClientConfig',
    'InvalidApiKeyError',
    'ObservePointAPIError',
    'ObservePointClient',
    'TemplateValidationError',
    'UnsupportedStep',
    'VALIDATION_LABEL',
    'WebValidationService',
    'build_actions',
    'filter_validation_journeys',
    'from_journey',
    'from_journey_run',
    'get_client_config',
    'is_validation_journey',
    'substitute_variables',
    'to_journey',
]
