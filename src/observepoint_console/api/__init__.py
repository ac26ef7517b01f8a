"""
Console API Blueprints.

Provides:
- settings_bp: API key management
- journeys_bp: Web journeys, actions and runs
- rules_bp: Rules and rule/journey assignment
- validations_bp: Web validations and validation templates
"""
from .journeys import journeys_bp
from .rules import rules_bp
from .settings import settings_bp
from .validations import validations_bp

__all__ = ['journeys_bp', 'rules_bp', 'settings_bp', 'validations_bp']
