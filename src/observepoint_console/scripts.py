"""
Browser script generation for validation steps.

Each supported step type turns into the body of an `execute` journey action.
The script runs inside the audited page (not in the console) and returns,
or resolves to, an object of the form:

    {success: bool, message: str, expected?: any, actual?: any}

Config values are embedded as JSON literals, never spliced in raw, so a
selector or expected value containing quotes cannot break the script.
"""
import json
import logging
from typing import Any, Callable, Dict

from .models import ValidationStep

logger = logging.getLogger(__name__)

# Window during which the click-tracking hook listens for a tracking call
CLICK_TRACKING_TIMEOUT_MS = 1000


class UnsupportedStepTypeError(ValueError):
    """No script generator exists for the step type."""

    def __init__(self, step_type: str):
        super().__init__(f"Unsupported validation step type: {step_type!r}")
        self.step_type = step_type


def _js(value: Any) -> str:
    """Render a Python value as a JavaScript literal."""
    return json.dumps(value)


def page_view_script(config: Dict[str, Any]) -> str:
    variable = config.get('pageNameVariable') or 'pageName'
    expected = config.get('expectedPageName') or ''
    return f"""
var variableName = {_js(variable)};
var expected = {_js(expected)};
var actual = window.s ? window.s[variableName] : undefined;
if (actual === undefined || actual === null) {{
  return {{ success: false, message: 'Analytics variable ' + variableName + ' is not set', expected: expected, actual: null }};
}}
var success = expected === '' || String(actual).indexOf(expected) !== -1;
return {{
  success: success,
  message: success ? 'Page name validated: ' + actual : 'Page name mismatch for ' + variableName,
  expected: expected,
  actual: actual
}};
""".strip()


def click_tracking_script(config: Dict[str, Any]) -> str:
    selector = config.get('selector') or ''
    variable = config.get('clickVariable') or ''
    expected = config.get('expectedValue')
    return f"""
return new Promise(function (resolve) {{
  var selector = {_js(selector)};
  var variableName = {_js(variable)};
  var expected = {_js(expected)};
  var element = document.querySelector(selector);
  if (!element) {{
    resolve({{ success: false, message: 'Element not found: ' + selector }});
    return;
  }}
  var s = window.s;
  if (!s) {{
    resolve({{ success: false, message: 'Analytics object window.s not found' }});
    return;
  }}
  var tracked = false;
  var observed = null;
  var originalTl = s.tl;
  var originalT = s.t;
  var capture = function (original) {{
    return function () {{
      tracked = true;
      if (variableName) {{ observed = s[variableName]; }}
      if (typeof original === 'function') {{ return original.apply(s, arguments); }}
    }};
  }};
  s.tl = capture(originalTl);
  s.t = capture(originalT);
  element.addEventListener('click', function (event) {{ event.preventDefault(); }}, {{ once: true }});
  element.click();
  setTimeout(function () {{
    s.tl = originalTl;
    s.t = originalT;
    if (!tracked) {{
      resolve({{ success: false, message: 'No tracking call fired for ' + selector, expected: expected, actual: null }});
      return;
    }}
    var success = expected === null || expected === undefined || String(observed).indexOf(expected) !== -1;
    resolve({{
      success: success,
      message: success ? 'Click tracked' + (variableName ? ': ' + variableName + '=' + observed : '') : 'Unexpected value for ' + variableName,
      expected: expected,
      actual: observed
    }});
  }}, {CLICK_TRACKING_TIMEOUT_MS});
}});
""".strip()


def dom_element_script(config: Dict[str, Any]) -> str:
    selector = config.get('selector') or ''
    expected_text = config.get('expectedText')
    attribute = config.get('attribute')
    expected_value = config.get('expectedValue')
    return f"""
var selector = {_js(selector)};
var expectedText = {_js(expected_text)};
var attribute = {_js(attribute)};
var expectedValue = {_js(expected_value)};
var element = document.querySelector(selector);
if (!element) {{
  return {{ success: false, message: 'Element not found: ' + selector, expected: selector, actual: null }};
}}
if (expectedText !== null) {{
  var text = (element.textContent || '').trim();
  if (text.indexOf(expectedText) === -1) {{
    return {{ success: false, message: 'Element text mismatch', expected: expectedText, actual: text }};
  }}
}}
if (attribute !== null) {{
  var value = element.getAttribute(attribute);
  if (value === null || (expectedValue !== null && value !== expectedValue)) {{
    return {{ success: false, message: 'Attribute ' + attribute + ' mismatch', expected: expectedValue, actual: value }};
  }}
}}
return {{ success: true, message: 'Element found: ' + selector }};
""".strip()


def network_request_script(config: Dict[str, Any]) -> str:
    pattern = config.get('urlPattern') or ''
    expected_params = config.get('expectedParams') or {}
    return f"""
var pattern = {_js(pattern)};
var expectedParams = {_js(expected_params)};
var entries = (window.performance && performance.getEntriesByType) ? performance.getEntriesByType('resource') : [];
var matches = entries.filter(function (entry) {{ return entry.name.indexOf(pattern) !== -1; }});
if (matches.length === 0) {{
  return {{ success: false, message: 'No request matching ' + pattern, expected: pattern, actual: null }};
}}
var keys = Object.keys(expectedParams);
for (var i = 0; i < matches.length; i++) {{
  var params = new URL(matches[i].name, window.location.href).searchParams;
  var ok = keys.every(function (key) {{ return params.get(key) === String(expectedParams[key]); }});
  if (ok) {{
    return {{ success: true, message: 'Request found: ' + matches[i].name, expected: expectedParams, actual: matches[i].name }};
  }}
}}
return {{ success: false, message: 'Request parameters mismatch for ' + pattern, expected: expectedParams, actual: matches[0].name }};
""".strip()


def custom_js_script(config: Dict[str, Any]) -> str:
    script = config.get('script') or ''
    return f"""
try {{
  var outcome = (function () {{
{script}
  }})();
  var normalize = function (value) {{
    if (value && typeof value === 'object' && 'success' in value) {{ return value; }}
    return {{ success: !!value, message: value ? 'Custom validation passed' : 'Custom validation failed', actual: value }};
  }};
  if (outcome && typeof outcome.then === 'function') {{
    return outcome.then(normalize, function (error) {{ return {{ success: false, message: String(error) }}; }});
  }}
  return normalize(outcome);
}} catch (error) {{
  return {{ success: false, message: 'Custom validation threw: ' + error.message }};
}}
""".strip()


SCRIPT_GENERATORS: Dict[str, Callable[[Dict[str, Any]], str]] = {
    'page_view': page_view_script,
    'click_tracking': click_tracking_script,
    'dom_element': dom_element_script,
    'network_request': network_request_script,
    'custom_js': custom_js_script,
}


def is_supported_step_type(step_type: str) -> bool:
    return step_type in SCRIPT_GENERATORS


def generate_script(step: ValidationStep) -> str:
    """Generate the browser script for a validation step.

    Raises:
        UnsupportedStepTypeError: If the step type has no generator
    """
    generator = SCRIPT_GENERATORS.get(step.type)
    if generator is None:
        raise UnsupportedStepTypeError(step.type)
    return generator(step.config or {})
