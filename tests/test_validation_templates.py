"""Tests for template variable substitution and validation forms."""
from __future__ import annotations

import pytest

from observepoint_console.models import TemplateVariable, ValidationStep, ValidationTemplate
from observepoint_console.validation_templates import (
    DEFAULT_TEMPLATES,
    TemplateValidationError,
    add_step,
    apply_template,
    build_validation_from_form,
    get_default_templates,
    move_step,
    parse_steps,
    parse_template,
    remove_step,
    resolve_target_url,
    substitute_text,
    substitute_variables,
    validate_required_variables,
    validate_template,
)


@pytest.fixture
def template():
    return ValidationTemplate(
        id="tpl",
        name="Page Tracking",
        validations=[
            ValidationStep(id="a", name="Page Name", type="page_view", sequence=1,
                           config={"pageNameVariable": "eVar100", "expectedPageName": "{{pageName}}"}),
            ValidationStep(id="b", name="CTA", type="click_tracking", sequence=2,
                           config={"selector": "{{selector}}", "clickVariable": "eVar70"}),
        ],
        variables=[
            TemplateVariable(key="url", label="Page URL", required=True),
            TemplateVariable(key="pageName", label="Page Name", required=True),
            TemplateVariable(key="selector", label="CTA Selector", required=True),
            TemplateVariable(key="brand", label="Brand", default_value="cg"),
        ],
    )


# ============================================================================
# Substitution
# ============================================================================

def test_placeholders_are_replaced_everywhere_in_string_fields():
    config = {"expectedPageName": "{{brand}}|events {{slug}}", "count": 3, "enabled": True}

    result = substitute_variables(config, {"brand": "cg", "slug": "wagyu"})

    assert result == {"expectedPageName": "cg|events wagyu", "count": 3, "enabled": True}


def test_unknown_placeholder_is_left_verbatim():
    assert substitute_text("{{known}}-{{missing}}", {"known": "x"}) == "x-{{missing}}"


def test_substitution_without_placeholders_is_identity():
    config = {"selector": "#hero", "expectedText": "Welcome"}

    once = substitute_variables(config, {"selector": "ignored"})

    assert once == config
    assert substitute_variables(once, {"selector": "ignored"}) == once


def test_substitution_is_not_recursive():
    result = substitute_text("{{a}}", {"a": "{{b}}", "b": "deep"})

    assert result == "{{b}}"


def test_substitution_does_not_mutate_input():
    config = {"selector": "{{selector}}"}
    substitute_variables(config, {"selector": "#cta"})

    assert config == {"selector": "{{selector}}"}


def test_nested_string_values_are_substituted():
    config = {"expectedParams": {"pageName": "{{page}}"}, "list": ["{{page}}", 1]}

    result = substitute_variables(config, {"page": "home"})

    assert result == {"expectedParams": {"pageName": "home"}, "list": ["home", 1]}


# ============================================================================
# Required variables
# ============================================================================

def test_every_missing_required_variable_is_listed(template):
    errors = validate_required_variables(template, {"url": "https://x.test", "pageName": "  "})

    assert set(errors) == {"pageName", "selector"}
    assert errors["selector"] == "CTA Selector is required"


def test_apply_template_fails_before_substituting(template):
    with pytest.raises(TemplateValidationError) as exc_info:
        apply_template(template, {"pageName": "home"})

    assert set(exc_info.value.errors) == {"url", "selector"}


def test_apply_template_substitutes_steps(template):
    steps = apply_template(template, {"url": "https://x.test", "pageName": "home", "selector": "#cta"})

    assert steps[0].config["expectedPageName"] == "home"
    assert steps[1].config["selector"] == "#cta"
    assert [s.id for s in steps] == ["validation-0", "validation-1"]
    # template itself untouched
    assert template.validations[0].config["expectedPageName"] == "{{pageName}}"


# ============================================================================
# Target URL
# ============================================================================

def test_target_url_from_url_variable_when_declared(template):
    assert resolve_target_url(template, {"url": "https://var.test"}, "https://field.test") == "https://var.test"


def test_target_url_from_field_without_url_variable():
    bare = ValidationTemplate(id="t", name="t")

    assert resolve_target_url(bare, {"url": "https://var.test"}, "https://field.test") == "https://field.test"
    assert resolve_target_url(None, {}, " https://field.test ") == "https://field.test"


# ============================================================================
# Form submission
# ============================================================================

def test_form_without_template_requires_name_and_url():
    with pytest.raises(TemplateValidationError) as exc_info:
        build_validation_from_form({"name": " ", "url": ""})

    assert set(exc_info.value.errors) == {"name", "url"}


def test_form_rejects_unknown_frequency():
    with pytest.raises(TemplateValidationError) as exc_info:
        build_validation_from_form({"name": "x", "url": "https://x.test", "frequency": "hourly"})

    assert "frequency" in exc_info.value.errors


def test_form_with_template_reports_all_missing_fields(template):
    with pytest.raises(TemplateValidationError) as exc_info:
        build_validation_from_form({"name": ""}, template, {})

    assert set(exc_info.value.errors) == {"name", "url", "pageName", "selector"}


def test_form_with_template_builds_validation(template):
    validation = build_validation_from_form(
        {"name": "Wagyu event", "frequency": "daily"},
        template,
        {"url": "https://www.example.com/events", "pageName": "cg|events wagyu", "selector": "#book"},
    )

    assert validation.url == "https://www.example.com/events"
    assert validation.frequency == "daily"
    assert validation.template_id == "tpl"
    assert validation.validations[0].config["expectedPageName"] == "cg|events wagyu"
    assert validation.validations[1].config["selector"] == "#book"


def test_form_without_template_keeps_steps():
    validation = build_validation_from_form({
        "name": "Custom",
        "url": "https://x.test",
        "validations": [{"id": "1", "name": "Hero", "type": "dom_element", "sequence": 1,
                         "enabled": True, "config": {"selector": "#hero"}}],
    })

    assert validation.template_id is None
    assert validation.validations[0].config == {"selector": "#hero"}


def test_form_with_template_needs_no_url_field():
    no_url = ValidationTemplate(
        id="hero", name="Hero",
        validations=[ValidationStep(id="h", name="Hero", type="dom_element", sequence=1,
                                    config={"selector": "#hero"})],
    )

    validation = build_validation_from_form({"name": "Hero check"}, no_url, {})

    assert validation.url == ""
    assert validation.template_id == "hero"


def test_form_variables_must_be_an_object(template):
    with pytest.raises(TemplateValidationError) as exc_info:
        build_validation_from_form({"name": "x"}, template, ["https://x.test"])

    assert set(exc_info.value.errors) == {"variables"}


@pytest.mark.parametrize("steps, field", [
    ({"id": "1"}, "validations"),
    (["#hero"], "validations[0]"),
    ([{"id": "1", "type": "dom_element", "sequence": "abc"}], "validations[0]"),
    ([{"id": "1", "type": "dom_element", "config": ["#hero"]}], "validations[0]"),
])
def test_form_with_malformed_steps_is_rejected(steps, field):
    with pytest.raises(TemplateValidationError) as exc_info:
        build_validation_from_form({"name": "x", "url": "https://x.test", "validations": steps})

    assert set(exc_info.value.errors) == {field}


def test_parse_steps_accepts_numeric_strings():
    steps = parse_steps([{"id": "1", "name": "Hero", "type": "dom_element", "sequence": "2"}])

    assert steps[0].sequence == 2


# ============================================================================
# Template parsing
# ============================================================================

def test_parse_template_builds_template():
    template = parse_template({
        "id": "hero", "name": "Hero Check",
        "validations": [{"id": "h", "name": "Hero", "type": "dom_element", "config": {"selector": "{{selector}}"}}],
        "variables": [{"key": "selector", "type": "text", "required": True},
                      {"key": "brand", "type": "select", "options": [{"value": "cg", "label": "CG"}]}],
    })

    assert [v.key for v in template.variables] == ["selector", "brand"]
    assert template.variables[1].options == [{"value": "cg", "label": "CG"}]


def test_parse_template_rejects_unknown_variable_type():
    with pytest.raises(TemplateValidationError) as exc_info:
        parse_template({"id": "t", "name": "T", "variables": [{"key": "shade", "type": "color"}]})

    assert set(exc_info.value.errors) == {"variables.shade"}


def test_parse_template_rejects_unknown_step_type():
    with pytest.raises(TemplateValidationError) as exc_info:
        parse_template({"id": "t", "name": "T", "validations": [{"id": "v", "type": "visual_diff"}]})

    assert set(exc_info.value.errors) == {"validations.v"}


@pytest.mark.parametrize("variables", [
    {"key": "selector"},
    ["selector"],
    [{"label": "No key"}],
    [{"key": "brand", "options": "cg"}],
    [{"key": "brand", "options": ["cg"]}],
])
def test_parse_template_rejects_malformed_variables(variables):
    with pytest.raises(TemplateValidationError) as exc_info:
        parse_template({"id": "t", "name": "T", "variables": variables})

    assert set(exc_info.value.errors) == {"variables"}


def test_validate_template_lists_missing_id_and_name():
    assert set(validate_template(ValidationTemplate(id="", name=" "))) == {"id", "name"}


# ============================================================================
# Step editing
# ============================================================================

def _steps():
    return [ValidationStep(id=str(i), name=str(i), type="dom_element", sequence=i) for i in (1, 2, 3)]


def test_add_step_appends_with_next_sequence():
    steps = add_step(_steps(), "custom_js")

    assert len(steps) == 4
    assert steps[-1].type == "custom_js"
    assert steps[-1].sequence == 4


def test_add_step_rejects_unknown_type():
    with pytest.raises(TemplateValidationError):
        add_step(_steps(), "teleport")


def test_remove_step_keeps_sequence_dense():
    steps = remove_step(_steps(), "2")

    assert [(s.id, s.sequence) for s in steps] == [("1", 1), ("3", 2)]


def test_move_step_swaps_and_resequences():
    steps = move_step(_steps(), "3", "up")

    assert [(s.id, s.sequence) for s in steps] == [("1", 1), ("3", 2), ("2", 3)]


def test_move_step_out_of_range_is_ignored():
    steps = move_step(_steps(), "1", "up")

    assert [s.id for s in steps] == ["1", "2", "3"]


def test_default_templates_are_copies():
    templates = get_default_templates()
    templates[0].name = "changed"

    assert DEFAULT_TEMPLATES[0].name != "changed"
    assert {t.id for t in templates} == {"page_tracking", "cta_click_tracking", "element_presence"}
