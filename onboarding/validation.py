# onboarding/validation.py
from dataclasses import dataclass, field
from typing import Dict

from .steps import get_flow

NON_FIELD_ERRORS = '__all__'


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    errors: Dict[str, str] = field(default_factory=dict)


def validate_step(flow, step_index, fields):
    """Checks one step of an explicit RoleFlow against the accumulated fields."""
    spec = flow.step(step_index)
    if spec is None:
        return ValidationResult(False, {NON_FIELD_ERRORS: f"Step {step_index} does not exist for {flow.role}."})

    errors = {}
    for name, rule in spec.rules.items():
        message = rule.check(fields.get(name))
        if message:
            errors[name] = message

    for check in spec.checks:
        problem = check(fields)
        if problem and problem[0] not in errors:
            errors[problem[0]] = problem[1]

    return ValidationResult(not errors, errors)


def validate(role, step_index, fields, flows=None):
    """
    Validation gate for a single onboarding step.

    Takes the whole accumulated field mapping, not just the current step's
    fields, so cross-field rules can look back at earlier steps. Never raises:
    problems come back in `errors`, which is empty exactly when `valid` is True.
    """
    flow = get_flow(role, flows)
    if flow is None:
        return ValidationResult(False, {NON_FIELD_ERRORS: f"Unknown role: {role}"})
    return validate_step(flow, step_index, fields or {})
