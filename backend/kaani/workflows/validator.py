# /kaani/workflows/validator.py

"""
Pure validation functions for flow definitions and slot values.

This module provides deterministic, side-effect-free checks that:
- Verify a flow's referential integrity (slot keys, step ids, transitions)
- Verify an extracted slot value against the slot's validation rules

All functions are:
- Pure (no side effects)
- Deterministic (same input = same output)
- Unit-testable (no external dependencies)
- No database access
- No AI calls
- No logging
- No state mutation
"""

import re
from typing import Any, List, Optional, TypedDict

from kaani.models.flow import ConditionalNext, FlowDefinition, Slot


class ValidationResult(TypedDict):
    """Result of a validation check."""
    is_valid: bool
    error_code: Optional[str]
    message: Optional[str]


class FlowValidationResult(TypedDict):
    """Result of validating a whole flow definition."""
    is_valid: bool
    problems: List[str]


_VALID: ValidationResult = {"is_valid": True, "error_code": None, "message": None}


def _duplicates(values: List[str]) -> List[str]:
    seen, dupes = set(), []
    for value in values:
        if value in seen and value not in dupes:
            dupes.append(value)
        seen.add(value)
    return dupes


def validate_flow_definition(flow: FlowDefinition) -> FlowValidationResult:
    """
    Check referential integrity of a schema-valid flow.

    Reports duplicate slot keys and step ids, steps referencing unknown
    slots, conditions referencing unknown slots, and transitions pointing to
    unknown steps.

    Args:
        flow: A flow definition that already passed schema validation

    Returns:
        FlowValidationResult listing every problem found (empty when valid)
    """
    problems: List[str] = []
    slot_keys = [slot.key for slot in flow.slots]
    step_ids = [step.id for step in flow.steps]

    for key in _duplicates(slot_keys):
        problems.append(f"Duplicate slot key '{key}'")
    for step_id in _duplicates(step_ids):
        problems.append(f"Duplicate step id '{step_id}'")

    known_slots, known_steps = set(slot_keys), set(step_ids)

    for slot in flow.slots:
        if slot.type == "select" and not slot.options:
            problems.append(f"Select slot '{slot.key}' has no options")

    for step in flow.steps:
        for key in step.slot_keys:
            if key not in known_slots:
                problems.append(f"Step '{step.id}' references unknown slot '{key}'")

        if isinstance(step.next, str):
            targets = [step.next]
        elif isinstance(step.next, ConditionalNext):
            targets = [step.next.go] + ([step.next.else_go] if step.next.else_go else [])
            for condition in step.next.when:
                if condition.slot_key not in known_slots:
                    problems.append(f"Step '{step.id}' has a condition on unknown slot '{condition.slot_key}'")
        else:
            targets = []

        for target in targets:
            if target not in known_steps:
                problems.append(f"Step '{step.id}' transitions to unknown step '{target}'")

    return {"is_valid": not problems, "problems": problems}


def validate_slot_value(slot: Slot, value: Any) -> ValidationResult:
    """
    Validate a candidate value against the slot's min/max/pattern rules.

    Patterns must match the whole value and ignore case, since text captures
    arrive lowercased from the extractor.

    Args:
        slot: The slot schema entry
        value: The extracted value

    Returns:
        ValidationResult with is_valid=True when the slot has no rules or all pass
    """
    rules = slot.validation
    if rules is None:
        return _VALID

    is_number = isinstance(value, (int, float)) and not isinstance(value, bool)

    if rules.min is not None and is_number and value < rules.min:
        return {
            "is_valid": False,
            "error_code": "BELOW_MINIMUM",
            "message": f"Value {value} for '{slot.key}' is below the minimum of {rules.min}"
        }

    if rules.max is not None and is_number and value > rules.max:
        return {
            "is_valid": False,
            "error_code": "ABOVE_MAXIMUM",
            "message": f"Value {value} for '{slot.key}' is above the maximum of {rules.max}"
        }

    if rules.pattern and isinstance(value, str) and not re.fullmatch(rules.pattern, value, re.IGNORECASE):
        return {
            "is_valid": False,
            "error_code": "PATTERN_MISMATCH",
            "message": f"Value for '{slot.key}' does not match pattern {rules.pattern}"
        }

    return _VALID
