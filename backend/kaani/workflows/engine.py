# /kaani/workflows/engine.py

"""
Pure flow execution engine.

This module provides deterministic conversation-flow state management that:
- Merges slot updates without ever erasing a filled value
- Computes required-slot progress
- Evaluates step conditions against the current slots
- Chooses the next step to present, including conditional branches

All functions are:
- Pure (no side effects)
- Deterministic (same input = same output)
- No database writes
- No AI calls
- No logging
"""

import math
from typing import Any, Dict, List, Optional

from kaani.models.flow import Condition, ConditionalNext, FlowDefinition, KnownFact, Progress, Step
from kaani.workflows.errors import DanglingStepReferenceError


def is_filled(value: Any) -> bool:
    """None and the empty string count as absent; False and 0 are real answers."""
    return value is not None and value != ""


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def merge_slots(existing: Dict[str, Any], incoming: Dict[str, Any]) -> Dict[str, Any]:
    """
    Merge new slot values into existing ones.

    A non-empty incoming value overwrites; an empty one (None or "") leaves the
    existing value untouched. Neither input is mutated.
    """
    merged = dict(existing)
    for key, value in incoming.items():
        if is_filled(value):
            merged[key] = value
    return merged


def compute_progress(flow: FlowDefinition, slots: Dict[str, Any]) -> Progress:
    """Required slots filled vs total required, in slot-declaration order."""
    required_keys = [slot.key for slot in flow.slots if slot.required]
    missing_required = [key for key in required_keys if not is_filled(slots.get(key))]

    required_total = len(required_keys)
    required_filled = required_total - len(missing_required)
    percent = round_half_up(required_filled / required_total * 100) if required_total > 0 else 100

    return Progress(
        required_total=required_total,
        required_filled=required_filled,
        percent=percent,
        missing_required=missing_required,
    )


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _strict_equals(left: Any, right: Any) -> bool:
    # True must not equal 1, and "1" must not equal 1
    if isinstance(left, bool) or isinstance(right, bool):
        return type(left) is type(right) and left == right
    if _is_number(left) and _is_number(right):
        return left == right
    return type(left) is type(right) and left == right


def check_condition(condition: Condition, slots: Dict[str, Any]) -> bool:
    """Check whether a single condition holds for the current slots."""
    slot_value = slots.get(condition.slot_key)
    op = condition.op

    if op == "equals":
        return _strict_equals(slot_value, condition.value)
    if op == "notEquals":
        return not _strict_equals(slot_value, condition.value)
    if op == "exists":
        return is_filled(slot_value)
    if op == "missing":
        return not is_filled(slot_value)
    if op == "gt":
        return _is_number(slot_value) and _is_number(condition.value) and slot_value > condition.value
    if op == "lt":
        return _is_number(slot_value) and _is_number(condition.value) and slot_value < condition.value
    if op == "in":
        return isinstance(condition.value, list) and any(_strict_equals(slot_value, item) for item in condition.value)
    return False


def resolve_transition(step: Step, slots: Dict[str, Any]) -> Optional[str]:
    """The step id that `step.next` points to for these slots, if any."""
    if step.next is None:
        return None
    if isinstance(step.next, str):
        return step.next
    if all(check_condition(condition, slots) for condition in step.next.when):
        return step.next.go
    return step.next.else_go


def _is_candidate(step: Step, slots: Dict[str, Any]) -> bool:
    if not all(is_filled(slots.get(key)) for key in step.slot_keys):
        return False
    if isinstance(step.next, ConditionalNext):
        return all(check_condition(condition, slots) for condition in step.next.when)
    return True


def get_next_step(
    flow: FlowDefinition,
    slots: Dict[str, Any],
    strict: bool = False,
) -> Optional[Step]:
    """
    Get the next step to present based on current slots and flow logic.

    Steps are scanned in declaration order; the first step whose slot
    prerequisites are filled and whose conditions pass is the candidate. If it
    declares a `next` transition, the target step is returned instead.

    Args:
        flow: The flow definition
        slots: Current slot values
        strict: Raise on a `next` that names an unknown step instead of
            falling back to the candidate itself

    Returns:
        The step to present, or None when the flow is complete

    Raises:
        DanglingStepReferenceError: Only in strict mode
    """
    for step in flow.steps:
        if not _is_candidate(step, slots):
            continue

        target_id = resolve_transition(step, slots)
        if target_id is not None:
            target = flow.get_step(target_id)
            if target is not None:
                return target
            if strict:
                raise DanglingStepReferenceError(step.id, target_id)

        return step

    return None


def get_suggested_chips(step: Optional[Step]) -> List[str]:
    if step is None or not step.suggestions:
        return []
    return list(step.suggestions)


def build_what_we_know(flow: FlowDefinition, slots: Dict[str, Any]) -> List[KnownFact]:
    """Label/value pairs for every filled slot, in declaration order."""
    return [
        KnownFact(label=slot.label, value=_display(slots[slot.key]))
        for slot in flow.slots
        if is_filled(slots.get(slot.key))
    ]


def _display(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)
