# /kaani/artifacts/loan_suggestion.py

"""
Explainable loan amount suggestion.

The amount is computed in five stages: base amount, risk multiplier,
missing-information penalty, policy clamp, and rounding. Every stage that
changes the running amount appends a LoanAdjustment whose `impact` is the
exact change it made, so `base_amount + sum(impact)` reproduces the
pre-rounding amount. The base stage itself records impact 0; its amount is
`base_amount`.
"""

import math
from typing import List, Optional

from kaani.artifacts.benchmarks import format_php, get_crop_benchmark, round_to_increment
from kaani.config import strings
from kaani.models.artifacts import (
    LoanAdjustment, LoanSuggestionArtifact, LoanSuggestionData, LoanSuggestionInput, LoanSuggestionResult,
)
from kaani.models.policy import Policy

FALLBACK_COST_PER_HECTARE = 40000

HIGH_RISK_STEP = 0.15
HIGH_RISK_FLOOR = 0.70
MEDIUM_RISK_STEP = 0.08
MEDIUM_RISK_FLOOR = 0.80

CRITICAL_FIELD_MARKERS = ("crop", "hectare", "province")
MISSING_FIELD_PENALTY = 0.10
MISSING_FIELD_PENALTY_CAP = 0.25


def _fmt_hectares(hectares: float) -> str:
    return str(int(hectares)) if float(hectares).is_integer() else str(hectares)


def round_within_policy(amount: float, policy: Policy) -> float:
    """
    Half-up rounding to the policy increment, kept on an increment multiple
    inside [min, max] even when the bounds themselves are not multiples.
    """
    increment = policy.rounding_increment
    rounded = round_to_increment(amount, increment)
    lowest = math.ceil(policy.min_loan_amount / increment) * increment
    highest = math.floor(policy.max_loan_amount / increment) * increment
    if lowest > highest:
        return rounded
    return min(max(rounded, lowest), highest)


def compute_loan_suggestion(input: LoanSuggestionInput, policy: Policy) -> Optional[LoanSuggestionResult]:
    """
    Compute a suggested loan amount with an itemized explanation.

    Args:
        input: Crop, farm size, cost total, risk flags and missing fields
        policy: Deployment bounds and feature gate

    Returns:
        LoanSuggestionResult, or None when the policy disables suggestions
    """
    if not policy.enabled:
        return None

    adjustments: List[LoanAdjustment] = []
    disclaimers: List[str] = []
    confidence = "medium"

    # Stage 1: base amount
    if input.cost_total and input.cost_total.min > 0:
        base_amount = (input.cost_total.min + input.cost_total.max) / 2
        adjustments.append(LoanAdjustment(reason="Base calculated from cost breakdown", impact=0))
    elif input.hectares and input.crop:
        benchmark = get_crop_benchmark(input.crop)
        if benchmark:
            avg_cost_per_ha = (benchmark["cost_per_ha_min"] + benchmark["cost_per_ha_max"]) / 2
            base_amount = input.hectares * avg_cost_per_ha
            adjustments.append(LoanAdjustment(
                reason=f"Base calculated from {input.crop} benchmark ({_fmt_hectares(input.hectares)} ha)",
                impact=0,
            ))
            disclaimers.append(strings.DISCLAIMER_BENCHMARK_BASE)
        else:
            base_amount = input.hectares * FALLBACK_COST_PER_HECTARE
            adjustments.append(LoanAdjustment(
                reason=f"Base estimated for {_fmt_hectares(input.hectares)} ha (crop benchmark unavailable)",
                impact=0,
            ))
            disclaimers.append(strings.DISCLAIMER_ESTIMATED_BASE)
            confidence = "low"
    else:
        base_amount = policy.min_loan_amount
        adjustments.append(LoanAdjustment(
            reason="Minimum loan amount (insufficient data for calculation)",
            impact=0,
        ))
        disclaimers.append(strings.DISCLAIMER_MINIMUM_BASE)
        confidence = "low"

    amount = base_amount

    # Stage 2: risk multiplier (high-severity flags take precedence)
    high_count = sum(1 for flag in input.risk_flags if flag.severity == "high")
    medium_count = sum(1 for flag in input.risk_flags if flag.severity == "medium")

    if high_count > 0:
        multiplier = max(HIGH_RISK_FLOOR, 1 - high_count * HIGH_RISK_STEP)
        adjusted = amount * multiplier
        adjustments.append(LoanAdjustment(
            reason=f"Risk adjustment: {high_count} high-severity flag(s)",
            multiplier=multiplier,
            impact=adjusted - amount,
        ))
        amount = adjusted
        disclaimers.append(strings.DISCLAIMER_RISK)
        confidence = "low"
    elif medium_count > 0:
        multiplier = max(MEDIUM_RISK_FLOOR, 1 - medium_count * MEDIUM_RISK_STEP)
        adjusted = amount * multiplier
        adjustments.append(LoanAdjustment(
            reason=f"Risk adjustment: {medium_count} medium-severity flag(s)",
            multiplier=multiplier,
            impact=adjusted - amount,
        ))
        amount = adjusted

    # Stage 3: missing-information penalty
    critical_missing = [
        field for field in input.missing_fields
        if any(marker in field for marker in CRITICAL_FIELD_MARKERS)
    ]
    if critical_missing:
        penalty = min(MISSING_FIELD_PENALTY_CAP, len(critical_missing) * MISSING_FIELD_PENALTY)
        adjusted = amount - amount * penalty
        adjustments.append(LoanAdjustment(
            reason=f"Missing information penalty: {len(critical_missing)} critical field(s)",
            penalty=penalty,
            impact=adjusted - amount,
        ))
        amount = adjusted
        disclaimers.append(strings.DISCLAIMER_MISSING_INFO)
        confidence = "low"

    # Stage 4: policy clamp
    if amount < policy.min_loan_amount:
        adjustments.append(LoanAdjustment(
            reason=f"Adjusted to minimum loan amount (PHP {format_php(policy.min_loan_amount)})",
            impact=policy.min_loan_amount - amount,
        ))
        amount = policy.min_loan_amount
    elif amount > policy.max_loan_amount:
        adjustments.append(LoanAdjustment(
            reason=f"Adjusted to maximum loan amount (PHP {format_php(policy.max_loan_amount)})",
            impact=policy.max_loan_amount - amount,
        ))
        amount = policy.max_loan_amount
        disclaimers.append(strings.DISCLAIMER_MAX_CAP.format(amount=format_php(policy.max_loan_amount)))

    # Stage 5: rounding
    suggested_amount = round_within_policy(amount, policy)

    disclaimers.append(strings.DISCLAIMER_SUBJECT_TO_REVIEW)

    return LoanSuggestionResult(
        suggested_amount=suggested_amount,
        base_amount=base_amount,
        adjustments=adjustments,
        disclaimers=disclaimers,
        confidence=confidence,
    )


def build_loan_suggestion_artifact(input: LoanSuggestionInput, policy: Policy) -> Optional[LoanSuggestionArtifact]:
    """Wraps the suggestion in an artifact tagged with the policy's visibility."""
    result = compute_loan_suggestion(input, policy)
    if result is None:
        return None
    return LoanSuggestionArtifact(
        visibility=policy.visibility.value,
        data=LoanSuggestionData(**result.model_dump()),
    )
