# backend/tests/unit/test_loan_suggestion.py
import pytest

from kaani.artifacts.loan_suggestion import (
    build_loan_suggestion_artifact, compute_loan_suggestion, round_within_policy,
)
from kaani.config import strings
from kaani.models.artifacts import LoanSuggestionInput, MoneyRange, RiskFlag
from kaani.models.policy import FeatureVisibility, Policy
from kaani.services.policy_service import resolve_policy

DEV = resolve_policy("DEV")


def _flag(severity, code="TEST_RISK"):
    return RiskFlag(code=code, severity=severity, description="test flag")


def _cost(low, high):
    return MoneyRange(min=low, max=high)


def _assert_impacts_reconcile(result, policy):
    total = result.base_amount + sum(adj.impact for adj in result.adjustments)
    assert round_within_policy(total, policy) == result.suggested_amount


def test_base_is_midpoint_of_cost_total():
    result = compute_loan_suggestion(LoanSuggestionInput(cost_total=_cost(30000, 40000)), DEV)

    assert result.base_amount == 35000
    assert result.suggested_amount == 35000
    assert result.confidence == "medium"
    assert [adj.reason for adj in result.adjustments] == ["Base calculated from cost breakdown"]
    assert result.adjustments[0].impact == 0
    assert result.disclaimers == [strings.DISCLAIMER_SUBJECT_TO_REVIEW]


def test_single_high_risk_flag():
    result = compute_loan_suggestion(
        LoanSuggestionInput(cost_total=_cost(30000, 40000), risk_flags=[_flag("high")]), DEV
    )
    risk = result.adjustments[1]

    assert risk.reason == "Risk adjustment: 1 high-severity flag(s)"
    assert risk.multiplier == pytest.approx(0.85)
    assert risk.impact == pytest.approx(-5250)
    assert result.suggested_amount == 30000
    assert result.confidence == "low"
    assert strings.DISCLAIMER_RISK in result.disclaimers
    _assert_impacts_reconcile(result, DEV)


def test_high_risk_multiplier_has_a_floor_and_ignores_medium_flags():
    flags = [_flag("high")] * 3 + [_flag("medium")]
    result = compute_loan_suggestion(LoanSuggestionInput(cost_total=_cost(100000, 100000), risk_flags=flags), DEV)

    assert result.adjustments[1].reason == "Risk adjustment: 3 high-severity flag(s)"
    assert result.adjustments[1].multiplier == pytest.approx(0.70)
    assert result.suggested_amount == 70000


@pytest.mark.parametrize("medium_count, multiplier", [(1, 0.92), (2, 0.84), (3, 0.80)])
def test_medium_risk_multiplier(medium_count, multiplier):
    result = compute_loan_suggestion(
        LoanSuggestionInput(cost_total=_cost(100000, 100000), risk_flags=[_flag("medium")] * medium_count), DEV
    )
    assert result.adjustments[1].multiplier == pytest.approx(multiplier)
    assert result.confidence == "medium"
    assert strings.DISCLAIMER_RISK not in result.disclaimers


def test_low_severity_flags_do_not_adjust():
    result = compute_loan_suggestion(
        LoanSuggestionInput(cost_total=_cost(30000, 40000), risk_flags=[_flag("low")]), DEV
    )
    assert len(result.adjustments) == 1
    assert result.suggested_amount == 35000


def test_missing_information_penalty_is_capped():
    result = compute_loan_suggestion(
        LoanSuggestionInput(cost_total=_cost(30000, 40000), missing_fields=["crop", "hectares", "province"]), DEV
    )
    penalty = result.adjustments[1]

    assert penalty.reason == "Missing information penalty: 3 critical field(s)"
    assert penalty.penalty == pytest.approx(0.25)
    assert penalty.impact == pytest.approx(-8750)
    assert result.suggested_amount == 26500
    assert result.confidence == "low"
    assert strings.DISCLAIMER_MISSING_INFO in result.disclaimers
    _assert_impacts_reconcile(result, DEV)


def test_non_critical_missing_fields_carry_no_penalty():
    result = compute_loan_suggestion(
        LoanSuggestionInput(cost_total=_cost(30000, 40000), missing_fields=["harvestDate"]), DEV
    )
    assert len(result.adjustments) == 1


def test_rounds_to_increment():
    result = compute_loan_suggestion(LoanSuggestionInput(cost_total=_cost(83217, 83217)), DEV)
    assert result.base_amount == 83217
    assert result.suggested_amount == 83000


def test_disabled_policy_gives_no_suggestion():
    disabled = Policy(
        enabled=False,
        visibility=FeatureVisibility.OFF,
        min_loan_amount=1000,
        max_loan_amount=500000,
        rounding_increment=500,
    )
    data = LoanSuggestionInput(cost_total=_cost(30000, 40000))
    assert compute_loan_suggestion(data, disabled) is None
    assert build_loan_suggestion_artifact(data, disabled) is None


def test_max_clamp_under_card_mri():
    card_mri = resolve_policy("card_mri")
    result = compute_loan_suggestion(LoanSuggestionInput(cost_total=_cost(200000, 200000)), card_mri)
    clamp = result.adjustments[-1]

    assert clamp.reason == "Adjusted to maximum loan amount (PHP 150,000)"
    assert clamp.impact == -50000
    assert result.suggested_amount == 150000
    assert result.disclaimers == [
        "Loan amount capped at policy maximum of PHP 150,000.",
        strings.DISCLAIMER_SUBJECT_TO_REVIEW,
    ]
    _assert_impacts_reconcile(result, card_mri)


def test_min_clamp_under_landbank():
    landbank = resolve_policy("LANDBANK")
    result = compute_loan_suggestion(LoanSuggestionInput(cost_total=_cost(4000, 4000)), landbank)
    clamp = result.adjustments[-1]

    assert clamp.reason == "Adjusted to minimum loan amount (PHP 10,000)"
    assert clamp.impact == 6000
    assert result.suggested_amount == 10000
    _assert_impacts_reconcile(result, landbank)


def test_bounds_that_are_not_increment_multiples():
    policy = Policy(
        enabled=True,
        visibility=FeatureVisibility.UI,
        min_loan_amount=1200,
        max_loan_amount=9800,
        rounding_increment=500,
    )
    at_min = compute_loan_suggestion(LoanSuggestionInput(), policy)
    at_max = compute_loan_suggestion(LoanSuggestionInput(cost_total=_cost(20000, 20000)), policy)

    assert at_min.suggested_amount == 1500
    assert at_max.suggested_amount == 9500
    for result in (at_min, at_max):
        assert result.suggested_amount % 500 == 0
        assert 1200 <= result.suggested_amount <= 9800


def test_base_from_crop_benchmark():
    result = compute_loan_suggestion(LoanSuggestionInput(crop="palay", hectares=2), DEV)

    assert result.base_amount == 100000
    assert result.adjustments[0].reason == "Base calculated from palay benchmark (2 ha)"
    assert result.confidence == "medium"
    assert result.disclaimers == [strings.DISCLAIMER_BENCHMARK_BASE, strings.DISCLAIMER_SUBJECT_TO_REVIEW]


def test_base_estimated_for_crop_without_benchmark():
    result = compute_loan_suggestion(LoanSuggestionInput(crop="cacao", hectares=2), DEV)

    assert result.base_amount == 80000
    assert result.adjustments[0].reason == "Base estimated for 2 ha (crop benchmark unavailable)"
    assert result.confidence == "low"
    assert result.disclaimers[0] == strings.DISCLAIMER_ESTIMATED_BASE


def test_base_falls_back_to_policy_minimum():
    result = compute_loan_suggestion(LoanSuggestionInput(hectares=2), DEV)

    assert result.base_amount == DEV.min_loan_amount
    assert result.adjustments[0].reason == "Minimum loan amount (insufficient data for calculation)"
    assert result.confidence == "low"
    assert result.disclaimers[0] == strings.DISCLAIMER_MINIMUM_BASE


def test_zero_cost_total_uses_crop_benchmark():
    result = compute_loan_suggestion(LoanSuggestionInput(crop="corn", hectares=1, cost_total=_cost(0, 0)), DEV)
    assert result.base_amount == 40000


def test_subject_to_review_disclaimer_is_last():
    result = compute_loan_suggestion(
        LoanSuggestionInput(crop="cacao", hectares=2, risk_flags=[_flag("high")], missing_fields=["province"]), DEV
    )
    assert result.disclaimers[-1] == strings.DISCLAIMER_SUBJECT_TO_REVIEW
    _assert_impacts_reconcile(result, DEV)


def test_artifact_carries_policy_visibility():
    artifact = build_loan_suggestion_artifact(LoanSuggestionInput(crop="palay", hectares=1), resolve_policy("LANDBANK"))
    assert artifact.type == "loan_suggestion"
    assert artifact.visibility == "internal"
    assert artifact.data.currency == "PHP"
    assert artifact.data.suggested_amount == 50000
