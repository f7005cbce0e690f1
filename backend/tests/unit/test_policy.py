# backend/tests/unit/test_policy.py
import pytest

from kaani.models.policy import DeploymentProfile, FeatureVisibility, Policy
from kaani.services.policy_service import POLICY_PROFILES, get_current_policy, resolve_deployment, resolve_policy


@pytest.mark.parametrize("deployment_id, expected", [
    ("CARD_MRI", DeploymentProfile.CARD_MRI),
    ("card_mri", DeploymentProfile.CARD_MRI),
    (" landbank ", DeploymentProfile.LANDBANK),
    ("DEV", DeploymentProfile.DEV),
    ("ACME_BANK", DeploymentProfile.DEV),
    ("", DeploymentProfile.DEV),
    (None, DeploymentProfile.DEV),
])
def test_resolve_deployment(deployment_id, expected):
    assert resolve_deployment(deployment_id) is expected


def test_profile_bounds():
    card_mri = resolve_policy("CARD_MRI")
    landbank = resolve_policy("LANDBANK")

    assert (card_mri.min_loan_amount, card_mri.max_loan_amount) == (5000, 150000)
    assert card_mri.visibility is FeatureVisibility.UI
    assert (landbank.min_loan_amount, landbank.max_loan_amount) == (10000, 200000)
    assert landbank.visibility is FeatureVisibility.INTERNAL


def test_every_profile_is_well_formed():
    for profile, policy in POLICY_PROFILES.items():
        assert policy.min_loan_amount <= policy.max_loan_amount, profile
        assert policy.rounding_increment > 0, profile


def test_current_policy_follows_settings(mocker):
    mocker.patch("kaani.services.policy_service.settings.deployment_profile", "LANDBANK")
    assert get_current_policy() == POLICY_PROFILES[DeploymentProfile.LANDBANK]


def _policy(enabled, visibility):
    return Policy(
        enabled=enabled,
        visibility=visibility,
        min_loan_amount=1000,
        max_loan_amount=2000,
        rounding_increment=500,
    )


@pytest.mark.parametrize("enabled, visibility, loan_officer, farmer", [
    (True, FeatureVisibility.UI, True, True),
    (True, FeatureVisibility.INTERNAL, True, False),
    (True, FeatureVisibility.OFF, False, False),
    (False, FeatureVisibility.UI, False, False),
])
def test_visibility(enabled, visibility, loan_officer, farmer):
    policy = _policy(enabled, visibility)
    assert policy.is_visible_to("loan_officer") is loan_officer
    assert policy.is_visible_to("farmer") is farmer


def test_policy_accepts_camel_case_keys():
    policy = Policy.model_validate({
        "enabled": True,
        "visibility": "internal",
        "minLoanAmount": 1000,
        "maxLoanAmount": 2000,
        "roundingIncrement": 100,
    })
    assert policy.visibility is FeatureVisibility.INTERNAL
    assert policy.rounding_increment == 100
