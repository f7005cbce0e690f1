# /kaani/services/policy_service.py

import logging
from typing import Optional

from kaani.config.settings import settings
from kaani.models.policy import DeploymentProfile, FeatureVisibility, Policy

logger = logging.getLogger(__name__)

# Loan-suggestion policy per partner deployment. Amounts are PHP.
POLICY_PROFILES = {
    DeploymentProfile.CARD_MRI: Policy(
        enabled=True,
        visibility=FeatureVisibility.UI,
        min_loan_amount=5000,
        max_loan_amount=150000,
        rounding_increment=500,
    ),
    DeploymentProfile.LANDBANK: Policy(
        enabled=True,
        visibility=FeatureVisibility.INTERNAL,
        min_loan_amount=10000,
        max_loan_amount=200000,
        rounding_increment=500,
    ),
    DeploymentProfile.DEV: Policy(
        enabled=True,
        visibility=FeatureVisibility.UI,
        min_loan_amount=1000,
        max_loan_amount=500000,
        rounding_increment=500,
    ),
}


def resolve_deployment(deployment_id: Optional[str]) -> DeploymentProfile:
    """Case-insensitive lookup; unknown or empty ids fall back to DEV."""
    if deployment_id:
        try:
            return DeploymentProfile(deployment_id.strip().upper())
        except ValueError:
            logger.debug(f"Unknown deployment profile '{deployment_id}', using DEV policy")
    return DeploymentProfile.DEV


def resolve_policy(deployment_id: Optional[str]) -> Policy:
    return POLICY_PROFILES[resolve_deployment(deployment_id)]


def get_current_policy() -> Policy:
    """Policy for the deployment this process is configured as."""
    return resolve_policy(settings.deployment_profile)
