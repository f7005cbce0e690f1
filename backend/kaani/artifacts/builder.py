# /kaani/artifacts/builder.py

import logging
from typing import Any, Dict, List, Optional

from kaani.artifacts.common import (
    CROP_KEYS, HECTARE_KEYS, MUNICIPALITY_KEYS, PROVINCE_KEYS, first_present,
    parse_hectares,
)
from kaani.artifacts.cost_breakdown import build_cost_breakdown
from kaani.artifacts.loan_summary import build_loan_summary
from kaani.artifacts.loan_suggestion import build_loan_suggestion_artifact
from kaani.artifacts.next_questions import build_next_questions
from kaani.artifacts.risk_flags import build_risk_flags
from kaani.models.artifacts import ArtifactBuildInput, ArtifactBundle, LoanSuggestionInput
from kaani.models.policy import Policy
from kaani.utils.metrics import artifact_builds_counter

logger = logging.getLogger(__name__)


def find_missing_fields(slots: Dict[str, Any]) -> List[str]:
    """The minimum set for underwriting: crop, a positive farm size, and a location."""
    missing = []
    if not first_present(slots, CROP_KEYS):
        missing.append("crop")

    if parse_hectares(first_present(slots, HECTARE_KEYS)) is None:
        missing.append("hectares")

    if not first_present(slots, PROVINCE_KEYS + MUNICIPALITY_KEYS):
        missing.append("province")
    return missing


def determine_readiness(missing: List[str]) -> str:
    if not missing:
        return "ready"
    if len(missing) >= 2:
        return "needs_info"
    return "draft"


def build_artifacts(input: ArtifactBuildInput, policy: Optional[Policy] = None) -> ArtifactBundle:
    """
    Derive the artifact bundle from the latest flow state and recent messages.

    The loan suggestion is appended only when a policy is supplied and it
    enables the feature; visibility filtering is left to the caller.
    """
    slots = input.slots
    missing = find_missing_fields(slots)
    readiness = determine_readiness(missing)

    loan_summary = build_loan_summary(slots, input.messages)
    cost_breakdown = build_cost_breakdown(loan_summary.data.crop, loan_summary.data.hectares)
    risk_flags = build_risk_flags(slots, loan_summary.data)
    next_questions = build_next_questions(missing, input.audience, input.dialect)

    artifacts = [loan_summary, cost_breakdown, risk_flags, next_questions]

    if policy is not None:
        suggestion = build_loan_suggestion_artifact(
            LoanSuggestionInput(
                crop=loan_summary.data.crop,
                hectares=loan_summary.data.hectares,
                cost_total=cost_breakdown.data.total,
                risk_flags=risk_flags.data.flags,
                missing_fields=missing,
            ),
            policy,
        )
        if suggestion is not None:
            artifacts.append(suggestion)

    artifact_builds_counter.labels(readiness=readiness).inc()
    logger.debug(f"Built {len(artifacts)} artifacts for conversation {input.conversation_id} ({readiness})")

    return ArtifactBundle(readiness=readiness, missing=missing, artifacts=artifacts)
