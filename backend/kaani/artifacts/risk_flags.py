# /kaani/artifacts/risk_flags.py

from typing import Any, Dict

from kaani.artifacts.common import IRRIGATION_KEYS, LABOR_KEYS, first_present
from kaani.models.artifacts import LoanSummaryData, RiskFlag, RiskFlagsArtifact, RiskFlagsData

LARGE_FARM_HECTARES = 2
SMALL_FARM_HECTARES = 0.5

# Each rule is independent; none suppresses another.


def build_risk_flags(slots: Dict[str, Any], summary: LoanSummaryData) -> RiskFlagsArtifact:
    flags = []

    irrigation = first_present(slots, IRRIGATION_KEYS)
    if irrigation:
        irrigation_text = str(irrigation).lower()
        if "rainfed" in irrigation_text or "rain-fed" in irrigation_text:
            flags.append(RiskFlag(
                code="WEATHER_RISK",
                severity="high",
                description="Rainfed irrigation - vulnerable to drought and weather extremes",
                mitigation="Consider irrigation backup plans or weather insurance",
            ))

    if summary.hectares and summary.hectares > LARGE_FARM_HECTARES and not first_present(slots, LABOR_KEYS):
        flags.append(RiskFlag(
            code="LABOR_RISK",
            severity="medium",
            description="Large farm size (>2 ha) without labor cost specification",
            mitigation="Clarify labor sourcing and costs",
        ))

    location = summary.location
    if not location or (not location.province and not location.municipality):
        flags.append(RiskFlag(
            code="LOCATION_RISK",
            severity="medium",
            description="Location not specified - cannot assess regional risks",
            mitigation="Collect province/municipality for regional risk assessment",
        ))

    if not summary.crop:
        flags.append(RiskFlag(
            code="AGRO_RISK",
            severity="medium",
            description="Primary crop not specified",
            mitigation="Collect crop type for appropriate agronomic assessment",
        ))

    if summary.hectares and summary.hectares < SMALL_FARM_HECTARES:
        flags.append(RiskFlag(
            code="SCALE_RISK",
            severity="low",
            description="Very small farm size (<0.5 ha) may have limited profitability",
            mitigation="Assess viability and consider crop diversification",
        ))

    return RiskFlagsArtifact(data=RiskFlagsData(flags=flags))
