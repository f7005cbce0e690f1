# /kaani/artifacts/loan_summary.py

from typing import Any, Dict, List, Optional

from kaani.artifacts.common import (
    BARANGAY_KEYS, CROP_KEYS, HECTARE_KEYS, MUNICIPALITY_KEYS, PROVINCE_KEYS,
    first_present, parse_hectares,
)
from kaani.config.strings import CROP_KEYWORDS
from kaani.models.artifacts import LoanSummaryArtifact, LoanSummaryData, Location
from kaani.models.conversation import Message

RECENT_MESSAGE_WINDOW = 5
DEFAULT_PURPOSE = "working_capital"


def detect_crop_in_messages(messages: List[Message]) -> Optional[str]:
    """Scans the user turns among the last few messages for a known crop keyword."""
    recent_user = [m for m in messages[-RECENT_MESSAGE_WINDOW:] if m.role == "user"]
    for message in recent_user:
        content = message.content.lower()
        for keywords, crop in CROP_KEYWORDS:
            if any(keyword in content for keyword in keywords):
                return crop
    return None


def build_loan_summary(slots: Dict[str, Any], messages: List[Message]) -> LoanSummaryArtifact:
    crop = first_present(slots, CROP_KEYS)
    if not crop:
        crop = detect_crop_in_messages(messages)

    hectares = parse_hectares(first_present(slots, HECTARE_KEYS))

    province = first_present(slots, PROVINCE_KEYS)
    municipality = first_present(slots, MUNICIPALITY_KEYS)
    barangay = first_present(slots, BARANGAY_KEYS)
    location = None
    if province or municipality or barangay:
        location = Location(province=province, municipality=municipality, barangay=barangay)

    if crop and hectares and province:
        confidence = "high"
    elif crop and hectares:
        confidence = "medium"
    else:
        confidence = "low"

    assumptions = []
    if not crop:
        assumptions.append("Crop type not specified")
    if not hectares:
        assumptions.append("Farm size not specified")
    if not province:
        assumptions.append("Location (province) not specified")
    if hectares and not province:
        assumptions.append("Using general benchmark without location-specific adjustments")

    return LoanSummaryArtifact(
        data=LoanSummaryData(
            crop=str(crop) if crop else None,
            hectares=hectares,
            location=location,
            purpose=slots.get("purpose") or DEFAULT_PURPOSE,
            season=slots.get("season") or None,
            assumptions=assumptions or ["All key information provided"],
            confidence=confidence,
        )
    )
