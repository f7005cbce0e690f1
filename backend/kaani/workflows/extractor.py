# /kaani/workflows/extractor.py

"""
Deterministic slot extraction from free-text messages.

Each slot type is served by a TextExtractor strategy. Extraction is a
best-effort heuristic: a miss returns None and is never an error. All
functions here are pure and hold no state between calls.
"""

import re
from typing import Any, Dict, Optional, Protocol

from kaani.config import strings
from kaani.models.flow import FlowDefinition, Slot

NUMBER_RE = re.compile(r"(\d+(?:\.\d+)?)")
ISO_DATE_RE = re.compile(r"\b(\d{4}-\d{2}-\d{2})\b")
WHITESPACE_RE = re.compile(r"\s+")
MAX_TEXT_VALUE_LENGTH = 200


def normalize_text(text: str) -> str:
    """Trim, lowercase, and collapse whitespace."""
    return WHITESPACE_RE.sub(" ", text.strip().lower())


def _keyword_pattern(concept: str) -> re.Pattern:
    words = "|".join(re.escape(word) for word in strings.keywords_for(concept))
    return re.compile(rf"\b({words})\b")


class TextExtractor(Protocol):
    def extract(self, slot: Slot, normalized: str) -> Optional[Any]:
        ...


class NumberExtractor:
    """Captures the first integer or decimal token."""

    def extract(self, slot: Slot, normalized: str) -> Optional[float]:
        match = NUMBER_RE.search(normalized)
        if match:
            return float(match.group(1))
        return None


class SelectExtractor:
    """First option whose label or value appears in the message wins."""

    def extract(self, slot: Slot, normalized: str) -> Optional[str]:
        for option in slot.options or []:
            if normalize_text(option.label) in normalized or normalize_text(option.value) in normalized:
                return option.value
        return None


class LabelledTextExtractor:
    """Takes the text following the slot's label, when the label is mentioned."""

    def extract(self, slot: Slot, normalized: str) -> Optional[str]:
        label = normalize_text(slot.label)
        position = normalized.find(label)
        if position == -1:
            return None
        after_label = normalized[position + len(label):].lstrip(" :=-,").strip()
        if 0 < len(after_label) < MAX_TEXT_VALUE_LENGTH:
            return after_label
        return None


class BooleanExtractor:
    """Matches affirmative keywords first, then negative ones, in every dialect."""

    def __init__(self):
        self.yes_pattern = _keyword_pattern("affirmative")
        self.no_pattern = _keyword_pattern("negative")

    def extract(self, slot: Slot, normalized: str) -> Optional[bool]:
        if self.yes_pattern.search(normalized):
            return True
        if self.no_pattern.search(normalized):
            return False
        return None


class IsoDateExtractor:
    def extract(self, slot: Slot, normalized: str) -> Optional[str]:
        match = ISO_DATE_RE.search(normalized)
        return match.group(1) if match else None


class ExtractorRegistry:
    """Maps slot types to extraction strategies; override one to swap it out."""

    def __init__(self, overrides: Optional[Dict[str, TextExtractor]] = None):
        self._extractors: Dict[str, TextExtractor] = {
            "number": NumberExtractor(),
            "select": SelectExtractor(),
            "text": LabelledTextExtractor(),
            "boolean": BooleanExtractor(),
            "date": IsoDateExtractor(),
        }
        if overrides:
            self._extractors.update(overrides)

    def get(self, slot_type: str) -> Optional[TextExtractor]:
        return self._extractors.get(slot_type)


default_registry = ExtractorRegistry()


def extract_slots(
    flow: FlowDefinition,
    message: str,
    registry: Optional[ExtractorRegistry] = None,
) -> Dict[str, Any]:
    """
    Extract slot values from a user message using per-type heuristics.

    Args:
        flow: The flow definition whose slots should be filled
        message: Raw user text
        registry: Extraction strategies (defaults to the built-in heuristics)

    Returns:
        Partial mapping of slot key to extracted value; absent keys mean no match
    """
    registry = registry or default_registry
    normalized = normalize_text(message)
    extracted: Dict[str, Any] = {}

    for slot in flow.slots:
        if slot.key in extracted:
            continue
        extractor = registry.get(slot.type)
        if extractor is None:
            continue
        value = extractor.extract(slot, normalized)
        if value is not None:
            extracted[slot.key] = value

    return extracted
