# /kaani/models/policy.py

from enum import Enum
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class DeploymentProfile(str, Enum):
    """Partner deployments with their own loan-suggestion policy."""
    CARD_MRI = "CARD_MRI"
    LANDBANK = "LANDBANK"
    DEV = "DEV"


class FeatureVisibility(str, Enum):
    """
    Who may see a gated feature:
    - off: disabled for everyone
    - internal: loan officers only
    - ui: visible to end users as well
    """
    OFF = "off"
    INTERNAL = "internal"
    UI = "ui"


class Policy(BaseModel):
    """Deployment-specific bounds and visibility for loan suggestions."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    enabled: bool
    visibility: FeatureVisibility
    min_loan_amount: float
    max_loan_amount: float
    rounding_increment: float

    def is_visible_to(self, audience: str) -> bool:
        if not self.enabled or self.visibility == FeatureVisibility.OFF:
            return False
        if self.visibility == FeatureVisibility.INTERNAL:
            return audience == "loan_officer"
        return True
