# /kaani/models/artifacts.py

from typing import Optional, List, Dict, Any, Literal, Union, Annotated
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from kaani.models.flow import FlowState
from kaani.models.conversation import Message

# Artifacts are views recomputed on every request; only a bundle may be
# persisted, and then only as an audit snapshot.

Confidence = Literal["low", "medium", "high"]
Severity = Literal["low", "medium", "high"]
Readiness = Literal["draft", "needs_info", "ready"]


class ArtifactModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MoneyRange(ArtifactModel):
    min: float = 0
    max: float = 0


class Location(ArtifactModel):
    province: Optional[str] = None
    municipality: Optional[str] = None
    barangay: Optional[str] = None


# ---------------- Loan summary ---------------- #

class LoanSummaryData(ArtifactModel):
    crop: Optional[str] = None
    hectares: Optional[float] = None
    location: Optional[Location] = None
    purpose: Optional[str] = None
    season: Optional[str] = None
    assumptions: List[str] = Field(default_factory=list)
    confidence: Confidence = "low"


class LoanSummaryArtifact(ArtifactModel):
    id: str = "loan_summary_v1"
    type: Literal["loan_summary"] = "loan_summary"
    title: str = "Loan Summary"
    version: Literal["v1"] = "v1"
    data: LoanSummaryData


# ---------------- Cost breakdown ---------------- #

class CostLineItem(ArtifactModel):
    category: str
    label: str
    min: float
    max: float


class CostBreakdownData(ArtifactModel):
    currency: Literal["PHP"] = "PHP"
    total: MoneyRange = Field(default_factory=MoneyRange)
    per_hectare: Optional[MoneyRange] = None
    line_items: List[CostLineItem] = Field(default_factory=list)
    assumptions: List[str] = Field(default_factory=list)
    confidence: Confidence = "low"


class CostBreakdownArtifact(ArtifactModel):
    id: str = "cost_breakdown_v1"
    type: Literal["cost_breakdown"] = "cost_breakdown"
    title: str = "Cost Breakdown"
    version: Literal["v1"] = "v1"
    data: CostBreakdownData


# ---------------- Risk flags ---------------- #

class RiskFlag(ArtifactModel):
    code: str
    severity: Severity
    description: str
    mitigation: Optional[str] = None


class RiskFlagsData(ArtifactModel):
    flags: List[RiskFlag] = Field(default_factory=list)


class RiskFlagsArtifact(ArtifactModel):
    id: str = "risk_flags_v1"
    type: Literal["risk_flags"] = "risk_flags"
    title: str = "Risk Flags"
    version: Literal["v1"] = "v1"
    data: RiskFlagsData


# ---------------- Next questions ---------------- #

class NextQuestionsData(ArtifactModel):
    missing: List[str] = Field(default_factory=list)
    questions: List[str] = Field(default_factory=list)


class NextQuestionsArtifact(ArtifactModel):
    id: str = "next_questions_v1"
    type: Literal["next_questions"] = "next_questions"
    title: str = "Next Questions"
    version: Literal["v1"] = "v1"
    data: NextQuestionsData


# ---------------- Loan suggestion ---------------- #

class LoanAdjustment(ArtifactModel):
    """One explainable step of the loan-suggestion computation."""
    reason: str
    multiplier: Optional[float] = None
    penalty: Optional[float] = None
    impact: float


class LoanSuggestionInput(ArtifactModel):
    crop: Optional[str] = None
    hectares: Optional[float] = None
    cost_total: Optional[MoneyRange] = None
    risk_flags: List[RiskFlag] = Field(default_factory=list)
    missing_fields: List[str] = Field(default_factory=list)


class LoanSuggestionResult(ArtifactModel):
    suggested_amount: float
    base_amount: float
    adjustments: List[LoanAdjustment] = Field(default_factory=list)
    disclaimers: List[str] = Field(default_factory=list)
    confidence: Confidence = "medium"


class LoanSuggestionData(LoanSuggestionResult):
    currency: Literal["PHP"] = "PHP"


class LoanSuggestionArtifact(ArtifactModel):
    id: str = "loan_suggestion_v1"
    type: Literal["loan_suggestion"] = "loan_suggestion"
    title: str = "Loan Amount Suggestion"
    version: Literal["v1"] = "v1"
    visibility: Literal["off", "internal", "ui"]
    data: LoanSuggestionData


Artifact = Annotated[
    Union[
        LoanSummaryArtifact,
        CostBreakdownArtifact,
        RiskFlagsArtifact,
        NextQuestionsArtifact,
        LoanSuggestionArtifact,
    ],
    Field(discriminator="type"),
]


class ArtifactBundle(ArtifactModel):
    readiness: Readiness
    missing: List[str] = Field(default_factory=list)
    artifacts: List[Artifact] = Field(default_factory=list)

    def get(self, artifact_type: str) -> Optional[Artifact]:
        return next((a for a in self.artifacts if a.type == artifact_type), None)


class ArtifactBuildInput(ArtifactModel):
    conversation_id: str
    audience: Literal["loan_officer", "farmer"]
    dialect: Optional[str] = None
    farmer_profile_id: Optional[str] = None
    flow_state: Optional[FlowState] = None
    messages: List[Message] = Field(default_factory=list)

    @property
    def slots(self) -> Dict[str, Any]:
        return self.flow_state.slots if self.flow_state else {}
