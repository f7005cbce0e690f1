# /kaani/models/flow.py

import re
from typing import Optional, List, Dict, Any, Literal, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

# Flow packages are authored as camelCase JSON. These models accept either
# the camelCase keys or the snake_case attribute names, and are frozen once
# loaded so a cached definition can be shared safely across conversations.

Audience = Literal["loan_officer", "farmer"]
Dialect = Literal["tagalog", "cebuano", "english"]
SlotType = Literal["select", "text", "number", "date", "boolean"]
ConditionOp = Literal["equals", "notEquals", "exists", "missing", "gt", "lt", "in"]


class FlowModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class SlotOption(FlowModel):
    value: str
    label: str


class SlotValidation(FlowModel):
    min: Optional[float] = None
    max: Optional[float] = None
    pattern: Optional[str] = None

    @field_validator("pattern")
    @classmethod
    def pattern_must_compile(cls, v: Optional[str]) -> Optional[str]:
        if v is not None:
            try:
                re.compile(v)
            except re.error as e:
                raise ValueError(f"invalid regular expression: {e}")
        return v


class Slot(FlowModel):
    """A named, typed field the conversation is trying to fill."""
    key: str
    label: str
    type: SlotType
    required: bool
    options: Optional[List[SlotOption]] = None
    validation: Optional[SlotValidation] = None
    save_to_profile: Optional[bool] = None
    profile_field: Optional[str] = None


class Condition(FlowModel):
    slot_key: str
    op: ConditionOp
    value: Optional[Union[bool, int, float, str, List[Union[bool, int, float, str]]]] = None


class ConditionalNext(FlowModel):
    when: List[Condition]
    go: str
    else_go: Optional[str] = None


class Step(FlowModel):
    id: str
    title: str
    prompt: str
    slot_keys: List[str]
    suggestions: Optional[List[str]] = None
    next: Optional[Union[str, ConditionalNext]] = None


class FlowIntro(FlowModel):
    title: str
    description: str


class ReportSection(FlowModel):
    title: str
    body: str


class ReportTemplate(FlowModel):
    format: Literal["markdown"]
    sections: List[ReportSection]


class FlowDefinition(FlowModel):
    """Validated, immutable flow package identified by (audience, id)."""
    id: str
    version: str
    audience: Audience
    dialects_supported: List[str]
    intro: FlowIntro
    slots: List[Slot]
    steps: List[Step]
    report_template: Optional[ReportTemplate] = None

    def get_slot(self, key: str) -> Optional[Slot]:
        return next((slot for slot in self.slots if slot.key == key), None)

    def get_step(self, step_id: str) -> Optional[Step]:
        return next((step for step in self.steps if step.id == step_id), None)


class Progress(BaseModel):
    """Required-slot completion, recomputed from the flow and slots every turn."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    required_total: int
    required_filled: int
    percent: int
    missing_required: List[str] = Field(default_factory=list)


class KnownFact(BaseModel):
    label: str
    value: str


class FlowState(BaseModel):
    """
    Snapshot of a guided conversation persisted after every turn.

    Stored opaquely by the conversation store, keyed by conversation id.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    flow_id: Optional[str] = None
    slots: Dict[str, Any] = Field(default_factory=dict)
    progress: Optional[Progress] = None
    next_step_id: Optional[str] = None
    what_we_know: List[KnownFact] = Field(default_factory=list)
    loan_officer_summary: Optional[Dict[str, Any]] = None
