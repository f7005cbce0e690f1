# /kaani/models/conversation.py

from datetime import datetime, timezone
from typing import Optional, List, Dict, Any, Literal
from pydantic import BaseModel, Field, ConfigDict
from pydantic.alias_generators import to_camel

from kaani.models.flow import Progress, KnownFact

MessageRole = Literal["user", "assistant", "system"]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Message(BaseModel):
    """Represents a single message in a conversation."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    role: MessageRole = Field(..., description="Who authored the message")
    content: str = Field(..., description="Message text content")
    metadata: Dict[str, Any] = Field(default_factory=dict, description="Additional metadata")
    created_at: datetime = Field(default_factory=_utcnow, description="Creation timestamp")


class TurnResult(BaseModel):
    """Everything the caller needs to render one processed turn."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    conversation_id: str
    reply_text: str
    mode: Literal["guided", "free"] = "free"
    used_fallback: bool = False
    flow_id: Optional[str] = None
    extracted: Dict[str, Any] = Field(default_factory=dict)
    slots: Dict[str, Any] = Field(default_factory=dict)
    progress: Optional[Progress] = None
    next_step_id: Optional[str] = None
    suggestions: List[str] = Field(default_factory=list)
    what_we_know: List[KnownFact] = Field(default_factory=list)
