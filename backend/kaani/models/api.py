# /kaani/models/api.py

from datetime import datetime, timezone
from typing import Optional, Dict, Any
from pydantic import BaseModel, Field

from kaani.models.flow import Audience, Dialect

# Request/response envelopes for the HTTP layer. Engine models live in
# flow.py, conversation.py and artifacts.py.


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class APIResponse(BaseModel):
    success: bool
    message: str
    data: Optional[Dict[str, Any]] = None
    timestamp: datetime = Field(default_factory=_utcnow)
    version: str


class SendMessageRequest(BaseModel):
    message: str = Field(..., min_length=1, max_length=4000)
    audience: Audience = "farmer"
    dialect: Optional[Dialect] = None
    flow_id: Optional[str] = Field(None, pattern=r"^[A-Za-z0-9_-]+$")


class ArtifactQuery(BaseModel):
    audience: Audience = "loan_officer"
    dialect: Optional[Dialect] = None
    farmer_profile_id: Optional[str] = None
