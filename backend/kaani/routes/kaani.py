# /kaani/routes/kaani.py

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, HTTPException, Path, Request

from kaani.config.persona import STARTER_PROMPTS
from kaani.config.settings import settings
from kaani.models.api import APIResponse, ArtifactQuery, SendMessageRequest
from kaani.models.flow import Audience
from kaani.services.conversation_service import ConversationService
from kaani.utils.dependencies import correlation_id, get_conversation_service
from kaani.utils.rate_limiter import limiter

# Guided conversation endpoints: turns, flow state, artifacts, and the
# static flow/starter-prompt catalogues the client renders.

log = structlog.get_logger(__name__)

router = APIRouter(prefix="/kaani", tags=["KaAni"])

ConversationId = Annotated[str, Path(min_length=1, max_length=128, pattern=r"^[A-Za-z0-9_.:-]+$")]


@router.post("/conversations/{conversation_id}/messages", response_model=APIResponse)
@limiter.limit(f"{settings.rate_limit_per_minute}/minute")
async def send_message(
    request: Request,
    payload: SendMessageRequest,
    conversation_id: ConversationId,
    service: ConversationService = Depends(get_conversation_service),
    request_id: str = Depends(correlation_id),
):
    """Process one user message and return the reply with updated flow state."""
    result = await service.handle_message(
        conversation_id,
        payload.message,
        audience=payload.audience,
        dialect=payload.dialect,
        flow_id=payload.flow_id,
    )
    log.info(
        "kaani.turn_processed",
        correlation_id=request_id,
        conversation_id=conversation_id,
        mode=result.mode,
        used_fallback=result.used_fallback,
        extracted=sorted(result.extracted),
    )
    return APIResponse(
        success=True,
        message="Message processed",
        data=result.model_dump(by_alias=True),
        version=settings.api_version,
    )


@router.get("/conversations/{conversation_id}/state", response_model=APIResponse)
async def get_state(
    conversation_id: ConversationId,
    service: ConversationService = Depends(get_conversation_service),
):
    """Latest flow-state snapshot, or null data for a conversation with none."""
    state = await service.get_flow_state(conversation_id)
    return APIResponse(
        success=True,
        message="Flow state retrieved" if state else "No flow state for this conversation",
        data=state.model_dump(by_alias=True) if state else None,
        version=settings.api_version,
    )


@router.get("/conversations/{conversation_id}/artifacts", response_model=APIResponse)
@limiter.limit(f"{settings.rate_limit_per_minute}/minute")
async def get_artifacts(
    request: Request,
    conversation_id: ConversationId,
    query: ArtifactQuery = Depends(),
    service: ConversationService = Depends(get_conversation_service),
    request_id: str = Depends(correlation_id),
):
    """Artifact bundle derived from the conversation's latest state."""
    bundle = await service.get_artifacts(
        conversation_id,
        audience=query.audience,
        dialect=query.dialect,
        farmer_profile_id=query.farmer_profile_id,
        correlation_id=request_id,
    )
    return APIResponse(
        success=True,
        message="Artifacts built",
        data=bundle.model_dump(by_alias=True),
        version=settings.api_version,
    )


@router.get("/flows/{audience}/{flow_id}", response_model=APIResponse)
async def get_flow(
    audience: Audience,
    flow_id: str = Path(..., pattern=r"^[A-Za-z0-9_-]+$"),
    service: ConversationService = Depends(get_conversation_service),
):
    flow = service.get_flow(audience, flow_id)
    if flow is None:
        raise HTTPException(status_code=404, detail=f"Flow '{audience}.{flow_id}' not found")
    return APIResponse(
        success=True,
        message="Flow retrieved",
        data=flow.model_dump(by_alias=True, exclude_none=True),
        version=settings.api_version,
    )


@router.get("/starter-prompts/{audience}", response_model=APIResponse)
async def get_starter_prompts(audience: Audience):
    return APIResponse(
        success=True,
        message="Starter prompts retrieved",
        data={"audience": audience, "prompts": STARTER_PROMPTS[audience]},
        version=settings.api_version,
    )
