# /kaani/utils/dependencies.py

from fastapi import HTTPException, Request, status

from kaani.services.conversation_service import ConversationService
from kaani.utils.audit_logging import get_correlation_id


def get_conversation_service(request: Request) -> ConversationService:
    """The service built during app startup."""
    service = getattr(request.app.state, "conversation_service", None)
    if service is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Conversation engine not ready")
    return service


def correlation_id(request: Request) -> str:
    return get_correlation_id(request.headers)
