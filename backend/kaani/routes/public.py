# /kaani/routes/public.py

from datetime import datetime, timezone

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import PlainTextResponse
from prometheus_client import generate_latest

from kaani.config.settings import settings
from kaani.models.api import APIResponse
from kaani.services.policy_service import resolve_deployment

# This file defines public-facing endpoints that do not require user
# authentication: the root endpoint, health probes and Prometheus metrics.

router = APIRouter()


@router.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": "KaAni Guided Conversation Engine",
        "version": "1.0.0",
        "status": "operational",
        "environment": settings.environment
    }


@router.get("/health", summary="Basic Health Check")
async def health_check():
    """Basic health check for load balancers."""
    return {"status": "healthy", "timestamp": datetime.now(timezone.utc)}


@router.get("/health/ready", summary="Readiness Probe")
async def readiness_check(request: Request):
    """Readiness probe: the engine is built and its store answers."""
    service = getattr(request.app.state, "conversation_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Service not ready: engine not initialized")
    if not await service.store.health_check():
        raise HTTPException(status_code=503, detail="Service not ready: conversation store unavailable")
    return {"status": "ready"}


@router.get("/health/detailed", response_model=APIResponse, tags=["Admin"])
async def comprehensive_health_check(request: Request):
    """Detailed status of the engine's collaborators."""
    health_status = {"status": "healthy", "services": {}}
    service = getattr(request.app.state, "conversation_service", None)

    if service is None:
        health_status["status"] = "degraded"
        health_status["services"]["engine"] = "not_initialized"
    else:
        store_ok = await service.store.health_check()
        health_status["services"]["store"] = "connected" if store_ok else "error"
        if not store_ok:
            health_status["status"] = "degraded"
        health_status["services"]["flows"] = "strict" if service.flows.strict else "lenient"

    health_status["services"]["gemini"] = "configured" if settings.gemini_api_key else "not_configured"
    health_status["services"]["openai"] = "configured" if settings.openai_api_key else "not_configured"
    health_status["deployment"] = resolve_deployment(settings.deployment_profile).value

    return APIResponse(
        success=True,
        message="Comprehensive health status retrieved.",
        data=health_status,
        version=settings.api_version
    )


@router.get("/metrics", tags=["Monitoring"])
async def metrics():
    """Prometheus metrics endpoint."""
    return PlainTextResponse(generate_latest(), media_type="text/plain")
