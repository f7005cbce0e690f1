# /kaani/utils/lifecycle.py

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI

from kaani.config.settings import settings
from kaani.services.ai_service import AIService
from kaani.services.conversation_service import ConversationService
from kaani.services.conversation_store import MongoConversationStore, create_conversation_store
from kaani.utils.logging import setup_logging
from kaani.workflows.loader import FlowRegistry

# This file manages the application's lifespan: building the conversation
# engine and its collaborators on startup and closing connections on shutdown.

logger = logging.getLogger(__name__)


def build_conversation_service() -> ConversationService:
    store = create_conversation_store(settings)
    generator = AIService(settings)
    if not generator.is_configured:
        logger.warning("No AI API key configured; every turn will use the fallback reply.")
    flow_registry = FlowRegistry(settings.flows_dir, strict=settings.strict_flow_validation)
    return ConversationService(store, generator, flow_registry, settings)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup and shutdown events."""
    setup_logging()

    logger.info("Application starting up...")

    service = build_conversation_service()
    loaded = service.flows.preload(settings.default_flow_id)
    logger.info(f"Preloaded flow packages for: {', '.join(loaded) or 'none'}")
    if isinstance(service.store, MongoConversationStore):
        await service.store.create_indexes()
    app.state.conversation_service = service

    logger.info(f"Application startup complete. Deployment profile: {settings.deployment_profile}")

    yield  # Application is now running

    logger.info("Application shutting down...")
    service.flows.clear()
    service.store.close()
