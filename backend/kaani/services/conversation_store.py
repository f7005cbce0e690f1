# /kaani/services/conversation_store.py

import logging
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Protocol

from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import ASCENDING, DESCENDING

from kaani.config.settings import settings, Settings
from kaani.models.conversation import Message
from kaani.models.flow import FlowState
from kaani.utils.metrics import database_operations_counter

logger = logging.getLogger(__name__)

MESSAGES_COLLECTION = "kaani_messages"
FLOW_STATES_COLLECTION = "kaani_flow_states"


class ConversationStore(Protocol):
    """Persistence the conversation engine depends on, keyed by conversation id."""

    async def append_message(
        self, conversation_id: str, role: str, content: str, metadata: Optional[Dict[str, Any]] = None
    ) -> Message:
        ...

    async def get_recent_messages(self, conversation_id: str, limit: int) -> List[Message]:
        """The last `limit` messages, oldest first."""
        ...

    async def get_latest_flow_state(self, conversation_id: str) -> Optional[FlowState]:
        ...

    async def append_flow_state(self, conversation_id: str, state: FlowState) -> None:
        ...


class InMemoryConversationStore:
    """Process-local store for development and tests; nothing survives a restart."""

    def __init__(self):
        self._messages: Dict[str, List[Message]] = defaultdict(list)
        self._flow_states: Dict[str, List[FlowState]] = defaultdict(list)

    async def append_message(
        self, conversation_id: str, role: str, content: str, metadata: Optional[Dict[str, Any]] = None
    ) -> Message:
        message = Message(role=role, content=content, metadata=metadata or {})
        self._messages[conversation_id].append(message)
        return message

    async def get_recent_messages(self, conversation_id: str, limit: int) -> List[Message]:
        if limit <= 0:
            return []
        return list(self._messages.get(conversation_id, [])[-limit:])

    async def get_latest_flow_state(self, conversation_id: str) -> Optional[FlowState]:
        states = self._flow_states.get(conversation_id)
        if not states:
            return None
        return states[-1].model_copy(deep=True)

    async def append_flow_state(self, conversation_id: str, state: FlowState) -> None:
        self._flow_states[conversation_id].append(state.model_copy(deep=True))

    async def health_check(self) -> bool:
        return True

    def close(self) -> None:
        pass


class MongoConversationStore:
    """
    MongoDB-backed store. Messages and flow-state snapshots are append-only
    documents; the latest snapshot is the newest by `created_at`.
    """

    def __init__(self, mongo_uri: str, config: Optional[Settings] = None):
        config = config or settings
        try:
            self.client = AsyncIOMotorClient(
                mongo_uri,
                maxPoolSize=config.max_pool_size,
                minPoolSize=config.min_pool_size,
                serverSelectionTimeoutMS=5000,
                connectTimeoutMS=10000,
            )
            self.db = self.client.get_default_database()
            logger.info("MongoDB client initialized successfully.")
        except Exception as e:
            logger.error(f"Error initializing MongoDB client: {e}")
            raise

    def _now_utc(self) -> datetime:
        return datetime.now(timezone.utc)

    async def create_indexes(self) -> None:
        """Create the indexes the engine's queries rely on."""
        indexes = [
            (MESSAGES_COLLECTION, [("conversation_id", ASCENDING), ("created_at", DESCENDING)], {}),
            (FLOW_STATES_COLLECTION, [("conversation_id", ASCENDING), ("created_at", DESCENDING)], {}),
        ]
        for collection, keys, options in indexes:
            try:
                await self.db[collection].create_index(keys, **options)
                logger.debug(f"Created index on {collection}: {keys}")
            except Exception as e:
                logger.error(f"Failed to create index on {collection} {keys}: {e}")

    async def health_check(self) -> bool:
        try:
            await self.client.admin.command('ping')
            return True
        except Exception as e:
            logger.error(f"MongoDB health check failed: {e}")
            return False

    async def append_message(
        self, conversation_id: str, role: str, content: str, metadata: Optional[Dict[str, Any]] = None
    ) -> Message:
        message = Message(role=role, content=content, metadata=metadata or {}, created_at=self._now_utc())
        document = {"conversation_id": conversation_id, **message.model_dump()}
        try:
            await self.db[MESSAGES_COLLECTION].insert_one(document)
            database_operations_counter.labels(operation="append_message", status="success").inc()
        except Exception:
            database_operations_counter.labels(operation="append_message", status="failed").inc()
            raise
        return message

    async def get_recent_messages(self, conversation_id: str, limit: int) -> List[Message]:
        if limit <= 0:
            return []
        try:
            cursor = (
                self.db[MESSAGES_COLLECTION]
                .find({"conversation_id": conversation_id}, {"_id": 0, "conversation_id": 0})
                .sort("created_at", DESCENDING)
                .limit(limit)
            )
            documents = await cursor.to_list(length=limit)
            database_operations_counter.labels(operation="get_recent_messages", status="success").inc()
        except Exception:
            database_operations_counter.labels(operation="get_recent_messages", status="failed").inc()
            raise
        return [Message.model_validate(doc) for doc in reversed(documents)]

    async def get_latest_flow_state(self, conversation_id: str) -> Optional[FlowState]:
        try:
            document = await self.db[FLOW_STATES_COLLECTION].find_one(
                {"conversation_id": conversation_id},
                {"_id": 0, "state": 1},
                sort=[("created_at", DESCENDING)],
            )
            database_operations_counter.labels(operation="get_latest_flow_state", status="success").inc()
        except Exception:
            database_operations_counter.labels(operation="get_latest_flow_state", status="failed").inc()
            raise
        if not document:
            return None
        return FlowState.model_validate(document["state"])

    async def append_flow_state(self, conversation_id: str, state: FlowState) -> None:
        document = {
            "conversation_id": conversation_id,
            "state": state.model_dump(by_alias=True),
            "created_at": self._now_utc(),
        }
        try:
            await self.db[FLOW_STATES_COLLECTION].insert_one(document)
            database_operations_counter.labels(operation="append_flow_state", status="success").inc()
        except Exception:
            database_operations_counter.labels(operation="append_flow_state", status="failed").inc()
            raise

    def close(self) -> None:
        self.client.close()


def create_conversation_store(config: Optional[Settings] = None):
    """Mongo when MONGO_URI is configured, otherwise process memory."""
    config = config or settings
    if config.mongo_uri:
        return MongoConversationStore(config.mongo_uri, config)
    logger.warning("MONGO_URI not set; conversations are kept in process memory only.")
    return InMemoryConversationStore()
