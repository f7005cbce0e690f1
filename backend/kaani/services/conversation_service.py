# /kaani/services/conversation_service.py

import asyncio
import logging
import weakref
from typing import Any, Dict, List, Optional

from kaani.artifacts.builder import build_artifacts
from kaani.config import persona, strings
from kaani.config.settings import Settings
from kaani.models.artifacts import ArtifactBuildInput, ArtifactBundle
from kaani.models.conversation import TurnResult
from kaani.models.flow import FlowDefinition, FlowState, KnownFact, Step
from kaani.services.ai_service import LanguageGenerator
from kaani.services.conversation_store import ConversationStore
from kaani.services.policy_service import resolve_deployment, resolve_policy
from kaani.utils.audit_logging import hash_farmer_id, log_event
from kaani.utils.metrics import generation_fallback_counter, loan_suggestions_counter, slot_extractions_counter, turns_counter
from kaani.workflows.engine import (
    build_what_we_know, compute_progress, get_next_step, get_suggested_chips, merge_slots,
)
from kaani.workflows.extractor import ExtractorRegistry, extract_slots
from kaani.workflows.loader import FlowRegistry
from kaani.workflows.summary import build_loan_officer_summary
from kaani.workflows.validator import validate_slot_value

logger = logging.getLogger(__name__)


class ConversationLocks:
    """
    One asyncio.Lock per conversation id. Locks are held weakly, so an id's
    lock disappears once no turn is using it.
    """

    def __init__(self):
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    def for_conversation(self, conversation_id: str) -> asyncio.Lock:
        lock = self._locks.get(conversation_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[conversation_id] = lock
        return lock


def build_system_prompt(
    audience: str,
    dialect: Optional[str],
    what_we_know: List[KnownFact],
    next_step: Optional[Step],
    guided: bool,
) -> str:
    """Persona and dialect instruction, plus flow context when the turn is guided."""
    dialect_instruction = strings.DIALECT_INSTRUCTIONS.get(
        dialect or strings.DEFAULT_DIALECT, strings.DIALECT_INSTRUCTIONS[strings.DEFAULT_DIALECT]
    )
    template = persona.SYSTEM_PROMPTS.get(audience, persona.FARMER_SYSTEM_PROMPT)
    sections = [template.format(dialect_instruction=dialect_instruction)]

    if guided:
        if what_we_know:
            facts = "\n".join(f"- {fact.label}: {fact.value}" for fact in what_we_know)
            sections.append(f"{strings.WHAT_WE_KNOW_HEADER}\n{facts}")
        if next_step is not None:
            sections.append(f"{strings.NEXT_QUESTION_HEADER}\n{next_step.prompt}")
        else:
            sections.append(strings.FLOW_COMPLETE_NOTE)

    return "\n\n".join(sections)


def build_fallback_reply(dialect: Optional[str], next_step: Optional[Step]) -> str:
    """Deterministic reply used when generation fails, repeating the next question."""
    key = dialect if dialect in strings.FALLBACK_REPLIES else strings.DEFAULT_DIALECT
    reply = strings.FALLBACK_REPLIES[key]
    if next_step is not None:
        reply += "\n\n" + strings.FALLBACK_NEXT_QUESTION[key].format(prompt=next_step.prompt)
    return reply


class ConversationService:
    """
    Runs guided conversation turns and derives artifacts on demand.

    This is the only part of the engine with side effects: it reads and
    writes the conversation store and calls the language generator. Turns for
    the same conversation are serialized; different conversations run
    concurrently.
    """

    def __init__(
        self,
        store: ConversationStore,
        generator: LanguageGenerator,
        flow_registry: FlowRegistry,
        settings: Settings,
        extractors: Optional[ExtractorRegistry] = None,
    ):
        self.store = store
        self.generator = generator
        self.flows = flow_registry
        self.settings = settings
        self.extractors = extractors
        self.locks = ConversationLocks()

    # ==================== Turn Handling ====================

    async def handle_message(
        self,
        conversation_id: str,
        text: str,
        audience: str,
        dialect: Optional[str] = None,
        flow_id: Optional[str] = None,
    ) -> TurnResult:
        """
        Process one user turn.

        The flow-state snapshot is persisted before the generator is called,
        so a generation failure never loses the slots gathered this turn.
        """
        flow = self.flows.load(audience, flow_id or self.settings.default_flow_id)

        async with self.locks.for_conversation(conversation_id):
            history = await self.store.get_recent_messages(conversation_id, self.settings.history_limit)
            user_message = await self.store.append_message(conversation_id, "user", text)
            history = (history + [user_message])[-self.settings.history_limit:]

            result = TurnResult(conversation_id=conversation_id, reply_text="")
            next_step: Optional[Step] = None

            if flow is not None:
                state, extracted, next_step = await self._advance_flow(conversation_id, flow, text, audience)
                result.mode = "guided"
                result.flow_id = flow.id
                result.extracted = extracted
                result.slots = state.slots
                result.progress = state.progress
                result.next_step_id = state.next_step_id
                result.suggestions = get_suggested_chips(next_step)
                result.what_we_know = state.what_we_know

            system_prompt = build_system_prompt(
                audience, dialect, result.what_we_know, next_step, guided=flow is not None
            )
            result.reply_text, result.used_fallback = await self._generate_reply(
                conversation_id, system_prompt, history, dialect, next_step
            )

            await self.store.append_message(
                conversation_id,
                "assistant",
                result.reply_text,
                metadata={"fallback": True} if result.used_fallback else None,
            )

            turns_counter.labels(audience=audience, mode=result.mode).inc()
            return result

    async def _advance_flow(self, conversation_id: str, flow: FlowDefinition, text: str, audience: str):
        previous = await self.store.get_latest_flow_state(conversation_id)
        existing_slots: Dict[str, Any] = {}
        if previous is not None and previous.flow_id in (None, flow.id):
            existing_slots = previous.slots

        extracted = self._extract_valid_slots(flow, text)
        slots = merge_slots(existing_slots, extracted)

        next_step = get_next_step(flow, slots, strict=self.settings.strict_flow_validation)
        state = FlowState(
            flow_id=flow.id,
            slots=slots,
            progress=compute_progress(flow, slots),
            next_step_id=next_step.id if next_step else None,
            what_we_know=build_what_we_know(flow, slots),
            loan_officer_summary=dict(build_loan_officer_summary(slots)) if audience == "loan_officer" else None,
        )
        await self.store.append_flow_state(conversation_id, state)
        return state, extracted, next_step

    def _extract_valid_slots(self, flow: FlowDefinition, text: str) -> Dict[str, Any]:
        extracted = extract_slots(flow, text, self.extractors)
        valid = {}
        for key, value in extracted.items():
            slot = flow.get_slot(key)
            check = validate_slot_value(slot, value)
            if check["is_valid"]:
                valid[key] = value
                slot_extractions_counter.labels(slot_type=slot.type, status="accepted").inc()
            else:
                slot_extractions_counter.labels(slot_type=slot.type, status="rejected").inc()
                logger.debug(f"Dropped extracted value for '{key}': {check['message']}")
        return valid

    async def _generate_reply(self, conversation_id, system_prompt, history, dialect, next_step):
        try:
            reply = await asyncio.wait_for(
                self.generator.generate(system_prompt, history),
                timeout=self.settings.generation_timeout_seconds,
            )
            if reply and reply.strip():
                return reply.strip(), False
            reason = "empty"
            logger.warning(f"Generator returned an empty reply for conversation {conversation_id}")
        except asyncio.TimeoutError:
            reason = "timeout"
            logger.warning(
                f"Generation timed out after {self.settings.generation_timeout_seconds}s "
                f"for conversation {conversation_id}"
            )
        except Exception as e:
            reason = "error"
            logger.error(f"Generation failed for conversation {conversation_id}: {e}")

        generation_fallback_counter.labels(reason=reason).inc()
        return build_fallback_reply(dialect, next_step), True

    # ==================== Derived Views ====================

    async def get_flow_state(self, conversation_id: str) -> Optional[FlowState]:
        return await self.store.get_latest_flow_state(conversation_id)

    def get_flow(self, audience: str, flow_id: Optional[str] = None) -> Optional[FlowDefinition]:
        return self.flows.load(audience, flow_id or self.settings.default_flow_id)

    async def get_artifacts(
        self,
        conversation_id: str,
        audience: str,
        dialect: Optional[str] = None,
        farmer_profile_id: Optional[str] = None,
        correlation_id: Optional[str] = None,
    ) -> ArtifactBundle:
        """
        Rebuild the artifact bundle from the latest snapshot and recent
        messages. The loan suggestion is included only when the deployment
        policy lets this audience see it.
        """
        flow_state = await self.store.get_latest_flow_state(conversation_id)
        messages = await self.store.get_recent_messages(conversation_id, self.settings.history_limit)

        deployment = resolve_deployment(self.settings.deployment_profile)
        policy = resolve_policy(deployment.value)
        visible = policy.is_visible_to(audience)

        bundle = build_artifacts(
            ArtifactBuildInput(
                conversation_id=conversation_id,
                audience=audience,
                dialect=dialect,
                farmer_profile_id=farmer_profile_id,
                flow_state=flow_state,
                messages=messages,
            ),
            policy if visible else None,
        )

        suggestion = bundle.get("loan_suggestion")
        if suggestion is not None:
            loan_suggestions_counter.labels(deployment=deployment.value, confidence=suggestion.data.confidence).inc()
            log_event(
                "loan_suggestion.computed",
                correlation_id=correlation_id,
                conversation_id=conversation_id,
                farmer=hash_farmer_id(farmer_profile_id, self.settings.log_hash_salt),
                deployment=deployment.value,
                audience=audience,
                readiness=bundle.readiness,
                suggested_amount=suggestion.data.suggested_amount,
                confidence=suggestion.data.confidence,
                adjustment_count=len(suggestion.data.adjustments),
            )
        elif policy.enabled and not visible:
            logger.debug(f"Loan suggestion hidden from audience '{audience}' under {deployment.value} policy")

        return bundle
