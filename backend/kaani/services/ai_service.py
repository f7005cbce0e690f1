# /kaani/services/ai_service.py

import logging
import asyncio
from typing import List, Optional, Protocol

from google import genai
from google.genai import types
from google.genai.types import HttpOptions
from openai import AsyncOpenAI

from kaani.config.settings import settings, Settings
from kaani.models.conversation import Message
from kaani.utils.circuit_breaker import CircuitBreaker
from kaani.utils.metrics import ai_requests_counter
from kaani.workflows.errors import GenerationError


# This service encapsulates all interactions with external AI models
# (Google Gemini first, OpenAI as fallback). The conversation engine only
# hands it prompt text and history; it never makes structural decisions.

logger = logging.getLogger(__name__)


class LanguageGenerator(Protocol):
    async def generate(self, system_prompt: str, history: List[Message]) -> str:
        ...


class AIService:
    def __init__(self, config: Optional[Settings] = None):
        config = config or settings
        self.gemini_model = config.gemini_model
        self.openai_model = config.openai_model

        if config.gemini_api_key:
            http_options = HttpOptions(api_version='v1')
            self.gemini_client = genai.Client(api_key=config.gemini_api_key, http_options=http_options)
            logger.info(f"Using Gemini model: {self.gemini_model}")
        else:
            self.gemini_client = None

        if config.openai_api_key:
            self.openai_client = AsyncOpenAI(api_key=config.openai_api_key)
        else:
            self.openai_client = None

        self.gemini_breaker = CircuitBreaker("gemini")
        self.openai_breaker = CircuitBreaker("openai")

    @property
    def is_configured(self) -> bool:
        return self.gemini_client is not None or self.openai_client is not None

    async def generate(self, system_prompt: str, history: List[Message]) -> str:
        """
        Generate the assistant reply, trying Gemini first and falling back to
        OpenAI. Raises GenerationError when no backend produced text.
        """
        if self.gemini_client:
            try:
                response = await self.gemini_breaker.call(self._generate_gemini_response, system_prompt, history)
                if response:
                    ai_requests_counter.labels(model="gemini", status="success").inc()
                    return response
                ai_requests_counter.labels(model="gemini", status="empty").inc()
            except Exception as e:
                logger.error(f"Gemini API call failed: {e}")
                ai_requests_counter.labels(model="gemini", status="error").inc()

        if self.openai_client:
            try:
                response = await self.openai_breaker.call(self._generate_openai_response, system_prompt, history)
                if response:
                    ai_requests_counter.labels(model="openai", status="success").inc()
                    return response
                ai_requests_counter.labels(model="openai", status="empty").inc()
            except Exception as e:
                logger.error(f"OpenAI fallback failed: {e}")
                ai_requests_counter.labels(model="openai", status="error").inc()

        raise GenerationError("No language backend produced a reply")

    async def _generate_gemini_response(self, system_prompt: str, history: List[Message]) -> str:
        contents = [
            types.Content(
                role="model" if message.role == "assistant" else "user",
                parts=[types.Part(text=message.content)],
            )
            for message in history
            if message.role in ("user", "assistant")
        ]

        response = await asyncio.to_thread(
            self.gemini_client.models.generate_content,
            model=self.gemini_model,
            contents=contents,
            config=types.GenerateContentConfig(
                system_instruction=system_prompt,
                temperature=0.7,
            ),
        )
        return (response.text or "").strip()

    async def _generate_openai_response(self, system_prompt: str, history: List[Message]) -> str:
        messages = [{"role": "system", "content": system_prompt}]
        for message in history:
            if message.role in ("user", "assistant"):
                messages.append({"role": message.role, "content": message.content})

        response = await self.openai_client.chat.completions.create(
            model=self.openai_model, messages=messages, temperature=0.7
        )
        return (response.choices[0].message.content or "").strip()
