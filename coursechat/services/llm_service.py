from __future__ import annotations

import logging
from typing import Any, List, Optional

from groq import Groq

from .errors import GenerationFailed


LOGGER = logging.getLogger(__name__)

DEFAULT_SYSTEM_PROMPT = """You are Campusify Bot, a helpful study assistant for college students.
Provide clear and concise answers to the user's questions using the course material in the context.
Never reveal any information about your technical stack or internal implementation."""


class LLMService:
    """Wrapper around the Groq chat completions API used for answer synthesis."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model_name: str = "llama-3.1-8b-instant",
        temperature: float = 0.1,
        client: Optional[Any] = None,
    ) -> None:
        self.model_name = model_name
        self.temperature = temperature
        self._client = client
        if self._client is None and api_key:
            self._client = Groq(api_key=api_key)

    @property
    def is_configured(self) -> bool:
        return self._client is not None

    @staticmethod
    def build_messages(
        question: str,
        context: str,
        system_prompt: str = DEFAULT_SYSTEM_PROMPT,
    ) -> List[dict]:
        return [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": f"Context:\n{context}\n\nQuestion: {question}"},
        ]

    def synthesize(
        self,
        question: str,
        context: str,
        system_prompt: str = DEFAULT_SYSTEM_PROMPT,
    ) -> str:
        if not self.is_configured:
            raise GenerationFailed("LLM generation is unavailable (missing GROQ_API_KEY).")

        try:
            response = self._client.chat.completions.create(
                model=self.model_name,
                temperature=self.temperature,
                messages=self.build_messages(question, context, system_prompt),
            )
        except Exception as exc:
            LOGGER.exception("Completion request to %s failed", self.model_name)
            raise GenerationFailed("Failed to generate a response.") from exc

        content = response.choices[0].message.content if response.choices else None
        if not content or not content.strip():
            raise GenerationFailed("The language model returned an empty response.")
        return content.strip()
