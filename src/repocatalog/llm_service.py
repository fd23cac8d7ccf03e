# src/repocatalog/llm_service.py
"""Service for chat completions against the remote LLM."""

import logging
from typing import Optional

import openai
from llama_index.core.llms import ChatMessage, MessageRole
from llama_index.llms.openai import OpenAI

from repocatalog.config import DEFAULT_MODEL_NAME
from repocatalog.errors import CapabilityError

logger = logging.getLogger(__name__)


class LLMService:
    """
    Thin wrapper around the llama-index OpenAI chat model.

    Every failure (transport, API status, empty reply) is reported as CapabilityError so
    that callers only need to handle one exception type.
    """

    def __init__(self, api_key: Optional[str], model_name: str = DEFAULT_MODEL_NAME):
        self.api_key = api_key
        self.model_name = model_name
        self.llm = self._initialize_llm()

    def _initialize_llm(self):
        if not self.api_key:
            logger.warning(
                "OPENAI_API_KEY not found. Remote analysis is unavailable; "
                "set OPENAI_API_KEY environment variable for actual LLM usage."
            )
            return None

        logger.info(f"Initializing OpenAI LLM (model: {self.model_name})")
        # Special handling for GPT-4o models, otherwise standard init
        if self.model_name.startswith("gpt-4o"):
            return OpenAI(model=self.model_name, api_key=self.api_key, strict=False)
        return OpenAI(model=self.model_name, api_key=self.api_key)

    @property
    def is_available(self) -> bool:
        return self.llm is not None

    def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.3,
        max_tokens: int = 1000,
    ) -> str:
        """
        Send one system + user message pair and return the reply text.

        Args:
            system_prompt (str): Instruction that sets the model's role.
            user_prompt (str): The request itself.
            temperature (float): Sampling temperature.
            max_tokens (int): Upper bound on reply length.

        Returns:
            str: The stripped reply text.

        Raises:
            CapabilityError: If the LLM is unavailable, the call fails or the reply is empty.
        """
        if self.llm is None:
            raise CapabilityError("LLM is not configured (missing API key)")

        messages = [
            ChatMessage(role=MessageRole.SYSTEM, content=system_prompt),
            ChatMessage(role=MessageRole.USER, content=user_prompt),
        ]
        try:
            response = self.llm.chat(messages, temperature=temperature, max_tokens=max_tokens)
        except openai.OpenAIError as e:
            raise CapabilityError(f"OpenAI API error: {e}") from e
        except Exception as e:
            raise CapabilityError(f"LLM call failed: {str(e)}") from e

        content = response.message.content if response and response.message else None
        if not content or not content.strip():
            raise CapabilityError(f"{self.model_name} returned an empty response")

        logger.debug(f"LLM reply received ({len(content)} chars)")
        return content.strip()
