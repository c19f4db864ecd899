"""
Database Assistant

Forwards a user question, together with the database overview, to a
language model and returns its answer. The client is injected by the
caller; nothing here holds a module-level connection.
"""

from typing import Any, Optional, Protocol
import logging
import time

from dbinsight.config import LLMConfig
from dbinsight.inference.prompts import PromptTemplates

logger = logging.getLogger(__name__)


class AssistantError(Exception):
    """Raised when the assistant cannot produce an answer."""
    pass


class DatabaseAssistant(Protocol):
    """Anything that can answer a question about a summarized database."""

    def answer(self, question: str, summary: str) -> str:
        ...


def describe_error(error: Exception) -> str:
    """
    Turn an API failure into a message suitable for the user.

    Args:
        error: Exception raised by the client

    Returns:
        Short explanation of what went wrong
    """
    message = str(error)
    lowered = message.lower()
    if "api key" in lowered or "api_key" in lowered:
        return "API key error: Please make sure you've set a valid OpenAI API key."
    if "network" in lowered or "connect" in lowered:
        return "Network error: Please check your internet connection and try again."
    if "quota" in lowered or "limit" in lowered:
        return "API quota exceeded: You may have reached your OpenAI API usage limit."
    return f"Error: {message}"


class OpenAIDatabaseAssistant:
    """
    Database assistant backed by the OpenAI chat completions API.

    This module handles:
    - Client creation from the LLM configuration
    - Prompt assembly from the database overview
    - Retries with exponential backoff
    """

    def __init__(self, llm_config: Optional[LLMConfig] = None, client: Any = None):
        """
        Initialize the assistant.

        Args:
            llm_config: LLM configuration
            client: Pre-built OpenAI-compatible client; created lazily when omitted
        """
        self.llm_config = llm_config or LLMConfig()
        self._client = client

    @property
    def client(self) -> Any:
        """Get or create the OpenAI client."""
        if self._client is None:
            if self.llm_config.provider != "openai":
                raise AssistantError(f"Unsupported LLM provider: {self.llm_config.provider}")
            if not self.llm_config.api_key:
                raise AssistantError("No API key configured. Set OPENAI_API_KEY to use the assistant.")

            import openai
            self._client = openai.OpenAI(
                api_key=self.llm_config.api_key,
                timeout=self.llm_config.timeout,
            )
            logger.info(f"Initialized OpenAI client with model: {self.llm_config.model}")
        return self._client

    def answer(self, question: str, summary: str) -> str:
        """
        Answer a question about the database.

        Args:
            question: User question
            summary: Plain-text database overview

        Returns:
            The model's answer

        Raises:
            AssistantError: If no client is available or every attempt fails
        """
        if not question or not question.strip():
            raise AssistantError("Question is empty")

        client = self.client
        prompt = PromptTemplates.format_question(question, summary)
        attempts = max(1, self.llm_config.retry_attempts)
        last_error: Optional[Exception] = None

        for attempt in range(attempts):
            try:
                response = client.chat.completions.create(
                    model=self.llm_config.model,
                    messages=[
                        {"role": "system", "content": PromptTemplates.SYSTEM_PROMPT},
                        {"role": "user", "content": prompt},
                    ],
                    temperature=self.llm_config.temperature,
                    max_tokens=self.llm_config.max_tokens,
                )
                content = response.choices[0].message.content
                return (content or "").strip()

            except Exception as e:
                last_error = e
                logger.warning(f"LLM call failed (attempt {attempt + 1}): {e}")
                if attempt < attempts - 1:
                    time.sleep(2 ** attempt)  # Exponential backoff

        raise AssistantError(describe_error(last_error)) from last_error
