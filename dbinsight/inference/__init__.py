"""Inference modules for the LLM-backed database assistant."""

from dbinsight.inference.assistant import (
    AssistantError,
    DatabaseAssistant,
    OpenAIDatabaseAssistant,
)
from dbinsight.inference.prompts import PromptTemplates

__all__ = ["AssistantError", "DatabaseAssistant", "OpenAIDatabaseAssistant", "PromptTemplates"]
