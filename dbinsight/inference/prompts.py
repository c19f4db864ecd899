"""
Prompt Templates for the Database Assistant

Contains the prompts used when a question about the database is
forwarded to a language model.
"""

from dataclasses import dataclass


@dataclass
class PromptTemplates:
    """Collection of prompt templates for the database assistant."""

    # System prompt establishing the AI's role
    SYSTEM_PROMPT = """You are an expert database analyst helping a user understand a database they have uploaded.

Guidelines:
1. Base all answers ONLY on the provided database overview
2. Refer to tables and columns by their exact names
3. When suggesting SQL, target SQLite syntax
4. If the overview does not contain enough information to answer, say so

Never make up tables, columns or values that are not in the overview."""

    # Question with the database overview as context
    QUESTION_PROMPT = """I have a database with the following structure and data. Please help me analyze it.

{summary}

My question is: {question}"""

    @classmethod
    def format_question(cls, question: str, summary: str) -> str:
        """Build the user prompt; without a summary the question is sent alone."""
        if not summary:
            return question
        return cls.QUESTION_PROMPT.format(summary=summary, question=question)
