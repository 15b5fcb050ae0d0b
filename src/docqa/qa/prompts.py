"""Prompt templates for grounded question answering.

Keeping prompts in one place makes them easy to audit and version.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from docqa.retrieval.models import ContextPassage

QA_SYSTEM_PROMPT = (
    "You are a helpful assistant that answers questions based only on the "
    "provided context."
)


def format_context(passages: list[ContextPassage]) -> str:
    """Join passage contents, in retrieval order, one per line."""
    return "\n".join(p.content for p in passages)


def build_user_prompt(query: str, context: str) -> str:
    """User message carrying the retrieved context and the question."""
    return f"Context: {context}\n\nQuestion: {query}"
