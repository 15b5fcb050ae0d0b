"""Chat-model initialisation and the completion port.

Supports two modes:

1. **OpenAI cloud** (default) — set ``OPENAI_API_KEY``.
2. **OpenAI-compatible endpoint** — set ``LLM_BASE_URL`` to any server that
   exposes ``/v1/chat/completions`` (vLLM, a KServe InferenceService, …).
   ``ChatOpenAI`` works unchanged against it.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from langchain_core.messages import HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI

from docqa.config import settings
from docqa.errors import CompletionError

if TYPE_CHECKING:
    from langchain_core.language_models.chat_models import BaseChatModel

logger = logging.getLogger(__name__)


def get_llm(temperature: float | None = None) -> ChatOpenAI:
    """Return the configured chat model.

    When ``settings.llm_base_url`` is set the client is pointed at that
    OpenAI-compatible endpoint instead of the OpenAI cloud API.  A dummy
    API key (``"EMPTY"``) is used because vLLM does not require
    authentication.
    """
    kwargs: dict = {
        "model": settings.llm_model_name,
        "temperature": settings.llm_temperature if temperature is None else temperature,
    }

    if settings.llm_base_url:
        logger.info("Using OpenAI-compatible endpoint: %s", settings.llm_base_url)
        kwargs["base_url"] = settings.llm_base_url
        # vLLM doesn't need a real key; LangChain requires a non-empty value.
        kwargs["api_key"] = settings.openai_api_key or "EMPTY"
    else:
        kwargs["api_key"] = settings.openai_api_key

    return ChatOpenAI(**kwargs)


class CompletionBase(ABC):
    """Single-shot text generation from a system and a user prompt."""

    @abstractmethod
    def complete(self, system_prompt: str, user_prompt: str) -> str:
        """Return the generated text (``""`` when the model returns none).

        Raises :class:`~docqa.errors.CompletionError` on provider failure.
        """
        ...


def _message_text(content: Any) -> str:
    """Flatten LangChain message content (str or list of parts) to text."""
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    parts: list[str] = []
    for part in content:
        if isinstance(part, str):
            parts.append(part)
        elif isinstance(part, dict) and part.get("type") == "text":
            parts.append(part.get("text", ""))
    return "".join(parts)


class ChatCompletion(CompletionBase):
    """Completion port backed by any LangChain chat model.

    Parameters
    ----------
    llm:
        Chat model to invoke; defaults to :func:`get_llm`.
    """

    def __init__(self, llm: BaseChatModel | None = None) -> None:
        self._llm = llm if llm is not None else get_llm()

    def complete(self, system_prompt: str, user_prompt: str) -> str:
        messages = [SystemMessage(content=system_prompt), HumanMessage(content=user_prompt)]
        try:
            response = self._llm.invoke(messages)
        except Exception as exc:
            raise CompletionError(f"Chat completion failed: {exc}") from exc
        return _message_text(getattr(response, "content", None))
