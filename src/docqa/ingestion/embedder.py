"""Embedding function factory.

The embedding capability is LangChain's ``Embeddings`` interface
(``embed_documents`` / ``embed_query``); vector indexes receive one at
construction and call it in batches.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from docqa.config import settings

if TYPE_CHECKING:
    from langchain_core.embeddings import Embeddings

logger = logging.getLogger(__name__)

DEFAULT_OPENAI_EMBEDDING_MODEL = "text-embedding-3-small"


def get_embedding_function(
    provider: str | None = None,
    model_name: str | None = None,
) -> Embeddings:
    """Return the configured embedding function.

    ``provider`` is ``"huggingface"`` (local sentence-transformers model,
    the default) or ``"openai"``.
    """
    provider = (provider or settings.embedding_provider).strip().lower()
    model_name = model_name or settings.embedding_model

    if provider == "openai":
        from langchain_openai import OpenAIEmbeddings

        # The default model name points at a sentence-transformers checkpoint.
        if model_name.startswith("sentence-transformers/"):
            model_name = DEFAULT_OPENAI_EMBEDDING_MODEL
        logger.info("Using OpenAI embeddings: %s", model_name)
        return OpenAIEmbeddings(model=model_name, api_key=settings.openai_api_key or None)

    if provider == "huggingface":
        from langchain_huggingface import HuggingFaceEmbeddings

        logger.info("Using HuggingFace embeddings: %s", model_name)
        return HuggingFaceEmbeddings(model_name=model_name)

    raise ValueError(f"Unsupported embedding provider: {provider!r}")
