"""Graph nodes — each function is one step of the QA pipeline.

Node contract
-------------
* Accepts the full :class:`QAState` dict plus the port it talks to.
* Returns a *partial* dict with **only the keys that changed**.
* No hidden global state, so every node is independently testable.
"""

from __future__ import annotations

import logging
from typing import Any

from docqa.qa.llm import CompletionBase
from docqa.qa.prompts import QA_SYSTEM_PROMPT, build_user_prompt, format_context
from docqa.qa.state import QAState
from docqa.retrieval.base import VectorIndexBase
from docqa.retrieval.models import ContextPassage, MetadataFilter, matches_all

logger = logging.getLogger(__name__)


# ── 1. RETRIEVE ───────────────────────────────────────────────────────


def retrieve(state: QAState, *, index: VectorIndexBase) -> dict[str, Any]:
    """Similarity-search the index and assemble the context string.

    With a ``book_name`` the search is narrowed to passages whose
    ``bookName`` metadata matches.  Indexes that cannot filter server-side
    are searched over every record and filtered here instead.
    """
    query = state["query"]
    k = state["k"]
    book_name = state.get("book_name")
    filters = [MetadataFilter.equals("bookName", book_name)] if book_name else None

    passages: list[ContextPassage]
    if filters and not index.supports_metadata_filter:
        candidates = index.similarity_search(query, k=max(k, index.count()))
        passages = [p for p in candidates if matches_all(filters, p.metadata)][:k]
    else:
        passages = index.similarity_search(query, k=k, filters=filters)

    logger.info(
        "Retrieved %d passage(s) for %r (bookName=%s)", len(passages), query, book_name
    )
    return {"passages": passages, "context": format_context(passages)}


# ── 2. GENERATE ───────────────────────────────────────────────────────


def generate(state: QAState, *, completion: CompletionBase) -> dict[str, Any]:
    """Answer the question from the assembled context.

    An empty context is passed through unchanged; the model is expected
    to say it cannot answer.
    """
    answer = completion.complete(
        QA_SYSTEM_PROMPT,
        build_user_prompt(state["query"], state.get("context", "")),
    )
    return {"answer": answer or ""}
