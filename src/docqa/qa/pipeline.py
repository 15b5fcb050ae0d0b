"""Query path: question in, grounded answer with sources out."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from docqa.errors import ValidationError
from docqa.qa.graph import build_graph, create_initial_state
from docqa.retrieval.models import QAResponse

if TYPE_CHECKING:
    from docqa.context import ServiceContext

logger = logging.getLogger(__name__)

UNKNOWN_SOURCE = "Unknown"


def query_document(ctx: ServiceContext, query: str, book_name: str | None = None) -> QAResponse:
    """Answer *query* from the indexed passages.

    Single-shot: no caching, no retries, no streaming.  The first failing
    port call (search or completion) propagates to the caller.

    Parameters
    ----------
    ctx:
        Service context holding the vector index and completion port.
    query:
        Natural-language question; must be non-blank.
    book_name:
        When given, only passages whose ``bookName`` equals it are used.

    Returns
    -------
    QAResponse
        ``answer`` (``""`` when the model returns nothing), ``source`` (the
        first passage's ``bookName`` or ``"Unknown"``) and the ``context``
        passages used.
    """
    if not query or not query.strip():
        raise ValidationError("No query provided", field="query")

    graph = build_graph(ctx.vector_index, ctx.completion)
    result = graph.invoke(create_initial_state(query, book_name=book_name or None, k=ctx.retrieval_k))

    passages = result.get("passages", [])
    source = passages[0].metadata.get("bookName") if passages else None
    return QAResponse(
        answer=result.get("answer") or "",
        source=source or UNKNOWN_SOURCE,
        context=passages,
    )
