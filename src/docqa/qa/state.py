"""QA state definition — shared across the graph nodes.

The state is the single source of truth that flows through every node of
the query pipeline.
"""

from __future__ import annotations

from typing import TypedDict

from docqa.retrieval.models import ContextPassage


class QAState(TypedDict):
    """Typed state that flows through the QA graph.

    Attributes
    ----------
    query:
        The user's natural-language question.
    book_name:
        Optional ``bookName`` the search is restricted to.
    k:
        Number of passages to retrieve.
    passages:
        Retrieved passages, most similar first.
    context:
        Passage contents joined by newlines; the text the answer is
        grounded on.  May be empty.
    answer:
        The generated answer (populated by the ``generate`` node).
    """

    query: str
    book_name: str | None
    k: int
    passages: list[ContextPassage]
    context: str
    answer: str
