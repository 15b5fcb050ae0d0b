"""LangGraph graph definition — the retrieval QA workflow.

This module wires the nodes defined in :mod:`docqa.qa.nodes` into a
compiled :class:`StateGraph`:

1. **Retrieve** the top-k passages for the question, optionally narrowed
   to one ``bookName``, and join them into a context string.
2. **Generate** an answer grounded on that context.

The ports are bound when the graph is built, so the graph can be run
against in-memory fakes in tests.
"""

from __future__ import annotations

from typing import Any

from langgraph.graph import END, StateGraph

from docqa.qa.llm import CompletionBase
from docqa.qa.nodes import generate, retrieve
from docqa.qa.state import QAState
from docqa.retrieval.base import VectorIndexBase


def build_graph(index: VectorIndexBase, completion: CompletionBase) -> Any:
    """Construct and return the compiled QA graph.

    Graph topology::

        START → retrieve → generate → END

    Parameters
    ----------
    index:
        Vector index searched by ``retrieve``.
    completion:
        Completion port called by ``generate``.

    Returns
    -------
    CompiledGraph
        A compiled LangGraph workflow ready for ``.invoke()``.
    """

    def _retrieve(state: QAState) -> dict[str, Any]:
        return retrieve(state, index=index)

    def _generate(state: QAState) -> dict[str, Any]:
        return generate(state, completion=completion)

    workflow = StateGraph(QAState)

    # -- Nodes ---------------------------------------------------------------
    workflow.add_node("retrieve", _retrieve)
    workflow.add_node("generate", _generate)

    # -- Edges ---------------------------------------------------------------
    workflow.set_entry_point("retrieve")
    workflow.add_edge("retrieve", "generate")
    workflow.add_edge("generate", END)

    return workflow.compile()


# ---------------------------------------------------------------------------
# Convenience helpers
# ---------------------------------------------------------------------------


def create_initial_state(query: str, *, book_name: str | None = None, k: int = 2) -> dict[str, Any]:
    """Build a minimal initial state dict for ``graph.invoke()``.

    Usage::

        graph = build_graph(index, completion)
        result = graph.invoke(create_initial_state("What is the capital of France?"))
        print(result["answer"])
    """
    return {
        "query": query,
        "book_name": book_name,
        "k": k,
        "passages": [],
        "context": "",
        "answer": "",
    }
