"""
QA — retrieval-augmented question answering built with LangGraph.

Public API
----------
- :func:`query_document` — answer a question from the indexed passages.
- :func:`build_graph` — compile the retrieve → generate workflow.
- :class:`CompletionBase` / :class:`ChatCompletion` — the completion port.
"""

from docqa.qa.graph import build_graph, create_initial_state
from docqa.qa.llm import ChatCompletion, CompletionBase
from docqa.qa.pipeline import query_document
from docqa.qa.state import QAState

__all__ = [
    "ChatCompletion",
    "CompletionBase",
    "QAState",
    "build_graph",
    "create_initial_state",
    "query_document",
]
