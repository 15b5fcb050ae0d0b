"""Unit tests for the QA workflow.

All tests run **without** Chroma or OpenAI by injecting the in-memory
fakes from ``conftest``.  The suite covers:

- Prompt construction
- The retrieve and generate nodes
- Graph compilation and end-to-end invocation through ``query_document``
- The completion adapter over a LangChain chat model
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

from conftest import FakeCompletion, FakeVectorIndex
from docqa.errors import CompletionError, ValidationError
from docqa.ingestion.models import Chunk, ChunkMetadata
from docqa.qa.graph import build_graph, create_initial_state
from docqa.qa.llm import ChatCompletion
from docqa.qa.nodes import generate, retrieve
from docqa.qa.pipeline import UNKNOWN_SOURCE, query_document
from docqa.qa.prompts import QA_SYSTEM_PROMPT, build_user_prompt, format_context
from docqa.retrieval.models import ContextPassage


def _chunk(content: str, book: str, page: int = 1) -> Chunk:
    return Chunk(
        content=content,
        metadata=ChunkMetadata(
            doc_id=f"id-{book}",
            source=book,
            page=page,
            book_name=book,
            file_size=100,
            upload_date="2026-01-01T00:00:00+00:00",
            storage_path=f"uploads/x-{book}",
        ),
    )


@pytest.fixture()
def library(vector_index: FakeVectorIndex) -> FakeVectorIndex:
    vector_index.add(
        [
            _chunk("Rust ownership rules prevent data races.", "rust.pdf"),
            _chunk("Python generators yield values lazily.", "python.pdf"),
            _chunk("Python decorators wrap functions.", "python.pdf", page=2),
            _chunk("Go channels pass values between goroutines.", "go.pdf"),
        ]
    )
    return vector_index


# ── Prompts ────────────────────────────────────────────────────────────


class TestPrompts:
    def test_user_prompt_layout(self) -> None:
        assert build_user_prompt("Why?", "Because.") == "Context: Because.\n\nQuestion: Why?"

    def test_context_joins_passages_with_newlines(self) -> None:
        passages = [ContextPassage(content="one"), ContextPassage(content="two")]
        assert format_context(passages) == "one\ntwo"

    def test_empty_context(self) -> None:
        assert format_context([]) == ""


# ── Nodes ──────────────────────────────────────────────────────────────


class TestRetrieveNode:
    def test_returns_top_k_and_context(self, library: FakeVectorIndex) -> None:
        state = create_initial_state("Python values lazily", k=2)
        result = retrieve(state, index=library)

        assert len(result["passages"]) == 2
        assert result["passages"][0].content == "Python generators yield values lazily."
        assert result["context"] == "\n".join(p.content for p in result["passages"])

    def test_book_name_becomes_filter(self, library: FakeVectorIndex) -> None:
        retrieve(create_initial_state("values", book_name="go.pdf"), index=library)
        filters = library.search_calls[-1]["filters"]
        assert filters[0].field == "bookName"
        assert filters[0].value == "go.pdf"

    def test_client_side_filtering_when_unsupported(self) -> None:
        index = FakeVectorIndex(supports_filter=False)
        index.add([_chunk("Python values.", "python.pdf"), _chunk("Go values.", "go.pdf")])

        result = retrieve(create_initial_state("Python values", book_name="go.pdf", k=2), index=index)

        assert [p.metadata["bookName"] for p in result["passages"]] == ["go.pdf"]
        assert index.search_calls[-1]["filters"] is None
        assert index.search_calls[-1]["k"] == 2


class TestGenerateNode:
    def test_passes_system_and_user_prompt(self) -> None:
        completion = FakeCompletion()
        state = {**create_initial_state("Q?"), "context": "Some context."}
        generate(state, completion=completion)
        assert completion.calls == [(QA_SYSTEM_PROMPT, "Context: Some context.\n\nQuestion: Q?")]

    def test_none_answer_becomes_empty_string(self) -> None:
        completion = MagicMock()
        completion.complete.return_value = None
        assert generate(create_initial_state("Q?"), completion=completion) == {"answer": ""}


# ── Graph ──────────────────────────────────────────────────────────────


class TestGraph:
    def test_graph_compiles(self, library: FakeVectorIndex) -> None:
        graph = build_graph(library, FakeCompletion())
        assert graph is not None

    def test_invoke_runs_retrieve_then_generate(self, library: FakeVectorIndex) -> None:
        graph = build_graph(library, FakeCompletion())
        result = graph.invoke(create_initial_state("Rust ownership data races", k=1))
        assert result["answer"] == "Rust ownership rules prevent data races."


# ── query_document ─────────────────────────────────────────────────────


class TestQueryDocument:
    def test_filtered_by_book_name(self, ctx, library: FakeVectorIndex) -> None:
        response = query_document(ctx, "Python values lazily", book_name="go.pdf")

        assert response.source == "go.pdf"
        assert all(p.metadata["bookName"] == "go.pdf" for p in response.context)

    def test_source_is_first_passage_book(self, ctx, library: FakeVectorIndex) -> None:
        response = query_document(ctx, "Rust ownership data races")
        assert response.source == "rust.pdf"
        assert len(response.context) == ctx.retrieval_k

    def test_empty_index_gives_unknown_source(self, ctx) -> None:
        response = query_document(ctx, "anything at all")

        assert response.source == UNKNOWN_SOURCE
        assert response.context == []
        assert response.answer == "I don't know."

    @pytest.mark.parametrize("query", ["", "   "])
    def test_blank_query_rejected(self, ctx, query: str) -> None:
        with pytest.raises(ValidationError):
            query_document(ctx, query)

    def test_completion_failure_propagates(self, ctx, library: FakeVectorIndex) -> None:
        ctx.completion = FakeCompletion(fail=True)
        with pytest.raises(CompletionError):
            query_document(ctx, "Python")


# ── ChatCompletion adapter ─────────────────────────────────────────────


class TestChatCompletion:
    def test_sends_system_and_human_messages(self) -> None:
        llm = MagicMock()
        llm.invoke.return_value = AIMessage(content="Paris.")

        answer = ChatCompletion(llm).complete("system", "user")

        assert answer == "Paris."
        messages = llm.invoke.call_args.args[0]
        assert isinstance(messages[0], SystemMessage)
        assert isinstance(messages[1], HumanMessage)
        assert messages[1].content == "user"

    def test_provider_error_becomes_completion_error(self) -> None:
        llm = MagicMock()
        llm.invoke.side_effect = RuntimeError("rate limited")

        with pytest.raises(CompletionError):
            ChatCompletion(llm).complete("system", "user")
