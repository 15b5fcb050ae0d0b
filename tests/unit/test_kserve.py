"""Unit tests for the KServe runtime."""

from __future__ import annotations

import pytest

from docqa.errors import ValidationError
from docqa.ingestion.pipeline import upload_document

kserve = pytest.importorskip("kserve")


@pytest.fixture()
def model(ctx):
    from docqa.serving.kserve_runtime import DocumentQAModel

    m = DocumentQAModel(context=ctx)
    m.load()
    return m


def test_load_marks_ready(model) -> None:
    assert model.ready is True


def test_predict_returns_one_prediction_per_instance(model, ctx) -> None:
    upload_document(ctx, b"The capital of France is Paris.", "france.pdf")

    result = model.predict(
        {"instances": [{"query": "capital of France"}, {"query": "capital", "bookName": "other.pdf"}]}
    )

    first, second = result["predictions"]
    assert "Paris" in first["answer"]
    assert first["source"] == "france.pdf"
    assert second["source"] == "Unknown"
    assert second["context"] == []


def test_predict_without_query_raises(model) -> None:
    with pytest.raises(ValidationError):
        model.predict({"instances": [{}]})


def test_empty_payload(model) -> None:
    assert model.predict({}) == {"predictions": []}
