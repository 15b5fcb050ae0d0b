"""KServe custom model runtime for document QA."""

from __future__ import annotations

import logging
from typing import Any

import kserve

from docqa.config import settings
from docqa.context import ServiceContext, build_context
from docqa.errors import DocQAError
from docqa.qa.pipeline import query_document

logger = logging.getLogger(__name__)


class DocumentQAModel(kserve.Model):
    """KServe-compatible model that answers questions over indexed documents.

    This class implements the ``predict`` interface expected by KServe
    so the QA path can be deployed as an ``InferenceService``.
    """

    def __init__(self, name: str = "docqa", context: ServiceContext | None = None) -> None:
        super().__init__(name)
        self.context = context
        self.ready = False

    def load(self) -> None:
        """Build the service context (called once at startup)."""
        if self.context is None:
            self.context = build_context(settings)
        self.ready = True

    def predict(self, payload: dict[str, Any], headers: dict[str, str] | None = None) -> dict:
        """Run inference — called on every request.

        Parameters
        ----------
        payload:
            ``{"instances": [{"query": "...", "bookName": "..."}]}``;
            ``bookName`` is optional.
        headers:
            Optional HTTP headers.

        Returns
        -------
        dict
            ``{"predictions": [{"answer": ..., "source": ..., "context": [...]}]}``
        """
        instances = payload.get("instances", [])
        predictions = []

        for instance in instances:
            try:
                response = query_document(self.context, instance.get("query", ""), instance.get("bookName"))
            except DocQAError:
                logger.exception("Prediction failed for %r", instance.get("query"))
                raise
            predictions.append(response.model_dump(mode="json"))

        return {"predictions": predictions}


if __name__ == "__main__":
    logging.basicConfig(level=settings.log_level.upper())
    model = DocumentQAModel()
    model.load()
    kserve.ModelServer().start([model])
