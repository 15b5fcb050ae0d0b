"""FastAPI application exposing document ingestion, QA and deletion."""

from __future__ import annotations

import dataclasses
import logging
import re
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import APIRouter, Depends, FastAPI, File, HTTPException, Query, Request, UploadFile
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from docqa import catalog, deletion
from docqa.config import settings
from docqa.context import ServiceContext, build_context
from docqa.errors import DocQAError, ValidationError
from docqa.ingestion.models import DocumentRecord, UploadProgress
from docqa.ingestion.pipeline import upload_document
from docqa.ingestion.progress import UploadTracker
from docqa.qa.pipeline import query_document
from docqa.retrieval.models import QAResponse, VectorPage
from docqa.storage.models import FileObject

logger = logging.getLogger(__name__)

FILE_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9\-.]+$")


# ── Request / Response schemas ────────────────────────────────────────
class QueryRequest(BaseModel):
    """Incoming question, optionally scoped to one document."""

    model_config = ConfigDict(populate_by_name=True)

    query: str | None = None
    book_name: str | None = Field(default=None, alias="bookName")


class UploadResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    file_name: str = Field(alias="fileName")


class SuccessResponse(BaseModel):
    success: bool = True


# ── Dependencies ──────────────────────────────────────────────────────
def get_context(request: Request) -> ServiceContext:
    ctx = getattr(request.app.state, "context", None)
    if ctx is None:
        raise HTTPException(status_code=503, detail="Service context is not initialised")
    return ctx


def get_tracker(request: Request) -> UploadTracker:
    return request.app.state.tracker


# ── Routes ────────────────────────────────────────────────────────────
router = APIRouter(prefix="/api/documents", tags=["documents"])


@router.post("/upload", response_model=UploadResponse)
def upload(
    request: Request,
    file: UploadFile | None = File(default=None),
    ctx: ServiceContext = Depends(get_context),
) -> UploadResponse:
    """Store and index one uploaded document."""
    if file is None or not file.filename:
        raise ValidationError("No file uploaded", field="file")
    if not FILE_NAME_PATTERN.match(file.filename):
        raise ValidationError(
            "Invalid file name: only letters, digits, '-' and '.' are allowed",
            field="file",
            details={"fileName": file.filename},
        )

    max_size = request.app.state.max_file_size
    data = file.file.read(max_size + 1)
    if len(data) > max_size:
        raise HTTPException(status_code=413, detail=f"File exceeds the {max_size}-byte limit")

    file_name = upload_document(ctx, data, file.filename)
    return UploadResponse(file_name=file_name)


@router.get("/lists", response_model=list[DocumentRecord])
def lists(ctx: ServiceContext = Depends(get_context)) -> list[DocumentRecord]:
    """Document records, newest first."""
    return catalog.list_documents(ctx)


@router.get("/vectors", response_model=VectorPage)
def vectors(
    start: int = Query(0),
    end: int = Query(9),
    ctx: ServiceContext = Depends(get_context),
) -> VectorPage:
    """Vector records in the inclusive range ``[start, end]``."""
    return catalog.list_vectors(ctx, start, end)


@router.get("/files", response_model=list[FileObject])
def files(ctx: ServiceContext = Depends(get_context)) -> list[FileObject]:
    """Uploaded blobs."""
    return catalog.list_files(ctx)


@router.post("/query", response_model=QAResponse)
def query(body: QueryRequest, ctx: ServiceContext = Depends(get_context)) -> QAResponse:
    """Answer a question from the indexed documents."""
    return query_document(ctx, body.query or "", body.book_name)


@router.delete("/remove/{file_name}", response_model=SuccessResponse)
def remove(file_name: str, ctx: ServiceContext = Depends(get_context)) -> SuccessResponse:
    deletion.remove_document(ctx, file_name)
    return SuccessResponse()


@router.delete("/remove-file/{file_name}", response_model=SuccessResponse)
def remove_file(file_name: str, ctx: ServiceContext = Depends(get_context)) -> SuccessResponse:
    deletion.remove_file(ctx, file_name)
    return SuccessResponse()


@router.delete("/remove-vectors/{doc_id}", response_model=SuccessResponse)
def remove_vectors(doc_id: str, ctx: ServiceContext = Depends(get_context)) -> SuccessResponse:
    deletion.remove_vector(ctx, doc_id)
    return SuccessResponse()


@router.delete("/remove/doc/file/vectors/{file_name}", response_model=SuccessResponse)
def remove_doc_file_vectors(file_name: str, ctx: ServiceContext = Depends(get_context)) -> SuccessResponse:
    """Remove blob(s), metadata and vectors for every upload of ``file_name``."""
    deletion.remove_doc_file_vectors(ctx, file_name)
    return SuccessResponse()


@router.get("/progress/{file_name}", response_model=UploadProgress)
def progress(file_name: str, tracker: UploadTracker = Depends(get_tracker)) -> UploadProgress:
    snapshot = tracker.get_progress(file_name)
    if snapshot is None:
        raise HTTPException(status_code=404, detail=f"No upload in progress for {file_name}")
    return snapshot


# ── Error rendering ───────────────────────────────────────────────────
async def docqa_error_handler(request: Request, exc: DocQAError) -> JSONResponse:
    status_code = 400 if isinstance(exc, ValidationError) else 500
    if status_code == 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status_code,
        content={"error": exc.kind, "message": exc.message, "details": jsonable_encoder(exc.details)},
    )


# ── Application factory ───────────────────────────────────────────────
def create_app(
    context: ServiceContext | None = None,
    *,
    max_file_size: int = settings.max_file_size,
) -> FastAPI:
    """Build the FastAPI application.

    Parameters
    ----------
    context:
        Pre-built service context.  When omitted, the production context
        is built from ``settings`` at startup.
    max_file_size:
        Upload size limit in bytes; larger uploads are rejected with 413.
    """
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if context is not None and isinstance(context.progress, UploadTracker):
        tracker = context.progress
    else:
        tracker = UploadTracker()
        if context is not None and context.progress is None:
            context = dataclasses.replace(context, progress=tracker)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if app.state.context is None:
            logger.info("Building service context from settings")
            app.state.context = build_context(settings, progress=tracker)
        yield

    app = FastAPI(
        title="Document QA API",
        version="0.1.0",
        description="Upload documents, ask questions about them, and manage the index.",
        lifespan=lifespan,
    )
    app.state.context = context
    app.state.tracker = tracker
    app.state.max_file_size = max_file_size

    app.include_router(router)
    app.add_exception_handler(DocQAError, docqa_error_handler)

    @app.get("/health")
    def health(request: Request) -> JSONResponse:
        """Liveness probe; 503 when the vector index is unreachable."""
        ctx = request.app.state.context
        if ctx is not None and not ctx.vector_index.health_check():
            return JSONResponse(status_code=503, content={"status": "unavailable"})
        return JSONResponse(content={"status": "ok"})

    return app


app = create_app()
