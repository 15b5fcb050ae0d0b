"""Shared configuration loaded from environment / .env file."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application-wide settings, populated from env vars or .env file."""

    # LLM
    openai_api_key: str = Field(default="", description="OpenAI API key (or dummy value for local vLLM)")
    llm_model_name: str = Field(default="gpt-4o-mini", description="Chat model identifier")
    llm_base_url: str = Field(
        default="",
        description=(
            "Base URL for an OpenAI-compatible chat API. Leave empty to use "
            "OpenAI cloud."
        ),
    )
    llm_temperature: float = 0.0

    # Embedding
    embedding_provider: str = Field(default="huggingface", description="'huggingface' or 'openai'")
    embedding_model: str = "sentence-transformers/all-MiniLM-L6-v2"

    # Vector store
    chroma_host: str = "localhost"
    chroma_port: int = 8000
    chroma_persist_dir: str = Field(
        default="",
        description="When set, use an embedded persistent Chroma client at this path instead of HTTP.",
    )
    chroma_collection: str = "documents"

    # Blob storage
    storage_backend: str = Field(default="local", description="'local' or 's3'")
    storage_root: str = "storage"
    s3_bucket: str = "documents"
    s3_region: str = "us-east-1"
    s3_endpoint_url: str = ""

    # Metadata store
    database_url: str = "sqlite:///./docqa.db"
    documents_table: str = "document_metadata"

    # Pipeline
    chunk_size: int = 1000
    chunk_overlap: int = 200
    retrieval_k: int = 2
    embed_batch_size: int = 64
    upsert_batch_size: int = 5000
    max_file_size: int = 1024 * 1024 * 1000

    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


# Singleton — import `settings` wherever needed.
settings = Settings()
