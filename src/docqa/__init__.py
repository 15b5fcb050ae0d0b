"""docqa — document ingestion and retrieval-augmented question answering."""
