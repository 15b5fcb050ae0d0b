"""
Serving — FastAPI application and KServe runtime for document QA.

The FastAPI app covers the whole surface (upload, listings, query,
deletion, progress); the KServe runtime exposes only the query path as an
``InferenceService``.
"""
