"""FastAPI application exposing the caching and retrieval layer."""
