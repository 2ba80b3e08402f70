"""HTTP API for OrderFlow (FastAPI)."""
