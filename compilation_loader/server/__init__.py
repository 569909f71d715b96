"""HTTP service: FastAPI app and in-memory job store."""
