"""
Health check endpoint.
"""
from fastapi import APIRouter

router = APIRouter(tags=["Health"])


@router.get("/health", summary="Health Check")
def health():
    """Liveness probe. Does not touch upstream pricing sources."""
    return {"status": "ok"}
