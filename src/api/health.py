"""Health check endpoint."""

from fastapi import APIRouter

router = APIRouter()


@router.get("/health")
def health():
    """Liveness probe; does not contact any model provider."""
    return {"status": "ok"}
