# ABOUTME: API routes for service health.
# ABOUTME: Health check used by the load balancer.

from fastapi import APIRouter
from pydantic import BaseModel

router = APIRouter(prefix="/api", tags=["api"])


class HealthResponse(BaseModel):
    """Response model for health check."""

    status: str
    version: str = "0.1.0"


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint for load balancer."""
    return HealthResponse(status="healthy")
