"""Liveness endpoint."""

from __future__ import annotations

from datetime import UTC, datetime

from fastapi import APIRouter, Request

from zotcraft.api.models.responses import success_response

router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    """Health check endpoint."""
    return success_response(
        {
            "status": "healthy",
            "timestamp": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
        },
        correlation_id=getattr(request.state, "correlation_id", None),
    )
