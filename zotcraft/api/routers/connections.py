"""Connectivity check endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from zotcraft.api.dependencies import get_config
from zotcraft.api.models.requests import ConnectionTestRequest
from zotcraft.api.models.responses import ConnectionStatus, success_response
from zotcraft.config import AppConfig
from zotcraft.services.connectivity import check_connections

router = APIRouter()


@router.post("/test")
async def run_connection_test(
    body: ConnectionTestRequest,
    request: Request,
    cfg: AppConfig = Depends(get_config),
):
    """Report whether each service accepts the given (or configured) credentials."""
    result = await check_connections(
        body.zotero.merged_with(cfg.zotero), body.craft.merged_with(cfg.craft)
    )
    return success_response(
        ConnectionStatus(**result),
        correlation_id=getattr(request.state, "correlation_id", None),
    )
