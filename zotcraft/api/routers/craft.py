"""Craft collection listing endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from zotcraft.adapters.craft.client import CraftClient
from zotcraft.api.dependencies import get_config
from zotcraft.api.exceptions import MissingCredentialsError
from zotcraft.api.models.requests import CraftCredentials
from zotcraft.api.models.responses import CraftCollectionListResponse, success_response
from zotcraft.config import AppConfig

router = APIRouter()


@router.post("/collections")
async def list_collections(
    request: Request,
    body: CraftCredentials | None = None,
    cfg: AppConfig = Depends(get_config),
):
    """List collections available as sync targets."""
    config = (body or CraftCredentials()).merged_with(cfg.craft)
    if not config.configured:
        raise MissingCredentialsError("Craft", ["apiKey"])

    async with CraftClient.from_config(config) as client:
        collections = await client.list_collections()
    return success_response(
        CraftCollectionListResponse(
            collections=[collection.model_dump() for collection in collections]
        ),
        correlation_id=getattr(request.state, "correlation_id", None),
    )
