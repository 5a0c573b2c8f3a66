"""Zotero folder listing endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from zotcraft.adapters.zotero.client import ZoteroClient
from zotcraft.api.dependencies import get_config
from zotcraft.api.exceptions import MissingCredentialsError
from zotcraft.api.models.requests import ZoteroCredentials
from zotcraft.api.models.responses import FolderListResponse, GroupListResponse, success_response
from zotcraft.config import AppConfig, ZoteroConfig

router = APIRouter()


def _resolve(body: ZoteroCredentials | None, cfg: AppConfig) -> ZoteroConfig:
    config = (body or ZoteroCredentials()).merged_with(cfg.zotero)
    if not config.configured:
        raise MissingCredentialsError("Zotero", ["apiKey", "userId"])
    return config


@router.post("/collections")
async def list_collections(
    request: Request,
    body: ZoteroCredentials | None = None,
    cfg: AppConfig = Depends(get_config),
):
    """List folders of the personal library."""
    async with ZoteroClient.from_config(_resolve(body, cfg)) as client:
        folders = await client.list_folders()
    return success_response(
        FolderListResponse(folders=[folder.model_dump() for folder in folders]),
        correlation_id=getattr(request.state, "correlation_id", None),
    )


@router.post("/groups")
async def list_groups(
    request: Request,
    body: ZoteroCredentials | None = None,
    cfg: AppConfig = Depends(get_config),
):
    """List group libraries with their folders."""
    async with ZoteroClient.from_config(_resolve(body, cfg)) as client:
        groups = await client.list_groups_with_folders()
    return success_response(
        GroupListResponse(groups=[group.model_dump() for group in groups]),
        correlation_id=getattr(request.state, "correlation_id", None),
    )
