"""Zotero Web API client."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, TypeVar

import httpx

from zotcraft.adapters.zotero.models import (
    FolderSelector,
    FolderSummary,
    GroupFolders,
    ZoteroCollection,
    ZoteroItem,
)
from zotcraft.core.backoff import (
    DEFAULT_BASE_DELAY,
    DEFAULT_MAX_DELAY,
    DEFAULT_MAX_RETRIES,
    retry_with_backoff,
)
from zotcraft.core.http_utils import (
    decode_json,
    is_retryable_upstream_error,
    upstream_error_from_response,
    upstream_error_from_transport,
)
from zotcraft.domain.exceptions import UpstreamUnavailableError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable
    from typing import Self

    from zotcraft.config import ZoteroConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")

ZOTERO_API_VERSION = "3"
MAX_PAGE_SIZE = 100
SERVICE_NAME = "Zotero"


class ZoteroClient:
    """Async HTTP client for the Zotero Web API."""

    # Default per-endpoint timeouts (seconds)
    DEFAULT_TIMEOUTS: dict[str, float] = {
        "list_target_records": 30.0,
        "list_folders": 20.0,
        "list_groups": 20.0,
        "list_group_folders": 20.0,
        "health_check": 10.0,
    }

    def __init__(
        self,
        api_url: str,
        api_key: str,
        user_id: str,
        timeout: float = 30.0,
        *,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_base_delay: float = DEFAULT_BASE_DELAY,
        retry_max_delay: float = DEFAULT_MAX_DELAY,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize Zotero client.

        Args:
            api_url: Base URL for the Zotero API (e.g. https://api.zotero.org)
            api_key: Zotero API key
            user_id: Numeric Zotero user ID owning the personal library
            timeout: Default request timeout in seconds
            max_retries: Maximum number of retry attempts for transient read failures
            retry_base_delay: Base delay between retries in seconds
            retry_max_delay: Maximum delay between retries in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.api_url = api_url.rstrip("/")
        self.api_key = api_key
        self.user_id = user_id
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_base_delay = retry_base_delay
        self.retry_max_delay = retry_max_delay
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @classmethod
    def from_config(
        cls, config: ZoteroConfig, *, transport: httpx.AsyncBaseTransport | None = None
    ) -> ZoteroClient:
        return cls(
            api_url=config.api_url,
            api_key=config.api_key,
            user_id=config.user_id,
            timeout=float(config.timeout_sec),
            transport=transport,
        )

    def get_timeout(self, endpoint: str) -> float:
        return min(self.DEFAULT_TIMEOUTS.get(endpoint, self.timeout), self.timeout)

    async def __aenter__(self) -> Self:
        """Enter async context."""
        self._client = httpx.AsyncClient(
            base_url=self.api_url,
            headers={
                "Zotero-API-Key": self.api_key,
                "Zotero-API-Version": ZOTERO_API_VERSION,
                "Accept": "application/json",
            },
            timeout=self.timeout,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *args: object) -> None:
        """Exit async context."""
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def client(self) -> httpx.AsyncClient:
        """Get the HTTP client."""
        if self._client is None:
            raise RuntimeError("Client not initialized. Use async context manager.")
        return self._client

    async def _with_retry(self, func: Callable[[], Awaitable[T]], operation_name: str) -> T:
        return await retry_with_backoff(
            func,
            is_retryable=is_retryable_upstream_error,
            max_retries=self.max_retries,
            base_delay=self.retry_base_delay,
            max_delay=self.retry_max_delay,
            operation_name=f"zotero.{operation_name}",
        )

    async def _get_json(
        self,
        path: str,
        *,
        what: str,
        operation: str,
        params: dict[str, Any] | None = None,
    ) -> Any:
        timeout = self.get_timeout(operation)

        async def _fetch() -> Any:
            try:
                response = await self.client.get(path, params=params, timeout=timeout)
            except httpx.HTTPError as exc:
                raise upstream_error_from_transport(
                    exc, service=SERVICE_NAME, base_url=self.api_url
                ) from exc
            if not response.is_success:
                raise upstream_error_from_response(response, service=SERVICE_NAME, what=what)
            return decode_json(response, service=SERVICE_NAME, what=what)

        return await self._with_retry(_fetch, operation)

    async def list_target_records(
        self, selector: FolderSelector | str | None, limit: int = 50
    ) -> list[ZoteroItem]:
        """List top-level records in a folder or library, newest-modified first.

        Args:
            selector: Folder selector (parsed or raw ``group:<id>[:<key>]`` / ``<key>``)
            limit: Maximum number of records to return (capped at 100)

        Returns:
            Records in upstream order

        Raises:
            UpstreamUnavailableError: On network failure or non-2xx response
        """
        if not isinstance(selector, FolderSelector):
            selector = FolderSelector.parse(selector)
        bounded = max(1, min(int(limit), MAX_PAGE_SIZE))
        payload = await self._get_json(
            selector.items_path(self.user_id),
            what="Zotero items",
            operation="list_target_records",
            params={"limit": bounded, "sort": "dateModified", "direction": "desc"},
        )
        items = [ZoteroItem.model_validate(raw) for raw in payload or []]
        logger.info(
            "zotero_records_fetched",
            extra={
                "group_id": selector.group_id,
                "collection_key": selector.collection_key,
                "limit": bounded,
                "count": len(items),
            },
        )
        return items

    async def list_folders(self) -> list[FolderSummary]:
        """List folders (collections) of the personal library."""
        payload = await self._get_json(
            f"/users/{self.user_id}/collections",
            what="Zotero collections",
            operation="list_folders",
        )
        return [
            FolderSummary.from_collection(ZoteroCollection.model_validate(raw))
            for raw in payload or []
        ]

    async def _list_group_folders(self, group_id: str) -> list[FolderSummary]:
        payload = await self._get_json(
            f"/groups/{group_id}/collections",
            what=f"collections for group {group_id}",
            operation="list_group_folders",
        )
        return [
            FolderSummary.from_collection(ZoteroCollection.model_validate(raw))
            for raw in payload or []
        ]

    async def list_groups_with_folders(self) -> list[GroupFolders]:
        """List the user's groups with their folders.

        A failure to list the groups raises; a failure to list one group's
        folders only empties that group's folder list.
        """
        groups = await self._get_json(
            f"/users/{self.user_id}/groups",
            what="groups",
            operation="list_groups",
        )

        async def _with_folders(group: dict[str, Any]) -> GroupFolders:
            group_id = str(group.get("id", ""))
            group_name = str((group.get("data") or {}).get("name", ""))
            try:
                folders = await self._list_group_folders(group_id)
            except UpstreamUnavailableError as e:
                logger.warning(
                    "zotero_group_folders_failed",
                    extra={"group_id": group_id, "error": str(e)},
                )
                folders = []
            return GroupFolders(group_id=group_id, group_name=group_name, folders=folders)

        return list(await asyncio.gather(*(_with_folders(group) for group in groups or [])))

    async def health_check(self) -> bool:
        """Check that the key can read the personal library."""
        try:
            await self._get_json(
                f"/users/{self.user_id}/items",
                what="Zotero items",
                operation="health_check",
                params={"limit": 1},
            )
            return True
        except UpstreamUnavailableError as e:
            logger.warning("zotero_health_check_failed", extra={"error": str(e)})
            return False
