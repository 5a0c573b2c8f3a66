"""Craft Connect API client."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, TypeVar

import httpx

from zotcraft.adapters.craft.models import (
    BlockPosition,
    CollectionSchema,
    CraftBlock,
    CraftCollection,
    CreateCollectionItemsRequest,
    CreatedItem,
    InsertBlocksRequest,
    NewCollectionItem,
    PageBlock,
    TextBlock,
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
from zotcraft.core.logging_utils import truncate_log_content
from zotcraft.domain.exceptions import (
    ContentAttachFailedError,
    CreateFailedError,
    UpstreamUnavailableError,
)

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Sequence
    from typing import Self

    from zotcraft.config import CraftConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")

SERVICE_NAME = "Craft"
PAGE_BLOCK_TYPE = "page"


def _entries(payload: Any, key: str) -> list[dict[str, Any]]:
    """JSON objects listed under ``payload[key]``; anything else is ignored."""
    if not isinstance(payload, dict):
        return []
    entries = payload.get(key)
    if not isinstance(entries, list):
        return []
    return [entry for entry in entries if isinstance(entry, dict)]


def _created_id(response: httpx.Response) -> str | None:
    try:
        payload = response.json()
    except ValueError:
        return None
    items = _entries(payload, "items")
    item_id = items[0].get("id") if items else None
    return str(item_id) if item_id else None


class CraftClient:
    """Async HTTP client for the Craft Connect API."""

    # Default per-endpoint timeouts (seconds)
    DEFAULT_TIMEOUTS: dict[str, float] = {
        "get_collection_schema": 15.0,
        "list_collections": 20.0,
        "list_collection_items": 20.0,
        "get_document": 20.0,
        "create_collection_item": 30.0,
        "insert_blocks": 30.0,
        "health_check": 10.0,
    }

    def __init__(
        self,
        api_url: str,
        api_key: str,
        timeout: float = 30.0,
        *,
        parent_document_id: str | None = None,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_base_delay: float = DEFAULT_BASE_DELAY,
        retry_max_delay: float = DEFAULT_MAX_DELAY,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize Craft client.

        Args:
            api_url: Base URL of the Craft Connect API for the space
            api_key: Bearer token
            timeout: Default request timeout in seconds
            parent_document_id: Document that receives subpages when no collection is used
            max_retries: Maximum number of retry attempts for transient read failures
            retry_base_delay: Base delay between retries in seconds
            retry_max_delay: Maximum delay between retries in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.api_url = api_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.parent_document_id = parent_document_id
        self.max_retries = max_retries
        self.retry_base_delay = retry_base_delay
        self.retry_max_delay = retry_max_delay
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @classmethod
    def from_config(
        cls, config: CraftConfig, *, transport: httpx.AsyncBaseTransport | None = None
    ) -> CraftClient:
        return cls(
            api_url=config.api_url,
            api_key=config.api_key,
            timeout=float(config.timeout_sec),
            parent_document_id=config.parent_document_id,
            transport=transport,
        )

    def get_timeout(self, endpoint: str) -> float:
        return min(self.DEFAULT_TIMEOUTS.get(endpoint, self.timeout), self.timeout)

    async def __aenter__(self) -> Self:
        """Enter async context."""
        self._client = httpx.AsyncClient(
            base_url=self.api_url,
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
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
            operation_name=f"craft.{operation_name}",
        )

    async def _get_json(self, path: str, *, what: str, operation: str) -> Any:
        timeout = self.get_timeout(operation)

        async def _fetch() -> Any:
            try:
                response = await self.client.get(path, timeout=timeout)
            except httpx.HTTPError as exc:
                raise upstream_error_from_transport(
                    exc, service=SERVICE_NAME, base_url=self.api_url
                ) from exc
            if not response.is_success:
                raise upstream_error_from_response(response, service=SERVICE_NAME, what=what)
            return decode_json(response, service=SERVICE_NAME, what=what)

        return await self._with_retry(_fetch, operation)

    async def _post(self, path: str, body: dict[str, Any], *, operation: str) -> httpx.Response:
        # Writes are never retried.
        try:
            return await self.client.post(path, json=body, timeout=self.get_timeout(operation))
        except httpx.HTTPError as exc:
            error = upstream_error_from_transport(exc, service=SERVICE_NAME, base_url=self.api_url)
            raise CreateFailedError(error.message) from exc

    async def get_collection_schema(self, collection_id: str) -> CollectionSchema | None:
        """Fetch the typed properties of a collection.

        Returns:
            The schema, or None when the collection exposes no property list

        Raises:
            UpstreamUnavailableError: On network failure or non-2xx response
        """
        payload = await self._get_json(
            f"/collections/{collection_id}/schema",
            what="Craft collection schema",
            operation="get_collection_schema",
        )
        properties = payload.get("properties") if isinstance(payload, dict) else None
        if not isinstance(properties, list):
            logger.info("craft_schema_absent", extra={"collection_id": collection_id})
            return None
        schema = CollectionSchema.from_properties(properties)
        logger.debug(
            "craft_schema_fetched",
            extra={
                "collection_id": collection_id,
                "fields": [descriptor.name for descriptor in schema.fields],
            },
        )
        return schema

    async def list_collections(self) -> list[CraftCollection]:
        """List collections available in the space."""
        payload = await self._get_json(
            "/collections", what="Craft collections", operation="list_collections"
        )
        return [CraftCollection.model_validate(raw) for raw in _entries(payload, "items")]

    async def item_exists_by_title(
        self,
        title: str,
        *,
        collection_id: str | None = None,
        parent_document_id: str | None = None,
    ) -> bool:
        """Check whether a note with this title already exists.

        Looks in the collection when given, else among the page blocks of the
        parent document. Titles are compared after trimming. Any fetch error
        counts as "not found".
        """
        wanted = title.strip()
        parent_document_id = parent_document_id or self.parent_document_id
        try:
            if collection_id:
                payload = await self._get_json(
                    f"/collections/{collection_id}/items",
                    what="Craft collection items",
                    operation="list_collection_items",
                )
                return any(
                    str(item.get("title") or "").strip() == wanted
                    for item in _entries(payload, "items")
                )
            if parent_document_id:
                payload = await self._get_json(
                    f"/documents/{parent_document_id}",
                    what="Craft document",
                    operation="get_document",
                )
                blocks = [CraftBlock.model_validate(raw) for raw in _entries(payload, "blocks")]
                return any(
                    block.type == PAGE_BLOCK_TYPE and (block.markdown or "").strip() == wanted
                    for block in blocks
                )
        except (UpstreamUnavailableError, ValueError) as e:
            logger.warning(
                "craft_existence_check_failed",
                extra={
                    "collection_id": collection_id,
                    "parent_document_id": parent_document_id,
                    "error": str(e),
                },
            )
        return False

    async def _insert_blocks(
        self, page_id: str, blocks: Sequence[TextBlock | PageBlock]
    ) -> httpx.Response:
        request = InsertBlocksRequest(blocks=list(blocks), position=BlockPosition(page_id=page_id))
        return await self._post(
            "/blocks", request.model_dump(by_alias=True), operation="insert_blocks"
        )

    async def _attach_content(self, item_id: str, body: str) -> None:
        try:
            response = await self._insert_blocks(item_id, [TextBlock(markdown=body)])
        except CreateFailedError as exc:
            raise ContentAttachFailedError(exc.message, item_id=item_id) from exc
        if not response.is_success:
            raise ContentAttachFailedError(
                f"Failed to populate content for item {item_id}: "
                f"{response.status_code} {truncate_log_content(response.text)}",
                item_id=item_id,
                status_code=response.status_code,
            )

    async def create_collection_item(
        self,
        collection_id: str,
        title: str,
        body: str,
        properties: dict[str, Any] | None = None,
    ) -> CreatedItem:
        """Create a collection item, then attach the note body under it.

        Args:
            collection_id: Target collection
            title: Item title (the deduplication key)
            body: Markdown note body
            properties: Property map keyed by field key

        Returns:
            The created item; ``content_attached`` is False when only step 1 succeeded

        Raises:
            CreateFailedError: If the item itself could not be created
        """
        request = CreateCollectionItemsRequest(
            items=[NewCollectionItem(title=title, properties=dict(properties or {}))]
        )
        response = await self._post(
            f"/collections/{collection_id}/items",
            request.model_dump(),
            operation="create_collection_item",
        )
        if not response.is_success:
            raise CreateFailedError(
                f"Failed to create Craft collection item: {response.status_code} {response.text}",
                status_code=response.status_code,
                body=response.text,
            )

        item_id = _created_id(response)
        if not item_id:
            raise CreateFailedError("Created item ID not found", status_code=response.status_code)

        try:
            await self._attach_content(item_id, body)
        except ContentAttachFailedError as e:
            logger.warning(
                "craft_content_attach_failed",
                extra={
                    "collection_id": collection_id,
                    "item_id": item_id,
                    "status_code": e.status_code,
                    "error": e.message,
                },
            )
            return CreatedItem(id=item_id, content_attached=False)

        logger.info(
            "craft_collection_item_created",
            extra={"collection_id": collection_id, "item_id": item_id},
        )
        return CreatedItem(id=item_id)

    async def create_subpage(self, title: str, body: str, tags: Sequence[str] = ()) -> CreatedItem:
        """Append a card-style page block under the parent document.

        Tags are expected to be rendered into ``body`` already.

        Raises:
            CreateFailedError: If no parent document is configured or Craft rejects the block
        """
        if not self.parent_document_id:
            raise CreateFailedError("No Craft parent document configured for subpages")

        page = PageBlock(markdown=title, content=[TextBlock(markdown=body)])
        response = await self._insert_blocks(self.parent_document_id, [page])
        if not response.is_success:
            raise CreateFailedError(
                f"Failed to create Craft note: {response.status_code} {response.text}",
                status_code=response.status_code,
                body=response.text,
            )

        block_id = _created_id(response) or "unknown"
        logger.info(
            "craft_subpage_created",
            extra={
                "parent_document_id": self.parent_document_id,
                "block_id": block_id,
                "tags": list(tags),
            },
        )
        return CreatedItem(id=block_id)

    async def health_check(self) -> bool:
        """Check that the token can list collections."""
        try:
            await self.list_collections()
            return True
        except UpstreamUnavailableError as e:
            logger.warning("craft_health_check_failed", extra={"error": str(e)})
            return False
