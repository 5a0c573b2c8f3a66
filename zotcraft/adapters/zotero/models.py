"""Pydantic models for the Zotero Web API (v3)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, Field, field_validator

GROUP_PREFIX = "group:"


class ZoteroCreator(BaseModel):
    """A creator entry: either a single ``name`` or a first/last pair."""

    creator_type: str = Field(default="author", alias="creatorType")
    first_name: str | None = Field(default=None, alias="firstName")
    last_name: str | None = Field(default=None, alias="lastName")
    name: str | None = None

    model_config = {"populate_by_name": True, "extra": "ignore"}


class ZoteroTag(BaseModel):
    tag: str
    type: int | None = None

    model_config = {"extra": "ignore"}


class ZoteroItemData(BaseModel):
    """The ``data`` block of a Zotero item."""

    key: str = ""
    version: int = 0
    item_type: str = Field(default="", alias="itemType")
    title: str = ""
    creators: list[ZoteroCreator] = Field(default_factory=list)
    date: str | None = None
    date_added: str | None = Field(default=None, alias="dateAdded")
    publication_title: str | None = Field(default=None, alias="publicationTitle")
    url: str | None = None
    doi: str | None = Field(default=None, alias="DOI")
    abstract_note: str | None = Field(default=None, alias="abstractNote")
    tags: list[ZoteroTag] = Field(default_factory=list)

    model_config = {"populate_by_name": True, "extra": "ignore"}


class ZoteroItem(BaseModel):
    """A top-level Zotero item (bibliographic record)."""

    key: str
    version: int = 0
    data: ZoteroItemData
    meta: dict[str, Any] = Field(default_factory=dict)

    model_config = {"extra": "ignore"}


class ZoteroCollectionData(BaseModel):
    name: str
    parent_collection: str | None = Field(default=None, alias="parentCollection")

    model_config = {"populate_by_name": True, "extra": "ignore"}

    @field_validator("parent_collection", mode="before")
    @classmethod
    def _false_means_top_level(cls, value: Any) -> str | None:
        # Zotero sends ``false`` for top-level collections.
        if value in (None, False, ""):
            return None
        return str(value)


class ZoteroCollection(BaseModel):
    key: str
    data: ZoteroCollectionData

    model_config = {"extra": "ignore"}


class FolderSummary(BaseModel):
    """Folder entry used to populate a folder selection."""

    id: str
    name: str
    parent_id: str | None = None

    @classmethod
    def from_collection(cls, collection: ZoteroCollection) -> FolderSummary:
        return cls(
            id=collection.key,
            name=collection.data.name,
            parent_id=collection.data.parent_collection,
        )


class GroupFolders(BaseModel):
    """A group library and its folders (empty when they could not be fetched)."""

    group_id: str
    group_name: str
    folders: list[FolderSummary] = Field(default_factory=list)


@dataclass(frozen=True)
class FolderSelector:
    """Where to read records from.

    ``group_id`` set means a group library; ``collection_key`` narrows either
    library down to one folder. Neither set means the whole personal library.
    """

    group_id: str | None = None
    collection_key: str | None = None

    @classmethod
    def parse(cls, raw: str | None) -> FolderSelector:
        """Parse ``<key>``, ``group:<id>`` or ``group:<id>:<key>``."""
        value = (raw or "").strip()
        if not value:
            return cls()
        if value.startswith(GROUP_PREFIX):
            parts = value.split(":")
            group_id = parts[1].strip() if len(parts) > 1 else ""
            if not group_id:
                msg = f"Group folder selector is missing a group id: {value!r}"
                raise ValueError(msg)
            collection_key = parts[2].strip() if len(parts) > 2 else ""
            return cls(group_id=group_id, collection_key=collection_key or None)
        return cls(collection_key=value)

    def library_path(self, user_id: str) -> str:
        if self.group_id:
            return f"/groups/{self.group_id}"
        return f"/users/{user_id}"

    def items_path(self, user_id: str) -> str:
        base = self.library_path(user_id)
        if self.collection_key:
            return f"{base}/collections/{self.collection_key}/items/top"
        return f"{base}/items/top"
