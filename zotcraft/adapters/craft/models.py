"""Pydantic models for the Craft Connect API."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)


class FieldType(StrEnum):
    """Closed set of collection property types, keyed by their wire names."""

    SHORT_TEXT = "text"
    LONG_TEXT = "richText"
    NUMBER = "number"
    URL = "url"
    DATE = "date"
    SINGLE_CHOICE = "select"
    MULTI_CHOICE = "multiSelect"


class FieldDescriptor(BaseModel):
    """One typed property of a collection; ``name`` is the mapping key."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    key: str
    name: str
    type: FieldType
    options: tuple[str, ...] = ()

    @field_validator("options", mode="before")
    @classmethod
    def _normalize_options(cls, value: Any) -> tuple[str, ...]:
        if not value:
            return ()
        names: list[str] = []
        for option in value:
            if isinstance(option, dict):
                option = option.get("name") or option.get("value")
            if option not in (None, ""):
                names.append(str(option))
        return tuple(names)


@dataclass(frozen=True)
class CollectionSchema:
    """Ordered field descriptors of a destination collection."""

    fields: tuple[FieldDescriptor, ...] = ()

    def get(self, name: str) -> FieldDescriptor | None:
        for descriptor in self.fields:
            if descriptor.name == name:
                return descriptor
        return None

    def __len__(self) -> int:
        return len(self.fields)

    @classmethod
    def empty(cls) -> CollectionSchema:
        return cls()

    @classmethod
    def from_properties(cls, properties: list[dict[str, Any]]) -> CollectionSchema:
        """Build a schema, dropping descriptors that are malformed or of an unknown type."""
        fields: list[FieldDescriptor] = []
        for raw in properties:
            if not isinstance(raw, dict):
                logger.warning("craft_schema_malformed_field", extra={"field": repr(raw)})
                continue
            raw_type = raw.get("type")
            if not isinstance(raw_type, str) or raw_type not in FieldType._value2member_map_:
                logger.warning(
                    "craft_schema_unsupported_field_type",
                    extra={"field": raw.get("name"), "type": raw_type},
                )
                continue
            try:
                fields.append(FieldDescriptor.model_validate(raw))
            except ValidationError as e:
                logger.warning(
                    "craft_schema_malformed_field",
                    extra={"field": raw.get("name"), "error": str(e)},
                )
        return cls(fields=tuple(fields))


class CraftCollection(BaseModel):
    id: str
    name: str = ""

    model_config = {"extra": "ignore"}

    @field_validator("name", mode="before")
    @classmethod
    def _coerce_name(cls, value: Any) -> str:
        return str(value or "")


class CraftBlock(BaseModel):
    """A block as returned when listing a document."""

    id: str | None = None
    type: str = "text"
    markdown: str | None = None

    model_config = {"extra": "ignore"}


@dataclass(frozen=True)
class CreatedItem:
    """Identifier of a created item or subpage, and whether its body made it."""

    id: str
    content_attached: bool = True


class TextBlock(BaseModel):
    type: str = "text"
    markdown: str


class PageBlock(BaseModel):
    type: str = "page"
    text_style: str = Field(default="card", serialization_alias="textStyle")
    markdown: str
    content: list[TextBlock] = Field(default_factory=list)


class BlockPosition(BaseModel):
    position: str = "end"
    page_id: str = Field(serialization_alias="pageId")


class InsertBlocksRequest(BaseModel):
    """Request body for ``POST /blocks``."""

    blocks: list[TextBlock | PageBlock]
    position: BlockPosition


class NewCollectionItem(BaseModel):
    title: str
    properties: dict[str, Any] = Field(default_factory=dict)


class CreateCollectionItemsRequest(BaseModel):
    """Request body for ``POST /collections/{id}/items``."""

    items: list[NewCollectionItem]
