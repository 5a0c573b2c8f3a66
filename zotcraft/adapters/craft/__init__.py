from zotcraft.adapters.craft.client import CraftClient
from zotcraft.adapters.craft.models import (
    CollectionSchema,
    CraftCollection,
    CreatedItem,
    FieldDescriptor,
    FieldType,
)

__all__ = [
    "CollectionSchema",
    "CraftClient",
    "CraftCollection",
    "CreatedItem",
    "FieldDescriptor",
    "FieldType",
]
