"""Map derived note fields onto a Craft collection's typed properties.

The property map is built as a fold: each semantic field contributes one
value, which is coerced according to the descriptor's ``FieldType`` and
merged into a fresh map. Nothing here performs I/O.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from functools import partial, reduce
from typing import TYPE_CHECKING, Any, assert_never

from zotcraft.adapters.craft.models import FieldType
from zotcraft.domain.exceptions import InvalidOptionError

if TYPE_CHECKING:
    from collections.abc import Mapping

    from zotcraft.adapters.craft.models import CollectionSchema, FieldDescriptor
    from zotcraft.services.note_text_builder import NoteFields

logger = logging.getLogger(__name__)

AUTHORS_FIELD = "Authors"
YEAR_FIELD = "Year"
JOURNAL_FIELD = "Journal"
URL_FIELD = "URL"
DATE_ADDED_FIELD = "Date added"
PUBLICATION_TYPE_FIELD = "Publication type"
TAGS_FIELD = "Tags"
READING_STATUS_FIELD = "Reading status"

READING_STATUS_SEED = "To Read"
READING_STATUS_FALLBACK_OPTION = "waiting"

_LEADING_INT_RE = re.compile(r"\s*([+-]?\d+)")


@dataclass(frozen=True)
class FieldContribution:
    """A value offered for the schema field with this human-readable name."""

    name: str
    value: Any


def semantic_contributions(fields: NoteFields) -> tuple[FieldContribution, ...]:
    return (
        FieldContribution(AUTHORS_FIELD, fields.authors),
        FieldContribution(YEAR_FIELD, fields.year),
        FieldContribution(JOURNAL_FIELD, fields.journal),
        FieldContribution(URL_FIELD, fields.url),
        FieldContribution(DATE_ADDED_FIELD, fields.date_added),
        FieldContribution(PUBLICATION_TYPE_FIELD, fields.item_type),
        FieldContribution(TAGS_FIELD, list(fields.tags)),
        FieldContribution(READING_STATUS_FIELD, READING_STATUS_SEED),
    )


def _coerce_number(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    match = _LEADING_INT_RE.match(str(value))
    return int(match.group(1)) if match else None


def _coerce_text(value: Any) -> str:
    if isinstance(value, list | tuple):
        return ", ".join(str(part) for part in value)
    return str(value)


def _find_option(options: tuple[str, ...], value: str) -> str | None:
    wanted = value.lower()
    for option in options:
        if option.lower() == wanted:
            return option
    return None


def _coerce_single_choice(descriptor: FieldDescriptor, value: Any) -> str:
    text = _coerce_text(value)
    option = _find_option(descriptor.options, text)
    if option is not None:
        return option
    if descriptor.name == READING_STATUS_FIELD and text == READING_STATUS_SEED:
        option = _find_option(descriptor.options, READING_STATUS_FALLBACK_OPTION)
        if option is not None:
            return option
    raise InvalidOptionError(descriptor.name, text, descriptor.options)


def _coerce_tag_choices(descriptor: FieldDescriptor, value: Any) -> list[str]:
    tags = value if isinstance(value, list | tuple) else [value]
    matched: list[str] = []
    for tag in tags:
        text = str(tag)
        option = _find_option(descriptor.options, text.removeprefix("#"))
        if option is not None and option not in matched:
            matched.append(option)
    if not matched:
        raise InvalidOptionError(descriptor.name, list(tags), descriptor.options)
    return matched


def _split_multi_value(value: Any) -> list[str]:
    if isinstance(value, list | tuple):
        return [str(part) for part in value]
    if isinstance(value, str) and "," in value:
        return [part.strip() for part in value.split(",") if part.strip()]
    return [str(value)]


def _coerce_multi_choice(descriptor: FieldDescriptor, value: Any) -> list[str]:
    values = _split_multi_value(value)
    if not descriptor.options:
        return values
    # A non-empty option set is a closed vocabulary.
    kept = [option for v in values if (option := _find_option(descriptor.options, v)) is not None]
    if not kept:
        raise InvalidOptionError(descriptor.name, values, descriptor.options)
    return kept


def coerce_value(descriptor: FieldDescriptor, value: Any) -> Any | None:
    """Coerce ``value`` to what ``descriptor`` accepts.

    Returns:
        The coerced value, or None when it cannot be represented

    Raises:
        InvalidOptionError: If a choice field has no matching option
    """
    match descriptor.type:
        case FieldType.NUMBER:
            return _coerce_number(value)
        case FieldType.URL | FieldType.SHORT_TEXT | FieldType.LONG_TEXT:
            return _coerce_text(value)
        case FieldType.DATE:
            return str(value)
        case FieldType.SINGLE_CHOICE:
            return _coerce_single_choice(descriptor, value)
        case FieldType.MULTI_CHOICE:
            if descriptor.name == TAGS_FIELD:
                return _coerce_tag_choices(descriptor, value)
            return _coerce_multi_choice(descriptor, value)
        case _:
            assert_never(descriptor.type)


def apply_contribution(
    properties: Mapping[str, Any],
    contribution: FieldContribution,
    *,
    schema: CollectionSchema,
) -> dict[str, Any]:
    """Return ``properties`` extended with ``contribution`` when the schema accepts it."""
    descriptor = schema.get(contribution.name)
    if descriptor is None or not contribution.value:
        return dict(properties)

    try:
        coerced = coerce_value(descriptor, contribution.value)
    except InvalidOptionError as e:
        logger.warning(
            "craft_property_invalid_option",
            extra={"field": e.field_name, "value": e.value, "options": list(e.options)},
        )
        return dict(properties)

    if coerced is None:
        logger.debug(
            "craft_property_uncoercible",
            extra={"field": descriptor.name, "type": descriptor.type.value},
        )
        return dict(properties)
    return {**properties, descriptor.key: coerced}


def map_properties(fields: NoteFields, schema: CollectionSchema) -> dict[str, Any]:
    """Build the property map for a collection item, keyed by field key."""
    return reduce(
        partial(apply_contribution, schema=schema),
        semantic_contributions(fields),
        {},
    )
