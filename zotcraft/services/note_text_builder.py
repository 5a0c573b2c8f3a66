"""Helpers for deriving note fields from a Zotero record and rendering the note body."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from zotcraft.adapters.zotero.formatting import extract_year, format_authors

if TYPE_CHECKING:
    from collections.abc import Iterable

    from zotcraft.adapters.zotero.models import ZoteroItem

logger = logging.getLogger(__name__)

UNTITLED = "Untitled"
NO_ABSTRACT = "No abstract available."

# Scaffold sections a Craft-side template relies on; order matters.
SCAFFOLD_SECTIONS = ("Key Ideas", "Quotes", "Critique", "Related Work")

_WHITESPACE_RE = re.compile(r"\s+")
_INTERNAL_CAPITAL_RE = re.compile(r"(?<=.)([A-Z])")


@dataclass(frozen=True)
class NoteFields:
    """Display values derived from one record, shared by the body and the property map."""

    authors: str
    year: str
    journal: str
    url: str
    date_added: str
    item_type: str
    tags: tuple[str, ...]
    abstract: str


def record_title(item: ZoteroItem) -> str:
    title = item.data.title
    return title if title.strip() else UNTITLED


def normalize_item_type_label(raw_type: str | None) -> str:
    """Turn a compact type tag into a label, e.g. ``journalArticle`` -> ``Journal Article``."""
    spaced = _INTERNAL_CAPITAL_RE.sub(r" \1", raw_type or "")
    return (spaced[:1].upper() + spaced[1:]).strip()


def render_tag_list(tags: Iterable[str]) -> tuple[str, ...]:
    """Render tags as ``#word_word`` hashtags, skipping blank ones."""
    rendered: list[str] = []
    for tag in tags:
        cleaned = tag.strip()
        if cleaned:
            rendered.append("#" + _WHITESPACE_RE.sub("_", cleaned))
    return tuple(rendered)


def format_date_added(raw: str | None) -> str:
    """Render an ISO timestamp as its UTC calendar date (``YYYY-MM-DD``)."""
    if not raw:
        return ""
    try:
        parsed = datetime.fromisoformat(raw.strip())
    except ValueError:
        logger.debug("zotero_date_added_unparseable", extra={"value": raw})
        return ""
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC).date().isoformat()


def derive_note_fields(item: ZoteroItem) -> NoteFields:
    data = item.data
    return NoteFields(
        authors=format_authors(data.creators),
        year=extract_year(data.date),
        journal=data.publication_title or "",
        url=data.url or data.doi or "",
        date_added=format_date_added(data.date_added),
        item_type=normalize_item_type_label(data.item_type),
        tags=render_tag_list(tag.tag for tag in data.tags),
        abstract=data.abstract_note or "",
    )


def render_note_body(fields: NoteFields) -> str:
    """Render the Markdown body of a literature note.

    The header block lists the bibliographic fields, followed by the abstract
    and one empty bullet per scaffold section for the reader to fill in.
    """
    lines = [
        f"**Authors:** {fields.authors}",
        f"**Year:** {fields.year}",
        f"**Journal:** {fields.journal}",
        f"**Link:** {fields.url}",
        f"**Date Added:** {fields.date_added}",
        f"**Publication Type:** {fields.item_type}",
        f"**Tags:** {' '.join(fields.tags)}",
        "",
        "**Abstract:**",
        fields.abstract or NO_ABSTRACT,
    ]
    for section in SCAFFOLD_SECTIONS:
        lines.extend(["", f"## {section}", "- "])
    return "\n".join(lines) + "\n"
