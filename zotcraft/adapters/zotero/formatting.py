"""Pure helpers that turn Zotero fields into display strings."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from zotcraft.adapters.zotero.models import ZoteroCreator

UNKNOWN_AUTHOR = "Unknown Author"

_YEAR_RE = re.compile(r"\d{4}")


def creator_display_name(creator: ZoteroCreator) -> str:
    if creator.name:
        return creator.name
    return f"{creator.first_name or ''} {creator.last_name or ''}".strip()


def format_authors(creators: Sequence[ZoteroCreator] | None) -> str:
    """Join creator names with ``", "``; ``"Unknown Author"`` when there are none."""
    if not creators:
        return UNKNOWN_AUTHOR
    return ", ".join(creator_display_name(creator) for creator in creators)


def extract_year(date: str | None) -> str:
    """Return the first four-digit run of ``date``, else ``date`` itself, else ``""``."""
    if not date:
        return ""
    match = _YEAR_RE.search(date)
    return match.group(0) if match else date
