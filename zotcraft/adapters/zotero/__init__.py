"""Zotero adapter: reads bibliographic records and folder listings."""

from zotcraft.adapters.zotero.client import ZoteroClient
from zotcraft.adapters.zotero.formatting import extract_year, format_authors
from zotcraft.adapters.zotero.models import FolderSelector, ZoteroItem

__all__ = ["FolderSelector", "ZoteroClient", "ZoteroItem", "extract_year", "format_authors"]
