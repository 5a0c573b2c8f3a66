"""Zotero to Craft synchronization."""

__version__ = "0.1.0"
