"""Publish an MkDocs documentation tree to a Confluence space."""

__version__ = "1.4.0"
