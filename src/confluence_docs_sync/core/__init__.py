"""Confluence REST client and async helpers shared by the sync engine."""

from .async_utils import run_sync
from .client import ConfluenceClient

__all__ = ["ConfluenceClient", "run_sync"]
