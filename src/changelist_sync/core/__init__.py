"""Contentful HTTP client and async helpers."""

from .async_utils import join, run_sync
from .client import ContentfulClient, create_client

__all__ = ["ContentfulClient", "create_client", "join", "run_sync"]
