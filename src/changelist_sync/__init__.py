"""Merge a Contentful changelist into a full sync snapshot."""

__version__ = "0.1.0"
