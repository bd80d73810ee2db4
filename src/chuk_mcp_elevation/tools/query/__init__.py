"""Elevation query tools."""

from .api import register_query_tools

__all__ = ["register_query_tools"]
