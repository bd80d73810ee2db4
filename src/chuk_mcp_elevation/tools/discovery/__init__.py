"""Tile index discovery tools."""

from .api import register_discovery_tools

__all__ = ["register_discovery_tools"]
