"""Planlink - link plan items into a dependency graph and derive their dates."""

__version__ = "0.1.0"
