"""Incremental static-site builder for Markdown document trees."""

__version__ = "0.1.0"
