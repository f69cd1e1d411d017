"""Offline emergency-response knowledge base with semantic retrieval."""

__version__ = "0.1.0"
