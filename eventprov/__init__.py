"""Data model, storage, messaging and HTTP client for an event provenance registry."""

__version__ = "0.1.0"