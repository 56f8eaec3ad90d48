"""Task board client: REST-backed task store and terminal renderer."""

__version__ = "0.1.0"
