"""Task remote adapters."""

from .rest_remote import DEFAULT_TIMEOUT, RestTaskRemote

__all__ = ["DEFAULT_TIMEOUT", "RestTaskRemote"]
