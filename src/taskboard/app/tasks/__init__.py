"""Task store package."""

from .store import CREATE_FALLBACK_MESSAGE, TaskOpResult, TaskStore

__all__ = ["CREATE_FALLBACK_MESSAGE", "TaskOpResult", "TaskStore"]
