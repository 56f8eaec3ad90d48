"""Task ports."""

from .remote import TaskRemote, TaskRemoteError, TaskValidationError

__all__ = ["TaskRemote", "TaskRemoteError", "TaskValidationError"]
