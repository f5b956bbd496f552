"""
Error types raised by the client services.

Every error carries a short ``message`` and a ``long_message`` suitable
for returning to API callers, plus the HTTP status code the endpoints
translate it into.  Services never build HTTP responses themselves;
endpoints catch ``ClientError`` and raise ``HTTPException`` from it.
"""

from typing import Any, Dict, Optional

from fastapi import status


class ClientError(Exception):
    """Base class for all client lane errors."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Internal server error"

    def __init__(self, long_message: str, message: Optional[str] = None) -> None:
        super().__init__(long_message)
        self.long_message = long_message
        if message is not None:
            self.message = message

    def to_detail(self) -> Dict[str, Any]:
        return {"message": self.message, "long_message": self.long_message}


class ClientNotFoundError(ClientError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "Invalid id provided."


class InvalidStatusError(ClientError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Invalid status provided."


class InvalidPriorityError(ClientError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Invalid priority provided."


class MissingPriorityError(ClientError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Priority is required"


class PreconditionViolationError(ClientError):
    """The stored lane order does not match the record being moved.

    Raised instead of guessing a repair; the lanes need inspecting.
    """

    status_code = status.HTTP_409_CONFLICT
    message = "Client ordering is inconsistent."


class InternalStoreError(ClientError):
    """Persistence failed; any partial batch has been rolled back."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Internal server error"
