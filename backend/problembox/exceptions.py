"""Error types shared by the API server and the client store.

Each error carries a stable machine-readable code and the HTTP status the
API answers with. ``to_dict`` produces the ``{error, message, details}``
envelope every failing endpoint returns.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    NODE_NOT_FOUND = "NODE_NOT_FOUND"
    INVALID_MOVE = "INVALID_MOVE"
    PROBLEM_NOT_FOUND = "PROBLEM_NOT_FOUND"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    DATABASE_ERROR = "DATABASE_ERROR"
    UNAUTHORIZED = "UNAUTHORIZED"
    RATE_LIMITED = "RATE_LIMITED"
    # Raised client-side when the API cannot be reached or answers non-2xx.
    REMOTE_ERROR = "REMOTE_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ProblemBoxException(Exception):
    """Base class; subclasses pin ``error_code`` and ``status_code``."""

    error_code: ErrorCode = ErrorCode.INTERNAL_ERROR
    status_code: int = 500

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.error_code.value,
            "message": self.message,
            "details": self.details,
        }


class NodeNotFoundError(ProblemBoxException):
    error_code = ErrorCode.NODE_NOT_FOUND
    status_code = 404

    def __init__(self, node_id: str):
        super().__init__(f"Node not found: {node_id}", {"node_id": node_id})


class ProblemNotFoundError(ProblemBoxException):
    error_code = ErrorCode.PROBLEM_NOT_FOUND
    status_code = 404

    def __init__(self, problem_id: str):
        super().__init__(f"Problem not found: {problem_id}", {"problem_id": problem_id})


class ValidationError(ProblemBoxException):
    """Rejected input. ``field`` names the offending request field when known."""

    error_code = ErrorCode.VALIDATION_ERROR
    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message, {"field": field} if field else None)


class InvalidMoveError(ProblemBoxException):
    """Target is the node itself, one of its descendants, or the node is the trash."""

    error_code = ErrorCode.INVALID_MOVE
    status_code = 400

    def __init__(self, node_id: str, target_folder_id: Optional[str], reason: str):
        super().__init__(
            f"Cannot move {node_id} into {target_folder_id}: {reason}",
            {"node_id": node_id, "target_folder_id": target_folder_id},
        )


class AuthenticationError(ProblemBoxException):
    error_code = ErrorCode.UNAUTHORIZED
    status_code = 401

    def __init__(self, message: str = "Invalid or missing authentication token"):
        super().__init__(message)


class DatabaseError(ProblemBoxException):
    error_code = ErrorCode.DATABASE_ERROR
    status_code = 500

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        super().__init__(message, {"original_error": str(original_error)} if original_error else None)


class RemoteError(ProblemBoxException):
    """A call to the Problem Box API failed.

    ``status_code`` is the HTTP status the server answered with, 502 for a
    transport failure, or 504 for a timeout.
    """

    error_code = ErrorCode.REMOTE_ERROR
    status_code = 502

    def __init__(self, message: str, status_code: int = 502, path: Optional[str] = None):
        super().__init__(message, {"path": path} if path else None, status_code=status_code)
