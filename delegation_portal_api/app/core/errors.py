"""
Domain errors raised by the service layer.

Each error carries the HTTP status code the API layer answers with, so
endpoints can translate any of them with a single ``except`` clause.
Store failures (``sqlite3.Error``) are not wrapped: they
propagate unchanged to the caller.
"""

from fastapi import HTTPException, status


class OperationError(Exception):
    """Base class for authorization and lookup failures."""

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail

    def to_http(self) -> HTTPException:
        """Return the matching ``HTTPException`` for the API layer."""
        headers = None
        if self.status_code == status.HTTP_401_UNAUTHORIZED:
            headers = {"WWW-Authenticate": "Bearer"}
        return HTTPException(status_code=self.status_code, detail=self.detail, headers=headers)


class UnauthorizedError(OperationError):
    """No authenticated caller is attached to the request."""

    status_code = status.HTTP_401_UNAUTHORIZED


class NotFoundError(OperationError):
    """The referenced record does not exist."""

    status_code = status.HTTP_404_NOT_FOUND


class ForbiddenError(OperationError):
    """The caller is authenticated but may not touch the record."""

    status_code = status.HTTP_403_FORBIDDEN
