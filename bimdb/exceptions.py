"""Errors raised while handling a request.

Every error carries the HTTP status it maps to; the handlers registered in
``bimdb.main`` turn them into plain-text responses.
"""

from collections.abc import Sequence


class BimDBError(Exception):
    """Base exception for request handling errors."""

    status_code = 500

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def body(self) -> str:
        return self.message


class BadRequestError(BimDBError):
    """Malformed or invalid client input."""

    status_code = 400

    def body(self) -> str:
        return f"400 Bad Request: {self.message}"


class EntityNotFoundError(BadRequestError):
    """A referenced vehicle or coupling does not exist.

    Reported as 400 like any other bad request.
    """

    def __init__(self, entity: str):
        super().__init__(f"failed to find this {entity}")
        self.entity = entity


class RouteNotFoundError(BimDBError):
    status_code = 404

    def __init__(self) -> None:
        super().__init__("404 Not Found")


class MethodNotAllowedError(BimDBError):
    status_code = 405

    def __init__(self, method: str, allowed_methods: Sequence[str]):
        self.allowed_methods = tuple(allowed_methods)
        super().__init__(
            f"unsupported method {method}; allowed: {self.allow_header}"
        )

    @property
    def allow_header(self) -> str:
        return ", ".join(self.allowed_methods)


class FormDecodeError(BadRequestError):
    """Percent-decoding or UTF-8 validation failed."""
