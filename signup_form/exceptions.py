"""Failures of the remote username availability check."""

from typing import Optional


class APIError(Exception):
    """Base class. ``str(error)`` is the message shown to the user."""


class InvalidRequestError(APIError):
    def __init__(self, message: str = "URL invalid"):
        self.message = message
        super().__init__(f"Invalid request: {message}")


class TransportError(APIError):
    def __init__(self, cause: Exception):
        self.cause = cause
        super().__init__(f"Transport error: {cause}")


class InvalidResponseError(APIError):
    def __init__(self):
        super().__init__("Invalid response")


class APIValidationError(APIError):
    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Validation Error: {reason}")


class DecodingError(APIError):
    def __init__(self, cause: Exception):
        self.cause = cause
        super().__init__("The server returned data in an unexpected format. Try updating the app.")


class ServerError(APIError):
    def __init__(self, status_code: int, reason: Optional[str] = None, retry_after: Optional[str] = None):
        self.status_code = status_code
        self.reason = reason
        self.retry_after = retry_after
        super().__init__(
            f"Server error with code {status_code}, "
            f"reason: {reason or 'no reason given'}, "
            f"retry after: {retry_after or 'no retry after provided'}"
        )


class FormClosedError(RuntimeError):
    def __init__(self, detail: str = "Signup form has been torn down"):
        super().__init__(detail)
