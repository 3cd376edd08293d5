# printdesk/utils/errors.py

"""
Error taxonomy of the console backend.

Every error carries the HTTP status it is reported with; the app-level
handler in main.py turns them into {"detail": message} responses.
"""


class PrintDeskError(Exception):
    status_code = 500

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(PrintDeskError):
    """Missing selection or invalid input, detected before any write."""
    status_code = 400


class FetchError(PrintDeskError):
    """A read from the database failed."""
    status_code = 502


class AggregationError(PrintDeskError):
    """One of the order-context reads failed; the whole composition is dropped."""
    status_code = 502

    def __init__(self, message: str, status_code: int | None = None, cause: Exception | None = None):
        super().__init__(message, status_code)
        self.cause = cause


class AggregationSuperseded(PrintDeskError):
    """A newer composition request from the same caller replaced this one."""
    status_code = 409


class ToolExecutionError(PrintDeskError):
    """Raised by tool handlers; the dispatcher turns it into tool-result text."""


class RequestError(PrintDeskError):
    """Request-level failure of the chat endpoint (bad body, auth)."""
    status_code = 400
