"""
Error taxonomy for the console.

Local validation failures are detected synchronously and never reach the
network. Remote rejections and transport failures come back from the client
and are shown as a single form-level message.
"""

from typing import Dict, Optional


GENERIC_TRANSPORT_MESSAGE = "The back-office service could not be reached"
MALFORMED_RESPONSE_MESSAGE = "The back-office service returned an unexpected response"


class ValidationError(ValueError):
    """One or more field-level validation errors"""

    def __init__(self, field_errors: Dict[str, str]):
        self.field_errors = dict(field_errors)
        summary = "; ".join(f"{name}: {msg}" for name, msg in self.field_errors.items())
        super().__init__(summary or "Validation failed")

    @classmethod
    def single(cls, field: str, message: str) -> 'ValidationError':
        return cls({field: message})


class ApiError(Exception):
    """Remote service rejected the request"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class TransportError(ApiError):
    """Request never produced a response (connection refused, DNS, reset)"""

    def __init__(self, detail: Optional[str] = None):
        super().__init__(GENERIC_TRANSPORT_MESSAGE)
        self.detail = detail


class MalformedResponseError(ApiError):
    """Service answered with a body the console cannot decode"""

    def __init__(self, detail: str, status_code: Optional[int] = None):
        super().__init__(MALFORMED_RESPONSE_MESSAGE, status_code=status_code)
        self.detail = detail


def raise_if_errors(field_errors: Dict[str, str]) -> None:
    """Raise ValidationError when any field error was collected"""
    if field_errors:
        raise ValidationError(field_errors)
