"""Custom exceptions for service layer."""

import json
from typing import Any


class ServiceError(Exception):
    """Base exception for all service-related errors."""

    pass


class ApiError(ServiceError):
    """Exception raised when the control plane answers with an error status."""

    def __init__(self, status: int, body: Any, message: str = None):
        self.status = status
        self.body = body
        super().__init__(message or f"API request failed with status {status}")

    @property
    def error_text(self) -> str:
        """The remote ``error`` payload, or the raw body when absent."""
        if isinstance(self.body, dict):
            error = self.body.get("error")
            if error is None and self.body.get("errors"):
                error = "; ".join(
                    str(e.get("message", e)) if isinstance(e, dict) else str(e)
                    for e in self.body["errors"]
                )
            if error is not None:
                return str(error)
        if isinstance(self.body, str):
            return self.body
        return self.raw_body

    @property
    def raw_body(self) -> str:
        """The body serialized as JSON."""
        try:
            return json.dumps(self.body)
        except (TypeError, ValueError):
            return str(self.body)


class InvalidResponseError(ApiError):
    """Exception raised when a successful response has an unexpected shape."""

    def __init__(self, status: int, body: Any, detail: str):
        super().__init__(status, body, f"Unexpected response from the API: {detail}")


class TransportError(ServiceError):
    """Exception raised when the control plane cannot be reached."""

    pass


class ConfigurationError(ServiceError):
    """Exception raised when the client is missing required settings."""

    pass
