"""Service layer for talking to the container control plane."""

from .api_client import ContainersApiClient
from .exceptions import (
    ServiceError,
    ApiError,
    InvalidResponseError,
    TransportError,
    ConfigurationError,
)

__all__ = [
    "ContainersApiClient",
    "ServiceError",
    "ApiError",
    "InvalidResponseError",
    "TransportError",
    "ConfigurationError",
]
