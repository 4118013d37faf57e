"""User-facing errors raised by commands and the SSH tunnel.

Every error here is a ``click.ClickException``, so click prints it and exits
with status 1. The ``category`` attribute keeps the failure classes apart for
callers that need to branch on them.
"""

from typing import Optional

import click

from ..services.exceptions import (
    ApiError,
    ConfigurationError,
    InvalidResponseError,
    ServiceError,
)


class ErrorCategory:
    """Failure classes surfaced to callers."""
    VALIDATION = "validation"
    NOT_FOUND_OR_BAD_REQUEST = "not_found_or_bad_request"
    UNKNOWN_REMOTE = "unknown_remote"
    INTERNAL = "internal"
    LOCAL_RESOURCE = "local_resource"
    CHILD_PROCESS = "child_process"


class CommandError(click.ClickException):
    """Base class for classified command errors."""

    category = ErrorCategory.INTERNAL

    def __init__(self, message: str, payload: Optional[str] = None):
        super().__init__(message)
        self.payload = payload


class UserError(CommandError):
    """Problem the user can fix: bad input or missing configuration."""

    category = ErrorCategory.VALIDATION


class NotFoundOrBadRequestError(UserError):
    """The control plane rejected the request with 400 or 404."""

    category = ErrorCategory.NOT_FOUND_OR_BAD_REQUEST


class UnknownRemoteError(CommandError):
    """The control plane failed with an unexpected status."""

    category = ErrorCategory.UNKNOWN_REMOTE


class InternalError(CommandError):
    """The request never got a response from the control plane."""

    category = ErrorCategory.INTERNAL


class TunnelError(CommandError):
    """Base class for local failures while running an SSH tunnel."""

    category = ErrorCategory.LOCAL_RESOURCE


class ProxyAddressError(TunnelError):
    """The local proxy listener has no concrete host/port."""


class SshNotInstalledError(TunnelError):
    """The ssh client binary is not on PATH."""


class SshHandshakeError(TunnelError):
    """ssh exited with its handshake failure code."""

    category = ErrorCategory.CHILD_PROCESS


class SshSpawnError(TunnelError):
    """The ssh client could not be started."""

    category = ErrorCategory.CHILD_PROCESS


def classify_service_error(err: ServiceError, action: str,
                           internal_action: Optional[str] = None) -> CommandError:
    """Translate a service-layer error into a classified command error.

    Args:
        err: The error raised by the API client
        action: Phrase completing "There has been an error ...",
            e.g. "deleting the container"
        internal_action: Phrase used for transport failures; defaults to ``action``

    Returns:
        The command error to raise
    """
    if isinstance(err, ConfigurationError):
        return UserError(str(err))

    if isinstance(err, InvalidResponseError):
        return UnknownRemoteError(
            f"There has been an unknown error {action}.\n{err}",
            payload=err.raw_body,
        )

    if isinstance(err, ApiError):
        if err.status in (400, 404):
            return NotFoundOrBadRequestError(
                f"There has been an error {action}.\n{err.error_text}",
                payload=err.error_text,
            )
        return UnknownRemoteError(
            f"There has been an unknown error {action}.\n{err.raw_body}",
            payload=err.raw_body,
        )

    return InternalError(
        f"There has been an internal error {internal_action or action}.\n{err}",
        payload=str(err),
    )
