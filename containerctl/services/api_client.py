"""HTTP client for the container control plane API."""

import logging
from typing import Any, Callable, Optional

import requests
from pydantic import ValidationError

from ..models.application import Application, ApplicationCreateRequest
from ..models.config import ClientConfig
from ..models.session import SSHSession
from .exceptions import ApiError, ConfigurationError, InvalidResponseError, TransportError

logger = logging.getLogger(__name__)


class ContainersApiClient:
    """Client for container application and instance endpoints."""

    def __init__(self, config: ClientConfig, session: Optional[requests.Session] = None):
        """Initialize the client.

        Args:
            config: Connection settings
            session: Optional requests session to reuse

        Raises:
            ConfigurationError: If the account ID or API token is missing
        """
        if not config.account_id:
            raise ConfigurationError(
                "No account ID configured. Run 'containerctl config set account_id <ID>' "
                "or set CONTAINERCTL_ACCOUNT_ID."
            )
        if not config.api_token:
            raise ConfigurationError(
                "No API token configured. Run 'containerctl config set api_token <TOKEN>' "
                "or set CONTAINERCTL_API_TOKEN."
            )
        self.config = config
        self.session = session or requests.Session()
        self.session.headers.update({
            "Authorization": f"Bearer {config.api_token}",
            "Accept": "application/json",
        })

    @property
    def base_url(self) -> str:
        return f"{self.config.api_url.rstrip('/')}/accounts/{self.config.account_id}/containers"

    def _request(self, method: str, path: str, json_body: Any = None,
                 parse: Optional[Callable[[Any], Any]] = None) -> Any:
        """Send a request and unwrap the response envelope.

        Args:
            method: HTTP method
            path: Path relative to the containers base URL
            json_body: Optional JSON payload
            parse: Optional callable that builds models from the unwrapped result

        Returns:
            The ``result`` member of the response, or the whole body when the
            response is not enveloped, passed through ``parse`` when given

        Raises:
            ApiError: If the API answers with a non-2xx status
            InvalidResponseError: If ``parse`` rejects a successful response
            TransportError: If the request could not be completed
        """
        url = f"{self.base_url}{path}"
        logger.debug(f"{method} {url}")
        try:
            response = self.session.request(
                method,
                url,
                json=json_body,
                timeout=self.config.request_timeout,
            )
        except requests.RequestException as e:
            raise TransportError(str(e)) from e

        logger.debug(f"{method} {url} -> {response.status_code}")

        try:
            body = response.json() if response.content else None
        except ValueError:
            body = response.text

        if not response.ok:
            raise ApiError(response.status_code, body)

        data = body["result"] if isinstance(body, dict) and "result" in body else body
        if parse is None:
            return data

        try:
            return parse(data)
        except (ValidationError, TypeError) as e:
            raise InvalidResponseError(response.status_code, body, str(e)) from e

    def list_applications(self) -> list[Application]:
        """List all container applications for the account."""
        return self._request(
            "GET",
            "/applications",
            parse=lambda data: [Application(**item) for item in data or []],
        )

    def get_application(self, application_id: str) -> Application:
        """Get a single application by ID."""
        return self._request(
            "GET",
            f"/applications/{application_id}",
            parse=lambda data: Application(**data),
        )

    def create_application(self, request: ApplicationCreateRequest) -> Application:
        """Create a new application."""
        return self._request(
            "POST",
            "/applications",
            json_body=request.model_dump(exclude_none=True),
            parse=lambda data: Application(**data),
        )

    def delete_application(self, application_id: str) -> None:
        """Delete an application and its instances."""
        self._request("DELETE", f"/applications/{application_id}")

    def create_ssh_session(self, instance_id: str) -> SSHSession:
        """Negotiate a short-lived SSH relay session for an instance."""
        return self._request(
            "GET",
            f"/instances/{instance_id}/ssh",
            parse=lambda data: SSHSession(**data),
        )
