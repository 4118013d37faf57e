"""Configuration models for containerctl."""

from typing import Optional

from pydantic import BaseModel, Field

from ..core.constants import DEFAULT_API_URL, DEFAULT_REQUEST_TIMEOUT


class ClientConfig(BaseModel):
    """Connection settings for the control plane API."""
    api_url: str = DEFAULT_API_URL
    account_id: Optional[str] = None
    api_token: Optional[str] = None
    request_timeout: float = Field(default=DEFAULT_REQUEST_TIMEOUT, gt=0)

    def masked(self) -> dict:
        """Dump the config with the API token hidden."""
        data = self.model_dump()
        if data.get("api_token"):
            data["api_token"] = data["api_token"][:4] + "****"
        return data
