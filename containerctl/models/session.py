"""SSH session models."""

from pydantic import BaseModel, Field


class SSHSession(BaseModel):
    """Short-lived credentials for a single SSH relay session.

    Consumed once to configure the local proxy and never persisted.
    """
    url: str = Field(..., description="Remote relay endpoint (ws:// or wss://)")
    token: str = Field(..., description="Bearer token authorizing the relay")

    def __repr__(self) -> str:
        return f"SSHSession(url={self.url!r}, token='***')"

    __str__ = __repr__
