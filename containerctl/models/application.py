"""Container application models."""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Label(BaseModel):
    """A name/value label attached to an application."""
    name: str
    value: str


class ApplicationConfiguration(BaseModel):
    """Runtime configuration of an application's containers."""
    image: str
    labels: Optional[List[Label]] = None
    vcpu: Optional[float] = None
    memory: Optional[str] = None

    model_config = ConfigDict(extra="allow")


class Application(BaseModel):
    """A container application as returned by the control plane."""
    id: str
    name: str
    created_at: str
    instances: int = 0
    version: Optional[int] = None
    configuration: ApplicationConfiguration

    # Keep fields the CLI doesn't model so JSON/YAML output stays faithful
    model_config = ConfigDict(extra="allow")

    def summary_label(self) -> str:
        """Short label used in selection lists and detail headers."""
        return f"{self.name} ({self.created_at})"


class ApplicationCreateRequest(BaseModel):
    """Body for creating a new application."""
    name: str
    instances: int = Field(default=1, ge=0)
    configuration: ApplicationConfiguration
