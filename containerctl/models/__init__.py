"""Models for containerctl."""

from .application import (
    Application,
    ApplicationConfiguration,
    ApplicationCreateRequest,
    Label,
)
from .config import ClientConfig
from .session import SSHSession

__all__ = [
    'Application',
    'ApplicationConfiguration',
    'ApplicationCreateRequest',
    'Label',
    'ClientConfig',
    'SSHSession',
]
