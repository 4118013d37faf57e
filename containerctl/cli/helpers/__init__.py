"""CLI Helper Functions for containerctl.

This module provides reusable helper functions for CLI commands to reduce
code duplication and standardize behavior across all commands.

The helpers provide:
- Interactive/CI detection
- API client construction from configuration
- Consistent table, JSON and YAML formatting for output
"""

import json
import os
import sys
from typing import Any, List, Optional

import click
import yaml
from tabulate import tabulate

from containerctl.core.errors import classify_service_error
from containerctl.models.application import Application
from containerctl.services.api_client import ContainersApiClient
from containerctl.services.exceptions import ConfigurationError
from containerctl.utils.config_manager import ConfigManager


def is_non_interactive_or_ci() -> bool:
    """True when prompts can't be shown: stdin isn't a TTY or we're on CI."""
    if os.environ.get("CI"):
        return True
    return not sys.stdin.isatty()


def get_api_client() -> ContainersApiClient:
    """Build an API client from the effective configuration.

    Raises:
        UserError: If required settings are missing
    """
    config = ConfigManager().get_client_config()
    try:
        return ContainersApiClient(config)
    except ConfigurationError as e:
        raise classify_service_error(e, "configuring the API client") from e


def _dump(item: Any) -> Any:
    if isinstance(item, list):
        return [_dump(i) for i in item]
    if isinstance(item, Application):
        return item.model_dump(exclude_none=True)
    return item


def echo_json(data: Any) -> None:
    """Print models or plain data as indented JSON."""
    click.echo(json.dumps(_dump(data), indent=2))


def application_to_yaml(application: Application) -> str:
    """Render an application's full details as YAML."""
    return yaml.safe_dump(_dump(application), sort_keys=False, default_flow_style=False)


def format_labels(application: Application) -> List[str]:
    """Format application labels as indented ``name: value`` lines."""
    labels = application.configuration.labels or []
    if not labels:
        return []
    return ["Labels:"] + [f"        {label.name}: {label.value}" for label in labels]


def format_application_table(applications: List[Application],
                             headers: Optional[List[str]] = None) -> str:
    """Format applications as a table with consistent styling.

    Args:
        applications: Applications to display
        headers: Optional custom headers

    Returns:
        Formatted table string
    """
    if headers is None:
        headers = ["ID", "NAME", "INSTANCES", "IMAGE", "CREATED"]

    rows = []
    for application in applications:
        instances = click.style(
            str(application.instances),
            fg='green' if application.instances > 0 else 'yellow',
        )
        rows.append([
            application.id,
            application.name,
            instances,
            application.configuration.image,
            application.created_at,
        ])

    return tabulate(rows, headers=headers, tablefmt="simple")


__all__ = [
    'is_non_interactive_or_ci',
    'get_api_client',
    'echo_json',
    'application_to_yaml',
    'format_labels',
    'format_application_table',
]
