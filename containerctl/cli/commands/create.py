"""Create container command."""

import click
from rich.console import Console

from containerctl.cli.helpers import echo_json, get_api_client, is_non_interactive_or_ci
from ...core.errors import classify_service_error
from ...models.application import (
    ApplicationConfiguration,
    ApplicationCreateRequest,
    Label,
)
from ...services.exceptions import ServiceError


def parse_labels(ctx, param, values):
    """Parse repeated ``name=value`` label options."""
    labels = []
    for raw in values:
        name, sep, value = raw.partition('=')
        if not sep or not name.strip():
            raise click.BadParameter(f"Expected name=value but got '{raw}'")
        labels.append(Label(name=name.strip(), value=value))
    return labels


@click.command()
@click.option('--name', required=True, help='Application name')
@click.option('--image', required=True, help='Container image to run')
@click.option('--instances', type=click.IntRange(min=0), default=1, show_default=True,
              help='Number of instances')
@click.option('--label', 'labels', multiple=True, callback=parse_labels,
              help='Label as name=value (repeatable)')
def create(name, image, instances, labels):
    """Create a new container application"""
    client = get_api_client()
    request = ApplicationCreateRequest(
        name=name,
        instances=instances,
        configuration=ApplicationConfiguration(image=image, labels=labels or None),
    )

    try:
        application = client.create_application(request)
    except ServiceError as e:
        raise classify_service_error(e, "creating the container") from e

    if is_non_interactive_or_ci():
        echo_json(application)
        return

    console = Console()
    console.print(f"[green]Created container {application.name}[/green]")
    click.echo(f"   ID: {application.id}")
    click.echo(f"   Image: {application.configuration.image}")
    click.echo(f"   Instances: {application.instances}")
