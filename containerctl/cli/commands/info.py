"""Show container details command."""

import click

from containerctl.cli.helpers import (
    application_to_yaml,
    echo_json,
    format_labels,
    get_api_client,
    is_non_interactive_or_ci,
)
from ...core.errors import UserError, classify_service_error
from ...services.exceptions import ServiceError


@click.command()
@click.argument('container_id', metavar='ID', required=False)
def info(container_id):
    """Show detailed information about a container"""
    if not container_id:
        raise UserError(
            "You must provide an ID. Use `containerctl list` to view your containers."
        )

    client = get_api_client()
    try:
        application = client.get_application(container_id)
    except ServiceError as e:
        raise classify_service_error(e, "requesting your containers") from e

    if is_non_interactive_or_ci():
        echo_json(application)
        return

    click.echo(click.style(f"\nContainer: {application.summary_label()}", bold=True))
    for line in format_labels(application):
        click.echo(line)
    click.echo("")
    click.echo(application_to_yaml(application))
