"""Delete container command."""

import click
from rich.console import Console

from containerctl.cli.helpers import get_api_client, is_non_interactive_or_ci
from ...core.constants import CONTAINER_ID_PATTERN
from ...core.errors import UserError, classify_service_error
from ...services.exceptions import ServiceError


@click.command()
@click.argument('container_id', metavar='ID')
@click.option('--yes', '-y', is_flag=True, help='Skip confirmation prompt')
def delete(container_id, yes):
    """Delete a container application"""
    # The API gateway answers oddly shaped paths with a confusing error
    # instead of a 404, so check the shape up front
    if not CONTAINER_ID_PATTERN.match(container_id):
        raise UserError(
            f"Expected a container ID but got {container_id}. "
            "Use `containerctl list` to view your containers and corresponding IDs."
        )

    console = Console()

    console.print("[bold]Delete your container[/bold]")

    if not yes and not is_non_interactive_or_ci():
        if not click.confirm(
            "Are you sure that you want to delete these containers? "
            "The associated DO container will lose access to the containers."
        ):
            console.print("[yellow]The operation has been cancelled[/yellow]")
            return

    client = get_api_client()
    try:
        client.delete_application(container_id)
    except ServiceError as e:
        raise classify_service_error(
            e, "deleting the container", internal_action="deleting your containers"
        ) from e

    console.print("[green]Your container has been deleted[/green]")
