"""List containers command."""

from datetime import datetime

import click
import questionary
from rich.console import Console

from containerctl.cli.helpers import (
    application_to_yaml,
    echo_json,
    format_application_table,
    format_labels,
    get_api_client,
    is_non_interactive_or_ci,
)
from ...core.constants import NO_CONTAINERS_MESSAGE
from ...core.errors import classify_service_error
from ...models.application import Application
from ...services.api_client import ContainersApiClient
from ...services.exceptions import ServiceError

EXIT_CHOICE = "__exit__"
REFRESH = "Refresh"
BACK = "Back to containers"
QUIT = "Exit"


def load_applications(client: ContainersApiClient):
    try:
        return client.list_applications()
    except ServiceError as e:
        raise classify_service_error(e, "listing your containers") from e


def refresh_application(client: ContainersApiClient, application_id: str) -> Application:
    try:
        return client.get_application(application_id)
    except ServiceError as e:
        raise classify_service_error(e, "refreshing the container") from e


def choose_application(applications):
    """Ask the user to pick a container; None means exit."""
    choices = [
        questionary.Choice(
            title=f"{a.name}  (id: {a.id}, instances: {a.instances}, image: {a.configuration.image})",
            value=a.id,
        )
        for a in applications
    ]
    choices.append(questionary.Choice(title="Exit", value=EXIT_CHOICE))

    selected = questionary.select("Your Containers", choices=choices).ask()
    if selected is None or selected == EXIT_CHOICE:
        return None
    return next(a for a in applications if a.id == selected)


def show_application(client: ContainersApiClient, application: Application, console: Console) -> bool:
    """Show one container until the user leaves.

    Returns:
        True to go back to the list, False to exit
    """
    refreshed_at = None
    while True:
        label = application.summary_label()
        if refreshed_at:
            label += f", last refresh: {refreshed_at.strftime('%Y-%m-%d %H:%M:%S')}"
        click.echo(click.style(f"\n{label}", bold=True))
        for line in format_labels(application):
            click.echo(line)
        click.echo(application_to_yaml(application))

        action = questionary.select(
            "Containers",
            choices=[REFRESH, BACK, QUIT],
        ).ask()

        if action == REFRESH:
            with console.status("Refreshing application"):
                application = refresh_application(client, application.id)
            refreshed_at = datetime.now()
            continue
        return action == BACK


@click.command()
def list():
    """List your container applications"""
    client = get_api_client()

    if is_non_interactive_or_ci():
        echo_json(load_applications(client))
        return

    console = Console()
    while True:
        with console.status("Loading Containers"):
            applications = load_applications(client)

        if not applications:
            click.echo(NO_CONTAINERS_MESSAGE)
            return

        click.echo(format_application_table(applications))

        application = choose_application(applications)
        if application is None:
            return
        if not show_application(client, application, console):
            return
