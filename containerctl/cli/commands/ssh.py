"""SSH into a container instance command."""

import click
from rich.console import Console

from containerctl.cli.helpers import get_api_client
from ...core.constants import SSH_PASSTHROUGH_FLAGS
from ...core.errors import SshSpawnError
from ...core.ssh_tunnel import SshTunnel, validate_instance_id


def ssh_passthrough_options(func):
    """Attach the ssh flags that are handed straight to the ssh client."""
    for flag, dest in reversed(SSH_PASSTHROUGH_FLAGS):
        func = click.option(f'-{flag}', dest, default=None, metavar=dest.upper(),
                            help=f'Passed to ssh as -{flag} {dest}')(func)
    return func


@click.command()
@click.argument('instance_id', metavar='ID')
@ssh_passthrough_options
def ssh(instance_id, **options):
    """Open an SSH session into a running container instance"""
    validate_instance_id(instance_id)

    tunnel = SshTunnel(get_api_client())
    with Console(stderr=True).status("Authenticating"):
        session = tunnel.authenticate(instance_id)

    ssh_flags = {flag: options[dest] for flag, dest in SSH_PASSTHROUGH_FLAGS}
    try:
        tunnel.connect(session, ssh_flags)
    except OSError as e:
        raise SshSpawnError(f"Could not start ssh: {e}") from e
