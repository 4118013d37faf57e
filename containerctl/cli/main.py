"""Main CLI entry point for containerctl."""

import logging

import click

from .commands.config import config
from .commands.create import create
from .commands.delete import delete
from .commands.info import info
from .commands.list_containers import list
from .commands.ssh import ssh


@click.group()
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging')
@click.version_option(package_name='containerctl')
def cli(verbose):
    """containerctl - Manage remote containers from the command line"""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )


# Register commands
cli.add_command(create)
cli.add_command(list)
cli.add_command(info)
cli.add_command(delete)
cli.add_command(ssh)
cli.add_command(config)


if __name__ == '__main__':
    cli()
