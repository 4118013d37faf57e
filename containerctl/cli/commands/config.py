"""Configuration management commands for containerctl."""

import json

import click
from pydantic import ValidationError

from ...models.config import ClientConfig
from ...utils.config_manager import ConfigManager


@click.group()
def config():
    """Manage API connection settings"""
    pass


@config.command(name='set')
@click.argument('key', type=click.Choice(sorted(ClientConfig.model_fields)))
@click.argument('value')
def set_value(key, value):
    """Set a configuration value"""
    config_manager = ConfigManager()
    try:
        config_manager.set_value(key, value)
    except ValidationError as e:
        raise click.BadParameter(
            f"Invalid value for {key}: {e.errors()[0]['msg']}", param_hint="VALUE"
        )

    shown = "****" if key == "api_token" else value
    click.echo(f"Set {key} = {shown}")


@config.command()
def show():
    """Display the effective configuration"""
    config_manager = ConfigManager()
    client_config = config_manager.get_client_config()

    click.echo(f"Configuration file: {config_manager.config_file}")
    click.echo(json.dumps(client_config.masked(), indent=2))


@config.command()
def reset():
    """Reset configuration to defaults"""
    ConfigManager().reset()
    click.echo("Configuration reset to defaults")
