"""Configuration management utilities."""

import json
import logging
import os
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from ..core.constants import CONFIG_DIR_ENV, CONFIG_ENV_VARS, CONFIG_FILE_NAME, DATA_DIR_NAME
from ..models.config import ClientConfig

logger = logging.getLogger(__name__)


def default_data_dir() -> Path:
    """Return the config directory, honouring the override environment variable."""
    override = os.environ.get(CONFIG_DIR_ENV)
    if override:
        return Path(override)
    return Path.home() / DATA_DIR_NAME


class ConfigManager:
    """Manages the client configuration file."""

    def __init__(self, data_dir: Optional[Path] = None):
        """Initialize config manager."""
        self.data_dir = data_dir or default_data_dir()
        self.config_file = self.data_dir / CONFIG_FILE_NAME

    def get_stored_config(self) -> Optional[ClientConfig]:
        """Load the stored configuration, ignoring the environment."""
        if not self.config_file.exists():
            return None
        try:
            data = json.loads(self.config_file.read_text())
            return ClientConfig(**data)
        except (OSError, ValueError, TypeError, ValidationError) as e:
            logger.warning(f"Ignoring unreadable config file {self.config_file}: {e}")
            return None

    def get_client_config(self) -> ClientConfig:
        """Load the effective configuration: stored values overlaid by environment."""
        config = self.get_stored_config() or ClientConfig()
        overrides = {
            field: os.environ[env_var]
            for field, env_var in CONFIG_ENV_VARS.items()
            if os.environ.get(env_var)
        }
        if overrides:
            logger.debug(f"Config overridden from environment: {sorted(overrides)}")
            config = config.model_copy(update=overrides)
        return config

    def save_client_config(self, config: ClientConfig):
        """Save client configuration."""
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.config_file.write_text(config.model_dump_json(indent=2))
        # Contains an API token
        self.config_file.chmod(0o600)

    def set_value(self, key: str, value: Any) -> ClientConfig:
        """Set a single configuration key and persist it.

        Raises:
            KeyError: If the key is not a known setting
            ValidationError: If the value is invalid for the key
        """
        if key not in ClientConfig.model_fields:
            raise KeyError(key)
        config = self.get_stored_config() or ClientConfig()
        data = config.model_dump()
        data[key] = value
        config = ClientConfig(**data)
        self.save_client_config(config)
        return config

    def reset(self):
        """Reset configuration to defaults."""
        self.save_client_config(ClientConfig())
