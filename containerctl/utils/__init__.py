"""Utilities for containerctl."""

from .config_manager import ConfigManager, default_data_dir

__all__ = [
    'ConfigManager',
    'default_data_dir',
]
