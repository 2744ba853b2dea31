"""Shared setup logic for CLI commands."""

from __future__ import annotations

import sys

import click

from annostore.core.exceptions import AnnostoreError


def load_config(config_file: str | None, overrides: dict[str, str | None]):
    """Load config from file/env, then apply non-empty command line overrides."""
    from annostore.core.config import Config

    config = Config(config_file=config_file)
    for key_path, value in overrides.items():
        if value:
            config.set(key_path, value)
    return config


def open_store_or_exit(storage: str):
    """Open the configured store; exit with status 1 if it cannot be opened."""
    from annostore.storage import open_store

    try:
        return open_store(storage)
    except (AnnostoreError, ImportError) as e:
        click.echo(f"storage config borked, err: {e}", err=True)
        sys.exit(1)
