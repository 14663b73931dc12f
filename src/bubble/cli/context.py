"""Shared configuration loading for CLI commands."""

import tomllib
from pathlib import Path

import typer
from pydantic import ValidationError

from bubble.cli.console import error
from bubble.config import BubbleConfig, get_default_config, load_config


def get_config(config_path: Path | None = None) -> BubbleConfig:
    """Load configuration or exit with a readable error.

    Without an explicit path and without any config file on disk, the
    built-in defaults are used (keys still come from the environment).
    """
    try:
        return load_config(config_path)
    except FileNotFoundError as e:
        if config_path is not None:
            error(str(e))
            raise typer.Exit(1) from None
        return get_default_config()
    except (tomllib.TOMLDecodeError, ValidationError, ValueError) as e:
        error(f"Invalid configuration: {e}")
        raise typer.Exit(1) from None
