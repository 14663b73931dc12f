"""Centralized path management for Bubble.

All state (config, memory layers, usage counters, logs) is stored under a
single base directory. The base directory can be overridden with the
BUBBLE_HOME environment variable.

Default locations:
- Linux/macOS: ~/.bubble
- Windows: %USERPROFILE%\\.bubble
"""

import os
from functools import lru_cache
from pathlib import Path

ENV_VAR = "BUBBLE_HOME"


def get_system_timezone() -> str:
    """Detect system timezone, falling back to UTC.

    Resolution order:
    1. TZ environment variable (if set)
    2. /etc/timezone file (Debian/Ubuntu)
    3. /etc/localtime symlink target (most Linux distros)
    4. Fallback to UTC
    """
    if tz := os.environ.get("TZ"):
        return tz

    try:
        tz = Path("/etc/timezone").read_text().strip()
        if tz:
            return tz
    except (FileNotFoundError, PermissionError):
        pass

    try:
        link = Path("/etc/localtime").resolve()
        parts = str(link).split("zoneinfo/")
        if len(parts) > 1:
            return parts[1]
    except (FileNotFoundError, PermissionError):
        pass

    return "UTC"


@lru_cache(maxsize=1)
def get_bubble_home() -> Path:
    """Get the base directory for all Bubble data.

    Resolution order:
    1. BUBBLE_HOME environment variable (if set)
    2. Platform default (~/.bubble)
    """
    if env_home := os.environ.get(ENV_VAR):
        return Path(env_home).expanduser().resolve()

    return Path.home() / ".bubble"


def get_config_path() -> Path:
    """Get the default config file path."""
    return get_bubble_home() / "config.toml"


def get_memory_path() -> Path:
    """Get the memory directory path (one JSON document per user)."""
    return get_bubble_home() / "memory"


def get_usage_path() -> Path:
    """Get the usage counter file path."""
    return get_bubble_home() / "usage.json"


def get_logs_path() -> Path:
    """Get the default logs directory path."""
    return get_bubble_home() / "logs"
