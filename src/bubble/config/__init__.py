"""Configuration module."""

from bubble.config.loader import get_default_config, load_config
from bubble.config.models import (
    DEFAULT_MEMORY_LAYERS,
    DEFAULT_NATIVE_MODEL,
    AgentSettings,
    BubbleConfig,
    ImageSettings,
    MemorySettings,
    ProviderConfig,
    ResearchSettings,
    RetrySettings,
    RouterSettings,
    UsageSettings,
)
from bubble.config.paths import (
    get_bubble_home,
    get_config_path,
    get_logs_path,
    get_memory_path,
)

__all__ = [
    "DEFAULT_MEMORY_LAYERS",
    "DEFAULT_NATIVE_MODEL",
    "AgentSettings",
    "BubbleConfig",
    "ImageSettings",
    "MemorySettings",
    "ProviderConfig",
    "ResearchSettings",
    "RetrySettings",
    "RouterSettings",
    "UsageSettings",
    "get_bubble_home",
    "get_config_path",
    "get_default_config",
    "get_logs_path",
    "get_memory_path",
    "load_config",
]
