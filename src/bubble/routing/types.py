"""Routing types."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class RouterAction(str, Enum):
    """Skill selected for a hop."""

    SIMPLE = "SIMPLE"
    SEARCH = "SEARCH"
    DEEP_SEARCH = "DEEP_SEARCH"
    THINK = "THINK"
    IMAGE = "IMAGE"
    CANVAS = "CANVAS"
    PROJECT = "PROJECT"
    STUDY = "STUDY"

    @classmethod
    def parse(cls, value: Any) -> "RouterAction":
        """Parse a classifier label, mapping anything unknown to SIMPLE."""
        if isinstance(value, str):
            try:
                return cls(value.strip().upper())
            except ValueError:
                pass
        return cls.SIMPLE


@dataclass
class RoutingDecision:
    """The router's choice of action for a turn."""

    action: RouterAction = RouterAction.SIMPLE
    parameters: dict[str, Any] = field(default_factory=dict)
