"""Action routing."""

from bubble.routing.overrides import VideoOverride, detect_video_override
from bubble.routing.router import (
    ActionRouter,
    GeminiSemanticRouter,
    parse_classification,
    route_with_fallback,
)
from bubble.routing.types import RouterAction, RoutingDecision

__all__ = [
    "ActionRouter",
    "GeminiSemanticRouter",
    "RouterAction",
    "RoutingDecision",
    "VideoOverride",
    "detect_video_override",
    "parse_classification",
    "route_with_fallback",
]
