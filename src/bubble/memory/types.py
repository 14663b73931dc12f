"""Memory types."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Protocol, Self


@dataclass
class MemoryEntry:
    """One remembered value, addressed by (layer, key)."""

    layer: str
    key: str
    value: Any
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_dict(self) -> dict[str, Any]:
        return {
            "layer": self.layer,
            "key": self.key,
            "value": self.value,
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Self:
        updated_at = d.get("updated_at")
        return cls(
            layer=d["layer"],
            key=d["key"],
            value=d.get("value"),
            updated_at=(
                datetime.fromisoformat(updated_at) if updated_at else datetime.now(UTC)
            ),
        )


class MemoryProvider(Protocol):
    """Source of per-user memory layers for prompt context."""

    async def get_context(
        self, layers: list[str], *, user_id: str
    ) -> dict[str, dict[str, Any]]:
        """Return a mapping of layer name to its key/value pairs.

        Layers with no entries map to an empty dict.
        """
        ...
