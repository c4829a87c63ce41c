"""Route profile models — the static filter/transport/map configuration.

The profile mirrors the relay's JSON configuration file::

    {
        "filters": {"spam": {"name": "spam"}},
        "transports": {
            "spamhook": {"name": "discord", "format": "spam",
                         "id": "1234", "token": "abcd"}
        },
        "map": {"spam": "spamhook"}
    }

Component-specific keys (``id``, ``token``, ``wiki`` ...) are kept as extra
fields and exposed through ``options``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field


class FilterSpec(BaseModel):
    """One configured filter: the registry kind plus its options."""

    model_config = ConfigDict(frozen=True, extra="allow")

    name: str  # registry kind, e.g. "spam", "custom"

    @property
    def options(self) -> dict[str, Any]:
        return dict(self.model_extra or {})


class TransportSpec(BaseModel):
    """One configured transport: registry kind, format name, and options."""

    model_config = ConfigDict(frozen=True, extra="allow")

    name: str  # registry kind, e.g. "discord", "newusers"
    format: str = ""
    enabled: bool = True

    @property
    def options(self) -> dict[str, Any]:
        return dict(self.model_extra or {})


class RelayProfile(BaseModel):
    """The full route profile loaded once at startup."""

    model_config = ConfigDict(frozen=True)

    filters: dict[str, FilterSpec] = Field(default_factory=dict)
    transports: dict[str, TransportSpec] = Field(default_factory=dict)
    map: dict[str, Union[str, list[str]]] = Field(default_factory=dict)

    def destinations_for(self, filter_name: str) -> list[str]:
        """Return the transport names mapped to *filter_name*, in order."""
        target = self.map.get(filter_name, [])
        if isinstance(target, str):
            return [target]
        return list(target)


def load_profile(path: Path | str) -> RelayProfile:
    """Read and validate a route profile JSON file."""
    return RelayProfile.model_validate_json(Path(path).read_text(encoding="utf-8"))
