"""Runtime context seen by checks: local port, properties and active profiles."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Protocol


PRODUCTION_PROFILES = frozenset({"prod", "production"})


class RuntimeContext(Protocol):
    def get_local_port(self) -> int | None: ...

    def get_property(self, key: str) -> str | None: ...

    def get_active_profiles(self) -> Sequence[str]: ...


@dataclass(frozen=True)
class StaticRuntimeContext:
    """Immutable context built from plain values."""

    local_port: int | None = None
    properties: Mapping[str, str] = field(default_factory=dict)
    active_profiles: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        frozen = MappingProxyType({str(key): str(value) for key, value in self.properties.items()})
        object.__setattr__(self, "properties", frozen)
        object.__setattr__(self, "active_profiles", tuple(str(item) for item in self.active_profiles))

    def get_local_port(self) -> int | None:
        return self.local_port

    def get_property(self, key: str) -> str | None:
        return self.properties.get(key)

    def get_active_profiles(self) -> Sequence[str]:
        return self.active_profiles

    def with_port(self, port: int | None) -> "StaticRuntimeContext":
        return StaticRuntimeContext(port, self.properties, self.active_profiles)

    def with_property(self, key: str, value: str) -> "StaticRuntimeContext":
        merged = dict(self.properties)
        merged[key] = value
        return StaticRuntimeContext(self.local_port, merged, self.active_profiles)

    def with_profiles(self, *profiles: str) -> "StaticRuntimeContext":
        return StaticRuntimeContext(self.local_port, self.properties, tuple(profiles))


def is_production(profiles: Iterable[str]) -> bool:
    return any(str(profile).strip().lower() in PRODUCTION_PROFILES for profile in profiles)


def parse_bool(value: str | None) -> bool:
    """Only the literal ``true`` (any case) counts as enabled."""

    if value is None:
        return False
    return value.strip().lower() == "true"


def flatten_properties(payload: Mapping[str, Any], prefix: str = "") -> dict[str, str]:
    """Flatten nested mappings into dotted property keys."""

    flat: dict[str, str] = {}
    for raw_key, value in payload.items():
        key = f"{prefix}.{raw_key}" if prefix else str(raw_key)
        if isinstance(value, Mapping):
            flat.update(flatten_properties(value, key))
        elif isinstance(value, bool):
            flat[key] = "true" if value else "false"
        elif isinstance(value, (list, tuple)):
            flat[key] = ",".join(str(item) for item in value)
        elif value is None:
            continue
        else:
            flat[key] = str(value)
    return flat
