# Resolves configured room entries into a source room -> destination channel mapping
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Optional

from core.config import ConfigError


def resolve_rooms(entries: Iterable[Any], default_channel: Optional[str]) -> Mapping[str, Optional[str]]:
    """Normalize room entries against the default channel.

    ``["a", {"b": None}, {"c": "#d"}]`` becomes ``{"a": default, "b": default, "c": "#d"}``.
    A destination that is null or empty falls back to ``default_channel``. Duplicate
    rooms keep the last destination given for them.
    """
    default = default_channel or None
    rooms: Dict[str, Optional[str]] = {}
    for entry in entries:
        if isinstance(entry, str):
            rooms[entry] = default
        elif isinstance(entry, dict):
            for src_room, dst_channel in entry.items():
                if dst_channel is not None and not isinstance(dst_channel, str):
                    raise ConfigError(f"Channel for room {src_room!r} must be a string or null")
                rooms[str(src_room)] = dst_channel or default
        else:
            raise ConfigError(f"Invalid room entry: {entry!r}")
    return MappingProxyType(rooms)
