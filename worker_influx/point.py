"""Metric points and line protocol serialization.

A point renders as one line:

    <measurement>[,<tag>=<value>...] <field>=<value>[,...] <timestamp>

Field values are typed on the wire: integers carry an "i" suffix, strings are
double quoted, floats and booleans are bare. The store derives the column type
from that encoding, so unsupported value types are rejected instead of being
stringified.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Mapping, Optional


class PointError(ValueError):
    """Raised when a point cannot be built or serialized."""


def _check_field(key: str, value: Any) -> None:
    if isinstance(value, (int, str)):
        return
    if isinstance(value, float):
        if not math.isfinite(value):
            raise PointError(f"Field '{key}' is not a finite float: {value!r}")
        return
    raise PointError(f"Field '{key}' has unsupported type {type(value).__name__}")


def format_field_value(value: Any) -> str:
    """Encode a field value for line protocol."""
    # bool is an int subclass
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return f"{value}i"
    if isinstance(value, float):
        return repr(value)
    if isinstance(value, str):
        escaped = value.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'
    raise PointError(f"Unsupported field value type {type(value).__name__}")


@dataclass(frozen=True)
class MetricPoint:
    """Single immutable metric point.

    Tags and fields are exposed as read-only mappings. Equality ignores key
    order; serialization keeps insertion order.
    """

    measurement: str
    tags: Mapping[str, str]
    fields: Mapping[str, Any]
    timestamp: int

    def __post_init__(self) -> None:
        if not self.measurement:
            raise PointError("Measurement name must not be empty")
        if not self.fields:
            raise PointError("A point needs at least one field")
        for key, value in self.fields.items():
            _check_field(key, value)
        if isinstance(self.timestamp, bool) or not isinstance(self.timestamp, int):
            raise PointError(f"Timestamp must be an integer, got {type(self.timestamp).__name__}")

        object.__setattr__(self, "tags", MappingProxyType({str(k): str(v) for k, v in self.tags.items()}))
        object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))

    def to_line_protocol(self) -> str:
        """Serialize to a single line protocol line (no trailing newline)."""
        key = self.measurement
        if self.tags:
            key += "," + ",".join(f"{k}={v}" for k, v in self.tags.items())

        fields = ",".join(f"{k}={format_field_value(v)}" for k, v in self.fields.items())

        return f"{key} {fields} {self.timestamp}"

    def __str__(self) -> str:
        return self.to_line_protocol()


def merge_tags(tags: Mapping[str, str], default_tags: Optional[Mapping[str, str]] = None) -> dict[str, str]:
    """Merge call-site tags with default tags; call-site values win.

    Call-site tags keep their position, defaults follow.
    """
    merged = dict(tags)
    for key, value in (default_tags or {}).items():
        merged.setdefault(key, value)
    return merged


def build_point(
    measurement: str,
    fields: Mapping[str, Any],
    tags: Mapping[str, str],
    timestamp: int,
    default_tags: Optional[Mapping[str, str]] = None,
) -> MetricPoint:
    """Build a point, merging in the default tag set.

    Args:
        measurement: Measurement name
        fields: Field values (int, float, str or bool); must not be empty
        tags: Call-site tags
        timestamp: Nanoseconds since the epoch
        default_tags: Tags applied to every point unless overridden

    Returns:
        MetricPoint

    Raises:
        PointError: If fields are empty or hold an unsupported value
    """
    return MetricPoint(
        measurement=measurement,
        tags=merge_tags(tags, default_tags),
        fields=fields,
        timestamp=timestamp,
    )
