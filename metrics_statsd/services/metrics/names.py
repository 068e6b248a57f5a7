"""MetricName - hierarchical identifier for a registered metric.

A metric is identified by its group (usually the owning package), its type
(usually the owning component), its name, and an optional scope that
distinguishes several instances of the same metric.
"""

from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class MetricName:
    """Immutable metric identifier.

    ``group``, ``type`` and ``name`` must be non-empty strings. ``scope`` is
    either ``None`` or a non-empty string; an empty scope is rejected rather
    than silently treated as absent.
    """
    group: str
    type: str
    name: str
    scope: Optional[str] = None

    def __post_init__(self) -> None:
        for field_name in ("group", "type", "name"):
            value = getattr(self, field_name)
            if not isinstance(value, str) or not value:
                raise ValueError(f"MetricName.{field_name} must be a non-empty string, got {value!r}")
        if self.scope is not None and (not isinstance(self.scope, str) or not self.scope):
            raise ValueError(f"MetricName.scope must be None or a non-empty string, got {self.scope!r}")

    @property
    def has_scope(self) -> bool:
        return self.scope is not None

    @property
    def sort_key(self) -> Tuple[str, str, str, Tuple[int, str]]:
        # Unscoped names sort before any scoped sibling
        scope_key = (0, "") if self.scope is None else (1, self.scope)
        return (self.group, self.type, self.name, scope_key)

    def __lt__(self, other: "MetricName") -> bool:
        if not isinstance(other, MetricName):
            return NotImplemented
        return self.sort_key < other.sort_key
