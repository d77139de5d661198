"""Core data types for snapmark annotations.

All marker types are immutable dataclasses. A node's annotations live in a
single fixed-shape NodeAnnotations record held by the store, one slot per
annotation kind.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Callable, Optional, Type


# ============================================================
# Errors
# ============================================================

class InvalidArgument(ValueError):
    """A required argument was absent (None).

    Raised only by the recursive and root-level operations; the single-node
    accessors treat an absent node as nothing to do.
    """

    def __init__(self, argument: str, message: Optional[str] = None):
        self.argument = argument
        super().__init__(message or f"{argument} must not be None")


# ============================================================
# Configuration
# ============================================================

def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class AnnotationConfig:
    """Settings for an AnnotationStore.

    clock: timestamp source for GenerationMarker.created_at
    replace_on_attach: attaching a kind that is already present replaces it
        (True) or keeps the first value (False)
    track_lifetime: drop a node's entry when the node is garbage collected
        (only possible for weak-referenceable nodes)
    """
    clock: Callable[[], datetime] = utc_now
    replace_on_attach: bool = True
    track_lifetime: bool = True


# ============================================================
# Markers
# ============================================================

@dataclass(frozen=True)
class GenerationMarker:
    """Marks a node as synthesized by the snapshot generator."""
    created_at: datetime

    @classmethod
    def now(cls, clock: Callable[[], datetime] = utc_now) -> "GenerationMarker":
        return cls(created_at=clock())


@dataclass(frozen=True)
class ConstraintMarker:
    """Marks a snapshot node whose value is constrained by the differential."""


@dataclass(frozen=True, eq=False)
class CrossReference:
    """Links a differential node to the snapshot node generated from it.

    Compared by identity, like the nodes it points at.
    """
    target: Any

    def __post_init__(self):
        if self.target is None:
            raise InvalidArgument("target")


# ============================================================
# NodeAnnotations - per-node record
# ============================================================

@dataclass(frozen=True)
class NodeAnnotations:
    """Every annotation attached to one node, one slot per kind."""
    generated: Optional[GenerationMarker] = None
    constrained: Optional[ConstraintMarker] = None
    cross_reference: Optional[CrossReference] = field(default=None, compare=False)

    def get(self, kind: Type) -> Any:
        return getattr(self, slot_for(kind))

    def with_value(self, kind: Type, value: Any) -> "NodeAnnotations":
        return replace(self, **{slot_for(kind): value})

    def is_empty(self) -> bool:
        return (self.generated is None
                and self.constrained is None
                and self.cross_reference is None)

    def to_json(self) -> dict:
        return {
            "generated": self.generated is not None,
            "created-at": self.generated.created_at.isoformat() if self.generated else None,
            "constrained-by-differential": self.constrained is not None,
            "has-cross-reference": self.cross_reference is not None,
        }


_SLOTS = {
    GenerationMarker: "generated",
    ConstraintMarker: "constrained",
    CrossReference: "cross_reference",
}


def slot_for(kind: Type) -> str:
    """Record field holding annotations of the given kind."""
    try:
        return _SLOTS[kind]
    except (KeyError, TypeError):
        raise TypeError(f"unsupported annotation kind: {kind!r}") from None
