"""Side-table annotation store keyed by node identity.

Annotations never touch the node objects themselves. Each annotated node
gets one NodeAnnotations record in the store, looked up by id(node). The
entry keeps a reference to its node so that the id cannot be recycled
while the entry is alive: a weak reference when the node supports it (the
entry then disappears together with the node), a strong one otherwise.

Every operation treats a None node as "nothing to do".
"""

import logging
import weakref
from typing import Any, Callable, Dict, Optional, Type

from snapmark.types import (
    AnnotationConfig, NodeAnnotations, slot_for,
)

logger = logging.getLogger(__name__)


class _Entry:
    __slots__ = ("ref", "record")

    def __init__(self, ref: Callable[[], Any], record: NodeAnnotations):
        self.ref = ref
        self.record = record


class AnnotationStore:
    """Attach, query and remove annotations by kind.

    Supported kinds are GenerationMarker, ConstraintMarker and
    CrossReference; each is held at most once per node.
    """

    def __init__(self, config: Optional[AnnotationConfig] = None):
        self.config = config or AnnotationConfig()
        self._entries: Dict[int, _Entry] = {}

    # -- lookup --

    def _entry(self, node: Any) -> Optional[_Entry]:
        entry = self._entries.get(id(node))
        if entry is None or entry.ref() is not node:
            return None
        return entry

    def _reference(self, node: Any) -> Callable[[], Any]:
        if self.config.track_lifetime:
            key = id(node)
            entries = self._entries

            def expire(ref):
                entry = entries.get(key)
                if entry is not None and entry.ref is ref:
                    del entries[key]
                    logger.debug("Dropped annotations of collected node %#x", key)

            try:
                return weakref.ref(node, expire)
            except TypeError:
                pass
        return lambda: node

    # -- kind-generic API --

    def attach(self, node: Any, value: Any) -> None:
        """Attach `value` under its own kind. No-op if node is None."""
        if node is None:
            return
        kind = type(value)
        slot_for(kind)
        entry = self._entry(node)
        if entry is None:
            self._entries[id(node)] = _Entry(
                self._reference(node), NodeAnnotations().with_value(kind, value))
            return
        if entry.record.get(kind) is not None and not self.config.replace_on_attach:
            return
        entry.record = entry.record.with_value(kind, value)

    def has(self, node: Any, kind: Type) -> bool:
        return self.get(node, kind) is not None

    def get(self, node: Any, kind: Type) -> Optional[Any]:
        """Annotation of the given kind, or None."""
        slot_for(kind)
        if node is None:
            return None
        entry = self._entry(node)
        return entry.record.get(kind) if entry else None

    def remove_all(self, node: Any, kind: Type) -> None:
        """Remove every annotation of the given kind. No-op if node is None."""
        slot_for(kind)
        if node is None:
            return
        entry = self._entry(node)
        if entry is None:
            return
        record = entry.record.with_value(kind, None)
        if record.is_empty():
            del self._entries[id(node)]
        else:
            entry.record = record

    # -- whole-node / whole-store --

    def annotations(self, node: Any) -> Optional[NodeAnnotations]:
        """Full annotation record of a node, or None if it has none."""
        if node is None:
            return None
        entry = self._entry(node)
        return entry.record if entry else None

    def discard(self, node: Any) -> None:
        """Drop every annotation attached to `node`."""
        if node is None or self._entry(node) is None:
            return
        del self._entries[id(node)]
        logger.debug("Discarded annotations of %s", type(node).__name__)

    def clear(self) -> None:
        logger.debug("Clearing %d annotated nodes", len(self._entries))
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, node: Any) -> bool:
        return node is not None and self._entry(node) is not None
