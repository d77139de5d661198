"""Annotations used by the snapshot generator.

Three annotation kinds, each with its own small set of operations:

    1. Generation marker      - node was synthesized by the generator
    2. Differential constraint - node value is overridden by the differential
    3. Snapshot cross-reference - differential node -> generated snapshot node

Single-node operations tolerate a None node so they can be chained off
optional lookups. The recursive clear is a top-level operation and raises
InvalidArgument on a None argument.

SnapshotAnnotations binds the operations to one AnnotationStore. The
module-level functions of the same names use the process-wide default
instance (see `configure`).
"""

import logging
from datetime import datetime
from typing import Iterable, List, Optional

from snapmark.protocols import Node, StructureDefinitionLike, differential_root
from snapmark.store import AnnotationStore
from snapmark.types import (
    AnnotationConfig, ConstraintMarker, CrossReference, GenerationMarker,
    InvalidArgument,
)

logger = logging.getLogger(__name__)


class SnapshotAnnotations:
    """Snapshot generator annotations backed by an AnnotationStore."""

    def __init__(self, store: Optional[AnnotationStore] = None):
        self.store = store if store is not None else AnnotationStore()

    # ============================================================
    # Generation marker
    # ============================================================

    def mark_generated(self, node: Optional[Node]) -> None:
        """Mark `node` as generated. Keeps the original timestamp if already marked."""
        if node is None or self.store.has(node, GenerationMarker):
            return
        self.store.attach(node, GenerationMarker.now(self.store.config.clock))

    def is_generated(self, node: Optional[Node]) -> bool:
        return self.store.has(node, GenerationMarker)

    def generated_at(self, node: Optional[Node]) -> Optional[datetime]:
        """When `node` was marked as generated, or None."""
        marker = self.store.get(node, GenerationMarker)
        return marker.created_at if marker else None

    # ============================================================
    # Differential constraint
    # ============================================================

    def mark_constrained_by_differential(self, node: Optional[Node]) -> None:
        self.store.attach(node, ConstraintMarker())

    def clear_constrained_by_differential(self, node: Optional[Node]) -> None:
        self.store.remove_all(node, ConstraintMarker)

    def is_constrained_by_differential(self, node: Optional[Node]) -> bool:
        return self.store.has(node, ConstraintMarker)

    def clear_constrained_by_differential_deep(self, node: Optional[Node]) -> None:
        """Clear the constraint marker on `node` and all of its descendants.

        A list or tuple is treated as a sequence of roots, see
        `clear_all_constrained_by_differential`.

        Raises:
            InvalidArgument: node is None, or a child sequence contains None.
        """
        if node is None:
            raise InvalidArgument("node")
        if isinstance(node, (list, tuple)):
            self.clear_all_constrained_by_differential(node)
            return
        count = self._clear_subtree(node)
        logger.debug("Cleared differential constraints on %d nodes", count)

    def clear_all_constrained_by_differential(self, nodes: Optional[Iterable[Node]]) -> None:
        """Deep-clear every root in `nodes`, in order.

        Raises:
            InvalidArgument: nodes is None, or contains None.
        """
        if nodes is None:
            raise InvalidArgument("nodes")
        count = 0
        for node in nodes:
            if node is None:
                raise InvalidArgument("node")
            count += self._clear_subtree(node)
        logger.debug("Cleared differential constraints on %d nodes", count)

    def _clear_subtree(self, root: Node) -> int:
        # Pre-order, children in sequence order; explicit stack instead of recursion.
        stack: List[Node] = [root]
        count = 0
        while stack:
            node = stack.pop()
            self.clear_constrained_by_differential(node)
            count += 1
            children = list(node.children)
            if any(child is None for child in children):
                raise InvalidArgument("children", "child sequence must not contain None")
            stack.extend(reversed(children))
        return count

    # ============================================================
    # Snapshot cross-reference
    # ============================================================

    def set_cross_reference(self, diff_node: Optional[Node], snap_node: Optional[Node]) -> None:
        """Point `diff_node` at the snapshot node generated from it.

        Raises:
            InvalidArgument: diff_node is present and snap_node is None.
        """
        if diff_node is None:
            return
        self.store.attach(diff_node, CrossReference(snap_node))
        logger.debug("Linked differential %s to snapshot %s",
                     type(diff_node).__name__, type(snap_node).__name__)

    def get_cross_reference(self, diff_node: Optional[Node]) -> Optional[Node]:
        ref = self.store.get(diff_node, CrossReference)
        return ref.target if ref else None

    def clear_cross_reference(self, diff_node: Optional[Node]) -> None:
        self.store.remove_all(diff_node, CrossReference)

    def set_root_cross_reference(self, structure: Optional[StructureDefinitionLike],
                                 snap_root: Optional[Node]) -> None:
        """Link the first differential element of `structure` to `snap_root`.

        No-op when the structure, its differential or its first element is missing.
        """
        self.set_cross_reference(differential_root(structure), snap_root)

    def get_root_cross_reference(
            self, structure: Optional[StructureDefinitionLike]) -> Optional[Node]:
        return self.get_cross_reference(differential_root(structure))


# ============================================================
# Process-wide default
# ============================================================

_default = SnapshotAnnotations()


def configure(config: Optional[AnnotationConfig] = None) -> SnapshotAnnotations:
    """Replace the default instance with a fresh store using `config`.

    Annotations held by the previous default are dropped.
    """
    global _default
    _default = SnapshotAnnotations(AnnotationStore(config))
    return _default


def default_annotations() -> SnapshotAnnotations:
    return _default


def mark_generated(node: Optional[Node]) -> None:
    _default.mark_generated(node)


def is_generated(node: Optional[Node]) -> bool:
    return _default.is_generated(node)


def generated_at(node: Optional[Node]) -> Optional[datetime]:
    return _default.generated_at(node)


def mark_constrained_by_differential(node: Optional[Node]) -> None:
    _default.mark_constrained_by_differential(node)


def clear_constrained_by_differential(node: Optional[Node]) -> None:
    _default.clear_constrained_by_differential(node)


def is_constrained_by_differential(node: Optional[Node]) -> bool:
    return _default.is_constrained_by_differential(node)


def clear_constrained_by_differential_deep(node: Optional[Node]) -> None:
    _default.clear_constrained_by_differential_deep(node)


def clear_all_constrained_by_differential(nodes: Optional[Iterable[Node]]) -> None:
    _default.clear_all_constrained_by_differential(nodes)


def set_cross_reference(diff_node: Optional[Node], snap_node: Optional[Node]) -> None:
    _default.set_cross_reference(diff_node, snap_node)


def get_cross_reference(diff_node: Optional[Node]) -> Optional[Node]:
    return _default.get_cross_reference(diff_node)


def clear_cross_reference(diff_node: Optional[Node]) -> None:
    _default.clear_cross_reference(diff_node)


def set_root_cross_reference(structure: Optional[StructureDefinitionLike],
                             snap_root: Optional[Node]) -> None:
    _default.set_root_cross_reference(structure, snap_root)


def get_root_cross_reference(structure: Optional[StructureDefinitionLike]) -> Optional[Node]:
    return _default.get_root_cross_reference(structure)
