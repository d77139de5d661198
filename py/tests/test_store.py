"""Tests for the identity-keyed annotation store and its value types."""

import gc
from datetime import datetime, timezone

import pytest

from snapmark.adapters.element import element
from snapmark.store import AnnotationStore
from snapmark.types import (
    AnnotationConfig, ConstraintMarker, CrossReference, GenerationMarker,
    InvalidArgument, NodeAnnotations, slot_for,
)


T0 = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)
T1 = datetime(2024, 5, 1, 12, 0, 1, tzinfo=timezone.utc)


class _SlottedNode:
    """Node type that cannot be weakly referenced."""
    __slots__ = ("children",)

    def __init__(self):
        self.children = []


# ============================================================
# Value types
# ============================================================

class TestTypes:
    def test_cross_reference_requires_target(self):
        with pytest.raises(InvalidArgument) as exc:
            CrossReference(None)
        assert exc.value.argument == "target"

    def test_invalid_argument_is_value_error(self):
        assert issubclass(InvalidArgument, ValueError)

    def test_generation_marker_uses_clock(self):
        assert GenerationMarker.now(lambda: T0).created_at == T0

    def test_generation_marker_default_clock_is_utc(self):
        assert GenerationMarker.now().created_at.tzinfo == timezone.utc

    def test_markers_are_frozen(self):
        marker = GenerationMarker(T0)
        with pytest.raises(AttributeError):
            marker.created_at = T1  # type: ignore

    def test_cross_reference_compares_by_identity(self):
        target = element("A")
        assert CrossReference(target) != CrossReference(target)

    def test_slot_for_unknown_kind(self):
        with pytest.raises(TypeError, match="unsupported annotation kind"):
            slot_for(str)

    def test_node_annotations_to_json(self):
        record = NodeAnnotations(generated=GenerationMarker(T0),
                                 constrained=ConstraintMarker())
        assert record.to_json() == {
            "generated": True,
            "created-at": "2024-05-01T12:00:00+00:00",
            "constrained-by-differential": True,
            "has-cross-reference": False,
        }

    def test_empty_record(self):
        assert NodeAnnotations().is_empty()
        assert not NodeAnnotations(constrained=ConstraintMarker()).is_empty()


# ============================================================
# Kind-generic API
# ============================================================

class TestAnnotationStore:
    def test_attach_then_get(self):
        store = AnnotationStore()
        node = element("A")
        marker = GenerationMarker(T0)
        store.attach(node, marker)
        assert store.has(node, GenerationMarker) is True
        assert store.get(node, GenerationMarker) is marker

    def test_kinds_are_independent(self):
        store = AnnotationStore()
        node = element("A")
        store.attach(node, ConstraintMarker())
        assert store.has(node, ConstraintMarker) is True
        assert store.has(node, GenerationMarker) is False
        assert store.get(node, CrossReference) is None

    def test_none_node_is_noop(self):
        store = AnnotationStore()
        store.attach(None, ConstraintMarker())
        store.remove_all(None, ConstraintMarker)
        assert store.has(None, ConstraintMarker) is False
        assert store.get(None, ConstraintMarker) is None
        assert store.annotations(None) is None
        assert None not in store
        assert len(store) == 0

    def test_remove_all(self):
        store = AnnotationStore()
        node = element("A")
        store.attach(node, ConstraintMarker())
        store.attach(node, GenerationMarker(T0))
        store.remove_all(node, ConstraintMarker)
        assert store.has(node, ConstraintMarker) is False
        assert store.has(node, GenerationMarker) is True

    def test_remove_last_kind_drops_entry(self):
        store = AnnotationStore()
        node = element("A")
        store.attach(node, ConstraintMarker())
        store.remove_all(node, ConstraintMarker)
        assert node not in store
        assert len(store) == 0

    def test_remove_from_unannotated_node(self):
        store = AnnotationStore()
        store.remove_all(element("A"), GenerationMarker)
        assert len(store) == 0

    def test_attach_replaces_by_default(self):
        store = AnnotationStore()
        node = element("A")
        store.attach(node, GenerationMarker(T0))
        store.attach(node, GenerationMarker(T1))
        assert store.get(node, GenerationMarker).created_at == T1

    def test_attach_keeps_first_when_configured(self):
        store = AnnotationStore(AnnotationConfig(replace_on_attach=False))
        node = element("A")
        store.attach(node, GenerationMarker(T0))
        store.attach(node, GenerationMarker(T1))
        assert store.get(node, GenerationMarker).created_at == T0

    def test_unsupported_kind(self):
        store = AnnotationStore()
        with pytest.raises(TypeError):
            store.attach(element("A"), "not an annotation")
        with pytest.raises(TypeError):
            store.has(element("A"), dict)

    def test_annotations_record(self):
        store = AnnotationStore()
        node = element("A")
        target = element("B")
        store.attach(node, CrossReference(target))
        record = store.annotations(node)
        assert isinstance(record, NodeAnnotations)
        assert record.cross_reference.target is target
        assert record.generated is None

    def test_discard_and_clear(self):
        store = AnnotationStore()
        a, b = element("A"), element("B")
        store.attach(a, ConstraintMarker())
        store.attach(b, ConstraintMarker())
        store.discard(a)
        store.discard(None)
        assert a not in store
        assert b in store
        store.clear()
        assert len(store) == 0


# ============================================================
# Identity keys and lifetime
# ============================================================

class TestIdentity:
    def test_equal_nodes_are_tracked_separately(self):
        store = AnnotationStore()
        a, b = element("A"), element("A")
        assert a == b
        store.attach(a, ConstraintMarker())
        assert store.has(a, ConstraintMarker) is True
        assert store.has(b, ConstraintMarker) is False

    def test_unhashable_nodes(self):
        store = AnnotationStore()
        node = element("A")
        with pytest.raises(TypeError):
            hash(node)
        store.attach(node, ConstraintMarker())
        assert node in store

    def test_entry_dropped_when_node_collected(self):
        store = AnnotationStore()
        node = element("A")
        store.attach(node, ConstraintMarker())
        assert len(store) == 1
        del node
        gc.collect()
        assert len(store) == 0

    def test_entry_kept_without_lifetime_tracking(self):
        store = AnnotationStore(AnnotationConfig(track_lifetime=False))
        node = element("A")
        store.attach(node, ConstraintMarker())
        del node
        gc.collect()
        assert len(store) == 1

    def test_non_weakrefable_node(self):
        store = AnnotationStore()
        node = _SlottedNode()
        store.attach(node, GenerationMarker(T0))
        assert store.get(node, GenerationMarker).created_at == T0
        assert store.has(_SlottedNode(), GenerationMarker) is False
