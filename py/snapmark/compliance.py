"""Model-agnostic compliance test suite for snapmark.

Runs the annotation contract against any external element model.
Element models provide a fixture dict:

    fixture = {
        "create_node": lambda: ...,                # fresh node without children
        "add_child": lambda parent, child: ...,    # append child, return child
        "create_structure": lambda elems: ...,     # structure whose differential holds
                                                   # `elems`; None -> no differential
                                                   # (omit key to skip root tests)
        "create_annotations": lambda: ...,         # optional, fresh SnapshotAnnotations
    }

Usage with pytest:

    from snapmark.compliance import run_compliance_tests

    def test_compliance(element_fixture):
        run_compliance_tests(element_fixture)
"""

from typing import Any, Dict, List

from snapmark.markers import SnapshotAnnotations
from snapmark.types import InvalidArgument


# ============================================================
# Helpers
# ============================================================

def _annotations(fix: Dict[str, Any]) -> SnapshotAnnotations:
    factory = fix.get("create_annotations")
    return factory() if factory is not None else SnapshotAnnotations()


def _tree(fix: Dict[str, Any], depth: int, fanout: int = 2) -> Any:
    """Complete tree of the given depth; depth 0 is a single node."""
    root = fix["create_node"]()
    level = [root]
    for _ in range(depth):
        nxt = []
        for parent in level:
            for _ in range(fanout):
                nxt.append(fix["add_child"](parent, fix["create_node"]()))
        level = nxt
    return root


def _walk(node: Any) -> List[Any]:
    nodes = [node]
    for child in node.children:
        nodes.extend(_walk(child))
    return nodes


def _raises_invalid_argument(fn, *args) -> bool:
    try:
        fn(*args)
    except InvalidArgument:
        return True
    return False


# ============================================================
# Node shape
# ============================================================

def test_node_shape(fix: Dict[str, Any]) -> None:
    """Nodes expose an ordered children sequence."""
    node = fix["create_node"]()
    child = fix["add_child"](node, fix["create_node"]())
    assert hasattr(node, "children"), "node should expose children"
    assert len(node.children) == 1 and node.children[0] is child, \
        "added child should be in children"


# ============================================================
# Generation marker
# ============================================================

def test_generated_lifecycle(fix: Dict[str, Any]) -> None:
    """is_generated is False before marking, True after and on re-marking."""
    ann = _annotations(fix)
    node = fix["create_node"]()
    assert ann.is_generated(node) is False
    ann.mark_generated(node)
    assert ann.is_generated(node) is True
    ann.mark_generated(node)
    assert ann.is_generated(node) is True, "re-marking should keep the marker"


def test_generated_independent_nodes(fix: Dict[str, Any]) -> None:
    """Marking one node leaves a fresh sibling unmarked."""
    ann = _annotations(fix)
    a = fix["create_node"]()
    b = fix["create_node"]()
    ann.mark_generated(a)
    assert ann.is_generated(a) is True
    assert ann.is_generated(b) is False, \
        "annotations must be keyed by node identity"


# ============================================================
# Differential constraint
# ============================================================

def test_constraint_mark_clear(fix: Dict[str, Any]) -> None:
    """mark then clear leaves the node unconstrained."""
    ann = _annotations(fix)
    node = fix["create_node"]()
    ann.mark_constrained_by_differential(node)
    assert ann.is_constrained_by_differential(node) is True
    ann.clear_constrained_by_differential(node)
    assert ann.is_constrained_by_differential(node) is False


def test_deep_clear_subtree(fix: Dict[str, Any]) -> None:
    """Deep clear reaches every descendant."""
    ann = _annotations(fix)
    root = _tree(fix, depth=3)
    nodes = _walk(root)
    for node in nodes:
        ann.mark_constrained_by_differential(node)
    ann.clear_constrained_by_differential_deep(root)
    assert not any(ann.is_constrained_by_differential(n) for n in nodes), \
        "every node in the subtree should be cleared"


def test_deep_clear_roots(fix: Dict[str, Any]) -> None:
    """Deep clear over a sequence of roots clears every subtree."""
    ann = _annotations(fix)
    roots = [_tree(fix, depth=2) for _ in range(3)]
    nodes = [n for root in roots for n in _walk(root)]
    for node in nodes:
        ann.mark_constrained_by_differential(node)
    ann.clear_all_constrained_by_differential(roots)
    assert not any(ann.is_constrained_by_differential(n) for n in nodes)


def test_deep_clear_rejects_none(fix: Dict[str, Any]) -> None:
    """Deep clear raises InvalidArgument on None node or sequence."""
    ann = _annotations(fix)
    assert _raises_invalid_argument(ann.clear_constrained_by_differential_deep, None)
    assert _raises_invalid_argument(ann.clear_all_constrained_by_differential, None)


# ============================================================
# Snapshot cross-reference
# ============================================================

def test_cross_reference_identity(fix: Dict[str, Any]) -> None:
    """get_cross_reference returns the very node that was set."""
    ann = _annotations(fix)
    diff = fix["create_node"]()
    snap = fix["create_node"]()
    ann.set_cross_reference(diff, snap)
    assert ann.get_cross_reference(diff) is snap


def test_root_cross_reference(fix: Dict[str, Any]) -> None:
    """Root cross-reference resolves through the differential's first element."""
    if fix.get("create_structure") is None:
        return
    ann = _annotations(fix)
    d0 = fix["create_node"]()
    s0 = fix["create_node"]()
    sd = fix["create_structure"]([d0])
    ann.set_root_cross_reference(sd, s0)
    assert ann.get_root_cross_reference(sd) is s0
    assert ann.get_cross_reference(d0) is s0


def test_root_cross_reference_without_differential(fix: Dict[str, Any]) -> None:
    """Root cross-reference is a no-op without a differential."""
    if fix.get("create_structure") is None:
        return
    ann = _annotations(fix)
    sd = fix["create_structure"](None)
    ann.set_root_cross_reference(sd, fix["create_node"]())
    assert ann.get_root_cross_reference(sd) is None


# ============================================================
# Absent nodes
# ============================================================

def test_absent_node_queries(fix: Dict[str, Any]) -> None:
    """Single-node operations tolerate None."""
    ann = _annotations(fix)
    ann.mark_generated(None)
    ann.mark_constrained_by_differential(None)
    ann.clear_constrained_by_differential(None)
    ann.set_cross_reference(None, fix["create_node"]())
    assert ann.is_generated(None) is False
    assert ann.is_constrained_by_differential(None) is False
    assert ann.get_cross_reference(None) is None


# ============================================================
# Full test suite
# ============================================================

ALL_TESTS = {
    "node": [test_node_shape],
    "generation": [
        test_generated_lifecycle,
        test_generated_independent_nodes,
    ],
    "constraint": [
        test_constraint_mark_clear,
        test_deep_clear_subtree,
        test_deep_clear_roots,
        test_deep_clear_rejects_none,
    ],
    "cross_reference": [
        test_cross_reference_identity,
        test_root_cross_reference,
        test_root_cross_reference_without_differential,
    ],
    "absent": [test_absent_node_queries],
}


def run_compliance_tests(fixture: Dict[str, Any]) -> None:
    """Run all compliance tests for the given fixture.

    Required fixture keys:
        create_node  - () -> node
        add_child    - (parent, child) -> child
    Optional:
        create_structure   - (elements or None) -> structure
        create_annotations - () -> SnapshotAnnotations
    """
    for layer, tests in ALL_TESTS.items():
        for test_fn in tests:
            test_fn(fixture)
