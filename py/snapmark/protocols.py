"""Shapes snapmark expects from the external element model.

The element model is owned by the snapshot generator, not by this package.
The ABCs below are structural: any class exposing the listed attributes is
treated as a virtual subclass, so element models never need to inherit
from them.

    Node                    - tree node with an ordered `children` sequence
    DifferentialLike        - differential component with an `element` list
    StructureDefinitionLike - root object with an optional `differential`
"""

from abc import ABC, abstractmethod
from typing import Any, Optional, Sequence


def _has_attribute(cls: type, name: str) -> bool:
    # dataclass fields without a default only show up in __dataclass_fields__
    return any(name in vars(klass) for klass in cls.__mro__) or \
        name in getattr(cls, "__dataclass_fields__", {})


class Node(ABC):
    """Tree-shaped element that annotations attach to.

    `children` must never contain None.
    """

    @property
    @abstractmethod
    def children(self) -> Sequence["Node"]:
        """Ordered child nodes."""
        ...

    @classmethod
    def __subclasshook__(cls, subclass):
        if cls is Node:
            return _has_attribute(subclass, "children") or NotImplemented
        return NotImplemented


class DifferentialLike(ABC):
    """Differential component of a structure definition."""

    @property
    @abstractmethod
    def element(self) -> Optional[Sequence[Node]]:
        """Differential elements; the first one is the differential root."""
        ...

    @classmethod
    def __subclasshook__(cls, subclass):
        if cls is DifferentialLike:
            return _has_attribute(subclass, "element") or NotImplemented
        return NotImplemented


class StructureDefinitionLike(ABC):
    """Root object carrying an optional differential component."""

    @property
    @abstractmethod
    def differential(self) -> Optional[DifferentialLike]:
        """Differential component, or None."""
        ...

    @classmethod
    def __subclasshook__(cls, subclass):
        if cls is StructureDefinitionLike:
            return _has_attribute(subclass, "differential") or NotImplemented
        return NotImplemented


def differential_root(structure: Any) -> Optional[Any]:
    """First differential element of `structure`, or None.

    Every link is optional: a missing structure, differential, element list
    or an empty element list all resolve to None.
    """
    if structure is None:
        return None
    differential = getattr(structure, "differential", None)
    if differential is None:
        return None
    elements = getattr(differential, "element", None)
    if not elements:
        return None
    return elements[0]
