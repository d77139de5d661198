"""Reference element model for snapmark.

A minimal structure definition shaped like the ones the snapshot generator
works on: a StructureDefinition with differential and snapshot components,
each holding a list of ElementDefinition trees. Satisfies the Node,
DifferentialLike and StructureDefinitionLike protocols.

Elements compare by value, so equal elements are still distinct nodes for
the annotation store.
"""

from dataclasses import dataclass, field
from typing import Any, Iterator, List, Optional


@dataclass
class ElementDefinition:
    """One element of a structure, with nested child elements."""
    path: str
    value: Any = None
    children: List["ElementDefinition"] = field(default_factory=list)

    def add_child(self, child: "ElementDefinition") -> "ElementDefinition":
        """Append `child` and return it."""
        if child is None:
            raise ValueError("child must not be None")
        self.children.append(child)
        return child

    def walk(self) -> Iterator["ElementDefinition"]:
        """This element and all descendants, pre-order."""
        yield self
        for child in self.children:
            yield from child.walk()


@dataclass
class DifferentialComponent:
    element: List[ElementDefinition] = field(default_factory=list)


@dataclass
class SnapshotComponent:
    element: List[ElementDefinition] = field(default_factory=list)


@dataclass
class StructureDefinition:
    url: str
    differential: Optional[DifferentialComponent] = None
    snapshot: Optional[SnapshotComponent] = None


def element(path: str, *children: ElementDefinition, value: Any = None) -> ElementDefinition:
    """Build an element tree.

    Usage:
        root = element("Patient", element("Patient.name"), element("Patient.birthDate"))
    """
    return ElementDefinition(path=path, value=value, children=list(children))


def create(url: str,
           differential: Optional[List[ElementDefinition]] = None,
           snapshot: Optional[List[ElementDefinition]] = None) -> StructureDefinition:
    """Create a structure definition.

    A component is only present when its element list is given, so
    `create(url)` has neither a differential nor a snapshot.
    """
    return StructureDefinition(
        url=url,
        differential=DifferentialComponent(differential) if differential is not None else None,
        snapshot=SnapshotComponent(snapshot) if snapshot is not None else None,
    )
