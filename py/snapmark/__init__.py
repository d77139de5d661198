"""snapmark - snapshot generator annotations.

Out-of-band bookkeeping for merging a differential element tree into a
snapshot: generated-node markers, differential-constraint markers and
differential-to-snapshot cross-references, held in a side-table keyed by
node identity.
"""

__version__ = "0.1.0"

from snapmark.protocols import (
    Node,
    DifferentialLike,
    StructureDefinitionLike,
)
from snapmark.types import (
    AnnotationConfig,
    ConstraintMarker,
    CrossReference,
    GenerationMarker,
    InvalidArgument,
    NodeAnnotations,
)
from snapmark.store import AnnotationStore
from snapmark.markers import (
    SnapshotAnnotations,
    configure,
    default_annotations,
    mark_generated,
    is_generated,
    generated_at,
    mark_constrained_by_differential,
    clear_constrained_by_differential,
    is_constrained_by_differential,
    clear_constrained_by_differential_deep,
    clear_all_constrained_by_differential,
    set_cross_reference,
    get_cross_reference,
    clear_cross_reference,
    set_root_cross_reference,
    get_root_cross_reference,
)
