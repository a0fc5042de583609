"""Regular-patch consolidation: boundary correction, adjacency, superpatches."""

from patchbrep.consolidation._boundary import (
    BoundaryEdge,
    adjust_regular_control_points,
)
from patchbrep.consolidation._collect import RegularPatch, collect_regular_patches
from patchbrep.consolidation._adjacency import NO_NEIGHBOR, AdjacencyGraph
from patchbrep.consolidation._superpatch import (
    Merged,
    MergeOutcome,
    Superpatch,
    Unmerged,
    build_superpatches,
    merge_block,
)
from patchbrep.consolidation._merge import (
    merge_horizontal,
    merge_superpatches,
    merge_vertical,
)

__all__ = [
    'BoundaryEdge', 'adjust_regular_control_points',
    'RegularPatch', 'collect_regular_patches',
    'NO_NEIGHBOR', 'AdjacencyGraph',
    'Superpatch', 'Merged', 'Unmerged', 'MergeOutcome',
    'build_superpatches', 'merge_block',
    'merge_horizontal', 'merge_vertical', 'merge_superpatches',
]
