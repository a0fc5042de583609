"""
patchbrep: consolidate subdivision patches into a boundary representation.

Regular bicubic patches are boundary-corrected, linked into a grid, fused
into superpatches and, optionally, welded into a shell with shared vertices
and edges. Gregory patches are approximated by sampling.
"""

from patchbrep._errors import (
    EvaluationFailedError,
    InvalidControlPointsError,
    InvalidWireError,
    PatchExportError,
    UnsupportedPatchTypeError,
)
from patchbrep._options import ExportOptions, GregoryAccuracy
from patchbrep.patch_table import PatchArray, PatchRef, PatchTable, PatchType
from patchbrep.geometry import (
    BSplineCurve,
    BSplineSurface,
    Edge,
    Face,
    Shell,
    Vertex,
    Wire,
    triangular_patch,
)
from patchbrep.consolidation import (
    AdjacencyGraph,
    Superpatch,
    adjust_regular_control_points,
    build_superpatches,
    collect_regular_patches,
    merge_superpatches,
)
from patchbrep.stitching import ToleranceStitcher, stitch_shell
from patchbrep.export import (
    create_face_with_boundary,
    superpatch_surfaces,
    superpatches,
    surfaces_non_regular,
    to_shell,
    to_shell_stitched,
    to_shells,
    to_step_shell,
    to_surfaces,
    to_surfaces_with_options,
)

__version__ = '0.1.0'
