"""
Top-level conversions from a patch table to surfaces and shells.

Usage
-----
    from patchbrep import ExportOptions, PatchTable, to_step_shell

    table, points = PatchTable.from_control_nets(nets)
    shell = to_step_shell(table, points)
    shell = to_step_shell(table, points, ExportOptions(stitch_edges=True))

Routing of :func:`to_step_shell`
--------------------------------
* ``use_superpatches``: regular patches are consolidated into superpatches
  and Gregory patches are appended unmerged. With ``stitch_edges`` the
  result is welded into one shared-edge shell.
* otherwise, or when no superpatch results: a stitched shell of every
  patch if ``stitch_edges``, else disconnected faces from
  :func:`to_surfaces_with_options`.
"""

import logging
import warnings
from typing import List, Optional

import numpy as np

from patchbrep._errors import PatchExportError
from patchbrep._options import ExportOptions, GregoryAccuracy
from patchbrep.consolidation import (
    AdjacencyGraph,
    Superpatch,
    build_superpatches,
    collect_regular_patches,
    merge_superpatches,
)
from patchbrep.geometry import BSplineSurface, Edge, Face, Shell, Vertex, triangular_patch
from patchbrep.patch_table import GREGORY_TYPES, PatchRef, PatchTable, PatchType
from patchbrep.stitching import boundary_curves, stitch_shell

logger = logging.getLogger(__name__)

__all__ = [
    'to_surfaces', 'to_surfaces_with_options', 'surfaces_non_regular',
    'superpatches', 'superpatch_surfaces', 'create_face_with_boundary',
    'triangular_patch', 'to_shell', 'to_shells', 'to_shell_stitched',
    'to_step_shell',
]

SURFACE_TYPES = frozenset({PatchType.REGULAR}) | GREGORY_TYPES

NON_REGULAR_TYPES = GREGORY_TYPES | frozenset({
    PatchType.GREGORY,
    PatchType.GREGORY_BOUNDARY,
    PatchType.GREGORY_CORNER,
})


def _net_and_surface(patch: PatchRef, gregory_accuracy=GregoryAccuracy.BSPLINE_END_CAPS):
    """4x4 net and surface of one patch.

    The net always comes from the 4x4 extraction and is used for boundary
    wires; the surface is the 8x8 fit for Gregory patches under
    HIGH_PRECISION.
    """
    net = patch.control_net()
    if patch.is_gregory and gregory_accuracy is GregoryAccuracy.HIGH_PRECISION:
        surface = patch.to_bspline_high_precision()
    else:
        surface = BSplineSurface.from_control_net(net)
    return net, surface


def _lenient_pairs(patch_table, control_points, types, gregory_accuracy):
    """(net, surface) for patches of ``types``; failures logged and skipped."""
    pairs = []
    failed = 0
    for patch in patch_table.patches(control_points):
        patch_type = patch.patch_type
        if patch_type not in types:
            continue
        try:
            pairs.append(_net_and_surface(patch, gregory_accuracy))
        except PatchExportError as exc:
            logger.warning("Failed to convert patch %d (type %s): %s",
                           patch.patch_index, patch_type, exc)
            failed += 1
    if failed:
        logger.info("Converted %d patches, %d failed", len(pairs), failed)
    return pairs


def _strict_pairs(patch_table, control_points, gregory_accuracy):
    return [_net_and_surface(patch, gregory_accuracy)
            for patch in patch_table.patches(control_points)]


def to_surfaces(patch_table: PatchTable, control_points) -> List[BSplineSurface]:
    """Surfaces of every regular and Gregory patch.

    Other patch types are skipped; patches that fail to convert are logged
    and skipped.
    """
    pairs = _lenient_pairs(patch_table, control_points, SURFACE_TYPES,
                           GregoryAccuracy.BSPLINE_END_CAPS)
    return [surface for _, surface in pairs]


def to_surfaces_with_options(patch_table: PatchTable, control_points,
                             gregory_accuracy=GregoryAccuracy.BSPLINE_END_CAPS
                             ) -> List[BSplineSurface]:
    """Surfaces of every patch, Gregory patches per ``gregory_accuracy``.

    Raises
    ------
    UnsupportedPatchTypeError
        If the table holds a patch type without a conversion.
    InvalidControlPointsError, EvaluationFailedError
        If any single patch fails.
    """
    gregory_accuracy = GregoryAccuracy(gregory_accuracy)
    return [surface for _, surface in
            _strict_pairs(patch_table, control_points, gregory_accuracy)]


def surfaces_non_regular(patch_table: PatchTable, control_points,
                         gregory_accuracy=GregoryAccuracy.BSPLINE_END_CAPS
                         ) -> List[BSplineSurface]:
    """Surfaces of the non-regular patches only; failures are skipped."""
    pairs = _lenient_pairs(patch_table, control_points, NON_REGULAR_TYPES,
                           GregoryAccuracy(gregory_accuracy))
    return [surface for _, surface in pairs]


def superpatches(patch_table: PatchTable, control_points,
                 tol: float = 1e-6) -> List[Superpatch]:
    """Collect, link, fuse and merge the regular patches of a table."""
    patches = collect_regular_patches(patch_table, control_points)
    graph = AdjacencyGraph.build(patches, tol)
    fused = build_superpatches(patches, graph, tol)
    return merge_superpatches(fused, tol)


def superpatch_surfaces(patch_table: PatchTable, control_points,
                        tol: float = 1e-6) -> List[BSplineSurface]:
    """Uniform bicubic surfaces of the merged superpatches."""
    return [sp.to_surface() for sp in superpatches(patch_table, control_points, tol)]


def create_face_with_boundary(net, surface=None) -> Face:
    """Face bounded by an explicit wire of the net's four boundary curves.

    Each face gets its own vertices; nothing is shared with other faces.
    """
    net = np.asarray(net, dtype=np.float64)
    if surface is None:
        surface = BSplineSurface.from_control_net(net)
    curves = boundary_curves(net)
    corners = [Vertex(curve.start) for curve in curves]
    edges = [Edge(corners[k], corners[(k + 1) % 4], curves[k]) for k in range(4)]
    return Face.from_wire(surface, edges, expected_edges=4)


def _make_face(net, surface, explicit_boundaries: bool) -> Face:
    if explicit_boundaries:
        return create_face_with_boundary(net, surface)
    return Face(surface)


def to_shell(patch_table: PatchTable, control_points,
             explicit_boundaries: bool = False) -> Shell:
    """Shell of disconnected faces, one per regular or Gregory patch."""
    pairs = _lenient_pairs(patch_table, control_points, SURFACE_TYPES,
                           GregoryAccuracy.BSPLINE_END_CAPS)
    faces = [_make_face(net, surface, explicit_boundaries) for net, surface in pairs]
    logger.info("Total faces created: %d", len(faces))
    return Shell(faces)


def to_shells(patch_table: PatchTable, control_points,
              explicit_boundaries: bool = False) -> List[Shell]:
    """One single-face shell per regular or Gregory patch; errors propagate."""
    shells = []
    for patch in patch_table.patches(control_points):
        if patch.patch_type not in SURFACE_TYPES:
            continue
        net, surface = _net_and_surface(patch)
        shells.append(Shell([_make_face(net, surface, explicit_boundaries)]))
    return shells


def to_shell_stitched(patch_table: PatchTable, control_points, tol: float = 1e-6,
                      gregory_accuracy=GregoryAccuracy.BSPLINE_END_CAPS) -> Shell:
    """Shell with shared vertices and edges across every supported patch.

    Raises
    ------
    InvalidControlPointsError
        If no patch yields a valid face.
    """
    pairs = _lenient_pairs(patch_table, control_points, SURFACE_TYPES,
                           GregoryAccuracy(gregory_accuracy))
    nets = [net for net, _ in pairs]
    surfaces = [surface for _, surface in pairs]
    return stitch_shell(nets, surfaces, tol)


def _to_step_shell_fallback(patch_table, control_points, options: ExportOptions) -> Shell:
    if options.stitch_edges:
        return to_shell_stitched(patch_table, control_points,
                                 options.stitch_tolerance, options.gregory_accuracy)
    pairs = _strict_pairs(patch_table, control_points, options.gregory_accuracy)
    return Shell([_make_face(net, surface, options.explicit_boundaries)
                  for net, surface in pairs])


def to_step_shell(patch_table: PatchTable, control_points,
                  options: Optional[ExportOptions] = None) -> Shell:
    """Recommended entry point for CAD export; see the module docstring."""
    if options is None:
        options = ExportOptions()
    if options.stitch_edges and options.explicit_boundaries:
        warnings.warn(
            "explicit_boundaries has no effect when stitch_edges is set; "
            "stitched faces always carry boundary wires",
            UserWarning,
            stacklevel=2,
        )

    if options.use_superpatches:
        merged = superpatches(patch_table, control_points, options.stitch_tolerance)
        if merged:
            pairs = [(sp.control_net, sp.to_surface()) for sp in merged]
            pairs += _lenient_pairs(patch_table, control_points, NON_REGULAR_TYPES,
                                    options.gregory_accuracy)
            if options.stitch_edges:
                return stitch_shell([net for net, _ in pairs],
                                    [surface for _, surface in pairs],
                                    options.stitch_tolerance)
            return Shell([_make_face(net, surface, options.explicit_boundaries)
                          for net, surface in pairs])
        logger.info("No superpatches produced; falling back to per-patch export")

    return _to_step_shell_fallback(patch_table, control_points, options)
