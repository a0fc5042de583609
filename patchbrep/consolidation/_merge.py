"""
Hierarchical merging of superpatches.

Each pass sorts the surviving superpatches by cell area, smallest first, and
joins pairs that sit side by side in the grid with equal extent along the
shared side and matching control points on it. Passes repeat until nothing
merges, so e.g. two 2x1 strips collapse into one 2x2 superpatch.
"""

import logging
from dataclasses import replace
from typing import List, Optional, Sequence

import numpy as np

from patchbrep.consolidation._boundary import BoundaryEdge, edges_match
from patchbrep.consolidation._superpatch import Superpatch

logger = logging.getLogger(__name__)

# sides kept from each part of a merge
_KEEP_LEFT = 0b1101
_KEEP_RIGHT = 0b0111
_KEEP_LOWER = 0b1011
_KEEP_UPPER = 0b1110


def merge_horizontal(left: Superpatch, right: Superpatch, tol: float) -> Optional[Superpatch]:
    """Join ``right`` onto the u-max side of ``left``, or return None."""
    if left.component != right.component:
        return None
    if left.height_cells != right.height_cells or left.origin_y != right.origin_y:
        return None
    if left.origin_x + left.width_cells != right.origin_x:
        return None
    if left.boundary_mask & BoundaryEdge.U_MAX or right.boundary_mask & BoundaryEdge.U_MIN:
        return None
    if not edges_match(left.control[-1], right.control[0], tol):
        return None

    return Superpatch(
        control=np.concatenate([left.control, right.control[1:]], axis=0),
        width_cells=left.width_cells + right.width_cells,
        height_cells=left.height_cells,
        origin_x=left.origin_x,
        origin_y=left.origin_y,
        component=left.component,
        boundary_mask=int((left.boundary_mask & _KEEP_LEFT)
                          | (right.boundary_mask & _KEEP_RIGHT)),
        patch_indices=left.patch_indices + right.patch_indices,
    )


def merge_vertical(lower: Superpatch, upper: Superpatch, tol: float) -> Optional[Superpatch]:
    """Join ``upper`` onto the v-max side of ``lower``, or return None."""
    if lower.component != upper.component:
        return None
    if lower.width_cells != upper.width_cells or lower.origin_x != upper.origin_x:
        return None
    if lower.origin_y + lower.height_cells != upper.origin_y:
        return None
    if lower.boundary_mask & BoundaryEdge.V_MAX or upper.boundary_mask & BoundaryEdge.V_MIN:
        return None
    if not edges_match(lower.control[:, -1], upper.control[:, 0], tol):
        return None

    return Superpatch(
        control=np.concatenate([lower.control, upper.control[:, 1:]], axis=1),
        width_cells=lower.width_cells,
        height_cells=lower.height_cells + upper.height_cells,
        origin_x=lower.origin_x,
        origin_y=lower.origin_y,
        component=lower.component,
        boundary_mask=int((lower.boundary_mask & _KEEP_LOWER)
                          | (upper.boundary_mask & _KEEP_UPPER)),
        patch_indices=lower.patch_indices + upper.patch_indices,
    )


def _try_merge(a: Superpatch, b: Superpatch, tol: float) -> Optional[Superpatch]:
    return (merge_horizontal(a, b, tol)
            or merge_horizontal(b, a, tol)
            or merge_vertical(a, b, tol)
            or merge_vertical(b, a, tol))


def _merge_pass(superpatches: List[Superpatch], tol: float):
    ordered = sorted(
        superpatches,
        key=lambda s: (s.area, s.component, s.origin_y, s.origin_x),
    )
    used = [False] * len(ordered)
    out = []
    merges = 0
    for i, a in enumerate(ordered):
        if used[i]:
            continue
        used[i] = True
        for j in range(i + 1, len(ordered)):
            if used[j]:
                continue
            merged = _try_merge(a, ordered[j], tol)
            if merged is not None:
                used[j] = True
                a = merged
                merges += 1
                break
        out.append(a)
    return out, merges


def merge_superpatches(superpatches: Sequence[Superpatch], tol: float) -> List[Superpatch]:
    """Merge adjacent compatible superpatches until a pass merges nothing."""
    current = [replace(s) for s in superpatches]
    n_passes = 0
    while True:
        current, merges = _merge_pass(current, tol)
        n_passes += 1
        logger.debug("Merge pass %d: %d merges, %d superpatches",
                     n_passes, merges, len(current))
        if merges == 0:
            break
    logger.info("Hierarchical merge: %d -> %d superpatches in %d passes",
                len(superpatches), len(current), n_passes)
    return current
