"""Gather the regular patches of a patch table with corrected control nets."""

import logging
from dataclasses import dataclass
from typing import List

import numpy as np

from patchbrep._errors import InvalidControlPointsError
from patchbrep.consolidation._boundary import adjust_regular_control_points
from patchbrep.patch_table import PatchTable, PatchType

logger = logging.getLogger(__name__)


@dataclass
class RegularPatch:
    """A regular bicubic patch ready for adjacency analysis.

    Attributes
    ----------
    index : int
        Global patch index in the source table.
    control : np.ndarray of shape (4, 4, 3)
        Boundary-adjusted v-major net (row = v, column = u).
    boundary_mask : int
    """
    index: int
    control: np.ndarray
    boundary_mask: int = 0


def collect_regular_patches(patch_table: PatchTable, control_points) -> List[RegularPatch]:
    """Extract every REGULAR patch of ``patch_table``.

    Other patch types are skipped. Patches whose control-vertex indices are
    invalid are skipped with a warning.
    """
    control_points = np.asarray(control_points, dtype=np.float64)
    n_points = len(control_points)
    patches = []
    skipped = 0
    patch_index = 0
    for array in patch_table.arrays:
        count = array.patch_count
        if array.patch_type is not PatchType.REGULAR:
            patch_index += count
            continue
        for local_index in range(count):
            try:
                indices = array.patch_vertices(local_index)
                if np.any(indices < 0) or np.any(indices >= n_points):
                    raise InvalidControlPointsError(
                        f"control vertex index out of bounds (max {n_points - 1})"
                    )
                mask = array.boundary_mask(local_index)
                net = control_points[indices, :3].reshape(4, 4, 3)
                patches.append(RegularPatch(
                    patch_index, adjust_regular_control_points(net, mask), mask))
            except InvalidControlPointsError as exc:
                logger.warning("Skipping regular patch %d: %s", patch_index, exc)
                skipped += 1
            patch_index += 1

    logger.info("Collected %d regular patches (%d skipped)", len(patches), skipped)
    return patches
