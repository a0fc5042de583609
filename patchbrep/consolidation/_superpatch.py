"""
Fuse rectangular blocks of adjacent regular patches into superpatches.

A w x h block of bicubic patches shares control rows and columns along
interior edges, so its nets fit in one ``(3h + 1) x (3w + 1)`` grid with
stride 3. The fused grid is a uniform bicubic B-spline net describing the
same surface as the individual patches.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Sequence, Tuple, Union

import numpy as np

from patchbrep.consolidation._adjacency import AdjacencyGraph
from patchbrep.consolidation._boundary import BoundaryEdge
from patchbrep.geometry import BSplineSurface

logger = logging.getLogger(__name__)


@dataclass
class Superpatch:
    """A bicubic surface covering a rectangle of grid cells.

    Attributes
    ----------
    control : np.ndarray of shape (3 width_cells + 1, 3 height_cells + 1, 3)
        u-major control points.
    width_cells, height_cells : int
    origin_x, origin_y : int
        Grid coordinates of the lower-left cell.
    component : int
    boundary_mask : int
        Clamped sides of the whole rectangle (same bit layout as a patch).
    patch_indices : tuple of int
        Source patch indices covered by this superpatch.
    """
    control: np.ndarray
    width_cells: int = 1
    height_cells: int = 1
    origin_x: int = 0
    origin_y: int = 0
    component: int = 0
    boundary_mask: int = 0
    patch_indices: Tuple[int, ...] = field(default=())

    @classmethod
    def from_patch(cls, patch, x=0, y=0, component=0) -> 'Superpatch':
        """1x1 superpatch holding a single regular patch."""
        control = np.transpose(np.asarray(patch.control, dtype=np.float64), (1, 0, 2))
        return cls(control, 1, 1, x, y, component, int(patch.boundary_mask),
                   (int(patch.index),))

    @property
    def area(self) -> int:
        return self.width_cells * self.height_cells

    @property
    def control_net(self) -> np.ndarray:
        """v-major view (row = v, column = u)."""
        return np.transpose(self.control, (1, 0, 2))

    def to_surface(self) -> BSplineSurface:
        return BSplineSurface.uniform(self.control)


@dataclass
class Merged:
    """A block fused into one superpatch."""
    superpatch: Superpatch

    @property
    def superpatches(self) -> List[Superpatch]:
        return [self.superpatch]


@dataclass
class Unmerged:
    """A block that could not be fused; one 1x1 superpatch per patch."""
    superpatches: List[Superpatch]


MergeOutcome = Union[Merged, Unmerged]


def _fuse_block(block, width: int, height: int, tol: float):
    """Write each patch net of ``block`` into a stride-3 grid.

    Parameters
    ----------
    block : sequence of (u_off, v_off, net)
        v-major 4x4 nets with their cell offsets inside the rectangle.

    Returns
    -------
    np.ndarray of shape (3 height + 1, 3 width + 1, 3) or None
        v-major fused grid, or None when two patches claim the same slot
        with points farther apart than ``tol``.
    """
    grid = np.zeros((3 * height + 1, 3 * width + 1, 3))
    filled = np.zeros(grid.shape[:2], dtype=bool)
    tol2 = tol * tol
    for u_off, v_off, net in block:
        rows = slice(3 * v_off, 3 * v_off + 4)
        cols = slice(3 * u_off, 3 * u_off + 4)
        window = grid[rows, cols]
        claimed = filled[rows, cols]
        d2 = np.sum((window - net) ** 2, axis=-1)
        if np.any(d2[claimed] > tol2):
            return None
        window[~claimed] = net[~claimed]
        filled[rows, cols] = True
    return grid


def _combined_mask(block, width: int, height: int) -> int:
    mask = 0
    for u_off, v_off, patch in block:
        m = int(patch.boundary_mask)
        if u_off == 0:
            mask |= m & BoundaryEdge.U_MIN
        if u_off == width - 1:
            mask |= m & BoundaryEdge.U_MAX
        if v_off == 0:
            mask |= m & BoundaryEdge.V_MIN
        if v_off == height - 1:
            mask |= m & BoundaryEdge.V_MAX
    return int(mask)


def merge_block(patches, block, width, height, origin_x, origin_y, component,
                tol) -> MergeOutcome:
    """Fuse one rectangle of patches.

    ``block`` is a sequence of ``(u_off, v_off, patch_position)`` where
    ``patch_position`` indexes ``patches``.
    """
    members = [(u, v, patches[p]) for u, v, p in block]
    grid = _fuse_block([(u, v, np.asarray(p.control)) for u, v, p in members],
                       width, height, tol)
    if grid is None:
        logger.warning(
            "Control points disagree inside %dx%d block at (%d, %d) of component %d; "
            "emitting %d unmerged patches",
            width, height, origin_x, origin_y, component, len(members),
        )
        return Unmerged([
            Superpatch.from_patch(p, origin_x + u, origin_y + v, component)
            for u, v, p in members
        ])

    return Merged(Superpatch(
        control=np.transpose(grid, (1, 0, 2)).copy(),
        width_cells=width,
        height_cells=height,
        origin_x=origin_x,
        origin_y=origin_y,
        component=component,
        boundary_mask=_combined_mask(members, width, height),
        patch_indices=tuple(int(p.index) for _, _, p in members),
    ))


def _grow_rectangle(graph: AdjacencyGraph, cells, claimed, x, y):
    start = cells[(x, y)]
    width = 1
    prev = start
    while True:
        nxt = cells.get((x + width, y))
        if nxt is None or claimed[nxt] or graph.right[prev] != nxt:
            break
        width += 1
        prev = nxt

    height = 1
    while True:
        row = [cells.get((x + k, y + height)) for k in range(width)]
        if any(p is None or claimed[p] for p in row):
            break
        below = [cells[(x + k, y + height - 1)] for k in range(width)]
        if any(graph.bottom[row[k]] != below[k] for k in range(width)):
            break
        if any(graph.right[row[k]] != row[k + 1] for k in range(width - 1)):
            break
        height += 1
    return width, height


def build_superpatches(patches: Sequence, graph: AdjacencyGraph,
                       tol: float) -> List[Superpatch]:
    """Greedy rectangle fusion per connected component.

    Cells are visited in raster order (y, then x); from each unclaimed cell
    a rectangle grows rightwards, then upwards, over linked unclaimed cells.
    """
    claimed = np.zeros(len(patches), dtype=bool)
    superpatches = []
    n_unmerged = 0
    for component in range(graph.n_components):
        cells = graph.cells(component)
        for x, y in sorted(cells, key=lambda c: (c[1], c[0])):
            if claimed[cells[(x, y)]]:
                continue
            width, height = _grow_rectangle(graph, cells, claimed, x, y)
            block = [(u, v, cells[(x + u, y + v)])
                     for v in range(height) for u in range(width)]
            for _, _, p in block:
                claimed[p] = True
            outcome = merge_block(patches, block, width, height, x, y, component, tol)
            if isinstance(outcome, Unmerged):
                n_unmerged += len(outcome.superpatches)
            superpatches.extend(outcome.superpatches)

    logger.info("Built %d superpatches from %d patches (%d unmerged)",
                len(superpatches), len(patches), n_unmerged)
    return superpatches
