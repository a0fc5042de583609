"""
Grid adjacency among regular patches.

Two patches are neighbours when the four control points of one's edge
coincide (within a tolerance) with the four control points of the other's
opposite edge, and neither edge is clamped by its boundary mask:

    i.right  (u-max column)  ==  j.left   (u-min column)   ->  j = right[i]
    i.bottom (v-min row)     ==  j.top    (v-max row)      ->  j = bottom[i]

Integer grid coordinates are then assigned per connected component by
breadth-first traversal: right is +x, top is +y.
"""

import logging
from collections import deque
from typing import Dict, List, Sequence

import numpy as np
from scipy.spatial import cKDTree

from patchbrep.consolidation._boundary import (
    BoundaryEdge,
    bottom_edge,
    left_edge,
    right_edge,
    top_edge,
)

logger = logging.getLogger(__name__)

NO_NEIGHBOR = -1


def _match_edges(source, target, source_blocked, target_blocked, tol):
    """One-to-one matching of source edges onto target edges.

    Parameters
    ----------
    source, target : np.ndarray of shape (n, 4, 3)
        Edge control points per patch, both ordered along the shared edge.
    source_blocked, target_blocked : np.ndarray of bool
        Patches whose edge is clamped and may not be matched.
    tol : float

    Returns
    -------
    forward, reverse : np.ndarray of int
        ``forward[i] = j`` and ``reverse[j] = i`` for each accepted pair.
    """
    n = len(source)
    forward = np.full(n, NO_NEIGHBOR, dtype=np.int64)
    reverse = np.full(n, NO_NEIGHBOR, dtype=np.int64)
    if n == 0:
        return forward, reverse

    tree = cKDTree(target[:, 0])
    radius = tol * (1.0 + 1e-9)
    neighbours = tree.query_ball_point(source[:, 0], radius)

    candidates = []
    for i, js in enumerate(neighbours):
        if source_blocked[i]:
            continue
        for j in js:
            if j == i or target_blocked[j]:
                continue
            d2 = np.sum((source[i] - target[j]) ** 2, axis=-1)
            if np.all(d2 <= tol * tol):
                candidates.append((float(d2.max()), i, j))

    # closest pair first, then by (i, j)
    candidates.sort()
    for _, i, j in candidates:
        if forward[i] == NO_NEIGHBOR and reverse[j] == NO_NEIGHBOR:
            forward[i] = j
            reverse[j] = i
        else:
            logger.debug("Dropping ambiguous match %d -> %d", i, j)
    return forward, reverse


class AdjacencyGraph:
    """Right/bottom adjacency and grid coordinates of a set of patches.

    All per-patch data are int arrays indexed by position in the patch list
    used to build the graph; :data:`NO_NEIGHBOR` marks a missing link.

    Attributes
    ----------
    right, bottom : np.ndarray
        Neighbour across the u-max / v-min edge.
    left_of, top_of : np.ndarray
        Reverse links: ``left_of[j] == i`` iff ``right[i] == j`` and
        ``top_of[j] == i`` iff ``bottom[i] == j``.
    x, y : np.ndarray
        Grid coordinates relative to each component's first patch.
    component : np.ndarray
        Connected-component id per patch.
    """

    def __init__(self, right, bottom):
        self.right = np.asarray(right, dtype=np.int64)
        self.bottom = np.asarray(bottom, dtype=np.int64)
        n = len(self.right)
        self.left_of = np.full(n, NO_NEIGHBOR, dtype=np.int64)
        self.top_of = np.full(n, NO_NEIGHBOR, dtype=np.int64)
        for i in range(n):
            if self.right[i] != NO_NEIGHBOR:
                self.left_of[self.right[i]] = i
            if self.bottom[i] != NO_NEIGHBOR:
                self.top_of[self.bottom[i]] = i

        self.x = np.zeros(n, dtype=np.int64)
        self.y = np.zeros(n, dtype=np.int64)
        self.component = np.full(n, NO_NEIGHBOR, dtype=np.int64)
        self._cells: List[Dict[tuple, int]] = []
        self._assign_grid()

        for arr in (self.right, self.bottom, self.left_of, self.top_of,
                    self.x, self.y, self.component):
            arr.setflags(write=False)

    @classmethod
    def build(cls, patches: Sequence, tol: float) -> 'AdjacencyGraph':
        """Discover adjacency among ``patches`` (objects with ``control`` and
        ``boundary_mask``)."""
        n = len(patches)
        if n == 0:
            return cls([], [])
        nets = np.stack([np.asarray(p.control, dtype=np.float64) for p in patches])
        masks = np.array([int(p.boundary_mask) for p in patches], dtype=np.int64)

        right, _ = _match_edges(
            np.stack([right_edge(net) for net in nets]),
            np.stack([left_edge(net) for net in nets]),
            (masks & BoundaryEdge.U_MAX) != 0,
            (masks & BoundaryEdge.U_MIN) != 0,
            tol,
        )
        bottom, _ = _match_edges(
            np.stack([bottom_edge(net) for net in nets]),
            np.stack([top_edge(net) for net in nets]),
            (masks & BoundaryEdge.V_MIN) != 0,
            (masks & BoundaryEdge.V_MAX) != 0,
            tol,
        )
        graph = cls(right, bottom)
        logger.info(
            "Adjacency: %d patches, %d right links, %d bottom links, %d components",
            n, int(np.sum(right != NO_NEIGHBOR)), int(np.sum(bottom != NO_NEIGHBOR)),
            graph.n_components,
        )
        return graph

    def _assign_grid(self):
        n = len(self.right)
        for start in range(n):
            if self.component[start] != NO_NEIGHBOR:
                continue
            cid = len(self._cells)
            cells = {(0, 0): start}
            self._cells.append(cells)
            self.component[start] = cid
            queue = deque([start])
            while queue:
                i = queue.popleft()
                steps = (
                    (self.right[i], 1, 0),
                    (self.left_of[i], -1, 0),
                    (self.top_of[i], 0, 1),
                    (self.bottom[i], 0, -1),
                )
                for j, dx, dy in steps:
                    if j == NO_NEIGHBOR or self.component[j] != NO_NEIGHBOR:
                        continue
                    cell = (int(self.x[i]) + dx, int(self.y[i]) + dy)
                    if cell in cells:
                        logger.debug("Cell %s of component %d already holds patch %d; "
                                     "patch %d starts its own component",
                                     cell, cid, cells[cell], j)
                        continue
                    self.component[j] = cid
                    self.x[j], self.y[j] = cell
                    cells[cell] = j
                    queue.append(j)

    def __len__(self):
        return len(self.right)

    @property
    def n_components(self) -> int:
        return len(self._cells)

    def cells(self, component: int) -> Dict[tuple, int]:
        """Mapping ``(x, y) -> patch`` for one component."""
        return dict(self._cells[component])

    def is_consistent(self) -> bool:
        """Check that forward and reverse links agree."""
        for i in range(len(self)):
            j = self.right[i]
            if j != NO_NEIGHBOR and self.left_of[j] != i:
                return False
            j = self.bottom[i]
            if j != NO_NEIGHBOR and self.top_of[j] != i:
                return False
        return True
