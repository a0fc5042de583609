"""
Patch table interface consumed from a subdivision evaluator.

A :class:`PatchTable` is a list of :class:`PatchArray` blocks, each holding
patches of one :class:`PatchType` as a flat list of control-vertex indices
into an external point buffer (row-major, ``control_vertex_count`` indices
per patch) plus one boundary mask per patch. Non-regular patches are sampled
through an optional evaluator callback::

    evaluator(patch_index, u, v, control_points) -> point or None

Usage
-----
    from patchbrep import PatchTable

    table, points = PatchTable.from_control_nets(nets, masks=[0, 1, 0, 0])
    for patch in table.patches(points):
        if patch.is_regular:
            surface = patch.to_surface()
"""

import enum
from dataclasses import dataclass, field
from typing import Callable, Optional, Sequence

import numpy as np

from patchbrep._errors import (
    EvaluationFailedError,
    InvalidControlPointsError,
)
from patchbrep._registry import PatchTypeRegistry
from patchbrep.geometry import BSplineSurface

#: Number of evaluation samples per direction for the high-precision
#: approximation of Gregory patches.
HIGH_PRECISION_GRID = 8


class PatchType(enum.Enum):
    """Patch types produced by a subdivision patch table."""
    NON_PATCH = 0
    POINTS = 1
    LINES = 2
    QUADS = 3
    TRIANGLES = 4
    LOOP = 5
    REGULAR = 6
    GREGORY = 7
    GREGORY_BOUNDARY = 8
    GREGORY_CORNER = 9
    GREGORY_BASIS = 10
    GREGORY_TRIANGLE = 11

    @property
    def control_vertex_count(self) -> int:
        return _CV_COUNTS[self]

    def __str__(self):
        return self.name


_CV_COUNTS = {
    PatchType.NON_PATCH: 0,
    PatchType.POINTS: 1,
    PatchType.LINES: 2,
    PatchType.QUADS: 4,
    PatchType.TRIANGLES: 3,
    PatchType.LOOP: 12,
    PatchType.REGULAR: 16,
    PatchType.GREGORY: 4,
    PatchType.GREGORY_BOUNDARY: 4,
    PatchType.GREGORY_CORNER: 4,
    PatchType.GREGORY_BASIS: 20,
    PatchType.GREGORY_TRIANGLE: 18,
}

GREGORY_TYPES = frozenset({PatchType.GREGORY_BASIS, PatchType.GREGORY_TRIANGLE})


@dataclass
class PatchArray:
    """A block of patches sharing one patch type.

    Attributes
    ----------
    patch_type : PatchType
    control_vertices : np.ndarray
        Flat int array of control-vertex indices, ``control_vertex_count``
        per patch.
    boundary_masks : np.ndarray or None
        One 4-bit mask per patch; zeros when omitted.
    """
    patch_type: PatchType
    control_vertices: np.ndarray
    boundary_masks: Optional[np.ndarray] = field(default=None)

    def __post_init__(self):
        self.patch_type = PatchType(self.patch_type)
        self.control_vertices = np.asarray(self.control_vertices, dtype=np.int64).ravel()
        n_cv = self.patch_type.control_vertex_count
        if n_cv == 0:
            n_patches = 0
        else:
            n_patches = len(self.control_vertices) // n_cv
        if self.boundary_masks is None:
            self.boundary_masks = np.zeros(n_patches, dtype=np.int64)
        else:
            self.boundary_masks = np.asarray(self.boundary_masks, dtype=np.int64).ravel()

    @property
    def patch_count(self) -> int:
        n_cv = self.patch_type.control_vertex_count
        return len(self.control_vertices) // n_cv if n_cv else 0

    def patch_vertices(self, local_index: int) -> np.ndarray:
        """Control-vertex indices of one patch of this array."""
        n_cv = self.patch_type.control_vertex_count
        start = local_index * n_cv
        if local_index < 0 or start + n_cv > len(self.control_vertices):
            raise InvalidControlPointsError(
                f"Patch {local_index} of {self.patch_type} array needs indices "
                f"[{start}, {start + n_cv}) but only {len(self.control_vertices)} "
                f"are available"
            )
        return self.control_vertices[start:start + n_cv]

    def boundary_mask(self, local_index: int) -> int:
        if local_index < len(self.boundary_masks):
            return int(self.boundary_masks[local_index]) & 0xF
        return 0


class PatchTable:
    """Ordered collection of patch arrays with global patch numbering.

    Parameters
    ----------
    arrays : sequence of PatchArray
    evaluator : callable or None
        ``evaluator(patch_index, u, v, control_points)`` returning a 3D point
        or ``None``; required only for sampling non-regular patches.
    """

    def __init__(self, arrays: Sequence[PatchArray], evaluator: Optional[Callable] = None):
        self.arrays = list(arrays)
        self.evaluator = evaluator

    @classmethod
    def from_control_nets(cls, nets, masks=None, evaluator=None):
        """Build a table of regular patches from explicit 4x4 control nets.

        Parameters
        ----------
        nets : array_like of shape (n, 4, 4, 3)
            v-major nets (row = v, column = u).
        masks : sequence of int or None
            Boundary masks, one per net.

        Returns
        -------
        table : PatchTable
        points : np.ndarray of shape (16 n, 3)
            Point buffer the table indexes into.
        """
        nets = np.asarray(nets, dtype=np.float64)
        if nets.ndim != 4 or nets.shape[1:] != (4, 4, 3):
            raise InvalidControlPointsError(
                f"Expected nets of shape (n, 4, 4, 3), got {nets.shape}"
            )
        points = nets.reshape(-1, 3)
        array = PatchArray(PatchType.REGULAR, np.arange(len(points)), masks)
        return cls([array], evaluator), points

    @property
    def patch_count(self) -> int:
        return sum(a.patch_count for a in self.arrays)

    def __len__(self):
        return self.patch_count

    def locate(self, patch_index: int) -> tuple:
        """Map a global patch index to ``(array_index, local_index)``."""
        remaining = patch_index
        if remaining >= 0:
            for array_index, array in enumerate(self.arrays):
                if remaining < array.patch_count:
                    return array_index, remaining
                remaining -= array.patch_count
        raise InvalidControlPointsError(
            f"Patch {patch_index} not found in table of {self.patch_count} patches"
        )

    def patch_type(self, patch_index: int) -> PatchType:
        array_index, _ = self.locate(patch_index)
        return self.arrays[array_index].patch_type

    def patch_vertices(self, patch_index: int) -> np.ndarray:
        array_index, local_index = self.locate(patch_index)
        return self.arrays[array_index].patch_vertices(local_index)

    def boundary_mask(self, patch_index: int) -> int:
        array_index, local_index = self.locate(patch_index)
        return self.arrays[array_index].boundary_mask(local_index)

    def evaluate_point(self, patch_index, u, v, control_points):
        """Evaluate one patch at ``(u, v)``; ``None`` when no point results."""
        if self.evaluator is None:
            return None
        point = self.evaluator(patch_index, float(u), float(v), control_points)
        if point is None:
            return None
        return np.asarray(point, dtype=np.float64)[:3]

    def patch(self, patch_index: int, control_points) -> 'PatchRef':
        return PatchRef(self, patch_index, control_points)

    def patches(self, control_points):
        """Iterate :class:`PatchRef` objects for every patch in order."""
        for index in range(self.patch_count):
            yield PatchRef(self, index, control_points)


class PatchRef:
    """One patch of a table bound to a control-point buffer."""

    def __init__(self, patch_table: PatchTable, patch_index: int, control_points):
        self.patch_table = patch_table
        self.patch_index = patch_index
        self.control_points = np.asarray(control_points, dtype=np.float64)

    def __repr__(self):
        return f"PatchRef(index={self.patch_index})"

    @property
    def patch_type(self) -> PatchType:
        return self.patch_table.patch_type(self.patch_index)

    @property
    def is_gregory(self) -> bool:
        try:
            return self.patch_type in GREGORY_TYPES
        except InvalidControlPointsError:
            return False

    @property
    def is_regular(self) -> bool:
        try:
            return self.patch_type is PatchType.REGULAR
        except InvalidControlPointsError:
            return False

    @property
    def boundary_mask(self) -> int:
        try:
            return self.patch_table.boundary_mask(self.patch_index)
        except InvalidControlPointsError:
            return 0

    def control_vertex_points(self) -> np.ndarray:
        """Points of this patch's control vertices, shape (n_cv, 3)."""
        indices = self.patch_table.patch_vertices(self.patch_index)
        n_points = len(self.control_points)
        bad = (indices < 0) | (indices >= n_points)
        if np.any(bad):
            raise InvalidControlPointsError(
                f"Patch {self.patch_index}: control vertex index "
                f"{int(indices[bad][0])} is out of bounds (max {n_points - 1})"
            )
        return self.control_points[indices, :3]

    def evaluate(self, u, v) -> np.ndarray:
        point = self.patch_table.evaluate_point(
            self.patch_index, u, v, self.control_points)
        if point is None:
            raise EvaluationFailedError(
                f"Evaluation of patch {self.patch_index} at (u={u}, v={v}) failed"
            )
        return point

    def control_net(self) -> np.ndarray:
        """4x4 v-major control net (row = v, column = u) for this patch."""
        return control_net_extractors[self.patch_type](self)

    def to_surface(self) -> BSplineSurface:
        """Uniform bicubic surface on :meth:`control_net`."""
        return BSplineSurface.from_control_net(self.control_net())

    def to_bspline_high_precision(self) -> BSplineSurface:
        """8x8 uniform B-spline approximation sampled from the evaluator.

        Regular patches are exact already and return :meth:`to_surface`.
        """
        if self.is_regular:
            return self.to_surface()
        n = HIGH_PRECISION_GRID
        params = np.arange(n) / (n - 1)
        samples = np.empty((n, n, 3))
        for i, u in enumerate(params):
            for j, v in enumerate(params):
                samples[i, j] = self.evaluate(u, v)
        return BSplineSurface.uniform(samples)


def extract_regular(patch: PatchRef) -> np.ndarray:
    """Boundary-adjusted 4x4 net of a regular patch."""
    from patchbrep.consolidation import adjust_regular_control_points

    points = patch.control_vertex_points()
    if len(points) != 16:
        raise InvalidControlPointsError(
            f"Regular patch {patch.patch_index} has {len(points)} control "
            f"vertices, expected 16"
        )
    return adjust_regular_control_points(points.reshape(4, 4, 3), patch.boundary_mask)


def _sample_net(patch: PatchRef, project_to_triangle: bool) -> np.ndarray:
    net = np.empty((4, 4, 3))
    for i in range(4):
        for j in range(4):
            u, v = j / 3.0, i / 3.0
            if project_to_triangle and u + v > 1.0:
                s = u + v
                u, v = u / s, v / s
            net[i, j] = patch.evaluate(u, v)
    return net


def extract_gregory_basis(patch: PatchRef) -> np.ndarray:
    """Approximate a Gregory basis patch by sampling a 4x4 grid."""
    return _sample_net(patch, project_to_triangle=False)


def extract_gregory_triangle(patch: PatchRef) -> np.ndarray:
    """Degenerate quad approximation of a Gregory triangle.

    Samples outside the triangle ``u + v <= 1`` are projected onto its
    hypotenuse.
    """
    return _sample_net(patch, project_to_triangle=True)


control_net_extractors = PatchTypeRegistry("control_net")
control_net_extractors.register(PatchType.REGULAR, extract_regular)
control_net_extractors.register(PatchType.GREGORY_BASIS, extract_gregory_basis)
control_net_extractors.register(PatchType.GREGORY_TRIANGLE, extract_gregory_triangle)
