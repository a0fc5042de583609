"""
Weld independent patch surfaces into a shell with shared vertices and edges.

Every control net contributes four boundary curves, running
counter-clockwise from the (u-min, v-min) corner::

    bottom  net[0, 0]   -> net[0, -1]
    right   net[0, -1]  -> net[-1, -1]
    top     net[-1, -1] -> net[-1, 0]
    left    net[-1, 0]  -> net[0, 0]

Each curve is a piecewise Bezier cubic on the boundary row or column of the
net, so it ends exactly on the net's corners and neighbouring nets that
share a boundary row produce the same curve. Corners are welded through a
vertex pool and curves through an edge pool keyed on :class:`EdgeSamples`.

The wires bound the control hull, not the face surface: a uniform cubic
B-spline does not interpolate its boundary control points, so the trimmed
region and the evaluated surface edge generally differ by up to the
distance between the boundary row and its neighbouring row.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

import numpy as np

from patchbrep._errors import InvalidControlPointsError, InvalidWireError
from patchbrep.geometry import BSplineCurve, BSplineSurface, Edge, Face, Shell, Vertex, Wire

logger = logging.getLogger(__name__)

N_EDGE_SAMPLES = 7


def boundary_curves(net) -> List[BSplineCurve]:
    """Bottom, right, top and left boundary curves of a v-major net."""
    net = np.asarray(net, dtype=np.float64)
    if net.ndim != 3 or net.shape[2] != 3 or (net.shape[0] - 1) % 3 or (net.shape[1] - 1) % 3:
        raise InvalidControlPointsError(
            f"Control net must have shape (3h + 1, 3w + 1, 3), got {net.shape}"
        )
    return [
        BSplineCurve.bezier(net[0, :]),
        BSplineCurve.bezier(net[:, -1]),
        BSplineCurve.bezier(net[-1, ::-1]),
        BSplineCurve.bezier(net[::-1, 0]),
    ]


def _close(a, b, tol2) -> bool:
    return bool(np.sum((np.asarray(a) - np.asarray(b)) ** 2) <= tol2)


@dataclass
class EdgeSamples:
    """Comparison key of a boundary curve."""
    start: np.ndarray
    end: np.ndarray
    samples: np.ndarray

    @classmethod
    def from_curve(cls, curve: BSplineCurve, count: int = N_EDGE_SAMPLES) -> 'EdgeSamples':
        return cls(curve.start, curve.end, curve.sample(count))

    @property
    def midpoint(self) -> np.ndarray:
        return self.samples[len(self.samples) // 2]

    def matches(self, other: 'EdgeSamples', tol: float) -> Optional[bool]:
        """False if ``other`` matches forward, True if reversed, else None."""
        if self.samples.shape != other.samples.shape:
            return None
        tol2 = tol * tol
        if np.all(np.sum((self.samples - other.samples) ** 2, axis=-1) <= tol2):
            return False
        if np.all(np.sum((self.samples - other.samples[::-1]) ** 2, axis=-1) <= tol2):
            return True
        return None


class _SpatialHash:
    """Points bucketed on a grid of cell size ``tol``; lookups scan the 27
    surrounding cells and return entries in insertion order."""

    def __init__(self, tol: float):
        self.tol = tol
        self.cell = tol if tol > 0 else 1.0
        self._buckets: Dict[tuple, list] = {}
        self._count = 0

    def _key(self, point) -> tuple:
        return tuple(int(k) for k in np.floor(np.asarray(point) / self.cell))

    def insert(self, point, item):
        self._buckets.setdefault(self._key(point), []).append((self._count, item))
        self._count += 1

    def near(self, point) -> list:
        kx, ky, kz = self._key(point)
        found = []
        for dx in (-1, 0, 1):
            for dy in (-1, 0, 1):
                for dz in (-1, 0, 1):
                    found.extend(self._buckets.get((kx + dx, ky + dy, kz + dz), ()))
        found.sort(key=lambda entry: entry[0])
        return [item for _, item in found]

    def __len__(self):
        return self._count


class VertexPool:
    """Position -> shared vertex, first vertex within ``tol`` wins."""

    def __init__(self, tol: float):
        self.tol = tol
        self._hash = _SpatialHash(tol)

    def get(self, point) -> Vertex:
        tol2 = self.tol * self.tol
        for vertex in self._hash.near(point):
            if _close(vertex.point, point, tol2):
                return vertex
        vertex = Vertex(point)
        self._hash.insert(vertex.point, vertex)
        return vertex

    def __len__(self):
        return len(self._hash)


class EdgePool:
    """Sample signature -> shared edge, keyed on the middle sample."""

    def __init__(self, tol: float):
        self.tol = tol
        self._hash = _SpatialHash(tol)

    def find(self, samples: EdgeSamples):
        """``(edge, reversed)`` for the first pooled edge matching ``samples``."""
        for edge, pooled in self._hash.near(samples.midpoint):
            reversed_ = pooled.matches(samples, self.tol)
            if reversed_ is not None:
                return edge, reversed_
        return None

    def register(self, edge: Edge, samples: EdgeSamples):
        self._hash.insert(samples.midpoint, (edge, samples))

    def __len__(self):
        return len(self._hash)


def _chord_edges(corners: Sequence[Vertex]) -> List[Edge]:
    return [
        Edge(corners[k], corners[(k + 1) % 4],
             BSplineCurve.line(corners[k].point, corners[(k + 1) % 4].point))
        for k in range(4)
    ]


def enforce_continuity(edges: List[Edge], tol: float) -> Optional[List[Edge]]:
    """Make ``edges`` run head to tail.

    An edge that does not start where the previous one ends is inverted when
    that fixes the junction, or re-anchored onto the previous end vertex
    when the gap is within ``tol``. The closing edge is always re-anchored
    onto the first edge's front. Returns None when a gap beyond ``tol``
    remains on any other edge.
    """
    tol2 = tol * tol
    out = [edges[0]]
    for edge in edges[1:]:
        prev = out[-1]
        if edge.front is prev.back:
            out.append(edge)
        elif edge.back is prev.back:
            out.append(edge.inverse())
        elif _close(edge.front.point, prev.back.point, tol2):
            out.append(Edge(prev.back, edge.back, edge.curve))
        elif _close(edge.back.point, prev.back.point, tol2):
            inv = edge.inverse()
            out.append(Edge(prev.back, inv.back, inv.curve))
        else:
            return None

    last = out[-1]
    if last.back is not out[0].front:
        out[-1] = Edge(last.front, out[0].front, last.curve)
    return out


class ToleranceStitcher:
    """Accumulate faces into a shell, welding shared vertices and edges.

    Parameters
    ----------
    tol : float
        Distance under which corners and edge samples are treated as equal.

    Attributes
    ----------
    n_rejected : int
        Nets whose boundary loop failed validation.
    n_chord_fallbacks : int
        Nets whose boundary was rebuilt from straight chords.
    """

    def __init__(self, tol: float = 1e-6):
        self.tol = tol
        self.vertices = VertexPool(tol)
        self.edges = EdgePool(tol)
        self.faces: List[Face] = []
        self.n_rejected = 0
        self.n_chord_fallbacks = 0

    def _corner_vertices(self, corners) -> List[Vertex]:
        verts = []
        for k, point in enumerate(corners):
            vertex = self.vertices.get(point)
            # collapsed side: keep the wire's four corners distinct
            if k > 0 and (vertex is verts[-1] or (k == 3 and vertex is verts[0])):
                vertex = Vertex(point)
            verts.append(vertex)
        return verts

    def add(self, net, surface=None) -> Optional[Face]:
        """Stitch one control net; returns its face or None if rejected."""
        net = np.asarray(net, dtype=np.float64)
        if surface is None:
            surface = BSplineSurface.from_control_net(net)
        curves = boundary_curves(net)
        samples = [EdgeSamples.from_curve(c) for c in curves]
        corners = self._corner_vertices([s.start for s in samples])

        edges = []
        reused = set()
        for k in range(4):
            front, back = corners[k], corners[(k + 1) % 4]
            edge = None
            found = self.edges.find(samples[k])
            if found is not None:
                pooled, reversed_ = found
                candidate = pooled.inverse() if reversed_ else pooled
                if candidate.front is front and candidate.back is back:
                    edge = candidate
                    reused.add(edge.id)
            if edge is None:
                edge = Edge(front, back, curves[k])
            edges.append(edge)

        # edges above are contiguous by construction; the chord and rejection
        # paths only trigger if a reused pooled edge breaks the loop
        fixed = enforce_continuity(edges, self.tol)
        if fixed is None:
            logger.debug("Boundary of net %d does not close; using chords", len(self.faces))
            self.n_chord_fallbacks += 1
            fixed = _chord_edges(corners)
            reused = set()

        try:
            face = Face.from_wire(surface, Wire(fixed), expected_edges=4)
        except InvalidWireError as exc:
            logger.warning("Dropping face: %s", exc)
            self.n_rejected += 1
            return None

        for k, edge in enumerate(fixed):
            if edge.id in reused:
                continue
            if edge.curve is curves[k]:
                self.edges.register(edge, samples[k])
            else:
                self.edges.register(edge, EdgeSamples.from_curve(edge.curve))
        self.faces.append(face)
        return face

    def shell(self) -> Shell:
        """Shell of every accepted face; raises if there is none."""
        if not self.faces:
            raise InvalidControlPointsError(
                f"No valid faces after stitching ({self.n_rejected} rejected)"
            )
        logger.info(
            "Stitched %d faces: %d vertices, %d edges, %d rejected, %d chord fallbacks",
            len(self.faces), len(self.vertices), len(self.edges),
            self.n_rejected, self.n_chord_fallbacks,
        )
        return Shell(self.faces)


def stitch_shell(nets, surfaces=None, tol: float = 1e-6) -> Shell:
    """Stitch v-major control nets into one shell.

    Parameters
    ----------
    nets : sequence of array_like
        Nets of shape (3h + 1, 3w + 1, 3), row = v.
    surfaces : sequence or None
        Surface per net; uniform bicubic surfaces on the nets by default.
    tol : float
    """
    stitcher = ToleranceStitcher(tol)
    if surfaces is None:
        surfaces = [None] * len(nets)
    for net, surface in zip(nets, surfaces):
        stitcher.add(net, surface)
    return stitcher.shell()
