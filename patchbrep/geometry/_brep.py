"""
Minimal boundary-representation topology: vertices, edges, wires, faces and
shells.

Entities are identified by integer ids. An edge and its :meth:`Edge.inverse`
share an id, so a shell can count how many wires use each topological edge
regardless of orientation.
"""

import itertools
from collections import Counter
from typing import Iterable, List, Optional

import numpy as np

from patchbrep._errors import InvalidWireError

_vertex_ids = itertools.count()
_edge_ids = itertools.count()


class Vertex:
    """A topological vertex at ``point``."""

    def __init__(self, point):
        self.id = next(_vertex_ids)
        self.point = np.asarray(point, dtype=np.float64)

    def __repr__(self):
        return f"Vertex(id={self.id}, point={self.point.tolist()})"


class Edge:
    """A directed use of a topological edge from ``front`` to ``back``.

    Parameters
    ----------
    front, back : Vertex
    curve : BSplineCurve
        Geometry running from ``front`` to ``back``.
    """

    def __init__(self, front: Vertex, back: Vertex, curve, _id: Optional[int] = None,
                 _reversed: bool = False):
        self.id = next(_edge_ids) if _id is None else _id
        self.front = front
        self.back = back
        self.curve = curve
        self.is_reversed = _reversed

    def inverse(self) -> 'Edge':
        """The same edge traversed back to front."""
        return Edge(self.back, self.front, self.curve.reversed(),
                    _id=self.id, _reversed=not self.is_reversed)

    def ends(self) -> tuple:
        return self.front, self.back

    def __repr__(self):
        return f"Edge(id={self.id}, front={self.front.id}, back={self.back.id})"


class Wire:
    """An ordered loop of edges."""

    def __init__(self, edges: Iterable[Edge] = ()):
        self.edges: List[Edge] = list(edges)

    def __len__(self):
        return len(self.edges)

    def __iter__(self):
        return iter(self.edges)

    def __getitem__(self, k):
        return self.edges[k]

    def vertices(self) -> List[Vertex]:
        return [e.front for e in self.edges]

    def is_closed(self) -> bool:
        n = len(self.edges)
        return n > 0 and all(
            self.edges[k].back is self.edges[(k + 1) % n].front for k in range(n)
        )

    def validate(self, expected_edges: Optional[int] = None):
        """Raise :class:`InvalidWireError` unless the wire is a simple closed
        loop of ``expected_edges`` distinct edges."""
        n = len(self.edges)
        if n == 0:
            raise InvalidWireError("Wire has no edges")
        if expected_edges is not None and n != expected_edges:
            raise InvalidWireError(f"Wire has {n} edges, expected {expected_edges}")
        ids = [e.id for e in self.edges]
        if len(set(ids)) != n:
            raise InvalidWireError(f"Wire uses an edge twice: ids {ids}")
        for k in range(n):
            nxt = self.edges[(k + 1) % n]
            if self.edges[k].back is not nxt.front:
                raise InvalidWireError(
                    f"Wire is not contiguous between edge {self.edges[k].id} "
                    f"and edge {nxt.id}"
                )


class Face:
    """A surface, optionally bounded by wires.

    Use :meth:`from_wire` to attach a boundary; it validates the loop first.
    """

    def __init__(self, surface, boundaries: Iterable[Wire] = ()):
        self.surface = surface
        self.boundaries: List[Wire] = list(boundaries)

    @classmethod
    def from_wire(cls, surface, wire, expected_edges: Optional[int] = None) -> 'Face':
        """Bounded face; raises :class:`InvalidWireError` on a bad loop."""
        if not isinstance(wire, Wire):
            wire = Wire(wire)
        wire.validate(expected_edges)
        return cls(surface, [wire])

    def edges(self):
        for wire in self.boundaries:
            yield from wire

    def __repr__(self):
        return f"Face(surface={self.surface!r}, n_boundaries={len(self.boundaries)})"


class Shell:
    """A collection of faces that may share vertices and edges."""

    def __init__(self, faces: Iterable[Face] = ()):
        self.faces: List[Face] = list(faces)

    def __len__(self):
        return len(self.faces)

    def __iter__(self):
        return iter(self.faces)

    def vertices(self) -> List[Vertex]:
        """Distinct vertices used by any boundary wire, in first-use order."""
        seen = {}
        for face in self.faces:
            for edge in face.edges():
                for v in edge.ends():
                    seen.setdefault(v.id, v)
        return list(seen.values())

    def edges(self) -> List[Edge]:
        """Distinct edges (one representative per id), in first-use order."""
        seen = {}
        for face in self.faces:
            for edge in face.edges():
                seen.setdefault(edge.id, edge)
        return list(seen.values())

    def edge_use_counts(self) -> Counter:
        """Number of wire uses per edge id."""
        return Counter(edge.id for face in self.faces for edge in face.edges())

    def surfaces(self) -> list:
        return [face.surface for face in self.faces]

    def __repr__(self):
        return f"Shell(n_faces={len(self.faces)})"
