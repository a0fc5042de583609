"""
B-spline curves and tensor-product surfaces.

Basis functions are evaluated with ``scipy.interpolate.BSpline`` by giving it
an identity coefficient matrix, which yields every basis function at once;
points are then plain matrix products with the control points.

Conventions
-----------
* Surfaces store control points u-major: ``control_points[i, j]`` is the
  point at u-index ``i`` and v-index ``j``, shape ``(n_u, n_v, 3)``.
* Patch control nets coming from a patch table are v-major (row = v,
  column = u); :meth:`BSplineSurface.from_control_net` transposes them.
* A *uniform* knot vector for ``n`` control points of degree ``p`` is
  ``k - p`` for ``k = 0 .. n + p``; for a bicubic patch this is
  ``[-3, -2, -1, 0, 1, 2, 3, 4]`` and the valid domain is ``[0, 1]``.
"""

import numpy as np
from scipy.interpolate import BSpline

DEGREE = 3


def uniform_knots(n_control: int, degree: int = DEGREE) -> np.ndarray:
    """Uniform (unclamped) knot vector with unit spacing starting at -degree."""
    if n_control <= degree:
        raise ValueError(
            f"Need more than {degree} control points for degree {degree}, "
            f"got {n_control}"
        )
    return np.arange(n_control + degree + 1, dtype=np.float64) - degree


def bezier_knots(n_segments: int, degree: int = DEGREE) -> np.ndarray:
    """Knot vector of a piecewise Bezier curve with ``n_segments`` spans.

    End knots have multiplicity ``degree + 1`` and interior knots
    multiplicity ``degree``, so the curve passes through every
    ``degree``-th control point, including both ends.
    """
    if n_segments < 1:
        raise ValueError(f"n_segments must be >= 1, got {n_segments}")
    interior = np.repeat(np.arange(1, n_segments, dtype=np.float64), degree)
    return np.concatenate([
        np.zeros(degree + 1),
        interior,
        np.full(degree + 1, float(n_segments)),
    ])


def _basis_matrix(knots, degree, n, params):
    """Values of all ``n`` basis functions at ``params``, shape (m, n)."""
    lo, hi = knots[degree], knots[n]
    params = np.clip(np.atleast_1d(np.asarray(params, dtype=np.float64)), lo, hi)
    return BSpline(knots, np.eye(n), degree, extrapolate=False)(params)


class BSplineCurve:
    """Non-rational B-spline curve in 3D.

    Parameters
    ----------
    knots : array_like
        Knot vector of length ``len(control_points) + degree + 1``.
    control_points : array_like of shape (n, 3)
    degree : int
    """

    def __init__(self, knots, control_points, degree: int = DEGREE):
        self.knots = np.asarray(knots, dtype=np.float64)
        self.control_points = np.asarray(control_points, dtype=np.float64)
        self.degree = degree
        n = len(self.control_points)
        if len(self.knots) != n + degree + 1:
            raise ValueError(
                f"Knot vector length {len(self.knots)} does not match "
                f"{n} control points of degree {degree}"
            )

    @classmethod
    def uniform(cls, control_points, degree: int = DEGREE):
        cps = np.asarray(control_points, dtype=np.float64)
        return cls(uniform_knots(len(cps), degree), cps, degree)

    @classmethod
    def bezier(cls, control_points, degree: int = DEGREE):
        """Piecewise Bezier curve through the ends of ``control_points``."""
        cps = np.asarray(control_points, dtype=np.float64)
        if (len(cps) - 1) % degree != 0:
            raise ValueError(
                f"Piecewise Bezier of degree {degree} needs k*{degree}+1 "
                f"control points, got {len(cps)}"
            )
        return cls(bezier_knots((len(cps) - 1) // degree, degree), cps, degree)

    @classmethod
    def line(cls, start, end):
        """Straight degree-1 segment from ``start`` to ``end``."""
        return cls([0.0, 0.0, 1.0, 1.0], [start, end], degree=1)

    @property
    def domain(self) -> tuple:
        n = len(self.control_points)
        return float(self.knots[self.degree]), float(self.knots[n])

    def evaluate(self, t) -> np.ndarray:
        """Point(s) at parameter(s) ``t``; scalar input gives shape (3,)."""
        basis = _basis_matrix(self.knots, self.degree, len(self.control_points), t)
        points = basis @ self.control_points
        return points[0] if np.ndim(t) == 0 else points

    def sample(self, count: int) -> np.ndarray:
        """``count`` points at evenly spaced parameters over the domain."""
        lo, hi = self.domain
        if count <= 1:
            return self.evaluate(np.array([0.5 * (lo + hi)]))
        return self.evaluate(np.linspace(lo, hi, count))

    @property
    def start(self) -> np.ndarray:
        return self.evaluate(self.domain[0])

    @property
    def end(self) -> np.ndarray:
        return self.evaluate(self.domain[1])

    def reversed(self):
        """Same point set traversed in the opposite direction."""
        lo, hi = self.domain
        knots = (lo + hi) - self.knots[::-1]
        return BSplineCurve(knots, self.control_points[::-1].copy(), self.degree)

    def __repr__(self):
        return (f"BSplineCurve(degree={self.degree}, "
                f"n_control={len(self.control_points)})")


class BSplineSurface:
    """Non-rational tensor-product B-spline surface in 3D.

    Parameters
    ----------
    knots_u, knots_v : array_like
        Knot vectors in u and v.
    control_points : array_like of shape (n_u, n_v, 3)
        u-major control points.
    degree : tuple of int
        (degree_u, degree_v), bicubic by default.
    """

    def __init__(self, knots_u, knots_v, control_points, degree=(DEGREE, DEGREE)):
        self.knots_u = np.asarray(knots_u, dtype=np.float64)
        self.knots_v = np.asarray(knots_v, dtype=np.float64)
        self.control_points = np.asarray(control_points, dtype=np.float64)
        self.degree = tuple(degree)
        if self.control_points.ndim != 3 or self.control_points.shape[2] != 3:
            raise ValueError(
                f"control_points must have shape (n_u, n_v, 3), "
                f"got {self.control_points.shape}"
            )
        n_u, n_v = self.control_points.shape[:2]
        if len(self.knots_u) != n_u + self.degree[0] + 1:
            raise ValueError(f"u knot vector length {len(self.knots_u)} does not "
                             f"match {n_u} control points")
        if len(self.knots_v) != n_v + self.degree[1] + 1:
            raise ValueError(f"v knot vector length {len(self.knots_v)} does not "
                             f"match {n_v} control points")

    @classmethod
    def uniform(cls, control_points):
        """Bicubic surface with uniform knots in both directions."""
        cps = np.asarray(control_points, dtype=np.float64)
        return cls(uniform_knots(cps.shape[0]), uniform_knots(cps.shape[1]), cps)

    @classmethod
    def from_control_net(cls, net):
        """Uniform bicubic surface from a v-major (row = v) control net."""
        net = np.asarray(net, dtype=np.float64)
        return cls.uniform(np.transpose(net, (1, 0, 2)))

    @property
    def shape(self) -> tuple:
        """(n_u, n_v) control point counts."""
        return self.control_points.shape[:2]

    @property
    def control_net(self) -> np.ndarray:
        """v-major view of the control points (row = v, column = u)."""
        return np.transpose(self.control_points, (1, 0, 2))

    @property
    def domain_u(self) -> tuple:
        n_u = self.shape[0]
        return float(self.knots_u[self.degree[0]]), float(self.knots_u[n_u])

    @property
    def domain_v(self) -> tuple:
        n_v = self.shape[1]
        return float(self.knots_v[self.degree[1]]), float(self.knots_v[n_v])

    def evaluate(self, u, v) -> np.ndarray:
        """Point(s) at matching parameter arrays ``u`` and ``v``."""
        n_u, n_v = self.shape
        bu = _basis_matrix(self.knots_u, self.degree[0], n_u, u)
        bv = _basis_matrix(self.knots_v, self.degree[1], n_v, v)
        points = np.einsum('mi,ijk,mj->mk', bu, self.control_points, bv)
        return points[0] if np.ndim(u) == 0 and np.ndim(v) == 0 else points

    def evaluate_grid(self, us, vs) -> np.ndarray:
        """Points on the tensor grid ``us x vs``, shape (len(us), len(vs), 3)."""
        n_u, n_v = self.shape
        bu = _basis_matrix(self.knots_u, self.degree[0], n_u, us)
        bv = _basis_matrix(self.knots_v, self.degree[1], n_v, vs)
        return np.einsum('ai,ijk,bj->abk', bu, self.control_points, bv)

    def sample_grid(self, count_u: int, count_v: int) -> np.ndarray:
        """Evenly spaced samples over the full domain."""
        us = np.linspace(*self.domain_u, count_u)
        vs = np.linspace(*self.domain_v, count_v)
        return self.evaluate_grid(us, vs)

    def __repr__(self):
        return f"BSplineSurface(shape={self.shape}, degree={self.degree})"


def triangular_patch(p0, p1, p2, center) -> BSplineSurface:
    """Degenerate bicubic quad approximating the triangle (p0, p1, p2) fanned
    around ``center``.

    Row 0 of the net collapses onto ``center``; used to fill holes next to
    extraordinary vertices when no Gregory patch was produced.
    """
    p0, p1, p2, center = (np.asarray(p, dtype=np.float64) for p in (p0, p1, p2, center))

    c01 = (2.0 * p0 + p1) / 3.0
    c10 = (2.0 * p1 + p0) / 3.0
    c02 = (2.0 * p0 + p2) / 3.0
    c12 = (2.0 * p1 + p2) / 3.0

    cc = (p0 + p1 + p2 + center) / 4.0
    cc0 = (2.0 * center + p0) / 3.0
    cc1 = (2.0 * center + p1) / 3.0
    cc2 = (2.0 * center + p2) / 3.0

    net = np.array([
        [center, center, center, center],
        [cc0, cc, cc1, cc2],
        [c02, (c02 + c10) / 2.0, c10, c12],
        [p0, c01, p1, p2],
    ])
    return BSplineSurface.from_control_net(net)
