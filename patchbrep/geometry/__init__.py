"""B-spline geometry and B-rep topology."""

from patchbrep.geometry._bspline import (
    BSplineCurve,
    BSplineSurface,
    bezier_knots,
    triangular_patch,
    uniform_knots,
)
from patchbrep.geometry._brep import Edge, Face, Shell, Vertex, Wire

__all__ = [
    'BSplineCurve', 'BSplineSurface', 'bezier_knots', 'uniform_knots',
    'triangular_patch',
    'Vertex', 'Edge', 'Wire', 'Face', 'Shell',
]
