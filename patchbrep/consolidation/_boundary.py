"""
Boundary-mask semantics and control-net correction for clamped edges.

The evaluator clamps a regular patch along every edge flagged in its
boundary mask by folding the weight of the outermost control row into the
two rows next to it. :func:`adjust_regular_control_points` rewrites the net
so that a plain uniform bicubic basis reproduces that clamped surface; the
corrected nets of two neighbouring patches then agree along their shared
edge.

Mask bits
---------
    bit 0 (1)  V_MIN   bottom, row 0
    bit 1 (2)  U_MAX   right, column 3
    bit 2 (4)  V_MAX   top, row 3
    bit 3 (8)  U_MIN   left, column 0
"""

import enum

import numpy as np

from patchbrep._errors import InvalidControlPointsError


class BoundaryEdge(enum.IntFlag):
    V_MIN = 0b0001
    U_MAX = 0b0010
    V_MAX = 0b0100
    U_MIN = 0b1000


def _boundary_transform(boundary_mask: int) -> np.ndarray:
    """16x16 weight transform for a v-major flattened 4x4 net."""
    trans = np.eye(16)

    if boundary_mask & BoundaryEdge.V_MIN:
        for i in range(4):
            trans[i + 8] -= trans[i]
            trans[i + 4] += 2.0 * trans[i]
            trans[i] = 0.0

    if boundary_mask & BoundaryEdge.U_MAX:
        for i in range(0, 16, 4):
            trans[i + 1] -= trans[i + 3]
            trans[i + 2] += 2.0 * trans[i + 3]
            trans[i + 3] = 0.0

    if boundary_mask & BoundaryEdge.V_MAX:
        for i in range(4):
            trans[i + 4] -= trans[i + 12]
            trans[i + 8] += 2.0 * trans[i + 12]
            trans[i + 12] = 0.0

    if boundary_mask & BoundaryEdge.U_MIN:
        for i in range(0, 16, 4):
            trans[i + 2] -= trans[i]
            trans[i + 1] += 2.0 * trans[i]
            trans[i] = 0.0

    return trans


def adjust_regular_control_points(control, boundary_mask: int) -> np.ndarray:
    """Correct a 4x4 regular-patch net for clamped boundary edges.

    Parameters
    ----------
    control : array_like of shape (4, 4, 3)
        v-major net (row = v, column = u).
    boundary_mask : int
        4-bit mask; 0 returns the input unchanged.

    Returns
    -------
    np.ndarray of shape (4, 4, 3)

    Examples
    --------
    With only the v-min bit set the bottom row becomes ``2*row1 - row2``
    and every other row is kept.
    """
    control = np.asarray(control, dtype=np.float64)
    if control.shape != (4, 4, 3):
        raise InvalidControlPointsError(
            f"Regular patch net must have shape (4, 4, 3), got {control.shape}"
        )
    boundary_mask = int(boundary_mask) & 0xF
    if boundary_mask == 0:
        return control

    trans = _boundary_transform(boundary_mask)
    flat = control.reshape(16, 3)
    return (trans.T @ flat).reshape(4, 4, 3)


def bottom_edge(net: np.ndarray) -> np.ndarray:
    """v-min row of a v-major net."""
    return net[0, :]


def top_edge(net: np.ndarray) -> np.ndarray:
    """v-max row of a v-major net."""
    return net[-1, :]


def left_edge(net: np.ndarray) -> np.ndarray:
    """u-min column of a v-major net."""
    return net[:, 0]


def right_edge(net: np.ndarray) -> np.ndarray:
    """u-max column of a v-major net."""
    return net[:, -1]


def edges_match(a, b, tol: float) -> bool:
    """True when every point pair is within ``tol`` (compared squared)."""
    a = np.asarray(a)
    b = np.asarray(b)
    if a.shape != b.shape:
        return False
    return bool(np.all(np.sum((a - b) ** 2, axis=-1) <= tol * tol))
