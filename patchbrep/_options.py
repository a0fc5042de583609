"""
Export options for turning a patch table into a B-rep shell.

Usage
-----
    from patchbrep import ExportOptions, GregoryAccuracy, to_step_shell

    shell = to_step_shell(table, points)                       # defaults
    shell = to_step_shell(table, points, ExportOptions(stitch_edges=True))
    shell = to_step_shell(table, points, ExportOptions(
        gregory_accuracy=GregoryAccuracy.HIGH_PRECISION,
        use_superpatches=False,
    ))
"""

import enum
from dataclasses import dataclass


class GregoryAccuracy(enum.Enum):
    """How patches at extraordinary vertices are approximated.

    BSPLINE_END_CAPS
        Sample the patch on a 4x4 grid and use it as a bicubic control net.
        Cheap, and exact when the table was built with B-spline end caps.
    HIGH_PRECISION
        Sample the patch on an 8x8 grid and use it as an 8x8 uniform
        B-spline net. Smaller deviation at the cost of more evaluations.
    """
    BSPLINE_END_CAPS = 'bspline_end_caps'
    HIGH_PRECISION = 'high_precision'


@dataclass
class ExportOptions:
    """Options for :func:`patchbrep.export.to_step_shell`.

    Attributes
    ----------
    gregory_accuracy : GregoryAccuracy
        Approximation used for Gregory patches (default BSPLINE_END_CAPS).
    stitch_tolerance : float
        Distance under which points are treated as coincident, both when
        merging superpatches and when welding vertices and edges.
    stitch_edges : bool
        Build shared vertices and edges between faces (default False).
    use_superpatches : bool
        Merge adjacent regular patches into larger surfaces (default True).
    explicit_boundaries : bool
        Give disconnected faces an explicit 4-edge boundary wire instead of
        leaving the boundary implicit (default False).
    """
    gregory_accuracy: GregoryAccuracy = GregoryAccuracy.BSPLINE_END_CAPS
    stitch_tolerance: float = 1e-6
    stitch_edges: bool = False
    use_superpatches: bool = True
    explicit_boundaries: bool = False

    def __post_init__(self):
        if self.stitch_tolerance < 0:
            raise ValueError(
                f"stitch_tolerance must be non-negative, got {self.stitch_tolerance}"
            )
        if not isinstance(self.gregory_accuracy, GregoryAccuracy):
            self.gregory_accuracy = GregoryAccuracy(self.gregory_accuracy)
