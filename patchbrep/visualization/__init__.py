"""Visualization utilities for patchbrep surfaces and shells.

Submodules
----------
matplotlib_3d : control-net and stitched-shell plots
"""

from patchbrep.visualization.matplotlib_3d import (
    plot_control_nets,
    plot_shell,
)

__all__ = [
    'plot_control_nets',
    'plot_shell',
]
