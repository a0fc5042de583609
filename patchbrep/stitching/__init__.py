"""Tolerance-based welding of patch boundaries into a shared-edge shell."""

from patchbrep.stitching._stitch import (
    N_EDGE_SAMPLES,
    EdgePool,
    EdgeSamples,
    ToleranceStitcher,
    VertexPool,
    boundary_curves,
    enforce_continuity,
    stitch_shell,
)

__all__ = [
    'N_EDGE_SAMPLES', 'EdgeSamples', 'VertexPool', 'EdgePool',
    'ToleranceStitcher', 'boundary_curves', 'enforce_continuity', 'stitch_shell',
]
