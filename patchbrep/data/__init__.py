"""Data handling: save/load surfaces as JSON and export Wavefront OBJ."""

from patchbrep.data._io import export_obj_bspline, load_surfaces, save_surfaces

__all__ = ['save_surfaces', 'load_surfaces', 'export_obj_bspline']
