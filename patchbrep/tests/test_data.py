"""Tests for patchbrep.data (JSON save/load, OBJ export)."""

import json
import os

import numpy as np
import numpy.testing as npt
import pytest


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def surfaces():
    """A bicubic patch and a wider 7x4 surface."""
    from patchbrep.geometry import BSplineSurface
    rng = np.random.default_rng(3)
    return [
        BSplineSurface.from_control_net(rng.normal(size=(4, 4, 3))),
        BSplineSurface.from_control_net(rng.normal(size=(4, 7, 3))),
    ]


@pytest.fixture
def state_path(tmp_path):
    return str(tmp_path / 'surfaces.json')


# ---------------------------------------------------------------------------
# Save/Load tests
# ---------------------------------------------------------------------------

class TestSaveLoad:
    def test_save_creates_file(self, surfaces, state_path):
        from patchbrep.data import save_surfaces
        result = save_surfaces(surfaces, state_path)
        assert os.path.exists(result)

    def test_save_format(self, surfaces, state_path):
        from patchbrep.data import save_surfaces
        save_surfaces(surfaces, state_path)

        with open(state_path) as f:
            data = json.load(f)

        assert data['format'] == 'patchbrep_surfaces_v1'
        assert data['n_surfaces'] == 2
        assert data['surfaces'][1]['shape'] == [7, 4]
        assert data['surfaces'][0]['degree'] == [3, 3]

    def test_load_restores_surfaces(self, surfaces, state_path):
        from patchbrep.data import load_surfaces, save_surfaces
        save_surfaces(surfaces, state_path)
        loaded, meta = load_surfaces(state_path)

        assert meta['n_surfaces'] == 2
        assert len(loaded) == 2
        for orig, new in zip(surfaces, loaded):
            npt.assert_array_equal(new.control_points, orig.control_points)
            npt.assert_array_equal(new.knots_u, orig.knots_u)
            assert new.degree == orig.degree
        npt.assert_allclose(loaded[1].evaluate(1.3, 0.4), surfaces[1].evaluate(1.3, 0.4))

    def test_extra_meta(self, surfaces, state_path):
        from patchbrep.data import load_surfaces, save_surfaces
        save_surfaces(surfaces, state_path, extra_meta={'source': 'cube'})
        _, meta = load_surfaces(state_path)
        assert meta['source'] == 'cube'

    def test_creates_parent_dirs(self, surfaces, tmp_path):
        from patchbrep.data import save_surfaces
        path = tmp_path / 'a' / 'b' / 'out.json'
        save_surfaces(surfaces, path)
        assert path.exists()

    def test_shell_input(self, state_path):
        from patchbrep.data import load_surfaces, save_surfaces
        from patchbrep.geometry import BSplineSurface, Face, Shell
        surface = BSplineSurface.from_control_net(np.zeros((4, 4, 3)))
        save_surfaces(Shell([Face(surface), Face(surface)]), state_path)
        loaded, _ = load_surfaces(state_path)
        assert len(loaded) == 2

    def test_wrong_format_raises(self, tmp_path):
        from patchbrep.data import load_surfaces
        path = tmp_path / 'other.json'
        path.write_text(json.dumps({'format': 'mesh_state_v1'}))
        with pytest.raises(ValueError, match="not a patchbrep surface file"):
            load_surfaces(str(path))


# ---------------------------------------------------------------------------
# OBJ export
# ---------------------------------------------------------------------------

class TestObjExport:
    def test_statement_counts(self, surfaces, tmp_path):
        from patchbrep.data import export_obj_bspline
        path = export_obj_bspline(surfaces, tmp_path / 'out.obj')
        lines = open(path).read().splitlines()

        assert sum(line.startswith('v ') for line in lines) == 16 + 28
        assert sum(line.startswith('surf ') for line in lines) == 2
        assert sum(line == 'cstype bspline' for line in lines) == 2
        assert sum(line == 'end' for line in lines) == 2

    def test_surf_indices_and_domain(self, surfaces, tmp_path):
        from patchbrep.data import export_obj_bspline
        path = export_obj_bspline(surfaces, tmp_path / 'out.obj')
        surf_lines = [line.split() for line in open(path) if line.startswith('surf ')]

        first, second = surf_lines
        assert [float(x) for x in first[1:5]] == [0.0, 1.0, 0.0, 1.0]
        assert [int(k) for k in first[5:]] == list(range(1, 17))
        assert [float(x) for x in second[1:5]] == [0.0, 4.0, 0.0, 1.0]
        assert [int(k) for k in second[5:]] == list(range(17, 45))

    def test_u_varies_fastest(self, surfaces, tmp_path):
        from patchbrep.data import export_obj_bspline
        path = export_obj_bspline(surfaces[1:], tmp_path / 'out.obj')
        verts = np.array([[float(x) for x in line.split()[1:]]
                          for line in open(path) if line.startswith('v ')])
        npt.assert_allclose(verts[1], surfaces[1].control_points[1, 0])
        npt.assert_allclose(verts[7], surfaces[1].control_points[0, 1])
