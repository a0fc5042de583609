"""Tests for boundary-mask control-net correction."""

import numpy as np
import numpy.testing as npt
import pytest


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def random_net():
    rng = np.random.default_rng(42)
    return rng.normal(size=(4, 4, 3))


@pytest.fixture
def affine_net():
    """Net whose points depend affinely on (column, row)."""
    rows, cols = np.mgrid[0:4, 0:4].astype(float)
    return np.stack([2.0 * cols + 0.5 * rows, rows - cols, 0.25 * cols + 3.0], axis=-1)


# ---------------------------------------------------------------------------
# adjust_regular_control_points
# ---------------------------------------------------------------------------

class TestAdjustRegularControlPoints:
    def test_mask_zero_is_identity(self, random_net):
        from patchbrep.consolidation import adjust_regular_control_points
        npt.assert_array_equal(adjust_regular_control_points(random_net, 0), random_net)

    def test_v_min_replaces_row0(self, random_net):
        from patchbrep.consolidation import adjust_regular_control_points
        out = adjust_regular_control_points(random_net, 0b0001)
        npt.assert_allclose(out[0], 2.0 * random_net[1] - random_net[2])
        npt.assert_allclose(out[1:], random_net[1:])

    def test_u_max_replaces_col3(self, random_net):
        from patchbrep.consolidation import adjust_regular_control_points
        out = adjust_regular_control_points(random_net, 0b0010)
        npt.assert_allclose(out[:, 3], 2.0 * random_net[:, 2] - random_net[:, 1])
        npt.assert_allclose(out[:, :3], random_net[:, :3])

    def test_v_max_replaces_row3(self, random_net):
        from patchbrep.consolidation import adjust_regular_control_points
        out = adjust_regular_control_points(random_net, 0b0100)
        npt.assert_allclose(out[3], 2.0 * random_net[2] - random_net[1])
        npt.assert_allclose(out[:3], random_net[:3])

    def test_u_min_replaces_col0(self, random_net):
        from patchbrep.consolidation import adjust_regular_control_points
        out = adjust_regular_control_points(random_net, 0b1000)
        npt.assert_allclose(out[:, 0], 2.0 * random_net[:, 1] - random_net[:, 2])
        npt.assert_allclose(out[:, 1:], random_net[:, 1:])

    def test_opposite_sides(self, random_net):
        from patchbrep.consolidation import adjust_regular_control_points
        out = adjust_regular_control_points(random_net, 0b0101)
        npt.assert_allclose(out[0], 2.0 * random_net[1] - random_net[2])
        npt.assert_allclose(out[3], 2.0 * random_net[2] - random_net[1])
        npt.assert_allclose(out[1:3], random_net[1:3])

    def test_corner_uses_corrected_rows(self, random_net):
        from patchbrep.consolidation import adjust_regular_control_points
        out = adjust_regular_control_points(random_net, 0b1001)
        row0 = 2.0 * random_net[1] - random_net[2]
        npt.assert_allclose(out[0, 1:], row0[1:])
        npt.assert_allclose(out[0, 0], 2.0 * row0[1] - row0[2])

    @pytest.mark.parametrize("mask", range(16))
    def test_affine_net_unchanged(self, affine_net, mask):
        from patchbrep.consolidation import adjust_regular_control_points
        npt.assert_allclose(adjust_regular_control_points(affine_net, mask),
                            affine_net, atol=1e-12)

    def test_high_bits_ignored(self, random_net):
        from patchbrep.consolidation import adjust_regular_control_points
        npt.assert_array_equal(adjust_regular_control_points(random_net, 0b10000),
                               random_net)

    def test_bad_shape_raises(self):
        from patchbrep import InvalidControlPointsError
        from patchbrep.consolidation import adjust_regular_control_points
        with pytest.raises(InvalidControlPointsError):
            adjust_regular_control_points(np.zeros((3, 4, 3)), 1)
        with pytest.raises(ValueError):
            adjust_regular_control_points(np.zeros((16, 3)), 0)

    def test_input_not_mutated(self, random_net):
        from patchbrep.consolidation import adjust_regular_control_points
        before = random_net.copy()
        adjust_regular_control_points(random_net, 0b1111)
        npt.assert_array_equal(random_net, before)


class TestEdgeHelpers:
    def test_edges_of_net(self, random_net):
        from patchbrep.consolidation._boundary import (
            bottom_edge, left_edge, right_edge, top_edge,
        )
        npt.assert_array_equal(bottom_edge(random_net), random_net[0])
        npt.assert_array_equal(top_edge(random_net), random_net[3])
        npt.assert_array_equal(left_edge(random_net), random_net[:, 0])
        npt.assert_array_equal(right_edge(random_net), random_net[:, 3])

    def test_edges_match_tolerance(self):
        from patchbrep.consolidation._boundary import edges_match
        a = np.zeros((4, 3))
        b = a.copy()
        b[2, 1] = 1e-4
        assert edges_match(a, a, 0.0)
        assert not edges_match(a, b, 1e-6)
        assert edges_match(a, b, 1e-3)
        assert not edges_match(a, np.zeros((7, 3)), 1.0)
