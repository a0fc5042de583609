"""Tests for hierarchical superpatch merging."""

import numpy as np
import numpy.testing as npt
import pytest


def _grid(n_u, n_v):
    rows, cols = np.mgrid[0:3 * n_v + 1, 0:3 * n_u + 1] / 3.0
    return np.stack([cols, rows, 0.1 * np.sin(cols) * np.cos(rows)], axis=-1)


def _block(grid, x, y, w, h, mask=0, component=0):
    """Superpatch covering cells [x, x + w) x [y, y + h) of ``grid``."""
    from patchbrep.consolidation import Superpatch
    net = grid[3 * y:3 * (y + h) + 1, 3 * x:3 * (x + w) + 1]
    return Superpatch(np.transpose(net, (1, 0, 2)).copy(), w, h, x, y, component, mask)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def grid_2x2():
    return _grid(2, 2)


@pytest.fixture
def grid_3x1():
    return _grid(3, 1)


# ---------------------------------------------------------------------------
# merge_superpatches
# ---------------------------------------------------------------------------

class TestMergeSuperpatches:
    def test_two_strips_tile_square(self, grid_2x2):
        from patchbrep.consolidation import merge_superpatches
        upper = _block(grid_2x2, 0, 1, 2, 1)
        lower = _block(grid_2x2, 0, 0, 2, 1)
        result = merge_superpatches([upper, lower], 1e-6)
        assert len(result) == 1
        sp = result[0]
        assert (sp.width_cells, sp.height_cells) == (2, 2)
        assert (sp.origin_x, sp.origin_y) == (0, 0)
        assert sp.control.shape == (7, 7, 3)
        npt.assert_allclose(sp.control_net, grid_2x2)

    def test_two_columns_tile_square(self, grid_2x2):
        from patchbrep.consolidation import merge_superpatches
        left = _block(grid_2x2, 0, 0, 1, 2)
        right = _block(grid_2x2, 1, 0, 1, 2)
        result = merge_superpatches([right, left], 1e-6)
        assert len(result) == 1
        npt.assert_allclose(result[0].control_net, grid_2x2)

    def test_four_cells_converge(self, grid_2x2):
        from patchbrep.consolidation import merge_superpatches
        cells = [_block(grid_2x2, x, y, 1, 1) for y in range(2) for x in range(2)]
        result = merge_superpatches(cells, 1e-6)
        assert len(result) == 1
        assert result[0].area == 4
        npt.assert_allclose(result[0].control_net, grid_2x2)

    def test_smaller_patch_on_the_right(self, grid_3x1):
        from patchbrep.consolidation import merge_superpatches
        wide = _block(grid_3x1, 0, 0, 2, 1)
        small = _block(grid_3x1, 2, 0, 1, 1)
        result = merge_superpatches([wide, small], 1e-6)
        assert len(result) == 1
        assert (result[0].origin_x, result[0].width_cells) == (0, 3)
        npt.assert_allclose(result[0].control_net, grid_3x1)

    def test_u_min_masked_patch_not_merged_leftwards(self, grid_3x1):
        from patchbrep.consolidation import BoundaryEdge, merge_superpatches
        left = _block(grid_3x1, 0, 0, 1, 1)
        right = _block(grid_3x1, 1, 0, 1, 1, mask=BoundaryEdge.U_MIN)
        result = merge_superpatches([left, right], 1e-6)
        assert len(result) == 2

    def test_u_max_masked_patch_not_merged_rightwards(self, grid_3x1):
        from patchbrep.consolidation import BoundaryEdge, merge_superpatches
        left = _block(grid_3x1, 0, 0, 1, 1, mask=BoundaryEdge.U_MAX)
        right = _block(grid_3x1, 1, 0, 1, 1)
        assert len(merge_superpatches([left, right], 1e-6)) == 2

    def test_different_components_not_merged(self, grid_3x1):
        from patchbrep.consolidation import merge_superpatches
        left = _block(grid_3x1, 0, 0, 1, 1, component=0)
        right = _block(grid_3x1, 1, 0, 1, 1, component=1)
        assert len(merge_superpatches([left, right], 1e-6)) == 2

    def test_mismatched_heights_not_merged(self, grid_2x2):
        from patchbrep.consolidation import merge_superpatches
        tall = _block(grid_2x2, 0, 0, 1, 2)
        short = _block(grid_2x2, 1, 0, 1, 1)
        assert len(merge_superpatches([tall, short], 1e-6)) == 2

    def test_input_list_untouched(self, grid_2x2):
        from patchbrep.consolidation import merge_superpatches
        cells = [_block(grid_2x2, x, y, 1, 1) for y in range(2) for x in range(2)]
        merge_superpatches(cells, 1e-6)
        assert len(cells) == 4
        assert all(sp.area == 1 for sp in cells)

    def test_empty(self):
        from patchbrep.consolidation import merge_superpatches
        assert merge_superpatches([], 1e-6) == []


# ---------------------------------------------------------------------------
# Pairwise merges
# ---------------------------------------------------------------------------

class TestPairwiseMerge:
    def test_horizontal_mask_recombination(self, grid_3x1):
        from patchbrep.consolidation import BoundaryEdge, merge_horizontal
        left = _block(grid_3x1, 0, 0, 1, 1, mask=BoundaryEdge.U_MIN | BoundaryEdge.V_MIN)
        right = _block(grid_3x1, 1, 0, 1, 1, mask=BoundaryEdge.U_MAX | BoundaryEdge.V_MAX)
        merged = merge_horizontal(left, right, 1e-6)
        assert merged.boundary_mask == 0b1111
        assert merged.control.shape == (7, 4, 3)

    def test_vertical_mask_recombination(self, grid_2x2):
        from patchbrep.consolidation import BoundaryEdge, merge_vertical
        lower = _block(grid_2x2, 0, 0, 1, 1, mask=BoundaryEdge.V_MIN | BoundaryEdge.U_MAX)
        upper = _block(grid_2x2, 0, 1, 1, 1, mask=BoundaryEdge.V_MAX | BoundaryEdge.U_MIN)
        merged = merge_vertical(lower, upper, 1e-6)
        assert merged.boundary_mask == 0b1111
        assert merged.control.shape == (4, 7, 3)

    def test_wrong_order_returns_none(self, grid_3x1):
        from patchbrep.consolidation import merge_horizontal
        left = _block(grid_3x1, 0, 0, 1, 1)
        right = _block(grid_3x1, 1, 0, 1, 1)
        assert merge_horizontal(right, left, 1e-6) is None

    def test_edge_mismatch_returns_none(self, grid_2x2):
        from patchbrep.consolidation import merge_vertical
        lower = _block(grid_2x2, 0, 0, 1, 1)
        upper = _block(grid_2x2, 0, 1, 1, 1)
        upper.control[:, 0, 2] += 1e-3
        assert merge_vertical(lower, upper, 1e-6) is None
        assert merge_vertical(lower, upper, 1e-2) is not None

    def test_patch_indices_concatenated(self, grid_3x1):
        from dataclasses import replace
        from patchbrep.consolidation import merge_horizontal
        left = replace(_block(grid_3x1, 0, 0, 1, 1), patch_indices=(4,))
        right = replace(_block(grid_3x1, 1, 0, 1, 1), patch_indices=(7,))
        assert merge_horizontal(left, right, 1e-6).patch_indices == (4, 7)
