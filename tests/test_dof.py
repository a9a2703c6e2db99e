# tests/test_dof.py
"""
DOF MANAGER AND STATE LAYOUT TESTS
==================================

Index bookkeeping is where coupled codes quietly go wrong: an off-by-one in
the state partition swaps circulations with displacements and the Newton
solver happily converges to nonsense. These tests pin the layout down.
"""

import numpy as np
import pytest

from aerostruct.kernel.dof import DOFManager, DOF_3D_FRAME, StateLayout, DimensionMismatchError


class TestDOFManager:

    def test_index_of_rotation_dof(self):
        """Node 4, ry (local dof 4) lives at 6*4 + 4."""
        assert DOF_3D_FRAME.idx(4, 4) == 28

    def test_element_dof_map_is_twelve_consecutive_indices(self):
        assert DOF_3D_FRAME.element_dof_map([2, 3]) == list(range(12, 24))

    def test_fixed_dofs_of_several_nodes(self):
        dof = DOFManager(dof_per_node=6)
        assert dof.fixed_dofs([0, 5]) == list(range(0, 6)) + list(range(30, 36))
        assert dof.ndof(11) == 66


class TestStateLayout:

    @pytest.fixture
    def layout(self):
        return StateLayout.build(
            names=["wing", "htail"],
            panel_shapes=[(5, 10), (2, 4)],
            node_counts=[11, 5],
        )

    def test_sizes(self, layout):
        assert layout.n_panels == 58
        assert layout.n_structural == 6 * 16
        assert layout.size == 58 + 96 + 1
        assert layout.trim_index == layout.size - 1

    def test_split_join_preserves_blocks(self, layout):
        """
        WHAT: join() followed by split() hands back the same blocks.
        WHY: The residual splits the state on every call; the driver joins it.
        """
        rng = np.random.default_rng(0)
        gammas = {"wing": rng.normal(size=(5, 10)), "htail": rng.normal(size=(2, 4))}
        disps = {"wing": rng.normal(size=(11, 6)), "htail": rng.normal(size=(5, 6))}

        x = layout.join(gammas, disps, 3.5)
        g, d, alpha = layout.split(x)

        assert alpha == 3.5
        np.testing.assert_array_equal(g["htail"], gammas["htail"])
        np.testing.assert_array_equal(d["wing"], disps["wing"])
        # Circulations come first, displacements next
        np.testing.assert_array_equal(x[:50], gammas["wing"].ravel())
        np.testing.assert_array_equal(x[58:58 + 66], disps["wing"].ravel())

    def test_join_keeps_complex_dtype(self, layout):
        gammas = {"wing": np.zeros((5, 10)), "htail": np.zeros((2, 4))}
        disps = {"wing": np.zeros((11, 6)), "htail": np.zeros((5, 6), dtype=complex)}
        assert np.iscomplexobj(layout.join(gammas, disps, 0.0))

    def test_wrong_state_size_raises(self, layout):
        with pytest.raises(DimensionMismatchError):
            layout.split(np.zeros(layout.size + 1))

    def test_wrong_block_shape_raises(self, layout):
        gammas = {"wing": np.zeros((10, 5)), "htail": np.zeros((2, 4))}
        disps = {"wing": np.zeros((11, 6)), "htail": np.zeros((5, 6))}
        with pytest.raises(DimensionMismatchError):
            layout.join(gammas, disps, 0.0)

    def test_mismatched_surface_lists_raise(self):
        with pytest.raises(DimensionMismatchError):
            StateLayout.build(names=["wing"], panel_shapes=[(2, 2), (1, 1)], node_counts=[3])

    def test_duplicate_names_raise(self):
        with pytest.raises(DimensionMismatchError):
            StateLayout.build(names=["wing", "wing"], panel_shapes=[(2, 2), (1, 1)], node_counts=[3, 2])

    def test_dimension_mismatch_is_a_value_error(self):
        assert issubclass(DimensionMismatchError, ValueError)
