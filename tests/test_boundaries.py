# Copyright 2021 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#      http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Tests for ghost cells of cell-centred data."""

import jax.numpy as jnp
import numpy as np
import pytest

from viscous_ib.base import boundaries
from viscous_ib.base import grids

BCType = boundaries.BCType


def _variable(data, bc):
    data = jnp.asarray(data, dtype=jnp.float32)
    grid = grids.Grid((data.shape[0],), domain=((0.0, float(data.shape[0])),))
    return grids.GridVariable(grids.GridArray(data, (0.5,), grid), bc)


class TestConstantBoundaryConditions:

    def test_periodic_shift_wraps(self):
        u = _variable([0.0, 1.0, 2.0, 3.0],
                      boundaries.periodic_boundary_conditions(1))
        up = u.shift(+1, 0)
        np.testing.assert_allclose(up.data, [1.0, 2.0, 3.0, 0.0])
        assert up.offset == (1.5,)
        down = u.shift(-1, 0)
        np.testing.assert_allclose(down.data, [3.0, 0.0, 1.0, 2.0])
        assert down.offset == (-0.5,)

    def test_dirichlet_ghost_is_odd_reflection(self):
        bc = boundaries.ConstantBoundaryConditions(
            [(BCType.DIRICHLET, BCType.DIRICHLET)], [(1.0, -2.0)])
        u = _variable([3.0, 4.0, 5.0], bc)
        lower = u.shift(-1, 0)
        upper = u.shift(+1, 0)
        # Ghost values make the average across each wall the wall value.
        assert float(lower.data[0]) == pytest.approx(2 * 1.0 - 3.0)
        assert float(upper.data[-1]) == pytest.approx(2 * -2.0 - 5.0)

    def test_neumann_ghost_is_even_reflection(self):
        u = _variable([3.0, 4.0, 5.0], boundaries.neumann_boundary_conditions(1))
        assert float(u.shift(-1, 0).data[0]) == pytest.approx(3.0)
        assert float(u.shift(+1, 0).data[-1]) == pytest.approx(5.0)

    def test_pad_width(self):
        u = _variable([1.0, 2.0, 3.0], boundaries.dirichlet_boundary_conditions(1))
        padded = u.bc.pad(u.array, -2, 0)
        np.testing.assert_allclose(padded.data, [-2.0, -1.0, 1.0, 2.0, 3.0])
        assert padded.offset == (-1.5,)

    def test_face_data_is_rejected(self):
        bc = boundaries.dirichlet_boundary_conditions(1)
        grid = grids.Grid((3,), domain=((0.0, 3.0),))
        face = grids.GridArray(jnp.zeros(3), (1.0,), grid)
        with pytest.raises(ValueError):
            bc.pad(face, 1, 0)

    def test_periodic_on_one_side_only(self):
        with pytest.raises(ValueError):
            boundaries.ConstantBoundaryConditions(
                [(BCType.PERIODIC, BCType.DIRICHLET)], [(0.0, 0.0)])

    def test_unknown_type(self):
        with pytest.raises(ValueError):
            boundaries.ConstantBoundaryConditions([("slip", "slip")], [(0.0, 0.0)])

    def test_hashable(self):
        a = boundaries.far_field_boundary_conditions(2)
        b = boundaries.dirichlet_boundary_conditions(2)
        assert a == b
        assert hash(a) == hash(b)

    def test_predicates(self):
        assert boundaries.is_all_neumann(boundaries.neumann_boundary_conditions(2))
        assert not boundaries.is_all_neumann(
            boundaries.dirichlet_boundary_conditions(2))
        u = _variable([1.0, 2.0], boundaries.periodic_boundary_conditions(1))
        assert boundaries.has_all_periodic_boundary_conditions(u)
