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
"""Tests for the regularized delta functions and marker transfer."""

import jax.numpy as jnp
import numpy as np
import pytest

from viscous_ib.base import convolution_functions as cf
from viscous_ib.base import grids

GRID = grids.Grid((32, 32), domain=((-1.0, 1.0), (-1.0, 1.0)))


class TestKernels:

    @pytest.mark.parametrize("shift", [0.0, 0.2, 0.5, 0.9])
    def test_roma_moments(self, shift):
        r = jnp.arange(-3, 4) - shift
        phi = cf.delta_roma(r)
        assert float(jnp.sum(phi)) == pytest.approx(1.0, abs=1e-6)
        assert float(jnp.sum(r * phi)) == pytest.approx(0.0, abs=1e-6)

    def test_roma_support(self):
        assert float(cf.delta_roma(1.5)) == pytest.approx(0.0, abs=1e-7)
        assert float(cf.delta_roma(2.0)) == 0.0
        assert float(cf.delta_roma(0.0)) == pytest.approx(2 / 3)

    def test_gaussian_integral(self):
        r = jnp.linspace(-8, 8, 1601)
        total = float(jnp.sum(cf.delta_gaussian(r, 1.5)) * (r[1] - r[0]))
        assert total == pytest.approx(1.0, rel=1e-4)


class TestTransfer:

    def setup_method(self):
        theta = jnp.linspace(0, 2 * np.pi, 40, endpoint=False)
        self.xp = 0.4 * jnp.cos(theta) + 0.03
        self.yp = 0.4 * jnp.sin(theta) - 0.05

    def test_interpolates_linear_fields_exactly(self):
        field = GRID.eval_on_mesh(lambda x, y: 1.5 + 2 * x - 3 * y)
        values = cf.interpolate(field, self.xp, self.yp)
        np.testing.assert_allclose(values, 1.5 + 2 * self.xp - 3 * self.yp,
                                   atol=1e-5)

    def test_spreading_conserves_the_total(self):
        values = jnp.linspace(-1.0, 2.0, self.xp.shape[0])
        weights = jnp.full(self.xp.shape, 0.05)
        density = cf.spread(values, self.xp, self.yp, GRID, weights)
        assert density.offset == GRID.cell_center
        total = float(jnp.sum(density.data)) * GRID.area
        assert total == pytest.approx(float(jnp.sum(values * weights)), rel=1e-5)

    def test_spread_is_adjoint_of_interpolate(self):
        field = GRID.eval_on_mesh(lambda x, y: jnp.sin(3 * x) * jnp.cos(2 * y))
        values = jnp.linspace(0.5, 1.5, self.xp.shape[0])
        lhs = jnp.sum(values * cf.interpolate(field, self.xp, self.yp))
        rhs = jnp.sum(cf.spread(values, self.xp, self.yp, GRID).data
                      * field.data) * GRID.area
        assert float(lhs) == pytest.approx(float(rhs), rel=1e-5)
