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
"""Tests for spatial fields and forcing models."""

import jax.numpy as jnp
import numpy as np
import pytest

from viscous_ib import config
from viscous_ib.base import grids
from viscous_ib.forcing import fields
from viscous_ib.forcing import models

GRID = grids.Grid((80, 80), domain=((-2.0, 2.0), (-2.0, 2.0)))
PARAMS = config.PhysParams(reynolds=100.0)


def _integral(data):
    return float(jnp.sum(data)) * GRID.area


class TestSpatialFields:

    def test_gaussian_integral_and_peak(self):
        f = fields.SpatialGaussian(0.2, 0.4, 0.5, -0.25, amplitude=3.0)
        x, y = GRID.mesh()
        assert _integral(f(x, y)) == pytest.approx(3.0, rel=1e-4)
        assert float(f(0.5, -0.25)) == pytest.approx(3.0 / (np.pi * 0.08))

    def test_gaussian_rejects_width(self):
        with pytest.raises(ValueError):
            fields.SpatialGaussian(0.0, 0.1, 0.0, 0.0)

    def test_empty(self):
        x, y = GRID.mesh()
        np.testing.assert_array_equal(fields.EmptySpatialField()(x, y), 0.0)


class TestAreaForcing:

    def setup_method(self):
        self.model = models.AreaForcingModel(
            lambda t, cache, phys_params: t * cache.generated_field(),
            [fields.SpatialGaussian(0.3, 0.3, 0.0, 0.0),
             fields.EmptySpatialField()])

    def test_cache(self):
        cache = self.model.build_cache(GRID)
        assert cache.generated_field().shape == (2, 80, 80)

    def test_forcing_function(self):
        force = models.forcing_function(
            {models.FORCING_KEY: self.model}, GRID, PARAMS)
        fx, fy = force(2.0)
        assert fx.offset == GRID.cell_center
        assert _integral(fx.data) == pytest.approx(2.0, rel=1e-4)
        np.testing.assert_array_equal(fy.data, 0.0)

    def test_models_add_up(self):
        force = models.forcing_function(
            {models.FORCING_KEY: [self.model, self.model]}, GRID, PARAMS)
        fx, _ = force(1.0)
        assert _integral(fx.data) == pytest.approx(2.0, rel=1e-4)

    def test_needs_two_fields(self):
        with pytest.raises(ValueError):
            models.AreaForcingModel(lambda t, c, p: 0.0,
                                    [fields.EmptySpatialField()])

    def test_needs_spatial_fields(self):
        with pytest.raises(TypeError):
            models.AreaForcingModel(lambda t, c, p: 0.0,
                                    [fields.EmptySpatialField(), 1.0])


class TestPointForcing:

    def test_spread_force_keeps_total(self):
        model = models.PointForcingModel(
            lambda t, cache, phys_params: jnp.tile(jnp.array([[1.0, -0.5]]),
                                                   (len(cache), 1)),
            [[0.0, 0.0], [0.55, 0.3]])
        force = models.forcing_function({models.FORCING_KEY: model}, GRID,
                                        PARAMS)
        fx, fy = force(0.0)
        assert _integral(fx.data) == pytest.approx(2.0, rel=1e-5)
        assert _integral(fy.data) == pytest.approx(-1.0, rel=1e-5)

    def test_needs_points(self):
        with pytest.raises(ValueError):
            models.PointForcingModel(lambda t, c, p: 0.0, [])


class TestForcingDictionary:

    def test_no_forcing(self):
        assert models.forcing_function(None, GRID, PARAMS) is None
        assert models.forcing_function({}, GRID, PARAMS) is None

    def test_unknown_key(self):
        with pytest.raises(ValueError, match="unknown forcing keys"):
            models.forcing_models({"forcing model": []})

    def test_wrong_model_type(self):
        with pytest.raises(TypeError):
            models.forcing_models({models.FORCING_KEY: [lambda t: t]})
