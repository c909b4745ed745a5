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
"""
Forcing models: applied forces whose strength is supplied by a user function.

Two kinds of forcing are available.

1.  **Area forcing** (`AreaForcingModel`) is distributed over a region of the
    flow. Its spatial distribution is given by one `SpatialField` per force
    component and is evaluated on the grid once, when the system is built.
    The model function scales it in time:

        def model(t, cache, phys_params):
            return pulse(t) * cache.generated_field()

2.  **Point forcing** (`PointForcingModel`) acts at fixed points. The model
    function returns the force `(fx, fy)` at each point, which is spread onto
    the grid with the regularized delta function.

Models are handed to the system in a dictionary under the key
`"forcing models"`, as a single model or a list of models.
"""

import logging
from typing import Any, Callable, Mapping, Optional, Sequence, Tuple

import jax.numpy as jnp

from viscous_ib.base import convolution_functions
from viscous_ib.base import grids
from viscous_ib.forcing import fields

logger = logging.getLogger(__name__)

GridArray = grids.GridArray
FORCING_KEY = "forcing models"
# `(t, cache, phys_params) -> forces`
ModelFn = Callable[[Any, Any, Any], Any]


class AreaRegionCache:
    """The spatial distribution of an area forcing, evaluated on the grid."""

    def __init__(self, grid: grids.Grid, spatialfield: Sequence[fields.SpatialField]):
        self.grid = grid
        x, y = grid.mesh()
        self._field = jnp.stack([f(x, y) for f in spatialfield])

    def generated_field(self) -> jnp.ndarray:
        """The distribution of each component, shape `(2, nx, ny)`."""
        return self._field


class AreaForcingModel:
    """
    Forcing spread over a region.

    Args:
      model_fn: `(t, cache, phys_params) -> (fx, fy)` returning the force
        density on the grid, as an array of shape `(2, nx, ny)` or a pair.
      spatialfield: the distribution of the x and y components.
    """

    def __init__(self, model_fn: ModelFn, spatialfield: Sequence[fields.SpatialField]):
        if len(spatialfield) != 2:
            raise ValueError(
                f"expected a spatial field per component, got {len(spatialfield)}")
        for f in spatialfield:
            if not isinstance(f, fields.SpatialField):
                raise TypeError(f"expected SpatialField, got {type(f).__name__}")
        self.model_fn = model_fn
        self.spatialfield = tuple(spatialfield)

    def build_cache(self, grid: grids.Grid) -> AreaRegionCache:
        return AreaRegionCache(grid, self.spatialfield)

    def force_density(self, cache: AreaRegionCache, t, phys_params):
        fx, fy = self.model_fn(t, cache, phys_params)
        return jnp.asarray(fx), jnp.asarray(fy)


class PointRegionCache:
    """The points at which a point forcing acts."""

    def __init__(self, grid: grids.Grid, points: Sequence[Sequence[float]]):
        self.grid = grid
        points = jnp.asarray(points, dtype=jnp.result_type(float)).reshape(-1, 2)
        self.xp = points[:, 0]
        self.yp = points[:, 1]

    def __len__(self):
        return self.xp.shape[0]


class PointForcingModel:
    """
    Forcing concentrated at points.

    Args:
      model_fn: `(t, cache, phys_params) -> forces`, with `forces` of shape
        `(n_points, 2)`.
      points: the `(x, y)` of each point.
    """

    def __init__(self, model_fn: ModelFn, points: Sequence[Sequence[float]]):
        if not len(points):
            raise ValueError("a point forcing needs at least one point")
        self.model_fn = model_fn
        self.points = points

    def build_cache(self, grid: grids.Grid) -> PointRegionCache:
        return PointRegionCache(grid, self.points)

    def force_density(self, cache: PointRegionCache, t, phys_params):
        strengths = jnp.asarray(self.model_fn(t, cache, phys_params)).reshape(-1, 2)
        fx = convolution_functions.spread(strengths[:, 0], cache.xp, cache.yp, cache.grid)
        fy = convolution_functions.spread(strengths[:, 1], cache.xp, cache.yp, cache.grid)
        return fx.data, fy.data


def forcing_models(forcing: Optional[Mapping[str, Any]]) -> list:
    """Extracts the list of models from a forcing dictionary."""
    if not forcing:
        return []
    unknown = set(forcing) - {FORCING_KEY}
    if unknown:
        raise ValueError(
            f"unknown forcing keys {sorted(unknown)}; use {FORCING_KEY!r}")
    models = forcing[FORCING_KEY]
    if isinstance(models, (AreaForcingModel, PointForcingModel)):
        models = [models]
    models = list(models)
    for m in models:
        if not isinstance(m, (AreaForcingModel, PointForcingModel)):
            raise TypeError(f"expected a forcing model, got {type(m).__name__}")
    return models


def forcing_function(
    forcing: Optional[Mapping[str, Any]],
    grid: grids.Grid,
    phys_params,
) -> Optional[Callable[[Any], Tuple[GridArray, GridArray]]]:
    """
    Combines all forcing models into `t -> (fx, fy)`, or `None` if there are
    none.
    """
    models = forcing_models(forcing)
    if not models:
        return None
    caches = [m.build_cache(grid) for m in models]
    logger.info("Built %d forcing model(s)", len(models))
    offset = grid.cell_center

    def total_force(t):
        fx = jnp.zeros(grid.shape)
        fy = jnp.zeros(grid.shape)
        for model, cache in zip(models, caches):
            mx, my = model.force_density(cache, t, phys_params)
            fx = fx + mx
            fy = fy + my
        return GridArray(fx, offset, grid), GridArray(fy, offset, grid)

    return total_force
