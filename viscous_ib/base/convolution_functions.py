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
Regularized delta functions and the grid <-> marker transfer operators.

The immersed boundary communicates with the Eulerian grid through a smoothed
Dirac delta, built as the product of two 1D kernels:

    δ_h(x - X, y - Y) = φ((x - X) / dx) φ((y - Y) / dy) / (dx dy)

1.  **Interpolation** gathers a grid field at the markers:
    `U(X_k) = Σ_ij u_ij δ_h(x_ij - X_k) dx dy`.
2.  **Spreading** distributes marker values onto the grid:
    `f(x_ij) = Σ_k F_k δ_h(x_ij - X_k) W_k`, with `W_k` the marker weight.

Because the kernel is separable, both are evaluated as a contraction of two
small `(n_markers, n_cells_along_axis)` weight matrices with the field, instead
of looping over every marker and every cell.
"""

from typing import Callable, Optional, Sequence

import jax.numpy as jnp

from viscous_ib.base import grids

GridArray = grids.GridArray
KernelFn = Callable[[jnp.ndarray], jnp.ndarray]


def delta_roma(r):
  """
  Three-point kernel of Roma, Peskin & Berger (1999), `r` in grid units.

  Supported on `|r| < 1.5`; its values at the grid points around any marker
  sum to one.
  """
  r = jnp.abs(r)
  inner = (1 + jnp.sqrt(jnp.clip(1 - 3 * r**2, 0.0))) / 3
  outer = (5 - 3 * r - jnp.sqrt(jnp.clip(1 - 3 * (1 - r)**2, 0.0))) / 6
  return jnp.where(r <= 0.5, inner, jnp.where(r <= 1.5, outer, 0.0))


def delta_gaussian(r, width: float = 1.0):
  """Gaussian kernel with standard deviation `width` grid cells."""
  return jnp.exp(-0.5 * (r / width)**2) / (width * jnp.sqrt(2 * jnp.pi))


def kernel_weights(
    points: jnp.ndarray,
    axis_coords: jnp.ndarray,
    step: float,
    delta_fn: KernelFn = delta_roma,
) -> jnp.ndarray:
  """1D kernel weights, shape `(len(points), len(axis_coords))`."""
  return delta_fn((axis_coords[jnp.newaxis, :] - points[:, jnp.newaxis]) / step)


def interpolate(
    field: GridArray,
    xp: jnp.ndarray,
    yp: jnp.ndarray,
    delta_fn: KernelFn = delta_roma,
) -> jnp.ndarray:
  """Values of a 2D grid field at the markers `(xp, yp)`."""
  x, y = field.grid.axes(field.offset)
  dx, dy = field.grid.step
  wx = kernel_weights(xp, x, dx, delta_fn)
  wy = kernel_weights(yp, y, dy, delta_fn)
  return jnp.einsum('ki,ij,kj->k', wx, field.data, wy)


def spread(
    values: jnp.ndarray,
    xp: jnp.ndarray,
    yp: jnp.ndarray,
    grid: grids.Grid,
    weights: Optional[jnp.ndarray] = None,
    offset: Optional[Sequence[float]] = None,
    delta_fn: KernelFn = delta_roma,
) -> GridArray:
  """
  Spreads marker values onto the grid.

  Args:
    values: one value per marker (e.g. a force per unit area).
    xp: marker x-coordinates.
    yp: marker y-coordinates.
    grid: the target grid.
    weights: marker weights `W_k`; ones (point sources) if omitted.
    offset: target offset, cell centers by default.
    delta_fn: the 1D kernel.

  Returns:
    The spread density as a `GridArray`.
  """
  if offset is None:
    offset = grid.cell_center
  if weights is not None:
    values = values * weights
  x, y = grid.axes(offset)
  dx, dy = grid.step
  wx = kernel_weights(xp, x, dx, delta_fn)
  wy = kernel_weights(yp, y, dy, delta_fn)
  data = jnp.einsum('k,ki,kj->ij', values, wx, wy) / (dx * dy)
  return GridArray(data, tuple(offset), grid)
