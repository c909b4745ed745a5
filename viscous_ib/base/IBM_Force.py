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
Direct-forcing immersed boundary coupling for rigid bodies.

Bodies are represented by Lagrangian surface markers `X_k` with weights
`W_k = ds_k h` (arc length times grid spacing). After the explicit fluid update
has produced a provisional velocity `u*`, the marker force

    F_k = (U_b(X_k) - u*(X_k)) / dt

is exactly what would bring the fluid at the marker to the prescribed surface
velocity `U_b`. Spreading `F_k` back to the grid does not reproduce that
correction exactly: the kernels of neighbouring markers overlap, and in the
vorticity formulation only the solenoidal part of the spread force acts on the
flow. The interpolate / correct / spread cycle is therefore repeated a few
times (multi-direct forcing), each pass starting from the velocity of the
vorticity corrected so far, and the marker forces are accumulated.

In the vorticity formulation the spread force density `f` enters through its
curl, `ω ← ω + dt ∇×f`. The force exerted by the fluid on a body is minus the
sum of its marker forces, `-Σ_k F_k W_k`.
"""

import dataclasses
from typing import Sequence, Tuple

import jax.numpy as jnp
from jax.tree_util import register_pytree_node_class

from viscous_ib.base import boundaries
from viscous_ib.base import convolution_functions
from viscous_ib.base import finite_differences as fd
from viscous_ib.base import grids

GridArray = grids.GridArray
GridVariable = grids.GridVariable


@register_pytree_node_class
@dataclasses.dataclass
class MarkerForcing:
  """
  Result of one direct-forcing correction.

  Attributes:
    fx: x-component of the force density spread onto the grid.
    fy: y-component of the force density spread onto the grid.
    marker_fx: x-force per unit area at each marker.
    marker_fy: y-force per unit area at each marker.
  """
  fx: GridArray
  fy: GridArray
  marker_fx: jnp.ndarray
  marker_fy: jnp.ndarray

  def tree_flatten(self):
    children = (self.fx, self.fy, self.marker_fx, self.marker_fy)
    return children, None

  @classmethod
  def tree_unflatten(cls, aux_data, children):
    return cls(*children)


def direct_forcing(
    velocity: Sequence[GridArray],
    xp: jnp.ndarray,
    yp: jnp.ndarray,
    target_u: jnp.ndarray,
    target_v: jnp.ndarray,
    weights: jnp.ndarray,
    dt: float,
    delta_fn=convolution_functions.delta_roma,
) -> MarkerForcing:
  """
  One direct forcing pass driving the flow at the markers towards
  `(target_u, target_v)`.

  Args:
    velocity: provisional velocity `(u*, v*)`.
    xp: marker x-coordinates.
    yp: marker y-coordinates.
    target_u: prescribed x-velocity at each marker.
    target_v: prescribed y-velocity at each marker.
    weights: marker weights `W_k`.
    dt: the time step.
    delta_fn: the 1D regularized delta kernel.

  Returns:
    A `MarkerForcing` with the grid force density and the marker forces.
  """
  u, v = velocity
  grid = grids.consistent_grid(u, v)
  force_x = (target_u - convolution_functions.interpolate(u, xp, yp, delta_fn)) / dt
  force_y = (target_v - convolution_functions.interpolate(v, xp, yp, delta_fn)) / dt
  fx = convolution_functions.spread(
      force_x, xp, yp, grid, weights, u.offset, delta_fn)
  fy = convolution_functions.spread(
      force_y, xp, yp, grid, weights, v.offset, delta_fn)
  return MarkerForcing(fx, fy, force_x, force_y)


def vorticity_source(fx: GridArray, fy: GridArray) -> GridArray:
  """Curl of a force density, the term it adds to `dω/dt`."""
  bc = boundaries.far_field_boundary_conditions(2)
  return fd.curl_2d((GridVariable(fx, bc), GridVariable(fy, bc)))


def body_forces(
    forcing: MarkerForcing,
    weights: jnp.ndarray,
    segments: Sequence[Tuple[int, int]],
) -> jnp.ndarray:
  """
  Force of the fluid on each body, shape `(n_bodies, 2)`.

  `segments[i]` is the `(start, stop)` range of the markers of body `i`.
  """
  fx = -forcing.marker_fx * weights
  fy = -forcing.marker_fy * weights
  if not segments:
    return jnp.zeros((0, 2), dtype=fx.dtype)
  return jnp.stack([
      jnp.stack([jnp.sum(fx[start:stop]), jnp.sum(fy[start:stop])])
      for start, stop in segments
  ])
