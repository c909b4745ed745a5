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
Boundary conditions for cell-centered fields.

All fields of the vorticity solver live at cell centers, so a boundary lies
half a cell outside the first and last data points. Ghost cells are filled by
reflection about the boundary:

- Dirichlet: odd reflection about the boundary value, `ghost = 2 b - u`.
- Neumann (homogeneous): even reflection, `ghost = u`.
- Periodic: wrap-around.

The disturbance streamfunction and the vorticity both vanish on the edge of the
finite domain (the far-field condition), which is
`far_field_boundary_conditions`.
"""

import dataclasses
from typing import Optional, Sequence, Tuple

import jax.numpy as jnp
import numpy as np

from viscous_ib.base import grids

BoundaryConditions = grids.BoundaryConditions
GridArray = grids.GridArray
GridVariable = grids.GridVariable


class BCType:
  PERIODIC = 'periodic'
  DIRICHLET = 'dirichlet'
  NEUMANN = 'neumann'


_ALL_TYPES = (BCType.PERIODIC, BCType.DIRICHLET, BCType.NEUMANN)


def _slice_along(array, start: Optional[int], stop: Optional[int], axis: int):
  index = [slice(None)] * array.ndim
  index[axis] = slice(start, stop)
  return array[tuple(index)]


@dataclasses.dataclass(init=False, frozen=True)
class ConstantBoundaryConditions(BoundaryConditions):
  """
  Boundary conditions with a constant value on each side of each axis.

  Attributes:
    types: `(lower, upper)` boundary type names for each axis.
    bc_values: `(lower, upper)` boundary values for each axis. Values are only
      used by Dirichlet sides; Neumann sides are homogeneous.
  """
  types: Tuple[Tuple[str, str], ...]
  bc_values: Tuple[Tuple[float, float], ...]

  def __init__(self,
               types: Sequence[Tuple[str, str]],
               values: Sequence[Tuple[Optional[float], Optional[float]]]):
    types = tuple(tuple(t) for t in types)
    values = tuple(
        tuple(0.0 if v is None else float(v) for v in pair) for pair in values)
    if len(types) != len(values):
      raise ValueError(
          f'got {len(types)} axes of types but {len(values)} of values')
    for lower, upper in types:
      for bc_type in (lower, upper):
        if bc_type not in _ALL_TYPES:
          raise ValueError(f'unknown boundary condition type: {bc_type!r}')
      if (lower == BCType.PERIODIC) != (upper == BCType.PERIODIC):
        raise ValueError('periodic boundaries must be periodic on both sides')
    object.__setattr__(self, 'types', types)
    object.__setattr__(self, 'bc_values', values)

  def _check_cell_centered(self, u: GridArray, axis: int):
    if not np.isclose(u.offset[axis] % 1, 0.5):
      raise ValueError('boundary padding is only defined for cell-centered '
                       f'data, got offset {u.offset} along axis {axis}')

  def pad(self, u: GridArray, width: int, axis: int) -> GridArray:
    """Pads `u` with `|width|` ghost cells on the lower (< 0) or upper side."""
    if width == 0:
      return u
    self._check_cell_centered(u, axis)
    n = u.shape[axis]
    if abs(width) > n:
      raise ValueError(f'cannot pad {abs(width)} cells on an axis of size {n}')
    side = 0 if width < 0 else 1
    bc_type = self.types[axis][side]
    value = self.bc_values[axis][side]
    w = abs(width)
    data = u.data

    if bc_type == BCType.PERIODIC:
      if side == 0:
        ghost = _slice_along(data, n - w, None, axis)
      else:
        ghost = _slice_along(data, None, w, axis)
    else:
      # Mirror image of the `w` points next to the boundary.
      if side == 0:
        mirror = jnp.flip(_slice_along(data, None, w, axis), axis=axis)
      else:
        mirror = jnp.flip(_slice_along(data, n - w, None, axis), axis=axis)
      if bc_type == BCType.DIRICHLET:
        ghost = 2 * value - mirror
      else:
        ghost = mirror

    if side == 0:
      padded = jnp.concatenate([ghost, data], axis=axis)
    else:
      padded = jnp.concatenate([data, ghost], axis=axis)
    offset = list(u.offset)
    if side == 0:
      offset[axis] -= w
    return GridArray(padded, tuple(offset), u.grid)

  def shift(self, u: GridArray, offset: int, axis: int) -> GridArray:
    """Returns `u` evaluated `offset` cells further along `axis`."""
    n = u.shape[axis]
    padded = self.pad(u, offset, axis)
    if offset > 0:
      data = _slice_along(padded.data, offset, offset + n, axis)
    else:
      data = _slice_along(padded.data, None, n, axis)
    new_offset = list(u.offset)
    new_offset[axis] += offset
    return GridArray(data, tuple(new_offset), u.grid)

  def values(self, axis: int) -> Tuple[float, float]:
    return self.bc_values[axis]


def periodic_boundary_conditions(ndim: int) -> ConstantBoundaryConditions:
  """Periodic on every side."""
  return ConstantBoundaryConditions(
      ((BCType.PERIODIC, BCType.PERIODIC),) * ndim, ((0.0, 0.0),) * ndim)


def dirichlet_boundary_conditions(
    ndim: int,
    bc_vals: Optional[Sequence[Tuple[float, float]]] = None,
) -> ConstantBoundaryConditions:
  """Dirichlet on every side, homogeneous unless `bc_vals` is given."""
  if bc_vals is None:
    bc_vals = ((0.0, 0.0),) * ndim
  return ConstantBoundaryConditions(
      ((BCType.DIRICHLET, BCType.DIRICHLET),) * ndim, bc_vals)


def neumann_boundary_conditions(ndim: int) -> ConstantBoundaryConditions:
  """Homogeneous Neumann on every side."""
  return ConstantBoundaryConditions(
      ((BCType.NEUMANN, BCType.NEUMANN),) * ndim, ((0.0, 0.0),) * ndim)


def far_field_boundary_conditions(ndim: int) -> ConstantBoundaryConditions:
  """
  Far-field conditions for the disturbance fields of an open domain.

  The finite domain stands in for an unbounded one: the vorticity and the
  disturbance streamfunction (the part on top of the uniform stream) are both
  zero on the outer edge.
  """
  return dirichlet_boundary_conditions(ndim)


def has_all_periodic_boundary_conditions(*arrays: GridVariable) -> bool:
  for array in arrays:
    for lower, _ in array.bc.types:
      if lower != BCType.PERIODIC:
        return False
  return True


def is_all_neumann(bc: ConstantBoundaryConditions) -> bool:
  return all(bc_type == BCType.NEUMANN
             for axis_bcs in bc.types for bc_type in axis_bcs)
