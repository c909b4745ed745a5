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
Second-order finite difference operators on cell-centered `GridVariable`s.

Every operator here takes its neighbours through `GridVariable.shift`, so ghost
values come from the attached boundary conditions and the result lives at the
same offset as the input.
"""

from typing import Callable, Sequence, Tuple, Union

from viscous_ib.base import grids

GridArray = grids.GridArray
GridVariable = grids.GridVariable
Axes = Union[int, Sequence[int], None]


def stencil_sum(*terms: GridArray) -> GridArray:
  """
  Adds shifted copies of a field, labelling the sum with their mean offset.

  For `u(i+1)` and `-u(i-1)` the mean offset is that of `u(i)`, which is
  where a central difference lives.
  """
  total = terms[0].data
  for term in terms[1:]:
    total = total + term.data
  return grids.GridArray(
      total, grids.averaged_offset(*terms), grids.consistent_grid(*terms))


def _per_axis(derivative: Callable[[GridVariable, int], GridArray],
              u: GridVariable, axis: Axes):
  if isinstance(axis, int):
    return derivative(u, axis)
  axes = range(u.grid.ndim) if axis is None else axis
  return tuple(derivative(u, a) for a in axes)


def _central(u: GridVariable, axis: int) -> GridArray:
  twice_h = 2 * u.grid.step[axis]
  return stencil_sum(u.shift(1, axis), -u.shift(-1, axis)) / twice_h


def _forward(u: GridVariable, axis: int) -> GridArray:
  jump = u.shift(1, axis).data - u.data
  return grids.GridArray(jump / u.grid.step[axis], u.offset, u.grid)


def _backward(u: GridVariable, axis: int) -> GridArray:
  jump = u.data - u.shift(-1, axis).data
  return grids.GridArray(jump / u.grid.step[axis], u.offset, u.grid)


def central_difference(u: GridVariable, axis: Axes = None):
  """
  Approximates du/dx_axis as `(u(i+1) - u(i-1)) / (2 dx)`.

  An integer `axis` gives a single `GridArray`. A sequence of axes, or None
  for all of them, gives a tuple with one derivative per axis.
  """
  return _per_axis(_central, u, axis)


def forward_difference(u: GridVariable, axis: Axes = None):
  """
  Approximates du/dx_axis as `(u(i+1) - u(i)) / dx`.

  The result keeps the offset of `u`; the upwind scheme uses it as a
  first-order one-sided derivative at the point `i` itself.
  """
  return _per_axis(_forward, u, axis)


def backward_difference(u: GridVariable, axis: Axes = None):
  """Approximates du/dx_axis as `(u(i) - u(i-1)) / dx`, at the offset of `u`."""
  return _per_axis(_backward, u, axis)


def laplacian(u: GridVariable) -> GridArray:
  """Five-point (in 2D) Laplacian of `u`."""
  result = None
  for axis, h in enumerate(u.grid.step):
    term = stencil_sum(u.shift(1, axis), -2 * u.array, u.shift(-1, axis)) / h**2
    result = term if result is None else result + term
  return result


def curl_2d(v: Sequence[GridVariable]) -> GridArray:
  """
  Approximates the scalar curl `dv/dx - du/dy` of a 2D vector field.

  For a velocity field this is the vorticity; for a body force density it is
  the source it contributes to the vorticity equation.
  """
  if len(v) != 2:
    raise ValueError(f'curl_2d expects two components, got {len(v)}')
  grid = grids.consistent_grid(*v)
  if grid.ndim != 2:
    raise ValueError(f'curl_2d needs a 2D grid, got ndim={grid.ndim}')
  return _central(v[1], 0) - _central(v[0], 1)


def velocity_from_streamfunction(
    psi: GridVariable) -> Tuple[GridArray, GridArray]:
  """Returns `(u, v) = (dpsi/dy, -dpsi/dx)`."""
  if psi.grid.ndim != 2:
    raise ValueError(
        f'a streamfunction needs a 2D grid, got ndim={psi.grid.ndim}')
  return _central(psi, 1), -_central(psi, 0)
