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
Poisson solves for the streamfunction.

In the vorticity formulation the velocity is recovered from the vorticity `ω`
through the streamfunction `ψ`, which satisfies

    ∇²ψ = -ω,    u = ∂ψ/∂y,    v = -∂ψ/∂x.

The streamfunction is split into the uniform-stream part
`ψ∞ = U∞ (y cos θ - x sin θ)`, which is harmonic, and a disturbance `ψ'`
that carries all of `ω` and vanishes on the domain edge. The disturbance solve
uses fast diagonalization: the 2D Laplacian is a Kronecker sum of 1D matrices,
so it is inverted with one eigendecomposition per axis, computed once when the
solver is built.
"""

from typing import Callable, Optional, Sequence

import jax
import jax.numpy as jnp
from jax_cfd.base import fast_diagonalization

from viscous_ib.base import array_utils
from viscous_ib.base import boundaries
from viscous_ib.base import finite_differences as fd
from viscous_ib.base import grids

GridArray = grids.GridArray
GridVariable = grids.GridVariable
PoissonSolveFn = Callable[[GridArray], GridArray]


def _rhs_transform(
    u: GridArray,
    bc: boundaries.ConstantBoundaryConditions,
) -> grids.Array:
  """Removes the mean of `u` when the problem is singular (all Neumann)."""
  u_data = u.data
  if boundaries.is_all_neumann(bc):
    u_data = u_data - jnp.mean(u_data)
  return u_data


def poisson_solver(
    grid: grids.Grid,
    bc: boundaries.ConstantBoundaryConditions,
    implementation: Optional[str] = 'matmul',
) -> PoissonSolveFn:
  """
  Builds a solver for `∇²x = rhs` on `grid` with boundary conditions `bc`.

  Args:
    grid: the grid of the right-hand side.
    bc: homogeneous boundary conditions of the unknown.
    implementation: passed through to `jax_cfd` fast diagonalization.

  Returns:
    A function mapping a cell-centered right-hand side `GridArray` to the
    solution `GridArray`.
  """
  laplacians = array_utils.laplacian_matrix_w_boundaries(grid, bc)
  dtype = jax.dtypes.canonicalize_dtype(jnp.float64)
  pinv = fast_diagonalization.pseudoinverse(
      laplacians, dtype,
      hermitian=True, circulant=False, implementation=implementation)

  def solve(rhs: GridArray) -> GridArray:
    if rhs.grid != grid:
      raise grids.InconsistentGridError(
          f'solver was built for {grid}, got right-hand side on {rhs.grid}')
    return GridArray(pinv(_rhs_transform(rhs, bc)), rhs.offset, rhs.grid)

  return solve


def disturbance_streamfunction(
    vorticity: GridVariable,
    solve: PoissonSolveFn,
) -> GridVariable:
  """Solves `∇²ψ' = -ω` and returns `ψ'` with the far-field conditions."""
  psi = solve(-vorticity.array)
  return GridVariable(psi, boundaries.far_field_boundary_conditions(2))


def uniform_flow_streamfunction(
    grid: grids.Grid,
    freestream: Sequence[float],
) -> GridArray:
  """`ψ∞ = U y - V x` for a uniform stream `(U, V)`."""
  ux, uy = freestream
  return grid.eval_on_mesh(lambda x, y: ux * y - uy * x)


def streamfunction(
    vorticity: GridVariable,
    solve: PoissonSolveFn,
    freestream: Sequence[float] = (0.0, 0.0),
) -> GridArray:
  """Full streamfunction `ψ' + ψ∞` of a vorticity field."""
  psi = disturbance_streamfunction(vorticity, solve)
  return psi.array + uniform_flow_streamfunction(vorticity.grid, freestream)


def velocity(
    vorticity: GridVariable,
    solve: PoissonSolveFn,
    freestream: Sequence[float] = (0.0, 0.0),
) -> grids.GridArrayVector:
  """Velocity `(u, v)` induced by `vorticity`, plus the uniform stream."""
  psi = disturbance_streamfunction(vorticity, solve)
  u, v = fd.velocity_from_streamfunction(psi)
  return u + freestream[0], v + freestream[1]
