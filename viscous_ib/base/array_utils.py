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
Static 1D operator matrices used by the fast diagonalization Poisson solver.

These are built once with NumPy/SciPy when a system is assembled; they are
never traced by JAX.
"""

from typing import List

import numpy as np
import scipy.linalg

from viscous_ib.base import boundaries
from viscous_ib.base import grids


def laplacian_matrix(size: int, step: float) -> np.ndarray:
  """1D `[1, -2, 1] / step**2` Laplacian with periodic wrap-around."""
  column = np.zeros(size)
  column[0] = -2 / step**2
  column[1] = column[-1] = 1 / step**2
  return scipy.linalg.circulant(column)


def _laplacian_matrix_nonperiodic(size: int, step: float) -> np.ndarray:
  column = np.zeros(size)
  column[0] = -2 / step**2
  if size > 1:
    column[1] = 1 / step**2
  return scipy.linalg.toeplitz(column)


def laplacian_matrix_neumann(size: int, step: float) -> np.ndarray:
  """
  1D Laplacian for cell-centered data with homogeneous Neumann ends.

  The ghost value equals the boundary-adjacent value, so the corner diagonal
  entries become `-1 / step**2`.
  """
  matrix = _laplacian_matrix_nonperiodic(size, step)
  matrix[0, 0] = matrix[-1, -1] = -1 / step**2
  return matrix


def laplacian_matrix_dirichlet(size: int, step: float) -> np.ndarray:
  """
  1D Laplacian for cell-centered data with homogeneous Dirichlet ends.

  The boundary sits half a cell outside the end points and the ghost value is
  `-u`, so the corner diagonal entries become `-3 / step**2`.
  """
  matrix = _laplacian_matrix_nonperiodic(size, step)
  matrix[0, 0] = matrix[-1, -1] = -3 / step**2
  return matrix


def laplacian_matrix_w_boundaries(
    grid: grids.Grid,
    bc: boundaries.ConstantBoundaryConditions,
) -> List[np.ndarray]:
  """Returns one 1D Laplacian matrix per axis, matching `bc` on that axis."""
  laplacians = []
  for axis in range(grid.ndim):
    size, step = grid.shape[axis], grid.step[axis]
    lower, upper = bc.types[axis]
    if lower != upper:
      raise NotImplementedError(
          f'mixed boundary types on axis {axis} are not supported: '
          f'{bc.types[axis]}')
    if lower == boundaries.BCType.PERIODIC:
      laplacians.append(laplacian_matrix(size, step))
    elif lower == boundaries.BCType.NEUMANN:
      laplacians.append(laplacian_matrix_neumann(size, step))
    else:
      laplacians.append(laplacian_matrix_dirichlet(size, step))
  return laplacians
