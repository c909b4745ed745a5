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
"""Explicit viscous diffusion of the vorticity."""

from viscous_ib.base import finite_differences as fd
from viscous_ib.base import grids

GridArray = grids.GridArray
GridVariable = grids.GridVariable


def diffuse(c: GridVariable, nu: float) -> GridArray:
  """Returns the rate of change `ν ∇²c`."""
  return nu * fd.laplacian(c)


def stable_time_step(
    viscosity: float,
    grid: grids.Grid,
    fourier_number: float = 0.25,
) -> float:
  """
  Largest time step allowed by the diffusive limit `ν dt / dx² <= Fo`.

  Forward Euler on the five-point Laplacian needs `Fo <= 1/4` in 2D; the
  higher order Runge-Kutta schemes tolerate slightly more.
  """
  if viscosity == 0:
    return float('inf')
  dx = min(grid.step)
  return fourier_number * dx**2 / viscosity
