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
Builders for the terms of the 2D vorticity equation

    ∂ω/∂t + (u·∇)ω = (1/Re) ∇²ω + ∇×f_applied + ∇×f_body,

where the velocity `u` is recovered from `ω` through the streamfunction.
Each builder returns a plain function of `(ω, t)` that closes over the static
pieces of the problem (Poisson solver, viscosity, body markers), ready to be
packed into a `time_stepping.VorticityODE`.
"""

from typing import Callable, Optional, Sequence, Tuple

import jax
import jax.numpy as jnp

from viscous_ib.base import advection
from viscous_ib.base import convolution_functions
from viscous_ib.base import diffusion
from viscous_ib.base import grids
from viscous_ib.base import IBM_Force
from viscous_ib.base import poisson
from viscous_ib.base import time_stepping

GridArray = grids.GridArray
GridVariable = grids.GridVariable
ForcingFn = Callable[[float], Tuple[GridArray, GridArray]]
# `t -> (xp, yp, target_u, target_v, weights)`
MarkerFn = Callable[[float], Tuple[jnp.ndarray, ...]]


def vorticity_explicit_terms(
    solve: poisson.PoissonSolveFn,
    viscosity: float,
    freestream: Sequence[float] = (0.0, 0.0),
    advect: advection.AdvectFn = advection.advect_central,
    forcing: Optional[ForcingFn] = None,
) -> time_stepping.ExplicitTermsFn:
  """
  Returns `(ω, t) -> dω/dt` for advection, diffusion and applied forcing.

  Args:
    solve: Poisson solver for the disturbance streamfunction.
    viscosity: the kinematic viscosity, `1/Re`.
    freestream: the uniform stream `(U, V)`.
    advect: the advection scheme.
    forcing: optional `t -> (fx, fy)` applied force density.
  """

  def explicit_terms(vorticity: GridVariable, t) -> GridArray:
    v = poisson.velocity(vorticity, solve, freestream)
    rate = advect(vorticity, v) + diffusion.diffuse(vorticity, viscosity)
    if forcing is not None:
      fx, fy = forcing(t)
      rate = rate + IBM_Force.vorticity_source(fx, fy)
    return rate

  return explicit_terms


def immersed_boundary_correction(
    solve: poisson.PoissonSolveFn,
    markers: Optional[MarkerFn],
    segments: Sequence[Tuple[int, int]],
    time_step: float,
    freestream: Sequence[float] = (0.0, 0.0),
    iterations: int = 3,
    delta_fn=convolution_functions.delta_roma,
) -> time_stepping.CorrectionFn:
  """
  Returns `(ω*, t) -> (ω, body_forces)` enforcing the body surface velocity.

  Each of the `iterations` direct forcing passes recomputes the velocity from
  the vorticity corrected by the previous passes.

  With no markers (no bodies) the correction is the identity and the force
  array is empty.
  """
  if iterations < 1:
    raise ValueError(f'iterations must be at least 1, got {iterations}')
  segments = tuple(tuple(s) for s in segments)

  def no_bodies(vorticity: GridVariable, t):
    del t
    return vorticity, jnp.zeros((0, 2), dtype=vorticity.dtype)

  if markers is None or not segments:
    return no_bodies

  def correction(vorticity: GridVariable, t):
    xp, yp, target_u, target_v, weights = markers(t)
    total = None
    for _ in range(iterations):
      v = poisson.velocity(vorticity, solve, freestream)
      forcing = IBM_Force.direct_forcing(
          v, xp, yp, target_u, target_v, weights, time_step, delta_fn=delta_fn)
      source = IBM_Force.vorticity_source(forcing.fx, forcing.fy)
      vorticity = GridVariable(vorticity.array + time_step * source,
                               vorticity.bc)
      if total is None:
        total = forcing
      else:
        total = jax.tree_util.tree_map(jnp.add, total, forcing)
    return vorticity, IBM_Force.body_forces(total, weights, segments)

  return correction
