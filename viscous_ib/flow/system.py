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
Assembly of a viscous flow problem into a jit-compiled time stepper.

`viscousflow_system` gathers everything that stays fixed during a simulation:

1.  **Discretization**: the grid, the time step (the smaller of the diffusive
    and convective limits) and the fast-diagonalization Poisson solver for the
    streamfunction.
2.  **Bodies**: the surface points, their weights, the prescribed motions and
    the functions giving the surface velocity to enforce.
3.  **Forcing**: the applied forcing models.

From these it builds the `VorticityODE` and the Runge-Kutta step function,
compiled once with `jax.jit`.
"""

import logging
import math
from typing import Any, Callable, Mapping, Optional, Sequence, Tuple, Union

import jax
import jax.numpy as jnp
import numpy as np

from viscous_ib import config
from viscous_ib.base import advection
from viscous_ib.base import boundaries
from viscous_ib.base import diffusion
from viscous_ib.base import equations
from viscous_ib.base import grids
from viscous_ib.base import poisson
from viscous_ib.base import time_stepping
from viscous_ib.bodies import shapes
from viscous_ib.bodies import surface
from viscous_ib.forcing import models

logger = logging.getLogger(__name__)

BC_KEYS = ("exterior", "interior")
# `(t, cache, phys_params, motions) -> (vx, vy)`
SurfaceVelocityFn = Callable[[Any, surface.SurfaceCache, config.PhysParams, Any],
                             Tuple[jnp.ndarray, jnp.ndarray]]

# Times scanned by `maxlistvelocity` when none are given.
DEFAULT_VELOCITY_TIMES = np.linspace(0.0, 10.0, 1001)


def setup_grid(
    xlim: Tuple[float, float],
    ylim: Tuple[float, float],
    params: Union[Mapping[str, Any], config.PhysParams],
) -> grids.Grid:
  """
  Builds a cell-centred grid covering `xlim` x `ylim`.

  The cell size is `Δx = grid Re / Re`. Each axis gets `ceil(extent / Δx)`
  cells and its upper limit is moved out so the cells are exactly `Δx` wide.
  """
  params = config.PhysParams.from_dict(params)
  dx = params.cell_size
  shape = []
  domain = []
  for lower, upper in (xlim, ylim):
    if not upper > lower:
      raise ValueError(f"invalid limits ({lower}, {upper})")
    n = int(math.ceil((upper - lower) / dx - 1e-9))
    shape.append(n)
    domain.append((float(lower), float(lower) + n * dx))
  return grids.Grid(tuple(shape), domain=tuple(domain))


def surface_point_spacing(
    grid: grids.Grid,
    params: Union[Mapping[str, Any], config.PhysParams],
) -> float:
  """Spacing of body surface points, `ds/dx` times the cell size."""
  params = config.PhysParams.from_dict(params)
  return params.ds_dx * grid.step[0]


def _max_surface_speed(cache, motions, times):
  """`(Umax, point index, time, body index)` of the fastest surface point."""
  if not cache.num_bodies:
    raise ValueError("there are no bodies")
  times = jnp.asarray(times, dtype=jnp.result_type(float))
  u, v = jax.vmap(lambda t: surface.surface_velocity(cache, motions, t))(times)
  speed = np.asarray(jnp.hypot(u, v))
  it, k = np.unravel_index(int(np.argmax(speed)), speed.shape)
  for body_index, (start, stop) in enumerate(cache.segments):
    if start <= k < stop:
      return float(speed[it, k]), int(k - start), float(times[it]), body_index
  raise AssertionError("point index outside every body")


class ViscousFlowSystem:
  """
  A fully assembled viscous flow problem.

  Attributes:
    grid: the grid.
    phys_params: the parsed `PhysParams`.
    cache: the `SurfaceCache` of the bodies.
    motions: one `RigidBodyMotion` or `None` per body.
    timestep: the time step `Δt`.
    freestream: the uniform stream `(U, V)`.
    psi_solve: solver of `∇²ψ' = rhs` with `ψ' = 0` on the domain edge.
    step_fn: jit-compiled `FlowState -> FlowState`.
  """

  def __init__(self, grid, cache, phys_params, motions, bc, forcing,
               psi_solve=None):
    self.grid = grid
    self.cache = cache
    self.phys_params = phys_params
    self.motions = surface.motion_list(motions, cache.num_bodies)
    self.bc = _check_bc(bc)
    self.forcing = forcing
    self.freestream = phys_params.freestream
    self.vorticity_bc = boundaries.far_field_boundary_conditions(grid.ndim)
    if psi_solve is None:
      psi_solve = poisson.poisson_solver(grid, self.vorticity_bc)
    self.psi_solve = psi_solve
    self.timestep = self._select_timestep()

    forcing_fn = models.forcing_function(forcing, grid, phys_params)
    explicit_terms = equations.vorticity_explicit_terms(
        psi_solve, phys_params.viscosity, self.freestream,
        advect=advection.get_advection_scheme(phys_params.advection_scheme),
        forcing=forcing_fn)
    markers = self.markers if cache.num_bodies else None
    correction = equations.immersed_boundary_correction(
        psi_solve, markers, cache.segments, self.timestep,
        freestream=self.freestream, iterations=phys_params.ib_iterations)
    ode = time_stepping.VorticityODE(explicit_terms, correction)
    tableau = time_stepping.get_tableau(phys_params.time_marching)
    self.step_fn = jax.jit(
        time_stepping.vorticity_rk(tableau, ode, self.timestep))

    logger.info(
        "Built system: grid %s, dx=%.4g, dt=%.4g, %d bod%s (%d points), "
        "%s time marching", grid.shape, grid.step[0], self.timestep,
        cache.num_bodies, "y" if cache.num_bodies == 1 else "ies", len(cache),
        phys_params.time_marching)

  def __repr__(self):
    return (f"ViscousFlowSystem(grid={self.grid.shape}, "
            f"bodies={self.cache.num_bodies}, dt={self.timestep:.4g})")

  @property
  def bodies(self) -> shapes.BodyList:
    return self.cache.bodies

  @property
  def num_bodies(self) -> int:
    return self.cache.num_bodies

  @property
  def is_static(self) -> bool:
    return surface.is_static(self.motions)

  def _select_timestep(self) -> float:
    params = self.phys_params
    dt_diffusion = diffusion.stable_time_step(
        params.viscosity, self.grid, params.fourier)
    speed = max(params.freestream_speed, 1.0)
    if not self.is_static:
      speed = max(speed, _max_surface_speed(
          self.cache, self.motions, DEFAULT_VELOCITY_TIMES)[0])
    dt_convection = advection.stable_time_step(speed, params.cfl, self.grid)
    dt = min(dt_diffusion, dt_convection)
    if params.time_marching == "forward_euler":
      # One stage: advection and diffusion share a single stability budget.
      dt = min(dt, advection.upwind_euler_time_step(
          speed, params.viscosity, params.cfl, self.grid))
    return float(dt)

  def surface_target(self, t):
    """Velocity `(vx, vy)` enforced at the surface points at time `t`."""
    if self.bc is None:
      return surface.surface_velocity(self.cache, self.motions, t)
    sides = [self.bc[key](t, self.cache, self.phys_params, self.motions)
             for key in BC_KEYS]
    vx = 0.5 * (jnp.asarray(sides[0][0]) + jnp.asarray(sides[1][0]))
    vy = 0.5 * (jnp.asarray(sides[0][1]) + jnp.asarray(sides[1][1]))
    return vx, vy

  def markers(self, t):
    """`(xp, yp, target_u, target_v, weights)` of the markers at time `t`."""
    xp, yp = surface.surface_points(self.cache, self.motions, t)
    target_u, target_v = self.surface_target(t)
    return xp, yp, target_u, target_v, self.cache.weights

  def with_forcing(self, forcing) -> "ViscousFlowSystem":
    """The same problem with different forcing, reusing the Poisson solver."""
    return ViscousFlowSystem(self.grid, self.cache, self.phys_params,
                             self.motions, self.bc, forcing,
                             psi_solve=self.psi_solve)


def _check_bc(bc: Optional[Mapping[str, SurfaceVelocityFn]]):
  if bc is None:
    return None
  if set(bc) != set(BC_KEYS):
    raise ValueError(
        f"boundary condition functions must be given for exactly {BC_KEYS}, "
        f"got {sorted(bc)}")
  for key in BC_KEYS:
    if not callable(bc[key]):
      raise TypeError(f"boundary condition {key!r} is not callable")
  return dict(bc)


def viscousflow_system(
    grid: grids.Grid,
    bodies: Union[None, shapes.Body, Sequence[shapes.Body]] = None,
    *,
    phys_params: Union[Mapping[str, Any], config.PhysParams],
    motions=None,
    bc: Optional[Mapping[str, SurfaceVelocityFn]] = None,
    forcing: Optional[Mapping[str, Any]] = None,
) -> ViscousFlowSystem:
  """
  Builds the system for flow on `grid` about `bodies`.

  Args:
    grid: the grid, usually from `setup_grid`.
    bodies: a body, a list of bodies, or `None` for unbounded flow.
    phys_params: the parameter dictionary (or parsed `PhysParams`).
    motions: a `RigidBodyMotion` per body (`None` entries are stationary).
      Without motions every body is stationary where it was placed.
    bc: optional `{"exterior": f, "interior": f}` surface velocity functions
      `f(t, cache, phys_params, motions) -> (vx, vy)`; the velocity enforced
      at the surface is the mean of the two sides. Defaults to the rigid body
      velocity from `motions`.
    forcing: optional `{"forcing models": model_or_models}`.

  Returns:
    The assembled `ViscousFlowSystem`.
  """
  phys_params = config.PhysParams.from_dict(phys_params)
  cache = surface.SurfaceCache(bodies, grid)
  return ViscousFlowSystem(grid, cache, phys_params, motions, bc, forcing)


def maxlistvelocity(sys: ViscousFlowSystem, times: Optional[Sequence[float]] = None):
  """
  Finds the largest surface point speed of the prescribed motions.

  Args:
    sys: the system.
    times: the times to scan; by default 1001 points in `[0, 10]`.

  Returns:
    `(Umax, point index, time, body index)`, indices 0-based.
  """
  if times is None:
    times = DEFAULT_VELOCITY_TIMES
  return _max_surface_speed(sys.cache, sys.motions, times)
