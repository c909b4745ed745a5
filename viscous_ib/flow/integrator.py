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
Time integration of a `ViscousFlowSystem` and the saved solution history.

    u0 = init_sol(sys)
    integrator = init(u0, (0.0, 20.0), sys)
    step(integrator, 1.0)
    sol = integrator.sol

`init_sol` builds the initial `FlowState`; `init` wraps it in an `Integrator`,
which advances the state with the system's jit-compiled step function and
records the vorticity and body forces in a `SolutionHistory`.
"""

import dataclasses
import logging
import time
from typing import Callable, List, Optional, Tuple

import jax.numpy as jnp
import numpy as np

from viscous_ib.base import grids
from viscous_ib.base import state as state_lib
from viscous_ib.flow import system as system_lib

logger = logging.getLogger(__name__)

FlowState = state_lib.FlowState

# Relative slack when comparing times built from sums of time steps.
_TIME_TOLERANCE = 1e-8


def _float_dtype():
  return jnp.result_type(float)


def init_sol(
    sys: system_lib.ViscousFlowSystem,
    vorticity_fn: Optional[Callable[..., jnp.ndarray]] = None,
) -> FlowState:
  """
  The initial state of `sys`: zero vorticity, or `vorticity_fn(x, y)`
  evaluated at the cell centres.
  """
  grid = sys.grid
  if vorticity_fn is None:
    w = grids.GridArray(jnp.zeros(grid.shape, _float_dtype()),
                        grid.cell_center, grid)
  else:
    w = grid.eval_on_mesh(vorticity_fn)
    w = grids.GridArray(jnp.asarray(w.data, _float_dtype()), w.offset, grid)
  return FlowState(
      vorticity=grids.GridVariable(w, sys.vorticity_bc),
      time=jnp.asarray(0.0, _float_dtype()),
      body_forces=jnp.zeros((sys.num_bodies, 2), _float_dtype()),
      step_count=jnp.asarray(0),
      start_time=jnp.asarray(0.0, _float_dtype()),
  )


class SolutionHistory:
  """
  Saved states of an integration.

  Attributes:
    t: the saved times, a numpy array.
  """

  def __init__(self, grid: grids.Grid):
    self.grid = grid
    self._t: List[float] = []
    self._vorticity: List[jnp.ndarray] = []
    self._forces: List[jnp.ndarray] = []

  def __len__(self):
    return len(self._t)

  def __repr__(self):
    if not self._t:
      return "SolutionHistory(empty)"
    return (f"SolutionHistory({len(self)} states, "
            f"t in [{self._t[0]:.4g}, {self._t[-1]:.4g}])")

  @property
  def t(self) -> np.ndarray:
    return np.asarray(self._t)

  @property
  def forces(self) -> np.ndarray:
    """Body forces of every saved state, shape `(n_saved, n_bodies, 2)`."""
    return np.stack([np.asarray(f) for f in self._forces])

  def append(self, t: float, state: FlowState):
    self._t.append(float(t))
    self._vorticity.append(state.vorticity.data)
    self._forces.append(state.body_forces)

  def _bracket(self, t: float) -> Tuple[int, int, float]:
    """Indices of the saved states around `t` and the weight of the later."""
    times = self._t
    if not times:
      raise ValueError("the solution history is empty")
    slack = _TIME_TOLERANCE * max(1.0, abs(times[-1]))
    if t < times[0] - slack or t > times[-1] + slack:
      raise ValueError(
          f"t={t} is outside the saved history [{times[0]}, {times[-1]}]")
    hi = int(np.searchsorted(times, t))
    if hi == 0:
      return 0, 0, 0.0
    if hi >= len(times):
      return len(times) - 1, len(times) - 1, 0.0
    lo = hi - 1
    weight = (t - times[lo]) / (times[hi] - times[lo])
    return lo, hi, weight

  def check_time(self, t: float):
    """Raises `ValueError` if `t` is outside the saved history."""
    self._bracket(t)

  def vorticity_at(self, t: float) -> grids.GridArray:
    """The vorticity at `t`, linearly interpolated between saved states."""
    lo, hi, weight = self._bracket(t)
    data = (1 - weight) * self._vorticity[lo] + weight * self._vorticity[hi]
    return grids.GridArray(data, self.grid.cell_center, self.grid)


class Integrator:
  """
  Advances a `FlowState` of a system within the time span `tspan`.

  Attributes:
    system: the `ViscousFlowSystem`.
    tspan: `(t0, t_final)`; the integrator refuses to step past `t_final`.
    state: the current `FlowState`.
    sol: the `SolutionHistory`, saved every `save_every` steps and at the
      end of every call to `step`.
  """

  def __init__(self, u0: FlowState, tspan: Tuple[float, float],
               sys: system_lib.ViscousFlowSystem, save_every: int = 1):
    t0, t1 = (float(s) for s in tspan)
    if not t1 > t0:
      raise ValueError(f"invalid time span {tspan}")
    if save_every < 1:
      raise ValueError(f"save_every must be at least 1, got {save_every}")
    if u0.vorticity.grid != sys.grid:
      raise grids.InconsistentGridError(
          "initial state and system are on different grids")
    self.system = sys
    self.tspan = (t0, t1)
    self.save_every = int(save_every)
    start = jnp.asarray(t0, _float_dtype())
    self.state = dataclasses.replace(
        u0, time=start, step_count=jnp.asarray(0), start_time=start)
    self._steps = 0
    self.sol = SolutionHistory(sys.grid)
    self.sol.append(t0, self.state)

  def __repr__(self):
    return f"Integrator(t={self.t:.4g}, tspan={self.tspan}, {self.system!r})"

  @property
  def t(self) -> float:
    """The current time, accumulated in double precision."""
    return self.tspan[0] + self._steps * self.system.timestep

  def step(self, duration: float) -> "Integrator":
    """
    Advances by `duration`, rounded to a whole number of time steps (at
    least one).
    """
    dt = self.system.timestep
    num_steps = max(1, int(round(duration / dt)))
    t_end = self.t + num_steps * dt
    if t_end > self.tspan[1] + _TIME_TOLERANCE * max(1.0, abs(self.tspan[1])):
      raise ValueError(
          f"stepping to t={t_end:.6g} would leave the time span {self.tspan}")

    logger.info("Advancing %d steps of dt=%.4g from t=%.4g",
                num_steps, dt, self.t)
    start = time.perf_counter()
    for _ in range(num_steps):
      self.state = self.system.step_fn(self.state)
      self._steps += 1
      if self._steps % self.save_every == 0:
        self.sol.append(self.t, self.state)
      logger.debug("step %d, t=%.6g", self._steps, self.t)
    if self.sol.t[-1] != self.t:
      self.sol.append(self.t, self.state)
    self.state.vorticity.data.block_until_ready()
    elapsed = time.perf_counter() - start

    if not bool(jnp.all(jnp.isfinite(self.state.vorticity.data))):
      logger.warning("Non-finite vorticity at t=%.4g", self.t)
    logger.info("Reached t=%.4g in %.2f s", self.t, elapsed)
    return self


def init(u0: FlowState, tspan: Tuple[float, float],
         sys: system_lib.ViscousFlowSystem, save_every: int = 1) -> Integrator:
  """Creates an `Integrator` starting from `u0` at `tspan[0]`."""
  return Integrator(u0, tspan, sys, save_every=save_every)


def step(integrator: Integrator, duration: float) -> Integrator:
  """Advances `integrator` by `duration`."""
  return integrator.step(duration)
