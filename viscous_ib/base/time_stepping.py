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
Explicit Runge-Kutta time stepping for the vorticity equation.

The architecture separates the physics from the integration scheme:

1.  **ODE definition** (`VorticityODE`): a container for the explicit
    right-hand side `dω/dt = N(ω, t)` (advection, diffusion, applied forcing)
    and for the immersed boundary correction applied once per step.
2.  **Stepper factory** (`vorticity_rk`): combines a `ButcherTableau` with a
    `VorticityODE` and a time step into a concrete `step_fn(state) -> state`.

A step runs the Runge-Kutta stages on the explicit terms to get a provisional
vorticity `ω*` at `t + dt`, then lets the immersed boundary correct `ω*` so the
flow satisfies the surface velocity of every body at `t + dt`. The correction
also yields the force on each body, which is stored in the returned state.
"""

import dataclasses
from typing import Callable, Sequence, Tuple, TypeVar

import jax
import jax.numpy as jnp
import tree_math

from viscous_ib.base import grids
from viscous_ib.base import state as state_lib

PyTreeState = TypeVar('PyTreeState')
TimeStepFn = Callable[[PyTreeState], PyTreeState]
ExplicitTermsFn = Callable[[grids.GridVariable, float], grids.GridArray]
CorrectionFn = Callable[[grids.GridVariable, float],
                        Tuple[grids.GridVariable, jnp.ndarray]]


class VorticityODE:
  """
  The spatially discretized vorticity equation with immersed bodies.

  Attributes:
    explicit_terms: `(ω, t) -> dω/dt` from advection, diffusion and applied
      forcing.
    immersed_boundary: `(ω*, t) -> (ω, body_forces)`, the correction that
      enforces the surface velocity of the bodies.
  """

  def __init__(self, explicit_terms: ExplicitTermsFn,
               immersed_boundary: CorrectionFn):
    self.explicit_terms = explicit_terms
    self.immersed_boundary = immersed_boundary


@dataclasses.dataclass
class ButcherTableau:
  """
  Coefficients of an explicit Runge-Kutta scheme.

  See https://en.wikipedia.org/wiki/Runge%E2%80%93Kutta_methods

  Attributes:
    a: lower triangular stage weights, `len(b) - 1` rows.
    b: final weights.
    c: stage times as fractions of the step.
  """
  a: Sequence[Sequence[float]]
  b: Sequence[float]
  c: Sequence[float]

  def __post_init__(self):
    if len(self.a) + 1 != len(self.b) or len(self.b) != len(self.c):
      raise ValueError('inconsistent Butcher tableau')


FORWARD_EULER = ButcherTableau(a=[], b=[1], c=[0])
HEUN_RK2 = ButcherTableau(a=[[1]], b=[1/2, 1/2], c=[0, 1])
KUTTA_RK3 = ButcherTableau(a=[[1/2], [-1, 2]], b=[1/6, 2/3, 1/6],
                           c=[0, 1/2, 1])
CLASSIC_RK4 = ButcherTableau(a=[[1/2], [0, 1/2], [0, 0, 1]],
                             b=[1/6, 1/3, 1/3, 1/6], c=[0, 1/2, 1/2, 1])

_TABLEAUS = {
    'forward_euler': FORWARD_EULER,
    'rk2': HEUN_RK2,
    'rk3': KUTTA_RK3,
    'rk4': CLASSIC_RK4,
}


def get_tableau(name: str) -> ButcherTableau:
  try:
    return _TABLEAUS[name]
  except KeyError:
    raise ValueError(f'unknown time marching scheme {name!r}; '
                     f'expected one of {sorted(_TABLEAUS)}') from None


def vorticity_rk(
    tableau: ButcherTableau,
    equation: VorticityODE,
    time_step: float,
) -> TimeStepFn:
  """
  Creates a Runge-Kutta stepper for the vorticity equation.

  Args:
    tableau: the Runge-Kutta scheme.
    equation: the explicit terms and immersed boundary correction.
    time_step: the step size `dt`.

  Returns:
    A function taking a `FlowState` and returning the state one step later.
  """
  # pylint: disable=invalid-name
  dt = time_step
  F = equation.explicit_terms
  a = tableau.a
  b = tableau.b
  c = tableau.c
  num_steps = len(b)

  def step_fn(state: state_lib.FlowState) -> state_lib.FlowState:
    w0 = state.vorticity
    n1 = state.step_count + 1
    t0 = state.start_time + state.step_count * dt

    def to_variable(vector):
      return grids.GridVariable(
          grids.GridArray(vector.tree, w0.offset, w0.grid), w0.bc)

    w0_raw = tree_math.Vector(w0.data)
    k = [None] * num_steps
    k[0] = tree_math.Vector(F(w0, t0).data)
    for i in range(1, num_steps):
      w_star = w0_raw + dt * sum(a[i-1][j] * k[j] for j in range(i) if a[i-1][j])
      k[i] = tree_math.Vector(F(to_variable(w_star), t0 + c[i] * dt).data)
    w_star = w0_raw + dt * sum(b[j] * k[j] for j in range(num_steps) if b[j])

    t1 = state.start_time + n1 * dt
    w1, body_forces = equation.immersed_boundary(to_variable(w_star), t1)
    return state_lib.FlowState(
        vorticity=w1,
        time=t1,
        body_forces=body_forces,
        step_count=n1,
        start_time=state.start_time,
    )

  return jax.named_call(step_fn, name='vorticity_rk')
