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
Fields and forces extracted from an integrator or a solution history.

Every field query accepts either an `Integrator`, giving the field at its
current time, or a `SolutionHistory` together with the system and a time,
giving the field interpolated linearly between the saved states:

    vorticity(integrator)
    vorticity(sol, sys, 1.5)
"""

from typing import Optional, Tuple

import numpy as np

from viscous_ib.base import grids
from viscous_ib.base import poisson
from viscous_ib.bodies import shapes
from viscous_ib.flow import integrator as integrator_lib
from viscous_ib.flow import system as system_lib

GridArray = grids.GridArray


def _vorticity_and_system(obj, sys, t):
  if isinstance(obj, integrator_lib.Integrator):
    if t is not None:
      raise TypeError("a time can only be given with a solution history")
    return obj.state.vorticity, obj.system
  if isinstance(obj, integrator_lib.SolutionHistory):
    if sys is None or t is None:
      raise TypeError("querying a solution history needs the system and a time")
    w = obj.vorticity_at(float(t))
    return grids.GridVariable(w, sys.vorticity_bc), sys
  raise TypeError(
      f"expected an Integrator or a SolutionHistory, got {type(obj).__name__}")


def vorticity(obj, sys: Optional[system_lib.ViscousFlowSystem] = None,
              t: Optional[float] = None) -> GridArray:
  """The vorticity field."""
  w, _ = _vorticity_and_system(obj, sys, t)
  return w.array


def streamfunction(obj, sys: Optional[system_lib.ViscousFlowSystem] = None,
                   t: Optional[float] = None) -> GridArray:
  """The full streamfunction, including the uniform stream."""
  w, sys = _vorticity_and_system(obj, sys, t)
  return poisson.streamfunction(w, sys.psi_solve, sys.freestream)


def velocity(obj, sys: Optional[system_lib.ViscousFlowSystem] = None,
             t: Optional[float] = None) -> Tuple[GridArray, GridArray]:
  """The velocity `(u, v)`, including the uniform stream."""
  w, sys = _vorticity_and_system(obj, sys, t)
  return poisson.velocity(w, sys.psi_solve, sys.freestream)


def force(sol: integrator_lib.SolutionHistory,
          sys: system_lib.ViscousFlowSystem,
          body_index: int) -> Tuple[np.ndarray, np.ndarray]:
  """
  History of the force exerted by the fluid on body `body_index` (0-based),
  as `(fx, fy)` arrays aligned with `sol.t`.

  The first entry belongs to the initial state, before any step, and is zero.
  """
  if not 0 <= body_index < sys.num_bodies:
    raise IndexError(
        f"body index {body_index} out of range for {sys.num_bodies} bodies")
  forces = sol.forces
  return forces[:, body_index, 0], forces[:, body_index, 1]


def surfaces(obj, sys: Optional[system_lib.ViscousFlowSystem] = None,
             t: Optional[float] = None) -> shapes.BodyList:
  """Copies of the bodies placed as they are at time `t`."""
  if isinstance(obj, integrator_lib.Integrator):
    sys, t = obj.system, obj.t
  elif isinstance(obj, integrator_lib.SolutionHistory):
    if sys is None or t is None:
      raise TypeError("querying a solution history needs the system and a time")
    obj.check_time(float(t))
  else:
    raise TypeError(
        f"expected an Integrator or a SolutionHistory, got {type(obj).__name__}")
  placed = sys.bodies.copy()
  for body, motion in zip(placed, sys.motions):
    if motion is not None:
      motion.transform(t)(body)
  return placed
