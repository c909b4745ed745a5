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
The simulation state carried from one time step to the next.

`FlowState` is a JAX pytree, so the whole state passes in and out of the
jit-compiled step function in one piece.
"""

import dataclasses
from typing import Any

import jax.numpy as jnp
from jax.tree_util import register_pytree_node_class

from viscous_ib.base import grids


@register_pytree_node_class
@dataclasses.dataclass
class FlowState:
  """
  Attributes:
    vorticity: the vorticity field with its (far-field) boundary conditions.
    time: the current time.
    body_forces: force of the fluid on each body during the last step, shape
      `(n_bodies, 2)`.
    step_count: number of steps taken since `start_time`.
    start_time: the time at which `step_count` was zero. The time after `n`
      steps is `start_time + n dt`, so rounding does not build up.
  """
  vorticity: grids.GridVariable
  time: Any
  body_forces: jnp.ndarray
  step_count: Any
  start_time: Any = 0.0

  def tree_flatten(self):
    children = (self.vorticity, self.time, self.body_forces, self.step_count,
                self.start_time)
    return children, None

  @classmethod
  def tree_unflatten(cls, aux_data, children):
    return cls(*children)
