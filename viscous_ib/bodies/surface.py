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
The collected surface points of all bodies, as seen by the immersed boundary.

`SurfaceCache` concatenates the points of a `BodyList` into single arrays and
remembers which range belongs to which body. Together with the motions (one
`RigidBodyMotion`, or `None` for a stationary body, per body) it yields the
marker positions and prescribed velocities at any time. These are the
functions user boundary-condition functions are written with:

    def exterior(t, cache, phys_params, motions):
        return surface_velocity(cache, motions, t)
"""

from typing import Optional, Sequence, Tuple, Union

import jax.numpy as jnp
import numpy as np

from viscous_ib.base import grids
from viscous_ib.bodies import kinematics
from viscous_ib.bodies import shapes

MotionSpec = Union[None, kinematics.RigidBodyMotion,
                   Sequence[Optional[kinematics.RigidBodyMotion]]]


class SurfaceCache:
    """
    Static description of the immersed surface.

    Attributes:
      bodies: the bodies, as placed when the cache was built.
      segments: `(start, stop)` range of the points of each body.
      ds: arc-length weight of every point.
      weights: marker weights `ds h` used when spreading forces.
      grid: the grid the markers interact with.
    """

    def __init__(self, bodies: Union[shapes.Body, shapes.BodyList, None],
                 grid: grids.Grid):
        if bodies is None:
            bodies = shapes.BodyList()
        elif isinstance(bodies, shapes.Body):
            bodies = shapes.BodyList([bodies])
        elif not isinstance(bodies, shapes.BodyList):
            bodies = shapes.BodyList(bodies)
        self.bodies = bodies
        self.grid = grid
        self.segments = bodies.segments
        if bodies:
            ds = np.concatenate([b.ds for b in bodies])
        else:
            ds = np.zeros(0)
        self.ds = jnp.asarray(ds)
        self.weights = self.ds * grid.step[0]

    def __len__(self):
        return sum(len(b) for b in self.bodies)

    @property
    def num_bodies(self) -> int:
        return len(self.bodies)


def motion_list(motions: MotionSpec, num_bodies: int):
    """Normalizes `motions` to one entry (motion or `None`) per body."""
    if motions is None:
        return [None] * num_bodies
    if isinstance(motions, kinematics.RigidBodyMotion):
        motions = [motions]
    motions = list(motions)
    if len(motions) != num_bodies:
        raise ValueError(
            f"got {len(motions)} motions for {num_bodies} bodies")
    for m in motions:
        if m is not None and not isinstance(m, kinematics.RigidBodyMotion):
            raise TypeError(f"expected RigidBodyMotion, got {type(m).__name__}")
    return motions


def is_static(motions: MotionSpec) -> bool:
    """Whether no body moves."""
    if motions is None:
        return True
    if isinstance(motions, kinematics.RigidBodyMotion):
        return False
    return all(m is None for m in motions)


def zeros_surface(cache: SurfaceCache) -> Tuple[jnp.ndarray, jnp.ndarray]:
    """A zero value `(vx, vy)` at every surface point."""
    n = len(cache)
    return jnp.zeros(n), jnp.zeros(n)


def surface_points(cache: SurfaceCache, motions: MotionSpec, t):
    """Marker positions `(xp, yp)` of all bodies at time `t`."""
    if not cache.num_bodies:
        return jnp.zeros(0), jnp.zeros(0)
    xs, ys = [], []
    for body, motion in zip(cache.bodies, motion_list(motions, cache.num_bodies)):
        if motion is None:
            x, y = jnp.asarray(body.x), jnp.asarray(body.y)
        else:
            x, y = motion.surface_points(body, t)
        xs.append(x)
        ys.append(y)
    return jnp.concatenate(xs), jnp.concatenate(ys)


def surface_velocity(cache: SurfaceCache, motions: MotionSpec, t):
    """Rigid-body velocity `(vx, vy)` of all surface points at time `t`."""
    if not cache.num_bodies:
        return zeros_surface(cache)
    us, vs = [], []
    for body, motion in zip(cache.bodies, motion_list(motions, cache.num_bodies)):
        if motion is None:
            u, v = jnp.zeros(len(body)), jnp.zeros(len(body))
        else:
            u, v = motion.surface_velocity(body, t)
        us.append(u)
        vs.append(v)
    return jnp.concatenate(us), jnp.concatenate(vs)
