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
`viscous_ib` simulates two-dimensional viscous incompressible flow about rigid
bodies, written in JAX.

The flow is solved in vorticity-streamfunction form on a uniform Cartesian
grid. Bodies are immersed in the grid as Lagrangian surface points and the
no-slip condition on them is enforced by direct forcing. Bodies may be
stationary or move with prescribed kinematics, and the flow may be driven by a
uniform stream and by applied forcing.

The package is organized into subpackages:
- `base`: grids, finite differences, the Poisson solver, the terms of the
  vorticity equation, the immersed boundary coupling and time stepping.
- `bodies`: surface geometry, placement and prescribed motions.
- `forcing`: spatial fields and forcing models.
- `flow`: system assembly, time integration and queries of the solution.

The names most scripts need are available at the top level.
"""

import viscous_ib.base

import viscous_ib.bodies

import viscous_ib.forcing

import viscous_ib.flow

from viscous_ib.config import ParameterError, PhysParams
from viscous_ib.profiles import ConstantProfile, Gaussian, Profile, Sinusoid
from viscous_ib.bodies.shapes import (Body, BodyList, Circle, Ellipse, Plate,
                                      Rectangle, RigidTransform)
from viscous_ib.bodies.kinematics import (Constant, Kinematics, Oscillation,
                                          PitchHeave, RigidBodyMotion)
from viscous_ib.bodies.surface import (surface_points, surface_velocity,
                                       zeros_surface)
from viscous_ib.forcing.fields import EmptySpatialField, SpatialGaussian
from viscous_ib.forcing.models import AreaForcingModel, PointForcingModel
from viscous_ib.flow.system import (maxlistvelocity, setup_grid,
                                    surface_point_spacing, viscousflow_system)
from viscous_ib.flow.integrator import init, init_sol, step
from viscous_ib.flow.queries import (force, streamfunction, surfaces, velocity,
                                     vorticity)
