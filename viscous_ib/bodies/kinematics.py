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
Prescribed rigid body motions.

The kinematics of a body are described by the trajectory of its centroid and
its orientation as functions of time. The motion is an input of the
simulation; the flow responds to it, and the force on the body is an output.

A `Kinematics` object returns `(xc, yc, angle)` at time `t`. The rates
`(uc, vc, Ω)` are not written by hand: they are obtained by differentiating
the trajectory with `jax.jacfwd`, so any trajectory written with `jax.numpy`
(or with `viscous_ib.profiles`) gets consistent velocities for free.

`RigidBodyMotion` wraps a `Kinematics` and provides what the immersed boundary
needs: the surface points of a body at time `t` and their velocity,

    U(X) = U_c + Ω × (X - X_c).
"""

from typing import Sequence, Tuple

import jax
import jax.numpy as jnp

from viscous_ib import profiles
from viscous_ib.bodies import shapes


class Kinematics:
    """Base class of a rigid body trajectory."""

    def __call__(self, t) -> jnp.ndarray:
        """Returns the array `[xc, yc, angle]` at time `t`."""
        raise NotImplementedError

    def rates(self, t) -> jnp.ndarray:
        """Returns the array `[uc, vc, Ω]` at time `t`."""
        t = jnp.asarray(t, dtype=jnp.result_type(float))
        return jax.jacfwd(self.__call__)(t)


class Constant(Kinematics):
    """
    Uniform translation and rotation.

    Args:
      velocity: `(uc, vc)` of the centroid.
      angular_velocity: `Ω`, counterclockwise positive.
      center: centroid position at `t = 0`.
      angle: orientation at `t = 0`.
    """

    def __init__(self, velocity: Sequence[float] = (0.0, 0.0),
                 angular_velocity: float = 0.0,
                 center: Sequence[float] = (0.0, 0.0), angle: float = 0.0):
        self.velocity = tuple(velocity)
        self.angular_velocity = angular_velocity
        self.center = tuple(center)
        self.angle = angle

    def __call__(self, t):
        return jnp.stack([
            self.center[0] + self.velocity[0] * t,
            self.center[1] + self.velocity[1] * t,
            self.angle + self.angular_velocity * t,
        ])


class Oscillation(Kinematics):
    """
    Sinusoidal translation and rotation about a mean placement.

    `xc = cx + Ax sin(ω t + ϕx)`, `yc = cy + Ay sin(ω t + ϕy)` and
    `angle = α + Aα sin(ω t + ϕα)`.
    """

    def __init__(self, omega: float, amplitude: Sequence[float] = (0.0, 0.0),
                 phase: Sequence[float] = (0.0, 0.0),
                 angular_amplitude: float = 0.0, angular_phase: float = 0.0,
                 center: Sequence[float] = (0.0, 0.0), angle: float = 0.0):
        self.omega = omega
        self.amplitude = tuple(amplitude)
        self.phase = tuple(phase)
        self.angular_amplitude = angular_amplitude
        self.angular_phase = angular_phase
        self.center = tuple(center)
        self.angle = angle

    def __call__(self, t):
        wt = self.omega * t
        return jnp.stack([
            self.center[0] + self.amplitude[0] * jnp.sin(wt + self.phase[0]),
            self.center[1] + self.amplitude[1] * jnp.sin(wt + self.phase[1]),
            self.angle + self.angular_amplitude * jnp.sin(wt + self.angular_phase),
        ])


class PitchHeave(Kinematics):
    """
    Pitching and heaving of a unit-chord body such as a flat plate.

    The plate translates at speed `U₀` in the -x direction, heaves as
    `h(t) = A sin(2K t - ϕh)` and pitches about a pivot with angle of attack
    `α(t) = α₀ + Δα sin(2K t - ϕp)`.

    The pivot lies on the chord, a distance `a` from the centroid towards the
    leading edge (body-frame x = -1/2), so `a = 0.5` pitches about the leading
    edge and `a = 0` about the mid-chord. A positive angle of attack raises the
    leading edge, i.e. the body rotates by `-α`.

    Args:
      U0: translation speed.
      a: pivot location, in chords from the centroid.
      K: reduced frequency `π f c / U`; the angular frequency is `2K`.
      phi_p: phase lag of pitch.
      alpha0: mean angle of attack.
      delta_alpha: pitch amplitude.
      A: heave amplitude, in chords.
      phi_h: phase lag of heave.
    """

    def __init__(self, U0, a, K, phi_p, alpha0, delta_alpha, A, phi_h):
        if K <= 0:
            raise ValueError(f"reduced frequency must be positive, got {K}")
        self.U0 = U0
        self.a = a
        self.K = K
        omega = 2 * K
        self.alpha = alpha0 + delta_alpha * (
            profiles.Sinusoid(omega) >> (phi_p / omega))
        self.heave = A * (profiles.Sinusoid(omega) >> (phi_h / omega))

    def __call__(self, t):
        theta = -self.alpha(t)
        pivot_x = -self.U0 * t
        pivot_y = self.heave(t)
        # The pivot sits at body-frame x = -a.
        return jnp.stack([
            pivot_x + self.a * jnp.cos(theta),
            pivot_y + self.a * jnp.sin(theta),
            theta,
        ])


class RigidBodyMotion:
    """
    The motion of one rigid body, driven by a `Kinematics`.
    """

    def __init__(self, kinematics: Kinematics):
        if not isinstance(kinematics, Kinematics):
            raise TypeError(
                f"expected Kinematics, got {type(kinematics).__name__}")
        self.kinematics = kinematics

    def __repr__(self):
        return f"RigidBodyMotion({type(self.kinematics).__name__})"

    def __call__(self, t) -> Tuple[jnp.ndarray, jnp.ndarray]:
        """Returns `([xc, yc, angle], [uc, vc, Ω])` at time `t`."""
        return self.kinematics(t), self.kinematics.rates(t)

    def transform(self, t) -> shapes.RigidTransform:
        """The placement of the body at time `t`."""
        xc, yc, angle = self.kinematics(t)
        return shapes.RigidTransform((float(xc), float(yc)), float(angle))

    def surface_points(self, body: shapes.Body, t):
        """Points of `body` at time `t`; usable inside jit-compiled code."""
        xc, yc, angle = self.kinematics(t)
        return body.placed((xc, yc), angle)

    def surface_velocity(self, body: shapes.Body, t):
        """Velocity `U_c + Ω × (X - X_c)` of the points of `body` at time `t`."""
        (xc, yc, angle), (uc, vc, omega) = self(t)
        x, y = body.placed((xc, yc), angle)
        return uc - omega * (y - yc), vc + omega * (x - xc)
