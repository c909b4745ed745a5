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
Scalar functions of time used to modulate forcing and to build kinematics.

A `Profile` is a callable `p(t)` that composes with the usual operators:

    Gaussian(0.1, 1.0) >> 0.5          # shifted in time: p(t - 0.5)
    (Gaussian(0.1, 1.0) >> 0.1) + (Gaussian(0.1, 1.0) >> 1.1)
    0.2 * Sinusoid(2.0) + 1.0           # scaled and offset

Every profile is built from `jax.numpy` operations, so it can be evaluated
inside jit-compiled code and differentiated with `jax.grad`. `p.derivative()`
returns the time derivative as a new profile.
"""

import numbers

import jax
import jax.numpy as jnp


class Profile:
    """Base class of a scalar function of time."""

    def __call__(self, t):
        raise NotImplementedError

    def derivative(self) -> "Profile":
        """The time derivative `dp/dt`, computed with `jax.grad`."""
        return DerivativeProfile(self)

    def __rshift__(self, tau) -> "Profile":
        return ShiftedProfile(self, tau)

    def __lshift__(self, tau) -> "Profile":
        return ShiftedProfile(self, -tau)

    def __add__(self, other) -> "Profile":
        return AddedProfiles(self, _as_profile(other))

    __radd__ = __add__

    def __sub__(self, other) -> "Profile":
        return AddedProfiles(self, -_as_profile(other))

    def __rsub__(self, other) -> "Profile":
        return AddedProfiles(_as_profile(other), -self)

    def __mul__(self, other) -> "Profile":
        if isinstance(other, numbers.Number):
            return ScaledProfile(other, self)
        return MultipliedProfiles(self, _as_profile(other))

    __rmul__ = __mul__

    def __neg__(self) -> "Profile":
        return ScaledProfile(-1.0, self)


def _as_profile(value) -> Profile:
    if isinstance(value, Profile):
        return value
    if isinstance(value, numbers.Number):
        return ConstantProfile(value)
    raise TypeError(f"cannot combine a profile with {type(value).__name__}")


class ConstantProfile(Profile):
    """`p(t) = c`."""

    def __init__(self, c):
        self.c = c

    def __call__(self, t):
        return self.c * jnp.ones_like(jnp.asarray(t, dtype=jnp.result_type(float)))

    def __repr__(self):
        return f"ConstantProfile({self.c})"


class Gaussian(Profile):
    """
    `p(t) = A / (√π σ) exp(-t²/σ²)`.

    Normalized so that the integral over all time is `A`; choose
    `A = √π σ` for a unit peak.
    """

    def __init__(self, sigma, amplitude=1.0):
        if sigma <= 0:
            raise ValueError(f"sigma must be positive, got {sigma}")
        self.sigma = sigma
        self.amplitude = amplitude

    def __call__(self, t):
        return (self.amplitude / (jnp.sqrt(jnp.pi) * self.sigma)
                * jnp.exp(-(t / self.sigma)**2))

    def __repr__(self):
        return f"Gaussian({self.sigma}, {self.amplitude})"


class Sinusoid(Profile):
    """`p(t) = sin(ω t)`."""

    def __init__(self, omega):
        self.omega = omega

    def __call__(self, t):
        return jnp.sin(self.omega * t)

    def __repr__(self):
        return f"Sinusoid({self.omega})"


class ShiftedProfile(Profile):
    """`p(t - τ)`."""

    def __init__(self, profile: Profile, tau):
        self.profile = profile
        self.tau = tau

    def __call__(self, t):
        return self.profile(t - self.tau)

    def __repr__(self):
        return f"({self.profile!r} >> {self.tau})"


class ScaledProfile(Profile):
    """`s p(t)`."""

    def __init__(self, scale, profile: Profile):
        self.scale = scale
        self.profile = profile

    def __call__(self, t):
        return self.scale * self.profile(t)

    def __repr__(self):
        return f"{self.scale} * {self.profile!r}"


class AddedProfiles(Profile):
    """`p(t) + q(t) + ...`."""

    def __init__(self, *profiles: Profile):
        flat = []
        for p in profiles:
            flat.extend(p.profiles if isinstance(p, AddedProfiles) else [p])
        self.profiles = tuple(flat)

    def __call__(self, t):
        return sum(p(t) for p in self.profiles)

    def __repr__(self):
        return " + ".join(repr(p) for p in self.profiles)


class MultipliedProfiles(Profile):
    """`p(t) q(t)`."""

    def __init__(self, first: Profile, second: Profile):
        self.first = first
        self.second = second

    def __call__(self, t):
        return self.first(t) * self.second(t)

    def __repr__(self):
        return f"{self.first!r} * {self.second!r}"


class DerivativeProfile(Profile):
    """`dp/dt`; works for scalar `t` and, elementwise, for arrays of times."""

    def __init__(self, profile: Profile):
        self.profile = profile

    def __call__(self, t):
        t = jnp.asarray(t, dtype=jnp.result_type(float))
        grad = jax.grad(lambda s: self.profile(s))
        if t.ndim == 0:
            return grad(t)
        return jax.vmap(grad)(t.ravel()).reshape(t.shape)

    def __repr__(self):
        return f"d/dt({self.profile!r})"
