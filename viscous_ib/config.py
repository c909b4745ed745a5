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
Problem parameters.

Simulations are configured with a plain dictionary, as in

    my_params = {"Re": 200, "freestream speed": 1.0, "grid Re": 4.0}

`PhysParams.from_dict` validates that dictionary once, fills in defaults and
returns a frozen `PhysParams`. Everything downstream (grid setup, time step
selection, forcing model functions) reads the parsed object.
"""

import dataclasses
import math
from typing import Any, Mapping, Tuple

from viscous_ib.base import advection
from viscous_ib.base import time_stepping

# Keys understood by `PhysParams.from_dict`, mapped to attribute names.
_KEYS = {
    "Re": "reynolds",
    "grid Re": "grid_reynolds",
    "freestream speed": "freestream_speed",
    "freestream angle": "freestream_angle",
    "CFL": "cfl",
    "Fourier": "fourier",
    "ds/dx": "ds_dx",
    "time marching": "time_marching",
    "advection scheme": "advection_scheme",
    "IB iterations": "ib_iterations",
}

# `(time marching, advection scheme)` combinations with no stable time step.
_UNSTABLE_PAIRS = {("forward_euler", "central")}


class ParameterError(ValueError):
    """Raised for a missing, unknown or out-of-range problem parameter."""


@dataclasses.dataclass(frozen=True)
class PhysParams:
    """
    Validated problem parameters.

    Attributes:
      reynolds: Reynolds number `Re = U L / ν`.
      grid_reynolds: grid Reynolds number `Δx / ν`; sets the cell size.
      freestream_speed: magnitude of the uniform stream.
      freestream_angle: direction of the uniform stream, radians from the
        x-axis.
      cfl: maximum Courant number used to pick the time step.
      fourier: maximum Fourier number `ν Δt / Δx²`.
      ds_dx: ratio of the body surface point spacing to the cell size.
      time_marching: name of the Runge-Kutta scheme.
      advection_scheme: `"central"` or `"upwind"`.
      ib_iterations: number of direct forcing passes per step.
      extra: any other entries of the dictionary, passed through to user
        model functions untouched.
    """
    reynolds: float
    grid_reynolds: float = 2.0
    freestream_speed: float = 0.0
    freestream_angle: float = 0.0
    cfl: float = 0.5
    fourier: float = 0.25
    ds_dx: float = 1.4
    time_marching: str = "rk3"
    advection_scheme: str = "central"
    ib_iterations: int = 3
    extra: Mapping[str, Any] = dataclasses.field(default_factory=dict)

    def __post_init__(self):
        for name in ("reynolds", "grid_reynolds", "cfl", "fourier", "ds_dx"):
            value = getattr(self, name)
            if not value > 0:
                raise ParameterError(f"{name} must be positive, got {value}")
        if self.freestream_speed < 0:
            raise ParameterError(
                f"freestream speed must be non-negative, got {self.freestream_speed}")
        if int(self.ib_iterations) != self.ib_iterations or self.ib_iterations < 1:
            raise ParameterError(
                f"IB iterations must be a positive integer, got {self.ib_iterations}")
        object.__setattr__(self, "ib_iterations", int(self.ib_iterations))
        try:
            time_stepping.get_tableau(self.time_marching)
            advection.get_advection_scheme(self.advection_scheme)
        except ValueError as err:
            raise ParameterError(str(err)) from None
        # Forward Euler amplifies every mode of the central advection operator.
        if (self.time_marching, self.advection_scheme) in _UNSTABLE_PAIRS:
            raise ParameterError(
                f'time marching {self.time_marching!r} is unstable with '
                f'{self.advection_scheme!r} advection; use "upwind" advection '
                f'or a Runge-Kutta scheme of order 2 or more')

    @classmethod
    def from_dict(cls, params: Mapping[str, Any]) -> "PhysParams":
        """Parses a user parameter dictionary; `"Re"` is required."""
        if isinstance(params, PhysParams):
            return params
        if "Re" not in params:
            raise ParameterError('the parameter "Re" is required')
        kwargs = {}
        extra = {}
        for key, value in params.items():
            if key in _KEYS:
                kwargs[_KEYS[key]] = value
            else:
                extra[key] = value
        for name in ("reynolds", "grid_reynolds", "freestream_speed",
                     "freestream_angle", "cfl", "fourier", "ds_dx"):
            if name in kwargs:
                try:
                    kwargs[name] = float(kwargs[name])
                except (TypeError, ValueError):
                    raise ParameterError(
                        f"{name} must be a number, got {kwargs[name]!r}") from None
        return cls(extra=extra, **kwargs)

    @property
    def viscosity(self) -> float:
        return 1.0 / self.reynolds

    @property
    def cell_size(self) -> float:
        """The cell size `Δx = grid Re / Re`."""
        return self.grid_reynolds / self.reynolds

    @property
    def freestream(self) -> Tuple[float, float]:
        """Components `(U cos θ, U sin θ)` of the uniform stream."""
        return (self.freestream_speed * math.cos(self.freestream_angle),
                self.freestream_speed * math.sin(self.freestream_angle))

    def __getitem__(self, key: str):
        """Dictionary-style access with the user-facing key names."""
        if key in _KEYS:
            return getattr(self, _KEYS[key])
        return self.extra[key]
