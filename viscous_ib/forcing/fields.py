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
"""Spatial distributions of area forcing, evaluated on the grid mesh."""

import jax.numpy as jnp


class SpatialField:
    """A scalar function `f(x, y)` of position."""

    def __call__(self, x, y):
        raise NotImplementedError


class EmptySpatialField(SpatialField):
    """Zero everywhere."""

    def __call__(self, x, y):
        return jnp.zeros_like(x)

    def __repr__(self):
        return "EmptySpatialField()"


class SpatialGaussian(SpatialField):
    """
    `A / (π σx σy) exp(-(x - x0)²/σx² - (y - y0)²/σy²)`.

    The normalization makes the integral over the plane equal to `A`.
    """

    def __init__(self, sigma_x, sigma_y, x0, y0, amplitude=1.0):
        if sigma_x <= 0 or sigma_y <= 0:
            raise ValueError(
                f"widths must be positive, got {sigma_x}, {sigma_y}")
        self.sigma_x = sigma_x
        self.sigma_y = sigma_y
        self.x0 = x0
        self.y0 = y0
        self.amplitude = amplitude

    def __call__(self, x, y):
        r2 = ((x - self.x0) / self.sigma_x)**2 + ((y - self.y0) / self.sigma_y)**2
        return (self.amplitude / (jnp.pi * self.sigma_x * self.sigma_y)
                * jnp.exp(-r2))

    def __repr__(self):
        return (f"SpatialGaussian({self.sigma_x}, {self.sigma_y}, {self.x0}, "
                f"{self.y0}, {self.amplitude})")
