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
Rigid body geometry described by Lagrangian surface points.

Each shape is generated in its own body frame, centred at the origin, with
points spaced approximately `ds` apart along the surface. The points carry
arc-length weights: the length of surface each point stands for, half of each
neighbouring segment (the endpoints of an open body take a full segment). The
immersed boundary multiplies these weights by the cell size to get the marker
weights used for spreading.

A body is placed in the flow with `RigidTransform`, which updates it in place:

    body = Rectangle(0.5, 0.25, ds)
    T = RigidTransform((0.0, 0.0), jnp.pi / 4)
    T(body)
"""

import copy
import math
from typing import Iterable, Sequence, Tuple, Union

import jax.numpy as jnp
import numpy as np


def place_points(x, y, center, angle):
    """Body-frame points `(x, y)` rotated by `angle` and moved to `center`."""
    c, s = jnp.cos(angle), jnp.sin(angle)
    return center[0] + c * x - s * y, center[1] + s * x + c * y


def arc_length_weights(x: np.ndarray, y: np.ndarray, closed: bool) -> np.ndarray:
    """Surface length associated with each point of a polyline."""
    if len(x) < 2:
        raise ValueError("a body needs at least two surface points")
    # Segment `i` joins point `i` to point `i + 1`.
    seg = np.hypot(np.roll(x, -1) - x, np.roll(y, -1) - y)
    if closed:
        return 0.5 * (seg + np.roll(seg, 1))
    seg = seg[:-1]
    ds = np.empty(len(x))
    ds[1:-1] = 0.5 * (seg[1:] + seg[:-1])
    ds[0] = seg[0]
    ds[-1] = seg[-1]
    return ds


class Body:
    """
    A rigid body represented by surface points.

    Attributes:
      x_ref, y_ref: point coordinates in the body frame.
      x, y: point coordinates in the current placement.
      ds: arc-length weight of each point.
      closed: whether the last point connects back to the first.
      center: centroid of the current placement.
      angle: orientation of the current placement, radians.
    """

    def __init__(self, x: Sequence[float], y: Sequence[float], closed: bool = True,
                 name: str = "body"):
        x = np.asarray(x, dtype=float)
        y = np.asarray(y, dtype=float)
        if x.shape != y.shape or x.ndim != 1:
            raise ValueError("x and y must be 1D arrays of the same length")
        self.x_ref = x
        self.y_ref = y
        self.closed = closed
        self.name = name
        self.ds = arc_length_weights(x, y, closed)
        self.center = (0.0, 0.0)
        self.angle = 0.0
        self.x = x.copy()
        self.y = y.copy()

    def __len__(self):
        return len(self.x_ref)

    def __repr__(self):
        return (f"{self.name} with {len(self)} points at center {self.center}, "
                f"angle {self.angle}")

    @property
    def length(self) -> float:
        """Total surface length."""
        return float(self.ds.sum())

    def placed(self, center, angle):
        """The points in the placement `(center, angle)`, without updating."""
        return place_points(self.x_ref, self.y_ref, center, angle)

    def copy(self) -> "Body":
        return copy.deepcopy(self)


class BodyList(list):
    """A list of bodies, treated as one surface for the immersed boundary."""

    def __init__(self, bodies: Iterable[Body] = ()):
        super().__init__(bodies)
        for b in self:
            if not isinstance(b, Body):
                raise TypeError(f"expected Body, got {type(b).__name__}")

    @property
    def points(self) -> Tuple[np.ndarray, np.ndarray]:
        """Current points of every body, concatenated."""
        if not self:
            return np.zeros(0), np.zeros(0)
        return (np.concatenate([np.asarray(b.x) for b in self]),
                np.concatenate([np.asarray(b.y) for b in self]))

    @property
    def segments(self) -> Tuple[Tuple[int, int], ...]:
        """`(start, stop)` range of the points of each body."""
        out = []
        start = 0
        for b in self:
            out.append((start, start + len(b)))
            start += len(b)
        return tuple(out)

    def copy(self) -> "BodyList":
        return BodyList(b.copy() for b in self)


def _num_points(length: float, ds: float, minimum: int) -> int:
    if ds <= 0:
        raise ValueError(f"point spacing must be positive, got {ds}")
    return max(minimum, int(math.ceil(length / ds)))


def Circle(radius: float, ds: float) -> Body:
    """Circle of `radius` centred at the origin."""
    if radius <= 0:
        raise ValueError(f"radius must be positive, got {radius}")
    n = _num_points(2 * np.pi * radius, ds, 3)
    theta = 2 * np.pi * np.arange(n) / n
    return Body(radius * np.cos(theta), radius * np.sin(theta), name="Circle")


def _ellipse_radius(a, b, theta):
    # Polar form about the centre.
    return a * b / np.sqrt((b * np.cos(theta))**2 + (a * np.sin(theta))**2)


def Ellipse(a: float, b: float, ds: float) -> Body:
    """
    Ellipse with semi-axes `a` (along x) and `b` (along y).

    Points are distributed at equal arc length, by resampling a fine polar
    parametrization.
    """
    if a <= 0 or b <= 0:
        raise ValueError(f"semi-axes must be positive, got {a}, {b}")
    theta = np.linspace(0.0, 2 * np.pi, 4097)
    r = _ellipse_radius(a, b, theta)
    xf, yf = r * np.cos(theta), r * np.sin(theta)
    s = np.concatenate([[0.0], np.cumsum(np.hypot(np.diff(xf), np.diff(yf)))])
    n = _num_points(s[-1], ds, 3)
    targets = s[-1] * np.arange(n) / n
    return Body(np.interp(targets, s, xf), np.interp(targets, s, yf),
                name="Ellipse")


def Rectangle(half_height: float, half_width: float, ds: float) -> Body:
    """
    Rectangle of height `2 half_height` (along y) and width `2 half_width`
    (along x), traversed counterclockwise from the lower right corner.
    """
    if half_height <= 0 or half_width <= 0:
        raise ValueError(
            f"half lengths must be positive, got {half_height}, {half_width}")
    corners = [(half_width, -half_height), (half_width, half_height),
               (-half_width, half_height), (-half_width, -half_height)]
    xs, ys = [], []
    for k in range(4):
        (x0, y0), (x1, y1) = corners[k], corners[(k + 1) % 4]
        n = _num_points(math.hypot(x1 - x0, y1 - y0), ds, 1)
        frac = np.arange(n) / n
        xs.append(x0 + (x1 - x0) * frac)
        ys.append(y0 + (y1 - y0) * frac)
    return Body(np.concatenate(xs), np.concatenate(ys), name="Rectangle")


def Plate(length: float, ds: float) -> Body:
    """
    Flat plate of `length` along the x-axis, an open body.

    Points sit at the midpoints of equal segments, so each stands for the same
    length and the weights sum to `length`.
    """
    if length <= 0:
        raise ValueError(f"length must be positive, got {length}")
    n = _num_points(length, ds, 2)
    x = -0.5 * length + (np.arange(n) + 0.5) * length / n
    return Body(x, np.zeros(n), closed=False, name="Plate")


class RigidTransform:
    """
    Places bodies at `center` with orientation `angle`.

    Calling the transform on a `Body` (or each body of a `BodyList`) updates
    its current points in place and returns it.
    """

    def __init__(self, center: Sequence[float], angle: float):
        if len(center) != 2:
            raise ValueError(f"center must have two components, got {center}")
        self.center = (float(center[0]), float(center[1]))
        self.angle = float(angle)

    def __repr__(self):
        return f"RigidTransform(center={self.center}, angle={self.angle})"

    def __call__(self, body: Union[Body, BodyList]):
        if isinstance(body, BodyList):
            for b in body:
                self(b)
            return body
        x, y = body.placed(self.center, self.angle)
        body.x = np.asarray(x)
        body.y = np.asarray(y)
        body.center = self.center
        body.angle = self.angle
        return body
