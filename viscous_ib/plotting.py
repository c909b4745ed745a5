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
Matplotlib helpers for fields, bodies, force histories and body motions.

Each function draws into an existing `Axes` when one is given and otherwise
creates a new figure, and returns what it drew into so calls can be chained.
"""

from typing import Optional, Sequence, Tuple, Union

import jax
import jax.numpy as jnp
import matplotlib.pyplot as plt
import numpy as np

from viscous_ib.base import grids
from viscous_ib.bodies import kinematics
from viscous_ib.bodies import shapes


def _axes(ax, figsize=(6, 4)):
    if ax is None:
        _, ax = plt.subplots(figsize=figsize)
    return ax


def plot_field(
    field: grids.GridArray,
    ax=None,
    bodies: Union[None, shapes.Body, Sequence[shapes.Body]] = None,
    levels: Union[int, Sequence[float]] = 30,
    clim: Optional[Tuple[float, float]] = None,
    cmap: str = "RdBu_r",
    filled: bool = True,
    colors: Optional[str] = None,
    title: Optional[str] = None,
    xlim: Optional[Tuple[float, float]] = None,
    ylim: Optional[Tuple[float, float]] = None,
    colorbar: bool = False,
):
    """
    Contour plot of a cell-centred field.

    Args:
      field: the field to plot.
      ax: axes to draw into.
      bodies: bodies to draw on top of the field.
      levels: number of contour levels, or the levels themselves.
      clim: `(min, max)` of the levels when `levels` is a number.
      cmap: colormap of filled contours.
      filled: filled contours (`contourf`) or lines (`contour`).
      colors: a single line color, for line contours such as streamlines.
      title: axes title.
      xlim, ylim: plot limits; the grid domain by default.
      colorbar: whether to add a colorbar.

    Returns:
      The axes.
    """
    ax = _axes(ax)
    x, y = (np.asarray(c) for c in field.grid.mesh(field.offset))
    data = np.asarray(field.data)
    if clim is not None and np.isscalar(levels):
        levels = np.linspace(clim[0], clim[1], int(levels))
    if filled:
        cs = ax.contourf(x, y, data, levels=levels, cmap=cmap, extend="both")
    elif colors is not None:
        cs = ax.contour(x, y, data, levels=levels, colors=colors, linewidths=0.8)
    else:
        cs = ax.contour(x, y, data, levels=levels, cmap=cmap, linewidths=0.8)
    if colorbar:
        plt.colorbar(cs, ax=ax)
    if bodies is not None:
        plot_bodies(bodies, ax=ax)
    (x0, x1), (y0, y1) = field.grid.domain
    ax.set_xlim(xlim if xlim is not None else (x0, x1))
    ax.set_ylim(ylim if ylim is not None else (y0, y1))
    ax.set_aspect("equal")
    if title:
        ax.set_title(title)
    return ax


def plot_bodies(bodies: Union[shapes.Body, Sequence[shapes.Body]], ax=None,
                color: str = "k", fill: bool = True):
    """Draws bodies at their current placement; closed bodies are filled."""
    ax = _axes(ax)
    if isinstance(bodies, shapes.Body):
        bodies = [bodies]
    for body in bodies:
        x, y = np.asarray(body.x), np.asarray(body.y)
        if body.closed:
            if fill:
                ax.fill(x, y, color=color)
            else:
                ax.plot(np.append(x, x[0]), np.append(y, y[0]), color=color)
        else:
            ax.plot(x, y, color=color, linewidth=2)
    ax.set_aspect("equal")
    return ax


def plot_force_history(t, values, ax=None, xlabel: str = "Convective time",
                       ylabel: Optional[str] = None,
                       ylim: Optional[Tuple[float, float]] = None):
    """Line plot of a force (or coefficient) history."""
    ax = _axes(ax, figsize=(5, 3.5))
    t = np.asarray(t)
    ax.plot(t, np.asarray(values))
    ax.set_xlim(left=float(t[0]) if len(t) else 0.0)
    if ylim is not None:
        ax.set_ylim(ylim)
    ax.set_xlabel(xlabel)
    if ylabel:
        ax.set_ylabel(ylabel)
    ax.grid(True, alpha=0.3)
    return ax


def plot_motion(motion: kinematics.RigidBodyMotion,
                times: Optional[Sequence[float]] = None):
    """
    Plots the centroid position, orientation and their rates over `times`
    (by default 501 points in `[0, 10]`).

    Returns:
      The figure.
    """
    if times is None:
        times = np.linspace(0.0, 10.0, 501)
    times = np.asarray(times)
    ts = jnp.asarray(times, dtype=jnp.result_type(float))
    states = np.asarray(jax.vmap(motion.kinematics)(ts))
    rates = np.asarray(jax.vmap(motion.kinematics.rates)(ts))

    fig, axes = plt.subplots(2, 3, figsize=(10, 5), sharex=True)
    labels = (("$x_c$", "$y_c$", r"$\theta$"), (r"$\dot{x}_c$", r"$\dot{y}_c$",
                                                r"$\dot{\theta}$"))
    for row, values in enumerate((states, rates)):
        for col in range(3):
            ax = axes[row, col]
            ax.plot(times, values[:, col])
            ax.set_ylabel(labels[row][col])
            ax.grid(True, alpha=0.3)
    for ax in axes[1]:
        ax.set_xlabel("t")
    fig.tight_layout()
    return fig
