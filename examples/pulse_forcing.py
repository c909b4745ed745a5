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
Applying pulse forcing to a flow.

A short-lived, smoothly distributed upward force is applied to an otherwise
quiescent fluid, with no bodies. The pulse rolls up into a pair of
counter-rotating vortices that propagates upward under its own influence.
The run is then repeated with three pulses one time unit apart.

Run with `python examples/pulse_forcing.py [--output-dir DIR] [--show]
[--grid-re RE] [--duration T]`.
"""

import argparse
import logging
import os

import matplotlib.pyplot as plt
import numpy as np

import viscous_ib as vib
from viscous_ib import plotting
from viscous_ib.logging_config import setup_logging

SIGMA_T = 0.1
DURATION = 4.0


def single_pulse_model(t, fr, phys_params):
    """A Gaussian pulse of unit peak centred at t = 0.1."""
    t0 = 0.1
    modfcn = vib.Gaussian(SIGMA_T, np.sqrt(np.pi * SIGMA_T**2)) >> t0
    return modfcn(t) * fr.generated_field()


def three_pulse_model(t, fr, phys_params):
    """Three such pulses, at t = 0.1, 1.1 and 2.1."""
    t0 = [0.1, 1.1, 2.1]
    pulse = vib.Gaussian(SIGMA_T, np.sqrt(np.pi * SIGMA_T**2))
    modfcn = (pulse >> t0[0]) + (pulse >> t0[1]) + (pulse >> t0[2])
    return modfcn(t) * fr.generated_field()


def snapshots(sol, sys, tsnap, path):
    fig, axes = plt.subplots(1, len(tsnap), figsize=(12, 4), squeeze=False)
    for ax, t in zip(axes[0], tsnap):
        plotting.plot_field(vib.vorticity(sol, sys, t), ax=ax,
                            title=f"t = {t:.2f}")
    fig.tight_layout()
    fig.savefig(path)
    return fig


def main(output_dir: str, show: bool, grid_re: float = 4.0,
         duration: float = DURATION):
    # ### Problem specification and discretization
    my_params = {}
    my_params["Re"] = 200
    xlim = (-2.0, 2.0)
    ylim = (-2.0, 4.0)
    my_params["grid Re"] = grid_re
    g = vib.setup_grid(xlim, ylim, my_params)

    # ### Construct the forcing
    # Area forcing: its spatial distribution is a Gaussian centred at the
    # origin with strength 10 for the y component, and nothing for the x
    # component.
    sigma_x = 0.5
    sigma_y = 0.1
    x0 = y0 = 0.0
    amp = 10
    force_dist = [vib.EmptySpatialField(),
                  vib.SpatialGaussian(sigma_x, sigma_y, x0, y0, amp)]

    # The model function gives the instantaneous forcing: the generated
    # spatial distribution times a Gaussian pulse in time. Model and spatial
    # field go into the forcing dictionary under the key "forcing models".
    afm = vib.AreaForcingModel(single_pulse_model, spatialfield=force_dist)
    forcing_dict = {"forcing models": afm}

    # ### Construct the system
    sys = vib.viscousflow_system(g, phys_params=my_params, forcing=forcing_dict)

    # ### Solve, by default for 4 time units
    u0 = vib.init_sol(sys)
    tspan = (0.0, 10.0)
    integrator = vib.init(u0, tspan, sys)
    vib.step(integrator, duration)

    # ### Examine
    sol = integrator.sol
    # Snapshots every time unit from the first pulse, within the history.
    tsnap = np.arange(0.1, min(3.2, sol.t[-1]), 1.0)
    snapshots(sol, sys, tsnap, os.path.join(output_dir, "pulse_snapshots.png"))

    ax = plotting.plot_field(
        vib.streamfunction(integrator), filled=False, colors="k", levels=31,
        title=f"Streamfunction at t = {integrator.t:.2f}")
    ax.figure.savefig(os.path.join(output_dir, "pulse_streamfunction.png"))

    # ### Several pulses
    # Same spatial distribution, new model function. The system is rebuilt
    # around the new forcing, reusing its Poisson solver.
    afm3 = vib.AreaForcingModel(three_pulse_model, spatialfield=force_dist)
    sys3 = sys.with_forcing({"forcing models": afm3})
    u0 = vib.init_sol(sys3)
    integrator = vib.init(u0, tspan, sys3)
    vib.step(integrator, duration)

    # The pulses coalesce with one another.
    snapshots(integrator.sol, sys3, tsnap,
              os.path.join(output_dir, "pulse_three_snapshots.png"))

    if show:
        plt.show()
    return integrator


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument("--output-dir", default=".",
                        help="directory for the figures")
    parser.add_argument("--show", action="store_true",
                        help="display the figures interactively")
    parser.add_argument("--grid-re", type=float, default=4.0,
                        help="grid Reynolds number, smaller is finer")
    parser.add_argument("--duration", type=float, default=DURATION,
                        help="time to integrate")
    args = parser.parse_args()
    if not args.show:
        plt.switch_backend("Agg")
    os.makedirs(args.output_dir, exist_ok=True)
    setup_logging(logging.INFO)
    main(args.output_dir, args.show, args.grid_re, args.duration)
