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
Viscous flow about a moving body.

A flat plate of unit chord pitches and heaves in fluid at rest. The surface
points now move, so their positions and velocities are evaluated at every
step.

Run with `python examples/moving_body.py [--output-dir DIR] [--show]
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

DURATION = 1.5


def my_vsplus(t, base_cache, phys_params, motions):
    """Velocity of the upper ("exterior") side of the plate."""
    return vib.surface_velocity(base_cache, motions, t)


def my_vsminus(t, base_cache, phys_params, motions):
    """Velocity of the lower ("interior") side of the plate."""
    return vib.surface_velocity(base_cache, motions, t)


def main(output_dir: str, show: bool, grid_re: float = 4.0,
         duration: float = DURATION):
    # ### Problem specification and discretization
    # No free stream in this problem.
    my_params = {}
    my_params["Re"] = 200
    xlim = (-1.0, 1.0)
    ylim = (-1.0, 1.0)
    my_params["grid Re"] = grid_re
    g = vib.setup_grid(xlim, ylim, my_params)

    ds = vib.surface_point_spacing(g, my_params)

    # ### Set up body
    # A plate at the origin. Placing it is not strictly needed, the motion
    # sets its position, but shows where it starts.
    body = vib.Plate(1.0, ds)
    T = vib.RigidTransform((0.0, 0.0), 0.0)
    T(body)

    # ### Set the body motion
    # Oscillatory pitch-heave kinematics.
    a = 0.25                   # location of pitch axis, a = 0.5 is leading edge
    phi_p = -np.pi / 2         # phase lag of pitch
    phi_h = 0.0                # phase lag of heave
    A = 0.25                   # amplitude/chord
    fstar = 1 / np.pi          # fc/U
    alpha0 = 0.0               # mean angle of attack
    delta_alpha = 10 * np.pi / 180  # amplitude of pitching
    U0 = 0.0                   # translational motion, none here
    K = np.pi * fstar          # reduced frequency, K = πfc/U

    oscil1 = vib.PitchHeave(U0, a, K, phi_p, alpha0, delta_alpha, A, phi_h)
    motion = vib.RigidBodyMotion(oscil1)

    fig = plotting.plot_motion(motion)
    fig.savefig(os.path.join(output_dir, "moving_body_kinematics.png"))

    # ### Boundary condition functions
    # Both sides of a plate touch the fluid, so both take the velocity of the
    # plate.
    bcdict = {"exterior": my_vsplus, "interior": my_vsminus}

    # ### Construct the system
    sys = vib.viscousflow_system(g, body, phys_params=my_params,
                                 motions=motion, bc=bcdict)

    # The Reynolds number based on the largest body speed is more meaningful
    # here than the one specified.
    Umax, imax, tmax, bmax = vib.maxlistvelocity(sys)
    re_eff = my_params["Re"] * Umax
    print(f"max surface speed {Umax:.4f} (point {imax} of body {bmax}, "
          f"t = {tmax:.3f}); effective Re = {re_eff:.1f}")

    u0 = vib.init_sol(sys)
    tspan = (0.0, 10.0)
    integrator = vib.init(u0, tspan, sys)

    # ### Solve
    vib.step(integrator, duration)

    # ### Examine
    # The instantaneous plate is obtained with `surfaces`.
    sol = integrator.sol
    tsnap = np.linspace(1, 3, 3) * sol.t[-1] / 3
    fig, axes = plt.subplots(1, len(tsnap), figsize=(12, 4))
    for ax, t in zip(axes, tsnap):
        plotting.plot_field(vib.vorticity(sol, sys, t), ax=ax,
                            bodies=vib.surfaces(sol, sys, t),
                            clim=(-5, 5), levels=30, title=f"t = {t:.2f}")
    fig.tight_layout()
    fig.savefig(os.path.join(output_dir, "moving_body_snapshots.png"))

    fx, fy = vib.force(sol, sys, 0)
    fig, axes = plt.subplots(1, 2, figsize=(10, 3.5))
    plotting.plot_force_history(sol.t, 2 * fx, ax=axes[0], ylabel="$C_D$",
                                ylim=(-3, 3))
    plotting.plot_force_history(sol.t, 2 * fy, ax=axes[1], ylabel="$C_L$",
                                ylim=(-6, 6))
    fig.tight_layout()
    fig.savefig(os.path.join(output_dir, "moving_body_forces.png"))

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
