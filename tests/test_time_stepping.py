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
"""Tests for the Runge-Kutta vorticity steppers."""

import dataclasses

import jax
import jax.numpy as jnp
import numpy as np
import pytest

from viscous_ib.base import boundaries
from viscous_ib.base import grids
from viscous_ib.base import state as state_lib
from viscous_ib.base import time_stepping

GRID = grids.Grid((4, 4), domain=((0.0, 1.0), (0.0, 1.0)))
BC = boundaries.far_field_boundary_conditions(2)


def _state(value=1.0):
    data = jnp.full(GRID.shape, value)
    w = grids.GridVariable(grids.GridArray(data, GRID.cell_center, GRID), BC)
    return state_lib.FlowState(w, jnp.float32(0.0), jnp.zeros((0, 2)),
                               jnp.array(0))


def _no_correction(w, t):
    del t
    return w, jnp.zeros((0, 2))


def _integrate(tableau, explicit_terms, dt=0.1, steps=10):
    ode = time_stepping.VorticityODE(explicit_terms, _no_correction)
    step_fn = time_stepping.vorticity_rk(tableau, ode, dt)
    state = _state()
    for _ in range(steps):
        state = step_fn(state)
    return state


class TestButcherTableau:

    def test_inconsistent_tableau(self):
        with pytest.raises(ValueError):
            time_stepping.ButcherTableau(a=[[1]], b=[1], c=[0])

    @pytest.mark.parametrize("name", ["forward_euler", "rk2", "rk3", "rk4"])
    def test_weights_sum_to_one(self, name):
        tableau = time_stepping.get_tableau(name)
        assert sum(tableau.b) == pytest.approx(1.0)

    def test_unknown_scheme(self):
        with pytest.raises(ValueError, match="unknown time marching"):
            time_stepping.get_tableau("rk45")


class TestVorticityRK:

    def test_exponential_decay(self):
        exact = np.exp(-1.0)
        errors = {}
        for name in ("forward_euler", "rk2", "rk3", "rk4"):
            state = _integrate(time_stepping.get_tableau(name),
                               lambda w, t: -w.array)
            errors[name] = abs(float(state.vorticity.data[0, 0]) - exact)
        assert errors["rk2"] < errors["forward_euler"]
        assert errors["rk3"] < errors["rk2"]
        assert errors["rk4"] < 1e-5

    def test_stage_times(self):
        # dω/dt = t is integrated exactly by schemes of order two and up.
        def ramp(w, t):
            return grids.GridArray(t * jnp.ones(GRID.shape), w.offset, w.grid)

        state = _integrate(time_stepping.KUTTA_RK3, ramp)
        np.testing.assert_allclose(state.vorticity.data, 1.5, rtol=1e-5)

    def test_state_bookkeeping(self):
        state = _integrate(time_stepping.HEUN_RK2, lambda w, t: 0 * w.array,
                           dt=0.25, steps=4)
        assert float(state.time) == pytest.approx(1.0)
        assert int(state.step_count) == 4
        assert state.vorticity.bc is BC
        assert state.body_forces.shape == (0, 2)

    def test_time_does_not_drift(self):
        ode = time_stepping.VorticityODE(lambda w, t: 0 * w.array,
                                         _no_correction)
        step_fn = jax.jit(time_stepping.vorticity_rk(
            time_stepping.FORWARD_EULER, ode, 0.01))
        state = dataclasses.replace(_state(), start_time=jnp.float32(3.0))
        for _ in range(2000):
            state = step_fn(state)
        assert abs(float(state.time) - 23.0) < 1e-5
        assert float(state.start_time) == 3.0

    def test_stage_times_start_from_start_time(self):
        seen = []

        def record(w, t):
            seen.append(float(t))
            return 0 * w.array

        ode = time_stepping.VorticityODE(record, _no_correction)
        step_fn = time_stepping.vorticity_rk(time_stepping.HEUN_RK2, ode, 0.5)
        state = dataclasses.replace(_state(), start_time=jnp.float32(2.0),
                                    step_count=jnp.array(3))
        state = step_fn(state)
        assert seen == pytest.approx([3.5, 4.0])
        assert float(state.time) == pytest.approx(4.0)

    def test_correction_applied_after_stages(self):
        def halve(w, t):
            del t
            return grids.GridVariable(0.5 * w.array, w.bc), jnp.ones((1, 2))

        ode = time_stepping.VorticityODE(lambda w, t: 0 * w.array, halve)
        step_fn = time_stepping.vorticity_rk(time_stepping.CLASSIC_RK4, ode, 0.1)
        state = step_fn(_state(4.0))
        np.testing.assert_allclose(state.vorticity.data, 2.0)
        np.testing.assert_allclose(state.body_forces, [[1.0, 1.0]])
