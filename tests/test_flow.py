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
"""End-to-end tests of system assembly, time integration and queries."""

import jax.numpy as jnp
import numpy as np
import pytest

import viscous_ib as vib
from viscous_ib.base import grids


def _pulse_model(t, cache, phys_params):
    return vib.profiles.Gaussian(0.1, 0.05)(t - 0.1) * cache.generated_field()


class TestSystem:

    def test_time_step(self):
        params = {"Re": 200, "grid Re": 4.0, "freestream speed": 1.0}
        grid = vib.setup_grid((-1.0, 1.0), (-1.0, 1.0), params)
        sys = vib.viscousflow_system(grid, phys_params=params)
        # Convective limit 0.5 dx / 1 beats the diffusive 0.25 dx² Re.
        assert sys.timestep == pytest.approx(0.01)
        assert sys.num_bodies == 0
        assert sys.is_static

    def test_moving_body_limits_time_step(self):
        params = {"Re": 100, "grid Re": 2.0}
        grid = vib.setup_grid((-1.0, 1.0), (-1.0, 1.0), params)
        body = vib.Plate(1.0, vib.surface_point_spacing(grid, params))
        motion = vib.RigidBodyMotion(vib.Constant(angular_velocity=4.0))
        sys = vib.viscousflow_system(grid, body, phys_params=params,
                                     motions=motion)
        assert not sys.is_static
        # The plate tips move at about 4 * 0.5.
        assert sys.timestep < 0.5 * 0.02 / 1.9

    def test_forward_euler_time_step(self):
        params = {"Re": 200, "grid Re": 4.0, "freestream speed": 1.0,
                  "advection scheme": "upwind"}
        grid = vib.setup_grid((-1.0, 1.0), (-1.0, 1.0), params)
        rk3 = vib.viscousflow_system(grid, phys_params=params)
        euler = vib.viscousflow_system(
            grid, phys_params={**params, "time marching": "forward_euler"})
        assert rk3.timestep == pytest.approx(0.01)
        # 0.5 / (4 / (Re dx²) + 2 / dx) with dx = 0.02.
        assert euler.timestep == pytest.approx(0.5 / 150)

    def test_forward_euler_central_rejected(self):
        params = {"Re": 200, "grid Re": 4.0, "time marching": "forward_euler"}
        grid = vib.setup_grid((-1.0, 1.0), (-1.0, 1.0), {"Re": 200})
        with pytest.raises(vib.ParameterError):
            vib.viscousflow_system(grid, phys_params=params)

    def test_bc_keys(self):
        params = {"Re": 100, "grid Re": 4.0}
        grid = vib.setup_grid((-1.0, 1.0), (-1.0, 1.0), params)
        body = vib.Circle(0.3, 0.05)

        def zero(t, cache, phys_params, motions):
            return vib.zeros_surface(cache)

        with pytest.raises(ValueError):
            vib.viscousflow_system(grid, body, phys_params=params,
                                   bc={"exterior": zero})
        with pytest.raises(TypeError):
            vib.viscousflow_system(grid, body, phys_params=params,
                                   bc={"exterior": zero, "interior": 1.0})

    def test_bc_mean_of_sides(self):
        params = {"Re": 100, "grid Re": 4.0}
        grid = vib.setup_grid((-1.0, 1.0), (-1.0, 1.0), params)
        body = vib.Circle(0.3, 0.05)

        def ones(t, cache, phys_params, motions):
            n = len(cache)
            return jnp.ones(n), jnp.zeros(n)

        def zero(t, cache, phys_params, motions):
            return vib.zeros_surface(cache)

        sys = vib.viscousflow_system(grid, body, phys_params=params,
                                     bc={"exterior": ones, "interior": zero})
        vx, vy = sys.surface_target(0.0)
        np.testing.assert_allclose(vx, 0.5)
        np.testing.assert_allclose(vy, 0.0)

    def test_motion_count(self):
        params = {"Re": 100, "grid Re": 4.0}
        grid = vib.setup_grid((-1.0, 1.0), (-1.0, 1.0), params)
        motion = vib.RigidBodyMotion(vib.Constant())
        with pytest.raises(ValueError):
            vib.viscousflow_system(grid, vib.Circle(0.3, 0.05),
                                   phys_params=params, motions=[motion, motion])


class TestMaxListVelocity:

    def test_oscillating_plate(self):
        params = {"Re": 100, "grid Re": 4.0}
        grid = vib.setup_grid((-1.0, 1.0), (-1.0, 1.0), params)
        body = vib.Plate(1.0, 0.1)
        motion = vib.RigidBodyMotion(vib.Oscillation(np.pi, amplitude=(0.0, 0.5)))
        sys = vib.viscousflow_system(grid, [vib.Circle(0.1, 0.05), body],
                                     phys_params=params, motions=[None, motion])
        umax, point, t, body_index = vib.maxlistvelocity(sys)
        assert umax == pytest.approx(0.5 * np.pi, rel=1e-4)
        assert body_index == 1
        assert 0 <= point < len(body)
        assert np.cos(np.pi * t) ** 2 == pytest.approx(1.0, abs=1e-6)

    def test_needs_bodies(self):
        params = {"Re": 100, "grid Re": 4.0}
        grid = vib.setup_grid((-1.0, 1.0), (-1.0, 1.0), params)
        sys = vib.viscousflow_system(grid, phys_params=params)
        with pytest.raises(ValueError):
            vib.maxlistvelocity(sys)


class TestIntegration:

    def test_quiescent_flow_stays_at_rest(self):
        params = {"Re": 100, "grid Re": 4.0}
        grid = vib.setup_grid((-1.0, 1.0), (-1.0, 1.0), params)
        sys = vib.viscousflow_system(grid, phys_params=params)
        integrator = vib.init(vib.init_sol(sys), (0.0, 1.0), sys)
        vib.step(integrator, 0.2)
        np.testing.assert_array_equal(vib.vorticity(integrator).data, 0.0)

    def test_uniform_stream_without_bodies(self):
        params = {"Re": 100, "grid Re": 4.0, "freestream speed": 1.0,
                  "freestream angle": np.pi / 6}
        grid = vib.setup_grid((-1.0, 1.0), (-1.0, 1.0), params)
        sys = vib.viscousflow_system(grid, phys_params=params)
        integrator = vib.init(vib.init_sol(sys), (0.0, 1.0), sys)
        vib.step(integrator, 0.2)
        u, v = vib.velocity(integrator)
        np.testing.assert_allclose(u.data, np.cos(np.pi / 6), rtol=1e-5)
        np.testing.assert_allclose(v.data, 0.5, rtol=1e-5)
        psi = vib.streamfunction(integrator)
        x, y = grid.mesh()
        np.testing.assert_allclose(psi.data, np.cos(np.pi / 6) * y - 0.5 * x,
                                   atol=1e-5)

    def test_step_bookkeeping(self):
        params = {"Re": 100, "grid Re": 4.0}
        grid = vib.setup_grid((-1.0, 1.0), (-1.0, 1.0), params)
        sys = vib.viscousflow_system(grid, phys_params=params)
        dt = sys.timestep
        integrator = vib.init(vib.init_sol(sys), (0.0, 1.0), sys, save_every=2)
        vib.step(integrator, 5 * dt)
        assert integrator.t == pytest.approx(5 * dt)
        # Initial state, steps 2 and 4, and the final step.
        np.testing.assert_allclose(integrator.sol.t, np.array([0, 2, 4, 5]) * dt)
        # Short durations still take one step.
        vib.step(integrator, 0.1 * dt)
        assert integrator.t == pytest.approx(6 * dt)
        assert int(integrator.state.step_count) == 6

    def test_step_past_time_span(self):
        params = {"Re": 100, "grid Re": 4.0}
        grid = vib.setup_grid((-1.0, 1.0), (-1.0, 1.0), params)
        sys = vib.viscousflow_system(grid, phys_params=params)
        integrator = vib.init(vib.init_sol(sys), (0.0, 0.1), sys)
        with pytest.raises(ValueError):
            vib.step(integrator, 1.0)

    def test_invalid_integrators(self):
        params = {"Re": 100, "grid Re": 4.0}
        grid = vib.setup_grid((-1.0, 1.0), (-1.0, 1.0), params)
        sys = vib.viscousflow_system(grid, phys_params=params)
        with pytest.raises(ValueError):
            vib.init(vib.init_sol(sys), (1.0, 0.0), sys)
        other = vib.viscousflow_system(
            vib.setup_grid((-1.0, 2.0), (-1.0, 1.0), params), phys_params=params)
        with pytest.raises(grids.InconsistentGridError):
            vib.init(vib.init_sol(other), (0.0, 1.0), sys)

    def test_initial_vorticity(self):
        params = {"Re": 100, "grid Re": 4.0}
        grid = vib.setup_grid((-1.0, 1.0), (-1.0, 1.0), params)
        sys = vib.viscousflow_system(grid, phys_params=params)
        u0 = vib.init_sol(sys, lambda x, y: jnp.exp(-(x**2 + y**2) / 0.05))
        assert 0.95 < float(u0.vorticity.data.max()) <= 1.0
        assert u0.vorticity.offset == grid.cell_center


class TestPulseForcing:

    def setup_method(self):
        params = {"Re": 100, "grid Re": 4.0}
        grid = vib.setup_grid((-1.0, 1.0), (-1.0, 1.0), params)
        self.model = vib.AreaForcingModel(
            _pulse_model,
            [vib.EmptySpatialField(), vib.SpatialGaussian(0.2, 0.2, 0.0, 0.0)])
        self.sys = vib.viscousflow_system(
            grid, phys_params=params,
            forcing={"forcing models": self.model})

    def test_vertical_pulse_makes_dipole(self):
        integrator = vib.init(vib.init_sol(self.sys), (0.0, 1.0), self.sys)
        vib.step(integrator, 0.3)
        w = np.asarray(vib.vorticity(integrator).data)
        assert np.abs(w).max() > 1e-3
        # An upward force spins the fluid clockwise to its right.
        np.testing.assert_allclose(w, -w[::-1, :], atol=1e-4 * np.abs(w).max())
        assert w[w.shape[0] // 2:, :].sum() < 0
        _, v = vib.velocity(integrator)
        assert float(v.data[25, 25]) > 0

    def test_with_forcing_reuses_solver(self):
        unforced = self.sys.with_forcing(None)
        assert unforced.psi_solve is self.sys.psi_solve
        assert unforced.timestep == self.sys.timestep
        integrator = vib.init(vib.init_sol(unforced), (0.0, 1.0), unforced)
        vib.step(integrator, 0.3)
        np.testing.assert_array_equal(vib.vorticity(integrator).data, 0.0)


    def test_with_forcing_swaps_model(self):
        def three_pulses(t, cache, phys_params):
            pulse = vib.profiles.Gaussian(0.1, 0.05)
            modfcn = (pulse >> 0.1) + (pulse >> 1.1) + (pulse >> 2.1)
            return modfcn(t) * cache.generated_field()

        model = vib.AreaForcingModel(three_pulses, self.model.spatialfield)
        rerun = self.sys.with_forcing({"forcing models": model})
        assert rerun.psi_solve is self.sys.psi_solve
        fields = []
        for sys in (self.sys, rerun):
            integrator = vib.init(vib.init_sol(sys), (0.0, 1.0), sys)
            vib.step(integrator, 0.3)
            fields.append(np.asarray(vib.vorticity(integrator).data))
        # The later pulses have not started by t = 0.3.
        scale = np.abs(fields[0]).max()
        assert scale > 1e-3
        np.testing.assert_allclose(fields[1], fields[0], atol=1e-5 * scale)


class TestPointForcing:

    def test_point_force_drives_jet(self):
        params = {"Re": 100, "grid Re": 4.0}
        grid = vib.setup_grid((-1.0, 1.0), (-1.0, 1.0), params)
        model = vib.PointForcingModel(
            lambda t, cache, phys_params: jnp.array([[0.05, 0.0]]),
            [[0.0, 0.0]])
        sys = vib.viscousflow_system(grid, phys_params=params,
                                     forcing={"forcing models": model})
        integrator = vib.init(vib.init_sol(sys), (0.0, 1.0), sys)
        vib.step(integrator, 0.2)
        w = np.asarray(vib.vorticity(integrator).data)
        assert np.all(np.isfinite(w))
        assert np.abs(w).max() > 0
        # A force along x leaves the flow mirror-symmetric about y = 0.
        np.testing.assert_allclose(w, -w[:, ::-1], atol=1e-4 * np.abs(w).max())
        u, _ = vib.velocity(integrator)
        assert float(u.data[24:26, 24:26].mean()) > 0


class TestSchemes:

    @pytest.mark.parametrize("time_marching, advection_scheme", [
        ("rk3", "central"),
        ("rk3", "upwind"),
        ("rk2", "central"),
        ("rk4", "upwind"),
        ("forward_euler", "upwind"),
    ])
    def test_flow_past_rectangle(self, time_marching, advection_scheme):
        params = {"Re": 200, "grid Re": 20.0, "freestream speed": 1.0,
                  "time marching": time_marching,
                  "advection scheme": advection_scheme}
        grid = vib.setup_grid((-1.0, 3.0), (-1.5, 1.5), params)
        body = vib.Rectangle(0.5, 0.25, vib.surface_point_spacing(grid, params))
        vib.RigidTransform((0.0, 0.0), np.pi / 4)(body)
        sys = vib.viscousflow_system(grid, body, phys_params=params)
        integrator = vib.init(vib.init_sol(sys), (0.0, 1.0), sys)
        vib.step(integrator, 0.5)
        assert np.all(np.isfinite(np.asarray(vib.vorticity(integrator).data)))
        fx, fy = vib.force(integrator.sol, sys, 0)
        assert np.all(np.isfinite(fx)) and np.all(np.isfinite(fy))
        assert fx[-1] > 0


class TestBodyInStream:

    @pytest.fixture(scope="class")
    def solved(self):
        params = {"Re": 20, "grid Re": 2.0, "freestream speed": 1.0}
        grid = vib.setup_grid((-2.0, 4.0), (-2.0, 2.0), params)
        body = vib.Circle(0.5, vib.surface_point_spacing(grid, params))
        sys = vib.viscousflow_system(grid, body, phys_params=params)
        integrator = vib.init(vib.init_sol(sys), (0.0, 2.0), sys)
        vib.step(integrator, 0.5)
        return sys, integrator

    def test_drag_and_no_lift(self, solved):
        sys, integrator = solved
        fx, fy = vib.force(integrator.sol, sys, 0)
        assert fx.shape == integrator.sol.t.shape
        assert fx[0] == 0.0
        assert fx[-1] > 0
        assert abs(fy[-1]) < 5e-2 * fx[-1]

    def test_flow_is_slowed_at_the_body(self, solved):
        sys, integrator = solved
        u, _ = vib.velocity(integrator)
        centre = tuple(int(round(-lo / h - 0.5))
                       for (lo, _), h in zip(sys.grid.domain, sys.grid.step))
        assert abs(float(u.data[centre])) < 0.5

    def test_history_queries(self, solved):
        sys, integrator = solved
        sol = integrator.sol
        t_mid = 0.5 * (sol.t[1] + sol.t[2])
        w_mid = vib.vorticity(sol, sys, t_mid)
        w1 = vib.vorticity(sol, sys, sol.t[1])
        w2 = vib.vorticity(sol, sys, sol.t[2])
        np.testing.assert_allclose(w_mid.data, 0.5 * (w1.data + w2.data),
                                   rtol=1e-5, atol=1e-6)
        u, v = vib.velocity(sol, sys, sol.t[-1])
        np.testing.assert_allclose(u.data, vib.velocity(integrator)[0].data,
                                   atol=1e-5)

    def test_query_errors(self, solved):
        sys, integrator = solved
        with pytest.raises(ValueError):
            vib.vorticity(integrator.sol, sys, 10.0)
        with pytest.raises(TypeError):
            vib.vorticity(integrator.sol)
        with pytest.raises(TypeError):
            vib.vorticity(np.zeros(3))
        with pytest.raises(IndexError):
            vib.force(integrator.sol, sys, 1)


class TestMovingBody:

    def test_surfaces_follow_the_motion(self):
        params = {"Re": 100, "grid Re": 4.0}
        grid = vib.setup_grid((-1.0, 1.0), (-1.0, 1.0), params)
        body = vib.Plate(0.5, vib.surface_point_spacing(grid, params))
        motion = vib.RigidBodyMotion(vib.Constant((0.5, 0.0)))
        sys = vib.viscousflow_system(grid, body, phys_params=params,
                                     motions=motion)
        integrator = vib.init(vib.init_sol(sys), (0.0, 1.0), sys)
        vib.step(integrator, 0.2)
        placed = vib.surfaces(integrator)
        assert placed[0].center[0] == pytest.approx(0.5 * integrator.t, rel=1e-5)
        earlier = vib.surfaces(integrator.sol, sys, 0.1)
        np.testing.assert_allclose(earlier[0].x, body.x_ref + 0.05, atol=1e-6)
        # The system's own bodies are not moved.
        np.testing.assert_allclose(sys.bodies[0].x, body.x_ref)
        fx, fy = vib.force(integrator.sol, sys, 0)
        assert np.all(np.isfinite(fx)) and np.all(np.isfinite(fy))
        # Dragging the plate edgewise to the right meets resistance.
        assert fx[-1] < 0

    def test_surfaces_outside_history(self):
        params = {"Re": 100, "grid Re": 4.0}
        grid = vib.setup_grid((-1.0, 1.0), (-1.0, 1.0), params)
        sys = vib.viscousflow_system(grid, vib.Circle(0.2, 0.05),
                                     phys_params=params)
        integrator = vib.init(vib.init_sol(sys), (0.0, 1.0), sys)
        with pytest.raises(ValueError):
            vib.surfaces(integrator.sol, sys, 0.5)
        with pytest.raises(TypeError):
            vib.surfaces([])
