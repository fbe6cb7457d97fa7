"""Tests for divergence, the Jacobi pressure solve and gradient subtraction."""

import numpy as np
import pytest

from liquidlight import BufferPair, GridBuffer, GridKernelPass
from liquidlight.solver import compute_divergence, gradient_kernel, project


def make_buffers(resolution):
    return (
        BufferPair(resolution, 2, name="velocity"),
        BufferPair(resolution, 1, name="pressure"),
        GridBuffer(resolution, 1, name="divergence"),
    )


class TestDivergence:
    def test_linear_field(self):
        grid = GridBuffer(8, 2)
        rows, cols = np.indices((8, 8))
        grid.data[..., 0] = cols
        grid.data[..., 1] = rows
        div = compute_divergence(grid)
        # d(x)/dx + d(y)/dy = 2 everywhere away from the clamped border
        np.testing.assert_allclose(div[1:-1, 1:-1], 2.0)

    def test_uniform_field_is_divergence_free(self):
        grid = GridBuffer(8, 2)
        grid.data[...] = (0.3, -0.7)
        assert not compute_divergence(grid).any()

    def test_rotation_is_divergence_free(self):
        grid = GridBuffer(8, 2)
        rows, cols = np.indices((8, 8))
        grid.data[..., 0] = -rows
        grid.data[..., 1] = cols
        np.testing.assert_allclose(compute_divergence(grid)[1:-1, 1:-1], 0.0)


class TestGradient:
    def test_linear_pressure(self):
        pressure = GridBuffer(8, 1)
        pressure.data[..., 0] = np.arange(8, dtype=np.float32)[np.newaxis, :]
        velocity = GridBuffer(8, 2)
        out = GridBuffer(8, 2)
        GridKernelPass("gradient", gradient_kernel).run(out, velocity, pressure)
        np.testing.assert_allclose(out.data[1:-1, 1:-1, 0], -1.0)
        np.testing.assert_allclose(out.data[..., 1], 0.0)


class TestProject:
    def test_divergence_free_field_untouched(self):
        velocity, pressure, divergence = make_buffers(16)
        velocity.read.data[...] = (0.2, 0.1)
        project(velocity, pressure, divergence, iterations=30)
        np.testing.assert_array_equal(velocity.read.data, np.broadcast_to([0.2, 0.1], (16, 16, 2)).astype(np.float32))
        assert not pressure.read.data.any()

    def test_zero_iterations_changes_nothing(self, gaussian_gradient_field):
        velocity, pressure, divergence = make_buffers(16)
        field = gaussian_gradient_field(16)
        velocity.read.data[...] = field
        metrics = project(velocity, pressure, divergence, iterations=0)
        np.testing.assert_array_equal(velocity.read.data, field)
        assert metrics["divergence_after_mean"] == pytest.approx(metrics["divergence_before_mean"])

    def test_divergence_reduction_is_monotone(self, gaussian_gradient_field):
        field = gaussian_gradient_field(32)
        residuals = []
        for iterations in (0, 10, 40, 160, 640):
            velocity, pressure, divergence = make_buffers(32)
            velocity.read.data[...] = field
            metrics = project(velocity, pressure, divergence, iterations)
            residuals.append(metrics["divergence_after_mean"])

        for before, after in zip(residuals, residuals[1:]):
            assert after <= before + 1e-7
        assert residuals[-1] < 0.2 * residuals[0]

    def test_residual_levels_off(self, gaussian_gradient_field):
        # wide divergence vs compact Laplacian: a floor, not zero
        field = gaussian_gradient_field(32)
        residuals = {}
        for iterations in (0, 640, 1600):
            velocity, pressure, divergence = make_buffers(32)
            velocity.read.data[...] = field
            metrics = project(velocity, pressure, divergence, iterations)
            residuals[iterations] = metrics["divergence_after_mean"]

        assert residuals[1600] < 0.2 * residuals[0]
        assert residuals[1600] == pytest.approx(residuals[640], rel=0.1)
        assert residuals[1600] > 1e-4 * residuals[0]

    def test_pressure_not_warm_started(self, gaussian_gradient_field):
        field = gaussian_gradient_field(16)

        velocity, pressure, divergence = make_buffers(16)
        velocity.read.data[...] = field
        project(velocity, pressure, divergence, iterations=15)
        expected_velocity = velocity.read.data.copy()
        expected_pressure = pressure.read.data.copy()

        velocity.read.data[...] = field
        pressure.read.data[...] = 5.0
        pressure.write.data[...] = -5.0
        project(velocity, pressure, divergence, iterations=15)

        np.testing.assert_array_equal(velocity.read.data, expected_velocity)
        np.testing.assert_array_equal(pressure.read.data, expected_pressure)

    def test_divergence_buffer_holds_input_divergence(self, gaussian_gradient_field):
        velocity, pressure, divergence = make_buffers(16)
        velocity.read.data[...] = gaussian_gradient_field(16)
        expected = compute_divergence(velocity.read)
        project(velocity, pressure, divergence, iterations=5)
        np.testing.assert_allclose(divergence.data[..., 0], expected)

    def test_metrics_keys(self):
        velocity, pressure, divergence = make_buffers(8)
        metrics = project(velocity, pressure, divergence, iterations=3)
        assert metrics["iterations"] == 3
        assert metrics["time_ms"] >= 0.0
        for key in ("divergence_before_max", "divergence_before_mean",
                    "divergence_after_max", "divergence_after_mean"):
            assert metrics[key] == 0.0
