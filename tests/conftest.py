"""Pytest configuration and fixtures for the liquidlight solver tests."""

import numpy as np
import pytest

from liquidlight import BufferPair, FluidSolver, SimulationConfig


@pytest.fixture
def small_config():
    """Small grids so a whole step runs in a few milliseconds."""
    return SimulationConfig(
        sim_resolution=16,
        dye_resolution=24,
        viscosity=0.5,
        velocity_dissipation=0.98,
        dye_dissipation=0.97,
        pressure_iterations=20,
        force_radius=0.04,
        force_strength=1.0,
    )


@pytest.fixture
def solver(small_config):
    s = FluidSolver(small_config)
    yield s
    s.dispose()


@pytest.fixture
def velocity_pair():
    """32x32 two-channel pair, all zero."""
    return BufferPair(32, 2, name="velocity")


@pytest.fixture
def dye_pair():
    """48x48 three-channel pair, all zero."""
    return BufferPair(48, 3, name="dye")


@pytest.fixture
def gaussian_gradient_field():
    """
    Velocity = gradient of a Gaussian bump centred in the domain.

    Pure gradient, so strongly divergent, smooth, and ~0 at the borders.
    Returns fn(resolution) -> (R, R, 2) float32 array.
    """
    def make(resolution, sigma=0.12):
        coords = (np.arange(resolution) + 0.5) / resolution
        v, u = np.meshgrid(coords, coords, indexing="ij")
        du, dv = u - 0.5, v - 0.5
        phi = np.exp(-(du**2 + dv**2) / (2 * sigma**2))
        field = np.stack((-du / sigma**2 * phi, -dv / sigma**2 * phi), axis=-1)
        return field.astype(np.float32)

    return make
