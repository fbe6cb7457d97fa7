"""Tests for force and dye injection."""

import numpy as np
import pytest

from liquidlight import BufferPair, Force, hsl_to_rgb
from liquidlight.forces import DYE_RADIUS_SCALE, apply_force, apply_forces
from liquidlight.grid import cell_centers


RADIUS = 0.04


def distance_from(resolution, x, y):
    u, v = cell_centers(resolution)
    return np.sqrt((u - x) ** 2 + (v - y) ** 2)


class TestForce:
    def test_color_normalised_to_floats(self):
        f = Force(0.5, 0.5, 1.0, 0.0, [1, 0, 0])
        assert f.color == (1.0, 0.0, 0.0)

    def test_color_needs_three_components(self):
        with pytest.raises(ValueError):
            Force(0.5, 0.5, 1.0, 0.0, (1.0, 0.0))

    @pytest.mark.parametrize("args", [
        (float("nan"), 0.5, 1.0, 0.0),
        (0.5, float("inf"), 1.0, 0.0),
        (0.5, 0.5, float("nan"), 0.0),
        (0.5, 0.5, 0.0, float("-inf")),
    ])
    def test_non_finite_rejected(self, args):
        with pytest.raises(ValueError, match="finite"):
            Force(*args)

    def test_non_finite_color_rejected(self):
        with pytest.raises(ValueError, match="finite"):
            Force(0.5, 0.5, 1.0, 0.0, (1.0, float("nan"), 0.0))

    def test_position_and_color_clamped(self):
        f = Force(-0.2, 1.7, -3.0, 4.0, (2.0, -1.0, 0.5))
        assert (f.x, f.y) == (0.0, 1.0)
        assert (f.dx, f.dy) == (-3.0, 4.0)
        assert f.color == (1.0, 0.0, 0.5)


class TestLocality:
    def test_far_cells_untouched(self, velocity_pair, dye_pair):
        apply_force(velocity_pair, dye_pair, Force(0.5, 0.5, 1.0, -1.0, (1.0, 1.0, 1.0)), RADIUS)

        vel = velocity_pair.read.data
        far = distance_from(32, 0.5, 0.5) > 5 * RADIUS
        assert far.any()
        assert np.abs(vel[far]).max() < 1e-9

        # and the centre really moved
        assert np.linalg.norm(vel, axis=-1).max() > 0.5

    def test_peak_at_event_position(self, velocity_pair, dye_pair):
        apply_force(velocity_pair, dye_pair, Force(0.25, 0.75, 2.0, 0.0), RADIUS)
        speed = np.linalg.norm(velocity_pair.read.data, axis=-1)
        row, col = np.unravel_index(np.argmax(speed), speed.shape)
        u, v = cell_centers(32)
        assert abs(u[row, col] - 0.25) <= 1 / 32
        assert abs(v[row, col] - 0.75) <= 1 / 32

    def test_direction_and_strength(self, velocity_pair, dye_pair):
        apply_force(velocity_pair, dye_pair, Force(0.5, 0.5, 1.0, 0.0), RADIUS, strength=3.0)
        vel = velocity_pair.read.data
        assert vel[..., 0].max() > 2.0
        assert vel[..., 0].max() <= 3.0
        assert np.all(vel[..., 1] == 0.0)

    def test_dye_splat_is_wider(self, velocity_pair, dye_pair):
        apply_force(velocity_pair, dye_pair, Force(0.5, 0.5, 1.0, 0.0, (0.0, 1.0, 0.0)), RADIUS)
        dye = dye_pair.read.data
        assert np.all(dye[..., 0] == 0.0)
        assert np.all(dye[..., 2] == 0.0)

        # Gaussian with 1.5x the velocity radius
        d = distance_from(48, 0.5, 0.5)
        expected = np.exp(-(d ** 2) / (RADIUS * DYE_RADIUS_SCALE) ** 2)
        np.testing.assert_allclose(dye[..., 1], expected, rtol=1e-5, atol=1e-7)

    def test_pairs_swapped_once_per_event(self, velocity_pair, dye_pair):
        v_before, d_before = velocity_pair.read, dye_pair.read
        apply_force(velocity_pair, dye_pair, Force(0.5, 0.5, 1.0, 0.0), RADIUS)
        assert velocity_pair.read is not v_before
        assert dye_pair.read is not d_before


class TestOrdering:
    def test_opposite_events_cancel(self, velocity_pair, dye_pair):
        push = Force(0.5, 0.5, 1.0, 0.5)
        pull = Force(0.5, 0.5, -1.0, -0.5)
        count = apply_forces(velocity_pair, dye_pair, [push, pull], RADIUS)
        assert count == 2
        assert not velocity_pair.read.data.any()

    def test_cancelled_smaller_than_single(self, dye_pair):
        single = BufferPair(32, 2)
        both = BufferPair(32, 2)
        push = Force(0.5, 0.5, 1.0, 0.5)
        pull = Force(0.5, 0.5, -1.0, -0.5)

        apply_forces(single, BufferPair(48, 3), [push], RADIUS)
        apply_forces(both, dye_pair, [push, pull], RADIUS)

        centre = (16, 16)
        assert np.linalg.norm(both.read.data[centre]) < np.linalg.norm(single.read.data[centre])

    def test_events_accumulate_in_order(self, velocity_pair, dye_pair):
        forces = [Force(0.5, 0.5, 0.25, 0.0) for _ in range(4)]
        apply_forces(velocity_pair, dye_pair, forces, RADIUS)

        once_pair = BufferPair(32, 2)
        apply_forces(once_pair, BufferPair(48, 3), [Force(0.5, 0.5, 1.0, 0.0)], RADIUS)
        np.testing.assert_allclose(velocity_pair.read.data, once_pair.read.data, rtol=1e-5, atol=1e-7)

    def test_empty_sequence_is_noop(self, velocity_pair, dye_pair):
        before = velocity_pair.read
        assert apply_forces(velocity_pair, dye_pair, iter(()), RADIUS) == 0
        assert velocity_pair.read is before


class TestHslToRgb:
    @pytest.mark.parametrize("h, expected", [
        (0.0, (1.0, 0.0, 0.0)),
        (1 / 3, (0.0, 1.0, 0.0)),
        (2 / 3, (0.0, 0.0, 1.0)),
    ])
    def test_primaries(self, h, expected):
        assert hsl_to_rgb(h, 1.0, 0.5) == pytest.approx(expected, abs=1e-9)

    def test_grey_when_unsaturated(self):
        assert hsl_to_rgb(0.3, 0.0, 0.25) == pytest.approx((0.25, 0.25, 0.25))

    def test_components_in_unit_range(self):
        for h in np.linspace(0.0, 0.99, 25):
            assert all(0.0 <= c <= 1.0 for c in hsl_to_rgb(h, 0.9, 0.5))
