"""Tests for the CLI wiring and the scripted emitter."""

import math

import pytest

from liquidlight import Force
from main import CircleEmitter, build_config, parse_args, run_headless


class TestCircleEmitter:
    def test_one_force_per_orbiting_point(self):
        emitter = CircleEmitter(count=4, radius=0.2)
        forces = emitter(0.016)
        assert len(forces) == 4
        assert all(isinstance(f, Force) for f in forces)

    def test_points_stay_on_the_orbit(self):
        emitter = CircleEmitter(count=3, radius=0.25)
        for _ in range(10):
            for f in emitter(0.033):
                assert math.hypot(f.x - 0.5, f.y - 0.5) == pytest.approx(0.25)
                assert all(0.0 <= c <= 1.0 for c in f.color)

    def test_push_is_tangential(self):
        f = CircleEmitter(count=1)(0.0)[0]
        radial = (f.x - 0.5, f.y - 0.5)
        assert radial[0] * f.dx + radial[1] * f.dy == pytest.approx(0.0, abs=1e-12)


class TestCli:
    def test_defaults(self):
        args = parse_args([])
        assert args.mode == "headless"
        config = build_config(args)
        assert config.sim_resolution == 128
        assert config.dye_resolution == 256

    def test_flags_map_to_config(self):
        args = parse_args(["--sim-res", "32", "--dye-res", "48", "--pressure-iterations", "7",
                           "--viscosity", "0.1"])
        config = build_config(args)
        assert (config.sim_resolution, config.dye_resolution) == (32, 48)
        assert config.pressure_iterations == 7
        assert config.viscosity == 0.1

    def test_headless_run(self, capsys):
        run_headless(build_config(parse_args(["--sim-res", "8", "--dye-res", "8"])), frames=3)
        out = capsys.readouterr().out
        assert "Frame 000" in out
        assert "Average" in out
