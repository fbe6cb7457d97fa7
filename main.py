"""
main.py — Entry Point
======================
Runs the solver with a scripted emitter stirring the fluid.

Usage:
    python main.py                      # Headless run, prints stats (default)
    python main.py --mode live          # Live matplotlib viewer
    python main.py --mode benchmark     # Per-stage timing breakdown
    python main.py --mode gif --frames 120
"""

import argparse
import logging
import math

import numpy as np

from liquidlight import MAX_DELTA_TIME, Force, FluidSolver, SimulationConfig, hsl_to_rgb


class CircleEmitter:
    """
    Scripted force source: `count` points orbiting the centre, each
    pushing along its direction of travel and leaving a coloured trail.
    """

    def __init__(self, count: int = 3, radius: float = 0.25, angular_speed: float = 1.2):
        self.count = count
        self.radius = radius
        self.angular_speed = angular_speed
        self.time = 0.0
        self.hue = 0.0

    def __call__(self, dt: float) -> list[Force]:
        self.time += dt
        self.hue = (self.hue + dt * 0.05) % 1.0
        forces = []
        for k in range(self.count):
            phase = self.time * self.angular_speed + 2 * math.pi * k / self.count
            x = 0.5 + self.radius * math.cos(phase)
            y = 0.5 + self.radius * math.sin(phase)
            # tangent of the orbit
            dx = -math.sin(phase) * self.radius * self.angular_speed
            dy = math.cos(phase) * self.radius * self.angular_speed
            color = hsl_to_rgb((self.hue + k / self.count) % 1.0, 0.9, 0.5)
            forces.append(Force(x, y, dx, dy, color))
        return forces


def build_config(args) -> SimulationConfig:
    return SimulationConfig(
        sim_resolution=args.sim_res,
        dye_resolution=args.dye_res,
        viscosity=args.viscosity,
        pressure_iterations=args.pressure_iterations,
    )


def run_live(config: SimulationConfig):
    """Live interactive visualization."""
    from visualizer import FluidVisualizer

    print(f"Starting live simulation (sim={config.sim_resolution}, dye={config.dye_resolution})...")
    print("Keys: 1-9 palette, +/- speed, r reset. Close the window to exit.\n")

    solver = FluidSolver(config)
    viz = FluidVisualizer(solver, force_source=CircleEmitter())
    viz.run(fps=30)


def run_gif(config: SimulationConfig, frames: int, path: str):
    """Render a short clip to disk."""
    from visualizer import FluidVisualizer

    solver = FluidSolver(config)
    viz = FluidVisualizer(solver, force_source=CircleEmitter())
    viz.save_gif(path, frames=frames)


def run_headless(config: SimulationConfig, frames: int = 100):
    """Run simulation without display — prints stats every 10 frames."""
    print(f"\nHeadless simulation | sim={config.sim_resolution} dye={config.dye_resolution} | {frames} frames")
    print(f"{'─'*60}")

    solver = FluidSolver(config)
    emitter = CircleEmitter()
    total_times = []

    for f in range(frames):
        metrics = solver.step(MAX_DELTA_TIME, emitter(MAX_DELTA_TIME))
        total_times.append(metrics["total_ms"])

        if f % 10 == 0:
            print(f"  Frame {f:03d} | {metrics['total_ms']:6.1f}ms "
                  f"({metrics['fps']:.1f} FPS) | "
                  f"div_max={metrics['divergence_max']:.5f} | "
                  f"vel_max={metrics['velocity_max']:.3f} | "
                  f"dye={metrics['dye_total']:.1f}")

    solver.print_status()
    print(f"\n{'─'*60}")
    print(f"  Average: {np.mean(total_times):.1f}ms/frame ({1000/np.mean(total_times):.1f} FPS)")
    print(f"  Min:     {np.min(total_times):.1f}ms")
    print(f"  Max:     {np.max(total_times):.1f}ms")
    solver.dispose()


def run_benchmark(config: SimulationConfig, frames: int = 50):
    """
    Detailed performance breakdown.
    Shows how long each solver stage takes.
    """
    print(f"\n{'='*60}")
    print(f"  SOLVER BENCHMARK | sim={config.sim_resolution} dye={config.dye_resolution} | {frames} frames")
    print(f"{'='*60}")

    solver = FluidSolver(config)
    emitter = CircleEmitter()

    # Warm up
    for _ in range(5):
        solver.step(MAX_DELTA_TIME, emitter(MAX_DELTA_TIME))

    logs = []
    for _ in range(frames):
        logs.append(solver.step(MAX_DELTA_TIME, emitter(MAX_DELTA_TIME)))

    keys = ["forces_ms", "diffuse_ms", "project_ms", "advect_ms", "total_ms"]

    print(f"\n{'Stage':<20} {'Mean':>8} {'Min':>8} {'Max':>8}")
    print(f"{'─'*50}")
    for k in keys:
        vals = [m[k] for m in logs]
        print(f"  {k:<18} {np.mean(vals):>7.1f}ms {np.min(vals):>7.1f}ms {np.max(vals):>7.1f}ms")

    total_vals = [m["total_ms"] for m in logs]
    print(f"\n{'─'*50}")
    print(f"  FPS (solver only): {1000/np.mean(total_vals):.1f}")
    solver.dispose()


def parse_args(argv=None):
    defaults = SimulationConfig()
    parser = argparse.ArgumentParser(description="2D Liquid Light fluid solver")
    parser.add_argument(
        "--mode", choices=["live", "headless", "benchmark", "gif"],
        default="headless",
        help="Run mode (default: headless)"
    )
    parser.add_argument("--sim-res", type=int, default=128,
                        help="Simulation grid resolution (default: 128)")
    parser.add_argument("--dye-res", type=int, default=256,
                        help="Dye grid resolution (default: 256)")
    parser.add_argument("--viscosity", type=float, default=defaults.viscosity)
    parser.add_argument("--pressure-iterations", type=int, default=defaults.pressure_iterations)
    parser.add_argument("--frames", type=int, default=100, help="Number of frames")
    parser.add_argument("--out", default="liquidlight.gif", help="GIF path for --mode gif")
    parser.add_argument("--log-level", default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser.parse_args(argv)


if __name__ == "__main__":
    args = parse_args()
    logging.basicConfig(level=args.log_level, format="%(levelname)s %(message)s")
    config = build_config(args)

    if args.mode == "live":
        run_live(config)
    elif args.mode == "headless":
        run_headless(config, frames=args.frames)
    elif args.mode == "benchmark":
        run_benchmark(config, frames=args.frames)
    elif args.mode == "gif":
        run_gif(config, frames=args.frames, path=args.out)
