"""
simulation.py — Master Solver Loop
===================================
One call to `step()` advances the fluid by dt seconds.

Pipeline per frame (fixed order, no branching):
  1. Inject forces and dye      (forces.py)   one event at a time
  2. Diffuse velocity           (diffuse.py)  DIFFUSION_ITERATIONS passes
  3. Project velocity           (solver.py)   divergence → Jacobi → gradient
  4. Advect velocity, then dye  (advect.py)   semi-Lagrangian

`render()` is a pure read of the current buffers. `reset()` zeroes every
buffer and the clock. `dispose()` releases the buffers; nothing may be
called afterwards.

The caller clamps deltaTime (MAX_DELTA_TIME is a sensible ceiling);
a stall followed by a huge step would blow the advection up.
"""

import logging
import time
from collections import deque
from dataclasses import replace
from typing import Iterable

import numpy as np

from .advect import advect_dye, advect_velocity
from .config import SimulationConfig
from .diffuse import DIFFUSION_ITERATIONS, diffuse_velocity
from .display import (
    DEFAULT_COLOR_INTENSITY, DEFAULT_FILM_THICKNESS, PALETTE_COUNT,
    AudioBands, DisplayFrame,
)
from .errors import SolverDisposedError
from .forces import Force, apply_forces
from .grid import BufferPair, GridBuffer
from .solver import project


MAX_DELTA_TIME = 0.033   # ~30 FPS floor

MIN_SPEED = 0.1
MAX_SPEED = 3.0

PERF_LOG_LENGTH = 600   # frames of metrics kept in perf_log


class FluidSolver:
    """
    The complete 2D fluid solver.

    Usage:
        solver = FluidSolver(SimulationConfig(sim_resolution=128, dye_resolution=256))
        for frame in range(100):
            solver.step(1 / 60, forces=[Force(0.5, 0.5, 0.2, 0.0, (1.0, 0.3, 0.1))])
            frame = solver.render()     # Hand to compositor
    """

    def __init__(self, config: SimulationConfig | None = None, **overrides):
        """
        Args:
            config    : Simulation parameters (defaults if None)
            overrides : Individual config fields, e.g. sim_resolution=64
                        (validated the same way; bad values raise ConfigError)
        """
        config = config or SimulationConfig()
        if overrides:
            config = replace(config, **overrides)
        self.config = config

        sim_res = config.sim_resolution
        dye_res = config.dye_resolution

        # ── Buffers: allocated once, never reallocated ─────────────────────
        self._velocity = BufferPair(sim_res, 2, name="velocity")
        self._dye = BufferPair(dye_res, 3, name="dye")
        self._pressure = BufferPair(sim_res, 1, name="pressure")
        self._divergence = GridBuffer(sim_res, 1, name="divergence")

        # ── Display / runtime state ────────────────────────────────────────
        self._palette = 0
        self._speed = 1.0
        self.film_thickness = DEFAULT_FILM_THICKNESS
        self.color_intensity = DEFAULT_COLOR_INTENSITY
        self.time = 0.0

        self.frame = 0
        self.perf_log = deque(maxlen=PERF_LOG_LENGTH)   # most recent frames only
        self._disposed = False

        logging.info(
            f"FluidSolver: sim {sim_res}x{sim_res}, dye {dye_res}x{dye_res}, "
            f"{config.pressure_iterations} pressure iterations")

    # ── Output ─────────────────────────────────────────────────────────────

    @property
    def velocity(self) -> GridBuffer:
        """Current velocity grid (2 channels)."""
        self._check_alive()
        return self._velocity.read

    @property
    def dye(self) -> GridBuffer:
        """Current dye grid (3 channels)."""
        self._check_alive()
        return self._dye.read

    @property
    def pressure(self) -> GridBuffer:
        """Last converged pressure estimate."""
        self._check_alive()
        return self._pressure.read

    @property
    def divergence(self) -> GridBuffer:
        """Divergence computed at the start of the last projection."""
        self._check_alive()
        return self._divergence

    # ── Runtime controls ───────────────────────────────────────────────────

    @property
    def palette(self) -> int:
        return self._palette

    def set_palette(self, index: int):
        """Select a display palette; clamped to [0, PALETTE_COUNT - 1]."""
        self._check_alive()
        self._palette = max(0, min(PALETTE_COUNT - 1, int(index)))
        logging.debug(f"FluidSolver: palette {self._palette}")

    @property
    def speed(self) -> float:
        return self._speed

    def set_speed(self, speed: float):
        """Set the time multiplier; clamped to [MIN_SPEED, MAX_SPEED]."""
        self._check_alive()
        self._speed = max(MIN_SPEED, min(MAX_SPEED, float(speed)))
        logging.debug(f"FluidSolver: speed {self._speed:.1f}x")

    def adjust_speed(self, delta: float):
        self.set_speed(self._speed + delta)

    # ── Simulation ─────────────────────────────────────────────────────────

    def step(self, delta_time: float, forces: Iterable[Force] = (),
             audio: AudioBands | None = None) -> dict:
        """
        Advance the simulation by delta_time * speed seconds.

        Args:
            delta_time : Seconds since the last frame, clamped by the caller
            forces     : Ordered input events; each is applied once, in order
            audio      : Band energies; passed through only, no physical effect

        Returns:
            Performance/diagnostic metrics dict (also appended to perf_log)

        time and frame only advance once every pass has run.
        """
        self._check_alive()
        t_total_start = time.perf_counter()
        cfg = self.config

        dt = delta_time * self._speed

        # ── Step 1: Forces and dye, one event at a time ────────────────────
        t0 = time.perf_counter()
        n_forces = apply_forces(self._velocity, self._dye, forces,
                                radius=cfg.force_radius, strength=cfg.force_strength)
        t_forces = (time.perf_counter() - t0) * 1000

        # ── Step 2: Viscous diffusion ──────────────────────────────────────
        t0 = time.perf_counter()
        diffuse_velocity(self._velocity, cfg.viscosity, DIFFUSION_ITERATIONS)
        t_diffuse = (time.perf_counter() - t0) * 1000

        # ── Step 3: Projection (enforce incompressibility) ─────────────────
        proj_metrics = project(self._velocity, self._pressure, self._divergence,
                               cfg.pressure_iterations)

        # ── Step 4: Advection, velocity first, then dye through it ─────────
        t0 = time.perf_counter()
        advect_velocity(self._velocity, dt, cfg.velocity_dissipation)
        advect_dye(self._dye, self._velocity.read, dt, cfg.dye_dissipation)
        t_advect = (time.perf_counter() - t0) * 1000

        # ── Frame bookkeeping ──────────────────────────────────────────────
        self.time += dt
        self.frame += 1
        t_total = (time.perf_counter() - t_total_start) * 1000

        metrics = {
            "frame"           : self.frame,
            "time"            : self.time,
            "total_ms"        : t_total,
            "fps"             : 1000.0 / t_total if t_total > 0 else 0,
            "forces_ms"       : t_forces,
            "diffuse_ms"      : t_diffuse,
            "project_ms"      : proj_metrics["time_ms"],
            "advect_ms"       : t_advect,
            "forces_applied"  : n_forces,
            "divergence_max"  : proj_metrics["divergence_after_max"],
            "divergence_mean" : proj_metrics["divergence_after_mean"],
            "velocity_max"    : float(np.linalg.norm(self._velocity.read.data, axis=-1).max()),
            "dye_total"       : float(self._dye.read.data.sum()),
        }
        self.perf_log.append(metrics)
        return metrics

    def render(self, audio: AudioBands | None = None) -> DisplayFrame:
        """
        Snapshot the current fields for the compositor.
        Pure read: no buffer is written or swapped.
        """
        self._check_alive()
        return DisplayFrame(
            velocity=self._velocity.read.data.copy(),
            dye=self._dye.read.data.copy(),
            time=self.time,
            palette=self._palette,
            film_thickness=self.film_thickness,
            color_intensity=self.color_intensity,
            audio=audio or AudioBands.silent(),
        )

    def reset(self):
        """Zero every buffer and the clock. Palette and speed are kept."""
        self._check_alive()
        for pair in (self._velocity, self._dye, self._pressure):
            pair.clear()
        self._divergence.clear()
        self.time = 0.0
        self.frame = 0
        self.perf_log.clear()
        logging.info("FluidSolver: reset")

    def dispose(self):
        """Release every buffer. The solver is unusable afterwards."""
        if self._disposed:
            return
        for pair in (self._velocity, self._dye, self._pressure):
            pair.dispose()
        self._divergence.dispose()
        self._disposed = True
        logging.info("FluidSolver: disposed")

    @property
    def disposed(self) -> bool:
        return self._disposed

    def _check_alive(self):
        if self._disposed:
            raise SolverDisposedError("FluidSolver used after dispose()")

    # ── Diagnostics ────────────────────────────────────────────────────────

    def print_status(self):
        """Pretty-print current simulation state."""
        self._check_alive()
        vel = self._velocity.read.data
        dye = self._dye.read.data
        p = self._pressure.read.data
        speed = np.linalg.norm(vel, axis=-1)
        print(f"\n{'='*50}")
        print(f"  Frame: {self.frame}  |  t={self.time:.2f}s  |  speed={self._speed:.1f}x")
        print(f"  Dye       : max={dye.max():.4f}, total={dye.sum():.2f}")
        print(f"  Velocity  : max={speed.max():.4f}, mean={speed.mean():.6f}")
        print(f"  Pressure  : max={p.max():.4f}, min={p.min():.4f}")
        if self.perf_log:
            last = self.perf_log[-1]
            print(f"  Divergence: max={last['divergence_max']:.6f}, mean={last['divergence_mean']:.8f}")
            print(f"  Perf      : {last['total_ms']:.1f}ms/frame ({last['fps']:.1f} FPS)")
        print(f"{'='*50}")

    def __repr__(self):
        if self._disposed:
            return "FluidSolver(disposed)"
        cfg = self.config
        speed = np.linalg.norm(self._velocity.read.data, axis=-1)
        return (
            f"FluidSolver(sim={cfg.sim_resolution}, dye={cfg.dye_resolution}, frame={self.frame})\n"
            f"  velocity : max_magnitude={speed.max():.4f}\n"
            f"  dye      : max={self._dye.read.data.max():.4f}"
        )
