"""
config.py — Simulation Parameters
==================================
Everything the solver needs to allocate its grids and run a step.

The config is frozen: grids are sized from it once at construction, so
changing a resolution later would silently desync the buffers. Use
dataclasses.replace() to derive a new config and build a new solver.

Each field carries GUI/CLI metadata (min, max, label, description).
min/max are slider hints; the hard limits live in __post_init__.
"""

from dataclasses import dataclass, field, fields
from typing import Any

from .errors import ConfigError


@dataclass(frozen=True)
class SimulationConfig:
    """Construction-time parameters for FluidSolver."""

    # ── Grid sizes ─────────────────────────────────────────────────────────
    sim_resolution: int = field(
        default=256,
        metadata={"min": 1, "label": "Simulation Resolution",
                  "description": "Cells per side of the velocity/pressure/divergence grids"}
    )
    dye_resolution: int = field(
        default=512,
        metadata={"min": 1, "label": "Dye Resolution",
                  "description": "Cells per side of the colour grid (usually finer than the sim grid)"}
    )

    # ── Velocity ───────────────────────────────────────────────────────────
    viscosity: float = field(
        default=0.5,
        metadata={"min": 0.0, "label": "Viscosity",
                  "description": "Neighbour weight in each diffusion pass (0 = no smoothing)"}
    )
    velocity_dissipation: float = field(
        default=0.98,
        metadata={"min": 0.0, "max": 1.0, "label": "Velocity Dissipation",
                  "description": "Per-step multiplier applied during velocity advection"}
    )

    # ── Dye ────────────────────────────────────────────────────────────────
    dye_dissipation: float = field(
        default=0.97,
        metadata={"min": 0.0, "max": 1.0, "label": "Dye Dissipation",
                  "description": "Per-step multiplier applied during dye advection"}
    )

    # ── Pressure ───────────────────────────────────────────────────────────
    pressure_iterations: int = field(
        default=20,
        metadata={"min": 0, "max": 200, "label": "Pressure Iterations",
                  "description": "Jacobi iterations per step (higher = more incompressible)"}
    )

    # ── Force injection ────────────────────────────────────────────────────
    force_radius: float = field(
        default=0.04,
        metadata={"min": 0.0, "max": 1.0, "label": "Force Radius",
                  "description": "Gaussian splat radius in normalised units (dye uses 1.5x)"}
    )
    force_strength: float = field(
        default=1.0,
        metadata={"min": 0.0, "label": "Force Strength",
                  "description": "Multiplier on each force's (dx, dy)"}
    )

    def __post_init__(self) -> None:
        for name in ("sim_resolution", "dye_resolution", "pressure_iterations"):
            value = getattr(self, name)
            # bool is an int subclass, but True is never a sensible resolution
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigError(f"{name} must be an integer, got {value!r}")

        for name in ("viscosity", "velocity_dissipation", "dye_dissipation",
                     "force_radius", "force_strength"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ConfigError(f"{name} must be a number, got {value!r}")

        if self.sim_resolution < 1:
            raise ConfigError(f"sim_resolution must be positive, got {self.sim_resolution}")
        if self.dye_resolution < 1:
            raise ConfigError(f"dye_resolution must be positive, got {self.dye_resolution}")
        if self.pressure_iterations < 0:
            raise ConfigError(
                f"pressure_iterations must be >= 0, got {self.pressure_iterations}")
        if self.viscosity < 0.0:
            raise ConfigError(f"viscosity must be >= 0, got {self.viscosity}")

        # Dissipation is a decay factor: 0 would wipe the field every step,
        # anything above 1 makes it grow without bound.
        for name in ("velocity_dissipation", "dye_dissipation"):
            value = getattr(self, name)
            if not 0.0 < value <= 1.0:
                raise ConfigError(f"{name} must be in (0, 1], got {value}")

        if not self.force_radius > 0.0:
            raise ConfigError(f"force_radius must be positive, got {self.force_radius}")
        if self.force_strength < 0.0:
            raise ConfigError(f"force_strength must be >= 0, got {self.force_strength}")

    @property
    def sim_texel_size(self) -> float:
        return 1.0 / self.sim_resolution

    @property
    def dye_texel_size(self) -> float:
        return 1.0 / self.dye_resolution

    @classmethod
    def field_info(cls) -> dict[str, dict[str, Any]]:
        """Metadata for every field, keyed by name (for UIs and --help text)."""
        info = {}
        for f in fields(cls):
            info[f.name] = {"default": f.default, "type": f.type, **f.metadata}
        return info

    def as_dict(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}
