"""
forces.py — Force & Dye Injection
==================================
Turns discrete input events (pointer drags, auto-pilot wanderers) into
velocity impulses and colour.

Each Force is a Gaussian "splat" centred on its position:

  velocity += (dx, dy) * strength * exp(-d² / r²)
  dye      += color              * exp(-d² / (1.5 r)²)

where d is the uv distance from the event to the cell centre. The dye
splat is 1.5x wider so colour visibly trails the push.

Events are folded into the buffers ONE AT A TIME, in arrival order:
each event reads the state the previous one wrote. Two opposite pushes
at the same spot therefore cancel instead of averaging.
"""

import math
from dataclasses import dataclass
from typing import Iterable

import numpy as np

from .grid import BufferPair, GridBuffer
from .kernel import Geometry, GridKernelPass


DYE_RADIUS_SCALE = 1.5


def _clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))


@dataclass(frozen=True)
class Force:
    """
    One input event, consumed exactly once by FluidSolver.step().

    x, y   : Normalised position in [0, 1] (y = 0 is the bottom row)
    dx, dy : Velocity delta (unbounded)
    color  : RGB, each component in [0, 1]

    Every value must be finite (ValueError otherwise). Position and colour
    are clamped to [0, 1], so a drag that leaves the window pushes at the edge.
    """
    x: float
    y: float
    dx: float
    dy: float
    color: tuple[float, float, float] = (1.0, 1.0, 1.0)

    def __post_init__(self):
        if len(self.color) != 3:
            raise ValueError(f"Force color needs 3 components, got {len(self.color)}")
        for name in ("x", "y", "dx", "dy"):
            value = float(getattr(self, name))
            if not math.isfinite(value):
                raise ValueError(f"Force {name} must be finite, got {value}")
            object.__setattr__(self, name, value)
        color = tuple(float(c) for c in self.color)
        if not all(math.isfinite(c) for c in color):
            raise ValueError(f"Force color must be finite, got {color}")

        object.__setattr__(self, "x", _clamp01(self.x))
        object.__setattr__(self, "y", _clamp01(self.y))
        object.__setattr__(self, "color", tuple(_clamp01(c) for c in color))


def _splat(geometry: Geometry, x: float, y: float, radius: float) -> np.ndarray:
    """Gaussian falloff exp(-d²/r²) at every cell centre, shape (R, R, 1)."""
    u, v = geometry.cell_centers()
    d2 = (u - x) ** 2 + (v - y) ** 2
    return np.exp(-d2 / (radius * radius))[..., np.newaxis]


def velocity_splat_kernel(geometry: Geometry, velocity: GridBuffer,
                          x: float, y: float, fx: float, fy: float,
                          radius: float) -> np.ndarray:
    """Add the (fx, fy) impulse with Gaussian falloff to the velocity field."""
    impulse = np.array([fx, fy], dtype=velocity.data.dtype)
    return velocity.data + _splat(geometry, x, y, radius) * impulse


def dye_splat_kernel(geometry: Geometry, dye: GridBuffer,
                     x: float, y: float, color: tuple, radius: float) -> np.ndarray:
    """Add colour with Gaussian falloff to the dye field."""
    rgb = np.asarray(color, dtype=dye.data.dtype)
    return dye.data + _splat(geometry, x, y, radius) * rgb


velocity_splat = GridKernelPass("velocity_splat", velocity_splat_kernel)
dye_splat = GridKernelPass("dye_splat", dye_splat_kernel)


def apply_force(velocity: BufferPair, dye: BufferPair, force: Force,
                radius: float, strength: float = 1.0):
    """
    Inject one event: velocity impulse, then colour.
    Both pairs are swapped, so the next event sees this one's result.

    Args:
        velocity : Velocity pair (2 channels)
        dye      : Dye pair (3 channels, may be a different resolution)
        force    : The event
        radius   : Velocity splat radius in uv units (dye uses 1.5x)
        strength : Multiplier on (dx, dy)
    """
    velocity_splat.apply(
        velocity,
        x=force.x, y=force.y,
        fx=force.dx * strength, fy=force.dy * strength,
        radius=radius,
    )
    dye_splat.apply(
        dye,
        x=force.x, y=force.y,
        color=force.color,
        radius=radius * DYE_RADIUS_SCALE,
    )


def apply_forces(velocity: BufferPair, dye: BufferPair, forces: Iterable[Force],
                 radius: float, strength: float = 1.0) -> int:
    """
    Fold every event into the buffers, strictly in order.
    Returns the number of events applied.
    """
    count = 0
    for force in forces:
        apply_force(velocity, dye, force, radius, strength)
        count += 1
    return count


def hsl_to_rgb(h: float, s: float, l: float) -> tuple[float, float, float]:
    """
    HSL → RGB, all components in [0, 1].
    Input generators use this to give each event a vivid colour.
    """
    def hue_to_rgb(p, q, t):
        if t < 0:
            t += 1
        if t > 1:
            t -= 1
        if t < 1 / 6:
            return p + (q - p) * 6 * t
        if t < 1 / 2:
            return q
        if t < 2 / 3:
            return p + (q - p) * (2 / 3 - t) * 6
        return p

    q = l * (1 + s) if l < 0.5 else l + s - l * s
    p = 2 * l - q
    return (hue_to_rgb(p, q, h + 1 / 3), hue_to_rgb(p, q, h), hue_to_rgb(p, q, h - 1 / 3))
