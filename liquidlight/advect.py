"""
advect.py — Semi-Lagrangian Advection
======================================
This is what makes the fluid look like it's *actually flowing*.

The algorithm (per cell):
  1. Take the cell centre position (uv).
  2. Trace BACKWARD along the velocity field by one timestep:
       uv_back = uv - dt * velocity(uv)
     → "Where did the stuff in this cell come FROM?"
  3. Sample the source field at uv_back with bilinear interpolation
     (it lands between cell centres; outside the grid it clamps).
  4. Multiply by the dissipation factor and store.

A single linear backward step, no sub-stepping. Unconditionally stable.

Velocity is in normalised domain units per second: a velocity of 1.0
crosses the whole grid in one second regardless of resolution, so the finer dye grid
can be advected by the coarser velocity grid.

Key reference: Jos Stam, "Stable Fluids" (SIGGRAPH 1999)
"""

import numpy as np

from .grid import BufferPair, GridBuffer
from .kernel import Geometry, GridKernelPass, sample_bilinear


def advection_kernel(geometry: Geometry, source: GridBuffer, velocity: GridBuffer,
                     dt: float, dissipation: float) -> np.ndarray:
    """
    Backward-trace every destination cell through `velocity` and sample `source`.
    Destination and source share a resolution; velocity may differ.
    """
    u, v = geometry.cell_centers()

    # Velocity at this cell's centre (exact when the grids match)
    vel = sample_bilinear(velocity, u, v)

    u_back = u - dt * vel[..., 0]
    v_back = v - dt * vel[..., 1]

    return dissipation * sample_bilinear(source, u_back, v_back)


advection = GridKernelPass("advection", advection_kernel, same_resolution=False)


def advect_velocity(velocity: BufferPair, dt: float, dissipation: float):
    """
    Self-advection: the velocity field transports itself.

    The source and the tracing field are the same (current) buffer; the
    result goes to the other buffer of the pair.

    Modifies: velocity (via swap)
    """
    advection.apply(velocity, velocity.read, dt=dt, dissipation=dissipation)


def advect_dye(dye: BufferPair, velocity: GridBuffer, dt: float, dissipation: float):
    """
    Advect the colour field through the (already updated) velocity field.

    The dye grid has its own resolution; cell centres and texel size come
    from the dye grid, velocity is sampled at those positions.

    Modifies: dye (via swap)
    """
    if velocity.channels != 2:
        raise ValueError(f"advect_dye: velocity needs 2 channels, got {velocity.channels}")
    advection.apply(dye, velocity, dt=dt, dissipation=dissipation)
