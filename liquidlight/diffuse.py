"""
diffuse.py — Viscous Diffusion via Jacobi Passes
=================================================
Viscosity makes neighbouring cells of the velocity field agree with
each other: high viscosity → thick, syrupy motion; zero → no smoothing.

Each pass blends every cell with its 4 neighbours:

  v_new = (v + ν * (vL + vR + vB + vT)) / (1 + 4ν)

This is one Jacobi sweep of the implicit diffusion system with the
previous pass's output as both the guess and the right-hand side. A
small fixed number of sweeps is enough for a visual damping effect; it
is not meant to converge to the exact implicit solution.

Each sweep reads the previous result and writes the other buffer of
the pair (ping-pong), then swaps.
"""

import numpy as np

from .grid import BufferPair, GridBuffer
from .kernel import Geometry, GridKernelPass, neighbours


# Fixed, independent of the pressure iteration count
DIFFUSION_ITERATIONS = 4


def diffusion_kernel(geometry: Geometry, velocity: GridBuffer, viscosity: float) -> np.ndarray:
    left, right, bottom, top = neighbours(velocity)
    return (velocity.data + viscosity * (left + right + bottom + top)) / (1.0 + 4.0 * viscosity)


diffusion = GridKernelPass("diffusion", diffusion_kernel)


def diffuse_velocity(velocity: BufferPair, viscosity: float,
                     iterations: int = DIFFUSION_ITERATIONS):
    """
    Apply `iterations` smoothing passes to the velocity pair.

    The passes always run; with ν = 0 each one is an exact copy.

    Modifies: velocity (via swaps)
    """
    for _ in range(iterations):
        diffusion.apply(velocity, viscosity=viscosity)
