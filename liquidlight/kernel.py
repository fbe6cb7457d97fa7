"""
kernel.py — Fullscreen Grid Passes
===================================
The solver's only unit of work. A GridKernelPass evaluates a per-cell
function over an entire destination grid and writes the result:

    result = kernel(destination_geometry, *sources, **params)
    destination.data[...] = result

The kernel never sees the destination's samples, only its geometry
(resolution, channels, cell centres), so it cannot read what it is
writing. Everything is vectorised over the whole grid (no Python loops
over cells), the NumPy equivalent of drawing a fullscreen quad.

Sampling rules (same as a GPU texture with LINEAR filter + CLAMP_TO_EDGE):
  - coordinates are normalised uv in [0, 1]
  - values between cell centres are bilinearly interpolated
  - anything outside the grid reads the nearest edge cell (no wraparound)
"""

from typing import Callable, NamedTuple

import numpy as np

from .grid import DTYPE, BufferPair, GridBuffer, cell_centers


class Geometry(NamedTuple):
    """What a kernel knows about the grid it is writing."""
    resolution: int
    channels: int
    texel_size: float

    def cell_centers(self) -> tuple[np.ndarray, np.ndarray]:
        return cell_centers(self.resolution)


Kernel = Callable[..., np.ndarray]


class GridKernelPass:
    """
    A named per-cell computation, bound to grids at run time.

    Usage:
        divergence = GridKernelPass("divergence", divergence_kernel)
        divergence.run(div_grid, velocity.read)

        jacobi = GridKernelPass("pressure", pressure_kernel)
        jacobi.apply(pressure, div_grid)     # reads pressure.read, writes, swaps
    """

    def __init__(self, name: str, kernel: Kernel, same_resolution: bool = True):
        """
        Args:
            name            : Label for error messages
            kernel          : fn(geometry, *sources, **params) -> (R, R, C) array
            same_resolution : Require every source to match the destination
                              (stencil passes that read exact neighbours need this;
                              passes that only sample in uv space do not)
        """
        self.name = name
        self.kernel = kernel
        self.same_resolution = same_resolution

    def run(self, destination: GridBuffer, *sources: GridBuffer, **params) -> GridBuffer:
        """Evaluate the kernel over `destination`, reading `sources`."""
        for src in sources:
            if src is destination:
                raise ValueError(
                    f"{self.name}: pass reads and writes the same buffer ({destination.name})")
            if self.same_resolution and src.resolution != destination.resolution:
                raise ValueError(
                    f"{self.name}: source {src.name} is {src.resolution}x{src.resolution}, "
                    f"destination {destination.name} is "
                    f"{destination.resolution}x{destination.resolution}")

        geometry = Geometry(destination.resolution, destination.channels, destination.texel_size)
        result = self.kernel(geometry, *sources, **params)

        if result.shape != destination.shape:
            raise ValueError(
                f"{self.name}: kernel produced shape {result.shape}, "
                f"destination {destination.name} expects {destination.shape}")

        np.copyto(destination.data, result, casting="same_kind")
        return destination

    def apply(self, pair: BufferPair, *extra_sources: GridBuffer, **params) -> GridBuffer:
        """
        Ping-pong step: read `pair.read` (plus any extra sources),
        write `pair.write`, then swap so the result becomes current.
        """
        self.run(pair.write, pair.read, *extra_sources, **params)
        pair.swap()
        return pair.read

    def __repr__(self):
        return f"GridKernelPass({self.name})"


# ── Sampling helpers ─────────────────────────────────────────────────────────

def sample_bilinear(grid: GridBuffer, u: np.ndarray, v: np.ndarray) -> np.ndarray:
    """
    Bilinear interpolation of a grid at arbitrary normalised positions.

    Given a grid of resolution R and arrays of query positions u, v (any
    matching shape), returns samples of shape u.shape + (channels,).
    Positions outside [0, 1] clamp to the edge cells.

    Bilinear interpolation = linear interp in X, then Y: a weighted
    average of the 4 surrounding cell-centre values.
    """
    field = grid.data
    R = grid.resolution

    # uv → continuous cell-index space (cell centres sit on integers)
    x = np.clip(u * R - 0.5, 0.0, R - 1)
    y = np.clip(v * R - 0.5, 0.0, R - 1)

    # Lower corner of the 4-cell square
    x0 = np.floor(x).astype(np.int32)
    y0 = np.floor(y).astype(np.int32)

    # Upper corner
    x1 = np.minimum(x0 + 1, R - 1)
    y1 = np.minimum(y0 + 1, R - 1)

    # Fractional part, broadcast over channels
    tx = (x - x0)[..., np.newaxis]
    ty = (y - y0)[..., np.newaxis]

    c00 = field[y0, x0]
    c10 = field[y0, x1]
    c01 = field[y1, x0]
    c11 = field[y1, x1]

    bottom = c00 * (1 - tx) + c10 * tx
    top = c01 * (1 - tx) + c11 * tx
    return (bottom * (1 - ty) + top * ty).astype(DTYPE, copy=False)


def neighbours(grid: GridBuffer) -> tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """
    The four axis neighbours of every cell: (left, right, bottom, top).

    Equivalent to sampling at uv ± one texel with clamp-to-edge, so a
    border cell sees itself where the neighbour would be outside.
    Each returned array has the grid's full (R, R, C) shape.
    """
    padded = np.pad(grid.data, ((1, 1), (1, 1), (0, 0)), mode="edge")
    left = padded[1:-1, :-2]
    right = padded[1:-1, 2:]
    bottom = padded[:-2, 1:-1]
    top = padded[2:, 1:-1]
    return left, right, bottom, top
