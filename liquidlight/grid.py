"""
grid.py — Grid Buffers and Ping-Pong Pairs
===========================================
The storage layer of the solver. Every field lives in a GridBuffer:

  - data has shape (R, R, C)   → row index = y, column index = x
  - cell (i, j) has its centre at uv = ((j + 0.5) / R, (i + 0.5) / R)
  - texel size = 1 / R         → the uv spacing between neighbouring cells

A pass must never read and write the same array, so every field that is
updated by a pass lives in a BufferPair: two same-shaped buffers plus an
explicit "current" index. Passes read `pair.read`, write `pair.write`,
then call `pair.swap()`. Nobody ever holds a raw reference across a swap.

Samples are float32 (the half-float render targets of a GPU solver,
with headroom).
"""

import logging

import numpy as np


DTYPE = np.float32


class GridBuffer:
    """
    One R×R grid of C-channel float samples.
    Allocated once; cleared in place; released by dispose().
    """

    def __init__(self, resolution: int, channels: int, name: str = "grid"):
        """
        Args:
            resolution : Cells per side (the grid is square)
            channels   : Components per cell (2 = velocity, 3 = colour, 1 = scalar)
            name       : Label used in logs and error messages
        """
        if resolution < 1:
            raise ValueError(f"{name}: resolution must be positive, got {resolution}")
        if channels < 1:
            raise ValueError(f"{name}: channels must be positive, got {channels}")

        self.name = name
        self.resolution = resolution
        self.channels = channels
        self._data: np.ndarray | None = np.zeros((resolution, resolution, channels), dtype=DTYPE)

    # ── Geometry ───────────────────────────────────────────────────────────

    @property
    def texel_size(self) -> float:
        return 1.0 / self.resolution

    @property
    def shape(self) -> tuple[int, int, int]:
        return (self.resolution, self.resolution, self.channels)

    def cell_centers(self) -> tuple[np.ndarray, np.ndarray]:
        """
        Normalised (u, v) coordinates of every cell centre.
        Returns two (R, R) arrays: u varies along columns, v along rows.
        """
        return cell_centers(self.resolution)

    # ── Storage ────────────────────────────────────────────────────────────

    @property
    def allocated(self) -> bool:
        return self._data is not None

    @property
    def data(self) -> np.ndarray:
        if self._data is None:
            raise RuntimeError(f"{self.name}: buffer used after dispose()")
        return self._data

    def clear(self):
        """Zero every sample without reallocating."""
        self.data.fill(0.0)

    def dispose(self):
        """Release the storage. Any later access raises."""
        if self._data is not None:
            logging.debug(f"{self.name}: released {self.shape} buffer")
        self._data = None

    def __repr__(self):
        if self._data is None:
            return f"GridBuffer({self.name}, disposed)"
        return (
            f"GridBuffer({self.name}, {self.resolution}x{self.resolution}x{self.channels}, "
            f"min={self._data.min():.4f}, max={self._data.max():.4f})"
        )


class BufferPair:
    """
    Two GridBuffers alternating as current ("read") and next ("write").

    Only swap() changes which one is which, so the pair can never end up
    with both roles pointing at the same storage.
    """

    def __init__(self, resolution: int, channels: int, name: str = "pair"):
        self.name = name
        self._buffers = (
            GridBuffer(resolution, channels, name=f"{name}[0]"),
            GridBuffer(resolution, channels, name=f"{name}[1]"),
        )
        self._current = 0

    @property
    def read(self) -> GridBuffer:
        """The buffer holding the current state."""
        return self._buffers[self._current]

    @property
    def write(self) -> GridBuffer:
        """The buffer the next pass writes into."""
        return self._buffers[1 - self._current]

    @property
    def resolution(self) -> int:
        return self._buffers[0].resolution

    @property
    def channels(self) -> int:
        return self._buffers[0].channels

    @property
    def texel_size(self) -> float:
        return self._buffers[0].texel_size

    def swap(self):
        self._current = 1 - self._current

    def clear(self):
        for buf in self._buffers:
            buf.clear()

    def dispose(self):
        for buf in self._buffers:
            buf.dispose()

    def __repr__(self):
        return f"BufferPair({self.name}, current={self._current}, read={self.read!r})"


def cell_centers(resolution: int) -> tuple[np.ndarray, np.ndarray]:
    """(u, v) cell-centre coordinates of an R×R grid, each of shape (R, R)."""
    coords = (np.arange(resolution, dtype=DTYPE) + 0.5) / resolution
    v, u = np.meshgrid(coords, coords, indexing="ij")
    return u, v
