"""
display.py — Solver → Compositor Handoff
=========================================
The solver does not shade pixels. render() packs the current fields and
the display state into a DisplayFrame; an external compositor (see
visualizer.py) turns that into an image.

Audio bands ride along untouched: the solver applies no physics from
them, it only threads them through to whoever draws the frame.
"""

from dataclasses import dataclass, field

import numpy as np


PALETTE_COUNT = 9

DEFAULT_FILM_THICKNESS = 1.5
DEFAULT_COLOR_INTENSITY = 1.0


def _clamp01(value: float) -> float:
    return max(0.0, min(1.0, float(value)))


@dataclass(frozen=True)
class AudioBands:
    """
    Smoothed frequency-band energies, each in [0, 1].
    Out-of-range values are clamped on construction.
    """
    bass: float = 0.0
    mids: float = 0.0
    highs: float = 0.0
    volume: float = 0.0

    def __post_init__(self):
        for name in ("bass", "mids", "highs", "volume"):
            object.__setattr__(self, name, _clamp01(getattr(self, name)))

    @classmethod
    def silent(cls) -> "AudioBands":
        return cls()


@dataclass(frozen=True)
class DisplayFrame:
    """
    Everything a compositor needs for one frame.

    velocity and dye are copies of the solver's current buffers, so the
    compositor can hold on to them while the solver keeps stepping.
    """
    velocity: np.ndarray          # (R_sim, R_sim, 2)
    dye: np.ndarray               # (R_dye, R_dye, 3)
    time: float
    palette: int
    film_thickness: float = DEFAULT_FILM_THICKNESS
    color_intensity: float = DEFAULT_COLOR_INTENSITY
    audio: AudioBands = field(default_factory=AudioBands)

    @property
    def speed(self) -> np.ndarray:
        """Velocity magnitude per sim cell, shape (R_sim, R_sim)."""
        return np.linalg.norm(self.velocity, axis=-1)
