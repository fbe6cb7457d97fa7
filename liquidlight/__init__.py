"""
liquidlight/ — 2D Stable-Fluids Solver
=======================================
Exports the interfaces the front end uses.

Viewer (visualizer.py) imports: FluidSolver → render(), DisplayFrame
Input / auto-pilot imports:     Force, hsl_to_rgb
CLI (main.py) imports:          SimulationConfig, FluidSolver → step()
"""

from .config import SimulationConfig
from .display import PALETTE_COUNT, AudioBands, DisplayFrame
from .errors import ConfigError, SolverDisposedError
from .forces import Force, hsl_to_rgb
from .grid import BufferPair, GridBuffer
from .kernel import GridKernelPass
from .simulation import MAX_DELTA_TIME, FluidSolver

__all__ = [
    "AudioBands",
    "BufferPair",
    "ConfigError",
    "DisplayFrame",
    "FluidSolver",
    "Force",
    "GridBuffer",
    "GridKernelPass",
    "MAX_DELTA_TIME",
    "PALETTE_COUNT",
    "SimulationConfig",
    "SolverDisposedError",
    "hsl_to_rgb",
]
