"""
errors.py — Solver Exceptions
==============================
The solver is a pure numerical pipeline, so there are only two things
that can go wrong at runtime that callers can act on:

  - ConfigError          : bad parameters at construction (fail fast)
  - SolverDisposedError  : the solver was used after dispose()

Pass misconfiguration (aliasing, mismatched resolutions) is a programming
error and raises a plain ValueError from kernel.py.
"""


class ConfigError(ValueError):
    """Raised when a SimulationConfig value is out of range or the wrong type."""


class SolverDisposedError(RuntimeError):
    """Raised when a FluidSolver is used after dispose()."""
