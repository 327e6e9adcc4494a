"""
Multishoot: direct multiple shooting for Bolza optimal control problems.

This library transcribes a continuous-time optimal control problem into a
finite-dimensional NLP with support for:
- Fixed or free final time
- Forward Euler and RK4 shooting (or any explicit Butcher tableau)
- Equality/inequality path and terminal constraints
- Continuous state and control reconstruction

By default the library produces no log output. To enable it::

    import logging
    logging.getLogger("multishoot").setLevel(logging.INFO)
"""

__version__ = "0.1.0"

from multishoot.core.problem import OptimalControlProblem, FixedFinalTime, FreeFinalTime
from multishoot.core.exceptions import (
    MultishootError,
    ConfigurationError,
    DimensionError,
    NumericError,
    ConvergenceError,
    TrajectoryDomainError,
)
from multishoot.methods.runge_kutta import IntegrationMethod
from multishoot.optimization.interface import (
    MultipleShootingOptimizer,
    OptimizationResult,
    solve_ocp,
)
from multishoot.optimization.solver import SolverOptions, SolverAlgorithm

__all__ = [
    "OptimalControlProblem",
    "FixedFinalTime",
    "FreeFinalTime",
    "MultishootError",
    "ConfigurationError",
    "DimensionError",
    "NumericError",
    "ConvergenceError",
    "TrajectoryDomainError",
    "IntegrationMethod",
    "MultipleShootingOptimizer",
    "OptimizationResult",
    "solve_ocp",
    "SolverOptions",
    "SolverAlgorithm",
]
