"""Driver and NLP solver interface."""

from multishoot.optimization.interface import (
    MultipleShootingOptimizer,
    OptimizationResult,
    solve_ocp,
)
from multishoot.optimization.solver import (
    NLPResult,
    NLPSolver,
    ScipyNLPSolver,
    SolverAlgorithm,
    SolverOptions,
    describe_exit_status,
)

__all__ = [
    "MultipleShootingOptimizer",
    "OptimizationResult",
    "solve_ocp",
    "NLPResult",
    "NLPSolver",
    "ScipyNLPSolver",
    "SolverAlgorithm",
    "SolverOptions",
    "describe_exit_status",
]
