"""Core abstractions for multiple shooting."""

from multishoot.core.method import ButcherTableau, StageType
from multishoot.core.problem import (
    OptimalControlProblem,
    FixedFinalTime,
    FreeFinalTime,
    as_final_time,
)

__all__ = [
    "ButcherTableau",
    "StageType",
    "OptimalControlProblem",
    "FixedFinalTime",
    "FreeFinalTime",
    "as_final_time",
]
