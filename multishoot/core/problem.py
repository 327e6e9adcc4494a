"""Optimal control problem definition in Bolza form."""

from dataclasses import dataclass
from typing import Callable, Optional, Union
import numpy as np
from numpy.typing import NDArray

from multishoot.core.exceptions import ConfigurationError


Dynamics = Callable[[NDArray, NDArray, float], NDArray]          # f(x, u, t)
RunningCost = Callable[[NDArray, NDArray, float], float]         # L(x, u, t)
TerminalCost = Callable[[NDArray, float], float]                 # M(x, t)
PathConstraint = Callable[[NDArray, NDArray], NDArray]           # g, h (x, u)
TerminalConstraint = Callable[[NDArray, float], NDArray]         # q, r (x, t)


@dataclass(frozen=True)
class OptimalControlProblem:
    """
    Bolza problem

        min  ∫ L(x, u, t) dt + M(x(tf), tf)
        s.t. ẋ = f(x, u, t)
             g(x, u) = 0,   h(x, u) <= 0         at every shooting node
             q(x(tf), tf) = 0,   r(x(tf), tf) <= 0

    Omitted costs contribute zero; omitted constraints are empty blocks.
    """

    dynamics: Dynamics
    running_cost: Optional[RunningCost] = None
    terminal_cost: Optional[TerminalCost] = None
    eq_path: Optional[PathConstraint] = None
    ineq_path: Optional[PathConstraint] = None
    eq_terminal: Optional[TerminalConstraint] = None
    ineq_terminal: Optional[TerminalConstraint] = None

    def f(self, x: NDArray, u: NDArray, t: float) -> NDArray:
        """RHS evaluation: ẋ = f(x, u, t)."""
        return np.atleast_1d(np.asarray(self.dynamics(x, u, t), dtype=float))

    def L(self, x: NDArray, u: NDArray, t: float) -> float:
        """Running (Lagrange) cost."""
        if self.running_cost is None:
            return 0.0
        return float(np.asarray(self.running_cost(x, u, t)).squeeze())

    def M(self, x: NDArray, t: float) -> float:
        """Terminal (Mayer) cost."""
        if self.terminal_cost is None:
            return 0.0
        return float(np.asarray(self.terminal_cost(x, t)).squeeze())

    def g(self, x: NDArray, u: NDArray) -> NDArray:
        return _path_value(self.eq_path, x, u)

    def h(self, x: NDArray, u: NDArray) -> NDArray:
        return _path_value(self.ineq_path, x, u)

    def q(self, x: NDArray, t: float) -> NDArray:
        return _terminal_value(self.eq_terminal, x, t)

    def r(self, x: NDArray, t: float) -> NDArray:
        return _terminal_value(self.ineq_terminal, x, t)


def _path_value(fn: Optional[PathConstraint], x: NDArray, u: NDArray) -> NDArray:
    if fn is None:
        return np.zeros(0)
    return np.atleast_1d(np.asarray(fn(x, u), dtype=float)).ravel()


def _terminal_value(fn: Optional[TerminalConstraint], x: NDArray, t: float) -> NDArray:
    if fn is None:
        return np.zeros(0)
    return np.atleast_1d(np.asarray(fn(x, t), dtype=float)).ravel()


@dataclass(frozen=True)
class FixedFinalTime:
    """Final time supplied by the caller."""

    value: float

    def __post_init__(self) -> None:
        if not np.isfinite(self.value) or self.value <= 0.0:
            raise ConfigurationError(
                "Fixed final time must be strictly positive and finite",
                context=f"tf={self.value}",
            )

    @property
    def is_free(self) -> bool:
        return False


@dataclass(frozen=True)
class FreeFinalTime:
    """Final time optimized as the last decision variable."""

    guess: float = 10.0

    def __post_init__(self) -> None:
        if not np.isfinite(self.guess) or self.guess <= 0.0:
            raise ConfigurationError(
                "Initial guess for a free final time must be strictly positive",
                context=f"guess={self.guess}",
            )

    @property
    def is_free(self) -> bool:
        return True


FinalTime = Union[FixedFinalTime, FreeFinalTime]


def as_final_time(tf: Union[FinalTime, float, None]) -> FinalTime:
    """Normalize a float (fixed) or None (free) into a final-time tag."""
    if isinstance(tf, (FixedFinalTime, FreeFinalTime)):
        return tf
    if tf is None:
        return FreeFinalTime()
    return FixedFinalTime(float(tf))
