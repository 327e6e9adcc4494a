"""Immutable evaluation context shared by the cost and constraint callbacks."""

from dataclasses import dataclass
import logging
import numpy as np
from numpy.typing import NDArray

from multishoot.core.problem import OptimalControlProblem
from multishoot.core.method import ButcherTableau
from multishoot.transcription.codec import DecisionLayout, DecodedGuess


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConstraintDimensions:
    """Output lengths of the constraint callbacks, fixed at the first evaluation."""

    eq_path: int
    ineq_path: int
    eq_terminal: int
    ineq_terminal: int

    @classmethod
    def probe(cls, problem: OptimalControlProblem, guess: DecodedGuess) -> "ConstraintDimensions":
        """Evaluate every constraint once at node 0 / node N of a guess."""
        x_first, u_first = guess.states[0], guess.controls[0]
        x_last, tf = guess.states[-1], guess.final_time
        return cls(
            eq_path=problem.g(x_first, u_first).shape[0],
            ineq_path=problem.h(x_first, u_first).shape[0],
            eq_terminal=problem.q(x_last, tf).shape[0],
            ineq_terminal=problem.r(x_last, tf).shape[0],
        )


@dataclass(frozen=True)
class TranscriptionContext:
    """
    Everything the evaluators need besides the decision vector.

    Built once by the driver; cost and constraint evaluation are pure
    functions of (w, context).
    """

    problem: OptimalControlProblem
    x0: NDArray
    layout: DecisionLayout
    tableau: ButcherTableau
    dims: ConstraintDimensions

    @property
    def N(self) -> int:
        return self.layout.num_intervals

    @property
    def n(self) -> int:
        return self.layout.state_dim

    @property
    def num_equalities(self) -> int:
        """dimEqPath (N+1) + dimEqTer + n N."""
        d = self.dims
        return d.eq_path * (self.N + 1) + d.eq_terminal + self.n * self.N

    @property
    def num_inequalities(self) -> int:
        """dimInPath (N+1) + dimInTer (+1 when tf is free)."""
        d = self.dims
        return d.ineq_path * (self.N + 1) + d.ineq_terminal + int(self.layout.free_final_time)

    def decode(self, w: NDArray) -> DecodedGuess:
        return self.layout.decode(w, self.x0)


def build_context(
    problem: OptimalControlProblem,
    x0: NDArray,
    layout: DecisionLayout,
    tableau: ButcherTableau,
    w_probe: NDArray,
) -> TranscriptionContext:
    """Probe constraint dimensions at `w_probe` and freeze the context."""
    x0 = np.array(x0, dtype=float).ravel()
    x0.setflags(write=False)
    dims = ConstraintDimensions.probe(problem, layout.decode(w_probe, x0))
    logger.debug(
        "constraint dimensions: eq_path=%d ineq_path=%d eq_terminal=%d ineq_terminal=%d",
        dims.eq_path, dims.ineq_path, dims.eq_terminal, dims.ineq_terminal,
    )
    return TranscriptionContext(
        problem=problem, x0=x0, layout=layout, tableau=tableau, dims=dims
    )
