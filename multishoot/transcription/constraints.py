"""Constraint assembly for direct multiple shooting."""

import numpy as np
from numpy.typing import NDArray

from multishoot.core.exceptions import DimensionError, NumericError
from multishoot.stepping.forward import simulate
from multishoot.transcription.codec import DecodedGuess
from multishoot.transcription.context import TranscriptionContext


class ConstraintAssembler:
    """
    Builds (ineq, eq) from a decision vector, ineq <= 0 and eq = 0.

    Equality layout:
        [ g(x_0,u_0), ..., g(x_N,u_{N-1}) | q(x_N,tf) | d_0, ..., d_{N-1} ]
    with defects d_i = x_{i+1} - Φ(x_i, u_i, tf/N) for one integrator step Φ.

    Inequality layout:
        [ h(x_0,u_0), ..., h(x_N,u_{N-1}) | r(x_N,tf) | -tf (free tf only) ]

    The final node reuses the last interval's control.
    """

    def __init__(self, context: TranscriptionContext) -> None:
        self.context = context

    def __call__(self, w: NDArray) -> tuple[NDArray, NDArray]:
        return self.evaluate(w)

    def evaluate(self, w: NDArray) -> tuple[NDArray, NDArray]:
        """
        Evaluate all constraints.

        Args:
            w: Decision vector

        Returns:
            ineq: Inequality values (num_inequalities,)
            eq: Equality values (num_equalities,)
        """
        ctx = self.context
        guess = ctx.decode(w)
        problem, dims = ctx.problem, ctx.dims
        N, n, tf = ctx.N, ctx.n, guess.final_time

        eq = np.zeros(ctx.num_equalities)
        ineq = np.zeros(ctx.num_inequalities)

        # Path constraints at nodes 0..N
        for i in range(N + 1):
            x_i, u_i = guess.states[i], guess.controls[min(i, N - 1)]
            _place(eq, i * dims.eq_path, problem.g(x_i, u_i), dims.eq_path, "equality path", i)
            _place(ineq, i * dims.ineq_path, problem.h(x_i, u_i), dims.ineq_path, "inequality path", i)

        # Terminal constraints
        x_N = guess.states[-1]
        eq_ter_start = dims.eq_path * (N + 1)
        ineq_ter_start = dims.ineq_path * (N + 1)
        _place(eq, eq_ter_start, problem.q(x_N, tf), dims.eq_terminal, "equality terminal", N)
        _place(ineq, ineq_ter_start, problem.r(x_N, tf), dims.ineq_terminal, "inequality terminal", N)

        # Dynamic defects
        defect_start = eq_ter_start + dims.eq_terminal
        eq[defect_start:defect_start + n * N] = self._defects(guess).ravel()

        # Positive final time
        if ctx.layout.free_final_time:
            ineq[-1] = -tf

        if not (np.all(np.isfinite(eq)) and np.all(np.isfinite(ineq))):
            raise NumericError("Constraint evaluated to a non-finite value", context=f"tf={tf:.6g}")

        return ineq, eq

    def defects(self, w: NDArray) -> NDArray:
        """Shooting defects x_{i+1} - Φ(x_i, u_i), shape (N, n)."""
        return self._defects(self.context.decode(w))

    def _defects(self, guess: DecodedGuess) -> NDArray:
        ctx = self.context
        N = guess.N
        h = guess.final_time / N

        D = np.zeros((N, ctx.n))
        for i in range(N):
            X_sim = simulate(
                ctx.problem.f,
                guess.states[i],
                guess.controls[i],
                h,
                1,
                ctx.tableau,
                t_start=i * h,
            )
            D[i] = guess.states[i + 1] - X_sim[-1]
        return D


def _place(
    target: NDArray, start: int, values: NDArray, expected: int, block: str, node: int
) -> None:
    """Write a block at its fixed offset, refusing a changed length."""
    if values.shape[0] != expected:
        raise DimensionError(
            f"{block} constraint returned {values.shape[0]} values, "
            f"expected {expected} as at the first evaluation",
            context=f"node {node}",
        )
    target[start:start + expected] = values

