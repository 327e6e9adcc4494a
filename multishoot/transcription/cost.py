"""Bolza cost evaluation."""

import numpy as np
from numpy.typing import NDArray

from multishoot.core.exceptions import NumericError
from multishoot.stepping.forward import rk_step
from multishoot.transcription.context import TranscriptionContext


def bolza_cost(w: NDArray, context: TranscriptionContext) -> float:
    """
    J = Σ_i ∫_{t_i}^{t_{i+1}} L dt + M(x_N, tf)

    Each interval integral is one step of the context's tableau on the
    augmented system [f; L] started from the shooting node x_i, so the
    running cost sees exactly the stages used for the defect constraints
    (rectangle rule for Euler, Simpson-like weights for RK4).

    Args:
        w: Decision vector
        context: Transcription context

    Returns:
        Total cost
    """
    guess = context.decode(w)
    problem = context.problem
    N, tf = guess.N, guess.final_time
    h = tf / N

    running = 0.0
    if problem.running_cost is not None:
        for i in range(N):
            _, increment = rk_step(
                problem.f,
                guess.states[i],
                guess.controls[i],
                i * h,
                h,
                context.tableau,
                integrand=problem.L,
            )
            running += increment

    J = running + problem.M(guess.states[-1], tf)
    if not np.isfinite(J):
        raise NumericError("Cost evaluated to a non-finite value", context=f"tf={tf:.6g}")
    return float(J)
