"""Fixed-step forward propagation with piecewise-constant controls."""

from typing import Callable, Optional
import numpy as np
from numpy.typing import NDArray

from multishoot.core.method import ButcherTableau
from multishoot.core.exceptions import ConfigurationError, DimensionError, NumericError
from multishoot.methods.runge_kutta import MethodLike, resolve_tableau


RHS = Callable[[NDArray, NDArray, float], NDArray]
Integrand = Callable[[NDArray, NDArray, float], float]


def rk_step(
    f: RHS,
    x: NDArray,
    u: NDArray,
    t: float,
    h: float,
    tableau: ButcherTableau,
    integrand: Optional[Integrand] = None,
) -> tuple[NDArray, float]:
    """
    Advance one explicit Runge-Kutta step with the control held at u.

    For i = 1, ..., s:
        Z_i = x + h Σ_{j<i} a_ij K_j
        K_i = f(Z_i, u, t + c_i h)
    x+ = x + h Σ_i b_i K_i

    When `integrand` is given it is evaluated at the same stages and
    integrated with the same weights, i.e. the step is taken on the
    augmented system [f; L].

    Returns:
        x_next: State after the step (n,)
        quadrature: h Σ_i b_i L(Z_i, u, t + c_i h), zero without integrand
    """
    A, b, c = tableau.A, tableau.b, tableau.c
    s, n = tableau.s, x.shape[0]

    K = np.zeros((s, n))
    rates = np.zeros(s)

    for i in range(s):
        Z_i = x + h * (A[i, :i] @ K[:i])
        t_stage = t + c[i] * h
        K[i] = _evaluate_rhs(f, Z_i, u, t_stage, n)
        if integrand is not None:
            rates[i] = integrand(Z_i, u, t_stage)

    x_next = x + h * (b @ K)
    quadrature = h * float(b @ rates) if integrand is not None else 0.0

    if not np.all(np.isfinite(x_next)) or not np.isfinite(quadrature):
        raise NumericError(
            "Integration produced a non-finite value", context=f"t={t:.6g}, h={h:.6g}"
        )
    return x_next, quadrature


def _evaluate_rhs(f: RHS, z: NDArray, u: NDArray, t: float, n: int) -> NDArray:
    dz = np.atleast_1d(np.asarray(f(z, u, t), dtype=float)).ravel()
    if dz.shape[0] != n:
        raise DimensionError(
            f"Dynamics returned {dz.shape[0]} values for a state of dimension {n}",
            context=f"t={t:.6g}",
        )
    if not np.all(np.isfinite(dz)):
        raise NumericError("Dynamics returned a non-finite value", context=f"t={t:.6g}")
    return dz


def simulate(
    f: RHS,
    x_start: NDArray,
    u: NDArray,
    interval_length: float,
    steps: int,
    method: MethodLike,
    t_start: float = 0.0,
) -> NDArray:
    """
    Integrate over one shooting interval with a constant control.

    Args:
        f: Dynamics f(x, u, t)
        x_start: State at the start of the interval (n,)
        u: Control held over the whole interval (m,)
        interval_length: Duration of the interval, tf / N during shooting
        steps: Number of equal sub-steps
        method: IntegrationMethod, its name, or an explicit ButcherTableau
        t_start: Absolute time at the start of the interval

    Returns:
        States at the sub-step boundaries, shape (steps + 1, n), row 0 = x_start
    """
    if steps < 1:
        raise ConfigurationError("Integration needs at least one step", context=f"steps={steps}")
    # a free tf may be non-positive between solver iterations
    if not np.isfinite(interval_length):
        raise NumericError(
            "Integration interval length is not finite",
            context=f"interval_length={interval_length}",
        )

    tableau = resolve_tableau(method)
    x_start = np.atleast_1d(np.asarray(x_start, dtype=float))
    u = np.atleast_1d(np.asarray(u, dtype=float))
    h = interval_length / steps

    X = np.zeros((steps + 1, x_start.shape[0]))
    X[0] = x_start
    for k in range(steps):
        X[k + 1], _ = rk_step(f, X[k], u, t_start + k * h, h, tableau)

    return X


def forward_simulate(
    f: RHS,
    x0: NDArray,
    controls: NDArray,
    final_time: float,
    steps_per_interval: int,
    method: MethodLike,
) -> tuple[NDArray, NDArray]:
    """
    Single-shooting pass from x0 through every interval's control.

    Args:
        controls: Control grid (N, m)
        final_time: tf, split into N equal intervals

    Returns:
        t: Time grid (N * steps_per_interval + 1,)
        X: States on that grid (N * steps_per_interval + 1, n)
    """
    N = controls.shape[0]
    dt = final_time / N

    segments = [np.atleast_1d(np.asarray(x0, dtype=float))[None, :]]
    x = segments[0][0]
    for i in range(N):
        X_i = simulate(f, x, controls[i], dt, steps_per_interval, method, t_start=i * dt)
        segments.append(X_i[1:])
        x = X_i[-1]

    t = np.linspace(0.0, final_time, N * steps_per_interval + 1)
    return t, np.vstack(segments)
