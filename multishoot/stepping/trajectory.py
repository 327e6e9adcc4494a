"""Continuous trajectories rebuilt from a shooting solution."""

from dataclasses import dataclass
from typing import Union
import numpy as np
from numpy.typing import NDArray
from scipy.interpolate import BSpline, CubicHermiteSpline, PPoly, make_interp_spline

from multishoot.core.exceptions import DimensionError, TrajectoryDomainError
from multishoot.methods.runge_kutta import MethodLike, IntegrationMethod, resolve_tableau
from multishoot.stepping.forward import RHS, simulate


TimeLike = Union[float, NDArray]


@dataclass(frozen=True)
class ContinuousTrajectory:
    """State and control interpolants queryable on [0, tf]."""

    final_time: float
    state_interpolant: PPoly     # piecewise cubic Hermite, values (n,)
    control_interpolant: BSpline  # degree-1 spline, values (m,)

    def state(self, t: TimeLike) -> NDArray:
        """x(t), shape (n,) for scalar t or (len(t), n)."""
        return self.state_interpolant(self._check_domain(t))

    def control(self, t: TimeLike) -> NDArray:
        """u(t), shape (m,) for scalar t or (len(t), m)."""
        return self.control_interpolant(self._check_domain(t))

    def __call__(self, t: TimeLike) -> tuple[NDArray, NDArray]:
        return self.state(t), self.control(t)

    def sample(self, num: int = 201) -> tuple[NDArray, NDArray, NDArray]:
        """Evenly spaced (t, x(t), u(t)) over [0, tf]."""
        t = np.linspace(0.0, self.final_time, num)
        return t, self.state(t), self.control(t)

    def _check_domain(self, t: TimeLike) -> NDArray:
        t = np.asarray(t, dtype=float)
        tol = 1e-12 * max(1.0, abs(self.final_time))
        if np.any(~np.isfinite(t)) or np.any(t < -tol) or np.any(t > self.final_time + tol):
            raise TrajectoryDomainError(
                "Trajectory queried outside its time domain",
                context=f"domain [0, {self.final_time:.6g}]",
            )
        return np.clip(t, 0.0, self.final_time)


def reconstruct(
    f: RHS,
    states: NDArray,
    controls: NDArray,
    final_time: float,
    substeps: int = 20,
    method: MethodLike = IntegrationMethod.RK4,
) -> ContinuousTrajectory:
    """
    Build continuous trajectories from node states and interval controls.

    Every interval is re-simulated from its own node x_i with `substeps`
    sub-steps; each sub-step is a cubic Hermite segment whose end slopes are
    f(x, u_i, t). The segments of all intervals form one PPoly, so x(t_i)
    equals the node value x_i exactly for i < N and x(tf) is the end of the
    last re-simulated interval.

    The control interpolant is linear through (0, u_0), the interval
    midpoints (t_i + dt/2, u_i), and (tf, u_{N-1}).

    Args:
        f: Dynamics f(x, u, t)
        states: Node states (N+1, n)
        controls: Interval controls (N, m)
        final_time: tf
        substeps: Sub-steps per shooting interval
        method: Integration method for the re-simulation

    Returns:
        ContinuousTrajectory on [0, tf]
    """
    states = np.asarray(states, dtype=float)
    controls = np.asarray(controls, dtype=float)
    N = controls.shape[0]
    if states.shape[0] != N + 1:
        raise DimensionError(
            f"State grid has {states.shape[0]} nodes for {N} intervals, expected {N + 1}"
        )

    tableau = resolve_tableau(method)
    t_nodes = np.linspace(0.0, final_time, N + 1)
    dt = final_time / N

    breakpoints = [t_nodes[:1]]
    coefficients = []
    for i in range(N):
        t_fine = np.linspace(t_nodes[i], t_nodes[i + 1], substeps + 1)
        X_fine = simulate(
            f, states[i], controls[i], dt, substeps, tableau, t_start=t_nodes[i]
        )
        slopes = np.array(
            [np.asarray(f(X_fine[k], controls[i], t_fine[k]), dtype=float).ravel()
             for k in range(substeps + 1)]
        )
        segment = CubicHermiteSpline(t_fine, X_fine, slopes, axis=0)
        coefficients.append(segment.c)
        breakpoints.append(segment.x[1:])

    state_interpolant = PPoly(
        np.concatenate(coefficients, axis=1),
        np.concatenate(breakpoints),
        extrapolate=False,
    )

    midpoints = t_nodes[:-1] + 0.5 * dt
    knots = np.concatenate([[0.0], midpoints, [final_time]])
    values = np.vstack([controls[:1], controls, controls[-1:]])
    control_interpolant = make_interp_spline(knots, values, k=1, axis=0)

    return ContinuousTrajectory(
        final_time=float(final_time),
        state_interpolant=state_interpolant,
        control_interpolant=control_interpolant,
    )
