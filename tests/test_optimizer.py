import numpy as np
import pytest

from multishoot.core.problem import OptimalControlProblem, FixedFinalTime, FreeFinalTime
from multishoot.core.exceptions import ConvergenceError, DimensionError, NumericError
from multishoot.optimization.interface import MultipleShootingOptimizer, solve_ocp
from multishoot.optimization.solver import (
    NLPResult,
    ScipyNLPSolver,
    SolverAlgorithm,
    SolverOptions,
    describe_exit_status,
)


def _problem():
    return OptimalControlProblem(
        dynamics=lambda x, u, t: u,
        running_cost=lambda x, u, t: u[0] ** 2,
        eq_terminal=lambda x, t: x,
    )


class FakeSolver:
    """Records its inputs and returns a canned answer."""

    def __init__(self, x, status, fun=0.0):
        self.x = x
        self.status = status
        self.fun = fun
        self.calls = []

    def solve(self, objective, constraints, w0, options):
        self.calls.append((objective, constraints, w0.copy(), options))
        return NLPResult(x=self.x, fun=self.fun, status=self.status, message="fake")


def test_driver_passes_callbacks_and_guess():
    optimizer = MultipleShootingOptimizer(_problem(), np.array([1.0]), 1.0, 3, 1)
    w_star = np.array([2/3, 1/3, 0.0, -1.0, -1.0, -1.0])
    solver = FakeSolver(w_star, status=1, fun=1.0)

    result = optimizer.solve(solver=solver)

    assert len(solver.calls) == 1
    objective, constraints, w0, options = solver.calls[0]
    assert np.array_equal(w0, np.ones(6))
    assert options == SolverOptions()
    assert np.isclose(objective(w_star), 1.0)
    ineq, eq = constraints(w_star)
    assert np.allclose(eq, 0.0)

    assert result.converged
    assert result.cost == 1.0
    assert np.allclose(result.states[:, 0], [1.0, 2/3, 1/3, 0.0])
    assert result.max_defect < 1e-12


def test_non_convergence_raises_with_partial_result():
    optimizer = MultipleShootingOptimizer(_problem(), np.array([1.0]), 1.0, 3, 1)
    solver = FakeSolver(np.ones(6), status=0)

    with pytest.raises(ConvergenceError) as excinfo:
        optimizer.solve(solver=solver)

    err = excinfo.value
    assert err.status == 0
    assert err.result is not None
    assert not err.result.converged
    assert err.result.states.shape == (4, 1)


def test_non_convergence_reported_without_raising():
    optimizer = MultipleShootingOptimizer(_problem(), np.array([1.0]), 1.0, 3, 1)
    solver = FakeSolver(np.ones(6), status=-2)

    result = optimizer.solve(solver=solver, raise_on_failure=False)

    assert not result.converged
    assert result.status == -2
    assert result.max_defect > 0.0


def test_failed_free_time_solve_without_time_domain():
    """A non-positive tf leaves nothing to reconstruct."""
    optimizer = MultipleShootingOptimizer(_problem(), np.array([1.0]), FreeFinalTime(), 2, 1)
    w_bad = np.array([1.0, 1.0, 0.0, 0.0, -0.5])
    result = optimizer.solve(solver=FakeSolver(w_bad, status=-3), raise_on_failure=False)

    assert result.final_time == -0.5
    assert result.trajectory is None
    assert result.simulated_states is None


def _overflowing_optimizer():
    problem = OptimalControlProblem(dynamics=lambda x, u, t: x * u)
    return MultipleShootingOptimizer(problem, np.array([1.0]), 1.0, 2, 1)


def test_overflowing_answer_keeps_solver_status():
    """Re-integrating a diverged answer does not mask the solver's exit status."""
    w_diverged = np.array([1.0, 1.0, 1e200, 1e200])

    with np.errstate(over="ignore", invalid="ignore"):
        with pytest.raises(ConvergenceError) as excinfo:
            _overflowing_optimizer().solve(solver=FakeSolver(w_diverged, status=-3))

    err = excinfo.value
    assert err.status == -3
    assert isinstance(err.__cause__, NumericError)
    assert err.result.trajectory is None
    assert err.result.simulated_states is None
    assert err.result.max_defect == np.inf
    assert np.array_equal(err.result.controls[:, 0], [1e200, 1e200])


def test_converged_answer_survives_failed_rebuild():
    w_diverged = np.array([1.0, 1.0, 1e200, 1e200])

    with np.errstate(over="ignore", invalid="ignore"):
        result = _overflowing_optimizer().solve(solver=FakeSolver(w_diverged, status=1))

    assert result.converged
    assert result.status == 1
    assert result.trajectory is None
    assert result.simulated_time is None


def test_initial_guess_length_checked():
    with pytest.raises(DimensionError):
        MultipleShootingOptimizer(
            _problem(), np.array([1.0]), FixedFinalTime(1.0), 3, 1, initial_guess=np.ones(5)
        )


def test_numeric_error_propagates():
    problem = OptimalControlProblem(
        dynamics=lambda x, u, t: np.log(x - 2.0),
        running_cost=lambda x, u, t: u[0] ** 2,
    )

    with pytest.raises(NumericError):
        solve_ocp(problem, np.array([1.0]), 1.0, 3, 1)


@pytest.mark.parametrize("algorithm", [SolverAlgorithm.SLSQP, SolverAlgorithm.TRUST_CONSTR])
def test_scipy_solver_small_nlp(algorithm):
    """min (w0-1)^2 + (w1-2)^2  s.t.  w0 + w1 = 1,  w0 - 0.5 <= 0."""
    def objective(w):
        return (w[0] - 1.0) ** 2 + (w[1] - 2.0) ** 2

    def constraints(w):
        return np.array([w[0] - 0.5]), np.array([w[0] + w[1] - 1.0])

    options = SolverOptions(algorithm=algorithm, tolerance=1e-8, max_iterations=1000)
    result = ScipyNLPSolver().solve(objective, constraints, np.zeros(2), options)

    assert result.success
    assert np.allclose(result.x, [0.0, 1.0], atol=1e-4)
    assert np.isclose(result.fun, 2.0, atol=1e-4)


def test_scipy_solver_shares_constraint_evaluations():
    """Equality and inequality callbacks reuse one assembly per point."""
    seen = []

    def objective(w):
        return float(np.sum(w ** 2))

    def constraints(w):
        seen.append(w.tobytes())
        return np.array([-w[0]]), np.array([w[0] + w[1] - 1.0])

    ScipyNLPSolver().solve(objective, constraints, np.zeros(2), SolverOptions())

    assert seen
    assert all(a != b for a, b in zip(seen, seen[1:]))


def test_describe_exit_status():
    assert "optimality" in describe_exit_status(1)
    assert "Iteration limit" in describe_exit_status(0)
    assert describe_exit_status(7) == "Converged."
    assert describe_exit_status(-42) == "Solver failed."
