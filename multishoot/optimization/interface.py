"""Driver: transcribe, solve, decode, reconstruct."""

from dataclasses import dataclass
from typing import Optional, Union
import logging
import numpy as np
from numpy.typing import NDArray

from multishoot.core.problem import OptimalControlProblem, FinalTime, as_final_time
from multishoot.core.exceptions import ConvergenceError, DimensionError, NumericError
from multishoot.methods.runge_kutta import MethodLike, IntegrationMethod, resolve_tableau
from multishoot.stepping.forward import forward_simulate
from multishoot.stepping.trajectory import ContinuousTrajectory, reconstruct
from multishoot.transcription.codec import DecisionLayout
from multishoot.transcription.context import TranscriptionContext, build_context
from multishoot.transcription.cost import bolza_cost
from multishoot.transcription.constraints import ConstraintAssembler
from multishoot.optimization.solver import (
    NLPResult,
    NLPSolver,
    ScipyNLPSolver,
    SolverOptions,
    describe_exit_status,
)


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OptimizationResult:
    """Decoded solution of the transcribed problem."""

    states: NDArray                  # (N+1, n) shooting node states
    controls: NDArray                # (N, m) interval controls
    time_grid: NDArray               # (N+1,) node times
    final_time: float
    cost: float
    status: int
    message: str
    trajectory: Optional[ContinuousTrajectory]
    simulated_time: Optional[NDArray]    # fine grid of the single-shooting pass
    simulated_states: Optional[NDArray]  # x0 propagated through the controls
    max_defect: float
    decision_vector: NDArray

    @property
    def converged(self) -> bool:
        return self.status > 0


class MultipleShootingOptimizer:
    """
    Direct multiple shooting transcription of an OptimalControlProblem.

    Provides the cost J(w) and constraints (ineq(w), eq(w)) to an NLP solver
    and turns the solver's answer into an OptimizationResult.
    """

    def __init__(
        self,
        problem: OptimalControlProblem,
        x0: NDArray,
        final_time: Union[FinalTime, float, None],
        num_intervals: int,
        control_dim: int,
        method: MethodLike = IntegrationMethod.RK4,
        initial_guess: Optional[NDArray] = None,
        reconstruction_substeps: int = 20,
    ):
        """
        Initialize the transcription.

        Args:
            problem: Bolza problem callbacks
            x0: Initial state (n,)
            final_time: FixedFinalTime/float for a fixed horizon,
                FreeFinalTime/None to optimize tf
            num_intervals: Number of shooting intervals N
            control_dim: Control dimension m
            method: Integration method for defects and cost quadrature
            initial_guess: Decision vector to start from (default all ones,
                tf guess 10)
            reconstruction_substeps: Sub-steps per interval for the returned
                continuous trajectory
        """
        self.problem = problem
        self.x0 = np.atleast_1d(np.asarray(x0, dtype=float)).ravel()
        self.tableau = resolve_tableau(method)
        self.reconstruction_substeps = reconstruction_substeps

        self.layout = DecisionLayout(
            state_dim=self.x0.shape[0],
            control_dim=control_dim,
            num_intervals=num_intervals,
            final_time=as_final_time(final_time),
        )

        if initial_guess is None:
            self.w0 = self.layout.initial_guess()
        else:
            self.w0 = np.asarray(initial_guess, dtype=float).ravel()
            if self.w0.shape[0] != self.layout.size:
                raise DimensionError(
                    f"Initial guess has length {self.w0.shape[0]}, expected {self.layout.size}"
                )

        self.context: TranscriptionContext = build_context(
            problem, self.x0, self.layout, self.tableau, self.w0
        )
        self.assembler = ConstraintAssembler(self.context)

        logger.debug(
            "multiple shooting layout: n=%d m=%d N=%d free_tf=%s, %d variables, "
            "%d equalities, %d inequalities",
            self.layout.state_dim, control_dim, num_intervals,
            self.layout.free_final_time, self.layout.size,
            self.context.num_equalities, self.context.num_inequalities,
        )

    def objective(self, w: NDArray) -> float:
        """J(w)."""
        return bolza_cost(w, self.context)

    def constraints(self, w: NDArray) -> tuple[NDArray, NDArray]:
        """(ineq(w), eq(w)) with ineq <= 0."""
        return self.assembler.evaluate(w)

    def solve(
        self,
        solver: Optional[NLPSolver] = None,
        options: Optional[SolverOptions] = None,
        raise_on_failure: bool = True,
    ) -> OptimizationResult:
        """
        Run the NLP solver and decode its answer.

        Args:
            solver: NLP solver (default ScipyNLPSolver)
            options: Solver configuration (default SolverOptions())
            raise_on_failure: Raise ConvergenceError on a non-positive status
                instead of returning the unconverged result

        Returns:
            OptimizationResult
        """
        solver = solver if solver is not None else ScipyNLPSolver()
        options = options if options is not None else SolverOptions()

        logger.info(
            "Starting multiple shooting solve: N=%d, %d variables, algorithm=%s",
            self.layout.num_intervals, self.layout.size, options.algorithm.value,
        )
        nlp = solver.solve(self.objective, self.constraints, self.w0, options)
        result, rebuild_error = self._decode(nlp)

        if not result.converged:
            logger.warning(
                "NLP solver did not converge (status %d): %s",
                nlp.status, describe_exit_status(nlp.status),
            )
            if raise_on_failure:
                raise ConvergenceError(
                    describe_exit_status(nlp.status),
                    status=nlp.status,
                    result=result,
                    context=nlp.message,
                ) from rebuild_error
        else:
            logger.info(
                "Multiple shooting solve converged: J=%.6g, tf=%.6g, max defect=%.3g",
                result.cost, result.final_time, result.max_defect,
            )
        return result

    def decode_result(self, nlp: NLPResult) -> OptimizationResult:
        """Build the OptimizationResult for a solver answer."""
        result, _ = self._decode(nlp)
        return result

    def _decode(self, nlp: NLPResult) -> tuple[OptimizationResult, Optional[NumericError]]:
        """
        Decode the grids, then rebuild the diagnostics that integrate f.

        A NumericError from those passes leaves trajectory and simulated
        states as None (max_defect inf if the defects overflow) and is
        returned next to the result; the solver status is kept.
        """
        guess = self.context.decode(nlp.x)
        tf = guess.final_time

        max_defect = np.inf
        trajectory = None
        t_sim, X_sim = None, None
        rebuild_error = None
        try:
            max_defect = float(np.max(np.abs(self.assembler.defects(nlp.x))))
            # a failed free-time solve can leave tf <= 0, with no time domain to rebuild
            if tf > 0.0:
                rebuilt = reconstruct(
                    self.problem.f,
                    guess.states,
                    guess.controls,
                    tf,
                    substeps=self.reconstruction_substeps,
                    method=self.tableau,
                )
                t_fine, X_fine = forward_simulate(
                    self.problem.f,
                    self.x0,
                    guess.controls,
                    tf,
                    self.reconstruction_substeps,
                    self.tableau,
                )
                trajectory, t_sim, X_sim = rebuilt, t_fine, X_fine
        except NumericError as err:
            logger.warning("Could not rebuild trajectories from the solver answer: %s", err)
            rebuild_error = err

        result = OptimizationResult(
            states=guess.states,
            controls=guess.controls,
            time_grid=guess.time_grid,
            final_time=tf,
            cost=float(nlp.fun),
            status=nlp.status,
            message=nlp.message,
            trajectory=trajectory,
            simulated_time=t_sim,
            simulated_states=X_sim,
            max_defect=max_defect,
            decision_vector=nlp.x,
        )
        return result, rebuild_error


def solve_ocp(
    problem: OptimalControlProblem,
    x0: NDArray,
    final_time: Union[FinalTime, float, None],
    num_intervals: int,
    control_dim: int,
    method: MethodLike = IntegrationMethod.RK4,
    solver: Optional[NLPSolver] = None,
    options: Optional[SolverOptions] = None,
    initial_guess: Optional[NDArray] = None,
    reconstruction_substeps: int = 20,
    raise_on_failure: bool = True,
) -> OptimizationResult:
    """Transcribe `problem` by direct multiple shooting and solve it."""
    optimizer = MultipleShootingOptimizer(
        problem,
        x0,
        final_time,
        num_intervals,
        control_dim,
        method=method,
        initial_guess=initial_guess,
        reconstruction_substeps=reconstruction_substeps,
    )
    return optimizer.solve(solver=solver, options=options, raise_on_failure=raise_on_failure)
