"""NLP solver boundary and the scipy.optimize adapter."""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Protocol
import logging
import numpy as np
from numpy.typing import NDArray
from scipy.optimize import BFGS, NonlinearConstraint, minimize

from multishoot.core.exceptions import ConfigurationError


logger = logging.getLogger(__name__)


Objective = Callable[[NDArray], float]
Constraints = Callable[[NDArray], tuple[NDArray, NDArray]]   # w -> (ineq <= 0, eq = 0)


class SolverAlgorithm(Enum):
    SLSQP = "SLSQP"
    TRUST_CONSTR = "trust-constr"


@dataclass(frozen=True)
class SolverOptions:
    """Settings handed to the NLP solver on every call."""

    algorithm: SolverAlgorithm = SolverAlgorithm.SLSQP
    max_iterations: int = 500
    tolerance: float = 1e-9
    verbose: bool = False


@dataclass(frozen=True)
class NLPResult:
    """
    Solver outcome.

    status > 0 means a recognized form of convergence, status <= 0 a failure
    (0 iteration limit, negative other failures).
    """

    x: NDArray
    fun: float
    status: int
    message: str
    iterations: int = 0

    @property
    def success(self) -> bool:
        return self.status > 0


class NLPSolver(Protocol):
    """Generic constrained minimizer."""

    def solve(
        self,
        objective: Objective,
        constraints: Constraints,
        w0: NDArray,
        options: SolverOptions,
    ) -> NLPResult:
        """
        Minimize objective(w) s.t. ineq(w) <= 0, eq(w) = 0, from w0.

        Args:
            objective: Scalar cost callback
            constraints: Callback returning (ineq, eq)
            w0: Initial guess
            options: Solver configuration

        Returns:
            Optimized vector, optimal value and exit status
        """
        ...


_EXIT_MESSAGES = {
    1: "First-order optimality conditions satisfied to the requested tolerance.",
    2: "Step or change in the decision vector below tolerance.",
    0: "Iteration limit reached before convergence.",
    -1: "Solver stopped by a callback.",
    -2: "No feasible point found.",
    -3: "Solver failed: line search or linearization breakdown.",
}


def describe_exit_status(status: int) -> str:
    """Human-readable meaning of an integer exit status."""
    if status in _EXIT_MESSAGES:
        return _EXIT_MESSAGES[status]
    if status > 0:
        return "Converged."
    return "Solver failed."


class ScipyNLPSolver:
    """
    Adapter over scipy.optimize.minimize.

    Equality and inequality callbacks share one constraint assembly per
    distinct decision vector.
    """

    def __init__(self) -> None:
        self._constraints: Optional[Constraints] = None
        self._cached: Optional[tuple[NDArray, NDArray]] = None
        self._w_hash: Optional[int] = None

    def solve(
        self,
        objective: Objective,
        constraints: Constraints,
        w0: NDArray,
        options: SolverOptions,
    ) -> NLPResult:
        self._constraints = constraints
        self._cached = None
        self._w_hash = None

        ineq0, eq0 = self._evaluate(np.asarray(w0, dtype=float))
        logger.debug(
            "scipy %s: %d variables, %d equalities, %d inequalities",
            options.algorithm.value, len(w0), len(eq0), len(ineq0),
        )

        if options.algorithm is SolverAlgorithm.SLSQP:
            return self._solve_slsqp(objective, w0, options, len(ineq0), len(eq0))
        if options.algorithm is SolverAlgorithm.TRUST_CONSTR:
            return self._solve_trust_constr(objective, w0, options, len(ineq0), len(eq0))
        raise ConfigurationError(f"Unsupported solver algorithm {options.algorithm!r}")

    def _evaluate(self, w: NDArray) -> tuple[NDArray, NDArray]:
        """Run the constraint callback if not cached or w changed."""
        w_hash = hash(np.asarray(w, dtype=float).tobytes())
        if self._cached is None or self._w_hash != w_hash:
            assert self._constraints is not None
            self._cached = self._constraints(w)
            self._w_hash = w_hash
        return self._cached

    def _solve_slsqp(
        self,
        objective: Objective,
        w0: NDArray,
        options: SolverOptions,
        num_ineq: int,
        num_eq: int,
    ) -> NLPResult:
        # scipy expects ineq >= 0
        cons = []
        if num_eq:
            cons.append({"type": "eq", "fun": lambda w: self._evaluate(w)[1]})
        if num_ineq:
            cons.append({"type": "ineq", "fun": lambda w: -self._evaluate(w)[0]})

        res = minimize(
            objective,
            w0,
            method="SLSQP",
            constraints=cons,
            options={
                "maxiter": options.max_iterations,
                "ftol": options.tolerance,
                "disp": options.verbose,
            },
        )

        # SLSQP: 0 success, 9 iteration limit, 4 incompatible constraints,
        # everything else a breakdown of the QP subproblem or line search
        if res.success:
            status = 1
        elif res.status == 9:
            status = 0
        elif res.status == 4:
            status = -2
        else:
            status = -3
        return NLPResult(
            x=np.asarray(res.x, dtype=float),
            fun=float(res.fun),
            status=status,
            message=str(res.message),
            iterations=int(getattr(res, "nit", 0)),
        )

    def _solve_trust_constr(
        self,
        objective: Objective,
        w0: NDArray,
        options: SolverOptions,
        num_ineq: int,
        num_eq: int,
    ) -> NLPResult:
        cons = []
        if num_eq:
            cons.append(NonlinearConstraint(lambda w: self._evaluate(w)[1], 0.0, 0.0))
        if num_ineq:
            cons.append(NonlinearConstraint(lambda w: self._evaluate(w)[0], -np.inf, 0.0))

        res = minimize(
            objective,
            w0,
            method="trust-constr",
            hess=BFGS(),
            constraints=cons,
            options={
                "maxiter": options.max_iterations,
                "gtol": options.tolerance,
                "xtol": options.tolerance,
                "disp": options.verbose,
            },
        )

        # trust-constr: 1 gtol, 2 xtol, 0 iteration limit, 3 callback
        if res.status in (1, 2):
            status = int(res.status)
        elif res.status == 3:
            status = -1
        else:
            status = 0
        return NLPResult(
            x=np.asarray(res.x, dtype=float),
            fun=float(res.fun),
            status=status,
            message=str(res.message),
            iterations=int(getattr(res, "nit", 0)),
        )
