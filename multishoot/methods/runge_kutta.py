"""Explicit Runge-Kutta tableaux and the integration method selector."""

from enum import Enum
from typing import Union
import numpy as np

from multishoot.core.method import ButcherTableau
from multishoot.core.exceptions import ConfigurationError


def explicit_euler() -> ButcherTableau:
    """Forward Euler method (1st order)."""
    A = np.array([[0.0]])
    b = np.array([1.0])
    c = np.array([0.0])
    return ButcherTableau(A=A, b=b, c=c)


def rk4() -> ButcherTableau:
    """Classic 4th-order Runge-Kutta method."""
    A = np.array([
        [0.0, 0.0, 0.0, 0.0],
        [0.5, 0.0, 0.0, 0.0],
        [0.0, 0.5, 0.0, 0.0],
        [0.0, 0.0, 1.0, 0.0],
    ])
    b = np.array([1.0/6.0, 1.0/3.0, 1.0/3.0, 1.0/6.0])
    c = np.array([0.0, 0.5, 0.5, 1.0])
    return ButcherTableau(A=A, b=b, c=c)


def heun() -> ButcherTableau:
    """Heun's method (2nd order)."""
    A = np.array([
        [0.0, 0.0],
        [1.0, 0.0],
    ])
    b = np.array([0.5, 0.5])
    c = np.array([0.0, 1.0])
    return ButcherTableau(A=A, b=b, c=c)


class IntegrationMethod(Enum):
    """Fixed-step scheme used for defects, cost quadrature and reconstruction."""

    EULER = "euler"
    RK4 = "rk4"

    @property
    def tableau(self) -> ButcherTableau:
        if self is IntegrationMethod.EULER:
            return explicit_euler()
        return rk4()


MethodLike = Union[IntegrationMethod, ButcherTableau, str]


def resolve_tableau(method: MethodLike) -> ButcherTableau:
    """
    Turn a method selector into an explicit tableau.

    Accepts an IntegrationMethod, its name ("euler", "rk4"), or a
    caller-supplied explicit ButcherTableau.
    """
    if isinstance(method, ButcherTableau):
        tableau = method
    elif isinstance(method, IntegrationMethod):
        tableau = method.tableau
    else:
        try:
            tableau = IntegrationMethod(str(method).lower()).tableau
        except ValueError:
            raise ConfigurationError(
                f"Unknown integration method {method!r}",
                context="expected 'euler', 'rk4' or an explicit ButcherTableau",
            ) from None

    if not tableau.is_explicit:
        raise ConfigurationError(
            "Fixed-step shooting requires an explicit tableau",
            context=f"stage type {tableau.stage_type.name}",
        )
    if tableau.b.shape != (tableau.s,) or tableau.c.shape != (tableau.s,):
        raise ConfigurationError(
            "Tableau weights and abscissae must have one entry per stage",
            context=f"s={tableau.s}, b{tableau.b.shape}, c{tableau.c.shape}",
        )
    if not tableau.is_consistent:
        raise ConfigurationError(
            "Tableau is inconsistent",
            context="weights must sum to one and c must equal the row sums of A",
        )
    return tableau
