"""Explicit Runge-Kutta tableaux."""

from multishoot.methods.runge_kutta import (
    IntegrationMethod,
    explicit_euler,
    rk4,
    heun,
    resolve_tableau,
)

__all__ = [
    "IntegrationMethod",
    "explicit_euler",
    "rk4",
    "heun",
    "resolve_tableau",
]
