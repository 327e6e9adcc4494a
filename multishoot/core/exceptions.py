"""Exception hierarchy for multiple shooting transcription."""

import logging
from typing import Any, Optional


# Library logger - no configuration, user controls output
logger = logging.getLogger(__name__)


class MultishootError(Exception):
    """
    Base class for all multishoot errors.

    Args:
        message: What went wrong
        context: Optional location or quantity the error refers to
    """

    def __init__(self, message: str, context: Optional[str] = None) -> None:
        self.message = message
        self.context = context

        logger.debug("multishoot exception: %s", self._format_message())
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if self.context:
            return f"{self.message} (Context: {self.context})"
        return self.message


class ConfigurationError(MultishootError, ValueError):
    """
    Invalid transcription settings.

    Examples:
        - Non-positive fixed final time or interval count
        - Implicit Butcher tableau passed to the fixed-step integrator
        - Unknown solver algorithm
    """


class DimensionError(MultishootError, ValueError):
    """
    Array sizes do not match the transcription layout.

    Raised for a decision vector of the wrong length, or a problem callback
    whose output length differs from the one fixed at the first evaluation.
    """


class NumericError(MultishootError, ArithmeticError):
    """Non-finite value produced by dynamics, cost or constraint callbacks."""


class TrajectoryDomainError(MultishootError, ValueError):
    """Continuous trajectory queried outside [0, tf]."""


class ConvergenceError(MultishootError):
    """
    The NLP solver reported a non-positive exit status.

    The decoded (not necessarily feasible) result is attached for
    diagnostics.
    """

    def __init__(
        self,
        message: str,
        status: int,
        result: Optional[Any] = None,
        context: Optional[str] = None,
    ) -> None:
        self.status = status
        self.result = result
        super().__init__(message, context)
