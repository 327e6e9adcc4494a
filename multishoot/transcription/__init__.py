"""Decision vector, cost and constraints of the shooting NLP."""

from multishoot.transcription.codec import DecisionLayout, DecodedGuess
from multishoot.transcription.context import (
    ConstraintDimensions,
    TranscriptionContext,
    build_context,
)
from multishoot.transcription.cost import bolza_cost
from multishoot.transcription.constraints import ConstraintAssembler

__all__ = [
    "DecisionLayout",
    "DecodedGuess",
    "ConstraintDimensions",
    "TranscriptionContext",
    "build_context",
    "bolza_cost",
    "ConstraintAssembler",
]
