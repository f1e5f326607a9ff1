"""supportvector — support vector machines on tabular data, with confusion
matrices that bucket continuous outcomes."""

from .errors import (
    DimensionMismatch,
    EmptySample,
    FormulaError,
    InvalidWeight,
    MissingDataError,
    SampleTooSmall,
    SupportVectorError,
)
from .evaluation.confusion import ConfusionMatrix, ConfusionMatrixBuilder, OutcomeKind, build_confusion_matrix
from .models.machine import SupportVectorMachine, fit_support_vector_machine

__all__ = [
    "ConfusionMatrix",
    "ConfusionMatrixBuilder",
    "DimensionMismatch",
    "EmptySample",
    "FormulaError",
    "InvalidWeight",
    "MissingDataError",
    "OutcomeKind",
    "SampleTooSmall",
    "SupportVectorError",
    "SupportVectorMachine",
    "build_confusion_matrix",
    "fit_support_vector_machine",
]
__version__ = "1.0.0"
