from .confusion import ConfusionMatrix, ConfusionMatrixBuilder, OutcomeKind, build_confusion_matrix

__all__ = ["ConfusionMatrix", "ConfusionMatrixBuilder", "OutcomeKind", "build_confusion_matrix"]
