"""Abstract base class for the estimator wrappers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional

import joblib
import numpy as np
import pandas as pd

from ..utils.logger import get_logger

logger = get_logger(__name__)


class BaseModel(ABC):
    """Wraps one sklearn-compatible estimator together with its settings.

    Subclasses provide :meth:`_build_estimator`; everything else (fitting,
    prediction guards, persistence) lives here.

    Attributes:
        name: Display name used in log messages.
        params: Hyperparameters the estimator was built from.
        estimator: The wrapped estimator, replaced on every :meth:`fit`.
        fitted: Whether :meth:`fit` has completed.
    """

    name: str = "BaseModel"

    def __init__(self, params: Optional[Dict[str, Any]] = None) -> None:
        self.params: Dict[str, Any] = dict(params or {})
        self.estimator: Any = self._build_estimator()
        self.fitted: bool = False

    @abstractmethod
    def _build_estimator(self) -> Any:
        """Return a fresh, unfitted estimator built from :attr:`params`."""

    def _require_fitted(self) -> None:
        if not self.fitted:
            raise RuntimeError(f"{self.name} has not been fitted.")

    def fit(
        self,
        X_train: pd.DataFrame | np.ndarray,
        y_train: pd.Series | np.ndarray,
    ) -> "BaseModel":
        """Fit a fresh estimator; refitting never reuses earlier state.

        Args:
            X_train: Design matrix of the estimation cases.
            y_train: Outcome of the estimation cases.

        Returns:
            ``self`` for chaining.
        """
        if len(X_train) != len(y_train):
            raise ValueError(
                f"Design matrix has {len(X_train)} rows but the outcome has {len(y_train)}."
            )
        logger.debug(f"Fitting {self.name} on {len(X_train)} rows")
        self.estimator = self._build_estimator()
        self.estimator.fit(X_train, y_train)
        self.fitted = True
        return self

    def predict(self, X: pd.DataFrame | np.ndarray) -> np.ndarray:
        self._require_fitted()
        return np.asarray(self.estimator.predict(X))

    def predict_proba(self, X: pd.DataFrame | np.ndarray) -> np.ndarray:
        """Class membership probabilities, one column per class."""
        self._require_fitted()
        return self.estimator.predict_proba(X)

    def save(self, path: Path | str) -> Path:
        """Write the fitted wrapper (estimator and settings) with joblib.

        Args:
            path: Target file, usually ``*.pkl``. Parent directories are created.

        Returns:
            The path written to.
        """
        self._require_fitted()
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        joblib.dump(self, path)
        logger.info(f"Saved {self.name} → {path}")
        return path

    @classmethod
    def load(cls, path: Path | str) -> "BaseModel":
        model = joblib.load(path)
        if not isinstance(model, cls):
            raise TypeError(f"{path} does not contain a {cls.__name__}.")
        return model

    def __repr__(self) -> str:
        state = "fitted" if self.fitted else "unfitted"
        return f"{self.__class__.__name__}({state}, params={self.params})"
