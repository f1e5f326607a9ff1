"""
Confusion matrices for fitted models, including numeric outcomes.

Branching by outcome kind
─────────────────────────
  categorical │ cross-tabulate labels as they are
  count       │ cross-tabulate integers, predictions rounded half-up
  continuous  │ bucket observed and predicted on shared breakpoints,
              │ then cross-tabulate the buckets

Bucketing (continuous outcomes)
───────────────────────────────
  buckets     = min(floor(sqrt(n_included / 3)), 30), at least 1
  breakpoints = buckets + 1 evenly spaced values over [min, max] of the
                included observed and predicted values
  intervals   = [edge_k, edge_k+1), the last one closed at both ends
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Sequence

import numpy as np
import pandas as pd

from ..errors import DimensionMismatch, EmptySample, InvalidWeight
from ..utils.logger import get_logger

logger = get_logger(__name__)

MAX_BUCKETS = 30


class OutcomeKind(str, Enum):
    """How an outcome variable is tabulated."""

    CATEGORICAL = "categorical"
    COUNT = "count"
    CONTINUOUS = "continuous"

    @classmethod
    def infer(cls, values: Any) -> "OutcomeKind":
        """Classify an outcome column.

        Categorical, boolean, string and object columns are categorical.
        Numeric columns whose non-missing values are all non-negative
        integers are counts; every other numeric column is continuous.
        """
        s = pd.Series(values)
        if isinstance(s.dtype, pd.CategoricalDtype) or pd.api.types.is_bool_dtype(s):
            return cls.CATEGORICAL
        if not pd.api.types.is_numeric_dtype(s):
            return cls.CATEGORICAL

        non_null = s.dropna().to_numpy(dtype=float)
        if non_null.size and np.all(non_null >= 0) and np.all(np.mod(non_null, 1) == 0):
            return cls.COUNT
        return cls.CONTINUOUS

    @property
    def is_numeric(self) -> bool:
        return self is not OutcomeKind.CATEGORICAL


@dataclass(frozen=True)
class ConfusionMatrix:
    """Observed-by-predicted table of (weighted) counts.

    Attributes:
        table: Square DataFrame; the index holds observed categories and the
            columns hold the same predicted categories in the same order.
        kind: Outcome kind the table was built for.
        breakpoints: Bucket edges, set only for continuous outcomes.
    """

    table: pd.DataFrame
    kind: OutcomeKind
    breakpoints: Optional[np.ndarray] = None

    @property
    def categories(self) -> list:
        return list(self.table.index)

    @property
    def total(self) -> float:
        return float(self.table.to_numpy().sum())

    @property
    def diagonal(self) -> np.ndarray:
        return np.diag(self.table.to_numpy())

    @property
    def upper_bounds(self) -> list[float]:
        """Upper edge of each bucket, used to label continuous categories."""
        if self.breakpoints is None:
            raise ValueError(f"A {self.kind.value} confusion matrix has no buckets.")
        return [float(edge) for edge in self.breakpoints[1:]]

    def to_numpy(self) -> np.ndarray:
        return self.table.to_numpy(dtype=float)

    def __len__(self) -> int:
        return len(self.table)


# ── bucketing helpers ────────────────────────────────────────────
def bucket_count(n_included: int) -> int:
    """Number of intervals used for *n_included* observations."""
    return max(1, min(int(math.floor(math.sqrt(n_included / 3))), MAX_BUCKETS))


def bucket_breakpoints(min_value: float, max_value: float, n_included: int) -> np.ndarray:
    """Evenly spaced edges from *min_value* to *max_value* inclusive.

    A zero range gives the single degenerate bucket ``[v, v]``.
    """
    if max_value == min_value:
        return np.array([min_value, max_value], dtype=float)
    return np.linspace(min_value, max_value, bucket_count(n_included) + 1)


def assign_buckets(values: np.ndarray, breakpoints: np.ndarray) -> np.ndarray:
    """Return the bucket index of each value, or -1 when it falls outside."""
    n_buckets = len(breakpoints) - 1
    codes = np.searchsorted(breakpoints, values, side="right") - 1
    codes[values == breakpoints[-1]] = n_buckets - 1
    codes[(codes < 0) | (codes >= n_buckets) | np.isnan(values)] = -1
    return codes


def format_edges(breakpoints: np.ndarray) -> list[str]:
    """Format bucket edges with the fewest significant digits (at least 6)
    that keep distinct edges distinct."""
    distinct = np.unique(breakpoints)
    digits = 6
    while digits < 17 and len({f"{v:.{digits}g}" for v in distinct}) < len(distinct):
        digits += 1
    return [f"{v:.{digits}g}" for v in breakpoints]


def interval_labels(breakpoints: np.ndarray) -> list[str]:
    """Human-readable interval labels, e.g. ``"[0, 10)"`` and ``"[20, 30]"``."""
    edges = format_edges(breakpoints)
    n_buckets = len(breakpoints) - 1
    labels = []
    for k in range(n_buckets):
        close = "]" if k == n_buckets - 1 else ")"
        labels.append(f"[{edges[k]}, {edges[k + 1]}{close}")
    return labels


def _sorted_labels(labels: set) -> list:
    try:
        return sorted(labels)
    except TypeError:
        # Mixed label types have no natural order; fall back to their text.
        return sorted(labels, key=str)


# ── builder ──────────────────────────────────────────────────────
class ConfusionMatrixBuilder:
    """Cross-tabulate observed against predicted values.

    The outcome kind is decided once, upstream, and passed in; the builder
    does not re-inspect the values to choose a branch.

    Args:
        kind: An :class:`OutcomeKind` (or its string value).
    """

    def __init__(self, kind: OutcomeKind | str) -> None:
        self.kind = OutcomeKind(kind)

    def build(
        self,
        observed: Sequence[Any] | np.ndarray | pd.Series,
        predicted: Sequence[Any] | np.ndarray | pd.Series,
        subset: Optional[Sequence[bool] | np.ndarray | pd.Series] = None,
        weights: Optional[Sequence[float] | np.ndarray | pd.Series] = None,
    ) -> ConfusionMatrix:
        """Build the confusion matrix.

        Args:
            observed: Ground-truth outcome values.
            predicted: Predicted values aligned with *observed*.
            subset: Optional inclusion mask; ``None`` includes every row.
            weights: Optional non-negative weights; ``None`` means unit weights.

        Returns:
            A :class:`ConfusionMatrix` whose cells hold summed weights.

        Raises:
            DimensionMismatch: If the input lengths disagree.
            EmptySample: If the mask excludes every observation.
            InvalidWeight: If a weight is negative or missing.
        """
        obs = pd.Series(observed).reset_index(drop=True)
        pred = pd.Series(predicted).reset_index(drop=True)
        mask, w = self._validate(obs, pred, subset, weights)

        if self.kind is OutcomeKind.CATEGORICAL:
            return self._categorical(obs, pred, mask, w)
        if self.kind is OutcomeKind.COUNT:
            return self._count(obs, pred, mask, w)
        return self._continuous(obs, pred, mask, w)

    # ── validation ────────────────────────────────────────────────
    @staticmethod
    def _validate(
        obs: pd.Series,
        pred: pd.Series,
        subset: Any,
        weights: Any,
    ) -> tuple[np.ndarray, np.ndarray]:
        n = len(obs)
        if len(pred) != n:
            raise DimensionMismatch(
                f"'observed' has {n} values but 'predicted' has {len(pred)}."
            )

        if subset is None:
            mask = np.ones(n, dtype=bool)
        elif np.ndim(subset) == 0:
            mask = np.full(n, bool(subset))
        else:
            if len(subset) != n:
                raise DimensionMismatch(
                    f"'subset' has {len(subset)} values; expected {n}."
                )
            # Missing mask entries count as excluded.
            mask = pd.Series(subset).reset_index(drop=True).eq(True).to_numpy()

        if weights is None:
            w = np.ones(n, dtype=float)
        else:
            w = np.asarray(weights, dtype=float)
            if w.ndim != 1 or len(w) != n:
                raise DimensionMismatch(
                    f"'weights' has {w.size} values; expected {n}."
                )
            if np.isnan(w).any():
                raise InvalidWeight("'weights' contains missing values.")
            if (w < 0).any():
                raise InvalidWeight("'weights' contains negative values.")

        if not mask.any():
            raise EmptySample("No observations remain after applying the subset.")
        return mask, w

    # ── branches ──────────────────────────────────────────────────
    def _categorical(
        self, obs: pd.Series, pred: pd.Series, mask: np.ndarray, w: np.ndarray
    ) -> ConfusionMatrix:
        # Declared level order first, then undeclared labels in sorted order.
        levels = list(obs.cat.categories) if isinstance(obs.dtype, pd.CategoricalDtype) else []
        known = set(levels)
        seen = pd.concat([obs.astype(object), pred.astype(object)]).dropna()
        extra = {label for label in seen if label not in known}
        levels += _sorted_labels(extra)

        obs_codes = pd.Categorical(obs.astype(object), categories=levels).codes
        pred_codes = pd.Categorical(pred.astype(object), categories=levels).codes
        return ConfusionMatrix(self._tabulate(obs_codes, pred_codes, levels, mask, w), self.kind)

    def _count(
        self, obs: pd.Series, pred: pd.Series, mask: np.ndarray, w: np.ndarray
    ) -> ConfusionMatrix:
        # Round half-up so 2.5 lands in bucket 3.
        obs_num = np.floor(obs.to_numpy(dtype=float) + 0.5)
        pred_num = np.floor(pred.to_numpy(dtype=float) + 0.5)
        values = np.concatenate([obs_num, pred_num])
        levels = np.unique(values[~np.isnan(values)])

        obs_codes = pd.Categorical(obs_num, categories=levels).codes
        pred_codes = pd.Categorical(pred_num, categories=levels).codes
        labels = [int(v) for v in levels]
        return ConfusionMatrix(self._tabulate(obs_codes, pred_codes, labels, mask, w), self.kind)

    def _continuous(
        self, obs: pd.Series, pred: pd.Series, mask: np.ndarray, w: np.ndarray
    ) -> ConfusionMatrix:
        obs_num = obs.to_numpy(dtype=float)
        pred_num = pred.to_numpy(dtype=float)

        included = np.concatenate([obs_num[mask], pred_num[mask]])
        included = included[~np.isnan(included)]
        if included.size == 0:
            raise EmptySample("Every included observation has a missing value.")

        n_included = int(mask.sum())
        breakpoints = bucket_breakpoints(float(included.min()), float(included.max()), n_included)
        logger.debug(
            f"Bucketing {n_included} observations into {len(breakpoints) - 1} intervals "
            f"over [{breakpoints[0]:.6g}, {breakpoints[-1]:.6g}]"
        )

        obs_codes = assign_buckets(obs_num, breakpoints)
        pred_codes = assign_buckets(pred_num, breakpoints)
        table = self._tabulate(obs_codes, pred_codes, interval_labels(breakpoints), mask, w)
        return ConfusionMatrix(table, self.kind, breakpoints)

    @staticmethod
    def _tabulate(
        obs_codes: np.ndarray,
        pred_codes: np.ndarray,
        categories: list,
        mask: np.ndarray,
        w: np.ndarray,
    ) -> pd.DataFrame:
        obs_codes = np.asarray(obs_codes)
        pred_codes = np.asarray(pred_codes)
        keep = mask & (obs_codes >= 0) & (pred_codes >= 0)

        k = len(categories)
        cells = np.zeros((k, k), dtype=float)
        np.add.at(cells, (obs_codes[keep], pred_codes[keep]), w[keep])

        return pd.DataFrame(
            cells,
            index=pd.Index(categories, name="Observed"),
            columns=pd.Index(categories, name="Predicted"),
        )


def build_confusion_matrix(
    observed: Any,
    predicted: Any,
    kind: OutcomeKind | str,
    subset: Any = None,
    weights: Any = None,
) -> ConfusionMatrix:
    """Functional shortcut for ``ConfusionMatrixBuilder(kind).build(...)``."""
    return ConfusionMatrixBuilder(kind).build(observed, predicted, subset, weights)
