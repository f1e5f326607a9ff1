"""
Data preparation — resolve a formula against a DataFrame and build the
estimation sample.

Steps
─────
  1. Parse ``outcome ~ x1 + x2`` (``.`` expands to every other column)
  2. Resolve ``subset`` / ``weights`` (vectors or column names)
  3. Clean them: missing subset entries are excluded, missing or negative
     weights become 0
  4. Apply the missing-data policy to the model variables
  5. Describe the sample for report footers
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from ..errors import DimensionMismatch, FormulaError, InvalidWeight, MissingDataError, SampleTooSmall
from ..evaluation.confusion import OutcomeKind
from ..utils.logger import get_logger

logger = get_logger(__name__)

_INTERACTION = re.compile(r"[:*]")


# ── formula ──────────────────────────────────────────────────────
@dataclass(frozen=True)
class Formula:
    """A parsed ``outcome ~ predictors`` model formula."""

    outcome: str
    predictors: Tuple[str, ...]

    @property
    def variables(self) -> list[str]:
        return [self.outcome, *self.predictors]

    def __str__(self) -> str:
        return f"{self.outcome} ~ {' + '.join(self.predictors)}"


def _strip_name(term: str) -> str:
    term = term.strip()
    if len(term) > 1 and term.startswith("`") and term.endswith("`"):
        return term[1:-1]
    return term


def parse_formula(formula: str | Formula, columns: Sequence[str]) -> Formula:
    """Resolve *formula* against the available *columns*.

    Interaction terms (``a:b``, ``a*b``) contribute their variables as
    additive terms; transformations such as ``log(x)`` are rejected.

    Raises:
        FormulaError: If the formula is malformed or names unknown columns.
    """
    if isinstance(formula, Formula):
        missing = [v for v in formula.variables if v not in columns]
        if missing:
            raise FormulaError(f"Variables not found in data: {missing}")
        return formula

    if not isinstance(formula, str) or formula.count("~") != 1:
        raise FormulaError(f"Expected a formula of the form 'outcome ~ x1 + x2', got {formula!r}.")

    lhs, rhs = formula.split("~")
    outcome = _strip_name(lhs)
    if not outcome:
        raise FormulaError("The formula has no outcome variable.")
    if outcome not in columns:
        raise FormulaError(f"Outcome variable '{outcome}' not found in data.")

    predictors: list[str] = []
    for term in rhs.split("+"):
        term = term.strip()
        if not term:
            raise FormulaError(f"Empty term in formula {formula!r}.")
        if term == ".":
            names = [c for c in columns if c != outcome]
        else:
            names = [_strip_name(part) for part in _INTERACTION.split(term)]
        for name in names:
            if name not in columns:
                raise FormulaError(
                    f"Variable '{name}' not found in data; transformations are not supported."
                )
            if name != outcome and name not in predictors:
                predictors.append(name)

    if not predictors:
        raise FormulaError(f"The formula {formula!r} has no predictors.")
    return Formula(outcome, tuple(predictors))


# ── missing-data policy ──────────────────────────────────────────
class MissingPolicy(str, Enum):
    """What to do with cases whose model variables are missing."""

    ERROR = "error"
    EXCLUDE = "exclude"

    @property
    def label(self) -> str:
        return {
            MissingPolicy.ERROR: "Error if missing data",
            MissingPolicy.EXCLUDE: "Exclude cases with missing data",
        }[self]

    @classmethod
    def parse(cls, value: "MissingPolicy | str") -> "MissingPolicy":
        """Accept a member, its value (``"exclude"``) or its label."""
        if isinstance(value, cls):
            return value
        text = str(value).strip().lower()
        for policy in cls:
            if text in (policy.value, policy.label.lower()):
                return policy
        raise ValueError(f"Unknown missing-data option: {value!r}")


# ── subset / weights ─────────────────────────────────────────────
def resolve_vector(
    arg: Any, data: pd.DataFrame, name: str
) -> Tuple[Optional[np.ndarray], Optional[str]]:
    """Turn a ``subset`` or ``weights`` argument into values plus a display name.

    *arg* may be ``None``, a scalar, a sequence or the name of a column.
    """
    if arg is None:
        return None, None
    if isinstance(arg, str):
        if arg not in data.columns:
            raise FormulaError(f"'{name}' refers to an unknown column '{arg}'.")
        return data[arg].to_numpy(), arg
    if isinstance(arg, pd.Series):
        return arg.to_numpy(), None if arg.name is None else str(arg.name)
    return np.asarray(arg), None


def clean_subset(subset: Any, n: int) -> np.ndarray:
    """Return a boolean inclusion mask of length *n*.

    ``None`` and scalar ``True`` include every row; missing entries exclude.
    """
    if subset is None:
        return np.ones(n, dtype=bool)
    if np.ndim(subset) == 0:
        return np.full(n, bool(subset))
    if len(subset) != n:
        raise DimensionMismatch(
            "'subset' and 'data' are required to have the same number of observations. They do not."
        )
    return pd.Series(subset).eq(True).to_numpy()


def clean_weights(weights: Any, n: int) -> Optional[np.ndarray]:
    """Return float weights of length *n*, or ``None`` when unweighted.

    Missing and negative weights are set to 0.
    """
    if weights is None:
        return None
    try:
        w = np.asarray(weights, dtype=float).copy()
    except (TypeError, ValueError) as exc:
        raise InvalidWeight(f"'weights' must be numeric: {exc}") from exc
    if w.ndim != 1 or len(w) != n:
        raise DimensionMismatch(
            "'weights' and 'data' are required to have the same number of observations. They do not."
        )

    n_missing = int(np.isnan(w).sum())
    n_negative = int((w < 0).sum())
    if n_missing:
        logger.warning(f"{n_missing} missing weights set to 0")
    if n_negative:
        logger.warning(f"{n_negative} negative weights set to 0")
    w[np.isnan(w) | (w < 0)] = 0.0
    return w


def adjust_data_to_reflect_weights(
    data: pd.DataFrame, weights: Sequence[float] | np.ndarray, seed: int = 123
) -> pd.DataFrame:
    """Resample *data* so that row frequencies reflect *weights*.

    Weights are rescaled to sum to ``len(data)``.  Each row is repeated
    ``floor(w)`` times and the shortfall is drawn without replacement with
    probability proportional to the fractional parts.

    Raises:
        DimensionMismatch: If the lengths disagree.
        InvalidWeight: If a weight is negative or all weights are zero.
    """
    w = np.asarray(weights, dtype=float)
    n = len(data)
    if len(w) != n:
        raise DimensionMismatch(f"'weights' has {len(w)} values; expected {n}.")
    if np.isnan(w).any() or (w < 0).any():
        raise InvalidWeight("Weights must be non-negative and non-missing.")
    if w.sum() <= 0:
        raise InvalidWeight("Weights sum to zero.")

    scaled = w * n / w.sum()
    whole = np.floor(scaled).astype(int)
    rows = np.repeat(np.arange(n), whole)

    shortfall = n - int(whole.sum())
    if shortfall > 0:
        frac = scaled - whole
        rng = np.random.RandomState(seed)
        extra = rng.choice(n, size=shortfall, replace=False, p=frac / frac.sum())
        rows = np.concatenate([rows, extra])

    logger.debug(f"Resampled {n} rows to reflect weights ({len(np.unique(rows))} distinct)")
    return data.iloc[np.sort(rows)]


# ── sample ───────────────────────────────────────────────────────
@dataclass
class PreparedData:
    """Estimation sample plus everything needed to report on it.

    Attributes:
        estimation_data: Model variables for the rows used in estimation,
            indexed as in the original data.
        formula: Resolved formula.
        outcome_kind: Kind of the outcome variable.
        subset: Mask over the original rows; True where the row is used.
        weights: Cleaned weights over the original rows, or ``None``.
        description: Human-readable description of the sample.
        variable_labels: Display label per model variable.
        n_total: Number of rows in the original data.
    """

    estimation_data: pd.DataFrame
    formula: Formula
    outcome_kind: OutcomeKind
    subset: np.ndarray
    weights: Optional[np.ndarray]
    description: str
    variable_labels: Dict[str, str] = field(default_factory=dict)
    n_total: int = 0

    @property
    def outcome(self) -> str:
        return self.formula.outcome

    @property
    def predictors(self) -> list[str]:
        return list(self.formula.predictors)

    @property
    def n_observations(self) -> int:
        return len(self.estimation_data)

    @property
    def estimation_weights(self) -> Optional[np.ndarray]:
        """Weights of the estimation rows only."""
        if self.weights is None:
            return None
        return self.weights[self.subset]


def describe_sample(
    n_used: int,
    n_total: int,
    subset_name: Optional[str] = None,
    subset_applied: bool = False,
    missing_excluded: bool = False,
    weight_name: Optional[str] = None,
    weighted: bool = False,
) -> str:
    """Build the footer text describing the estimation sample."""
    text = f"n = {n_used} cases used in estimation"
    if n_used < n_total:
        text += f" of a total sample size of {n_total}"
    if subset_applied:
        text += f" (subset: {subset_name})" if subset_name else " (subset applied)"
    text += ";"
    if missing_excluded:
        text += " cases containing missing values have been excluded;"
    if weighted:
        text += f" data has been weighted (weight: {weight_name});" if weight_name else " data has been weighted;"
    return text


def prepare_data(
    formula: str | Formula,
    data: pd.DataFrame,
    subset: Any = None,
    weights: Any = None,
    missing: MissingPolicy | str = MissingPolicy.EXCLUDE,
    labels: Optional[Dict[str, str]] = None,
) -> PreparedData:
    """Build the estimation sample for *formula* from *data*.

    Args:
        formula: ``"outcome ~ x1 + x2"`` or a :class:`Formula`.
        data: Source data.
        subset: Inclusion mask, or the name of a boolean column.
        weights: Sampling weights, or the name of a numeric column.
        missing: Missing-data policy (member, value or label).
        labels: Optional display labels by column; falls back to
            ``data.attrs["labels"]`` and then to the column names.

    Returns:
        A :class:`PreparedData`.

    Raises:
        FormulaError: If the formula cannot be resolved.
        DimensionMismatch: If subset or weights have the wrong length.
        MissingDataError: If the policy is ``ERROR`` and model variables
            contain missing values.
        SampleTooSmall: If too few rows remain.
    """
    if not isinstance(data, pd.DataFrame):
        raise TypeError(f"'data' must be a pandas DataFrame, got {type(data).__name__}.")

    parsed = parse_formula(formula, list(data.columns))
    policy = MissingPolicy.parse(missing)
    n_total = len(data)

    subset_values, subset_name = resolve_vector(subset, data, "subset")
    weight_values, weight_name = resolve_vector(weights, data, "weights")
    in_subset = clean_subset(subset_values, n_total)
    clean_w = clean_weights(weight_values, n_total)

    model_data = data[parsed.variables]
    complete = model_data.notna().all(axis=1).to_numpy()
    incomplete = in_subset & ~complete
    if incomplete.any():
        if policy is MissingPolicy.ERROR:
            raise MissingDataError(
                "The data contains missing values. Change the 'missing' option to run the analysis."
            )
        logger.info(f"Excluding {int(incomplete.sum())} cases with missing data")

    used = in_subset & complete
    estimation_data = model_data.loc[used]
    n_used = len(estimation_data)
    if n_used < len(parsed.variables) + 1:
        raise SampleTooSmall(
            "The sample size is too small for it to be possible to conduct the analysis."
        )

    provided = labels if labels is not None else data.attrs.get("labels", {})
    variable_labels = {v: str(provided.get(v, v)) for v in parsed.variables}

    description = describe_sample(
        n_used,
        n_total,
        subset_name=subset_name,
        subset_applied=not in_subset.all(),
        missing_excluded=bool(incomplete.any()),
        weight_name=weight_name,
        weighted=clean_w is not None,
    )
    logger.info(description)

    return PreparedData(
        estimation_data=estimation_data,
        formula=parsed,
        outcome_kind=OutcomeKind.infer(data[parsed.outcome]),
        subset=used,
        weights=clean_w,
        description=description,
        variable_labels=variable_labels,
        n_total=n_total,
    )
