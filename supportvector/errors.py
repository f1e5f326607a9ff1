"""Exceptions raised while preparing data and tabulating predictions."""

from __future__ import annotations


class SupportVectorError(ValueError):
    """Base class for every error raised by :mod:`supportvector`."""


class DimensionMismatch(SupportVectorError):
    """Observed, predicted, subset or weight vectors differ in length."""


class EmptySample(SupportVectorError):
    """No observations remain after applying the inclusion mask."""


class InvalidWeight(SupportVectorError):
    """A weight is negative or missing."""


class MissingDataError(SupportVectorError):
    """Model variables contain missing values and the policy forbids them."""


class SampleTooSmall(SupportVectorError):
    """Too few estimation rows for the number of model variables."""


class FormulaError(SupportVectorError):
    """A model formula could not be resolved against the data."""
