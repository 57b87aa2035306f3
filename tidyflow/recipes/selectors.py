"""
Column Selectors

Selectors pick recipe columns by role or by type. They are resolved against
the data and roles a step sees at prep time, and can be combined with ``-``
to exclude columns (``all_nominal() - all_outcomes()``).
"""

from typing import Callable, Dict, List, Sequence, Union

import pandas as pd
from pandas.api import types as ptypes


OUTCOME = "outcome"
PREDICTOR = "predictor"
ID = "ID"


def is_nominal(series: pd.Series) -> bool:
    dtype = series.dtype
    return (
        isinstance(dtype, pd.CategoricalDtype)
        or ptypes.is_object_dtype(dtype)
        or ptypes.is_string_dtype(dtype)
        or ptypes.is_bool_dtype(dtype)
    )


def is_numeric(series: pd.Series) -> bool:
    return ptypes.is_numeric_dtype(series.dtype) and not ptypes.is_bool_dtype(series.dtype)


def is_date(series: pd.Series) -> bool:
    return ptypes.is_datetime64_any_dtype(series.dtype)


class Selector:
    """A named rule selecting columns from (data, roles)."""

    def __init__(self, description: str, rule: Callable[[pd.DataFrame, Dict[str, str]], List[str]]):
        self.description = description
        self._rule = rule

    def resolve(self, data: pd.DataFrame, roles: Dict[str, str]) -> List[str]:
        """Selected column names, in data column order."""
        chosen = set(self._rule(data, roles))
        return [c for c in data.columns if c in chosen]

    def __sub__(self, other: "Selector") -> "Selector":
        other = as_selector(other)

        def rule(data: pd.DataFrame, roles: Dict[str, str]) -> List[str]:
            excluded = set(other.resolve(data, roles))
            return [c for c in self.resolve(data, roles) if c not in excluded]

        return Selector(f"{self.description}, -{other.description}", rule)

    def minus(self, other: "Selector") -> "Selector":
        return self - other

    def __invert__(self) -> "Selector":
        """Every column this selector does not pick."""

        def rule(data: pd.DataFrame, roles: Dict[str, str]) -> List[str]:
            picked = set(self.resolve(data, roles))
            return [c for c in data.columns if c not in picked]

        return Selector(f"-{self.description}", rule)

    def __repr__(self) -> str:
        return f"Selector({self.description})"


def _by_role(role: str) -> Callable[[pd.DataFrame, Dict[str, str]], List[str]]:
    return lambda data, roles: [c for c in data.columns if roles.get(c) == role]


def _by_type(check: Callable[[pd.Series], bool], role: str = None):
    def rule(data: pd.DataFrame, roles: Dict[str, str]) -> List[str]:
        return [
            c for c in data.columns
            if check(data[c]) and (role is None or roles.get(c) == role)
        ]
    return rule


def all_predictors() -> Selector:
    return Selector("all_predictors()", _by_role(PREDICTOR))


def all_outcomes() -> Selector:
    return Selector("all_outcomes()", _by_role(OUTCOME))


def has_role(role: str) -> Selector:
    return Selector(f"has_role({role!r})", _by_role(role))


def all_nominal() -> Selector:
    return Selector("all_nominal()", _by_type(is_nominal))


def all_nominal_predictors() -> Selector:
    return Selector("all_nominal_predictors()", _by_type(is_nominal, PREDICTOR))


def all_numeric() -> Selector:
    return Selector("all_numeric()", _by_type(is_numeric))


def all_numeric_predictors() -> Selector:
    return Selector("all_numeric_predictors()", _by_type(is_numeric, PREDICTOR))


def all_dates() -> Selector:
    return Selector("all_dates()", _by_type(is_date))


def names(*columns: str) -> Selector:
    wanted = list(columns)

    def rule(data: pd.DataFrame, roles: Dict[str, str]) -> List[str]:
        return [c for c in wanted if c in data.columns]

    return Selector(", ".join(wanted), rule)


SelectorLike = Union[Selector, str, Sequence[str]]


def as_selector(value: SelectorLike) -> Selector:
    """Accept a Selector, a column name, or a list of column names."""
    if isinstance(value, Selector):
        return value
    if isinstance(value, str):
        return names(value)
    return names(*value)
