"""
Schema Validator

Validates record-set schemas: required columns, column kinds, schema
equality between two record sets and absence of missing values.
"""

from typing import Any, Callable, Dict, List, Optional, Sequence
from dataclasses import dataclass, field

import pandas as pd
from pandas.api import types as ptypes

from tidyflow.core.base import PandasComponent
from tidyflow.core.exceptions import MissingValueError, SchemaValidationError


@dataclass
class SchemaValidationResult:
    """Result of schema validation."""
    is_valid: bool
    missing_columns: List[str]
    extra_columns: List[str]
    type_mismatches: List[Dict[str, str]]
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'is_valid': self.is_valid,
            'missing_columns': self.missing_columns,
            'extra_columns': self.extra_columns,
            'type_mismatches': self.type_mismatches,
            'errors': self.errors
        }


def describe_schema(df: pd.DataFrame) -> Dict[str, str]:
    """Column name to dtype string, in column order."""
    return {col: str(dtype) for col, dtype in df.dtypes.items()}


class SchemaValidator(PandasComponent):
    """
    Validates pandas DataFrames against expected column kinds.

    Kinds: ``numeric``, ``integer``, ``categorical``, ``datetime``,
    ``string``, ``boolean``.
    """

    KIND_CHECKS: Dict[str, Callable[[Any], bool]] = {
        'numeric': ptypes.is_numeric_dtype,
        'integer': ptypes.is_integer_dtype,
        'categorical': lambda dtype: isinstance(dtype, pd.CategoricalDtype),
        'datetime': ptypes.is_datetime64_any_dtype,
        'string': lambda dtype: ptypes.is_string_dtype(dtype) or ptypes.is_object_dtype(dtype),
        'boolean': ptypes.is_bool_dtype,
    }

    def __init__(self, config: Optional[Dict[str, Any]] = None, name: Optional[str] = None):
        super().__init__(config, name or "SchemaValidator")

    def run(self, df: pd.DataFrame, required_columns: Sequence[str]) -> SchemaValidationResult:
        """Run schema validation."""
        return self.validate_schema(df, required_columns)

    def validate_schema(
        self,
        df: pd.DataFrame,
        required_columns: Sequence[str],
        kinds: Optional[Dict[str, str]] = None,
        strict: bool = False,
        name: str = "data"
    ) -> SchemaValidationResult:
        """
        Validate a DataFrame against required columns and column kinds.

        Args:
            df: DataFrame to validate
            required_columns: Columns that must be present
            kinds: Optional column -> kind mapping
            strict: If True, columns not listed in required_columns are errors
            name: Record set name for log messages

        Returns:
            SchemaValidationResult with validation details
        """
        kinds = kinds or {}
        actual = set(df.columns)
        expected = set(required_columns) | set(kinds)

        missing_columns = [c for c in list(required_columns) + list(kinds) if c not in actual]
        missing_columns = list(dict.fromkeys(missing_columns))
        extra_columns = [c for c in df.columns if c not in expected]

        type_mismatches = []
        for col, kind in kinds.items():
            if col not in actual:
                continue
            check = self.KIND_CHECKS.get(kind)
            if check is None:
                self.logger.warning(f"Unknown column kind: {kind}")
                continue
            if not check(df[col].dtype):
                type_mismatches.append({
                    'column': col,
                    'expected': kind,
                    'actual': str(df[col].dtype)
                })

        errors = []
        if missing_columns:
            errors.append(f"Missing columns: {missing_columns}")
            self.logger.error(f"Missing columns in {name}: {missing_columns}")
        if extra_columns and strict:
            errors.append(f"Unexpected columns: {extra_columns}")
            self.logger.warning(f"Extra columns in {name}: {extra_columns}")
        for mismatch in type_mismatches:
            errors.append(
                f"Type mismatch for '{mismatch['column']}': "
                f"expected {mismatch['expected']}, got {mismatch['actual']}"
            )

        is_valid = not missing_columns and not type_mismatches
        if strict:
            is_valid = is_valid and not extra_columns

        if is_valid:
            self.logger.debug(f"Schema validation passed for {name}")

        return SchemaValidationResult(
            is_valid=is_valid,
            missing_columns=missing_columns,
            extra_columns=extra_columns,
            type_mismatches=type_mismatches,
            errors=errors
        )

    def validate_and_raise(
        self,
        df: pd.DataFrame,
        required_columns: Sequence[str],
        kinds: Optional[Dict[str, str]] = None,
        strict: bool = False,
        name: str = "data"
    ) -> None:
        """
        Validate schema and raise if invalid.

        Raises:
            SchemaValidationError: If validation fails
        """
        result = self.validate_schema(df, required_columns, kinds, strict, name)
        if not result.is_valid:
            raise SchemaValidationError(
                f"Schema validation failed for {name}: {'; '.join(result.errors)}",
                expected_schema={'columns': list(required_columns), 'kinds': dict(kinds or {})},
                actual_schema=describe_schema(df),
                validation_errors=[result.to_dict()]
            )

    def assert_same_schema(
        self,
        reference: pd.DataFrame,
        other: pd.DataFrame,
        name: str = "data"
    ) -> None:
        """
        Require identical column names, order and dtypes.

        Raises:
            SchemaValidationError: If the two schemas differ
        """
        expected = describe_schema(reference)
        actual = describe_schema(other)
        if expected != actual:
            raise SchemaValidationError(
                f"Schema of {name} differs from the reference record set",
                expected_schema=expected,
                actual_schema=actual
            )

    def assert_no_missing(
        self,
        df: pd.DataFrame,
        columns: Optional[Sequence[str]] = None,
        name: str = "data"
    ) -> None:
        """
        Require that no missing values remain.

        Raises:
            MissingValueError: With per-column missing counts
        """
        subset = df[list(columns)] if columns is not None else df
        counts = subset.isna().sum()
        counts = counts[counts > 0]
        if len(counts) > 0:
            raise MissingValueError(
                f"{name} has missing values in {len(counts)} column(s)",
                columns={str(k): int(v) for k, v in counts.items()}
            )
