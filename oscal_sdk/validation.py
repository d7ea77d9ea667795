"""Validation of decoded OSCAL models."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from typing import Any

from .modelutils import has_duplicate_values_by_name

OSCAL_VERSION = "1.1.3"

Models = Mapping[str, Any]


class ValidationError(ValueError):
    """Raised when model data is not valid for a validator."""

    def __init__(self, validator_type: str, model: str, err: object) -> None:
        super().__init__(f"{validator_type}: {err}")
        self.type = validator_type
        self.model = model
        self.err = err


class _JoinedErrors(ValueError):
    """Several validation failures reported together, one message per line."""

    def __init__(self, errors: list[Exception]) -> None:
        super().__init__("\n".join(str(error) for error in errors))
        self.errors = errors


class Validator(ABC):
    """Semantic validation of decoded OSCAL models."""

    @abstractmethod
    def validate(self, models: Models) -> None:
        """Raise an exception if ``models`` is not valid."""


class NoopValidator(Validator):
    """A validator that accepts everything."""

    def validate(self, models: Models) -> None:
        return None


class UuidValidator(Validator):
    """Rejects models with duplicate UUIDs, or duplicate param-ids in profiles."""

    def validate(self, models: Models) -> None:
        if has_duplicate_values_by_name(models, "uuid"):
            raise ValueError("duplicate UUIDs found")
        if models.get("profile") is not None and has_duplicate_values_by_name(
            models, "param-id"
        ):
            raise ValueError("duplicate ParamIds found")


class ValidatorFunc(Validator):
    """A validator backed by a plain callable."""

    def __init__(self, func: Callable[[Models], None]) -> None:
        self._func = func

    def validate(self, models: Models) -> None:
        self._func(models)

    def __call__(self, models: Models) -> None:
        self.validate(models)


def validate_all(*args: Validator) -> ValidatorFunc:
    """Return a validator running each of ``args`` in turn.

    All validators run; if any fail, a ValueError carrying every failure
    (in its ``errors`` attribute) is raised.
    """
    validators = tuple(args)

    def run(models: Models) -> None:
        errors: list[Exception] = []
        for validator in validators:
            try:
                validator.validate(models)
            except Exception as exc:  # noqa: BLE001 - every failure is collected
                errors.append(exc)
        if errors:
            raise _JoinedErrors(errors)

    return ValidatorFunc(run)