"""Loading OSCAL documents and creating sample model data."""

from __future__ import annotations

import json
from datetime import datetime
from typing import IO, Any, Optional

from .validation import OSCAL_VERSION, Validator

SAMPLE_REQUIRED_STRING = "REPLACE_ME"
_DEFAULT_VERSION = "0.1.0"

_MODEL_KEYS = frozenset(
    {
        "catalog",
        "profile",
        "component-definition",
        "system-security-plan",
        "assessment-plan",
        "assessment-results",
        "plan-of-action-and-milestones",
    }
)


def new_sample_metadata() -> dict[str, Any]:
    """Return OSCAL metadata with default values for every required field."""
    return {
        "title": SAMPLE_REQUIRED_STRING,
        "last-modified": datetime.now().astimezone().isoformat(),
        "oscal-version": OSCAL_VERSION,
        "version": _DEFAULT_VERSION,
    }


def _load(reader: IO, validator: Validator, key: str) -> Optional[dict[str, Any]]:
    data = json.load(reader)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError(
            f"json: cannot unmarshal {type(data).__name__} into OSCAL models"
        )
    for field_name in data:
        if field_name not in _MODEL_KEYS:
            raise ValueError(f'json: unknown field "{field_name}"')
    validator.validate(data)
    return data.get(key)


def new_catalog(reader: IO, validator: Validator) -> Optional[dict[str, Any]]:
    """Read an OSCAL catalog document."""
    return _load(reader, validator, "catalog")


def new_profile(reader: IO, validator: Validator) -> Optional[dict[str, Any]]:
    """Read an OSCAL profile document."""
    return _load(reader, validator, "profile")


def new_component_definition(reader: IO, validator: Validator) -> Optional[dict[str, Any]]:
    """Read an OSCAL component definition document."""
    return _load(reader, validator, "component-definition")


def new_system_security_plan(reader: IO, validator: Validator) -> Optional[dict[str, Any]]:
    """Read an OSCAL system security plan document."""
    return _load(reader, validator, "system-security-plan")


def new_assessment_plan(reader: IO, validator: Validator) -> Optional[dict[str, Any]]:
    """Read an OSCAL assessment plan document."""
    return _load(reader, validator, "assessment-plan")


def new_assessment_results(reader: IO, validator: Validator) -> Optional[dict[str, Any]]:
    """Read an OSCAL assessment results document."""
    return _load(reader, validator, "assessment-results")


def new_poam(reader: IO, validator: Validator) -> Optional[dict[str, Any]]:
    """Read an OSCAL plan of action and milestones document."""
    return _load(reader, validator, "plan-of-action-and-milestones")