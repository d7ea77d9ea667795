"""OSCAL Compass extensions expressed through OSCAL properties.

OSCAL objects are handled as JSON-shaped dictionaries that use the
hyphenated OSCAL key names (``name``, ``value``, ``ns``, ``class``, ...).
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Optional

TRESTLE_NAMESPACE = "https://oscal-compass.github.io/compliance-trestle/schemas/oscal"

RULE_ID_PROP = "Rule_Id"
RULE_DESCRIPTION_PROP = "Rule_Description"
CHECK_ID_PROP = "Check_Id"
CHECK_DESCRIPTION_PROP = "Check_Description"
PARAMETER_ID_PROP = "Parameter_Id"
PARAMETER_DESCRIPTION_PROP = "Parameter_Description"
PARAMETER_DEFAULT_PROP = "Parameter_Value_Default"
FRAMEWORK_PROP = "Framework_Short_Name"
TEST_PARAMETER_CLASS = "test-parameter"
ASSESSMENT_RULE_ID_PROP = "assessment-rule-id"
ASSESSMENT_CHECK_ID_PROP = "assessment-check-id"
SKIPPED_RULES_PROPERTY = "skipped"
WAIVED_RULES_PROPERTY = "waived"

Property = Mapping[str, Any]


@dataclass
class Parameter:
    """A parameter or variable that alters rule logic."""

    id: str = ""
    description: str = ""
    value: str = ""


@dataclass
class Check:
    """A concrete implementation of a rule."""

    id: str = ""
    description: str = ""


@dataclass
class Rule:
    """A single compliance rule."""

    id: str = ""
    description: str = ""
    parameters: list[Parameter] = field(default_factory=list)


@dataclass
class RuleSet:
    """A rule together with the checks registered for it."""

    rule: Rule = field(default_factory=Rule)
    checks: list[Check] = field(default_factory=list)


def find_all_props(
    props: Iterable[Property],
    name: str = "",
    prop_class: str = "",
    namespace: str = TRESTLE_NAMESPACE,
) -> list[Property]:
    """Return the properties in ``namespace`` matching the optional name and class.

    A property matches the namespace when its ``ns`` contains it, so an empty
    namespace matches every property.
    """
    return [
        prop
        for prop in props
        if namespace in prop.get("ns", "")
        and (not name or prop.get("name", "") == name)
        and (not prop_class or prop.get("class", "") == prop_class)
    ]


def get_trestle_prop(name: str, props: Iterable[Property]) -> Optional[Property]:
    """Return the first trestle-namespaced property called ``name``, or None."""
    for prop in props:
        if prop.get("name", "") == name and TRESTLE_NAMESPACE in prop.get("ns", ""):
            return prop
    return None