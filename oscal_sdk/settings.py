"""Framework-specific settings that tailor component rule sets.

Settings record which rules a control implementation maps and which
parameter values it selects. They are built from control implementations
in component definitions and system security plans, or from the
activities of an assessment plan.
"""

from __future__ import annotations

import posixpath
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field, replace
from typing import Any, Optional

from .components import ControlImplementationSetAdapter, Implementation, Requirement
from .extensions import (
    FRAMEWORK_PROP,
    RULE_ID_PROP,
    SKIPPED_RULES_PROPERTY,
    TEST_PARAMETER_CLASS,
    RuleSet,
    find_all_props,
    get_trestle_prop,
)
from .rules import Store

_EXPECTED_PATH_PARTS = 3
_MODEL_ID_INDEX = 1
_FILENAME_INDEX = 2


class RulesNotFoundError(LookupError):
    """Raised when no rule of a component is selected by the given settings."""


@dataclass
class Settings:
    """Rules mapped to a requirement and the parameter values selected for it."""

    mapped_rules: set[str] = field(default_factory=set)
    selected_parameters: dict[str, str] = field(default_factory=dict)

    def apply_parameter_settings(self, rule_set: RuleSet) -> RuleSet:
        """Return ``rule_set`` with the selected parameter values applied.

        The given rule set is never altered; when something changes a new
        rule set with copied parameters is returned.
        """
        if not self.selected_parameters or not rule_set.rule.parameters:
            return rule_set
        parameters = [
            replace(param, value=self.selected_parameters.get(param.id, param.value))
            for param in rule_set.rule.parameters
        ]
        return RuleSet(
            rule=replace(rule_set.rule, parameters=parameters),
            checks=rule_set.checks,
        )

    def contains_rule(self, rule_id: str) -> bool:
        """Return whether ``rule_id`` is mapped in these settings."""
        return rule_id in self.mapped_rules


@dataclass
class ImplementationSettings:
    """Settings for rule sets at the control implementation and control level."""

    settings: Settings = field(default_factory=Settings)
    implemented_req_settings: dict[str, Settings] = field(default_factory=dict)
    controls_by_id: dict[str, dict[str, Any]] = field(default_factory=dict)
    controls_by_rules: dict[str, set[str]] = field(default_factory=dict)

    def all_settings(self) -> Settings:
        """Return the settings collected for the whole implementation."""
        return self.settings

    def all_controls(self) -> list[dict[str, Any]]:
        """Return the selected controls applicable to the implementation."""
        return list(self.controls_by_id.values())

    def by_control_id(self, control_id: str) -> Settings:
        """Return the requirement settings for ``control_id``."""
        requirement = self.implemented_req_settings.get(control_id)
        if requirement is None:
            raise LookupError(f"control {control_id} not found in settings")
        return requirement

    def applicable_controls(self, rule_id: str) -> list[dict[str, Any]]:
        """Return the selected controls that ``rule_id`` is mapped to."""
        controls = self.controls_by_rules.get(rule_id)
        if controls is None:
            raise LookupError(f"rule id {rule_id} not found in settings")
        assessed = []
        for control in controls:
            selected = self.controls_by_id.get(control)
            if selected is None:
                raise LookupError(
                    f"assessed control object {control} not found for rule {rule_id}"
                )
            assessed.append(selected)
        return assessed

    def merge(self, implementation: Implementation) -> None:
        """Merge another control implementation, including existing requirements."""
        _set_parameters(implementation.set_parameters(), self.settings.selected_parameters)

        for requirement in implementation.requirements():
            control_id = requirement.control_id()
            existing = self.implemented_req_settings.get(control_id)
            if existing is None:
                self._add_requirement(requirement)
                continue

            incoming = settings_from_implemented_requirement(requirement)
            if not incoming.mapped_rules:
                continue
            for rule in incoming.mapped_rules:
                self.controls_by_rules.setdefault(rule, set()).add(control_id)
                self.settings.mapped_rules.add(rule)
                existing.mapped_rules.add(rule)
            existing.selected_parameters.update(incoming.selected_parameters)

    def _add_requirement(self, requirement: Requirement) -> None:
        control_id = requirement.control_id()
        requirement_settings = settings_from_implemented_requirement(requirement)
        # Requirements without mapped rules are not recorded.
        if not requirement_settings.mapped_rules:
            return
        for rule in requirement_settings.mapped_rules:
            self.controls_by_rules.setdefault(rule, set()).add(control_id)
            self.controls_by_id[control_id] = {"control-id": control_id}
            self.settings.mapped_rules.add(rule)
        self.implemented_req_settings[control_id] = requirement_settings


@dataclass
class FrameworkSource:
    """A control source or framework."""

    title: str = ""
    description: str = ""
    href: str = ""


def _set_parameters(
    parameters: Iterable[Mapping[str, Any]], selected: dict[str, str]
) -> None:
    for parameter in parameters:
        values = parameter.get("values") or []
        # Parameters for rule selection take exactly one value.
        if len(values) != 1:
            continue
        selected[parameter.get("param-id", "")] = values[0]


def new_implementation_settings(
    control_implementation: Implementation,
) -> ImplementationSettings:
    """Build settings from a control implementation and its requirements."""
    implementation = ImplementationSettings()
    _set_parameters(
        control_implementation.set_parameters(),
        implementation.settings.selected_parameters,
    )
    for requirement in control_implementation.requirements():
        implementation._add_requirement(requirement)
    return implementation


def new_assessment_activities_settings(
    activities: Iterable[Mapping[str, Any]],
) -> Settings:
    """Build settings from assessment plan activities.

    Each activity title is a rule id and its test-parameter properties are
    the selected parameter values. Activities without properties and those
    marked as skipped are ignored.
    """
    settings = Settings()
    for activity in activities:
        props = activity.get("props")
        if props is None:
            continue
        skipped = get_trestle_prop(SKIPPED_RULES_PROPERTY, props)
        if skipped is not None and skipped.get("value") == "true":
            continue
        for param in find_all_props(props, prop_class=TEST_PARAMETER_CLASS):
            settings.selected_parameters[param.get("name", "")] = param.get("value", "")
        settings.mapped_rules.add(activity.get("title", ""))
    return settings


def settings_from_implemented_requirement(requirement: Requirement) -> Settings:
    """Build settings from an implemented requirement and its statements."""
    settings = Settings()
    for prop in find_all_props(requirement.props(), name=RULE_ID_PROP):
        settings.mapped_rules.add(prop.get("value", ""))

    _set_parameters(requirement.set_parameters(), settings.selected_parameters)

    for statement in requirement.statements():
        for prop in find_all_props(statement.props(), name=RULE_ID_PROP):
            settings.mapped_rules.add(prop.get("value", ""))
    return settings


def get_framework_short_name(implementation: Mapping[str, Any]) -> Optional[str]:
    """Return the short name of the control source of an implementation, or None.

    The framework property wins; otherwise the name is taken from a source
    of the form ``$MODEL/$MODEL_ID/$MODEL.json``.
    """
    props = implementation.get("props")
    if props is not None:
        prop = get_trestle_prop(FRAMEWORK_PROP, props)
        if prop is not None:
            return prop.get("value", "")

    parts = posixpath.normpath(implementation.get("source", "")).split("/")
    if len(parts) == _EXPECTED_PATH_PARTS and parts[_FILENAME_INDEX].endswith(".json"):
        return parts[_MODEL_ID_INDEX]
    return None


def by_framework(
    framework: str, control_implementations: Sequence[Mapping[str, Any]]
) -> tuple[ImplementationSettings, FrameworkSource]:
    """Return merged settings and the source for every implementation of ``framework``."""
    implementation_settings: Optional[ImplementationSettings] = None
    source = FrameworkSource()

    for control_implementation in control_implementations:
        if get_framework_short_name(control_implementation) != framework:
            continue
        adapter = ControlImplementationSetAdapter(control_implementation)
        if implementation_settings is None:
            implementation_settings = new_implementation_settings(adapter)
            source = FrameworkSource(
                title=framework,
                description=control_implementation.get("description", ""),
                href=control_implementation.get("source", ""),
            )
        else:
            implementation_settings.merge(adapter)

    if implementation_settings is None:
        raise LookupError(f"framework {framework} is not in control implementations")
    return implementation_settings, source


def apply_to_component(component_id: str, store: Store, settings: Settings) -> list[RuleSet]:
    """Return the component's rule sets that the settings map, with parameters applied."""
    resolved = [
        settings.apply_parameter_settings(rule_set)
        for rule_set in store.find_by_component(component_id)
        if settings.contains_rule(rule_set.rule.id)
    ]
    if not resolved:
        raise RulesNotFoundError(
            f"component {component_id}: no rules found with criteria"
        )
    return resolved