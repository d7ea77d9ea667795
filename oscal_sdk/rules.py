"""Indexing and lookup of rule sets declared through component properties.

Rules, checks and parameters are attached to OSCAL components as
trestle-namespaced properties. Properties that belong to the same rule
share the same ``remarks`` value.
"""

from __future__ import annotations

import copy
import re
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping, Sequence
from typing import Any, Optional

from .components import Component
from .extensions import (
    CHECK_DESCRIPTION_PROP,
    CHECK_ID_PROP,
    PARAMETER_DEFAULT_PROP,
    PARAMETER_DESCRIPTION_PROP,
    PARAMETER_ID_PROP,
    RULE_DESCRIPTION_PROP,
    RULE_ID_PROP,
    Check,
    Parameter,
    RuleSet,
    get_trestle_prop,
)

_NUMBERED_PARAMETER = re.compile(r"Parameter_.*\d+")
_UNNUMBERED_SUFFIX = "0"


class RuleNotFoundError(LookupError):
    """Raised when a rule cannot be found in a store."""

    def __init__(self, message: str = "associated rule object not found") -> None:
        super().__init__(message)


class ComponentsNotFoundError(ValueError):
    """Raised when a store is given no components to index."""

    def __init__(self, message: str = "no components not found") -> None:
        super().__init__(message)


class Store(ABC):
    """Searching of rule sets built from OSCAL rule and check extensions."""

    @abstractmethod
    def get_by_rule_id(self, rule_id: str) -> RuleSet:
        """Return the rule set for ``rule_id``."""

    @abstractmethod
    def get_by_check_id(self, check_id: str) -> RuleSet:
        """Return the rule set that owns ``check_id``."""

    @abstractmethod
    def find_by_component(self, component_id: str) -> list[RuleSet]:
        """Return the rule sets of a component.

        Validation components only get the checks they implement; other
        components get every check.
        """


def _prop_key(prop: Mapping[str, Any]) -> tuple:
    return tuple(sorted(prop.items()))


def _group_props_by_remarks(
    props: Iterable[Mapping[str, Any]],
) -> dict[str, list[Mapping[str, Any]]]:
    """Group properties by their remarks, dropping exact duplicates and unremarked ones."""
    grouped: dict[str, dict[tuple, Mapping[str, Any]]] = {}
    for prop in props:
        remarks = prop.get("remarks", "")
        if not remarks:
            continue
        grouped.setdefault(remarks, {}).setdefault(_prop_key(prop), prop)
    return {remarks: list(group.values()) for remarks, group in grouped.items()}


def _split_prop_name(name: str) -> tuple[str, str]:
    """Return the property name without a numeric parameter suffix, and that suffix."""
    if _NUMBERED_PARAMETER.fullmatch(name):
        prefix, _, suffix = name.rpartition("_")
        return prefix, suffix
    return name, _UNNUMBERED_SUFFIX


class MemoryStore(Store):
    """A Store kept in memory. Not safe for concurrent use."""

    def __init__(self) -> None:
        self._nodes: dict[str, RuleSet] = {}
        self._by_check: dict[str, str] = {}
        self._rules_by_component: dict[str, dict[str, None]] = {}
        self._checks_by_validation_component: dict[str, dict[str, None]] = {}

    def index_all(self, components: Optional[Sequence[Component]]) -> None:
        """Index the rule information of every component."""
        if not components:
            raise ComponentsNotFoundError(
                "failed to index components: no components not found"
            )
        for component in components:
            title = component.title()
            rules, checks = self._index_component(component)
            if rules:
                self._rules_by_component.setdefault(title, {}).update(rules)
            if checks:
                self._checks_by_validation_component.setdefault(title, {}).update(checks)

    def _index_component(
        self, component: Component
    ) -> tuple[dict[str, None], dict[str, None]]:
        rules: dict[str, None] = {}
        checks: dict[str, None] = {}

        props = component.props()
        if not props:
            return rules, checks

        for prop_group in _group_props_by_remarks(props).values():
            rule_id_prop = get_trestle_prop(RULE_ID_PROP, prop_group)
            if rule_id_prop is None:
                continue

            rule_set = self._nodes.get(rule_id_prop.get("value", "")) or RuleSet()
            check = Check()
            parameters: dict[str, Parameter] = {}

            for prop in prop_group:
                name, suffix = _split_prop_name(prop.get("name", ""))
                value = prop.get("value", "")
                if name == RULE_ID_PROP:
                    rule_set.rule.id = value
                elif name == RULE_DESCRIPTION_PROP:
                    rule_set.rule.description = value
                elif name == CHECK_ID_PROP:
                    check.id = value
                elif name == CHECK_DESCRIPTION_PROP:
                    check.description = value
                elif name == PARAMETER_ID_PROP:
                    parameters.setdefault(suffix, Parameter()).id = value
                elif name == PARAMETER_DESCRIPTION_PROP:
                    parameters.setdefault(suffix, Parameter()).description = value
                elif name == PARAMETER_DEFAULT_PROP:
                    parameters.setdefault(suffix, Parameter()).value = value

            if parameters:
                rule_set.rule.parameters = list(parameters.values())

            if check.id:
                rule_set.checks.append(check)
                self._by_check[check.id] = rule_set.rule.id
                checks[check.id] = None

            rules[rule_set.rule.id] = None
            self._nodes[rule_set.rule.id] = rule_set
        return rules, checks

    def get_by_rule_id(self, rule_id: str) -> RuleSet:
        rule_set = self._nodes.get(rule_id)
        if rule_set is None:
            raise RuleNotFoundError(
                f'rule "{rule_id}": associated rule object not found'
            )
        return copy.deepcopy(rule_set)

    def get_by_check_id(self, check_id: str) -> RuleSet:
        rule_id = self._by_check.get(check_id)
        if rule_id is None:
            raise RuleNotFoundError(
                f'failed to find rule for check "{check_id}": '
                "associated rule object not found"
            )
        return self.get_by_rule_id(rule_id)

    def find_by_component(self, component_id: str) -> list[RuleSet]:
        rule_ids = self._rules_by_component.get(component_id)
        if rule_ids is None:
            raise LookupError(f'failed to find rules for component "{component_id}"')

        check_ids = self._checks_by_validation_component.get(component_id)
        rule_sets: list[RuleSet] = []
        errors: list[str] = []
        for rule_id in rule_ids:
            try:
                rule_set = self.get_by_rule_id(rule_id)
            except RuleNotFoundError as exc:
                errors.append(str(exc))
                continue
            if check_ids is not None:
                rule_set.checks = [c for c in rule_set.checks if c.id in check_ids]
            rule_sets.append(rule_set)

        if errors:
            raise RuleNotFoundError(
                f'failed to find rules for component "{component_id}": '
                + "\n".join(errors)
            )
        return rule_sets