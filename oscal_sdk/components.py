"""Uniform views over the component types of OSCAL documents.

Component definitions and system security plans describe components,
control implementations, implemented requirements and statements in
slightly different shapes. The adapters here wrap the JSON-shaped
dictionaries of either document and expose them through one interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from enum import Enum
from typing import Any, Union

_DEFAULT_STATE = "operational"

_SHARED_COMPONENT_FIELDS = (
    "links",
    "props",
    "protocols",
    "purpose",
    "remarks",
    "responsible-roles",
)


class ComponentType(str, Enum):
    """Valid types of components in OSCAL."""

    VALIDATION = "validation"
    SOFTWARE = "software"
    SERVICE = "service"
    INTERCONNECTION = "interconnection"
    THIS_SYSTEM = "this-system"
    SYSTEM = "system"
    HARDWARE = "hardware"
    POLICY = "policy"
    PHYSICAL = "physical"
    PROCESS_PROCEDURE = "process-procedure"
    PLAN = "plan"
    GUIDANCE = "guidance"
    STANDARD = "standard"
    NETWORK = "network"


def _component_type(value: str) -> Union[ComponentType, str]:
    """Return the matching ComponentType, or the raw string when it is not a known type."""
    try:
        return ComponentType(value)
    except ValueError:
        return value


def _list(data: Mapping[str, Any], key: str) -> list[Any]:
    return list(data.get(key) or [])


def _props_with_by_components(data: Mapping[str, Any]) -> list[dict[str, Any]]:
    """Return the object's own properties followed by those of its by-components."""
    props = _list(data, "props")
    for by_component in data.get("by-components") or []:
        props.extend(by_component.get("props") or [])
    return props


def _copy_component(source: Mapping[str, Any]) -> dict[str, Any]:
    component: dict[str, Any] = {
        "uuid": source.get("uuid", ""),
        "type": source.get("type", ""),
        "title": source.get("title", ""),
        "description": source.get("description", ""),
    }
    for key in _SHARED_COMPONENT_FIELDS:
        if source.get(key) is not None:
            component[key] = source[key]
    return component


class Component(ABC):
    """Common information about an OSCAL component."""

    @abstractmethod
    def title(self) -> str:
        """Return the component title."""

    @abstractmethod
    def type(self) -> Union[ComponentType, str]:
        """Return the component type."""

    @abstractmethod
    def uuid(self) -> str:
        """Return the component UUID."""

    @abstractmethod
    def props(self) -> list[dict[str, Any]]:
        """Return the properties of the component."""

    @abstractmethod
    def as_defined_component(self) -> dict[str, Any]:
        """Return the component in component-definition form."""

    @abstractmethod
    def as_system_component(self) -> dict[str, Any]:
        """Return the component in system-security-plan form."""


class Statement(ABC):
    """An implemented statement of a requirement."""

    @abstractmethod
    def statement_id(self) -> str:
        """Return the human-readable statement identifier."""

    @abstractmethod
    def uuid(self) -> str:
        """Return the statement UUID."""

    @abstractmethod
    def props(self) -> list[dict[str, Any]]:
        """Return the properties of the statement."""


class Requirement(ABC):
    """An implemented requirement of a control implementation."""

    @abstractmethod
    def control_id(self) -> str:
        """Return the human-readable control identifier."""

    @abstractmethod
    def uuid(self) -> str:
        """Return the requirement UUID."""

    @abstractmethod
    def set_parameters(self) -> list[dict[str, Any]]:
        """Return the set-parameters of the requirement."""

    @abstractmethod
    def props(self) -> list[dict[str, Any]]:
        """Return the properties of the requirement."""

    @abstractmethod
    def statements(self) -> list[Statement]:
        """Return the statements of the requirement."""


class Implementation(ABC):
    """A control implementation of a component."""

    @abstractmethod
    def requirements(self) -> list[Requirement]:
        """Return the implemented requirements."""

    @abstractmethod
    def set_parameters(self) -> list[dict[str, Any]]:
        """Return the set-parameters of the implementation."""

    @abstractmethod
    def props(self) -> list[dict[str, Any]]:
        """Return the properties of the implementation."""


class DefinedComponentAdapter(Component):
    """A component from a component definition."""

    def __init__(self, defined_component: Mapping[str, Any]) -> None:
        self._component = defined_component

    def uuid(self) -> str:
        return self._component.get("uuid", "")

    def title(self) -> str:
        return self._component.get("title", "")

    def type(self) -> Union[ComponentType, str]:
        return _component_type(self._component.get("type", ""))

    def props(self) -> list[dict[str, Any]]:
        return _list(self._component, "props")

    def as_defined_component(self) -> dict[str, Any]:
        return dict(self._component)

    def as_system_component(self) -> dict[str, Any]:
        component = _copy_component(self._component)
        component["status"] = {"state": _DEFAULT_STATE}
        return component


class ControlStatementAdapter(Statement):
    """A statement from a component-definition implemented requirement."""

    def __init__(self, statement: Mapping[str, Any]) -> None:
        self._statement = statement

    def statement_id(self) -> str:
        return self._statement.get("statement-id", "")

    def uuid(self) -> str:
        return self._statement.get("uuid", "")

    def props(self) -> list[dict[str, Any]]:
        return _list(self._statement, "props")


class ImplementedRequirementImplementationAdapter(Requirement):
    """An implemented requirement from a component definition."""

    def __init__(self, requirement: Mapping[str, Any]) -> None:
        self._requirement = requirement

    def control_id(self) -> str:
        return self._requirement.get("control-id", "")

    def uuid(self) -> str:
        return self._requirement.get("uuid", "")

    def set_parameters(self) -> list[dict[str, Any]]:
        return _list(self._requirement, "set-parameters")

    def props(self) -> list[dict[str, Any]]:
        return _list(self._requirement, "props")

    def statements(self) -> list[Statement]:
        return [
            ControlStatementAdapter(statement)
            for statement in self._requirement.get("statements") or []
        ]


class ControlImplementationSetAdapter(Implementation):
    """A control implementation set from a component definition."""

    def __init__(self, control_implementation: Mapping[str, Any]) -> None:
        self._implementation = control_implementation

    def requirements(self) -> list[Requirement]:
        return [
            ImplementedRequirementImplementationAdapter(requirement)
            for requirement in self._implementation.get("implemented-requirements") or []
        ]

    def set_parameters(self) -> list[dict[str, Any]]:
        return _list(self._implementation, "set-parameters")

    def props(self) -> list[dict[str, Any]]:
        return _list(self._implementation, "props")


class SystemComponentAdapter(Component):
    """A component from a system security plan."""

    def __init__(self, system_component: Mapping[str, Any]) -> None:
        self._component = system_component

    def uuid(self) -> str:
        return self._component.get("uuid", "")

    def title(self) -> str:
        return self._component.get("title", "")

    def type(self) -> Union[ComponentType, str]:
        return _component_type(self._component.get("type", ""))

    def props(self) -> list[dict[str, Any]]:
        return _list(self._component, "props")

    def as_defined_component(self) -> dict[str, Any]:
        return _copy_component(self._component)

    def as_system_component(self) -> dict[str, Any]:
        return dict(self._component)


class StatementAdapter(Statement):
    """A statement from a system-security-plan implemented requirement."""

    def __init__(self, statement: Mapping[str, Any]) -> None:
        self._statement = statement

    def statement_id(self) -> str:
        return self._statement.get("statement-id", "")

    def uuid(self) -> str:
        return self._statement.get("uuid", "")

    def props(self) -> list[dict[str, Any]]:
        return _props_with_by_components(self._statement)


class ImplementedRequirementAdapter(Requirement):
    """An implemented requirement from a system security plan."""

    def __init__(self, requirement: Mapping[str, Any]) -> None:
        self._requirement = requirement

    def control_id(self) -> str:
        return self._requirement.get("control-id", "")

    def uuid(self) -> str:
        return self._requirement.get("uuid", "")

    def set_parameters(self) -> list[dict[str, Any]]:
        return _list(self._requirement, "set-parameters")

    def props(self) -> list[dict[str, Any]]:
        return _props_with_by_components(self._requirement)

    def statements(self) -> list[Statement]:
        return [
            StatementAdapter(statement)
            for statement in self._requirement.get("statements") or []
        ]


class ControlImplementationAdapter(Implementation):
    """The control implementation of a system security plan."""

    def __init__(self, control_implementation: Mapping[str, Any]) -> None:
        self._implementation = control_implementation

    def requirements(self) -> list[Requirement]:
        return [
            ImplementedRequirementAdapter(requirement)
            for requirement in self._implementation.get("implemented-requirements") or []
        ]

    def set_parameters(self) -> list[dict[str, Any]]:
        return _list(self._implementation, "set-parameters")

    def props(self) -> list[dict[str, Any]]:
        # A system security plan carries no properties at this level.
        return []