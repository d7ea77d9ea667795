"""Generation of OSCAL assessment plans from components and implementation settings.

A rule set becomes an assessment activity: the rule id is the activity
title, each parameter is a test-parameter property, and each check is a
step of the activity.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Mapping, Sequence
from typing import Any, Optional

from .components import Component, ComponentType
from .extensions import TEST_PARAMETER_CLASS, TRESTLE_NAMESPACE
from .models import SAMPLE_REQUIRED_STRING, new_sample_metadata
from .modelutils import nil_if_empty
from .rules import ComponentsNotFoundError, MemoryStore, Store
from .settings import ImplementationSettings, apply_to_component

DEFAULT_SUBJECT_TYPE = "component"
DEFAULT_TASK_TYPE = "action"


def _new_uuid() -> str:
    return str(uuid.uuid4())


def _new_task() -> dict[str, Any]:
    return {
        "uuid": _new_uuid(),
        "title": "Automated Assessment",
        "type": DEFAULT_TASK_TYPE,
        "description": "Evaluation of defined rules for components.",
        "subjects": [],
        "associated-activities": [],
    }


def generate_assessment_plan(
    components: Optional[Sequence[Component]],
    implementation_settings: ImplementationSettings,
    title: str = SAMPLE_REQUIRED_STRING,
    import_ssp: str = SAMPLE_REQUIRED_STRING,
) -> dict[str, Any]:
    """Generate an assessment plan for components and implementation settings.

    When ``import_ssp`` is left at its default, the assessed components are
    recorded as local definitions of the plan.
    """
    store = MemoryStore()
    try:
        store.index_all(components)
    except ComponentsNotFoundError as exc:
        raise ComponentsNotFoundError(
            f'failed processing components for assessment plan "{title}": {exc}'
        ) from exc

    all_activities: list[dict[str, Any]] = []
    subject_selectors: list[dict[str, Any]] = []
    local_components: list[Component] = []
    task = _new_task()

    for component in components or []:
        if component.type() == ComponentType.VALIDATION:
            continue
        component_title = component.title()
        try:
            component_activities = activities_for_component(
                component_title, store, implementation_settings
            )
        except LookupError as exc:
            raise LookupError(
                f"error generating assessment activities for component "
                f"{component_title}: {exc}"
            ) from exc
        if not component_activities:
            continue

        all_activities.extend(component_activities)
        selector = {"type": DEFAULT_SUBJECT_TYPE, "subject-uuid": component.uuid()}
        subject_selectors.append(selector)
        subject = {"include-subjects": [dict(selector)], "type": DEFAULT_SUBJECT_TYPE}
        task["associated-activities"].extend(
            assessment_activities(subject, component_activities)
        )

        if import_ssp == SAMPLE_REQUIRED_STRING:
            # Without a linked SSP the components are defined locally.
            local_components.append(component)

    assets = assessment_assets(components or [])
    task["subjects"].append(
        {
            "include-subjects": [dict(s) for s in subject_selectors],
            "type": DEFAULT_SUBJECT_TYPE,
        }
    )

    metadata = new_sample_metadata()
    metadata["title"] = title

    return {
        "uuid": _new_uuid(),
        "import-ssp": {"href": import_ssp},
        "metadata": metadata,
        "assessment-subjects": [
            {
                "include-subjects": [dict(s) for s in subject_selectors],
                "type": DEFAULT_SUBJECT_TYPE,
            }
        ],
        "local-definitions": _local_definitions(all_activities, local_components),
        "reviewed-controls": all_reviewed_controls(implementation_settings),
        "assessment-assets": assets,
        "tasks": [task],
    }


def activities_for_component(
    target_component_id: str,
    store: Store,
    implementation_settings: ImplementationSettings,
) -> list[dict[str, Any]]:
    """Return the assessment activities for the component titled ``target_component_id``."""
    try:
        applied_rules = apply_to_component(
            target_component_id, store, implementation_settings.all_settings()
        )
    except LookupError as exc:
        raise LookupError(
            f"error getting applied rules for component {target_component_id}: {exc}"
        ) from exc

    activities: list[dict[str, Any]] = []
    for rule_set in applied_rules:
        related_controls = reviewed_controls(rule_set.rule.id, implementation_settings)
        steps = [
            {
                "uuid": _new_uuid(),
                "title": check.id,
                "description": check.description,
            }
            for check in rule_set.checks
        ]
        props: list[dict[str, Any]] = [{"name": "method", "value": "TEST"}]
        props.extend(
            {
                "name": parameter.id,
                "value": parameter.value,
                "ns": TRESTLE_NAMESPACE,
                "class": TEST_PARAMETER_CLASS,
            }
            for parameter in rule_set.rule.parameters
        )
        activity: dict[str, Any] = {
            "uuid": _new_uuid(),
            "title": rule_set.rule.id,
            "description": rule_set.rule.description,
            "props": props,
            "related-controls": related_controls,
        }
        step_list = nil_if_empty(steps)
        if step_list is not None:
            activity["steps"] = step_list
        activities.append(activity)
    return activities


def _local_definitions(
    activities: list[dict[str, Any]], local_components: Iterable[Component]
) -> dict[str, Any]:
    definitions: dict[str, Any] = {"activities": activities}
    system_components = [c.as_system_component() for c in local_components]
    if system_components:
        definitions["components"] = system_components
    return definitions


def _reviewed_controls_for(selected: list[dict[str, Any]]) -> dict[str, Any]:
    return {"control-selections": [{"include-controls": selected}]}


def all_reviewed_controls(implementation_settings: ImplementationSettings) -> dict[str, Any]:
    """Return reviewed controls holding every applicable control of the implementation."""
    return _reviewed_controls_for(implementation_settings.all_controls())


def reviewed_controls(
    rule_id: str, implementation_settings: ImplementationSettings
) -> dict[str, Any]:
    """Return reviewed controls holding the controls that ``rule_id`` is mapped to."""
    try:
        applicable = implementation_settings.applicable_controls(rule_id)
    except LookupError as exc:
        raise LookupError(
            f"error getting applicable controls for rule {rule_id}: {exc}"
        ) from exc
    return _reviewed_controls_for(applicable)


def assessment_activities(
    subject: Mapping[str, Any], activities: Iterable[Mapping[str, Any]]
) -> list[dict[str, Any]]:
    """Return task associated-activities linking each activity to ``subject``."""
    return [
        {"activity-uuid": activity.get("uuid", ""), "subjects": [subject]}
        for activity in activities
    ]


def assessment_assets(components: Iterable[Component]) -> dict[str, Any]:
    """Return assessment assets built from the validation components given."""
    system_components: list[dict[str, Any]] = []
    used_components: list[dict[str, Any]] = []
    for component in components:
        if component.type() != ComponentType.VALIDATION:
            continue
        system_component = component.as_system_component()
        system_components.append(system_component)
        # Every validation component is taken to belong to one platform.
        used_components.append({"component-uuid": system_component.get("uuid", "")})

    platform: dict[str, Any] = {"uuid": _new_uuid(), "title": SAMPLE_REQUIRED_STRING}
    uses = nil_if_empty(used_components)
    if uses is not None:
        platform["uses-components"] = uses

    return {"components": system_components, "assessment-platforms": [platform]}