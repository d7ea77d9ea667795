"""OSCAL-to-OSCAL transformations: definitions and plans into plans and results."""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Mapping
from typing import Any

from .components import (
    Component,
    ComponentType,
    ControlImplementationAdapter,
    DefinedComponentAdapter,
    SystemComponentAdapter,
)
from .plans import generate_assessment_plan
from .results import generate_assessment_results
from .settings import by_framework, new_implementation_settings

_THIS_SYSTEM_TITLE = "This System"


def component_definitions_to_assessment_plan(
    definitions: Iterable[Mapping[str, Any]], framework: str
) -> dict[str, Any]:
    """Build one assessment plan from component definitions for ``framework``."""
    all_components: list[Component] = []
    all_implementations: list[Mapping[str, Any]] = []
    for definition in definitions:
        for component in definition.get("components") or []:
            implementations = component.get("control-implementations")
            if (
                implementations is not None
                or component.get("type") == ComponentType.VALIDATION.value
            ):
                all_components.append(DefinedComponentAdapter(component))
                all_implementations.extend(implementations or [])

    try:
        implementation_settings, source = by_framework(framework, all_implementations)
    except LookupError as exc:
        raise LookupError(
            f"cannot transform definitions for framework {framework}: {exc}"
        ) from exc

    plan = generate_assessment_plan(all_components, implementation_settings)

    # Keep the plan traceable to the original control set.
    control_source = {
        "uuid": str(uuid.uuid4()),
        "title": source.title,
        "description": source.description,
        "rlinks": [{"media-type": "application/oscal+json", "href": source.href}],
    }
    plan["back-matter"] = {"resources": [control_source]}
    plan["reviewed-controls"].setdefault("links", []).append(
        {
            "href": f"#{control_source['uuid']}",
            "rel": "includes-controls-from-source",
            "text": "The reviewed controls are derived from the linked OSCAL profile.",
        }
    )
    return plan


def ssp_to_assessment_plan(
    ssp: Mapping[str, Any], ssp_import_path: str
) -> dict[str, Any]:
    """Build an assessment plan from a system security plan located at ``ssp_import_path``."""
    system_implementation = ssp.get("system-implementation") or {}
    all_components: list[Component] = []
    for system_component in system_implementation.get("components") or []:
        adapter = SystemComponentAdapter(system_component)
        # Components without rules, such as the system itself, are not assessed.
        if not adapter.props() or adapter.title() == _THIS_SYSTEM_TITLE:
            continue
        all_components.append(adapter)

    implementation = ControlImplementationAdapter(ssp.get("control-implementation") or {})
    implementation_settings = new_implementation_settings(implementation)
    return generate_assessment_plan(
        all_components, implementation_settings, import_ssp=ssp_import_path
    )


def assessment_plan_to_assessment_results(
    plan: Mapping[str, Any], ap_import_path: str, *args: Mapping[str, Any]
) -> dict[str, Any]:
    """Build assessment results from a plan, using any observations given in ``args``."""
    observations = list(args) if args else None
    return generate_assessment_results(
        plan, import_ap=ap_import_path, observations=observations
    )