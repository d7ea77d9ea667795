"""Generation of OSCAL assessment results from assessment plans.

Each task of the plan yields one result. Every step of an activity
associated with the task is a check, and each check is reported by one
observation whose title is the check id.
"""

from __future__ import annotations

import copy
import json
import uuid
from collections.abc import Iterable, Mapping
from datetime import datetime
from typing import Any, Optional

from .extensions import (
    ASSESSMENT_CHECK_ID_PROP,
    CHECK_ID_PROP,
    TRESTLE_NAMESPACE,
    WAIVED_RULES_PROPERTY,
    find_all_props,
    get_trestle_prop,
)
from .models import SAMPLE_REQUIRED_STRING, new_sample_metadata

DEFAULT_ACTOR = "tool"


def _new_uuid() -> str:
    return str(uuid.uuid4())


def _now() -> str:
    return datetime.now().astimezone().isoformat()


def _quote(text: str) -> str:
    return json.dumps(text, ensure_ascii=False)


class _ObservationManager:
    """Indexes observations by check and attaches actor information to them."""

    def __init__(self, plan: Mapping[str, Any]) -> None:
        self._by_check: dict[str, dict[str, Any]] = {}
        self._actors_by_check: dict[str, str] = {}
        assets = plan.get("assessment-assets") or {}
        for component in assets.get("components") or []:
            props = component.get("props")
            if props is None:
                continue
            for check in find_all_props(props, name=CHECK_ID_PROP):
                self._actors_by_check[check.get("value", "")] = component.get("uuid", "")

    def load(self, observations: Iterable[Mapping[str, Any]]) -> None:
        for observation in observations:
            self._update(copy.deepcopy(dict(observation)))

    def create_or_get(self, check_id: str) -> dict[str, Any]:
        """Return a copy of the observation for ``check_id``, creating it if needed."""
        for observation in self._by_check.values():
            props = observation.get("props")
            if props is None:
                continue
            check = get_trestle_prop(ASSESSMENT_CHECK_ID_PROP, props)
            if check is not None and check.get("value", "") == check_id:
                return copy.deepcopy(observation)

        # The observation title is the fallback key.
        observation = self._by_check.get(check_id)
        if observation is not None:
            return copy.deepcopy(observation)

        created: dict[str, Any] = {
            "uuid": _new_uuid(),
            "title": check_id,
            "collected": _now(),
        }
        self._update(created)
        return copy.deepcopy(created)

    def _update(self, observation: dict[str, Any]) -> None:
        title = observation.get("title", "")
        actor = self._actors_by_check.get(title)
        if actor is not None:
            observation["origins"] = [
                {"actors": [{"type": DEFAULT_ACTOR, "actor-uuid": actor}]}
            ]
        self._by_check[title] = observation


def generate_assessment_results(
    plan: Mapping[str, Any],
    title: str = SAMPLE_REQUIRED_STRING,
    import_ap: str = SAMPLE_REQUIRED_STRING,
    observations: Optional[Iterable[Mapping[str, Any]]] = None,
) -> dict[str, Any]:
    """Generate assessment results for an assessment plan.

    Without ``observations``, a new empty observation titled after the
    check is created for each activity step. Given observations are
    matched by their assessment-check-id property, then by title.
    """
    tasks = plan.get("tasks")
    if tasks is None:
        raise ValueError("assessment plan tasks cannot be empty")

    metadata = new_sample_metadata()
    metadata["title"] = title
    assessment_results: dict[str, Any] = {
        "uuid": _new_uuid(),
        "import-ap": {"href": import_ap},
        "metadata": metadata,
        "results": [],
    }

    manager = _ObservationManager(plan)
    if observations is not None:
        manager.load(observations)

    local_definitions = plan.get("local-definitions") or {}
    activities_by_uuid = {
        activity.get("uuid", ""): activity
        for activity in local_definitions.get("activities") or []
    }

    for task in tasks:
        task_title = task.get("title", "")
        result: dict[str, Any] = {
            "uuid": _new_uuid(),
            "title": f"Result For Task {_quote(task_title)}",
            "description": f"OSCAL Assessment Result For Task {_quote(task_title)}",
            "start": _now(),
            "reviewed-controls": {"control-selections": []},
        }

        associated = task.get("associated-activities")
        if associated is None:
            assessment_results["results"].append(result)
            continue

        selections: list[Any] = result["reviewed-controls"]["control-selections"]
        task_observations: list[dict[str, Any]] = []
        for assoc_activity in associated:
            activity = activities_by_uuid.get(assoc_activity.get("activity-uuid", ""), {})

            related = activity.get("related-controls")
            if related is not None:
                selections.extend(related.get("control-selections") or [])

            steps = activity.get("steps")
            if steps is None:
                continue

            related_task = {
                "task-uuid": task.get("uuid", ""),
                "subjects": list(assoc_activity.get("subjects") or []),
            }
            props = activity.get("props") or []
            methods = [
                method.get("value", "")
                for method in find_all_props(props, name="method", namespace="")
            ]
            waived = get_trestle_prop(WAIVED_RULES_PROPERTY, props)
            is_waived = waived is not None and waived.get("value") == "true"

            # The activity is a rule; each step is a check with one observation.
            for step in steps:
                observation = manager.create_or_get(step.get("title", ""))
                if methods:
                    observation.setdefault("methods", []).extend(methods)
                if is_waived:
                    for subject in observation.get("subjects") or []:
                        subject.setdefault("props", []).append(
                            {
                                "name": WAIVED_RULES_PROPERTY,
                                "value": "true",
                                "ns": TRESTLE_NAMESPACE,
                            }
                        )
                origins = observation.get("origins")
                if origins is not None and len(origins) == 1:
                    origins[0].setdefault("related-tasks", []).append(related_task)
                task_observations.append(observation)

        if task_observations:
            result["observations"] = task_observations
        assessment_results["results"].append(result)

    return assessment_results