"""Helpers for inspecting OSCAL model dictionaries."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Optional, TypeVar

T = TypeVar("T")


def nil_if_empty(items: Optional[list[T]]) -> Optional[list[T]]:
    """Return None for a missing or empty list, otherwise the list itself."""
    if not items:
        return None
    return items


def find_values_by_name(model: Any, name: str) -> list[str]:
    """Return every string value stored under key ``name`` at any depth.

    List items are keyed by their index as a string. A container reached
    twice is walked only once.
    """
    results: list[str] = []
    seen: set[int] = set()

    def walk(value: Any, key: str) -> None:
        if isinstance(value, str):
            if key == name:
                results.append(value)
            return
        if isinstance(value, (Mapping, list, tuple)):
            if id(value) in seen:
                return
            seen.add(id(value))
        if isinstance(value, Mapping):
            for child_key, child in value.items():
                if isinstance(child_key, str):
                    walk(child, child_key)
        elif isinstance(value, (list, tuple)):
            for index, child in enumerate(value):
                walk(child, str(index))

    walk(model, "")
    return results


def has_duplicate_values_by_name(model: Any, name: str) -> bool:
    """Return True if any value stored under ``name`` occurs more than once."""
    seen: set[str] = set()
    for value in find_values_by_name(model, name):
        if value in seen:
            return True
        seen.add(value)
    return False