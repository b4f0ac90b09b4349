"""
Shared utility functions for pluginsync.

Nested-document helpers used for layered configuration: a recursive
merge and a path lookup that never raises.
"""
from typing import Any, Mapping

import yaml

JsonValue = str | int | float | bool | None | dict[str, 'JsonValue'] | list['JsonValue']


class _Missing:
    """Marker for a value that is absent from a nested document."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return 'MISSING'


MISSING = _Missing()


def deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """
    Recursively merge two nested dictionaries.

    Mapping values present on both sides are merged recursively. Any other
    collision (scalars, lists) takes the override value unchanged, so lists
    are replaced rather than concatenated. Neither input is mutated.

    Args:
        base (dict): Lower-precedence document
        override (dict): Higher-precedence document

    Returns:
        dict: Merged document
    """
    merged = dict(base)

    for key, value in override.items():
        if key in merged and isinstance(merged[key], Mapping) and isinstance(value, Mapping):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = value

    return merged


def deep_fetch(document: Any, *path: Any, default: Any = MISSING) -> Any:
    """
    Look up a value in a nested document.

    The path may be given as separate segments or as a single dotted string:

        deep_fetch(doc, "global", "build", "matrix")
        deep_fetch(doc, "global.build.matrix")

    A single string that is itself a key (``".travis.yml"``) is looked up
    as is before it is split on dots.

    Returns ``default`` (``MISSING`` unless given) when a segment is absent
    or an intermediate value is not a mapping.
    """
    if len(path) == 1 and isinstance(path[0], str):
        key = path[0]
        if isinstance(document, Mapping) and key in document:
            return document[key]
        path = tuple(key.split('.'))

    current = document
    for segment in path:
        if not isinstance(current, Mapping) or segment not in current:
            return default
        current = current[segment]
    return current


def load_yaml_document(text: str | bytes | None) -> dict[str, Any]:
    """
    Parse a YAML key-value document.

    Empty documents and documents whose top level is not a mapping yield an
    empty dict. Malformed YAML raises ``yaml.YAMLError``.
    """
    if not text:
        return {}
    data = yaml.safe_load(text)
    if not isinstance(data, dict):
        return {}
    return data
