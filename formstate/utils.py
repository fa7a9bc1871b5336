"""Structural helpers for untyped form data.

These are free functions, not form members: they operate on plain mappings
and lists and treat every other value as opaque (copied by reference,
compared with ``==``).
"""

from typing import Any, Dict, List, Mapping

_MISSING = object()


def clone(obj: Mapping[str, Any], default: Any = _MISSING) -> Dict[str, Any]:
    """Copy a mapping one level deep.

    Lists and dicts stored under a key are copied into new containers, every
    other value is copied by reference. When ``default`` is given, every key
    maps to it instead.

    Examples:
        >>> clone({"name": "Esteban", "tags": ["a"]})
        {'name': 'Esteban', 'tags': ['a']}
        >>> clone({"name": "Esteban", "last": "Borai"}, None)
        {'name': None, 'last': None}
    """
    result: Dict[str, Any] = {}
    for key, value in obj.items():
        if default is not _MISSING:
            result[key] = default
        elif isinstance(value, list):
            result[key] = list(value)
        elif isinstance(value, dict):
            result[key] = dict(value)
        else:
            result[key] = value
    return result


def deep_clone(value: Any) -> Any:
    """Copy lists and dicts at every level; anything else by reference.

    File handles and other objects survive as the same object, which a
    ``copy.deepcopy`` would not guarantee.
    """
    if isinstance(value, dict):
        return {key: deep_clone(item) for key, item in value.items()}
    if isinstance(value, list):
        return [deep_clone(item) for item in value]
    return value


def _contains_all(items: List[Any], other: List[Any]) -> bool:
    return all(item in other for item in items)


def diff(base: Mapping[str, Any], other: Mapping[str, Any]) -> List[str]:
    """Return the top-level keys of ``base`` whose value differs in ``other``.

    A key missing from ``other`` counts as different. Nested dicts are
    compared recursively. Two lists differ when their lengths differ or when
    an element of one is not contained in the other, so order is ignored.
    Keys present only in ``other`` are not reported.

    Examples:
        >>> diff({"a": 1, "b": [1, 2]}, {"a": 1, "b": [2, 1]})
        []
        >>> diff({"a": {"x": 1}}, {"a": {"x": 2}})
        ['a']
    """
    changed: List[str] = []
    for key, base_value in base.items():
        if key not in other:
            changed.append(key)
            continue

        other_value = other[key]
        if base_value is other_value:
            continue

        if isinstance(base_value, list) and isinstance(other_value, list):
            if len(base_value) != len(other_value):
                changed.append(key)
            elif not (_contains_all(base_value, other_value) and _contains_all(other_value, base_value)):
                changed.append(key)
            continue

        if isinstance(base_value, dict) and isinstance(other_value, dict):
            if diff(base_value, other_value) or set(other_value) - set(base_value):
                changed.append(key)
            continue

        if base_value != other_value:
            changed.append(key)
    return changed


__all__ = [
    "clone",
    "deep_clone",
    "diff",
]
