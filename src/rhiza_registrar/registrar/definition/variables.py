"""`$NAME` placeholder substitution over a JSON tree.

Values and keys are treated differently:
- a string value starting with `$` must resolve, otherwise resolution aborts
- a mapping key starting with `$` is replaced only when the variable exists
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Union

from rhiza_registrar.registrar.errors import ConfigurationError

JsonScalar = Union[str, int, float, bool, None]
JsonValue = Union[JsonScalar, list["JsonValue"], dict[str, "JsonValue"]]

PLACEHOLDER_PREFIX = "$"


def _resolve_key(key: str, environ: Mapping[str, str]) -> str:
    if not key.startswith(PLACEHOLDER_PREFIX):
        return key
    value = environ.get(key[len(PLACEHOLDER_PREFIX) :])
    return key if value is None else value


def _resolve(node: JsonValue, environ: Mapping[str, str], path: str) -> JsonValue:
    if isinstance(node, str):
        if not node.startswith(PLACEHOLDER_PREFIX):
            return node
        name = node[len(PLACEHOLDER_PREFIX) :]
        value = environ.get(name)
        # Empty values are as useless as missing ones for ids and urls.
        if not value:
            raise ConfigurationError(name, path)
        return value

    if isinstance(node, list):
        return [_resolve(item, environ, f"{path}[{idx}]") for idx, item in enumerate(node)]

    if isinstance(node, dict):
        out: dict[str, JsonValue] = {}
        for key, value in node.items():
            child = f"{path}.{key}" if path else key
            out[_resolve_key(key, environ)] = _resolve(value, environ, child)
        return out

    return node


def resolve_variables(tree: JsonValue, environ: Mapping[str, str]) -> JsonValue:
    """Return a copy of `tree` with `$NAME` placeholders substituted from `environ`.

    Raises:
        ConfigurationError: A value placeholder names a variable that is unset or empty.
    """

    return _resolve(tree, environ, "")
