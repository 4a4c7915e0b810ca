"""Decode config text and map it onto a caller-supplied target.

A deserializer is any callable `(content: bytes, target) -> target` that
raises on failure. The loader wraps whatever it raises in UnmarshalError.

Targets:
- a mutable mapping is updated with the decoded document;
- a dataclass instance has its fields assigned, coerced by annotation;
- any other object gets `setattr` for keys naming an existing attribute.

For dataclass targets plain YAML scalars keep their source text until a field
annotation asks for a type, so `version: 1.10` lands in a `str` field as
"1.10" and `mask: 0755` as "0755".
"""

from __future__ import annotations

import dataclasses
import json
import math
import types
import typing
from collections.abc import Mapping, MutableMapping
from typing import Any, Callable, Union

import yaml


Deserializer = Callable[[bytes, Any], Any]

_BOOL_STRINGS = {
    "true": True,
    "yes": True,
    "on": True,
    "1": True,
    "false": False,
    "no": False,
    "off": False,
    "0": False,
}

_FLOAT_SPECIALS = {
    ".inf": math.inf,
    "+.inf": math.inf,
    "-.inf": -math.inf,
    ".nan": math.nan,
}

_NULL_TAG = "tag:yaml.org,2002:null"
_MERGE_TAG = "tag:yaml.org,2002:merge"
_STR_TAG = "tag:yaml.org,2002:str"


class PlainScalar(str):
    """Source text of an untagged, unquoted YAML scalar."""


class _TextLoader(yaml.SafeLoader):
    """SafeLoader that only resolves null and merge keys implicitly."""


_TextLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag in (_NULL_TAG, _MERGE_TAG)]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


def _construct_text(loader: _TextLoader, node: yaml.ScalarNode) -> str:
    value = loader.construct_scalar(node)
    return PlainScalar(value) if node.style is None else value


_TextLoader.add_constructor(_STR_TAG, _construct_text)


def yaml_deserializer(content: bytes, target: Any) -> Any:
    """YAML (and therefore JSON) via PyYAML's safe loader."""

    if _is_dataclass_instance(target):
        return populate(target, yaml.load(content, Loader=_TextLoader))
    return populate(target, yaml.safe_load(content))


def json_deserializer(content: bytes, target: Any) -> Any:
    """Strict JSON via the standard library parser."""

    return populate(target, json.loads(content))


def populate(target: Any, data: Any) -> Any:
    """Copy a decoded document onto `target` and return it.

    An empty document leaves the target untouched. Any other non-mapping root
    raises TypeError.
    """

    if data is None:
        return target
    if not isinstance(data, Mapping):
        raise TypeError(f"config root must be a mapping/object, got {type(data).__name__}")

    if isinstance(target, MutableMapping):
        target.update(data)
    elif _is_dataclass_instance(target):
        _populate_dataclass(target, data, path="")
    else:
        for key, value in data.items():
            if isinstance(key, str) and hasattr(target, key):
                setattr(target, key, value)
    return target


def _is_dataclass_instance(obj: Any) -> bool:
    return dataclasses.is_dataclass(obj) and not isinstance(obj, type)


def _resolve_plain(text: str) -> Any:
    """Type a plain scalar the way `yaml.safe_load` would have."""

    loader = yaml.SafeLoader("")
    try:
        tag = loader.resolve(yaml.ScalarNode, text, (True, False))
        return loader.construct_object(yaml.ScalarNode(tag, str(text)))
    finally:
        loader.dispose()


def _untyped(value: Any) -> Any:
    if isinstance(value, PlainScalar):
        return _resolve_plain(value)
    if isinstance(value, Mapping):
        return {_untyped(k): _untyped(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_untyped(v) for v in value]
    return value


def _field_hints(cls: type) -> dict[str, Any]:
    try:
        return typing.get_type_hints(cls)
    except (NameError, TypeError):
        # Unresolvable forward references: fall back to unchecked values.
        return {}


def _populate_dataclass(obj: Any, data: Mapping[str, Any], *, path: str) -> None:
    hints = _field_hints(type(obj))
    for f in dataclasses.fields(obj):
        key = f.metadata.get("key", f.name)
        if key not in data:
            continue
        field_path = f"{path}.{key}" if path else str(key)
        tp = hints.get(f.name, Any)
        value = data[key]

        current = getattr(obj, f.name, None)
        if isinstance(value, Mapping) and _is_dataclass_instance(current):
            _populate_dataclass(current, value, path=field_path)
            continue
        if value is None and not _is_optional(tp):
            continue
        setattr(obj, f.name, _coerce(value, tp, path=field_path))


def _is_optional(tp: Any) -> bool:
    origin = typing.get_origin(tp)
    return (origin is Union or origin is types.UnionType) and type(None) in typing.get_args(tp)


def _coerce_tuple(value: list[Any], tp: Any, *, path: str) -> tuple[Any, ...]:
    args = typing.get_args(tp)
    if not args:
        return tuple(_untyped(v) for v in value)
    if len(args) == 2 and args[1] is Ellipsis:
        return tuple(_coerce(v, args[0], path=f"{path}[{i}]") for i, v in enumerate(value))
    if len(value) != len(args):
        raise TypeError(f"{path}: expected {len(args)} items, got {len(value)}")
    return tuple(_coerce(v, a, path=f"{path}[{i}]") for i, (v, a) in enumerate(zip(value, args)))


def _parse_int(text: str) -> int:
    text = text.strip()
    try:
        return int(text)
    except ValueError:
        # 0x1f, 0o17, 0b101
        return int(text, 0)


def _coerce(value: Any, tp: Any, *, path: str) -> Any:
    if tp is Any or tp is object:
        return _untyped(value)

    origin = typing.get_origin(tp)
    if origin is Union or origin is types.UnionType:
        args = [a for a in typing.get_args(tp) if a is not type(None)]
        if value is None:
            return None
        if len(args) == 1:
            return _coerce(value, args[0], path=path)
        return _untyped(value)

    if origin is tuple:
        if not isinstance(value, list):
            raise TypeError(f"{path}: expected a list, got {type(value).__name__}")
        return _coerce_tuple(value, tp, path=path)

    if origin in (list, set, frozenset):
        if not isinstance(value, list):
            raise TypeError(f"{path}: expected a list, got {type(value).__name__}")
        args = typing.get_args(tp)
        item_tp = args[0] if args else Any
        items = [_coerce(v, item_tp, path=f"{path}[{i}]") for i, v in enumerate(value)]
        return items if origin is list else origin(items)

    if origin in (dict, Mapping, MutableMapping):
        if not isinstance(value, Mapping):
            raise TypeError(f"{path}: expected a mapping, got {type(value).__name__}")
        args = typing.get_args(tp)
        key_tp, value_tp = args if len(args) == 2 else (Any, Any)
        return {
            _coerce(k, key_tp, path=path): _coerce(v, value_tp, path=f"{path}.{k}")
            for k, v in value.items()
        }

    if isinstance(tp, type) and dataclasses.is_dataclass(tp):
        if not isinstance(value, Mapping):
            raise TypeError(f"{path}: expected a mapping, got {type(value).__name__}")
        return _build_dataclass(tp, value, path=path)

    if tp is str:
        if isinstance(value, (Mapping, list)):
            raise TypeError(f"{path}: expected a scalar, got {type(value).__name__}")
        if isinstance(value, bool):
            return "true" if value else "false"
        return str(value)

    if tp is bool:
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().lower() in _BOOL_STRINGS:
            return _BOOL_STRINGS[value.strip().lower()]
        raise TypeError(f"{path}: expected a boolean, got {value!r}")

    if tp is int:
        if isinstance(value, bool):
            raise TypeError(f"{path}: expected an integer, got {value!r}")
        if isinstance(value, float) and not value.is_integer():
            raise TypeError(f"{path}: expected an integer, got {value!r}")
        if isinstance(value, str):
            return _parse_int(value)
        return int(value)

    if tp is float:
        if isinstance(value, bool):
            raise TypeError(f"{path}: expected a number, got {value!r}")
        if isinstance(value, str) and value.strip().lower() in _FLOAT_SPECIALS:
            return _FLOAT_SPECIALS[value.strip().lower()]
        return float(value)

    return _untyped(value)


def _build_dataclass(cls: type, data: Mapping[str, Any], *, path: str) -> Any:
    hints = _field_hints(cls)
    kwargs: dict[str, Any] = {}
    for f in dataclasses.fields(cls):
        if not f.init:
            continue
        key = f.metadata.get("key", f.name)
        if key not in data:
            continue
        value = data[key]
        tp = hints.get(f.name, Any)
        if value is None and not _is_optional(tp):
            continue
        kwargs[f.name] = _coerce(value, tp, path=f"{path}.{key}" if path else str(key))
    try:
        return cls(**kwargs)
    except TypeError as exc:
        raise TypeError(f"{path}: {exc}") from exc
