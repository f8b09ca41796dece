"""Consume files given on the command line into typed values.

:class:`File` is an argparse ``type=`` callable. It reads the path, picks a
deserializer from the file extension (JSON or YAML), checks the data against
a JSON schema derived from the target dataclass and builds the instance::

    @dataclass
    class Thing:
        single: str

    parser.add_argument("input", type=File(Thing))

Failures are reported as argparse errors naming the path and, for invalid
content, the location of the offending field.
"""

from __future__ import annotations

import argparse
import dataclasses
import json
import types
import typing
from pathlib import Path
from typing import Any, Callable, Generic, TypeVar, Union

import yaml
from jsonschema import Draft202012Validator
from jsonschema.exceptions import best_match

T = TypeVar("T")

_FORMATS = {
    ".json": "json",
    ".yaml": "yaml",
    ".yml": "yaml",
}

_PRIMITIVES: dict[Any, dict[str, Any]] = {
    str: {"type": "string"},
    int: {"type": "integer"},
    float: {"type": "number"},
    bool: {"type": "boolean"},
    type(None): {"type": "null"},
}


class FileError(argparse.ArgumentTypeError):
    pass


def _is_union(origin: Any) -> bool:
    return origin is Union or origin is getattr(types, "UnionType", None)


def schema_for(tp: Any) -> dict[str, Any]:
    """Return a JSON schema describing values of ``tp``."""
    if tp in _PRIMITIVES:
        return dict(_PRIMITIVES[tp])
    if dataclasses.is_dataclass(tp) and isinstance(tp, type):
        hints = typing.get_type_hints(tp)
        props: dict[str, Any] = {}
        required: list[str] = []
        for fld in dataclasses.fields(tp):
            props[fld.name] = schema_for(hints[fld.name])
            if fld.default is dataclasses.MISSING and fld.default_factory is dataclasses.MISSING:
                required.append(fld.name)
        schema: dict[str, Any] = {"type": "object", "properties": props}
        if required:
            schema["required"] = required
        return schema
    origin = typing.get_origin(tp)
    args = typing.get_args(tp)
    if _is_union(origin):
        return {"anyOf": [schema_for(arg) for arg in args]}
    if origin in (list, tuple, set, frozenset):
        item = args[0] if args else Any
        return {"type": "array", "items": schema_for(item)}
    if origin is dict:
        value = args[1] if len(args) == 2 else Any
        return {"type": "object", "additionalProperties": schema_for(value)}
    if tp in (list, tuple):
        return {"type": "array"}
    if tp is dict:
        return {"type": "object"}
    return {}


def _build(tp: Any, data: Any) -> Any:
    if data is None:
        return None
    if dataclasses.is_dataclass(tp) and isinstance(tp, type):
        hints = typing.get_type_hints(tp)
        kwargs = {
            fld.name: _build(hints[fld.name], data[fld.name])
            for fld in dataclasses.fields(tp)
            if fld.init and fld.name in data
        }
        return tp(**kwargs)
    origin = typing.get_origin(tp)
    args = typing.get_args(tp)
    if _is_union(origin):
        for arg in args:
            if arg is type(None):
                continue
            if dataclasses.is_dataclass(arg) and not isinstance(data, dict):
                continue
            return _build(arg, data)
        return data
    if origin in (list, tuple, set, frozenset) and args:
        return origin(_build(args[0], item) for item in data)
    if origin is dict and len(args) == 2:
        return {key: _build(args[1], value) for key, value in data.items()}
    if tp is float and isinstance(data, int) and not isinstance(data, bool):
        return float(data)
    return data


def _location(path: typing.Iterable[Any]) -> str:
    location = ""
    for part in path:
        if isinstance(part, int):
            location += f"[{part}]"
        else:
            location += f".{part}" if location else str(part)
    return location or "."


def _parse(raw: str, fmt: str) -> Any:
    if fmt == "json":
        try:
            return json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ValueError(f"line {exc.lineno} column {exc.colno}: {exc.msg}") from exc
    try:
        return yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        mark = getattr(exc, "problem_mark", None)
        problem = getattr(exc, "problem", None) or str(exc)
        if mark is not None:
            raise ValueError(f"line {mark.line + 1} column {mark.column + 1}: {problem}") from exc
        raise ValueError(problem) from exc


class File(Generic[T]):
    """Deserialize the file at a command-line path into ``target``.

    ``target`` is usually a dataclass; any other callable receives the parsed
    data as is (``File(dict)`` keeps the raw mapping). Field annotations of a
    dataclass target must resolve from its module, so classes defined inside a
    function cannot refer to each other; such targets raise ``TypeError``.
    """

    def __init__(self, target: Callable[..., T] | type[T]) -> None:
        self._target = target
        self._validator: Draft202012Validator | None = None
        if dataclasses.is_dataclass(target) and isinstance(target, type):
            try:
                schema = schema_for(target)
            except NameError as exc:
                raise TypeError(
                    f"Cannot resolve field types of {target.__qualname__}: {exc}; define it at module level"
                ) from exc
            self._validator = Draft202012Validator(schema)
        self.__name__ = getattr(target, "__name__", type(self).__name__)

    def __call__(self, value: str) -> T:
        return self.load(Path(value))

    def __repr__(self) -> str:
        return f"File({self.__name__})"

    def load(self, path: Path) -> T:
        fmt = _FORMATS.get(path.suffix.lower())
        try:
            raw = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise FileError(f"Could not read file {path}: {exc.strerror or exc}") from exc
        if fmt is None:
            raise FileError(f"Unsupported file type: {path.suffix or '<none>'}")
        try:
            data = _parse(raw, fmt)
        except ValueError as exc:
            raise FileError(f"Failed to deserialize {path}: {exc}") from exc
        return self._convert(path, data)

    def _convert(self, path: Path, data: Any) -> T:
        if self._validator is None:
            try:
                return self._target(data)  # type: ignore[call-arg]
            except (TypeError, ValueError) as exc:
                raise FileError(f"Failed to deserialize {path}: {exc}") from exc
        error = best_match(self._validator.iter_errors(data))
        if error is not None:
            raise FileError(
                f"Failed to deserialize {path}: {_location(error.absolute_path)}: {error.message}"
            )
        try:
            return _build(self._target, data)
        except (TypeError, ValueError) as exc:
            raise FileError(f"Failed to deserialize {path}: {exc}") from exc


__all__ = ["File", "FileError", "schema_for"]
