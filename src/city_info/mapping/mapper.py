"""
city_info.mapping.mapper

Table-driven object mapping between persistence entities and wire representations.

Responsibilities:
- Compile `TypeMap` rows (source type, target type, field rules) into an immutable table.
- Fail fast at start-up when a required target field has no correspondence.
- Map instances without mutating the source; optional fields fall back to target defaults.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, TypeVar

from pydantic import BaseModel
from sqlalchemy import inspect as sa_inspect

from city_info.errors import ConfigurationError

T = TypeVar("T")

_MISSING = object()


@dataclass(frozen=True, slots=True)
class Nested:
    """
    Map `source_attr` (an instance or a collection of `source`) to `target` using its own TypeMap.
    """

    source_attr: str
    source: type
    target: type


Rule = str | Nested | Callable[[Any], Any]


@dataclass(frozen=True, slots=True)
class TypeMap:
    source: type
    target: type
    rules: Mapping[str, Rule] = field(default_factory=dict)
    ignore: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class _CompiledMap:
    source: type
    target: type
    rules: Mapping[str, Rule]
    required: frozenset[str]


def target_fields(cls: type) -> dict[str, bool]:
    """
    Field name -> required flag for pydantic models, dataclasses and SQLAlchemy entities.
    """

    if isinstance(cls, type) and issubclass(cls, BaseModel):
        return {name: f.is_required() for name, f in cls.model_fields.items()}
    if dataclasses.is_dataclass(cls):
        return {
            f.name: f.default is dataclasses.MISSING and f.default_factory is dataclasses.MISSING
            for f in dataclasses.fields(cls)
        }
    mapper = sa_inspect(cls, raiseerr=False)
    if mapper is not None:
        fields: dict[str, bool] = {}
        for col in mapper.columns:
            optional = (
                col.nullable
                or col.primary_key
                or bool(col.foreign_keys)
                or col.default is not None
                or col.server_default is not None
            )
            fields[col.key] = not optional
        for rel in mapper.relationships:
            fields[rel.key] = False
        return fields
    raise ConfigurationError(f"cannot introspect fields of {cls!r}")


def source_fields(cls: type) -> set[str]:
    if isinstance(cls, type) and issubclass(cls, BaseModel):
        return set(cls.model_fields)
    if dataclasses.is_dataclass(cls):
        return {f.name for f in dataclasses.fields(cls)}
    mapper = sa_inspect(cls, raiseerr=False)
    if mapper is not None:
        return set(mapper.attrs.keys())
    raise ConfigurationError(f"cannot introspect fields of {cls!r}")


class Mapper:
    def __init__(self, type_maps: Iterable[TypeMap]) -> None:
        table: dict[tuple[type, type], _CompiledMap] = {}
        for tm in type_maps:
            key = (tm.source, tm.target)
            if key in table:
                raise ConfigurationError(
                    f"duplicate mapping {tm.source.__name__} -> {tm.target.__name__}"
                )
            table[key] = _compile(tm)
        self._table: Mapping[tuple[type, type], _CompiledMap] = MappingProxyType(table)

        # Nested rules must point at registered pairs.
        for compiled in self._table.values():
            for rule in compiled.rules.values():
                if isinstance(rule, Nested) and (rule.source, rule.target) not in self._table:
                    raise ConfigurationError(
                        f"{compiled.source.__name__} -> {compiled.target.__name__} nests "
                        f"unregistered mapping {rule.source.__name__} -> {rule.target.__name__}"
                    )

    def pairs(self) -> list[tuple[type, type]]:
        return list(self._table)

    def validate(self, required_pairs: Iterable[tuple[type, type]]) -> None:
        for source, target in required_pairs:
            if (source, target) not in self._table:
                raise ConfigurationError(
                    f"no mapping registered for {source.__name__} -> {target.__name__}"
                )

    def map(self, source: Any, target: type[T]) -> T:
        compiled = self._lookup(type(source), target)
        return _construct(target, self._values(compiled, source))

    def map_many(self, sources: Iterable[Any], target: type[T]) -> list[T]:
        return [self.map(s, target) for s in sources]

    def map_onto(self, source: Any, instance: T) -> T:
        compiled = self._lookup(type(source), type(instance))
        # Assignment semantics: explicit None clears the destination field.
        for name, value in self._values(compiled, source, keep_none=True).items():
            setattr(instance, name, value)
        return instance

    def _lookup(self, source: type, target: type) -> _CompiledMap:
        for klass in source.__mro__:
            compiled = self._table.get((klass, target))
            if compiled is not None:
                return compiled
        # Callers only map pairs validated at start-up; reaching this is a wiring bug.
        raise ConfigurationError(f"no mapping registered for {source.__name__} -> {target.__name__}")

    def _values(
        self, compiled: _CompiledMap, source: Any, *, keep_none: bool = False
    ) -> dict[str, Any]:
        values: dict[str, Any] = {}
        for name, rule in compiled.rules.items():
            value = self._apply(rule, source)
            if value is _MISSING or (
                value is None and not keep_none and name not in compiled.required
            ):
                # Let the target's own default apply.
                continue
            values[name] = value
        return values

    def _apply(self, rule: Rule, source: Any) -> Any:
        if isinstance(rule, str):
            return getattr(source, rule, _MISSING)
        if isinstance(rule, Nested):
            value = getattr(source, rule.source_attr, _MISSING)
            if value is _MISSING or value is None:
                return value
            if isinstance(value, list | tuple | set):
                return [self.map(v, rule.target) for v in value]
            return self.map(value, rule.target)
        return rule(source)


def _compile(tm: TypeMap) -> _CompiledMap:
    targets = target_fields(tm.target)
    sources = source_fields(tm.source)

    unknown = set(tm.rules) - set(targets)
    if unknown:
        raise ConfigurationError(
            f"{tm.source.__name__} -> {tm.target.__name__}: rules for unknown fields {sorted(unknown)}"
        )

    rules: dict[str, Rule] = {}
    for name, required in targets.items():
        if name in tm.rules:
            rule = tm.rules[name]
            if isinstance(rule, str) and rule not in sources:
                raise ConfigurationError(
                    f"{tm.source.__name__} has no field {rule!r} (mapping to {tm.target.__name__}.{name})"
                )
            rules[name] = rule
        elif name in tm.ignore:
            if required:
                raise ConfigurationError(
                    f"{tm.target.__name__}.{name} is required and cannot be ignored"
                )
        elif name in sources:
            rules[name] = name
        elif required:
            raise ConfigurationError(
                f"{tm.source.__name__} -> {tm.target.__name__}: required field {name!r} has no source"
            )
    required_names = frozenset(n for n, req in targets.items() if req)
    return _CompiledMap(
        source=tm.source, target=tm.target, rules=MappingProxyType(rules), required=required_names
    )


def _construct(target: type[T], values: dict[str, Any]) -> T:
    if issubclass(target, BaseModel):
        return target.model_validate(values)
    return target(**values)


# --- Module Notes -----------------------------------------------------------
# Source objects are only read through getattr; nothing here assigns to them.
