"""Declared-property discovery for entity types.

An entity's columns come from the properties its type declares, in
declaration order. Dataclasses, pydantic models and plain annotated classes
are supported. Collection-typed properties are reported separately since
they back master-detail relationships rather than cells.
"""

from __future__ import annotations

import collections.abc
import dataclasses
import inspect
import types
import typing

from dataclasses import dataclass
from functools import lru_cache
from typing import Any, ClassVar, Union


_COLLECTION_ORIGINS: frozenset[Any] = frozenset(
    {
        list,
        tuple,
        set,
        frozenset,
        collections.abc.Sequence,
        collections.abc.MutableSequence,
        collections.abc.Collection,
        collections.abc.Iterable,
        collections.abc.Set,
        collections.abc.MutableSet,
    }
)

_COLLECTION_PREFIXES = ("list[", "tuple[", "set[", "frozenset[", "Sequence[", "Iterable[", "Collection[")


@dataclass(frozen=True)
class PropertyInfo:
    """A single declared property of an entity type.

    ``property_type`` has ``None`` unwrapped from optional annotations;
    ``annotation`` is the declared annotation as resolved.
    """

    name: str
    property_type: Any = Any
    is_collection: bool = False
    item_type: Any = None
    annotation: Any = Any


def unwrap_optional(annotation: Any) -> Any:
    """Return ``X`` for ``X | None`` / ``Optional[X]``, otherwise the annotation."""
    origin = typing.get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        args = [a for a in typing.get_args(annotation) if a is not type(None)]
        if len(args) == 1:
            return args[0]
    return annotation


def _collection_item_type(annotation: Any) -> tuple[bool, Any]:
    annotation = unwrap_optional(annotation)
    origin = typing.get_origin(annotation)
    if origin in _COLLECTION_ORIGINS:
        args = [a for a in typing.get_args(annotation) if a is not Ellipsis]
        return True, args[0] if args else Any
    if annotation in (list, tuple, set, frozenset):
        return True, Any
    if isinstance(annotation, str) and annotation.startswith(_COLLECTION_PREFIXES):
        # unresolvable forward reference; the item type is unknown
        return True, Any
    return False, None


def _annotated_names(entity_type: type) -> list[str]:
    names: list[str] = []
    for klass in reversed(entity_type.__mro__):
        for name, annotation in inspect.get_annotations(klass).items():
            if name.startswith("_") or name in names:
                continue
            if annotation is ClassVar or str(annotation).startswith(("ClassVar", "typing.ClassVar")):
                continue
            names.append(name)
    return names


def _declared_names(entity_type: type) -> list[str]:
    if dataclasses.is_dataclass(entity_type):
        return [f.name for f in dataclasses.fields(entity_type) if not f.name.startswith("_")]
    model_fields = getattr(entity_type, "model_fields", None)
    if isinstance(model_fields, dict):
        return list(model_fields)
    return _annotated_names(entity_type)


def _resolved_hints(entity_type: type) -> dict[str, Any]:
    model_fields = getattr(entity_type, "model_fields", None)
    if isinstance(model_fields, dict):
        return {name: info.annotation for name, info in model_fields.items()}
    try:
        return typing.get_type_hints(entity_type)
    except (NameError, TypeError):
        hints: dict[str, Any] = {}
        for klass in reversed(entity_type.__mro__):
            hints.update(inspect.get_annotations(klass))
        return hints


@lru_cache(maxsize=None)
def get_declared_properties(entity_type: type) -> tuple[PropertyInfo, ...]:
    """Get the declared properties of a type in declaration order.

    Parameters
    ----------
    entity_type : type
        The entity type to inspect.

    Returns
    -------
    tuple of PropertyInfo
        One entry per public declared property, collection-typed ones included.
    """
    hints = _resolved_hints(entity_type)
    properties = []
    for name in _declared_names(entity_type):
        annotation = hints.get(name, Any)
        is_collection, item_type = _collection_item_type(annotation)
        properties.append(
            PropertyInfo(
                name=name,
                property_type=Any if isinstance(annotation, str) else unwrap_optional(annotation),
                is_collection=is_collection,
                item_type=item_type,
                annotation=Any if isinstance(annotation, str) else annotation,
            )
        )
    return tuple(properties)


def get_collection_properties(entity_type: type) -> tuple[PropertyInfo, ...]:
    """Get the collection-typed properties of a type in declaration order."""
    return tuple(p for p in get_declared_properties(entity_type) if p.is_collection)
