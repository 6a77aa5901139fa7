"""Property accessor tables, built once per entity type."""

from __future__ import annotations

import operator

from collections.abc import Callable
from functools import lru_cache
from typing import Any

from pydantic import PydanticSchemaGenerationError, TypeAdapter

from ..exceptions import MissingColumnConfigurationError
from .properties import PropertyInfo, get_declared_properties


class TypePropertyAccessor:
    """Get and set declared properties of items of one entity type.

    Getters and setters are precomputed per property name so cell rendering
    does no per-call attribute-name resolution. ``set_value`` writes to the
    item instance itself; no copy is made.
    """

    def __init__(self, entity_type: type) -> None:
        """Build the accessor table for ``entity_type``.

        Parameters
        ----------
        entity_type : type
            The entity type whose declared properties are exposed.
        """
        self.entity_type = entity_type
        self._getters: dict[str, Callable[[Any], Any]] = {}
        self._setters: dict[str, Callable[[Any, Any], None]] = {}
        self._properties: dict[str, PropertyInfo] = {}
        self._validators: dict[str, TypeAdapter[Any] | None] = {}
        for prop in get_declared_properties(entity_type):
            self._getters[prop.name] = operator.attrgetter(prop.name)
            self._setters[prop.name] = _make_setter(prop.name)
            self._properties[prop.name] = prop

    @property
    def property_names(self) -> tuple[str, ...]:
        """Names of all accessible properties in declaration order."""
        return tuple(self._getters)

    def get_value(self, item: Any, name: str) -> Any:
        """Read property ``name`` from ``item``."""
        return self._lookup(self._getters, name)(item)

    def set_value(self, item: Any, name: str, value: Any) -> None:
        """Write ``value`` to property ``name`` of ``item`` in place."""
        self._lookup(self._setters, name)(item, value)

    def convert_value(self, name: str, value: Any) -> Any:
        """Convert ``value`` to the declared type of property ``name``.

        Uses pydantic's lax validation, so ``"31"`` becomes ``31`` for an
        ``int`` property. Values of types pydantic has no schema for are
        returned unchanged.

        Raises
        ------
        pydantic.ValidationError
            If ``value`` cannot be converted.
        """
        prop = self._lookup(self._properties, name)
        if name not in self._validators:
            self._validators[name] = _validator_for(prop)
        validator = self._validators[name]
        return value if validator is None else validator.validate_python(value)

    def _lookup(self, table: dict[str, Any], name: str) -> Any:
        try:
            return table[name]
        except KeyError:
            raise MissingColumnConfigurationError(
                f"'{self.entity_type.__name__}' has no property '{name}'",
                entity_type=self.entity_type.__name__,
                column=name,
            ) from None


def _make_setter(name: str) -> Callable[[Any, Any], None]:
    def setter(item: Any, value: Any) -> None:
        setattr(item, name, value)

    return setter


def _validator_for(prop: PropertyInfo) -> TypeAdapter[Any] | None:
    if prop.annotation is Any:
        return None
    try:
        return TypeAdapter(prop.annotation)
    except PydanticSchemaGenerationError:
        return None


@lru_cache(maxsize=None)
def get_property_accessor(entity_type: type) -> TypePropertyAccessor:
    """Get the cached accessor for an entity type."""
    return TypePropertyAccessor(entity_type)
