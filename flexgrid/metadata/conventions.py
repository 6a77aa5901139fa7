"""Conventions applied to an entity type the first time a grid meets it."""

from __future__ import annotations

import threading

from collections.abc import Callable

from ..log import debug
from .entity import EntityConfiguration, ModelConfiguration, get_model_configuration
from .formatters import FormatterRegistry, ValueFormatter, get_formatter_registry
from .properties import get_declared_properties


Convention = Callable[[EntityConfiguration, FormatterRegistry], None]


def markup_value_convention(configuration: EntityConfiguration, registry: FormatterRegistry) -> None:
    """Register a verbatim formatter for property types implementing ``__html__``."""
    for prop in get_declared_properties(configuration.entity_type):
        value_type = prop.property_type
        if prop.is_collection or not isinstance(value_type, type):
            continue
        if hasattr(value_type, "__html__") and value_type not in registry:
            registry.register(value_type, ValueFormatter(lambda value: value.__html__()))


DEFAULT_CONVENTIONS: tuple[Convention, ...] = (markup_value_convention,)


class ConventionsSet:
    """Applies conventions once per entity type, process-wide.

    Detail types reachable through relationships are covered in the same
    call. Concurrent first use from several grids applies each type once.
    """

    def __init__(
        self,
        conventions: tuple[Convention, ...] = DEFAULT_CONVENTIONS,
        model: ModelConfiguration | None = None,
        formatters: FormatterRegistry | None = None,
    ) -> None:
        self._conventions = conventions
        self._model = model
        self._formatters = formatters
        self._applied: set[type] = set()
        self._lock = threading.Lock()

    @property
    def model(self) -> ModelConfiguration:
        return self._model or get_model_configuration()

    @property
    def formatters(self) -> FormatterRegistry:
        return self._formatters or get_formatter_registry()

    def is_applied(self, entity_type: type) -> bool:
        return entity_type in self._applied

    def apply_conventions(self, entity_type: type) -> EntityConfiguration:
        """Apply all conventions to ``entity_type`` and its related types.

        Parameters
        ----------
        entity_type : type
            The underlying item type of a data adapter.

        Returns
        -------
        EntityConfiguration
            The frozen configuration of ``entity_type``.
        """
        with self._lock:
            pending = [entity_type]
            while pending:
                current = pending.pop()
                if current in self._applied:
                    continue
                configuration = self.model.find_entity_configuration(current)
                for convention in self._conventions:
                    convention(configuration, self.formatters)
                self._applied.add(current)
                debug(f"Applied conventions to '{current.__name__}'")
                pending.extend(configuration.relationships)
        return self.model.find_entity_configuration(entity_type)


class _ConventionsHolder:
    """Holder for the process-wide conventions set."""

    instance: ConventionsSet | None = None
    lock = threading.Lock()


def get_conventions_set() -> ConventionsSet:
    """Get the process-wide conventions set."""
    if _ConventionsHolder.instance is None:
        with _ConventionsHolder.lock:
            if _ConventionsHolder.instance is None:
                _ConventionsHolder.instance = ConventionsSet()
    return _ConventionsHolder.instance


def reset_conventions_set() -> None:
    """Forget which types conventions were applied to."""
    with _ConventionsHolder.lock:
        _ConventionsHolder.instance = None
