"""Entity, column and relationship configuration.

Configuration is declared through a fluent builder on a ``ModelConfiguration``
and frozen into an ``EntityConfiguration`` on first use:

    model = get_model_configuration()
    person = model.entity(Person).has_caption("People")
    person.property("age").has_caption("Age").has_read_permission("hr")
    person.has_many(Order, "orders").has_page_size(10)

Built configurations are cached by type identity and never mutated.
"""

from __future__ import annotations

import threading

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from ..exceptions import (
    ConfigurationError,
    MissingColumnConfigurationError,
    MissingRelationshipError,
)
from .formatters import ValueFormatter, ValueFormatterType
from .properties import PropertyInfo, get_collection_properties, get_declared_properties


if TYPE_CHECKING:
    from ..dataset.table import TableDataSet


# Receives the current item, returns markup emitted verbatim.
SpecialColumnRenderer = Callable[[Any], str]

# Receives the master data set, returns the detail grid page size.
PageSizePolicy = Callable[["TableDataSet"], int]


@dataclass(frozen=True)
class ColumnConfiguration:
    """Configuration of one column of an entity."""

    name: str
    caption: str | None = None
    is_visible: bool = True
    is_editable: bool = True
    value_formatter: ValueFormatter | None = None
    special_renderer: SpecialColumnRenderer | None = None
    read_permission: str | None = None
    write_permission: str | None = None

    @property
    def display_caption(self) -> str:
        """Header text for the column."""
        return self.caption if self.caption is not None else self.name

    @property
    def read_permission_key(self) -> str:
        """Key passed to the permission backend for reads."""
        return self.read_permission or self.name

    @property
    def write_permission_key(self) -> str:
        """Key passed to the permission backend for writes."""
        return self.write_permission or self.read_permission_key


@dataclass(frozen=True)
class RelationshipConfiguration:
    """A master-detail relationship from an entity to a related entity type."""

    related_type: type
    navigation_property: str | None = None
    caption: str | None = None
    page_size: int | PageSizePolicy = 10
    lazy_loading_url: str | None = None
    update_url: str | None = None
    delete_url: str | None = None

    @property
    def is_lazy(self) -> bool:
        """Whether detail rows are fetched through a lazy-loading URI."""
        return self.lazy_loading_url is not None

    def detail_grid_page_size(self, master_data_set: TableDataSet) -> int:
        """Page size for the detail grid, given the master data set."""
        if callable(self.page_size):
            return int(self.page_size(master_data_set))
        return self.page_size

    def detail_grid_lazy_loading_url(self) -> str | None:
        """URI template the detail grid loads its pages from."""
        return self.lazy_loading_url

    def detail_grid_update_url(self) -> str | None:
        """URI template the detail grid sends updates to."""
        return self.update_url

    def detail_grid_delete_url(self) -> str | None:
        """URI template the detail grid sends deletes to."""
        return self.delete_url


@dataclass(frozen=True)
class CreateItemOptions:
    """Whether new items can be created from the grid."""

    is_create_allowed: bool = False
    create_uri: str | None = None


@dataclass(frozen=True)
class InlineEditOptions:
    """Inline edit and delete switches."""

    allow_inline_edit: bool = False
    allow_deleting: bool = False


@dataclass(frozen=True, eq=False)
class EntityConfiguration:
    """Immutable description of an entity type's columns and relationships."""

    entity_type: type
    caption: str | None = None
    columns: Mapping[str, ColumnConfiguration] = field(default_factory=dict)
    relationships: Mapping[type, RelationshipConfiguration] = field(default_factory=dict)
    create_item_options: CreateItemOptions = field(default_factory=CreateItemOptions)
    inline_edit_options: InlineEditOptions = field(default_factory=InlineEditOptions)

    @property
    def name(self) -> str:
        """Name of the entity type."""
        return self.entity_type.__name__

    @property
    def collection_properties(self) -> tuple[PropertyInfo, ...]:
        """Collection-typed properties of the entity type."""
        return get_collection_properties(self.entity_type)

    @property
    def is_master_table(self) -> bool:
        """Whether rows of this entity expand into detail grids."""
        return bool(self.relationships)

    def find_column_configuration(self, name: str) -> ColumnConfiguration:
        """Get the configuration of column ``name``.

        Raises
        ------
        MissingColumnConfigurationError
            If the entity has no such column.
        """
        try:
            return self.columns[name]
        except KeyError:
            raise MissingColumnConfigurationError(
                f"No column '{name}' configured", entity_type=self.name, column=name
            ) from None

    def find_relationship_configuration(self, related_type: type) -> RelationshipConfiguration:
        """Get the relationship to ``related_type``.

        Raises
        ------
        MissingRelationshipError
            If no relationship to that type is registered.
        """
        try:
            return self.relationships[related_type]
        except KeyError:
            raise MissingRelationshipError(
                f"No relationship from '{self.name}' to '{related_type.__name__}'",
                entity_type=self.name,
                related_type=related_type.__name__,
            ) from None


class PropertyBuilder:
    """Fluent configuration of a single column."""

    def __init__(self, name: str) -> None:
        self._values: dict[str, Any] = {"name": name}

    def has_caption(self, caption: str) -> PropertyBuilder:
        self._values["caption"] = caption
        return self

    def is_visible(self, visible: bool = True) -> PropertyBuilder:
        self._values["is_visible"] = visible
        return self

    def is_editable(self, editable: bool = True) -> PropertyBuilder:
        self._values["is_editable"] = editable
        return self

    def has_value_formatter(
        self,
        formatter: ValueFormatter | Callable[[Any], Any],
        formatter_type: ValueFormatterType = ValueFormatterType.SINGLE_PROPERTY,
    ) -> PropertyBuilder:
        """Set the column's formatter; plain callables are wrapped."""
        if not isinstance(formatter, ValueFormatter):
            formatter = ValueFormatter(formatter, formatter_type)
        self._values["value_formatter"] = formatter
        return self

    def has_special_renderer(self, renderer: SpecialColumnRenderer) -> PropertyBuilder:
        """Render the column with ``renderer(item)`` instead of a formatter."""
        self._values["special_renderer"] = renderer
        return self

    def has_read_permission(self, key: str) -> PropertyBuilder:
        self._values["read_permission"] = key
        return self

    def has_write_permission(self, key: str) -> PropertyBuilder:
        self._values["write_permission"] = key
        return self

    def build(self) -> ColumnConfiguration:
        return ColumnConfiguration(**self._values)


class RelationshipBuilder:
    """Fluent configuration of a master-detail relationship."""

    def __init__(self, related_type: type, navigation_property: str | None) -> None:
        self._values: dict[str, Any] = {
            "related_type": related_type,
            "navigation_property": navigation_property,
        }

    def has_caption(self, caption: str) -> RelationshipBuilder:
        self._values["caption"] = caption
        return self

    def has_page_size(self, page_size: int | PageSizePolicy) -> RelationshipBuilder:
        """Fixed detail page size, or a policy computed from the master data set."""
        self._values["page_size"] = page_size
        return self

    def has_lazy_loading_url(self, url: str) -> RelationshipBuilder:
        self._values["lazy_loading_url"] = url
        return self

    def has_update_url(self, url: str) -> RelationshipBuilder:
        self._values["update_url"] = url
        return self

    def has_delete_url(self, url: str) -> RelationshipBuilder:
        self._values["delete_url"] = url
        return self

    def build(self) -> RelationshipConfiguration:
        return RelationshipConfiguration(**self._values)


class EntityTypeBuilder:
    """Fluent configuration of an entity type."""

    def __init__(self, entity_type: type) -> None:
        self.entity_type = entity_type
        self._caption: str | None = None
        self._properties: dict[str, PropertyBuilder] = {}
        self._relationships: dict[type, RelationshipBuilder] = {}
        self._create_item_options = CreateItemOptions()
        self._inline_edit_options = InlineEditOptions()

    def has_caption(self, caption: str) -> EntityTypeBuilder:
        self._caption = caption
        return self

    def property(self, name: str) -> PropertyBuilder:
        """Get the builder of column ``name``."""
        if name not in self._properties:
            self._properties[name] = PropertyBuilder(name)
        return self._properties[name]

    def has_many(self, related_type: type, navigation_property: str | None = None) -> RelationshipBuilder:
        """Declare a master-detail relationship to ``related_type``.

        When ``navigation_property`` is omitted the first collection property
        whose item type is ``related_type`` is used.
        """
        if navigation_property is None:
            navigation_property = next(
                (p.name for p in get_collection_properties(self.entity_type)
                 if p.item_type is related_type),
                None,
            )
        builder = RelationshipBuilder(related_type, navigation_property)
        self._relationships[related_type] = builder
        return builder

    def allow_create_items(self, allowed: bool = True, create_uri: str | None = None) -> EntityTypeBuilder:
        self._create_item_options = CreateItemOptions(is_create_allowed=allowed, create_uri=create_uri)
        return self

    def allow_inline_edit(self, allowed: bool = True, allow_deleting: bool | None = None) -> EntityTypeBuilder:
        self._inline_edit_options = InlineEditOptions(
            allow_inline_edit=allowed,
            allow_deleting=allowed if allow_deleting is None else allow_deleting,
        )
        return self

    def build(self) -> EntityConfiguration:
        """Freeze the configuration.

        Raises
        ------
        ConfigurationError
            If a configured column is not a declared property of the type.
        """
        declared = [p for p in get_declared_properties(self.entity_type) if not p.is_collection]
        declared_names = {p.name for p in declared}
        unknown = [name for name in self._properties if name not in declared_names]
        if unknown:
            raise ConfigurationError(
                f"Configured columns are not declared properties: {', '.join(unknown)}",
                entity_type=self.entity_type.__name__,
                column=unknown[0],
            )

        columns = {
            p.name: (self._properties[p.name].build() if p.name in self._properties
                     else ColumnConfiguration(name=p.name))
            for p in declared
        }
        relationships = {t: b.build() for t, b in self._relationships.items()}
        return EntityConfiguration(
            entity_type=self.entity_type,
            caption=self._caption,
            columns=MappingProxyType(columns),
            relationships=MappingProxyType(relationships),
            create_item_options=self._create_item_options,
            inline_edit_options=self._inline_edit_options,
        )


class ModelConfiguration:
    """Process-wide registry of entity builders and their frozen configurations."""

    def __init__(self) -> None:
        self._builders: dict[type, EntityTypeBuilder] = {}
        self._built: dict[type, EntityConfiguration] = {}
        self._lock = threading.RLock()

    def entity(self, entity_type: type) -> EntityTypeBuilder:
        """Get (or create) the builder for ``entity_type``.

        Any previously frozen configuration for the type is discarded so the
        next lookup reflects the builder's changes.
        """
        with self._lock:
            self._built.pop(entity_type, None)
            if entity_type not in self._builders:
                self._builders[entity_type] = EntityTypeBuilder(entity_type)
            return self._builders[entity_type]

    def has_entity(self, entity_type: type) -> bool:
        return entity_type in self._builders

    def find_entity_configuration(self, entity_type: type) -> EntityConfiguration:
        """Get the frozen configuration of ``entity_type``, building it once.

        Types without explicit configuration get the default one.
        """
        with self._lock:
            configuration = self._built.get(entity_type)
            if configuration is None:
                builder = self._builders.get(entity_type) or EntityTypeBuilder(entity_type)
                configuration = builder.build()
                self._built[entity_type] = configuration
            return configuration


class _ModelHolder:
    """Holder for the process-wide model configuration."""

    instance: ModelConfiguration | None = None
    lock = threading.Lock()


def get_model_configuration() -> ModelConfiguration:
    """Get the process-wide model configuration."""
    if _ModelHolder.instance is None:
        with _ModelHolder.lock:
            if _ModelHolder.instance is None:
                _ModelHolder.instance = ModelConfiguration()
    return _ModelHolder.instance


def reset_model_configuration() -> None:
    """Discard every entity configuration."""
    with _ModelHolder.lock:
        _ModelHolder.instance = None
