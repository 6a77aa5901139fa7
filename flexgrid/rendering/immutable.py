"""Per-grid configuration snapshot.

An ``ImmutableGridContext`` is built when a grid binds to an entity type and
stays read-only until the grid binds to a different type. Column order is
the declaration order of the entity type's properties.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING

from ..config import CssSettings, get_settings
from ..exceptions import ConfigurationError, MissingFormatterError
from ..metadata.accessor import TypePropertyAccessor, get_property_accessor
from ..metadata.formatters import FormatterRegistry, ValueFormatter, get_formatter_registry
from ..metadata.properties import PropertyInfo, get_declared_properties


if TYPE_CHECKING:
    from ..metadata.entity import EntityConfiguration, SpecialColumnRenderer
    from ..permissions import PermissionContext


@dataclass(frozen=True, eq=False)
class ImmutableGridContext:
    """Everything about a grid that does not change between renders."""

    entity_configuration: EntityConfiguration
    grid_item_properties: tuple[PropertyInfo, ...]
    grid_item_collection_properties: tuple[PropertyInfo, ...]
    css_classes: CssSettings
    value_formatters: Mapping[str, ValueFormatter]
    special_column_renderers: Mapping[str, SpecialColumnRenderer]
    property_accessor: TypePropertyAccessor

    @property
    def column_names(self) -> tuple[str, ...]:
        return tuple(p.name for p in self.grid_item_properties)

    @property
    def first_column_name(self) -> str | None:
        return self.grid_item_properties[0].name if self.grid_item_properties else None

    @property
    def last_column_name(self) -> str | None:
        return self.grid_item_properties[-1].name if self.grid_item_properties else None

    def create_item_is_allowed(self, permission_context: PermissionContext) -> bool:
        """Whether the create control should be rendered."""
        options = self.entity_configuration.create_item_options
        return options.is_create_allowed and permission_context.has_current_user_create_permission()

    def inline_edit_is_allowed(self) -> bool:
        return self.entity_configuration.inline_edit_options.allow_inline_edit

    def delete_is_allowed(self, permission_context: PermissionContext) -> bool:
        options = self.entity_configuration.inline_edit_options
        return options.allow_deleting and permission_context.has_current_user_delete_permission()


def build_immutable_grid_context(
    configuration: EntityConfiguration,
    item_type: type,
    css_classes: CssSettings | None = None,
    formatters: FormatterRegistry | None = None,
) -> ImmutableGridContext:
    """Build the configuration snapshot of a grid bound to ``item_type``.

    Parameters
    ----------
    configuration : EntityConfiguration
        Configuration of the entity type.
    item_type : type
        The data set's item type; must be the configured entity type.
    css_classes : CssSettings, optional
        Class names to render with. Defaults to the active settings.
    formatters : FormatterRegistry, optional
        Registry used to infer formatters of unconfigured columns.

    Raises
    ------
    ConfigurationError
        If ``item_type`` does not match the configuration.
    MissingFormatterError
        If a column has no formatter and none can be inferred from its type.
    """
    if item_type is not configuration.entity_type:
        raise ConfigurationError(
            f"Data set items are '{item_type.__name__}' but the configuration is for "
            f"'{configuration.name}'",
            entity_type=configuration.name,
        )
    formatters = formatters or get_formatter_registry()
    declared = get_declared_properties(item_type)

    properties = tuple(
        p for p in declared
        if not p.is_collection and configuration.find_column_configuration(p.name).is_visible
    )

    value_formatters: dict[str, ValueFormatter] = {}
    special_renderers: dict[str, SpecialColumnRenderer] = {}
    for prop in properties:
        column = configuration.find_column_configuration(prop.name)
        if column.special_renderer is not None:
            special_renderers[prop.name] = column.special_renderer
        formatter = column.value_formatter or formatters.infer(prop.property_type)
        if formatter is not None:
            value_formatters[prop.name] = formatter
        elif prop.name not in special_renderers:
            raise MissingFormatterError(
                f"No value formatter for column '{prop.name}' of type {prop.property_type!r}",
                entity_type=configuration.name,
                column=prop.name,
            )

    return ImmutableGridContext(
        entity_configuration=configuration,
        grid_item_properties=properties,
        grid_item_collection_properties=tuple(p for p in declared if p.is_collection),
        css_classes=css_classes or get_settings().css,
        value_formatters=MappingProxyType(value_formatters),
        special_column_renderers=MappingProxyType(special_renderers),
        property_accessor=get_property_accessor(item_type),
    )
