"""Entity metadata: declared properties, accessors, formatters and configuration."""

from .accessor import TypePropertyAccessor, get_property_accessor
from .conventions import ConventionsSet, get_conventions_set, reset_conventions_set
from .entity import (
    ColumnConfiguration,
    CreateItemOptions,
    EntityConfiguration,
    EntityTypeBuilder,
    InlineEditOptions,
    ModelConfiguration,
    RelationshipConfiguration,
    get_model_configuration,
    reset_model_configuration,
)
from .formatters import (
    DEFAULT_VALUE_FORMATTER,
    FormatterRegistry,
    ValueFormatter,
    ValueFormatterType,
    get_formatter_registry,
    reset_formatter_registry,
)
from .properties import PropertyInfo, get_collection_properties, get_declared_properties


__all__ = [
    "DEFAULT_VALUE_FORMATTER",
    "ColumnConfiguration",
    "ConventionsSet",
    "CreateItemOptions",
    "EntityConfiguration",
    "EntityTypeBuilder",
    "FormatterRegistry",
    "InlineEditOptions",
    "ModelConfiguration",
    "PropertyInfo",
    "RelationshipConfiguration",
    "TypePropertyAccessor",
    "ValueFormatter",
    "ValueFormatterType",
    "get_collection_properties",
    "get_conventions_set",
    "get_declared_properties",
    "get_formatter_registry",
    "get_model_configuration",
    "get_property_accessor",
    "reset_conventions_set",
    "reset_formatter_registry",
    "reset_model_configuration",
]
