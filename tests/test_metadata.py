"""Tests for entity metadata: property discovery, accessors and configuration."""

from __future__ import annotations

import threading

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, ClassVar

import pytest

from pydantic import BaseModel, ValidationError

from flexgrid.exceptions import (
    ConfigurationError,
    MissingColumnConfigurationError,
    MissingRelationshipError,
)
from flexgrid.metadata.accessor import TypePropertyAccessor, get_property_accessor
from flexgrid.metadata.conventions import ConventionsSet, get_conventions_set
from flexgrid.metadata.entity import ModelConfiguration, RelationshipConfiguration, get_model_configuration
from flexgrid.metadata.formatters import (
    FormatterRegistry,
    ValueFormatter,
    ValueFormatterType,
    get_formatter_registry,
)
from flexgrid.metadata.properties import get_collection_properties, get_declared_properties
from tests.support import Badge, Holder, Opaque, Order, Person, Tagged


class Plain:
    code: str
    count: int
    _internal: int
    KIND: ClassVar[str] = "plain"


class Product(BaseModel):
    sku: str
    price: float


class Broken:
    ref: Missing  # noqa: F821
    items: list[Missing]  # noqa: F821


@dataclass
class Employee(Person):
    salary: int = 0


class TestDeclaredProperties:
    """Tests for get_declared_properties."""

    def test_dataclass_order(self) -> None:
        """Dataclass fields are reported in declaration order."""
        names = [p.name for p in get_declared_properties(Person)]
        assert names == ["id", "name", "age", "orders"]

    def test_optional_unwrapped(self) -> None:
        """Optional annotations report the inner type."""
        age = get_declared_properties(Person)[2]
        assert age.property_type is int
        assert not age.is_collection

    def test_collection_item_type(self) -> None:
        """List properties are collections of their item type."""
        (orders,) = get_collection_properties(Person)
        assert orders.name == "orders"
        assert orders.is_collection
        assert orders.item_type is Order

    def test_plain_class(self) -> None:
        """Plain classes use public, non-ClassVar annotations."""
        assert [p.name for p in get_declared_properties(Plain)] == ["code", "count"]

    def test_pydantic_model(self) -> None:
        """Pydantic models use model_fields."""
        props = get_declared_properties(Product)
        assert [p.name for p in props] == ["sku", "price"]
        assert props[1].property_type is float

    def test_inherited_fields(self) -> None:
        """Base class fields come first."""
        names = [p.name for p in get_declared_properties(Employee)]
        assert names == ["id", "name", "age", "orders", "salary"]

    def test_unresolvable_annotations(self) -> None:
        """Forward references that cannot resolve fall back to Any."""
        ref, items = get_declared_properties(Broken)
        assert ref.property_type is Any
        assert not ref.is_collection
        assert items.is_collection
        assert items.item_type is Any


class TestPropertyAccessor:
    """Tests for TypePropertyAccessor."""

    def test_get_and_set(self) -> None:
        """Values are read from and written to the item itself."""
        person = Person(1, "Ann", 30)
        accessor = TypePropertyAccessor(Person)
        assert accessor.get_value(person, "name") == "Ann"
        accessor.set_value(person, "name", "Anna")
        assert person.name == "Anna"

    def test_property_names(self) -> None:
        """Every declared property is accessible."""
        assert TypePropertyAccessor(Person).property_names == ("id", "name", "age", "orders")

    def test_unknown_property(self) -> None:
        """Unknown names raise MissingColumnConfigurationError."""
        accessor = TypePropertyAccessor(Person)
        with pytest.raises(MissingColumnConfigurationError) as exc_info:
            accessor.get_value(Person(1, "Ann"), "salary")
        assert exc_info.value.column == "salary"
        with pytest.raises(MissingColumnConfigurationError):
            accessor.set_value(Person(1, "Ann"), "salary", 1)

    def test_cached_per_type(self) -> None:
        """get_property_accessor builds one accessor per type."""
        assert get_property_accessor(Person) is get_property_accessor(Person)

    def test_convert_to_declared_type(self) -> None:
        """Text input is converted to the property's declared type."""
        accessor = TypePropertyAccessor(Person)
        assert accessor.convert_value("age", "31") == 31
        assert accessor.convert_value("age", None) is None
        assert accessor.convert_value("name", "Ann") == "Ann"

    def test_convert_rejects_bad_values(self) -> None:
        """Values that do not fit the declared type raise ValidationError."""
        with pytest.raises(ValidationError):
            TypePropertyAccessor(Person).convert_value("age", "thirty")

    def test_convert_passes_unknown_types(self) -> None:
        """Types without a validation schema are left unconverted."""
        blob = Opaque()
        assert TypePropertyAccessor(Holder).convert_value("blob", blob) is blob


class TestEntityTypeBuilder:
    """Tests for the fluent configuration builder."""

    def test_default_columns(self, model: ModelConfiguration) -> None:
        """Unconfigured types get one default column per scalar property."""
        configuration = model.find_entity_configuration(Person)
        assert list(configuration.columns) == ["id", "name", "age"]
        column = configuration.find_column_configuration("age")
        assert column.is_visible
        assert column.is_editable
        assert column.display_caption == "age"
        assert not configuration.is_master_table

    def test_configured_column(self, model: ModelConfiguration) -> None:
        """Builder settings end up in the frozen column."""
        model.entity(Person).property("age").has_caption("Age").is_editable(False).has_read_permission("hr")
        column = model.find_entity_configuration(Person).find_column_configuration("age")
        assert column.display_caption == "Age"
        assert not column.is_editable
        assert column.read_permission_key == "hr"
        assert column.write_permission_key == "hr"

    def test_permission_keys_default_to_name(self, model: ModelConfiguration) -> None:
        """Without explicit keys the column name is the permission key."""
        model.entity(Person).property("name").has_write_permission("editor")
        column = model.find_entity_configuration(Person).find_column_configuration("name")
        assert column.read_permission_key == "name"
        assert column.write_permission_key == "editor"

    def test_plain_callable_formatter(self, model: ModelConfiguration) -> None:
        """Plain callables are wrapped into ValueFormatter."""
        model.entity(Person).property("name").has_value_formatter(str.upper)
        column = model.find_entity_configuration(Person).find_column_configuration("name")
        assert isinstance(column.value_formatter, ValueFormatter)
        assert column.value_formatter.format_value("ann") == "ANN"

    def test_unknown_column_rejected(self, model: ModelConfiguration) -> None:
        """Configuring a property the type does not declare fails at build time."""
        model.entity(Person).property("salary").has_caption("Salary")
        with pytest.raises(ConfigurationError) as exc_info:
            model.find_entity_configuration(Person)
        assert exc_info.value.column == "salary"

    def test_missing_column_lookup(self, model: ModelConfiguration) -> None:
        """Looking up an unknown column raises."""
        configuration = model.find_entity_configuration(Person)
        with pytest.raises(MissingColumnConfigurationError):
            configuration.find_column_configuration("orders")

    def test_has_many_detects_navigation_property(self, model: ModelConfiguration) -> None:
        """The navigation property is found by item type."""
        model.entity(Person).has_many(Order).has_page_size(5)
        configuration = model.find_entity_configuration(Person)
        relationship = configuration.find_relationship_configuration(Order)
        assert relationship.navigation_property == "orders"
        assert relationship.page_size == 5
        assert configuration.is_master_table

    def test_missing_relationship(self, model: ModelConfiguration) -> None:
        """Looking up an unregistered relationship raises."""
        configuration = model.find_entity_configuration(Person)
        with pytest.raises(MissingRelationshipError) as exc_info:
            configuration.find_relationship_configuration(Order)
        assert exc_info.value.related_type == "Order"

    def test_inline_edit_options(self, model: ModelConfiguration) -> None:
        """Deleting follows inline editing unless set explicitly."""
        model.entity(Person).allow_inline_edit()
        assert model.find_entity_configuration(Person).inline_edit_options.allow_deleting
        model.entity(Person).allow_inline_edit(True, allow_deleting=False)
        options = model.find_entity_configuration(Person).inline_edit_options
        assert options.allow_inline_edit
        assert not options.allow_deleting

    def test_create_item_options(self, model: ModelConfiguration) -> None:
        """Create options carry the create URI."""
        model.entity(Person).allow_create_items(create_uri="/people")
        options = model.find_entity_configuration(Person).create_item_options
        assert options.is_create_allowed
        assert options.create_uri == "/people"

    def test_columns_read_only(self, model: ModelConfiguration) -> None:
        """Frozen configurations cannot be modified."""
        configuration = model.find_entity_configuration(Person)
        with pytest.raises(TypeError):
            configuration.columns["extra"] = configuration.columns["id"]  # type: ignore[index]


class TestModelConfiguration:
    """Tests for the configuration registry."""

    def test_built_once(self, model: ModelConfiguration) -> None:
        """The frozen configuration is cached by type."""
        assert model.find_entity_configuration(Person) is model.find_entity_configuration(Person)

    def test_reconfigure_discards_frozen(self, model: ModelConfiguration) -> None:
        """Touching the builder again rebuilds on next lookup."""
        first = model.find_entity_configuration(Person)
        model.entity(Person).has_caption("People")
        second = model.find_entity_configuration(Person)
        assert second is not first
        assert second.caption == "People"

    def test_has_entity(self, model: ModelConfiguration) -> None:
        """Only explicitly configured types are registered."""
        model.entity(Person)
        assert model.has_entity(Person)
        assert not model.has_entity(Order)


class TestRelationshipConfiguration:
    """Tests for relationship page size and URIs."""

    def test_fixed_page_size(self) -> None:
        """An integer page size is used as-is."""
        assert RelationshipConfiguration(Order, page_size=7).detail_grid_page_size(None) == 7

    def test_page_size_policy(self) -> None:
        """A callable page size is computed from the master data set."""
        relationship = RelationshipConfiguration(Order, page_size=lambda master: len(master))
        assert relationship.detail_grid_page_size([1, 2, 3]) == 3

    def test_lazy_urls(self) -> None:
        """A lazy-loading URL makes the relationship lazy."""
        relationship = RelationshipConfiguration(
            Order, lazy_loading_url="/orders", update_url="/orders/put", delete_url="/orders/del"
        )
        assert relationship.is_lazy
        assert relationship.detail_grid_lazy_loading_url() == "/orders"
        assert relationship.detail_grid_update_url() == "/orders/put"
        assert relationship.detail_grid_delete_url() == "/orders/del"
        assert not RelationshipConfiguration(Order).is_lazy


class TestConventionsSet:
    """Tests for convention application."""

    def test_applied_once_per_type(self, model: ModelConfiguration) -> None:
        """Each type is visited once, however often conventions are applied."""
        seen: list[type] = []
        conventions = ConventionsSet((lambda cfg, registry: seen.append(cfg.entity_type),), model)
        conventions.apply_conventions(Person)
        conventions.apply_conventions(Person)
        assert seen == [Person]
        assert conventions.is_applied(Person)

    def test_related_types_covered(self, model: ModelConfiguration) -> None:
        """Detail types reachable through relationships are covered too."""
        model.entity(Person).has_many(Order)
        conventions = ConventionsSet(model=model)
        configuration = conventions.apply_conventions(Person)
        assert configuration.entity_type is Person
        assert conventions.is_applied(Order)

    def test_markup_values(self, model: ModelConfiguration) -> None:
        """Types with __html__ get a verbatim formatter."""
        registry = FormatterRegistry()
        assert registry.infer(Badge) is None
        ConventionsSet(model=model, formatters=registry).apply_conventions(Tagged)
        formatter = registry.infer(Badge)
        assert formatter is not None
        assert formatter.formatter_type is ValueFormatterType.SINGLE_PROPERTY
        assert formatter.format_value(Badge("new")) == "<b>new</b>"


class TestProcessWideRegistries:
    """Tests for first use of the shared registries from several threads."""

    @pytest.mark.parametrize("accessor", [get_model_configuration, get_formatter_registry, get_conventions_set])
    def test_single_instance_under_contention(self, accessor) -> None:
        """Threads starting together all get the same registry."""
        barrier = threading.Barrier(8)

        def first_use():
            barrier.wait()
            return accessor()

        with ThreadPoolExecutor(max_workers=8) as pool:
            instances = list(pool.map(lambda _: first_use(), range(8)))
        assert all(instance is instances[0] for instance in instances)
        assert accessor() is instances[0]
