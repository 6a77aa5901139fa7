"""Tests for nested detail grid composition."""

from __future__ import annotations

import pytest

from flexgrid.dataset.adapters import CollectionTableDataAdapter, MasterDetailTableDataSetFactory
from flexgrid.dataset.options import GridViewEvents
from flexgrid.dataset.table import TableDataSet
from flexgrid.exceptions import MissingRelationshipError, RelationshipCycleError
from flexgrid.metadata.entity import ModelConfiguration
from flexgrid.rendering.master_detail import MasterDetailComposer
from tests.support import City, Country, Node, Order, Person, Region, make_render_context


class DetailGrid:
    """Stand-in component type for nested grids."""


def _composer(path, events=None, max_depth=8) -> MasterDetailComposer:
    return MasterDetailComposer(DetailGrid, path, max_depth, events or GridViewEvents())


class TestAddDetailGrid:
    """Tests for MasterDetailComposer.add_detail_grid."""

    def test_emits_nested_grid(self, model: ModelConfiguration, people) -> None:
        """The nested grid is bound to the master item's related items."""
        model.entity(Person).has_many(Order).has_page_size(10)
        context = make_render_context(Person, people, composer=_composer((Person,)))
        ann = people[0]
        context.actual_item = ann
        adapter = CollectionTableDataAdapter(Order, ann.orders)

        context.add_detail_grid_view_component(adapter)

        (component,) = context.renderer_tree_builder.root.components(DetailGrid)
        assert component.attributes["data_adapter"] is adapter
        assert component.attributes["data_adapter"].items is ann.orders
        assert component.attributes["page_size"] == 10
        assert component.attributes["path"] == (Person, Order)
        assert not component.attributes["lazy_loading_options"].is_configured

    def test_page_size_policy(self, model: ModelConfiguration, people) -> None:
        """A page size policy sees the master data set."""
        model.entity(Person).has_many(Order).has_page_size(lambda master: master.pageable_options.page_size * 2)
        context = make_render_context(Person, people, composer=_composer((Person,)))
        context.add_detail_grid_view_component(CollectionTableDataAdapter(Order, []))
        (component,) = context.renderer_tree_builder.root.components()
        assert component.attributes["page_size"] == 20

    def test_lazy_loading_addresses(self, model: ModelConfiguration, people) -> None:
        """Relationship URIs become the nested grid's lazy-loading options."""
        model.entity(Person).has_many(Order).has_lazy_loading_url("/orders").has_update_url(
            "/orders/put"
        ).has_delete_url("/orders/delete")
        context = make_render_context(Person, people, composer=_composer((Person,)))
        context.add_detail_grid_view_component(CollectionTableDataAdapter(Order, []))
        options = context.renderer_tree_builder.root.components()[0].attributes["lazy_loading_options"]
        assert options.data_uri == "/orders"
        assert options.put_data_uri == "/orders/put"
        assert options.delete_uri == "/orders/delete"

    def test_callbacks_forwarded(self, model: ModelConfiguration, people) -> None:
        """The master's callbacks are handed on unchanged; missing ones are omitted."""
        model.entity(Person).has_many(Order)

        def on_save(args) -> None:
            pass

        events = GridViewEvents(save_operation_finished=on_save)
        context = make_render_context(Person, people, composer=_composer((Person,), events))
        context.add_detail_grid_view_component(CollectionTableDataAdapter(Order, []))
        attributes = context.renderer_tree_builder.root.components()[0].attributes
        assert attributes["save_operation_finished"] is on_save
        assert "delete_operation_finished" not in attributes
        assert "new_item_created" not in attributes

    def test_missing_relationship(self, model: ModelConfiguration, people) -> None:
        """A detail type with no relationship is a configuration error."""
        context = make_render_context(Person, people, composer=_composer((Person,)))
        with pytest.raises(MissingRelationshipError):
            context.add_detail_grid_view_component(CollectionTableDataAdapter(Order, []))
        assert context.renderer_tree_builder.root.children == []

    def test_without_composer(self, model: ModelConfiguration, people) -> None:
        """Contexts without a composer render no detail grids."""
        model.entity(Person).has_many(Order)
        context = make_render_context(Person, people)
        context.add_detail_grid_view_component(CollectionTableDataAdapter(Order, []))
        assert context.renderer_tree_builder.root.children == []


class TestRenderPath:
    """Tests for cycle and depth guards."""

    def test_self_reference_refused(self, model: ModelConfiguration, flexgrid_caplog) -> None:
        """A type cannot appear twice on one render path."""
        model.entity(Node).has_many(Node)
        root = Node(1, [Node(2)])
        context = make_render_context(Node, [root], composer=_composer((Node,)))
        context.actual_item = root
        with pytest.raises(RelationshipCycleError) as exc_info:
            context.add_detail_grid_view_component(CollectionTableDataAdapter(Node, root.children))
        assert exc_info.value.path == ("Node", "Node")
        assert any("re-enters 'Node'" in r.message for r in flexgrid_caplog.records)

    def test_indirect_cycle_refused(self, model: ModelConfiguration) -> None:
        """Cycles through other types are refused when they close."""
        model.entity(Region).has_many(Country)
        context = make_render_context(Region, [], composer=_composer((Country, Region)))
        with pytest.raises(RelationshipCycleError) as exc_info:
            context.add_detail_grid_view_component(CollectionTableDataAdapter(Country, []))
        assert exc_info.value.path == ("Country", "Region", "Country")

    def test_depth_limit(self, model: ModelConfiguration) -> None:
        """Paths longer than the depth limit are refused."""
        model.entity(Region).has_many(City)
        context = make_render_context(Region, [], composer=_composer((Country, Region), max_depth=2))
        with pytest.raises(RelationshipCycleError) as exc_info:
            context.add_detail_grid_view_component(CollectionTableDataAdapter(City, []))
        assert exc_info.value.context["max_depth"] == 2

    def test_within_depth(self, model: ModelConfiguration) -> None:
        """Paths at the limit are allowed."""
        model.entity(Region).has_many(City)
        context = make_render_context(Region, [], composer=_composer((Country, Region), max_depth=3))
        context.add_detail_grid_view_component(CollectionTableDataAdapter(City, []))
        (component,) = context.renderer_tree_builder.root.components()
        assert component.attributes["path"] == (Country, Region, City)


class TestMasterTableRows:
    """Tests for detail adapters coming from an expanded master row."""

    def test_expanded_row_feeds_composer(self, model: ModelConfiguration, people) -> None:
        """Toggled rows produce adapters the composer binds to nested grids."""
        model.entity(Person).has_many(Order)
        master = MasterDetailTableDataSetFactory(model).convert_to_master_table_if_required(
            TableDataSet(Person, people)
        )
        cid = people[2]
        master.toggle_detail(cid)
        context = make_render_context(Person, data_set=master, composer=_composer((Person,)))
        context.actual_item = cid
        for adapter in master.detail_adapters(cid):
            context.add_detail_grid_view_component(adapter)
        (component,) = context.renderer_tree_builder.root.components()
        assert [o.product for o in component.attributes["data_adapter"].items] == ["Lamp"]
