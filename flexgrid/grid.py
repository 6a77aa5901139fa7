"""Grid orchestration: data set lifecycle and render passes.

A ``GridView`` owns the data set it renders. Parameters arrive through
``set_parameters`` (possibly many times, possibly concurrently); each
configuration change builds a complete new data set and configuration
snapshot, loads its first page, and only then swaps both in. Renders always
see the last applied pair.

Usage:
    grid = GridView()
    await grid.set_parameters(data_adapter=CollectionTableDataAdapter(Person, people))
    builder = RecordingTreeBuilder()
    grid.render(builder)
"""

from __future__ import annotations

import asyncio

from collections.abc import Callable
from enum import Enum
from typing import TYPE_CHECKING, Any

from .config import FlexGridSettings, get_settings
from .dataset.adapters import MasterDetailTableDataSetFactory
from .dataset.options import GridViewEvents, LazyLoadingOptions
from .dataset.table import EmptyDataSetItem, TableDataSet
from .exceptions import DataSetLoadError
from .log import debug, exception, info
from .metadata.conventions import ConventionsSet, get_conventions_set
from .rendering.context import GridRendererContext
from .rendering.contexts import GridContextsFactory
from .rendering.html import HtmlAttributes, HtmlTags
from .rendering.master_detail import MasterDetailComposer
from .rendering.renderers import GridRendererTreeBuilder


if TYPE_CHECKING:
    from .dataset.adapters import DataSetConfiguration, TableDataAdapter
    from .dataset.options import EventCallback
    from .dataset.table import MasterTableDataSet
    from .rendering.builder import RendererTreeBuilder
    from .rendering.immutable import ImmutableGridContext


class GridViewState(str, Enum):
    """Lifecycle state of a grid."""

    UNINITIALIZED = "uninitialized"
    READY = "ready"


class FlexGridContext:
    """State shared by the parts of one grid across renders."""

    def __init__(self, request_rerender: Callable[[], None] | None = None) -> None:
        self._request_rerender = request_rerender

    def request_rerender(self) -> None:
        """Ask the host to render the grid again."""
        if self._request_rerender is not None:
            self._request_rerender()


class CreateItemForm:
    """Component the host renders as the create-item form.

    Attributes passed: ``create_item_options``, ``entity_configuration``,
    ``permission_context``, ``css_class``, ``button_css_class`` and
    ``on_create`` (an async callable taking the new item).
    """


_EVENT_PARAMETERS = ("save_operation_finished", "delete_operation_finished", "new_item_created")


class GridView:
    """A data grid bound to a data adapter.

    Parameters
    ----------
    contexts_factory : GridContextsFactory, optional
        Builds configuration snapshots and permission contexts.
    conventions : ConventionsSet, optional
        Defaults to the process-wide conventions set.
    master_detail_factory : MasterDetailTableDataSetFactory, optional
        Wraps data sets of entities with relationships.
    tree_builder : GridRendererTreeBuilder, optional
        Renders the table body of each pass.
    settings : FlexGridSettings, optional
        Defaults to the active settings.
    on_state_changed : Callable, optional
        Called when the grid wants to be rendered again.
    """

    def __init__(
        self,
        *,
        contexts_factory: GridContextsFactory | None = None,
        conventions: ConventionsSet | None = None,
        master_detail_factory: MasterDetailTableDataSetFactory | None = None,
        tree_builder: GridRendererTreeBuilder | None = None,
        settings: FlexGridSettings | None = None,
        on_state_changed: Callable[[], None] | None = None,
    ) -> None:
        self.contexts_factory = contexts_factory or GridContextsFactory()
        self.conventions = conventions or get_conventions_set()
        self.master_detail_factory = master_detail_factory or MasterDetailTableDataSetFactory()
        self.tree_builder = tree_builder or GridRendererTreeBuilder()
        self.settings = settings or get_settings()
        self.flex_grid_context = FlexGridContext(on_state_changed)

        self.state = GridViewState.UNINITIALIZED
        self.data_adapter: TableDataAdapter | None = None
        self.lazy_loading_options = LazyLoadingOptions()
        self.page_size: int | None = None
        self.path: tuple[type, ...] = ()
        self.events = GridViewEvents()

        self._table_data_set: TableDataSet | MasterTableDataSet | None = None
        self._immutable_context: ImmutableGridContext | None = None
        self._bound_type: type | None = None
        self._version = 0
        self._lock = asyncio.Lock()

    @property
    def table_data_set(self) -> TableDataSet | MasterTableDataSet | None:
        """The last applied data set."""
        return self._table_data_set

    @property
    def immutable_context(self) -> ImmutableGridContext | None:
        """The last applied configuration snapshot."""
        return self._immutable_context

    async def set_parameters(
        self,
        *,
        data_adapter: TableDataAdapter | None = None,
        lazy_loading_options: LazyLoadingOptions | None = None,
        page_size: int | None = None,
        save_operation_finished: EventCallback | None = None,
        delete_operation_finished: EventCallback | None = None,
        new_item_created: EventCallback | None = None,
        path: tuple[type, ...] = (),
    ) -> None:
        """Assign parameters and rebuild the data set when the binding changed.

        The first call always builds a data set, an empty placeholder when no
        adapter is given. Later calls rebuild only when an adapter appears
        where there was none or its item type changes. Overlapping calls are
        serialized; a rebuild overtaken by a newer call is discarded.

        Raises
        ------
        DataSetLoadError
            If loading the first page fails. The previous data set stays.
        ConfigurationError
            If the adapter's entity type is misconfigured.
        """
        self.data_adapter = data_adapter
        if lazy_loading_options is not None:
            self.lazy_loading_options = lazy_loading_options
        self.page_size = page_size
        self.path = path
        self.events.save_operation_finished = save_operation_finished
        self.events.delete_operation_finished = delete_operation_finished
        self.events.new_item_created = new_item_created

        self._version += 1
        version = self._version
        async with self._lock:
            if version != self._version:
                info(f"Parameters superseded before rebuild (version {version})")
                return
            if self.state is GridViewState.READY and not self._binding_changed():
                return
            await self._rebuild(version)

    def _binding_changed(self) -> bool:
        if self.data_adapter is None:
            return False
        return self._bound_type is not self.data_adapter.underlying_type_of_item

    async def _rebuild(self, version: int) -> None:
        adapter = self.data_adapter
        if adapter is not None:
            self.conventions.apply_conventions(adapter.underlying_type_of_item)

        data_set = self._create_table_data_set(adapter)
        immutable_context = self._immutable_context
        if immutable_context is None or immutable_context.entity_configuration.entity_type is not data_set.item_type:
            immutable_context = self.contexts_factory.create_immutable_context(data_set.item_type)

        try:
            await data_set.go_to_page(0)
        except Exception as exc:
            if version != self._version:
                info(f"Ignoring failed load of superseded '{data_set.item_type.__name__}' (version {version}): {exc}")
                return
            exception(f"Loading first page of '{data_set.item_type.__name__}' failed")
            raise DataSetLoadError(
                f"Could not load '{data_set.item_type.__name__}': {exc}", page=0
            ) from exc

        if version != self._version:
            info(f"Discarding stale data set of '{data_set.item_type.__name__}' (version {version})")
            return

        self._table_data_set = data_set
        self._immutable_context = immutable_context
        self._bound_type = adapter.underlying_type_of_item if adapter is not None else None
        self.state = GridViewState.READY
        debug(f"Grid bound to '{data_set.item_type.__name__}' (version {version})")
        self.flex_grid_context.request_rerender()

    def _create_table_data_set(self, adapter: TableDataAdapter | None) -> TableDataSet | MasterTableDataSet:
        if adapter is None:
            return TableDataSet(EmptyDataSetItem, ())

        def configure(configuration: DataSetConfiguration) -> None:
            configuration.lazy_loading_options = self.lazy_loading_options
            configuration.pageable_options.page_size = self.page_size or self.settings.grid.default_page_size
            configuration.grid_view_events = self.events

        data_set = adapter.get_table_data_set(configure)
        return self.master_detail_factory.convert_to_master_table_if_required(data_set)

    def _applied(self) -> tuple[TableDataSet | MasterTableDataSet, ImmutableGridContext]:
        if self._table_data_set is None or self._immutable_context is None:
            placeholder = TableDataSet(EmptyDataSetItem, ())
            return placeholder, self.contexts_factory.create_immutable_context(EmptyDataSetItem)
        return self._table_data_set, self._immutable_context

    def render(self, builder: RendererTreeBuilder) -> None:
        """Describe the grid to ``builder`` from the last applied data set.

        Raises
        ------
        ConfigurationError
            If a cell or detail grid cannot be resolved from the configuration.
        """
        data_set, immutable_context = self._applied()
        contexts = self.contexts_factory.create_contexts(immutable_context)
        composer = MasterDetailComposer(
            GridView,
            self.path or (data_set.item_type,),
            self.settings.grid.max_detail_depth,
            self.events,
        )
        context = GridRendererContext(
            immutable_context,
            builder,
            data_set,
            contexts.permission_context,
            request_rerender=self.flex_grid_context.request_rerender,
            composer=composer,
        )

        css = immutable_context.css_classes
        builder.open_element(HtmlTags.DIV)
        builder.add_attribute(HtmlAttributes.CLASS, css.wrapper)
        self.tree_builder.build_renderer_tree(context)

        if immutable_context.create_item_is_allowed(contexts.permission_context):
            builder.open_component(CreateItemForm)
            builder.add_attribute("create_item_options", immutable_context.entity_configuration.create_item_options)
            builder.add_attribute("entity_configuration", immutable_context.entity_configuration)
            builder.add_attribute("permission_context", contexts.permission_context)
            builder.add_attribute("css_class", css.create_form)
            builder.add_attribute("button_css_class", css.create_form_button)
            builder.add_attribute("on_create", data_set.create_item)
            builder.close_component()

        builder.close_element()

    @staticmethod
    def parameters_from(attributes: dict[str, Any]) -> dict[str, Any]:
        """Pick the ``set_parameters`` arguments out of recorded component attributes."""
        names = ("data_adapter", "lazy_loading_options", "page_size", "path", *_EVENT_PARAMETERS)
        return {name: attributes[name] for name in names if name in attributes}
