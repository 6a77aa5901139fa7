"""Nested (detail) grid composition for master-detail relationships."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from ..dataset.options import GridViewEvents, LazyLoadingOptions
from ..exceptions import RelationshipCycleError
from ..log import warn


if TYPE_CHECKING:
    from ..dataset.adapters import TableDataAdapter
    from .context import GridRendererContext


class MasterDetailComposer:
    """Emits a nested grid component bound to a master item's related items.

    Parameters
    ----------
    grid_component : type
        Component type the host instantiates for each nested grid.
    path : tuple of type
        Entity types from the root grid down to the master grid, inclusive.
    max_depth : int
        Maximum number of grids on one render path.
    events : GridViewEvents
        The master grid's callbacks, handed unchanged to every detail grid.
    """

    def __init__(
        self,
        grid_component: Any,
        path: tuple[type, ...],
        max_depth: int,
        events: GridViewEvents,
    ) -> None:
        self.grid_component = grid_component
        self.path = path
        self.max_depth = max_depth
        self.events = events

    def add_detail_grid(self, context: GridRendererContext, adapter: TableDataAdapter) -> None:
        """Open a nested grid component for ``adapter`` in the render tree.

        Raises
        ------
        MissingRelationshipError
            If the master entity has no relationship to the adapter's type.
        RelationshipCycleError
            If the detail type is already on the render path, or the path
            would exceed ``max_depth``.
        """
        detail_type = adapter.underlying_type_of_item
        master = context.immutable_context.entity_configuration
        relationship = master.find_relationship_configuration(detail_type)
        self._check_path(detail_type)

        page_size = relationship.detail_grid_page_size(context.table_data_set)
        lazy_loading_options = LazyLoadingOptions(
            data_uri=relationship.detail_grid_lazy_loading_url(),
            put_data_uri=relationship.detail_grid_update_url(),
            delete_uri=relationship.detail_grid_delete_url(),
        )

        builder = context.renderer_tree_builder
        builder.open_component(self.grid_component)
        builder.add_attribute("data_adapter", adapter)
        builder.add_attribute("page_size", page_size)
        builder.add_attribute("lazy_loading_options", lazy_loading_options)
        builder.add_attribute("path", (*self.path, detail_type))
        for name in ("save_operation_finished", "delete_operation_finished", "new_item_created"):
            callback = getattr(self.events, name)
            if callback is not None:
                builder.add_attribute(name, callback)
        builder.close_component()

    def _check_path(self, detail_type: type) -> None:
        names = tuple(t.__name__ for t in (*self.path, detail_type))
        if detail_type in self.path:
            warn(f"Refusing detail grid that re-enters '{detail_type.__name__}': {' > '.join(names)}")
            raise RelationshipCycleError(
                f"Detail grid would re-enter '{detail_type.__name__}'",
                path=names,
                entity_type=detail_type.__name__,
            )
        if len(self.path) + 1 > self.max_depth:
            warn(f"Refusing detail grid beyond depth {self.max_depth}: {' > '.join(names)}")
            raise RelationshipCycleError(
                f"Detail grids are limited to {self.max_depth} levels",
                path=names,
                entity_type=detail_type.__name__,
                max_depth=self.max_depth,
            )
