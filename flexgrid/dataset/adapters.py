"""Data adapters: the bindable sources a grid builds its data set from."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from ..exceptions import ConfigurationError
from ..metadata.accessor import get_property_accessor
from ..metadata.entity import ModelConfiguration, get_model_configuration
from .options import GridViewEvents, LazyLoadingOptions, PageableOptions, SortingOptions
from .table import LazyDataLoader, LazyTableDataSet, MasterTableDataSet, TableDataSet


if TYPE_CHECKING:
    from ..metadata.entity import RelationshipConfiguration


@dataclass
class DataSetConfiguration:
    """Options a grid applies to the data set an adapter creates."""

    pageable_options: PageableOptions = field(default_factory=PageableOptions)
    sorting_options: SortingOptions = field(default_factory=SortingOptions)
    lazy_loading_options: LazyLoadingOptions = field(default_factory=LazyLoadingOptions)
    grid_view_events: GridViewEvents = field(default_factory=GridViewEvents)

    def as_kwargs(self) -> dict[str, Any]:
        return {
            "pageable_options": self.pageable_options,
            "sorting_options": self.sorting_options,
            "lazy_loading_options": self.lazy_loading_options,
            "grid_view_events": self.grid_view_events,
        }


ConfigureDataSet = Callable[[DataSetConfiguration], None]


class TableDataAdapter(ABC):
    """A source of items of one entity type."""

    @property
    @abstractmethod
    def underlying_type_of_item(self) -> type:
        """The entity type of the adapter's items."""

    @abstractmethod
    def get_table_data_set(self, configure: ConfigureDataSet | None = None) -> TableDataSet:
        """Create a fresh data set, letting ``configure`` adjust its options."""

    def _configuration(self, configure: ConfigureDataSet | None) -> DataSetConfiguration:
        configuration = DataSetConfiguration()
        if configure is not None:
            configure(configuration)
        return configuration


class CollectionTableDataAdapter(TableDataAdapter):
    """Adapter over an in-memory list of items."""

    def __init__(self, item_type: type, items: Iterable[Any]) -> None:
        self._item_type = item_type
        self.items = items if isinstance(items, list) else list(items)

    @property
    def underlying_type_of_item(self) -> type:
        return self._item_type

    def get_table_data_set(self, configure: ConfigureDataSet | None = None) -> TableDataSet:
        configuration = self._configuration(configure)
        return TableDataSet(self._item_type, self.items, **configuration.as_kwargs())


class LazyTableDataAdapter(TableDataAdapter):
    """Adapter whose pages are fetched through a ``LazyDataLoader``.

    ``request_params`` are merged into the lazy-loading options the grid
    supplies, so the loader can tell which master item a detail grid
    belongs to.
    """

    def __init__(
        self,
        item_type: type,
        loader: LazyDataLoader,
        request_params: dict[str, Any] | None = None,
    ) -> None:
        self._item_type = item_type
        self.loader = loader
        self.request_params = request_params or {}

    @property
    def underlying_type_of_item(self) -> type:
        return self._item_type

    def get_table_data_set(self, configure: ConfigureDataSet | None = None) -> TableDataSet:
        configuration = self._configuration(configure)
        options = configuration.lazy_loading_options
        configuration.lazy_loading_options = options.model_copy(
            update={"request_params": {**options.request_params, **self.request_params}}
        )
        return LazyTableDataSet(self._item_type, self.loader, **configuration.as_kwargs())


class MasterDetailTableDataSetFactory:
    """Wraps data sets of master entities and derives their detail adapters."""

    def __init__(
        self,
        model: ModelConfiguration | None = None,
        loader: LazyDataLoader | None = None,
    ) -> None:
        self._model = model
        self.loader = loader

    @property
    def model(self) -> ModelConfiguration:
        return self._model or get_model_configuration()

    def convert_to_master_table_if_required(
        self, data_set: TableDataSet
    ) -> TableDataSet | MasterTableDataSet:
        """Wrap ``data_set`` when its entity has relationships."""
        configuration = self.model.find_entity_configuration(data_set.item_type)
        if not configuration.is_master_table:
            return data_set
        return MasterTableDataSet(data_set, configuration, self)

    def detail_adapter(self, master_item: Any, relationship: RelationshipConfiguration) -> TableDataAdapter:
        """Adapter over the items related to ``master_item``.

        Lazy relationships use the loader; others read the master's
        navigation property.

        Raises
        ------
        ConfigurationError
            If the relationship is neither lazy nor has a navigation property.
        """
        if relationship.is_lazy and self.loader is not None:
            return LazyTableDataAdapter(
                relationship.related_type, self.loader, {"master_item": master_item}
            )
        if relationship.navigation_property is None:
            raise ConfigurationError(
                f"Relationship to '{relationship.related_type.__name__}' has no navigation "
                "property and no lazy loader",
                entity_type=type(master_item).__name__,
            )
        accessor = get_property_accessor(type(master_item))
        items = accessor.get_value(master_item, relationship.navigation_property)
        if items is None:
            items = []
            accessor.set_value(master_item, relationship.navigation_property, items)
        return CollectionTableDataAdapter(relationship.related_type, items)
