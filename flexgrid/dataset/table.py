"""Paged, sorted, editable data sets of one entity type.

A data set owns the current page, the sort state and the per-item edit
state. Renderers only read it and call its mutation entry points.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from ..log import debug, warn
from ..metadata.accessor import TypePropertyAccessor, get_property_accessor
from .options import (
    DeleteResultArgs,
    GridViewEvents,
    ItemCreatedArgs,
    LazyLoadingOptions,
    PageableOptions,
    SaveResultArgs,
    SortingOptions,
)


if TYPE_CHECKING:
    from ..metadata.entity import EntityConfiguration
    from .adapters import MasterDetailTableDataSetFactory, TableDataAdapter


class EmptyDataSetItem:
    """Placeholder item type with no columns, used when no adapter is bound."""


_MISSING = object()


class ItemStateMap:
    """Per-item state keyed by object identity.

    Each entry keeps its item, so an ``id()`` recycled by a new object never
    matches the old entry.
    """

    def __init__(self) -> None:
        self._entries: dict[int, tuple[Any, Any]] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, item: Any) -> bool:
        entry = self._entries.get(id(item))
        return entry is not None and entry[0] is item

    def get(self, item: Any, default: Any = None) -> Any:
        return self._entries[id(item)][1] if item in self else default

    def set(self, item: Any, state: Any) -> None:
        self._entries[id(item)] = (item, state)

    def pop(self, item: Any, default: Any = None) -> Any:
        return self._entries.pop(id(item))[1] if item in self else default

    def retain(self, items: Iterable[Any]) -> None:
        """Drop the entries of every item not in ``items``."""
        present = {id(item): item for item in items}
        self._entries = {
            key: entry for key, entry in self._entries.items() if present.get(key, _MISSING) is entry[0]
        }


class TableDataSet:
    """In-memory data set over a list of items.

    The list is used as-is: created and deleted items change it, and edits
    write through to the items it holds.
    """

    def __init__(
        self,
        item_type: type,
        items: Iterable[Any] = (),
        *,
        pageable_options: PageableOptions | None = None,
        sorting_options: SortingOptions | None = None,
        lazy_loading_options: LazyLoadingOptions | None = None,
        grid_view_events: GridViewEvents | None = None,
    ) -> None:
        self.item_type = item_type
        self._items: list[Any] = items if isinstance(items, list) else list(items)
        self.pageable_options = pageable_options or PageableOptions()
        self.sorting_options = sorting_options or SortingOptions()
        self.lazy_loading_options = lazy_loading_options or LazyLoadingOptions()
        self.grid_view_events = grid_view_events or GridViewEvents()
        self.accessor: TypePropertyAccessor = get_property_accessor(item_type)
        self._page: list[Any] = []
        # item -> property snapshot taken when editing started
        self._edited = ItemStateMap()

    @property
    def name(self) -> str:
        return self.item_type.__name__

    @property
    def items(self) -> list[Any]:
        return self._items

    def current_page(self) -> list[Any]:
        """Items of the page loaded by the last ``go_to_page``."""
        return list(self._page)

    async def go_to_page(self, index: int) -> None:
        """Load page ``index``, clamped to the available pages."""
        self.pageable_options.total_items = len(self._items)
        index = min(max(index, 0), self.pageable_options.page_count - 1)
        self.pageable_options.current_page = index
        size = self.pageable_options.page_size
        ordered = self._sorted(self._items)
        self._page = ordered[index * size : (index + 1) * size]
        self._edited.retain(self._items)

    async def reload(self) -> None:
        await self.go_to_page(self.pageable_options.current_page)

    async def set_sorting(self, column_name: str) -> None:
        """Sort by ``column_name``; sorting the same column again flips the direction."""
        sorting = self.sorting_options
        if sorting.sort_expression == column_name:
            sorting.descending = not sorting.descending
        else:
            sorting.sort_expression = column_name
            sorting.descending = False
        await self.go_to_page(0)

    def _sorted(self, items: Sequence[Any]) -> list[Any]:
        column = self.sorting_options.sort_expression
        if not column:
            return list(items)

        def key(item: Any) -> tuple[bool, Any]:
            value = self.accessor.get_value(item, column)
            return value is not None, value

        return sorted(items, key=key, reverse=self.sorting_options.descending)

    def is_item_edited(self, item: Any) -> bool:
        return item in self._edited

    def start_editing(self, item: Any) -> None:
        """Mark ``item`` as being edited, remembering its current values."""
        if item not in self._edited:
            self._edited.set(
                item, {name: self.accessor.get_value(item, name) for name in self.accessor.property_names}
            )

    def cancel_editing(self, item: Any) -> None:
        """Leave edit mode, restoring the values ``item`` had when editing started."""
        snapshot = self._edited.pop(item)
        if snapshot is None:
            return
        for name, value in snapshot.items():
            self.accessor.set_value(item, name, value)

    async def save_item(self, item: Any) -> bool:
        """Persist the edits made to ``item`` and leave edit mode."""
        args = await self._persist_save(item)
        if args.succeeded:
            self._edited.pop(item)
            await self.reload()
        await self.grid_view_events.notify("save_operation_finished", args, self.name)
        return args.succeeded

    async def delete_item(self, item: Any) -> bool:
        """Remove ``item`` and reload the current page."""
        args = await self._persist_delete(item)
        if args.succeeded:
            self._edited.pop(item)
            await self.reload()
        await self.grid_view_events.notify("delete_operation_finished", args, self.name)
        return args.succeeded

    async def create_item(self, item: Any) -> Any:
        """Add a new item and reload the current page."""
        created = await self._persist_create(item)
        await self.reload()
        await self.grid_view_events.notify("new_item_created", ItemCreatedArgs(created), self.name)
        return created

    async def _persist_save(self, item: Any) -> SaveResultArgs:
        return SaveResultArgs(item=item)

    async def _persist_delete(self, item: Any) -> DeleteResultArgs:
        for index, candidate in enumerate(self._items):
            if candidate is item:
                del self._items[index]
                return DeleteResultArgs(item=item)
        return DeleteResultArgs(item=item, succeeded=False, error="Item is not in the data set")

    async def _persist_create(self, item: Any) -> Any:
        self._items.append(item)
        return item


@dataclass
class LazyPage:
    """One page of items returned by a ``LazyDataLoader``."""

    items: list[Any]
    total_items: int


class LazyDataLoader(ABC):
    """Fetches and persists items through the addresses of ``LazyLoadingOptions``."""

    @abstractmethod
    async def fetch_page(
        self,
        options: LazyLoadingOptions,
        page: int,
        page_size: int,
        sorting: SortingOptions,
    ) -> LazyPage:
        """Fetch one page of items."""

    async def save(self, options: LazyLoadingOptions, item: Any) -> None:
        """Persist an edited item."""
        raise NotImplementedError(f"{type(self).__name__} cannot save items")

    async def delete(self, options: LazyLoadingOptions, item: Any) -> None:
        """Delete an item."""
        raise NotImplementedError(f"{type(self).__name__} cannot delete items")

    async def create(self, options: LazyLoadingOptions, item: Any) -> Any:
        """Create an item, returning the stored version."""
        raise NotImplementedError(f"{type(self).__name__} cannot create items")


class LazyTableDataSet(TableDataSet):
    """Data set whose pages come from a ``LazyDataLoader``.

    Only the current page is held in memory.
    """

    def __init__(self, item_type: type, loader: LazyDataLoader, **kwargs: Any) -> None:
        super().__init__(item_type, (), **kwargs)
        self.loader = loader

    async def go_to_page(self, index: int) -> None:
        index = max(index, 0)
        page = await self.loader.fetch_page(
            self.lazy_loading_options, index, self.pageable_options.page_size, self.sorting_options
        )
        self.pageable_options.total_items = page.total_items
        self.pageable_options.current_page = index
        self._items = list(page.items)
        self._page = list(page.items)
        self._edited.retain(self._items)
        debug(f"Lazy-loaded page {index} of '{self.name}' ({len(self._page)} items)")

    def _sorted(self, items: Sequence[Any]) -> list[Any]:
        return list(items)

    async def _persist_save(self, item: Any) -> SaveResultArgs:
        try:
            await self.loader.save(self.lazy_loading_options, item)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            warn(f"Saving '{self.name}' item failed: {exc}")
            return SaveResultArgs(item=item, succeeded=False, error=str(exc))
        return SaveResultArgs(item=item)

    async def _persist_delete(self, item: Any) -> DeleteResultArgs:
        try:
            await self.loader.delete(self.lazy_loading_options, item)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            warn(f"Deleting '{self.name}' item failed: {exc}")
            return DeleteResultArgs(item=item, succeeded=False, error=str(exc))
        return DeleteResultArgs(item=item)

    async def _persist_create(self, item: Any) -> Any:
        return await self.loader.create(self.lazy_loading_options, item)


class MasterTableDataSet:
    """A data set whose rows expand into detail grids.

    Wraps another data set; everything not about detail rows is delegated.
    """

    def __init__(
        self,
        inner: TableDataSet,
        configuration: EntityConfiguration,
        factory: MasterDetailTableDataSetFactory,
    ) -> None:
        self.inner = inner
        self.configuration = configuration
        self._factory = factory
        # master item -> detail adapters, one per relationship
        self._expanded = ItemStateMap()

    def __getattr__(self, name: str) -> Any:
        return getattr(self.inner, name)

    async def go_to_page(self, index: int) -> None:
        await self.inner.go_to_page(index)
        self._expanded.retain(self.inner.items)

    async def reload(self) -> None:
        await self.go_to_page(self.inner.pageable_options.current_page)

    async def set_sorting(self, column_name: str) -> None:
        await self.inner.set_sorting(column_name)
        self._expanded.retain(self.inner.items)

    async def save_item(self, item: Any) -> bool:
        succeeded = await self.inner.save_item(item)
        self._expanded.retain(self.inner.items)
        return succeeded

    async def delete_item(self, item: Any) -> bool:
        """Delete ``item`` through the wrapped data set, dropping its detail grids."""
        succeeded = await self.inner.delete_item(item)
        if succeeded:
            self._expanded.pop(item)
        self._expanded.retain(self.inner.items)
        return succeeded

    async def create_item(self, item: Any) -> Any:
        created = await self.inner.create_item(item)
        self._expanded.retain(self.inner.items)
        return created

    def is_detail_expanded(self, item: Any) -> bool:
        return item in self._expanded

    def toggle_detail(self, item: Any) -> None:
        """Expand the detail rows of ``item``, or collapse them if expanded."""
        if self._expanded.pop(item) is None:
            self._expanded.set(
                item,
                [
                    self._factory.detail_adapter(item, relationship)
                    for relationship in self.configuration.relationships.values()
                ],
            )

    def detail_adapters(self, item: Any) -> list[TableDataAdapter]:
        """Adapters of the detail grids of an expanded ``item``."""
        return list(self._expanded.get(item, ()))
