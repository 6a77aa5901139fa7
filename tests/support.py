"""Entities, permission backends and loaders shared by the tests.

Entity types live at module level so their annotations resolve.
"""

from __future__ import annotations

import asyncio

from dataclasses import dataclass, field, replace
from decimal import Decimal
from enum import Enum
from typing import Any

from flexgrid.dataset.adapters import CollectionTableDataAdapter, ConfigureDataSet
from flexgrid.dataset.options import LazyLoadingOptions, SortingOptions
from flexgrid.dataset.table import LazyDataLoader, LazyPage, TableDataSet
from flexgrid.metadata.entity import get_model_configuration
from flexgrid.permissions import AllowAllPermissions, PermissionBackend, PermissionContext
from flexgrid.rendering.builder import RecordingTreeBuilder
from flexgrid.rendering.context import GridRendererContext
from flexgrid.rendering.immutable import build_immutable_grid_context


@dataclass
class Order:
    id: int
    product: str
    amount: Decimal = Decimal("0")


@dataclass
class Person:
    id: int
    name: str
    age: int | None = None
    orders: list[Order] | None = field(default_factory=list)


@dataclass
class Node:
    id: int
    children: list[Node] = field(default_factory=list)


@dataclass
class City:
    name: str


@dataclass
class Region:
    name: str
    cities: list[City] = field(default_factory=list)


@dataclass
class Country:
    name: str
    regions: list[Region] = field(default_factory=list)


class Status(Enum):
    ACTIVE = "active"
    RETIRED = "retired"


class Opaque:
    """A value type no formatter knows about."""


@dataclass
class Holder:
    id: int
    blob: Opaque


class Badge:
    """A value type that renders itself as markup."""

    def __init__(self, label: str) -> None:
        self.label = label

    def __html__(self) -> str:
        return f"<b>{self.label}</b>"


@dataclass
class Tagged:
    id: int
    badge: Badge


class RuleBackend(PermissionBackend):
    """Permission backend denying the listed keys."""

    def __init__(
        self,
        denied_read: tuple[str, ...] = (),
        denied_write: tuple[str, ...] = (),
        allow_create: bool = True,
        allow_delete: bool = True,
    ) -> None:
        self.denied_read = denied_read
        self.denied_write = denied_write
        self.allow_create = allow_create
        self.allow_delete = allow_delete
        self.read_checks: list[str] = []

    def can_read(self, permission_key: str) -> bool:
        self.read_checks.append(permission_key)
        return permission_key not in self.denied_read

    def can_write(self, permission_key: str) -> bool:
        return permission_key not in self.denied_write

    def can_create(self, entity_type: type) -> bool:
        return self.allow_create

    def can_delete(self, entity_type: type) -> bool:
        return self.allow_delete


class ListLoader(LazyDataLoader):
    """Serves pages out of a list and records every request."""

    def __init__(self, items: list[Any]) -> None:
        self.items = items
        self.fetches: list[tuple[int, int, dict[str, Any]]] = []
        self.saved: list[Any] = []
        self.fail_with: Exception | None = None
        # serve copies, like a loader that deserializes every response
        self.fresh_copies = False

    async def fetch_page(
        self,
        options: LazyLoadingOptions,
        page: int,
        page_size: int,
        sorting: SortingOptions,
    ) -> LazyPage:
        self.fetches.append((page, page_size, dict(options.request_params)))
        start = page * page_size
        items = self.items[start : start + page_size]
        if self.fresh_copies:
            items = [replace(item) for item in items]
        return LazyPage(items=items, total_items=len(self.items))

    async def save(self, options: LazyLoadingOptions, item: Any) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.saved.append(item)

    async def create(self, options: LazyLoadingOptions, item: Any) -> Any:
        self.items.append(item)
        return item


class CountingTableDataSet(TableDataSet):
    """Data set counting ``go_to_page`` calls, optionally blocking or failing."""

    def __init__(self, *args: Any, owner: InstrumentedAdapter, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.owner = owner

    async def go_to_page(self, index: int) -> None:
        self.owner.page_loads.append(index)
        self.owner.started.set()
        if self.owner.release is not None:
            await self.owner.release.wait()
        if self.owner.fail_with is not None:
            raise self.owner.fail_with
        await super().go_to_page(index)


class InstrumentedAdapter(CollectionTableDataAdapter):
    """Collection adapter whose data sets report their page loads."""

    def __init__(
        self,
        item_type: type,
        items: list[Any],
        *,
        blocking: bool = False,
        fail_with: Exception | None = None,
    ) -> None:
        super().__init__(item_type, items)
        self.page_loads: list[int] = []
        self.started = asyncio.Event()
        self.release = asyncio.Event() if blocking else None
        self.fail_with = fail_with

    def get_table_data_set(self, configure: ConfigureDataSet | None = None) -> TableDataSet:
        configuration = self._configuration(configure)
        return CountingTableDataSet(
            self.underlying_type_of_item, self.items, owner=self, **configuration.as_kwargs()
        )


def make_people() -> list[Person]:
    return [
        Person(1, "Ann", 30, [Order(10, "Book", Decimal("12.50")), Order(11, "Pen")]),
        Person(2, "Bob", None, []),
        Person(3, "Cid", 41, [Order(12, "Lamp")]),
    ]


def make_render_context(
    item_type: type,
    items: list[Any] | None = None,
    *,
    backend: PermissionBackend | None = None,
    data_set: TableDataSet | None = None,
    builder: RecordingTreeBuilder | None = None,
    composer: Any = None,
) -> GridRendererContext:
    configuration = get_model_configuration().find_entity_configuration(item_type)
    immutable = build_immutable_grid_context(configuration, item_type)
    return GridRendererContext(
        immutable,
        builder or RecordingTreeBuilder(),
        data_set if data_set is not None else TableDataSet(item_type, items or []),
        PermissionContext(configuration, backend or AllowAllPermissions()),
        composer=composer,
    )
