"""Paging, sorting and lazy-loading options, and grid mutation events."""

from __future__ import annotations

import inspect

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ..log import log_callback_error


class PageableOptions(BaseModel):
    """Current paging state of a data set."""

    model_config = ConfigDict(validate_assignment=True)

    page_size: int = Field(default=10, ge=1)
    current_page: int = Field(default=0, ge=0)
    total_items: int = Field(default=0, ge=0)

    @property
    def page_count(self) -> int:
        """Number of pages; an empty data set still has one (empty) page."""
        return max(1, -(-self.total_items // self.page_size))

    @property
    def has_previous_page(self) -> bool:
        return self.current_page > 0

    @property
    def has_next_page(self) -> bool:
        return self.current_page + 1 < self.page_count


class SortingOptions(BaseModel):
    """Current sort column and direction."""

    model_config = ConfigDict(validate_assignment=True)

    sort_expression: str = ""
    descending: bool = False


class LazyLoadingOptions(BaseModel):
    """Addresses used by a lazily loaded data set.

    The URIs are opaque templates; expanding them is the loader's job.
    """

    data_uri: str | None = None
    put_data_uri: str | None = None
    delete_uri: str | None = None
    create_uri: str | None = None
    request_params: dict[str, Any] = Field(default_factory=dict)

    @property
    def is_configured(self) -> bool:
        return self.data_uri is not None


@dataclass
class SaveResultArgs:
    """Outcome of saving an edited item."""

    item: Any
    succeeded: bool = True
    error: str | None = None


@dataclass
class DeleteResultArgs:
    """Outcome of deleting an item."""

    item: Any
    succeeded: bool = True
    error: str | None = None


@dataclass
class ItemCreatedArgs:
    """A newly created item."""

    item: Any


EventCallback = Callable[[Any], None] | Callable[[Any], Awaitable[None]]


@dataclass
class GridViewEvents:
    """Mutation-event callbacks a grid (and all its detail grids) report to."""

    save_operation_finished: EventCallback | None = None
    delete_operation_finished: EventCallback | None = None
    new_item_created: EventCallback | None = None
    extra: dict[str, EventCallback] = field(default_factory=dict)

    async def notify(self, event_type: str, args: Any, grid: str = "") -> None:
        """Invoke the callback registered for ``event_type``, if any.

        Sync and async callbacks are both accepted. A failing callback is
        logged and does not propagate into the data set operation.
        """
        callback = getattr(self, event_type, None) if event_type != "extra" else None
        if callback is None:
            callback = self.extra.get(event_type)
        if callback is None:
            return
        try:
            result = callback(args)
            if inspect.isawaitable(result):
                await result
        except Exception as exc:  # pylint: disable=broad-exception-caught
            log_callback_error(event_type, grid, exc)
