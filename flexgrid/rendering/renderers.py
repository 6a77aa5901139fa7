"""Renderers for the parts of a grid table.

Each renderer writes one part (header, rows, pagination) through a
``GridRendererContext``. Event handlers placed on elements are Python
callables; button handlers return awaitables the host is expected to await.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import Any

from pydantic import ValidationError

from ..config import GridSettings, get_settings
from ..dataset.table import MasterTableDataSet
from ..log import warn
from .context import GridRendererContext
from .html import HtmlAttributes, HtmlEvents, HtmlTags


def _after(context: GridRendererContext, action: Callable[[], Awaitable[Any]]) -> Callable[[], Awaitable[None]]:
    """Wrap ``action`` so the grid asks for a re-render once it completes."""

    async def handler() -> None:
        await action()
        context.request_rerender()

    return handler


class GridPartRenderer(ABC):
    """Renders one part of the grid table."""

    def can_render(self, context: GridRendererContext) -> bool:  # noqa: ARG002
        return True

    @abstractmethod
    def render(self, context: GridRendererContext) -> None:
        """Write this part through ``context``."""

    def build(self, context: GridRendererContext) -> None:
        if self.can_render(context):
            self.render(context)


class GridHeaderRenderer(GridPartRenderer):
    """Column captions with sort toggles, plus the action column header."""

    def __init__(self, settings: GridSettings | None = None) -> None:
        self.settings = settings or get_settings().grid

    def render(self, context: GridRendererContext) -> None:
        css = context.css_classes
        data_set = context.table_data_set
        context.open_element(HtmlTags.THEAD, css.table_header)
        context.open_element(HtmlTags.TR, css.table_header_row)
        for column_name in context.iter_columns():
            context.open_element(HtmlTags.TH, css.table_header_cell)
            context.add_attribute(HtmlAttributes.DATA_COLUMN, column_name)
            context.add_on_click_event(_after(context, lambda c=column_name: data_set.set_sorting(c)))
            context.add_content(context.actual_column_configuration.display_caption)
            if context.sorting_by_actual_column_name:
                context.open_element(HtmlTags.SPAN)
                descending = data_set.sorting_options.descending
                context.add_content(
                    self.settings.sort_descending_indicator if descending
                    else self.settings.sort_ascending_indicator
                )
                context.close_element()
            context.close_element()
        context.open_element(HtmlTags.TH, css.table_header_cell)
        context.close_element()
        context.close_element()
        context.close_element()


class GridCellRenderer:
    """A data cell: an input while the row is edited, the resolved value otherwise."""

    def render(self, context: GridRendererContext) -> None:
        css = context.css_classes
        context.open_element(HtmlTags.TD, css.table_cell)
        context.add_attribute(HtmlAttributes.DATA_COLUMN, context.actual_column_name)
        if context.is_actual_item_edited and context.actual_column_property_can_be_edited:
            self._render_input(context)
        else:
            context.add_actual_column_value()
        context.close_element()

    @staticmethod
    def _render_input(context: GridRendererContext) -> None:
        item = context.actual_item
        column_name = context.actual_column_name
        accessor = context.property_accessor

        def on_change(value: Any) -> None:
            try:
                converted = accessor.convert_value(column_name, value)
            except ValidationError as exc:
                warn(f"Rejected {value!r} for '{accessor.entity_type.__name__}.{column_name}': {exc}")
                return
            accessor.set_value(item, column_name, converted)

        value = context.get_actual_item_column_value(column_name)
        context.open_element(HtmlTags.INPUT, context.css_classes.input)
        context.add_attribute(HtmlAttributes.TYPE, "text")
        context.add_attribute(HtmlAttributes.VALUE, "" if value is None else value)
        context.add_attribute(HtmlEvents.ON_CHANGE, on_change)
        context.close_element()


class GridActionButtonsRenderer:
    """The trailing control cell: edit/save/cancel/delete and detail toggles."""

    def render(self, context: GridRendererContext) -> None:
        css = context.css_classes
        immutable = context.immutable_context
        data_set = context.table_data_set
        item = context.actual_item

        context.open_element(HtmlTags.TD, css.action_cell)
        if isinstance(data_set, MasterTableDataSet):
            expanded = data_set.is_detail_expanded(item)
            self._button(context, "−" if expanded else "+", lambda: _toggle(data_set, item))
        if immutable.inline_edit_is_allowed():
            if context.is_actual_item_edited:
                self._button(context, "Save", lambda: data_set.save_item(item))
                self._button(context, "Cancel", lambda: _cancel(data_set, item))
            else:
                self._button(context, "Edit", lambda: _start(data_set, item))
        if immutable.delete_is_allowed(context.permission_context) and not context.is_actual_item_edited:
            self._button(context, "Delete", lambda: data_set.delete_item(item))
        context.close_element()

    @staticmethod
    def _button(context: GridRendererContext, caption: str, action: Callable[[], Awaitable[Any]]) -> None:
        context.open_element(HtmlTags.BUTTON, context.css_classes.action_button)
        context.add_attribute(HtmlAttributes.TITLE, caption)
        context.add_on_click_event(_after(context, action))
        context.add_content(caption)
        context.close_element()


async def _toggle(data_set: Any, item: Any) -> None:
    data_set.toggle_detail(item)


async def _start(data_set: Any, item: Any) -> None:
    data_set.start_editing(item)


async def _cancel(data_set: Any, item: Any) -> None:
    data_set.cancel_editing(item)


class GridBodyRenderer(GridPartRenderer):
    """One row per item of the current page, each followed by its expanded detail grids."""

    def __init__(self) -> None:
        self.cell_renderer = GridCellRenderer()
        self.action_renderer = GridActionButtonsRenderer()

    def render(self, context: GridRendererContext) -> None:
        css = context.css_classes
        data_set = context.table_data_set
        context.open_element(HtmlTags.TBODY, css.table_body)
        for item in context.iter_items():
            context.open_element(HtmlTags.TR, css.edited_row if context.is_actual_item_edited else css.table_row)
            for _ in context.iter_columns():
                self.cell_renderer.render(context)
            self.action_renderer.render(context)
            context.close_element()

            if isinstance(data_set, MasterTableDataSet) and data_set.is_detail_expanded(item):
                self._render_detail_row(context, data_set.detail_adapters(item))
        context.close_element()

    @staticmethod
    def _render_detail_row(context: GridRendererContext, adapters: list[Any]) -> None:
        css = context.css_classes
        context.open_element(HtmlTags.TR, css.detail_row)
        context.open_element(HtmlTags.TD, css.detail_cell)
        context.add_attribute(HtmlAttributes.COLSPAN, context.colspan)
        for adapter in adapters:
            context.add_detail_grid_view_component(adapter)
        context.close_element()
        context.close_element()


class GridPaginationRenderer(GridPartRenderer):
    """Previous/next controls and the page position."""

    def render(self, context: GridRendererContext) -> None:
        css = context.css_classes
        data_set = context.table_data_set
        paging = data_set.pageable_options
        current = paging.current_page

        context.open_element(HtmlTags.TFOOT, css.pagination)
        context.open_element(HtmlTags.TR)
        context.open_element(HtmlTags.TD)
        context.add_attribute(HtmlAttributes.COLSPAN, context.colspan)

        context.open_element(HtmlTags.BUTTON, css.pagination_button)
        context.add_disabled(not paging.has_previous_page)
        context.add_on_click_event(_after(context, lambda: data_set.go_to_page(current - 1)))
        context.add_content("Previous")
        context.close_element()

        context.open_element(HtmlTags.SPAN)
        context.add_content(f"Page {current + 1} of {paging.page_count}")
        context.close_element()

        context.open_element(HtmlTags.BUTTON, css.pagination_button)
        context.add_disabled(not paging.has_next_page)
        context.add_on_click_event(_after(context, lambda: data_set.go_to_page(current + 1)))
        context.add_content("Next")
        context.close_element()

        context.close_element()
        context.close_element()
        context.close_element()


class GridRendererTreeBuilder:
    """Renders a whole grid table by running its part renderers in order."""

    def __init__(self, renderers: list[GridPartRenderer] | None = None) -> None:
        self.renderers = renderers if renderers is not None else [
            GridHeaderRenderer(),
            GridBodyRenderer(),
            GridPaginationRenderer(),
        ]

    def build_renderer_tree(self, context: GridRendererContext) -> None:
        context.open_element(HtmlTags.TABLE, context.css_classes.table)
        for renderer in self.renderers:
            renderer.build(context)
        context.close_element()
