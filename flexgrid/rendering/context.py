"""Per-render value resolution and render-tree helpers.

A ``GridRendererContext`` is created for every render pass. It carries two
cursors, the actual item and the actual column, which the renderers move
row by row and cell by cell; every predicate and value lookup is relative
to them.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from typing import TYPE_CHECKING, Any

from ..metadata.formatters import ValueFormatterType
from .builder import MarkupString
from .html import HtmlAttributes, HtmlEvents


if TYPE_CHECKING:
    from ..dataset.adapters import TableDataAdapter
    from ..dataset.table import TableDataSet
    from ..metadata.entity import ColumnConfiguration
    from ..permissions import PermissionContext
    from .builder import RendererTreeBuilder
    from .immutable import ImmutableGridContext
    from .master_detail import MasterDetailComposer


#: Shown instead of a value the current user may not read.
REDACTION_MARKER = "*****"


class GridRendererContext:
    """What to render for the actual item and column, and how to write it."""

    def __init__(
        self,
        immutable_context: ImmutableGridContext,
        renderer_tree_builder: RendererTreeBuilder,
        table_data_set: TableDataSet,
        permission_context: PermissionContext,
        request_rerender: Callable[[], None] | None = None,
        composer: MasterDetailComposer | None = None,
    ) -> None:
        self.immutable_context = immutable_context
        self.renderer_tree_builder = renderer_tree_builder
        self.table_data_set = table_data_set
        self.permission_context = permission_context
        self.request_rerender = request_rerender or (lambda: None)
        self.composer = composer

        self.actual_item: Any = None
        self.actual_column_name: str = ""

        self._first_column_name = immutable_context.first_column_name
        self._last_column_name = immutable_context.last_column_name
        self._value_formatters = immutable_context.value_formatters
        self._special_renderers = immutable_context.special_column_renderers
        self.property_accessor = immutable_context.property_accessor

    # -- cursors -----------------------------------------------------------

    @property
    def grid_item_properties(self):
        return self.immutable_context.grid_item_properties

    @property
    def css_classes(self):
        return self.immutable_context.css_classes

    def iter_items(self) -> Iterator[Any]:
        """Yield the items of the current page, moving the item cursor."""
        for item in self.table_data_set.current_page():
            self.actual_item = item
            yield item

    def iter_columns(self) -> Iterator[str]:
        """Yield the column names in order, moving the column cursor."""
        for prop in self.immutable_context.grid_item_properties:
            self.actual_column_name = prop.name
            yield prop.name

    @property
    def is_first_column(self) -> bool:
        return self._first_column_name is not None and self.actual_column_name == self._first_column_name

    @property
    def is_last_column(self) -> bool:
        return self._last_column_name is not None and self.actual_column_name == self._last_column_name

    @property
    def is_actual_item_edited(self) -> bool:
        return self.table_data_set.is_item_edited(self.actual_item)

    @property
    def sorting_by_actual_column_name(self) -> bool:
        return self.table_data_set.sorting_options.sort_expression == self.actual_column_name

    @property
    def actual_column_configuration(self) -> ColumnConfiguration:
        return self.immutable_context.entity_configuration.find_column_configuration(
            self.actual_column_name
        )

    @property
    def actual_column_property_can_be_edited(self) -> bool:
        """Whether the actual cell renders an input while its row is edited."""
        return (
            self.actual_column_configuration.is_editable
            and self.actual_column_name not in self._special_renderers
            and self.permission_context.has_current_user_read_permission(self.actual_column_name)
            and self.permission_context.has_current_user_write_permission(self.actual_column_name)
        )

    @property
    def colspan(self) -> int:
        """Columns spanned by a full-width row: every data column plus the action column."""
        return len(self.immutable_context.grid_item_properties) + 1

    # -- values ------------------------------------------------------------

    def resolve_column_value(self) -> str:
        """Resolve the display value of the actual item in the actual column.

        Unreadable columns give the redaction marker, whatever else is
        configured. Special renderer and formatter output is returned as
        ``MarkupString`` so it is not escaped again.
        """
        column = self.actual_column_name
        if not self.permission_context.has_current_user_read_permission(column):
            return REDACTION_MARKER

        special_renderer = self._special_renderers.get(column)
        if special_renderer is not None:
            return MarkupString(special_renderer(self.actual_item))

        formatter = self._value_formatters[column]
        if formatter.formatter_type == ValueFormatterType.SINGLE_PROPERTY:
            value = self.property_accessor.get_value(self.actual_item, column)
        else:
            value = self.actual_item
        return MarkupString(formatter.format_value(value))

    def add_actual_column_value(self) -> None:
        self.renderer_tree_builder.add_content(self.resolve_column_value())

    def get_actual_item_column_value(self, column_name: str) -> Any:
        return self.property_accessor.get_value(self.actual_item, column_name)

    def set_actual_item_column_value(self, column_name: str, value: Any) -> None:
        """Write ``value`` to the live item the data set tracks."""
        self.property_accessor.set_value(self.actual_item, column_name, value)

    # -- render tree -------------------------------------------------------

    def open_element(self, name: str, class_name: str | None = None, style: str | None = None) -> None:
        self.renderer_tree_builder.open_element(name)
        if class_name:
            self.add_css_class(class_name)
        if style:
            self.add_header_style(style)

    def close_element(self) -> None:
        self.renderer_tree_builder.close_element()

    def add_css_class(self, class_name: str) -> None:
        self.renderer_tree_builder.add_attribute(HtmlAttributes.CLASS, class_name)

    def add_header_style(self, style: str) -> None:
        self.renderer_tree_builder.add_attribute(HtmlAttributes.STYLE, style)

    def add_on_click_event(self, handler: Callable[..., Any]) -> None:
        self.renderer_tree_builder.add_attribute(HtmlEvents.ON_CLICK, handler)

    def add_content(self, content: str) -> None:
        self.renderer_tree_builder.add_content(content)

    def add_markup_content(self, content: str) -> None:
        self.renderer_tree_builder.add_content(MarkupString(content))

    def add_disabled(self, disabled: bool) -> None:
        self.renderer_tree_builder.add_attribute(HtmlAttributes.DISABLED, disabled)

    def add_attribute(self, name: str, value: Any) -> None:
        self.renderer_tree_builder.add_attribute(name, value)

    def add_colspan(self) -> None:
        self.renderer_tree_builder.add_attribute(HtmlAttributes.COLSPAN, self.colspan)
        self.renderer_tree_builder.add_content("")

    def add_detail_grid_view_component(self, adapter: TableDataAdapter | None) -> None:
        """Render a nested grid over ``adapter`` for the actual master item."""
        if adapter is None or self.composer is None:
            return
        self.composer.add_detail_grid(self, adapter)
