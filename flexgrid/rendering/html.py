"""HTML element, attribute and event names used by the grid renderers."""

from __future__ import annotations


class HtmlTags:
    """Element names."""

    DIV = "div"
    TABLE = "table"
    THEAD = "thead"
    TBODY = "tbody"
    TFOOT = "tfoot"
    TR = "tr"
    TH = "th"
    TD = "td"
    SPAN = "span"
    BUTTON = "button"
    INPUT = "input"


class HtmlAttributes:
    """Attribute names."""

    CLASS = "class"
    STYLE = "style"
    COLSPAN = "colspan"
    DISABLED = "disabled"
    VALUE = "value"
    TYPE = "type"
    TITLE = "title"
    DATA_COLUMN = "data-column"


class HtmlEvents:
    """Event attribute names; values are Python callables."""

    ON_CLICK = "onclick"
    ON_CHANGE = "onchange"
