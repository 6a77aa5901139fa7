"""Value formatters and the process-wide default formatter registry.

A formatter turns either a single property value or a whole item into a
markup string. Its output is emitted verbatim, so formatters that show user
data must escape it themselves; the built-in ones do.
"""

from __future__ import annotations

import datetime as dt
import html
import threading
import uuid

from collections.abc import Callable
from decimal import Decimal
from enum import Enum
from typing import Any

from ..log import debug
from .properties import unwrap_optional


class ValueFormatterType(str, Enum):
    """Selects what a formatter receives as input."""

    SINGLE_PROPERTY = "single_property"
    WHOLE_ITEM = "whole_item"


class ValueFormatter:
    """A stateless mapping from a value (or whole item) to a markup string."""

    def __init__(
        self,
        func: Callable[[Any], Any],
        formatter_type: ValueFormatterType = ValueFormatterType.SINGLE_PROPERTY,
    ) -> None:
        """Wrap a formatting function.

        Parameters
        ----------
        func : Callable
            Receives the property value, or the item for WHOLE_ITEM formatters.
        formatter_type : ValueFormatterType
            Which input ``func`` receives.
        """
        self._func = func
        self.formatter_type = ValueFormatterType(formatter_type)

    def format_value(self, value: Any) -> str:
        """Format ``value`` to markup."""
        result = self._func(value)
        return "" if result is None else str(result)

    def __repr__(self) -> str:
        name = getattr(self._func, "__name__", type(self._func).__name__)
        return f"ValueFormatter({name}, {self.formatter_type.value})"


def format_plain_value(value: Any) -> str:  # noqa: PLR0911
    """Convert a single value to escaped display text.

    Handles:
    - None → empty string
    - bool → "Yes"/"No"
    - datetime/date/time → ISO 8601 string
    - timedelta → "[Nd ]HH:MM:SS"
    - Enum → its value
    - everything else → ``str(value)``
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, dt.timedelta):
        total_secs = int(value.total_seconds())
        hours, remainder = divmod(total_secs, 3600)
        minutes, seconds = divmod(remainder, 60)
        if value.days:
            return f"{value.days}d {hours % 24:02d}:{minutes:02d}:{seconds:02d}"
        return f"{hours:02d}:{minutes:02d}:{seconds:02d}"
    if isinstance(value, (dt.datetime, dt.date, dt.time)):
        return value.isoformat()
    if isinstance(value, Enum):
        return html.escape(str(value.value))
    return html.escape(str(value))


DEFAULT_VALUE_FORMATTER = ValueFormatter(format_plain_value)


class FormatterRegistry:
    """Append-only registry of default formatters keyed by value type.

    Lookups walk the MRO of the property type, so registering a base class
    covers its subclasses. Safe to populate from several grids at once.
    """

    def __init__(self) -> None:
        """Initialize the registry with the built-in scalar types."""
        self._formatters: dict[type, ValueFormatter] = {}
        self._lock = threading.Lock()
        for scalar in (str, int, float, bool, Decimal, dt.datetime, dt.date, dt.time,
                       dt.timedelta, uuid.UUID, Enum):
            self._formatters[scalar] = DEFAULT_VALUE_FORMATTER

    def register(self, value_type: type, formatter: ValueFormatter) -> ValueFormatter:
        """Register a default formatter for ``value_type``.

        The first registration for a type wins; later ones are ignored.

        Returns
        -------
        ValueFormatter
            The formatter now registered for the type.
        """
        with self._lock:
            existing = self._formatters.get(value_type)
            if existing is not None:
                if existing is not formatter:
                    debug(f"Formatter for {value_type.__name__} already registered; keeping it")
                return existing
            self._formatters[value_type] = formatter
            return formatter

    def infer(self, property_type: Any) -> ValueFormatter | None:
        """Infer a formatter for a property annotation.

        Returns
        -------
        ValueFormatter or None
            None when no registered type matches.
        """
        property_type = unwrap_optional(property_type)
        if property_type is Any:
            return DEFAULT_VALUE_FORMATTER
        if not isinstance(property_type, type):
            return None
        for klass in property_type.__mro__:
            formatter = self._formatters.get(klass)
            if formatter is not None:
                return formatter
        return None

    def __contains__(self, value_type: type) -> bool:
        return value_type in self._formatters


class _RegistryHolder:
    """Holder for the process-wide formatter registry."""

    instance: FormatterRegistry | None = None
    lock = threading.Lock()


def get_formatter_registry() -> FormatterRegistry:
    """Get the process-wide formatter registry."""
    if _RegistryHolder.instance is None:
        with _RegistryHolder.lock:
            if _RegistryHolder.instance is None:
                _RegistryHolder.instance = FormatterRegistry()
    return _RegistryHolder.instance


def reset_formatter_registry() -> None:
    """Drop all custom formatter registrations."""
    with _RegistryHolder.lock:
        _RegistryHolder.instance = None
