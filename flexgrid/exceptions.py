"""Errors raised by FlexGrid.

Everything derives from ``FlexGridException``. Metadata problems are
``ConfigurationError`` subclasses and abort the render; a page that cannot be
loaded is a ``DataSetLoadError`` and leaves the grid on its previous data.
Missing read permission is not an error at all: the cell is masked.
"""

from __future__ import annotations

from typing import Any


class FlexGridException(Exception):
    """Base class of FlexGrid errors.

    Parameters
    ----------
    message : str
        What went wrong.
    **context : Any
        Details such as the entity type, column or page. Keys whose value is
        ``None`` are dropped.
    """

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context = {key: value for key, value in context.items() if value is not None}

    def __str__(self) -> str:
        if not self.context:
            return self.message
        details = ", ".join(f"{key}={value!r}" for key, value in self.context.items())
        return f"{self.message} ({details})"


class ConfigurationError(FlexGridException):
    """Grid metadata is missing or contradicts itself.

    A grid with bad metadata does not render at all rather than render
    partial data.
    """

    def __init__(self, message: str, entity_type: str | None = None, column: str | None = None, **context: Any):
        super().__init__(message, entity_type=entity_type, column=column, **context)
        self.entity_type = entity_type
        self.column = column


class MissingFormatterError(ConfigurationError):
    """No value formatter is registered for a column and none can be inferred."""


class MissingColumnConfigurationError(ConfigurationError):
    """The entity configuration has no column of the given name."""


class MissingRelationshipError(ConfigurationError):
    """The master type has no relationship to the requested detail type."""

    def __init__(self, message: str, entity_type: str | None = None, related_type: str | None = None, **context: Any):
        super().__init__(message, entity_type=entity_type, related_type=related_type, **context)
        self.related_type = related_type


class RelationshipCycleError(ConfigurationError):
    """A detail grid was refused.

    Raised when the detail type already appears on the render path, or when
    nesting it would go deeper than ``GridSettings.max_detail_depth``.

    Attributes
    ----------
    path : tuple of str
        Entity type names from the top-level grid down to the refused one.
    """

    def __init__(self, message: str, path: tuple[str, ...] = (), entity_type: str | None = None, **context: Any):
        super().__init__(message, entity_type=entity_type, path=path, **context)
        self.path = path


class DataSetLoadError(FlexGridException):
    """Fetching the first page of a new data set failed.

    The original exception is chained as ``__cause__``.
    """

    def __init__(self, message: str, page: int | None = None, **context: Any) -> None:
        super().__init__(message, page=page, **context)
        self.page = page
