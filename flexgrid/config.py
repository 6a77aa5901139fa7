"""FlexGrid settings.

Settings come from several layers. Each layer overrides the one before it:

- the defaults declared on the section models below
- ``[tool.flexgrid]`` in ``./pyproject.toml``
- ``./flexgrid.toml``
- the per-user ``config.toml`` (``~/.config/flexgrid`` or ``%APPDATA%\\flexgrid``)
- the file named by ``FLEXGRID_CONFIG_FILE``
- environment variables, either per section (``FLEXGRID_GRID__DEFAULT_PAGE_SIZE=25``)
  or nested under ``FLEXGRID__`` (``FLEXGRID__LOG__LEVEL=DEBUG``)

Keyword arguments given to ``FlexGridSettings`` win over the files.
"""

from __future__ import annotations

import os
import sys

from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .log import DEFAULT_FORMAT, configure_from_settings, warn


if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib


def _user_config_path() -> Path:
    if sys.platform == "win32":
        base = Path(os.environ.get("APPDATA", "~"))
    else:
        base = Path("~/.config")
    return (base / "flexgrid" / "config.toml").expanduser()


def _config_candidates() -> list[Path]:
    """Config file locations, lowest precedence first. Missing files are skipped later."""
    candidates = [Path("pyproject.toml"), Path("flexgrid.toml"), _user_config_path()]
    explicit = os.environ.get("FLEXGRID_CONFIG_FILE")
    if explicit:
        candidates.append(Path(explicit))
    return candidates


def _read_config_file(path: Path) -> dict[str, Any] | None:
    try:
        document = tomllib.loads(path.read_text(encoding="utf-8"))
    except (OSError, tomllib.TOMLDecodeError) as exc:
        warn(f"Ignoring unreadable config file {path}: {exc}")
        return None
    if path.name == "pyproject.toml":
        return document.get("tool", {}).get("flexgrid", {})
    return document


def _merge_layers(lower: dict[str, Any], upper: dict[str, Any]) -> dict[str, Any]:
    """Overlay ``upper`` on ``lower``, merging tables key by key."""
    merged = dict(lower)
    for key, value in upper.items():
        below = merged.get(key)
        merged[key] = _merge_layers(below, value) if isinstance(below, dict) and isinstance(value, dict) else value
    return merged


def _file_layers() -> dict[str, Any]:
    combined: dict[str, Any] = {}
    for path in _config_candidates():
        if not path.is_file():
            continue
        layer = _read_config_file(path)
        if layer:
            combined = _merge_layers(combined, layer)
    return combined


def _toml_value(value: Any) -> str:
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, str):
        return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'
    return str(value)


class LogSettings(BaseSettings):
    """The ``[log]`` section, also read from ``FLEXGRID_LOG__*``."""

    model_config = SettingsConfigDict(env_prefix="FLEXGRID_LOG__", extra="ignore")

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "WARNING"
    format: str = DEFAULT_FORMAT


class GridSettings(BaseSettings):
    """The ``[grid]`` section, also read from ``FLEXGRID_GRID__*``.

    Attributes
    ----------
    default_page_size : int
        Page size of a pageable grid whose configuration does not set one.
    max_detail_depth : int
        How many grids may be nested below a top-level grid before further
        detail grids are refused.
    sort_ascending_indicator, sort_descending_indicator : str
        Text appended to the header of the sorted column.
    """

    model_config = SettingsConfigDict(env_prefix="FLEXGRID_GRID__", extra="ignore")

    default_page_size: int = Field(default=10, ge=1)
    max_detail_depth: int = Field(default=8, ge=1)
    sort_ascending_indicator: str = "▲"
    sort_descending_indicator: str = "▼"


class CssSettings(BaseSettings):
    """The ``[css]`` section: class lists put on rendered elements.

    Read from ``FLEXGRID_CSS__*`` too, e.g. ``FLEXGRID_CSS__TABLE="table table-sm"``.
    """

    model_config = SettingsConfigDict(env_prefix="FLEXGRID_CSS__", extra="ignore")

    wrapper: str = "flex-grid"
    table: str = "table table-striped"
    table_header: str = "table-head"
    table_header_row: str = "table-head-row"
    table_header_cell: str = "table-head-cell"
    table_body: str = "table-body"
    table_row: str = "table-row"
    edited_row: str = "table-row table-row-edited"
    table_cell: str = "table-cell"
    detail_row: str = "table-row-detail"
    detail_cell: str = "table-cell-detail"
    action_cell: str = "table-cell-actions"
    action_button: str = "btn btn-sm"
    pagination: str = "table-pagination"
    pagination_button: str = "btn btn-link"
    input: str = "form-control form-control-sm"
    create_form: str = "create-form"
    create_form_button: str = "btn btn-primary"

    @field_validator("*", mode="before")
    @classmethod
    def _collapse_whitespace(cls, v: Any) -> Any:
        return " ".join(v.split()) if isinstance(v, str) else v


class FlexGridSettings(BaseSettings):
    """All settings sections, with the config files layered underneath.

    Parameters
    ----------
    **data
        Section values that take precedence over every config file,
        e.g. ``FlexGridSettings(grid={"default_page_size": 25})``.
    """

    model_config = SettingsConfigDict(env_prefix="FLEXGRID__", env_nested_delimiter="__", extra="ignore")

    log: LogSettings = Field(default_factory=LogSettings)
    grid: GridSettings = Field(default_factory=GridSettings)
    css: CssSettings = Field(default_factory=CssSettings)

    def __init__(self, **data: Any) -> None:
        super().__init__(**_merge_layers(_file_layers(), data))

    def to_toml(self) -> str:
        """Render the effective settings as a TOML document."""
        out = ["# FlexGrid Configuration"]
        for section, values in self.model_dump().items():
            out.append("")
            out.append(f"[{section}]")
            out.extend(f"{key} = {_toml_value(value)}" for key, value in values.items())
        out.append("")
        return "\n".join(out)

    def show(self) -> str:
        """Render the effective settings for a terminal, long values shortened."""
        out = ["FlexGrid Configuration", "=" * 60]
        for section, values in self.model_dump().items():
            out.append(f"\n{section}\n" + "-" * 40)
            for key, value in values.items():
                text = str(value)
                if len(text) > 50:
                    text = text[:47] + "..."
                out.append(f"  {key:20} = {text}")
        return "\n".join(out)


@lru_cache(maxsize=1)
def get_settings() -> FlexGridSettings:
    """Get the process-wide settings, loading them on first use.

    Loading also applies the ``[log]`` section to the ``flexgrid`` logger.
    """
    settings = FlexGridSettings()
    configure_from_settings(settings.log)
    return settings


def clear_settings() -> None:
    """Forget the loaded settings so the next ``get_settings`` reads them again."""
    get_settings.cache_clear()


def reload_settings() -> FlexGridSettings:
    clear_settings()
    return get_settings()
