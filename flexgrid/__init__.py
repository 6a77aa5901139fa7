"""FlexGrid - metadata-driven data grid rendering.

Given a data adapter, entity configuration and a permission backend, a
``GridView`` describes a paged table of items (with inline editing, sorting
and nested detail grids) to a render-tree builder supplied by the host.
"""

from .config import CssSettings, FlexGridSettings, GridSettings, LogSettings, get_settings
from .dataset import (
    CollectionTableDataAdapter,
    DeleteResultArgs,
    EmptyDataSetItem,
    GridViewEvents,
    ItemCreatedArgs,
    LazyDataLoader,
    LazyLoadingOptions,
    LazyPage,
    LazyTableDataAdapter,
    MasterDetailTableDataSetFactory,
    MasterTableDataSet,
    PageableOptions,
    SaveResultArgs,
    SortingOptions,
    TableDataAdapter,
    TableDataSet,
)
from .exceptions import (
    ConfigurationError,
    DataSetLoadError,
    FlexGridException,
    MissingColumnConfigurationError,
    MissingFormatterError,
    MissingRelationshipError,
    RelationshipCycleError,
)
from .grid import CreateItemForm, FlexGridContext, GridView, GridViewState
from .metadata import (
    ColumnConfiguration,
    ConventionsSet,
    EntityConfiguration,
    ModelConfiguration,
    RelationshipConfiguration,
    ValueFormatter,
    ValueFormatterType,
    get_model_configuration,
)
from .permissions import AllowAllPermissions, PermissionBackend, PermissionContext
from .rendering import (
    REDACTION_MARKER,
    GridContextsFactory,
    GridRendererContext,
    ImmutableGridContext,
    MarkupString,
    RecordingTreeBuilder,
    RendererTreeBuilder,
)


__version__ = "0.1.0"

__all__ = [
    "REDACTION_MARKER",
    "AllowAllPermissions",
    "CollectionTableDataAdapter",
    "ColumnConfiguration",
    "ConfigurationError",
    "ConventionsSet",
    "CreateItemForm",
    "CssSettings",
    "DataSetLoadError",
    "DeleteResultArgs",
    "EmptyDataSetItem",
    "EntityConfiguration",
    "FlexGridContext",
    "FlexGridException",
    "FlexGridSettings",
    "GridContextsFactory",
    "GridRendererContext",
    "GridSettings",
    "GridView",
    "GridViewEvents",
    "GridViewState",
    "ImmutableGridContext",
    "ItemCreatedArgs",
    "LazyDataLoader",
    "LazyLoadingOptions",
    "LazyPage",
    "LazyTableDataAdapter",
    "LogSettings",
    "MarkupString",
    "MasterDetailTableDataSetFactory",
    "MasterTableDataSet",
    "MissingColumnConfigurationError",
    "MissingFormatterError",
    "MissingRelationshipError",
    "ModelConfiguration",
    "PageableOptions",
    "PermissionBackend",
    "PermissionContext",
    "RecordingTreeBuilder",
    "RelationshipConfiguration",
    "RelationshipCycleError",
    "RendererTreeBuilder",
    "SaveResultArgs",
    "SortingOptions",
    "TableDataAdapter",
    "TableDataSet",
    "ValueFormatter",
    "ValueFormatterType",
    "__version__",
    "get_model_configuration",
    "get_settings",
]
