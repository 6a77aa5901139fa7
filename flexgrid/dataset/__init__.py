"""Data sets, data adapters and their options."""

from .adapters import (
    CollectionTableDataAdapter,
    DataSetConfiguration,
    LazyTableDataAdapter,
    MasterDetailTableDataSetFactory,
    TableDataAdapter,
)
from .options import (
    DeleteResultArgs,
    GridViewEvents,
    ItemCreatedArgs,
    LazyLoadingOptions,
    PageableOptions,
    SaveResultArgs,
    SortingOptions,
)
from .table import (
    EmptyDataSetItem,
    LazyDataLoader,
    LazyPage,
    LazyTableDataSet,
    MasterTableDataSet,
    TableDataSet,
)


__all__ = [
    "CollectionTableDataAdapter",
    "DataSetConfiguration",
    "DeleteResultArgs",
    "EmptyDataSetItem",
    "GridViewEvents",
    "ItemCreatedArgs",
    "LazyDataLoader",
    "LazyLoadingOptions",
    "LazyPage",
    "LazyTableDataAdapter",
    "LazyTableDataSet",
    "MasterDetailTableDataSetFactory",
    "MasterTableDataSet",
    "PageableOptions",
    "SaveResultArgs",
    "SortingOptions",
    "TableDataAdapter",
    "TableDataSet",
]
