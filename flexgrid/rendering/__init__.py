"""Render-time contexts, part renderers and the render-tree builder capability."""

from .builder import MarkupString, RecordingTreeBuilder, RendererTreeBuilder, RenderNode
from .context import REDACTION_MARKER, GridRendererContext
from .contexts import GridContexts, GridContextsFactory
from .immutable import ImmutableGridContext, build_immutable_grid_context
from .master_detail import MasterDetailComposer
from .renderers import (
    GridBodyRenderer,
    GridHeaderRenderer,
    GridPaginationRenderer,
    GridPartRenderer,
    GridRendererTreeBuilder,
)


__all__ = [
    "REDACTION_MARKER",
    "GridBodyRenderer",
    "GridContexts",
    "GridContextsFactory",
    "GridHeaderRenderer",
    "GridPaginationRenderer",
    "GridPartRenderer",
    "GridRendererContext",
    "GridRendererTreeBuilder",
    "ImmutableGridContext",
    "MarkupString",
    "MasterDetailComposer",
    "RecordingTreeBuilder",
    "RenderNode",
    "RendererTreeBuilder",
    "build_immutable_grid_context",
]
