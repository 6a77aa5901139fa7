"""Factory for the contexts a grid needs on each render."""

from __future__ import annotations

from dataclasses import dataclass

from ..config import CssSettings
from ..metadata.entity import ModelConfiguration, get_model_configuration
from ..metadata.formatters import FormatterRegistry
from ..permissions import AllowAllPermissions, PermissionBackend, PermissionContext
from .immutable import ImmutableGridContext, build_immutable_grid_context


@dataclass(frozen=True)
class GridContexts:
    """The snapshot and permission view used by one render pass."""

    immutable_context: ImmutableGridContext
    permission_context: PermissionContext


class GridContextsFactory:
    """Builds immutable contexts once per item type and permission contexts per render."""

    def __init__(
        self,
        permission_backend: PermissionBackend | None = None,
        model: ModelConfiguration | None = None,
        css_classes: CssSettings | None = None,
        formatters: FormatterRegistry | None = None,
    ) -> None:
        self.permission_backend = permission_backend or AllowAllPermissions()
        self._model = model
        self.css_classes = css_classes
        self.formatters = formatters

    @property
    def model(self) -> ModelConfiguration:
        return self._model or get_model_configuration()

    def create_immutable_context(self, item_type: type) -> ImmutableGridContext:
        configuration = self.model.find_entity_configuration(item_type)
        return build_immutable_grid_context(
            configuration, item_type, css_classes=self.css_classes, formatters=self.formatters
        )

    def create_contexts(self, immutable_context: ImmutableGridContext) -> GridContexts:
        """Pair a grid's snapshot with a fresh permission context."""
        permission_context = PermissionContext(
            immutable_context.entity_configuration, self.permission_backend
        )
        return GridContexts(immutable_context, permission_context)
