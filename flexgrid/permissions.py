"""Per-column permission checks for the current user.

Policy evaluation belongs to a ``PermissionBackend`` supplied by the host;
``PermissionContext`` maps grid columns to the backend's permission keys.
"""

# pylint: disable=unnecessary-ellipsis

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from .metadata.entity import EntityConfiguration


class PermissionBackend(ABC):
    """Answers permission questions for the current user."""

    @abstractmethod
    def can_read(self, permission_key: str) -> bool:
        """Whether the current user may see values guarded by ``permission_key``."""
        ...

    @abstractmethod
    def can_write(self, permission_key: str) -> bool:
        """Whether the current user may change values guarded by ``permission_key``."""
        ...

    def can_create(self, entity_type: type) -> bool:  # noqa: ARG002
        """Whether the current user may create items of ``entity_type``."""
        return True

    def can_delete(self, entity_type: type) -> bool:  # noqa: ARG002
        """Whether the current user may delete items of ``entity_type``."""
        return True


class AllowAllPermissions(PermissionBackend):
    """Backend granting every permission."""

    def can_read(self, permission_key: str) -> bool:  # noqa: ARG002
        return True

    def can_write(self, permission_key: str) -> bool:  # noqa: ARG002
        return True


class PermissionContext:
    """Permission view of one grid for one render pass.

    Every check goes to the backend; nothing is cached.
    """

    def __init__(self, configuration: EntityConfiguration, backend: PermissionBackend) -> None:
        self.configuration = configuration
        self.backend = backend

    def has_current_user_read_permission(self, column_name: str) -> bool:
        column = self.configuration.find_column_configuration(column_name)
        return self.backend.can_read(column.read_permission_key)

    def has_current_user_write_permission(self, column_name: str) -> bool:
        column = self.configuration.find_column_configuration(column_name)
        return self.backend.can_write(column.write_permission_key)

    def has_current_user_create_permission(self) -> bool:
        return self.backend.can_create(self.configuration.entity_type)

    def has_current_user_delete_permission(self) -> bool:
        return self.backend.can_delete(self.configuration.entity_type)
