"""Object store interface consumed by the reconciler."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, TypeVar

from ...resources.models import OcmAgent, StoreObject

if TYPE_CHECKING:
    from ...reconciler.context import ReconcileContext

_T = TypeVar("_T", bound=StoreObject)


class ObjectStore(Protocol):
    """Protocol defining the object store operations.

    Implementations must be safe for concurrent use. Errors are reported with
    the ``StoreError`` hierarchy from ``utils.errors``; ``ConflictError`` is
    the only class the reconciler retries.
    """

    def get(self, ctx: ReconcileContext, kind: type[_T], namespace: str | None, name: str) -> _T:
        """Fetch an object.

        Raises:
            NotFoundError: If the object does not exist
        """
        ...

    def create(self, ctx: ReconcileContext, obj: StoreObject) -> StoreObject:
        """Create an object.

        Raises:
            AlreadyExistsError: If an object with the same identity exists
        """
        ...

    def update(self, ctx: ReconcileContext, obj: StoreObject) -> StoreObject:
        """Replace an object, guarded by its resource version.

        Raises:
            ConflictError: If the object changed since it was read
        """
        ...

    def delete(self, ctx: ReconcileContext, obj: StoreObject) -> None:
        """Delete an object.

        Raises:
            NotFoundError: If the object is already gone
        """
        ...

    def get_parent(self, ctx: ReconcileContext, namespace: str, name: str) -> OcmAgent:
        """Fetch an OcmAgent.

        Raises:
            NotFoundError: If the OcmAgent does not exist
        """
        ...

    def update_parent(self, ctx: ReconcileContext, agent: OcmAgent) -> OcmAgent:
        """Replace an OcmAgent (metadata and spec), guarded by its resource version."""
        ...

    def patch_parent_status(self, ctx: ReconcileContext, agent: OcmAgent, status: dict[str, Any]) -> None:
        """Merge ``status`` into the OcmAgent's status subresource."""
        ...
