"""Resource manager contract shared by every managed resource kind."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Generic, TypeVar

from ..utils.errors import BuildError, TypeMismatchError
from .models import OcmAgent, StoreObject

if TYPE_CHECKING:
    from ..reconciler.context import ReconcileContext

_T = TypeVar("_T", bound=StoreObject)


@dataclass(frozen=True)
class DiffResult(Generic[_T]):
    """Outcome of comparing an observed object against its desired state.

    ``merged`` is set only when ``changed`` is true and is ready to be written.
    """

    changed: bool
    merged: _T | None = None

    @classmethod
    def unchanged(cls) -> "DiffResult[_T]":
        return cls(changed=False)


class ResourceManager(ABC, Generic[_T]):
    """Builds and diffs one kind of managed resource.

    Subclasses set ``object_type`` to the ``StoreObject`` variant they manage.
    ``build`` must derive the object's name and namespace only from the agent
    spec and static naming rules. ``changed`` must only look at the fields the
    operator owns and must leave every other observed field untouched.
    """

    object_type: type[_T]

    @property
    def kind(self) -> str:
        return self.object_type.KIND

    @abstractmethod
    def object_name(self, agent: OcmAgent) -> str:
        """Name of the managed object, empty when the agent spec sets none."""

    def identify(self, ctx: "ReconcileContext", agent: OcmAgent) -> _T | None:
        """The object ``build`` would produce, with only its name and namespace set.

        Deletion uses this, so removing an agent never depends on the rest
        of its spec being valid or on secondary lookups. Returns None when
        the spec names no object, in which case none can have been created.
        """
        name = self.object_name(agent)
        if not name:
            return None
        return self.object_type(name=name, namespace=ctx.agent_namespace)

    @abstractmethod
    def build(self, ctx: "ReconcileContext", agent: OcmAgent) -> _T:
        """Build the desired object for ``agent``.

        Raises:
            BuildError: If the agent spec is missing required input or a
                secondary lookup needed to build the object fails
        """

    def changed(self, observed: StoreObject, desired: StoreObject) -> DiffResult[_T]:
        """Compare the managed fields of ``observed`` against ``desired``.

        Raises:
            TypeMismatchError: If either object is not of ``object_type``
        """
        self.check_kind(desired)
        self.check_kind(observed)
        return self.diff(observed, desired)  # type: ignore[arg-type]

    @abstractmethod
    def diff(self, observed: _T, desired: _T) -> DiffResult[_T]:
        """Kind-specific comparison of two objects already known to be of ``object_type``."""

    def check_kind(self, obj: StoreObject) -> None:
        if not isinstance(obj, self.object_type):
            received = obj.kind_key() if isinstance(obj, StoreObject) else type(obj).__name__
            raise TypeMismatchError(
                f"expected object of kind {self.object_type.kind_key()} but received {received}"
            )

    def require(self, value: str, field_name: str) -> str:
        """Return ``value`` or raise ``BuildError`` when it is empty."""
        if not value:
            raise BuildError(f"{self.kind}: spec.{field_name} is required")
        return value
