"""Role-based capability tags.

A :class:`Role` is a named capability checked by a guard predicate.  Objects
are wrapped with :func:`role_aware` and collect roles through
:meth:`RoleAware.attach_role`; later code asks for a role with
:meth:`RoleAware.implements_role` or :func:`ensure_implements`.

Roles are nominal: two roles built from the same guard and description are
still different capabilities.  The protocol type parameter is a phantom type
used only by static type checkers.
"""

from __future__ import annotations

import logging
import types
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, Optional, TypeVar, cast

from .errors import RoleDefinitionError, RoleNotImplemented

logger = logging.getLogger(__name__)

P = TypeVar("P")


@dataclass(frozen=True, eq=False)
class Role(Generic[P]):
    """Capability identified by object identity."""

    description: str
    guard: Callable[[Any], bool] = field(repr=False)

    def accepts(self, obj: Any) -> bool:
        """Evaluate the guard; a missing attribute counts as a rejection."""
        try:
            return bool(self.guard(obj))
        except AttributeError:
            return False

    def __str__(self) -> str:
        return self.description


def new_role(description: str, guard: Callable[[Any], bool]) -> Role[Any]:
    """Create a new :class:`Role`.

    The guard is run against an empty probe object first.  A guard that
    accepts the probe and leaves a non-callable member on it does not describe
    a protocol of methods, and is rejected with :class:`RoleDefinitionError`.
    """
    role: Role[Any] = Role(description, guard)
    probe = types.SimpleNamespace()
    if role.accepts(probe):
        for key, value in vars(probe).items():
            if not callable(value):
                raise RoleDefinitionError(
                    f'Role "{description}" must only contain methods. '
                    f'Key "{key}" is not a function.'
                )
    return role


def role_from_protocol(protocol: type, description: str | None = None) -> Role[Any]:
    """Create a role requiring every method declared by *protocol*.

    *protocol* is usually a :class:`typing.Protocol` subclass; its public
    callable members become the required methods.
    """
    names = sorted(
        name
        for cls in protocol.__mro__
        if cls is not object and cls.__module__ != "typing"
        for name, value in vars(cls).items()
        if not name.startswith("_") and callable(value)
    )
    if not names:
        raise RoleDefinitionError(f"{protocol.__name__} declares no methods")

    def guard(obj: Any) -> bool:
        return all(callable(getattr(obj, name, None)) for name in names)

    return new_role(description or protocol.__name__, guard)


class RoleAware:
    """Read-through wrapper tracking the roles an object was granted.

    Like :class:`~quackquack.duck.DuckProxy`, only named attribute access
    reaches the wrapped object; special methods (``len()``, iteration,
    calling) and ``isinstance`` checks apply to the wrapper itself.
    """

    __slots__ = ("_role_delegate", "_roles")

    def __init__(self, delegate: Any):
        object.__setattr__(self, "_role_delegate", delegate)
        object.__setattr__(self, "_roles", set())

    def __getattr__(self, name: str) -> Any:
        return getattr(object.__getattribute__(self, "_role_delegate"), name)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"{type(self).__name__} is read-only")

    @property
    def roles(self) -> frozenset:
        return frozenset(self._roles)

    def attach_role(self, role: Role[P]) -> "RoleAware":
        """Attach *role* if its guard accepts this object.

        A rejecting guard leaves the wrapper unchanged; nothing is raised.
        """
        if role.accepts(self):
            self._roles.add(role)
            logger.debug("attached role %s to %r", role, self._role_delegate)
        else:
            logger.debug("role %s rejected %r", role, self._role_delegate)
        return self

    def implements_role(self, role: Role[P]) -> Optional[P]:
        """Return this wrapper typed as *role*'s protocol, or ``None``."""
        if role in self._roles:
            return cast(P, self)
        return None

    def __repr__(self) -> str:
        return f"RoleAware({self._role_delegate!r})"


def role_aware(obj: Any) -> RoleAware:
    """Wrap *obj* with an empty role set; *obj* itself is left untouched."""
    return RoleAware(obj)


def ensure_implements(obj: Any, role: Role[P]) -> P:
    """Return *obj* typed as *role*'s protocol or raise :class:`RoleNotImplemented`."""
    impl = obj.implements_role(role) if isinstance(obj, RoleAware) else None
    if impl is None:
        raise RoleNotImplemented(role)
    return impl


__all__ = [
    "Role",
    "RoleAware",
    "ensure_implements",
    "new_role",
    "role_aware",
    "role_from_protocol",
]
