"""Signature annotations.

Annotations live in a side table keyed by the identity of the callable, so
they never show up in ``vars(fn)`` and are not carried over to copies or to
``functools.wraps`` wrappers.  Entries are released when the callable is
garbage collected.
"""

from __future__ import annotations

import logging
import weakref
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple, Union

from .compiler import check_parameter_order
from .errors import InvalidUsage
from .parser import parse_signature
from .signature import FunctionSignature, render

logger = logging.getLogger(__name__)


def _target(fn: Any) -> Any:
    # bound methods share the annotation of their function
    return getattr(fn, "__func__", fn) if hasattr(fn, "__self__") else fn


class AnnotationRegistry:
    """Map from callable identity to its declared signature."""

    def __init__(self) -> None:
        self._entries: Dict[int, Tuple[Callable[[], Any], FunctionSignature]] = {}

    def attach(self, fn: Any, signature: FunctionSignature) -> Any:
        """Record *signature* for *fn* and return *fn* unchanged."""
        target = _target(fn)
        key = id(target)
        try:
            ref = weakref.ref(target, lambda _ref, key=key: self._release(key, _ref))
        except TypeError:
            # not weak-referenceable (e.g. builtins); keep it alive instead
            ref = lambda target=target: target  # noqa: E731
        self._entries[key] = (ref, signature)
        logger.debug(
            "annotated %s with %s", getattr(target, "__qualname__", type(target).__name__), render(signature)
        )
        return fn

    def _release(self, key: int, ref: Any) -> None:
        entry = self._entries.get(key)
        if entry is not None and entry[0] is ref:
            del self._entries[key]

    def lookup(self, fn: Any) -> Optional[FunctionSignature]:
        """Return the signature attached to *fn*, or ``None``."""
        target = _target(fn)
        entry = self._entries.get(id(target))
        if entry is None:
            return None
        ref, signature = entry
        if ref() is not target:
            return None
        return signature

    def detach(self, fn: Any) -> None:
        """Forget the signature attached to *fn*, if any."""
        target = _target(fn)
        entry = self._entries.get(id(target))
        if entry is not None and entry[0]() is target:
            del self._entries[id(target)]

    def __contains__(self, fn: Any) -> bool:
        return self.lookup(fn) is not None

    def __len__(self) -> int:
        return sum(1 for ref, _ in self._entries.values() if ref() is not None)


registry = AnnotationRegistry()


def attach(fn: Any, signature: FunctionSignature) -> Any:
    return registry.attach(fn, signature)


def lookup(fn: Any) -> Optional[FunctionSignature]:
    return registry.lookup(fn)


def is_quackable(fn: Any) -> bool:
    """Return ``True`` if *fn* carries a signature annotation."""
    return registry.lookup(fn) is not None


# ---------- attachment call shapes ----------


@dataclass(frozen=True)
class FunctionContext:
    """``quackable(sig)(fn)`` or ``@quackable(sig)`` on a function."""

    fn: Callable[..., Any]


@dataclass(frozen=True)
class DescriptorContext:
    """``@quackable(sig)`` stacked on ``@staticmethod``/``@classmethod``."""

    descriptor: Union[staticmethod, classmethod]


@dataclass(frozen=True)
class MemberContext:
    """``quackable(sig)(Owner, "name")`` on an existing class member."""

    owner: type
    name: str


AttachContext = Union[FunctionContext, DescriptorContext, MemberContext]


def classify(args: tuple, kwargs: dict) -> AttachContext:
    """Turn the raw decorator arguments into an attachment context."""
    if kwargs:
        raise InvalidUsage("Invalid usage of quackable: keyword arguments given")
    if len(args) == 1:
        (value,) = args
        if isinstance(value, (staticmethod, classmethod)):
            return DescriptorContext(value)
        if callable(value):
            return FunctionContext(value)
    if len(args) == 2:
        owner, name = args
        if isinstance(owner, type) and isinstance(name, str) and name in vars(owner):
            return MemberContext(owner, name)
    raise InvalidUsage(f"Invalid usage of quackable: {args!r}")


def apply(context: AttachContext, signature: FunctionSignature,
          registry: AnnotationRegistry = registry) -> Any:
    """Attach *signature* according to *context*."""
    if isinstance(context, FunctionContext):
        return registry.attach(context.fn, signature)
    if isinstance(context, DescriptorContext):
        registry.attach(context.descriptor.__func__, signature)
        return context.descriptor
    if isinstance(context, MemberContext):
        member = vars(context.owner)[context.name]
        fn = getattr(member, "__func__", member)
        if not callable(fn):
            raise InvalidUsage(
                f"Invalid usage of quackable: {context.owner.__name__}.{context.name} is not callable"
            )
        return registry.attach(fn, signature)
    raise InvalidUsage(f"Invalid usage of quackable: {context!r}")


def quackable(sig: str, registry: AnnotationRegistry = registry) -> Callable[..., Any]:
    """Declare that a function or method implements signature *sig*.

    The signature is parsed and checked when ``quackable`` is called, so
    malformed or misordered signatures fail at definition time.

    Usage (function)::

        add = quackable("(x: number, y: number) => number")(lambda x, y: x + y)

    Usage (method)::

        class Greeter:
            @quackable("(name: string) => void")
            def greet(self, name): ...

    Usage (static/class method)::

        class Maths:
            @quackable("(x: number) => number")
            @staticmethod
            def double(x): ...

    Usage (existing member)::

        quackable("(name: string) => void")(Greeter, "greet")
    """
    signature = parse_signature(sig)
    check_parameter_order(signature.parameters, sig)

    def decorator(*args: Any, **kwargs: Any) -> Any:
        return apply(classify(args, kwargs), signature, registry)

    return decorator


__all__ = [
    "AnnotationRegistry",
    "AttachContext",
    "DescriptorContext",
    "FunctionContext",
    "MemberContext",
    "attach",
    "apply",
    "classify",
    "is_quackable",
    "lookup",
    "quackable",
    "registry",
]
