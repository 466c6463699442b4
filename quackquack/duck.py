"""Contract enforcement for callables and objects of methods."""

from __future__ import annotations

import logging
import os
from collections import ChainMap
from collections.abc import Mapping
from typing import Any, Callable, Dict, Optional, TypeVar

from .annotations import lookup
from .compiler import check_parameter_order, compile_signature
from .errors import MissingMethod, SignatureMismatch
from .parser import parse_signature
from .signature import FunctionSignature, compatible

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

STRICT_ENV = "QUACKQUACK_STRICT"
_TRUTHY = {"1", "true", "yes", "on"}
_MISSING = object()


def default_strict() -> bool:
    """Return the ``strict`` default configured through ``QUACKQUACK_STRICT``."""
    return os.environ.get(STRICT_ENV, "").strip().lower() in _TRUTHY


def _resolve_strict(strict: Optional[bool]) -> bool:
    return default_strict() if strict is None else bool(strict)


def _expected(text: str) -> FunctionSignature:
    signature = parse_signature(text)
    check_parameter_order(signature.parameters, text)
    return signature


def enforce(expected: FunctionSignature, fn: F, strict: bool = False, name: str | None = None) -> F:
    """Return *fn* or a validating wrapper around it.

    Unannotated callables are always wrapped.  Annotated callables whose
    signature is compatible with *expected* are returned as they are unless
    *strict* is set; incompatible ones raise :class:`SignatureMismatch`.
    """
    actual = lookup(fn)
    if actual is None:
        logger.debug("wrapping unannotated %s with %s", name or fn, expected)
        return compile_signature(expected)(fn)
    if not compatible(actual, expected):
        raise SignatureMismatch(expected, actual, name)
    if strict:
        logger.debug("strict re-wrap of %s with %s", name or fn, expected)
        return compile_signature(expected)(fn)
    return fn


def expect_quack(expected: str, strict: Optional[bool] = None) -> Callable[[F], F]:
    """Enforce signature *expected* on a callable.

    ``strict=None`` falls back to :func:`default_strict`.  Bound methods keep
    their receiver: the wrapper calls the bound method it was given.

    Example::

        greet = expect_quack("(name: string) => void")(lambda name: print(name))
        greet("Alice")   # ok
        greet(123)       # raises ValidationError
    """
    signature = _expected(expected)

    def check(fn: F) -> F:
        return enforce(signature, fn, _resolve_strict(strict))

    return check


class DuckProxy:
    """Read-through view of an object with some attributes replaced.

    Attribute reads check the override mapping first and fall back to the
    wrapped object.  Writes go to the override mapping, so the wrapped object
    is never modified.

    Only named attribute access reads through.  Python looks up special
    methods on the type, so ``len(proxy)``, iteration, calling the proxy and
    ``isinstance`` checks see :class:`DuckProxy`, not the wrapped object.
    Checked methods keep the receiver they were bound to when wrapped.
    """

    __slots__ = ("_duck_target", "_duck_overrides")

    def __init__(self, target: Any, overrides: Mapping[str, Any]):
        object.__setattr__(self, "_duck_target", target)
        object.__setattr__(self, "_duck_overrides", dict(overrides))

    def __getattr__(self, name: str) -> Any:
        overrides = object.__getattribute__(self, "_duck_overrides")
        if name in overrides:
            return overrides[name]
        return getattr(object.__getattribute__(self, "_duck_target"), name)

    def __setattr__(self, name: str, value: Any) -> None:
        self._duck_overrides[name] = value

    def __dir__(self) -> list[str]:
        return sorted(set(dir(self._duck_target)) | set(self._duck_overrides))

    def __repr__(self) -> str:
        return f"DuckProxy({self._duck_target!r})"


def _member(candidate: Any, name: str) -> Any:
    if isinstance(candidate, Mapping):
        return candidate.get(name, _MISSING)
    return getattr(candidate, name, _MISSING)


def expect_duck(expected: Mapping[str, str], strict: Optional[bool] = None) -> Callable[[Any], Any]:
    """Enforce a method-name to signature mapping on an object.

    Every declared member must exist and be callable before anything is
    wrapped, so a failing check never yields a partially wrapped object.
    Objects come back as a :class:`DuckProxy`; mappings come back as a
    :class:`collections.ChainMap` whose first map holds the checked members.

    Example::

        duck = expect_duck({
            "greet": "(name: string) => void",
            "add": "(x: number, y: number) => number",
        })(impl)
    """
    signatures: Dict[str, FunctionSignature] = {
        name: _expected(text) for name, text in expected.items()
    }

    def check(candidate: Any) -> Any:
        members: Dict[str, Any] = {}
        for name in signatures:
            member = _member(candidate, name)
            if member is _MISSING:
                raise MissingMethod(name)
            if not callable(member):
                raise MissingMethod(name, "not callable")
            members[name] = member
        mode = _resolve_strict(strict)
        overrides = {
            name: enforce(signatures[name], member, mode, name)
            for name, member in members.items()
        }
        if isinstance(candidate, Mapping):
            return ChainMap(overrides, candidate)
        return DuckProxy(candidate, overrides)

    return check


__all__ = [
    "DuckProxy",
    "STRICT_ENV",
    "default_strict",
    "enforce",
    "expect_duck",
    "expect_quack",
]
