"""Signature compiler.

This module converts a signature AST into validators built on pydantic
``TypeAdapter`` objects running in strict mode, and finally into a wrapper
that checks arguments before and the return value after calling the target.
It never calls callables passed as arguments: a function-typed value is only
checked for being callable.
"""

from __future__ import annotations

import contextlib
import functools
import inspect
import logging
from contextvars import ContextVar
from typing import Annotated, Any, Awaitable, Callable, Sequence, TypeVar

from pydantic import ConfigDict, TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from pydantic.functional_validators import PlainValidator

from .errors import SignatureDefinitionError, ValidationError
from .signature import (
    ArrayType,
    FunctionSignature,
    FunctionType,
    Parameter,
    ParsedType,
    Primitive,
    PromiseType,
    TupleType,
    render,
)

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

_STRICT = ConfigDict(strict=True)

# deferred checks created by the validation currently running, with the
# awaitables they took over
_pending: ContextVar[list | None] = ContextVar("quackquack_pending", default=None)

# strict float accepts int and float but not bool
_PRIMITIVES: dict[Primitive, Any] = {
    Primitive.NUMBER: float,
    Primitive.STRING: str,
    Primitive.BOOLEAN: bool,
    Primitive.NULL: None,
    Primitive.UNDEFINED: None,
    Primitive.VOID: None,
    Primitive.DONTCARE: Any,
}


def check_parameter_order(parameters: Sequence[Parameter], signature: str | None = None) -> None:
    """Raise :class:`SignatureDefinitionError` if a required parameter
    follows an optional one."""
    seen_optional = False
    for index, param in enumerate(parameters):
        if param.optional:
            seen_optional = True
        elif seen_optional:
            raise SignatureDefinitionError(index, signature)


def contains_promise(node: ParsedType) -> bool:
    """Return ``True`` if validating *node* has to defer to an ``await``."""
    if isinstance(node, PromiseType):
        return True
    if isinstance(node, ArrayType):
        return contains_promise(node.element)
    if isinstance(node, TupleType):
        return any(contains_promise(e) for e in node.elements)
    return False


def _from_pydantic(exc: PydanticValidationError, path: tuple) -> ValidationError:
    errors = exc.errors(include_url=False)
    first = errors[0] if errors else {"loc": (), "msg": str(exc)}
    return ValidationError(path + tuple(first["loc"]), first["msg"], errors)


def _check(adapter: TypeAdapter, value: Any, path: tuple) -> Any:
    try:
        return adapter.validate_python(value)
    except PydanticValidationError as exc:
        raise _from_pydantic(exc, path) from exc


async def _await_checked(awaitable: Awaitable[Any], adapter: TypeAdapter, path: tuple) -> Any:
    value = await awaitable
    _check(adapter, value, path)
    return value


def _deferred(value: Any, inner: ParsedType, path: tuple) -> Awaitable[Any]:
    checked = _await_checked(value, compile_type(inner), path)
    pending = _pending.get()
    if pending is not None:
        pending.append((checked, value))
    return checked


@contextlib.contextmanager
def _owning_deferred():
    """Close every deferred check (and the coroutine it wraps) created in
    this block if the block fails validation."""
    pending: list = []
    token = _pending.set(pending)
    try:
        yield
    except ValidationError:
        for checked, original in pending:
            checked.close()
            if inspect.iscoroutine(original):
                original.close()
        raise
    finally:
        _pending.reset(token)


def _defer(value: Any, inner: ParsedType, path: tuple) -> Awaitable[Any]:
    if not inspect.isawaitable(value):
        raise ValidationError(path, "Input should be an awaitable")
    return _deferred(value, inner, path)


def _nested_promise(inner: ParsedType) -> PlainValidator:
    def validate(value: Any) -> Awaitable[Any]:
        if not inspect.isawaitable(value):
            raise ValueError("Input should be an awaitable")
        return _deferred(value, inner, ("await",))

    return PlainValidator(validate)


def python_type(node: ParsedType) -> Any:
    """Return the Python type pydantic validates *node* against."""
    if isinstance(node, Primitive):
        return _PRIMITIVES[node]
    if isinstance(node, ArrayType):
        return list[python_type(node.element)]
    if isinstance(node, TupleType):
        if not node.elements:
            return tuple[()]
        return tuple[tuple(python_type(e) for e in node.elements)]
    if isinstance(node, PromiseType):
        return Annotated[Any, _nested_promise(node.inner)]
    if isinstance(node, FunctionType):
        return Callable[..., Any]
    raise TypeError(f"unsupported signature node: {node!r}")


@functools.lru_cache(maxsize=None)
def compile_type(node: ParsedType) -> TypeAdapter:
    """Compile *node* into a strict pydantic ``TypeAdapter``."""
    return TypeAdapter(python_type(node), config=_STRICT)


class ParameterSchema:
    """Validator for a positional argument list."""

    def __init__(self, parameters: Sequence[Parameter], signature: str | None = None):
        check_parameter_order(parameters, signature)
        self.parameters = tuple(parameters)
        self.required = sum(1 for p in self.parameters if not p.optional)
        self._adapters = [compile_type(p.type) for p in self.parameters]
        self._rewrite = [contains_promise(p.type) for p in self.parameters]

    def _label(self, index: int) -> str:
        name = self.parameters[index].name
        return f"argument {index} ({name})" if name else f"argument {index}"

    def validate(self, args: Sequence[Any], kwargs: dict | None = None) -> tuple:
        """Return the arguments to forward, raising :class:`ValidationError`
        on the first mismatch."""
        if kwargs:
            key = next(iter(kwargs))
            raise ValidationError((key,), "keyword arguments are not supported")
        if len(args) < self.required:
            index = len(args)
            raise ValidationError((index,), f"missing required {self._label(index)}")
        if len(args) > len(self.parameters):
            raise ValidationError(
                (len(self.parameters),),
                f"expected at most {len(self.parameters)} arguments, got {len(args)}",
            )
        checked = []
        with _owning_deferred():
            for index, value in enumerate(args):
                param = self.parameters[index]
                if value is None and param.optional:
                    checked.append(value)
                elif isinstance(param.type, PromiseType):
                    checked.append(_defer(value, param.type.inner, (index,)))
                else:
                    result = _check(self._adapters[index], value, (index,))
                    checked.append(result if self._rewrite[index] else value)
        return tuple(checked)


class ReturnSchema:
    """Validator for a return (or resolved) value."""

    def __init__(self, returns: ParsedType):
        self.returns = returns
        self._adapter = compile_type(returns)
        self._rewrite = contains_promise(returns)

    def validate(self, value: Any) -> Any:
        if isinstance(self.returns, PromiseType):
            return _defer(value, self.returns.inner, ("return",))
        with _owning_deferred():
            result = _check(self._adapter, value, ("return",))
        return result if self._rewrite else value


def compile_signature(signature: FunctionSignature) -> Callable[[F], F]:
    """Compile *signature* into a decorator producing validating wrappers.

    Invalid parameter ordering is reported here, before any call happens.
    For ``async`` signatures the wrapper is a coroutine function, so argument
    errors surface when the returned coroutine is awaited.
    """
    text = render(signature)
    params = ParameterSchema(signature.parameters, text)
    returns = ReturnSchema(signature.returns)
    logger.debug("compiled signature %s", text)

    def decorator(fn: F) -> F:
        if signature.is_async:

            @functools.wraps(fn)
            async def wrapper(*args, **kwargs):
                checked = params.validate(args, kwargs)
                result = fn(*checked)
                if inspect.isawaitable(result):
                    result = await result
                return returns.validate(result)

        else:

            @functools.wraps(fn)
            def wrapper(*args, **kwargs):
                checked = params.validate(args, kwargs)
                return returns.validate(fn(*checked))

        wrapper.__quack_signature__ = signature  # type: ignore[attr-defined]
        return wrapper  # type: ignore[return-value]

    return decorator


__all__ = [
    "check_parameter_order",
    "compile_signature",
    "compile_type",
    "contains_promise",
    "python_type",
    "ParameterSchema",
    "ReturnSchema",
]
