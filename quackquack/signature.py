"""Signature AST.

A parsed signature is a tree of frozen dataclasses.  Nodes are compared
structurally, so two signatures parsed from differently spelled text (extra
whitespace, different parameter names) are interchangeable.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Union


class Primitive(str, Enum):
    NUMBER = "number"
    STRING = "string"
    BOOLEAN = "boolean"
    NULL = "null"
    UNDEFINED = "undefined"
    VOID = "void"
    DONTCARE = "dontcare"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class ArrayType:
    element: "ParsedType"

    def __post_init__(self) -> None:
        object.__setattr__(self, "element", _coerce(self.element))

    def __str__(self) -> str:
        return render(self)


@dataclass(frozen=True)
class TupleType:
    elements: tuple["ParsedType", ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "elements", tuple(_coerce(e) for e in self.elements))

    def __str__(self) -> str:
        return render(self)


@dataclass(frozen=True)
class PromiseType:
    inner: "ParsedType"

    def __post_init__(self) -> None:
        object.__setattr__(self, "inner", _coerce(self.inner))

    def __str__(self) -> str:
        return render(self)


@dataclass(frozen=True)
class Parameter:
    """A positional parameter.  ``name`` only shows up in diagnostics."""

    type: "ParsedType"
    optional: bool = False
    name: str | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "type", _coerce(self.type))

    def __str__(self) -> str:
        return render(self)


@dataclass(frozen=True)
class FunctionType:
    """Root of a parsed signature; also types callable-valued parameters."""

    parameters: tuple[Parameter, ...] = ()
    returns: "ParsedType" = Primitive.VOID
    is_async: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "parameters", tuple(self.parameters))
        object.__setattr__(self, "returns", _coerce(self.returns))

    def __str__(self) -> str:
        return render(self)


FunctionSignature = FunctionType

ParsedType = Union[Primitive, ArrayType, TupleType, PromiseType, FunctionType]


def _coerce(node):
    if isinstance(node, str) and not isinstance(node, Primitive):
        return Primitive(node)
    return node


def compatible(expected: FunctionSignature, actual: FunctionSignature) -> bool:
    """Return ``True`` when both signatures have exactly the same shape.

    This is plain structural equality: parameter names are ignored, every
    other detail (kinds, optional flags, positions, async-ness, return type)
    must match.  No coercion or variance is applied.
    """
    return expected == actual


def render(node: ParsedType | Parameter) -> str:
    """Return canonical signature text for *node*."""
    if isinstance(node, Primitive):
        return node.value
    if isinstance(node, ArrayType):
        if isinstance(node.element, FunctionType):
            return f"Array<{render(node.element)}>"
        return f"{render(node.element)}[]"
    if isinstance(node, TupleType):
        return "[" + ", ".join(render(e) for e in node.elements) + "]"
    if isinstance(node, PromiseType):
        return f"Promise<{render(node.inner)}>"
    if isinstance(node, Parameter):
        mark = "?" if node.optional else ""
        if node.name:
            return f"{node.name}{mark}: {render(node.type)}"
        return f"{render(node.type)}{mark}"
    if isinstance(node, FunctionType):
        prefix = "async " if node.is_async else ""
        params = ", ".join(render(p) for p in node.parameters)
        return f"{prefix}({params}) => {render(node.returns)}"
    raise TypeError(f"not a signature node: {node!r}")


__all__ = [
    "Primitive",
    "ArrayType",
    "TupleType",
    "PromiseType",
    "Parameter",
    "FunctionType",
    "FunctionSignature",
    "ParsedType",
    "compatible",
    "render",
]
