"""Signature DSL parser.

Turns text such as ``"async (x: number, y?: string) => boolean[]"`` into a
:class:`~quackquack.signature.FunctionSignature`.  The grammar is LALR(1);
primitive type names, ``Array``, ``Promise`` and ``async`` are reserved and
cannot be used as parameter names.
"""

from __future__ import annotations

import functools

from lark import Lark, Transformer
from lark.exceptions import UnexpectedInput

from .errors import ParseError
from .signature import (
    ArrayType,
    FunctionSignature,
    FunctionType,
    Parameter,
    Primitive,
    PromiseType,
    TupleType,
)

_GRAMMAR = r"""
start: signature

signature: [ASYNC] "(" [params] ")" "=>" type
params: param ("," param)*
param: NAME [OPTIONAL] ":" type     -> named_param
     | type [OPTIONAL]              -> anonymous_param

?type: postfix
     | signature

?postfix: atom
        | postfix "[" "]"           -> list_suffix

?atom: "number"                     -> number
     | "string"                     -> string
     | "boolean"                    -> boolean
     | "null"                       -> null
     | "undefined"                  -> undefined
     | "void"                       -> void
     | "dontcare"                   -> dontcare
     | "Array" "<" type ">"         -> array
     | "Promise" "<" type ">"       -> promise
     | "[" [types] "]"              -> tuple

types: type ("," type)*

ASYNC: "async"
OPTIONAL: "?"
NAME: /[A-Za-z_][A-Za-z0-9_]*/

%import common.WS
%ignore WS
"""


class _ToSignature(Transformer):
    def start(self, children):
        return children[0]

    def signature(self, children):
        is_async, params, returns = children
        return FunctionType(
            parameters=params or (), returns=returns, is_async=is_async is not None
        )

    def params(self, children):
        return list(children)

    def named_param(self, children):
        name, optional, type_ = children
        return Parameter(type=type_, optional=optional is not None, name=str(name))

    def anonymous_param(self, children):
        type_, optional = children
        return Parameter(type=type_, optional=optional is not None)

    def number(self, _):
        return Primitive.NUMBER

    def string(self, _):
        return Primitive.STRING

    def boolean(self, _):
        return Primitive.BOOLEAN

    def null(self, _):
        return Primitive.NULL

    def undefined(self, _):
        return Primitive.UNDEFINED

    def void(self, _):
        return Primitive.VOID

    def dontcare(self, _):
        return Primitive.DONTCARE

    def array(self, children):
        return ArrayType(children[0])

    list_suffix = array

    def promise(self, children):
        return PromiseType(children[0])

    def tuple(self, children):
        (elements,) = children
        return TupleType(elements or ())

    def types(self, children):
        return list(children)


_parser = Lark(_GRAMMAR, parser="lalr", maybe_placeholders=True)
_transformer = _ToSignature()


def parse_signature(text: str) -> FunctionSignature:
    """Parse *text* into a signature AST.

    Raises :class:`~quackquack.errors.ParseError` when *text* is not a valid
    signature.  Results are cached; the returned tree is immutable.
    """
    if not isinstance(text, str):
        raise ParseError(repr(text), "signature must be a string")
    return _parse(text)


@functools.lru_cache(maxsize=512)
def _parse(text: str) -> FunctionSignature:
    try:
        tree = _parser.parse(text)
    except UnexpectedInput as exc:
        message = str(exc).strip().splitlines()[0]
        raise ParseError(text, message, exc.line, exc.column) from None
    return _transformer.transform(tree)


__all__ = ["parse_signature"]
