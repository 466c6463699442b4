"""quackquack package init.

Runtime signature contracts for callables and role-based capability tags.
"""

from .annotations import AnnotationRegistry, is_quackable, lookup, quackable  # noqa: F401
from .compiler import compile_signature  # noqa: F401
from .contracts import Contract, ContractCompilerError, load_contracts  # noqa: F401
from .duck import DuckProxy, expect_duck, expect_quack  # noqa: F401
from .errors import (
    InvalidUsage,
    MissingMethod,
    ParseError,
    QuackError,
    RoleDefinitionError,
    RoleNotImplemented,
    SignatureDefinitionError,
    SignatureMismatch,
    ValidationError,
)
from .logging import setup_structured_logging  # noqa: F401
from .parser import parse_signature  # noqa: F401
from .roles import (  # noqa: F401
    Role,
    RoleAware,
    ensure_implements,
    new_role,
    role_aware,
    role_from_protocol,
)
from .signature import FunctionSignature, compatible, render  # noqa: F401

__version__ = "0.1.0"

__all__ = [
    "expect_quack",
    "expect_duck",
    "DuckProxy",
    "quackable",
    "is_quackable",
    "lookup",
    "AnnotationRegistry",
    "compile_signature",
    "parse_signature",
    "FunctionSignature",
    "compatible",
    "render",
    "Role",
    "RoleAware",
    "new_role",
    "role_aware",
    "role_from_protocol",
    "ensure_implements",
    "Contract",
    "ContractCompilerError",
    "load_contracts",
    "QuackError",
    "ParseError",
    "SignatureDefinitionError",
    "SignatureMismatch",
    "MissingMethod",
    "ValidationError",
    "InvalidUsage",
    "RoleDefinitionError",
    "RoleNotImplemented",
    "setup_structured_logging",
]
