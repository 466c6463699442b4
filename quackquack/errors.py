"""Exception hierarchy for quackquack."""

from __future__ import annotations

from typing import Any, Sequence


class QuackError(Exception):
    """Base class for all quackquack errors."""


class ParseError(QuackError, ValueError):
    """Raised when signature text does not follow the signature DSL."""

    def __init__(self, text: str, message: str, line: int | None = None, column: int | None = None):
        self.text = text
        self.line = line
        self.column = column
        where = f" at line {line}, column {column}" if line is not None else ""
        super().__init__(f"cannot parse signature {text!r}{where}: {message}")


class SignatureDefinitionError(QuackError, ValueError):
    """Raised when a required parameter follows an optional one."""

    def __init__(self, position: int, signature: str | None = None):
        self.position = position
        self.signature = signature
        msg = f"required parameter {position} cannot follow optional ones"
        if signature:
            msg += f" in {signature}"
        super().__init__(msg)


class SignatureMismatch(QuackError):
    """Raised when an annotated callable does not match the expected signature."""

    def __init__(self, expected: Any, actual: Any, target: str | None = None):
        self.expected = expected
        self.actual = actual
        self.target = target
        label = f"{target} does" if target else "Function does"
        super().__init__(
            f"{label} not match expected quack.\nExpected: {expected}\nGot: {actual}"
        )


class MissingMethod(QuackError, AttributeError):
    """Raised when a duck is missing a declared method."""

    def __init__(self, name: str, reason: str = "missing from the object"):
        self.name = name
        super().__init__(f"Method {name} is {reason}.")


class ValidationError(QuackError, TypeError):
    """Raised when a value does not satisfy a compiled signature.

    ``path`` locates the failing element: it starts with the argument
    position (or ``"return"``) followed by the location reported by the
    validator, e.g. ``(1, 0)`` for the first item of the second argument.
    ``errors`` holds the raw pydantic error dictionaries, if any.
    """

    def __init__(self, path: Sequence[Any], message: str, errors: list[dict] | None = None):
        self.path = tuple(path)
        self.errors = errors or []
        where = ".".join(str(p) for p in self.path) or "<value>"
        super().__init__(f"{where}: {message}")

    @property
    def position(self) -> int | None:
        """Argument position of the failure, ``None`` for return values."""
        if self.path and isinstance(self.path[0], int):
            return self.path[0]
        return None


class InvalidUsage(QuackError, TypeError):
    """Raised when ``quackable`` is applied to something it cannot annotate."""


class RoleDefinitionError(QuackError, ValueError):
    """Raised when a role guard accepts values that are not pure protocols."""


class RoleNotImplemented(QuackError):
    """Raised when an object does not implement a required role."""

    def __init__(self, role: Any):
        self.role = role
        super().__init__(f"Object does not implement required role: {role}")
