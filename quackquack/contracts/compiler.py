"""Contract file compiler.

Parses the YAML contract format and converts it into
:class:`CompiledContracts`.  Every signature is parsed and checked while
compiling, so a contract file that loads is guaranteed to be enforceable.

Example document::

    version: 0.1
    contracts:
      Greeter:
        greet: "(name: string) => void"
      Calculator:
        add: "(x: number, y: number) => number"
        neg: "(x: number) => number"
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from ..compiler import check_parameter_order
from ..duck import expect_duck
from ..errors import ParseError, QuackError, SignatureDefinitionError
from ..parser import parse_signature
from ..signature import FunctionSignature

logger = logging.getLogger(__name__)

SUPPORTED_VERSIONS = ("0.1",)


class ContractCompilerError(QuackError, ValueError):
    """Raised when a contract document is malformed."""


@dataclass
class Contract:
    name: str
    methods: Dict[str, str]
    signatures: Dict[str, FunctionSignature] = field(default_factory=dict)

    def expect(self, candidate: Any, strict: Optional[bool] = None) -> Any:
        """Check *candidate* against this contract, see :func:`expect_duck`."""
        return expect_duck(self.methods, strict)(candidate)


@dataclass
class CompiledContracts:
    version: str
    contracts: Dict[str, Contract]


def _compile_contract(name: str, methods: Any) -> Contract:
    if not isinstance(methods, dict):
        raise ContractCompilerError(f"contract '{name}' must be a mapping")
    if not methods:
        raise ContractCompilerError(f"contract '{name}' declares no methods")
    texts: Dict[str, str] = {}
    signatures: Dict[str, FunctionSignature] = {}
    for method, text in methods.items():
        if not isinstance(method, str):
            raise ContractCompilerError(
                f"method names in '{name}' must be strings: {method!r}"
            )
        if not isinstance(text, str):
            raise ContractCompilerError(
                f"signature of '{name}.{method}' must be a string: {text!r}"
            )
        try:
            signature = parse_signature(text)
            check_parameter_order(signature.parameters, text)
        except (ParseError, SignatureDefinitionError) as exc:
            raise ContractCompilerError(f"invalid signature for '{name}.{method}': {exc}") from exc
        texts[method] = text
        signatures[method] = signature
    return Contract(name=name, methods=texts, signatures=signatures)


def compile_document(data: Any) -> CompiledContracts:
    """Validate and compile an already loaded contract document."""
    if not isinstance(data, dict):
        raise ContractCompilerError("contract document must be a mapping")
    if "version" not in data:
        raise ContractCompilerError('contract document missing "version" key')
    version = str(data["version"])
    if version not in SUPPORTED_VERSIONS:
        raise ContractCompilerError(f"unsupported contract version: {version}")

    raw = data.get("contracts")
    if not isinstance(raw, dict):
        raise ContractCompilerError("missing or invalid 'contracts' section")

    compiled: Dict[str, Contract] = {}
    for name, methods in raw.items():
        compiled[str(name)] = _compile_contract(str(name), methods)
    logger.debug("compiled %d contract(s)", len(compiled))
    return CompiledContracts(version=version, contracts=compiled)


def compile_contracts(path: str | Path) -> CompiledContracts:
    """Parse and validate a contract YAML file."""
    with open(path, "r", encoding="utf-8") as fh:
        try:
            data = yaml.safe_load(fh)
        except yaml.YAMLError as exc:
            raise ContractCompilerError(f"invalid YAML in {path}: {exc}") from exc
    return compile_document(data)


__all__ = [
    "CompiledContracts",
    "Contract",
    "ContractCompilerError",
    "compile_contracts",
    "compile_document",
]
