"""Duck contracts declared in YAML files."""

from __future__ import annotations

from pathlib import Path
from typing import Dict

from .compiler import (
    CompiledContracts,
    Contract,
    ContractCompilerError,
    compile_contracts,
    compile_document,
)


def load_contracts(path: str | Path) -> Dict[str, Contract]:
    """Return the contracts declared in *path*, keyed by name."""
    return compile_contracts(path).contracts


__all__ = [
    "CompiledContracts",
    "Contract",
    "ContractCompilerError",
    "compile_contracts",
    "compile_document",
    "load_contracts",
]
