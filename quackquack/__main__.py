"""Validate contract files from the command line.

Usage: ``python -m quackquack contracts.yml [more.yml ...]``
"""

from __future__ import annotations

import sys

from .contracts import ContractCompilerError, compile_contracts
from .signature import render


def main(argv: list[str] | None = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    if not argv:
        print("usage: python -m quackquack CONTRACTS.yml [...]", file=sys.stderr)
        return 2
    status = 0
    for path in argv:
        try:
            compiled = compile_contracts(path)
        except (OSError, ContractCompilerError) as exc:
            print(f"{path}: {exc}", file=sys.stderr)
            status = 1
            continue
        print(f"{path}: version {compiled.version}")
        for name, contract in compiled.contracts.items():
            print(f"  {name}")
            for method, signature in contract.signatures.items():
                print(f"    {method}: {render(signature)}")
    return status


if __name__ == "__main__":  # pragma: no cover - manual invocation
    sys.exit(main())
