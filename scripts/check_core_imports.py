#!/usr/bin/env python3
"""
Keep declarest.core free of HTTP stacks and of the packages layered on it.

core may import the standard library, pydantic and its own modules. Anything
else (httpx, dotenv, declarest.transports, ...) is reported and the script
exits non-zero. Pass file or directory paths to check something other than
src/declarest/core/.
"""

from __future__ import annotations

import ast
import sys
from pathlib import Path
from typing import Iterable, Iterator

REPO_ROOT = Path(__file__).resolve().parent.parent
CORE_DIR = REPO_ROOT / "src" / "declarest" / "core"

ALLOWED_THIRD_PARTY = frozenset({"pydantic", "pydantic_core", "typing_extensions"})
ALLOWED_OWN = ("declarest.core",)


def is_allowed(module: str) -> bool:
    top = module.split(".", 1)[0]
    if top in sys.stdlib_module_names or top in ALLOWED_THIRD_PARTY:
        return True
    return any(module == own or module.startswith(own + ".") for own in ALLOWED_OWN)


def _imported_modules(tree: ast.AST) -> Iterator[tuple[int, str, int]]:
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                yield node.lineno, alias.name, 0
        elif isinstance(node, ast.ImportFrom):
            yield node.lineno, node.module or "", node.level


def scan_file(path: Path) -> list[str]:
    errors: list[str] = []
    tree = ast.parse(path.read_text(), filename=str(path))
    for lineno, mod, level in _imported_modules(tree):
        where = f"{path}:{lineno}"
        if level > 1:
            errors.append(f"{where}: relative import outside core '{mod}'")
        elif level == 0 and not is_allowed(mod):
            errors.append(f"{where}: forbidden import '{mod}'")
    return errors


def _python_files(targets: Iterable[Path]) -> Iterator[Path]:
    for target in targets:
        if target.is_dir():
            yield from sorted(target.rglob("*.py"))
        else:
            yield target


def main(argv: list[str] | None = None) -> int:
    targets = [Path(a) for a in (argv or [])] or [CORE_DIR]
    violations: list[str] = []
    for py_file in _python_files(targets):
        violations.extend(scan_file(py_file))

    for v in violations:
        print(v, file=sys.stderr)
    return 1 if violations else 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
