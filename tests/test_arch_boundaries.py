from __future__ import annotations

import ast
from collections.abc import Iterator
from pathlib import Path

import pytest

SRC_DIR = Path(__file__).resolve().parents[1] / "src"
PACKAGE_ROOT = "huffcore"

# Orchestrators: they touch files, the CLI and integrity checks.
ORCH_PREFIXES: tuple[str, ...] = (
    "huffcore.cli",
    "huffcore.files",
    "huffcore.verify",
    "huffcore.report",
    "huffcore.__main__",
)

# huffcore.core is the algorithm layer: besides itself it may only see errors
# and config. tree_spec is the shared compress/decompress contract and sits
# between core and the orchestrators.
CORE_ALLOWED: tuple[str, ...] = ("huffcore.core", "huffcore.errors", "huffcore.config")


def _matches(mod: str, prefixes: tuple[str, ...]) -> bool:
    return any(mod == p or mod.startswith(p + ".") for p in prefixes)


def _module_name(py_file: Path) -> str:
    parts = list(py_file.relative_to(SRC_DIR).with_suffix("").parts)
    if parts[-1] == "__init__":
        parts.pop()
    return ".".join(parts)


def _absolute(mod: str, node: ast.ImportFrom) -> str | None:
    if node.level == 0:
        return node.module
    base = mod.split(".")[: -node.level]
    if not base:
        return None
    return ".".join(base + ([node.module] if node.module else []))


def _internal_imports(py_file: Path) -> Iterator[tuple[str, int]]:
    mod = _module_name(py_file)
    tree = ast.parse(py_file.read_text(encoding="utf-8"), filename=str(py_file))
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            names = [a.name for a in node.names]
        elif isinstance(node, ast.ImportFrom):
            names = [n for n in [_absolute(mod, node)] if n]
        else:
            continue
        for name in names:
            if name == PACKAGE_ROOT or name.startswith(PACKAGE_ROOT + "."):
                yield name, node.lineno


def _sources() -> list[Path]:
    files = sorted((SRC_DIR / PACKAGE_ROOT).rglob("*.py"))
    assert files, f"no sources under {SRC_DIR}"
    return files


def _fail(violations: list[str], headline: str) -> None:
    if violations:
        pytest.fail("\n".join([headline, *violations]), pytrace=False)


def test_low_level_never_imports_orchestrators() -> None:
    violations = []
    for py in _sources():
        mod = _module_name(py)
        if _matches(mod, ORCH_PREFIXES):
            continue
        for dst, lineno in _internal_imports(py):
            if _matches(dst, ORCH_PREFIXES):
                violations.append(f"  {py}:{lineno}  {mod} -> {dst}")
    _fail(violations, "Forbidden imports (LOW -> ORCH):")


def test_core_only_sees_core_errors_config() -> None:
    violations = []
    for py in _sources():
        mod = _module_name(py)
        if not _matches(mod, ("huffcore.core",)):
            continue
        for dst, lineno in _internal_imports(py):
            if not _matches(dst, CORE_ALLOWED):
                violations.append(f"  {py}:{lineno}  {mod} -> {dst}")
    _fail(violations, "huffcore.core reaches outside its layer:")
