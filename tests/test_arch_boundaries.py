from __future__ import annotations

import ast
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

# Front-end modules. The codec and its contracts must NEVER import these.
#
# network_spec is a contract (shared schema), not a front-end: it may be
# imported by anyone, but it may only depend on the codec.
FRONTEND_PREFIXES: tuple[str, ...] = ("ctim.cli",)

# Modules the codec core may depend on (besides itself).
CORE_ALLOWED: tuple[str, ...] = ("ctim.core", "ctim.errors")

PACKAGE_ROOT = "ctim"


@dataclass(frozen=True)
class ImportEdge:
    src: str
    dst: str
    file: Path
    lineno: int


def _has_prefix(mod: str, prefixes: tuple[str, ...]) -> bool:
    return any(mod == p or mod.startswith(p + ".") for p in prefixes)


def _module_name_from_path(src_dir: Path, py_file: Path) -> str | None:
    try:
        rel = py_file.relative_to(src_dir)
    except ValueError:
        return None

    parts = list(rel.parts)
    if not parts or parts[0] != PACKAGE_ROOT:
        return None

    if py_file.name == "__init__.py":
        parts = parts[:-1]
    else:
        parts[-1] = py_file.stem

    return ".".join(parts) if parts else None


def _resolve_relative(current_mod: str, level: int, module: str | None) -> str | None:
    if level <= 0:
        return module

    base = current_mod.split(".")[:-1]  # package of current module
    if level > len(base):
        return None

    base = base[: len(base) - level + 1]
    if module:
        return ".".join(base + module.split("."))
    return ".".join(base)


def _iter_import_edges(src_dir: Path) -> Iterable[ImportEdge]:
    for py in src_dir.rglob("*.py"):
        mod = _module_name_from_path(src_dir, py)
        if not mod:
            continue

        tree = ast.parse(py.read_text(encoding="utf-8"), filename=str(py))

        for node in ast.walk(tree):
            if isinstance(node, ast.Import):
                for alias in node.names:
                    if _has_prefix(alias.name, (PACKAGE_ROOT,)):
                        yield ImportEdge(mod, alias.name, py, getattr(node, "lineno", 0))

            elif isinstance(node, ast.ImportFrom):
                if node.module is None and node.level == 0:
                    continue
                abs_mod = _resolve_relative(mod, node.level, node.module)
                if abs_mod and _has_prefix(abs_mod, (PACKAGE_ROOT,)):
                    yield ImportEdge(mod, abs_mod, py, getattr(node, "lineno", 0))


def _src_dir() -> Path:
    src_dir = Path(__file__).resolve().parents[1] / "src"
    if not src_dir.is_dir():
        raise AssertionError(f"Expected src/ directory at: {src_dir}")
    return src_dir


def _report(title: str, violations: list[ImportEdge], fix: str) -> None:
    if not violations:
        return
    lines = [title]
    for v in sorted(violations, key=lambda e: (str(e.file), e.lineno, e.src, e.dst)):
        lines.append(f"  {v.file}:{v.lineno}  {v.src}  ->  {v.dst}")
    lines.append("")
    lines.append(fix)
    raise AssertionError("\n".join(lines))


def test_nothing_imports_the_cli() -> None:
    """
    Hard dependency direction:
      CLI   -> may depend on codec, errors, network_spec
      other -> must NOT depend on CLI
    """
    violations = [
        e
        for e in _iter_import_edges(_src_dir())
        if e.src != e.dst
        and not _has_prefix(e.src, FRONTEND_PREFIXES)
        and _has_prefix(e.dst, FRONTEND_PREFIXES)
    ]
    _report(
        "Forbidden imports detected (-> CLI):",
        violations,
        "Fix: move front-end logic out of library modules, or invert the dependency.",
    )


def test_core_depends_only_on_core_and_errors() -> None:
    violations = [
        e
        for e in _iter_import_edges(_src_dir())
        if _has_prefix(e.src, ("ctim.core",)) and not _has_prefix(e.dst, CORE_ALLOWED)
    ]
    _report(
        "Forbidden imports detected (core -> outside core):",
        violations,
        "Fix: the codec core may only import ctim.core.* and ctim.errors.",
    )
