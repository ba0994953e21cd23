"""Import and dependency boundaries between the orch packages."""

from __future__ import annotations

import ast
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True, slots=True)
class ImportRef:
    module: str
    line: int


def orch_root() -> Path:
    return Path(__file__).resolve().parents[2]


def iter_python_files(base: Path) -> list[Path]:
    return [
        path
        for path in sorted(base.rglob("*.py"))
        if "__pycache__" not in path.parts and "test" not in path.relative_to(orch_root()).parts
    ]


def parse_imports(path: Path) -> list[ImportRef]:
    tree = ast.parse(path.read_text(encoding="utf-8"), filename=str(path))
    imports: list[ImportRef] = []
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            imports.extend(ImportRef(alias.name, node.lineno) for alias in node.names)
        elif isinstance(node, ast.ImportFrom) and node.module and not node.level:
            imports.append(ImportRef(node.module, node.lineno))
    return imports


def matches_prefix(module: str, prefix: str) -> bool:
    return module == prefix or module.startswith(prefix + ".")


def _offenders(
    base: Path, forbidden: tuple[str, ...], allowlist: frozenset[str] = frozenset()
) -> list[str]:
    root = orch_root()
    out: list[str] = []
    for file_path in iter_python_files(base):
        rel = file_path.relative_to(root).as_posix()
        if rel in allowlist:
            continue
        for item in parse_imports(file_path):
            if any(matches_prefix(item.module, prefix) for prefix in forbidden):
                out.append(f"{rel}:{item.line}: forbidden import '{item.module}'")
    return out


def test_core_does_not_depend_on_higher_layers() -> None:
    offenders = _offenders(
        orch_root() / "core",
        ("orch.release", "orch.cli", "orch.git", "orch.tools", "orch.output"),
    )
    assert not offenders, "core layering violations:\n" + "\n".join(offenders)


def test_release_does_not_import_cli() -> None:
    offenders = _offenders(orch_root() / "release", ("orch.cli", "typer", "rich"))
    assert not offenders, "release -> cli dependency violations:\n" + "\n".join(offenders)


def test_rich_is_only_used_by_the_console() -> None:
    offenders = _offenders(
        orch_root(), ("rich",), allowlist=frozenset({"output/console.py"})
    )
    assert not offenders, "Direct rich usage policy violations:\n" + "\n".join(offenders)


def test_subprocess_is_only_used_by_the_process_wrapper() -> None:
    offenders = _offenders(
        orch_root(), ("subprocess",), allowlist=frozenset({"platform/process.py"})
    )
    assert not offenders, "Subprocess policy violations:\n" + "\n".join(offenders)
