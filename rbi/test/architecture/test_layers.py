"""Import and side-effect policies for the rbi package."""

from __future__ import annotations

import ast
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True, slots=True)
class ImportRef:
    module: str
    line: int


def rbi_root() -> Path:
    return Path(__file__).resolve().parents[2]


def iter_source_files(base: Path) -> list[Path]:
    root = rbi_root()
    files: list[Path] = []
    for path in sorted(base.rglob("*.py")):
        rel = path.relative_to(root)
        if rel.parts and rel.parts[0] == "test":
            continue
        if any(part == "__pycache__" or part.startswith(".") for part in rel.parts):
            continue
        files.append(path)
    return files


def read_tree(path: Path) -> ast.AST:
    return ast.parse(path.read_text(encoding="utf-8"), filename=str(path))


def parse_imports(path: Path) -> list[ImportRef]:
    imports: list[ImportRef] = []
    for node in ast.walk(read_tree(path)):
        if isinstance(node, ast.Import):
            imports.extend(ImportRef(module=alias.name, line=node.lineno) for alias in node.names)
        elif isinstance(node, ast.ImportFrom) and not node.level and node.module is not None:
            imports.append(ImportRef(module=node.module, line=node.lineno))
    return imports


def matches_prefix(module: str, prefix: str) -> bool:
    return module == prefix or module.startswith(prefix + ".")


def _forbidden_imports(package: str, forbidden: tuple[str, ...]) -> list[str]:
    root = rbi_root()
    offenders: list[str] = []
    for file_path in iter_source_files(root / package):
        rel = file_path.relative_to(root)
        for item in parse_imports(file_path):
            if any(matches_prefix(item.module, prefix) for prefix in forbidden):
                offenders.append(f"{rel}:{item.line}: forbidden import '{item.module}'")
    return offenders


def test_core_is_the_bottom_layer() -> None:
    offenders = _forbidden_imports("core", ("rbi.platform", "rbi.git", "rbi.services", "rbi.cli", "rbi.output"))
    assert not offenders, "core dependency violations:\n" + "\n".join(offenders)


def test_git_layer_does_not_know_about_workflows() -> None:
    offenders = _forbidden_imports("git", ("rbi.services", "rbi.cli"))
    assert not offenders, "git dependency violations:\n" + "\n".join(offenders)


def test_services_do_not_import_cli_modules() -> None:
    offenders = _forbidden_imports("services", ("rbi.cli", "typer"))
    assert not offenders, "services -> cli dependency violations:\n" + "\n".join(offenders)


def test_direct_rich_imports_are_limited_to_console() -> None:
    root = rbi_root()
    offenders: list[str] = []
    for file_path in iter_source_files(root):
        rel = file_path.relative_to(root)
        if rel.as_posix() == "output/console.py":
            continue
        for item in parse_imports(file_path):
            if matches_prefix(item.module, "rich"):
                offenders.append(f"{rel}:{item.line}: direct rich import '{item.module}'")

    assert not offenders, "Direct rich usage policy violations:\n" + "\n".join(offenders)


def _direct_subprocess_calls(tree: ast.AST) -> list[int]:
    lines: list[int] = []
    for node in ast.walk(tree):
        if not isinstance(node, ast.Call) or not isinstance(node.func, ast.Attribute):
            continue
        func = node.func
        if func.attr in {"run", "check_output", "Popen"} and isinstance(func.value, ast.Name):
            if func.value.id == "subprocess":
                lines.append(node.lineno)
    return lines


def test_subprocess_only_in_platform_process() -> None:
    root = rbi_root()
    offenders: list[str] = []
    for file_path in iter_source_files(root):
        rel = file_path.relative_to(root)
        if rel.as_posix() == "platform/process.py":
            continue
        for line in _direct_subprocess_calls(read_tree(file_path)):
            offenders.append(f"{rel}:{line}: direct subprocess call outside platform/process.py")

    assert not offenders, "Subprocess policy violations:\n" + "\n".join(offenders)
