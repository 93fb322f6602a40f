"""Architectural tests for module layering and error kinds.

These are static, file/AST-based checks. They never import application code
and only read files under the project root, so a broken module surfaces as
a clear assertion rather than a collection error.
"""

from __future__ import annotations

import ast
from pathlib import Path
from typing import Iterable, List, Set

import pytest


PROJECT_ROOT = Path(__file__).resolve().parents[2]
PKG_DIR = PROJECT_ROOT / "survey_builder"

# Modules allowed to talk to the database layer directly.
SQL_MODULES = {"db/base.py", "db/schema.py", "logic/record_store.py"}
STORE_CLASSES = {"SqlRecordStore", "InMemoryRecordStore"}


def _py_files() -> List[Path]:
    return sorted(PKG_DIR.rglob("*.py"))


def _parse(path: Path) -> ast.Module:
    try:
        return ast.parse(path.read_text(encoding="utf-8"), filename=str(path))
    except SyntaxError as exc:
        pytest.fail(f"Failed to parse {path}: {exc}")


def _imported_roots(tree: ast.AST) -> Set[str]:
    roots: Set[str] = set()
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            roots.update(alias.name.split(".")[0] for alias in node.names)
        elif isinstance(node, ast.ImportFrom) and node.module and node.level == 0:
            roots.add(node.module.split(".")[0])
    return roots


def _imported_modules(tree: ast.AST) -> Set[str]:
    mods: Set[str] = set()
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            mods.update(alias.name for alias in node.names)
        elif isinstance(node, ast.ImportFrom) and node.module:
            mods.add(node.module)
    return mods


def _rel(path: Path) -> str:
    return path.relative_to(PKG_DIR).as_posix()


def _module_level_calls(tree: ast.Module) -> Iterable[str]:
    for stmt in tree.body:
        if isinstance(stmt, (ast.Assign, ast.AnnAssign, ast.Expr)):
            value = stmt.value
            if isinstance(value, ast.Call):
                func = value.func
                if isinstance(func, ast.Name):
                    yield func.id
                elif isinstance(func, ast.Attribute):
                    yield func.attr


def test_package_files_parse():
    files = _py_files()
    assert files, f"No modules found under {PKG_DIR}"
    for path in files:
        _parse(path)


def test_only_storage_modules_import_sqlalchemy():
    offenders = [
        _rel(path)
        for path in _py_files()
        if "sqlalchemy" in _imported_roots(_parse(path)) and _rel(path) not in SQL_MODULES
    ]
    assert offenders == [], f"sqlalchemy imported outside the storage layer: {offenders}"


def test_routes_depend_on_services_not_stores():
    for path in (PKG_DIR / "routes").glob("*.py"):
        mods = _imported_modules(_parse(path))
        assert "survey_builder.logic.record_store" not in mods, _rel(path)
        assert "survey_builder.db.base" not in mods, _rel(path)


def test_no_module_level_store_instances():
    for path in _py_files():
        calls = set(_module_level_calls(_parse(path)))
        assert not calls & (STORE_CLASSES | {"create_app", "build_services", "from_url"}), (
            f"{_rel(path)} builds stores or the app at import time"
        )


def test_gateway_sdk_is_confined_to_conversion():
    users = [_rel(p) for p in _py_files() if "google" in _imported_roots(_parse(p))]
    assert users == ["logic/conversion.py"]


def test_error_kinds_share_a_base_with_code_and_status():
    tree = _parse(PKG_DIR / "logic" / "errors.py")
    classes = {node.name: node for node in tree.body if isinstance(node, ast.ClassDef)}
    assert "SurveyBuilderError" in classes

    expected = {
        "AlreadyExists",
        "InvalidCredentials",
        "NotFound",
        "OwnerNotFound",
        "ValidationError",
        "GatewayFailure",
        "MethodNotAllowed",
        "InternalError",
    }
    assert expected <= set(classes)
    for name in expected:
        bases = [b.id for b in classes[name].bases if isinstance(b, ast.Name)]
        assert bases == ["SurveyBuilderError"], name
        assigned = {
            t.id
            for stmt in classes[name].body
            if isinstance(stmt, ast.Assign)
            for t in stmt.targets
            if isinstance(t, ast.Name)
        }
        if name != "InternalError":
            assert {"code", "status"} <= assigned, name


def test_http_layer_does_not_reach_into_logic_state():
    for path in (PKG_DIR / "http").glob("*.py"):
        mods = _imported_modules(_parse(path))
        allowed = {"survey_builder.logic.errors"}
        logic = {m for m in mods if m.startswith("survey_builder.logic")}
        assert logic <= allowed, f"{_rel(path)} imports {logic - allowed}"
