"""
Shared fixtures for the Objective-J compiler tests.

Programs are built with objj_sdk.objj.builder rather than parsed, so
every test states the exact tree it compiles.
"""

import json

import pytest

from objj_sdk.objj import Compiler, CompilerOptions, SymbolTables


@pytest.fixture
def symbols() -> SymbolTables:
    """Fresh symbol tables, for tests that compile several units."""
    return SymbolTables()


@pytest.fixture
def compile_program():
    """
    Fixture: compile a Program and return the CompilerResult.

    The file scope wrapper is off unless a test asks for it, so that
    expected code starts at column 0.
    """
    def compile_program(program, source=None, symbols=None, **options):
        options.setdefault("objj_scope", False)
        compiler = Compiler(CompilerOptions(**options), symbols)
        return compiler.compile_ast(program, source=source, filename="test.j")

    return compile_program


@pytest.fixture
def messages():
    """Fixture: the messages of a result's issues, optionally by severity."""
    def messages(result, severity=None):
        return [
            issue.message for issue in result.issues
            if severity is None or issue.severity.value == severity
        ]

    return messages


@pytest.fixture
def write_ast(tmp_path):
    """Fixture: write an AST as JSON under tmp_path and return its path."""
    def write_ast(name, data) -> str:
        path = tmp_path / name
        path.write_text(json.dumps(data), encoding="utf-8")
        return str(path)

    return write_ast
