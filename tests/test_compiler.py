"""
Compiler Driver Tests
=====================

Tests for CompilerOptions, the Compiler class and the convenience
functions, using ASTs given as JSON the way the parser writes them.

Run tests with:
    pytest tests/test_compiler.py -v
"""

import json
import logging
from pathlib import Path

import pytest

from objj_sdk.errors import ASTError, ConfigurationError
from objj_sdk.objj import (
    Compiler,
    CompilerOptions,
    ObjJCompilationError,
    SymbolTables,
    compile_file,
    compile_objj,
)
from objj_sdk.objj import builder as b


def _ident(name, line=1, column=0):
    return {"type": "Identifier", "name": name, "loc": {"start": {"line": line, "column": column}}}


def _var_program(name="x"):
    return {
        "type": "Program",
        "body": [{
            "type": "VariableDeclaration",
            "kind": "var",
            "declarations": [{
                "type": "VariableDeclarator",
                "id": _ident(name, 1, 4),
                "init": {"type": "Literal", "value": 1, "raw": "1"},
            }],
            "loc": {"start": {"line": 1, "column": 0}},
        }],
    }


def _class_program(name, superclass=None):
    declaration = {"type": "objj_ClassDeclaration", "objj": {"name": _ident(name)}}
    if superclass:
        declaration["objj"]["superclass"] = _ident(superclass)
    return {"type": "Program", "body": [declaration]}


def _protocol_literal_program(name):
    return {"type": "Program", "body": [{
        "type": "ExpressionStatement",
        "expression": {"type": "objj_ProtocolLiteralExpression", "objj": {"protocol": _ident(name, 1, 10)}},
    }]}


# =============================================================================
# Options
# =============================================================================

class TestCompilerOptions:
    def test_defaults(self):
        options = CompilerOptions()
        assert options.format == "cappuccino"
        assert options.max_errors == 20
        assert options.warnings["debugger"] is True
        assert options.warnings["parameter-types"] is False

    @pytest.mark.parametrize("max_errors", [0, -3])
    def test_max_errors_must_be_positive(self, max_errors):
        with pytest.raises(ConfigurationError, match="max_errors must be greater than 0"):
            CompilerOptions(max_errors=max_errors)

    def test_unknown_environment(self):
        with pytest.raises(ConfigurationError, match="unknown environment 'deno'"):
            CompilerOptions(environment="deno")

    def test_negative_indent_width(self):
        with pytest.raises(ConfigurationError, match="indent_width must not be negative"):
            CompilerOptions(indent_width=-1)

    def test_warnings_are_merged_over_defaults(self):
        options = CompilerOptions(warnings={"debugger": False, "unknown-types": True})
        assert options.warnings["debugger"] is False
        assert options.warnings["unknown-types"] is True
        assert options.warnings["implicit-globals"] is True

    def test_unknown_warning_is_logged(self, caplog):
        with caplog.at_level(logging.WARNING):
            options = CompilerOptions(warnings={"bogus": True})
        assert "bogus" not in options.warnings
        assert "Unknown warning 'bogus' ignored" in caplog.text


# =============================================================================
# Compiler
# =============================================================================

class TestCompiler:
    def test_compile_json_text(self):
        compiler = Compiler(CompilerOptions(objj_scope=False))
        result = compiler.compile_json(json.dumps(_var_program()), filename="Main.j")
        assert result.success
        assert result.code == "var x = 1;\n"
        assert result.filename == "Main.j"
        assert result.source_map is None

    def test_malformed_ast(self):
        with pytest.raises(ASTError):
            Compiler().compile_json('{"type": "Nope"}')

    def test_errors_are_collected(self):
        result = Compiler().compile_json(_protocol_literal_program("P"))
        assert not result.success
        assert [issue.message for issue in result.errors] == ["cannot find protocol declaration for 'P'"]
        assert result.report().endswith("1 error, 0 warnings")

    def test_aborted_compilation_keeps_partial_code(self):
        result = Compiler().compile_json(_class_program("Bar", "Missing"))
        assert not result.success
        assert result.errors[0].message.startswith("cannot find implementation declaration for 'Missing'")
        assert result.code.endswith("\n")

    def test_shared_symbol_tables(self, symbols):
        Compiler(symbols=symbols).compile_json(_class_program("Foo"), filename="Foo.j")
        result = Compiler(symbols=symbols).compile_json(_class_program("Bar", "Foo"), filename="Bar.j")
        assert result.success
        assert symbols.lookup_class("Bar").superclass_def is symbols.lookup_class("Foo")

    def test_compiling_twice_gives_identical_output(self):
        program = b.program(
            b.class_decl("Foo", ivars=[b.ivar("name", "CPString")], body=[
                b.method("name", body=[b.ret(b.ident("name"))]),
                b.method("greet:", params=["who"], body=[
                    b.stmt(b.send("who", "say:", b.ident("name"))),
                ]),
            ]),
        )
        first = Compiler().compile_ast(program, filename="Foo.j")
        second = Compiler().compile_ast(program, filename="Foo.j")
        assert first.success
        assert first.code == second.code

    def test_separate_symbol_tables(self):
        Compiler().compile_json(_class_program("Foo"))
        assert not Compiler().compile_json(_class_program("Bar", "Foo")).success

    def test_source_map(self):
        compiler = Compiler(CompilerOptions(source_map=True, objj_scope=False))
        result = compiler.compile_json(_var_program(), filename="src/Main.j")
        assert result.code.endswith("//# sourceMappingURL=Main.js.map\n")
        data = json.loads(result.source_map)
        assert data["version"] == 3
        assert data["file"] == "Main.js"
        assert data["sourceRoot"] == "."
        assert data["sources"] == ["Main.j"]
        assert data["mappings"]

    def test_source_map_url_is_quoted(self):
        compiler = Compiler(CompilerOptions(source_map=True))
        result = compiler.compile_json(_var_program(), output_name="My App.js")
        assert result.code.endswith("//# sourceMappingURL=My%20App.js.map\n")

    def test_compile_file_with_source(self, tmp_path):
        ast_path = tmp_path / "Main.json"
        ast_path.write_text(json.dumps(_protocol_literal_program("P")), encoding="utf-8")
        source_path = tmp_path / "Main.j"
        source_path.write_text("@protocol(P);\n", encoding="utf-8")

        result = Compiler().compile_file(ast_path, source_path=source_path)
        [error] = result.errors
        assert error.source_line == "@protocol(P);"
        assert str(error.location) == f"{source_path}:1:11"

    def test_compile_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="AST file not found"):
            Compiler().compile_file(tmp_path / "missing.json")

    def test_collect_dependencies(self):
        program = b.program(b.import_stmt("A.j"), b.import_stmt("B/B.j", local=False))
        dependencies = Compiler().collect_dependencies(program)
        assert [str(d) for d in dependencies] == ['"A.j"', "<B/B.j>"]


# =============================================================================
# Convenience Functions
# =============================================================================

class TestCompileObjJ:
    def test_program(self):
        code = compile_objj(b.program(b.var(("x", b.lit(1)))), options=CompilerOptions(objj_scope=False))
        assert code == "var x = 1;\n"

    def test_json(self):
        code = compile_objj(json.dumps(_var_program()))
        assert "var x = 1;" in code

    def test_errors_raise(self):
        with pytest.raises(ObjJCompilationError) as exc_info:
            compile_objj(_protocol_literal_program("P"), filename="Main.j")
        assert "cannot find protocol declaration for 'P'" in str(exc_info.value)
        assert len(exc_info.value.issues) == 1

    def test_warnings_do_not_raise(self):
        program = b.program(b.debugger(at=(1, 1)))
        assert compile_objj(program, options=CompilerOptions(objj_scope=False)) == "debugger;\n"


class TestCompileFile:
    def test_writes_js_next_to_input(self, write_ast):
        path = write_ast("Main.json", _var_program())
        result = compile_file(path)
        assert result.success
        assert Path(path).with_suffix(".js").read_text(encoding="utf-8") == result.code

    def test_writes_source_map(self, write_ast, tmp_path):
        path = write_ast("Main.json", _var_program())
        output = tmp_path / "out" / "App.js"
        output.parent.mkdir()
        compile_file(path, output, options=CompilerOptions(source_map=True))
        assert output.read_text(encoding="utf-8").endswith("//# sourceMappingURL=App.js.map\n")
        source_map = json.loads((tmp_path / "out" / "App.js.map").read_text(encoding="utf-8"))
        assert source_map["file"] == "App.js"

    def test_errors_raise_and_write_nothing(self, write_ast):
        path = write_ast("Main.json", _protocol_literal_program("P"))
        with pytest.raises(ObjJCompilationError):
            compile_file(path)
        assert not Path(path).with_suffix(".js").exists()

    def test_shared_symbols(self, write_ast, symbols):
        compile_file(write_ast("Foo.json", _class_program("Foo")), symbols=symbols)
        result = compile_file(write_ast("Bar.json", _class_program("Bar", "Foo")), symbols=symbols)
        assert result.success
