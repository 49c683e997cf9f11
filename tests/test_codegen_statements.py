"""
Code Generator Tests: JavaScript Statements and Expressions
===========================================================

Plain JavaScript passes through the compiler re-formatted by the output
format. These tests cover the statement layout of the default
"cappuccino" format, operator precedence, the file scope wrapper and
format selection.

Run tests with:
    pytest tests/test_codegen_statements.py -v
"""

import pytest

from objj_sdk.objj import builder as b


# =============================================================================
# Statements
# =============================================================================

class TestStatements:
    """Statement layout of the default format."""

    def test_var_statement(self, compile_program):
        """A var statement ends with a semicolon."""
        result = compile_program(b.program(b.var(("x", b.lit(1)))))
        assert result.success
        assert result.code == "var x = 1;\n"

    def test_var_list(self, compile_program):
        result = compile_program(b.program(b.var("a", ("b", b.lit(2)))))
        assert result.code == "var a, b = 2;\n"

    def test_function_declaration(self, compile_program):
        """Bodies open on their own line and are indented by four spaces."""
        program = b.program(b.func_decl("f", ["a", "b"], [b.ret(b.ident("a"))]))
        result = compile_program(program)
        assert result.code == "function f(a, b)\n{\n    return a;\n}\n"

    def test_blank_line_after_function(self, compile_program):
        program = b.program(b.func_decl("f"), b.var("x"))
        result = compile_program(program)
        assert "}\n\nvar x;" in result.code

    def test_consecutive_simple_statements(self, compile_program):
        program = b.program(b.var("a"), b.var("b"))
        assert compile_program(program).code == "var a;\nvar b;\n"

    def test_if_else(self, compile_program):
        program = b.program(
            b.var("a"),
            b.if_stmt(b.ident("a"), b.block(b.ret()), b.block(b.ret())),
        )
        result = compile_program(program)
        assert "if (a)\n{\n    return;\n}\nelse\n{\n    return;\n}" in result.code

    def test_else_if(self, compile_program):
        program = b.program(
            b.var("a", "c"),
            b.if_stmt(b.ident("a"), b.block(), b.if_stmt(b.ident("c"), b.block())),
        )
        assert "else if (c)" in compile_program(program).code

    def test_single_statement_body_is_indented(self, compile_program):
        program = b.program(
            b.var("a"),
            b.while_stmt(b.ident("a"), b.stmt(b.call("f"))),
        )
        assert "while (a)\n    f();" in compile_program(program).code

    def test_for_statement(self, compile_program):
        program = b.program(b.for_stmt(
            b.var(("i", b.lit(0))),
            b.binary("<", b.ident("i"), b.lit(3)),
            b.update("++", b.ident("i")),
            b.block(),
        ))
        assert "for (var i = 0; i < 3; i++)" in compile_program(program).code

    def test_debugger_statement_warns(self, compile_program, messages):
        result = compile_program(b.program(b.debugger(at=(1, 1))))
        assert result.code == "debugger;\n"
        assert "debugger statement" in messages(result, "warning")

    def test_debugger_warning_can_be_disabled(self, compile_program, messages):
        result = compile_program(b.program(b.debugger()), warnings={"debugger": False})
        assert messages(result) == []


# =============================================================================
# Expressions
# =============================================================================

class TestExpressions:
    """Operators, literals and precedence."""

    def _expression(self, compile_program, expression) -> str:
        code = compile_program(b.program(b.stmt(expression))).code
        return code.rstrip("\n").rstrip(";")

    def test_literals(self, compile_program):
        assert self._expression(compile_program, b.lit(True)) == "true"
        assert self._expression(compile_program, b.lit(None)) == "null"
        assert self._expression(compile_program, b.lit("a")) == '"a"'

    def test_objective_j_string_literal(self, compile_program):
        """The @ of an Objective-J string is dropped."""
        assert self._expression(compile_program, b.string("hi")) == '"hi"'

    def test_precedence_adds_parentheses(self, compile_program):
        expression = b.binary("*", b.binary("+", b.ident("a"), b.ident("b")), b.ident("c"))
        assert self._expression(compile_program, expression) == "(a + b) * c"

    def test_precedence_omits_needless_parentheses(self, compile_program):
        expression = b.binary("+", b.ident("a"), b.binary("*", b.ident("b"), b.ident("c")))
        assert self._expression(compile_program, expression) == "a + b * c"

    def test_right_operand_of_equal_precedence(self, compile_program):
        expression = b.binary("-", b.ident("a"), b.binary("-", b.ident("b"), b.ident("c")))
        assert self._expression(compile_program, expression) == "a - (b - c)"

    def test_word_operators_are_spaced(self, compile_program):
        assert self._expression(compile_program, b.unary("typeof", b.ident("x"))) == "typeof x"
        expression = b.binary("in", b.lit("a"), b.ident("o"))
        assert self._expression(compile_program, expression) == '"a" in o'

    def test_call_and_member(self, compile_program):
        expression = b.call(b.member("a", "b"), b.lit(1), b.lit(2))
        assert self._expression(compile_program, expression) == "a.b(1, 2)"

    def test_computed_member(self, compile_program):
        expression = b.member("a", b.lit(0), computed=True)
        assert self._expression(compile_program, expression) == "a[0]"

    def test_new_expression(self, compile_program):
        from objj_sdk.objj.ast import NewExpression
        expression = NewExpression(callee=b.ident("Date"), arguments=[])
        assert self._expression(compile_program, expression) == "new Date()"

    def test_update_expression(self, compile_program):
        assert self._expression(compile_program, b.update("++", b.ident("i"))) == "i++"
        assert self._expression(compile_program, b.update("--", b.ident("i"), prefix=True)) == "--i"

    def test_short_array(self, compile_program):
        assert self._expression(compile_program, b.array(b.lit(1), b.lit(2))) == "[1, 2]"

    def test_object_literal(self, compile_program):
        program = b.program(b.var(("o", b.obj(("a", b.lit(1))))))
        assert compile_program(program).code == "var o = {\n    a: 1\n};\n"

    def test_empty_object_literal(self, compile_program):
        program = b.program(b.var(("o", b.obj())))
        assert compile_program(program).code == "var o = {};\n"

    def test_one_line_function_in_object_literal(self, compile_program):
        program = b.program(b.var(("o", b.obj(("f", b.func_expr(body=[b.ret(b.lit(1))]))))))
        assert "f: function() { return 1; }" in compile_program(program).code


# =============================================================================
# File Scope
# =============================================================================

class TestFileScope:
    """The objj_scope wrapper around each file."""

    def test_file_is_wrapped(self, compile_program):
        result = compile_program(b.program(b.var(("x", b.lit(1)))), objj_scope=True)
        assert result.code == "(function()\n{\n    var x = 1;\n})();\n"

    def test_top_level_function_becomes_global_assignment(self, compile_program):
        program = b.program(b.func_decl("f", body=[b.ret(b.lit(1))]))
        result = compile_program(program, objj_scope=True)
        assert result.code == (
            "(function()\n"
            "{\n"
            "    f = function f()\n"
            "    {\n"
            "        return 1;\n"
            "    };\n"
            "})();\n"
        )

    def test_nested_function_is_not_transformed(self, compile_program):
        program = b.program(b.func_decl("outer", body=[b.func_decl("inner")]))
        code = compile_program(program, objj_scope=True).code
        assert "outer = function outer()" in code
        assert "inner = function" not in code
        assert "function inner()" in code

    def test_without_wrapper(self, compile_program):
        program = b.program(b.func_decl("f"))
        code = compile_program(program, objj_scope=False).code
        assert not code.startswith("(function()")
        assert code.startswith("function f()")


# =============================================================================
# Formats
# =============================================================================

class TestFormats:
    """Output format selection."""

    def test_compact_format(self, compile_program):
        program = b.program(b.func_decl("f", body=[b.ret(b.lit(1))]))
        result = compile_program(program, format="compact")
        assert result.code == "function f() {\nreturn 1;\n}\n"

    def test_indent_options_apply_when_format_has_none(self, compile_program):
        format_spec = {
            "{}": {"after-left-brace": "|1", "before-right-brace": "|-1\n"},
            "return": {"before": "\n", "after": ";"},
        }
        program = b.program(b.func_decl("f", body=[b.ret(b.lit(1))]))
        result = compile_program(program, format=format_spec, indent_string="\t", indent_width=1)
        assert result.code == "function f(){\n\treturn 1;\n}\n"

    def test_unknown_format(self, compile_program):
        from objj_sdk.errors import FormatError
        with pytest.raises(FormatError, match="no such format"):
            compile_program(b.program(), format="nonexistent")
