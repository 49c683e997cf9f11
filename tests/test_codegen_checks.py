"""
Code Generator Tests: Semantic Checks
=====================================

Warnings and errors reported while generating code: implicit globals,
unknown identifiers, shadowing, reserved words and the optional
warnings.

Run tests with:
    pytest tests/test_codegen_checks.py -v
"""

from objj_sdk.objj import builder as b


def _function(*body, params=()):
    return b.func_decl("f", params, list(body))


# =============================================================================
# Globals
# =============================================================================

class TestImplicitGlobals:
    def test_assignment_in_function(self, compile_program, messages):
        program = b.program(_function(b.stmt(b.assign(b.ident("y", at=(2, 5)), b.lit(1)))))
        result = compile_program(program)
        assert result.success
        assert messages(result, "warning") == [
            "implicitly creating the global variable 'y' in the function 'f'; did you mean to use 'var y'?"
        ]

    def test_later_var_declaration_removes_warning(self, compile_program, messages):
        program = b.program(_function(
            b.stmt(b.assign(b.ident("y", at=(2, 5)), b.lit(1))),
            b.var((b.ident("y", at=(3, 9)), None)),
        ))
        assert messages(compile_program(program)) == []

    def test_assignment_after_var_statement(self, compile_program):
        program = b.program(_function(
            b.var((b.ident("a", at=(2, 9)), b.lit(7))),
            b.stmt(b.assign(b.ident("y", at=(3, 5)), b.lit(1))),
        ))
        result = compile_program(program)
        [warning] = result.warnings
        assert warning.message == "implicitly creating the global variable 'y' in the function 'f'"
        assert warning.notes[0].message == "did you mean to use a comma here?"

    def test_file_level_assignment_is_not_implicit(self, compile_program, messages):
        program = b.program(b.stmt(b.assign(b.ident("y", at=(1, 1)), b.lit(1))))
        assert messages(compile_program(program)) == []

    def test_implicit_globals_warning_can_be_disabled(self, compile_program, messages):
        program = b.program(_function(b.stmt(b.assign(b.ident("y", at=(2, 5)), b.lit(1)))))
        result = compile_program(program, warnings={"implicit-globals": False})
        assert messages(result) == []


class TestPredefinedGlobals:
    def test_assigning_to_read_only_global(self, compile_program, messages):
        program = b.program(b.stmt(b.assign(b.ident("Math", at=(1, 1)), b.lit(1))))
        assert messages(compile_program(program), "warning") == ["assigning to a read-only predefined global"]

    def test_environment_selects_globals(self, compile_program, messages):
        program = b.program(b.stmt(b.ident("process", at=(1, 1))))
        assert messages(compile_program(program, environment="node")) == []
        assert messages(compile_program(program)) == ["reference to unknown identifier 'process'"]

    def test_extra_predefined_globals(self, compile_program, messages):
        program = b.program(b.stmt(b.ident("myGlobal", at=(1, 1))))
        result = compile_program(program, predefined_globals={"myGlobal": True})
        assert messages(result) == []


class TestUnknownIdentifiers:
    def test_unknown_identifier(self, compile_program, messages):
        result = compile_program(b.program(b.stmt(b.ident("foo", at=(1, 1)))))
        assert messages(result, "warning") == ["reference to unknown identifier 'foo'"]

    def test_only_receivers_get_suggestions(self, compile_program, messages):
        program = b.program(b.class_decl("Foo"), b.stmt(b.ident("foo", at=(3, 1))))
        assert messages(compile_program(program), "warning") == ["reference to unknown identifier 'foo'"]

    def test_declared_later_in_function(self, compile_program, messages):
        program = b.program(_function(
            b.stmt(b.ident("x", at=(2, 5))),
            b.var((b.ident("x", at=(3, 9)), None)),
        ))
        assert messages(compile_program(program)) == []

    def test_property_names_are_not_checked(self, compile_program, messages):
        program = b.program(b.var("o"), b.stmt(b.member("o", b.ident("anything", at=(2, 3)))))
        assert messages(compile_program(program)) == []


# =============================================================================
# Shadowing
# =============================================================================

class TestShadowing:
    def test_local_hides_file_variable(self, compile_program):
        program = b.program(
            b.var((b.ident("x", at=(1, 5)), None)),
            _function(b.var((b.ident("x", at=(3, 9)), None))),
        )
        [warning] = compile_program(program).warnings
        assert warning.message == "local declaration of 'x' hides a file variable"
        assert warning.notes[0].message == "hidden declaration is here"
        assert warning.notes[0].location.line == 1

    def test_function_parameter_hides_class(self, compile_program, messages):
        program = b.program(b.class_decl("Foo"), _function(params=[b.ident("Foo", at=(3, 12))]))
        assert messages(compile_program(program), "warning") == ["function parameter 'Foo' hides a class"]

    def test_method_parameter_hides_ivar(self, compile_program, messages):
        program = b.program(b.class_decl("Foo", ivars=[b.ivar("x", "int", at=(2, 9))], body=[
            b.method("setX:", [b.ident("x", at=(4, 12))]),
        ]))
        assert messages(compile_program(program), "warning") == [
            "method parameter 'x' hides an instance variable"
        ]

    def test_local_declared_after_ivar_reference(self, compile_program, messages):
        program = b.program(b.class_decl("Foo", ivars=[b.ivar("x", "int", at=(2, 9))], body=[
            b.method("foo", body=[
                b.stmt(b.ident("x", at=(5, 5))),
                b.var((b.ident("x", at=(6, 9)), None)),
            ]),
        ]))
        result = compile_program(program)
        assert "self.x" not in result.code
        assert messages(result, "warning") == [
            "reference to local variable 'x' hides an instance variable",
            "local declaration of 'x' hides an instance variable",
        ]

    def test_local_declared_after_ivar_reference_in_receiver(self, compile_program, messages):
        program = b.program(b.class_decl("Foo", ivars=[b.ivar("x", at=(2, 9))], body=[
            b.method("foo", body=[
                b.stmt(b.send(b.member(b.ident("x", at=(5, 6)), "y"), "bar")),
                b.var((b.ident("x", at=(6, 9)), None)),
            ]),
        ]))
        result = compile_program(program)
        assert "self.x" not in result.code
        assert "x.y" in result.code
        assert messages(result, "warning") == [
            "reference to local variable 'x' hides an instance variable",
            "local declaration of 'x' hides an instance variable",
        ]

    def test_local_hides_predefined_global(self, compile_program, messages):
        program = b.program(_function(b.var((b.ident("document", at=(2, 9)), None))))
        assert messages(compile_program(program), "warning") == [
            "local declaration of 'document' hides a predefined global"
        ]

    def test_some_predefined_globals_may_be_shadowed(self, compile_program, messages):
        program = b.program(_function(b.var((b.ident("name", at=(2, 9)), None))))
        assert messages(compile_program(program)) == []

    def test_shadowing_warning_can_be_disabled(self, compile_program, messages):
        program = b.program(b.class_decl("Foo"), _function(params=[b.ident("Foo", at=(3, 12))]))
        assert messages(compile_program(program, warnings={"shadowed-vars": False})) == []


class TestDeclarations:
    def test_reserved_word(self, compile_program, messages):
        program = b.program(b.var((b.ident("yield", at=(1, 5)), None)))
        assert messages(compile_program(program), "warning") == ["reserved word used as a variable name"]

    def test_redeclaring_cmd_in_method(self, compile_program, messages):
        program = b.program(b.class_decl("Foo", body=[
            b.method("foo", body=[b.var((b.ident("_cmd", at=(3, 9)), None))]),
        ]))
        assert messages(compile_program(program), "error") == [
            "local declaration of '_cmd' hides implicit method parameter"
        ]

    def test_self_as_method_parameter(self, compile_program, messages):
        program = b.program(b.class_decl("Foo", body=[b.method("setX:", [b.ident("self", at=(2, 12))])]))
        assert messages(compile_program(program), "error") == ["'self' used as a method parameter"]


# =============================================================================
# Optional Warnings and Limits
# =============================================================================

class TestOptionalWarnings:
    def test_conflicting_return_type(self, compile_program, messages):
        program = b.program(
            b.class_decl("Foo", body=[b.method("x", return_type="int", at=(2, 1))]),
            b.class_decl("Bar", "Foo", body=[b.method("x", return_type="CPString", at=(6, 1))]),
        )
        assert messages(compile_program(program)) == []

        result = compile_program(program, warnings={"parameter-types": True})
        assert "conflicting return type in declaration of 'x': 'CPString' vs 'int'" in messages(result, "warning")

    def test_unknown_type(self, compile_program, messages):
        program = b.program(b.class_decl("Foo", ivars=[b.ivar("w", "Widget", at=(2, 12))]))
        assert messages(compile_program(program)) == []

        result = compile_program(program, warnings={"unknown-types": True})
        assert messages(result, "warning") == ["unknown type 'Widget'"]

    def test_ignore_warnings(self, compile_program):
        result = compile_program(b.program(b.debugger(at=(1, 1))), ignore_warnings=True)
        assert result.issues == []


class TestErrorLimit:
    def test_too_many_errors(self, compile_program, messages):
        program = b.program(*[
            b.stmt(b.protocol_literal(b.ident(f"P{i}", at=(i, 11))))
            for i in range(1, 5)
        ])
        result = compile_program(program, max_errors=2)
        errors = messages(result, "error")
        assert errors[-1] == "too many errors (>2)"
        assert len(errors) == 4
