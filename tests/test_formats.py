"""
Format, Indentation and Precedence Tests
========================================

Run tests with:
    pytest tests/test_formats.py -v
"""

import pytest

from objj_sdk.errors import FormatError
from objj_sdk.objj import builder as b
from objj_sdk.objj.formats import Format, available_formats, load_format
from objj_sdk.objj.indentation import Indenter
from objj_sdk.objj.precedence import subnode_has_precedence


# =============================================================================
# Loading
# =============================================================================

class TestLoadFormat:
    def test_bundled_formats(self):
        assert available_formats() == ["cappuccino", "compact"]

    def test_default_format(self):
        assert load_format().name == "cappuccino"

    def test_bundled_format_by_name(self):
        assert load_format("compact").get_global("indent-width") == 0
        assert load_format("compact.json").name == "compact"

    def test_format_instance_is_returned_as_is(self):
        format = Format({}, name="mine")
        assert load_format(format) is format

    def test_unknown_bundled_format(self):
        with pytest.raises(FormatError) as exc_info:
            load_format("nope")
        message = str(exc_info.value)
        assert "no such format 'nope'" in message
        assert "Available formats: cappuccino, compact" in message

    def test_missing_format_file(self, tmp_path):
        with pytest.raises(FormatError) as exc_info:
            load_format(tmp_path / "missing.json")
        assert "Available formats" not in str(exc_info.value)

    def test_format_file(self, tmp_path):
        path = tmp_path / "mine.json"
        path.write_text('{"*": {"after-comma": ""}}', encoding="utf-8")
        assert load_format(str(path)).get_global("after-comma") == ""

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{", encoding="utf-8")
        with pytest.raises(FormatError, match="invalid JSON in format file"):
            load_format(path)

    def test_entries_must_be_objects(self):
        with pytest.raises(FormatError, match="entry 'if' must be an object"):
            load_format({"if": "x"})


# =============================================================================
# Lookup
# =============================================================================

class TestValueFor:
    @pytest.fixture
    def format(self):
        return load_format({
            "*": {"after-comma": " "},
            "*statement": {"nodes": ["return", "break"], "before": "\n"},
            "if": {"after-comma": "", "before": {"$previous": {"null": "", "*": "\n\n"}}},
        })

    def test_meta_group_is_expanded(self, format):
        assert format.value_for(None, "ReturnStatement", "before") == "\n"
        assert format.value_for(None, "BreakStatement", "before") == "\n"
        assert format.meta_map["return"] == "*statement"

    def test_node_value_overrides_global(self, format):
        assert format.value_for(None, "IfStatement", "after-comma") == ""

    def test_global_fallback(self, format):
        assert format.value_for(None, "CallExpression", "after-comma") == " "

    def test_unknown_node_type(self, format):
        assert format.value_for(None, "Nonsense", "before") is None

    def test_previous_without_ancestry_is_null(self, format):
        assert format.value_for(None, "IfStatement", "before") == ""


# =============================================================================
# Indentation
# =============================================================================

class TestIndenter:
    def test_indent_and_dedent(self):
        indenter = Indenter(" ", 2)
        indenter.indent(2)
        assert indenter.indentation == "    "
        indenter.dedent()
        assert indenter.indentation == "  "
        indenter.dedent(3)
        assert indenter.indentation == ""

    def test_set_indent_resets_depth(self):
        indenter = Indenter()
        indenter.indent()
        indenter.set_indent("\t", 1)
        assert indenter.indentation == ""
        assert indenter.indent_step == "\t"

    def test_indent_text(self):
        indenter = Indenter(" ", 2)
        indenter.indent()
        assert indenter.indent_text("a\n\nb→c") == "  a\n\n  b  c"

    def test_skip_first_line(self):
        indenter = Indenter(" ", 2)
        indenter.indent()
        assert indenter.indent_text("a\nb", skip_first_line=True) == "a\n  b"

    def test_zero_width(self):
        indenter = Indenter(" ", 0)
        indenter.indent(3)
        assert indenter.indent_text("→x") == "x"


# =============================================================================
# Precedence
# =============================================================================

class TestPrecedence:
    def _binary(self, operator):
        return b.binary(operator, b.ident("a"), b.ident("b"))

    def test_looser_operand_needs_parens(self):
        assert subnode_has_precedence(self._binary("*"), self._binary("+"))
        assert not subnode_has_precedence(self._binary("+"), self._binary("*"))

    def test_equal_operators_on_the_right(self):
        outer = self._binary("-")
        assert subnode_has_precedence(outer, self._binary("-"), right=True)
        assert not subnode_has_precedence(outer, self._binary("-"))

    def test_logical_operators(self):
        and_ = b.logical("&&", b.ident("a"), b.ident("b"))
        or_ = b.logical("||", b.ident("a"), b.ident("b"))
        assert subnode_has_precedence(and_, or_)
        assert not subnode_has_precedence(or_, and_)

    def test_assignment_inside_binary(self):
        assert subnode_has_precedence(self._binary("+"), b.assign("x", b.lit(1)))

    def test_call_inside_member(self):
        assert subnode_has_precedence(b.member("a", "b"), b.call("f"))
