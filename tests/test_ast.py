"""
AST Loader Tests
================

Tests for converting ESTree JSON, as written by the Objective-J parser,
into AST nodes.

Run tests with:
    pytest tests/test_ast.py -v
"""

import json

import pytest

from objj_sdk.errors import ASTError
from objj_sdk.objj import ast
from objj_sdk.objj.ast import iter_child_nodes, load_ast, node_from_dict


def _ident(name, line=1, column=0):
    return {
        "type": "Identifier",
        "name": name,
        "loc": {"start": {"line": line, "column": column}},
    }


def _program(*body):
    return {"type": "Program", "body": list(body)}


# =============================================================================
# Loading
# =============================================================================

class TestLoadAST:
    def test_from_json_text(self):
        text = json.dumps(_program({"type": "DebuggerStatement", "start": 0, "end": 9}))
        program = load_ast(text)
        [statement] = program.body
        assert isinstance(statement, ast.DebuggerStatement)
        assert (statement.start, statement.end) == (0, 9)

    def test_from_bytes(self):
        program = load_ast(json.dumps(_program()).encode("utf-8"))
        assert program.body == []

    def test_invalid_json(self):
        with pytest.raises(ASTError, match="invalid AST JSON"):
            load_ast("{not json")

    def test_root_must_be_program(self):
        with pytest.raises(ASTError, match="expected a Program node, got 'Identifier'") as exc_info:
            load_ast(_ident("x"))
        assert exc_info.value.node_type == "Identifier"

    def test_not_a_node(self):
        with pytest.raises(ASTError, match="expected an AST node object"):
            load_ast([1, 2])

    def test_unknown_node_type(self):
        with pytest.raises(ASTError, match="unknown AST node type 'YieldExpression'"):
            load_ast(_program({"type": "YieldExpression"}))


class TestLocations:
    def test_column_is_one_based(self):
        node = node_from_dict(_ident("x", line=3, column=4), "Main.j")
        assert str(node.location) == "Main.j:3:5"

    def test_source_in_loc_wins(self):
        data = _ident("x")
        data["loc"]["source"] = "Other.j"
        data["sourceFile"] = "Ignored.j"
        assert node_from_dict(data, "Main.j").location.filename == "Other.j"

    def test_source_file_attribute(self):
        data = _ident("x")
        data["sourceFile"] = "Other.j"
        assert node_from_dict(data, "Main.j").location.filename == "Other.j"

    def test_missing_loc(self):
        assert node_from_dict({"type": "ThisExpression"}).location is None


# =============================================================================
# Objective-J Nodes
# =============================================================================

class TestObjectiveJNodes:
    def test_objj_sub_object_and_camel_case(self):
        data = {
            "type": "objj_MethodDeclaration",
            "objj": {
                "methodType": "+",
                "returnType": {"type": "objj_ObjectiveJType", "name": "CPString", "isClass": True},
                "selectors": [_ident("withName")],
                "params": [{"type": {"type": "objj_ObjectiveJType", "name": "int"}, "id": _ident("n")}],
                "takesVarArgs": True,
            },
        }
        method = node_from_dict(data)
        assert method.method_type == "+"
        assert method.return_type.name == "CPString"
        assert method.return_type.is_class
        assert method.takes_var_args
        [param] = method.params
        assert isinstance(param, ast.MethodParameter)
        assert param.type.name == "int"
        assert param.id.name == "n"

    def test_attributes_on_the_node_itself(self):
        data = {"type": "objj_ImportStatement", "filename": {"type": "Literal", "value": "Foo.j"}, "local": False}
        node = node_from_dict(data)
        assert node.path == "Foo.j"
        assert not node.local

    def test_ivar_type_comes_from_objj(self):
        data = {
            "type": "objj_IvarDeclaration",
            "objj": {
                "type": {"type": "objj_ObjectiveJType", "name": "int"},
                "id": _ident("count"),
                "accessors": {"property": _ident("total"), "readonly": True},
                "isOutlet": True,
            },
        }
        ivar = node_from_dict(data)
        assert ivar.type.name == "int"
        assert ivar.id.name == "count"
        assert ivar.accessors.property.name == "total"
        assert ivar.accessors.readonly
        assert not ivar.accessors.copy
        assert ivar.is_outlet

    def test_accessors_must_be_an_object(self):
        data = {"type": "objj_IvarDeclaration", "objj": {"accessors": True}}
        with pytest.raises(ASTError, match="@accessors must be an object"):
            node_from_dict(data)

    def test_bare_selector_segments(self):
        data = {"type": "objj_MessageSendExpression", "objj": {
            "receiver": _ident("obj"),
            "selectors": [_ident("a"), None],
            "args": [{"type": "Literal", "value": 1}, {"type": "Literal", "value": 2}],
        }}
        node = node_from_dict(data)
        assert node.selectors[1] is None
        assert [arg.value for arg in node.args] == [1, 2]

    def test_untyped_object_in_other_field(self):
        with pytest.raises(ASTError, match="untyped object in field 'receiver'"):
            node_from_dict({"type": "objj_MessageSendExpression", "receiver": {"name": "x"}})


class TestChildNodes:
    def test_accessor_identifiers_are_children(self):
        data = {
            "type": "objj_IvarDeclaration",
            "objj": {"id": _ident("x"), "accessors": {"getter": _ident("getX")}},
        }
        names = [child.name for child in iter_child_nodes(node_from_dict(data))]
        assert names == ["x", "getX"]
