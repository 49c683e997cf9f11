"""
Scope Chain Tests
=================

Run tests with:
    pytest tests/test_scope.py -v
"""

from objj_sdk.objj import builder as b
from objj_sdk.objj.language import ClassDef, IvarDef
from objj_sdk.objj.scope import NodeAncestry, Scope, ScopeType, Variable, VarKind


def _class_with_ivar():
    class_def = ClassDef(b.class_decl("Foo"), "Foo")
    class_def.add_ivar(IvarDef("x", "int"))
    return class_def


class TestScopeChain:
    def test_lookup_walks_parents(self):
        root = Scope(ScopeType.GLOBAL)
        root.declare("g", Variable(VarKind.GLOBAL_VAR))
        inner = Scope(ScopeType.FUNCTION, Scope(ScopeType.FUNCTION, root))
        assert inner.lookup("g").kind is VarKind.GLOBAL_VAR
        assert inner.local_var("g") is None
        assert inner.global_var("g") is not None
        assert inner.root is root

    def test_lookup_can_stop_at_method(self):
        function = Scope(ScopeType.FUNCTION, Scope(ScopeType.GLOBAL))
        function.declare("outer", Variable(VarKind.LOCAL_VAR))
        method = Scope(ScopeType.METHOD, Scope(ScopeType.CLASS, function), method_type="-")
        assert method.lookup("outer") is not None
        assert method.lookup("outer", stop_at_method=True) is None

    def test_current_context(self):
        class_def = _class_with_ivar()
        class_scope = Scope(ScopeType.CLASS, Scope(ScopeType.GLOBAL), class_def=class_def)
        method = Scope(ScopeType.METHOD, class_scope, method_type="+", selector="new")
        function = Scope(ScopeType.FUNCTION, method)
        assert function.current_class_name() == "Foo"
        assert function.current_method_type() == "+"
        assert function.current_protocol_name() is None
        assert function.current_var_scope() is function
        assert function.is_local_var_scope()
        assert not class_scope.is_local_var_scope()

    def test_ivars_are_visible_only_in_methods(self):
        class_scope = Scope(ScopeType.CLASS, Scope(ScopeType.GLOBAL), class_def=_class_with_ivar())
        method = Scope(ScopeType.METHOD, class_scope, method_type="-")
        assert class_scope.ivar_for_current_class("x") is None
        assert method.ivar_for_current_class("x").type == "int"
        assert method.ivar_for_current_class("y") is None

    def test_receiver_levels(self):
        scope = Scope(ScopeType.FUNCTION)
        scope.increment_receiver_level()
        scope.increment_receiver_level()
        scope.decrement_receiver_level()
        scope.increment_receiver_level()
        assert scope.max_receiver_level == 2

    def test_deferred_issues_live_on_the_root(self):
        root = Scope(ScopeType.GLOBAL)
        child = Scope(ScopeType.FUNCTION, root)
        child.add_deferred_issue("issue")
        assert root.deferred_issues == ["issue"]
        child.remove_deferred_issue("issue")
        assert root.deferred_issues == []

    def test_ivar_refs_propagate_to_parent(self):
        parent = Scope(ScopeType.METHOD, method_type="-")
        child = Scope(ScopeType.FUNCTION, parent)
        child.ivar_refs["x"] = ["ref"]
        child.copy_ivar_refs_to_parent()
        assert parent.pop_ivar_refs("x") == ["ref"]
        assert parent.pop_ivar_refs("x") == []


class TestNodeAncestry:
    def test_previous_statement(self):
        ancestry = NodeAncestry()
        ancestry.push(b.program(), "Program")
        ancestry.push(b.var("x"), "VariableDeclaration")
        ancestry.pop("VariableDeclaration")
        ancestry.push(b.debugger(), "DebuggerStatement")
        assert ancestry.previous_statement_type("DebuggerStatement") == "VariableDeclaration"

    def test_first_statement_has_no_previous(self):
        ancestry = NodeAncestry()
        ancestry.push(b.program(), "Program")
        ancestry.push(b.debugger(), "DebuggerStatement")
        assert ancestry.previous_statement_type("DebuggerStatement") is None
        assert ancestry.parent_node_type("DebuggerStatement") == "Program"
