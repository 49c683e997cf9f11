"""
Symbol Table Tests
==================

Tests for the compile-time records of classes, protocols and methods,
and for the SymbolTables registry.

Run tests with:
    pytest tests/test_language.py -v
"""

import pytest

from objj_sdk.objj import builder as b
from objj_sdk.objj.errors import DuplicateDefinitionError
from objj_sdk.objj.language import (
    ClassDef,
    IvarDef,
    MethodDef,
    MethodType,
    MisspelledSymbolMap,
    ProtocolDef,
    SymbolTables,
    TypeDef,
)


def _class(name, superclass_def=None):
    return ClassDef(b.class_decl(name), name, superclass_def)


# =============================================================================
# Methods
# =============================================================================

class TestMethodDef:
    def test_types(self):
        method = MethodDef(None, "setX:y:", ("void", "int", "id"))
        assert method.return_type == "void"
        assert method.parameter_types == ("int", "id")

    def test_type_count_must_match_selector(self):
        with pytest.raises(ValueError, match="needs 2 types"):
            MethodDef(None, "setX:", ("void",))

    def test_method_type_marker(self):
        assert MethodType.from_marker("-") is MethodType.INSTANCE
        assert MethodType.from_marker("+") is MethodType.CLASS


# =============================================================================
# Classes
# =============================================================================

class TestClassDef:
    def test_stub(self):
        assert ClassDef(b.ident("Foo"), "Foo").is_stub
        assert ClassDef(b.class_stmt("Foo"), "Foo").is_stub
        assert not _class("Foo").is_stub

    def test_category_key(self):
        base = _class("Foo")
        category = ClassDef(None, "Foo", category="Extras", base_class=base)
        assert base.key == "Foo"
        assert category.key == "Foo+Extras"

    def test_find_ivar_in_superclass(self):
        base = _class("Foo")
        base.add_ivar(IvarDef("x", "int"))
        sub = _class("Bar", base)
        ivar, owner = sub.find_ivar("x")
        assert ivar.type == "int"
        assert owner is base
        assert sub.get_ivar("x") is None
        assert sub.find_ivar("y") is None

    def test_method_lookup_walks_superclasses(self):
        base = _class("Foo")
        base.add_instance_method(MethodDef(None, "init", ("id",)))
        sub = _class("Bar", base)
        assert sub.instance_method("init") is not None
        assert sub.get_own_instance_method("init") is None
        assert sub.class_method("init") is None

    def test_method_lookup_in_protocols(self):
        protocol = ProtocolDef(None, "Drawing")
        protocol.add_instance_method(MethodDef(None, "draw", ("void",)))
        class_def = _class("Foo")
        class_def.add_protocol(protocol)
        assert class_def.instance_method("draw") is None
        assert class_def.instance_method("draw", search_protocols=True) is not None

    def test_category_methods_are_added_to_the_class(self):
        base = _class("Foo")
        category = ClassDef(None, "Foo", category="Extras", base_class=base)
        category.add_method(MethodDef(None, "extra", ("id",)), MethodType.INSTANCE)
        assert base.get_own_instance_method("extra") is not None

    def test_inherited_methods_are_merged(self):
        base = _class("Foo")
        base.add_instance_method(MethodDef(None, "a", ("id",)))
        sub = _class("Bar", base)
        sub.add_instance_method(MethodDef(None, "b", ("id",)))
        assert set(sub.methods(MethodType.INSTANCE)) == {"a", "b"}


class TestProtocolConformance:
    def _protocols(self):
        drawing = ProtocolDef(None, "Drawing")
        drawing.add_instance_method(MethodDef(None, "draw", ("void",)))
        drawing.add_instance_method(MethodDef(None, "sketch", ("void",)), required=False)
        shape = ProtocolDef(None, "Shape", [drawing])
        shape.add_class_method(MethodDef(None, "shape", ("id",)))
        return drawing, shape

    def test_incorporated_protocol_methods_are_required(self):
        drawing, shape = self._protocols()
        required = [(method.name, method_type, owner.name) for method, method_type, owner in shape.required_methods()]
        assert required == [
            ("shape", MethodType.CLASS, "Shape"),
            ("draw", MethodType.INSTANCE, "Drawing"),
        ]

    def test_unimplemented_required_methods(self):
        _, shape = self._protocols()
        class_def = _class("Square")
        class_def.add_class_method(MethodDef(None, "shape", ("id",)))
        missing = [(method.name, owner.name) for method, owner in class_def.unimplemented_required_methods([shape])]
        assert missing == [("draw", "Drawing")]

    def test_inherited_implementation_counts(self):
        drawing, _ = self._protocols()
        base = _class("Base")
        base.add_instance_method(MethodDef(None, "draw", ("void",)))
        sub = _class("Sub", base)
        assert sub.unimplemented_required_methods([drawing]) == []

    def test_optional_methods_are_found(self):
        drawing, shape = self._protocols()
        assert drawing.instance_method("sketch") is not None
        assert shape.instance_method("draw") is not None

    def test_incorporation_cycles_terminate(self):
        a = ProtocolDef(None, "A")
        c = ProtocolDef(None, "C", [a])
        a.incorporated_protocols.append(c)
        assert a.instance_method("missing") is None


# =============================================================================
# Registry
# =============================================================================

class TestSymbolTables:
    def test_register_and_lookup(self, symbols):
        symbols.register_class(_class("Foo"))
        symbols.register_protocol(ProtocolDef(None, "P"))
        symbols.register_typedef(TypeDef(None, "T"))
        assert symbols.lookup_class("Foo").name == "Foo"
        assert symbols.lookup_protocol("P").name == "P"
        assert symbols.lookup_typedef("T").name == "T"
        assert symbols.lookup_class("Bar") is None

    def test_implementation_replaces_stub(self, symbols):
        symbols.register_class(ClassDef(b.ident("Foo"), "Foo"))
        implementation = _class("Foo")
        symbols.register_class(implementation)
        assert symbols.lookup_class("Foo") is implementation

    def test_stub_does_not_replace_implementation(self, symbols):
        implementation = _class("Foo")
        symbols.register_class(implementation)
        symbols.register_class(ClassDef(b.ident("Foo"), "Foo"))
        assert symbols.lookup_class("Foo") is implementation

    def test_duplicate_class(self, symbols):
        symbols.register_class(_class("Foo"))
        with pytest.raises(DuplicateDefinitionError, match="duplicate definition of class 'Foo'"):
            symbols.register_class(_class("Foo"))

    def test_duplicate_protocol(self, symbols):
        symbols.register_protocol(ProtocolDef(None, "P"))
        with pytest.raises(DuplicateDefinitionError) as exc_info:
            symbols.register_protocol(ProtocolDef(None, "P"))
        assert exc_info.value.kind == "protocol"

    def test_misspelled_names(self, symbols):
        symbols.register_class(_class("CPButton"))
        symbols.register_protocol(ProtocolDef(None, "CPCoding"))
        assert symbols.find_misspelled_name("cpbutton") == "CPButton"
        assert symbols.misspelled_protocol("cpcoding") == "CPCoding"
        assert symbols.find_misspelled_name("CPWindow") is None

    def test_extra_misspelling_table(self, symbols):
        extra = MisspelledSymbolMap(["myVariable"])
        assert symbols.find_misspelled_name("MYVARIABLE", extra) == "myVariable"
