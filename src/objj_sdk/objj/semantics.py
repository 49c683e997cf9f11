"""
Semantic Checks
===============

The checks the code generator runs while it walks the tree. None of them
emits code; they consult the symbol tables and the scope chain and
report to the Diagnostics engine, or raise a CompileAbortedError subclass
when the problem is fatal.

Identifier Checks
-----------------
    check_identifier_reference   entry point for unresolved identifiers
    check_assignment             implicit globals, read-only globals
    check_for_unknown_identifier reference to an undeclared name
    check_for_shadowed_vars      declarations hiding another binding

Global Symbols
--------------
is_unique_global_symbol() is called for every declaration that creates
a global name (@implementation, @protocol, @class, @global, @typedef and
assignments to undeclared names). It decides between "new", "harmless
repetition" (warning) and "conflict" (error, or fatal for a duplicate
class, category or protocol definition).

Accessors
---------
getter_selector() / setter_selector() name the methods synthesized for
an @accessors ivar:

    age                      getter "age", setter "setAge:"
    _id                      getter "_id", setter "_setId:"
    property=name            getter "name", setter "setName:"
    getter=isOn setter=turn: getter "isOn", setter "turn:"
"""

import logging
from typing import List, Mapping, Optional

from objj_sdk.objj.ast import (
    ASTNode,
    AccessorSpec,
    ArrayExpression,
    BinaryExpression,
    ClassDeclaration,
    ClassStatement,
    ConditionalExpression,
    Dereference,
    DictionaryLiteral,
    ExpressionStatement,
    GlobalStatement,
    FunctionExpression,
    Identifier,
    Literal,
    MemberExpression,
    MethodDeclaration,
    ObjectExpression,
    ObjectiveJType,
    ProtocolDeclaration,
    Reference,
    SequenceExpression,
    TypeDefStatement,
    UnaryExpression,
    VariableDeclaration,
)
from objj_sdk.objj.diagnostics import (
    Diagnostics,
    ImplicitGlobalWarning,
    UnknownIdentifierWarning,
)
from objj_sdk.objj.errors import DereferenceError, DuplicateDefinitionError
from objj_sdk.objj.globals import PREDEFINED_TYPES, PredefinedGlobal
from objj_sdk.objj.language import ClassDef, MethodDef, MisspelledSymbolMap, SymbolTables
from objj_sdk.objj.scope import NodeAncestry, Scope, VarKind, Variable

logger = logging.getLogger(__name__)

TYPE_STATEMENTS = (ClassStatement, GlobalStatement, TypeDefStatement)

ENTITY_DESCRIPTIONS = {
    "var": "local declaration of",
    "function": "function parameter",
    "method": "method parameter",
}

_MISSPELLED_TYPES = MisspelledSymbolMap(PREDEFINED_TYPES)


# =============================================================================
# Accessor Naming
# =============================================================================

def _capitalize(name: str) -> str:
    return name[:1].upper() + name[1:]


def _strip_colon(name: str) -> str:
    return name[:-1] if len(name) > 1 and name.endswith(":") else name


def getter_selector(accessors: AccessorSpec, ivar_name: str) -> str:
    if accessors.getter is not None:
        return _strip_colon(accessors.getter.name)
    if accessors.property is not None:
        return accessors.property.name
    return ivar_name


def setter_selector(accessors: AccessorSpec, ivar_name: str) -> str:
    if accessors.setter is not None:
        return _strip_colon(accessors.setter.name) + ":"
    if accessors.property is not None:
        return f"set{_capitalize(accessors.property.name)}:"
    if ivar_name.startswith("_") and len(ivar_name) > 1:
        return f"_set{_capitalize(ivar_name[1:])}:"
    return f"set{_capitalize(ivar_name)}:"


def accessor_attributes(accessors: AccessorSpec) -> str:
    """
    The attribute list shown in accessor comments.

    Returns:
        e.g. "(readonly, property=name)", or "" without attributes
    """
    attributes = []
    if accessors.readonly:
        attributes.append("readonly")
    elif accessors.copy:
        attributes.append("copy")

    if accessors.property is not None:
        attributes.append(f"property={accessors.property.name}")
    if accessors.getter is not None:
        attributes.append(f"getter={accessors.getter.name}")
    if accessors.setter is not None:
        attributes.append(f"setter={_strip_colon(accessors.setter.name)}")

    if attributes:
        return "(" + ", ".join(attributes) + ")"
    return ""


def _return_type_anchor(node: Optional[ASTNode]) -> Optional[ASTNode]:
    """The node a return type diagnostic points at: type, @action or first selector."""
    if not isinstance(node, MethodDeclaration):
        return node
    return node.return_type or node.action or (node.selectors[0] if node.selectors else node)


# =============================================================================
# Idempotence
# =============================================================================

def is_idempotent(node: Optional[ASTNode]) -> bool:
    """
    True if evaluating `node` twice is the same as evaluating it once.

    Only a fixed set of structural forms qualifies. Anything else,
    including `this`, logical operators, calls, `new`, updates, assignments
    and message sends, does not.
    """
    if node is None:
        return True

    if isinstance(node, (Identifier, Literal)):
        return True

    if isinstance(node, MemberExpression):
        return is_idempotent(node.object) and (not node.computed or is_idempotent(node.property))

    if isinstance(node, ArrayExpression):
        return all(is_idempotent(element) for element in node.elements)

    if isinstance(node, DictionaryLiteral):
        return all(is_idempotent(key) and is_idempotent(value)
                   for key, value in zip(node.keys, node.values))

    if isinstance(node, ObjectExpression):
        return all(is_idempotent(prop.value) for prop in node.properties)

    if isinstance(node, FunctionExpression):
        return all(is_idempotent(param) for param in node.params)

    if isinstance(node, UnaryExpression):
        return node.operator != "delete" and is_idempotent(node.argument)

    if isinstance(node, BinaryExpression):
        return is_idempotent(node.left) and is_idempotent(node.right)

    if isinstance(node, ConditionalExpression):
        return (is_idempotent(node.test)
                and is_idempotent(node.consequent)
                and is_idempotent(node.alternate))

    if isinstance(node, SequenceExpression):
        return all(is_idempotent(expression) for expression in node.expressions)

    if isinstance(node, Dereference):
        return is_idempotent(node.ref)

    if isinstance(node, Reference):
        return is_idempotent(node.ref)

    return False


# =============================================================================
# Semantic Checker
# =============================================================================

class SemanticChecker:
    """
    Semantic checks for one compilation.

    Attributes:
        symbols: Classes, protocols and typedefs known so far
        diagnostics: Where issues are reported
        predefined: Predefined globals of the target environment
        ancestry: The node ancestry of the walk in progress
    """

    def __init__(
        self,
        symbols: SymbolTables,
        diagnostics: Diagnostics,
        predefined: Mapping[str, PredefinedGlobal],
        ancestry: NodeAncestry,
    ):
        self.symbols = symbols
        self.diagnostics = diagnostics
        self.predefined = predefined
        self.ancestry = ancestry

    def should_warn_about(self, warning: str) -> bool:
        return self.diagnostics.should_warn_about(warning)

    def _source_line(self, node: Optional[ASTNode]) -> Optional[str]:
        return self.diagnostics.source_line(node.location if node is not None else None)

    def find_misspelled_name(self, name: str) -> Optional[str]:
        return self.symbols.find_misspelled_name(name, _MISSPELLED_TYPES)

    # -------------------------------------------------------------------------
    # Identifiers
    # -------------------------------------------------------------------------

    def check_identifier_reference(self, node: Identifier, scope: Scope) -> None:
        """Check an identifier that did not resolve to a local or an ivar."""
        if scope.assignment == "=":
            self.check_assignment(node, scope)
        else:
            self.check_for_unknown_identifier(node, scope)

    def check_assignment(self, node: Identifier, scope: Scope) -> None:
        # assignments to properties are not checked
        if scope.is_member_parent:
            return

        name = node.name
        predefined = self.predefined.get(name)

        if predefined is not None:
            if not predefined.writable:
                self.diagnostics.warning(node, "assigning to a read-only predefined global")
            return

        variable = scope.lookup(name)

        if variable is None and not self.is_unique_global_symbol(node, scope, node):
            return

        var_scope = scope.current_var_scope()
        implicit = scope.is_local_var_scope() and (
            variable is None
            or (variable.kind is VarKind.IMPLICIT_GLOBAL and variable.scope is not var_scope)
        )

        if implicit and self.should_warn_about("implicit-globals"):
            kind = "function" if var_scope.function_name else "method"
            owner = var_scope.function_name or var_scope.selector
            message = f"implicitly creating the global variable '{name}' in the {kind} '{owner}'"

            var_declaration = self.find_previous_var_declaration()
            if var_declaration is None:
                message += f"; did you mean to use 'var {name}'?"

            issue = self.diagnostics.report_deferred(ImplicitGlobalWarning, node, message, var_scope)

            if issue is not None and var_declaration is not None:
                declarations = var_declaration.declarations
                anchor = declarations[-1] if declarations else var_declaration
                self.diagnostics.note(anchor, "did you mean to use a comma here?")

        if variable is None or implicit:
            kind = VarKind.IMPLICIT_GLOBAL if implicit else VarKind.GLOBAL_VAR
            scope.root.declare(name, Variable(kind, node, var_scope))

    def find_previous_var_declaration(self) -> Optional[VariableDeclaration]:
        """
        Find the var statement an assignment statement probably belongs to.

        Catches the mistake of ending a var list with ';' instead of ',':

            var a = 7,
                b = 13;
                c = 27;
        """
        statement = self.ancestry.enclosing_statement()

        if not isinstance(statement, ExpressionStatement):
            return None

        if statement.expression is None or statement.expression.node_type not in (
            "AssignmentExpression", "SequenceExpression"
        ):
            return None

        previous = self.ancestry.statement_before(statement)
        if isinstance(previous, VariableDeclaration):
            return previous
        return None

    def check_for_unknown_identifier(self, node: Identifier, scope: Scope) -> None:
        if not self.should_warn_about("unknown-identifiers"):
            return

        name = node.name

        if (scope.lookup(name) is not None
                or self.symbols.lookup_class(name) is not None
                or self.symbols.lookup_protocol(name) is not None
                or self.symbols.lookup_typedef(name) is not None
                or name in self.predefined):
            return

        message = f"reference to unknown identifier '{name}'"

        # an unknown receiver may be a misspelled class name
        if scope.receiver:
            suggestion = self.find_misspelled_name(name)
            if suggestion:
                message += f"; did you mean '{suggestion}'?"

        self.diagnostics.report_deferred(
            UnknownIdentifierWarning,
            node,
            message,
            scope.current_var_scope(),
            symbols=self.symbols,
        )

    def check_for_shadowed_vars(self, node: Identifier, scope: Scope, entity: str) -> None:
        """
        Check a declaration (var, function or method parameter) for hiding
        another binding of the same name.

        A var declared after it was assigned in the same scope turns the
        implicit global created by the assignment back into a local, and
        a local hiding an ivar retracts the "self." already emitted for
        earlier uses of the name in the scope.

        Args:
            node: The declared identifier
            scope: The frame receiving the declaration
            entity: "var", "function" or "method"
        """
        name = node.name
        description: Optional[str] = None
        hidden: Optional[ASTNode] = None

        variable = scope.lookup(name)
        if variable is not None:
            if variable.kind is VarKind.IMPLICIT_GLOBAL and variable.scope is scope:
                variable.kind = VarKind.LOCAL_VAR
                if scope.root.vars.get(name) is variable:
                    scope.root.undeclare(name)
            else:
                description = variable.kind.description
                hidden = variable.node

        if description is None:
            class_def = self.symbols.lookup_class(name)
            protocol_def = self.symbols.lookup_protocol(name)
            typedef = self.symbols.lookup_typedef(name)
            predefined = self.predefined.get(name)

            if class_def is not None:
                description, hidden = "a class", class_def.node
            elif protocol_def is not None:
                description, hidden = "a protocol", protocol_def.node
            elif typedef is not None:
                description, hidden = "a typedef", typedef.node
            elif predefined is not None and not predefined.ignore_shadow:
                description, hidden = "a predefined global", None

        if description is None:
            ivar = scope.ivar_for_current_class(name)
            if ivar is not None:
                description, hidden = "an instance variable", ivar.node

                for ref in scope.pop_ivar_refs(name):
                    ref.buffer.remove(ref.index)
                    if self.should_warn_about("shadowed-vars"):
                        self.diagnostics.warning(
                            ref.node,
                            f"reference to local variable '{name}' hides an instance variable",
                        )

        if description is None or not self.should_warn_about("shadowed-vars"):
            return

        self.diagnostics.warning(node, f"{ENTITY_DESCRIPTIONS[entity]} '{name}' hides {description}")
        if hidden is not None:
            self.diagnostics.note(hidden, "hidden declaration is here")

    # -------------------------------------------------------------------------
    # Global symbols
    # -------------------------------------------------------------------------

    def _duplicate(self, kind: str, name: str, original: Optional[ASTNode], duplicate: ASTNode) -> bool:
        if not self.diagnostics.ignore_warnings:
            self.diagnostics.warning(duplicate, f"duplicate {kind} definition '{name}' is ignored")
            if original is not None:
                self.diagnostics.note(original, "previous definition is here")
        return False

    def _fatal_duplicate(self, kind: str, name: str, original: Optional[ASTNode], duplicate: ASTNode):
        raise DuplicateDefinitionError(
            kind,
            name,
            location=duplicate.location,
            previous_location=original.location if original is not None else None,
            source_line=self._source_line(duplicate),
        )

    def is_unique_global_symbol(self, node: ASTNode, scope: Scope, identifier: Identifier) -> bool:
        """
        Check that a global declaration does not clash with an earlier one.

        Args:
            node: The declaring node (a declaration, a type statement, or
                the identifier itself for assignments)
            scope: Current frame
            identifier: The declared name

        Returns:
            True if the symbol may be declared

        Raises:
            DuplicateDefinitionError: For a second definition of a class,
                category or protocol
        """
        name = identifier.name
        previous_kind: Optional[str] = None
        previous_node: Optional[ASTNode] = None
        problem = "previously defined as"

        class_def = self.symbols.lookup_class(name)

        if isinstance(node, ClassDeclaration):
            if node.category is not None:
                if class_def is None:
                    self.diagnostics.error(node, f"cannot find implementation declaration for '{name}'")
                    return False

                category = node.category.name
                category_def = self.symbols.lookup_class(f"{name}+{category}")
                if category_def is not None:
                    self._fatal_duplicate("category", f"{name} ({category})", category_def.node, node)
                return True

            if class_def is not None:
                if not class_def.is_stub:
                    self._fatal_duplicate("class", name, class_def.node, node)

                if not self.diagnostics.ignore_warnings:
                    self.diagnostics.warning(class_def.node, f"@class definition '{name}' is unnecessary")
                    self.diagnostics.note(node, "superceded by this definition")
                return True

        elif class_def is not None:
            if isinstance(node, ClassStatement):
                return self._duplicate("class", name, class_def.node, identifier)
            previous_kind, previous_node = "a class", class_def.node

        if previous_kind is None:
            protocol_def = self.symbols.lookup_protocol(name)
            if protocol_def is not None:
                if isinstance(node, ProtocolDeclaration):
                    self._fatal_duplicate("protocol", name, protocol_def.node, node)
                previous_kind, previous_node = "a protocol", protocol_def.node

        if previous_kind is None:
            variable = scope.global_var(name)
            if variable is not None:
                if isinstance(node, GlobalStatement):
                    return self._duplicate("global", name, variable.node, identifier)
                previous_kind, previous_node = "a global", variable.node

        if previous_kind is None:
            typedef = self.symbols.lookup_typedef(name)
            if typedef is not None:
                if isinstance(node, TypeDefStatement):
                    return self._duplicate("typedef", name, typedef.node, identifier)
                previous_kind, previous_node = "a typedef", typedef.node

        if previous_kind is None and name in self.predefined:
            if isinstance(node, GlobalStatement):
                return self._duplicate("predefined global", name, None, identifier)
            previous_kind, problem = "a predefined global", "is"

        if previous_kind is None:
            return True

        anchor = identifier if isinstance(node, TYPE_STATEMENTS) else node
        self.diagnostics.error(anchor, f"'{name}' {problem} {previous_kind}")
        if previous_node is not None:
            self.diagnostics.note(previous_node, "definition is here")
        return False

    # -------------------------------------------------------------------------
    # Types and protocols
    # -------------------------------------------------------------------------

    def unknown_protocol(self, node: Identifier, is_warning: bool = False) -> None:
        message = f"cannot find protocol declaration for '{node.name}'"
        suggestion = self.symbols.misspelled_protocol(node.name)
        if suggestion:
            message += f"; did you mean '{suggestion}'?"

        if is_warning:
            self.diagnostics.warning(node, message)
        else:
            self.diagnostics.error(node, message)

    def check_type_protocols(self, protocols: Optional[List[Identifier]]) -> None:
        """Warn about protocols named in a type (id<P>) that are not declared."""
        for protocol in protocols or ():
            if self.symbols.lookup_protocol(protocol.name) is None:
                self.unknown_protocol(protocol, is_warning=True)

    def check_for_unknown_type(self, node: ASTNode, type_name: str) -> None:
        if (self.symbols.lookup_class(type_name) is not None
                or self.symbols.lookup_protocol(type_name) is not None
                or self.symbols.lookup_typedef(type_name) is not None
                or type_name in PREDEFINED_TYPES):
            return

        message = f"unknown type '{type_name}'"
        suggestion = self.find_misspelled_name(type_name)
        if suggestion:
            message += f"; did you mean '{suggestion}'?"
        self.diagnostics.warning(node, message)

    def check_parameter_types(
        self,
        node: MethodDeclaration,
        types: List[str],
        overridden: Optional[MethodDef],
        selector: str,
    ) -> None:
        """
        Compare a method signature with the inherited or protocol one.

        A superclass (or protocol) type of 'id' may be narrowed to a class
        type without a warning.
        """
        return_type = node.return_type

        if overridden is not None and self.should_warn_about("parameter-types"):
            declared = overridden.types
            previous_node = overridden.node

            if (declared[0] != types[0]
                    and not (declared[0] == "id" and return_type is not None and return_type.is_class)):
                anchor = return_type or _return_type_anchor(node)
                self.diagnostics.warning(
                    anchor,
                    f"conflicting return type in declaration of '{selector}': "
                    f"'{types[0]}' vs '{declared[0]}'",
                )
                self.diagnostics.note(
                    _return_type_anchor(previous_node),
                    "previous declaration is here",
                )

            for i in range(1, len(declared)):
                param = node.params[i - 1]
                param_type = param.type
                if declared[i] == types[i]:
                    continue
                if declared[i] == "id" and param_type is not None and param_type.is_class:
                    continue

                self.diagnostics.warning(
                    param_type or param.id,
                    f"conflicting parameter type in declaration of '{selector}': "
                    f"'{types[i]}' vs '{declared[i]}'",
                )
                previous_params = getattr(previous_node, "params", None)
                if previous_params and len(previous_params) >= i:
                    anchor = previous_params[i - 1].type or previous_params[i - 1].id
                else:
                    anchor = previous_node
                self.diagnostics.note(anchor, "previous declaration is here")

        if self.should_warn_about("unknown-types"):
            if return_type is not None and return_type.is_class:
                self.check_for_unknown_type(return_type, return_type.name)

            for param in node.params:
                if param.type is not None and param.type.is_class:
                    self.check_for_unknown_type(param.type, param.type.name)

    def check_ivar_type(self, ivar_type: Optional[ObjectiveJType]) -> None:
        if ivar_type is not None and ivar_type.is_class and self.should_warn_about("unknown-types"):
            self.check_for_unknown_type(ivar_type, ivar_type.name)

    def check_protocol_conformance(self, class_def: ClassDef, protocols: List[Identifier]) -> None:
        """Warn once per required protocol method the class does not implement."""
        if not self.should_warn_about("unimplemented-protocol-methods"):
            return

        for protocol in protocols:
            protocol_def = self.symbols.lookup_protocol(protocol.name)
            if protocol_def is None:
                continue

            for method, owner in class_def.unimplemented_required_methods([protocol_def]):
                self.diagnostics.warning(
                    protocol,
                    f"method '{method.name}' in protocol '{owner.name}' not implemented",
                )
                self.diagnostics.note(method.node, f"method '{method.name}' declared here")

    def check_for_setter_conflicts(self, node: MethodDeclaration, class_def: Optional[ClassDef], selector: str) -> None:
        """A class may not define the setter of one of its readonly ivars."""
        if class_def is None or node.method_type != "-" or not selector.endswith(":"):
            return

        for ivar in class_def.ivars.values():
            accessors = ivar.accessors
            if accessors is None or not accessors.readonly:
                continue

            if setter_selector(accessors, ivar.name) == selector:
                self.diagnostics.error(
                    node,
                    f"setter method '{selector}' cannot be defined for the readonly ivar '{ivar.name}'",
                )
                self.diagnostics.note(ivar.node, "ivar declaration is here")

    # -------------------------------------------------------------------------
    # Dereference
    # -------------------------------------------------------------------------

    def check_can_dereference(self, node: ASTNode) -> None:
        """
        Raises:
            DereferenceError: If `node` may have side effects
        """
        if not is_idempotent(node):
            raise DereferenceError(location=node.location, source_line=self._source_line(node))
