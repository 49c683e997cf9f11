"""
Scope Chain
===========

Lexical environments used while walking an Objective-J program.

A Scope is one frame of a singly linked chain (child -> parent). Frames
are created on entering the program, a function, a class body, a
protocol body or a method, and discarded when the walker leaves them.

Frame Attributes
----------------
The class, protocol, method type and selector of a frame are given when
the frame is created and never change. Only the variable map, the
recorded ivar references and the receiver temp counters grow while the
frame is alive.

Ancestry
--------
NodeAncestry is a per-compilation record of the nodes being walked. It
answers the two questions the format engine asks:

    previous_statement_type(type)   the statement before the current one
    parent_node_type(type, index)   the enclosing parent node

Each entry keeps the node *and* the type it is being compiled as, so a
node walked under an override type (ElseIfStatement, Lambda, ...) is
seen under that type.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from objj_sdk.objj.ast import ASTNode
from objj_sdk.objj.language import ClassDef, IvarDef, ProtocolDef

logger = logging.getLogger(__name__)


# =============================================================================
# Node Ancestry
# =============================================================================

STATEMENT_NODE_TYPES = frozenset({
    "BreakStatement",
    "ContinueStatement",
    "DebuggerStatement",
    "EmptyStatement",
    "ExpressionStatement",
    "LabeledStatement",
    "ReturnStatement",
    "ThrowStatement",
    "objj_ClassStatement",
    "objj_GlobalStatement",
    "objj_ImportStatement",
    "objj_TypeDefStatement",
})

PARENT_NODE_TYPES = frozenset({
    "BlockStatement",
    "CaseStatement",
    "DoWhileStatement",
    "ElseIfStatement",
    "ElseStatement",
    "ForInStatement",
    "ForStatement",
    "FunctionDeclaration",
    "FunctionExpression",
    "IfStatement",
    "Lambda",
    "ObjectExpression",
    "Program",
    "SwitchStatement",
    "TryStatement",
    "VariableDeclaration",
    "WhileStatement",
    "WithStatement",
    "objj_ClassDeclaration",
    "objj_MethodDeclaration",
    "objj_ProtocolDeclaration",
})


@dataclass
class _AncestryEntry:
    node: ASTNode
    node_type: str


@dataclass
class _ParentEntry:
    entry: _AncestryEntry
    statements: List[_AncestryEntry] = field(default_factory=list)


class NodeAncestry:
    """
    Stack of parent nodes, each with the list of statements seen in it.

    Parent nodes are statements of *their* parent as well, so pushing a
    parent appends it to the enclosing statement list before opening a
    new list of its own.
    """

    def __init__(self):
        self._parents: List[_ParentEntry] = []
        self._statements: List[_AncestryEntry] = []

    def push(self, node: ASTNode, node_type: str) -> None:
        entry = _AncestryEntry(node, node_type)

        if node_type in PARENT_NODE_TYPES:
            if self._parents:
                self._parents[-1].statements.append(entry)
            parent = _ParentEntry(entry)
            self._parents.append(parent)
            self._statements = parent.statements
        elif node_type in STATEMENT_NODE_TYPES:
            self._statements.append(entry)

    def pop(self, node_type: str) -> None:
        if node_type in PARENT_NODE_TYPES and self._parents:
            self._parents.pop()
            if self._parents:
                self._statements = self._parents[-1].statements

    def previous_statement_type(self, node_type: Optional[str]) -> Optional[str]:
        """
        Type of the statement preceding the current one, None if it is first.

        Args:
            node_type: Type of the node being formatted, None for globals
        """
        is_parent = node_type in PARENT_NODE_TYPES

        if is_parent:
            if len(self._parents) < 2:
                return None
            statements = self._parents[-2].statements
        else:
            statements = self._statements

        # the current statement is on top, unless we are inside an expression
        index = 2 if is_parent or node_type in STATEMENT_NODE_TYPES else 1
        if len(statements) < index:
            return None
        return statements[-index].node_type

    def parent_node_type(self, node_type: Optional[str], index: int = 0) -> Optional[str]:
        """
        Type of an enclosing parent node.

        Args:
            node_type: Type of the node being formatted
            index: 0 for the nearest parent, 1 for the one above, ...
        """
        if node_type in PARENT_NODE_TYPES:
            index += 1
        position = len(self._parents) - (1 + index)
        if position < 0:
            return None
        return self._parents[position].entry.node_type

    def enclosing_statement(self) -> Optional[ASTNode]:
        """The statement currently being walked in the current parent."""
        if not self._statements:
            return None
        return self._statements[-1].node

    def statement_before(self, statement: ASTNode) -> Optional[ASTNode]:
        """The statement preceding `statement` in the current parent."""
        for i, entry in enumerate(self._statements):
            if entry.node is statement:
                return self._statements[i - 1].node if i > 0 else None
        return None


# =============================================================================
# Variables
# =============================================================================

class ScopeType(Enum):
    GLOBAL = "global"
    FILE = "file"
    FUNCTION = "function"
    CLASS = "class"
    PROTOCOL = "protocol"
    METHOD = "method"


LOCAL_VAR_SCOPES = frozenset({ScopeType.FUNCTION, ScopeType.METHOD})

# frames that own var declarations and receiver temps
VAR_SCOPES = LOCAL_VAR_SCOPES | {ScopeType.FILE}


class VarKind(Enum):
    """What declared a variable binding."""
    GLOBAL_VAR = "global var"
    AT_GLOBAL = "@global"
    IMPLICIT_GLOBAL = "implicit global"
    FILE_VAR = "file var"
    LOCAL_VAR = "local var"
    FUNCTION_PARAMETER = "function parameter"
    METHOD_PARAMETER = "method parameter"
    FUNCTION = "function"
    FUNCTION_NAME = "function name"
    SELF = "self"
    CMD = "_cmd"

    @property
    def description(self) -> Optional[str]:
        """How shadowing warnings describe the hidden binding."""
        return _VAR_KIND_DESCRIPTIONS.get(self)

    @property
    def is_global(self) -> bool:
        return self in (VarKind.GLOBAL_VAR, VarKind.AT_GLOBAL, VarKind.IMPLICIT_GLOBAL)


_VAR_KIND_DESCRIPTIONS = {
    VarKind.GLOBAL_VAR: "a global",
    VarKind.AT_GLOBAL: "a global",
    VarKind.IMPLICIT_GLOBAL: "an implicitly declared global",
    VarKind.FILE_VAR: "a file variable",
    VarKind.LOCAL_VAR: "a variable in a containing closure",
    VarKind.FUNCTION_PARAMETER: "a function parameter",
    VarKind.METHOD_PARAMETER: "a method parameter",
}


@dataclass
class Variable:
    """
    A variable binding.

    Attributes:
        kind: What declared the binding
        node: Declaring identifier
        scope: For implicit globals and 'self', the frame they belong to
    """
    kind: VarKind
    node: Optional[ASTNode] = None
    scope: Optional["Scope"] = None


@dataclass
class IvarRef:
    """An emitted "self." prefix that may have to be retracted."""
    node: ASTNode
    ivar: IvarDef
    buffer: object
    index: int


# =============================================================================
# Scope
# =============================================================================

class Scope:
    """
    One frame of the scope chain.

    Attributes:
        scope_type: Kind of region the frame covers
        parent: Enclosing frame, None for the root
        root: The root frame of the chain
        vars: Bindings declared in this frame
        class_def: Set on class body frames
        protocol_def: Set on protocol body frames
        method_type: "-" or "+", set on method frames
        selector: Set on method frames
        function_name: Set on function frames ("<anonymous>" if unnamed)
    """

    def __init__(
        self,
        scope_type: ScopeType,
        parent: Optional["Scope"] = None,
        class_def: Optional[ClassDef] = None,
        protocol_def: Optional[ProtocolDef] = None,
        method_type: Optional[str] = None,
        selector: Optional[str] = None,
        function_name: Optional[str] = None,
        optional_protocol_methods: bool = False,
        super_class_ref: Optional[str] = None,
        super_meta_class_ref: Optional[str] = None,
    ):
        self.scope_type = scope_type
        self.parent = parent
        self.root: Scope = parent.root if parent is not None else self
        self.vars: Dict[str, Variable] = {}

        self.class_def = class_def
        self.protocol_def = protocol_def
        self.method_type = method_type
        self.selector = selector
        self.function_name = function_name
        self.optional_protocol_methods = optional_protocol_methods
        self.super_class_ref = super_class_ref
        self.super_meta_class_ref = super_meta_class_ref

        self.receiver_level = 0
        self.max_receiver_level = 0
        self.ivar_refs: Dict[str, List[IvarRef]] = {}
        self.assignment_to_self = False

        # Root frame only: identifier issues awaiting end-of-scope validation
        self.deferred_issues: list = []

        # Expression context, set and cleared around child compilation
        self.assignment: Optional[str] = None
        self.is_member_parent = False
        self.is_member_expression = False
        self.is_property_key = False
        self.receiver = False

    def __repr__(self) -> str:
        return f"Scope({self.scope_type.value})"

    # -------------------------------------------------------------------------
    # Chain
    # -------------------------------------------------------------------------

    @property
    def is_root(self) -> bool:
        return self.parent is None

    def is_local_var_scope(self) -> bool:
        """True if this frame is inside a function or method."""
        scope: Optional[Scope] = self
        while scope is not None:
            if scope.scope_type in LOCAL_VAR_SCOPES:
                return True
            scope = scope.parent
        return False

    def _nearest(self, attribute: str) -> Optional["Scope"]:
        scope: Optional[Scope] = self
        while scope is not None and getattr(scope, attribute) is None:
            scope = scope.parent
        return scope

    def current_class(self) -> Optional[ClassDef]:
        scope = self._nearest("class_def")
        return scope.class_def if scope else None

    def current_class_name(self) -> Optional[str]:
        class_def = self.current_class()
        return class_def.name if class_def else None

    def current_protocol(self) -> Optional[ProtocolDef]:
        scope = self._nearest("protocol_def")
        return scope.protocol_def if scope else None

    def current_protocol_name(self) -> Optional[str]:
        protocol = self.current_protocol()
        return protocol.name if protocol else None

    def current_method_scope(self) -> Optional["Scope"]:
        scope: Optional[Scope] = self
        while scope is not None and scope.scope_type is not ScopeType.METHOD:
            scope = scope.parent
        return scope

    def current_method_type(self) -> Optional[str]:
        scope = self.current_method_scope()
        return scope.method_type if scope else None

    def current_var_scope(self) -> "Scope":
        """Nearest frame that owns `var` declarations and receiver temps."""
        scope: Scope = self
        while scope.parent is not None and scope.scope_type not in VAR_SCOPES:
            scope = scope.parent
        return scope

    def current_super_ref(self, method_type: Optional[str]) -> Optional[str]:
        """
        Expression naming the superclass to dispatch `super` sends to.

        Returns None outside a class body or for a root class.
        """
        scope = self._nearest("class_def")
        if scope is None:
            return None
        if method_type == "+":
            return scope.super_meta_class_ref
        return scope.super_class_ref

    # -------------------------------------------------------------------------
    # Variables
    # -------------------------------------------------------------------------

    def declare(self, name: str, variable: Variable) -> None:
        self.vars[name] = variable

    def undeclare(self, name: str) -> None:
        self.vars.pop(name, None)

    def lookup(self, name: str, stop_at_method: bool = False) -> Optional[Variable]:
        """
        Find a binding, walking up the chain.

        Args:
            name: Variable name
            stop_at_method: Give up after examining the nearest method
                frame instead of escaping into the code around the method

        Returns:
            The Variable or None
        """
        scope: Optional[Scope] = self
        while scope is not None:
            variable = scope.vars.get(name)
            if variable is not None:
                return variable
            if stop_at_method and scope.scope_type is ScopeType.METHOD:
                return None
            scope = scope.parent
        return None

    def local_var(self, name: str) -> Optional[Variable]:
        """A binding declared in this very frame."""
        return self.vars.get(name)

    def global_var(self, name: str) -> Optional[Variable]:
        variable = self.root.vars.get(name)
        if variable is not None and variable.kind.is_global:
            return variable
        return None

    # -------------------------------------------------------------------------
    # Instance variables
    # -------------------------------------------------------------------------

    def ivar_for_current_class(self, name: str) -> Optional[IvarDef]:
        """
        Find an ivar of the class whose method is being compiled.

        The search covers the nearest class frame only (and that class's
        superclasses), and only from inside a method.
        """
        if self.current_method_scope() is None:
            return None
        class_def = self.current_class()
        if class_def is None:
            return None
        # a category sees the ivars of the class it extends
        found = (class_def.base_class or class_def).find_ivar(name)
        return found[0] if found else None

    def add_ivar_ref(self, node: ASTNode, name: str, ivar: IvarDef, buffer) -> None:
        """
        Emit the implicit "self." prefix of an ivar reference and remember
        where it went, so that a later local declaration of the same name
        can retract it.
        """
        self.ivar_refs.setdefault(name, []).append(
            IvarRef(node=node, ivar=ivar, buffer=buffer, index=len(buffer))
        )
        buffer.concat("self.", node)

    def pop_ivar_refs(self, name: str) -> List[IvarRef]:
        return self.ivar_refs.pop(name, [])

    def copy_ivar_refs_to_parent(self) -> None:
        if self.parent is None:
            return
        for name, refs in self.ivar_refs.items():
            self.parent.ivar_refs.setdefault(name, []).extend(refs)

    # -------------------------------------------------------------------------
    # Receiver temps
    # -------------------------------------------------------------------------

    def increment_receiver_level(self) -> int:
        self.receiver_level += 1
        self.max_receiver_level = max(self.max_receiver_level, self.receiver_level)
        return self.receiver_level

    def decrement_receiver_level(self) -> None:
        self.receiver_level -= 1

    # -------------------------------------------------------------------------
    # Deferred diagnostics
    # -------------------------------------------------------------------------

    def add_deferred_issue(self, issue) -> None:
        self.root.deferred_issues.append(issue)

    def remove_deferred_issue(self, issue) -> None:
        self.root.deferred_issues.remove(issue)
