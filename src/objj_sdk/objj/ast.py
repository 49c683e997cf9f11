"""
Objective-J Abstract Syntax Tree (AST) Definitions
==================================================

This module defines the AST node types consumed by the Objective-J
compiler. Parsing happens elsewhere: an acorn-objj style parser produces
an ESTree tree (as Python objects or JSON), and this module gives that
tree a typed, dataclass based shape.

Node Hierarchy
--------------
ASTNode (base)
├── Program - root node containing all top-level statements
├── Statements (ESTree)
│   ├── BlockStatement, ExpressionStatement, EmptyStatement
│   ├── IfStatement, SwitchStatement, SwitchCase
│   ├── WhileStatement, DoWhileStatement, ForStatement, ForInStatement
│   ├── ReturnStatement, BreakStatement, ContinueStatement, LabeledStatement
│   ├── ThrowStatement, TryStatement, CatchClause
│   ├── WithStatement, DebuggerStatement
│   └── FunctionDeclaration, VariableDeclaration, VariableDeclarator
├── Expressions (ESTree)
│   ├── Identifier, Literal, ThisExpression
│   ├── ArrayExpression, ObjectExpression, Property, FunctionExpression
│   ├── UnaryExpression, UpdateExpression, BinaryExpression, LogicalExpression
│   ├── AssignmentExpression, ConditionalExpression, SequenceExpression
│   └── CallExpression, NewExpression, MemberExpression
├── Objective-J declarations
│   ├── ClassDeclaration - @implementation, optionally a category
│   ├── IvarDeclaration - instance variable with optional @accessors
│   ├── MethodDeclaration, MethodParameter, ObjectiveJType, ActionType
│   ├── ProtocolDeclaration - @protocol
│   └── ImportStatement, ClassStatement, GlobalStatement, TypeDefStatement
├── Objective-J expressions
│   ├── MessageSendExpression, Super
│   ├── ArrayLiteral (@[]), DictionaryLiteral (@{})
│   ├── SelectorLiteralExpression, ProtocolLiteralExpression
│   └── Reference (@ref), Dereference (@deref)
└── Synthetic wrappers
    └── ElseStatement, CaseStatement - give else/case bodies a parent

Design Notes
------------
- All nodes are dataclasses compared by identity (eq=False), so they can
  be used as dictionary keys and stack entries.
- Each node keeps the ESTree type string in `node_type`, its character
  offsets (`start`, `end`) and a 1-indexed SourceLocation.
- Nodes are never mutated by the compiler. Where a node must be treated
  as another type, the code generator passes an override type instead.
"""

import json
import re
from dataclasses import dataclass, field, fields
from typing import Any, ClassVar, Iterator, List, Optional

from objj_sdk.errors import ASTError, SourceLocation


# =============================================================================
# AST Node Base Class
# =============================================================================

@dataclass(eq=False)
class ASTNode:
    """
    Base class for all AST nodes.

    Attributes:
        location: Source location where this node starts
        start: Character offset of the first character of the node
        end: Character offset just past the last character of the node
    """
    node_type: ClassVar[str] = "Node"

    location: Optional[SourceLocation] = field(default=None, repr=False)
    start: int = field(default=0, repr=False)
    end: int = field(default=0, repr=False)

    def __repr__(self) -> str:
        """Default representation showing node type and position."""
        if self.location is None:
            return f"{self.__class__.__name__}@?"
        return f"{self.__class__.__name__}@{self.location.line}:{self.location.column}"


# =============================================================================
# Program and Statements
# =============================================================================

@dataclass(eq=False)
class Program(ASTNode):
    """Root node of a compilation unit."""
    node_type: ClassVar[str] = "Program"
    body: List[ASTNode] = field(default_factory=list)


@dataclass(eq=False)
class BlockStatement(ASTNode):
    node_type: ClassVar[str] = "BlockStatement"
    body: List[ASTNode] = field(default_factory=list)


@dataclass(eq=False)
class ExpressionStatement(ASTNode):
    node_type: ClassVar[str] = "ExpressionStatement"
    expression: Optional[ASTNode] = None


@dataclass(eq=False)
class EmptyStatement(ASTNode):
    node_type: ClassVar[str] = "EmptyStatement"


@dataclass(eq=False)
class DebuggerStatement(ASTNode):
    node_type: ClassVar[str] = "DebuggerStatement"


@dataclass(eq=False)
class WithStatement(ASTNode):
    node_type: ClassVar[str] = "WithStatement"
    object: Optional[ASTNode] = None
    body: Optional[ASTNode] = None


@dataclass(eq=False)
class ReturnStatement(ASTNode):
    node_type: ClassVar[str] = "ReturnStatement"
    argument: Optional[ASTNode] = None


@dataclass(eq=False)
class LabeledStatement(ASTNode):
    node_type: ClassVar[str] = "LabeledStatement"
    label: Optional["Identifier"] = None
    body: Optional[ASTNode] = None


@dataclass(eq=False)
class BreakStatement(ASTNode):
    node_type: ClassVar[str] = "BreakStatement"
    label: Optional["Identifier"] = None


@dataclass(eq=False)
class ContinueStatement(ASTNode):
    node_type: ClassVar[str] = "ContinueStatement"
    label: Optional["Identifier"] = None


@dataclass(eq=False)
class IfStatement(ASTNode):
    node_type: ClassVar[str] = "IfStatement"
    test: Optional[ASTNode] = None
    consequent: Optional[ASTNode] = None
    alternate: Optional[ASTNode] = None


@dataclass(eq=False)
class SwitchStatement(ASTNode):
    node_type: ClassVar[str] = "SwitchStatement"
    discriminant: Optional[ASTNode] = None
    cases: List["SwitchCase"] = field(default_factory=list)


@dataclass(eq=False)
class SwitchCase(ASTNode):
    """A case clause; `test` is None for `default:`."""
    node_type: ClassVar[str] = "SwitchCase"
    test: Optional[ASTNode] = None
    consequent: List[ASTNode] = field(default_factory=list)


@dataclass(eq=False)
class ThrowStatement(ASTNode):
    node_type: ClassVar[str] = "ThrowStatement"
    argument: Optional[ASTNode] = None


@dataclass(eq=False)
class TryStatement(ASTNode):
    node_type: ClassVar[str] = "TryStatement"
    block: Optional["BlockStatement"] = None
    handler: Optional["CatchClause"] = None
    finalizer: Optional["BlockStatement"] = None


@dataclass(eq=False)
class CatchClause(ASTNode):
    node_type: ClassVar[str] = "CatchClause"
    param: Optional["Identifier"] = None
    body: Optional["BlockStatement"] = None


@dataclass(eq=False)
class WhileStatement(ASTNode):
    node_type: ClassVar[str] = "WhileStatement"
    test: Optional[ASTNode] = None
    body: Optional[ASTNode] = None


@dataclass(eq=False)
class DoWhileStatement(ASTNode):
    node_type: ClassVar[str] = "DoWhileStatement"
    body: Optional[ASTNode] = None
    test: Optional[ASTNode] = None


@dataclass(eq=False)
class ForStatement(ASTNode):
    node_type: ClassVar[str] = "ForStatement"
    init: Optional[ASTNode] = None
    test: Optional[ASTNode] = None
    update: Optional[ASTNode] = None
    body: Optional[ASTNode] = None


@dataclass(eq=False)
class ForInStatement(ASTNode):
    node_type: ClassVar[str] = "ForInStatement"
    left: Optional[ASTNode] = None
    right: Optional[ASTNode] = None
    body: Optional[ASTNode] = None


@dataclass(eq=False)
class FunctionDeclaration(ASTNode):
    node_type: ClassVar[str] = "FunctionDeclaration"
    id: Optional["Identifier"] = None
    params: List["Identifier"] = field(default_factory=list)
    body: Optional["BlockStatement"] = None


@dataclass(eq=False)
class VariableDeclaration(ASTNode):
    node_type: ClassVar[str] = "VariableDeclaration"
    declarations: List["VariableDeclarator"] = field(default_factory=list)
    kind: str = "var"


@dataclass(eq=False)
class VariableDeclarator(ASTNode):
    node_type: ClassVar[str] = "VariableDeclarator"
    id: Optional["Identifier"] = None
    init: Optional[ASTNode] = None


# =============================================================================
# Expressions
# =============================================================================

@dataclass(eq=False)
class Identifier(ASTNode):
    node_type: ClassVar[str] = "Identifier"
    name: str = ""


@dataclass(eq=False)
class Literal(ASTNode):
    """
    A literal value.

    `raw` is the literal exactly as written. Objective-J string literals
    may carry a leading '@', which is dropped on output.
    """
    node_type: ClassVar[str] = "Literal"
    value: Any = None
    raw: str = ""


@dataclass(eq=False)
class ThisExpression(ASTNode):
    node_type: ClassVar[str] = "ThisExpression"


@dataclass(eq=False)
class ArrayExpression(ASTNode):
    """Array literal; holes are represented by None elements."""
    node_type: ClassVar[str] = "ArrayExpression"
    elements: List[Optional[ASTNode]] = field(default_factory=list)


@dataclass(eq=False)
class ObjectExpression(ASTNode):
    node_type: ClassVar[str] = "ObjectExpression"
    properties: List["Property"] = field(default_factory=list)


@dataclass(eq=False)
class Property(ASTNode):
    node_type: ClassVar[str] = "Property"
    key: Optional[ASTNode] = None
    value: Optional[ASTNode] = None
    kind: str = "init"


@dataclass(eq=False)
class FunctionExpression(ASTNode):
    node_type: ClassVar[str] = "FunctionExpression"
    id: Optional["Identifier"] = None
    params: List["Identifier"] = field(default_factory=list)
    body: Optional["BlockStatement"] = None


@dataclass(eq=False)
class SequenceExpression(ASTNode):
    node_type: ClassVar[str] = "SequenceExpression"
    expressions: List[ASTNode] = field(default_factory=list)


@dataclass(eq=False)
class UnaryExpression(ASTNode):
    node_type: ClassVar[str] = "UnaryExpression"
    operator: str = ""
    prefix: bool = True
    argument: Optional[ASTNode] = None


@dataclass(eq=False)
class UpdateExpression(ASTNode):
    node_type: ClassVar[str] = "UpdateExpression"
    operator: str = "++"
    prefix: bool = False
    argument: Optional[ASTNode] = None


@dataclass(eq=False)
class BinaryExpression(ASTNode):
    node_type: ClassVar[str] = "BinaryExpression"
    operator: str = ""
    left: Optional[ASTNode] = None
    right: Optional[ASTNode] = None


@dataclass(eq=False)
class LogicalExpression(ASTNode):
    node_type: ClassVar[str] = "LogicalExpression"
    operator: str = ""
    left: Optional[ASTNode] = None
    right: Optional[ASTNode] = None


@dataclass(eq=False)
class AssignmentExpression(ASTNode):
    node_type: ClassVar[str] = "AssignmentExpression"
    operator: str = "="
    left: Optional[ASTNode] = None
    right: Optional[ASTNode] = None


@dataclass(eq=False)
class ConditionalExpression(ASTNode):
    node_type: ClassVar[str] = "ConditionalExpression"
    test: Optional[ASTNode] = None
    consequent: Optional[ASTNode] = None
    alternate: Optional[ASTNode] = None


@dataclass(eq=False)
class CallExpression(ASTNode):
    node_type: ClassVar[str] = "CallExpression"
    callee: Optional[ASTNode] = None
    arguments: List[ASTNode] = field(default_factory=list)


@dataclass(eq=False)
class NewExpression(ASTNode):
    node_type: ClassVar[str] = "NewExpression"
    callee: Optional[ASTNode] = None
    arguments: List[ASTNode] = field(default_factory=list)


@dataclass(eq=False)
class MemberExpression(ASTNode):
    node_type: ClassVar[str] = "MemberExpression"
    object: Optional[ASTNode] = None
    property: Optional[ASTNode] = None
    computed: bool = False


# =============================================================================
# Objective-J Declarations
# =============================================================================

@dataclass
class AccessorSpec:
    """
    The attributes of an @accessors(...) clause.

    Attributes:
        property: Identifier naming the property (property=name)
        getter: Identifier naming the getter (getter=name)
        setter: Identifier naming the setter (setter=name:)
        readonly: No setter is synthesized
        readwrite: Explicit default
        copy: The setter stores a copy of the new value
    """
    property: Optional["Identifier"] = None
    getter: Optional["Identifier"] = None
    setter: Optional["Identifier"] = None
    readonly: bool = False
    readwrite: bool = False
    copy: bool = False


@dataclass(eq=False)
class ObjectiveJType(ASTNode):
    """
    A declared type such as `int`, `CPString` or `id<Delegate>`.

    Attributes:
        name: The type name
        is_class: True for class types, False for predefined POD types
        protocols: Protocols an `id` type is declared to conform to
    """
    node_type: ClassVar[str] = "objj_ObjectiveJType"
    name: str = "id"
    is_class: bool = False
    protocols: Optional[List["Identifier"]] = None


@dataclass(eq=False)
class ActionType(ASTNode):
    """The @action marker; an action method returns void by default."""
    node_type: ClassVar[str] = "objj_ActionType"


@dataclass(eq=False)
class IvarDeclaration(ASTNode):
    node_type: ClassVar[str] = "objj_IvarDeclaration"
    type: Optional[ObjectiveJType] = None
    id: Optional["Identifier"] = None
    accessors: Optional[AccessorSpec] = None
    is_outlet: bool = False


@dataclass(eq=False)
class MethodParameter(ASTNode):
    """One keyword parameter of a method: `(type)id`."""
    node_type: ClassVar[str] = "objj_MethodParameter"
    type: Optional[ObjectiveJType] = None
    id: Optional["Identifier"] = None


@dataclass(eq=False)
class MethodDeclaration(ASTNode):
    """
    A method declaration or definition.

    Attributes:
        method_type: "-" for instance methods, "+" for class methods
        action: ActionType node if declared with @action
        return_type: Declared return type, None means the default
        selectors: One Identifier per selector segment (None for a bare ':')
        params: One MethodParameter per ':' in the selector
        takes_var_args: True if the signature ends with ', ...'
        body: The method body; None inside a protocol
    """
    node_type: ClassVar[str] = "objj_MethodDeclaration"
    method_type: str = "-"
    action: Optional[ActionType] = None
    return_type: Optional[ObjectiveJType] = None
    selectors: List[Optional["Identifier"]] = field(default_factory=list)
    params: List[MethodParameter] = field(default_factory=list)
    takes_var_args: bool = False
    body: Optional[BlockStatement] = None


@dataclass(eq=False)
class ClassDeclaration(ASTNode):
    """
    An @implementation block.

    Attributes:
        name: Class name
        superclass: Superclass name, None for a root class
        category: Category name, None unless this is a category
        protocols: Protocols the class declares conformance to
        ivars: Instance variable declarations, in declaration order
        body: Method declarations and other statements
    """
    node_type: ClassVar[str] = "objj_ClassDeclaration"
    name: Optional["Identifier"] = None
    superclass: Optional["Identifier"] = None
    category: Optional["Identifier"] = None
    protocols: Optional[List["Identifier"]] = None
    ivars: List[IvarDeclaration] = field(default_factory=list)
    body: List[ASTNode] = field(default_factory=list)


@dataclass(eq=False)
class ProtocolDeclaration(ASTNode):
    node_type: ClassVar[str] = "objj_ProtocolDeclaration"
    name: Optional["Identifier"] = None
    protocols: Optional[List["Identifier"]] = None
    required: List[MethodDeclaration] = field(default_factory=list)
    optional: List[MethodDeclaration] = field(default_factory=list)


@dataclass(eq=False)
class ImportStatement(ASTNode):
    """
    An @import statement.

    Attributes:
        filename: Literal holding the imported path
        local: True for "file.j" imports, False for <Framework/file.j>
    """
    node_type: ClassVar[str] = "objj_ImportStatement"
    filename: Optional[Literal] = None
    local: bool = True

    @property
    def path(self) -> str:
        """The imported path as a string."""
        if self.filename is None:
            return ""
        return str(self.filename.value)


@dataclass(eq=False)
class ClassStatement(ASTNode):
    """@class A, B; forward declarations."""
    node_type: ClassVar[str] = "objj_ClassStatement"
    ids: List["Identifier"] = field(default_factory=list)


@dataclass(eq=False)
class GlobalStatement(ASTNode):
    node_type: ClassVar[str] = "objj_GlobalStatement"
    ids: List["Identifier"] = field(default_factory=list)


@dataclass(eq=False)
class TypeDefStatement(ASTNode):
    node_type: ClassVar[str] = "objj_TypeDefStatement"
    ids: List["Identifier"] = field(default_factory=list)


# =============================================================================
# Objective-J Expressions
# =============================================================================

@dataclass(eq=False)
class Super(ASTNode):
    """The `super` receiver of a message send."""
    node_type: ClassVar[str] = "Super"


@dataclass(eq=False)
class MessageSendExpression(ASTNode):
    """
    A message send: [receiver selector:arg ...].

    Attributes:
        receiver: Receiver expression, or Super
        selectors: One Identifier per selector segment (None for a bare ':')
        args: Keyword arguments, one per ':'
        var_args: Extra comma separated arguments, or None
    """
    node_type: ClassVar[str] = "objj_MessageSendExpression"
    receiver: Optional[ASTNode] = None
    selectors: List[Optional["Identifier"]] = field(default_factory=list)
    args: List[ASTNode] = field(default_factory=list)
    var_args: Optional[List[ASTNode]] = None


@dataclass(eq=False)
class ArrayLiteral(ASTNode):
    node_type: ClassVar[str] = "objj_ArrayLiteral"
    elements: List[ASTNode] = field(default_factory=list)


@dataclass(eq=False)
class DictionaryLiteral(ASTNode):
    node_type: ClassVar[str] = "objj_DictionaryLiteral"
    keys: List[ASTNode] = field(default_factory=list)
    values: List[ASTNode] = field(default_factory=list)


@dataclass(eq=False)
class SelectorLiteralExpression(ASTNode):
    node_type: ClassVar[str] = "objj_SelectorLiteralExpression"
    selector: str = ""


@dataclass(eq=False)
class ProtocolLiteralExpression(ASTNode):
    node_type: ClassVar[str] = "objj_ProtocolLiteralExpression"
    protocol: Optional["Identifier"] = None


@dataclass(eq=False)
class Reference(ASTNode):
    """@ref(identifier)"""
    node_type: ClassVar[str] = "objj_Reference"
    ref: Optional["Identifier"] = None


@dataclass(eq=False)
class Dereference(ASTNode):
    """@deref(expression)"""
    node_type: ClassVar[str] = "objj_Dereference"
    ref: Optional[ASTNode] = None


# =============================================================================
# Synthetic Wrappers
# =============================================================================

@dataclass(eq=False)
class ElseStatement(ASTNode):
    """Wraps the statement of an `else` branch so it has its own parent."""
    node_type: ClassVar[str] = "ElseStatement"
    statement: Optional[ASTNode] = None


@dataclass(eq=False)
class CaseStatement(ASTNode):
    """Wraps one statement of a case clause so it has its own parent."""
    node_type: ClassVar[str] = "CaseStatement"
    statement: Optional[ASTNode] = None


# =============================================================================
# Tree Utilities
# =============================================================================

def iter_child_nodes(node: ASTNode) -> Iterator[ASTNode]:
    """
    Yield the direct child nodes of a node, in field order.

    Accessor specs are not nodes, but the identifiers inside them are
    yielded so that generic walks see every identifier in the tree.
    """
    for f in fields(node):
        if f.name in ("location", "start", "end"):
            continue
        value = getattr(node, f.name)
        if isinstance(value, ASTNode):
            yield value
        elif isinstance(value, AccessorSpec):
            for ident in (value.property, value.getter, value.setter):
                if ident is not None:
                    yield ident
        elif isinstance(value, list):
            for item in value:
                if isinstance(item, ASTNode):
                    yield item


class ASTVisitor:
    """
    Base class for AST visitors.

    Provides a visitor pattern for traversing the AST. Subclasses
    override visit_* methods for the node classes they care about; extra
    positional arguments given to visit() are passed through.

    Usage:
        class ImportLister(ASTVisitor):
            def visit_ImportStatement(self, node):
                print(node.path)

        ImportLister().visit(program)
    """

    def visit(self, node: ASTNode, *args) -> Any:
        """
        Visit a node by dispatching to the appropriate method.

        Args:
            node: The AST node to visit
            *args: Extra arguments for the visit method

        Returns:
            The result of the visit method (varies by node type)
        """
        method_name = f"visit_{node.__class__.__name__}"
        visitor = getattr(self, method_name, self.generic_visit)
        return visitor(node, *args)

    def generic_visit(self, node: ASTNode, *args) -> None:
        """
        Default visit method for unhandled node types.

        Visits all children of the node.
        """
        for child in iter_child_nodes(node):
            self.visit(child, *args)


# =============================================================================
# ESTree JSON Loader
# =============================================================================

NODE_CLASSES: dict[str, type] = {
    cls.node_type: cls
    for cls in (
        Program, BlockStatement, ExpressionStatement, EmptyStatement,
        DebuggerStatement, WithStatement, ReturnStatement, LabeledStatement,
        BreakStatement, ContinueStatement, IfStatement, SwitchStatement,
        SwitchCase, ThrowStatement, TryStatement, CatchClause, WhileStatement,
        DoWhileStatement, ForStatement, ForInStatement, FunctionDeclaration,
        VariableDeclaration, VariableDeclarator, Identifier, Literal,
        ThisExpression, ArrayExpression, ObjectExpression, Property,
        FunctionExpression, SequenceExpression, UnaryExpression,
        UpdateExpression, BinaryExpression, LogicalExpression,
        AssignmentExpression, ConditionalExpression, CallExpression,
        NewExpression, MemberExpression, ObjectiveJType, ActionType,
        IvarDeclaration, MethodParameter, MethodDeclaration, ClassDeclaration,
        ProtocolDeclaration, ImportStatement, ClassStatement, GlobalStatement,
        TypeDefStatement, Super, MessageSendExpression, ArrayLiteral,
        DictionaryLiteral, SelectorLiteralExpression, ProtocolLiteralExpression,
        Reference, Dereference,
    )
}

# acorn-objj emits some objj children as plain objects without a "type"
_UNTYPED_CHILDREN = {
    "params": MethodParameter,
}

_CAMEL_RE = re.compile(r"_([a-z])")


def _camel_case(name: str) -> str:
    return _CAMEL_RE.sub(lambda m: m.group(1).upper(), name)


def _location_of(data: dict, filename: str) -> Optional[SourceLocation]:
    loc = data.get("loc")
    if not loc or "start" not in loc:
        return None
    start = loc["start"]
    return SourceLocation(
        loc.get("source") or data.get("sourceFile") or filename,
        int(start.get("line", 1)),
        int(start.get("column", 0)) + 1,
    )


def _convert_accessors(data: Any, filename: str) -> Optional[AccessorSpec]:
    if not data:
        return None
    if not isinstance(data, dict):
        raise ASTError("@accessors must be an object")
    spec = AccessorSpec()
    for key in ("property", "getter", "setter"):
        if data.get(key):
            spec_value = node_from_dict(data[key], filename)
            setattr(spec, key, spec_value)
    spec.readonly = bool(data.get("readonly"))
    spec.readwrite = bool(data.get("readwrite"))
    spec.copy = bool(data.get("copy"))
    return spec


def _convert_value(value: Any, field_name: str, filename: str) -> Any:
    if isinstance(value, dict):
        if isinstance(value.get("type"), str):
            return node_from_dict(value, filename)
        untyped = _UNTYPED_CHILDREN.get(field_name)
        if untyped is not None:
            # {type: <ObjectiveJType>, id: <Identifier>}: "type" is a child here
            return untyped(**{
                key: _convert_value(child, key, filename)
                for key, child in value.items()
                if key in ("type", "id") and child is not None
            }, location=_location_of(value, filename))
        raise ASTError(f"untyped object in field '{field_name}'")
    if isinstance(value, list):
        return [_convert_value(item, field_name, filename) if item is not None else None
                for item in value]
    return value


def node_from_dict(data: dict, filename: str = "<input>") -> ASTNode:
    """
    Convert one ESTree node (a JSON object) into an ASTNode.

    Objective-J specific attributes are looked up in the node's "objj"
    sub-object first (acorn-objj layout), then on the node itself, using
    camelCase keys (e.g. `methodType` for `method_type`).

    Args:
        data: The node as decoded from JSON
        filename: Source file name used for locations

    Returns:
        The converted node

    Raises:
        ASTError: If the node type is unknown or the data is not a node
    """
    if not isinstance(data, dict) or "type" not in data:
        raise ASTError("expected an AST node object")

    node_type = data["type"]
    cls = NODE_CLASSES.get(node_type)
    if cls is None:
        raise ASTError(f"unknown AST node type '{node_type}'", node_type)

    objj = data.get("objj") or {}
    kwargs: dict[str, Any] = {
        "location": _location_of(data, filename),
        "start": int(data.get("start", 0)),
        "end": int(data.get("end", 0)),
    }

    for f in fields(cls):
        if f.name in kwargs:
            continue
        key = _camel_case(f.name)
        if key in objj:
            raw = objj[key]
        elif f.name == "type":
            # data["type"] is the node type itself
            continue
        elif key in data:
            raw = data[key]
        elif f.name in data:
            raw = data[f.name]
        else:
            continue

        if f.name == "accessors":
            kwargs[f.name] = _convert_accessors(raw, filename)
        else:
            kwargs[f.name] = _convert_value(raw, f.name, filename)

    return cls(**kwargs)


def load_ast(data: Any, filename: str = "<input>") -> Program:
    """
    Load a Program from parsed JSON data or JSON text.

    Args:
        data: A dict (decoded JSON), or a JSON string
        filename: Source file name used for locations

    Returns:
        The Program node

    Raises:
        ASTError: If the JSON is invalid or the root is not a Program
    """
    if isinstance(data, (str, bytes)):
        try:
            data = json.loads(data)
        except json.JSONDecodeError as e:
            raise ASTError(f"invalid AST JSON: {e}") from e

    node = node_from_dict(data, filename)
    if not isinstance(node, Program):
        raise ASTError(f"expected a Program node, got '{node.node_type}'", node.node_type)
    return node
