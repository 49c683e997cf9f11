"""
AST Builder
===========

Shorthand constructors for Objective-J ASTs, for tools and tests that
need a program without running a parser.

    from objj_sdk.objj import builder as b

    program = b.program(
        b.class_decl("Foo", "CPObject", ivars=[b.ivar("x", "int", accessors=b.accessors())]),
    )

Every constructor accepts `at=(line, column)` to give the node a source
location in the file named by `filename` (default "test.j"). Strings are
turned into Identifier nodes wherever an identifier is expected.
"""

from typing import Iterable, List, Optional, Sequence, Tuple, Union

from objj_sdk.errors import SourceLocation
from objj_sdk.objj import ast

Position = Optional[Tuple[int, int]]
Name = Union[str, ast.Identifier, None]

DEFAULT_FILENAME = "test.j"


def location(line: int, column: int = 1, filename: str = DEFAULT_FILENAME) -> SourceLocation:
    return SourceLocation(filename, line, column)


def _node(cls, at: Position, source_file: str = DEFAULT_FILENAME, **fields):
    loc = location(at[0], at[1], source_file) if at else None
    return cls(location=loc, **fields)


def ident(name: Name, at: Position = None) -> Optional[ast.Identifier]:
    if name is None or isinstance(name, ast.Identifier):
        return name
    return _node(ast.Identifier, at, name=name)


def _idents(names: Iterable[Name]) -> List[ast.Identifier]:
    return [ident(name) for name in names]


# =============================================================================
# Statements
# =============================================================================

def program(*body: ast.ASTNode) -> ast.Program:
    return ast.Program(body=list(body))


def block(*body: ast.ASTNode, at: Position = None) -> ast.BlockStatement:
    return _node(ast.BlockStatement, at, body=list(body))


def stmt(expression: ast.ASTNode, at: Position = None) -> ast.ExpressionStatement:
    return _node(ast.ExpressionStatement, at, expression=expression)


def var(*declarations, at: Position = None) -> ast.VariableDeclaration:
    """
    A var statement.

    Each declaration is a name, or a (name, init) pair.
    """
    declarators = []
    for declaration in declarations:
        if isinstance(declaration, tuple):
            name, init = declaration
        else:
            name, init = declaration, None
        identifier = ident(name)
        declarators.append(ast.VariableDeclarator(location=identifier.location, id=identifier, init=init))
    return _node(ast.VariableDeclaration, at, declarations=declarators)


def ret(argument: Optional[ast.ASTNode] = None, at: Position = None) -> ast.ReturnStatement:
    return _node(ast.ReturnStatement, at, argument=argument)


def if_stmt(test, consequent, alternate=None, at: Position = None) -> ast.IfStatement:
    return _node(ast.IfStatement, at, test=test, consequent=consequent, alternate=alternate)


def while_stmt(test, body, at: Position = None) -> ast.WhileStatement:
    return _node(ast.WhileStatement, at, test=test, body=body)


def for_stmt(init, test, update, body, at: Position = None) -> ast.ForStatement:
    return _node(ast.ForStatement, at, init=init, test=test, update=update, body=body)


def debugger(at: Position = None) -> ast.DebuggerStatement:
    return _node(ast.DebuggerStatement, at)


def func_decl(name: Name, params: Sequence[Name] = (), body: Sequence[ast.ASTNode] = (),
              at: Position = None) -> ast.FunctionDeclaration:
    return _node(ast.FunctionDeclaration, at, id=ident(name), params=_idents(params), body=block(*body))


# =============================================================================
# Expressions
# =============================================================================

def lit(value, raw: Optional[str] = None, at: Position = None) -> ast.Literal:
    return _node(ast.Literal, at, value=value, raw=raw or "")


def string(value: str, at: Position = None) -> ast.Literal:
    """An Objective-J string literal, @"value"."""
    return lit(value, raw=f'@"{value}"', at=at)


def this(at: Position = None) -> ast.ThisExpression:
    return _node(ast.ThisExpression, at)


def assign(left, right, operator: str = "=", at: Position = None) -> ast.AssignmentExpression:
    if isinstance(left, str):
        left = ident(left)
    return _node(ast.AssignmentExpression, at, operator=operator, left=left, right=right)


def binary(operator: str, left, right, at: Position = None) -> ast.BinaryExpression:
    return _node(ast.BinaryExpression, at, operator=operator, left=left, right=right)


def logical(operator: str, left, right, at: Position = None) -> ast.LogicalExpression:
    return _node(ast.LogicalExpression, at, operator=operator, left=left, right=right)


def unary(operator: str, argument, at: Position = None) -> ast.UnaryExpression:
    return _node(ast.UnaryExpression, at, operator=operator, argument=argument)


def update(operator: str, argument, prefix: bool = False, at: Position = None) -> ast.UpdateExpression:
    return _node(ast.UpdateExpression, at, operator=operator, argument=argument, prefix=prefix)


def call(callee, *arguments, at: Position = None) -> ast.CallExpression:
    if isinstance(callee, str):
        callee = ident(callee)
    return _node(ast.CallExpression, at, callee=callee, arguments=list(arguments))


def member(obj, prop, computed: bool = False, at: Position = None) -> ast.MemberExpression:
    if isinstance(obj, str):
        obj = ident(obj)
    if isinstance(prop, str) and not computed:
        prop = ident(prop)
    return _node(ast.MemberExpression, at, object=obj, property=prop, computed=computed)


def func_expr(params: Sequence[Name] = (), body: Sequence[ast.ASTNode] = (), name: Name = None,
              at: Position = None) -> ast.FunctionExpression:
    return _node(ast.FunctionExpression, at, id=ident(name), params=_idents(params), body=block(*body))


def obj(*properties: Tuple[Name, ast.ASTNode], at: Position = None) -> ast.ObjectExpression:
    return _node(ast.ObjectExpression, at, properties=[
        ast.Property(key=ident(key), value=value) for key, value in properties
    ])


def array(*elements, at: Position = None) -> ast.ArrayExpression:
    return _node(ast.ArrayExpression, at, elements=list(elements))


# =============================================================================
# Objective-J
# =============================================================================

def objj_type(name: str = "id", is_class: Optional[bool] = None, protocols: Sequence[Name] = (),
              at: Position = None) -> ast.ObjectiveJType:
    """A declared type; names starting with an uppercase letter are class types."""
    if is_class is None:
        is_class = name[:1].isupper()
    return _node(ast.ObjectiveJType, at, name=name, is_class=is_class,
                 protocols=_idents(protocols) or None)


def accessors(property: Name = None, getter: Name = None, setter: Name = None,
              readonly: bool = False, copy: bool = False) -> ast.AccessorSpec:
    return ast.AccessorSpec(
        property=ident(property),
        getter=ident(getter),
        setter=ident(setter),
        readonly=readonly,
        copy=copy,
    )


def ivar(name: Name, type_name: str = "id", accessors: Optional[ast.AccessorSpec] = None,
         is_outlet: bool = False, at: Position = None) -> ast.IvarDeclaration:
    identifier = ident(name, at)
    return _node(ast.IvarDeclaration, at, type=objj_type(type_name), id=identifier,
                 accessors=accessors, is_outlet=is_outlet)


def method(selector: str, params: Sequence[Union[str, Tuple[str, str]]] = (),
           body: Optional[Sequence[ast.ASTNode]] = (), method_type: str = "-",
           return_type: Optional[str] = None, action: bool = False,
           at: Position = None) -> ast.MethodDeclaration:
    """
    A method declaration.

    Args:
        selector: e.g. "init" or "setX:y:"
        params: One name (or (type, name) pair) per colon
        body: Statements; None for a protocol method without a body
        return_type: Declared return type, None for the default
    """
    parts = selector.split(":")
    selectors = [ident(part) if part else None for part in parts[:-1]] if ":" in selector else [ident(selector)]

    method_params = []
    for param in params:
        type_name, name = param if isinstance(param, tuple) else (None, param)
        identifier = ident(name)
        method_params.append(ast.MethodParameter(
            location=identifier.location,
            type=objj_type(type_name) if type_name else None,
            id=identifier,
        ))

    return _node(
        ast.MethodDeclaration,
        at,
        method_type=method_type,
        action=ast.ActionType() if action else None,
        return_type=objj_type(return_type) if return_type else None,
        selectors=selectors,
        params=method_params,
        body=block(*body) if body is not None else None,
    )


def class_decl(name: Name, superclass: Name = None, *, category: Name = None,
               protocols: Sequence[Name] = (), ivars: Sequence[ast.IvarDeclaration] = (),
               body: Sequence[ast.ASTNode] = (), at: Position = None) -> ast.ClassDeclaration:
    return _node(
        ast.ClassDeclaration,
        at,
        name=ident(name),
        superclass=ident(superclass),
        category=ident(category),
        protocols=_idents(protocols) or None,
        ivars=list(ivars),
        body=list(body),
    )


def protocol_decl(name: Name, protocols: Sequence[Name] = (),
                  required: Sequence[ast.MethodDeclaration] = (),
                  optional: Sequence[ast.MethodDeclaration] = (),
                  at: Position = None) -> ast.ProtocolDeclaration:
    return _node(
        ast.ProtocolDeclaration,
        at,
        name=ident(name),
        protocols=_idents(protocols) or None,
        required=list(required),
        optional=list(optional),
    )


def send(receiver, selector: str, *args, var_args: Optional[Sequence[ast.ASTNode]] = None,
         at: Position = None) -> ast.MessageSendExpression:
    """
    A message send; a string receiver becomes an identifier, "super" the
    super receiver.
    """
    if receiver == "super":
        receiver = ast.Super()
    elif isinstance(receiver, str):
        receiver = ident(receiver)

    if ":" in selector:
        selectors = [ident(part) if part else None for part in selector.split(":")[:-1]]
    else:
        selectors = [ident(selector)]

    return _node(ast.MessageSendExpression, at, receiver=receiver, selectors=selectors,
                 args=list(args), var_args=list(var_args) if var_args is not None else None)


def import_stmt(path: str, local: bool = True, at: Position = None) -> ast.ImportStatement:
    return _node(ast.ImportStatement, at, filename=lit(path, raw=f'"{path}"'), local=local)


def class_stmt(*names: Name, at: Position = None) -> ast.ClassStatement:
    return _node(ast.ClassStatement, at, ids=_idents(names))


def global_stmt(*names: Name, at: Position = None) -> ast.GlobalStatement:
    return _node(ast.GlobalStatement, at, ids=_idents(names))


def typedef_stmt(*names: Name, at: Position = None) -> ast.TypeDefStatement:
    return _node(ast.TypeDefStatement, at, ids=_idents(names))


def array_literal(*elements, at: Position = None) -> ast.ArrayLiteral:
    return _node(ast.ArrayLiteral, at, elements=list(elements))


def dictionary_literal(*items: Tuple[ast.ASTNode, ast.ASTNode], at: Position = None) -> ast.DictionaryLiteral:
    return _node(ast.DictionaryLiteral, at, keys=[k for k, _ in items], values=[v for _, v in items])


def selector_literal(selector: str, at: Position = None) -> ast.SelectorLiteralExpression:
    return _node(ast.SelectorLiteralExpression, at, selector=selector)


def protocol_literal(name: Name, at: Position = None) -> ast.ProtocolLiteralExpression:
    return _node(ast.ProtocolLiteralExpression, at, protocol=ident(name))


def ref(name: Name, at: Position = None) -> ast.Reference:
    return _node(ast.Reference, at, ref=ident(name))


def deref(expression, at: Position = None) -> ast.Dereference:
    if isinstance(expression, str):
        expression = ident(expression)
    return _node(ast.Dereference, at, ref=expression)
