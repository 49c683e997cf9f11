"""
Objective-J Code Generator
==========================

This module turns an Objective-J AST into JavaScript that runs on top of
the Objective-J runtime (objj_msgSend, class_addMethods, ...). It is the
heart of the compiler: every node handler emits its code, declares the
bindings it introduces and runs the semantic checks that apply to it.

Walk
----
compile_node() is the only way a node is compiled. It

1. pushes the node on the type stack and the node ancestry,
2. emits the "before" format value of the node's type,
3. dispatches to visit_<ClassName>,
4. emits the "after" format value and pops the node again.

A node may be compiled under an override type. The override changes the
format rules and the ancestry entry, and for two overrides the handler:

    ElseIfStatement   an `if` in the alternate branch of an `if`
    Lambda            the body of a one line function in an object literal

Output Redirection
------------------
Method bodies are compiled into separate instance and class method
buffers, which are spliced into the main buffer once the class body is
complete, so that all methods end up in one class_addMethods() call. A
message send receiver is compiled into a scratch buffer, because its text
is needed twice (nil check and call).

Message Sends
-------------
    [receiver sel:arg]

compiles to one of

    receiver.isa.objj_msgSend1(receiver, "sel:", arg)
    (receiver == null ? null : receiver.isa.objj_msgSend1(receiver, "sel:", arg))
    ((___r1 = expr), ___r1 == null ? null : ___r1.isa.objj_msgSend1(___r1, "sel:", arg))

A plain identifier receiver is used as is. Class names are never nil,
and `self` only once it may have been reassigned. Any other receiver is
evaluated once into a receiver temp (___rN). The temps are declared at
the end of the function, method or file that uses them.
"""

import json
import logging
from contextlib import contextmanager
from typing import Iterator, List, Optional

from objj_sdk.errors import ASTError
from objj_sdk.objj.ast import (
    ASTNode,
    ASTVisitor,
    BlockStatement,
    CaseStatement,
    ClassDeclaration,
    Dereference,
    ElseStatement,
    FunctionDeclaration,
    Identifier,
    IfStatement,
    IvarDeclaration,
    MethodDeclaration,
    Program,
    ProtocolDeclaration,
    Super,
)
from objj_sdk.objj.buffer import RECEIVER_TEMP_VAR, FormatContext, SourceMapBuffer, StringBuffer
from objj_sdk.objj.diagnostics import Diagnostics
from objj_sdk.objj.errors import InvalidSuperError, MalformedDeclarationError, UnknownSuperclassError
from objj_sdk.objj.formats import Format
from objj_sdk.objj.globals import IMPLICIT_METHOD_PARAMETERS, RESERVED_WORDS
from objj_sdk.objj.indentation import Indenter
from objj_sdk.objj.language import (
    ClassDef,
    IvarDef,
    MethodDef,
    MethodType,
    ProtocolDef,
    SymbolTables,
    TypeDef,
)
from objj_sdk.objj.precedence import subnode_has_precedence
from objj_sdk.objj.scope import NodeAncestry, Scope, ScopeType, Variable, VarKind
from objj_sdk.objj.semantics import (
    SemanticChecker,
    accessor_attributes,
    getter_selector,
    setter_selector,
)

logger = logging.getLogger(__name__)

WORD_PREFIX_OPERATORS = frozenset({"delete", "in", "instanceof", "new", "typeof", "void"})

# override type -> handler
_OVERRIDE_HANDLERS = {
    "ElseIfStatement": "visit_IfStatement",
    "Lambda": "visit_BlockStatement",
}

# Arguments beyond this count use the generic objj_msgSend
_MAX_NUMBERED_MSG_SEND = 3


def _selector_from_parts(first: Optional[Identifier], parts: List[Optional[Identifier]], count: int) -> str:
    """Assemble a selector from its segments; `count` is the number of colons."""
    selector = first.name if first is not None else ""
    for i in range(count):
        if i == 0:
            selector += ":"
        else:
            part = parts[i] if i < len(parts) else None
            selector += (part.name if part is not None else "") + ":"
    return selector


def _method_function_name(class_name: Optional[str], selector: str) -> str:
    return f"${class_name}__{selector.replace(':', '_')}"


# =============================================================================
# Code Generator
# =============================================================================

class CodeGenerator(ASTVisitor):
    """
    Generates JavaScript from an Objective-J AST.

    One generator compiles one unit. Classes, protocols and typedefs are
    registered in the symbol tables handed in, so several generators can
    share what earlier units declared.

    Attributes:
        options: CompilerOptions of the compilation
        symbols: Shared symbol tables
        diagnostics: Issue collector of this unit
        buffer: The buffer output currently goes to
        source: Original source text, for comments; may be None
    """

    def __init__(
        self,
        options,
        symbols: SymbolTables,
        diagnostics: Diagnostics,
        format: Format,
        predefined,
        source: Optional[str] = None,
    ):
        self.options = options
        self.symbols = symbols
        self.diagnostics = diagnostics
        self.format = format
        self.source = source

        indent_string = format.get_global("indent-string")
        indent_width = format.get_global("indent-width")
        self.indenter = Indenter(
            indent_string if indent_string is not None else options.indent_string,
            indent_width if indent_width is not None else options.indent_width,
        )
        self.ancestry = NodeAncestry()
        self.context = FormatContext(format, self.indenter, self.ancestry)

        buffer_class = SourceMapBuffer if options.source_map else StringBuffer
        self.buffer: StringBuffer = buffer_class(self.context)
        self.output = self.buffer

        self.checker = SemanticChecker(symbols, diagnostics, predefined, self.ancestry)

        # Node types being compiled, innermost last
        self._types: List[str] = []

        # Method buffers of the class or protocol being compiled
        self._instance_methods: Optional[StringBuffer] = None
        self._class_methods: Optional[StringBuffer] = None

        # Nesting depth of message sends
        self._message_depth = 0

    def generate(self, program: Program) -> str:
        """
        Compile a program.

        Returns:
            The generated code

        Raises:
            CompileAbortedError: On a fatal error; the output is incomplete
        """
        root = Scope(ScopeType.GLOBAL)
        self.compile_node(program, root)
        self._close_var_scope(root)
        self.diagnostics.finalize_deferred(root)
        return str(self.output)

    @property
    def current_type(self) -> Optional[str]:
        """Format type of the node being compiled."""
        return self._types[-1] if self._types else None

    # =========================================================================
    # Walk
    # =========================================================================

    def compile_node(
        self,
        node: ASTNode,
        scope: Scope,
        override: Optional[str] = None,
        var_scope: bool = False,
    ) -> None:
        """
        Compile one node with its formatting.

        Args:
            node: Node to compile
            scope: Current frame
            override: Type to compile the node as, e.g. "ElseIfStatement"
            var_scope: The node is a block that closes a var scope, so
                receiver temps are declared before its closing brace
        """
        node_type = override or node.node_type

        self._types.append(node_type)
        self.ancestry.push(node, node_type)
        self.buffer.concat_format(node_type, "before")

        if var_scope:
            self.visit_BlockStatement(node, scope, var_scope=True)
        elif override in _OVERRIDE_HANDLERS:
            getattr(self, _OVERRIDE_HANDLERS[override])(node, scope)
        else:
            self.visit(node, scope)

        self.buffer.concat_format(node_type, "after")
        self.ancestry.pop(node_type)
        self._types.pop()

    def generic_visit(self, node: ASTNode, *args) -> None:
        raise ASTError(f"cannot compile a {node.node_type} node here", node_type=node.node_type)

    @contextmanager
    def _redirect(self, buffer: StringBuffer) -> Iterator[StringBuffer]:
        """Send output to another buffer for the duration of the block."""
        saved = self.buffer
        self.buffer = buffer
        try:
            yield buffer
        finally:
            self.buffer = saved

    def _compile_dependent(self, node: ASTNode, scope: Scope) -> None:
        """Compile the body of a control statement; single statements are indented."""
        single = not isinstance(node, BlockStatement)
        if single:
            self.indenter.indent()
        self.compile_node(node, scope)
        if single:
            self.indenter.dedent()

    def _compile_parenthesized(self, node_type: str, scope: Scope, node: ASTNode) -> None:
        self.buffer.concat_left_parens(node_type)
        self.compile_node(node, scope)
        self.buffer.concat_right_parens(node_type)

    def _compile_precedence(self, node: ASTNode, subnode: ASTNode, scope: Scope, right: bool = False) -> None:
        if subnode_has_precedence(node, subnode, right):
            self._compile_parenthesized(subnode.node_type, scope, subnode)
        else:
            self.compile_node(subnode, scope)

    def _close_var_scope(self, scope: Scope) -> None:
        """Declare the receiver temps a var scope used."""
        if not scope.max_receiver_level:
            return

        self.buffer.concat(self.indenter.indent_text("\n\n// Generated receiver temp variables\nvar "))
        self.buffer.concat(", ".join(
            f"{RECEIVER_TEMP_VAR}{level}" for level in range(1, scope.max_receiver_level + 1)
        ))
        self.buffer.concat(";")

    def _source_text(self, node: ASTNode) -> Optional[str]:
        if self.source is None or node.end <= node.start:
            return None
        return self.source[node.start:node.end]

    def _concat_source_comment(self, node: ASTNode) -> None:
        text = self._source_text(node)
        if text is not None:
            self.buffer.concat(f"/* {text} */ ", node)

    # =========================================================================
    # Program and Blocks
    # =========================================================================

    def visit_Program(self, node: Program, scope: Scope) -> None:
        if self.options.objj_scope:
            # the file is wrapped in a function that gives it its own var scope
            file_scope = Scope(ScopeType.FILE, scope)
            self.buffer.concat("(function()")

            self._types.append("BlockStatement")
            self.ancestry.push(node, "BlockStatement")
            self.visit_BlockStatement(node, file_scope, var_scope=True)
            self.ancestry.pop("BlockStatement")
            self._types.pop()

            self.buffer.concat(")();")
            self.diagnostics.filter_identifier_issues(file_scope)
        else:
            for statement in node.body:
                self.compile_node(statement, scope)

        self.diagnostics.filter_identifier_issues(scope)

    def visit_BlockStatement(self, node: BlockStatement, scope: Scope, var_scope: bool = False) -> None:
        node_type = self.current_type
        self.buffer.concat_with_format(node_type, "{", "left-brace")

        for statement in node.body:
            self.compile_node(statement, scope)

        if var_scope:
            self._close_var_scope(scope)

        self.buffer.concat_with_format(node_type, "}", "right-brace")

    def visit_ExpressionStatement(self, node, scope: Scope) -> None:
        self.compile_node(node.expression, scope)

    def visit_EmptyStatement(self, node, scope: Scope) -> None:
        self.buffer.concat(";", node)

    # =========================================================================
    # Statements
    # =========================================================================

    def visit_IfStatement(self, node: IfStatement, scope: Scope) -> None:
        node_type = self.current_type
        buffer = self.buffer

        buffer.concat("if", node)
        self._compile_parenthesized(node_type, scope, node.test)
        self._compile_dependent(node.consequent, scope)

        alternate = node.alternate
        if alternate is None:
            return

        buffer.concat_with_format(node_type, "else")

        if isinstance(alternate, IfStatement):
            self.compile_node(alternate, scope, override="ElseIfStatement")
        else:
            self.compile_node(ElseStatement(statement=alternate, location=alternate.location), scope)

    def visit_ElseStatement(self, node: ElseStatement, scope: Scope) -> None:
        self._compile_dependent(node.statement, scope)

    def visit_LabeledStatement(self, node, scope: Scope) -> None:
        self.buffer.concat(node.label.name, node.label)
        self.buffer.concat_with_format(self.current_type, ":", "colon")
        self.compile_node(node.body, scope)

    def _jump_statement(self, node, keyword: str) -> None:
        if node.label is not None:
            self.buffer.concat_with_formats(self.current_type, None, keyword, "before-label", node)
            self.buffer.concat(node.label.name, node.label)
        else:
            self.buffer.concat(keyword, node)

    def visit_BreakStatement(self, node, scope: Scope) -> None:
        self._jump_statement(node, "break")

    def visit_ContinueStatement(self, node, scope: Scope) -> None:
        self._jump_statement(node, "continue")

    def visit_WithStatement(self, node, scope: Scope) -> None:
        self.buffer.concat("with", node)
        self._compile_parenthesized(self.current_type, scope, node.object)
        self._compile_dependent(node.body, scope)

    def visit_SwitchStatement(self, node, scope: Scope) -> None:
        node_type = self.current_type
        buffer = self.buffer

        buffer.concat("switch", node)
        self._compile_parenthesized(node_type, scope, node.discriminant)
        buffer.concat_with_format(node_type, "{", "left-brace")

        last = len(node.cases) - 1
        for i, case in enumerate(node.cases):
            if case.test is not None:
                buffer.concat_with_formats(node_type, "before-case", "case ", map_node=case)
                self.compile_node(case.test, scope)
            else:
                buffer.concat_with_formats(node_type, "before-case", "default", map_node=case)
            buffer.concat_with_format(node_type, ":", "colon")

            if case.consequent:
                self.indenter.indent()
                for statement in case.consequent:
                    self.compile_node(CaseStatement(statement=statement, location=statement.location), scope)
                self.indenter.dedent()

                if i < last:
                    buffer.concat_format(node_type, "between-case-blocks")

        buffer.concat_with_format(node_type, "}", "right-brace")

    def visit_CaseStatement(self, node: CaseStatement, scope: Scope) -> None:
        self.compile_node(node.statement, scope)

    def visit_ReturnStatement(self, node, scope: Scope) -> None:
        self.buffer.concat("return" + (" " if node.argument is not None else ""), node)
        if node.argument is not None:
            self.compile_node(node.argument, scope)

    def visit_ThrowStatement(self, node, scope: Scope) -> None:
        self.buffer.concat("throw ", node)
        self.compile_node(node.argument, scope)

    def visit_TryStatement(self, node, scope: Scope) -> None:
        node_type = self.current_type
        buffer = self.buffer

        buffer.concat("try", node)
        self.compile_node(node.block, scope)

        handler = node.handler
        if handler is not None:
            param = handler.param
            name = param.name

            # the catch parameter is only visible in the handler
            hidden = scope.local_var(name)
            scope.declare(name, Variable(VarKind.LOCAL_VAR, param))

            buffer.concat_with_formats(node_type, "before-catch", "catch", map_node=handler)
            buffer.concat_left_parens(node_type)
            buffer.concat(name, param)
            buffer.concat_right_parens(node_type)
            self.compile_node(handler.body, scope)

            if hidden is not None:
                scope.declare(name, hidden)
            else:
                scope.undeclare(name)

        if node.finalizer is not None:
            buffer.concat_with_formats(node_type, "before-finally", "finally")
            self.compile_node(node.finalizer, scope)

    def visit_WhileStatement(self, node, scope: Scope) -> None:
        self.buffer.concat("while", node)
        self._compile_parenthesized(self.current_type, scope, node.test)
        self._compile_dependent(node.body, scope)

    def visit_DoWhileStatement(self, node, scope: Scope) -> None:
        node_type = self.current_type
        self.buffer.concat("do", node)
        self._compile_dependent(node.body, scope)
        self.buffer.concat_with_format(node_type, "while", "do-while")
        self._compile_parenthesized(node_type, scope, node.test)

    def visit_ForStatement(self, node, scope: Scope) -> None:
        node_type = self.current_type
        buffer = self.buffer

        buffer.concat("for", node)
        buffer.concat_left_parens(node_type)

        if node.init is not None:
            self.compile_node(node.init, scope)
        buffer.concat_with_formats(node_type, "after-init-expression", ";", "after-init-semicolon")

        if node.test is not None:
            self.compile_node(node.test, scope)
        buffer.concat_with_formats(node_type, "after-init-expression", ";", "after-init-semicolon")

        if node.update is not None:
            self.compile_node(node.update, scope)

        buffer.concat_right_parens(node_type)
        self._compile_dependent(node.body, scope)

    def visit_ForInStatement(self, node, scope: Scope) -> None:
        node_type = self.current_type
        buffer = self.buffer

        buffer.concat("for", node)
        buffer.concat_left_parens(node_type)
        self.compile_node(node.left, scope)
        buffer.concat_with_format(node_type, "in")
        self.compile_node(node.right, scope)
        buffer.concat_right_parens(node_type)
        self._compile_dependent(node.body, scope)

    def visit_DebuggerStatement(self, node, scope: Scope) -> None:
        self.buffer.concat("debugger", node)
        if self.diagnostics.should_warn_about("debugger"):
            self.diagnostics.warning(node, "debugger statement")

    # =========================================================================
    # Functions and Variables
    # =========================================================================

    def _compile_function(self, node, scope: Scope) -> None:
        """
        Compile a function declaration or expression.

        With objj_scope on, a function declared outside any function is
        emitted as an assignment to a global, since the file's code runs
        inside a wrapper function:

            name = function name(a, b)
            {
            };
        """
        node_type = self.current_type
        buffer = self.buffer
        is_declaration = isinstance(node, FunctionDeclaration)
        identifier = node.id

        inner = Scope(
            ScopeType.FUNCTION,
            scope,
            function_name=identifier.name if identifier is not None else "<anonymous>",
        )

        for param in node.params:
            if param.name == "self" and scope.current_method_scope() is not None:
                self.diagnostics.error(param, "'self' used as a function parameter within a method")
                continue
            self.checker.check_for_shadowed_vars(param, inner, "function")
            inner.declare(param.name, Variable(VarKind.FUNCTION_PARAMETER, param))

        transform = (
            identifier is not None
            and is_declaration
            and self.options.objj_scope
            and not scope.is_local_var_scope()
        )

        if identifier is not None:
            if is_declaration:
                scope.declare(identifier.name, Variable(VarKind.FUNCTION, identifier))
            else:
                inner.declare(identifier.name, Variable(VarKind.FUNCTION_NAME, identifier))

            if transform:
                buffer.concat(identifier.name, identifier)
                buffer.concat_operator(node_type, "=")

        buffer.concat("function", node)
        if identifier is not None:
            buffer.concat(" " + identifier.name)

        buffer.concat_left_parens(node_type)
        for i, param in enumerate(node.params):
            if i > 0:
                buffer.concat_comma(node_type)
            buffer.concat(param.name, param)
        buffer.concat_right_parens(node_type)

        # a function with at most one statement inside an object literal
        is_lambda = (
            not is_declaration
            and len(node.body.body) <= 1
            and self.ancestry.parent_node_type(node_type) == "ObjectExpression"
        )
        self.compile_node(node.body, inner, override="Lambda" if is_lambda else None, var_scope=True)

        if transform:
            buffer.concat(";")

        inner.copy_ivar_refs_to_parent()
        self.diagnostics.filter_identifier_issues(inner)

    visit_FunctionDeclaration = _compile_function
    visit_FunctionExpression = _compile_function

    def visit_VariableDeclaration(self, node, scope: Scope) -> None:
        node_type = self.current_type
        buffer = self.buffer
        kind = VarKind.LOCAL_VAR if scope.is_local_var_scope() else VarKind.FILE_VAR

        buffer.concat("var ", node)

        for i, declarator in enumerate(node.declarations):
            identifier = declarator.id
            name = identifier.name

            if i > 0:
                buffer.concat_comma(node_type)

            if name in RESERVED_WORDS:
                self.diagnostics.warning(identifier, "reserved word used as a variable name")
            elif name in IMPLICIT_METHOD_PARAMETERS and scope.current_method_scope() is not None:
                self.diagnostics.error(
                    identifier, f"local declaration of '{name}' hides implicit method parameter"
                )
            else:
                self.checker.check_for_shadowed_vars(identifier, scope, "var")

            scope.declare(name, Variable(kind, identifier))
            buffer.concat(name, identifier)

            if declarator.init is not None:
                buffer.concat_with_format(node_type, "=", "assign")
                self.compile_node(declarator.init, scope)

    # =========================================================================
    # Expressions
    # =========================================================================

    def visit_ThisExpression(self, node, scope: Scope) -> None:
        self.buffer.concat("this", node)

    def visit_Identifier(self, node: Identifier, scope: Scope) -> None:
        name = node.name

        # only variables are checked, not property names
        valid = scope.is_member_expression or scope.is_property_key

        if not valid and scope.is_local_var_scope():
            if scope.lookup(name, stop_at_method=True) is not None:
                valid = True
            elif scope.current_method_type() == "-":
                ivar = scope.ivar_for_current_class(name)
                if ivar is not None:
                    scope.add_ivar_ref(node, name, ivar, self.buffer)
                    valid = True

        self.buffer.concat(name, node)

        if not valid:
            self.checker.check_identifier_reference(node, scope)

        # a receiver is checked for misspelling once
        scope.receiver = False

    def visit_Literal(self, node, scope: Scope) -> None:
        raw = node.raw
        if raw:
            text = raw[1:] if raw.startswith("@") else raw
        else:
            value = node.value
            if value is None:
                text = "null"
            elif isinstance(value, bool):
                text = "true" if value else "false"
            elif isinstance(value, str):
                text = json.dumps(value)
            else:
                text = repr(value)
        self.buffer.concat(text, node)

    def visit_ArrayExpression(self, node, scope: Scope) -> None:
        node_type = self.current_type
        buffer = self.buffer

        limit = self.format.get_global("single-line-array-limit") or 0
        prefix = "single-" if len(node.elements) <= limit else ""

        buffer.concat_with_format(node_type, "[", prefix + "left-bracket", node)
        for i, element in enumerate(node.elements):
            if i > 0:
                buffer.concat_with_format(node_type, ",", prefix + "comma")
            if element is not None:
                self.compile_node(element, scope)
        buffer.concat_with_format(node_type, "]", prefix + "right-bracket")

    def visit_ObjectExpression(self, node, scope: Scope) -> None:
        node_type = self.current_type
        buffer = self.buffer
        properties = node.properties

        buffer.concat_with_format(node_type, "{", "left-brace" if properties else "empty-left-brace", node)

        for i, prop in enumerate(properties):
            if i > 0:
                buffer.concat_comma(node_type)

            buffer.concat_format(node_type, "before-property")
            scope.is_property_key = True
            self.compile_node(prop.key, scope)
            scope.is_property_key = False

            buffer.concat_with_format(node_type, ":", "colon")
            self.compile_node(prop.value, scope)

        buffer.concat_with_format(node_type, "}", "right-brace" if properties else "empty-right-brace")

    def visit_SequenceExpression(self, node, scope: Scope) -> None:
        for i, expression in enumerate(node.expressions):
            if i > 0:
                self.buffer.concat_comma(self.current_type)
            self.compile_node(expression, scope)

    def visit_UnaryExpression(self, node, scope: Scope) -> None:
        self.buffer.concat(node.operator, node)
        if node.operator in WORD_PREFIX_OPERATORS:
            self.buffer.concat(" ")
        self._compile_precedence(node, node.argument, scope)

    def visit_UpdateExpression(self, node, scope: Scope) -> None:
        node_type = self.current_type
        buffer = self.buffer
        argument = node.argument

        if not isinstance(argument, Dereference):
            if node.prefix:
                buffer.concat(node.operator, node)
            self._compile_precedence(node, argument, scope)
            if not node.prefix:
                buffer.concat(node.operator)
            return

        # ++@deref(r) -> (r)(r() + 1); @deref(r)++ -> ((r)(r() + 1) - 1)
        self.checker.check_can_dereference(argument.ref)
        self._concat_source_comment(node)

        if not node.prefix:
            buffer.concat_left_parens(node_type)

        self._compile_parenthesized(node_type, scope, argument.ref)

        buffer.concat_left_parens(node_type)
        self.compile_node(argument, scope)
        buffer.concat_operator(node_type, node.operator[0])
        buffer.concat("1")
        buffer.concat_right_parens(node_type)

        if not node.prefix:
            buffer.concat_operator(node_type, "-" if node.operator == "++" else "+")
            buffer.concat("1")
            buffer.concat_right_parens(node_type)

    def _concat_binary_operator(self, node_type: str, operator: str) -> None:
        if operator.isalpha():
            self.buffer.concat(f" {operator} ")
        else:
            self.buffer.concat_operator(node_type, operator)

    def visit_BinaryExpression(self, node, scope: Scope) -> None:
        self._compile_precedence(node, node.left, scope)
        self._concat_binary_operator(self.current_type, node.operator)
        self._compile_precedence(node, node.right, scope, right=True)

    visit_LogicalExpression = visit_BinaryExpression

    def visit_AssignmentExpression(self, node, scope: Scope) -> None:
        node_type = self.current_type
        buffer = self.buffer
        target = node.left

        if isinstance(target, Dereference):
            # @deref(r) = v -> (r)(v); @deref(r) += v -> (r)(r() + v)
            self.checker.check_can_dereference(target.ref)
            self._concat_source_comment(node)
            self._compile_parenthesized(node_type, scope, target.ref)
            buffer.concat_left_parens(node_type)

            if node.operator != "=":
                self.compile_node(target, scope)
                buffer.concat_operator(node_type, node.operator[:-1])

            self.compile_node(node.right, scope)
            buffer.concat_right_parens(node_type)
            return

        saved_assignment = scope.assignment
        scope.assignment = node.operator

        if isinstance(target, Identifier) and target.name == "self":
            self._self_may_be_nil(scope)

        self._compile_precedence(node, target, scope)
        buffer.concat_operator(node_type, node.operator)
        scope.assignment = saved_assignment
        self._compile_precedence(node, node.right, scope, right=True)

    def _self_may_be_nil(self, scope: Scope) -> None:
        """From here on, sends to 'self' in the current method get a nil check."""
        variable = scope.lookup("self", stop_at_method=True)
        if variable is not None and variable.kind is VarKind.SELF:
            variable.scope.assignment_to_self = True

    def visit_ConditionalExpression(self, node, scope: Scope) -> None:
        node_type = self.current_type
        self._compile_precedence(node, node.test, scope)
        self.buffer.concat_operator(node_type, "?")
        self.compile_node(node.consequent, scope)
        self.buffer.concat_operator(node_type, ":")
        self.compile_node(node.alternate, scope)

    def _arguments_compiler(self, node_type: str, arguments: List[ASTNode], scope: Scope):
        if not arguments:
            return None

        def compile_arguments():
            for i, argument in enumerate(arguments):
                if i > 0:
                    self.buffer.concat_comma(node_type)
                self.compile_node(argument, scope)

        return compile_arguments

    def visit_NewExpression(self, node, scope: Scope) -> None:
        node_type = self.current_type
        self.buffer.concat("new ", node)
        self._compile_precedence(node, node.callee, scope)
        self.buffer.concat_parenthesized_block(
            node_type, self._arguments_compiler(node_type, node.arguments, scope)
        )

    def visit_CallExpression(self, node, scope: Scope) -> None:
        node_type = self.current_type

        # eval() may assign to self
        if isinstance(node.callee, Identifier) and node.callee.name == "eval":
            self._self_may_be_nil(scope)

        self._compile_precedence(node, node.callee, scope)
        self.buffer.concat_parenthesized_block(
            node_type, self._arguments_compiler(node_type, node.arguments, scope)
        )

    def visit_MemberExpression(self, node, scope: Scope) -> None:
        node_type = self.current_type
        buffer = self.buffer

        # an ivar as the object still gets "self.", but no assignment check
        scope.is_member_parent = True
        self._compile_precedence(node, node.object, scope)
        scope.is_member_parent = False

        if node.computed:
            buffer.concat_with_format(node_type, "[", "left-bracket")
            saved_assignment = scope.assignment
            scope.assignment = None
            self.compile_node(node.property, scope)
            scope.assignment = saved_assignment
            buffer.concat_with_format(node_type, "]", "right-bracket")
        else:
            buffer.concat(".")
            scope.is_member_expression = True
            self.compile_node(node.property, scope)
            scope.is_member_expression = False

    # =========================================================================
    # Objective-J Literals
    # =========================================================================

    def _msg_send_prefix(self, receiver: str, selector: str, arg_count: int) -> str:
        """Dispatch on a receiver expression, up to the opening parenthesis of the call."""
        if self.options.inline_msg_send:
            return f'{receiver}.isa.method_msgSend["{selector}"] || _objj_forward)('
        count = str(arg_count) if arg_count <= _MAX_NUMBERED_MSG_SEND else ""
        return f"{receiver}.isa.objj_msgSend{count}("

    def _alloc_init(self, node, scope: Scope, class_name: str, init_selector: str, lists: List[List[ASTNode]]) -> None:
        """
        Emit [[class_name alloc] init_selector] through a receiver temp.

        Args:
            lists: One list of expressions per argument of the init
                method, each emitted as a JavaScript array. The element
                count of the first list is appended for initWithObjects:count:.
        """
        buffer = self.buffer
        inline = self.options.inline_msg_send
        var_scope = scope.current_var_scope()
        temp = f"{RECEIVER_TEMP_VAR}{var_scope.increment_receiver_level()}"
        inline_parens = "(" if inline else ""

        buffer.concat(f"({temp} = ", node)
        if inline:
            buffer.concat(f'({class_name}.isa.method_msgSend["alloc"] || _objj_forward)')
        else:
            buffer.concat(f"{class_name}.isa.objj_msgSend0")
        buffer.concat(f'({class_name}, "alloc"), {temp} == null ? null : {inline_parens}')

        if not lists or not lists[0]:
            buffer.concat(self._msg_send_prefix(temp, "init", 0))
            buffer.concat(f'{temp}, "init"))')
        else:
            buffer.concat(self._msg_send_prefix(temp, init_selector, 2))
            buffer.concat(f'{temp}, "{init_selector}"')
            for expressions in lists:
                buffer.concat(", [")
                for i, expression in enumerate(expressions):
                    if i > 0:
                        buffer.concat(", ")
                    self.compile_node(expression, scope)
                buffer.concat("]")
            if init_selector == "initWithObjects:count:":
                buffer.concat(f", {len(lists[0])}")
            buffer.concat("))")

        var_scope.decrement_receiver_level()

    def visit_ArrayLiteral(self, node, scope: Scope) -> None:
        self._alloc_init(node, scope, "CPArray", "initWithObjects:count:", [node.elements])

    def visit_DictionaryLiteral(self, node, scope: Scope) -> None:
        self._alloc_init(node, scope, "CPDictionary", "initWithObjects:forKeys:", [node.values, node.keys])

    def visit_SelectorLiteralExpression(self, node, scope: Scope) -> None:
        self.buffer.concat(f'sel_getUid("{node.selector}")', node)

    def visit_ProtocolLiteralExpression(self, node, scope: Scope) -> None:
        name = node.protocol.name
        if self.symbols.lookup_protocol(name) is not None:
            self.buffer.concat(f'objj_getProtocol("{name}")', node)
        else:
            self.checker.unknown_protocol(node.protocol)

    def visit_Reference(self, node, scope: Scope) -> None:
        name = node.ref.name
        self.buffer.concat(
            f"/* @ref({name}) */ "
            f"function $at_ref(__value) {{ return arguments.length ? {name} = __value : {name}; }}",
            node,
        )

    def visit_Dereference(self, node, scope: Scope) -> None:
        self.checker.check_can_dereference(node.ref)
        self.buffer.concat("", node)
        self.compile_node(node.ref, scope)
        self.buffer.concat("()")

    # =========================================================================
    # Message Sends
    # =========================================================================

    def visit_MessageSendExpression(self, node, scope: Scope) -> None:
        buffer = self.buffer
        inline = self.options.inline_msg_send
        receiver = node.receiver
        args = node.args
        var_args = node.var_args or []
        first_selector = node.selectors[0] if node.selectors else None

        # the generated code is hard to read, so the outermost send shows its source
        if self._message_depth == 0:
            self._concat_source_comment(node)
        self._message_depth += 1

        selector = _selector_from_parts(first_selector, node.selectors, len(args))
        arg_count = len(args) + len(var_args)
        count = str(arg_count) if arg_count <= _MAX_NUMBERED_MSG_SEND else ""

        if isinstance(receiver, Super):
            self._concat_super_dispatch(receiver, scope, selector, count)
            might_be_nil = False
            temp = None
        else:
            might_be_nil, temp, receiver_buffer = self._concat_receiver(
                node, receiver, scope, first_selector
            )
            if inline:
                buffer.concat(f'.isa.method_msgSend["{selector}"] || _objj_forward)')
            else:
                buffer.concat(".isa.objj_msgSend" + count)

            buffer.concat("(")
            if temp is None:
                buffer.concat_buffer(receiver_buffer)
            else:
                buffer.concat(temp)

        buffer.concat(f', "{selector}"')

        for argument in list(args) + list(var_args):
            buffer.concat(", ")
            self.compile_node(argument, scope)

        if might_be_nil:
            buffer.concat(")")
        if temp is not None:
            scope.current_var_scope().decrement_receiver_level()

        buffer.concat(")")
        self._message_depth -= 1

    def _concat_super_dispatch(self, receiver: Super, scope: Scope, selector: str, count: str) -> None:
        method_scope = scope.current_method_scope()
        class_def = scope.current_class()

        if method_scope is None or class_def is None:
            raise InvalidSuperError(
                "'super' can only be used inside a method",
                location=receiver.location,
                source_line=self.diagnostics.source_line(receiver.location),
            )

        superclass = scope.current_super_ref(method_scope.method_type)
        if superclass is None:
            raise InvalidSuperError(
                f"'{class_def.name}' class cannot use 'super' because it is a root class",
                location=receiver.location,
                source_line=self.diagnostics.source_line(receiver.location),
            )

        if self.options.inline_msg_send:
            self.buffer.concat(f'({superclass}.method_dtable["{selector}"] || _objj_forward)', receiver)
            self.buffer.concat("(self")
        else:
            self.buffer.concat("objj_msgSendSuper" + count, receiver)
            self.buffer.concat(f"({{ receiver: self, super_class: {superclass} }}")

    def _concat_receiver(self, node, receiver: ASTNode, scope: Scope, first_selector: Optional[Identifier]):
        """
        Emit the receiver part of a send, up to the dispatch.

        Returns:
            (might_be_nil, temp, receiver_buffer): temp is the receiver
            temp name, or None when the receiver is used directly
        """
        buffer = self.buffer
        inline = self.options.inline_msg_send
        is_identifier = False
        variable = None

        if isinstance(receiver, Identifier):
            variable = scope.lookup(receiver.name)
            is_ivar = (
                variable is None
                and scope.current_method_type() == "-"
                and scope.ivar_for_current_class(receiver.name) is not None
            )
            is_identifier = not is_ivar
            # an unknown receiver may be a misspelled class name
            scope.receiver = True

        receiver_buffer = buffer.new_buffer()

        if is_identifier:
            if receiver.name == "self":
                if variable is None or variable.kind is not VarKind.SELF:
                    might_be_nil = True
                else:
                    might_be_nil = variable.scope.assignment_to_self
            else:
                might_be_nil = self.symbols.lookup_class(receiver.name) is None

            with self._redirect(receiver_buffer):
                self.compile_node(receiver, scope)

            if might_be_nil:
                buffer.concat("(")
                buffer.concat_buffer(receiver_buffer)
                buffer.concat(" == null ? null : ")
            if inline:
                buffer.concat("(")
            buffer.concat_buffer(receiver_buffer)
            return might_be_nil, None, receiver_buffer

        var_scope = scope.current_var_scope()
        temp = f"{RECEIVER_TEMP_VAR}{var_scope.increment_receiver_level()}"

        with self._redirect(receiver_buffer):
            self.compile_node(receiver, scope)

        buffer.concat(f"(({temp} = ")
        buffer.concat_buffer(receiver_buffer)
        buffer.concat(f"), {temp} == null ? null : {'(' if inline else ''}")
        buffer.concat(temp, first_selector)
        return True, temp, receiver_buffer

    # =========================================================================
    # Type Statements
    # =========================================================================

    def _compile_type_statement(self, node, scope: Scope, keyword: str, declare) -> None:
        """
        Emit the comment of @class, @global or @typedef and declare each name.

        Args:
            declare: Called with each identifier that may be declared;
                returns a line of code to emit, or None
        """
        comment = ""
        code = []

        for i, identifier in enumerate(node.ids):
            comment += f"// @{keyword}" if i == 0 else ","
            comment += f" {identifier.name}"

            if self.checker.is_unique_global_symbol(node, scope, identifier):
                line = declare(identifier)
                if line:
                    code.append(line)

        self.buffer.concat(comment, node)
        if code:
            self.buffer.concat("\n" + self.indenter.indent_text("\n".join(code)))

    def visit_ClassStatement(self, node, scope: Scope) -> None:
        def declare(identifier):
            self.symbols.register_class(ClassDef(identifier, identifier.name))

        self._compile_type_statement(node, scope, "class", declare)

    def visit_GlobalStatement(self, node, scope: Scope) -> None:
        def declare(identifier):
            scope.root.declare(identifier.name, Variable(VarKind.AT_GLOBAL, identifier))

        self._compile_type_statement(node, scope, "global", declare)

    def visit_TypeDefStatement(self, node, scope: Scope) -> None:
        def declare(identifier):
            self.symbols.register_typedef(TypeDef(identifier, identifier.name))
            return f'objj_registerTypeDef(objj_allocateTypeDef("{identifier.name}"));'

        self._compile_type_statement(node, scope, "typedef", declare)

    def visit_ImportStatement(self, node, scope: Scope) -> None:
        path = node.path
        if node.local:
            self.buffer.concat(f'// @import "{path}"', node)
        else:
            self.buffer.concat(f"// @import <{path}>", node)

    # =========================================================================
    # Class Declarations
    # =========================================================================

    def visit_ClassDeclaration(self, node: ClassDeclaration, scope: Scope) -> None:
        buffer = self.buffer
        class_name = node.name.name

        if not self.checker.is_unique_global_symbol(node, scope, node.name):
            return

        self._instance_methods = buffer.new_buffer()
        self._class_methods = buffer.new_buffer()

        class_def, comment = self._declare_class(node)

        for i, protocol in enumerate(node.protocols or ()):
            declaration = (
                f'{"var " if i == 0 else ""}$the_protocol = objj_getProtocol("{protocol.name}");\n'
                "\n"
                "if (!$the_protocol)\n"
                f"→throw new ReferenceError(\"Cannot find protocol declaration for '{protocol.name}'\");\n"
                "\n"
                "class_addProtocol($the_class, $the_protocol);\n"
            )
            buffer.concat(self.indenter.indent_text(declaration))

        super_class_ref = super_meta_class_ref = None
        if class_def.superclass_def is not None:
            super_class_ref = f'objj_getClass("{class_name}").super_class'
            super_meta_class_ref = f'objj_getMetaClass("{class_name}").super_class'

        class_scope = Scope(
            ScopeType.CLASS,
            scope,
            class_def=class_def,
            super_class_ref=super_class_ref,
            super_meta_class_ref=super_meta_class_ref,
        )

        if node.category is None:
            buffer.concat(self.indenter.indent_text("objj_registerClassPair($the_class);"))

        has_accessors = False
        if node.ivars and node.category is None:
            has_accessors = self._add_ivars(node, class_def)

        # registered only now, so that ivar checks do not see the class twice
        self.symbols.register_class(class_def)

        for statement in node.body:
            self.compile_node(statement, class_scope)

        if has_accessors:
            self._generate_accessors(node, class_def)

        instance_methods = self._instance_methods
        class_methods = self._class_methods

        if not instance_methods.is_empty():
            buffer.concat(self.indenter.indent_text("\n\n// Instance methods\nclass_addMethods($the_class,\n["))
            buffer.concat_buffer(instance_methods)
            buffer.concat(self.indenter.indent_text("\n]);"))

        if not class_methods.is_empty():
            buffer.concat(self.indenter.indent_text("\n\n// Class methods\nclass_addMethods($the_class.isa,\n["))
            buffer.concat_buffer(class_methods)
            buffer.concat(self.indenter.indent_text("\n]);"))

        buffer.concat(self.indenter.indent_text("\n// @end: " + comment))

        if node.protocols:
            self.checker.check_protocol_conformance(class_def, node.protocols)

        self._instance_methods = self._class_methods = None

    def _declare_class(self, node: ClassDeclaration):
        """
        Create the ClassDef of a declaration and emit its opening code.

        Returns:
            (class_def, comment): comment is the text of the @end comment

        Raises:
            UnknownSuperclassError: If the superclass is not implemented
        """
        class_name = node.name.name
        superclass = node.superclass

        if node.category is not None:
            base_class = self.symbols.lookup_class(class_name)
            class_def = ClassDef(
                node,
                class_name,
                base_class.superclass_def,
                category=node.category.name,
                base_class=base_class,
            )
        else:
            superclass_def = None
            if superclass is not None:
                superclass_def = self.symbols.lookup_class(superclass.name)
                if superclass_def is None or superclass_def.is_stub:
                    raise UnknownSuperclassError(
                        superclass.name,
                        class_name,
                        location=superclass.location,
                        source_line=self.diagnostics.source_line(superclass.location),
                    )
            class_def = ClassDef(node, class_name, superclass_def)

        protocol_list = ""
        if node.protocols:
            for protocol in node.protocols:
                protocol_def = self.symbols.lookup_protocol(protocol.name)
                if protocol_def is not None:
                    class_def.add_protocol(protocol_def)
                else:
                    self.checker.unknown_protocol(protocol)
            protocol_list = " <" + ", ".join(protocol.name for protocol in node.protocols) + ">"

        if node.category is not None:
            comment = f"@implementation {class_name} ({node.category.name})"
            declaration = (
                f"// {comment}\n"
                f'var $the_class = objj_getClass("{class_name}");\n'
                "\n"
                "if (!$the_class)\n"
                f"→throw new ReferenceError(\"Cannot find declaration for class '{class_name}'\");\n"
            )
        else:
            inherit_from = f" : {superclass.name}" if superclass is not None else ""
            comment = f"@implementation {class_name}{inherit_from}{protocol_list}"
            declaration = (
                f"// {comment}\n"
                f'var $the_class = objj_allocateClassPair({superclass.name if superclass else "Nil"}, "{class_name}");\n'
            )

        self.buffer.concat(self.indenter.indent_text(declaration, skip_first_line=True), node)
        logger.debug(f"Compiling {comment}")
        return class_def, comment

    def _add_ivars(self, node: ClassDeclaration, class_def: ClassDef) -> bool:
        """
        Emit class_addIvars() and record the ivars.

        Returns:
            True if any ivar has @accessors
        """
        buffer = self.buffer
        has_accessors = False

        buffer.concat(self.indenter.indent_text("\n\nclass_addIvars($the_class,\n["))
        self.indenter.indent()

        last = len(node.ivars) - 1
        for i, declaration in enumerate(node.ivars):
            identifier = declaration.id
            name = identifier.name

            previous = class_def.find_ivar(name)
            if previous is not None:
                previous_ivar, owner = previous
                self.diagnostics.error(
                    identifier, f"redeclaration of instance variable '{name}' in class '{class_def.name}'"
                )
                self.diagnostics.note(previous_ivar.node, f"previous declaration is here, in class '{owner.name}'")
                continue

            ivar_type = declaration.type.name if declaration.type is not None else "id"
            self.checker.check_ivar_type(declaration.type)

            buffer.concat(self.indenter.indent_text(f'\nnew objj_ivar("{name}"'), identifier)
            if self.options.type_signatures:
                buffer.concat(f', "{ivar_type}"')
            buffer.concat(")" + ("," if i < last else ""))

            class_def.add_ivar(IvarDef(
                name, ivar_type, declaration, accessors=declaration.accessors, is_outlet=declaration.is_outlet
            ))
            if declaration.accessors is not None:
                has_accessors = True

        self.indenter.dedent()
        buffer.concat(self.indenter.indent_text("\n]);"))
        return has_accessors

    # =========================================================================
    # Accessors
    # =========================================================================

    def _generate_accessors(self, node: ClassDeclaration, class_def: ClassDef) -> None:
        """Append the synthesized getters and setters to the instance methods."""
        methods = self._instance_methods
        self.indenter.indent()

        for declaration in node.ivars:
            accessors = declaration.accessors
            if accessors is None:
                continue

            ivar = class_def.get_ivar(declaration.id.name)
            if ivar is None or ivar.node is not declaration:
                continue

            attributes = accessor_attributes(accessors)

            code = self._generate_getter(class_def, ivar, attributes)
            if code:
                if not methods.is_empty():
                    methods.concat(",\n")
                methods.concat(code)

            if accessors.readonly:
                if accessors.setter is not None:
                    self.diagnostics.error(accessors.setter, "setter cannot be specified for a readonly ivar")
                continue

            code = self._generate_setter(class_def, ivar, attributes)
            if code:
                if not methods.is_empty():
                    methods.concat(",\n")
                methods.concat(code)

        self.indenter.dedent()

    def _accessor_method(self, class_def: ClassDef, comment: str, selector: str, params: str, body: str, types) -> str:
        function_name = ""
        if self.options.method_names:
            function_name = " " + _method_function_name(class_def.name, selector)

        code = (
            f"\n{comment}\n"
            f'new objj_method(sel_getUid("{selector}"),\n'
            f"function{function_name}(self, _cmd{params})\n"
            "{\n"
            f"→{body}\n"
            "}"
        )
        if self.options.type_signatures:
            code += ",\n// argument types\n[" + ", ".join(f'"{t}"' for t in types) + "]"
        code += ")"
        return self.indenter.indent_text(code)

    def _generate_getter(self, class_def: ClassDef, ivar: IvarDef, attributes: str) -> str:
        selector = getter_selector(ivar.accessors, ivar.name)

        if class_def.get_own_instance_method(selector) is not None:
            return ""

        class_def.add_instance_method(MethodDef(ivar.node, selector, (ivar.type,)))

        comment = (
            f"// {ivar.name} @accessors{attributes} [getter]\n"
            f"// - ({ivar.type}){selector}"
        )
        return self._accessor_method(
            class_def, comment, selector, "", f"return self.{ivar.name};", [ivar.type]
        )

    def _generate_setter(self, class_def: ClassDef, ivar: IvarDef, attributes: str) -> str:
        selector = setter_selector(ivar.accessors, ivar.name)

        if class_def.get_own_instance_method(selector) is not None:
            return ""

        class_def.add_instance_method(MethodDef(ivar.node, selector, ("void", ivar.type)))

        name = ivar.name
        if ivar.accessors.copy:
            send = self._msg_send_prefix("newValue", "copy", 0)
            body = (
                f"if (self.{name} !== newValue)\n"
                f"→→/* {name} = [newValue copy] */ "
                f'self.{name} = newValue == null ? null : {send}newValue, "copy");'
            )
            if self.options.inline_msg_send:
                body = body.replace(send, "(" + send)
        else:
            body = f"self.{name} = newValue;"

        comment = (
            f"// {name} @accessors{attributes} [setter]\n"
            f"// - (void){selector}({ivar.type})newValue"
        )
        return self._accessor_method(
            class_def, comment, selector, ", newValue", body, ["void", ivar.type]
        )

    # =========================================================================
    # Protocol Declarations
    # =========================================================================

    def visit_ProtocolDeclaration(self, node: ProtocolDeclaration, scope: Scope) -> None:
        buffer = self.buffer
        indent_text = self.indenter.indent_text
        name = node.name.name

        if not self.checker.is_unique_global_symbol(node, scope, node.name):
            return

        self._instance_methods = buffer.new_buffer()
        self._class_methods = buffer.new_buffer()

        incorporated: List[ProtocolDef] = []
        declarations: List[str] = []

        for protocol in node.protocols or ():
            protocol_def = self.symbols.lookup_protocol(protocol.name)
            if protocol_def is None:
                self.checker.unknown_protocol(protocol)
                continue

            var_declaration = "" if declarations else "\nvar "
            declaration = (
                f'{var_declaration}$the_incorporated_protocol = objj_getProtocol("{protocol.name}");\n'
                "\n"
                "if (!$the_incorporated_protocol)\n"
                f"→throw new ReferenceError(\"Cannot find protocol declaration for '{protocol.name}'\");\n"
                "\n"
                "protocol_addProtocol($the_protocol, $the_incorporated_protocol);\n"
            )
            declarations.append(indent_text(declaration))
            incorporated.append(protocol_def)

        comment = f"@protocol {name}"
        if incorporated:
            comment += " <" + ", ".join(p.name for p in incorporated) + ">"

        buffer.concat(
            indent_text(f'// {comment}\nvar $the_protocol = objj_allocateProtocol("{name}");\n', skip_first_line=True),
            node,
        )
        if declarations:
            buffer.concat("\n".join(declarations))
        buffer.concat(indent_text("\nobjj_registerProtocol($the_protocol);\n"))

        protocol_def = ProtocolDef(node, name, incorporated)
        self.symbols.register_protocol(protocol_def)

        protocol_scope = Scope(ScopeType.PROTOCOL, scope, protocol_def=protocol_def)
        for method in node.required:
            self.compile_node(method, protocol_scope)

        # optional methods are recorded but not sent to the runtime
        protocol_scope.optional_protocol_methods = True
        for method in node.optional:
            self.compile_node(method, protocol_scope)

        for methods, is_instance in ((self._instance_methods, True), (self._class_methods, False)):
            if methods.is_empty():
                continue
            if not is_instance and not self._instance_methods.is_empty():
                buffer.concat("\n")
            buffer.concat(indent_text("\nprotocol_addMethodDescriptions($the_protocol,\n["))
            buffer.concat_buffer(methods)
            buffer.concat(indent_text(f"\n],\ntrue, {'true' if is_instance else 'false'});"))

        buffer.concat(indent_text("\n// @end: " + comment))
        self._instance_methods = self._class_methods = None

    # =========================================================================
    # Method Declarations
    # =========================================================================

    def visit_MethodDeclaration(self, node: MethodDeclaration, scope: Scope) -> None:
        class_def = scope.class_def
        protocol_def = scope.protocol_def

        if class_def is None and protocol_def is None:
            raise MalformedDeclarationError(
                "method declaration outside of @implementation or @protocol",
                location=node.location,
                source_line=self.diagnostics.source_line(node.location),
            )

        method_type = MethodType.from_marker(node.method_type)
        return_type = node.return_type

        if return_type is not None:
            types = [return_type.name]
            self.checker.check_type_protocols(return_type.protocols)
        else:
            types = ["void" if node.action is not None else "id"]

        for param in node.params:
            types.append(param.type.name if param.type is not None else "id")
            if param.type is not None:
                self.checker.check_type_protocols(param.type.protocols)

        selector = _selector_from_parts(
            node.selectors[0] if node.selectors else None, node.selectors, len(node.params)
        )
        self.checker.check_for_setter_conflicts(node, class_def, selector)

        method_scope = Scope(ScopeType.METHOD, scope, method_type=node.method_type, selector=selector)

        if not scope.optional_protocol_methods:
            self._compile_method(node, scope, method_scope, selector, types)

        if class_def is not None:
            definition = class_def
            duplicate = class_def.get_own_method(selector, method_type)
            if duplicate is not None:
                self.diagnostics.error(node, f"duplicate definition of method '{selector}'")
                self.diagnostics.note(duplicate.node, "original definition is here:")
        else:
            definition = protocol_def
            duplicate = protocol_def.get_own_method(selector, method_type)
            if duplicate is not None and not self.diagnostics.ignore_warnings:
                self.diagnostics.warning(node, f"duplicate declaration of method '{selector}' ignored")
                self.diagnostics.note(duplicate.node, "first declaration is here:")

        if duplicate is None:
            if class_def is not None:
                overridden = class_def.method(selector, method_type, search_protocols=True)
            else:
                overridden = protocol_def.method(selector, method_type)

            self.checker.check_parameter_types(node, types, overridden, selector)

            method_def = MethodDef(node, selector, tuple(types))
            if class_def is not None:
                class_def.add_method(method_def, method_type)
            else:
                protocol_def.add_method(method_def, method_type, required=not scope.optional_protocol_methods)
            logger.debug(f"Added method {node.method_type}{selector} to {definition.name}")

        self.diagnostics.filter_identifier_issues(method_scope)

    def _compile_method(
        self,
        node: MethodDeclaration,
        scope: Scope,
        method_scope: Scope,
        selector: str,
        types: List[str],
    ) -> None:
        """Emit one objj_method() entry into the instance or class method buffer."""
        indent_text = self.indenter.indent_text
        methods = self._instance_methods if node.method_type == "-" else self._class_methods

        self.indenter.indent()

        if not methods.is_empty():
            methods.concat(",\n")

        methods.concat(
            indent_text(f'\n// {node.method_type} ({types[0]}){selector}\nnew objj_method(sel_getUid("{selector}"),'),
            node,
        )

        if node.body is not None:
            methods.concat(indent_text("\nfunction"))
            if self.options.method_names:
                methods.concat(" " + _method_function_name(scope.current_class_name(), selector))
            methods.concat("(self, _cmd")

            method_scope.declare("self", Variable(VarKind.SELF, scope=method_scope))
            method_scope.declare("_cmd", Variable(VarKind.CMD, scope=method_scope))

            for param in node.params:
                identifier = param.id
                methods.concat(", ")
                methods.concat(identifier.name, identifier)

                if identifier.name == "self":
                    self.diagnostics.error(identifier, "'self' used as a method parameter")
                else:
                    self.checker.check_for_shadowed_vars(identifier, method_scope, "method")
                    method_scope.declare(identifier.name, Variable(VarKind.METHOD_PARAMETER, identifier))

            methods.concat(")")

            with self._redirect(methods):
                self.compile_node(node.body, method_scope, var_scope=True)
        else:
            methods.concat(" null")

        if self.options.type_signatures:
            signatures = ", ".join(f'"{t}"' for t in types)
            methods.concat(",\n" + indent_text(f"// argument types\n[{signatures}]"))

        methods.concat(")")
        self.indenter.dedent()

    # Handled by their owners
    def visit_IvarDeclaration(self, node: IvarDeclaration, scope: Scope) -> None:
        raise ASTError("instance variable declaration outside of a class body", node_type=node.node_type)
