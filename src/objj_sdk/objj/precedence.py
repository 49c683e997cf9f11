"""
Expression precedence tables.

The code generator never copies parentheses from the source. Instead it
adds them where a subexpression binds more loosely than the expression
that contains it. Lower numbers bind tighter.
"""

from objj_sdk.objj.ast import ASTNode

OPERATOR_PRECEDENCE = {
    "*": 3, "/": 3, "%": 3,
    "+": 4, "-": 4,
    "<<": 5, ">>": 5, ">>>": 5,
    "<": 6, "<=": 6, ">": 6, ">=": 6, "in": 6, "instanceof": 6,
    "==": 7, "!=": 7, "===": 7, "!==": 7,
    "&": 8,
    "^": 9,
    "|": 10,
    "&&": 11,
    "||": 12,
}

# A member expression ranks with the types missing from this table (-1)
EXPRESSION_TYPE_PRECEDENCE = {
    "MemberExpression": 0,
    "CallExpression": 1,
    "NewExpression": 2,
    "FunctionExpression": 3,
    "UnaryExpression": 4,
    "UpdateExpression": 4,
    "BinaryExpression": 5,
    "LogicalExpression": 6,
    "ConditionalExpression": 7,
    "AssignmentExpression": 8,
}

_BINARY_TYPES = frozenset({"BinaryExpression", "LogicalExpression"})


def expression_precedence(node_type: str) -> int:
    return EXPRESSION_TYPE_PRECEDENCE.get(node_type) or -1


def subnode_has_precedence(node: ASTNode, subnode: ASTNode, right: bool = False) -> bool:
    """
    True if `subnode` must be parenthesized inside `node`.

    Args:
        node: The containing expression
        subnode: One of its operands
        right: `subnode` is the right operand of a binary expression
    """
    node_type = node.node_type
    node_precedence = expression_precedence(node_type)
    subnode_precedence = expression_precedence(subnode.node_type)

    if subnode_precedence > node_precedence:
        return True

    if node_precedence == subnode_precedence and node_type in _BINARY_TYPES:
        node_operator = OPERATOR_PRECEDENCE.get(node.operator, -1)
        subnode_operator = OPERATOR_PRECEDENCE.get(getattr(subnode, "operator", None), -1)
        return subnode_operator > node_operator or (right and subnode_operator == node_operator)

    return False
