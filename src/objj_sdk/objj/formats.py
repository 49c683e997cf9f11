"""
Format Rule Tables
==================

A format decides the whitespace, braces and semicolons around every piece
of generated code. Formats are JSON documents shaped like this:

    {
        "*": { "indent-width": 4, "after-comma": " " },
        "*statement": {
            "nodes": ["expression statement", "return"],
            "before": { "$previous": { "null": "", "*": "\\n" } }
        },
        "{}": { "before-left-brace": "\\n", "after-left-brace": "|1" }
    }

Keys
----
- "*" holds global values, used when a node type has no value of its own.
- Keys starting with "*" (meta groups) apply their properties to every
  node type listed in "nodes". The group is expanded at load time.
- Every other key is a format node type such as "if" or "@implementation"
  (see TYPE_MAP).

Conditional Values
------------------
A value may be an object instead of a string:

    "$previous"   choose by the type of the previous statement
    "$parent"     choose by the type of the enclosing parent node
                  (each further $parent in one lookup climbs one level)
    "null"        used when there is no previous statement / parent
    "*"           fallback when nothing matches

Indentation Directives
----------------------
A line of a value may end with "|N": indent N steps (N > 0), dedent
(N < 0), or emit an unindented empty line (N == 0). Directives are applied
when the value is emitted, since they depend on the current depth.
"""

import copy
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from objj_sdk.errors import FormatError

logger = logging.getLogger(__name__)

FORMATS_DIR = Path(__file__).parent / "data" / "formats"

DEFAULT_FORMAT = "cappuccino"

# AST node type (or override type) -> format node type
TYPE_MAP: Dict[str, str] = {
    "*": "*",
    "ArrayExpression": "array",
    "AssignmentExpression": "assignment",
    "BinaryExpression": "binary expression",
    "BlockStatement": "{}",
    "BreakStatement": "break",
    "CallExpression": "function call",
    "CaseStatement": "case",
    "ConditionalExpression": "?:",
    "ContinueStatement": "continue",
    "DebuggerStatement": "debugger",
    "DoWhileStatement": "do while",
    "ElseIfStatement": "else if",
    "ElseStatement": "else",
    "EmptyStatement": "empty statement",
    "ExpressionStatement": "expression statement",
    "ForInStatement": "for in",
    "ForStatement": "for",
    "FunctionDeclaration": "function",
    "FunctionExpression": "function expression",
    "Identifier": "identifier",
    "IfStatement": "if",
    "LabeledStatement": "label",
    "Lambda": "lambda",
    "Literal": "literal",
    "LogicalExpression": "logical expression",
    "MemberExpression": "member",
    "NewExpression": "new",
    "ObjectExpression": "object",
    "Program": "program",
    "ReturnStatement": "return",
    "SequenceExpression": ",",
    "SwitchStatement": "switch",
    "ThisExpression": "this",
    "ThrowStatement": "throw",
    "TryStatement": "try",
    "UnaryExpression": "unary expression",
    "UpdateExpression": "update expression",
    "VariableDeclaration": "var",
    "WhileStatement": "while",
    "WithStatement": "with",
    "objj_ArrayLiteral": "@[]",
    "objj_ClassDeclaration": "@implementation",
    "objj_ClassStatement": "@class",
    "objj_Dereference": "@deref",
    "objj_DictionaryLiteral": "@{}",
    "objj_GlobalStatement": "@global",
    "objj_ImportStatement": "@import",
    "objj_IvarDeclaration": "ivar",
    "objj_MessageSendExpression": "message",
    "objj_MethodDeclaration": "method",
    "objj_ObjectiveJType": "objective-j type",
    "objj_ProtocolDeclaration": "@protocol",
    "objj_ProtocolLiteralExpression": "@protocol()",
    "objj_Reference": "@ref",
    "objj_SelectorLiteralExpression": "@selector",
    "objj_TypeDefStatement": "@typedef",
}

# Returned by the resolver when a table yields no value at all
_NO_VALUE = object()


class Format:
    """
    A loaded format.

    Attributes:
        name: Where the format came from, for messages
        data: format node type -> {key: value}
        meta_map: format node type -> meta group it was declared in
        globals: The "*" properties
    """

    def __init__(self, spec: Optional[Mapping[str, Any]] = None, name: str = "<format>"):
        self.name = name
        self.data: Dict[str, Dict[str, Any]] = {}
        self.meta_map: Dict[str, str] = {}
        self.globals: Dict[str, Any] = {}

        if spec:
            self._render(spec)

    def __repr__(self) -> str:
        return f"Format({self.name!r})"

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    def _render(self, spec: Mapping[str, Any]) -> None:
        """Expand meta groups into per-type entries."""
        if not isinstance(spec, Mapping):
            raise FormatError(f"format '{self.name}' must be a JSON object")

        for key, properties in spec.items():
            if not isinstance(properties, Mapping):
                raise FormatError(f"format '{self.name}': entry '{key}' must be an object")

            if key == "*":
                self._merge(properties, "*")
                self.globals = self.data["*"]
            elif key.startswith("*"):
                properties = dict(properties)
                nodes = properties.pop("nodes", [])
                for name in nodes:
                    self._merge(properties, name)
                    self.meta_map[name] = key
            else:
                self._merge(properties, key)

    def _merge(self, properties: Mapping[str, Any], name: str) -> None:
        target = self.data.setdefault(name, {})
        for key, value in properties.items():
            value = copy.deepcopy(value)
            if key in ("before", "after") and isinstance(value, str):
                value = {"*": value}
            target[key] = value

    # -------------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------------

    def get_global(self, key: str) -> Any:
        return self.globals.get(key)

    def value_for(self, ancestry, node_type: Optional[str], key: str) -> Optional[str]:
        """
        Resolve the value of a format key for a node.

        Args:
            ancestry: NodeAncestry of the compilation, for conditional values
            node_type: AST (or override) type of the node, "*" for globals
            key: e.g. "before", "after-comma"

        Returns:
            The text to emit, or None for nothing
        """
        item_type = TYPE_MAP.get(node_type or "*")
        if item_type is None:
            return None

        item = self.data.get(item_type)
        if item is not None and key in item:
            value = item[key]
            if isinstance(value, dict):
                value = self._resolve(ancestry, node_type, value, None, [0])
            if value is not _NO_VALUE:
                return value

        value = self.globals.get(key)
        if isinstance(value, dict):
            value = self._resolve(ancestry, node_type, value, None, [0])
            return None if value is _NO_VALUE else value
        return value

    def _resolve(self, ancestry, node_type, table: dict, fallback, parent_index: List[int]):
        """
        Walk a conditional value.

        Returns a string, None when the neighbouring node type is not a
        format type, or _NO_VALUE when neither a match nor a fallback
        exists.
        """
        if "*" in table:
            fallback = table["*"]

        branch: Any = _NO_VALUE
        neighbor = None

        if table.get("$previous") is not None:
            branch = table["$previous"]
            neighbor = ancestry.previous_statement_type(node_type) if ancestry else None
        elif table.get("$parent") is not None:
            branch = table["$parent"]
            neighbor = ancestry.parent_node_type(node_type, parent_index[0]) if ancestry else None
            parent_index[0] += 1

        if isinstance(branch, str):
            return branch

        if isinstance(branch, dict):
            if neighbor is None:
                mapped = "null"
            else:
                mapped = TYPE_MAP.get(neighbor)
                if mapped is None:
                    return None

            value = branch.get(mapped)
            if value is None and mapped in self.meta_map:
                value = branch.get(self.meta_map[mapped])

            if isinstance(value, str):
                return value
            if isinstance(value, dict):
                return self._resolve(ancestry, node_type, value, fallback, parent_index)
            # No match: the branch's own "*" (if any) becomes the fallback
            return self._resolve(ancestry, node_type, branch, fallback, parent_index)

        return self._from_fallback(ancestry, node_type, fallback, parent_index)

    def _from_fallback(self, ancestry, node_type, fallback, parent_index):
        if isinstance(fallback, str):
            return fallback
        if isinstance(fallback, dict):
            return self._resolve(ancestry, node_type, fallback, None, parent_index)
        return _NO_VALUE


# =============================================================================
# Loader
# =============================================================================

def available_formats() -> List[str]:
    """Names of the bundled formats."""
    return sorted(p.stem for p in FORMATS_DIR.glob("*.json"))


def load_format(source: Union[str, os.PathLike, Mapping[str, Any], Format, None] = None) -> Format:
    """
    Load a format.

    Args:
        source: A Format (returned as is), a mapping (rendered directly),
            a bundled format name, or a path to a JSON file. None loads
            the default format.

    Returns:
        The Format

    Raises:
        FormatError: If the format does not exist or is not valid JSON
    """
    if source is None:
        source = DEFAULT_FORMAT
    if isinstance(source, Format):
        return source
    if isinstance(source, Mapping):
        return Format(source)

    text = os.fspath(source)
    is_bundled = os.sep not in text and "/" not in text
    if is_bundled:
        name = text[:-5] if text.endswith(".json") else text
        path = FORMATS_DIR / f"{name}.json"
    else:
        path = Path(text).resolve()
        name = str(path)

    try:
        spec = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        message = f"no such format '{name}'"
        if is_bundled:
            message += f"\nAvailable formats: {', '.join(available_formats())}"
        raise FormatError(message) from None
    except json.JSONDecodeError as e:
        raise FormatError(f"invalid JSON in format file '{path}'\n{e}") from e
    except OSError as e:
        raise FormatError(f"could not read format file '{path}': {e}") from e

    logger.debug(f"Loaded format '{name}' from {path}")
    return Format(spec, name=name)
