"""
Predefined Names
================

Reserved words, predefined globals for each supported environment, the
implicit method parameters and the predefined Objective-J types.

Each predefined global maps to a PredefinedGlobal entry: `writable`
tells whether assigning to it is legitimate, `ignore_shadow` whether a
local declaration with the same name is common enough that it should not
be reported as shadowing.
"""

from typing import Dict, Mapping, NamedTuple, Optional, Union

from objj_sdk.errors import ConfigurationError


class PredefinedGlobal(NamedTuple):
    writable: bool = False
    ignore_shadow: bool = False


# =============================================================================
# Reserved Words
# =============================================================================

RESERVED_WORDS = frozenset({
    "arguments", "break", "case", "catch", "class", "const", "continue",
    "debugger", "default", "delete", "do", "else", "enum", "export",
    "extends", "false", "finally", "for", "function", "if", "implements",
    "import", "in", "instanceof", "interface", "let", "new", "null",
    "package", "private", "protected", "public", "return", "static",
    "super", "switch", "this", "throw", "true", "try", "typeof", "var",
    "void", "while", "with", "yield",
})

# Passed to every method function; may not be redeclared inside a method
IMPLICIT_METHOD_PARAMETERS = frozenset({"self", "_cmd"})

PREDEFINED_TYPES = frozenset({
    "BOOL", "byte", "char", "double", "float", "id", "int", "instancetype",
    "JSObject", "long", "SEL", "short", "signed", "unsigned",
    "CPInteger", "CPTimeInterval", "CPUInteger",
})


# =============================================================================
# Environment Globals
# =============================================================================

_ReadOnly = PredefinedGlobal(writable=False)
_Writable = PredefinedGlobal(writable=True)
_Shadowable = PredefinedGlobal(writable=True, ignore_shadow=True)


def _names(names: str, entry: PredefinedGlobal) -> Dict[str, PredefinedGlobal]:
    return {name: entry for name in names.split()}


NONSTANDARD_GLOBALS = _names("escape unescape", _ReadOnly)

ECMA_GLOBALS = _names("""
    Array Boolean Date decodeURI decodeURIComponent encodeURI
    encodeURIComponent Error EvalError Function hasOwnProperty Infinity
    isFinite isNaN JSON Math NaN Number Object parseFloat parseInt
    RangeError ReferenceError RegExp String SyntaxError TypeError URIError
    undefined eval
""", _ReadOnly)

NEW_ECMA_GLOBALS = _names("""
    ArrayBuffer DataView Float32Array Float64Array Int8Array Int16Array
    Int32Array Map Promise Proxy Reflect Set Symbol Uint8Array
    Uint8ClampedArray Uint16Array Uint32Array WeakMap WeakSet
""", _ReadOnly)

BROWSER_GLOBALS = {
    **_names("""
        Audio Blob CustomEvent DOMParser Element Event FileReader FormData
        HTMLElement Image KeyboardEvent MouseEvent MutationObserver Node
        NodeList XMLHttpRequest XMLSerializer atob btoa cancelAnimationFrame
        clearInterval clearTimeout document getComputedStyle history
        localStorage location navigator performance requestAnimationFrame
        screen sessionStorage setInterval setTimeout window
    """, _ReadOnly),
    **_names("""
        name status top parent opener frames length onload onerror
        onresize onbeforeunload
    """, _Shadowable),
}

DEVEL_GLOBALS = _names("alert confirm console prompt", _ReadOnly)

NODE_GLOBALS = {
    **_names("""
        Buffer __dirname __filename clearImmediate clearInterval
        clearTimeout console global process require setImmediate
        setInterval setTimeout
    """, _ReadOnly),
    **_names("exports module", _Writable),
}

# The Objective-J runtime and the names generated code relies on
OBJJ_RUNTIME_GLOBALS = {
    **_names("""
        class_addIvars class_addMethods class_addProtocol
        class_getInstanceMethod class_getName objj_allocateClassPair
        objj_allocateProtocol objj_allocateTypeDef objj_getClass
        objj_getMetaClass objj_getProtocol objj_ivar objj_method
        objj_msgSend objj_msgSend0 objj_msgSend1 objj_msgSend2 objj_msgSend3
        objj_msgSendSuper objj_msgSendSuper0 objj_msgSendSuper1
        objj_msgSendSuper2 objj_msgSendSuper3 objj_registerClassPair
        objj_registerProtocol objj_registerTypeDef protocol_addMethodDescriptions
        protocol_addProtocol sel_getName sel_getUid _objj_forward
        objj_importFile objj_executeFile
    """, _ReadOnly),
    **_names("nil Nil NULL YES NO", _ReadOnly),
}

ENVIRONMENTS = ("browser", "node")


def predefined_globals(
    environment: str = "browser",
    extra: Optional[Mapping[str, Union[bool, PredefinedGlobal]]] = None,
) -> Dict[str, PredefinedGlobal]:
    """
    Build the predefined global table for an environment.

    Args:
        environment: "browser" or "node"
        extra: Additional names; a bool value means "writable"

    Returns:
        name -> PredefinedGlobal

    Raises:
        ConfigurationError: If the environment is unknown
    """
    if environment not in ENVIRONMENTS:
        raise ConfigurationError(
            f"unknown environment '{environment}' (expected one of: {', '.join(ENVIRONMENTS)})"
        )

    table: Dict[str, PredefinedGlobal] = {}
    table.update(_names(" ".join(sorted(RESERVED_WORDS)), _ReadOnly))
    table.update(NONSTANDARD_GLOBALS)
    table.update(ECMA_GLOBALS)
    table.update(NEW_ECMA_GLOBALS)
    table.update(OBJJ_RUNTIME_GLOBALS)

    if environment == "browser":
        table.update(BROWSER_GLOBALS)
        table.update(DEVEL_GLOBALS)
    else:
        table.update(NODE_GLOBALS)

    for name, value in (extra or {}).items():
        if isinstance(value, PredefinedGlobal):
            table[name] = value
        else:
            table[name] = PredefinedGlobal(writable=bool(value))

    return table
