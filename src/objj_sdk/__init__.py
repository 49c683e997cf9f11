"""
Objective-J SDK - Objective-J to JavaScript Toolchain
=====================================================

This package provides a compiler that turns Objective-J programs into
JavaScript running on the Objective-J runtime used by Cappuccino.

Main Components
---------------
- **objj**: The compiler
    Converts an Objective-J AST (ESTree JSON) into JavaScript, with
    diagnostics, configurable output formats and source maps

- **cli**: Command-line tools
    objjc, the command line compiler

Quick Start
-----------
Compile a program:
    >>> from objj_sdk import compile_objj
    >>> js = compile_objj(ast_json)

Compile several files sharing their class declarations:
    >>> from objj_sdk import Compiler, SymbolTables
    >>> symbols = SymbolTables()
    >>> for path in ("Base.json", "Main.json"):
    ...     result = Compiler(symbols=symbols).compile_file(path)

Or use the command-line tool:
    $ objjc Base.json Main.json -o build/
"""

__version__ = "1.0.0"

# =============================================================================
# Public API Exports
# =============================================================================

from objj_sdk.errors import (
    ObjJSdkError,
    SourceLocation,
    ConfigurationError,
    FormatError,
    ASTError,
)
from objj_sdk.objj import (
    Compiler,
    CompilerOptions,
    CompilerResult,
    SymbolTables,
    compile_file,
    compile_objj,
    ObjJError,
    ObjJCompilationError,
)

__all__ = [
    "__version__",
    # Errors
    "ObjJSdkError",
    "SourceLocation",
    "ConfigurationError",
    "FormatError",
    "ASTError",
    "ObjJError",
    "ObjJCompilationError",
    # Compiler
    "Compiler",
    "CompilerOptions",
    "CompilerResult",
    "SymbolTables",
    "compile_file",
    "compile_objj",
]
