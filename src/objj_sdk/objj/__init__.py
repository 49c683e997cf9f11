"""
Objective-J Compiler
====================

This module implements a compiler from Objective-J to JavaScript. It takes
the ESTree AST of an Objective-J program (as produced by an Objective-J
aware parser) and generates JavaScript for the Objective-J runtime.

Objective-J is a strict superset of JavaScript adding classes, protocols
and message sends in the style of Objective-C:

    @implementation Person : CPObject
    {
        CPString name @accessors;
    }

    - (void)greet:(Person)other
    {
        console.log([other name]);
    }

    @end

Pipeline
--------
    AST JSON → load_ast → CodeGenerator → JavaScript (+ source map)

The code generator checks the program as it goes (unknown identifiers,
shadowed variables, implicit globals, protocol conformance, ...) and
collects every diagnostic in one report.

Usage
-----
>>> from objj_sdk.objj import compile_objj
>>> js = compile_objj(ast_json, source=objj_source, filename="Person.j")

Output Formats
--------------
The whitespace of the generated code is driven by a format description.
Two formats are bundled: "cappuccino" (the default, readable output) and
"compact".
"""

# =============================================================================
# Public API Imports
# =============================================================================

from objj_sdk.objj.compiler import (
    Compiler,
    CompilerOptions,
    CompilerResult,
    compile_file,
    compile_objj,
)
from objj_sdk.objj.errors import (
    ObjJError,
    ObjJCompilationError,
    CompileAbortedError,
    TooManyErrorsError,
    DuplicateDefinitionError,
    UnknownSuperclassError,
    InvalidSuperError,
    DereferenceError,
    MalformedDeclarationError,
)
from objj_sdk.objj.ast import ASTVisitor, Program, load_ast
from objj_sdk.objj.codegen import CodeGenerator
from objj_sdk.objj.dependencies import Dependency, DependencyCollector
from objj_sdk.objj.diagnostics import Diagnostics, Issue, Severity, WARNINGS
from objj_sdk.objj.formats import Format, available_formats, load_format
from objj_sdk.objj.language import ClassDef, MethodDef, ProtocolDef, SymbolTables

__all__ = [
    # Main API
    "Compiler",
    "CompilerOptions",
    "CompilerResult",
    "compile_objj",
    "compile_file",
    # Errors
    "ObjJError",
    "ObjJCompilationError",
    "CompileAbortedError",
    "TooManyErrorsError",
    "DuplicateDefinitionError",
    "UnknownSuperclassError",
    "InvalidSuperError",
    "DereferenceError",
    "MalformedDeclarationError",
    # AST
    "ASTVisitor",
    "Program",
    "load_ast",
    # Code generation
    "CodeGenerator",
    "Dependency",
    "DependencyCollector",
    # Diagnostics
    "Diagnostics",
    "Issue",
    "Severity",
    "WARNINGS",
    # Formats
    "Format",
    "available_formats",
    "load_format",
    # Symbols
    "ClassDef",
    "MethodDef",
    "ProtocolDef",
    "SymbolTables",
]
