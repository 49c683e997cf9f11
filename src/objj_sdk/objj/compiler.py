"""
Objective-J Compiler Main Module
================================

This module provides the main compiler interface for Objective-J.
It drives the compilation of one parsed program:

    AST JSON → load_ast → CodeGenerator → JavaScript (+ source map)

Usage
-----
Command line:
    $ objjc Main.json -o Main.js

Programmatic:
    >>> from objj_sdk.objj import compile_objj
    >>> code = compile_objj(ast_json)

Parsing Objective-J source is not part of this package: the input is the
ESTree JSON produced by an Objective-J aware parser such as acorn-objj.
When the original source text is handed in as well, diagnostics show
source excerpts and message sends carry their source as a comment.

Compilation Units
-----------------
Each file is compiled by its own Compiler run. Classes, protocols and
typedefs declared by one unit are visible to the next when the units
share a SymbolTables instance:

    symbols = SymbolTables()
    for path in ("Base.json", "Derived.json"):
        Compiler(options, symbols=symbols).compile_file(path)

Error Handling
--------------
Diagnostics are collected while compiling. Fatal structural errors
(duplicate classes, unknown superclasses, ...) stop the unit; they are
recorded as error diagnostics as well. compile_ast() never raises for
problems in the program; check `result.success`. The module level helpers
raise ObjJCompilationError instead.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union
from urllib.parse import quote

from objj_sdk.errors import ConfigurationError
from objj_sdk.objj.ast import Program, load_ast
from objj_sdk.objj.codegen import CodeGenerator
from objj_sdk.objj.dependencies import Dependency, DependencyCollector
from objj_sdk.objj.diagnostics import WARNINGS, Diagnostics, Issue
from objj_sdk.objj.errors import CompileAbortedError, ObjJCompilationError
from objj_sdk.objj.formats import DEFAULT_FORMAT, Format, load_format
from objj_sdk.objj.globals import ENVIRONMENTS, predefined_globals
from objj_sdk.objj.language import SymbolTables

logger = logging.getLogger(__name__)


@dataclass
class CompilerOptions:
    """
    Compiler configuration options.

    Attributes:
        source_map: Generate a source map and a sourceMappingURL trailer
        source_root: sourceRoot of the source map
        format: Format name, JSON file path, mapping or Format
        indent_string: Indent unit, if the format does not set one
        indent_width: Indent units per step, if the format does not set one
        environment: "browser" or "node"; selects the predefined globals
        max_errors: Stop after this many errors (must be > 0)
        method_names: Name method functions $Class__selector_
        type_signatures: Emit ivar types and method argument types
        inline_msg_send: Dispatch through method_msgSend["sel"] inline
        objj_scope: Give the file its own scope; top-level functions
                    become assignments to globals
        ignore_warnings: Drop all warnings
        warnings: Warning name -> enabled, merged over the defaults
        predefined_globals: Extra predefined globals, name -> writable
    """
    source_map: bool = False
    source_root: str = "."
    format: Union[str, os.PathLike, Mapping[str, Any], Format, None] = DEFAULT_FORMAT
    indent_string: str = " "
    indent_width: int = 4
    environment: str = "browser"
    max_errors: int = 20
    method_names: bool = True
    type_signatures: bool = True
    inline_msg_send: bool = False
    objj_scope: bool = True
    ignore_warnings: bool = False
    warnings: Optional[Dict[str, bool]] = None
    predefined_globals: Optional[Dict[str, bool]] = None

    def __post_init__(self):
        if self.format is None:
            self.format = DEFAULT_FORMAT
        if self.source_root is None:
            self.source_root = "."

        warnings = dict(WARNINGS)
        for name, enabled in (self.warnings or {}).items():
            if name not in WARNINGS:
                logger.warning(f"Unknown warning '{name}' ignored")
                continue
            warnings[name] = bool(enabled)
        self.warnings = warnings

        self.validate()

    def validate(self) -> None:
        """
        Raises:
            ConfigurationError: If an option has an invalid value
        """
        if not isinstance(self.max_errors, int) or self.max_errors <= 0:
            raise ConfigurationError(f"max_errors must be greater than 0, got {self.max_errors!r}")
        if self.environment not in ENVIRONMENTS:
            raise ConfigurationError(
                f"unknown environment '{self.environment}' (expected one of: {', '.join(ENVIRONMENTS)})"
            )
        if self.indent_width < 0:
            raise ConfigurationError(f"indent_width must not be negative, got {self.indent_width}")


@dataclass
class CompilerResult:
    """
    Result of a compilation.

    Attributes:
        filename: Source filename
        success: True if no errors were found
        code: Generated JavaScript (partial if compilation was aborted)
        source_map: Source map JSON, if requested
        issues: Every diagnostic, in the order found
        diagnostics: The Diagnostics engine, for reporting
    """
    filename: str = ""
    success: bool = False
    code: str = ""
    source_map: Optional[str] = None
    issues: List[Issue] = field(default_factory=list)
    diagnostics: Optional[Diagnostics] = None

    @property
    def errors(self) -> List[Issue]:
        return [issue for issue in self.issues if issue.is_error]

    @property
    def warnings(self) -> List[Issue]:
        return [issue for issue in self.issues if issue.is_warning]

    def report(self) -> str:
        """The formatted report of all issues."""
        if self.diagnostics is None:
            return ""
        return self.diagnostics.format_report()


class Compiler:
    """
    Objective-J compiler.

    Example:
        compiler = Compiler()
        result = compiler.compile_file("Main.json", source_path="Main.j")
        if result.success:
            print(result.code)

    Attributes:
        options: Compiler configuration options
        symbols: Classes, protocols and typedefs known to this compiler
        format: The loaded Format
    """

    def __init__(self, options: Optional[CompilerOptions] = None, symbols: Optional[SymbolTables] = None):
        """
        Initialize the compiler.

        Args:
            options: Compiler configuration (uses defaults if None)
            symbols: Symbol tables shared with other compilers

        Raises:
            FormatError: If the format cannot be loaded
        """
        self.options = options or CompilerOptions()
        self.symbols = symbols if symbols is not None else SymbolTables()
        self.format = load_format(self.options.format)
        self._predefined = predefined_globals(self.options.environment, self.options.predefined_globals)

    def compile_ast(
        self,
        ast: Program,
        source: Optional[str] = None,
        filename: str = "<input>",
        output_name: Optional[str] = None,
    ) -> CompilerResult:
        """
        Compile a loaded program.

        Args:
            ast: The Program node
            source: Original Objective-J source text, if available
            filename: Source filename for messages
            output_name: Name of the generated file, for the source map

        Returns:
            CompilerResult containing the code and diagnostics
        """
        options = self.options
        diagnostics = Diagnostics(
            source=source,
            filename=filename,
            max_errors=options.max_errors,
            warnings=options.warnings,
            ignore_warnings=options.ignore_warnings,
        )
        generator = CodeGenerator(
            options,
            self.symbols,
            diagnostics,
            self.format,
            self._predefined,
            source=source,
        )

        logger.debug(f"Compiling {filename}")

        try:
            generator.generate(ast)
        except CompileAbortedError as e:
            logger.debug(f"Compilation of {filename} aborted: {e.message}")
            diagnostics.add_compile_error(e)

        code = str(generator.output)
        if not code.endswith("\n"):
            code += "\n"

        if output_name is None:
            output_name = Path(filename).with_suffix(".js").name

        source_map = None
        if options.source_map:
            generator_map = generator.output.source_map(file=output_name, source_root=options.source_root)
            source_map = generator_map.to_json()
            code += f"//# sourceMappingURL={quote(Path(output_name).name + '.map')}\n"

        result = CompilerResult(
            filename=filename,
            success=not diagnostics.has_errors(),
            code=code,
            source_map=source_map,
            issues=list(diagnostics.issues),
            diagnostics=diagnostics,
        )

        logger.debug(
            f"Compiled {filename}: {diagnostics.error_count()} error(s), "
            f"{diagnostics.warning_count()} warning(s)"
        )
        return result

    def compile_json(
        self,
        data: Union[str, bytes, Mapping[str, Any]],
        source: Optional[str] = None,
        filename: str = "<input>",
        output_name: Optional[str] = None,
    ) -> CompilerResult:
        """
        Compile an AST given as JSON text or decoded JSON.

        Raises:
            ASTError: If the AST is malformed
        """
        return self.compile_ast(load_ast(data, filename), source, filename, output_name)

    def compile_file(
        self,
        filepath: Union[str, os.PathLike],
        source_path: Union[str, os.PathLike, None] = None,
        output_name: Optional[str] = None,
    ) -> CompilerResult:
        """
        Compile an AST JSON file.

        Args:
            filepath: Path to the AST JSON
            source_path: Path to the original source, for excerpts
            output_name: Name of the generated file

        Raises:
            FileNotFoundError: If a file is missing
            ASTError: If the AST is malformed
        """
        path = Path(filepath)
        if not path.exists():
            raise FileNotFoundError(f"AST file not found: {filepath}")

        source = None
        filename = str(path)
        if source_path is not None:
            source = Path(source_path).read_text(encoding="utf-8")
            filename = str(source_path)

        data = json.loads(path.read_text(encoding="utf-8"))
        return self.compile_json(data, source, filename, output_name)

    def collect_dependencies(self, ast: Program) -> List[Dependency]:
        """The files a program imports, in source order."""
        return DependencyCollector().collect(ast)


# =============================================================================
# Convenience Functions
# =============================================================================

def compile_objj(
    ast: Union[Program, str, bytes, Mapping[str, Any]],
    source: Optional[str] = None,
    filename: str = "<input>",
    options: Optional[CompilerOptions] = None,
    symbols: Optional[SymbolTables] = None,
) -> str:
    """
    Compile an Objective-J program to JavaScript.

    Args:
        ast: A Program, or the AST as JSON text or decoded JSON
        source: Original source text, if available
        filename: Source filename for messages
        options: Compiler options
        symbols: Shared symbol tables

    Returns:
        The generated JavaScript

    Raises:
        ObjJCompilationError: If the program has errors
        ASTError: If the AST is malformed
    """
    compiler = Compiler(options, symbols)
    if isinstance(ast, Program):
        result = compiler.compile_ast(ast, source, filename)
    else:
        result = compiler.compile_json(ast, source, filename)

    if not result.success:
        raise ObjJCompilationError(result.report(), result.issues)
    return result.code


def compile_file(
    input_path: Union[str, os.PathLike],
    output_path: Union[str, os.PathLike, None] = None,
    source_path: Union[str, os.PathLike, None] = None,
    options: Optional[CompilerOptions] = None,
    symbols: Optional[SymbolTables] = None,
) -> CompilerResult:
    """
    Compile an AST JSON file and write the JavaScript next to it.

    Args:
        input_path: Path to the AST JSON
        output_path: Where to write the code (default: input with .js)
        source_path: Path to the original source, if available
        options: Compiler options
        symbols: Shared symbol tables

    Returns:
        The CompilerResult

    Raises:
        ObjJCompilationError: If the program has errors
    """
    input_path = Path(input_path)
    output_path = Path(output_path) if output_path is not None else input_path.with_suffix(".js")

    compiler = Compiler(options, symbols)
    result = compiler.compile_file(input_path, source_path, output_name=output_path.name)

    if not result.success:
        raise ObjJCompilationError(result.report(), result.issues)

    output_path.write_text(result.code, encoding="utf-8")
    if result.source_map is not None:
        output_path.with_name(output_path.name + ".map").write_text(result.source_map, encoding="utf-8")

    logger.debug(f"Wrote {output_path}")
    return result
