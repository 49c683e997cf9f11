"""
Objective-J SDK Errors
======================

Exceptions raised before or around a compilation, and SourceLocation,
which every diagnostic points with.

    ObjJSdkError
    ├── ConfigurationError   CompilerOptions rejected
    ├── FormatError          format name, path or JSON unusable
    ├── ASTError             the parser's AST cannot be loaded
    └── ObjJError            compiler errors, in objj_sdk.objj.errors

Only ObjJError and its subclasses carry a location. They render like
compiler output:

    Main.j:12:5: error: duplicate definition of class 'Foo'
        @implementation Foo : CPObject
        ^
    Main.j:3:1: note: previous definition is here
"""

from dataclasses import dataclass


# =============================================================================
# Root
# =============================================================================

class ObjJSdkError(Exception):
    """
    Root of every exception raised by objj_sdk.

        try:
            compile_file("Main.json")
        except ObjJSdkError as e:
            print(f"objjc: {e}")
    """
    pass


# =============================================================================
# Locations
# =============================================================================

@dataclass(frozen=True)
class SourceLocation:
    """
    A position in an Objective-J source file.

    The parser reports 0-based columns; locations stored here are
    1-indexed in both line and column, matching the way compilers print
    them. Use `column - 1` when an offset into the line is needed.

    Attributes:
        filename: Source file, as given to the compiler
        line: 1-based line
        column: 1-based column
    """
    filename: str
    line: int
    column: int

    def __str__(self) -> str:
        return f"{self.filename}:{self.line}:{self.column}"


# =============================================================================
# Setup Exceptions
# =============================================================================

class ConfigurationError(ObjJSdkError):
    """
    Raised when compiler options are invalid.

    Configuration problems are reported before any compilation starts,
    for example a non-positive error threshold or an unknown environment.
    """
    pass


class FormatError(ObjJSdkError):
    """
    Raised when a format description cannot be loaded.

    The message names the format and, for bundled formats, lists the
    formats that are available.
    """
    pass


class ASTError(ObjJSdkError):
    """
    Raised when the AST handed to the compiler is malformed.

    Attributes:
        node_type: The offending node type, if known
    """

    def __init__(self, message: str, node_type: str | None = None):
        self.node_type = node_type
        super().__init__(message)
