"""
Objective-J Compiler Error Hierarchy
====================================

Exceptions raised by the Objective-J compiler. All of them derive from
ObjJError, a subclass of ObjJSdkError.

Most problems found while compiling are *diagnostics*: they are recorded
by the Diagnostics engine and compilation carries on. The exceptions below
are reserved for problems that make further compilation meaningless.

Exception Hierarchy
-------------------
ObjJError (base for all compiler errors)
├── ObjJCompilationError - aggregate report of a failed compilation
└── CompileAbortedError - fatal, unwinds straight to the driver
    ├── TooManyErrorsError - error threshold exceeded
    ├── DuplicateDefinitionError - class, category or protocol defined twice
    ├── UnknownSuperclassError - superclass missing or only forward declared
    ├── InvalidSuperError - 'super' in a root class or outside a method
    ├── DereferenceError - @deref of an expression with side effects
    └── MalformedDeclarationError - method outside any class or protocol

Rendering
---------
str(error) gives the location, the source line with a caret under the
column, the related notes and an optional hint:

    Person.j:12:1: error: duplicate definition of class 'Person'
        @implementation Person : CPObject
        ^
    Person.j:3:1: note: previous definition is here
"""

from typing import List, Optional, Tuple

from objj_sdk.errors import ObjJSdkError, SourceLocation


# A related note: where it points and what it says.
Note = Tuple[Optional[SourceLocation], str]


# =============================================================================
# Base Objective-J Exception
# =============================================================================

class ObjJError(ObjJSdkError):
    """
    Base exception for all Objective-J compiler errors.

    Carries everything needed to print the error the way a compiler
    does: where, the offending line, related notes and a hint.

    Attributes:
        message: What went wrong
        location: Position of the offending node, if known
        hint: Optional advice printed last
        source_line: Text of the line at location, shown under the header
        notes: Related (location, message) pairs, e.g. a previous definition
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
        notes: Optional[List[Note]] = None,
    ):
        self.message = message
        self.location = location
        self.hint = hint
        self.source_line = source_line
        self.notes = list(notes) if notes else []
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """
        Format the error message with location, source context, notes and hint.

        Example:

            Main.j:5:12: error: dereference of expression with side effects
                x = @deref(f());
                           ^
        """
        parts = []

        if self.location:
            parts.append(f"{self.location}: error: {self.message}")
        else:
            parts.append(f"error: {self.message}")

        if self.source_line is not None and self.location is not None:
            parts.append(f"    {self.source_line}")
            if self.location.column > 0:
                padding = " " * (4 + self.location.column - 1)
                parts.append(f"{padding}^")

        for location, text in self.notes:
            if location:
                parts.append(f"{location}: note: {text}")
            else:
                parts.append(f"note: {text}")

        if self.hint:
            parts.append(f"hint: {self.hint}")

        return "\n".join(parts)


class ObjJCompilationError(ObjJError):
    """
    Aggregate compilation error containing every collected issue.

    Raised by the convenience functions when a compilation produced
    errors. The message is already a formatted report from the
    Diagnostics engine and is passed through untouched.

    Attributes:
        issues: The Issue objects that make up the report
    """

    def __init__(self, message: str, issues: Optional[list] = None):
        self.issues = list(issues) if issues else []
        super().__init__(message)

    def _format_message(self) -> str:
        # the Diagnostics report is already formatted
        return self.message


# =============================================================================
# Fatal Errors
# =============================================================================

class CompileAbortedError(ObjJError):
    """
    Fatal error that stops compilation of the current unit.

    The code generator raises a subclass of this wherever continuing
    would produce nonsense. The driver records it as an error
    diagnostic and stops walking the tree.
    """
    pass


class TooManyErrorsError(CompileAbortedError):
    """
    Raised when the number of errors exceeds the configured threshold.

    Attributes:
        max_errors: The threshold that was exceeded
    """

    def __init__(self, max_errors: int):
        self.max_errors = max_errors
        super().__init__(f"too many errors (>{max_errors})")


class DuplicateDefinitionError(CompileAbortedError):
    """
    A class, category or protocol was fully defined twice.

    A forward declaration (@class) followed by an implementation is not a
    duplicate; the implementation replaces the stub.

    Attributes:
        kind: "class", "category" or "protocol"
        name: The duplicated name
    """

    def __init__(
        self,
        kind: str,
        name: str,
        location: Optional[SourceLocation] = None,
        previous_location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.kind = kind
        self.name = name
        self.previous_location = previous_location
        super().__init__(
            f"duplicate definition of {kind} '{name}'",
            location=location,
            source_line=source_line,
            notes=[(previous_location, "previous definition is here")],
        )


class UnknownSuperclassError(CompileAbortedError):
    """
    The superclass of a class is unknown or only forward declared.

    Attributes:
        superclass: Name of the missing superclass
        class_name: Name of the class being declared
    """

    def __init__(
        self,
        superclass: str,
        class_name: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.superclass = superclass
        self.class_name = class_name
        super().__init__(
            f"cannot find implementation declaration for '{superclass}', "
            f"superclass of '{class_name}'",
            location=location,
            source_line=source_line,
        )


class InvalidSuperError(CompileAbortedError):
    """
    'super' used where there is no superclass to dispatch to.

    Either the enclosing class is a root class or the message send is
    not inside a method at all.
    """
    pass


class DereferenceError(CompileAbortedError):
    """
    A @deref() target is not an idempotent expression.

    Dereference forms such as `@deref(r) += 1` evaluate their target
    twice, so the target must be free of side effects.
    """

    def __init__(
        self,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        super().__init__(
            "dereference of expression with side effects",
            location=location,
            source_line=source_line,
            hint="assign the expression to a variable and dereference that",
        )


class MalformedDeclarationError(CompileAbortedError):
    """
    Internal consistency error: a declaration appeared where the
    enclosing context cannot hold it, e.g. a method declaration outside
    any @implementation or @protocol.
    """
    pass
