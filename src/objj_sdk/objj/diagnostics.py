"""
Compiler Diagnostics
====================

Collects the notes, warnings and errors found while compiling one unit.

Recording
---------
    diagnostics.warning(node, "debugger statement")
    diagnostics.note(previous_node, "previous definition is here")

A note is attached to the issue reported just before it. If that issue
was dropped (warnings ignored, or a duplicate of an issue already
recorded), its notes are dropped with it.

Each error counts toward `max_errors`. Once the count is exceeded,
TooManyErrorsError is raised to stop the compilation.

Deferred Issues
---------------
Two warnings can only be confirmed once the scope they occur in is
complete, because a later `var` in the same scope legitimizes an
earlier use:

    ImplicitGlobalWarning      assignment to an undeclared name
    UnknownIdentifierWarning   reference to an undeclared name

They are recorded at once but also parked on the root scope. When a
function or method scope closes, filter_identifier_issues() drops those
that became valid. What is left at the end of the program is final.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Mapping, Optional, Union

from objj_sdk.errors import SourceLocation
from objj_sdk.objj.ast import ASTNode
from objj_sdk.objj.errors import ObjJError, TooManyErrorsError
from objj_sdk.objj.scope import Scope, VarKind

logger = logging.getLogger(__name__)

WARNINGS: Dict[str, bool] = {
    "debugger": True,
    "shadowed-vars": True,
    "implicit-globals": True,
    "unknown-identifiers": True,
    "parameter-types": False,
    "unknown-types": False,
    "unimplemented-protocol-methods": True,
}


class Severity(Enum):
    NOTE = "note"
    WARNING = "warning"
    ERROR = "error"


Anchor = Union[ASTNode, SourceLocation, None]


@dataclass(eq=False)
class Issue:
    """
    One diagnostic.

    Attributes:
        severity: note, warning or error
        message: The text of the diagnostic
        location: Where it points to
        source_line: The source text of that line, if the source is known
        notes: Related notes, rendered after the issue
        node: The node the issue is anchored to
        scope: For deferred issues, the scope they are validated against
    """
    severity: Severity
    message: str
    location: Optional[SourceLocation] = None
    source_line: Optional[str] = None
    notes: List["Issue"] = field(default_factory=list)
    node: Optional[ASTNode] = field(default=None, repr=False)
    scope: Optional[Scope] = field(default=None, repr=False)

    @property
    def is_error(self) -> bool:
        return self.severity is Severity.ERROR

    @property
    def is_warning(self) -> bool:
        return self.severity is Severity.WARNING

    def __str__(self) -> str:
        parts = []
        if self.location:
            parts.append(f"{self.location}: {self.severity.value}: {self.message}")
        else:
            parts.append(f"{self.severity.value}: {self.message}")

        if self.source_line is not None and self.location is not None:
            parts.append(f"    {self.source_line}")
            if self.location.column > 0:
                parts.append(" " * (4 + self.location.column - 1) + "^")

        for note in self.notes:
            parts.append(str(note))

        return "\n".join(parts)


class ImplicitGlobalWarning(Issue):
    """Assignment that would create a global; valid once a local var exists."""

    def is_valid_in_scope(self, scope: Scope) -> bool:
        variable = scope.local_var(self.node.name)
        return variable is not None and variable.kind is not VarKind.IMPLICIT_GLOBAL


class UnknownIdentifierWarning(Issue):
    """Reference to an unknown name; valid once a var, global or class exists."""

    def __init__(self, *args, symbols=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.symbols = symbols

    def is_valid_in_scope(self, scope: Scope) -> bool:
        name = self.node.name
        return (
            scope.local_var(name) is not None
            or scope.global_var(name) is not None
            or (self.symbols is not None and self.symbols.lookup_class(name) is not None)
        )


DEFERRED_ISSUE_CLASSES = (ImplicitGlobalWarning, UnknownIdentifierWarning)


class Diagnostics:
    """
    Issue collector for one compilation unit.

    Example:
        diagnostics = Diagnostics(source=text, filename="Main.j")
        diagnostics.error(node, "'self' used as a method parameter")

        if diagnostics.has_errors():
            print(diagnostics.format_report())
    """

    def __init__(
        self,
        source: Optional[str] = None,
        filename: str = "<input>",
        max_errors: int = 20,
        warnings: Optional[Mapping[str, bool]] = None,
        ignore_warnings: bool = False,
    ):
        self.source = source
        self.filename = filename
        self.max_errors = max_errors
        self.warnings = dict(WARNINGS)
        self.warnings.update(warnings or {})
        self.ignore_warnings = ignore_warnings

        self.issues: List[Issue] = []
        self._seen = set()
        self._last_issue: Optional[Issue] = None
        self._lines = source.splitlines() if source is not None else None

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @property
    def errors(self) -> List[Issue]:
        return [issue for issue in self.issues if issue.is_error]

    @property
    def warnings_issued(self) -> List[Issue]:
        return [issue for issue in self.issues if issue.is_warning]

    def error_count(self) -> int:
        return len(self.errors)

    def warning_count(self) -> int:
        return len(self.warnings_issued)

    def has_errors(self) -> bool:
        return any(issue.is_error for issue in self.issues)

    def should_warn_about(self, warning: str) -> bool:
        """True if the named optional warning is enabled."""
        return not self.ignore_warnings and self.warnings.get(warning, False)

    # -------------------------------------------------------------------------
    # Recording
    # -------------------------------------------------------------------------

    def source_line(self, location: Optional[SourceLocation]) -> Optional[str]:
        if location is None or self._lines is None:
            return None
        if 1 <= location.line <= len(self._lines):
            return self._lines[location.line - 1]
        return None

    def _make(self, cls, severity: Severity, anchor: Anchor, message: str, **kwargs) -> Issue:
        node = anchor if isinstance(anchor, ASTNode) else None
        location = anchor.location if node is not None else anchor
        return cls(
            severity,
            message,
            location=location,
            source_line=self.source_line(location),
            node=node,
            **kwargs,
        )

    def add_issue(self, issue: Issue) -> Optional[Issue]:
        """
        Record an issue.

        Returns:
            The issue, or None if it was dropped
        """
        self._last_issue = None

        if issue.is_warning and self.ignore_warnings:
            return None

        key = (issue.severity, issue.message, issue.location)
        if key in self._seen:
            return None
        self._seen.add(key)

        self.issues.append(issue)
        self._last_issue = issue

        if issue.is_error and self.max_errors > 0 and self.error_count() > self.max_errors:
            raise TooManyErrorsError(self.max_errors)

        return issue

    def report(
        self,
        severity: Severity,
        anchor: Anchor,
        message: str,
        issue_class=Issue,
        **kwargs,
    ) -> Optional[Issue]:
        if severity is Severity.NOTE:
            return self.note(anchor, message)
        return self.add_issue(self._make(issue_class, severity, anchor, message, **kwargs))

    def warning(self, anchor: Anchor, message: str) -> Optional[Issue]:
        return self.report(Severity.WARNING, anchor, message)

    def error(self, anchor: Anchor, message: str) -> Optional[Issue]:
        return self.report(Severity.ERROR, anchor, message)

    def note(self, anchor: Anchor, message: str) -> Optional[Issue]:
        """Attach a note to the most recently recorded issue."""
        if self._last_issue is None:
            return None
        note = self._make(Issue, Severity.NOTE, anchor, message)
        self._last_issue.notes.append(note)
        return note

    def add_compile_error(self, error: ObjJError) -> Issue:
        """Record a fatal compiler exception as an error issue."""
        issue = Issue(
            Severity.ERROR,
            error.message,
            location=error.location,
            source_line=error.source_line or self.source_line(error.location),
        )
        for location, text in error.notes:
            issue.notes.append(Issue(
                Severity.NOTE, text, location=location, source_line=self.source_line(location),
            ))
        self._last_issue = None
        self.issues.append(issue)
        return issue

    # -------------------------------------------------------------------------
    # Deferred issues
    # -------------------------------------------------------------------------

    def add_deferred(self, issue: Issue, scope: Scope) -> Optional[Issue]:
        """Record a deferred warning, to be re-validated when `scope` closes."""
        issue.scope = scope
        recorded = self.add_issue(issue)
        if recorded is not None:
            scope.add_deferred_issue(recorded)
        return recorded

    def report_deferred(self, issue_class, anchor: Anchor, message: str, scope: Scope, **kwargs) -> Optional[Issue]:
        """Record a deferred warning of `issue_class` against `scope`."""
        issue = self._make(issue_class, Severity.WARNING, anchor, message, **kwargs)
        return self.add_deferred(issue, scope)

    def filter_identifier_issues(self, scope: Scope) -> None:
        """Drop the deferred issues of `scope` that the scope now legitimizes."""
        for issue in list(scope.root.deferred_issues):
            if issue.scope is not scope:
                continue
            if issue.is_valid_in_scope(scope):
                scope.remove_deferred_issue(issue)
                self.issues.remove(issue)
                self._seen.discard((issue.severity, issue.message, issue.location))

    def finalize_deferred(self, root: Scope) -> None:
        """Make the remaining deferred issues final."""
        if root.deferred_issues:
            logger.debug(f"{len(root.deferred_issues)} deferred issue(s) kept")
        root.deferred_issues.clear()

    # -------------------------------------------------------------------------
    # Output
    # -------------------------------------------------------------------------

    def format_report(self) -> str:
        """All issues in the order found, then an error/warning summary."""
        lines = []
        for issue in self.issues:
            lines.append(str(issue))
            lines.append("")

        errors = self.error_count()
        warnings = self.warning_count()
        error_word = "error" if errors == 1 else "errors"
        warning_word = "warning" if warnings == 1 else "warnings"
        lines.append(f"{errors} {error_word}, {warnings} {warning_word}")
        return "\n".join(lines)
