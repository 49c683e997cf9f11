"""
objjc Exit Codes and Error Reporting
====================================

Every failure of the command line compiler ends here: the exception is
printed to stderr in the form that suits it and mapped to an exit code.

    ObjJError                       printed as is (already compiler formatted)
    ConfigurationError, FormatError "Error: ..."          invalid arguments
    ASTError, other ObjJSdkError    "<Kind> error: ..."   build error
    click.BadParameter, missing or unreadable files       invalid arguments
    anything else                   "Internal error: ..." internal error
"""

import sys
import traceback
from enum import IntEnum
from typing import NoReturn

import click

from objj_sdk.errors import ConfigurationError, FormatError, ObjJSdkError
from objj_sdk.objj.errors import ObjJError


class ExitCode(IntEnum):
    """Process exit status of objjc."""
    SUCCESS = 0
    BUILD_ERROR = 1      # a unit had errors, or its AST was malformed
    INVALID_ARGS = 2     # bad options, format or input paths
    INTERNAL_ERROR = 3   # compiler bug


_USAGE_ERRORS = (
    ConfigurationError,
    FormatError,
    click.BadParameter,
    FileNotFoundError,
    IsADirectoryError,
    PermissionError,
)


def handle_cli_exception(
    error: Exception,
    verbose: bool = False,
    error_type: str | None = None
) -> NoReturn:
    """
    Report an exception raised by a command and exit.

    Args:
        error: The exception
        verbose: Print the traceback of internal errors
        error_type: Prefix for input errors, e.g. "Compilation" gives
            "Compilation error: ..."

    Raises:
        SystemExit: Always
    """
    if isinstance(error, ObjJError):
        click.echo(str(error), err=True)
        sys.exit(ExitCode.BUILD_ERROR)

    if isinstance(error, _USAGE_ERRORS):
        click.echo(f"Error: {error}", err=True)
        sys.exit(ExitCode.INVALID_ARGS)

    if isinstance(error, ObjJSdkError):
        label = f"{error_type} error" if error_type else "Error"
        click.echo(f"{label}: {error}", err=True)
        sys.exit(ExitCode.BUILD_ERROR)

    click.echo(f"Internal error: {error}", err=True)
    if verbose:
        traceback.print_exc()
    sys.exit(ExitCode.INTERNAL_ERROR)
