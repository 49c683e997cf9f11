"""
objjc - Objective-J Compiler Command-Line Interface
===================================================

This module implements the command-line interface for the Objective-J
compiler. The input is the AST of an Objective-J file in ESTree JSON, as
written by an Objective-J aware parser (e.g. `acorn-objj --ast`).

Usage Examples
--------------
Compile to stdout:
    $ objjc Main.json

With output file and source excerpts in messages:
    $ objjc Main.json --source Main.j -o Main.js

Several files sharing their classes, written to a directory:
    $ objjc Base.json Main.json -o build/

Warnings:
    $ objjc -W unknown-types -W no-shadowed-vars Main.json

Imports only:
    $ objjc --dependencies Main.json
"""

import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import click

from objj_sdk import __version__
from objj_sdk.cli.errors import ExitCode, handle_cli_exception
from objj_sdk.objj.ast import load_ast
from objj_sdk.objj.compiler import Compiler, CompilerOptions
from objj_sdk.objj.diagnostics import WARNINGS
from objj_sdk.objj.formats import available_formats
from objj_sdk.objj.globals import ENVIRONMENTS
from objj_sdk.objj.language import SymbolTables

logger = logging.getLogger(__name__)

STDIN = "-"

_INDENT_NAMES = {"tab": "\t", "space": " "}


# =============================================================================
# Option Parsing
# =============================================================================

def parse_warnings(values: Tuple[str, ...]) -> Dict[str, bool]:
    """
    Turn -W values into a warning map.

    Each value is a comma separated list of: a warning name or +name
    (enable), no-name (disable), "all" or "none".

    Raises:
        click.BadParameter: For an unknown warning name
    """
    warnings: Dict[str, bool] = {}

    for value in values:
        for item in value.split(","):
            item = item.strip()
            if not item:
                continue

            if item in ("all", "none"):
                for name in WARNINGS:
                    warnings[name] = item == "all"
                continue

            enabled = True
            if item.startswith("no-"):
                item, enabled = item[3:], False
            elif item.startswith("+"):
                item = item[1:]

            if item not in WARNINGS:
                raise click.BadParameter(
                    f"unknown warning '{item}' (expected one of: {', '.join(WARNINGS)})",
                    param_hint="-W",
                )
            warnings[item] = enabled

    return warnings


def _output_paths(inputs: List[str], output: Optional[Path]) -> List[Optional[Path]]:
    """Where each input's code goes; None means stdout."""
    if output is None:
        return [None] * len(inputs)

    if len(inputs) > 1 or output.is_dir() or str(output).endswith(("/", "\\")):
        output.mkdir(parents=True, exist_ok=True)
        paths = []
        for name in inputs:
            stem = "stdin" if name == STDIN else Path(name).stem
            paths.append(output / f"{stem}.js")
        return paths

    return [output]


def _read_input(name: str) -> str:
    if name == STDIN:
        return click.get_text_stream("stdin").read()
    return Path(name).read_text(encoding="utf-8")


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument("inputs", nargs=-1, required=False)
@click.option(
    "-o", "--output",
    type=click.Path(path_type=Path),
    help="Output file, or directory for several inputs (default: stdout)",
)
@click.option(
    "--source",
    "sources",
    multiple=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Original Objective-J source of each input, in input order",
)
@click.option(
    "--source-map",
    is_flag=True,
    help="Write a source map next to each output file",
)
@click.option(
    "-f", "--format",
    "format_name",
    default="cappuccino",
    show_default=True,
    help=f"Output format: a bundled format ({', '.join(available_formats())}) or a JSON file",
)
@click.option(
    "--indent-string",
    default=None,
    help="Indent unit when the format has none: a string, 'space' or 'tab'",
)
@click.option(
    "--indent-width",
    type=click.IntRange(min=0),
    default=None,
    help="Indent units per level when the format has none",
)
@click.option(
    "--max-errors",
    type=int,
    default=20,
    show_default=True,
    help="Stop compiling a file after this many errors",
)
@click.option(
    "-W", "warning_values",
    multiple=True,
    metavar="NAME",
    help="Enable a warning; no-NAME disables it, all/none switch every optional warning",
)
@click.option(
    "--list-optional-warnings",
    is_flag=True,
    help="List optional warnings with their defaults and exit",
)
@click.option(
    "--ignore-warnings",
    is_flag=True,
    help="Do not report any warnings",
)
@click.option(
    "--no-method-names",
    is_flag=True,
    help="Do not name method functions",
)
@click.option(
    "--no-type-signatures",
    is_flag=True,
    help="Do not emit ivar and method type signatures",
)
@click.option(
    "--inline-msg-send",
    is_flag=True,
    help="Dispatch messages inline instead of through objj_msgSend",
)
@click.option(
    "--no-objj-scope",
    is_flag=True,
    help="Do not wrap the file in its own scope",
)
@click.option(
    "--environment",
    type=click.Choice(ENVIRONMENTS),
    default="browser",
    show_default=True,
    help="Environment whose predefined globals are known",
)
@click.option(
    "--dependencies",
    is_flag=True,
    help="Print the files each input imports and exit",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="objjc")
def main(
    inputs: Tuple[str, ...],
    output: Optional[Path],
    sources: Tuple[Path, ...],
    source_map: bool,
    format_name: str,
    indent_string: Optional[str],
    indent_width: Optional[int],
    max_errors: int,
    warning_values: Tuple[str, ...],
    list_optional_warnings: bool,
    ignore_warnings: bool,
    no_method_names: bool,
    no_type_signatures: bool,
    inline_msg_send: bool,
    no_objj_scope: bool,
    environment: str,
    dependencies: bool,
    verbose: bool,
) -> None:
    """
    Compile Objective-J to JavaScript.

    INPUTS are AST files in ESTree JSON ("-" reads standard input). All
    inputs are compiled with one symbol table, so classes and protocols
    declared by one file are known to the files after it.

    \b
    Examples:
        objjc Main.json                      # Code to stdout
        objjc Main.json --source Main.j      # With source excerpts
        objjc A.json B.json -o build/        # Several files
        objjc --source-map Main.json -o Main.js
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )

    if list_optional_warnings:
        for name, enabled in WARNINGS.items():
            click.echo(f"{name} ({'on' if enabled else 'off'})")
        return

    try:
        if not inputs:
            raise click.BadParameter("no input files", param_hint="INPUTS")
        if inputs.count(STDIN) > 1:
            raise click.BadParameter("standard input can only be read once", param_hint="INPUTS")
        if sources and len(sources) != len(inputs):
            raise click.BadParameter(
                f"got {len(sources)} source file(s) for {len(inputs)} input(s)",
                param_hint="--source",
            )
        if source_map and output is None:
            raise click.BadParameter("a source map needs an output file", param_hint="--source-map")

        options = CompilerOptions(
            source_map=source_map,
            format=format_name,
            indent_string=_INDENT_NAMES.get(indent_string, indent_string) if indent_string is not None else " ",
            indent_width=indent_width if indent_width is not None else 4,
            environment=environment,
            max_errors=max_errors,
            method_names=not no_method_names,
            type_signatures=not no_type_signatures,
            inline_msg_send=inline_msg_send,
            objj_scope=not no_objj_scope,
            ignore_warnings=ignore_warnings,
            warnings=parse_warnings(warning_values),
        )

        symbols = SymbolTables()
        compiler = Compiler(options, symbols)

        if dependencies:
            for name in inputs:
                program = load_ast(_read_input(name), name)
                if len(inputs) > 1:
                    click.echo(f"{name}:")
                for dependency in compiler.collect_dependencies(program):
                    click.echo(str(dependency))
            return

        outputs = _output_paths(list(inputs), output)
        failed = False

        for i, name in enumerate(inputs):
            source_path = sources[i] if sources else None
            source = source_path.read_text(encoding="utf-8") if source_path else None
            filename = str(source_path) if source_path else name
            output_path = outputs[i]

            if verbose:
                click.echo(f"Compiling {name}...", err=True)

            program = load_ast(_read_input(name), filename)
            result = compiler.compile_ast(
                program,
                source=source,
                filename=filename,
                output_name=output_path.name if output_path else None,
            )

            if result.issues:
                click.echo(result.report(), err=True)

            if not result.success:
                failed = True
                continue

            if output_path is None:
                click.echo(result.code, nl=False)
                continue

            output_path.write_text(result.code, encoding="utf-8")
            if result.source_map is not None:
                map_path = output_path.with_name(output_path.name + ".map")
                map_path.write_text(result.source_map, encoding="utf-8")
            if verbose:
                click.echo(f"Compiled {name} -> {output_path}", err=True)

        if failed:
            sys.exit(ExitCode.BUILD_ERROR)

    except Exception as e:
        handle_cli_exception(e, verbose=verbose, error_type="Compilation")


if __name__ == "__main__":
    main()
