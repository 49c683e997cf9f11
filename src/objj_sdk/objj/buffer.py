"""
Output Buffers
==============

Generated code is accumulated as a list of atoms (text fragments) rather
than one string, because already emitted fragments sometimes have to be
blanked again (an implicit "self." in front of an identifier that later
turns out to be a local variable), and because method bodies are built
in separate buffers that are spliced into the main one at the end of a
class declaration.

Backends
--------
StringBuffer      plain text
SourceMapBuffer   also remembers the source position of mapped atoms
                  and can produce a version 3 source map

Both answer len() (atom count) and is_empty() the same way, so code
generation never needs to know which backend it writes to.

Formatting
----------
The concat_* helpers emit a piece of text surrounded by the values of
the "before-X" / "after-X" format keys of the node being compiled.
Format values may carry "|N" indentation directives, applied against the
compilation's Indenter as the value is emitted.
"""

import os
import re
from dataclasses import dataclass
from typing import Callable, List, Optional

from objj_sdk.errors import SourceLocation
from objj_sdk.objj.ast import ASTNode
from objj_sdk.objj.formats import Format
from objj_sdk.objj.indentation import Indenter
from objj_sdk.objj.scope import NodeAncestry
from objj_sdk.objj.sourcemap import SourceMapGenerator

RECEIVER_TEMP_VAR = "___r"

_DIRECTIVE_RE = re.compile(r"\|(-?\d+)")


class FormatContext:
    """
    Per-compilation formatting state shared by every buffer of a compilation.

    Attributes:
        format: The Format rule table
        indenter: Current indentation
        ancestry: Nodes being walked, for conditional format values
    """

    def __init__(
        self,
        format: Format,
        indenter: Optional[Indenter] = None,
        ancestry: Optional[NodeAncestry] = None,
    ):
        self.format = format
        self.indenter = indenter or Indenter()
        self.ancestry = ancestry or NodeAncestry()

    def value_for(self, node_type: Optional[str], key: str) -> Optional[str]:
        return self.format.value_for(self.ancestry, node_type, key)


@dataclass
class _Atom:
    text: str
    location: Optional[SourceLocation] = None


class StringBuffer:
    """Plain text output buffer."""

    def __init__(self, context: FormatContext):
        self.context = context
        self.atoms: List[_Atom] = []

    def __len__(self) -> int:
        return len(self.atoms)

    def __str__(self) -> str:
        return "".join(atom.text for atom in self.atoms)

    def is_empty(self) -> bool:
        return not self.atoms

    def remove(self, index: int) -> None:
        """
        Blank the atom at `index`, keeping later indexes valid.

        The atom is cleared in place, so buffers it was spliced into by
        concat_buffer lose the text too.
        """
        self.atoms[index].text = ""

    def new_buffer(self) -> "StringBuffer":
        """An empty buffer of the same backend sharing this buffer's context."""
        return self.__class__(self.context)

    def _location_of(self, node: Optional[ASTNode]) -> Optional[SourceLocation]:
        return None

    # -------------------------------------------------------------------------
    # Raw output
    # -------------------------------------------------------------------------

    def concat(self, text: str, node: Optional[ASTNode] = None) -> None:
        """
        Append text.

        Args:
            text: Text to append
            node: If given, the text maps back to this node's position
        """
        self.atoms.append(_Atom(text, self._location_of(node)))

    def concat_buffer(self, buffer: "StringBuffer") -> None:
        """Splice the atoms of another buffer onto the end of this one."""
        self.atoms.extend(buffer.atoms)

    # -------------------------------------------------------------------------
    # Formatted output
    # -------------------------------------------------------------------------

    def concat_format(self, node_type: Optional[str], key: Optional[str]) -> None:
        """Emit the value of one format key, applying indentation directives."""
        if not key:
            return

        value = self.context.value_for(node_type, key)
        if not value:
            return

        indenter = self.context.indenter
        lines = value.split("\n")
        last = len(lines) - 1

        for i, line in enumerate(lines):
            is_empty_line = False
            match = _DIRECTIVE_RE.search(line)
            if match:
                amount = int(match.group(1))
                if amount > 0:
                    indenter.indent(amount)
                elif amount < 0:
                    indenter.dedent(-amount)
                else:
                    is_empty_line = True
                line = line[:match.start()]

            # empty lines in the middle of a value are not indented
            if i > 0 and not is_empty_line and (i == last or line):
                line = indenter.indentation + line
            lines[i] = line

        self.concat("\n".join(lines))

    def concat_with_format(
        self,
        node_type: Optional[str],
        text: str,
        format_key: Optional[str] = None,
        map_node: Optional[ASTNode] = None,
    ) -> None:
        """Emit `before-KEY`, the text, then `after-KEY` (KEY defaults to the text)."""
        format_key = format_key or text
        self.concat_format(node_type, f"before-{format_key}")
        self.concat(text, map_node)
        self.concat_format(node_type, f"after-{format_key}")

    def concat_with_formats(
        self,
        node_type: Optional[str],
        before: Optional[str],
        text: str,
        after: Optional[str] = None,
        map_node: Optional[ASTNode] = None,
    ) -> None:
        """Emit the text between two explicitly named format keys."""
        if before:
            self.concat_format(node_type, before)
        self.concat(text, map_node)
        if after:
            self.concat_format(node_type, after)

    def concat_left_parens(self, node_type: Optional[str]) -> None:
        self.concat_with_format(node_type, "(", "left-parens")

    def concat_right_parens(self, node_type: Optional[str]) -> None:
        self.concat_with_format(node_type, ")", "right-parens")

    def concat_comma(self, node_type: Optional[str], format_key: str = "comma") -> None:
        self.concat_with_format(node_type, ",", format_key)

    def concat_operator(self, node_type: Optional[str], operator: str) -> None:
        self.concat_with_format(node_type, operator, "operator")

    def concat_parenthesized_block(
        self,
        node_type: Optional[str],
        func: Optional[Callable[[], None]] = None,
    ) -> None:
        """
        Emit "(", the output of `func`, then ")".

        The inner "after-left-parens" / "before-right-parens" keys only
        apply when there is something between the parentheses.
        """
        self.concat_with_formats(node_type, "before-left-parens", "(",
                                 "after-left-parens" if func else None)
        if func is not None:
            func()
        self.concat_with_formats(node_type, "before-right-parens" if func else None, ")",
                                 "after-right-parens")


class SourceMapBuffer(StringBuffer):
    """Output buffer that also produces a source map."""

    def _location_of(self, node: Optional[ASTNode]) -> Optional[SourceLocation]:
        if node is None:
            return None
        return node.location

    def source_map(self, file: Optional[str] = None, source_root: Optional[str] = None) -> SourceMapGenerator:
        """
        Build the source map of the buffer's current contents.

        Args:
            file: Name of the generated file
            source_root: The map's sourceRoot

        Returns:
            The populated SourceMapGenerator
        """
        generator = SourceMapGenerator(file=file, source_root=source_root)
        line, column = 1, 0

        for atom in self.atoms:
            location = atom.location
            if location is not None:
                generator.add_mapping(
                    line,
                    column,
                    os.path.basename(location.filename),
                    location.line,
                    max(location.column - 1, 0),
                )

            newlines = atom.text.count("\n")
            if newlines:
                line += newlines
                column = len(atom.text) - atom.text.rfind("\n") - 1
            else:
                column += len(atom.text)

        return generator
