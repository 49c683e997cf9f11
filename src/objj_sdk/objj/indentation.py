"""
Indentation state for code generation.

One Indenter belongs to one compilation. Templates use the "→" character
as a placeholder for a single indent step.
"""

import re

TAB_PLACEHOLDER = "→"

_NON_BLANK = re.compile(r"\S")


class Indenter:
    """Current indentation depth, expressed as the indentation text itself."""

    def __init__(self, indent_string: str = " ", indent_width: int = 4):
        self.set_indent(indent_string, indent_width)

    def set_indent(self, indent_string: str, indent_width: int) -> None:
        """Change the indent unit and reset the depth to zero."""
        self.indent_string = indent_string
        self.indent_width = indent_width
        self.indent_step = indent_string * indent_width
        self.indentation = ""

    def indent(self, count: int = 1) -> None:
        self.indentation += self.indent_step * count

    def dedent(self, count: int = 1) -> None:
        size = len(self.indent_step) * count
        self.indentation = self.indentation[size:]

    def indent_text(self, text: str, skip_first_line: bool = False) -> str:
        """
        Indent every non-blank line of a template and expand "→" placeholders.

        Args:
            text: Template text, may span several lines
            skip_first_line: Leave the first line as is

        Returns:
            The indented text
        """
        lines = text.split("\n")
        for i in range(1 if skip_first_line else 0, len(lines)):
            if _NON_BLANK.search(lines[i]):
                lines[i] = self.indentation + lines[i]
        return "\n".join(lines).replace(TAB_PLACEHOLDER, self.indent_step)
