"""
Import dependency collection.

Lists the files a program imports without generating any code, so that
a build tool can order compilation units before compiling them.

    collector = DependencyCollector()
    for dependency in collector.collect(program):
        print(dependency.filename, dependency.local)
"""

import logging
from dataclasses import dataclass
from typing import List

from objj_sdk.objj.ast import ASTVisitor, ImportStatement, Program

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Dependency:
    """
    One @import of a program.

    Attributes:
        filename: The imported path, as written
        local: True for "file.j", False for <Framework/file.j>
    """
    filename: str
    local: bool = True

    def __str__(self) -> str:
        if self.local:
            return f'"{self.filename}"'
        return f"<{self.filename}>"


class DependencyCollector(ASTVisitor):
    """Collects the import statements of a program in source order."""

    def __init__(self):
        self.dependencies: List[Dependency] = []

    def collect(self, program: Program) -> List[Dependency]:
        self.dependencies = []
        self.visit(program)
        logger.debug(f"Collected {len(self.dependencies)} dependencies")
        return self.dependencies

    def visit_ImportStatement(self, node: ImportStatement) -> None:
        self.dependencies.append(Dependency(node.path, node.local))
