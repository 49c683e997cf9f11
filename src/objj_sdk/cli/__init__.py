"""
Objective-J SDK Command-Line Interface
======================================

This package provides the command-line tools of the Objective-J SDK:

- **objjc**: Objective-J compiler

Each tool is implemented as a Click-based CLI application with
comprehensive help and error reporting.
"""

__all__ = ["objjc"]
