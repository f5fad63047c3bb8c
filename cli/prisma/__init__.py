"""PRISMA editor CLI.

Command-line interface for editing portfolios outside the browser.
"""

__version__ = "0.1.0"

from cli.prisma.cli import app, main

__all__ = ["__version__", "app", "main"]
