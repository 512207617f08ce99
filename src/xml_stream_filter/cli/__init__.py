"""Command-line interface module for XML Stream Filter.

This module wires standard input and output (or files) to a configured
``XmlStreamFilter`` assembled from command-line arguments.
"""

from .main import main

__all__ = ["main"]
