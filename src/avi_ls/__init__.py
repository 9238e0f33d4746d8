"""Completion language server for the Avi language."""

__version__ = "0.1.0"
