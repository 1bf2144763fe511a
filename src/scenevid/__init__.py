"""Render narrated scene scripts into a single video."""

__version__ = "0.1.0"
