"""Command-line interface for lxquery."""

from .main import main

__all__ = ["main"]
