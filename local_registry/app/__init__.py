"""Application entrypoints for the local registry CLI."""

from .runner import main, parse_args

__all__ = ["main", "parse_args"]
