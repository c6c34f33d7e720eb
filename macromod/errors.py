from __future__ import annotations


class MacroModError(Exception):
    """Base error for the macromod library."""


class InvalidConfigError(MacroModError):
    """Raised when a generation config cannot be parsed or validated."""


class UnknownAlgorithmError(MacroModError):
    """Raised when no variant is registered under an algorithm name."""
