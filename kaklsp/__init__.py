"""Position, text edit, configuration and workspace helpers for a Kakoune LSP client."""

__version__ = "0.1.0"