"""
Terminal Layer.

This package holds the Typer application, the interactive shell, display
surfaces, the progress display and console formatters.
"""
