"""
dalle-cli: concurrent image-generation sessions in the terminal.
"""

__version__ = "0.1.0"
