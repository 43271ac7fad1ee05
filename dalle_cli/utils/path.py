"""
Utilities for handling file paths and session naming.
"""

from pathlib import Path

SESSION_NAME_FORMAT = "DALL-E <{session_id}>"


def create_dir(directory_path: Path) -> None:
    """Creates a directory if it does not already exist."""
    directory_path.mkdir(parents=True, exist_ok=True)


def session_name(session_id: int) -> str:
    """Derives the addressable display name of a session."""
    return SESSION_NAME_FORMAT.format(session_id=session_id)


def image_file_name(ordinal: int, suffix: str = ".png") -> str:
    """Names a downloaded image by its ordinal within the session."""
    return f"{ordinal}{suffix}"
