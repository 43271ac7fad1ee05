"""
Data Models Layer.

This package contains the validated configuration model and the dataclasses
that describe sessions, generated images and session snapshots.
"""

from .config import SessionConfig
from .session import (
    GenerationResult,
    ImageDescriptor,
    ImageEntry,
    Session,
    SessionInfo,
)

__all__ = [
    "GenerationResult",
    "ImageDescriptor",
    "ImageEntry",
    "Session",
    "SessionConfig",
    "SessionInfo",
]
