"""
Image API Layer.

This package handles all communication with the remote image-generation service.
"""

from .client import ImageAPIClient

__all__ = ["ImageAPIClient"]
