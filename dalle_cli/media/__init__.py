"""
Media Layer.

This package is responsible for fetching generated images to disk and turning
them into transcript entries.
"""

from .downloader import DownloadJob, close_connection_pool, fetch_url_to_file
from .renderer import render_image

__all__ = ["DownloadJob", "close_connection_pool", "fetch_url_to_file", "render_image"]
