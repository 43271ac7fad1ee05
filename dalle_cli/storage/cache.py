"""
File-based image cache, namespaced per session ID.

Each session writes its downloads to `<root>/<session id>/`, named by ordinal
(`0.png`, `1.png`, ...), so no two sessions ever share a path.
"""

import logging
import shutil
from pathlib import Path

from dalle_cli.models.session import ImageEntry
from dalle_cli.utils.path import create_dir

log = logging.getLogger(__name__)


class CacheManager:
    """Manages the on-disk image cache with one directory per session."""

    IMAGE_SUFFIX = ".png"

    def __init__(self, cache_dir_path: Path):
        """
        Initializes the cache manager.

        Args:
            cache_dir_path: The root directory under which session namespaces live.
        """
        self.cache_dir = Path(cache_dir_path).expanduser()

    def session_dir(self, session_id: int) -> Path:
        """Returns the namespace directory of a session, creating it if needed."""
        path = self.cache_dir / str(session_id)
        create_dir(path)
        return path

    def image_path(self, session_id: int, file_name: str) -> Path:
        return self.session_dir(session_id) / file_name

    def list_images(self, session_id: int) -> list[Path]:
        """Lists the cached images of a session in ordinal order."""
        path = self.cache_dir / str(session_id)
        if not path.is_dir():
            return []

        def ordinal(p: Path) -> tuple[int, str]:
            return (int(p.stem), p.name) if p.stem.isdigit() else (-1, p.name)

        return sorted(path.glob(f"*{self.IMAGE_SUFFIX}"), key=ordinal)

    def count_images(self, session_id: int | None = None) -> int:
        """Counts cached images of one session, or of every session."""
        if session_id is not None:
            return len(self.list_images(session_id))
        if not self.cache_dir.is_dir():
            return 0
        return sum(
            len(self.list_images(int(p.name)))
            for p in self.cache_dir.iterdir()
            if p.is_dir() and p.name.isdigit()
        )

    def clear(self, session_id: int | None = None) -> bool:
        """
        Removes one session's namespace, or the whole cache when no ID is given.
        """
        target = self.cache_dir if session_id is None else self.cache_dir / str(
            session_id
        )
        if not target.exists():
            return True
        try:
            shutil.rmtree(target)
            log.debug(f"Cleared image cache at '{target}'.")
            return True
        except OSError as e:
            log.warning(f"Failed to clear image cache at '{target}': {e}")
            return False


def copy_images(images: list[ImageEntry], output_dir: Path) -> list[ImageEntry]:
    """
    Copies the images that exist on disk into `output_dir`, returning entries
    that point at the copies. Missing images are kept as they are.
    """
    create_dir(output_dir)
    copied = []
    for entry in images:
        if entry.path.is_file():
            target = output_dir / entry.path.name
            shutil.copy2(entry.path, target)
            copied.append(ImageEntry(path=target, url=entry.url))
        else:
            copied.append(entry)
    return copied
