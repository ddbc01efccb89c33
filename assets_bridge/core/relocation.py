from __future__ import annotations

from typing import List

from ..errors import RelocateConflictError
from ..host.interfaces import AssetHandle, ContentLibrary
from ..support.logging import get_logger
from .paths import is_under, parent_folder, same_asset


log = get_logger(__name__)


class AssetRelocator:
    """Moves a freshly imported asset to the package path the manifest asks for.

    The importer may drop its output in a scratch folder structure; once the
    asset is moved the emptied folders are removed again, walking upwards and
    stopping at the first folder that still holds something.
    """

    def __init__(self, library: ContentLibrary, content_root: str = "/Game") -> None:
        self.library = library
        self.content_root = content_root

    def relocate(self, handle: AssetHandle, intended_path: str) -> AssetHandle:
        """Move ``handle`` to ``intended_path``.

        Args:
            handle: Asset produced by the import.
            intended_path: Full package path the asset should live at.

        Returns:
            AssetHandle: The asset at its final location.

        Raises:
            RelocateConflictError: Another asset occupies the destination and
                could not be removed. ``handle`` is left where it was.
                Also raised when the move itself fails; an occupant deleted
                beforehand is then lost and reported in the log.
        """

        if same_asset(handle.path, intended_path):
            log.debug("%s already at intended path", handle.path)
            return handle

        existing = self.library.load(intended_path)
        if existing is not None:
            self.library.close_editors(existing)
            if not self.library.delete(existing):
                raise RelocateConflictError(intended_path)
            log.info("Removed existing asset at %s", intended_path)

        original_folder = handle.folder
        moved = self.library.move(handle, intended_path)
        if moved is None:
            if existing is not None:
                log.error(
                    "Moving %s to %s failed after the previous asset %s was deleted; it is no longer in the library",
                    handle.path,
                    intended_path,
                    existing.path,
                )
            raise RelocateConflictError(intended_path)
        log.info("Moved %s -> %s", handle.path, moved.path)

        self.remove_empty_folders(original_folder)
        return moved

    def remove_empty_folders(self, folder: str) -> List[str]:
        """Delete ``folder`` and its ancestors while they are empty; returns the deleted folders."""

        removed: List[str] = []
        current = folder
        while current and current != "/" and is_under(current, self.content_root) and not same_asset(current, self.content_root):
            if self.library.list_assets(current) or self.library.list_subfolders(current):
                break
            if not self.library.delete_folder(current):
                log.warning("Could not delete empty folder %s", current)
                break
            log.debug("Deleted empty folder %s", current)
            removed.append(current)
            current = parent_folder(current)
        return removed

