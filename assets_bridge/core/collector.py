from __future__ import annotations

import dataclasses
from pathlib import Path
from typing import Any, List, Optional, Sequence, Union

from ..errors import EmptySelectionError, SystemAssetCopyError
from ..host.interfaces import AssetDescription, AssetIntrospection, ContentLibrary, WorldInstance
from ..support.logging import get_logger
from .models import ExportRecord, MeshKind
from .paths import export_file_location, is_system_path, relative_content_path, strip_object_suffix, system_copy_path
from .transforms import world_transform_from_instance


log = get_logger(__name__)


class ExportCollector:
    """Turns the current world + library selection into export records.

    World instances come first and carry their placement; library items are
    added only when no world instance already resolves to the same object.

    Engine content can't be written back by an import, so it is exported as a
    copy under the content root (``/Engine/X/Cube`` -> ``/Game/Engine/X/Cube``).
    Without a ``library`` to make that copy, engine assets are left out.
    """

    def __init__(
        self,
        introspection: AssetIntrospection,
        bridge_root: Union[str, Path],
        content_root: str = "/Game",
        mesh_extension: str = ".glb",
        library: Optional[ContentLibrary] = None,
        engine_root: str = "/Engine",
    ) -> None:
        self.introspection = introspection
        self.bridge_root = Path(bridge_root)
        self.content_root = content_root
        self.mesh_extension = mesh_extension
        self.library = library
        self.engine_root = engine_root

    def collect(self, world_selection: Sequence[WorldInstance], library_selection: Sequence[Any]) -> List[ExportRecord]:
        """Build the deduplicated record list.

        Raises:
            EmptySelectionError: Both selections are empty.
        """

        if not world_selection and not library_selection:
            raise EmptySelectionError()

        records: List[ExportRecord] = []
        represented: List[Any] = []

        for instance in world_selection:
            resolved = self.introspection.resolve(instance.asset)
            record = self._record_for(resolved)
            if record is None:
                continue
            record = record.model_copy(
                update={
                    "identity": instance.name,
                    "world_transform": world_transform_from_instance(instance),
                }
            )
            log.info("Collected world instance %s -> %s", instance.name, record.source_reference)
            records.append(record)
            represented.append(resolved)

        for item in library_selection:
            resolved = self.introspection.resolve(item)
            if self._is_represented(resolved, represented):
                log.debug("Skipping library item already exported with world context: %r", resolved)
                continue
            record = self._record_for(resolved)
            if record is None:
                continue
            log.info("Collected library object %s", record.source_reference)
            records.append(record)
            represented.append(resolved)

        return records

    @staticmethod
    def _is_represented(resolved: Any, represented: Sequence[Any]) -> bool:
        return any(resolved is other or resolved == other for other in represented)

    def _record_for(self, resolved: Any) -> Optional[ExportRecord]:
        desc: AssetDescription = self.introspection.describe(resolved)
        if is_system_path(desc.handle.path, self.engine_root):
            if self.library is None:
                log.warning("Skipping engine asset %s, it cannot be replaced by an import", desc.handle.path)
                return None
            desc = self._copy_system_asset(desc)
        internal_path = relative_content_path(desc.folder, self.content_root)
        location = export_file_location(self.bridge_root, internal_path, desc.name, self.mesh_extension)
        record = ExportRecord(
            identity=strip_object_suffix(desc.object_path),
            display_name=desc.name,
            kind=desc.kind,
            source_reference=desc.object_path,
            internal_path=internal_path,
            file_location=str(location),
            materials=[slot.model_copy() for slot in desc.materials],
        )
        if desc.kind is MeshKind.SKELETAL_MESH:
            record.skeleton_reference = desc.skeleton_path or None
            record.morph_target_names = list(desc.morph_target_names)
            for name in desc.morph_target_names:
                log.debug("Captured morph target: %s", name)
        return record

    def _copy_system_asset(self, desc: AssetDescription) -> AssetDescription:
        """Swap an engine asset for its copy under the content root, creating the copy if needed.

        Raises:
            SystemAssetCopyError: The copy could not be created.
        """

        target = system_copy_path(desc.handle.path, self.content_root)
        copy = self.library.load(target)
        if copy is not None:
            log.info("Using existing copy %s of engine asset %s", target, desc.handle.path)
        else:
            copy = self.library.duplicate(desc.handle, target)
            if copy is None:
                raise SystemAssetCopyError(desc.handle.path, target)
            log.info("Duplicated engine asset %s -> %s", desc.handle.path, copy.path)
        return dataclasses.replace(desc, handle=copy, object_path=f"{copy.path}.{copy.name}")
