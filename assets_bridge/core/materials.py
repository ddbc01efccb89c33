from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List, Optional, Sequence, Tuple

from ..support.logging import get_logger
from .models import ExportRecord, Manifest, MaterialChangeset, MaterialSlot
from .paths import qualify_material_path

if TYPE_CHECKING:
    from ..host.interfaces import AssetHandle, ContentLibrary


log = get_logger(__name__)


def diff(previous: Sequence[MaterialSlot], current: Sequence[MaterialSlot]) -> MaterialChangeset:
    """Classify material slots between two snapshots of the same mesh.

    A slot is matched on ``(index, name)``. Matched slots are *unchanged* and
    carry the current slot, whose material path is what gets restored after
    reimport. Slots only in ``current`` are *added*; slots only in
    ``previous`` are *removed* and keep their index in ``original_index``.
    """

    previous_keys = {slot.key for slot in previous}
    current_keys = {slot.key for slot in current}

    unchanged = [slot.model_copy() for slot in current if slot.key in previous_keys]
    added = [slot.model_copy() for slot in current if slot.key not in previous_keys]
    removed = [
        slot.model_copy(update={"original_index": slot.index})
        for slot in previous
        if slot.key not in current_keys
    ]
    return MaterialChangeset(added=added, removed=removed, unchanged=unchanged)


@dataclass
class RestoreReport:
    restored: List[int] = field(default_factory=list)
    skipped: List[Tuple[MaterialSlot, str]] = field(default_factory=list)
    added: List[MaterialSlot] = field(default_factory=list)
    removed: List[MaterialSlot] = field(default_factory=list)


class MaterialReconciler:
    """Captures material changesets on export and reapplies them after import."""

    def __init__(self, library: Optional["ContentLibrary"] = None, content_root: str = "/Game", engine_root: str = "/Engine") -> None:
        self.library = library
        self.content_root = content_root
        self.engine_root = engine_root

    diff = staticmethod(diff)

    def capture(self, records: Sequence[ExportRecord], previous: Optional[Manifest]) -> List[ExportRecord]:
        """Attach a changeset to each record that has a counterpart in ``previous``.

        Counterparts are matched by record identity. Records without one are
        returned as-is (a from-scratch export has no changeset).
        """

        if previous is None:
            return list(records)
        by_identity: Dict[str, ExportRecord] = {r.identity: r for r in previous.objects}
        out: List[ExportRecord] = []
        for record in records:
            before = by_identity.get(record.identity)
            if before is None:
                out.append(record)
                continue
            changeset = diff(before.materials, record.materials)
            log.debug(
                "Changeset for %s - Added: %d, Removed: %d, Unchanged: %d",
                record.identity,
                len(changeset.added),
                len(changeset.removed),
                len(changeset.unchanged),
            )
            out.append(record.model_copy(update={"material_changeset": changeset}))
        return out

    def restore(self, mesh: "AssetHandle", changeset: Optional[MaterialChangeset]) -> RestoreReport:
        """Reapply unchanged slots onto a freshly imported mesh.

        Out-of-range slots and materials that cannot be loaded are skipped with
        a warning; the remaining slots are still restored. Added slots are
        left for manual assignment.
        """

        if self.library is None:
            raise RuntimeError("MaterialReconciler.restore requires a content library")
        report = RestoreReport()
        if changeset is None:
            return report

        count = self.library.material_count(mesh)
        log.info(
            "Material changeset - Added: %d, Removed: %d, Unchanged: %d",
            len(changeset.added),
            len(changeset.removed),
            len(changeset.unchanged),
        )

        for slot in changeset.unchanged:
            if slot.index < 0 or slot.index >= count:
                log.warning("Material slot %d out of bounds (mesh has %d slots)", slot.index, count)
                report.skipped.append((slot, "out of bounds"))
                continue
            material_path = qualify_material_path(slot.material_path, self.content_root, self.engine_root)
            material = self.library.load(material_path) if material_path else None
            if material is None:
                log.warning("Material %r for slot %d could not be loaded", material_path, slot.index)
                report.skipped.append((slot, "material not found"))
                continue
            self.library.set_material(mesh, slot.index, material)
            report.restored.append(slot.index)
            log.info("Restored unchanged material %s at slot %d", slot.name, slot.index)

        for slot in changeset.added:
            log.info("New material slot added: %s at slot %d (assign material manually)", slot.name, slot.index)
            report.added.append(slot)
        for slot in changeset.removed:
            log.info("Material removed: %s (was at slot %s)", slot.name, slot.original_index)
            report.removed.append(slot)

        self.library.mark_dirty(mesh)
        return report
