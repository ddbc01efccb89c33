"""Export and import pipelines.

``BridgeManager`` wires the reconciliation core to a host integration and
exposes the two user-triggered actions. Both run synchronously and stop at the
first record that fails; the outcome is always an ``OperationResult``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, List, Optional, Sequence

from .config_manager import BridgeSettings
from .core.collector import ExportCollector
from .core.manifest import ManifestStore
from .core.materials import MaterialReconciler
from .core.models import ExportRecord, Manifest, SkeletonAnalysis
from .core.morphs import restore_morph_target_names
from .core.paths import object_name_from_reference, package_path, strip_object_suffix
from .core.relocation import AssetRelocator
from .core.skeleton import SkeletonConflictResolver
from .errors import DirectoryCreateError, ExportFailedError, ImportProducedNoObjectError, MalformedManifestError, SkeletonUnresolvableError
from .host.interfaces import AssetHandle, AssetType, BridgeHost, WorldInstance, primary_mesh
from .support.logging import get_logger
from .support.results import OperationResult, operation


log = get_logger(__name__)

RetargetConfirm = Callable[[SkeletonAnalysis], bool]


class BridgeManager:
    """Runs export and import passes against one host.

    Args:
        settings: Active bridge settings.
        host: Host collaborators.
        confirm_retarget: Optional callback deciding per mesh whether a detected
            skeleton conflict is retargeted. Defaults to
            ``settings.retarget_skeletons``.
    """

    def __init__(self, settings: BridgeSettings, host: BridgeHost, confirm_retarget: Optional[RetargetConfirm] = None) -> None:
        self.settings = settings
        self.host = host
        self.confirm_retarget = confirm_retarget

        self.store = ManifestStore(settings.bridge_root, settings.manifests.legacy_name)
        self.collector = ExportCollector(
            host.introspection,
            settings.bridge_root,
            content_root=settings.content_root,
            mesh_extension=settings.mesh_extension,
            library=host.library,
            engine_root=settings.engine_root,
        )
        self.materials = MaterialReconciler(host.library, settings.content_root, settings.engine_root)
        self.skeletons = SkeletonConflictResolver(host.library)
        self.relocator = AssetRelocator(host.library, settings.content_root)

    # ------------------------------ Export ------------------------------

    @operation
    def start_export(
        self,
        world_selection: Optional[Sequence[WorldInstance]] = None,
        library_selection: Optional[Sequence[Any]] = None,
        previous_manifest: Optional[Manifest] = None,
    ) -> OperationResult:
        """Export the selection and write the engine-side manifest.

        Selections default to what the host reports as selected. The previous
        manifest defaults to the DCC-side manifest in the bridge root and is
        used to capture material changesets.
        """

        log.info("Starting export")
        if world_selection is None:
            world_selection = self.host.selection.world_selection()
        if library_selection is None:
            library_selection = self.host.selection.library_selection()

        records = self.collector.collect(world_selection, library_selection)
        if previous_manifest is None:
            previous_manifest = self._previous_manifest()
        records = self.materials.capture(records, previous_manifest)

        exported: List[ExportRecord] = []
        for record in records:
            if self._export_record(record):
                exported.append(record)
        if not exported:
            raise ExportFailedError("No objects were exported")

        manifest = Manifest(operation=self.settings.export_operation, objects=exported)
        path = self.store.write(manifest, self.settings.manifests.export_name)
        skipped = len(records) - len(exported)
        message = "Operation was successful"
        if skipped:
            message = f"Exported {len(exported)} of {len(records)} objects ({skipped} failed)"
        return OperationResult.ok(message, data=path)

    def _previous_manifest(self) -> Optional[Manifest]:
        try:
            return self.store.read_optional(self.settings.manifests.import_name)
        except MalformedManifestError as e:
            log.warning("Ignoring previous manifest for material changesets: %s", e.message)
            return None

    def _export_record(self, record: ExportRecord) -> bool:
        destination = Path(record.file_location)
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise DirectoryCreateError(str(destination.parent)) from e

        handle = AssetHandle(strip_object_suffix(record.source_reference), AssetType.for_kind(record.kind))
        log.info("Preparing to export %s %s to %s", record.kind.value, handle.name, destination)
        if self.host.exporter.export_mesh(handle, str(destination)):
            log.info("Successfully exported %s", handle.name)
            return True
        log.warning("Failed to export %s", handle.name)
        return False

    # ------------------------------ Import ------------------------------

    @operation
    def generate_import(self) -> OperationResult:
        """Import every record of the DCC-side manifest."""

        log.info("Starting import")
        manifest = self.store.read(self.settings.manifests.import_name)
        imported = [self.import_record(record) for record in manifest.objects]
        return OperationResult.ok(data=imported)

    def import_record(self, record: ExportRecord) -> AssetHandle:
        """Import one record and reconcile the result with what was exported.

        Raises:
            ImportProducedNoObjectError: The importer produced no usable object.
            RelocateConflictError: The destination is occupied and cannot be cleared.
        """

        library = self.host.library
        name = object_name_from_reference(record.source_reference, record.display_name)
        destination = package_path(self.settings.content_root, record.internal_path, name)

        existing = library.load(destination)
        if existing is not None:
            log.warning("Found existing asset at %s, closing all related editors", destination)
            library.close_editors(existing)

        handles = self.host.importer.import_mesh(record.file_location, destination, record.kind, record.skeleton_reference)
        mesh = primary_mesh(handles)
        if mesh is None:
            raise ImportProducedNoObjectError(record.file_location)
        log.info("Imported %s as %s", record.file_location, mesh.path)

        mesh = self.relocator.relocate(mesh, destination)

        if record.is_skeletal:
            restore_morph_target_names(mesh, record.morph_target_names, library)
            self._reconcile_skeleton(mesh, record)

        self.materials.restore(mesh, record.material_changeset)
        return mesh

    def _reconcile_skeleton(self, mesh: AssetHandle, record: ExportRecord) -> None:
        analysis = self.skeletons.analyze(mesh, record.skeleton_reference)
        if not analysis.needs_retarget:
            return
        if not self._should_retarget(analysis):
            log.info("Keeping generated skeleton %s for %s", analysis.generated_skeleton_path, mesh.path)
            return
        try:
            report = self.skeletons.retarget(analysis, delete_generated=self.settings.delete_generated_assets)
        except SkeletonUnresolvableError as e:
            log.warning("Skeleton retarget skipped for %s: %s", mesh.path, e.message)
            return
        log.info("%s", report.message)

    def _should_retarget(self, analysis: SkeletonAnalysis) -> bool:
        if self.confirm_retarget is not None:
            return bool(self.confirm_retarget(analysis))
        return self.settings.retarget_skeletons
