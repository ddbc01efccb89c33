"""Skeleton / physics-asset conflict detection and retargeting.

After a skeletal mesh import the pipeline may have generated a fresh
skeleton (and physics asset) next to the mesh instead of binding the
skeleton the producer recorded. The resolver walks one mesh through::

    Imported -> Analyzed -> {NoConflict | ConflictDetected}
    ConflictDetected -> RetargetRequested -> Retargeted -> {AssetsPreserved | AssetsDeleted}
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from ..errors import (
    DeleteFailedError,
    IntendedSkeletonUnresolvableError,
    NoIntendedSkeletonError,
    SkeletonUnresolvableError,
)
from ..host.interfaces import AssetHandle, AssetType, Bone, ContentLibrary
from ..support.logging import get_logger
from .models import SkeletonAnalysis, SkeletonState
from .paths import is_under, same_asset


log = get_logger(__name__)

SKELETON_SUFFIX = "_Skeleton"
PHYSICS_ASSET_SUFFIX = "_PhysicsAsset"
_SEARCH_DEPTH = 3


@dataclass
class HierarchyConflict:
    bone: str
    mesh_parent: Optional[str]
    skeleton_parent: Optional[str]


@dataclass
class RetargetReport:
    state: SkeletonState
    target_skeleton: str
    merged_bones: List[str] = field(default_factory=list)
    hierarchy_conflicts: List[HierarchyConflict] = field(default_factory=list)
    deleted: List[str] = field(default_factory=list)
    delete_failures: List[str] = field(default_factory=list)

    @property
    def message(self) -> str:
        msg = f"Retargeted mesh to {self.target_skeleton}"
        if self.merged_bones:
            msg += f"; merged {len(self.merged_bones)} bone(s)"
        if self.deleted:
            msg += f"; deleted {', '.join(self.deleted)}"
        if self.delete_failures:
            msg += f"; {'; '.join(self.delete_failures)}"
        return msg


class SkeletonConflictResolver:
    def __init__(self, library: ContentLibrary) -> None:
        self.library = library

    # ------------------------------ Analysis ------------------------------

    def analyze(self, mesh: AssetHandle, intended_skeleton_path: Optional[str]) -> SkeletonAnalysis:
        """Detect whether the import bound a generated skeleton instead of the intended one.

        Args:
            mesh: The freshly imported skeletal mesh.
            intended_skeleton_path: Skeleton recorded in the manifest, may be empty.

        Returns:
            SkeletonAnalysis: State NO_CONFLICT or CONFLICT_DETECTED.
        """

        analysis = SkeletonAnalysis(imported_mesh=mesh, intended_skeleton_path=intended_skeleton_path or "", state=SkeletonState.IMPORTED)

        skeleton = self.library.skeleton_of(mesh)
        physics = self.library.physics_asset_of(mesh)
        if skeleton is None or physics is None:
            found_skeleton, found_physics = self.find_generated_assets_near_mesh(mesh)
            skeleton = skeleton or found_skeleton
            physics = physics or found_physics
        analysis.state = SkeletonState.ANALYZED

        intended = self.library.load(intended_skeleton_path) if intended_skeleton_path else None
        if intended_skeleton_path and intended is None:
            log.warning("Intended skeleton %s could not be resolved; treating current skeleton as generated", intended_skeleton_path)

        if skeleton is not None and intended is not None and same_asset(skeleton.path, intended.path):
            log.info("Mesh %s already uses intended skeleton %s", mesh.path, intended.path)
            analysis.state = SkeletonState.NO_CONFLICT
            return analysis

        if skeleton is not None:
            analysis.new_skeleton_generated = True
            analysis.generated_skeleton_path = skeleton.path
            log.info("Detected generated skeleton %s for mesh %s", skeleton.path, mesh.path)

        # Generated physics assets are colocated with the mesh; shared ones live elsewhere
        if physics is not None and is_under(physics.path, mesh.folder):
            analysis.new_physics_asset_generated = True
            analysis.generated_physics_asset_path = physics.path
            log.info("Detected generated physics asset %s", physics.path)

        analysis.state = SkeletonState.CONFLICT_DETECTED if analysis.new_skeleton_generated else SkeletonState.NO_CONFLICT
        return analysis

    def find_generated_assets_near_mesh(self, mesh: AssetHandle) -> Tuple[Optional[AssetHandle], Optional[AssetHandle]]:
        """Search the mesh folder and its import subfolders for ``<Mesh>_Skeleton`` / ``<Mesh>_PhysicsAsset``."""

        skeleton_name = f"{mesh.name}{SKELETON_SUFFIX}"
        physics_name = f"{mesh.name}{PHYSICS_ASSET_SUFFIX}"
        skeleton: Optional[AssetHandle] = None
        physics: Optional[AssetHandle] = None

        pending: List[Tuple[str, int]] = [(mesh.folder, 0)]
        while pending and (skeleton is None or physics is None):
            folder, depth = pending.pop(0)
            for asset in self.library.list_assets(folder):
                if skeleton is None and asset.asset_type is AssetType.SKELETON and asset.name == skeleton_name:
                    skeleton = asset
                elif physics is None and asset.asset_type is AssetType.PHYSICS_ASSET and asset.name == physics_name:
                    physics = asset
            if depth < _SEARCH_DEPTH:
                pending.extend((sub, depth + 1) for sub in self.library.list_subfolders(folder))
        return skeleton, physics

    # ------------------------------ Retarget ------------------------------

    def retarget(self, analysis: SkeletonAnalysis, delete_generated: bool = False) -> RetargetReport:
        """Rebind the mesh to the intended skeleton, merging missing bones into it.

        The mesh's physics asset reference is cleared, not reassigned. With
        ``delete_generated`` the generated skeleton / physics asset are deleted,
        but only when the asset resolves to exactly the recorded generated path.
        Deletion failures are reported in the result and never undo the rebind.

        Raises:
            NoIntendedSkeletonError: No intended skeleton recorded.
            IntendedSkeletonUnresolvableError: Intended skeleton cannot be loaded.
            SkeletonUnresolvableError: Missing bones could not be merged.
        """

        if not analysis.intended_skeleton_path:
            raise NoIntendedSkeletonError()
        target = self.library.load(analysis.intended_skeleton_path)
        if target is None or target.asset_type is not AssetType.SKELETON:
            raise IntendedSkeletonUnresolvableError(analysis.intended_skeleton_path)

        mesh: AssetHandle = analysis.imported_mesh
        analysis.state = SkeletonState.RETARGET_REQUESTED
        report = RetargetReport(state=analysis.state, target_skeleton=target.path)

        mesh_bones = self.library.bones_of(mesh)
        known = {bone.name for bone in self.library.bones_of(target)}
        for bone in mesh_bones:
            if bone.name in known:
                continue
            if not self.library.add_bone(target, bone):
                raise SkeletonUnresolvableError(f"Failed to merge bone {bone.name} into {target.path}", path=target.path)
            known.add(bone.name)
            report.merged_bones.append(bone.name)
        if report.merged_bones:
            log.info("Merged %d bone(s) into %s: %s", len(report.merged_bones), target.path, ", ".join(report.merged_bones))

        report.hierarchy_conflicts = self._hierarchy_conflicts(mesh_bones, self.library.bones_of(target))
        for conflict in report.hierarchy_conflicts:
            log.warning(
                "Bone %s has parent %s on the mesh but %s on %s",
                conflict.bone,
                conflict.mesh_parent,
                conflict.skeleton_parent,
                target.path,
            )

        self.library.set_skeleton(mesh, target)
        self.library.clear_physics_asset(mesh)
        self.library.mark_dirty(mesh)
        analysis.state = SkeletonState.RETARGETED
        log.info("Retargeted %s to skeleton %s", mesh.path, target.path)

        if delete_generated:
            self._delete_generated(analysis, report)
        analysis.state = SkeletonState.ASSETS_DELETED if report.deleted else SkeletonState.ASSETS_PRESERVED
        report.state = analysis.state
        return report

    @staticmethod
    def _hierarchy_conflicts(mesh_bones: List[Bone], skeleton_bones: List[Bone]) -> List[HierarchyConflict]:
        parents: Dict[str, Optional[str]] = {bone.name: bone.parent for bone in skeleton_bones}
        return [
            HierarchyConflict(bone=bone.name, mesh_parent=bone.parent, skeleton_parent=parents.get(bone.name))
            for bone in mesh_bones
            if bone.name in parents and parents[bone.name] != bone.parent
        ]

    def _delete_generated(self, analysis: SkeletonAnalysis, report: RetargetReport) -> None:
        candidates = [
            (analysis.generated_skeleton_path, analysis.new_skeleton_generated),
            (analysis.generated_physics_asset_path, analysis.new_physics_asset_generated),
        ]
        for recorded, generated in candidates:
            if not generated or not recorded:
                continue
            if same_asset(recorded, analysis.intended_skeleton_path):
                continue
            asset = self.library.load(recorded)
            if asset is None:
                log.info("Generated asset %s no longer exists, nothing to delete", recorded)
                continue
            if not same_asset(asset.path, recorded):
                log.warning("Refusing to delete %s: resolves to %s, not the recorded generated asset", recorded, asset.path)
                continue
            self.library.close_editors(asset)
            if self.library.delete(asset):
                report.deleted.append(asset.path)
                log.info("Deleted generated asset %s", asset.path)
            else:
                err = DeleteFailedError(asset.path)
                report.delete_failures.append(err.message)
                log.warning("%s", err.message)
