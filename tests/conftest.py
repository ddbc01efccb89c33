"""In-memory host used by the test-suite.

``FakeLibrary`` keeps assets as plain path -> handle maps; folders exist while
something was ever created below them, like an editor's content browser.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Set, Tuple

import pytest

from assets_bridge.config_manager import BridgeSettings
from assets_bridge.core.models import MaterialSlot, MeshKind
from assets_bridge.core.paths import parent_folder, strip_object_suffix
from assets_bridge.host.interfaces import (
    AssetDescription,
    AssetHandle,
    AssetIntrospection,
    AssetType,
    Bone,
    BridgeHost,
    ContentLibrary,
    MeshExporter,
    MeshImporter,
    SelectionSource,
    WorldInstance,
)


class FakeLibrary(ContentLibrary):
    def __init__(self) -> None:
        self.assets: Dict[str, AssetHandle] = {}
        self.folders: Set[str] = set()
        self.materials: Dict[str, List[Optional[str]]] = {}
        self.skeletons: Dict[str, str] = {}
        self.physics: Dict[str, str] = {}
        self.bones: Dict[str, List[Bone]] = {}
        self.morphs: Dict[str, List[str]] = {}
        # load(path) -> assets[redirects[path]]
        self.redirects: Dict[str, str] = {}
        self.fail_delete: Set[str] = set()
        self.fail_folder_delete: Set[str] = set()
        self.fail_add_bone = False
        self.fail_duplicate: Set[str] = set()
        self.fail_move: Set[str] = set()
        self.duplicated: List[Tuple[str, str]] = []
        self.closed: List[str] = []
        self.dirty: List[str] = []
        self.deleted: List[str] = []
        self.deleted_folders: List[str] = []

    # helpers

    def add(self, path: str, asset_type: AssetType = AssetType.OTHER) -> AssetHandle:
        handle = AssetHandle(path, asset_type)
        self.assets[path] = handle
        self.add_folder(handle.folder)
        return handle

    def add_folder(self, folder: str) -> None:
        while folder and folder != "/":
            self.folders.add(folder)
            folder = parent_folder(folder)

    def add_mesh(self, path: str, kind: MeshKind = MeshKind.STATIC_MESH, slots: int = 0) -> AssetHandle:
        handle = self.add(path, AssetType.for_kind(kind))
        self.materials[path] = [None] * slots
        return handle

    # ContentLibrary

    def exists(self, path: str) -> bool:
        return strip_object_suffix(path) in self.assets

    def load(self, path: str) -> Optional[AssetHandle]:
        key = strip_object_suffix(path)
        key = self.redirects.get(key, key)
        return self.assets.get(key)

    def delete(self, handle: AssetHandle) -> bool:
        if handle.path in self.fail_delete or handle.path not in self.assets:
            return False
        del self.assets[handle.path]
        self.deleted.append(handle.path)
        return True

    def move(self, handle: AssetHandle, destination_path: str) -> Optional[AssetHandle]:
        destination = strip_object_suffix(destination_path)
        if destination in self.assets or destination in self.fail_move or handle.path not in self.assets:
            return None
        del self.assets[handle.path]
        moved = self.add(destination, handle.asset_type)
        for table in (self.materials, self.skeletons, self.physics, self.bones, self.morphs):
            if handle.path in table:
                table[destination] = table.pop(handle.path)
        return moved

    def duplicate(self, handle: AssetHandle, destination_path: str) -> Optional[AssetHandle]:
        destination = strip_object_suffix(destination_path)
        if destination in self.assets or destination in self.fail_duplicate:
            return None
        copy = self.add(destination, handle.asset_type)
        self.duplicated.append((handle.path, destination))
        return copy

    def close_editors(self, handle: AssetHandle) -> None:
        self.closed.append(handle.path)

    def list_assets(self, folder: str) -> List[AssetHandle]:
        return [h for h in self.assets.values() if h.folder == folder]

    def list_subfolders(self, folder: str) -> List[str]:
        return sorted(f for f in self.folders if f != folder and parent_folder(f) == folder)

    def delete_folder(self, folder: str) -> bool:
        if folder in self.fail_folder_delete:
            return False
        self.folders.discard(folder)
        self.deleted_folders.append(folder)
        return True

    def material_count(self, mesh: AssetHandle) -> int:
        return len(self.materials.get(mesh.path, []))

    def set_material(self, mesh: AssetHandle, index: int, material: AssetHandle) -> None:
        self.materials[mesh.path][index] = material.path

    def skeleton_of(self, mesh: AssetHandle) -> Optional[AssetHandle]:
        path = self.skeletons.get(mesh.path)
        return self.assets.get(path) if path else None

    def physics_asset_of(self, mesh: AssetHandle) -> Optional[AssetHandle]:
        path = self.physics.get(mesh.path)
        return self.assets.get(path) if path else None

    def set_skeleton(self, mesh: AssetHandle, skeleton: AssetHandle) -> None:
        self.skeletons[mesh.path] = skeleton.path

    def clear_physics_asset(self, mesh: AssetHandle) -> None:
        self.physics.pop(mesh.path, None)

    def bones_of(self, handle: AssetHandle) -> List[Bone]:
        return list(self.bones.get(handle.path, []))

    def add_bone(self, skeleton: AssetHandle, bone: Bone) -> bool:
        if self.fail_add_bone:
            return False
        self.bones.setdefault(skeleton.path, []).append(bone)
        return True

    def morph_target_names(self, mesh: AssetHandle) -> List[str]:
        return list(self.morphs.get(mesh.path, []))

    def rename_morph_target(self, mesh: AssetHandle, old_name: str, new_name: str) -> None:
        names = self.morphs[mesh.path]
        names[names.index(old_name)] = new_name

    def mark_dirty(self, handle: AssetHandle) -> None:
        self.dirty.append(handle.path)


class FakeMesh:
    """A library object as the host would hand it out; compares by identity."""

    def __init__(
        self,
        path: str,
        kind: MeshKind = MeshKind.STATIC_MESH,
        materials: Optional[List[MaterialSlot]] = None,
        skeleton: Optional[str] = None,
        morphs: Optional[List[str]] = None,
    ) -> None:
        self.path = path
        self.kind = kind
        self.materials = materials or []
        self.skeleton = skeleton
        self.morphs = morphs or []


class FakeProxy:
    """A content-browser entry pointing at a library object."""

    def __init__(self, target: FakeMesh) -> None:
        self.target = target


class FakeIntrospection(AssetIntrospection):
    def __init__(self) -> None:
        self.broken: Set[str] = set()

    def resolve(self, obj: Any) -> Any:
        return obj.target if isinstance(obj, FakeProxy) else obj

    def describe(self, obj: Any) -> AssetDescription:
        if obj.path in self.broken:
            raise RuntimeError(f"cannot inspect {obj.path}")
        name = obj.path.rsplit("/", 1)[-1]
        return AssetDescription(
            handle=AssetHandle(obj.path, AssetType.for_kind(obj.kind)),
            kind=obj.kind,
            object_path=f"{obj.path}.{name}",
            materials=list(obj.materials),
            skeleton_path=obj.skeleton,
            morph_target_names=list(obj.morphs),
        )


@dataclass
class ImportPlan:
    slots: int = 0
    morphs: List[str] = field(default_factory=list)
    bones: List[Bone] = field(default_factory=list)
    land_at: Optional[str] = None
    generate_skeleton: bool = False
    produce_nothing: bool = False


class FakeImporter(MeshImporter):
    """Creates assets in the library; behavior per source file name via ``plans``."""

    def __init__(self, library: FakeLibrary) -> None:
        self.library = library
        self.plans: Dict[str, ImportPlan] = {}
        self.calls: List[tuple] = []

    def import_mesh(self, source_file: str, destination_path: str, kind: MeshKind, skeleton_path: Optional[str] = None) -> List[AssetHandle]:
        self.calls.append((source_file, destination_path, kind, skeleton_path))
        plan = self.plans.get(Path(source_file).name, ImportPlan())
        if plan.produce_nothing:
            return []

        target = plan.land_at or destination_path
        self.library.assets.pop(target, None)
        mesh = self.library.add_mesh(target, kind, slots=plan.slots)
        self.library.morphs[target] = list(plan.morphs)
        self.library.bones[target] = list(plan.bones)
        produced = [mesh]

        if kind is MeshKind.SKELETAL_MESH:
            if plan.generate_skeleton or not skeleton_path:
                skeleton = self.library.add(f"{target}_Skeleton", AssetType.SKELETON)
                physics = self.library.add(f"{target}_PhysicsAsset", AssetType.PHYSICS_ASSET)
                self.library.bones[skeleton.path] = list(plan.bones)
                self.library.skeletons[target] = skeleton.path
                self.library.physics[target] = physics.path
                produced = [skeleton, physics, mesh]
            else:
                self.library.skeletons[target] = strip_object_suffix(skeleton_path)
        return produced


class FakeExporter(MeshExporter):
    def __init__(self) -> None:
        self.fail: Set[str] = set()
        self.calls: List[tuple] = []

    def export_mesh(self, handle: AssetHandle, destination_file: str) -> bool:
        self.calls.append((handle, destination_file))
        if handle.name in self.fail:
            return False
        Path(destination_file).write_bytes(b"glTF")
        return True


class FakeSelection(SelectionSource):
    def __init__(self) -> None:
        self.world: List[WorldInstance] = []
        self.library: List[Any] = []

    def world_selection(self) -> List[WorldInstance]:
        return list(self.world)

    def library_selection(self) -> List[Any]:
        return list(self.library)


@pytest.fixture
def library() -> FakeLibrary:
    return FakeLibrary()


@pytest.fixture
def introspection() -> FakeIntrospection:
    return FakeIntrospection()


@pytest.fixture
def host(library: FakeLibrary, introspection: FakeIntrospection) -> BridgeHost:
    return BridgeHost(
        introspection=introspection,
        importer=FakeImporter(library),
        exporter=FakeExporter(),
        selection=FakeSelection(),
        library=library,
    )


@pytest.fixture
def settings(tmp_path: Path) -> BridgeSettings:
    return BridgeSettings(bridge_root=tmp_path / "bridge")


@pytest.fixture
def slot():
    """Factory for material slots: slot(0, "Skin", "/M/Skin")."""

    def _make(index: int, name: str = "", path: str = "") -> MaterialSlot:
        return MaterialSlot(index=index, name=name, material_path=path)

    return _make
